import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from paper_tracker.core import config
from paper_tracker.core.logging_config import configure_logging
from paper_tracker.database import Base, engine, ensure_record_schema
from paper_tracker.models import completion, test, user  # noqa: F401
from paper_tracker.routes import account_routes, record_routes, ui_routes

configure_logging()

app = FastAPI(title='Paper Tracker')

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.SERVER_URL],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_record_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
    logger.info('Paper Tracker ready at %s', config.SERVER_URL)


@app.get('/health')
def health():
    return {'status': 'Paper Tracker API Running'}


app.include_router(account_routes.router, prefix='/auth')
app.include_router(record_routes.router, prefix='/records')
app.include_router(ui_routes.router)
