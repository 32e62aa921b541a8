import logging
import sqlite3
from threading import Lock

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from paper_tracker.core import config

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    options = {'echo': config.DATABASE_ECHO}
    if database_url.startswith('sqlite'):
        options['connect_args'] = {'check_same_thread': False}
    else:
        options['pool_pre_ping'] = True
    return options


engine = create_engine(config.DATABASE_URL, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


_schema_lock = Lock()
_record_schema_checked = False

FULL_ROW_INDEX_SQL = (
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_tests_full_row ON tests ("
    "user_id, subject, date_or_id, "
    "COALESCE(topic, ''), COALESCE(qualification_level, ''), COALESCE(exam_board, ''), "
    "COALESCE(paper_link, ''), COALESCE(mark_scheme_link, ''), COALESCE(comments, ''))"
)


def ensure_record_schema() -> None:
    """Add the full-row unique index to a ``tests`` table that lacks it.

    Databases created by the first server only carry a uniqueness constraint
    that includes the primary key, so exact duplicates slipped through.
    """
    global _record_schema_checked

    if _record_schema_checked:
        return

    with _schema_lock:
        if _record_schema_checked:
            return

        inspector = inspect(engine)

        if 'tests' not in inspector.get_table_names():
            _record_schema_checked = True
            return

        try:
            with engine.begin() as connection:
                connection.execute(text(FULL_ROW_INDEX_SQL))
        except IntegrityError:
            # Rows that are already exact duplicates block the index; keep serving them.
            logger.warning('Existing duplicate tests prevent creating uq_tests_full_row', exc_info=True)

        _record_schema_checked = True
