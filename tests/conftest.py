import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from paper_tracker.auth import passwords  # noqa: E402
from paper_tracker.database import Base  # noqa: E402
from paper_tracker.models import completion, test, user  # noqa: E402,F401
from paper_tracker.models.user import User  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(username: str, password: str = 'pw123') -> User:
        account = User(username=username, hashed_password=passwords.hash_password(password))
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return _make_user


@pytest.fixture
def client(db, monkeypatch: pytest.MonkeyPatch):
    from fastapi.testclient import TestClient

    from paper_tracker.database import get_db
    from paper_tracker.main import app

    monkeypatch.setattr('paper_tracker.routes.record_routes.ensure_database_ready', lambda: None)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
