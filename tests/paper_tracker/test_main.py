import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from paper_tracker import database, main


@pytest.fixture
def file_database(tmp_path, monkeypatch: pytest.MonkeyPatch):
    database_url = f"sqlite:///{tmp_path / 'paper_tracker.db'}"
    engine = create_engine(database_url, **database._engine_options(database_url))

    monkeypatch.setattr(database, 'engine', engine)
    monkeypatch.setattr(database, 'SessionLocal', sessionmaker(autocommit=False, autoflush=False, bind=engine))
    monkeypatch.setattr(database, '_record_schema_checked', False)
    monkeypatch.setattr(main, 'engine', engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_health(file_database) -> None:
    with TestClient(main.app) as client:
        response = client.get('/health')

    assert response.status_code == 200


def test_app_startup_serves_records_on_fresh_and_reopened_database(file_database, monkeypatch: pytest.MonkeyPatch) -> None:
    with TestClient(main.app) as client:
        token = client.post('/auth/register', json={'username': 'alice', 'password': 'pw123'}).json()['access_token']
        headers = {'Authorization': f'Bearer {token}'}

        created = client.post('/records/tests', json={'subject': 'Maths', 'date_or_id': 'Mock 1'}, headers=headers)
        duplicate = client.post('/records/tests', json={'subject': 'Maths', 'date_or_id': 'Mock 1'}, headers=headers)
        listed = client.get('/records/tests', headers=headers)

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert listed.status_code == 200
    assert [test['subject'] for test in listed.json()] == ['Maths']

    monkeypatch.setattr(database, '_record_schema_checked', False)

    with TestClient(main.app) as client:
        reopened = client.get('/records/tests', headers=headers)

    assert reopened.status_code == 200
    assert [test['date_or_id'] for test in reopened.json()] == ['Mock 1']
