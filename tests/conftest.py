import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.record_store import RecordStore
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer


@pytest.fixture
def settings(tmp_path):
    return Settings(database_dir=tmp_path / "db")


@pytest.fixture
def db(settings):
    return AsyncDatabaseInitializer(settings)


@pytest.fixture
def store(db):
    return RecordStore(db)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client
