import pytest
from fastapi.testclient import TestClient

from api import create_app
from config import Settings
from database import BookStore
from library import Library


@pytest.fixture
def db_file(tmp_path, request):
    # Unique database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def store(db_file):
    store = BookStore(db_file, pool_size=2, timeout=1.0, acquire_timeout=1.0)
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def lib(store):
    return Library(store, default_page=1, default_page_size=4)


@pytest.fixture
def app_settings(db_file):
    return Settings(database_file=db_file, database_pool_size=2, default_page_size=4)


@pytest.fixture
def client(app_settings):
    # Entering the client runs the lifespan, which opens and checks the store
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client
