import pytest
from fastapi.testclient import TestClient

from finance_tracker.config import load_config
from finance_tracker.database import TransactionStore
from finance_tracker.web import create_app


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'txs.db'}"


@pytest.fixture
def store(db_url):
    store = TransactionStore(db_url)
    yield store
    store.dispose()


@pytest.fixture
def client(store):
    app = create_app(store, load_config(None))
    with TestClient(app) as test_client:
        yield test_client

