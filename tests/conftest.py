"""
Shared fixtures
"""

import pytest
from fastapi.testclient import TestClient

from currencyverse.config.settings import Settings
from currencyverse.database.engine import DatabaseManager
from currencyverse.database.init_db import seed_demo_users, seed_reference_data
from currencyverse.database.memory import MemoryStorage
from currencyverse.database.repository import SqlStorage
from currencyverse.main import create_app


@pytest.fixture
def app_settings():
    return Settings(
        environment="test",
        use_memory_db=True,
        secret_key="test-secret-key",
        rate_limit_requests=1000,
        debit_source_wallet=False,
    )


@pytest.fixture
def memory_storage():
    storage = MemoryStorage()
    seed_reference_data(storage)
    seed_demo_users(storage)
    return storage


@pytest.fixture
def client(app_settings, memory_storage):
    return TestClient(create_app(settings=app_settings, storage=memory_storage))


@pytest.fixture(params=["memory", "sql"])
def storage(request, tmp_path):
    """Each storage backend, empty"""
    if request.param == "memory":
        yield MemoryStorage()
        return

    db_manager = DatabaseManager(f"sqlite:///{tmp_path / 'currencyverse-test.db'}")
    db_manager.create_tables()
    backend = SqlStorage(db_manager)
    yield backend
    backend.close()
