"""
Tests for the connection manager: retries, backoff and memory fallback
"""

import pytest
from unittest.mock import Mock, patch
from sqlalchemy.exc import OperationalError

from currencyverse.config.settings import Settings
from currencyverse.database.connection import ConnectionManager
from currencyverse.database.memory import MemoryStorage
from currencyverse.database.repository import SqlStorage
from currencyverse.exceptions import DatabaseUnavailable


def _settings(**overrides):
    values = dict(
        environment="test",
        use_memory_db=False,
        db_max_retries=4,
        db_backoff_base_seconds=1.0,
        db_backoff_max_seconds=5.0,
        db_health_check_interval=0,
    )
    values.update(overrides)
    return Settings(**values)


class TestConnectionManager:
    """Test backend selection at startup"""

    def setup_method(self):
        self.sleep = Mock()

    def test_memory_mode_flag(self):
        manager = ConnectionManager(_settings(use_memory_db=True), sleep=self.sleep)

        storage = manager.start()

        assert isinstance(storage, MemoryStorage)
        assert manager.mode == "memory"
        assert manager.status() == {"status": "memory", "connected": False, "mode": "memory"}
        assert storage.find_user_by_email("admin@currencyverse.com").is_admin
        assert storage.find_rate("USD", "EUR").rate == 0.92
        self.sleep.assert_not_called()

    def test_backoff_is_capped(self):
        manager = ConnectionManager(_settings(), sleep=self.sleep)

        assert [manager.backoff_delay(n) for n in range(1, 5)] == [2.0, 4.0, 5.0, 5.0]

    @patch("currencyverse.database.connection.DatabaseManager")
    def test_falls_back_to_memory_after_retries(self, mock_manager_class):
        mock_manager_class.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
        manager = ConnectionManager(_settings(), sleep=self.sleep)

        storage = manager.start()

        assert isinstance(storage, MemoryStorage)
        assert manager.mode == "memory"
        assert manager.attempts == 4
        assert mock_manager_class.call_count == 4
        assert [c.args[0] for c in self.sleep.call_args_list] == [2.0, 4.0, 5.0]

    @patch("currencyverse.database.connection.DatabaseManager")
    def test_raises_when_fallback_disabled(self, mock_manager_class):
        mock_manager_class.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
        manager = ConnectionManager(_settings(db_memory_fallback=False, db_max_retries=2), sleep=self.sleep)

        with pytest.raises(DatabaseUnavailable):
            manager.start()

        assert self.sleep.call_count == 1
        assert manager.storage is None

    @patch("currencyverse.database.connection.DatabaseManager")
    def test_recovers_on_later_attempt(self, mock_manager_class):
        working = Mock()
        mock_manager_class.side_effect = [
            OperationalError("SELECT 1", {}, Exception("refused")),
            working,
        ]
        manager = ConnectionManager(_settings(seed_reference_data=False), sleep=self.sleep)

        storage = manager.start()

        assert isinstance(storage, SqlStorage)
        assert manager.mode == "database"
        assert manager.connected is True
        assert manager.attempts == 2
        working.create_tables.assert_called_once()
        self.sleep.assert_called_once_with(2.0)

    def test_sqlite_database(self, tmp_path):
        settings = _settings(database_url=f"sqlite:///{tmp_path / 'conn.db'}")
        manager = ConnectionManager(settings, sleep=self.sleep)

        storage = manager.start()
        try:
            assert manager.mode == "database"
            assert manager.status() == {"status": "connected", "connected": True, "mode": "database"}
            assert storage.find_rate("USD", "EUR").rate == 0.92
            assert storage.list_users() == []
        finally:
            manager.stop()

        assert manager.connected is False

    def test_lost_connection_is_reported(self, tmp_path):
        settings = _settings(database_url=f"sqlite:///{tmp_path / 'conn.db'}")
        manager = ConnectionManager(settings, sleep=self.sleep)
        storage = manager.start()

        try:
            with patch.object(storage, "ping", return_value=False):
                assert manager.check_connection() is False
                assert manager.status()["status"] == "disconnected"
            assert manager.check_connection() is True
        finally:
            manager.stop()
