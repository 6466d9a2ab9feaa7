"""
Database connection lifecycle

ConnectionManager owns the retry policy used at startup, the fallback to
in-memory storage, and a background connectivity check. One instance is
built per process and handed to the application.
"""

import threading
import time
from typing import Callable, Dict, Optional

import schedule
from sqlalchemy.exc import SQLAlchemyError

from .engine import DatabaseManager
from .init_db import seed_demo_users, seed_reference_data
from .memory import MemoryStorage
from .repository import SqlStorage
from .storage import Storage
from ..config.settings import Settings
from ..exceptions import DatabaseUnavailable
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """
    Builds the storage backend for the process

    Retry policy: up to ``db_max_retries`` attempts, sleeping
    min(base * 2**attempt, cap) seconds between them.
    """

    def __init__(self, settings: Settings, sleep: Callable[[float], None] = time.sleep):
        self.settings = settings
        self._sleep = sleep
        self.storage: Optional[Storage] = None
        self.db_manager: Optional[DatabaseManager] = None
        self.mode = "disconnected"
        self.connected = False
        self.attempts = 0

        self._scheduler = schedule.Scheduler()
        self._monitor_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)"""
        return min(
            self.settings.db_backoff_base_seconds * (2 ** attempt),
            self.settings.db_backoff_max_seconds
        )

    def start(self) -> Storage:
        """
        Connect to the configured database or fall back to memory

        Returns:
            The storage backend to use for the lifetime of the process

        Raises:
            DatabaseUnavailable: all attempts failed and fallback is disabled
        """
        if self.settings.use_memory_db:
            logger.warning("Using memory database mode; data will not persist between restarts")
            return self._use_memory()

        max_attempts = max(1, self.settings.db_max_retries)
        last_error = None

        for attempt in range(1, max_attempts + 1):
            self.attempts = attempt
            try:
                db_manager = self._connect()
            except (SQLAlchemyError, ImportError) as e:
                last_error = e
                logger.error(f"Attempt {attempt}/{max_attempts}: database connection failed: {e}")
                if attempt < max_attempts:
                    delay = self.backoff_delay(attempt)
                    logger.info(f"Retrying database connection in {delay:g} seconds")
                    self._sleep(delay)
                continue

            self.db_manager = db_manager
            self.storage = SqlStorage(db_manager)
            self.mode = "database"
            self.connected = True
            if self.settings.seed_reference_data:
                seed_reference_data(self.storage)
            self._start_monitor()
            logger.info("Application running in DATABASE mode")
            return self.storage

        if not self.settings.db_memory_fallback:
            raise DatabaseUnavailable(
                f"Failed to connect after {max_attempts} attempts: {last_error}"
            )

        logger.error(f"Failed to connect after {max_attempts} attempts. Falling back to memory mode")
        return self._use_memory()

    def _connect(self) -> DatabaseManager:
        db_manager = DatabaseManager(self.settings.database_url)
        try:
            db_manager.create_tables()
            db_manager.ping()
        except SQLAlchemyError:
            db_manager.close()
            raise
        return db_manager

    def _use_memory(self) -> Storage:
        self.storage = MemoryStorage()
        self.mode = "memory"
        self.connected = False
        if self.settings.seed_reference_data:
            seed_reference_data(self.storage)
            seed_demo_users(
                self.storage,
                self.settings.default_wallet_currency,
                self.settings.starting_balance
            )
        return self.storage

    def check_connection(self) -> bool:
        """Ping the database and log connectivity changes"""
        if self.storage is None or self.mode != "database":
            return False

        alive = self.storage.ping()
        if alive and not self.connected:
            logger.info("Database connection restored")
        elif not alive and self.connected:
            logger.warning("Database connection lost; the pool reconnects on next use")
        self.connected = alive
        return alive

    def status(self) -> Dict[str, object]:
        """Connectivity summary for the health endpoint"""
        if self.mode == "memory":
            return {"status": "memory", "connected": False, "mode": "memory"}
        if self.mode == "database":
            connected = self.check_connection()
            return {
                "status": "connected" if connected else "disconnected",
                "connected": connected,
                "mode": "database",
            }
        return {"status": "disconnected", "connected": False, "mode": self.mode}

    def _start_monitor(self):
        interval = self.settings.db_health_check_interval
        if interval <= 0:
            return

        self._scheduler.every(interval).seconds.do(self.check_connection)
        self._stop_event.clear()
        self._monitor_thread = threading.Thread(target=self._run_monitor, daemon=True)
        self._monitor_thread.start()
        logger.info(f"Database health check scheduled every {interval} seconds")

    def _run_monitor(self):
        while not self._stop_event.is_set():
            self._scheduler.run_pending()
            self._stop_event.wait(1)

    def stop(self):
        """Stop the health check and release connections"""
        self._stop_event.set()
        self._scheduler.clear()
        if self._monitor_thread and self._monitor_thread.is_alive():
            self._monitor_thread.join(timeout=5)
        self._monitor_thread = None

        if self.storage is not None:
            self.storage.close()
        self.connected = False
        logger.info("Connection manager stopped")
