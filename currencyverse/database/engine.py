"""
Database engine and session management
"""

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import NullPool
from contextlib import contextmanager
from pathlib import Path

from .models import Base
from ..utils.logger import get_logger

logger = get_logger(__name__)


def default_database_url() -> str:
    """SQLite database in the project's data directory"""
    project_root = Path(__file__).parent.parent.parent
    data_dir = project_root / 'data'
    data_dir.mkdir(exist_ok=True)
    return f"sqlite:///{data_dir / 'currencyverse.db'}"


class DatabaseManager:
    """
    Manages database connections and sessions

    Supports multiple database backends:
    - SQLite (default, for development and small deployments)
    - PostgreSQL (recommended for production)
    - MySQL/MariaDB (alternative for production)
    """

    def __init__(self, database_url: str = None):
        """
        Initialize database manager

        Args:
            database_url: SQLAlchemy database URL
                         If None, uses SQLite in project data directory
        """
        if database_url is None:
            database_url = default_database_url()
            logger.info(f"Using SQLite database at: {database_url}")

        self.database_url = database_url
        self.engine = None
        self.SessionLocal = None

        self._initialize_engine()

    def _initialize_engine(self):
        """Create database engine and session factory"""
        try:
            if self.database_url.startswith('sqlite'):
                self.engine = create_engine(
                    self.database_url,
                    connect_args={'check_same_thread': False},  # Allow multi-threading
                    poolclass=NullPool  # SQLite doesn't need connection pooling
                )
            else:
                self.engine = create_engine(
                    self.database_url,
                    pool_pre_ping=True,  # Verify connections before using
                    pool_size=5,
                    max_overflow=10,
                    pool_timeout=10,
                )

            self.SessionLocal = scoped_session(
                sessionmaker(
                    autocommit=False,
                    autoflush=False,
                    bind=self.engine
                )
            )

            logger.info("Database engine initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database engine: {e}")
            raise

    def create_tables(self):
        """Create all tables if they don't exist"""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created/verified")
        except Exception as e:
            logger.error(f"Failed to create tables: {e}")
            raise

    def ping(self) -> bool:
        """Round-trip a trivial query; raises on connection failure"""
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    @contextmanager
    def get_session(self):
        """
        Context manager for database sessions

        Usage:
            with db_manager.get_session() as session:
                # Use session here
                pass
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Close database connections"""
        if self.SessionLocal:
            self.SessionLocal.remove()
        if self.engine:
            self.engine.dispose()
        logger.info("Database connections closed")
