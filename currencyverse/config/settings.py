"""
Application settings and configuration
"""

from pydantic_settings import BaseSettings
from typing import List, Optional
from pathlib import Path

# Get the project root directory
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    app_name: str = "CurrencyVerse API"
    api_host: str = "0.0.0.0"
    api_port: int = 4000
    api_prefix: str = "/api"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:4173",
    ]

    # Database Settings
    database_url: Optional[str] = None  # None = SQLite file under data/
    use_memory_db: bool = False
    db_max_retries: int = 5
    db_backoff_base_seconds: float = 1.0
    db_backoff_max_seconds: float = 30.0
    db_health_check_interval: int = 30  # seconds
    db_memory_fallback: bool = True
    seed_reference_data: bool = True

    # Security Settings
    secret_key: str = "change-me-in-production"
    access_token_expire_hours: int = 8
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    # Wallet Settings
    default_wallet_currency: str = "USD"
    starting_balance: float = 1000.0
    debit_source_wallet: bool = False  # Off: only the destination wallet is credited

    class Config:
        env_file = PROJECT_ROOT / ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
