"""
Database initialization and reference data seeding
"""

from typing import Dict, List, Tuple

from .storage import Storage, CurrencyRecord
from ..exceptions import ConflictError
from ..utils.auth import get_password_hash
from ..utils.logger import get_logger

logger = get_logger(__name__)

# code, name, symbol, flag
REFERENCE_CURRENCIES: List[Tuple[str, str, str, str]] = [
    ("AUD", "Australian Dollar", "A$", "🇦🇺"),
    ("CAD", "Canadian Dollar", "C$", "🇨🇦"),
    ("CHF", "Swiss Franc", "Fr", "🇨🇭"),
    ("CNY", "Chinese Yuan", "¥", "🇨🇳"),
    ("EUR", "Euro", "€", "🇪🇺"),
    ("GBP", "British Pound", "£", "🇬🇧"),
    ("INR", "Indian Rupee", "₹", "🇮🇳"),
    ("JPY", "Japanese Yen", "¥", "🇯🇵"),
    ("USD", "US Dollar", "$", "🇺🇸"),
]

# Units of each currency per 1 USD
USD_QUOTES: Dict[str, float] = {
    "AUD": 1.52,
    "CAD": 1.36,
    "CHF": 0.88,
    "CNY": 7.24,
    "EUR": 0.92,
    "GBP": 0.79,
    "INR": 83.12,
    "JPY": 149.50,
    "USD": 1.0,
}

DEMO_USERS = [
    # name, email, password, is_admin
    ("Admin User", "admin@currencyverse.com", "admin123", True),
    ("Demo User", "demo@currencyverse.com", "demo123", False),
]


def reference_rates() -> List[Tuple[str, str, float]]:
    """
    Directional rates for every ordered pair of reference currencies

    Each direction is stored as its own record, rounded independently, so
    rate(A, B) * rate(B, A) is only approximately 1.
    """
    rates = []
    for from_code, from_quote in USD_QUOTES.items():
        for to_code, to_quote in USD_QUOTES.items():
            if from_code == to_code:
                continue
            rates.append((from_code, to_code, round(to_quote / from_quote, 4)))
    return rates


def seed_reference_data(storage: Storage) -> Dict[str, int]:
    """
    Populate currencies and rates into an empty store

    Args:
        storage: Target storage backend

    Returns:
        Dict with counts: {'currencies': X, 'rates': Y}
    """
    stats = {'currencies': 0, 'rates': 0}

    if not storage.list_currencies():
        for code, name, symbol, flag in REFERENCE_CURRENCIES:
            storage.add_currency(CurrencyRecord(code=code, name=name, symbol=symbol, flag=flag))
            stats['currencies'] += 1

    if not storage.list_rates():
        for from_code, to_code, rate in reference_rates():
            storage.upsert_rate(from_code, to_code, rate)
            stats['rates'] += 1

    logger.info(f"Seeded {stats['currencies']} currencies and {stats['rates']} exchange rates")
    return stats


def seed_demo_users(storage: Storage, wallet_currency: str = "USD",
                    starting_balance: float = 1000.0) -> int:
    """Create the demo admin and demo user (memory mode only)"""
    created = 0
    for name, email, password, is_admin in DEMO_USERS:
        try:
            user = storage.create_user(name, email, get_password_hash(password), is_admin=is_admin)
        except ConflictError:
            continue
        storage.credit_wallet(user.id, wallet_currency, starting_balance)
        created += 1

    if created:
        logger.info(f"Created {created} demo users")
    return created


if __name__ == "__main__":
    # Run directly to initialize the configured database
    from .engine import DatabaseManager
    from .repository import SqlStorage
    from ..config.settings import settings

    db_manager = DatabaseManager(settings.database_url)
    db_manager.create_tables()
    seed_reference_data(SqlStorage(db_manager))
    print("✅ Database initialized successfully!")
