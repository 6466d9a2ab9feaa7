"""
Storage interface shared by the SQL and in-memory backends

Records returned by a backend are detached pydantic models, so services
never hold a database session.
"""

import threading
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


_sequence_lock = threading.Lock()
_last_sequence = 0


def next_sequence() -> int:
    """Strictly increasing integer, close to wall-clock nanoseconds"""
    global _last_sequence
    with _sequence_lock:
        _last_sequence = max(_last_sequence + 1, time.time_ns())
        return _last_sequence


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class CurrencyRecord(BaseModel):
    """Reference currency"""

    code: str = Field(..., description="Uppercase currency code (e.g., 'USD')")
    name: str
    symbol: str
    flag: str

    class Config:
        from_attributes = True


class ExchangeRateRecord(BaseModel):
    """Directional exchange rate for one ordered currency pair"""

    from_currency: str
    to_currency: str
    rate: float
    last_updated: UtcDatetime

    class Config:
        from_attributes = True


class WalletRecord(BaseModel):
    """Balance held by one user in one currency"""

    id: str
    user_id: str
    currency_code: str
    balance: float
    last_updated: UtcDatetime

    class Config:
        from_attributes = True


class TransactionRecord(BaseModel):
    """One conversion in the ledger"""

    id: str
    user_id: str
    from_currency: str
    to_currency: str
    from_amount: float
    to_amount: float
    rate: float
    status: TransactionStatus
    date: UtcDatetime

    class Config:
        from_attributes = True


class UserRecord(BaseModel):
    """Registered account; password_hash never leaves the service layer"""

    id: str
    name: str
    email: str
    password_hash: str
    is_admin: bool = False
    join_date: UtcDatetime
    last_active: UtcDatetime

    class Config:
        from_attributes = True


class Storage(ABC):
    """
    Persistence contract for the application

    Implementations:
    - SqlStorage: SQLAlchemy backed (SQLite, PostgreSQL, ...)
    - MemoryStorage: process memory, nothing survives a restart
    """

    mode = "unknown"

    # Currencies

    @abstractmethod
    def list_currencies(self) -> List[CurrencyRecord]:
        """All currencies ordered by code"""

    @abstractmethod
    def get_currency(self, code: str) -> Optional[CurrencyRecord]:
        """Currency by code (case-insensitive)"""

    @abstractmethod
    def add_currency(self, currency: CurrencyRecord) -> CurrencyRecord:
        """Insert a currency; ConflictError if the code exists"""

    # Exchange rates

    @abstractmethod
    def list_rates(self) -> List[ExchangeRateRecord]:
        """All rates ordered by (from_currency, to_currency)"""

    @abstractmethod
    def find_rate(self, from_currency: str, to_currency: str) -> Optional[ExchangeRateRecord]:
        """Rate for the exact ordered pair, or None"""

    @abstractmethod
    def upsert_rate(self, from_currency: str, to_currency: str, rate: float) -> ExchangeRateRecord:
        """Insert or replace the rate for an ordered pair"""

    # Wallets

    @abstractmethod
    def get_wallet(self, user_id: str, currency_code: str) -> Optional[WalletRecord]:
        """Wallet for (user, currency), or None"""

    @abstractmethod
    def list_wallets(self, user_id: Optional[str] = None) -> List[WalletRecord]:
        """Wallets ordered by currency code, optionally for one user"""

    @abstractmethod
    def create_wallet(self, user_id: str, currency_code: str, balance: float) -> WalletRecord:
        """Create a wallet; ConflictError if (user, currency) exists"""

    @abstractmethod
    def credit_wallet(self, user_id: str, currency_code: str, amount: float) -> WalletRecord:
        """
        Atomically add ``amount`` to a wallet balance

        Creates the wallet when absent and amount >= 0; raises
        InsufficientFunds when absent and amount < 0.
        """

    # Transactions

    @abstractmethod
    def add_transaction(self, user_id: str, from_currency: str, to_currency: str,
                        from_amount: float, to_amount: float, rate: float,
                        status: TransactionStatus) -> TransactionRecord:
        """Append a transaction with a generated id and date"""

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        """Transaction by id, or None"""

    @abstractmethod
    def list_transactions(self, user_id: Optional[str] = None) -> List[TransactionRecord]:
        """Transactions newest first, optionally for one user"""

    @abstractmethod
    def update_transaction_status(self, transaction_id: str,
                                  status: TransactionStatus) -> Optional[TransactionRecord]:
        """Set the status; None if the transaction does not exist"""

    # Users

    @abstractmethod
    def create_user(self, name: str, email: str, password_hash: str,
                    is_admin: bool = False) -> UserRecord:
        """Insert a user; ConflictError if the email exists"""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        """User by id, or None"""

    @abstractmethod
    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        """User by email (case-insensitive), or None"""

    @abstractmethod
    def list_users(self) -> List[UserRecord]:
        """All users ordered by name"""

    @abstractmethod
    def update_user(self, user_id: str, name: Optional[str] = None,
                    email: Optional[str] = None,
                    last_active: Optional[datetime] = None) -> Optional[UserRecord]:
        """Update the given fields; ConflictError if the email belongs to someone else"""

    def ping(self) -> bool:
        """True when the backend can serve requests"""
        return True

    def close(self):
        """Release backend resources"""
