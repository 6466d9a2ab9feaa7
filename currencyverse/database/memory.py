"""
In-memory storage used when no database is configured or reachable

Data lives in process memory and is lost on restart. A single lock makes
every operation atomic, which gives the same guarantees as the SQL backend
(atomic increments, one wallet per user and currency).
"""

import itertools
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .storage import (
    Storage, CurrencyRecord, ExchangeRateRecord, WalletRecord,
    TransactionRecord, TransactionStatus, UserRecord, new_id, utcnow
)
from ..exceptions import ConflictError, InsufficientFunds
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MemoryStorage(Storage):
    """Storage kept in dictionaries guarded by one re-entrant lock"""

    mode = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self._currencies: Dict[str, CurrencyRecord] = {}
        self._rates: Dict[Tuple[str, str], ExchangeRateRecord] = {}
        self._wallets: Dict[Tuple[str, str], WalletRecord] = {}
        self._transactions: Dict[str, TransactionRecord] = {}
        self._transaction_seq: Dict[str, int] = {}
        self._users: Dict[str, UserRecord] = {}
        self._sequence = itertools.count()
        logger.info("In-memory storage ready; data will not persist between restarts")

    # Currencies

    def list_currencies(self) -> List[CurrencyRecord]:
        with self._lock:
            return [self._currencies[code].model_copy() for code in sorted(self._currencies)]

    def get_currency(self, code: str) -> Optional[CurrencyRecord]:
        with self._lock:
            currency = self._currencies.get(code.upper())
            return currency.model_copy() if currency else None

    def add_currency(self, currency: CurrencyRecord) -> CurrencyRecord:
        code = currency.code.upper()
        with self._lock:
            if code in self._currencies:
                raise ConflictError(f"Currency {code} already exists",
                                    error="Currency already exists")
            stored = currency.model_copy(update={"code": code})
            self._currencies[code] = stored
            return stored.model_copy()

    # Exchange rates

    def list_rates(self) -> List[ExchangeRateRecord]:
        with self._lock:
            return [self._rates[key].model_copy() for key in sorted(self._rates)]

    def find_rate(self, from_currency: str, to_currency: str) -> Optional[ExchangeRateRecord]:
        with self._lock:
            rate = self._rates.get((from_currency.upper(), to_currency.upper()))
            return rate.model_copy() if rate else None

    def upsert_rate(self, from_currency: str, to_currency: str, rate: float) -> ExchangeRateRecord:
        key = (from_currency.upper(), to_currency.upper())
        with self._lock:
            record = ExchangeRateRecord(
                from_currency=key[0],
                to_currency=key[1],
                rate=rate,
                last_updated=utcnow(),
            )
            self._rates[key] = record
            return record.model_copy()

    # Wallets

    def get_wallet(self, user_id: str, currency_code: str) -> Optional[WalletRecord]:
        with self._lock:
            wallet = self._wallets.get((user_id, currency_code.upper()))
            return wallet.model_copy() if wallet else None

    def list_wallets(self, user_id: Optional[str] = None) -> List[WalletRecord]:
        with self._lock:
            wallets = [
                wallet for wallet in self._wallets.values()
                if user_id is None or wallet.user_id == user_id
            ]
            wallets.sort(key=lambda w: (w.currency_code, w.user_id))
            return [wallet.model_copy() for wallet in wallets]

    def create_wallet(self, user_id: str, currency_code: str, balance: float) -> WalletRecord:
        key = (user_id, currency_code.upper())
        with self._lock:
            if key in self._wallets:
                raise ConflictError(
                    f"Wallet for {key[1]} already exists for this user",
                    error="Wallet already exists"
                )
            return self._insert_wallet(key, balance)

    def credit_wallet(self, user_id: str, currency_code: str, amount: float) -> WalletRecord:
        key = (user_id, currency_code.upper())
        with self._lock:
            wallet = self._wallets.get(key)
            if wallet is None:
                if amount < 0:
                    raise InsufficientFunds("Cannot create wallet with negative balance")
                return self._insert_wallet(key, amount)

            wallet.balance += amount
            wallet.last_updated = utcnow()
            return wallet.model_copy()

    def _insert_wallet(self, key: Tuple[str, str], balance: float) -> WalletRecord:
        wallet = WalletRecord(
            id=new_id(),
            user_id=key[0],
            currency_code=key[1],
            balance=balance,
            last_updated=utcnow(),
        )
        self._wallets[key] = wallet
        return wallet.model_copy()

    # Transactions

    def add_transaction(self, user_id: str, from_currency: str, to_currency: str,
                        from_amount: float, to_amount: float, rate: float,
                        status: TransactionStatus) -> TransactionRecord:
        with self._lock:
            transaction = TransactionRecord(
                id=new_id(),
                user_id=user_id,
                from_currency=from_currency.upper(),
                to_currency=to_currency.upper(),
                from_amount=from_amount,
                to_amount=to_amount,
                rate=rate,
                status=status,
                date=utcnow(),
            )
            self._transactions[transaction.id] = transaction
            self._transaction_seq[transaction.id] = next(self._sequence)
            return transaction.model_copy()

    def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return transaction.model_copy() if transaction else None

    def list_transactions(self, user_id: Optional[str] = None) -> List[TransactionRecord]:
        with self._lock:
            transactions = [
                t for t in self._transactions.values()
                if user_id is None or t.user_id == user_id
            ]
            # Insertion order breaks ties between equal timestamps
            transactions.sort(key=lambda t: (t.date, self._transaction_seq[t.id]), reverse=True)
            return [t.model_copy() for t in transactions]

    def update_transaction_status(self, transaction_id: str,
                                  status: TransactionStatus) -> Optional[TransactionRecord]:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            if transaction is None:
                return None
            transaction.status = TransactionStatus(status)
            return transaction.model_copy()

    # Users

    def create_user(self, name: str, email: str, password_hash: str,
                    is_admin: bool = False) -> UserRecord:
        with self._lock:
            if self._find_by_email(email):
                raise ConflictError("User with this email already exists",
                                    error="Email already registered")
            now = utcnow()
            user = UserRecord(
                id=new_id(),
                name=name,
                email=email.lower(),
                password_hash=password_hash,
                is_admin=is_admin,
                join_date=now,
                last_active=now,
            )
            self._users[user.id] = user
            return user.model_copy()

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            user = self._find_by_email(email)
            return user.model_copy() if user else None

    def _find_by_email(self, email: str) -> Optional[UserRecord]:
        email = email.lower()
        for user in self._users.values():
            if user.email == email:
                return user
        return None

    def list_users(self) -> List[UserRecord]:
        with self._lock:
            return [u.model_copy() for u in sorted(self._users.values(), key=lambda u: u.name)]

    def update_user(self, user_id: str, name: Optional[str] = None,
                    email: Optional[str] = None,
                    last_active: Optional[datetime] = None) -> Optional[UserRecord]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            if email is not None:
                owner = self._find_by_email(email)
                if owner and owner.id != user_id:
                    raise ConflictError("Email is already taken by another user",
                                        error="Email already registered")
                user.email = email.lower()
            if name is not None:
                user.name = name
            if last_active is not None:
                user.last_active = last_active
            return user.model_copy()
