"""
Data access layer backed by SQLAlchemy
Implements the Storage contract with atomic wallet increments
"""

from sqlalchemy import update, func
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
from datetime import datetime

from .engine import DatabaseManager
from .models import Currency, ExchangeRate, Wallet, Transaction, User
from .storage import (
    Storage, CurrencyRecord, ExchangeRateRecord, WalletRecord,
    TransactionRecord, TransactionStatus, UserRecord, new_id, utcnow
)
from ..exceptions import ConflictError, InsufficientFunds
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SqlStorage(Storage):
    """
    Storage backed by a relational database

    Key features:
    - One short session per operation, committed on success
    - Wallet credits are a single UPDATE ... SET balance = balance + :amount
    - Unique constraints back every "one per key" rule
    """

    mode = "database"

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    # ==================== CURRENCIES ====================

    def list_currencies(self) -> List[CurrencyRecord]:
        with self.db.get_session() as session:
            rows = session.query(Currency).order_by(Currency.code).all()
            return [CurrencyRecord.model_validate(row) for row in rows]

    def get_currency(self, code: str) -> Optional[CurrencyRecord]:
        with self.db.get_session() as session:
            row = session.query(Currency).filter(Currency.code == code.upper()).first()
            return CurrencyRecord.model_validate(row) if row else None

    def add_currency(self, currency: CurrencyRecord) -> CurrencyRecord:
        try:
            with self.db.get_session() as session:
                row = Currency(
                    code=currency.code.upper(),
                    name=currency.name,
                    symbol=currency.symbol,
                    flag=currency.flag,
                )
                session.add(row)
                session.flush()
                return CurrencyRecord.model_validate(row)
        except IntegrityError as e:
            raise ConflictError(f"Currency {currency.code.upper()} already exists",
                                error="Currency already exists") from e

    # ==================== EXCHANGE RATES ====================

    def list_rates(self) -> List[ExchangeRateRecord]:
        with self.db.get_session() as session:
            rows = session.query(ExchangeRate).order_by(
                ExchangeRate.from_currency, ExchangeRate.to_currency
            ).all()
            return [ExchangeRateRecord.model_validate(row) for row in rows]

    def find_rate(self, from_currency: str, to_currency: str) -> Optional[ExchangeRateRecord]:
        with self.db.get_session() as session:
            row = session.query(ExchangeRate).filter(
                ExchangeRate.from_currency == from_currency.upper(),
                ExchangeRate.to_currency == to_currency.upper()
            ).first()
            return ExchangeRateRecord.model_validate(row) if row else None

    def upsert_rate(self, from_currency: str, to_currency: str, rate: float) -> ExchangeRateRecord:
        """
        Insert or replace the rate for an ordered pair

        Args:
            from_currency: Source currency code
            to_currency: Destination currency code
            rate: Units of to_currency per unit of from_currency

        Returns:
            The stored rate
        """
        with self.db.get_session() as session:
            row = session.query(ExchangeRate).filter(
                ExchangeRate.from_currency == from_currency.upper(),
                ExchangeRate.to_currency == to_currency.upper()
            ).first()

            if row:
                row.rate = rate
                row.last_updated = utcnow()
            else:
                row = ExchangeRate(
                    id=new_id(),
                    from_currency=from_currency.upper(),
                    to_currency=to_currency.upper(),
                    rate=rate,
                    last_updated=utcnow(),
                )
                session.add(row)

            session.flush()
            return ExchangeRateRecord.model_validate(row)

    # ==================== WALLETS ====================

    def get_wallet(self, user_id: str, currency_code: str) -> Optional[WalletRecord]:
        with self.db.get_session() as session:
            row = self._wallet_query(session, user_id, currency_code).first()
            return WalletRecord.model_validate(row) if row else None

    def list_wallets(self, user_id: Optional[str] = None) -> List[WalletRecord]:
        with self.db.get_session() as session:
            query = session.query(Wallet)
            if user_id is not None:
                query = query.filter(Wallet.user_id == user_id)
            rows = query.order_by(Wallet.currency_code, Wallet.user_id).all()
            return [WalletRecord.model_validate(row) for row in rows]

    def create_wallet(self, user_id: str, currency_code: str, balance: float) -> WalletRecord:
        try:
            with self.db.get_session() as session:
                row = Wallet(
                    id=new_id(),
                    user_id=user_id,
                    currency_code=currency_code.upper(),
                    balance=balance,
                    last_updated=utcnow(),
                )
                session.add(row)
                session.flush()
                return WalletRecord.model_validate(row)
        except IntegrityError as e:
            raise ConflictError(
                f"Wallet for {currency_code.upper()} already exists for this user",
                error="Wallet already exists"
            ) from e

    def credit_wallet(self, user_id: str, currency_code: str, amount: float) -> WalletRecord:
        """
        Atomically add amount to a wallet, creating it on first credit

        A concurrent request can create the same wallet between our UPDATE
        and INSERT; the unique constraint rejects the second insert and the
        credit is replayed once as an increment.
        """
        try:
            return self._credit_once(user_id, currency_code, amount)
        except IntegrityError:
            logger.warning(
                f"Concurrent creation of {currency_code.upper()} wallet for user {user_id}, "
                f"retrying as increment"
            )
            return self._credit_once(user_id, currency_code, amount)

    def _credit_once(self, user_id: str, currency_code: str, amount: float) -> WalletRecord:
        code = currency_code.upper()
        now = utcnow()

        with self.db.get_session() as session:
            result = session.execute(
                update(Wallet)
                .where(Wallet.user_id == user_id, Wallet.currency_code == code)
                .values(balance=Wallet.balance + amount, last_updated=now)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount:
                row = self._wallet_query(session, user_id, code).one()
                return WalletRecord.model_validate(row)

            if amount < 0:
                raise InsufficientFunds("Cannot create wallet with negative balance")

            row = Wallet(
                id=new_id(),
                user_id=user_id,
                currency_code=code,
                balance=amount,
                last_updated=now,
            )
            session.add(row)
            session.flush()
            return WalletRecord.model_validate(row)

    @staticmethod
    def _wallet_query(session, user_id: str, currency_code: str):
        return session.query(Wallet).filter(
            Wallet.user_id == user_id,
            Wallet.currency_code == currency_code.upper()
        )

    # ==================== TRANSACTIONS ====================

    def add_transaction(self, user_id: str, from_currency: str, to_currency: str,
                        from_amount: float, to_amount: float, rate: float,
                        status: TransactionStatus) -> TransactionRecord:
        with self.db.get_session() as session:
            row = Transaction(
                id=new_id(),
                user_id=user_id,
                from_currency=from_currency.upper(),
                to_currency=to_currency.upper(),
                from_amount=from_amount,
                to_amount=to_amount,
                rate=rate,
                status=TransactionStatus(status).value,
                date=utcnow(),
            )
            session.add(row)
            session.flush()
            return TransactionRecord.model_validate(row)

    def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        with self.db.get_session() as session:
            row = session.get(Transaction, transaction_id)
            return TransactionRecord.model_validate(row) if row else None

    def list_transactions(self, user_id: Optional[str] = None) -> List[TransactionRecord]:
        with self.db.get_session() as session:
            query = session.query(Transaction)
            if user_id is not None:
                query = query.filter(Transaction.user_id == user_id)
            rows = query.order_by(Transaction.date.desc(), Transaction.seq.desc()).all()
            return [TransactionRecord.model_validate(row) for row in rows]

    def update_transaction_status(self, transaction_id: str,
                                  status: TransactionStatus) -> Optional[TransactionRecord]:
        with self.db.get_session() as session:
            row = session.get(Transaction, transaction_id)
            if row is None:
                return None
            row.status = TransactionStatus(status).value
            session.flush()
            return TransactionRecord.model_validate(row)

    # ==================== USERS ====================

    def create_user(self, name: str, email: str, password_hash: str,
                    is_admin: bool = False) -> UserRecord:
        now = utcnow()
        try:
            with self.db.get_session() as session:
                row = User(
                    id=new_id(),
                    name=name,
                    email=email.lower(),
                    password_hash=password_hash,
                    is_admin=is_admin,
                    join_date=now,
                    last_active=now,
                )
                session.add(row)
                session.flush()
                return UserRecord.model_validate(row)
        except IntegrityError as e:
            raise ConflictError("User with this email already exists",
                                error="Email already registered") from e

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.db.get_session() as session:
            row = session.get(User, user_id)
            return UserRecord.model_validate(row) if row else None

    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self.db.get_session() as session:
            row = session.query(User).filter(func.lower(User.email) == email.lower()).first()
            return UserRecord.model_validate(row) if row else None

    def list_users(self) -> List[UserRecord]:
        with self.db.get_session() as session:
            rows = session.query(User).order_by(User.name).all()
            return [UserRecord.model_validate(row) for row in rows]

    def update_user(self, user_id: str, name: Optional[str] = None,
                    email: Optional[str] = None,
                    last_active: Optional[datetime] = None) -> Optional[UserRecord]:
        try:
            with self.db.get_session() as session:
                row = session.get(User, user_id)
                if row is None:
                    return None
                if name is not None:
                    row.name = name
                if email is not None:
                    row.email = email.lower()
                if last_active is not None:
                    row.last_active = last_active
                session.flush()
                return UserRecord.model_validate(row)
        except IntegrityError as e:
            raise ConflictError("Email is already taken by another user",
                                error="Email already registered") from e

    # ==================== LIFECYCLE ====================

    def ping(self) -> bool:
        try:
            return self.db.ping()
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def close(self):
        self.db.close()
