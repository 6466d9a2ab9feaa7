"""
SQLAlchemy database models for currencies, rates, wallets and the ledger
"""

from sqlalchemy import Column, String, Float, DateTime, Boolean, BigInteger, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base

from .storage import new_id, next_sequence, utcnow

Base = declarative_base()


class Currency(Base):
    """Reference currency, seeded at startup and never mutated by users"""
    __tablename__ = 'currencies'

    code = Column(String(10), primary_key=True)  # USD, EUR, JPY, etc.
    name = Column(String(100), nullable=False)
    symbol = Column(String(10), nullable=False)
    flag = Column(String(16), nullable=False)

    def __repr__(self):
        return f"<Currency({self.code} - {self.name})>"


class ExchangeRate(Base):
    """
    Directional exchange rate

    (from_currency, to_currency) is unique; the reverse pair is a separate
    row and nothing ties the two values together.
    """
    __tablename__ = 'exchange_rates'

    id = Column(String(32), primary_key=True, default=new_id)
    from_currency = Column(String(10), nullable=False)
    to_currency = Column(String(10), nullable=False)
    rate = Column(Float, nullable=False)
    last_updated = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('from_currency', 'to_currency', name='uix_rate_pair'),
    )

    def __repr__(self):
        return f"<ExchangeRate({self.from_currency}->{self.to_currency} = {self.rate})>"


class Wallet(Base):
    """
    Per-user, per-currency balance

    Balance only changes through an in-database increment; the unique
    constraint closes the create-on-first-credit race.
    """
    __tablename__ = 'wallets'

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    currency_code = Column(String(10), nullable=False)
    balance = Column(Float, nullable=False, default=0.0)
    last_updated = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'currency_code', name='uix_wallet_user_currency'),
    )

    def __repr__(self):
        return f"<Wallet({self.user_id} {self.currency_code} = {self.balance})>"


class Transaction(Base):
    """Ledger entry for one conversion; only status changes after insert"""
    __tablename__ = 'transactions'

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False)
    from_currency = Column(String(10), nullable=False)
    to_currency = Column(String(10), nullable=False)
    from_amount = Column(Float, nullable=False)
    to_amount = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default='pending')  # pending, completed, failed
    date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    seq = Column(BigInteger, nullable=False, default=next_sequence)  # orders rows sharing a timestamp

    __table_args__ = (
        Index('idx_transaction_user_date', 'user_id', 'date'),
    )

    def __repr__(self):
        return f"<Transaction({self.from_amount} {self.from_currency}->{self.to_currency}, status={self.status})>"


class User(Base):
    """Registered account"""
    __tablename__ = 'users'

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lowercase
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    join_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_active = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User({self.email}, admin={self.is_admin})>"
