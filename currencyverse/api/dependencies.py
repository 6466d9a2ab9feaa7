"""
FastAPI dependencies resolving the storage backend and services

The storage backend is chosen once at startup and kept on ``app.state``.
"""

from fastapi import Depends, Request

from ..config.settings import Settings
from ..database.storage import Storage
from ..services.accounts import AccountService
from ..services.conversion import ConversionService
from ..services.ledger import TransactionLedger
from ..services.rates import RateLookup
from ..services.wallets import WalletService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_rate_lookup(storage: Storage = Depends(get_storage)) -> RateLookup:
    return RateLookup(storage)


def get_wallet_service(storage: Storage = Depends(get_storage)) -> WalletService:
    return WalletService(storage)


def get_ledger(storage: Storage = Depends(get_storage)) -> TransactionLedger:
    return TransactionLedger(storage)


def get_conversion_service(
    settings: Settings = Depends(get_settings),
    rates: RateLookup = Depends(get_rate_lookup),
    wallets: WalletService = Depends(get_wallet_service),
    ledger: TransactionLedger = Depends(get_ledger),
) -> ConversionService:
    return ConversionService(rates, wallets, ledger, debit_source=settings.debit_source_wallet)


def get_account_service(
    settings: Settings = Depends(get_settings),
    storage: Storage = Depends(get_storage),
    wallets: WalletService = Depends(get_wallet_service),
) -> AccountService:
    return AccountService(
        storage,
        wallets,
        wallet_currency=settings.default_wallet_currency,
        starting_balance=settings.starting_balance,
    )
