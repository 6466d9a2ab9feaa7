"""
Wallet balance operations
"""

import math
from typing import List

from ..database.storage import Storage, WalletRecord
from ..exceptions import NotFoundError, ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _check_number(value, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{field} must be a number", error="Invalid amount")
    return float(value)


class WalletService:
    """
    Per-user, per-currency balances

    Credits are additive and may be negative. An existing wallet has no
    lower bound, so a large debit can leave a negative balance.
    """

    def __init__(self, storage: Storage):
        self.storage = storage

    def get_balance(self, user_id: str, currency_code: str) -> WalletRecord:
        wallet = self.storage.get_wallet(user_id, currency_code)
        if wallet is None:
            raise NotFoundError(
                f"No {currency_code.upper()} wallet for user {user_id}",
                error="Wallet not found"
            )
        return wallet

    def credit(self, user_id: str, currency_code: str, amount: float) -> WalletRecord:
        """
        Add amount to the (user, currency) wallet

        Args:
            user_id: Wallet owner
            currency_code: Currency of the wallet (case-insensitive)
            amount: Signed amount; negative values debit

        Returns:
            The wallet after the credit

        Raises:
            ValidationError: amount is not a finite number
            InsufficientFunds: wallet absent and amount is negative
        """
        amount = _check_number(amount, "Amount")
        wallet = self.storage.credit_wallet(user_id, currency_code, amount)
        logger.info(
            f"Wallet {wallet.currency_code} for user {user_id} credited {amount:+}; "
            f"balance {wallet.balance}"
        )
        return wallet

    def open_wallet(self, user_id: str, currency_code: str, balance: float = 0.0) -> WalletRecord:
        balance = _check_number(balance, "Balance")
        wallet = self.storage.create_wallet(user_id, currency_code, balance)
        logger.info(f"Opened {wallet.currency_code} wallet for user {user_id}")
        return wallet

    def list_for_user(self, user_id: str) -> List[WalletRecord]:
        return self.storage.list_wallets(user_id)

    def list_all(self) -> List[WalletRecord]:
        return self.storage.list_wallets()
