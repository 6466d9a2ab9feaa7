"""
Currency conversion workflow

Rate lookup -> arithmetic -> ledger append -> destination wallet credit.
"""

import math

from ..database.storage import TransactionRecord, TransactionStatus
from ..exceptions import InsufficientFunds, InvalidAmount, NotFoundError
from ..utils.logger import get_logger
from .ledger import TransactionLedger
from .rates import RateLookup
from .wallets import WalletService

logger = get_logger(__name__)


class ConversionService:
    """
    Executes conversions for a user

    By default only the destination wallet is credited and the source
    wallet is left untouched. With ``debit_source`` the source wallet is
    debited first and restored if a later step fails.
    """

    def __init__(self, rates: RateLookup, wallets: WalletService,
                 ledger: TransactionLedger, debit_source: bool = False):
        self.rates = rates
        self.wallets = wallets
        self.ledger = ledger
        self.debit_source = debit_source

    @staticmethod
    def validate_amount(from_amount) -> float:
        if isinstance(from_amount, bool) or not isinstance(from_amount, (int, float)):
            raise InvalidAmount("Amount must be a positive number")
        if not math.isfinite(from_amount) or from_amount <= 0:
            raise InvalidAmount("Amount must be a positive number")
        return float(from_amount)

    def convert(self, user_id: str, from_currency: str, to_currency: str,
                from_amount: float) -> TransactionRecord:
        """
        Convert from_amount of from_currency into to_currency

        Args:
            user_id: User performing the conversion
            from_currency: Source currency code
            to_currency: Destination currency code
            from_amount: Positive amount in the source currency

        Returns:
            The completed TransactionRecord

        Raises:
            InvalidAmount: from_amount is not a finite number > 0
            RateNotFound: no rate stored for the pair
            InsufficientFunds: source debit enabled and balance too low
        """
        from_amount = self.validate_amount(from_amount)
        source = from_currency.upper()
        target = to_currency.upper()

        rate = self.rates.get_rate(source, target)
        to_amount = from_amount * rate

        if not self.debit_source:
            transaction = self.ledger.append(
                user_id, source, target, from_amount, to_amount, rate,
                TransactionStatus.COMPLETED
            )
            self.wallets.credit(user_id, target, to_amount)
            return transaction

        return self._convert_with_debit(user_id, source, target, from_amount, to_amount, rate)

    def _convert_with_debit(self, user_id: str, source: str, target: str,
                            from_amount: float, to_amount: float,
                            rate: float) -> TransactionRecord:
        try:
            available = self.wallets.get_balance(user_id, source).balance
        except NotFoundError:
            available = 0.0
        if available < from_amount:
            raise InsufficientFunds(
                f"Insufficient balance: available {available} {source}, requested {from_amount}"
            )

        self.wallets.credit(user_id, source, -from_amount)

        transaction = None
        try:
            transaction = self.ledger.append(
                user_id, source, target, from_amount, to_amount, rate,
                TransactionStatus.COMPLETED
            )
            self.wallets.credit(user_id, target, to_amount)
        except Exception:
            logger.error(
                f"Conversion {source}->{target} for user {user_id} failed after debit; "
                f"restoring {from_amount} {source}",
                exc_info=True
            )
            self.wallets.credit(user_id, source, from_amount)
            if transaction is not None:
                self.ledger.update_status(transaction.id, TransactionStatus.FAILED.value)
            raise

        return transaction
