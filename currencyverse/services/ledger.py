"""
Transaction ledger
"""

from typing import List

from ..database.storage import Storage, TransactionRecord, TransactionStatus
from ..exceptions import InvalidStatus, NotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)

VALID_STATUSES = [status.value for status in TransactionStatus]


class TransactionLedger:
    """Append-mostly record of conversions; only status changes later"""

    def __init__(self, storage: Storage):
        self.storage = storage

    def append(self, user_id: str, from_currency: str, to_currency: str,
               from_amount: float, to_amount: float, rate: float,
               status: TransactionStatus = TransactionStatus.COMPLETED) -> TransactionRecord:
        transaction = self.storage.add_transaction(
            user_id, from_currency, to_currency, from_amount, to_amount, rate, status
        )
        logger.info(
            f"Recorded transaction {transaction.id}: {from_amount} {transaction.from_currency} -> "
            f"{to_amount} {transaction.to_currency} ({transaction.status.value})"
        )
        return transaction

    def get(self, transaction_id: str) -> TransactionRecord:
        transaction = self.storage.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction with ID {transaction_id} does not exist",
                                error="Transaction not found")
        return transaction

    def list_by_user(self, user_id: str) -> List[TransactionRecord]:
        return self.storage.list_transactions(user_id)

    def list_all(self) -> List[TransactionRecord]:
        return self.storage.list_transactions()

    def update_status(self, transaction_id: str, status: str) -> TransactionRecord:
        """
        Change the status of a recorded transaction

        Raises:
            InvalidStatus: status is not pending, completed or failed
            NotFoundError: unknown transaction id
        """
        if status not in VALID_STATUSES:
            raise InvalidStatus("Status must be pending, completed, or failed")

        transaction = self.storage.update_transaction_status(transaction_id, TransactionStatus(status))
        if transaction is None:
            raise NotFoundError(f"Transaction with ID {transaction_id} does not exist",
                                error="Transaction not found")

        logger.info(f"Transaction {transaction_id} status set to {status}")
        return transaction
