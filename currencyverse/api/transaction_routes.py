"""
Transaction routes: conversions and the ledger
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from .dependencies import get_conversion_service, get_ledger
from .schemas import ApiResponse, TransactionCreate, TransactionOut, TransactionStatusUpdate
from ..exceptions import CurrencyVerseError, InternalError, RateNotFound, ValidationError
from ..services.conversion import ConversionService
from ..services.ledger import TransactionLedger
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _envelope(transactions, message: str) -> ApiResponse:
    return ApiResponse(
        success=True,
        data=[TransactionOut.model_validate(t) for t in transactions],
        message=message,
    )


@router.get("", response_model=ApiResponse[List[TransactionOut]])
async def list_transactions(
    user_id: Optional[str] = Query(None, alias="userId", description="Only this user's transactions"),
    ledger: TransactionLedger = Depends(get_ledger),
):
    """Get transactions newest first, optionally filtered by user"""
    try:
        transactions = ledger.list_by_user(user_id) if user_id else ledger.list_all()
        return _envelope(transactions, "Transactions retrieved successfully")
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching transactions: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve transactions", error="Database error") from e


@router.get("/user/{user_id}", response_model=ApiResponse[List[TransactionOut]])
async def list_user_transactions(user_id: str, ledger: TransactionLedger = Depends(get_ledger)):
    """Get one user's transactions newest first"""
    try:
        return _envelope(ledger.list_by_user(user_id), "User transactions retrieved successfully")
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching transactions for user {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve user transactions", error="Database error") from e


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionOut])
async def get_transaction(transaction_id: str, ledger: TransactionLedger = Depends(get_ledger)):
    """Get one transaction by id"""
    try:
        return ApiResponse(
            success=True,
            data=TransactionOut.model_validate(ledger.get(transaction_id)),
            message="Transaction retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching transaction {transaction_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve transaction", error="Database error") from e


@router.post("", response_model=ApiResponse[TransactionOut], status_code=status.HTTP_201_CREATED)
async def create_transaction(
    request: TransactionCreate,
    conversion: ConversionService = Depends(get_conversion_service),
):
    """
    Convert an amount between currencies

    The rate and destination amount are computed server side; the
    destination wallet is credited with toAmount.
    """
    try:
        transaction = conversion.convert(
            request.user_id,
            request.from_currency,
            request.to_currency,
            request.from_amount,
        )
        return ApiResponse(
            success=True,
            data=TransactionOut.model_validate(transaction),
            message="Transaction created successfully",
        )
    except RateNotFound as e:
        # Unknown pair in a request body is a bad request, not a missing resource
        raise ValidationError(e.message, error=e.error) from e
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error creating transaction: {str(e)}", exc_info=True)
        raise InternalError("Failed to create transaction", error="Database error") from e


@router.put("/{transaction_id}", response_model=ApiResponse[TransactionOut])
async def update_transaction_status(
    transaction_id: str,
    request: TransactionStatusUpdate,
    ledger: TransactionLedger = Depends(get_ledger),
):
    """Update the status of a transaction"""
    try:
        transaction = ledger.update_status(transaction_id, request.status)
        return ApiResponse(
            success=True,
            data=TransactionOut.model_validate(transaction),
            message="Transaction updated successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error updating transaction {transaction_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to update transaction", error="Database error") from e
