"""
Wallet routes
"""

from fastapi import APIRouter, Depends, status
from typing import List

from .dependencies import get_wallet_service
from .schemas import ApiResponse, WalletCreate, WalletCredit, WalletOut
from ..exceptions import CurrencyVerseError, InternalError
from ..services.wallets import WalletService
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/wallets", tags=["wallets"])


@router.get("", response_model=ApiResponse[List[WalletOut]])
async def list_wallets(wallets: WalletService = Depends(get_wallet_service)):
    """Get all wallets"""
    try:
        return ApiResponse(
            success=True,
            data=[WalletOut.model_validate(w) for w in wallets.list_all()],
            message="Wallets retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching wallets: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve wallets", error="Database error") from e


@router.get("/user/{user_id}", response_model=ApiResponse[List[WalletOut]])
async def list_user_wallets(user_id: str, wallets: WalletService = Depends(get_wallet_service)):
    """Get one user's wallets ordered by currency"""
    try:
        return ApiResponse(
            success=True,
            data=[WalletOut.model_validate(w) for w in wallets.list_for_user(user_id)],
            message="User wallets retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching wallets for user {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve user wallets", error="Database error") from e


@router.put("/user/{user_id}/currency/{currency_code}", response_model=ApiResponse[WalletOut])
async def credit_wallet(
    user_id: str,
    currency_code: str,
    request: WalletCredit,
    wallets: WalletService = Depends(get_wallet_service),
):
    """
    Add a signed amount to a wallet

    Creates the wallet when it does not exist and the amount is not
    negative.
    """
    try:
        wallet = wallets.credit(user_id, currency_code, request.amount)
        return ApiResponse(
            success=True,
            data=WalletOut.model_validate(wallet),
            message="Wallet updated successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error updating wallet {currency_code} for user {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to update wallet", error="Database error") from e


@router.post("", response_model=ApiResponse[WalletOut], status_code=status.HTTP_201_CREATED)
async def create_wallet(request: WalletCreate, wallets: WalletService = Depends(get_wallet_service)):
    """Open a wallet explicitly; 409 if the user already holds that currency"""
    try:
        wallet = wallets.open_wallet(request.user_id, request.currency_code, request.balance)
        return ApiResponse(
            success=True,
            data=WalletOut.model_validate(wallet),
            message="Wallet created successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error creating wallet: {str(e)}", exc_info=True)
        raise InternalError("Failed to create wallet", error="Database error") from e
