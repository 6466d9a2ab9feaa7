"""
User routes
Listing every user requires an admin bearer token.
"""

from fastapi import APIRouter, Depends
from typing import List

from .dependencies import get_account_service, get_storage
from .schemas import ApiResponse, ProfileUpdate, UserOut
from ..database.storage import Storage, UserRecord
from ..exceptions import CurrencyVerseError, InternalError
from ..services.accounts import AccountService
from ..utils.auth import get_current_admin
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=ApiResponse[List[UserOut]])
async def list_users(
    admin: UserRecord = Depends(get_current_admin),
    accounts: AccountService = Depends(get_account_service),
    storage: Storage = Depends(get_storage),
):
    """Get all users ordered by name (admin only)"""
    try:
        users = accounts.list_users()
        return ApiResponse(
            success=True,
            data=[UserOut.from_record(u, storage.list_wallets(u.id)) for u in users],
            message="Users retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching users: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve users", error="Database error") from e


@router.get("/{user_id}", response_model=ApiResponse[UserOut])
async def get_user(
    user_id: str,
    accounts: AccountService = Depends(get_account_service),
    storage: Storage = Depends(get_storage),
):
    try:
        user = accounts.get_user(user_id)
        return ApiResponse(
            success=True,
            data=UserOut.from_record(user, storage.list_wallets(user.id)),
            message="User retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching user {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve user", error="Database error") from e


@router.put("/{user_id}", response_model=ApiResponse[UserOut])
async def update_user(
    user_id: str,
    request: ProfileUpdate,
    accounts: AccountService = Depends(get_account_service),
    storage: Storage = Depends(get_storage),
):
    try:
        user = accounts.update_profile(user_id, request.name, request.email)
        return ApiResponse(
            success=True,
            data=UserOut.from_record(user, storage.list_wallets(user.id)),
            message="User updated successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to update user", error="Database error") from e
