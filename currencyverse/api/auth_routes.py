"""
Account routes: registration, login, email session restore and profiles
"""

from datetime import timedelta
from fastapi import APIRouter, Depends, Query, status
from typing import Any, Dict, Optional

from .dependencies import get_account_service, get_settings, get_storage
from .schemas import (
    ApiResponse, AuthenticatedUserOut, LoginRequest, ProfileUpdate,
    RegisterRequest, UserOut,
)
from ..config.settings import Settings
from ..database.storage import Storage, UserRecord
from ..exceptions import CurrencyVerseError, InternalError
from ..services.accounts import AccountService
from ..utils.auth import create_access_token
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(user: UserRecord, settings: Settings) -> str:
    return create_access_token(
        {"sub": user.id, "admin": user.is_admin},
        settings.secret_key,
        timedelta(hours=settings.access_token_expire_hours),
    )


@router.post("/register", response_model=ApiResponse[AuthenticatedUserOut],
             status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Create an account with a starting wallet and return it with a token"""
    try:
        user = accounts.register(request.name, request.email, request.password)
        return ApiResponse(
            success=True,
            data=AuthenticatedUserOut.from_record(
                user, storage.list_wallets(user.id), token=_issue_token(user, settings)
            ),
            message="User registered successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error registering user: {str(e)}", exc_info=True)
        raise InternalError("Failed to register user", error="Registration failed") from e


@router.post("/login", response_model=ApiResponse[AuthenticatedUserOut])
async def login(
    request: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Check credentials and return the user with a token"""
    try:
        user = accounts.login(request.email, request.password)
        logger.info(f"User logged in: {user.id}")
        return ApiResponse(
            success=True,
            data=AuthenticatedUserOut.from_record(
                user, storage.list_wallets(user.id), token=_issue_token(user, settings)
            ),
            message="Login successful",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error during login: {str(e)}", exc_info=True)
        raise InternalError("Failed to log in", error="Login failed") from e


@router.get("/me", response_model=ApiResponse[UserOut])
async def me(
    email: Optional[str] = Query(None, description="Email held by the client session"),
    accounts: AccountService = Depends(get_account_service),
    storage: Storage = Depends(get_storage),
):
    """Restore a session from the email the client kept after login"""
    try:
        user = accounts.restore_session(email)
        return ApiResponse(
            success=True,
            data=UserOut.from_record(user, storage.list_wallets(user.id)),
            message="Session restored",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error restoring session: {str(e)}", exc_info=True)
        raise InternalError("Failed to restore session", error="Authentication failed") from e


@router.get("/profile/{user_id}", response_model=ApiResponse[UserOut])
async def get_profile(
    user_id: str,
    accounts: AccountService = Depends(get_account_service),
    storage: Storage = Depends(get_storage),
):
    try:
        user = accounts.get_user(user_id)
        return ApiResponse(
            success=True,
            data=UserOut.from_record(user, storage.list_wallets(user.id)),
            message="Profile retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching profile {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve profile", error="Database error") from e


@router.put("/profile/{user_id}", response_model=ApiResponse[UserOut])
async def update_profile(
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
            message="Profile updated successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error updating profile {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to update profile", error="Database error") from e


@router.post("/logout/{user_id}", response_model=ApiResponse[Dict[str, Any]])
async def logout_user(user_id: str, accounts: AccountService = Depends(get_account_service)):
    """Record the user's last activity; the client drops its session"""
    try:
        accounts.touch(user_id)
        logger.info(f"User logged out: {user_id}")
        return ApiResponse(success=True, message="Logged out successfully")
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error logging out user {user_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to log out", error="Database error") from e


@router.get("/logout", response_model=ApiResponse[Dict[str, Any]])
async def logout():
    """Stateless logout"""
    return ApiResponse(success=True, message="Logged out successfully")
