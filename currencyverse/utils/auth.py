"""
Authentication and authorization utilities
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext

from ..database.storage import UserRecord
from ..exceptions import AuthError, ForbiddenError
from .logger import get_logger

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# JWT settings
bearer_security = HTTPBearer(auto_error=False)
ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def create_access_token(data: dict, secret_key: str,
                        expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=8))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)


def decode_token(token: str, secret_key: str) -> dict:
    """Decode JWT token"""
    try:
        return jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthError("Invalid authentication credentials")


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_security)
) -> UserRecord:
    """Get the user named by the bearer token"""
    if credentials is None:
        raise AuthError("Bearer token required")

    settings = request.app.state.settings
    payload = decode_token(credentials.credentials, settings.secret_key)

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthError("Invalid authentication credentials")

    user = request.app.state.storage.get_user(user_id)
    if user is None:
        raise AuthError("User not found")

    return user


async def get_current_admin(
    current_user: UserRecord = Depends(get_current_user)
) -> UserRecord:
    """Verify current user is an admin"""
    if not current_user.is_admin:
        logger.warning(f"Non-admin user {current_user.id} requested an admin resource")
        raise ForbiddenError("Admin privileges required")
    return current_user


class RateLimiter:
    """
    Simple in-memory sliding-window rate limiter
    For multi-process deployments, use Redis or similar
    """

    def __init__(self, max_requests: int = 100, window_seconds: int = 900):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: Dict[str, List[datetime]] = {}
        self._cleanup_interval = 3600  # Clean up old entries every hour
        self._last_cleanup = datetime.now(timezone.utc)

    def check_rate_limit(self, identifier: str) -> bool:
        """
        Check if identifier exceeds rate limit

        Args:
            identifier: Client identifier (IP, API key, etc.)

        Returns:
            True if within limit, False if exceeded
        """
        now = datetime.now(timezone.utc)
        window_start = now - timedelta(seconds=self.window_seconds)

        if (now - self._last_cleanup).total_seconds() > self._cleanup_interval:
            self._cleanup_old_entries(window_start)
            self._last_cleanup = now

        recent = [ts for ts in self._requests.get(identifier, []) if ts > window_start]

        if len(recent) >= self.max_requests:
            self._requests[identifier] = recent
            return False

        recent.append(now)
        self._requests[identifier] = recent
        return True

    def _cleanup_old_entries(self, cutoff: datetime):
        """Remove entries older than cutoff"""
        for identifier in list(self._requests.keys()):
            self._requests[identifier] = [
                ts for ts in self._requests[identifier]
                if ts > cutoff
            ]

            if not self._requests[identifier]:
                del self._requests[identifier]
