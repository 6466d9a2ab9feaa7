"""
Account lifecycle: registration, login, session restore and profiles
"""

from typing import List, Optional

from ..database.storage import Storage, UserRecord, utcnow
from ..exceptions import AuthError, NotFoundError, ValidationError
from ..utils.auth import get_password_hash, verify_password
from ..utils.logger import get_logger
from .wallets import WalletService

logger = get_logger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AccountService:
    """
    User accounts

    Sessions are restored by email lookup; passwords are stored as
    passlib hashes and never returned.
    """

    def __init__(self, storage: Storage, wallets: WalletService,
                 wallet_currency: str = "USD", starting_balance: float = 1000.0):
        self.storage = storage
        self.wallets = wallets
        self.wallet_currency = wallet_currency
        self.starting_balance = starting_balance

    def register(self, name: str, email: str, password: str) -> UserRecord:
        """
        Create an account with its starting wallet

        Raises:
            ValidationError: a required field is blank
            ConflictError: the email is already registered
        """
        name = (name or "").strip()
        email = normalize_email(email)
        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required",
                                  error="Missing required fields")

        user = self.storage.create_user(name, email, get_password_hash(password))
        self.wallets.credit(user.id, self.wallet_currency, self.starting_balance)

        logger.info(f"User registered: {user.id} ({user.email})")
        return user

    def login(self, email: str, password: str) -> UserRecord:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required",
                                  error="Missing required fields")

        user = self.storage.find_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for email: {email}")
            raise AuthError("Invalid email or password")

        return self.touch(user.id)

    def restore_session(self, email: Optional[str]) -> UserRecord:
        """Resolve the client-held email back to its user"""
        email = normalize_email(email)
        if not email:
            raise AuthError("No authentication information provided")

        user = self.storage.find_user_by_email(email)
        if user is None:
            logger.info(f"Authentication failed for email: {email}")
            raise AuthError("User not found")

        return self.touch(user.id)

    def get_user(self, user_id: str) -> UserRecord:
        user = self.storage.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} does not exist", error="User not found")
        return user

    def update_profile(self, user_id: str, name: str, email: str) -> UserRecord:
        name = (name or "").strip()
        email = normalize_email(email)
        if not name or not email:
            raise ValidationError("Name and email are required", error="Missing required fields")

        user = self.storage.update_user(user_id, name=name, email=email, last_active=utcnow())
        if user is None:
            raise NotFoundError(f"User with ID {user_id} does not exist", error="User not found")

        logger.info(f"Profile updated for user {user_id}")
        return user

    def touch(self, user_id: str) -> UserRecord:
        """Refresh last_active"""
        user = self.storage.update_user(user_id, last_active=utcnow())
        if user is None:
            raise NotFoundError(f"User with ID {user_id} does not exist", error="User not found")
        return user

    def list_users(self) -> List[UserRecord]:
        return self.storage.list_users()
