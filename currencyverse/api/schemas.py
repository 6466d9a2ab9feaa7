"""
Pydantic schemas for API requests and responses

Wire format is camelCase (fromCurrency, userId, ...); Python attributes
stay snake_case.
"""

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from ..database.storage import TransactionStatus

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema with camelCase aliases"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint"""

    success: bool = Field(..., description="Whether the request succeeded")
    data: Optional[T] = Field(None, description="Response payload")
    error: Optional[str] = Field(None, description="Short error label")
    message: Optional[str] = Field(None, description="Human readable message")


# ==================== RESPONSES ====================

class CurrencyOut(CamelModel):
    code: str
    name: str
    symbol: str
    flag: str


class ExchangeRateOut(CamelModel):
    from_currency: str
    to_currency: str
    rate: float
    last_updated: datetime


class HistoricalRatePoint(CamelModel):
    date: str = Field(..., description="YYYY-MM-DD")
    rate: float


class WalletOut(CamelModel):
    id: str
    user_id: str
    currency_code: str
    balance: float
    last_updated: datetime


class TransactionOut(CamelModel):
    id: str
    user_id: str
    from_currency: str
    to_currency: str
    from_amount: float
    to_amount: float
    rate: float
    status: TransactionStatus
    date: datetime


class UserOut(CamelModel):
    """User without credentials; wallets are read from the wallet store"""

    id: str
    name: str
    email: str
    is_admin: bool
    wallets: List[WalletOut] = Field(default_factory=list)
    join_date: datetime
    last_active: datetime

    @classmethod
    def from_record(cls, user, wallets, **extra):
        """Build from a stored user, dropping the password hash"""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            is_admin=user.is_admin,
            wallets=[WalletOut.model_validate(w) for w in wallets],
            join_date=user.join_date,
            last_active=user.last_active,
            **extra,
        )


class AuthenticatedUserOut(UserOut):
    """User plus a bearer token, returned by register and login"""

    token: str
    token_type: str = "bearer"


class HealthResponse(BaseModel):
    """Health check response schema"""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    database: Dict[str, Any] = Field(..., description="Database connectivity")
    environment: str = Field(..., description="Deployment environment")
    timestamp: datetime = Field(default_factory=datetime.now, description="Response timestamp")


# ==================== REQUESTS ====================

class TransactionCreate(CamelModel):
    """Conversion request"""

    user_id: str = Field(..., min_length=1)
    from_currency: str = Field(..., min_length=1, max_length=10)
    to_currency: str = Field(..., min_length=1, max_length=10)
    from_amount: float = Field(..., strict=True, description="Amount in the source currency; must be > 0")


class TransactionStatusUpdate(CamelModel):
    status: str = Field(..., description="pending, completed or failed")


class WalletCredit(CamelModel):
    amount: float = Field(..., strict=True, description="Signed amount; negative values debit")


class WalletCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    currency_code: str = Field(..., min_length=1, max_length=10)
    balance: float = Field(0.0, strict=True)


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
