"""
FastAPI routes for health and reference currencies
"""

from fastapi import APIRouter, Depends, Request
from typing import List

from .dependencies import get_storage
from .schemas import ApiResponse, CurrencyOut, HealthResponse
from ..database.storage import Storage
from ..exceptions import CurrencyVerseError, InternalError, NotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

SERVICE_NAME = "currencyverse-api"
VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(request: Request):
    """Report process and database connectivity"""
    manager = getattr(request.app.state, "connection_manager", None)
    storage: Storage = request.app.state.storage

    if manager is not None:
        database = manager.status()
    else:
        # Storage injected directly (tests, scripts)
        in_memory = storage.mode == "memory"
        connected = not in_memory and storage.ping()
        if in_memory:
            db_status = "memory"
        else:
            db_status = "connected" if connected else "disconnected"
        database = {"status": db_status, "connected": connected, "mode": storage.mode}

    return HealthResponse(
        status="OK",
        service=SERVICE_NAME,
        version=VERSION,
        database=database,
        environment=request.app.state.settings.environment,
    )


@router.get("/currencies", response_model=ApiResponse[List[CurrencyOut]], tags=["currencies"])
async def list_currencies(storage: Storage = Depends(get_storage)):
    """Get all available currencies ordered by code"""
    try:
        currencies = storage.list_currencies()
        return ApiResponse(
            success=True,
            data=[CurrencyOut.model_validate(c) for c in currencies],
            message="Currencies retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching currencies: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve currencies", error="Database error") from e


@router.get("/currencies/{code}", response_model=ApiResponse[CurrencyOut], tags=["currencies"])
async def get_currency(code: str, storage: Storage = Depends(get_storage)):
    """Get one currency by code (case-insensitive)"""
    try:
        currency = storage.get_currency(code)
        if currency is None:
            raise NotFoundError(f"Currency with code {code.upper()} does not exist",
                                error="Currency not found")
        return ApiResponse(
            success=True,
            data=CurrencyOut.model_validate(currency),
            message="Currency retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching currency {code}: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve currency", error="Database error") from e
