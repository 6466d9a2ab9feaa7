"""
Exchange rate routes
Current directional rates plus a synthetic historical series
"""

from fastapi import APIRouter, Depends, Query
from typing import List

from .dependencies import get_rate_lookup
from .schemas import ApiResponse, ExchangeRateOut, HistoricalRatePoint
from ..exceptions import CurrencyVerseError, InternalError
from ..services.rates import RateLookup, generate_historical_rates
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/exchange-rates", tags=["exchange-rates"])


@router.get("", response_model=ApiResponse[List[ExchangeRateOut]])
async def list_exchange_rates(rates: RateLookup = Depends(get_rate_lookup)):
    """Get all stored rates ordered by currency pair"""
    try:
        records = rates.list_rates()
        return ApiResponse(
            success=True,
            data=[ExchangeRateOut.model_validate(r) for r in records],
            message="Exchange rates retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching exchange rates: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve exchange rates", error="Database error") from e


@router.get("/{from_currency}/{to_currency}", response_model=ApiResponse[ExchangeRateOut])
async def get_exchange_rate(
    from_currency: str,
    to_currency: str,
    rates: RateLookup = Depends(get_rate_lookup),
):
    """
    Get the rate for one ordered pair

    Equal codes return rate 1 without a stored record.
    """
    try:
        record = rates.get_exchange_rate(from_currency, to_currency)
        return ApiResponse(
            success=True,
            data=ExchangeRateOut.model_validate(record),
            message="Exchange rate retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error fetching exchange rate {from_currency}/{to_currency}: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve exchange rate", error="Database error") from e


@router.get("/{from_currency}/{to_currency}/historical", response_model=ApiResponse[List[HistoricalRatePoint]])
async def get_historical_rates(
    from_currency: str,
    to_currency: str,
    days: int = Query(30, ge=1, le=365, description="Number of days to go back"),
    rates: RateLookup = Depends(get_rate_lookup),
):
    """
    Get a synthetic daily series around the current rate

    The series is generated on each call and is not stored.
    """
    try:
        current = rates.get_rate(from_currency, to_currency)
        series = generate_historical_rates(current, days)
        return ApiResponse(
            success=True,
            data=[HistoricalRatePoint(**point) for point in series],
            message="Historical exchange rates retrieved successfully",
        )
    except CurrencyVerseError:
        raise
    except Exception as e:
        logger.error(f"Error generating historical rates: {str(e)}", exc_info=True)
        raise InternalError("Failed to retrieve historical rates", error="Database error") from e
