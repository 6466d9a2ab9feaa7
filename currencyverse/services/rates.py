"""
Exchange rate lookup and the synthetic historical series
"""

import random
from datetime import date, timedelta
from typing import Dict, List, Optional, Union

from ..database.storage import Storage, ExchangeRateRecord, utcnow
from ..exceptions import RateNotFound
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Historical points vary within +/- 5% of the current rate
FLUCTUATION_LOW = 0.95
FLUCTUATION_HIGH = 1.05


class RateLookup:
    """
    Resolves directional rates from storage

    Equal codes resolve to 1.0 without a store lookup. Other pairs must be
    stored exactly; no cross rate through a third currency is derived.
    """

    def __init__(self, storage: Storage):
        self.storage = storage

    def get_rate(self, from_currency: str, to_currency: str) -> float:
        return self.get_exchange_rate(from_currency, to_currency).rate

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRateRecord:
        """
        Get the rate record for an ordered pair

        Args:
            from_currency: Source currency code (case-insensitive)
            to_currency: Destination currency code (case-insensitive)

        Returns:
            ExchangeRateRecord; a synthetic 1.0 record for equal codes

        Raises:
            RateNotFound: no record for the pair
        """
        source = from_currency.upper()
        target = to_currency.upper()

        if source == target:
            return ExchangeRateRecord(
                from_currency=source,
                to_currency=target,
                rate=1.0,
                last_updated=utcnow(),
            )

        record = self.storage.find_rate(source, target)
        if record is None:
            logger.warning(f"No exchange rate stored for {source} -> {target}")
            raise RateNotFound(f"Exchange rate from {source} to {target} not available")

        return record

    def list_rates(self) -> List[ExchangeRateRecord]:
        return self.storage.list_rates()


def generate_historical_rates(current_rate: float, days: int,
                              rng: Optional[random.Random] = None,
                              today: Optional[date] = None) -> List[Dict[str, Union[str, float]]]:
    """
    Build a noisy daily series ending today

    Args:
        current_rate: Rate the series fluctuates around
        days: Number of days to go back; the series has days + 1 points
        rng: Random source (defaults to the module generator)
        today: Last date in the series (defaults to today)

    Returns:
        List of {"date": "YYYY-MM-DD", "rate": float}, oldest first
    """
    rng = rng or random.Random()
    today = today or date.today()

    series = []
    for offset in range(days, -1, -1):
        day = today - timedelta(days=offset)
        fluctuation = rng.uniform(FLUCTUATION_LOW, FLUCTUATION_HIGH)
        series.append({
            "date": day.isoformat(),
            "rate": round(current_rate * fluctuation, 4),
        })

    return series
