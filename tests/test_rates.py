"""
Tests for rate lookup, the historical series and reference data
"""

import random
import pytest
from datetime import date, timedelta

from currencyverse.database.init_db import REFERENCE_CURRENCIES, reference_rates, seed_reference_data
from currencyverse.database.memory import MemoryStorage
from currencyverse.exceptions import RateNotFound
from currencyverse.services.rates import RateLookup, generate_historical_rates


class TestRateLookup:
    """Test directional rate resolution"""

    def setup_method(self):
        self.storage = MemoryStorage()
        self.storage.upsert_rate("USD", "EUR", 0.90)
        self.rates = RateLookup(self.storage)

    def test_identity_rate_without_stored_record(self):
        record = self.rates.get_exchange_rate("JPY", "jpy")

        assert record.rate == 1.0
        assert record.from_currency == "JPY"
        assert record.to_currency == "JPY"
        assert self.storage.find_rate("JPY", "JPY") is None

    def test_stored_pair_is_exact(self):
        assert self.rates.get_rate("USD", "EUR") == 0.90

    def test_codes_are_case_insensitive(self):
        assert self.rates.get_rate("usd", "Eur") == 0.90

    def test_reverse_pair_is_independent(self):
        with pytest.raises(RateNotFound):
            self.rates.get_rate("EUR", "USD")

        self.storage.upsert_rate("EUR", "USD", 1.2)
        assert self.rates.get_rate("EUR", "USD") == 1.2
        assert self.rates.get_rate("USD", "EUR") == 0.90

    def test_missing_pair(self):
        with pytest.raises(RateNotFound) as exc_info:
            self.rates.get_rate("XYZ", "USD")

        assert exc_info.value.message == "Exchange rate from XYZ to USD not available"
        assert exc_info.value.status_code == 404

    def test_upsert_replaces_rate(self):
        self.storage.upsert_rate("USD", "EUR", 0.95)

        assert self.rates.get_rate("USD", "EUR") == 0.95
        assert len(self.rates.list_rates()) == 1


class TestHistoricalRates:
    """Test the synthetic historical series"""

    def test_series_length_and_dates(self):
        today = date(2024, 3, 1)
        series = generate_historical_rates(0.92, 7, rng=random.Random(1), today=today)

        assert len(series) == 8
        assert series[0]["date"] == "2024-02-23"
        assert series[-1]["date"] == "2024-03-01"
        for previous, current in zip(series, series[1:]):
            assert date.fromisoformat(current["date"]) - date.fromisoformat(previous["date"]) == timedelta(days=1)

    def test_rates_stay_within_five_percent(self):
        series = generate_historical_rates(150.0, 60, rng=random.Random(7))

        for point in series:
            assert 150.0 * 0.95 - 0.0001 <= point["rate"] <= 150.0 * 1.05 + 0.0001
            assert round(point["rate"], 4) == point["rate"]

    def test_seeded_generator_is_repeatable(self):
        today = date(2024, 1, 15)
        first = generate_historical_rates(1.1, 10, rng=random.Random(42), today=today)
        second = generate_historical_rates(1.1, 10, rng=random.Random(42), today=today)

        assert first == second

    def test_default_ends_today(self):
        series = generate_historical_rates(1.0, 1)

        assert series[-1]["date"] == date.today().isoformat()


class TestReferenceData:
    """Test seeding of currencies and rates"""

    def test_reference_rates_cover_every_ordered_pair(self):
        rates = reference_rates()
        count = len(REFERENCE_CURRENCIES)

        assert len(rates) == count * (count - 1)
        assert ("USD", "EUR", 0.92) in rates
        assert all(from_code != to_code for from_code, to_code, _ in rates)

    def test_seed_is_idempotent(self):
        storage = MemoryStorage()

        first = seed_reference_data(storage)
        second = seed_reference_data(storage)

        assert first == {"currencies": len(REFERENCE_CURRENCIES), "rates": len(reference_rates())}
        assert second == {"currencies": 0, "rates": 0}
        assert [c.code for c in storage.list_currencies()] == sorted(c[0] for c in REFERENCE_CURRENCIES)
