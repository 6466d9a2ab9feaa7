"""
Tests for FastAPI endpoints
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from currencyverse.config.settings import Settings
from currencyverse.database.init_db import REFERENCE_CURRENCIES, reference_rates
from currencyverse.database.memory import MemoryStorage
from currencyverse.main import create_app


class TestHealthAndRoot:

    def test_health_check(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["service"] == "currencyverse-api"
        assert data["database"] == {"status": "memory", "connected": False, "mode": "memory"}
        assert data["environment"] == "test"

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert "version" in data
        assert data["health"] == "/api/health"

    def test_unknown_route(self, client):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Route not found"


class TestCurrencyEndpoints:

    def test_list_currencies(self, client):
        response = client.get("/api/currencies")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        codes = [c["code"] for c in data["data"]]
        assert codes == sorted(c[0] for c in REFERENCE_CURRENCIES)

    def test_get_currency_case_insensitive(self, client):
        response = client.get("/api/currencies/eur")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Euro"

    def test_unknown_currency(self, client):
        response = client.get("/api/currencies/XYZ")

        assert response.status_code == 404
        assert response.json()["error"] == "Currency not found"

    def test_storage_failure_is_hidden_outside_development(self, client, memory_storage):
        with patch.object(memory_storage, "list_currencies", side_effect=RuntimeError("boom")):
            response = client.get("/api/currencies")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Database error"
        assert data["message"] == "Internal server error"

    def test_storage_failure_detail_in_development(self, memory_storage):
        settings = Settings(environment="development", secret_key="dev", rate_limit_requests=1000)
        dev_client = TestClient(create_app(settings=settings, storage=memory_storage))

        with patch.object(memory_storage, "list_currencies", side_effect=RuntimeError("boom")):
            response = dev_client.get("/api/currencies")

        assert response.status_code == 500
        assert "boom" in response.json()["message"]


class TestExchangeRateEndpoints:

    def test_list_rates(self, client):
        response = client.get("/api/exchange-rates")

        assert response.status_code == 200
        assert len(response.json()["data"]) == len(reference_rates())

    def test_get_rate_uses_camel_case(self, client):
        response = client.get("/api/exchange-rates/USD/EUR")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["fromCurrency"] == "USD"
        assert data["toCurrency"] == "EUR"
        assert data["rate"] == 0.92
        assert "lastUpdated" in data

    def test_identity_rate(self, client):
        response = client.get("/api/exchange-rates/gbp/GBP")

        assert response.status_code == 200
        assert response.json()["data"]["rate"] == 1.0

    def test_missing_rate(self, client):
        response = client.get("/api/exchange-rates/XYZ/USD")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Exchange rate not found"

    def test_historical_rates(self, client):
        response = client.get("/api/exchange-rates/USD/EUR/historical", params={"days": 5})

        assert response.status_code == 200
        points = response.json()["data"]
        assert len(points) == 6
        assert all(0.92 * 0.95 - 0.0001 <= p["rate"] <= 0.92 * 1.05 + 0.0001 for p in points)

    def test_historical_default_window(self, client):
        response = client.get("/api/exchange-rates/USD/JPY/historical")

        assert response.status_code == 200
        assert len(response.json()["data"]) == 31

    def test_historical_rejects_bad_days(self, client):
        response = client.get("/api/exchange-rates/USD/EUR/historical", params={"days": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    def test_historical_missing_rate(self, client):
        response = client.get("/api/exchange-rates/XYZ/EUR/historical")

        assert response.status_code == 404


class TestTransactionEndpoints:

    def setup_method(self):
        self.storage = MemoryStorage()
        self.storage.upsert_rate("USD", "EUR", 0.90)
        settings = Settings(environment="test", secret_key="test", rate_limit_requests=1000)
        self.client = TestClient(create_app(settings=settings, storage=self.storage))

    def _convert(self, user_id="user-1", amount=100, from_currency="USD", to_currency="EUR"):
        return self.client.post("/api/transactions", json={
            "userId": user_id,
            "fromCurrency": from_currency,
            "toCurrency": to_currency,
            "fromAmount": amount,
        })

    def test_create_transaction(self):
        response = self._convert()

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["toAmount"] == 90
        assert data["rate"] == 0.90
        assert data["status"] == "completed"
        assert self.storage.get_wallet("user-1", "EUR").balance == 90

    def test_missing_rate_is_bad_request(self):
        response = self._convert(from_currency="XYZ", to_currency="USD")

        assert response.status_code == 400
        assert response.json()["error"] == "Exchange rate not found"
        assert self.storage.list_transactions() == []

    def test_invalid_amount(self):
        response = self._convert(amount=0)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid amount"
        assert self.storage.list_transactions() == []

    @pytest.mark.parametrize("amount", [True, "100", None])
    def test_non_numeric_amount_writes_nothing(self, amount):
        response = self._convert(amount=amount)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert self.storage.list_transactions() == []
        assert self.storage.list_wallets() == []

    def test_integer_amount_is_accepted(self):
        response = self._convert(amount=100)

        assert response.status_code == 201
        assert response.json()["data"]["fromAmount"] == 100

    def test_malformed_body(self):
        response = self.client.post("/api/transactions", json={"userId": "user-1", "fromAmount": "lots"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Validation error"

    def test_list_and_get_transactions(self):
        first = self._convert(amount=10).json()["data"]
        second = self._convert(amount=20).json()["data"]
        self._convert(user_id="user-2")

        all_response = self.client.get("/api/transactions")
        assert len(all_response.json()["data"]) == 3

        by_query = self.client.get("/api/transactions", params={"userId": "user-1"}).json()["data"]
        assert [t["id"] for t in by_query] == [second["id"], first["id"]]

        by_path = self.client.get("/api/transactions/user/user-1").json()["data"]
        assert by_path == by_query

        one = self.client.get(f"/api/transactions/{first['id']}")
        assert one.status_code == 200
        assert one.json()["data"]["fromAmount"] == 10

    def test_unknown_transaction(self):
        response = self.client.get("/api/transactions/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Transaction not found"

    def test_update_status(self):
        transaction = self._convert().json()["data"]

        response = self.client.put(f"/api/transactions/{transaction['id']}", json={"status": "failed"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "failed"

    def test_update_invalid_status(self):
        transaction = self._convert().json()["data"]

        response = self.client.put(f"/api/transactions/{transaction['id']}", json={"status": "done"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid status"

    def test_update_unknown_transaction(self):
        response = self.client.put("/api/transactions/missing", json={"status": "failed"})

        assert response.status_code == 404


class TestWalletEndpoints:

    def test_user_wallets(self, client, memory_storage):
        demo = memory_storage.find_user_by_email("demo@currencyverse.com")

        response = client.get(f"/api/wallets/user/{demo.id}")

        assert response.status_code == 200
        wallets = response.json()["data"]
        assert len(wallets) == 1
        assert wallets[0]["currencyCode"] == "USD"
        assert wallets[0]["balance"] == 1000

    def test_credit_wallet(self, client, memory_storage):
        demo = memory_storage.find_user_by_email("demo@currencyverse.com")

        response = client.put(f"/api/wallets/user/{demo.id}/currency/usd", json={"amount": -250})

        assert response.status_code == 200
        assert response.json()["data"]["balance"] == 750

    def test_credit_creates_wallet(self, client):
        response = client.put("/api/wallets/user/user-9/currency/CHF", json={"amount": 12.5})

        assert response.status_code == 200
        assert response.json()["data"]["currencyCode"] == "CHF"
        assert len(client.get("/api/wallets").json()["data"]) == 3

    def test_negative_credit_on_missing_wallet(self, client):
        response = client.put("/api/wallets/user/user-9/currency/CHF", json={"amount": -1})

        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient funds"

    @pytest.mark.parametrize("amount", [True, "10"])
    def test_credit_rejects_non_numeric_amount(self, client, memory_storage, amount):
        response = client.put("/api/wallets/user/user-9/currency/USD", json={"amount": amount})

        assert response.status_code == 400
        assert memory_storage.get_wallet("user-9", "USD") is None

    def test_open_wallet_rejects_string_balance(self, client, memory_storage):
        response = client.post("/api/wallets", json={"userId": "user-9", "currencyCode": "EUR", "balance": "5"})

        assert response.status_code == 400
        assert memory_storage.get_wallet("user-9", "EUR") is None

    def test_open_wallet(self, client):
        body = {"userId": "user-9", "currencyCode": "eur", "balance": 5}

        created = client.post("/api/wallets", json=body)
        duplicate = client.post("/api/wallets", json=body)

        assert created.status_code == 201
        assert created.json()["data"]["currencyCode"] == "EUR"
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "Wallet already exists"


class TestRateLimit:

    def test_requests_over_limit_are_rejected(self):
        settings = Settings(environment="test", secret_key="test",
                            rate_limit_requests=2, rate_limit_window_seconds=60)
        client = TestClient(create_app(settings=settings, storage=MemoryStorage()))

        assert client.get("/api/health").status_code == 200
        assert client.get("/api/currencies").status_code == 200
        response = client.get("/api/health")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["success"] is False
        # Outside the API prefix
        assert client.get("/").status_code == 200
