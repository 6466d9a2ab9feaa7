"""
Tests for wallet balance operations
"""

import pytest

from currencyverse.database.memory import MemoryStorage
from currencyverse.exceptions import ConflictError, InsufficientFunds, NotFoundError, ValidationError
from currencyverse.services.wallets import WalletService


class TestWalletService:
    """Test credits, creation on first use and listing"""

    def setup_method(self):
        self.storage = MemoryStorage()
        self.wallets = WalletService(self.storage)

    def test_credit_creates_missing_wallet(self):
        wallet = self.wallets.credit("user-1", "EUR", 25.5)

        assert wallet.balance == 25.5
        assert wallet.currency_code == "EUR"
        assert wallet.user_id == "user-1"

    def test_zero_credit_creates_empty_wallet(self):
        wallet = self.wallets.credit("user-1", "GBP", 0)

        assert wallet.balance == 0.0

    def test_negative_credit_on_missing_wallet(self):
        with pytest.raises(InsufficientFunds):
            self.wallets.credit("user-1", "EUR", -10)

        assert self.storage.get_wallet("user-1", "EUR") is None

    def test_credits_are_additive(self):
        self.wallets.credit("user-1", "USD", 100)
        self.wallets.credit("user-1", "USD", 50)
        wallet = self.wallets.credit("user-1", "USD", -30)

        assert wallet.balance == pytest.approx(120)
        assert len(self.wallets.list_for_user("user-1")) == 1

    def test_existing_wallet_may_go_negative(self):
        self.wallets.credit("user-1", "USD", 10)
        wallet = self.wallets.credit("user-1", "USD", -50)

        assert wallet.balance == pytest.approx(-40)

    def test_currency_code_is_normalized(self):
        self.wallets.credit("user-1", "eur", 5)
        wallet = self.wallets.credit("user-1", "EUR", 5)

        assert wallet.currency_code == "EUR"
        assert wallet.balance == 10

    @pytest.mark.parametrize("amount", ["abc", None, True, float("nan"), float("inf")])
    def test_credit_rejects_non_numbers(self, amount):
        with pytest.raises(ValidationError):
            self.wallets.credit("user-1", "USD", amount)

        assert self.wallets.list_all() == []

    def test_get_balance(self):
        self.wallets.credit("user-1", "JPY", 1500)

        assert self.wallets.get_balance("user-1", "jpy").balance == 1500

    def test_get_balance_missing_wallet(self):
        with pytest.raises(NotFoundError):
            self.wallets.get_balance("user-1", "JPY")

    def test_open_wallet_twice(self):
        self.wallets.open_wallet("user-1", "CHF")

        with pytest.raises(ConflictError):
            self.wallets.open_wallet("user-1", "chf", 10)

    def test_wallets_are_per_user(self):
        self.wallets.credit("user-1", "USD", 1)
        self.wallets.credit("user-2", "USD", 2)
        self.wallets.credit("user-1", "AUD", 3)

        codes = [w.currency_code for w in self.wallets.list_for_user("user-1")]
        assert codes == ["AUD", "USD"]
        assert len(self.wallets.list_all()) == 3
