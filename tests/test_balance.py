"""Tests for the balance calculator."""

import random
from datetime import datetime
from decimal import Decimal

from src.engine.balance import BalanceCalculator
from src.models.ledger import Account
from tests.factories import txn


class TestBalanceCalculator:
    """Tests for deriving balances from transactions."""

    def test_fitness_scenario(self, account, fitness):
        """Test 1000 minus two expenses of 40 is 920."""
        transactions = [
            txn(1, "100", datetime(2025, 11, 3), 40),
            txn(2, "100", datetime(2025, 11, 20), 40),
        ]
        result = BalanceCalculator().calculate(account, transactions, [fitness])

        assert result.balance == Decimal("920")
        assert result.total_expenses == Decimal("80")
        assert result.total_income == Decimal("0")
        assert result.transaction_count == 2
        assert result.last_transaction_date == datetime(2025, 11, 20)
        assert result.integrity_issues == []

    def test_zero_transactions_equals_initial_balance(self, account, fitness):
        """Test an empty account keeps its initial balance exactly."""
        result = BalanceCalculator().calculate(account, [], [fitness])

        assert result.balance == account.initial_balance
        assert result.transaction_count == 0
        assert result.last_transaction_date is None

    def test_income_and_expense(self, account, fitness, gehalt):
        """Test the category type decides the sign."""
        transactions = [
            txn(1, "101", datetime(2025, 10, 1), 2500),
            txn(2, "100", datetime(2025, 11, 3), 40),
        ]
        result = BalanceCalculator().calculate(account, transactions, [fitness, gehalt])

        assert result.balance == Decimal("3460")
        assert result.total_income == Decimal("2500")

    def test_balance_is_order_independent(self, account, fitness, gehalt, lebensmittel):
        """Test additivity: shuffling transactions never changes the result."""
        transactions = [
            txn(i, category, datetime(2025, 1 + i % 12, 1 + i % 28), amount)
            for i, (category, amount) in enumerate([
                ("100", "12.30"), ("101", "2500"), ("102", "99.99"),
                ("100", "0.01"), ("101", "150.50"), ("102", "7"),
            ])
        ]
        categories = [fitness, gehalt, lebensmittel]
        expected = BalanceCalculator().calculate(account, transactions, categories).balance

        rng = random.Random(7)
        for _ in range(5):
            shuffled = transactions[:]
            rng.shuffle(shuffled)
            assert BalanceCalculator().calculate(account, shuffled, categories).balance == expected

        assert expected == Decimal("1000") + Decimal("2650.50") - Decimal("119.30")

    def test_uncategorized_contributes_zero(self, account, fitness):
        """Test a transaction without category is counted but has no effect."""
        transactions = [
            txn(1, "100", datetime(2025, 11, 3), 40),
            txn(2, None, datetime(2025, 11, 25), 500),
        ]
        result = BalanceCalculator().calculate(account, transactions, [fitness])

        assert result.balance == Decimal("960")
        assert result.transaction_count == 2
        assert result.last_transaction_date == datetime(2025, 11, 25)
        assert [i.issue_type for i in result.integrity_issues] == ["missing_category"]

    def test_dangling_category_contributes_zero(self, account, fitness):
        """Test a reference to a deleted category never crashes."""
        transactions = [txn(1, "999", datetime(2025, 11, 3), 40)]
        result = BalanceCalculator().calculate(account, transactions, [fitness])

        assert result.balance == Decimal("1000")
        assert result.integrity_issues[0].issue_type == "dangling_category"

    def test_non_finite_amount_excluded(self, account, fitness):
        """Test a NaN amount is excluded and reported, never propagated."""
        transactions = [
            txn(1, "100", datetime(2025, 11, 3), 40),
            txn(2, "100", datetime(2025, 11, 4), "NaN"),
        ]
        result = BalanceCalculator().calculate(account, transactions, [fitness])

        assert result.balance == Decimal("960")
        assert result.balance.is_finite()
        assert result.transaction_count == 1
        assert result.integrity_issues[0].issue_type == "unparseable_amount"
        assert result.integrity_issues[0].record_id == "2"

    def test_negative_amount_uses_magnitude(self, account, fitness):
        """Test a stored negative amount is treated as its magnitude."""
        transactions = [txn(1, "100", datetime(2025, 11, 3), -40)]
        result = BalanceCalculator().calculate(account, transactions, [fitness])

        assert result.balance == Decimal("960")
        assert result.integrity_issues[0].issue_type == "negative_amount"

    def test_foreign_account_transactions_excluded(self, account, fitness):
        """Test transactions of another account never leak into a balance."""
        transactions = [
            txn(1, "100", datetime(2025, 11, 3), 40),
            txn(2, "100", datetime(2025, 11, 3), 40, account_id="20"),
        ]
        result = BalanceCalculator().calculate(account, transactions, [fitness])

        assert result.balance == Decimal("960")
        assert result.transaction_count == 1
        assert result.integrity_issues[0].issue_type == "foreign_account"

    def test_initial_balance_is_never_mutated(self, fitness):
        """Test calculation leaves the account untouched."""
        account = Account(id="10", owner_id="1", name="Giro", initial_balance="1000")
        BalanceCalculator().calculate(account, [txn(1, "100", datetime(2025, 11, 3), 40)], [fitness])
        assert account.initial_balance == Decimal("1000")
