"""Tests for the summary composer."""

from datetime import datetime
from decimal import Decimal

import pytest

from src.engine.period import Period
from src.engine.summary import SummaryComposer
from src.models.ledger import Account, Budget, Category, TransactionType
from tests.factories import txn


NOVEMBER = Period(year=2025, month=11)


@pytest.fixture
def ledger(account, fitness, gehalt, lebensmittel):
    """The owner-1 household ledger plus one row of owner 2."""
    other_account = Account(id="20", owner_id="2", name="Other", initial_balance="300")
    hobby = Category(id="200", account_id="20", name="Hobby", transaction_type=TransactionType.EXPENSE)
    return {
        "accounts": [account, other_account],
        "categories": [fitness, gehalt, lebensmittel, hobby],
        "transactions": [
            txn(1, "100", datetime(2025, 11, 3), 40),
            txn(2, "100", datetime(2025, 11, 20), 40),
            txn(3, "102", datetime(2025, 11, 10), 70),
            txn(4, "101", datetime(2025, 10, 1), 2500),
            txn(5, "101", datetime(2025, 11, 1), 2700),
            txn(9, "200", datetime(2025, 11, 5), 50, account_id="20"),
        ],
        "budgets": [
            Budget(id="1000", category_id="100", year=2025, month=11, total_amount="40"),
            Budget(id="1001", category_id="101", year=2025, month=11, total_amount="500"),
            Budget(id="2000", category_id="200", year=2025, month=11, total_amount="25"),
        ],
    }


def compose(ledger, **kwargs):
    return SummaryComposer().compose(
        "1",
        kwargs.pop("period", NOVEMBER),
        ledger["accounts"],
        ledger["categories"],
        ledger["transactions"],
        ledger["budgets"],
        **kwargs,
    )


class TestKPIs:
    """Tests for headline numbers."""

    def test_november_kpis(self, ledger):
        """Test income, expenses, net balance and savings rate."""
        kpis = compose(ledger).kpis

        assert kpis.total_income == Decimal("2700")
        assert kpis.total_expenses == Decimal("150")
        assert kpis.net_balance == Decimal("2550")
        assert kpis.savings_rate == Decimal("2550") / Decimal("2700") * 100
        assert kpis.transaction_count == 4

    def test_empty_period_is_all_zero(self, ledger):
        """Test a month without activity returns zeros, not an error."""
        summary = compose(ledger, period=Period(year=2024, month=1))

        assert summary.kpis.total_income == Decimal("0")
        assert summary.kpis.total_expenses == Decimal("0")
        assert summary.kpis.savings_rate == Decimal("0")
        assert summary.kpis.transaction_count == 0
        assert summary.category_breakdown == []
        assert summary.budget_progress == []

    def test_savings_rate_without_income(self, ledger):
        """Test savings rate is 0 when there is no income."""
        ledger["transactions"] = [t for t in ledger["transactions"] if t.category_id != "101"]
        assert compose(ledger).kpis.savings_rate == Decimal("0")

    def test_other_owner_rows_are_ignored(self, ledger):
        """Test rows of another owner never reach the summary."""
        summary = compose(ledger)
        assert all(row.category_id != "200" for row in summary.category_breakdown)
        assert all(row.category_id != "200" for row in summary.budget_progress)
        assert all(row.id != "9" for row in summary.recent_transactions)


class TestCategoryBreakdown:
    """Tests for the expense breakdown."""

    def test_sorted_descending_expense_only(self, ledger):
        """Test only EXPENSE categories, largest first."""
        breakdown = compose(ledger).category_breakdown

        assert [row.category_name for row in breakdown] == ["Fitness", "Lebensmittel"]
        assert [row.amount for row in breakdown] == [Decimal("80"), Decimal("70")]
        assert breakdown[0].transaction_count == 2
        assert breakdown[0].category_icon == "🏋️"

    def test_top_categories_truncates(self, ledger):
        """Test the breakdown can be limited."""
        breakdown = compose(ledger, top_categories=1).category_breakdown
        assert len(breakdown) == 1
        assert breakdown[0].category_name == "Fitness"


class TestBudgetRows:
    """Tests for budget progress inside the summary."""

    def test_budget_rows(self, ledger):
        """Test both budget scenarios appear in one summary."""
        rows = {row.category_name: row for row in compose(ledger).budget_progress}

        assert rows["Fitness"].spent == Decimal("80")
        assert rows["Fitness"].percentage_used == Decimal("200")
        assert rows["Gehalt"].spent == Decimal("150")

    def test_account_filter_restricts_budgets(self, ledger, account):
        """Test budgets of categories on other accounts are dropped."""
        savings = Account(id="11", owner_id="1", name="Sparkonto")
        urlaub = Category(id="110", account_id="11", name="Urlaub", transaction_type=TransactionType.EXPENSE)
        ledger["accounts"].append(savings)
        ledger["categories"].append(urlaub)
        ledger["budgets"].append(
            Budget(id="1100", category_id="110", year=2025, month=11, total_amount="300")
        )

        names = [row.category_name for row in compose(ledger, account_id="10").budget_progress]
        assert "Urlaub" not in names
        assert set(names) == {"Fitness", "Gehalt"}

        names = [row.category_name for row in compose(ledger).budget_progress]
        assert "Urlaub" in names

    def test_budgets_of_other_months_excluded(self, ledger):
        """Test only budgets of the summarized month produce rows."""
        ledger["budgets"].append(
            Budget(id="1003", category_id="102", year=2025, month=10, total_amount="10")
        )
        names = [row.category_name for row in compose(ledger).budget_progress]
        assert "Lebensmittel" not in names

    def test_dangling_budget_is_reported(self, ledger):
        """Test a budget with a missing category is skipped and reported."""
        ledger["budgets"].append(
            Budget(id="1999", category_id="999", year=2025, month=11, total_amount="10")
        )
        summary = compose(ledger)

        assert len(summary.budget_progress) == 2
        issue = next(i for i in summary.integrity_issues if i.record_type == "budget")
        assert issue.issue_type == "dangling_category"
        assert issue.record_id == "1999"


class TestRecentTransactions:
    """Tests for the recent transactions list."""

    def test_sorted_newest_first_across_months(self, ledger):
        """Test the list is not limited to the period."""
        recent = compose(ledger).recent_transactions
        assert [row.id for row in recent] == ["2", "3", "1", "5", "4"]

    def test_recent_limit(self, ledger):
        """Test the list is truncated."""
        assert len(compose(ledger, recent_limit=2).recent_transactions) == 2

    def test_uncategorized_fallback(self, ledger):
        """Test rows without category get a placeholder."""
        ledger["transactions"].append(txn(6, None, datetime(2025, 11, 30), 12))
        row = compose(ledger).recent_transactions[0]

        assert row.id == "6"
        assert row.category_name == "Uncategorized"
        assert row.category_icon == "📝"
        assert row.transaction_type is None
        assert row.amount == Decimal("12")

    def test_recent_rows_are_annotated(self, ledger):
        """Test category name and type are attached."""
        row = compose(ledger).recent_transactions[0]
        assert row.category_name == "Fitness"
        assert row.transaction_type == TransactionType.EXPENSE


class TestIntegrity:
    """Tests for absorbed data problems."""

    def test_window_issues_are_reported(self, ledger):
        """Test issues of transactions in the period surface on the summary."""
        ledger["transactions"].append(txn(7, "100", datetime(2025, 11, 12), "NaN"))
        ledger["transactions"].append(txn(8, "102", datetime(2025, 11, 13), -5))
        summary = compose(ledger)

        types = sorted(i.issue_type for i in summary.integrity_issues)
        assert types == ["negative_amount", "unparseable_amount"]
        assert summary.kpis.total_expenses == Decimal("155")

    def test_unparseable_rows_not_in_recent(self, ledger):
        """Test excluded transactions are not displayed."""
        ledger["transactions"].append(txn(7, "100", datetime(2025, 11, 29), "NaN"))
        assert all(row.id != "7" for row in compose(ledger).recent_transactions)
