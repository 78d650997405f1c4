"""
Balance Calculator

An account's balance is never stored. It is derived on every read:

    balance = initial_balance + sum(income) - sum(expenses)

over ALL of the account's transactions, regardless of date.

DESIGN DECISION: The calculator is pure. It does no I/O and no logging;
it returns the integrity issues it absorbed and lets the caller decide
how to report them.
"""

from decimal import Decimal
from typing import Iterable

from src.engine.classification import build_category_lookup, classify
from src.models.ledger import Account, Category, Transaction, TransactionType
from src.models.reports import AccountBalance


class BalanceCalculator:
    """Folds an account's transactions over its initial balance."""

    def calculate(
        self,
        account: Account,
        transactions: Iterable[Transaction],
        categories: Iterable[Category],
    ) -> AccountBalance:
        """
        Derive the current balance of one account.

        transaction_count and last_transaction_date cover every transaction
        that was folded in, including uncategorized ones that contribute
        zero. Excluded transactions (other account, unparseable amount)
        are not counted.
        """
        lookup = build_category_lookup(categories)

        total_income = Decimal("0")
        total_expenses = Decimal("0")
        count = 0
        last_date = None
        issues = []

        for txn in transactions:
            result = classify(txn, lookup, account_id=account.id)
            issues.extend(result.issues)
            if result.excluded:
                continue

            count += 1
            if last_date is None or txn.date > last_date:
                last_date = txn.date

            if result.transaction_type == TransactionType.INCOME:
                total_income += result.amount
            elif result.transaction_type == TransactionType.EXPENSE:
                total_expenses += result.amount

        return AccountBalance(
            account_id=account.id,
            account_name=account.name,
            initial_balance=account.initial_balance,
            balance=account.initial_balance + total_income - total_expenses,
            total_income=total_income,
            total_expenses=total_expenses,
            transaction_count=count,
            last_transaction_date=last_date,
            integrity_issues=issues,
        )
