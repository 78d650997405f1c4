"""
Transaction Classification

Turns a raw Transaction into a signed contribution using its Category.
Shared by the balance calculator, the budget aggregator and the
summary composer so all three absorb bad data the same way.

Absorbed problems, in the order they are checked:
- transaction on another account: excluded (foreign_account)
- amount not finite: excluded (unparseable_amount)
- no category: folded in with zero effect (missing_category)
- category unknown to the lookup: folded in with zero effect (dangling_category)
- negative amount: magnitude used (negative_amount)
"""

from decimal import Decimal
from typing import Iterable, NamedTuple, Optional

from src.models.ledger import Category, Transaction, TransactionType
from src.models.reports import IntegrityIssue


class Classified(NamedTuple):
    """Outcome of classifying one transaction."""

    transaction: Transaction
    # None when the transaction was excluded or has no usable category
    transaction_type: Optional[TransactionType]
    amount: Decimal
    excluded: bool
    issues: tuple[IntegrityIssue, ...]


def build_category_lookup(categories: Iterable[Category]) -> dict[str, Category]:
    """Index categories by id, built once per computation."""
    return {category.id: category for category in categories}


def _issue(txn: Transaction, issue_type: str, message: str) -> IntegrityIssue:
    return IntegrityIssue(
        record_type="transaction",
        record_id=txn.id,
        issue_type=issue_type,
        message=message,
    )


def classify(
    txn: Transaction,
    categories: dict[str, Category],
    account_id: Optional[str] = None,
) -> Classified:
    """
    Classify one transaction.

    Args:
        txn: The transaction
        categories: Category lookup from build_category_lookup
        account_id: When set, transactions of any other account are excluded

    Returns:
        Classified with a non-negative amount. transaction_type is None
        when the transaction contributes nothing.
    """
    if account_id is not None and txn.account_id != account_id:
        return Classified(txn, None, Decimal("0"), True, (
            _issue(txn, "foreign_account",
                   f"Transaction belongs to account {txn.account_id}, not {account_id}"),
        ))

    if not txn.amount.is_finite():
        return Classified(txn, None, Decimal("0"), True, (
            _issue(txn, "unparseable_amount", f"Amount {txn.amount} is not a finite number"),
        ))

    if txn.category_id is None:
        return Classified(txn, None, Decimal("0"), False, (
            _issue(txn, "missing_category", "Transaction has no category"),
        ))

    category = categories.get(txn.category_id)
    if category is None:
        return Classified(txn, None, Decimal("0"), False, (
            _issue(txn, "dangling_category", f"Category {txn.category_id} does not exist"),
        ))

    issues = ()
    amount = txn.amount
    if amount < 0:
        amount = -amount
        issues = (
            _issue(txn, "negative_amount", f"Negative amount {txn.amount} stored; using magnitude"),
        )

    return Classified(txn, category.transaction_type, amount, False, issues)


def collect_issues(
    transactions: Iterable[Transaction],
    categories: dict[str, Category],
) -> list[IntegrityIssue]:
    """Integrity issues of a batch, in transaction order."""
    issues = []
    for txn in transactions:
        issues.extend(classify(txn, categories).issues)
    return issues
