"""
Ledger Row Mapping

The single boundary where raw storage rows become domain models.

Rows arrive in two shapes:
- snake_case dicts (raw SQL / spreadsheet columns)
- camelCase dicts (ORM / API payloads)

Both validate through the same pydantic models, so every backend
yields identical objects for identical data.

DESIGN DECISION: A row that cannot be mapped raises DataIntegrityError
carrying an IntegrityIssue. Backends catch it, log the issue, and skip
the row. One bad row never fails a whole read.
"""

from typing import Any, Optional, Type, TypeVar

from pydantic import ValidationError

from src.models.ledger import Account, Budget, Category, LedgerModel, Transaction
from src.models.reports import IntegrityIssue
from src.services.storage.legacy import (
    convert_legacy_budget,
    is_legacy_budget_row,
    legacy_account_id,
)


ModelT = TypeVar("ModelT", bound=LedgerModel)


class DataIntegrityError(ValueError):
    """A stored row violates the ledger schema."""

    def __init__(self, issue: IntegrityIssue):
        self.issue = issue
        super().__init__(issue.message)


def clean_row(row: dict[str, Any]) -> dict[str, Any]:
    """Strip keys and turn blank cells into None."""
    cleaned = {}
    for key, value in row.items():
        if key is None:
            continue
        if isinstance(value, str) and not value.strip():
            value = None
        cleaned[str(key).strip()] = value
    return cleaned


class LedgerRowMapper:
    """Maps raw rows to Account, Category, Transaction and Budget models."""

    def account(self, row: dict[str, Any]) -> Account:
        return self._validate(Account, "account", row)

    def category(self, row: dict[str, Any]) -> Category:
        return self._validate(Category, "category", row)

    def transaction(self, row: dict[str, Any]) -> Transaction:
        return self._validate(Transaction, "transaction", row)

    def budget(
        self,
        row: dict[str, Any],
        categories: Optional[list[Category]] = None,
    ) -> Budget:
        """
        Map a budget row.

        Legacy named budgets (label + start date, no category link) are
        converted first, matching the label against the given categories
        of the row's own account.
        """
        cleaned = clean_row(row)
        if is_legacy_budget_row(cleaned):
            converted = convert_legacy_budget(cleaned, categories or [])
            if converted is None:
                if legacy_account_id(cleaned) is None:
                    message = f"Legacy budget '{cleaned.get('name')}' names no account"
                else:
                    message = f"Legacy budget '{cleaned.get('name')}' matches no category"
                raise DataIntegrityError(IntegrityIssue(
                    record_type="budget",
                    record_id=_row_id(cleaned),
                    issue_type="dangling_category",
                    message=message,
                ))
            cleaned = converted
        return self._validate(Budget, "budget", cleaned)

    def _validate(
        self,
        model: Type[ModelT],
        record_type: str,
        row: dict[str, Any],
    ) -> ModelT:
        cleaned = clean_row(row)
        try:
            return model.model_validate(cleaned)
        except ValidationError as e:
            fields = sorted({
                str(error["loc"][0]) for error in e.errors() if error.get("loc")
            })
            issue_type = "unmapped_row"
            if record_type == "transaction" and "amount" in fields:
                issue_type = "unparseable_amount"
            raise DataIntegrityError(IntegrityIssue(
                record_type=record_type,
                record_id=_row_id(cleaned),
                issue_type=issue_type,
                message=f"Invalid {record_type} row (fields: {', '.join(fields) or 'unknown'})",
            )) from e


def _row_id(row: dict[str, Any]) -> Optional[str]:
    value = row.get("id")
    return None if value is None else str(value)
