"""
Legacy Budget Migration

Old ledgers stored budgets as free-standing named entities:

    name="Budget für Fitness - November", totalAmount=40, startDate=2025-11-01,
    accountId=10

with no link to a category. This module turns such rows into
category-keyed budget rows so the rest of the system only ever sees
budgets keyed by (category_id, year, month). A label is matched only
against the categories of the row's own account; a row without an
account is never guessed.

DESIGN DECISION: The label heuristic lives ONLY here, at the storage
boundary. The engine never guesses a category from a name.
Rows that match no category are dropped by the caller with a warning.
"""

import re
from datetime import datetime
from typing import Any, Optional

from src.models.ledger import Category, coerce_timestamp


LEGACY_LABEL_PATTERN = re.compile(r"budget für (.+?) - ", re.IGNORECASE)


def is_legacy_budget_row(row: dict[str, Any]) -> bool:
    """A row is legacy when it has a label and start date but no category link."""
    has_category = row.get("category_id") or row.get("categoryId")
    has_label = row.get("name")
    has_start = row.get("start_date") or row.get("startDate")
    return not has_category and bool(has_label) and bool(has_start)


def legacy_account_id(row: dict[str, Any]) -> Optional[str]:
    """Account a legacy budget row belongs to, or None when unscoped."""
    value = row.get("account_id")
    if value is None:
        value = row.get("accountId")
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def match_category_by_label(
    label: str,
    categories: list[Category],
) -> Optional[Category]:
    """
    Find the category a legacy budget label refers to.

    Strategies, first hit wins:
    1. Exact name, case-insensitive
    2. Label contains the category name
    3. Category name contains the label
    4. "Budget für <name> - ..." pattern, then exact name
    """
    needle = label.strip().lower()
    if not needle:
        return None

    for category in categories:
        if category.name.lower() == needle:
            return category

    for category in categories:
        if category.name.lower() in needle:
            return category

    for category in categories:
        if needle in category.name.lower():
            return category

    match = LEGACY_LABEL_PATTERN.search(label)
    if match:
        extracted = match.group(1).strip().lower()
        for category in categories:
            if category.name.lower() == extracted:
                return category

    return None


def convert_legacy_budget(
    row: dict[str, Any],
    categories: list[Category],
) -> Optional[dict[str, Any]]:
    """
    Convert a legacy budget row into a category-keyed budget row.

    The label is only matched against categories of the row's own
    account, so a budget can never be attached to another owner's
    category. Year and month are taken from the start date.

    Returns None when the row names no account, the start date cannot
    be read, or no category of that account matches the label.
    """
    account_id = legacy_account_id(row)
    if account_id is None:
        return None

    start = coerce_timestamp(row.get("start_date") or row.get("startDate"))
    if not isinstance(start, datetime):
        return None

    candidates = [c for c in categories if c.account_id == account_id]
    category = match_category_by_label(str(row.get("name") or ""), candidates)
    if category is None:
        return None

    return {
        "id": row.get("id"),
        "category_id": category.id,
        "year": start.year,
        "month": start.month,
        "total_amount": row.get("total_amount", row.get("totalAmount")),
        "created_at": row.get("created_at", row.get("createdAt")),
        "updated_at": row.get("updated_at", row.get("updatedAt")),
    }
