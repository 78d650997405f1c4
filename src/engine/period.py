"""
Calendar Month Periods

A Period is one calendar month, used as a half-open window:
[first instant of the month, first instant of the next month).

DESIGN DECISION: The upper bound is exclusive. A transaction at exactly
midnight on the 1st belongs to the month that starts there, never to
the month before.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class InvalidPeriodError(ValueError):
    """Requested year/month is not a valid calendar month."""
    pass


class Period(BaseModel):
    """One calendar month."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9998)
    month: int = Field(..., ge=1, le=12)

    @property
    def start(self) -> datetime:
        """First instant of the month (inclusive)."""
        return datetime(self.year, self.month, 1)

    @property
    def end(self) -> datetime:
        """First instant of the next month (exclusive)."""
        return self.next().start

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def next(self) -> "Period":
        if self.month == 12:
            return Period(year=self.year + 1, month=1)
        return Period(year=self.year, month=self.month + 1)

    @classmethod
    def of(cls, moment: date) -> "Period":
        return cls(year=moment.year, month=moment.month)


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidPeriodError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise InvalidPeriodError(f"{name} must be an integer, got {value!r}")


def resolve_period(
    year: Optional[Any] = None,
    month: Optional[Any] = None,
    today: Optional[date] = None,
    min_year: int = 1900,
    max_year: int = 2200,
) -> Period:
    """
    Build the Period for a request.

    Missing parts default to today's year and month. Values that are
    supplied but invalid raise instead of silently falling back.

    Raises:
        InvalidPeriodError: month outside 1..12, year outside
            [min_year, max_year], or a non-integer value
    """
    today = today or date.today()
    resolved_year = today.year if year is None else _as_int("year", year)
    resolved_month = today.month if month is None else _as_int("month", month)

    if not 1 <= resolved_month <= 12:
        raise InvalidPeriodError(f"month must be between 1 and 12, got {resolved_month}")
    if not min_year <= resolved_year <= max_year:
        raise InvalidPeriodError(
            f"year must be between {min_year} and {max_year}, got {resolved_year}"
        )

    return Period(year=resolved_year, month=resolved_month)
