"""
Calendar value type for FinEventLab.

``LocalDate`` is a plain (year, month, day) triple without timezone. All
simulation output is keyed by its month-key ``"YYYY-MM"``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from .errors import ConfigError

_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})(?:-(\d{1,2}))?$")


@dataclass(frozen=True, order=True)
class LocalDate:
    """
    A calendar date with month-level arithmetic.

    Ordering is lexicographic on (year, month, day). ``add_months`` keeps the
    day-of-month verbatim, so ``LocalDate(2025, 1, 31).add_months(1)`` is
    ``LocalDate(2025, 2, 31)``: a value that only ever matters through its
    month-key. Short months are never clamped.

    **Example:**
        ```python
        d = LocalDate(2025, 11, 15)
        d.month_key               # "2025-11"
        d.add_months(3).month_key # "2026-02"
        d.start_of_month()        # LocalDate(2025, 11, 1)
        ```
    """

    year: int
    month: int
    day: int = 1

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ConfigError(f"month must be within 1-12, got {self.month}")
        if not 1 <= self.day <= 31:
            raise ConfigError(f"day must be within 1-31, got {self.day}")

    @property
    def month_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def start_of_month(self) -> LocalDate:
        return LocalDate(self.year, self.month, 1)

    def add_months(self, n: int) -> LocalDate:
        """Shift by ``n`` months, preserving the day-of-month field."""
        total = self.year * 12 + (self.month - 1) + n
        return LocalDate(total // 12, total % 12 + 1, self.day)

    def months_until(self, other: LocalDate) -> int:
        """Whole months from this date's month to ``other``'s month."""
        return (other.year - self.year) * 12 + (other.month - self.month)

    def to_date(self) -> date:
        """Convert to ``datetime.date`` (raises ValueError for overflowed days)."""
        return date(self.year, self.month, self.day)

    def isoformat(self) -> str:
        return f"{self.month_key}-{self.day:02d}"

    def __str__(self) -> str:
        return self.isoformat()

    @classmethod
    def from_date(cls, value: date) -> LocalDate:
        return cls(value.year, value.month, value.day)

    @classmethod
    def today(cls) -> LocalDate:
        return cls.from_date(date.today())

    @classmethod
    def parse(cls, text: str) -> LocalDate:
        """Parse ``YYYY-MM-DD`` or ``YYYY-MM`` (day defaults to 1)."""
        match = _DATE_RE.match(text.strip())
        if not match:
            raise ConfigError(f"invalid date '{text}', expected YYYY-MM-DD or YYYY-MM")
        year, month, day = match.groups()
        return cls(int(year), int(month), int(day) if day else 1)

    @classmethod
    def coerce(cls, value: Any) -> LocalDate:
        """Build a LocalDate from a LocalDate, ``date``, ISO string or mapping."""
        if isinstance(value, LocalDate):
            return value
        if isinstance(value, date):
            return cls.from_date(value)
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, Mapping):
            try:
                return cls(
                    int(value["year"]), int(value["month"]), int(value.get("day", 1))
                )
            except KeyError as exc:
                raise ConfigError(f"date mapping is missing {exc}") from exc
        raise ConfigError(f"cannot interpret {value!r} as a date")


def ld(year: int, month: int, day: int = 1) -> LocalDate:
    """Shorthand constructor used in examples and tests."""
    return LocalDate(year, month, day)


def month_range(start: LocalDate, end: LocalDate) -> Iterator[LocalDate]:
    """
    Yield the first day of every month from ``start``'s month to ``end``'s month.

    Both ends are inclusive; nothing is yielded when ``start`` is after ``end``.
    """
    current = start.start_of_month()
    last = end.start_of_month()
    while current <= last:
        yield current
        current = current.add_months(1)


def month_key_year(month_key: str) -> int:
    return int(month_key[:4])


def month_key_month(month_key: str) -> int:
    return int(month_key[5:7])
