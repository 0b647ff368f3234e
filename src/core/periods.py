"""Reporting period identities.

This module defines the day, month, quarter, and year period values
used to name raw artifacts and to decide what a source should publish
next. Variants are peers: they share one interface but never compare
with each other.

Canonical string forms are ``YYYY``, ``YYYY_MM``, ``YYYY_MM_DD`` and
``YYYY_Q#``. Month and day are zero padded so that lexical order of the
string form matches chronological order. Parsing also accepts unpadded
month and day components written by older archives.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
import re
from typing import ClassVar, Union

from core.constants import DEFAULT_PUBLISHED_DAY, PERIOD_SEPARATOR, QUARTER_MARKER
from core.errors import HarvestPeriodError

_YEAR_PATTERN = re.compile(r"^(\d{4})$")
_MONTH_PATTERN = re.compile(r"^(\d{4})_(\d{1,2})$")
_DAY_PATTERN = re.compile(r"^(\d{4})_(\d{1,2})_(\d{1,2})$")
_QUARTER_PATTERN = re.compile(r"^(\d{4})_[Qq]([1-4])$")


@dataclass(frozen=True, order=True)
class YearPeriod:
    """Calendar year period."""

    year: int
    kind: ClassVar[str] = "year"

    def __post_init__(self) -> None:
        _check_year(self.year)

    @classmethod
    def parse(cls, text: str) -> "YearPeriod":
        """Parse ``YYYY`` into a year period."""
        (year,) = _match_components(_YEAR_PATTERN, text, cls.kind)
        return cls(year)

    @classmethod
    def resolve_current(
        cls, today: date, published_day: int = DEFAULT_PUBLISHED_DAY
    ) -> "YearPeriod":
        """Resolve the latest year expected to be published.

        The previous year is published on ``published_day`` of January.
        Before that day the year before it is targeted.
        """
        lag = 2 if today.month == 1 and today.day < published_day else 1
        return cls(today.year - lag)

    @property
    def ordinal(self) -> int:
        return self.year

    def fields(self) -> dict[str, int]:
        return {"year": self.year}

    def replacement_key(self) -> dict[str, int]:
        return {"year": self.year}

    def __str__(self) -> str:
        return f"{self.year:04d}"


@dataclass(frozen=True, order=True)
class QuarterPeriod:
    """Calendar quarter period."""

    year: int
    quarter: int
    kind: ClassVar[str] = "quarter"

    def __post_init__(self) -> None:
        _check_year(self.year)
        if not 1 <= self.quarter <= 4:
            raise HarvestPeriodError(
                f"Invalid quarter {self.quarter} for {self.year}: expected 1-4."
            )

    @classmethod
    def parse(cls, text: str) -> "QuarterPeriod":
        """Parse ``YYYY_Q#`` into a quarter period."""
        year, quarter = _match_components(_QUARTER_PATTERN, text, cls.kind)
        return cls(year, quarter)

    @classmethod
    def resolve_current(
        cls, today: date, published_day: int = DEFAULT_PUBLISHED_DAY
    ) -> "QuarterPeriod":
        """Resolve the latest quarter expected to be published.

        The previous quarter is published on ``published_day`` of the first
        month of the current quarter. Before that day the quarter before it
        is targeted.
        """
        current_index = today.year * 4 + (today.month - 1) // 3
        first_month_of_quarter = (today.month - 1) % 3 == 0
        lag = 2 if first_month_of_quarter and today.day < published_day else 1
        year, quarter_index = divmod(current_index - lag, 4)
        return cls(year, quarter_index + 1)

    @property
    def ordinal(self) -> int:
        return self.year * 10 + self.quarter

    def fields(self) -> dict[str, int]:
        return {"year": self.year, "quarter": self.quarter}

    def replacement_key(self) -> dict[str, int]:
        return {"year": self.year, "quarter": self.quarter}

    def __str__(self) -> str:
        return f"{self.year:04d}{PERIOD_SEPARATOR}{QUARTER_MARKER}{self.quarter}"


@dataclass(frozen=True, order=True)
class MonthPeriod:
    """Calendar month period."""

    year: int
    month: int
    kind: ClassVar[str] = "month"

    def __post_init__(self) -> None:
        _check_year(self.year)
        if not 1 <= self.month <= 12:
            raise HarvestPeriodError(
                f"Invalid month {self.month} for {self.year}: expected 1-12."
            )

    @classmethod
    def parse(cls, text: str) -> "MonthPeriod":
        """Parse ``YYYY_MM`` (or legacy ``YYYY_M``) into a month period."""
        year, month = _match_components(_MONTH_PATTERN, text, cls.kind)
        return cls(year, month)

    @classmethod
    def resolve_current(
        cls, today: date, published_day: int = DEFAULT_PUBLISHED_DAY
    ) -> "MonthPeriod":
        """Resolve the latest month expected to be published.

        If today is on or after ``published_day`` the previous month is
        targeted, otherwise the month before the previous one.
        """
        lag = 1 if today.day >= published_day else 2
        year, month_index = divmod(today.year * 12 + today.month - 1 - lag, 12)
        return cls(year, month_index + 1)

    @property
    def ordinal(self) -> int:
        return self.year * 100 + self.month

    def fields(self) -> dict[str, int]:
        return {"year": self.year, "month": self.month}

    def replacement_key(self) -> dict[str, int]:
        return {"year": self.year, "month": self.month}

    def __str__(self) -> str:
        return f"{self.year:04d}{PERIOD_SEPARATOR}{self.month:02d}"


@dataclass(frozen=True, order=True)
class DayPeriod:
    """Single calendar day period.

    Day periods usually carry provisional month-to-date figures, so
    ``replacement_key`` points at the enclosing month.
    """

    year: int
    month: int
    day: int
    kind: ClassVar[str] = "day"

    def __post_init__(self) -> None:
        _check_year(self.year)
        try:
            date(self.year, self.month, self.day)
        except ValueError as error:
            raise HarvestPeriodError(
                f"Invalid day {self.year}-{self.month}-{self.day}: {error}."
            ) from error

    @classmethod
    def parse(cls, text: str) -> "DayPeriod":
        """Parse ``YYYY_MM_DD`` (or legacy ``YYYY_M_D``) into a day period."""
        year, month, day = _match_components(_DAY_PATTERN, text, cls.kind)
        return cls(year, month, day)

    @classmethod
    def from_date(cls, value: date) -> "DayPeriod":
        return cls(value.year, value.month, value.day)

    @classmethod
    def resolve_current(
        cls, today: date, published_day: int = DEFAULT_PUBLISHED_DAY
    ) -> "DayPeriod":
        """Resolve yesterday; ``published_day`` does not apply to days."""
        return cls.from_date(today - timedelta(days=1))

    def as_date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def ordinal(self) -> int:
        return self.year * 10000 + self.month * 100 + self.day

    def fields(self) -> dict[str, int]:
        return {"year": self.year, "month": self.month, "day": self.day}

    def replacement_key(self) -> dict[str, int]:
        return {"year": self.year, "month": self.month}

    def __str__(self) -> str:
        return (
            f"{self.year:04d}{PERIOD_SEPARATOR}{self.month:02d}"
            f"{PERIOD_SEPARATOR}{self.day:02d}"
        )


PeriodId = Union[DayPeriod, MonthPeriod, QuarterPeriod, YearPeriod]
PeriodType = Union[type[DayPeriod], type[MonthPeriod], type[QuarterPeriod], type[YearPeriod]]

_PERIOD_TYPES: dict[str, PeriodType] = {
    DayPeriod.kind: DayPeriod,
    MonthPeriod.kind: MonthPeriod,
    QuarterPeriod.kind: QuarterPeriod,
    YearPeriod.kind: YearPeriod,
}


def period_type_for(kind: str) -> PeriodType:
    """Return the period class for a kind name.

    Args:
        kind: One of ``day``, ``month``, ``quarter``, ``year``.

    Returns:
        Period class implementing ``parse`` and ``resolve_current``.

    Raises:
        HarvestPeriodError: If kind is unknown.
    """
    period_type = _PERIOD_TYPES.get(kind)
    if period_type is None:
        supported = ", ".join(sorted(_PERIOD_TYPES))
        raise HarvestPeriodError(f"Unsupported period kind '{kind}'. Use one of: {supported}.")
    return period_type


def _match_components(pattern: re.Pattern[str], text: str, kind: str) -> tuple[int, ...]:
    match = pattern.match(text.strip())
    if match is None:
        raise HarvestPeriodError(f"Cannot parse '{text}' as a {kind} period.")
    return tuple(int(group) for group in match.groups())


def _check_year(year: int) -> None:
    if not 1 <= year <= 9999:
        raise HarvestPeriodError(f"Invalid year {year}: expected 1-9999.")
