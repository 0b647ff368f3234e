"""Unit tests for reporting period identities."""

from __future__ import annotations

from datetime import date

import pytest

from core.errors import HarvestPeriodError
from core.periods import DayPeriod, MonthPeriod, QuarterPeriod, YearPeriod, period_type_for


def test_month_resolves_previous_month_after_publication_day() -> None:
    """Month period should target the previous month once published."""
    assert MonthPeriod.resolve_current(date(2024, 3, 15), published_day=10) == MonthPeriod(2024, 2)


def test_month_resolves_two_months_back_before_publication_day() -> None:
    """Month period should lag one more month before the cutoff day."""
    assert MonthPeriod.resolve_current(date(2024, 3, 5), published_day=10) == MonthPeriod(2024, 1)


def test_month_resolution_crosses_year_boundary() -> None:
    """January runs should target December of the previous year."""
    assert MonthPeriod.resolve_current(date(2024, 1, 20)) == MonthPeriod(2023, 12)
    assert MonthPeriod.resolve_current(date(2024, 2, 1), published_day=2) == MonthPeriod(2023, 12)


def test_quarter_resolves_previous_quarter() -> None:
    """Quarter period should target the quarter before the current one."""
    assert QuarterPeriod.resolve_current(date(2024, 5, 2)) == QuarterPeriod(2024, 1)
    assert QuarterPeriod.resolve_current(date(2024, 2, 10)) == QuarterPeriod(2023, 4)


def test_year_and_day_resolve_previous_unit() -> None:
    """Year and day periods should target the previous year and yesterday."""
    assert YearPeriod.resolve_current(date(2024, 6, 1)) == YearPeriod(2023)
    assert DayPeriod.resolve_current(date(2024, 3, 1)) == DayPeriod(2024, 2, 29)


def test_quarter_and_year_apply_publication_day_in_first_month() -> None:
    """Quarters and years should lag one more unit before the publication day."""
    assert QuarterPeriod.resolve_current(date(2024, 4, 3), published_day=5) == QuarterPeriod(
        2023, 4
    )
    assert QuarterPeriod.resolve_current(date(2024, 5, 3), published_day=5) == QuarterPeriod(
        2024, 1
    )
    assert YearPeriod.resolve_current(date(2024, 1, 3), published_day=5) == YearPeriod(2022)
    assert YearPeriod.resolve_current(date(2024, 1, 5), published_day=5) == YearPeriod(2023)


@pytest.mark.parametrize(
    ("period", "text"),
    [
        (YearPeriod(2023), "2023"),
        (QuarterPeriod(2023, 4), "2023_Q4"),
        (MonthPeriod(2023, 1), "2023_01"),
        (DayPeriod(2023, 1, 5), "2023_01_05"),
    ],
)
def test_string_form_round_trips(period, text: str) -> None:
    """Canonical strings should parse back to an equal period."""
    assert str(period) == text
    assert type(period).parse(text) == period


def test_parse_accepts_legacy_unpadded_forms() -> None:
    """Older archive names without zero padding should stay readable."""
    assert MonthPeriod.parse("2023_1") == MonthPeriod(2023, 1)
    assert DayPeriod.parse("2023_1_5") == DayPeriod(2023, 1, 5)


def test_ordering_matches_string_and_ordinal_order() -> None:
    """Period order, canonical string order, and ordinal order should agree."""
    periods = [MonthPeriod(2024, 1), MonthPeriod(2023, 12), MonthPeriod(2023, 2)]

    ordered = sorted(periods)

    assert ordered == sorted(periods, key=str)
    assert ordered == sorted(periods, key=lambda period: period.ordinal)
    assert MonthPeriod(2023, 12) < MonthPeriod(2024, 1) <= MonthPeriod(2024, 1)


def test_comparing_different_variants_raises_type_error() -> None:
    """Period variants should never compare with each other."""
    with pytest.raises(TypeError):
        _ = MonthPeriod(2024, 1) < YearPeriod(2024)


@pytest.mark.parametrize("text", ["2024_13", "2024-01", "24_01", "2024_Q5", "2023_02_30"])
def test_invalid_period_text_raises(text: str) -> None:
    """Malformed or out-of-range period text should fail."""
    period_type = MonthPeriod
    if "Q" in text:
        period_type = QuarterPeriod
    elif text.count("_") == 2:
        period_type = DayPeriod

    with pytest.raises(HarvestPeriodError):
        period_type.parse(text)


def test_day_replacement_key_is_month_bucket() -> None:
    """Day periods should replace rows of their whole month."""
    assert DayPeriod(2024, 3, 5).replacement_key() == {"year": 2024, "month": 3}
    assert DayPeriod(2024, 3, 5).fields() == {"year": 2024, "month": 3, "day": 5}


def test_period_type_for_rejects_unknown_kind() -> None:
    """Unknown period kinds should raise a period error."""
    assert period_type_for("quarter") is QuarterPeriod
    with pytest.raises(HarvestPeriodError):
        period_type_for("week")
