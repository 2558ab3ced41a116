"""Tests for calendar arithmetic and the policy clock."""

from datetime import date

import pytest
from unitlinked_sim_hu import PolicyClock
from unitlinked_sim_hu.clock import (
    add_months_clamped,
    format_partial_period_label,
    months_between,
    parse_iso_date,
    resolve_start_date,
    round_half_up,
)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0.5, 1),
            (1.5, 2),
            (2.5, 3),
            (-0.5, 0),
            (2.49, 2),
            (float("nan"), 0),
            (float("inf"), 0),
        ],
    )
    def test_values(self, value, expected):
        assert round_half_up(value) == expected


class TestParseIsoDate:
    def test_valid(self):
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)

    @pytest.mark.parametrize("value", ["2023-02-29", "2024-3-1", "abc", "", None, "2024-13-01"])
    def test_invalid_returns_none(self, value):
        assert parse_iso_date(value) is None


class TestAddMonthsClamped:
    @pytest.mark.parametrize(
        "base, months, expected",
        [
            (date(2024, 1, 31), 1, date(2024, 2, 29)),
            (date(2023, 1, 31), 1, date(2023, 2, 28)),
            (date(2024, 2, 29), 12, date(2025, 2, 28)),
            (date(2026, 3, 15), 10, date(2027, 1, 15)),
            (date(2026, 1, 1), 0, date(2026, 1, 1)),
        ],
    )
    def test_end_of_month_clamping(self, base, months, expected):
        assert add_months_clamped(base, months) == expected


class TestMonthsBetween:
    def test_counts_calendar_months(self):
        assert months_between(date(2026, 1, 31), date(2026, 3, 1)) == 2

    def test_same_month(self):
        assert months_between(date(2026, 5, 1), date(2026, 5, 31)) == 0


class TestResolveStartDate:
    def test_calendar_mode_uses_explicit_date(self):
        assert resolve_start_date("calendar", "2024-05-05", None) == date(2024, 5, 5)

    def test_simple_mode_ignores_explicit_date(self):
        assert resolve_start_date("simple", "2024-05-05", None) == date(2026, 1, 1)

    def test_unparseable_date_falls_back(self):
        assert resolve_start_date("calendar", "05/05/2024", None) == date(2026, 1, 1)

    def test_reference_year_floor(self):
        assert resolve_start_date("simple", None, 1900) == date(1970, 1, 1)

    def test_reference_year(self):
        assert resolve_start_date("simple", None, 2030) == date(2030, 1, 1)


class TestPolicyClock:
    def test_whole_years(self):
        clock = PolicyClock.from_term(date(2026, 1, 1), "year", 2)
        assert clock.total_days == 730
        assert clock.year_end_offsets == (364, 729)
        assert clock.full_years == 2
        assert not clock.has_partial_final_period
        assert clock.total_years == 2

    def test_leap_year_has_366_days(self):
        clock = PolicyClock.from_term(date(2024, 1, 1), "year", 1)
        assert clock.total_days == 366
        assert clock.year_end_offsets == (365,)
        assert clock.period_for_day(365).length == 366

    def test_partial_final_period(self):
        """18 months = one full year plus a 181-day trailing period."""
        clock = PolicyClock.from_term(date(2026, 1, 1), "month", 18)
        assert clock.total_days == 546
        assert clock.full_years == 1
        assert clock.has_partial_final_period
        assert clock.total_years == 2
        period = clock.period_for_day(545)
        assert period.year == 2
        assert not period.is_full_year
        assert period.day_of_year == 181
        assert clock.is_partial_year(2)
        assert not clock.is_partial_year(1)

    def test_day_unit(self):
        clock = PolicyClock.from_term(date(2026, 1, 1), "day", 40)
        assert clock.total_days == 40
        assert clock.full_years == 0
        assert clock.total_years == 1

    def test_zero_duration(self):
        clock = PolicyClock.from_term(date(2026, 1, 1), "year", 0)
        assert clock.total_days == 0
        assert clock.total_years == 0

    def test_period_boundaries(self):
        clock = PolicyClock.from_term(date(2026, 1, 1), "year", 3)
        assert clock.period_for_day(0).year == 1
        assert clock.period_for_day(0).day_of_year == 1
        assert clock.period_for_day(364).year == 1
        assert clock.period_for_day(365).year == 2
        assert clock.period_for_day(365).day_of_year == 1

    def test_month_end_start_anniversaries(self):
        clock = PolicyClock.from_term(date(2024, 1, 31), "month", 13)
        # 2024-01-31 + 12 months = 2025-01-31, + 13 months = 2025-02-28
        assert clock.year_end_offsets == ((date(2025, 1, 31) - date(2024, 1, 31)).days - 1,)
        assert clock.total_days == (date(2025, 2, 28) - date(2024, 1, 31)).days


class TestPartialPeriodLabel:
    @pytest.mark.parametrize(
        "days, expected",
        [
            (5, "+5 nap"),
            (31, "+1 hónap és 1 nap"),
            (61, "+2 hónap"),
            (0, "+1 nap"),
        ],
    )
    def test_labels(self, days, expected):
        assert format_partial_period_label(days) == expected
