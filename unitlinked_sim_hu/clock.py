"""Calendar arithmetic for policy terms: month-clamped anniversaries and policy years."""

import calendar
import logging
import math
import re
from bisect import bisect_left
from dataclasses import dataclass
from datetime import date, timedelta

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_YEAR = 2026
MIN_REFERENCE_YEAR = 1970
MAX_POLICY_YEARS = 300
DAYS_PER_YEAR = 365

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up; non-finite input gives 0."""
    if not math.isfinite(value):
        return 0
    return math.floor(value + 0.5)


def parse_iso_date(value: str | None) -> date | None:
    """Parse a strict YYYY-MM-DD string. Returns None for anything else."""
    if not value:
        return None
    m = _ISO_DATE_RE.match(value.strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def format_iso_date(value: date) -> str:
    return value.isoformat()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months_clamped(base: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length.

    2024-01-31 + 1 month → 2024-02-29, 2023-01-31 + 1 month → 2023-02-28.
    """
    target = base.month - 1 + months
    year = base.year + target // 12
    month = target % 12 + 1
    return date(year, month, min(base.day, days_in_month(year, month)))


def add_duration(start: date, unit: str, value: float) -> date:
    """End date (exclusive) of a term given in years, months or days."""
    safe = max(0, round_half_up(value))
    if unit == "year":
        return add_months_clamped(start, safe * 12)
    if unit == "month":
        return add_months_clamped(start, safe)
    return start + timedelta(days=safe)


def diff_days(start: date, end_exclusive: date) -> int:
    return max(0, (end_exclusive - start).days)


def months_between(start: date, current: date) -> int:
    """Whole calendar months from start's month to current's month."""
    return (current.year * 12 + current.month) - (start.year * 12 + start.month)


def resolve_start_date(
    calculation_mode: str, start_date: str | None, reference_year: int | None
) -> date:
    """Start date of the policy term.

    Calendar mode uses the explicit start date; otherwise, or when the
    date cannot be parsed, January 1 of the reference year.
    """
    year = DEFAULT_REFERENCE_YEAR
    if reference_year is not None and math.isfinite(reference_year):
        year = max(MIN_REFERENCE_YEAR, round_half_up(reference_year))
    parsed = parse_iso_date(start_date)
    if calculation_mode == "calendar":
        if parsed is not None:
            return parsed
        logger.debug("Unparseable start date %r, falling back to %d-01-01", start_date, year)
    return date(year, 1, 1)


def format_partial_period_label(days: int) -> str:
    """Hungarian label for a trailing partial period, e.g. '+3 hónap és 5 nap'."""
    safe_days = max(1, days)
    month_length = DAYS_PER_YEAR / 12
    months = math.floor(safe_days / month_length)
    rem_days = round_half_up(safe_days - months * month_length)
    # 30.4-day months can round the remainder up to a full month
    if rem_days >= round_half_up(month_length):
        months += 1
        rem_days = 0
    if months <= 0:
        return f"+{safe_days} nap"
    if rem_days <= 0:
        return f"+{months} hónap"
    return f"+{months} hónap és {rem_days} nap"


@dataclass(frozen=True)
class PolicyPeriod:
    """Position of one simulated day inside its policy year."""

    year: int
    day_of_year: int
    year_end: int
    length: int
    is_full_year: bool


@dataclass(frozen=True)
class PolicyClock:
    """Day offsets of the policy term, with month-clamped anniversaries.

    ``year_end_offsets[i]`` is the day offset of the last day of policy year
    ``i + 1``. Days after the last full anniversary form a partial final
    period.
    """

    start: date
    total_days: int
    year_end_offsets: tuple[int, ...]

    @classmethod
    def from_term(cls, start: date, unit: str, value: float) -> "PolicyClock":
        total_days = diff_days(start, add_duration(start, unit, value))
        offsets: list[int] = []
        for y in range(1, MAX_POLICY_YEARS + 1):
            anniversary_offset = diff_days(start, add_months_clamped(start, y * 12))
            if anniversary_offset > total_days:
                break
            offsets.append(anniversary_offset - 1)
        return cls(start=start, total_days=total_days, year_end_offsets=tuple(offsets))

    @property
    def full_years(self) -> int:
        return len(self.year_end_offsets)

    @property
    def has_partial_final_period(self) -> bool:
        last_full_end = self.year_end_offsets[-1] if self.year_end_offsets else -1
        return self.total_days - (last_full_end + 1) > 0

    @property
    def total_years(self) -> int:
        return self.full_years + (1 if self.has_partial_final_period else 0)

    @property
    def duration_years(self) -> int:
        return max(1, math.ceil(self.total_days / DAYS_PER_YEAR))

    def date_at(self, day: int) -> date:
        return self.start + timedelta(days=day)

    def period_for_day(self, day: int) -> PolicyPeriod:
        index = bisect_left(self.year_end_offsets, day)
        prev_end = self.year_end_offsets[index - 1] if index > 0 else -1
        is_full = index < self.full_years
        year_end = self.year_end_offsets[index] if is_full else self.total_days - 1
        return PolicyPeriod(
            year=index + 1,
            day_of_year=day - prev_end,
            year_end=year_end,
            length=max(1, year_end - prev_end),
            is_full_year=is_full,
        )

    def is_partial_year(self, year: int) -> bool:
        return self.has_partial_final_period and year == self.total_years
