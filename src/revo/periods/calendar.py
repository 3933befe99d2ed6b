"""Calendar arithmetic: instants to local days, ISO week ids and month ids.

Every other module goes through these functions; nothing else computes week
or month boundaries. Timezone offsets and DST come from ``zoneinfo``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from revo.errors import MalformedPeriodId

WEEK_ID_RE = re.compile(r"([0-9]{4})-W([0-9]{2})")
MONTH_ID_RE = re.compile(r"([0-9]{4})-([0-9]{2})")

ONE_MS = timedelta(milliseconds=1)


@dataclass(frozen=True)
class PeriodRange:
    """Half-open range [start, end_exclusive) between two local midnights."""

    start: datetime
    end_exclusive: datetime

    @property
    def inclusive_end(self) -> datetime:
        """Last representable millisecond of the period (e.g. Sunday 23:59:59.999)."""
        return (self.end_utc - ONE_MS).astimezone(self.end_exclusive.tzinfo)

    @property
    def start_utc(self) -> datetime:
        return self.start.astimezone(UTC)

    @property
    def end_utc(self) -> datetime:
        return self.end_exclusive.astimezone(UTC)

    def contains(self, instant: datetime) -> bool:
        instant_utc = localize(instant, UTC)
        return self.start_utc <= instant_utc < self.end_utc


def localize(instant: datetime, tz: tzinfo) -> datetime:
    """Project an instant onto the wall clock of ``tz``. Naive input is taken as UTC."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(tz)


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """Instant of 00:00 local on ``day``.

    Round-tripping through UTC resolves a skipped midnight (DST starting at
    00:00) to the first wall time that actually exists.
    """
    naive = datetime.combine(day, time.min)
    return naive.replace(tzinfo=tz).astimezone(UTC).astimezone(tz)


def start_of_week(instant: datetime, tz: tzinfo) -> datetime:
    """Local Monday 00:00 of the week containing ``instant``."""
    local = localize(instant, tz)
    monday = local.date() - timedelta(days=local.weekday())
    return local_midnight(monday, tz)


def start_of_month(instant: datetime, tz: tzinfo) -> datetime:
    local = localize(instant, tz)
    return local_midnight(local.date().replace(day=1), tz)


def week_id_of_date(day: date) -> str:
    year, week, _ = day.isocalendar()
    return f"{year:04d}-W{week:02d}"


def week_id_of(instant: datetime, tz: tzinfo) -> str:
    """ISO-8601 week id (``YYYY-Www``) of the local date of ``instant``.

    The week belongs to the year holding its Thursday, so 2018-12-31 is
    2019-W01 and 2021-01-01 is 2020-W53.
    """
    return week_id_of_date(localize(instant, tz).date())


def month_id_of(instant: datetime, tz: tzinfo) -> str:
    local = localize(instant, tz)
    return f"{local.year:04d}-{local.month:02d}"


def iso_weeks_in_year(year: int) -> int:
    """52 or 53. December 28th always falls in the last ISO week."""
    return date(year, 12, 28).isocalendar()[1]


def parse_week_id(week_id: str) -> tuple[int, int]:
    """Validate a week id and return ``(iso_year, week)``.

    Raises:
        MalformedPeriodId: bad pattern, week 00, or a week past the year's last.
    """
    match = WEEK_ID_RE.fullmatch(week_id) if isinstance(week_id, str) else None
    if match is None:
        msg = f"Invalid weekId: {week_id!r} (expected YYYY-Www)"
        raise MalformedPeriodId(msg)

    year, week = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= week <= iso_weeks_in_year(year):
        msg = f"Invalid weekId: {week_id!r} (week out of range for {year})"
        raise MalformedPeriodId(msg)
    return year, week


def parse_month_id(month_id: str) -> tuple[int, int]:
    """Validate a month id and return ``(year, month)``."""
    match = MONTH_ID_RE.fullmatch(month_id) if isinstance(month_id, str) else None
    if match is None:
        msg = f"Invalid month: {month_id!r} (expected YYYY-MM)"
        raise MalformedPeriodId(msg)

    year, month = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month <= 12:
        msg = f"Invalid month: {month_id!r} (month out of range)"
        raise MalformedPeriodId(msg)
    return year, month


def monday_of_week_id(week_id: str) -> date:
    year, week = parse_week_id(week_id)
    return date.fromisocalendar(year, week, 1)


def range_of_week_id(week_id: str, tz: tzinfo) -> PeriodRange:
    """Inverse of ``week_id_of``: local Monday 00:00 to the next Monday 00:00."""
    monday = monday_of_week_id(week_id)
    try:
        next_monday = monday + timedelta(days=7)
    except OverflowError:
        msg = f"Invalid weekId: {week_id!r} (out of supported range)"
        raise MalformedPeriodId(msg) from None
    return PeriodRange(start=local_midnight(monday, tz), end_exclusive=local_midnight(next_monday, tz))


def range_of_month_id(month_id: str, tz: tzinfo) -> PeriodRange:
    """Local first-of-month 00:00 to first-of-next-month 00:00."""
    year, month = parse_month_id(month_id)
    first = date(year, month, 1)
    try:
        next_first = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    except ValueError:
        msg = f"Invalid month: {month_id!r} (out of supported range)"
        raise MalformedPeriodId(msg) from None
    return PeriodRange(start=local_midnight(first, tz), end_exclusive=local_midnight(next_first, tz))


def shift_week_id(week_id: str, weeks: int) -> str:
    return week_id_of_date(monday_of_week_id(week_id) + timedelta(weeks=weeks))


def shift_month_id(month_id: str, months: int) -> str:
    year, month = parse_month_id(month_id)
    index = year * 12 + (month - 1) + months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def iter_local_days(period_range: PeriodRange) -> Iterator[date]:
    """Yield each local calendar date in the range, end exclusive."""
    current = period_range.start.date()
    end = period_range.end_exclusive.date()
    while current < end:
        yield current
        current += timedelta(days=1)


def format_week_label(week_id: str) -> str:
    """Human label, e.g. 'Week 7 (12–18 Feb)' or 'Week 5 (29 Jan–4 Feb)'."""
    _, week = parse_week_id(week_id)
    monday = monday_of_week_id(week_id)
    sunday = monday + timedelta(days=6)

    if monday.month == sunday.month:
        span = f"{monday.day}–{sunday.day} {sunday:%b}"
    else:
        span = f"{monday.day} {monday:%b}–{sunday.day} {sunday:%b}"
    return f"Week {week} ({span})"
