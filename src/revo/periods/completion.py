"""Period completeness: a week or month may be summarized once it has ended."""

from __future__ import annotations

from datetime import UTC, datetime

from revo.periods.calendar import PeriodRange, localize


def is_complete(period_range: PeriodRange, now: datetime) -> bool:
    """True once ``now`` has reached the exclusive end of the period.

    Compared as absolute instants, so wall-clock folds around DST changes
    cannot make a running period look finished.
    """
    return localize(now, UTC) >= period_range.end_utc
