"""Month coverage: which ISO weeks touch a month, and which have summaries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from revo.periods.calendar import PeriodRange, iter_local_days, week_id_of_date


@dataclass(frozen=True)
class Coverage:
    """Order-preserving partition of a month's expected weeks."""

    included: tuple[str, ...]
    missing: tuple[str, ...]


def weeks_covering_month(month_range: PeriodRange) -> tuple[str, ...]:
    """Distinct week ids of every local day in the month, in first-seen order.

    Weeks straddling either month boundary count as covering, so a month
    spans 4 to 6 ids.
    """
    seen = dict.fromkeys(week_id_of_date(day) for day in iter_local_days(month_range))
    return tuple(seen)


def reconcile(expected_week_ids: Iterable[str], persisted_week_ids: Iterable[str]) -> Coverage:
    """Split ``expected_week_ids`` by presence in ``persisted_week_ids``."""
    present = set(persisted_week_ids)
    ordered = dict.fromkeys(expected_week_ids)
    included = tuple(week_id for week_id in ordered if week_id in present)
    missing = tuple(week_id for week_id in ordered if week_id not in present)
    return Coverage(included=included, missing=missing)
