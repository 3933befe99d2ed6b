"""Period arithmetic - week/month ids, completeness, month coverage."""

from __future__ import annotations

from revo.periods.calendar import (
    PeriodRange,
    format_week_label,
    localize,
    month_id_of,
    range_of_month_id,
    range_of_week_id,
    start_of_month,
    start_of_week,
    week_id_of,
)
from revo.periods.completion import is_complete
from revo.periods.coverage import Coverage, reconcile, weeks_covering_month

__all__ = [
    "Coverage",
    "PeriodRange",
    "format_week_label",
    "localize",
    "is_complete",
    "month_id_of",
    "range_of_month_id",
    "range_of_week_id",
    "reconcile",
    "start_of_month",
    "start_of_week",
    "week_id_of",
    "weeks_covering_month",
]
