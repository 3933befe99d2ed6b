"""Lifecycle of weekly and monthly summaries.

For a (uid, period id, mode) the machine answers with one of:

    exists(record)           a summary is already stored; never recomputed
    blocked(reason)          period still running, or nothing to summarize
    ready(included, missing) mode=check and generation would be allowed
    generated(record)        mode=generate; summarizer ran and the record was stored

Reads strictly precede the summarizer call, which strictly precedes the
write. The write is create-if-absent, so a concurrent loser sees ``exists``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import Enum
from typing import Any

from revo.errors import Unauthorized
from revo.models import MonthlySummary, PeriodType, WeeklySummary
from revo.periods import (
    is_complete,
    range_of_month_id,
    range_of_week_id,
    reconcile,
    weeks_covering_month,
)
from revo.store import RevoStore
from revo.summarizer import Summarizer

REASON_NOT_COMPLETE = "period not fully completed"
REASON_NO_DATA = "no data available"

SummaryRecord = WeeklySummary | MonthlySummary


class SummaryState(str, Enum):
    BLOCKED = "blocked"
    READY = "ready"
    EXISTS = "exists"
    GENERATED = "generated"


class Mode(str, Enum):
    CHECK = "check"
    GENERATE = "generate"


@dataclass(frozen=True)
class SummaryStatus:
    state: SummaryState
    period_type: PeriodType
    period_id: str
    reason: str = ""
    record: SummaryRecord | None = None
    included: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()

    @property
    def has_record(self) -> bool:
        return self.state in (SummaryState.EXISTS, SummaryState.GENERATED)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.state.value}
        if self.state is SummaryState.BLOCKED:
            body["reason"] = self.reason
        elif self.state is SummaryState.READY:
            body["weeksIncluded"] = list(self.included)
            body["weeksMissing"] = list(self.missing)
        elif self.record is not None:
            body["data"] = self.record.to_dict()
        return body


def _require_uid(uid: str | None) -> str:
    if not uid:
        msg = "A verified uid is required"
        raise Unauthorized(msg)
    return uid


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SummaryStatusMachine:
    def __init__(
        self,
        store: RevoStore,
        summarizer: Summarizer,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._summarizer = summarizer
        self._clock = clock

    def weekly(
        self,
        uid: str,
        week_id: str,
        tz: tzinfo,
        mode: Mode | str = Mode.CHECK,
    ) -> SummaryStatus:
        """Status of a weekly summary; with mode=generate, create it if allowed.

        Raises:
            Unauthorized: empty uid.
            MalformedPeriodId: invalid week id (before any I/O).
            SummarizationFailed: summarizer error; nothing persisted.
        """
        uid = _require_uid(uid)
        mode = Mode(mode)
        week_range = range_of_week_id(week_id, tz)
        now = self._clock()

        def status(state: SummaryState, **kwargs: Any) -> SummaryStatus:
            return SummaryStatus(state=state, period_type=PeriodType.WEEK, period_id=week_id, **kwargs)

        existing = self._store.get_weekly_summary(uid, week_id)
        if existing is not None:
            return status(SummaryState.EXISTS, record=existing)

        if not is_complete(week_range, now):
            return status(SummaryState.BLOCKED, reason=REASON_NOT_COMPLETE)

        reflections = self._store.get_reflections(uid, week_range.start, week_range.end_exclusive)
        if not reflections:
            return status(SummaryState.BLOCKED, reason=REASON_NO_DATA)

        if mode is Mode.CHECK:
            return status(SummaryState.READY)

        result = self._summarizer.summarize_week([r.to_payload() for r in reflections])
        record = WeeklySummary.from_model_result(
            week_id=week_id,
            week_start=week_range.start_utc,
            result=result,
            created_at=now,
        )

        if not self._store.create_weekly_summary(uid, record):
            winner = self._store.get_weekly_summary(uid, week_id)
            return status(SummaryState.EXISTS, record=winner)
        return status(SummaryState.GENERATED, record=record)

    def monthly(
        self,
        uid: str,
        month_id: str,
        tz: tzinfo,
        mode: Mode | str = Mode.CHECK,
    ) -> SummaryStatus:
        """Status of a monthly summary; with mode=generate, create it if allowed.

        Blocks only when none of the covering weeks has a weekly summary;
        partially covered months proceed and the gaps go to the model as
        ``weeksMissing``.
        """
        uid = _require_uid(uid)
        mode = Mode(mode)
        month_range = range_of_month_id(month_id, tz)
        now = self._clock()

        def status(state: SummaryState, **kwargs: Any) -> SummaryStatus:
            return SummaryStatus(state=state, period_type=PeriodType.MONTH, period_id=month_id, **kwargs)

        existing = self._store.get_monthly_summary(uid, month_id)
        if existing is not None:
            return status(SummaryState.EXISTS, record=existing)

        if not is_complete(month_range, now):
            return status(SummaryState.BLOCKED, reason=REASON_NOT_COMPLETE)

        expected = weeks_covering_month(month_range)
        weekly = self._store.get_weekly_summaries(uid, expected)
        coverage = reconcile(expected, (summary.week_id for summary in weekly))
        if not coverage.included:
            return status(SummaryState.BLOCKED, reason=REASON_NO_DATA)

        if mode is Mode.CHECK:
            return status(SummaryState.READY, included=coverage.included, missing=coverage.missing)

        result = self._summarizer.summarize_month(
            [{"weekId": s.week_id, "summary": s.summary} for s in weekly],
            list(coverage.missing),
        )
        record = MonthlySummary.from_model_result(
            month_id=month_id,
            uid=uid,
            result=result,
            created_at=now,
            weeks_included=coverage.included,
            weeks_missing=coverage.missing,
        )

        if not self._store.create_monthly_summary(record):
            winner = self._store.get_monthly_summary(uid, month_id)
            return status(SummaryState.EXISTS, record=winner)
        return status(
            SummaryState.GENERATED,
            record=record,
            included=coverage.included,
            missing=coverage.missing,
        )
