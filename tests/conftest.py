"""Shared test fixtures."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from revo.config import AccountConfig, RevoConfig
from revo.models import Reflection, WeeklySummary
from revo.store import RevoStore
from revo.summarizer import Summarizer

KL = ZoneInfo("Asia/Kuala_Lumpur")
UID = "user-1"


@pytest.fixture
def store() -> RevoStore:
    """In-memory SQLite store."""
    s = RevoStore(":memory:")
    return s


@pytest.fixture
def config(tmp_path) -> RevoConfig:
    """Test config with temp DB path and a signed-in account."""
    return RevoConfig(
        db_path=tmp_path / "test.db",
        timezone=KL,
        account=AccountConfig(uid=UID),
    )


@pytest.fixture
def summarizer() -> MagicMock:
    """Summarizer double returning canned model output."""
    mock = MagicMock(spec=Summarizer)
    mock.summarize_week.return_value = {
        "summary": "A focused week.",
        "wins": ["Shipped the release", "  "],
        "challenges": ["Sleep"],
        "nextWeek": ["Rest more"],
    }
    mock.summarize_month.return_value = {
        "summary": "A steady month.",
        "patterns": "Late nights before deadlines.",
        "emotionalTrend": "Calmer towards the end.",
        "roleTrend": "More time as a parent.",
        "productivityTrend": "Momentum built mid-month.",
        "actionSteps": ["Plan Mondays", "Protect sleep", 42],
    }
    mock.suggest.return_value = {
        "Parent": {"title": "Be present", "suggestion": "Put the phone away at dinner."},
        "Founder": "Not applicable",
    }
    return mock


def make_reflection(
    text: str = "Today I shipped the release.\nFelt good.",
    created_at: datetime | None = None,
    uid: str = UID,
    **kwargs,
) -> Reflection:
    return Reflection(
        uid=uid,
        text=text,
        created_at=created_at or datetime(2026, 2, 18, 2, 0, tzinfo=UTC),
        **kwargs,
    )


def make_weekly(week_id: str, summary: str = "Week summary") -> WeeklySummary:
    return WeeklySummary(
        week_id=week_id,
        week_start=datetime(2026, 1, 1, tzinfo=UTC),
        summary=summary,
        wins=("win",),
        challenges=(),
        next_week=("next",),
        created_at=datetime(2026, 3, 1, tzinfo=UTC),
    )
