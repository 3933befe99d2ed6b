"""Core data models: reflections, periodic summaries, dashboard views."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self

TITLE_MAX_LENGTH = 60


class PeriodType(str, Enum):
    WEEK = "week"
    MONTH = "month"


def normalize_string_list(value: Any) -> list[str]:
    """Keep only non-empty stripped strings; anything that isn't a list becomes []."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def to_utc_iso(dt: datetime) -> str:
    """Normalize a datetime to a UTC ISO string; naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def derive_title(text: str, title: str | None = None) -> str:
    """Use the stored title, else the first line of the text (truncated)."""
    if title and title.strip():
        return title.strip()
    first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
    if len(first_line) <= TITLE_MAX_LENGTH:
        return first_line
    return first_line[: TITLE_MAX_LENGTH - 1].rstrip() + "…"


@dataclass(frozen=True)
class RoleSuggestion:
    title: str
    suggestion: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "suggestion": self.suggestion}


Suggestions = dict[str, RoleSuggestion | None]


@dataclass
class Reflection:
    """A single journal entry owned by one user."""

    uid: str
    text: str
    created_at: datetime
    id: str = ""
    title: str = ""
    updated_at: datetime | None = None
    roles_involved: list[str] = field(default_factory=list)
    suggestions: Suggestions | None = None
    # None = never explicitly set; resolved by suggestions.can_regenerate
    can_regenerate: bool | None = None
    is_public: bool = False
    is_anonymous: bool = False
    likes: int = 0
    liked_by: dict[str, bool] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Shape sent to the weekly summarizer."""
        return {
            "id": self.id,
            "createdAt": to_utc_iso(self.created_at),
            "title": self.title,
            "text": self.text,
            "rolesInvolved": list(self.roles_involved),
            "aiSuggestions": (
                {
                    role: s.to_dict() if s else None
                    for role, s in self.suggestions.items()
                }
                if self.suggestions
                else None
            ),
        }


@dataclass(frozen=True)
class PublicReflection:
    """Read-only view of a shared reflection; hides the author when anonymous."""

    id: str
    title: str
    text: str
    created_at: datetime
    roles_involved: tuple[str, ...]
    is_anonymous: bool
    author_uid: str | None
    likes: int
    suggestions: Suggestions | None = None
    liked_at: datetime | None = None

    @classmethod
    def from_reflection(cls, reflection: Reflection, liked_at: datetime | None = None) -> Self:
        return cls(
            id=reflection.id,
            title=derive_title(reflection.text, reflection.title),
            text=reflection.text,
            created_at=reflection.created_at,
            roles_involved=tuple(reflection.roles_involved),
            is_anonymous=reflection.is_anonymous,
            author_uid=None if reflection.is_anonymous else reflection.uid,
            likes=reflection.likes,
            suggestions=reflection.suggestions,
            liked_at=liked_at,
        )


@dataclass(frozen=True)
class WeeklySummary:
    """AI narrative for one ISO week. Created once, never mutated."""

    week_id: str
    week_start: datetime
    summary: str
    wins: tuple[str, ...]
    challenges: tuple[str, ...]
    next_week: tuple[str, ...]
    created_at: datetime

    @classmethod
    def from_model_result(
        cls,
        week_id: str,
        week_start: datetime,
        result: Any,
        created_at: datetime,
    ) -> Self:
        """Coerce an untrusted model response; never raises on bad shapes."""
        data = result if isinstance(result, dict) else {}
        return cls(
            week_id=week_id,
            week_start=week_start,
            summary=_as_text(data.get("summary")),
            wins=tuple(normalize_string_list(data.get("wins"))),
            challenges=tuple(normalize_string_list(data.get("challenges"))),
            next_week=tuple(normalize_string_list(data.get("nextWeek"))),
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekId": self.week_id,
            "weekStart": to_utc_iso(self.week_start),
            "summary": self.summary,
            "wins": list(self.wins),
            "challenges": list(self.challenges),
            "nextWeek": list(self.next_week),
            "createdAt": to_utc_iso(self.created_at),
        }


@dataclass(frozen=True)
class MonthlySummary:
    """AI review of one calendar month, built from its weekly summaries."""

    month_id: str
    uid: str
    created_at: datetime
    weeks_included: tuple[str, ...]
    weeks_missing: tuple[str, ...]
    summary: str
    patterns: str
    emotional_trend: str
    role_trend: str
    productivity_trend: str
    action_steps: tuple[str, ...]

    @property
    def id(self) -> str:
        return self.month_id

    @classmethod
    def from_model_result(
        cls,
        month_id: str,
        uid: str,
        result: Any,
        created_at: datetime,
        weeks_included: tuple[str, ...],
        weeks_missing: tuple[str, ...],
    ) -> Self:
        data = result if isinstance(result, dict) else {}
        return cls(
            month_id=month_id,
            uid=uid,
            created_at=created_at,
            weeks_included=weeks_included,
            weeks_missing=weeks_missing,
            summary=_as_text(data.get("summary")),
            patterns=_as_text(data.get("patterns")),
            emotional_trend=_as_text(data.get("emotionalTrend")),
            role_trend=_as_text(data.get("roleTrend")),
            productivity_trend=_as_text(data.get("productivityTrend")),
            action_steps=tuple(normalize_string_list(data.get("actionSteps"))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.month_id,
            "month": self.month_id,
            "uid": self.uid,
            "createdAt": to_utc_iso(self.created_at),
            "weeksIncluded": list(self.weeks_included),
            "weeksMissing": list(self.weeks_missing),
            "summary": self.summary,
            "patterns": self.patterns,
            "emotionalTrend": self.emotional_trend,
            "roleTrend": self.role_trend,
            "productivityTrend": self.productivity_trend,
            "actionSteps": list(self.action_steps),
        }


@dataclass(frozen=True)
class WeekHistoryEntry:
    week_id: str
    reflection_count: int
    has_summary: bool
    week_label: str
    start: datetime


@dataclass(frozen=True)
class WeekDetail:
    week_id: str
    week_label: str
    reflections: list[Reflection]
    weekly_summary: WeeklySummary | None


@dataclass(frozen=True)
class DashboardStats:
    total_reflections: int
    total_public_reflections: int
    total_likes_received: int
    reflections_this_week: int
    reflections_this_month: int
    days_with_revo: int
    account_created_at: datetime
