"""Reflection CRUD, sharing, likes, roles, history and dashboard stats."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta, tzinfo

from revo.errors import Forbidden, ReflectionNotFound, RegenerationNotAllowed, Unauthorized
from revo.models import (
    DashboardStats,
    PublicReflection,
    Reflection,
    WeekDetail,
    WeekHistoryEntry,
    derive_title,
)
from revo.periods import (
    format_week_label,
    localize,
    range_of_week_id,
    start_of_month,
    start_of_week,
    week_id_of,
)
from revo.store import RevoStore
from revo.suggestions import (
    apply_generated,
    apply_text_edit,
    coerce_suggestions,
    reflection_can_regenerate,
)
from revo.summarizer import Summarizer

LIKE_RATE_LIMIT = timedelta(seconds=60)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _require_uid(uid: str | None) -> str:
    if not uid:
        msg = "A verified uid is required"
        raise Unauthorized(msg)
    return uid


def _require_text(text: str | None) -> str:
    stripped = text.strip() if isinstance(text, str) else ""
    if not stripped:
        msg = "Reflection text cannot be empty"
        raise ValueError(msg)
    return stripped


def _normalize_roles(roles: list[str]) -> list[str]:
    """Trim, drop empties and case-insensitive duplicates, keep first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for role in roles:
        if not isinstance(role, str):
            continue
        trimmed = role.strip()
        if trimmed and trimmed.lower() not in seen:
            seen.add(trimmed.lower())
            result.append(trimmed)
    return result


class ReflectionService:
    def __init__(
        self,
        store: RevoStore,
        summarizer: Summarizer,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._summarizer = summarizer
        self._clock = clock

    # --- Reflections ---

    def create_reflection(self, uid: str, text: str, title: str = "") -> Reflection:
        uid = _require_uid(uid)
        body = _require_text(text)
        now = self._clock()
        self._store.ensure_user(uid, created_at=now)
        reflection = Reflection(
            uid=uid,
            text=body,
            title=title.strip() if title else "",
            created_at=now,
            can_regenerate=True,
        )
        return self._store.save_reflection(reflection)

    def get_reflection(self, reflection_id: str, uid: str | None = None) -> Reflection:
        """Fetch a reflection; with ``uid``, also check ownership.

        Raises:
            ReflectionNotFound: no such reflection.
            Forbidden: ``uid`` given and not the owner.
        """
        reflection = self._store.get_reflection(reflection_id)
        if reflection is None:
            msg = f"Reflection {reflection_id} not found"
            raise ReflectionNotFound(msg)
        if uid is not None and reflection.uid != uid:
            msg = "You do not own this reflection"
            raise Forbidden(msg)
        return reflection

    def _owned(self, uid: str, reflection_id: str) -> Reflection:
        return self.get_reflection(reflection_id, uid=_require_uid(uid))

    def list_reflections(self, uid: str) -> list[Reflection]:
        return self._store.get_reflections(_require_uid(uid), newest_first=True)

    def edit_reflection_text(self, uid: str, reflection_id: str, text: str) -> Reflection:
        """Replace the text. Old suggestions and roles no longer apply and are dropped."""
        reflection = self._owned(uid, reflection_id)
        apply_text_edit(reflection, _require_text(text))
        reflection.updated_at = self._clock()
        return self._store.save_reflection(reflection)

    def delete_reflection(self, uid: str, reflection_id: str) -> None:
        self._owned(uid, reflection_id)
        self._store.delete_reflection(reflection_id)

    def update_visibility(
        self,
        uid: str,
        reflection_id: str,
        is_public: bool,
        is_anonymous: bool = False,
    ) -> Reflection:
        reflection = self._owned(uid, reflection_id)
        reflection.is_public = bool(is_public)
        reflection.is_anonymous = bool(is_anonymous)
        return self._store.save_reflection(reflection)

    def generate_suggestions(
        self,
        uid: str,
        reflection_id: str,
        roles: list[str] | None = None,
    ) -> Reflection:
        """Per-role coaching for one reflection. Allowed once per text version.

        Without explicit ``roles`` the user's saved roles are used.

        Raises:
            RegenerationNotAllowed: suggestions exist and the text has not changed.
            SummarizationFailed: the model call failed; nothing is stored.
        """
        reflection = self._owned(uid, reflection_id)
        if not reflection_can_regenerate(reflection):
            msg = "Suggestions already generated; edit the reflection to regenerate"
            raise RegenerationNotAllowed(msg)

        wanted = _normalize_roles(roles if roles is not None else self.get_roles(uid))
        if not wanted:
            msg = "At least one role is required to generate suggestions"
            raise ValueError(msg)

        result = self._summarizer.suggest(reflection.text, wanted)
        apply_generated(reflection, wanted, coerce_suggestions(result, wanted))
        return self._store.save_reflection(reflection)

    # --- Public feed ---

    def list_public_reflections(self) -> list[PublicReflection]:
        return [PublicReflection.from_reflection(r) for r in self._store.get_public_reflections()]

    def get_public_reflection(self, reflection_id: str) -> PublicReflection:
        reflection = self._store.get_reflection(reflection_id)
        if reflection is None or not reflection.is_public:
            msg = f"Public reflection {reflection_id} not found"
            raise ReflectionNotFound(msg)
        return PublicReflection.from_reflection(reflection)

    def toggle_like(self, reflection_id: str, actor_id: str, uid: str | None = None) -> tuple[int, bool]:
        """Like or unlike. Returns (likes, is_liked)."""
        if not actor_id:
            msg = "An actor id is required to like a reflection"
            raise ValueError(msg)
        return self._store.toggle_like(
            reflection_id,
            actor_id,
            uid,
            now=self._clock(),
            rate_limit=LIKE_RATE_LIMIT,
        )

    def liked_reflections(self, uid: str) -> list[PublicReflection]:
        """Reflections ``uid`` liked that are still public, most recently liked first."""
        liked: list[PublicReflection] = []
        for reflection_id, liked_at in self._store.get_user_likes(_require_uid(uid)):
            reflection = self._store.get_reflection(reflection_id)
            if reflection is not None and reflection.is_public:
                liked.append(PublicReflection.from_reflection(reflection, liked_at=liked_at))
        return liked

    # --- Roles ---

    def get_roles(self, uid: str) -> list[str]:
        uid = _require_uid(uid)
        roles = self._store.get_roles(uid)
        if roles is None:
            self._store.ensure_user(uid, created_at=self._clock())
            return []
        return _normalize_roles(roles)

    def add_role(self, uid: str, role: str) -> list[str]:
        trimmed = role.strip() if isinstance(role, str) else ""
        if not trimmed:
            msg = "Role cannot be empty"
            raise ValueError(msg)

        roles = self.get_roles(uid)
        if trimmed.lower() in {r.lower() for r in roles}:
            return roles
        roles.append(trimmed)
        self._store.set_roles(uid, roles)
        return roles

    def remove_role(self, uid: str, role: str) -> list[str]:
        trimmed = role.strip() if isinstance(role, str) else ""
        if not trimmed:
            msg = "Role cannot be empty"
            raise ValueError(msg)

        roles = self.get_roles(uid)
        remaining = [r for r in roles if r.lower() != trimmed.lower()]
        if remaining != roles:
            self._store.set_roles(uid, remaining)
        return remaining

    # --- History and stats ---

    def weekly_history(self, uid: str, tz: tzinfo) -> list[WeekHistoryEntry]:
        """Weeks that hold at least one reflection, newest week first."""
        uid = _require_uid(uid)
        counts: dict[str, int] = {}
        for reflection in self._store.get_reflections(uid):
            week_id = week_id_of(reflection.created_at, tz)
            counts[week_id] = counts.get(week_id, 0) + 1

        summarized = {s.week_id for s in self._store.get_weekly_summaries(uid, counts)}
        entries = [
            WeekHistoryEntry(
                week_id=week_id,
                reflection_count=count,
                has_summary=week_id in summarized,
                week_label=format_week_label(week_id),
                start=range_of_week_id(week_id, tz).start_utc,
            )
            for week_id, count in counts.items()
        ]
        entries.sort(key=lambda entry: entry.start, reverse=True)
        return entries

    def week_detail(self, uid: str, week_id: str, tz: tzinfo) -> WeekDetail:
        uid = _require_uid(uid)
        week_range = range_of_week_id(week_id, tz)
        reflections = self._store.get_reflections(uid, week_range.start, week_range.end_exclusive)
        for reflection in reflections:
            reflection.title = derive_title(reflection.text, reflection.title)
        return WeekDetail(
            week_id=week_id,
            week_label=format_week_label(week_id),
            reflections=reflections,
            weekly_summary=self._store.get_weekly_summary(uid, week_id),
        )

    def stats(self, uid: str, tz: tzinfo, now: datetime | None = None) -> DashboardStats:
        uid = _require_uid(uid)
        now = localize(now or self._clock(), UTC)
        created_at = self._store.get_user_created_at(uid)
        if created_at is not None:
            days_with_revo = max(0, (now - created_at) // timedelta(days=1))
        else:
            days_with_revo = 0

        return DashboardStats(
            total_reflections=self._store.count_reflections(uid),
            total_public_reflections=self._store.count_reflections(uid, public_only=True),
            total_likes_received=self._store.sum_public_likes(uid),
            reflections_this_week=self._store.count_reflections(uid, since=start_of_week(now, tz)),
            reflections_this_month=self._store.count_reflections(uid, since=start_of_month(now, tz)),
            days_with_revo=days_with_revo,
            account_created_at=created_at or now,
        )

    def delete_account(self, uid: str) -> None:
        self._store.delete_user_data(_require_uid(uid))
