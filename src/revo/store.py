"""SQLite storage layer: users, reflections, likes, periodic summaries.

Every record is namespaced by uid. Summary rows are keyed by
(uid, period id) and are only ever created, never replaced.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from revo.errors import RateLimited, ReflectionNotFound
from revo.models import MonthlySummary, Reflection, RoleSuggestion, Suggestions, WeeklySummary

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    uid TEXT PRIMARY KEY,
    timezone TEXT,
    roles TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS reflections (
    id TEXT PRIMARY KEY,
    uid TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    text TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT,
    roles_involved TEXT NOT NULL DEFAULT '[]',
    suggestions TEXT,
    can_regenerate INTEGER,
    is_public INTEGER NOT NULL DEFAULT 0,
    is_anonymous INTEGER NOT NULL DEFAULT 0,
    likes INTEGER NOT NULL DEFAULT 0,
    liked_by TEXT NOT NULL DEFAULT '{}',
    rate_limit TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_reflections_uid_created ON reflections(uid, created_at);
CREATE INDEX IF NOT EXISTS idx_reflections_public ON reflections(is_public, created_at);

CREATE TABLE IF NOT EXISTS user_likes (
    uid TEXT NOT NULL,
    reflection_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (uid, reflection_id)
);

CREATE TABLE IF NOT EXISTS weekly_summaries (
    uid TEXT NOT NULL,
    week_id TEXT NOT NULL,
    week_start TEXT NOT NULL,
    summary TEXT NOT NULL,
    wins TEXT NOT NULL,
    challenges TEXT NOT NULL,
    next_week TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (uid, week_id)
);

CREATE TABLE IF NOT EXISTS monthly_summaries (
    uid TEXT NOT NULL,
    month_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    weeks_included TEXT NOT NULL,
    weeks_missing TEXT NOT NULL,
    summary TEXT NOT NULL,
    patterns TEXT NOT NULL,
    emotional_trend TEXT NOT NULL,
    role_trend TEXT NOT NULL,
    productivity_trend TEXT NOT NULL,
    action_steps TEXT NOT NULL,
    PRIMARY KEY (uid, month_id)
);
"""

REFLECTION_COLUMNS = (
    "id, uid, title, text, created_at, updated_at, roles_involved, suggestions, "
    "can_regenerate, is_public, is_anonymous, likes, liked_by"
)


def _to_utc_iso(dt: datetime) -> str:
    """Normalize to a fixed-width UTC ISO string so range queries compare lexically."""
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid mixing naive/aware in queries
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _bool_or_none(value: int | None) -> bool | None:
    return None if value is None else bool(value)


def _dump_suggestions(suggestions: Suggestions | None) -> str | None:
    if suggestions is None:
        return None
    return json.dumps({role: s.to_dict() if s else None for role, s in suggestions.items()})


def _load_suggestions(raw: str | None) -> Suggestions | None:
    if not raw:
        return None
    data: dict[str, Any] = json.loads(raw)
    return {
        role: RoleSuggestion(title=value["title"], suggestion=value["suggestion"])
        if value
        else None
        for role, value in data.items()
    }


def _row_to_reflection(row: sqlite3.Row) -> Reflection:
    return Reflection(
        id=row["id"],
        uid=row["uid"],
        title=row["title"],
        text=row["text"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=_from_iso(row["updated_at"]),
        roles_involved=json.loads(row["roles_involved"]),
        suggestions=_load_suggestions(row["suggestions"]),
        can_regenerate=_bool_or_none(row["can_regenerate"]),
        is_public=bool(row["is_public"]),
        is_anonymous=bool(row["is_anonymous"]),
        likes=row["likes"],
        liked_by=json.loads(row["liked_by"]),
    )


def _row_to_weekly(row: sqlite3.Row) -> WeeklySummary:
    return WeeklySummary(
        week_id=row["week_id"],
        week_start=datetime.fromisoformat(row["week_start"]),
        summary=row["summary"],
        wins=tuple(json.loads(row["wins"])),
        challenges=tuple(json.loads(row["challenges"])),
        next_week=tuple(json.loads(row["next_week"])),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_monthly(row: sqlite3.Row) -> MonthlySummary:
    return MonthlySummary(
        month_id=row["month_id"],
        uid=row["uid"],
        created_at=datetime.fromisoformat(row["created_at"]),
        weeks_included=tuple(json.loads(row["weeks_included"])),
        weeks_missing=tuple(json.loads(row["weeks_missing"])),
        summary=row["summary"],
        patterns=row["patterns"],
        emotional_trend=row["emotional_trend"],
        role_trend=row["role_trend"],
        productivity_trend=row["productivity_trend"],
        action_steps=tuple(json.loads(row["action_steps"])),
    )


class RevoStore:
    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self._db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # --- Users ---

    def ensure_user(self, uid: str, created_at: datetime | None = None) -> None:
        """Create the user row if it does not exist yet."""
        conn = self._connect()
        conn.execute(
            "INSERT OR IGNORE INTO users (uid, created_at) VALUES (?, ?)",
            (uid, _to_utc_iso(created_at or datetime.now(UTC))),
        )
        conn.commit()

    def get_user_created_at(self, uid: str) -> datetime | None:
        row = self._connect().execute("SELECT created_at FROM users WHERE uid = ?", (uid,)).fetchone()
        return datetime.fromisoformat(row["created_at"]) if row else None

    def get_user_timezone(self, uid: str) -> str | None:
        row = self._connect().execute("SELECT timezone FROM users WHERE uid = ?", (uid,)).fetchone()
        return row["timezone"] if row and row["timezone"] else None

    def set_user_timezone(self, uid: str, timezone: str) -> None:
        self.ensure_user(uid)
        conn = self._connect()
        conn.execute("UPDATE users SET timezone = ? WHERE uid = ?", (timezone, uid))
        conn.commit()

    def get_roles(self, uid: str) -> list[str] | None:
        """Stored roles, or None if the user has no profile yet."""
        row = self._connect().execute("SELECT roles FROM users WHERE uid = ?", (uid,)).fetchone()
        if row is None:
            return None
        roles = json.loads(row["roles"])
        return [r.strip() for r in roles if isinstance(r, str) and r.strip()]

    def set_roles(self, uid: str, roles: list[str]) -> None:
        self.ensure_user(uid)
        conn = self._connect()
        conn.execute("UPDATE users SET roles = ? WHERE uid = ?", (json.dumps(roles), uid))
        conn.commit()

    def delete_user_data(self, uid: str) -> None:
        """Remove the profile and everything namespaced under ``uid``."""
        conn = self._connect()
        with conn:
            conn.execute(
                "DELETE FROM user_likes WHERE reflection_id IN (SELECT id FROM reflections WHERE uid = ?)",
                (uid,),
            )
            conn.execute("DELETE FROM reflections WHERE uid = ?", (uid,))
            conn.execute("DELETE FROM user_likes WHERE uid = ?", (uid,))
            conn.execute("DELETE FROM weekly_summaries WHERE uid = ?", (uid,))
            conn.execute("DELETE FROM monthly_summaries WHERE uid = ?", (uid,))
            conn.execute("DELETE FROM users WHERE uid = ?", (uid,))

    # --- Reflections ---

    def save_reflection(self, reflection: Reflection) -> Reflection:
        """Insert or overwrite a reflection. Assigns an id when missing."""
        if not reflection.id:
            reflection.id = uuid.uuid4().hex
        conn = self._connect()
        conn.execute(
            "INSERT OR REPLACE INTO reflections "
            "(id, uid, title, text, created_at, updated_at, roles_involved, suggestions, "
            "can_regenerate, is_public, is_anonymous, likes, liked_by, rate_limit) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, "
            "COALESCE((SELECT rate_limit FROM reflections WHERE id = ?), '{}'))",
            (
                reflection.id,
                reflection.uid,
                reflection.title,
                reflection.text,
                _to_utc_iso(reflection.created_at),
                _to_utc_iso(reflection.updated_at) if reflection.updated_at else None,
                json.dumps(reflection.roles_involved),
                _dump_suggestions(reflection.suggestions),
                None if reflection.can_regenerate is None else int(reflection.can_regenerate),
                int(reflection.is_public),
                int(reflection.is_anonymous),
                reflection.likes,
                json.dumps(reflection.liked_by),
                reflection.id,
            ),
        )
        conn.commit()
        return reflection

    def get_reflection(self, reflection_id: str) -> Reflection | None:
        row = (
            self._connect()
            .execute(f"SELECT {REFLECTION_COLUMNS} FROM reflections WHERE id = ?", (reflection_id,))
            .fetchone()
        )
        return _row_to_reflection(row) if row else None

    def get_reflections(
        self,
        uid: str,
        start: datetime | None = None,
        end: datetime | None = None,
        newest_first: bool = False,
    ) -> list[Reflection]:
        """Reflections of ``uid``, optionally within [start, end)."""
        query = f"SELECT {REFLECTION_COLUMNS} FROM reflections WHERE uid = ?"
        params: list[str] = [uid]
        if start is not None:
            query += " AND created_at >= ?"
            params.append(_to_utc_iso(start))
        if end is not None:
            query += " AND created_at < ?"
            params.append(_to_utc_iso(end))
        query += " ORDER BY created_at DESC" if newest_first else " ORDER BY created_at"

        rows = self._connect().execute(query, params).fetchall()
        return [_row_to_reflection(row) for row in rows]

    def count_reflections(
        self,
        uid: str,
        since: datetime | None = None,
        public_only: bool = False,
    ) -> int:
        query = "SELECT COUNT(*) AS cnt FROM reflections WHERE uid = ?"
        params: list[str] = [uid]
        if since is not None:
            query += " AND created_at >= ?"
            params.append(_to_utc_iso(since))
        if public_only:
            query += " AND is_public = 1"
        row = self._connect().execute(query, params).fetchone()
        return row["cnt"] if row else 0

    def sum_public_likes(self, uid: str) -> int:
        row = (
            self._connect()
            .execute(
                "SELECT COALESCE(SUM(likes), 0) AS total FROM reflections "
                "WHERE uid = ? AND is_public = 1",
                (uid,),
            )
            .fetchone()
        )
        return row["total"] if row else 0

    def get_public_reflections(self) -> list[Reflection]:
        rows = (
            self._connect()
            .execute(
                f"SELECT {REFLECTION_COLUMNS} FROM reflections "
                "WHERE is_public = 1 ORDER BY created_at DESC"
            )
            .fetchall()
        )
        return [_row_to_reflection(row) for row in rows]

    def delete_reflection(self, reflection_id: str) -> int:
        conn = self._connect()
        with conn:
            cursor = conn.execute("DELETE FROM reflections WHERE id = ?", (reflection_id,))
            conn.execute("DELETE FROM user_likes WHERE reflection_id = ?", (reflection_id,))
        return cursor.rowcount

    # --- Likes ---

    def toggle_like(
        self,
        reflection_id: str,
        actor_id: str,
        uid: str | None,
        now: datetime,
        rate_limit: timedelta,
    ) -> tuple[int, bool]:
        """Like or unlike in one transaction. Returns (likes, is_liked).

        Raises:
            ReflectionNotFound: no such reflection.
            RateLimited: actor liked this reflection less than ``rate_limit`` ago.
        """
        conn = self._connect()
        with conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT likes, liked_by, rate_limit FROM reflections WHERE id = ?",
                (reflection_id,),
            ).fetchone()
            if row is None:
                msg = f"Reflection {reflection_id} not found"
                raise ReflectionNotFound(msg)

            liked_by: dict[str, bool] = json.loads(row["liked_by"])
            last_likes: dict[str, str] = json.loads(row["rate_limit"])
            likes = row["likes"]

            if liked_by.get(actor_id):
                del liked_by[actor_id]
                likes = max(0, likes - 1)
                is_liked = False
                if uid:
                    conn.execute(
                        "DELETE FROM user_likes WHERE uid = ? AND reflection_id = ?",
                        (uid, reflection_id),
                    )
            else:
                last = last_likes.get(actor_id)
                if last and now - datetime.fromisoformat(last) < rate_limit:
                    seconds = int(rate_limit.total_seconds())
                    msg = f"You can only like this reflection once per {seconds} seconds."
                    raise RateLimited(msg)
                liked_by[actor_id] = True
                last_likes[actor_id] = _to_utc_iso(now)
                likes += 1
                is_liked = True
                if uid:
                    conn.execute(
                        "INSERT OR REPLACE INTO user_likes (uid, reflection_id, created_at) "
                        "VALUES (?, ?, ?)",
                        (uid, reflection_id, _to_utc_iso(now)),
                    )

            conn.execute(
                "UPDATE reflections SET likes = ?, liked_by = ?, rate_limit = ? WHERE id = ?",
                (likes, json.dumps(liked_by), json.dumps(last_likes), reflection_id),
            )
        return likes, is_liked

    def get_user_likes(self, uid: str) -> list[tuple[str, datetime]]:
        """(reflection_id, liked_at) pairs, most recent first."""
        rows = (
            self._connect()
            .execute(
                "SELECT reflection_id, created_at FROM user_likes "
                "WHERE uid = ? ORDER BY created_at DESC",
                (uid,),
            )
            .fetchall()
        )
        return [(row["reflection_id"], datetime.fromisoformat(row["created_at"])) for row in rows]

    # --- Summaries ---

    def create_weekly_summary(self, uid: str, summary: WeeklySummary) -> bool:
        """Write-if-absent. Returns False when a summary for the week already exists."""
        conn = self._connect()
        cursor = conn.execute(
            "INSERT OR IGNORE INTO weekly_summaries "
            "(uid, week_id, week_start, summary, wins, challenges, next_week, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                uid,
                summary.week_id,
                _to_utc_iso(summary.week_start),
                summary.summary,
                json.dumps(list(summary.wins)),
                json.dumps(list(summary.challenges)),
                json.dumps(list(summary.next_week)),
                _to_utc_iso(summary.created_at),
            ),
        )
        conn.commit()
        return cursor.rowcount > 0

    def get_weekly_summary(self, uid: str, week_id: str) -> WeeklySummary | None:
        row = (
            self._connect()
            .execute(
                "SELECT * FROM weekly_summaries WHERE uid = ? AND week_id = ?",
                (uid, week_id),
            )
            .fetchone()
        )
        return _row_to_weekly(row) if row else None

    def get_weekly_summaries(self, uid: str, week_ids: Iterable[str]) -> list[WeeklySummary]:
        """Stored summaries among ``week_ids``, in the order given."""
        wanted = list(dict.fromkeys(week_ids))
        if not wanted:
            return []
        placeholders = ",".join("?" for _ in wanted)
        rows = (
            self._connect()
            .execute(
                f"SELECT * FROM weekly_summaries WHERE uid = ? AND week_id IN ({placeholders})",
                [uid, *wanted],
            )
            .fetchall()
        )
        by_id = {row["week_id"]: _row_to_weekly(row) for row in rows}
        return [by_id[week_id] for week_id in wanted if week_id in by_id]

    def create_monthly_summary(self, summary: MonthlySummary) -> bool:
        """Write-if-absent. Returns False when a summary for the month already exists."""
        conn = self._connect()
        cursor = conn.execute(
            "INSERT OR IGNORE INTO monthly_summaries "
            "(uid, month_id, created_at, weeks_included, weeks_missing, summary, patterns, "
            "emotional_trend, role_trend, productivity_trend, action_steps) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                summary.uid,
                summary.month_id,
                _to_utc_iso(summary.created_at),
                json.dumps(list(summary.weeks_included)),
                json.dumps(list(summary.weeks_missing)),
                summary.summary,
                summary.patterns,
                summary.emotional_trend,
                summary.role_trend,
                summary.productivity_trend,
                json.dumps(list(summary.action_steps)),
            ),
        )
        conn.commit()
        return cursor.rowcount > 0

    def get_monthly_summary(self, uid: str, month_id: str) -> MonthlySummary | None:
        row = (
            self._connect()
            .execute(
                "SELECT * FROM monthly_summaries WHERE uid = ? AND month_id = ?",
                (uid, month_id),
            )
            .fetchone()
        )
        return _row_to_monthly(row) if row else None
