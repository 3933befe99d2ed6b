"""Per-user IANA timezone resolution."""

from __future__ import annotations

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from revo.store import RevoStore


def is_valid_zone(name: str | None) -> bool:
    """True if ``name`` is a loadable IANA zone identifier."""
    if not name or not isinstance(name, str):
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def guess_local_zone() -> str | None:
    """The machine's zone from $TZ, when it names an IANA zone."""
    name = os.environ.get("TZ", "").lstrip(":")
    return name if is_valid_zone(name) else None


class TimeZoneResolver:
    """Resolve the zone that governs a user's week and month boundaries."""

    def __init__(self, store: RevoStore, default_zone: str) -> None:
        if not is_valid_zone(default_zone):
            msg = f"Invalid default timezone: {default_zone!r}"
            raise ValueError(msg)
        self._store = store
        self._default_zone = default_zone

    @property
    def default_zone(self) -> str:
        return self._default_zone

    def resolve(self, uid: str, guessed: str | None = None) -> str:
        """Stored zone; else persist a valid guess; else the default (not persisted)."""
        stored = self._store.get_user_timezone(uid)
        if stored and is_valid_zone(stored):
            return stored

        if guessed and is_valid_zone(guessed):
            self._store.set_user_timezone(uid, guessed)
            return guessed

        return self._default_zone

    def zone(self, uid: str, guessed: str | None = None) -> ZoneInfo:
        return ZoneInfo(self.resolve(uid, guessed))
