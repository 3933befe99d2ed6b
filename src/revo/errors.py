"""Exception taxonomy for revo.

Lifecycle states (blocked/ready/exists/generated) are return values, not
exceptions. Everything here is a real failure the caller has to handle.
"""

from __future__ import annotations


class RevoError(Exception):
    """Base class for all revo errors."""


class MalformedPeriodId(RevoError, ValueError):
    """A WeekId or MonthId failed pattern or range validation."""


class SummarizationFailed(RevoError):
    """The external summarizer failed. Nothing was persisted; safe to retry."""


class Unauthorized(RevoError):
    """No verified caller identity."""


class Forbidden(RevoError):
    """Caller does not own the record."""


class ReflectionNotFound(RevoError):
    pass


class RateLimited(RevoError):
    pass


class RegenerationNotAllowed(RevoError):
    """Suggestions exist and the reflection has not been edited since."""
