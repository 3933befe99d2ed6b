"""Regeneration gate for per-role coaching suggestions."""

from __future__ import annotations

from typing import Any

from revo.models import Reflection, RoleSuggestion, Suggestions

NOT_APPLICABLE = "not applicable"


def can_regenerate(stored_flag: bool | None, existing_suggestions: Suggestions | None) -> bool:
    """Whether suggestions for a reflection may be (re)generated.

    An explicit stored flag wins. Without one, generation is allowed only if
    nothing has been generated yet.
    """
    if isinstance(stored_flag, bool):
        return stored_flag
    return not existing_suggestions


def reflection_can_regenerate(reflection: Reflection) -> bool:
    return can_regenerate(reflection.can_regenerate, reflection.suggestions)


def apply_text_edit(reflection: Reflection, text: str) -> Reflection:
    """Replace the text and invalidate everything derived from the old text."""
    reflection.text = text
    reflection.suggestions = None
    reflection.roles_involved = []
    reflection.can_regenerate = True
    return reflection


def apply_generated(reflection: Reflection, roles: list[str], suggestions: Suggestions) -> Reflection:
    """Store fresh suggestions and close the gate until the next edit."""
    reflection.roles_involved = list(roles)
    reflection.suggestions = suggestions
    reflection.can_regenerate = False
    return reflection


def coerce_suggestions(result: Any, roles: list[str]) -> Suggestions:
    """Map a model response onto the requested roles.

    Values may be plain strings or {title, suggestion} objects. "Not
    applicable" and anything unusable become None.
    """
    data = result if isinstance(result, dict) else {}
    suggestions: Suggestions = {}
    for role in roles:
        value = data.get(role)
        if isinstance(value, str):
            text = value.strip()
            suggestions[role] = (
                RoleSuggestion(title=role, suggestion=text)
                if text and text.lower().rstrip(".") != NOT_APPLICABLE
                else None
            )
        elif isinstance(value, dict) and isinstance(value.get("suggestion"), str):
            text = value["suggestion"].strip()
            title = value.get("title") if isinstance(value.get("title"), str) else role
            suggestions[role] = (
                RoleSuggestion(title=title.strip() or role, suggestion=text)
                if text and text.lower().rstrip(".") != NOT_APPLICABLE
                else None
            )
        else:
            suggestions[role] = None
    return suggestions
