"""Tests for reflection CRUD, sharing, likes, roles and dashboard views."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import KL, UID, make_reflection, make_weekly

from revo.errors import (
    Forbidden,
    RateLimited,
    ReflectionNotFound,
    RegenerationNotAllowed,
    SummarizationFailed,
    Unauthorized,
)
from revo.models import RoleSuggestion
from revo.reflections import ReflectionService
from revo.store import RevoStore

NOW = datetime(2026, 2, 18, 2, 0, tzinfo=UTC)


class Clock:
    """Settable clock for rate-limit and stats tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> Clock:
    return Clock(NOW)


@pytest.fixture
def service(store: RevoStore, summarizer, clock) -> ReflectionService:
    return ReflectionService(store, summarizer, clock=clock)


class TestCreateAndRead:
    def test_create_defaults(self, service: ReflectionService):
        reflection = service.create_reflection(UID, "  Long day at work  ")

        assert reflection.id
        assert reflection.text == "Long day at work"
        assert reflection.created_at == NOW
        assert reflection.is_public is False
        assert reflection.is_anonymous is False
        assert reflection.likes == 0
        assert reflection.can_regenerate is True

    def test_create_requires_text(self, service: ReflectionService):
        with pytest.raises(ValueError):
            service.create_reflection(UID, "   ")

    def test_create_requires_uid(self, service: ReflectionService):
        with pytest.raises(Unauthorized):
            service.create_reflection("", "text")

    def test_get_checks_owner(self, service: ReflectionService):
        reflection = service.create_reflection(UID, "mine")
        assert service.get_reflection(reflection.id, uid=UID).text == "mine"
        with pytest.raises(Forbidden):
            service.get_reflection(reflection.id, uid="intruder")

    def test_get_missing(self, service: ReflectionService):
        with pytest.raises(ReflectionNotFound):
            service.get_reflection("nope")

    def test_list_newest_first(self, service: ReflectionService, clock: Clock):
        service.create_reflection(UID, "first")
        clock.now = NOW + timedelta(hours=1)
        service.create_reflection(UID, "second")
        assert [r.text for r in service.list_reflections(UID)] == ["second", "first"]


class TestEditAndDelete:
    def test_edit_clears_suggestions_and_reopens_gate(self, service: ReflectionService, clock: Clock):
        reflection = service.create_reflection(UID, "original")
        service.generate_suggestions(UID, reflection.id, ["Parent"])

        clock.now = NOW + timedelta(minutes=5)
        edited = service.edit_reflection_text(UID, reflection.id, "rewritten")

        assert edited.text == "rewritten"
        assert edited.suggestions is None
        assert edited.roles_involved == []
        assert edited.can_regenerate is True
        assert edited.updated_at == NOW + timedelta(minutes=5)

    def test_edit_by_other_user_is_forbidden(self, service: ReflectionService):
        reflection = service.create_reflection(UID, "original")
        with pytest.raises(Forbidden):
            service.edit_reflection_text("intruder", reflection.id, "hacked")

    def test_delete(self, service: ReflectionService):
        reflection = service.create_reflection(UID, "bye")
        with pytest.raises(Forbidden):
            service.delete_reflection("intruder", reflection.id)
        service.delete_reflection(UID, reflection.id)
        with pytest.raises(ReflectionNotFound):
            service.get_reflection(reflection.id)


class TestSuggestions:
    def test_generate_once_per_text(self, service: ReflectionService, summarizer):
        reflection = service.create_reflection(UID, "Busy week with the kids and the launch")

        updated = service.generate_suggestions(UID, reflection.id, ["Parent", "Founder", "parent"])
        assert updated.roles_involved == ["Parent", "Founder"]
        assert updated.suggestions == {
            "Parent": RoleSuggestion("Be present", "Put the phone away at dinner."),
            "Founder": None,
        }
        assert updated.can_regenerate is False
        summarizer.suggest.assert_called_once_with("Busy week with the kids and the launch", ["Parent", "Founder"])

        with pytest.raises(RegenerationNotAllowed):
            service.generate_suggestions(UID, reflection.id, ["Parent"])

    def test_regenerate_after_edit(self, service: ReflectionService, summarizer):
        reflection = service.create_reflection(UID, "v1")
        service.generate_suggestions(UID, reflection.id, ["Parent"])
        service.edit_reflection_text(UID, reflection.id, "v2")

        service.generate_suggestions(UID, reflection.id, ["Parent"])
        assert summarizer.suggest.call_count == 2

    def test_defaults_to_saved_roles(self, service: ReflectionService, summarizer):
        service.add_role(UID, "Parent")
        reflection = service.create_reflection(UID, "text")
        service.generate_suggestions(UID, reflection.id)
        assert summarizer.suggest.call_args.args[1] == ["Parent"]

    def test_requires_a_role(self, service: ReflectionService, summarizer):
        reflection = service.create_reflection(UID, "text")
        with pytest.raises(ValueError):
            service.generate_suggestions(UID, reflection.id, ["  "])
        summarizer.suggest.assert_not_called()

    def test_failure_leaves_reflection_untouched(self, service: ReflectionService, summarizer):
        reflection = service.create_reflection(UID, "text")
        summarizer.suggest.side_effect = SummarizationFailed("boom")
        with pytest.raises(SummarizationFailed):
            service.generate_suggestions(UID, reflection.id, ["Parent"])

        stored = service.get_reflection(reflection.id)
        assert stored.suggestions is None
        assert stored.can_regenerate is True


class TestPublicFeed:
    def test_only_public_reflections(self, service: ReflectionService):
        shared = service.create_reflection(UID, "shared")
        hidden = service.create_reflection(UID, "hidden")
        service.update_visibility(UID, shared.id, is_public=True)

        assert [r.id for r in service.list_public_reflections()] == [shared.id]
        with pytest.raises(ReflectionNotFound):
            service.get_public_reflection(hidden.id)

    def test_anonymous_hides_author(self, service: ReflectionService):
        reflection = service.create_reflection(UID, "secret author")
        service.update_visibility(UID, reflection.id, is_public=True, is_anonymous=True)

        public = service.get_public_reflection(reflection.id)
        assert public.author_uid is None
        assert public.is_anonymous is True

    def test_title_derived_from_first_line(self, service: ReflectionService):
        long_line = "x" * 80
        reflection = service.create_reflection(UID, f"{long_line}\nsecond line")
        service.update_visibility(UID, reflection.id, is_public=True)

        title = service.get_public_reflection(reflection.id).title
        assert len(title) == 60
        assert title.endswith("…")

    def test_visibility_is_owner_only(self, service: ReflectionService):
        reflection = service.create_reflection(UID, "mine")
        with pytest.raises(Forbidden):
            service.update_visibility("intruder", reflection.id, is_public=True)


class TestLikes:
    def test_toggle_and_liked_list(self, service: ReflectionService, clock: Clock):
        reflection = service.create_reflection(UID, "likeable")
        service.update_visibility(UID, reflection.id, is_public=True)

        assert service.toggle_like(reflection.id, "fan", uid="fan") == (1, True)
        assert [r.id for r in service.liked_reflections("fan")] == [reflection.id]
        assert service.liked_reflections("fan")[0].liked_at == NOW

        clock.now = NOW + timedelta(seconds=5)
        assert service.toggle_like(reflection.id, "fan", uid="fan") == (0, False)
        assert service.liked_reflections("fan") == []

    def test_rate_limit_sixty_seconds(self, service: ReflectionService, clock: Clock):
        reflection = service.create_reflection(UID, "likeable")
        service.toggle_like(reflection.id, "fan")
        service.toggle_like(reflection.id, "fan")

        clock.now = NOW + timedelta(seconds=30)
        with pytest.raises(RateLimited):
            service.toggle_like(reflection.id, "fan")

        clock.now = NOW + timedelta(seconds=61)
        assert service.toggle_like(reflection.id, "fan") == (1, True)

    def test_liked_list_hides_reflections_made_private(self, service: ReflectionService):
        reflection = service.create_reflection(UID, "likeable")
        service.update_visibility(UID, reflection.id, is_public=True)
        service.toggle_like(reflection.id, "fan", uid="fan")

        service.update_visibility(UID, reflection.id, is_public=False)
        assert service.liked_reflections("fan") == []


class TestRoles:
    def test_add_is_trimmed_and_case_insensitive(self, service: ReflectionService):
        assert service.get_roles(UID) == []
        assert service.add_role(UID, "  Parent ") == ["Parent"]
        assert service.add_role(UID, "parent") == ["Parent"]
        assert service.add_role(UID, "Founder") == ["Parent", "Founder"]

    def test_remove_is_case_insensitive(self, service: ReflectionService):
        service.add_role(UID, "Parent")
        service.add_role(UID, "Founder")
        assert service.remove_role(UID, "PARENT") == ["Founder"]
        assert service.remove_role(UID, "Coach") == ["Founder"]

    def test_empty_role_rejected(self, service: ReflectionService):
        with pytest.raises(ValueError):
            service.add_role(UID, "   ")


class TestHistory:
    def test_weekly_history_groups_by_local_week(self, service: ReflectionService, store: RevoStore):
        store.save_reflection(make_reflection(created_at=datetime(2026, 2, 18, 2, 0, tzinfo=UTC)))
        store.save_reflection(make_reflection(created_at=datetime(2026, 2, 19, 2, 0, tzinfo=UTC)))
        # Monday 00:30 in Kuala Lumpur belongs to the next week
        store.save_reflection(make_reflection(created_at=datetime(2026, 2, 22, 16, 30, tzinfo=UTC)))
        store.create_weekly_summary(UID, make_weekly("2026-W08"))

        history = service.weekly_history(UID, KL)

        assert [(e.week_id, e.reflection_count, e.has_summary) for e in history] == [
            ("2026-W09", 1, False),
            ("2026-W08", 2, True),
        ]
        assert history[1].week_label == "Week 8 (16–22 Feb)"
        assert history[1].start == datetime(2026, 2, 15, 16, 0, tzinfo=UTC)

    def test_week_detail(self, service: ReflectionService, store: RevoStore):
        store.save_reflection(make_reflection(text="Inside the week"))
        store.create_weekly_summary(UID, make_weekly("2026-W08"))

        detail = service.week_detail(UID, "2026-W08", KL)
        assert [r.title for r in detail.reflections] == ["Inside the week"]
        assert detail.weekly_summary.week_id == "2026-W08"
        assert detail.week_label == "Week 8 (16–22 Feb)"

        empty = service.week_detail(UID, "2026-W10", KL)
        assert empty.reflections == []
        assert empty.weekly_summary is None


class TestStats:
    def test_dashboard_numbers(self, service: ReflectionService, store: RevoStore, clock: Clock):
        clock.now = datetime(2026, 1, 10, tzinfo=UTC)
        old = service.create_reflection(UID, "January")
        clock.now = NOW
        current = service.create_reflection(UID, "This week")
        service.update_visibility(UID, current.id, is_public=True)
        service.update_visibility(UID, old.id, is_public=True)
        service.toggle_like(current.id, "fan")

        stats = service.stats(UID, KL, now=NOW + timedelta(days=2))

        assert stats.total_reflections == 2
        assert stats.total_public_reflections == 2
        assert stats.total_likes_received == 1
        assert stats.reflections_this_week == 1
        assert stats.reflections_this_month == 1
        assert stats.days_with_revo == 41
        assert stats.account_created_at == datetime(2026, 1, 10, tzinfo=UTC)

    def test_new_user(self, service: ReflectionService):
        stats = service.stats(UID, KL)
        assert stats.total_reflections == 0
        assert stats.days_with_revo == 0
        assert stats.account_created_at == NOW

    def test_naive_now_is_utc(self, service: ReflectionService, clock: Clock):
        clock.now = datetime(2026, 1, 10, tzinfo=UTC)
        service.create_reflection(UID, "January")

        stats = service.stats(UID, KL, now=datetime(2026, 2, 20, 1, 0))
        assert stats.days_with_revo == 41
        assert stats.reflections_this_month == 0


class TestDeleteAccount:
    def test_removes_everything(self, service: ReflectionService, store: RevoStore):
        reflection = service.create_reflection(UID, "text")
        service.add_role(UID, "Parent")
        store.create_weekly_summary(UID, make_weekly("2026-W08"))

        service.delete_account(UID)

        assert store.get_reflection(reflection.id) is None
        assert store.get_roles(UID) is None
        assert store.get_weekly_summary(UID, "2026-W08") is None

    def test_removes_likes_on_deleted_reflections(self, service: ReflectionService, store: RevoStore):
        reflection = service.create_reflection(UID, "text")
        service.update_visibility(UID, reflection.id, is_public=True)
        service.toggle_like(reflection.id, "fan", uid="fan")
        assert len(store.get_user_likes("fan")) == 1

        service.delete_account(UID)

        assert store.get_user_likes("fan") == []
