"""Journal orchestrator - wires store, summarizer, status machine and exporters."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import click

from revo.config import RevoConfig
from revo.errors import Unauthorized
from revo.exporters.base import Exporter
from revo.exporters.stdout import StdoutExporter
from revo.models import Reflection
from revo.periods import format_week_label, week_id_of
from revo.reflections import ReflectionService
from revo.status import Mode, SummaryState, SummaryStatus, SummaryStatusMachine
from revo.store import RevoStore
from revo.summarizer import Summarizer
from revo.timezones import TimeZoneResolver, guess_local_zone


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Journal:
    def __init__(
        self,
        config: RevoConfig,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config = config
        self._clock = clock
        self._store = RevoStore(config.db_path)
        self._resolver = TimeZoneResolver(self._store, config.timezone_name)
        self._summarizer = Summarizer(config)
        self._machine = SummaryStatusMachine(self._store, self._summarizer, clock=clock)
        self._service = ReflectionService(self._store, self._summarizer, clock=clock)
        self._exporters = self._build_exporters()

    def _build_exporters(self) -> Sequence[Exporter]:
        exporters: list[Exporter] = []
        if self._config.stdout.enabled:
            exporters.append(StdoutExporter())
        return exporters

    @property
    def uid(self) -> str:
        """The configured account. Raises Unauthorized when signed out."""
        uid = self._config.account.uid
        if not uid:
            msg = "Not signed in: no account uid configured"
            raise Unauthorized(msg)
        return uid

    @property
    def service(self) -> ReflectionService:
        return self._service

    def now(self) -> datetime:
        return self._clock()

    def zone(self) -> ZoneInfo:
        """The user's zone: stored, else the machine's $TZ (persisted), else the config default."""
        return self._resolver.zone(self.uid, guess_local_zone())

    # --- Summaries ---

    def week(self, week_id: str, generate: bool = False, show_reflections: bool = False) -> SummaryStatus:
        """Show the weekly summary status; with ``generate``, create it if allowed."""
        tz = self.zone()
        if generate:
            click.echo(f"  Generating weekly summary for {week_id}...")

        status = self._machine.weekly(self.uid, week_id, tz, Mode.GENERATE if generate else Mode.CHECK)
        self._report(status, generate)

        if show_reflections:
            detail = self._service.week_detail(self.uid, week_id, tz)
            for exporter in self._exporters:
                exporter.export_week(detail, self._config)
            # export_week already printed the stored summary
            if status.has_record:
                return status
        for exporter in self._exporters:
            exporter.export_status(status, self._config)
        return status

    def month(self, month_id: str, generate: bool = False) -> SummaryStatus:
        """Show the monthly summary status; with ``generate``, create it if allowed."""
        tz = self.zone()
        if generate:
            click.echo(f"  Generating monthly summary for {month_id}...")

        status = self._machine.monthly(self.uid, month_id, tz, Mode.GENERATE if generate else Mode.CHECK)
        self._report(status, generate)
        if status.missing and status.state in (SummaryState.READY, SummaryState.GENERATED):
            click.echo(f"  ⚠️  {len(status.missing)} covering week(s) without a weekly summary")

        for exporter in self._exporters:
            exporter.export_status(status, self._config)
        return status

    def _report(self, status: SummaryStatus, generate: bool) -> None:
        if status.state is SummaryState.GENERATED:
            click.echo(f"  ✓ {status.period_type.value.capitalize()}ly summary generated")
        elif generate and status.state is SummaryState.EXISTS:
            click.echo("  Summary already exists, showing stored version")
        elif generate and status.state is SummaryState.BLOCKED:
            click.echo(f"  Cannot generate: {status.reason}")

    def weeks(self) -> None:
        entries = self._service.weekly_history(self.uid, self.zone())
        for exporter in self._exporters:
            exporter.export_history(entries, self._config)

    # --- Reflections ---

    def write(self, text: str, title: str = "") -> Reflection:
        reflection = self._service.create_reflection(self.uid, text, title)
        week_id = self.week_id_now()
        click.echo(f"  ✓ Saved reflection {reflection.id} ({format_week_label(week_id)})")
        return reflection

    def week_id_now(self) -> str:
        return week_id_of(self.now(), self.zone())

    def edit(self, reflection_id: str, text: str) -> Reflection:
        reflection = self._service.edit_reflection_text(self.uid, reflection_id, text)
        click.echo(f"  ✓ Updated reflection {reflection.id} (suggestions cleared)")
        return reflection

    def delete(self, reflection_id: str) -> None:
        self._service.delete_reflection(self.uid, reflection_id)
        click.echo(f"  ✓ Deleted reflection {reflection_id}")

    def list_reflections(self) -> None:
        reflections = self._service.list_reflections(self.uid)
        for exporter in self._exporters:
            exporter.export_reflections(reflections, self._config)

    def show(self, reflection_id: str) -> Reflection:
        reflection = self._service.get_reflection(reflection_id, uid=self.uid)
        for exporter in self._exporters:
            exporter.export_reflection(reflection, self._config)
        return reflection

    def suggest(self, reflection_id: str, roles: list[str] | None = None) -> Reflection:
        click.echo("  Generating suggestions...")
        reflection = self._service.generate_suggestions(self.uid, reflection_id, roles)
        click.echo(f"  ✓ Suggestions generated for {len(reflection.roles_involved)} role(s)")
        for exporter in self._exporters:
            exporter.export_reflection(reflection, self._config)
        return reflection

    def publish(self, reflection_id: str, is_public: bool, is_anonymous: bool) -> Reflection:
        reflection = self._service.update_visibility(self.uid, reflection_id, is_public, is_anonymous)
        if reflection.is_public:
            suffix = " anonymously" if reflection.is_anonymous else ""
            click.echo(f"  ✓ Reflection {reflection.id} is now public{suffix}")
        else:
            click.echo(f"  ✓ Reflection {reflection.id} is now private")
        return reflection

    # --- Public feed ---

    def like(self, reflection_id: str) -> tuple[int, bool]:
        likes, is_liked = self._service.toggle_like(reflection_id, self.uid, uid=self.uid)
        verb = "Liked" if is_liked else "Unliked"
        click.echo(f"  ✓ {verb} {reflection_id} ({likes} likes)")
        return likes, is_liked

    def public(self, reflection_id: str | None = None) -> None:
        if reflection_id:
            reflections = [self._service.get_public_reflection(reflection_id)]
        else:
            reflections = self._service.list_public_reflections()
        for exporter in self._exporters:
            exporter.export_public(reflections, self._config)

    def likes(self) -> None:
        reflections = self._service.liked_reflections(self.uid)
        for exporter in self._exporters:
            exporter.export_public(reflections, self._config)

    # --- Roles ---

    def roles(self) -> list[str]:
        roles = self._service.get_roles(self.uid)
        if not roles:
            click.echo(click.style("  (no roles yet, add one with 'revo roles add')", dim=True))
        for role in roles:
            click.echo(f"  • {role}")
        return roles

    def add_role(self, role: str) -> list[str]:
        roles = self._service.add_role(self.uid, role)
        click.echo(f"  ✓ Roles: {', '.join(roles)}")
        return roles

    def remove_role(self, role: str) -> list[str]:
        roles = self._service.remove_role(self.uid, role)
        click.echo(f"  ✓ Roles: {', '.join(roles) or '(none)'}")
        return roles

    # --- Account ---

    def stats(self) -> None:
        stats = self._service.stats(self.uid, self.zone(), self.now())
        for exporter in self._exporters:
            exporter.export_stats(stats, self._config)

    def delete_account(self) -> None:
        self._service.delete_account(self.uid)
        click.echo(f"  ✓ Deleted all data for {self.uid}")

    def close(self) -> None:
        self._store.close()
