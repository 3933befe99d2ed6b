"""Terminal/stdout exporter - reflections and summaries in the terminal."""

from __future__ import annotations

from datetime import datetime

import click

from revo.config import RevoConfig
from revo.exporters.base import Exporter
from revo.models import (
    DashboardStats,
    MonthlySummary,
    PublicReflection,
    Reflection,
    Suggestions,
    WeekDetail,
    WeekHistoryEntry,
    WeeklySummary,
    derive_title,
)
from revo.status import SummaryState, SummaryStatus

STATE_COLORS: dict[SummaryState, str] = {
    SummaryState.BLOCKED: "red",
    SummaryState.READY: "yellow",
    SummaryState.EXISTS: "cyan",
    SummaryState.GENERATED: "green",
}

RULE = "─" * 40


class StdoutExporter(Exporter):
    def export_status(self, status: SummaryStatus, config: RevoConfig) -> None:
        label = f"{status.period_type.value.capitalize()} {status.period_id}"
        state = click.style(status.state.value, fg=STATE_COLORS[status.state], bold=True)

        click.echo()
        click.echo(click.style(f"  {label}", bold=True) + f"  [{state}]")

        if status.state is SummaryState.BLOCKED:
            click.echo(click.style(f"  {status.reason}", dim=True))
        elif status.state is SummaryState.READY:
            if status.included or status.missing:
                self._print_coverage(status.included, status.missing)
            click.echo(click.style("  Ready to generate (use --generate)", dim=True))
        elif isinstance(status.record, WeeklySummary):
            self._print_weekly(status.record)
        elif isinstance(status.record, MonthlySummary):
            self._print_monthly(status.record)
        click.echo()

    def export_reflections(self, reflections: list[Reflection], config: RevoConfig) -> None:
        click.echo()
        if not reflections:
            click.echo(click.style("  (no reflections)", dim=True))
            click.echo()
            return

        for reflection in reflections:
            when = self._local(reflection.created_at, config).strftime("%Y-%m-%d %H:%M")
            title = derive_title(reflection.text, reflection.title)
            badges = ""
            if reflection.is_public:
                badges += " " + click.style("[public]", fg="green")
            if reflection.is_anonymous:
                badges += " " + click.style("[anonymous]", fg="magenta")
            if reflection.likes:
                badges += " " + click.style(f"♥ {reflection.likes}", fg="red")

            click.echo(
                f"    {click.style(when, dim=True)}  "
                f"{click.style(reflection.id, fg='cyan')}  {title}{badges}"
            )
        click.echo()

    def export_reflection(self, reflection: Reflection, config: RevoConfig) -> None:
        title = derive_title(reflection.text, reflection.title)
        created = self._local(reflection.created_at, config).strftime("%Y-%m-%d %H:%M")

        click.echo()
        click.echo(click.style(f"  {title}", bold=True))
        click.echo(click.style(f"  {'═' * len(title)}", dim=True))
        click.echo(click.style(f"  {reflection.id}  created {created}", dim=True))
        if reflection.updated_at:
            updated = self._local(reflection.updated_at, config).strftime("%Y-%m-%d %H:%M")
            click.echo(click.style(f"  edited {updated}", dim=True))
        visibility = "public" if reflection.is_public else "private"
        if reflection.is_public and reflection.is_anonymous:
            visibility += ", anonymous"
        click.echo(click.style(f"  {visibility}, {reflection.likes} likes", dim=True))
        click.echo()

        for line in reflection.text.splitlines():
            click.echo(f"  {line}")

        if config.stdout.show_suggestions:
            self._print_suggestions(reflection.suggestions)
        click.echo()

    def export_public(self, reflections: list[PublicReflection], config: RevoConfig) -> None:
        click.echo()
        if not reflections:
            click.echo(click.style("  (no public reflections)", dim=True))
            click.echo()
            return

        for reflection in reflections:
            when = reflection.liked_at or reflection.created_at
            when_str = self._local(when, config).strftime("%Y-%m-%d")
            author = "anonymous" if reflection.is_anonymous else reflection.author_uid
            click.echo(
                f"    {click.style(when_str, dim=True)}  "
                f"{click.style(reflection.id, fg='cyan')}  "
                f"{click.style(reflection.title, bold=True)} "
                + click.style(f"by {author}", dim=True)
                + " "
                + click.style(f"♥ {reflection.likes}", fg="red")
            )
            if reflection.roles_involved:
                click.echo(click.style(f"      roles: {', '.join(reflection.roles_involved)}", dim=True))
        click.echo()

    def export_stats(self, stats: DashboardStats, config: RevoConfig) -> None:
        rows = [
            ("Reflections", stats.total_reflections),
            ("Public", stats.total_public_reflections),
            ("Likes received", stats.total_likes_received),
            ("This week", stats.reflections_this_week),
            ("This month", stats.reflections_this_month),
            ("Days with Revo", stats.days_with_revo),
        ]
        click.echo()
        for name, value in rows:
            click.echo(click.style(f"  {name:<16}", dim=True) + click.style(str(value), bold=True))
        since = self._local(stats.account_created_at, config).strftime("%Y-%m-%d")
        click.echo(click.style(f"  {'Member since':<16}", dim=True) + since)
        click.echo()

    def export_history(self, entries: list[WeekHistoryEntry], config: RevoConfig) -> None:
        click.echo()
        if not entries:
            click.echo(click.style("  (no weeks with reflections)", dim=True))
            click.echo()
            return

        for entry in entries:
            mark = click.style("✓", fg="green") if entry.has_summary else click.style("·", dim=True)
            count = f"{entry.reflection_count} reflection" + ("" if entry.reflection_count == 1 else "s")
            click.echo(
                f"    {mark} {click.style(entry.week_id, fg='cyan')}  "
                f"{entry.week_label}  " + click.style(count, dim=True)
            )
        click.echo()

    def export_week(self, detail: WeekDetail, config: RevoConfig) -> None:
        click.echo()
        click.echo(click.style(f"  {detail.week_label}", bold=True))
        click.echo(click.style(f"  {'═' * len(detail.week_label)}", dim=True))
        self.export_reflections(detail.reflections, config)
        if detail.weekly_summary:
            self._print_weekly(detail.weekly_summary)
            click.echo()

    # --- helpers ---

    def _local(self, instant: datetime, config: RevoConfig) -> datetime:
        return instant.astimezone(config.timezone)

    def _print_section(self, title: str) -> None:
        click.echo()
        click.echo(click.style(f"  {RULE}", dim=True))
        click.echo(click.style(f"  {title}", bold=True))
        click.echo(click.style(f"  {RULE}", dim=True))

    def _print_bullets(self, title: str, items: tuple[str, ...], color: str) -> None:
        if not items:
            return
        click.echo()
        click.echo(click.style(f"  {title}", fg=color, bold=True))
        for item in items:
            click.echo(f"    • {item}")

    def _print_coverage(self, included: tuple[str, ...], missing: tuple[str, ...]) -> None:
        click.echo(click.style("  Weeks included: ", dim=True) + (", ".join(included) or "-"))
        if missing:
            click.echo(click.style("  Weeks missing:  ", dim=True) + click.style(", ".join(missing), fg="yellow"))

    def _print_weekly(self, summary: WeeklySummary) -> None:
        self._print_section("Summary")
        click.echo(f"  {summary.summary}")
        self._print_bullets("Wins", summary.wins, "green")
        self._print_bullets("Challenges", summary.challenges, "red")
        self._print_bullets("Next week", summary.next_week, "cyan")

    def _print_monthly(self, summary: MonthlySummary) -> None:
        self._print_coverage(summary.weeks_included, summary.weeks_missing)
        self._print_section("Summary")
        click.echo(f"  {summary.summary}")
        for title, text in (
            ("Patterns", summary.patterns),
            ("Emotional trend", summary.emotional_trend),
            ("Role trend", summary.role_trend),
            ("Productivity trend", summary.productivity_trend),
        ):
            if text:
                click.echo()
                click.echo(click.style(f"  {title}", bold=True))
                click.echo(f"  {text}")
        self._print_bullets("Action steps", summary.action_steps, "cyan")

    def _print_suggestions(self, suggestions: Suggestions | None) -> None:
        if not suggestions:
            return
        self._print_section("Suggestions")
        for role, suggestion in suggestions.items():
            click.echo()
            if suggestion is None:
                click.echo(click.style(f"  {role}: not applicable", dim=True))
                continue
            click.echo(click.style(f"  {role}", fg="cyan", bold=True) + f" - {suggestion.title}")
            click.echo(f"  {suggestion.suggestion}")
