"""CLI interface for revo — click-based commands."""

from __future__ import annotations

import getpass
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, tzinfo

import click

from revo.config import RevoConfig, generate_config_toml
from revo.config.models import DEFAULT_CONFIG_PATH, DEFAULT_TIMEZONE, AccountConfig
from revo.errors import MalformedPeriodId, RevoError, Unauthorized
from revo.journal import Journal
from revo.periods.calendar import (
    month_id_of,
    parse_month_id,
    parse_week_id,
    shift_month_id,
    shift_week_id,
    week_id_of,
)
from revo.timezones import is_valid_zone


def parse_week_arg(value: str, now: datetime, tz: tzinfo) -> str:
    """Parse a week argument into a week id.

    Supports: 'this-week', 'last-week', 'YYYY-Www'
    """
    value = value.strip()
    if value.lower() == "this-week":
        return week_id_of(now, tz)
    if value.lower() == "last-week":
        return shift_week_id(week_id_of(now, tz), -1)

    week_id = value.upper()
    try:
        parse_week_id(week_id)
    except MalformedPeriodId as e:
        msg = f"Invalid week: '{value}'. Use 'this-week', 'last-week', or YYYY-Www."
        raise click.BadParameter(msg) from e
    return week_id


def parse_month_arg(value: str, now: datetime, tz: tzinfo) -> str:
    """Parse a month argument into a month id.

    Supports: 'this-month', 'last-month', 'YYYY-MM'
    """
    value = value.strip().lower()
    if value == "this-month":
        return month_id_of(now, tz)
    if value == "last-month":
        return shift_month_id(month_id_of(now, tz), -1)

    try:
        parse_month_id(value)
    except MalformedPeriodId as e:
        msg = f"Invalid month: '{value}'. Use 'this-month', 'last-month', or YYYY-MM."
        raise click.BadParameter(msg) from e
    return value


@click.group()
@click.version_option(package_name="revo")
def cli() -> None:
    """Revo — a personal reflection journal with AI coaching.

    Write reflections, tag them with your life roles, and roll them up
    into weekly and monthly summaries.

    Run 'revo init' to set up your configuration.
    """


@cli.command()
@click.option("--uid", default=None, help="Account id (defaults to your login name)")
@click.option("--timezone", "timezone_name", default=DEFAULT_TIMEZONE, help="Default IANA timezone")
def init(uid: str | None, timezone_name: str) -> None:
    """Create default configuration at ~/.revo/config.toml."""
    from zoneinfo import ZoneInfo

    if not is_valid_zone(timezone_name):
        msg = f"Unknown timezone: {timezone_name}"
        raise click.BadParameter(msg, param_hint="--timezone")

    config_path = DEFAULT_CONFIG_PATH
    if config_path.exists() and not click.confirm(
        f"Config already exists at {config_path}. Overwrite?"
    ):
        return

    config = RevoConfig(
        timezone=ZoneInfo(timezone_name),
        account=AccountConfig(uid=uid or getpass.getuser()),
    )
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_config_toml(config))

    click.echo(f"✓ Config created at: {config_path}")
    click.echo("Edit to change your account, timezone, or summarizer model.")


@cli.command()
def reset() -> None:
    """Delete the revo database and start fresh."""
    config = _load_config()
    db_path = config.db_path
    if not db_path.exists():
        click.echo(f"No database at {db_path}")
        return
    if click.confirm(f"Delete {db_path}? This removes all reflections and summaries."):
        db_path.unlink()
        click.echo("Database deleted. Run 'revo write' to start fresh.")


@cli.command()
@click.argument("text", required=False)
@click.option("--title", default="", help="Optional title (defaults to the first line)")
def write(text: str | None, title: str) -> None:
    """Write a new reflection.

    Without TEXT, opens $EDITOR.
    """
    if text is None:
        text = click.edit()
    if not text or not text.strip():
        raise click.ClickException("Empty reflection, nothing saved.")

    with _journal() as journal:
        journal.write(text, title)


@cli.command()
@click.argument("reflection_id")
@click.argument("text", required=False)
def edit(reflection_id: str, text: str | None) -> None:
    """Replace a reflection's text. Clears its suggestions.

    Without TEXT, opens the current text in $EDITOR.
    """
    with _journal() as journal:
        if text is None:
            current = journal.service.get_reflection(reflection_id, uid=journal.uid)
            text = click.edit(current.text)
            if text is None:
                click.echo("No changes.")
                return
        journal.edit(reflection_id, text)


@cli.command()
@click.argument("reflection_id")
@click.confirmation_option(prompt="Delete this reflection?")
def delete(reflection_id: str) -> None:
    """Delete one of your reflections."""
    with _journal() as journal:
        journal.delete(reflection_id)


@cli.command(name="list")
def list_reflections() -> None:
    """List your reflections, newest first."""
    with _journal() as journal:
        journal.list_reflections()


@cli.command()
@click.argument("reflection_id")
def show(reflection_id: str) -> None:
    """Show one reflection with its suggestions."""
    with _journal() as journal:
        journal.show(reflection_id)


@cli.command()
@click.argument("reflection_id")
@click.option("--role", "roles", multiple=True, help="Role to coach (repeatable; defaults to your roles)")
def suggest(reflection_id: str, roles: tuple[str, ...]) -> None:
    """Generate per-role coaching suggestions for a reflection.

    Allowed once per version of the text; edit the reflection to regenerate.
    """
    with _journal() as journal:
        journal.suggest(reflection_id, list(roles) or None)


@cli.command()
@click.argument("reflection_id")
@click.option("--anonymous", is_flag=True, help="Hide your name on the public feed")
@click.option("--private", "make_private", is_flag=True, help="Make the reflection private again")
def publish(reflection_id: str, anonymous: bool, make_private: bool) -> None:
    """Share a reflection on the public feed (or unshare it)."""
    if anonymous and make_private:
        msg = "Cannot use both --anonymous and --private"
        raise click.UsageError(msg)
    with _journal() as journal:
        journal.publish(reflection_id, is_public=not make_private, is_anonymous=anonymous)


@cli.command()
@click.argument("reflection_id")
def like(reflection_id: str) -> None:
    """Like a public reflection, or unlike it if already liked."""
    with _journal() as journal:
        journal.like(reflection_id)


@cli.command()
@click.argument("reflection_id", required=False)
def public(reflection_id: str | None) -> None:
    """Browse the public feed, or one public reflection."""
    with _journal() as journal:
        journal.public(reflection_id)


@cli.command()
def likes() -> None:
    """Reflections you have liked that are still public."""
    with _journal() as journal:
        journal.likes()


@cli.group(invoke_without_command=True)
@click.pass_context
def roles(ctx: click.Context) -> None:
    """Manage your life roles (parent, founder, ...)."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_roles)


@roles.command(name="list")
def list_roles() -> None:
    """List your roles."""
    with _journal() as journal:
        journal.roles()


@roles.command(name="add")
@click.argument("role")
def add_role(role: str) -> None:
    """Add a role (case-insensitive duplicates are ignored)."""
    with _journal() as journal:
        journal.add_role(role)


@roles.command(name="remove")
@click.argument("role")
def remove_role(role: str) -> None:
    """Remove a role."""
    with _journal() as journal:
        journal.remove_role(role)


@cli.command()
def stats() -> None:
    """Dashboard numbers: totals, this week, this month, likes."""
    with _journal() as journal:
        journal.stats()


@cli.command()
def weeks() -> None:
    """Weeks with reflections, newest first, and whether each has a summary."""
    with _journal() as journal:
        journal.weeks()


@cli.command()
@click.argument("week_str", default="last-week")
@click.option("--generate", is_flag=True, help="Generate the summary if the week allows it")
@click.option("--reflections", "show_reflections", is_flag=True, help="Also list the week's reflections")
def week(week_str: str, generate: bool, show_reflections: bool) -> None:
    """Weekly summary status, or generate it.

    WEEK can be 'this-week', 'last-week', or YYYY-Www.

    A week can only be summarized once it has fully ended (Monday 00:00 in
    your timezone) and has at least one reflection. Once generated, the
    summary is stored and never regenerated.

    Examples:

        revo week                      # Last week's status

        revo week 2026-W08 --generate  # Summarize a specific week
    """
    with _journal() as journal:
        week_id = parse_week_arg(week_str, journal.now(), journal.zone())
        journal.week(week_id, generate=generate, show_reflections=show_reflections)


@cli.command()
@click.argument("month_str", default="last-month")
@click.option("--generate", is_flag=True, help="Generate the summary if the month allows it")
def month(month_str: str, generate: bool) -> None:
    """Monthly summary status, or generate it.

    MONTH can be 'this-month', 'last-month', or YYYY-MM.

    Built from the weekly summaries of every ISO week that touches the
    month; weeks without a summary are reported as missing.
    """
    with _journal() as journal:
        month_id = parse_month_arg(month_str, journal.now(), journal.zone())
        journal.month(month_id, generate=generate)


@cli.command(name="delete-account")
@click.confirmation_option(prompt="Delete ALL your reflections, summaries, likes and roles?")
def delete_account() -> None:
    """Permanently delete everything stored for your account."""
    with _journal() as journal:
        journal.delete_account()


@contextmanager
def _journal() -> Iterator[Journal]:
    """Open a Journal for one command and map domain errors to CLI errors."""
    journal = Journal(_load_config())
    try:
        yield journal
    except Unauthorized as e:
        msg = f"{e}. Set account.uid in your config (or run 'revo init')."
        raise click.ClickException(msg) from None
    except MalformedPeriodId as e:
        raise click.BadParameter(str(e)) from None
    except (RevoError, ValueError) as e:
        raise click.ClickException(str(e)) from None
    finally:
        journal.close()


def _load_config() -> RevoConfig:
    """Load config, with helpful error message if missing."""
    from revo.config import load_config

    try:
        return load_config(DEFAULT_CONFIG_PATH)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from None
