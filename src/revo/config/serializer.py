"""TOML serialization for Revo configuration."""

from __future__ import annotations

from revo.config.models import RevoConfig


def _escape(value: str) -> str:
    """Escape backslashes and quotes for a TOML basic string."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def generate_config_toml(config: RevoConfig) -> str:
    """Generate TOML string from config for writing to file."""
    return f"""[general]
db_path = "{_escape(str(config.db_path))}"
timezone = "{config.timezone_name}"

[account]
uid = "{_escape(config.account.uid)}"

[summarizer]
enabled = {str(config.summarizer.enabled).lower()}
model = "{_escape(config.summarizer.model)}"
timeout = {config.summarizer.timeout}

[exporters.stdout]
enabled = {str(config.stdout.enabled).lower()}
show_suggestions = {str(config.stdout.show_suggestions).lower()}
"""
