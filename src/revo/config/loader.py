"""Load and validate Revo configuration from TOML files."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from revo.config.models import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_DB_PATH,
    DEFAULT_SUMMARIZER_TIMEOUT,
    DEFAULT_TIMEZONE,
    AccountConfig,
    RevoConfig,
    StdoutExporterConfig,
    SummarizerConfig,
)
from revo.config.validation import ConfigValidator


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> RevoConfig:
    """Read the TOML config at ``path`` and return a validated RevoConfig."""
    if not path.exists():
        msg = f"Config not found at {path}. Run 'revo init' to create one."
        raise FileNotFoundError(msg)

    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = _from_dict(data)

    validator = ConfigValidator()
    errors = validator.validate(config)
    if errors:
        error_msgs = "\n".join(f"  {e.path}: {e.message}" for e in errors)
        msg = f"Config validation failed:\n{error_msgs}"
        raise ValueError(msg)

    return config


def _parse_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        msg = f"Config validation failed:\n  general.timezone: Unknown timezone {name!r}"
        raise ValueError(msg) from e


def _from_dict(data: dict[str, Any]) -> RevoConfig:
    """Convert TOML dict to RevoConfig dataclass."""
    general = data.get("general", {})
    account_data = data.get("account", {})
    summarizer_data = data.get("summarizer", {})
    stdout_data = data.get("exporters", {}).get("stdout", {})

    db_path_str = general.get("db_path", str(DEFAULT_DB_PATH))
    db_path = Path(db_path_str).expanduser()

    return RevoConfig(
        db_path=db_path,
        timezone=_parse_timezone(general.get("timezone", "")),
        account=AccountConfig(uid=account_data.get("uid", "")),
        summarizer=SummarizerConfig(
            enabled=summarizer_data.get("enabled", True),
            model=summarizer_data.get("model", ""),
            timeout=summarizer_data.get("timeout", DEFAULT_SUMMARIZER_TIMEOUT),
        ),
        stdout=StdoutExporterConfig(
            enabled=stdout_data.get("enabled", True),
            show_suggestions=stdout_data.get("show_suggestions", True),
        ),
    )
