"""Configuration dataclasses for Revo."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo

DEFAULT_CONFIG_DIR = Path.home() / ".revo"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = DEFAULT_CONFIG_DIR / "revo.db"

# Zone used for users who have not stored one and offered no valid guess
DEFAULT_TIMEZONE = "Asia/Kuala_Lumpur"
DEFAULT_SUMMARIZER_TIMEOUT = 120


@dataclass
class AccountConfig:
    """Verified local identity. Empty uid means signed out."""

    uid: str = ""


@dataclass
class SummarizerConfig:
    """Summarizer configuration."""

    enabled: bool = True
    model: str = ""
    timeout: int = DEFAULT_SUMMARIZER_TIMEOUT


@dataclass
class StdoutExporterConfig:
    """Stdout exporter configuration."""

    enabled: bool = True
    show_suggestions: bool = True


@dataclass
class RevoConfig:
    """Main Revo configuration."""

    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    timezone: ZoneInfo = field(default_factory=lambda: ZoneInfo(DEFAULT_TIMEZONE))
    account: AccountConfig = field(default_factory=AccountConfig)
    summarizer: SummarizerConfig = field(default_factory=SummarizerConfig)
    stdout: StdoutExporterConfig = field(default_factory=StdoutExporterConfig)

    @property
    def timezone_name(self) -> str:
        return str(self.timezone)
