"""Configuration management for Revo."""

from __future__ import annotations

from revo.config.loader import load_config
from revo.config.models import (
    AccountConfig,
    RevoConfig,
    StdoutExporterConfig,
    SummarizerConfig,
)
from revo.config.serializer import generate_config_toml

__all__ = [
    "RevoConfig",
    "AccountConfig",
    "StdoutExporterConfig",
    "SummarizerConfig",
    "load_config",
    "generate_config_toml",
]
