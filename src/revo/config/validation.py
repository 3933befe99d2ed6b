"""Configuration validation for Revo."""

from __future__ import annotations

from dataclasses import dataclass
from zoneinfo import ZoneInfo

from revo.config.models import RevoConfig


@dataclass(frozen=True)
class ValidationError:
    """A configuration validation error."""

    path: str
    message: str


class ConfigValidator:
    """Validate RevoConfig dataclass against schema."""

    def validate(self, config: RevoConfig) -> list[ValidationError]:
        """Validate config, return list of errors (empty if valid)."""
        errors: list[ValidationError] = []

        if not isinstance(config.timezone, ZoneInfo):
            errors.append(
                ValidationError("general.timezone", f"Not an IANA zone: {config.timezone!r}")
            )

        if config.account is None:
            errors.append(ValidationError("account", "Account config is None"))
        elif not isinstance(config.account.uid, str):
            errors.append(
                ValidationError("account.uid", f"uid {config.account.uid!r} is not a string")
            )

        if config.summarizer is None:
            errors.append(ValidationError("summarizer", "Summarizer config is None"))
        else:
            if not isinstance(config.summarizer.model, str):
                errors.append(
                    ValidationError(
                        "summarizer.model",
                        f"Model {config.summarizer.model!r} is not a string",
                    )
                )
            timeout = config.summarizer.timeout
            if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
                errors.append(
                    ValidationError(
                        "summarizer.timeout",
                        f"Invalid timeout: {timeout!r} (expected positive seconds)",
                    )
                )

        if config.stdout is None:
            errors.append(ValidationError("exporters.stdout", "Stdout config is None"))

        return errors
