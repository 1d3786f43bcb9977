"""Configuration management for calendarful."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from calendarful.recurrence.rrule_strategies import BUILTIN_STRATEGIES, DEFAULT_MAX_OCCURRENCES

logger = logging.getLogger(__name__)

ENV_PREFIX = "CALENDARFUL_"


def parse_env_file(path: Path) -> dict[str, str]:
    """Read KEY=VALUE defaults from a .env file.

    Blank lines, # comments and lines without "=" are skipped. An optional
    leading "export " is accepted. A value wrapped in a matching pair of
    quotes is taken literally; an unquoted value ends at " #".

    Returns:
        Parsed values, or an empty dict when the file is missing or unreadable
    """
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return {}
    except OSError:
        logger.warning("Could not read %s, ignoring it", path, exc_info=True)
        return {}

    values: dict[str, str] = {}
    for line in lines:
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, sep, raw = line.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue

        raw = raw.strip()
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'":
            values[key] = raw[1:-1]
        else:
            values[key] = raw.split(" #", 1)[0].rstrip()
    return values


class CalendarSettings(BaseModel):
    """Settings shared by the calendars a factory builds."""

    default_limit: Optional[int] = Field(
        default=None, ge=0, description="Limit used when populate() receives none"
    )
    max_occurrences_per_rule: int = Field(
        default=DEFAULT_MAX_OCCURRENCES, ge=1, description="Per-template cap of built-in strategies"
    )
    enabled_strategies: list[str] = Field(
        default_factory=lambda: list(BUILTIN_STRATEGIES),
        description="Built-in recurrence strategies to register",
    )
    log_level: str = Field(default="INFO", description="Log level for calendarful loggers")

    @field_validator("enabled_strategies")
    @classmethod
    def _known_strategies(cls, value: list[str]) -> list[str]:
        unknown = [label for label in value if label not in BUILTIN_STRATEGIES]
        if unknown:
            raise ValueError(
                f"Unknown built-in strategies: {', '.join(unknown)} "
                f"(available: {', '.join(BUILTIN_STRATEGIES)})"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Invalid log level: {value}")
        return level


class ConfigManager:
    """Builds CalendarSettings from environment variables and a .env file."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file into the environment.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_settings(self) -> CalendarSettings:
        """Build settings from environment variables.

        Recognizes:
        - CALENDARFUL_DEFAULT_LIMIT -> default_limit (int)
        - CALENDARFUL_MAX_OCCURRENCES -> max_occurrences_per_rule (int)
        - CALENDARFUL_STRATEGIES -> enabled_strategies (comma-separated labels)
        - CALENDARFUL_LOG_LEVEL -> log_level

        Integers that fail to parse are logged and ignored.
        """
        values: dict[str, object] = {}

        default_limit = self._int_env("DEFAULT_LIMIT")
        if default_limit is not None:
            values["default_limit"] = default_limit

        max_occurrences = self._int_env("MAX_OCCURRENCES")
        if max_occurrences is not None:
            values["max_occurrences_per_rule"] = max_occurrences

        strategies = os.environ.get(f"{ENV_PREFIX}STRATEGIES")
        if strategies is not None:
            values["enabled_strategies"] = [
                label.strip().lower() for label in strategies.split(",") if label.strip()
            ]

        log_level = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            values["log_level"] = log_level

        return CalendarSettings(**values)

    def load(self) -> CalendarSettings:
        """Load the .env file, then build settings from the environment."""
        self.load_env_file()
        return self.build_settings()

    @staticmethod
    def _int_env(name: str) -> Optional[int]:
        raw = os.environ.get(f"{ENV_PREFIX}{name}")
        if raw is None or raw.strip() == "":
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring invalid %s%s=%r (expected integer)", ENV_PREFIX, name, raw)
            return None
