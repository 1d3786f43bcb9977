"""Factory wiring calendars to their recurrence strategies."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from calendarful.calendar import Calendar
from calendarful.calendar_logging import configure_logging
from calendarful.core.config_manager import CalendarSettings, ConfigManager
from calendarful.recurrence.base import RecurrenceStrategy
from calendarful.recurrence.registry import RecurrenceRegistry
from calendarful.recurrence.rrule_strategies import BUILTIN_STRATEGIES

logger = logging.getLogger(__name__)


class CalendarFactory:
    """Builds calendars and strategy registries."""

    @staticmethod
    def build_registry(settings: CalendarSettings) -> RecurrenceRegistry:
        """Create a registry holding the built-in strategies enabled in settings."""
        registry = RecurrenceRegistry()
        for label in settings.enabled_strategies:
            strategy_class = BUILTIN_STRATEGIES[label]
            registry.register(strategy_class(max_occurrences=settings.max_occurrences_per_rule))
        return registry

    @classmethod
    def from_registry(
        cls,
        name: str,
        strategies: Iterable[RecurrenceStrategy] | RecurrenceRegistry,
        default_limit: Optional[int] = None,
    ) -> Calendar:
        """Create a calendar expanding templates with the given strategies."""
        if isinstance(strategies, RecurrenceRegistry):
            registry = strategies
        else:
            registry = RecurrenceRegistry(strategies)
        return Calendar(name, registry=registry, default_limit=default_limit)

    @classmethod
    def from_settings(
        cls,
        name: str,
        settings: Optional[CalendarSettings] = None,
        extra_strategies: Iterable[RecurrenceStrategy] = (),
    ) -> Calendar:
        """Create a calendar from settings.

        Args:
            name: Calendar name
            settings: Settings to use (defaults to CalendarSettings())
            extra_strategies: Caller strategies registered after the built-in
                ones; a matching label replaces the built-in strategy

        Returns:
            Unpopulated calendar
        """
        settings = settings or CalendarSettings()
        registry = cls.build_registry(settings)
        for strategy in extra_strategies:
            registry.register(strategy)

        logger.debug("Created calendar %r with strategies %s", name, registry.labels())
        return Calendar(name, registry=registry, default_limit=settings.default_limit)

    @classmethod
    def from_environment(cls, name: str, env_file_path: Optional[Path] = None) -> Calendar:
        """Create a calendar from CALENDARFUL_* environment variables and .env defaults.

        Also configures logging at the loaded log_level.
        """
        settings = ConfigManager(env_file_path).load()
        configure_logging(level_name=settings.log_level)
        return cls.from_settings(name, settings)
