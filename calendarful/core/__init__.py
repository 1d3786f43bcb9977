"""Configuration support for calendarful."""

from calendarful.core.config_manager import CalendarSettings, ConfigManager, parse_env_file

__all__ = ["CalendarSettings", "ConfigManager", "parse_env_file"]
