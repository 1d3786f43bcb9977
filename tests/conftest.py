"""Shared pytest configuration for calendarful tests."""

from collections.abc import Generator
from typing import Any

import pytest


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: End-to-end resolution scenarios")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear CALENDARFUL_* variables so host settings never leak into tests."""
    for name in (
        "CALENDARFUL_DEBUG",
        "CALENDARFUL_LOG_LEVEL",
        "CALENDARFUL_DEFAULT_LIMIT",
        "CALENDARFUL_MAX_OCCURRENCES",
        "CALENDARFUL_STRATEGIES",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
