"""Label-keyed registry of recurrence strategies."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from calendarful.exceptions import UnknownRecurrenceTypeError
from calendarful.recurrence.base import RecurrenceStrategy

logger = logging.getLogger(__name__)


class RecurrenceRegistry:
    """Lookup table from recurrence label to a pre-built strategy instance.

    Example:
        registry = RecurrenceRegistry()
        registry.register(WeeklyRecurrence())
        strategy = registry.resolve("weekly")
    """

    def __init__(self, strategies: Iterable[RecurrenceStrategy] = ()) -> None:
        self._strategies: dict[str, RecurrenceStrategy] = {}
        for strategy in strategies:
            self.register(strategy)

    def register(self, strategy: RecurrenceStrategy) -> RecurrenceRegistry:
        """Register a strategy under its own label (builder pattern).

        A strategy registered under an existing label replaces the previous one.
        """
        label = strategy.label()
        if label in self._strategies:
            logger.warning("Replacing recurrence strategy registered for %r", label)
        self._strategies[label] = strategy
        logger.debug("Registered recurrence strategy %r", strategy)
        return self

    def all(self) -> dict[str, RecurrenceStrategy]:
        """Return a copy of the label -> strategy mapping."""
        return dict(self._strategies)

    def resolve(self, label: str) -> RecurrenceStrategy:
        """Return the strategy registered for label.

        Raises:
            UnknownRecurrenceTypeError: If nothing is registered under label
        """
        try:
            return self._strategies[label]
        except KeyError:
            raise UnknownRecurrenceTypeError(label) from None

    def labels(self) -> list[str]:
        return list(self._strategies)

    def __contains__(self, label: object) -> bool:
        return label in self._strategies

    def __iter__(self) -> Iterator[RecurrenceStrategy]:
        return iter(list(self._strategies.values()))

    def __len__(self) -> int:
        return len(self._strategies)

    def __repr__(self) -> str:
        return f"RecurrenceRegistry(labels={self.labels()})"
