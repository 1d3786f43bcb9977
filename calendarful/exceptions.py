"""Custom exception hierarchy for calendar resolution errors.

Every error raised by calendarful itself derives from CalendarError so callers
can handle the library's failures in one place. Failures raised by an event
source are never wrapped and reach the caller unchanged.
"""


class CalendarError(Exception):
    """Base exception for all calendarful errors."""


class NotPopulatedError(CalendarError):
    """Calendar result accessed before any successful populate.

    Raised when:
    - iterate(), count(), sort(), limit() or by_day() is called on a fresh Calendar
    - The only populate attempt so far failed

    This is a programming error and should not be retried.
    """


class UnknownRecurrenceTypeError(CalendarError, KeyError):
    """No recurrence strategy is registered under the requested label.

    Raised by RecurrenceRegistry.resolve(). The resolution pipeline never
    triggers it: templates with an unknown label are simply not expanded.
    """

    def __init__(self, label: str) -> None:
        super().__init__(label)
        self.label = label

    def __str__(self) -> str:
        return f"No recurrence strategy registered for label {self.label!r}"


class InvalidRangeError(CalendarError, ValueError):
    """Query window is inverted.

    Raised when populate() receives a from date later than its to date.
    """


class RecurrenceExpansionError(CalendarError):
    """A recurrence strategy failed to expand a template.

    Raised when:
    - dateutil rejects the rule built for a template
    - A template carries dates the strategy cannot iterate over
    """


class MixedEventIdError(CalendarError, TypeError):
    """Candidate events use both integer and string IDs.

    Raised when an event source returns events whose ids are not all of one
    type. Equal start dates are ordered by id, which needs comparable ids.
    """
