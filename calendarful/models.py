"""Data models for calendar event resolution."""

from datetime import datetime, timedelta
from typing import Any, NamedTuple, Optional, Union

from pydantic import BaseModel, Field, field_serializer, model_validator

EventId = Union[int, str]


class CompositeKey(NamedTuple):
    """Deduplication key shared by a generated occurrence and its override."""

    moment: datetime
    owner: EventId


class Event(BaseModel):
    """Calendar event model.

    The role of an event is inferred from which optional fields are present:

    - singular: no recurrence_type, no parent_id
    - template: recurrence_type set; expansion input only, never rendered
    - generated occurrence: produced by a recurrence strategy from a template
    - override: parent_id set; replaces the occurrence at occurrence_date
    """

    # Core properties
    id: EventId = Field(..., description="Event ID, comparable for ordering")
    title: Optional[str] = Field(default=None, description="Event title")

    # Time information
    start_date: datetime = Field(..., description="Event start time")
    end_date: datetime = Field(..., description="Event end time")

    # Recurrence
    recurrence_type: Optional[str] = Field(
        default=None, description="Label of the recurrence strategy that expands this template"
    )
    recurrence_until: Optional[datetime] = Field(
        default=None, description="Last moment a template may produce occurrences"
    )

    # Overrides
    parent_id: Optional[EventId] = Field(
        default=None, description="ID of the template this event overrides"
    )
    occurrence_date: Optional[datetime] = Field(
        default=None, description="Original start of the occurrence being overridden"
    )

    # Expansion tracking
    is_expanded_instance: bool = Field(
        default=False, description="True if generated by a recurrence strategy"
    )

    @model_validator(mode="after")
    def _check_span(self) -> "Event":
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date.isoformat()} is before start_date "
                f"{self.start_date.isoformat()}"
            )
        return self

    @field_serializer(
        "start_date", "end_date", "recurrence_until", "occurrence_date", when_used="unless-none"
    )
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()

    @property
    def duration(self) -> timedelta:
        """Time between start and end."""
        return self.end_date - self.start_date

    @property
    def is_template(self) -> bool:
        return self.recurrence_type is not None

    @property
    def is_override(self) -> bool:
        return self.parent_id is not None and not self.is_expanded_instance

    @property
    def is_generated(self) -> bool:
        return self.is_expanded_instance

    @property
    def is_singular(self) -> bool:
        return self.recurrence_type is None and self.parent_id is None

    @property
    def composite_key(self) -> CompositeKey:
        """Key under which at most one event is visible per resolution.

        An override and the generated occurrence it replaces produce equal keys:
        (occurrence_date, template id).
        """
        moment = self.occurrence_date if self.occurrence_date is not None else self.start_date
        owner = self.parent_id if self.parent_id is not None else self.id
        return CompositeKey(moment, owner)

    @property
    def sort_key(self) -> tuple[datetime, Any]:
        return (self.start_date, self.id)

    def intersects(self, from_date: datetime, to_date: datetime) -> bool:
        """Check whether [start_date, end_date] overlaps the inclusive window."""
        return self.start_date <= to_date and self.end_date >= from_date

    def reschedule(self, start_date: datetime, end_date: Optional[datetime] = None) -> None:
        """Move the event in place.

        When end_date is omitted the current duration is kept. Only
        collaborators building overrides or occurrences should call this.
        """
        if end_date is None:
            end_date = start_date + self.duration
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        self.start_date = start_date
        self.end_date = end_date

    @classmethod
    def occurrence_of(cls, template: "Event", start_date: datetime) -> "Event":
        """Build the generated occurrence of template starting at start_date.

        The occurrence keeps the template's id and title, points back to the
        template through parent_id and remembers its own start as
        occurrence_date so a later override can replace it.
        """
        return template.model_copy(
            update={
                "start_date": start_date,
                "end_date": start_date + template.duration,
                "recurrence_type": None,
                "recurrence_until": None,
                "parent_id": template.id,
                "occurrence_date": start_date,
                "is_expanded_instance": True,
            }
        )

    def __repr__(self) -> str:
        return (
            f"Event(id={self.id!r}, start_date={self.start_date.isoformat()}, "
            f"end_date={self.end_date.isoformat()})"
        )
