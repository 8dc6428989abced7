"""Pydantic models for calendar cells, time slots and session records.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Grid and slot values are frozen: they are built fresh per call and never mutated.
"""

import datetime as dt
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from src.scheduling.utils import format_label


class ViewMode(str, Enum):
    """Calendar granularity."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class SessionStatus(str, Enum):
    """Lifecycle of a learning session.

    scheduled -> completed (attendance/grading), scheduled -> cancelled.
    Both completed and cancelled are terminal. Owned by the platform; this
    package only reads it.
    """

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.SCHEDULED


class CalendarCell(BaseModel):
    """One day in a rendered calendar grid."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    belongs_to_current_period: bool
    is_today: bool
    is_past: bool


class TimeSlot(BaseModel):
    """A bookable slot within a day, kept as 24-hour values for comparison."""

    model_config = ConfigDict(frozen=True)

    start_time: dt.time
    end_time: dt.time
    label: str  # "8:00 AM", derived from start_time

    @model_validator(mode="after")
    def _check_order(self) -> "TimeSlot":
        if self.start_time >= self.end_time:
            raise ValueError("slot start_time must be before end_time")
        return self

    @property
    def end_label(self) -> str:
        return format_label(self.end_time)

    def bounds(self, day: dt.date) -> tuple[dt.datetime, dt.datetime]:
        """Half-open [start, end) interval of this slot on a calendar date."""
        return (
            dt.datetime.combine(day, self.start_time),
            dt.datetime.combine(day, self.end_time),
        )


# Relation objects the platform API nests into a session payload, and the
# flat display field each one feeds.
_RELATION_NAME_FIELDS: tuple[tuple[str, str], ...] = (
    ("children", "child_name"),
    ("child", "child_name"),
    ("teacher", "teacher_name"),
    ("subject", "subject_name"),
)


class SessionRecord(BaseModel):
    """A learning session as fetched from the platform datastore.

    Read-only here. Accepts the API's own field names (children_id) and nested
    relation objects ({"teacher": {"name": ...}}), flattening the names into
    child_name / teacher_name / subject_name for free-text search.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    child_id: int | None = Field(
        default=None, validation_alias=AliasChoices("child_id", "children_id")
    )
    subject_id: int | None = None
    teacher_id: int | None = None
    course_id: int | None = None
    start_time: dt.datetime
    end_time: dt.datetime
    status: SessionStatus = SessionStatus.SCHEDULED
    attended: bool | None = None
    performance_score: float | None = None
    location: str | None = None
    notes: str | None = None
    title: str | None = None

    child_name: str | None = None
    teacher_name: str | None = None
    subject_name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_relations(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for relation, name_field in _RELATION_NAME_FIELDS:
            related = data.get(relation)
            if data.get(name_field):
                continue
            if isinstance(related, Mapping):
                data[name_field] = related.get("name")
            elif isinstance(related, str):
                data[name_field] = related
        return data

    @model_validator(mode="after")
    def _check_interval(self) -> "SessionRecord":
        if (self.start_time.tzinfo is None) != (self.end_time.tzinfo is None):
            raise ValueError("start_time and end_time mix naive and aware timestamps")
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    @property
    def time_range_label(self) -> str:
        """e.g. '9:30 AM - 10:30 AM' in the timestamps' own wall-clock time."""
        return (
            f"{format_label(self.start_time.time())} - "
            f"{format_label(self.end_time.time())}"
        )


class SessionFilters(BaseModel):
    """Immutable filter parameters applied before projection.

    Unset fields (None, or blank strings from form inputs) do not filter.
    The date range is inclusive on both ends and tested against start_time.
    """

    model_config = ConfigDict(frozen=True)

    child_id: int | None = None
    subject_id: int | None = None
    status: SessionStatus | None = None
    search_text: str | None = None
    date_range_start: dt.date | None = None
    date_range_end: dt.date | None = None

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        return {
            key: (None if isinstance(value, str) and not value.strip() else value)
            for key, value in data.items()
        }

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class ValidationIssue(BaseModel):
    """A session record excluded from projection, and why."""

    index: int  # position in the input collection
    session_id: int | str | None = None
    message: str


class ChildAttendance(BaseModel):
    """Attendance and performance figures for one child."""

    child_id: int | None
    child_name: str | None = None
    total_sessions: int
    attended_sessions: int
    attendance_rate: float  # percent, one decimal
    avg_performance: float


class AttendanceSummary(BaseModel):
    """Per-child rows plus totals across all of them."""

    children: list[ChildAttendance] = []
    total_sessions: int = 0
    attended_sessions: int = 0
    attendance_rate: float = 0.0
    avg_performance: float = 0.0


@dataclass(frozen=True)
class Projection(Mapping[dt.date, list[SessionRecord]]):
    """Sessions grouped by calendar date, plus the records that were excluded.

    Behaves as a read-only mapping from date to sessions ordered by
    (start_time, id).
    """

    days: dict[dt.date, list[SessionRecord]] = field(default_factory=dict)
    errors: list[ValidationIssue] = field(default_factory=list)

    def __getitem__(self, day: dt.date) -> list[SessionRecord]:
        return self.days[day]

    def __iter__(self) -> Iterator[dt.date]:
        return iter(self.days)

    def __len__(self) -> int:
        return len(self.days)

    @property
    def total_sessions(self) -> int:
        """Distinct sessions across all days (multi-day sessions count once)."""
        return len({s.id for sessions in self.days.values() for s in sessions})
