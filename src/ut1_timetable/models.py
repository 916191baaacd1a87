"""Pydantic models for timetable data.

Every stage of the pipeline produces new frozen values for the next one:
the extractor yields DayContainer/RawEvent, the time mapper ResolvedEvent,
and recoverable problems along the way become Diagnostic records.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DayContainer(BaseModel):
    """One day column of the rendered timetable grid."""

    model_config = ConfigDict(frozen=True)

    calendar_date: date
    pixel_top: float  # absolute page offset of the column's top edge
    pixel_height: float = Field(gt=0)
    day_start_time: time
    day_end_time: time
    index: int = 0  # left-to-right position in the grid

    @model_validator(mode="after")
    def _end_after_start(self) -> "DayContainer":
        if self.day_end_time <= self.day_start_time:
            raise ValueError("day_end_time must be after day_start_time")
        return self


class RawEvent(BaseModel):
    """An event block as scraped, positioned relative to its day column."""

    model_config = ConfigDict(frozen=True)

    container_ref: DayContainer
    pixel_offset_top: float
    pixel_height: float
    title: str
    location: str = ""
    description: str = ""  # teacher, notes... (lines after the location)
    raw_text_block: str
    index: int = 0  # position among the blocks of its column


class ResolvedEvent(BaseModel):
    """A timetable entry with an absolute start and a duration."""

    model_config = ConfigDict(frozen=True)

    title: str
    location: str = ""
    start: datetime
    duration: timedelta
    description: str = ""

    @field_validator("start")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("start must be timezone-aware")
        return value

    @field_validator("duration")
    @classmethod
    def _positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("duration must be positive")
        return value

    @property
    def end(self) -> datetime:
        return self.start + self.duration


class DiagnosticKind(str, Enum):
    MISSING_DATE_LABEL = "missing_date_label"
    GEOMETRY_UNAVAILABLE = "geometry_unavailable"
    GEOMETRY_CLAMPED = "geometry_clamped"
    DEGENERATE_EVENT = "degenerate_event"


class Diagnostic(BaseModel):
    """A recoverable problem reported alongside a successful result."""

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    message: str
    container_index: int | None = None
    event_index: int | None = None


class ExtractedDay(BaseModel):
    """A day column and the events found inside it, in page order."""

    model_config = ConfigDict(frozen=True)

    container: DayContainer
    events: tuple[RawEvent, ...] = ()


class ExtractionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    days: tuple[ExtractedDay, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()

    def pairs(self) -> list[tuple[DayContainer, RawEvent]]:
        """Flatten to (container, event) pairs in extraction order."""
        return [(day.container, event) for day in self.days for event in day.events]


class TimetableResult(BaseModel):
    """Outcome of one run: the calendar text plus everything that was skipped."""

    model_config = ConfigDict(frozen=True)

    events: tuple[ResolvedEvent, ...] = ()
    calendar: str
    diagnostics: tuple[Diagnostic, ...] = ()
