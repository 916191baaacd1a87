"""ADE timetable scraper for UT1 Capitole.

Reads the positioned class blocks of the ADE planning view in a real browser,
converts their geometry into times and exports them as an iCalendar file.
"""

from ut1_timetable.config import ScheduleSettings, TimetableConfig, get_config
from ut1_timetable.extractor import TimetableExtractor, split_event_text
from ut1_timetable.mapper import resolve_all, resolve_event
from ut1_timetable.models import (
    DayContainer,
    Diagnostic,
    DiagnosticKind,
    RawEvent,
    ResolvedEvent,
    TimetableResult,
)
from ut1_timetable.pipeline import build_timetable
from ut1_timetable.serializer import serialize_calendar, unique_events

__all__ = [
    "DayContainer",
    "Diagnostic",
    "DiagnosticKind",
    "RawEvent",
    "ResolvedEvent",
    "ScheduleSettings",
    "TimetableConfig",
    "TimetableExtractor",
    "TimetableResult",
    "build_timetable",
    "get_config",
    "resolve_all",
    "resolve_event",
    "serialize_calendar",
    "split_event_text",
    "unique_events",
]
