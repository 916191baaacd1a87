"""Extraction → time mapping → serialization, over one or several page snapshots."""

from collections.abc import Iterable

from ut1_timetable.config import TimetableConfig
from ut1_timetable.dom import PageHandle
from ut1_timetable.extractor import TimetableExtractor
from ut1_timetable.logging import get_logger
from ut1_timetable.mapper import resolve_all
from ut1_timetable.models import Diagnostic, ResolvedEvent, TimetableResult
from ut1_timetable.serializer import serialize_calendar, unique_events

log = get_logger(__name__)


async def collect_events(
    handle: PageHandle, config: TimetableConfig
) -> tuple[list[ResolvedEvent], list[Diagnostic]]:
    """Extract and resolve the events of the page currently displayed.

    Raises:
        NoContainersFound: If the page is not showing the timetable grid.
    """
    schedule = config.schedule_settings()
    extractor = TimetableExtractor(
        handle,
        schedule,
        separator=config.text_separator,
        date_label_pattern=config.date_label_pattern,
    )
    extraction = await extractor.extract()
    events, mapping_diagnostics = resolve_all(extraction.pairs(), schedule)
    return events, [*extraction.diagnostics, *mapping_diagnostics]


def render_timetable(
    events: Iterable[ResolvedEvent],
    diagnostics: Iterable[Diagnostic],
    config: TimetableConfig,
) -> TimetableResult:
    """Serialize events gathered from one or more pages into a result.

    The result's events are the ones written to the calendar, duplicates
    removed first-seen-wins.
    """
    events = tuple(unique_events(events))
    calendar = serialize_calendar(
        events,
        prodid=config.prodid,
        calendar_name=config.calendar_name,
    )
    return TimetableResult(
        events=events,
        calendar=calendar,
        diagnostics=tuple(diagnostics),
    )


async def build_timetable(handle: PageHandle, config: TimetableConfig) -> TimetableResult:
    """Run the whole pipeline on a single rendered page.

    Recoverable problems are returned as diagnostics; deciding whether a
    partial calendar is acceptable is left to the caller.

    Raises:
        NoContainersFound: If the page is not showing the timetable grid.
    """
    events, diagnostics = await collect_events(handle, config)
    result = render_timetable(events, diagnostics, config)
    log.info(
        "timetable_built",
        events=len(result.events),
        warnings=len(result.diagnostics),
    )
    return result
