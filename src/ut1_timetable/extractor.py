"""Extractor - reads day columns and their event blocks from a rendered grid.

The ADE planning view lays a week out as day columns and absolutely positions
each class over its column; the only timing information is the block's
vertical offset and height. This module reads that geometry and the block text
through a PageHandle, leaving the conversion to times to the time mapper.

Event block text (observed on the live page, one line per field):
    Course title
    Room
    Teacher
    Notes

The separator is configurable; lines after the room are kept as a free-text
description.
"""

import re
from datetime import date

from ut1_timetable.config import DEFAULT_DATE_LABEL_PATTERN, ScheduleSettings
from ut1_timetable.dom import ElementRole, PageHandle
from ut1_timetable.errors import GeometryUnavailable, MissingDateLabel, NoContainersFound
from ut1_timetable.logging import get_logger
from ut1_timetable.models import (
    DayContainer,
    Diagnostic,
    DiagnosticKind,
    ExtractedDay,
    ExtractionResult,
    RawEvent,
)

log = get_logger(__name__)

# Title and location
EXPECTED_SEGMENTS = 2


def _normalize(text: str) -> str:
    return " ".join(text.split())


def split_event_text(raw_text: str, separator: str = "\n") -> tuple[str, str, str]:
    """Split an event block into (title, location, description).

    Falls back to the whole block as the title, with an empty location, when
    fewer than two non-empty segments are present.
    """
    segments = [_normalize(part) for part in raw_text.split(separator)]
    segments = [part for part in segments if part]
    if len(segments) < EXPECTED_SEGMENTS:
        return _normalize(raw_text), "", ""
    title, location, *rest = segments
    return title, location, "\n".join(rest)


class TimetableExtractor:
    """Extracts (DayContainer, [RawEvent]) pairs from a rendered timetable."""

    def __init__(
        self,
        handle: PageHandle,
        schedule: ScheduleSettings,
        *,
        separator: str = "\n",
        date_label_pattern: str = DEFAULT_DATE_LABEL_PATTERN,
    ) -> None:
        self.handle = handle
        self.schedule = schedule
        self.separator = separator
        self.date_label_re = re.compile(date_label_pattern)

    async def extract(self) -> ExtractionResult:
        """Read every day column of the current page.

        Returns:
            ExtractionResult with one ExtractedDay per dated column, in page
            order, and the diagnostics for columns/events that were skipped.

        Raises:
            NoContainersFound: If the page shows no day column at all.
        """
        elements = await self.handle.query_role(ElementRole.DAY_CONTAINER)
        if not elements:
            log.error("no_day_containers")
            raise NoContainersFound("No day container found, is the timetable view displayed?")

        days: list[ExtractedDay] = []
        diagnostics: list[Diagnostic] = []

        for index, element in enumerate(elements):
            try:
                container = await self._read_container(index, element)
            except MissingDateLabel as e:
                diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.MISSING_DATE_LABEL,
                        message=str(e),
                        container_index=index,
                    )
                )
                log.warning("container_skipped", index=index, reason=str(e))
                continue
            except GeometryUnavailable as e:
                diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.GEOMETRY_UNAVAILABLE,
                        message=str(e),
                        container_index=index,
                    )
                )
                log.warning("container_skipped", index=index, reason=str(e))
                continue

            events: list[RawEvent] = []
            event_elements = await self.handle.query_role(ElementRole.EVENT, within=element)
            for event_index, event_element in enumerate(event_elements):
                try:
                    events.append(await self._read_event(container, event_index, event_element))
                except GeometryUnavailable as e:
                    diagnostics.append(
                        Diagnostic(
                            kind=DiagnosticKind.GEOMETRY_UNAVAILABLE,
                            message=str(e),
                            container_index=index,
                            event_index=event_index,
                        )
                    )
                    log.warning(
                        "event_skipped",
                        container=index,
                        event=event_index,
                        reason=str(e),
                    )

            days.append(ExtractedDay(container=container, events=tuple(events)))
            log.debug(
                "day_extracted",
                date=container.calendar_date.isoformat(),
                events=len(events),
            )

        log.info(
            "timetable_extracted",
            containers=len(elements),
            days=len(days),
            events=sum(len(day.events) for day in days),
            warnings=len(diagnostics),
        )
        return ExtractionResult(days=tuple(days), diagnostics=tuple(diagnostics))

    async def _read_container(self, index: int, element) -> DayContainer:
        calendar_date = await self._read_date(index, element)

        box = await self.handle.geometry(element)
        if box is None or box.height <= 0:
            raise GeometryUnavailable(f"Day container #{index} is not laid out")

        return DayContainer(
            calendar_date=calendar_date,
            pixel_top=box.top,
            pixel_height=box.height,
            day_start_time=self.schedule.day_start,
            day_end_time=self.schedule.day_end,
            index=index,
        )

    async def _read_date(self, index: int, element) -> date:
        labels = await self.handle.query_role(ElementRole.DATE_LABEL, within=element)
        if not labels:
            raise MissingDateLabel(index)

        label_text = (await self.handle.text(labels[0])).strip()
        match = self.date_label_re.search(label_text)
        if match is None:
            raise MissingDateLabel(index, label_text)
        try:
            return date(
                int(match.group("year")),
                int(match.group("month")),
                int(match.group("day")),
            )
        except ValueError as e:
            raise MissingDateLabel(index, label_text) from e

    async def _read_event(self, container: DayContainer, index: int, element) -> RawEvent:
        box = await self.handle.geometry(element)
        if box is None or box.height <= 0:
            raise GeometryUnavailable(
                f"Event in container #{container.index} has no layout box"
            )

        raw_text = await self.handle.text(element)
        title, location, description = split_event_text(raw_text, self.separator)

        return RawEvent(
            container_ref=container,
            pixel_offset_top=box.top - container.pixel_top,
            pixel_height=box.height,
            title=title,
            location=location,
            description=description,
            raw_text_block=raw_text,
            index=index,
        )
