"""Time mapper - converts block geometry into start times and durations.

A day column spans a fixed time-of-day range (07:00-21:00 at UT1), so a
block's position is a linear interpolation over that range:

    fraction_start = clamp(top / column_height, 0, 1)
    fraction_end   = clamp((top + height) / column_height, 0, 1)
    start          = day_start + fraction_start * (day_end - day_start)
    end            = day_start + fraction_end   * (day_end - day_start)

Start and end are then snapped to the slot granularity to absorb sub-pixel
rendering noise.
"""

import math
from collections.abc import Iterable
from datetime import datetime, time, timedelta

from ut1_timetable.config import ScheduleSettings
from ut1_timetable.errors import DegenerateEvent
from ut1_timetable.logging import get_logger
from ut1_timetable.models import DayContainer, Diagnostic, DiagnosticKind, RawEvent, ResolvedEvent

log = get_logger(__name__)


def _minutes(value: time) -> float:
    return value.hour * 60 + value.minute + value.second / 60


def _clamp(fraction: float) -> float:
    return min(max(fraction, 0.0), 1.0)


def _snap(minutes: float, granularity: int) -> int:
    """Round half up to the nearest multiple of granularity."""
    return int(math.floor(minutes / granularity + 0.5)) * granularity


def is_out_of_range(container: DayContainer, event: RawEvent) -> bool:
    """True if the block sticks out of its column before clamping."""
    bottom = event.pixel_offset_top + event.pixel_height
    return event.pixel_offset_top < 0 or bottom > container.pixel_height


def resolve_event(
    container: DayContainer, event: RawEvent, schedule: ScheduleSettings
) -> ResolvedEvent:
    """Resolve one block into an absolute start and a duration.

    Args:
        container: The day column the block was found in.
        event: The block, positioned relative to the column's top edge.
        schedule: Granularity and timezone (the time span comes from the column).

    Raises:
        DegenerateEvent: If the rounded duration is zero or negative.
    """
    fraction_start = _clamp(event.pixel_offset_top / container.pixel_height)
    fraction_end = _clamp(
        (event.pixel_offset_top + event.pixel_height) / container.pixel_height
    )

    day_start = _minutes(container.day_start_time)
    span = _minutes(container.day_end_time) - day_start

    start_offset = _snap(fraction_start * span, schedule.granularity_minutes)
    end_offset = _snap(fraction_end * span, schedule.granularity_minutes)
    if end_offset <= start_offset:
        raise DegenerateEvent(
            f"{event.title!r} on {container.calendar_date.isoformat()} "
            f"rounds to a duration of {end_offset - start_offset} minutes"
        )

    midnight = datetime.combine(container.calendar_date, time(0, 0), tzinfo=schedule.tzinfo)
    start = midnight + timedelta(minutes=day_start + start_offset)

    return ResolvedEvent(
        title=" ".join(event.title.split()),
        location=" ".join(event.location.split()),
        description=event.description.strip(),
        start=start,
        duration=timedelta(minutes=end_offset - start_offset),
    )


def resolve_all(
    pairs: Iterable[tuple[DayContainer, RawEvent]], schedule: ScheduleSettings
) -> tuple[list[ResolvedEvent], list[Diagnostic]]:
    """Resolve every (container, event) pair, skipping the ones that fail.

    Blocks sticking out of their column are clamped and reported; degenerate
    blocks are dropped and reported. Order is preserved.

    Returns:
        (resolved events, diagnostics)
    """
    resolved: list[ResolvedEvent] = []
    diagnostics: list[Diagnostic] = []

    for container, event in pairs:
        if is_out_of_range(container, event):
            message = (
                f"{event.title!r} at top={event.pixel_offset_top} height={event.pixel_height} "
                f"lies outside its column (height {container.pixel_height}), clamped"
            )
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.GEOMETRY_CLAMPED,
                    message=message,
                    container_index=container.index,
                    event_index=event.index,
                )
            )
            log.warning(
                "event_clamped",
                title=event.title,
                top=event.pixel_offset_top,
                height=event.pixel_height,
                column_height=container.pixel_height,
            )

        try:
            resolved.append(resolve_event(container, event, schedule))
        except DegenerateEvent as e:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.DEGENERATE_EVENT,
                    message=str(e),
                    container_index=container.index,
                    event_index=event.index,
                )
            )
            log.warning("event_skipped", title=event.title, reason=str(e))

    log.info("events_resolved", resolved=len(resolved), warnings=len(diagnostics))
    return resolved, diagnostics
