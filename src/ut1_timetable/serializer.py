"""Calendar serializer - folds resolved events into one iCalendar document."""

import hashlib
from collections.abc import Iterable
from datetime import datetime, timezone

from icalendar import Calendar, Event

from ut1_timetable.logging import get_logger
from ut1_timetable.models import ResolvedEvent

log = get_logger(__name__)

DEFAULT_PRODID = "-//ut1-timetable//ADE export//FR"
UID_DOMAIN = "ut1-timetable"


def _utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


def event_uid(event: ResolvedEvent) -> str:
    """Stable identifier derived from title, location and start.

    Re-scraping an unchanged timetable yields the same identifiers, so
    calendar clients update events in place instead of duplicating them.
    """
    key = "\x1f".join(
        [event.title, event.location, _utc(event.start).strftime("%Y%m%dT%H%M%SZ")]
    )
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
    return f"{digest}@{UID_DOMAIN}"


def unique_events(events: Iterable[ResolvedEvent]) -> list[ResolvedEvent]:
    """Keep the first event of each identifier, in input order."""
    kept: list[ResolvedEvent] = []
    seen: set[str] = set()
    for event in events:
        uid = event_uid(event)
        if uid in seen:
            log.debug(
                "duplicate_event_dropped",
                uid=uid,
                title=event.title,
                start=event.start.isoformat(),
            )
            continue
        seen.add(uid)
        kept.append(event)
    return kept


def serialize_calendar(
    events: Iterable[ResolvedEvent],
    *,
    prodid: str = DEFAULT_PRODID,
    calendar_name: str | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Build a VCALENDAR document with one VEVENT per event, in input order.

    Events sharing an identifier (same title, location and start) are kept
    once: the first occurrence wins. Times are written in UTC.

    Args:
        events: Resolved events in extraction order.
        prodid: PRODID of the calendar.
        calendar_name: Optional X-WR-CALNAME shown by calendar clients.
        generated_at: DTSTAMP of every event; defaults to now. This is the
            only field that differs between two runs on the same input.

    Returns:
        The document as text, CRLF line endings and folded lines.
    """
    stamp = _utc(generated_at) if generated_at else datetime.now(timezone.utc)

    calendar = Calendar()
    calendar.add("prodid", prodid)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "PUBLISH")
    if calendar_name:
        calendar.add("x-wr-calname", calendar_name)

    events = list(events)
    kept = unique_events(events)
    for event in kept:
        component = Event()
        component.add("uid", event_uid(event))
        component.add("dtstamp", stamp)
        component.add("dtstart", _utc(event.start))
        component.add("dtend", _utc(event.end))
        component.add("summary", event.title)
        component.add("location", event.location)
        if event.description:
            component.add("description", event.description)
        calendar.add_component(component)

    log.info("calendar_serialized", events=len(kept), duplicates=len(events) - len(kept))
    return calendar.to_ical().decode("utf-8")
