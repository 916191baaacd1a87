"""Error hierarchy for timetable scraping and conversion.

Browser-facing failures are split into transient (retried by tenacity) and
permanent ones. Timetable errors describe what went wrong while turning the
rendered grid into calendar events; only NoContainersFound is fatal; the
others are absorbed per container or per event and reported as diagnostics.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(2))
    async def wait_for_grid(self):
        ...
"""


class ScrapingError(Exception):
    """Base exception for all scraping errors."""

    pass


class TransientError(ScrapingError):
    """Temporary failure that may succeed on retry.

    Examples: navigation timeouts, grid not rendered yet after the CAS redirect.
    """

    pass


class PermanentError(ScrapingError):
    """Failure that won't succeed on retry.

    Examples: invalid CSS selector, missing required field, data validation failure.
    """

    pass


class AuthenticationError(PermanentError):
    """Invalid credentials or CAS login rejected.

    Requires human intervention, cannot be fixed by retry.
    """

    pass


class TimetableError(PermanentError):
    """Base class for errors raised while reading or converting the grid."""

    pass


class NoContainersFound(TimetableError):
    """The page shows no day column: the timetable view is not displayed."""

    pass


class MissingDateLabel(TimetableError):
    """A day column has no readable date label, so its events cannot be dated."""

    def __init__(self, index: int, label_text: str | None = None) -> None:
        self.index = index
        self.label_text = label_text
        if label_text is None:
            message = f"Day container #{index} has no date label"
        else:
            message = f"Day container #{index} has an unparseable date label: {label_text!r}"
        super().__init__(message)


class GeometryUnavailable(TimetableError):
    """An event element has no layout box (hidden, detached or zero-sized)."""

    pass


class DegenerateEvent(TimetableError):
    """An event's rounded duration is zero or negative."""

    pass
