"""Timetable configuration loaded from environment variables.

Institutional schedule bounds (day start/end, slot granularity, timezone) are
static configuration: they are read here once and handed to the time mapper
as a ScheduleSettings value, never looked up from global state.
"""

from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

DEFAULT_DATE_LABEL_PATTERN = r"(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})"


class ScheduleSettings(BaseModel):
    """Time-of-day span covered by a day column, and how to round into it."""

    model_config = ConfigDict(frozen=True)

    day_start: time = time(7, 0)
    day_end: time = time(21, 0)
    granularity_minutes: int = Field(default=5, gt=0)
    timezone: str = "Europe/Paris"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone {value!r}") from e
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> "ScheduleSettings":
        if self.day_end <= self.day_start:
            raise ValueError(
                f"day_end ({self.day_end}) must be after day_start ({self.day_start})"
            )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class TimetableConfig(BaseSettings):
    """Timetable configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # ADE behind CAS (browser-only, the server rejects plain HTTP clients)
    ade_login_url: str = Field(
        default=(
            "https://cas.ut-capitole.fr/cas/login?service="
            "https%3A%2F%2Fade-production.ut-capitole.fr%2Fdirect%2Fmyplanning.jsp"
        ),
        description="CAS login URL redirecting to the ADE personal planning",
    )
    ade_username: str = Field(default="", description="CAS username")
    ade_password: str = Field(default="", description="CAS password")

    # Institutional schedule bounds
    day_start: time = Field(default=time(7, 0), description="Time at the top of the grid")
    day_end: time = Field(default=time(21, 0), description="Time at the bottom of the grid")
    granularity_minutes: int = Field(
        default=5, gt=0, description="Slot granularity used to round start and end times"
    )
    timezone: str = Field(default="Europe/Paris", description="Institutional timezone")

    # Event text parsing
    text_separator: str = Field(
        default="\n",
        description="Separator between the lines of an event block (course, room, ...)",
    )
    date_label_pattern: str = Field(
        default=DEFAULT_DATE_LABEL_PATTERN,
        description="Regex with day/month/year named groups matching a day label",
    )

    # Grid layout and CSS selectors (override for different ADE layouts)
    grid_selector: str = Field(
        default="div.grilleData",
        description="Timetable grid, one box spanning every displayed day",
    )
    days_displayed: int = Field(
        default=7, ge=1, description="Equal-width day columns the grid is divided into"
    )
    event_selector: str = Field(
        default="div.grilleData > div:has(div.eventText)",
        description="Absolutely positioned event block",
    )
    date_label_selector: str = Field(
        default="div.labelLegend",
        description="Day label, placed above the column it names",
    )
    week_button_selector: str = Field(
        default="button.x-btn-text", description="Week navigation buttons"
    )

    # Run settings
    nb_weeks_to_scrape: int = Field(default=1, ge=1, description="Weeks scraped per run")
    output_path: str = Field(default="ut1.ics", description="Where the calendar is written")
    deploy_path: str = Field(
        default="", description="Copy target for the calendar (local path or remote path)"
    )
    deploy_host: str = Field(
        default="", description="If set, deploy_path is on this host and scp is used"
    )
    refresh_interval_hours: float = Field(
        default=6.0, gt=0, description="Delay between runs in --loop mode"
    )
    calendar_name: str = Field(default="UT1 Capitole", description="X-WR-CALNAME value")
    prodid: str = Field(
        default="-//ut1-timetable//ADE export//FR", description="Calendar PRODID"
    )

    # Session
    state_dir: str = Field(
        default="data/state", description="Directory for Playwright session state"
    )
    max_session_age_hours: int = Field(
        default=24,
        description="Maximum age of Playwright session before re-authentication",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def schedule_settings(self) -> ScheduleSettings:
        """Build the schedule bounds handed to the time mapper.

        Raises:
            pydantic.ValidationError: If the bounds are inconsistent.
        """
        return ScheduleSettings(
            day_start=self.day_start,
            day_end=self.day_end,
            granularity_minutes=self.granularity_minutes,
            timezone=self.timezone,
        )


# Singleton pattern
_config: TimetableConfig | None = None


def get_config() -> TimetableConfig:
    """Get the timetable configuration singleton.

    Returns:
        TimetableConfig: Timetable configuration instance
    """
    global _config
    if _config is None:
        _config = TimetableConfig()
    return _config
