"""Shared fixtures for the ut1_timetable tests."""

from datetime import date, time

import pytest

from ut1_timetable.config import ScheduleSettings, TimetableConfig
from ut1_timetable.models import DayContainer


@pytest.fixture
def schedule() -> ScheduleSettings:
    return ScheduleSettings(
        day_start=time(8, 0),
        day_end=time(20, 0),
        granularity_minutes=5,
        timezone="Europe/Paris",
    )


@pytest.fixture
def config() -> TimetableConfig:
    # Ignore any developer .env; same 08:00-20:00 span as the schedule fixture
    return TimetableConfig(_env_file=None, day_start=time(8, 0), day_end=time(20, 0))


@pytest.fixture
def container() -> DayContainer:
    """Monday 12 February 2024, 08:00-20:00 over 1200px."""
    return DayContainer(
        calendar_date=date(2024, 2, 12),
        pixel_top=100.0,
        pixel_height=1200.0,
        day_start_time=time(8, 0),
        day_end_time=time(20, 0),
    )
