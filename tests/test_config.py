"""Tests for configuration loading and schedule bounds validation."""

from datetime import time

import pytest
from pydantic import ValidationError

from ut1_timetable import config as config_module
from ut1_timetable.config import ScheduleSettings, TimetableConfig, get_config


class TestTimetableConfig:
    def test_defaults(self) -> None:
        config = TimetableConfig(_env_file=None)

        assert config.day_start == time(7, 0)
        assert config.day_end == time(21, 0)
        assert config.days_displayed == 7
        assert config.granularity_minutes == 5
        assert config.timezone == "Europe/Paris"
        assert config.text_separator == "\n"
        assert config.nb_weeks_to_scrape == 1

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("DAY_START", "07:30")
        monkeypatch.setenv("GRANULARITY_MINUTES", "15")
        monkeypatch.setenv("NB_WEEKS_TO_SCRAPE", "4")

        loaded = TimetableConfig(_env_file=None)

        assert loaded.day_start == time(7, 30)
        assert loaded.granularity_minutes == 15
        assert loaded.nb_weeks_to_scrape == 4

    def test_schedule_settings(self) -> None:
        schedule = TimetableConfig(_env_file=None).schedule_settings()

        assert schedule == ScheduleSettings()
        assert (schedule.day_start, schedule.day_end) == (time(7, 0), time(21, 0))
        assert schedule.tzinfo.key == "Europe/Paris"

    def test_inverted_bounds_rejected(self) -> None:
        broken = TimetableConfig(_env_file=None, day_start=time(20, 0), day_end=time(8, 0))

        with pytest.raises(ValidationError):
            broken.schedule_settings()

    def test_granularity_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            TimetableConfig(_env_file=None, granularity_minutes=0)

    def test_get_config_is_a_singleton(self, monkeypatch) -> None:
        monkeypatch.setattr(config_module, "_config", None)

        assert get_config() is get_config()


class TestScheduleSettings:
    def test_unknown_timezone_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScheduleSettings(timezone="Mars/Olympus")

    def test_equal_bounds_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScheduleSettings(day_start=time(8, 0), day_end=time(8, 0))

    def test_frozen(self) -> None:
        schedule = ScheduleSettings()

        with pytest.raises(ValidationError):
            schedule.granularity_minutes = 10
