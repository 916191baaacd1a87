"""Tests for the command-line entry points and the session bookkeeping."""

import os
import time as time_module
from datetime import date, time

import pytest

from ut1_timetable import cli
from ut1_timetable import config as config_module
from ut1_timetable.cli import _parse_args, week_numbers
from ut1_timetable.config import TimetableConfig
from ut1_timetable.errors import AuthenticationError
from ut1_timetable.models import Diagnostic, DiagnosticKind, TimetableResult
from ut1_timetable.session import (
    CAS_ERROR_SELECTOR,
    PASSWORD_SELECTOR,
    USERNAME_SELECTOR,
    SessionManager,
    is_login_url,
)

EMPTY_CALENDAR = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n"


class TestParseArgs:
    def test_defaults(self) -> None:
        args = _parse_args([])

        assert args.weeks is None
        assert args.output is None
        assert not args.headed
        assert not args.loop
        assert not args.strict

    def test_options(self) -> None:
        args = _parse_args(["--weeks", "3", "--output", "out.ics", "--strict", "--loop"])

        assert (args.weeks, args.output, args.strict, args.loop) == (3, "out.ics", True, True)

    def test_weeks_must_be_positive(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args(["--weeks", "0"])


class TestWeekNumbers:
    def test_consecutive_weeks(self) -> None:
        assert week_numbers(3, today=date(2024, 2, 14)) == [7, 8, 9]

    def test_wraps_at_year_end(self) -> None:
        assert week_numbers(3, today=date(2024, 12, 18)) == [51, 52, 1]


@pytest.fixture
def scraped(monkeypatch):
    """Replace the browser run with a canned result; records the requested weeks."""
    calls: list[int] = []
    outcome = {"diagnostics": ()}

    async def fake_scrape(config, *, weeks, headed=False):
        calls.append(weeks)
        return TimetableResult(calendar=EMPTY_CALENDAR, diagnostics=outcome["diagnostics"])

    monkeypatch.setattr(cli, "scrape", fake_scrape)
    return calls, outcome


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_writes_calendar(self, config, scraped, tmp_path) -> None:
        output = tmp_path / "ut1.ics"
        args = _parse_args(["--output", str(output), "--weeks", "3"])

        code = await cli.run_once(args, config)

        calls, _ = scraped
        assert code == 0
        assert calls == [3]
        assert output.read_bytes() == EMPTY_CALENDAR.encode()

    @pytest.mark.asyncio
    async def test_weeks_default_from_config(self, config, scraped, tmp_path) -> None:
        args = _parse_args(["--output", str(tmp_path / "ut1.ics")])

        await cli.run_once(args, config)

        calls, _ = scraped
        assert calls == [config.nb_weeks_to_scrape]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strict, expected", [(False, 0), (True, 2)])
    async def test_skipped_events_and_strict(self, config, scraped, tmp_path, strict, expected) -> None:
        _, outcome = scraped
        outcome["diagnostics"] = (
            Diagnostic(kind=DiagnosticKind.MISSING_DATE_LABEL, message="no label", container_index=1),
        )
        output = tmp_path / "ut1.ics"
        argv = ["--output", str(output)] + (["--strict"] if strict else [])

        code = await cli.run_once(_parse_args(argv), config)

        assert code == expected
        assert output.exists()


class TestMain:
    @pytest.fixture(autouse=True)
    def quiet(self, monkeypatch):
        monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)

    @pytest.mark.asyncio
    async def test_scraping_error_exits_1(self, config, monkeypatch) -> None:
        async def failing_run(args, config):
            raise AuthenticationError("CAS login rejected")

        monkeypatch.setattr(cli, "get_config", lambda: config)
        monkeypatch.setattr(cli, "run_once", failing_run)

        assert await cli.main(_parse_args([])) == 1

    @pytest.mark.asyncio
    async def test_invalid_environment_exits_1(self, monkeypatch) -> None:
        monkeypatch.setattr(config_module, "_config", None)
        monkeypatch.setenv("GRANULARITY_MINUTES", "0")

        assert await cli.main(_parse_args([])) == 1

    @pytest.mark.asyncio
    async def test_inverted_day_bounds_exit_1(self, monkeypatch) -> None:
        broken = TimetableConfig(_env_file=None, day_start=time(20, 0), day_end=time(8, 0))
        monkeypatch.setattr(cli, "get_config", lambda: broken)

        assert await cli.main(_parse_args([])) == 1

    def test_run_exits_with_main_code(self, monkeypatch) -> None:
        async def strict_failure(args):
            return 2

        monkeypatch.setattr(cli, "main", strict_failure)

        with pytest.raises(SystemExit) as exit_info:
            cli.run(["--strict"])

        assert exit_info.value.code == 2


class StubLoginPage:
    """Just enough of a Playwright Page for SessionManager.login."""

    def __init__(self, *, restored: bool = False, rejected: bool = False) -> None:
        self.url = ""
        self.restored = restored
        self.rejected = rejected
        self.filled: dict[str, str] = {}
        self.pressed: list[str] = []

    async def goto(self, url: str, wait_until: str | None = None) -> None:
        self.url = (
            "https://ade-production.ut-capitole.fr/direct/myplanning.jsp" if self.restored else url
        )

    async def wait_for_selector(self, selector: str) -> None:
        return None

    async def fill(self, selector: str, value: str) -> None:
        self.filled[selector] = value

    async def press(self, selector: str, key: str) -> None:
        self.pressed.append(key)

    async def query_selector(self, selector: str):
        if selector == CAS_ERROR_SELECTOR and self.rejected:
            return object()
        return None


class TestSessionManager:
    def test_missing_state_is_invalid(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path / "state"))

        assert not manager.is_session_valid()

    def test_fresh_state_is_valid(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        manager.state_file.write_text("{}")

        assert manager.is_session_valid()

    def test_old_state_is_expired(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path), max_session_age_hours=1)
        manager.state_file.write_text("{}")
        two_hours_ago = time_module.time() - 7200
        os.utime(manager.state_file, (two_hours_ago, two_hours_ago))

        assert not manager.is_session_valid()

    def test_login_url_detection(self) -> None:
        assert is_login_url("https://cas.ut-capitole.fr/cas/login?service=x")
        assert not is_login_url("https://ade-production.ut-capitole.fr/direct/myplanning.jsp")


class TestLogin:
    @pytest.mark.asyncio
    async def test_restored_session_skips_the_form(self, config, tmp_path) -> None:
        page = StubLoginPage(restored=True)

        await SessionManager(state_dir=str(tmp_path)).login(
            page, config.ade_login_url, "", "", ready_selector=config.grid_selector
        )

        assert page.filled == {}

    @pytest.mark.asyncio
    async def test_credentials_submitted(self, config, tmp_path) -> None:
        page = StubLoginPage()

        await SessionManager(state_dir=str(tmp_path)).login(
            page, config.ade_login_url, "jdoe", "secret", ready_selector=config.grid_selector
        )

        assert page.filled == {USERNAME_SELECTOR: "jdoe", PASSWORD_SELECTOR: "secret"}
        assert page.pressed == ["Enter"]

    @pytest.mark.asyncio
    async def test_rejected_login_discards_saved_session(self, config, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        manager.state_file.write_text("{}")

        with pytest.raises(AuthenticationError):
            await manager.login(
                StubLoginPage(rejected=True),
                config.ade_login_url,
                "jdoe",
                "wrong",
                ready_selector=config.grid_selector,
            )

        assert not manager.state_file.exists()

    @pytest.mark.asyncio
    async def test_expired_session_without_credentials(self, config, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        manager.state_file.write_text("{}")

        with pytest.raises(AuthenticationError):
            await manager.login(
                StubLoginPage(), config.ade_login_url, "", "", ready_selector=config.grid_selector
            )

        assert not manager.state_file.exists()
