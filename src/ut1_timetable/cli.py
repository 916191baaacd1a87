"""Scrape the UT1 ADE planning and publish it as an .ics calendar.

Run with: ut1-timetable
Debug:    ut1-timetable --headed
Weeks:    ut1-timetable --weeks 4 --output public/ut1.ics
Service:  ut1-timetable --loop     (re-run every REFRESH_INTERVAL_HOURS)

Credentials and selectors come from the environment or a .env file
(ADE_USERNAME, ADE_PASSWORD, ...).

Exit codes:
  0 = success
  1 = error (nothing written)
  2 = calendar written, but events were skipped and --strict was given
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, timedelta

import structlog
from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pydantic import ValidationError

from ut1_timetable.config import TimetableConfig, get_config
from ut1_timetable.errors import ScrapingError
from ut1_timetable.logging import get_logger, setup_logging
from ut1_timetable.models import Diagnostic, ResolvedEvent, TimetableResult
from ut1_timetable.pages.timetable import TimetablePage
from ut1_timetable.pipeline import render_timetable
from ut1_timetable.publish import deploy_calendar, write_calendar
from ut1_timetable.session import SessionManager
from ut1_timetable.utils import configure_page_for_scraping

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ut1-timetable",
        description="Export the UT1 Capitole ADE planning to an iCalendar file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window).",
    )
    parser.add_argument(
        "--weeks",
        type=int,
        default=None,
        help="Number of weeks to scrape from the current one (default: NB_WEEKS_TO_SCRAPE).",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Calendar file to write (default: OUTPUT_PATH).",
    )
    parser.add_argument(
        "--loop",
        action="store_true",
        help="Keep running, refreshing the calendar every REFRESH_INTERVAL_HOURS.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 2 when events or days had to be skipped.",
    )
    args = parser.parse_args(argv)
    if args.weeks is not None and args.weeks < 1:
        parser.error("--weeks must be at least 1")
    return args


def week_numbers(weeks: int, today: date | None = None) -> list[int]:
    """ISO week numbers to scrape, starting with the current week."""
    if today is None:
        today = date.today()
    return [(today + timedelta(weeks=offset)).isocalendar()[1] for offset in range(weeks)]


async def scrape(config: TimetableConfig, *, weeks: int, headed: bool = False) -> TimetableResult:
    """Log in, walk through the requested weeks and build one calendar."""
    events: list[ResolvedEvent] = []
    diagnostics: list[Diagnostic] = []

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=not headed)
        try:
            session = SessionManager(config.state_dir, config.max_session_age_hours)
            context = await session.create_context(browser)
            page = await context.new_page()
            await configure_page_for_scraping(page)

            await session.login(
                page,
                config.ade_login_url,
                config.ade_username,
                config.ade_password,
                ready_selector=config.grid_selector,
            )
            await session.save_session(context)

            timetable = TimetablePage(page, config)
            await timetable.wait_for_grid()

            for offset, week in enumerate(week_numbers(weeks)):
                with structlog.contextvars.bound_contextvars(week=week):
                    if offset:
                        await timetable.select_week(week)
                    week_events, week_diagnostics = await timetable.collect()
                    if not week_events:
                        log.info("week_empty")
                    events.extend(week_events)
                    diagnostics.extend(week_diagnostics)
        finally:
            await browser.close()

    return render_timetable(events, diagnostics, config)


async def run_once(args: argparse.Namespace, config: TimetableConfig) -> int:
    started = datetime.now()
    result = await scrape(
        config,
        weeks=args.weeks or config.nb_weeks_to_scrape,
        headed=args.headed,
    )
    path = write_calendar(result.calendar, args.output or config.output_path)
    deploy_calendar(path, config.deploy_path, config.deploy_host)

    log.info(
        "run_completed",
        events=len(result.events),
        warnings=len(result.diagnostics),
        elapsed_ms=int((datetime.now() - started).total_seconds() * 1000),
    )
    if args.strict and result.diagnostics:
        return 2
    return 0


async def main(args: argparse.Namespace) -> int:
    try:
        config = get_config()
        config.schedule_settings()
    except ValidationError as e:
        log.error("invalid_configuration", error=str(e))
        return 1

    setup_logging(json_output=config.log_json, log_level=config.log_level)

    while True:
        try:
            code = await run_once(args, config)
        except (ScrapingError, PlaywrightError, ValidationError) as e:
            log.error("run_failed", error=str(e), type=type(e).__name__)
            code = 1

        if not args.loop:
            return code

        delay = timedelta(hours=config.refresh_interval_hours)
        log.info("next_run_scheduled", at=(datetime.now() + delay).isoformat(timespec="seconds"))
        await asyncio.sleep(delay.total_seconds())


def run(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = _parse_args(argv)
    try:
        sys.exit(asyncio.run(main(args)))
    except KeyboardInterrupt:
        sys.exit(130)
