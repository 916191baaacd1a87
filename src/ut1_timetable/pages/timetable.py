"""TimetablePage - the ADE personal planning view (myplanning.jsp).

DOM structure (ADE 6, GWT rendering):
  div.grilleData -> the week grid, one box, 07:00 at the top and 21:00 at
                    the bottom, seven equal-width day columns side by side
    div (position: absolute; left/top) -> a class, placed over its day
      table.event -> sized to the class duration
        div.eventText -> "Course<br>Room<br>Teacher<br>Notes"
  div.labelLegend -> "Lundi 12/02/2024", positioned by left above its day
  button.x-btn-text -> week tabs, labelled with the ISO week number, e.g. "S7 (7)"

There is no element per day: PlaywrightPageHandle slices the grid box into
columns and assigns blocks and labels to them by horizontal position. Week
tabs redraw the grid in place without navigating.

All selectors come from TimetableConfig so another ADE skin only needs
environment overrides.
"""

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ut1_timetable.config import TimetableConfig
from ut1_timetable.dom import PlaywrightPageHandle
from ut1_timetable.errors import TransientError
from ut1_timetable.logging import get_logger
from ut1_timetable.models import Diagnostic, ResolvedEvent
from ut1_timetable.pipeline import collect_events

log = get_logger(__name__)


class TimetablePage:
    """Weekly planning view of ADE.

    Selects a week through its tab and hands the rendered grid to the
    extraction pipeline.
    """

    def __init__(self, page: Page, config: TimetableConfig) -> None:
        self.page = page
        self.config = config

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    async def wait_for_grid(self) -> None:
        """Wait until the grid is rendered, reloading the page once if it is not.

        Raises:
            TransientError: If the grid does not show up after a reload.
        """
        try:
            await self.page.wait_for_selector(self.config.grid_selector, state="visible")
            await self.page.wait_for_load_state("networkidle")
        except PlaywrightTimeoutError:
            log.warning("grid_not_rendered", url=self.page.url, action="reload")
            await self.page.reload(wait_until="domcontentloaded")
            raise TransientError("Timetable grid did not render")

    async def select_week(self, week: int) -> None:
        """Click the tab of the given ISO week and wait for its grid.

        Raises:
            TransientError: If no tab is labelled with that week, or the grid
                still shows the previous week after the click.
        """
        buttons = await self.page.query_selector_all(self.config.week_button_selector)
        marker = f"({week})"
        for button in buttons:
            if marker in await button.inner_text():
                shown = await self._first_label_text()
                await button.click()
                await self._wait_for_redraw(shown)
                await self.wait_for_grid()
                log.info("week_selected", week=week)
                return
        raise TransientError(f"No week tab labelled {marker}")

    async def _first_label_text(self) -> str | None:
        label = await self.page.query_selector(self.config.date_label_selector)
        if label is None:
            return None
        return await label.inner_text()

    async def _wait_for_redraw(self, shown: str | None) -> None:
        """Wait until the first day label no longer reads `shown`."""
        if shown is None:
            return
        try:
            await self.page.wait_for_function(
                "([selector, shown]) => {"
                " const label = document.querySelector(selector);"
                " return label !== null && label.innerText !== shown; }",
                arg=[self.config.date_label_selector, shown],
            )
        except PlaywrightTimeoutError as e:
            log.warning("week_not_redrawn", label=shown)
            raise TransientError(f"Grid still shows {shown!r} after the week tab click") from e

    async def collect(self) -> tuple[list[ResolvedEvent], list[Diagnostic]]:
        """Extract and resolve the events of the week currently displayed.

        Raises:
            NoContainersFound: If the grid has no day column.
        """
        handle = PlaywrightPageHandle(self.page, self.config)
        return await collect_events(handle, self.config)
