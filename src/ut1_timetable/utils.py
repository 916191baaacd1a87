"""Shared scraping utilities for resource blocking."""

from playwright.async_api import Page, Route

from ut1_timetable.logging import get_logger

log = get_logger(__name__)

# Stylesheets stay enabled: event times are read from the laid-out geometry.
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "font", "media"})

DEFAULT_TIMEOUT_MS = 30000


async def configure_page_for_scraping(page: Page, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
    """Set up a Playwright page for scraping the ADE planning.

    Blocks resource types that play no part in the grid layout (images,
    fonts, media) and sets default timeouts.

    Args:
        page: Playwright Page instance.
        timeout_ms: Default action and navigation timeout.
    """

    async def _block_resources(route: Route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    await page.route("**/*", _block_resources)
    page.set_default_timeout(timeout_ms)
    page.set_default_navigation_timeout(timeout_ms)
    log.debug("page_configured", blocked=sorted(BLOCKED_RESOURCE_TYPES), timeout_ms=timeout_ms)
