"""Playwright session management for the UT1 CAS login.

SessionManager persists browser storage state between runs so the CAS ticket
is reused while fresh, and performs the login form submission when it is not.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ut1_timetable.errors import AuthenticationError, TransientError
from ut1_timetable.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page

logger = get_logger(__name__)

USERNAME_SELECTOR = "input#username"
PASSWORD_SELECTOR = "input#password"
CAS_ERROR_SELECTOR = "#msg.errors, .alert-danger"


def is_login_url(url: str) -> bool:
    return "/cas/login" in url.lower()


class SessionManager:
    """Manages Playwright authentication state persistence and CAS login."""

    def __init__(
        self, state_dir: str = "data/state", max_session_age_hours: int = 24
    ) -> None:
        """Initialize SessionManager.

        Args:
            state_dir: Directory to store session state files.
            max_session_age_hours: Maximum age of session before considering expired.
        """
        self.state_dir = Path(state_dir)
        self.state_file = self.state_dir / "ade_session.json"
        self.max_session_age_hours = max_session_age_hours

        self.state_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "session_manager_initialized",
            state_file=str(self.state_file),
            max_age_hours=max_session_age_hours,
        )

    def is_session_valid(self) -> bool:
        """Check if a saved session exists and is still fresh."""
        if not self.state_file.exists():
            logger.debug("session_check", result="missing", reason="file_not_found")
            return False

        file_mtime = datetime.fromtimestamp(self.state_file.stat().st_mtime)
        age = datetime.now() - file_mtime
        if age > timedelta(hours=self.max_session_age_hours):
            logger.info(
                "session_check",
                result="expired",
                age_hours=age.total_seconds() / 3600,
                max_hours=self.max_session_age_hours,
            )
            return False

        logger.debug("session_check", result="valid", age_hours=age.total_seconds() / 3600)
        return True

    async def save_session(self, context: "BrowserContext") -> None:
        await context.storage_state(path=str(self.state_file))
        logger.info("session_saved", path=str(self.state_file))

    async def create_context(self, browser: "Browser") -> "BrowserContext":
        """Create browser context, restoring session if valid."""
        if self.is_session_valid():
            context = await browser.new_context(storage_state=str(self.state_file))
            logger.info("context_created", type="restored", state_file=str(self.state_file))
        else:
            context = await browser.new_context()
            logger.info("context_created", type="fresh", reason="no_valid_session")
        return context

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_fixed(5),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    async def login(
        self,
        page: "Page",
        login_url: str,
        username: str,
        password: str,
        *,
        ready_selector: str,
    ) -> None:
        """Open the planning through CAS, logging in if the form is shown.

        Args:
            page: Playwright Page to authenticate.
            login_url: CAS login URL with the ADE service parameter.
            username: CAS username.
            password: CAS password.
            ready_selector: Element proving the planning is displayed.

        Raises:
            AuthenticationError: If CAS rejects the credentials or none are set;
                the saved session is deleted first.
            TransientError: If the login or the redirect times out.
        """
        logger.info("login_started", url=login_url)
        try:
            await page.goto(login_url, wait_until="domcontentloaded")

            if is_login_url(page.url):
                if not username or not password:
                    raise AuthenticationError("No valid session and no CAS credentials configured")
                await page.wait_for_selector(USERNAME_SELECTOR)
                await page.fill(USERNAME_SELECTOR, username)
                await page.fill(PASSWORD_SELECTOR, password)
                await page.press(PASSWORD_SELECTOR, "Enter")
                await page.wait_for_selector(f"{ready_selector}, {CAS_ERROR_SELECTOR}")

                if await page.query_selector(CAS_ERROR_SELECTOR) is not None:
                    logger.error("login_failed", reason="cas_error_message")
                    raise AuthenticationError("CAS login rejected, check ADE_USERNAME/ADE_PASSWORD")
            else:
                logger.info("login_skipped", reason="session_restored")

            await page.wait_for_selector(ready_selector)
            logger.info("login_succeeded", url=page.url)

        except AuthenticationError:
            # The stored cookies did not get past CAS, start fresh next run
            self.clear_session()
            raise
        except PlaywrightTimeoutError as e:
            logger.warning("login_timeout", error=str(e))
            raise TransientError(f"Login timed out: {e}") from e

    def clear_session(self) -> None:
        """Delete saved session state file."""
        if self.state_file.exists():
            self.state_file.unlink()
            logger.info("session_cleared", path=str(self.state_file))
        else:
            logger.debug("session_clear_skipped", reason="file_not_found")
