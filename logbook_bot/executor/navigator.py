from __future__ import annotations

import logging

from logbook_bot.core import locators
from logbook_bot.core.config import Settings
from logbook_bot.core.errors import NavigationError, SelectorTimeout
from logbook_bot.core.locators import Locator
from logbook_bot.core.mapping import get_month_name, get_semester_code
from logbook_bot.executor.browser import BrowserSession
from logbook_bot.models.schemas import BotConfig

logger = logging.getLogger(__name__)


class Navigator:
    """Walks from the portal dashboard to the monthly logbook table."""

    def __init__(self, session: BrowserSession, settings: Settings, config: BotConfig) -> None:
        self.session = session
        self.settings = settings
        self.config = config

    def steps(self) -> list[tuple[str, Locator]]:
        semester = get_semester_code(self.config.internship_semester)
        month = get_month_name(self.config.logbook_month)
        return [
            ("semester dropdown", locators.SEMESTER_DROPDOWN),
            (f"semester {semester}", locators.semester_option(self.config)),
            ("activity enrichment apps", locators.ACTIVITY_BUTTON),
            ("account tile", locators.account_tile(self.config)),
            ("logbook tab", locators.LOGBOOK_TAB),
            (f"{month} tab", locators.month_tab(self.config)),
        ]

    def navigate_to_logbook(self) -> None:
        """
        Click through the fixed menu sequence and wait for the logbook table.

        Raises:
            NavigationError: If any step's target never becomes clickable.
                There is no recovery from a partial navigation.
        """
        timeout = self.settings.selenium_timeout
        self.session.wait_for_page_ready(timeout)
        logger.info(f"[Nav] Current URL: {self.session.current_url}")
        self.session.screenshot("debug-dashboard.png")

        for index, (name, locator) in enumerate(self.steps(), start=1):
            logger.info(f"[Nav] Step {index}: clicking {name}")
            try:
                self.session.click_locator(locator, timeout)
            except SelectorTimeout as exc:
                self.session.screenshot(f"debug-nav-step-{index}.png")
                raise NavigationError(name, exc) from exc
            self.session.settle()

        try:
            self.session.wait_visible(locators.LOG_BOOK_TABLE, timeout)
        except SelectorTimeout as exc:
            raise NavigationError("logbook table", exc) from exc
        logger.info("[Nav] Logbook table is visible")
