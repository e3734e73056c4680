"""
Click one logical control through an ordered list of candidate locators.

The portal renders the same button as an <a>, a <button> or an <input>
depending on the record's state, so callers pass every known variant and
the first one that shows up is clicked.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from selenium.common.exceptions import WebDriverException

from logbook_bot.core.errors import ActionNotFoundError, SelectorTimeout
from logbook_bot.core.locators import Locator
from logbook_bot.executor.browser import BrowserSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    locator: Locator
    attempt: int


@dataclass(frozen=True)
class Exhausted:
    attempts: int


ClickOutcome = Union[Found, Exhausted]


def action_slug(action: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", action.lower()).strip("-")


class ResilientClicker:
    def __init__(self, session: BrowserSession, timeout: Optional[float] = None) -> None:
        self.session = session
        self.timeout = session.settings.fallback_timeout if timeout is None else timeout

    def locate_and_click(
        self,
        candidates: Sequence[Locator],
        action: str,
        timeout: Optional[float] = None,
    ) -> ClickOutcome:
        """
        Try each candidate in order until one is visible and accepts the click.

        Candidates after the first success are never touched.
        """
        wait_for = self.timeout if timeout is None else timeout
        total = len(candidates)
        for attempt, locator in enumerate(candidates, start=1):
            logger.debug(f"[Clicker] Trying {action} selector {attempt}/{total}: {locator[1]}")
            try:
                element = self.session.wait_visible(locator, wait_for)
                self.session.click(element)
            except (SelectorTimeout, WebDriverException) as exc:
                logger.debug(f"[Clicker] Selector {attempt} failed: {exc}")
                continue
            logger.info(f"[Clicker] Clicked {action} with selector {attempt}")
            return Found(locator=locator, attempt=attempt)
        return Exhausted(attempts=total)

    def click(
        self,
        candidates: Sequence[Locator],
        action: str,
        timeout: Optional[float] = None,
    ) -> Found:
        """
        Like locate_and_click, but a miss is an error.

        Raises:
            ActionNotFoundError: After every candidate failed. A
                debug-<action>-failed.png screenshot is saved first.
        """
        outcome = self.locate_and_click(candidates, action, timeout)
        if isinstance(outcome, Found):
            return outcome
        screenshot = self.session.screenshot(f"debug-{action_slug(action)}-failed.png")
        raise ActionNotFoundError(action, outcome.attempts, screenshot)
