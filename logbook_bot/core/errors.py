"""
Exception types for the logbook bot.

Login and navigation errors are fatal to the run. Row-level errors are caught
by the logbook runner and recorded against the row instead.
"""
from __future__ import annotations

from typing import Any


class LogbookBotError(Exception):
    pass


class MissingCredentials(LogbookBotError):
    """EMAIL or PASSWORD is not configured."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing credentials: {', '.join(missing)}. "
            "Set EMAIL and PASSWORD in the environment or .env file."
        )


class DataLoadError(LogbookBotError):
    """The activity workbook could not be turned into rows."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load activity data from '{path}': {reason}")


class SelectorTimeout(LogbookBotError):
    """An element never reached the awaited state within its timeout."""

    def __init__(self, locator: tuple[str, str], timeout: float, state: str = "visible") -> None:
        self.locator = locator
        self.timeout = timeout
        self.state = state
        by, value = locator
        super().__init__(f"Element {by}={value!r} not {state} within {timeout}s")


class ActionNotFoundError(LogbookBotError):
    """Every candidate locator for a logical action failed."""

    def __init__(self, action: str, candidate_count: int, screenshot_path: Any = None) -> None:
        self.action = action
        self.candidate_count = candidate_count
        self.screenshot_path = screenshot_path
        super().__init__(
            f"Could not find {action} with any of the {candidate_count} selectors"
        )


class NavigationError(LogbookBotError):
    """A navigation step did not become clickable; the run cannot continue."""

    def __init__(self, step: str, cause: Exception) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Navigation failed at '{step}': {cause}")
