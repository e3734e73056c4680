"""
Fill the monthly logbook table from the activity workbook.

Table rows and workbook records are matched by position: the first visible
row gets the first record, and so on. The date shown in a row is only used
for logging and for the list of processed dates.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from selenium.common.exceptions import WebDriverException

from logbook_bot.core import locators
from logbook_bot.core.config import Settings
from logbook_bot.core.errors import SelectorTimeout
from logbook_bot.executor.browser import BrowserSession
from logbook_bot.executor.clicker import ResilientClicker
from logbook_bot.models.schemas import ActivityRecord, BotConfig, RunState

logger = logging.getLogger(__name__)

_ROW_TRIGGERS = (locators.ENTRY_BUTTON, locators.EDIT_BUTTON)


def is_off_day(record: Optional[ActivityRecord]) -> bool:
    return record is not None and record.is_off_day


def day_of_week(date_text: str) -> str:
    """'Tue, 02 Sep 2025' -> 'Tue'"""
    head = date_text.strip().split(" ")[0]
    return head.rstrip(",")


class LogbookRunner:
    def __init__(
        self,
        session: BrowserSession,
        config: BotConfig,
        settings: Settings,
        clicker: Optional[ResilientClicker] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.settings = settings
        self.clicker = clicker or ResilientClicker(session)
        self.state = RunState()

    def fill_all(self, records: Sequence[ActivityRecord]) -> RunState:
        """
        Process every logbook row top to bottom.

        A failing row is recorded in ``state.errors`` and the run moves on;
        only a missing logbook table aborts the whole pass.
        """
        self.session.wait_visible(locators.LOG_BOOK_TABLE, self.settings.selenium_timeout)
        total = len(self.session.find_all(locators.TABLE_ROWS))
        self.state.total_rows = total
        logger.info(f"[Rows] Found {total} table rows, {len(records)} workbook rows")
        if total != len(records):
            logger.warning(
                "[Rows] Table and workbook row counts differ; rows are matched by position"
            )

        for index in range(total):
            logger.info(f"[Rows] Processing row {index + 1}/{total}")
            try:
                self._process_row(index, records)
            except Exception as exc:  # noqa: BLE001
                message = getattr(exc, "msg", None) or str(exc)
                logger.error(f"[Rows] Failed to process row {index + 1}: {message}")
                self.state.errors.append(f"Row {index + 1}: {message}")
                self._dismiss_modal()

        self.report()
        return self.state

    def _process_row(self, index: int, records: Sequence[ActivityRecord]) -> None:
        # Re-query by index: submitting a form re-renders the table.
        rows = self.session.find_all(locators.TABLE_ROWS)
        if index >= len(rows):
            raise LookupError(f"Table row {index + 1} is no longer present")
        row = rows[index]

        date_text = self.session.text_in(row, locators.DATE_COLUMN)
        if not date_text:
            logger.warning(f"[Rows] No date found for row {index + 1}, skipping")
            return
        logger.info(f"[Rows] Date: {date_text}, Day: {day_of_week(date_text)}")

        trigger = self._row_trigger(row, index)
        if trigger is None:
            return

        self.session.click(trigger)
        self._wait_for_modal()

        record = records[index] if index < len(records) else None
        if is_off_day(record):
            logger.info("[Rows] OFF day detected")
            self.submit_off_day()
        else:
            self.submit_activity(index, record)

        self.state.processed_dates.append(date_text)
        self.state.current_row_index = index + 1
        logger.info(f"[Rows] Successfully processed row {index + 1}")

    def _row_trigger(self, row, index: int):
        """
        ENTRY button if the row has one, else Edit.

        A row where neither button appears within row_trigger_timeout is
        skipped. A button that exists but never becomes visible is an error
        for that row.
        """
        timeout = self.settings.row_trigger_timeout
        present = self.session.present_in(row, _ROW_TRIGGERS, timeout)
        if not present:
            logger.warning(f"[Rows] No action button found for row {index + 1}, skipping")
            return None

        hidden: Optional[SelectorTimeout] = None
        for locator in present:
            label = "ENTRY" if locator == locators.ENTRY_BUTTON else "Edit"
            try:
                trigger = self.session.first_visible_in(row, locator, timeout)
            except SelectorTimeout as exc:
                hidden = exc
                continue
            logger.debug(f"[Rows] Found {label} button for row {index + 1}")
            return trigger
        raise hidden

    def _wait_for_modal(self) -> None:
        # Any submit variant showing up means the modal has rendered.
        for locator in locators.SUBMIT_BUTTON_FALLBACKS:
            try:
                self.session.wait_visible(locator, self.settings.fallback_timeout)
                return
            except SelectorTimeout:
                continue
        self.session.settle()

    def _wait_for_overlay_closed(self) -> None:
        if not self.session.wait_hidden(locators.MODAL_OVERLAY, self.settings.overlay_timeout):
            logger.debug("[Rows] Overlay still present after submit; continuing")

    def submit_off_day(self) -> None:
        self.clicker.click(locators.OFF_BUTTON_FALLBACKS, "OFF button")
        self.clicker.click(locators.SUBMIT_BUTTON_FALLBACKS, "Submit button")
        self._wait_for_overlay_closed()

    def submit_activity(self, index: int, record: Optional[ActivityRecord]) -> None:
        if record is None:
            raise LookupError(f"No activity data found for row {index + 1}")

        logger.info(f"[Rows] Clock in {self.config.clock_in_time}, out {self.config.clock_out_time}")
        self.session.set_value_via_js(locators.CLOCK_IN_INPUT, self.config.clock_in_time)
        self.session.set_value_via_js(locators.CLOCK_OUT_INPUT, self.config.clock_out_time)

        logger.info(f"[Rows] Activity: {record.activity}")
        self.session.fill(locators.ACTIVITY_INPUT, record.activity, self.settings.fallback_timeout)
        self.session.fill(
            locators.DESCRIPTION_TEXTAREA, record.description, self.settings.fallback_timeout
        )

        self.clicker.click(locators.SUBMIT_BUTTON_FALLBACKS, "Submit button")
        self._wait_for_overlay_closed()

    def _dismiss_modal(self) -> None:
        try:
            self.session.press_escape()
            self.session.wait_hidden(locators.MODAL_OVERLAY, self.settings.overlay_timeout)
        except WebDriverException as exc:
            logger.debug(f"[Rows] Could not dismiss modal: {exc}")

    def report(self) -> None:
        logger.info(f"[Rows] Processed {len(self.state.processed_dates)} dates")
        logger.info(f"[Rows] Success rate: {self.state.success_rate}")
        if self.state.errors:
            logger.warning(f"[Rows] Errors encountered: {len(self.state.errors)}")
            for error in self.state.errors:
                logger.warning(f"[Rows]    - {error}")
