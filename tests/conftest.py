"""Shared fixtures: settings without a .env file and an in-memory browser session.

``FakeSession`` implements the ``BrowserSession`` surface used by the
clicker, authenticator, navigator and logbook runner. Locators listed in
``missing`` time out; everything else resolves immediately. Every call is
appended to ``actions`` so tests can assert on order.
"""

from dataclasses import dataclass, field
from typing import Optional

import pytest
from selenium.common.exceptions import ElementClickInterceptedException

from logbook_bot.core import locators
from logbook_bot.core.config import Settings
from logbook_bot.core.errors import SelectorTimeout
from logbook_bot.models.schemas import ActivityRecord, SessionState


@dataclass(frozen=True)
class FakeElement:
    locator: tuple[str, str]
    row: Optional[int] = None


@dataclass
class FakeRow:
    """A logbook table row. ``trigger`` is "ENTRY", "Edit", "hidden" or None.

    ``late`` is the number of lookups that find no button before it renders.
    """

    index: int
    date: str
    trigger: Optional[str] = "ENTRY"
    late: int = 0

    def locator_for(self, label: str) -> tuple[str, str]:
        return locators.ENTRY_BUTTON if label == "ENTRY" else locators.EDIT_BUTTON


@dataclass
class FakeSession:
    settings: Settings
    rows: list[FakeRow] = field(default_factory=list)
    missing: set = field(default_factory=set)
    unclickable: set = field(default_factory=set)
    current_url: str = "https://portal.test/Dashboard"
    actions: list = field(default_factory=list)
    exported: Optional[SessionState] = None

    # -- waits ---------------------------------------------------------
    def wait_visible(self, locator, timeout=None):
        self.actions.append(("wait", locator))
        if locator in self.missing:
            raise SelectorTimeout(locator, timeout or 0)
        return FakeElement(locator)

    def wait_clickable(self, locator, timeout=None):
        return self.wait_visible(locator, timeout)

    def wait_hidden(self, locator, timeout):
        self.actions.append(("wait_hidden", locator))
        return True

    def wait_for_page_ready(self, timeout):
        self.actions.append(("ready",))

    # -- lookups -------------------------------------------------------
    def find_all(self, locator):
        if locator == locators.TABLE_ROWS:
            return list(self.rows)
        return []

    def find_in(self, row, locator):
        if row.late > 0:
            row.late -= 1
            return []
        if row.trigger in ("ENTRY", "hidden") and locator == locators.ENTRY_BUTTON:
            return [FakeElement(locator, row.index)]
        if row.trigger == "Edit" and locator == locators.EDIT_BUTTON:
            return [FakeElement(locator, row.index)]
        return []

    def present_in(self, row, candidates, timeout, polls=5):
        self.actions.append(("present", row.index))
        for _ in range(polls):
            found = [locator for locator in candidates if self.find_in(row, locator)]
            if found:
                return found
        return []

    def first_visible_in(self, row, locator, timeout):
        if row.trigger == "hidden" or not self.find_in(row, locator):
            raise SelectorTimeout(locator, timeout)
        return FakeElement(locator, row.index)

    def text_in(self, row, locator):
        return row.date

    # -- actions -------------------------------------------------------
    def goto(self, url):
        self.actions.append(("goto", url))
        self.current_url = url

    def click(self, element):
        if element.locator in self.unclickable:
            raise ElementClickInterceptedException("click intercepted")
        self.actions.append(("click", element.locator, element.row))

    def click_locator(self, locator, timeout=None):
        self.click(self.wait_clickable(locator, timeout))

    def fill(self, locator, value, timeout=None):
        self.wait_visible(locator, timeout)
        self.actions.append(("fill", locator, value))

    def set_value_via_js(self, locator, value):
        self.actions.append(("js_value", locator, value))

    def press_escape(self):
        self.actions.append(("escape",))

    def settle(self, seconds=None):
        pass

    def screenshot(self, filename):
        self.actions.append(("screenshot", filename))
        return filename

    # -- session state -------------------------------------------------
    def export_state(self):
        self.exported = SessionState(
            cookies=[{"name": "auth", "value": "token", "domain": "portal.test"}],
            local_storage={"k": "v"},
            session_storage={},
            timestamp="2026-10-18T08:00:00+00:00",
        )
        return self.exported

    def import_state(self, state, origin):
        self.actions.append(("import_state", origin))
        return len(state.cookies)

    # -- helpers for assertions ----------------------------------------
    def clicked(self):
        return [action[1] for action in self.actions if action[0] == "click"]

    def waited(self):
        return [action[1] for action in self.actions if action[0] == "wait"]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        email="student@example.ac.id",
        password="secret",
        clock_in_time="08:30",
        clock_out_time="17:30",
        excel_file_path=str(tmp_path / "logbook.xlsx"),
        logbook_month="OCT",
        internship_semester="EVEN",
        portal_base_url="https://portal.test",
        settle_seconds=0,
        session_file=str(tmp_path / "data" / "login-session.json"),
        artifacts_dir=str(tmp_path / "artifacts"),
    )


@pytest.fixture
def config(settings):
    return settings.bot_config()


@pytest.fixture
def fake_session(settings) -> FakeSession:
    return FakeSession(settings=settings)


@pytest.fixture
def sample_records() -> list[ActivityRecord]:
    return [
        ActivityRecord(activity="Meeting", description="Standup"),
        ActivityRecord(activity="OFF", description=""),
        ActivityRecord(activity="Coding", description="Feature X"),
    ]
