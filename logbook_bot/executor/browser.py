from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from selenium import webdriver
from selenium.common.exceptions import (
    InvalidElementStateException,
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from logbook_bot.core.config import Settings
from logbook_bot.core.errors import SelectorTimeout
from logbook_bot.core.locators import Locator
from logbook_bot.models.schemas import SessionState

logger = logging.getLogger(__name__)

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
_WINDOW_SIZE = (1280, 720)
_SAME_SITE_VALUES = ("Strict", "Lax", "None")

_DUMP_STORAGE_JS = """
const area = window[arguments[0]];
const out = {};
for (let i = 0; i < area.length; i++) {
  const key = area.key(i);
  out[key] = area.getItem(key);
}
return out;
"""

_LOAD_STORAGE_JS = """
const area = window[arguments[0]];
const entries = arguments[1] || {};
for (const [key, value] of Object.entries(entries)) {
  area.setItem(key, value);
}
"""

_SET_VALUE_JS = """
const el = arguments[0];
const val = arguments[1];
if (!el) return false;
try { el.removeAttribute('readonly'); } catch (_) {}
el.value = val;
el.dispatchEvent(new Event('input', { bubbles: true }));
el.dispatchEvent(new Event('change', { bubbles: true }));
return true;
"""


class BrowserSession:
    """
    Sole owner of the Chrome WebDriver for one run.

    The authenticator, navigator and logbook runner receive this object in
    turn; none of them creates or quits a driver. Selenium wait timeouts are
    re-raised as SelectorTimeout.
    """

    def __init__(
        self,
        settings: Settings,
        driver: Optional[webdriver.Chrome] = None,
        artifacts_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.settings = settings
        self.driver = driver
        self.artifacts_dir = Path(artifacts_dir or settings.artifacts_dir)
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)

    def __enter__(self) -> "BrowserSession":
        if self.driver is None:
            self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        options = webdriver.ChromeOptions()
        if self.settings.selenium_headless:
            options.add_argument("--headless=new")
        options.add_argument(f"--window-size={_WINDOW_SIZE[0]},{_WINDOW_SIZE[1]}")
        options.add_argument(f"--user-agent={_USER_AGENT}")
        options.add_argument("--disable-blink-features=AutomationControlled")
        options.add_experimental_option("excludeSwitches", ["enable-automation"])
        options.add_experimental_option("useAutomationExtension", False)

        # Selenium Manager first; webdriver-manager when it cannot provide a driver.
        try:
            self.driver = webdriver.Chrome(options=options)
        except WebDriverException as exc:
            logger.warning(f"[Browser] Selenium Manager failed ({exc.msg}); using webdriver-manager")
            installed_path = ChromeDriverManager().install()
            service = Service(executable_path=resolve_chromedriver_path(installed_path))
            self.driver = webdriver.Chrome(service=service, options=options)
        logger.info("[Browser] Chrome started")

    def close(self) -> None:
        if self.driver is None:
            return
        try:
            self.driver.quit()
            logger.info("[Browser] Browser closed")
        except WebDriverException as exc:
            logger.warning(f"[Browser] Error while closing browser: {exc}")
        finally:
            self.driver = None

    def _require_driver(self) -> webdriver.Chrome:
        if self.driver is None:
            raise RuntimeError("WebDriver is not initialized")
        return self.driver

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def current_url(self) -> str:
        return self._require_driver().current_url

    def goto(self, url: str) -> None:
        driver = self._require_driver()
        logger.info(f"[Browser] Opening {url}")
        driver.get(url)
        self.wait_for_page_ready(timeout=self.settings.selenium_timeout)

    def wait_for_page_ready(self, timeout: float) -> None:
        driver = self._require_driver()
        try:
            WebDriverWait(driver, timeout).until(
                lambda d: d.execute_script("return document.readyState") == "complete"
            )
        except TimeoutException:
            # Portal widgets keep loading after the initial document.
            logger.debug(f"[Browser] document.readyState not complete after {timeout}s")

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    def _wait(self, condition, locator: Locator, timeout: float, state: str):
        driver = self._require_driver()
        try:
            return WebDriverWait(driver, timeout).until(condition(locator))
        except TimeoutException as exc:
            raise SelectorTimeout(locator, timeout, state) from exc

    def wait_visible(self, locator: Locator, timeout: Optional[float] = None) -> WebElement:
        return self._wait(
            EC.visibility_of_element_located,
            locator,
            self.settings.selenium_timeout if timeout is None else timeout,
            "visible",
        )

    def wait_clickable(self, locator: Locator, timeout: Optional[float] = None) -> WebElement:
        return self._wait(
            EC.element_to_be_clickable,
            locator,
            self.settings.selenium_timeout if timeout is None else timeout,
            "clickable",
        )

    def wait_hidden(self, locator: Locator, timeout: float) -> bool:
        """Wait for an element to disappear. Returns False on timeout."""
        try:
            self._wait(EC.invisibility_of_element_located, locator, timeout, "hidden")
        except SelectorTimeout:
            return False
        return True

    def find_all(self, locator: Locator) -> list[WebElement]:
        return self._require_driver().find_elements(*locator)

    def find_in(self, scope: WebElement, locator: Locator) -> list[WebElement]:
        return scope.find_elements(*locator)

    def present_in(
        self, scope: WebElement, candidates: Sequence[Locator], timeout: float
    ) -> list[Locator]:
        """
        Poll scope until at least one candidate matches, then return every
        candidate that does. An empty list means none showed up in time.
        """

        def any_present(_driver):
            found = [locator for locator in candidates if scope.find_elements(*locator)]
            return found or False

        wait = WebDriverWait(
            self._require_driver(),
            timeout,
            ignored_exceptions=(StaleElementReferenceException,),
        )
        try:
            return wait.until(any_present)
        except TimeoutException:
            return []

    def first_visible_in(self, scope: WebElement, locator: Locator, timeout: float) -> WebElement:
        """First displayed match for locator inside scope (e.g. a table row)."""

        def visible_match(_driver):
            for candidate in scope.find_elements(*locator):
                try:
                    if candidate.is_displayed():
                        return candidate
                except StaleElementReferenceException:
                    continue
            return False

        try:
            return WebDriverWait(self._require_driver(), timeout).until(visible_match)
        except TimeoutException as exc:
            raise SelectorTimeout(locator, timeout, "visible") from exc

    def text_in(self, scope: WebElement, locator: Locator) -> str:
        matches = scope.find_elements(*locator)
        if not matches:
            return ""
        return (matches[0].text or "").strip()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def click(self, element: WebElement) -> None:
        driver = self._require_driver()
        driver.execute_script("arguments[0].scrollIntoView({block: 'center'});", element)
        element.click()

    def click_locator(self, locator: Locator, timeout: Optional[float] = None) -> None:
        self.click(self.wait_clickable(locator, timeout))

    def fill(self, locator: Locator, value: str, timeout: Optional[float] = None) -> None:
        element = self.wait_visible(locator, timeout)
        try:
            element.clear()
        except InvalidElementStateException:
            pass
        element.send_keys(value)

    def set_value_via_js(self, locator: Locator, value: str) -> None:
        """
        Assign an input's value directly and fire input/change events.

        Used for the clock fields, whose click handler opens a time picker.
        """
        driver = self._require_driver()
        matches = driver.find_elements(*locator)
        if not matches:
            raise SelectorTimeout(locator, 0, "present")
        driver.execute_script(_SET_VALUE_JS, matches[0], value)

    def press_escape(self) -> None:
        driver = self._require_driver()
        driver.find_element(By.TAG_NAME, "body").send_keys(Keys.ESCAPE)

    def settle(self, seconds: Optional[float] = None) -> None:
        delay = self.settings.settle_seconds if seconds is None else seconds
        if delay > 0:
            time.sleep(delay)

    def screenshot(self, filename: str) -> Optional[str]:
        """Save a PNG under the artifacts directory; None if capture fails."""
        if self.driver is None:
            return None
        path = self.artifacts_dir / filename
        try:
            self.driver.save_screenshot(str(path))
        except WebDriverException as exc:
            logger.warning(f"[Browser] Screenshot {filename} failed: {exc}")
            return None
        logger.info(f"[Browser] Screenshot saved: {path}")
        return str(path)

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def export_state(self) -> SessionState:
        driver = self._require_driver()
        return SessionState(
            cookies=driver.get_cookies(),
            local_storage=driver.execute_script(_DUMP_STORAGE_JS, "localStorage") or {},
            session_storage=driver.execute_script(_DUMP_STORAGE_JS, "sessionStorage") or {},
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def import_state(self, state: SessionState, origin: str) -> int:
        """
        Load cookies and storage captured by export_state.

        The browser is pointed at origin first since WebDriver only accepts
        cookies for the current domain. Cookies for other domains are skipped.
        Returns the number of cookies added.
        """
        driver = self._require_driver()
        self.goto(origin)
        added = 0
        for cookie in state.cookies:
            payload = dict(cookie)
            if payload.get("sameSite") not in _SAME_SITE_VALUES:
                payload.pop("sameSite", None)
            try:
                driver.add_cookie(payload)
                added += 1
            except WebDriverException as exc:
                logger.debug(
                    f"[Browser] Skipped cookie {cookie.get('name')!r} "
                    f"for {cookie.get('domain')!r}: {exc.msg}"
                )
        driver.execute_script(_LOAD_STORAGE_JS, "localStorage", state.local_storage)
        driver.execute_script(_LOAD_STORAGE_JS, "sessionStorage", state.session_storage)
        logger.info(f"[Browser] Restored {added}/{len(state.cookies)} cookies")
        return added


def resolve_chromedriver_path(installed_path: str) -> str:
    """
    Resolve the real chromedriver binary path.

    Some webdriver-manager versions return THIRD_PARTY_NOTICES.chromedriver
    instead of the executable.
    """
    candidate = Path(installed_path)

    def looks_like_driver(path: Path) -> bool:
        if not path.is_file():
            return False
        name = path.name.lower()
        if "third_party_notices" in name:
            return False
        return "chromedriver" in name

    if looks_like_driver(candidate):
        return str(candidate)

    for root in (candidate.parent, candidate.parent.parent):
        if not root.exists():
            continue
        for found in root.rglob("*"):
            if looks_like_driver(found):
                return str(found)

    raise RuntimeError(
        f"Could not locate chromedriver executable from webdriver-manager path: {installed_path}"
    )
