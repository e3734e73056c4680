from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from selenium.common.exceptions import WebDriverException

from logbook_bot.core import locators
from logbook_bot.core.config import Settings
from logbook_bot.core.errors import ActionNotFoundError, SelectorTimeout
from logbook_bot.core.storage import clear_session, fresh_session, save_session
from logbook_bot.executor.browser import BrowserSession
from logbook_bot.executor.clicker import Found, ResilientClicker
from logbook_bot.models.schemas import Credentials, LoginStage, SessionState

logger = logging.getLogger(__name__)

_IDP_DOMAINS = ("login.microsoftonline.com", "login.live.com", "login.microsoft.com")


class Authenticator:
    """
    Signs into the portal through the Microsoft identity provider.

    The login is a fixed sequence of stages; ``stage`` holds the last one
    reached, so a failed login reports how far it got. Each stage waits for
    its own target, which doubles as the settle wait for the previous click.
    """

    def __init__(
        self,
        session: BrowserSession,
        settings: Settings,
        clicker: Optional[ResilientClicker] = None,
    ) -> None:
        self.session = session
        self.settings = settings
        self.clicker = clicker or ResilientClicker(session)
        self.stage = LoginStage.START

    def authenticate(
        self,
        credentials: Credentials,
        session_file: Union[str, Path],
        reuse_session: bool = True,
    ) -> bool:
        """Restore a stored session when possible, otherwise log in and store one."""
        if reuse_session:
            stored = fresh_session(session_file, self.settings.session_max_age)
            if stored is not None:
                if self.restore(stored):
                    logger.info("[Auth] Session restored successfully")
                    return True
                logger.warning("[Auth] Stored session rejected by the portal; logging in")
                clear_session(session_file)

        if not self.login(credentials):
            return False
        try:
            self.persist(session_file)
        except (OSError, WebDriverException) as exc:
            logger.warning(f"[Auth] Logged in but could not save session: {exc}")
        return True

    def login(self, credentials: Credentials) -> bool:
        """
        Run the interactive login. Returns False instead of raising when a
        required control never shows up.
        """
        self.stage = LoginStage.START
        timeout = self.settings.selenium_timeout
        try:
            self.session.goto(self.settings.login_url)

            logger.info("[Auth] Clicking initial login button")
            self.session.click_locator(locators.INITIAL_LOGIN_BUTTON, timeout)
            self.stage = LoginStage.CLICKED_INITIAL_LOGIN

            logger.info("[Auth] Clicking Microsoft sign in button")
            self.session.click_locator(locators.MICROSOFT_SIGNIN_BUTTON, timeout)
            self.stage = LoginStage.CLICKED_IDP_BUTTON

            logger.info("[Auth] Filling email")
            self.session.fill(locators.EMAIL_INPUT, credentials.email, timeout)
            self.clicker.click(
                locators.EMAIL_NEXT_FALLBACKS,
                "email next button",
                timeout=self.settings.idp_fallback_timeout,
            )
            self.stage = LoginStage.EMAIL_FILLED

            logger.info("[Auth] Filling password")
            self.session.fill(locators.PASSWORD_INPUT, credentials.password, timeout)
            self.session.click_locator(locators.PASSWORD_SIGNIN_BUTTON, timeout)
            self.stage = LoginStage.PASSWORD_FILLED

            self._resolve_stay_signed_in()
            self.stage = LoginStage.STAY_SIGNED_IN_RESOLVED

            self.session.wait_for_page_ready(timeout)
            self.stage = LoginStage.DONE
        except (SelectorTimeout, ActionNotFoundError, WebDriverException) as exc:
            logger.error(f"[Auth] Login failed after stage '{self.stage.value}': {exc}")
            return False

        logger.info("[Auth] Login successful")
        return True

    def _resolve_stay_signed_in(self) -> None:
        # The prompt is optional; not seeing it is not an error.
        outcome = self.clicker.locate_and_click(
            locators.STAY_SIGNED_IN_FALLBACKS,
            "stay signed in",
            timeout=self.settings.idp_fallback_timeout,
        )
        if isinstance(outcome, Found):
            logger.info("[Auth] Confirmed 'Stay signed in'")
        else:
            logger.info("[Auth] 'Stay signed in' prompt not shown")

    def restore(self, state: SessionState) -> bool:
        """
        Replay stored cookies and storage, then open the dashboard.

        Returns False when the portal bounces the browser to the identity
        provider, i.e. the stored session is no longer accepted.
        """
        try:
            self.session.import_state(state, self.settings.login_url)
            self.session.goto(self.settings.dashboard_url)
            current = self.session.current_url.lower()
        except WebDriverException as exc:
            logger.warning(f"[Auth] Session restore failed: {exc}")
            return False
        if any(domain in current for domain in _IDP_DOMAINS):
            return False
        self.stage = LoginStage.DONE
        return True

    def persist(self, session_file: Union[str, Path]) -> Path:
        state = self.session.export_state()
        return save_session(session_file, state)
