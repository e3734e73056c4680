"""Tests for authenticator.py: the login stage sequence and session reuse."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

from logbook_bot.core import locators
from logbook_bot.core.storage import load_session, save_session
from logbook_bot.executor.authenticator import Authenticator
from logbook_bot.models.schemas import LoginStage, SessionState


def _stored_state(age: timedelta) -> SessionState:
    return SessionState(
        cookies=[{"name": "auth", "value": "x", "domain": "portal.test"}],
        timestamp=(datetime.now(timezone.utc) - age).isoformat(),
    )


class TestLogin:
    """Tests for Authenticator.login()."""

    def test_full_sequence(self, fake_session, settings):
        auth = Authenticator(fake_session, settings)

        assert auth.login(settings.credentials()) is True
        assert auth.stage == LoginStage.DONE

        assert fake_session.actions[0] == ("goto", "https://portal.test/")
        clicked = fake_session.clicked()
        assert clicked[:2] == [locators.INITIAL_LOGIN_BUTTON, locators.MICROSOFT_SIGNIN_BUTTON]
        assert locators.EMAIL_NEXT_FALLBACKS[0] in clicked
        assert locators.PASSWORD_SIGNIN_BUTTON in clicked
        assert locators.STAY_SIGNED_IN_FALLBACKS[0] in clicked

        fills = [a for a in fake_session.actions if a[0] == "fill"]
        assert fills == [
            ("fill", locators.EMAIL_INPUT, "student@example.ac.id"),
            ("fill", locators.PASSWORD_INPUT, "secret"),
        ]

    def test_email_next_uses_fallback(self, fake_session, settings):
        """The next button is found through a later candidate."""
        first = (By.CSS_SELECTOR, "input#next-a")
        second = (By.CSS_SELECTOR, "input#next-b")
        third = (By.CSS_SELECTOR, "button#next-c")
        fake_session.missing = {first, second}

        with patch.object(locators, "EMAIL_NEXT_FALLBACKS", [first, second, third]):
            assert Authenticator(fake_session, settings).login(settings.credentials()) is True

        assert third in fake_session.clicked()
        assert fake_session.waited().count(first) == 1

    def test_stay_signed_in_absent_is_success(self, fake_session, settings):
        fake_session.missing = set(locators.STAY_SIGNED_IN_FALLBACKS)
        auth = Authenticator(fake_session, settings)

        assert auth.login(settings.credentials()) is True
        assert auth.stage == LoginStage.DONE

    def test_missing_idp_button_fails_without_raising(self, fake_session, settings):
        fake_session.missing = {locators.MICROSOFT_SIGNIN_BUTTON}
        auth = Authenticator(fake_session, settings)

        assert auth.login(settings.credentials()) is False
        assert auth.stage == LoginStage.CLICKED_INITIAL_LOGIN

    def test_password_field_missing_fails(self, fake_session, settings):
        fake_session.missing = {locators.PASSWORD_INPUT}
        auth = Authenticator(fake_session, settings)

        assert auth.login(settings.credentials()) is False
        assert auth.stage == LoginStage.EMAIL_FILLED

    def test_email_next_exhausted_fails_with_screenshot(self, fake_session, settings):
        fake_session.missing = set(locators.EMAIL_NEXT_FALLBACKS)
        auth = Authenticator(fake_session, settings)

        assert auth.login(settings.credentials()) is False
        assert auth.stage == LoginStage.CLICKED_IDP_BUTTON
        assert ("screenshot", "debug-email-next-button-failed.png") in fake_session.actions


class TestAuthenticate:
    """Tests for Authenticator.authenticate(): stored session vs. fresh login."""

    def test_fresh_session_skips_login(self, fake_session, settings):
        save_session(settings.session_file, _stored_state(timedelta(hours=1)))
        auth = Authenticator(fake_session, settings)

        with patch.object(auth, "login") as mock_login:
            assert auth.authenticate(settings.credentials(), settings.session_file) is True

        mock_login.assert_not_called()
        assert ("import_state", "https://portal.test/") in fake_session.actions
        assert ("goto", "https://portal.test/Dashboard") in fake_session.actions

    def test_stale_session_logs_in_and_saves(self, fake_session, settings):
        save_session(settings.session_file, _stored_state(timedelta(hours=25)))
        auth = Authenticator(fake_session, settings)

        assert auth.authenticate(settings.credentials(), settings.session_file) is True

        assert not any(a[0] == "import_state" for a in fake_session.actions)
        assert locators.INITIAL_LOGIN_BUTTON in fake_session.clicked()
        saved = load_session(settings.session_file)
        assert saved == fake_session.exported

    def test_reuse_disabled_forces_login(self, fake_session, settings):
        save_session(settings.session_file, _stored_state(timedelta(hours=1)))
        auth = Authenticator(fake_session, settings)

        assert auth.authenticate(
            settings.credentials(), settings.session_file, reuse_session=False
        ) is True
        assert locators.INITIAL_LOGIN_BUTTON in fake_session.clicked()

    def test_rejected_session_falls_back_to_login(self, fake_session, settings):
        """Bounced to the identity provider after restore: log in normally."""
        save_session(settings.session_file, _stored_state(timedelta(hours=1)))
        auth = Authenticator(fake_session, settings)

        def bounce(url):
            fake_session.actions.append(("goto", url))
            if url == settings.dashboard_url:
                url = "https://login.microsoftonline.com/common/oauth2"
            fake_session.current_url = url

        with patch.object(fake_session, "goto", side_effect=bounce):
            assert auth.restore(load_session(settings.session_file)) is False
            assert auth.authenticate(settings.credentials(), settings.session_file) is True

        assert locators.INITIAL_LOGIN_BUTTON in fake_session.clicked()

    def test_failed_login_returns_false(self, fake_session, settings):
        fake_session.missing = {locators.INITIAL_LOGIN_BUTTON}

        auth = Authenticator(fake_session, settings)

        assert auth.authenticate(settings.credentials(), settings.session_file) is False
        assert load_session(settings.session_file) is None

    def test_save_failure_does_not_fail_login(self, fake_session, settings):
        auth = Authenticator(fake_session, settings)

        with patch.object(fake_session, "export_state", side_effect=WebDriverException("gone")):
            assert auth.authenticate(settings.credentials(), settings.session_file) is True

    def test_rejected_session_is_removed(self, fake_session, settings):
        """A session the portal refuses is deleted even if the new login fails."""
        save_session(settings.session_file, _stored_state(timedelta(hours=1)))
        fake_session.missing = {locators.INITIAL_LOGIN_BUTTON}
        auth = Authenticator(fake_session, settings)

        def bounce(url):
            fake_session.actions.append(("goto", url))
            fake_session.current_url = "https://login.microsoftonline.com/common/oauth2"

        with patch.object(fake_session, "goto", side_effect=bounce):
            assert auth.authenticate(settings.credentials(), settings.session_file) is False

        assert not Path(settings.session_file).exists()
