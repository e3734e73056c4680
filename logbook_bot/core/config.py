from datetime import timedelta
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from logbook_bot.core.errors import MissingCredentials
from logbook_bot.models.schemas import BotConfig, Credentials


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    email: Optional[str] = None
    password: Optional[str] = None

    clock_in_time: str = "09:00"
    clock_out_time: str = "18:00"
    excel_file_path: str = "data/logbook.xlsx"
    logbook_month: str = "SEP"
    internship_semester: str = "ODD"

    portal_base_url: str = "https://activity-enrichment.apps.binus.ac.id"
    dashboard_path: str = "/Dashboard"

    selenium_headless: bool = False
    selenium_timeout: int = 10
    fallback_timeout: float = 2.0
    idp_fallback_timeout: float = 5.0
    row_trigger_timeout: float = 1.0
    overlay_timeout: float = 2.0
    settle_seconds: float = 0.5

    session_file: str = "data/login-session.json"
    session_max_age_hours: int = 24
    artifacts_dir: str = "artifacts"

    @property
    def login_url(self) -> str:
        return self.portal_base_url.rstrip("/") + "/"

    @property
    def dashboard_url(self) -> str:
        return self.portal_base_url.rstrip("/") + self.dashboard_path

    @property
    def session_max_age(self) -> timedelta:
        return timedelta(hours=self.session_max_age_hours)

    def credentials(self) -> Credentials:
        missing = [
            name.upper()
            for name, value in (("email", self.email), ("password", self.password))
            if not (value or "").strip()
        ]
        if missing:
            raise MissingCredentials(missing)
        return Credentials(email=self.email.strip(), password=self.password)

    def bot_config(self) -> BotConfig:
        return BotConfig(
            clock_in_time=self.clock_in_time,
            clock_out_time=self.clock_out_time,
            excel_file_path=self.excel_file_path,
            logbook_month=self.logbook_month,
            internship_semester=self.internship_semester,
            account_email=(self.email or "").strip(),
        )
