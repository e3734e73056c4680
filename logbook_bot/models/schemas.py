from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

OFF_DAY_MARKER = "OFF"


class ActivityRecord(BaseModel):
    """
    One spreadsheet row: column B is the activity, column C the description.

    Records are aligned to the on-screen logbook rows by position only.
    """

    activity: str
    description: str

    @property
    def is_off_day(self) -> bool:
        return (
            self.activity.strip().upper() == OFF_DAY_MARKER
            or self.description.strip().upper() == OFF_DAY_MARKER
        )


class Credentials(BaseModel):
    email: str
    password: str = Field(..., repr=False)


class SessionState(BaseModel):
    """
    Captured browser state used to skip the interactive login.

    Serialized by alias so the file reads
    {"cookies", "localStorage", "sessionStorage", "timestamp"}.
    """

    model_config = ConfigDict(populate_by_name=True)

    cookies: list[dict[str, Any]] = Field(default_factory=list)
    local_storage: dict[str, str] = Field(default_factory=dict, alias="localStorage")
    session_storage: dict[str, str] = Field(default_factory=dict, alias="sessionStorage")
    timestamp: str

    def captured_at(self) -> datetime:
        parsed = datetime.fromisoformat(self.timestamp)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def age(self, now: Optional[datetime] = None) -> timedelta:
        current = now or datetime.now(timezone.utc)
        return current - self.captured_at()

    def is_fresh(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        return self.age(now) < max_age


class RunState(BaseModel):
    current_row_index: int = 0
    total_rows: int = 0
    processed_dates: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def success_rate(self) -> str:
        return f"{len(self.processed_dates)}/{self.total_rows}"


class BotConfig(BaseModel):
    """Per-run settings for the logbook form. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    clock_in_time: str
    clock_out_time: str
    excel_file_path: str
    logbook_month: str
    internship_semester: str
    account_email: str = ""


class LoginStage(str, Enum):
    START = "start"
    CLICKED_INITIAL_LOGIN = "clicked_initial_login"
    CLICKED_IDP_BUTTON = "clicked_idp_button"
    EMAIL_FILLED = "email_filled"
    PASSWORD_FILLED = "password_filled"
    STAY_SIGNED_IN_RESOLVED = "stay_signed_in_resolved"
    DONE = "done"
