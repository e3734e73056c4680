from datetime import datetime, timedelta
import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from logbook_bot.models.schemas import SessionState

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_session(path: PathLike) -> Optional[SessionState]:
    session_path = Path(path)
    if not session_path.exists():
        logger.info(f"[Session] No session found at {session_path}")
        return None
    try:
        return SessionState.model_validate_json(session_path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        logger.warning(f"[Session] Invalid session file {session_path}: {exc}")
        return None


def save_session(path: PathLike, state: SessionState) -> Path:
    session_path = Path(path)
    session_path.parent.mkdir(parents=True, exist_ok=True)
    session_path.write_text(
        json.dumps(state.model_dump(mode="json", by_alias=True), indent=2),
        encoding="utf-8",
    )
    logger.info(f"[Session] Saved session with {len(state.cookies)} cookies to {session_path}")
    return session_path


def fresh_session(
    path: PathLike,
    max_age: timedelta,
    now: Optional[datetime] = None,
) -> Optional[SessionState]:
    """
    Return the stored session if it is younger than max_age.

    A missing, unparseable or expired file yields None, which means a fresh
    login is required.
    """
    state = load_session(path)
    if state is None:
        return None
    try:
        fresh = state.is_fresh(max_age, now)
    except (TypeError, ValueError) as exc:
        logger.warning(f"[Session] Unreadable session timestamp {state.timestamp!r}: {exc}")
        return None
    if not fresh:
        logger.info("[Session] Session expired, performing fresh login")
        return None
    logger.info("[Session] Using existing session")
    return state


def clear_session(path: PathLike) -> None:
    session_path = Path(path)
    if session_path.exists():
        session_path.unlink()
        logger.info(f"[Session] Removed session file {session_path}")
