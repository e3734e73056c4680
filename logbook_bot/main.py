#!/usr/bin/env python3
"""
Logbook bot entry point.

Signs into the enrichment portal, opens the configured month of the
internship logbook and fills every row from the activity workbook.

Usage examples:
  logbook-bot
  logbook-bot --excel data/october.xlsx --month OCT
  logbook-bot --fresh-login --headless --verbose
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from selenium.common.exceptions import WebDriverException

from logbook_bot.core.config import Settings
from logbook_bot.core.errors import DataLoadError, LogbookBotError, MissingCredentials
from logbook_bot.core.excel import load_activity_records
from logbook_bot.executor.authenticator import Authenticator
from logbook_bot.executor.browser import BrowserSession
from logbook_bot.executor.clicker import ResilientClicker
from logbook_bot.executor.logbook_runner import LogbookRunner
from logbook_bot.executor.navigator import Navigator

logger = logging.getLogger("logbook_bot")

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill the internship logbook from an Excel file")
    parser.add_argument("--excel", type=str, help="EXCEL_FILE_PATH override")
    parser.add_argument("--month", type=str, help="LOGBOOK_MONTH override (e.g. SEP, OCT)")
    parser.add_argument("--semester", type=str, help="INTERNSHIP_SEMESTER override (ODD|EVEN)")
    parser.add_argument("--headless", action="store_true", help="Run Chrome headless")
    parser.add_argument(
        "--fresh-login",
        dest="fresh_login",
        action="store_true",
        help="Ignore any stored session and log in again",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.excel:
        overrides["excel_file_path"] = args.excel
    if args.month:
        overrides["logbook_month"] = args.month
    if args.semester:
        overrides["internship_semester"] = args.semester
    if args.headless:
        overrides["selenium_headless"] = True
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


def run(settings: Settings, reuse_session: bool = True) -> int:
    """
    Execute one full logbook pass.

    Returns the process exit code: 0 when the table was processed (even with
    per-row errors), 1 when the run could not get that far.
    """
    try:
        credentials = settings.credentials()
    except MissingCredentials as exc:
        logger.error(str(exc))
        return EXIT_FAILURE

    config = settings.bot_config()
    try:
        records = load_activity_records(config.excel_file_path)
        if not records:
            raise DataLoadError(config.excel_file_path, "no rows with both activity and description")
    except DataLoadError as exc:
        logger.error(str(exc))
        return EXIT_FAILURE

    try:
        with BrowserSession(settings) as session:
            clicker = ResilientClicker(session)

            authenticator = Authenticator(session, settings, clicker)
            if not authenticator.authenticate(credentials, settings.session_file, reuse_session):
                logger.error("Login failed")
                return EXIT_FAILURE

            Navigator(session, settings, config).navigate_to_logbook()

            state = LogbookRunner(session, config, settings, clicker).fill_all(records)
            logger.info(
                f"Done: {len(state.processed_dates)} processed, {len(state.errors)} errors"
            )
            return EXIT_OK
    except (LogbookBotError, WebDriverException) as exc:
        logger.exception(f"Run aborted: {exc}")
        return EXIT_FAILURE


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = apply_overrides(Settings(), args)
    return run(settings, reuse_session=not args.fresh_login)


if __name__ == "__main__":
    raise SystemExit(main())
