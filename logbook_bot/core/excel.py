"""
Activity workbook reader.

Sheet layout: row 1 is a header and is skipped, column A is ignored,
column B holds the activity title and column C the description. Rows are
returned in sheet order; a row is kept only if both fields are non-empty
after trimming.
"""
import logging
from pathlib import Path
from typing import Any, Union
from zipfile import BadZipFile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from logbook_bot.core.errors import DataLoadError
from logbook_bot.models.schemas import ActivityRecord

logger = logging.getLogger(__name__)

ACTIVITY_COLUMN = 1
DESCRIPTION_COLUMN = 2
HEADER_ROWS = 1


def _cell_text(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def load_activity_records(path: Union[str, Path]) -> list[ActivityRecord]:
    """
    Read the first sheet of an activity workbook.

    Args:
        path: Location of the .xlsx file

    Returns:
        Activity records in sheet order

    Raises:
        DataLoadError: If the file is missing, unreadable, or has no sheet
    """
    workbook_path = Path(path)
    if not workbook_path.is_file():
        raise DataLoadError(str(path), "file does not exist")

    try:
        frame = pd.read_excel(
            workbook_path,
            sheet_name=0,
            header=None,
            skiprows=HEADER_ROWS,
            dtype=str,
            engine="openpyxl",
        )
    except IndexError as exc:
        raise DataLoadError(str(path), "workbook contains no sheet") from exc
    except (OSError, ValueError, BadZipFile, InvalidFileException) as exc:
        raise DataLoadError(str(path), str(exc) or exc.__class__.__name__) from exc

    records: list[ActivityRecord] = []
    if frame.shape[1] <= DESCRIPTION_COLUMN:
        logger.warning(f"[Excel] {workbook_path.name} has no data in columns B and C")
        return records

    for activity, description in zip(
        frame.iloc[:, ACTIVITY_COLUMN], frame.iloc[:, DESCRIPTION_COLUMN]
    ):
        activity_text = _cell_text(activity)
        description_text = _cell_text(description)
        if not activity_text or not description_text:
            continue
        records.append(ActivityRecord(activity=activity_text, description=description_text))

    logger.info(f"[Excel] Loaded {len(records)} rows from {workbook_path.name}")
    if records:
        first = records[0]
        logger.debug(
            f"[Excel] Sample data: activity={first.activity!r}, description={first.description!r}"
        )
    return records
