"""Translate configured month and semester codes into portal values."""

DEFAULT_MONTH = "September"
DEFAULT_SEMESTER = "ODD"

MONTH_TRANSLATION: dict[str, str] = {
    "JAN": "January",
    "FEB": "February",
    "MAR": "March",
    "APR": "April",
    "MAY": "May",
    "JUN": "June",
    "JUL": "July",
    "AUG": "August",
    "SEP": "September",
    "OCT": "October",
    "NOV": "November",
    "DEC": "December",
}

SEMESTER_TRANSLATION: dict[str, str] = {
    "EVEN": "2420",
    "ODD": "2510",
}


def _normalize(code: str | None) -> str:
    return (code or "").strip().upper()


def get_month_name(code: str | None) -> str:
    """
    Full month name for a three-letter code.

    Args:
        code: Month code such as "SEP" or "oct"

    Returns:
        The month name, or "September" for codes that are not in the table
    """
    return MONTH_TRANSLATION.get(_normalize(code), DEFAULT_MONTH)


def get_semester_code(code: str | None) -> str:
    """
    Portal semester code for "ODD" or "EVEN".

    Unknown values fall back to the ODD semester code.
    """
    return SEMESTER_TRANSLATION.get(
        _normalize(code), SEMESTER_TRANSLATION[DEFAULT_SEMESTER]
    )
