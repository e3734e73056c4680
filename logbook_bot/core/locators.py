"""
Selenium locators for the enrichment portal and its Microsoft sign-in pages.

Locators are ``(By, value)`` tuples. Fallback lists are ordered: the first
entry is the markup seen most often, later entries cover the same control
rendered as a different tag, and the last one matches on visible text.

The functions at the bottom derive locators from the run configuration and
are recomputed on every call.
"""
from selenium.webdriver.common.by import By

from logbook_bot.core.mapping import get_month_name, get_semester_code
from logbook_bot.models.schemas import BotConfig

Locator = tuple[str, str]


def xpath_literal(value: str) -> str:
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    joined = ", \"'\", ".join(f"'{part}'" for part in parts)
    return f"concat({joined})"


def _text_match(text: str, tags: tuple[str, ...] = ("a", "button", "span")) -> Locator:
    tag_filter = " or ".join(f"self::{tag}" for tag in tags)
    return (By.XPATH, f"//*[{tag_filter}][normalize-space()={xpath_literal(text)}]")


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

INITIAL_LOGIN_BUTTON: Locator = (
    By.CSS_SELECTOR,
    'a.button.button-primary[href="/Login/Student/Login"]',
)
MICROSOFT_SIGNIN_BUTTON: Locator = (By.CSS_SELECTOR, 'button.btnLogin#btnLogin[name="btnLogin"]')
EMAIL_INPUT: Locator = (By.CSS_SELECTOR, 'input[name="loginfmt"]#i0116[type="email"]')
PASSWORD_INPUT: Locator = (By.CSS_SELECTOR, 'input[name="passwd"]#i0118[type="password"]')
PASSWORD_SIGNIN_BUTTON: Locator = (
    By.CSS_SELECTOR,
    'input#idSIButton9[type="submit"][value="Sign in"]',
)

EMAIL_NEXT_FALLBACKS: list[Locator] = [
    (By.CSS_SELECTOR, 'input#idSIButton9[type="submit"][value="Sign in"]'),
    (By.CSS_SELECTOR, 'input[type="submit"][value="Next"]'),
    (By.CSS_SELECTOR, 'input[type="submit"][value="Sign in"]'),
    (By.CSS_SELECTOR, 'button[type="submit"]'),
    (By.CSS_SELECTOR, "#idSIButton9"),
    (By.CSS_SELECTOR, "input#idSIButton9"),
]

STAY_SIGNED_IN_FALLBACKS: list[Locator] = [
    (By.CSS_SELECTOR, 'input#idSIButton9[type="submit"][value="Yes"]'),
    (By.CSS_SELECTOR, 'button[type="submit"][data-report-value="Submit"]'),
]

# ---------------------------------------------------------------------------
# Portal navigation
# ---------------------------------------------------------------------------

SEMESTER_DROPDOWN: Locator = (By.CSS_SELECTOR, "div.period-selector button.dropdown-toggle")
ACTIVITY_BUTTON: Locator = (
    By.XPATH,
    "//a[contains(normalize-space(), 'Go to Activity Enrichment Apps')]",
)
LOGBOOK_TAB: Locator = (By.XPATH, "//ul[contains(@class, 'nav-tabs')]//a[normalize-space()='Logbook']")

# ---------------------------------------------------------------------------
# Logbook table and entry modal
# ---------------------------------------------------------------------------

LOG_BOOK_TABLE: Locator = (By.CSS_SELECTOR, "table#logBookTable")
TABLE_ROWS: Locator = (By.CSS_SELECTOR, "table#logBookTable tbody tr")
DATE_COLUMN: Locator = (By.CSS_SELECTOR, "td:nth-child(1)")

# Row-scoped: searched inside a single <tr>.
ENTRY_BUTTON: Locator = (By.XPATH, ".//*[self::a or self::button][normalize-space()='ENTRY']")
EDIT_BUTTON: Locator = (By.XPATH, ".//*[self::a or self::button][normalize-space()='Edit']")

CLOCK_IN_INPUT: Locator = (By.CSS_SELECTOR, "input#editClockIn")
CLOCK_OUT_INPUT: Locator = (By.CSS_SELECTOR, "input#editClockOut")
ACTIVITY_INPUT: Locator = (By.CSS_SELECTOR, "input#editActivity")
DESCRIPTION_TEXTAREA: Locator = (By.CSS_SELECTOR, "textarea#editDescription")

OFF_BUTTON_FALLBACKS: list[Locator] = [
    (By.CSS_SELECTOR, "a#btnOff"),
    (By.CSS_SELECTOR, "button#btnOff"),
    (By.CSS_SELECTOR, "input#btnOff"),
    (By.CSS_SELECTOR, 'input[type="button"][value="OFF"]'),
    _text_match("OFF"),
]

SUBMIT_BUTTON_FALLBACKS: list[Locator] = [
    (By.CSS_SELECTOR, "a#btnSubmit"),
    (By.CSS_SELECTOR, "button#btnSubmit"),
    (By.CSS_SELECTOR, "input#btnSubmit"),
    (By.CSS_SELECTOR, 'input[type="submit"][value="Submit"]'),
    _text_match("Submit"),
]

MODAL_OVERLAY: Locator = (By.CSS_SELECTOR, ".fancybox-overlay")


# ---------------------------------------------------------------------------
# Configuration-derived
# ---------------------------------------------------------------------------

def semester_option(config: BotConfig) -> Locator:
    code = get_semester_code(config.internship_semester)
    return (By.CSS_SELECTOR, f"div.period-selector a.dropdown-item[data-value='{code}']")


def month_tab(config: BotConfig) -> Locator:
    month = get_month_name(config.logbook_month)
    return (
        By.XPATH,
        f"//ul[contains(@class, 'nav-tabs')]//a[normalize-space()={xpath_literal(month)}]",
    )


def account_tile(config: BotConfig) -> Locator:
    return (By.CSS_SELECTOR, f"div[data-test-id='{config.account_email}']")
