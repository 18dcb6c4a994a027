"""
Condition-based waits with explicit timeouts.
"""

from typing import Sequence

from selenium.webdriver.support.ui import WebDriverWait

from .locators import Locator, find_all_first


def until_url_contains(driver, fragment: str, timeout: float = 10) -> bool:
    """Wait for the current URL to contain fragment, ignoring case."""
    fragment = fragment.lower()
    return WebDriverWait(driver, timeout).until(lambda d: fragment in (d.current_url or "").lower())


def until_any_present(driver, locators: Sequence[Locator], timeout: float = 10) -> list:
    """
    Wait until any candidate locator matches at least one element.

    Returns the matched elements; raises TimeoutException.
    """
    return WebDriverWait(driver, timeout).until(lambda d: find_all_first(d, locators) or False)
