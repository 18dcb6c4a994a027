"""
Locator strategies for the discover page.

Each element is described by an ordered list of candidate locators.
Lookups try them in turn and return an optional/empty result instead
of raising, so a markup change degrades to "not found".
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from selenium.common.exceptions import (
    InvalidSelectorException,
    NoSuchElementException,
    StaleElementReferenceException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement

LOOKUP_ERRORS = (
    NoSuchElementException,
    StaleElementReferenceException,
    InvalidSelectorException,
)


@dataclass(frozen=True)
class Locator:
    """One (By, value) strategy."""

    by: str
    value: str

    def as_tuple(self) -> tuple:
        return (self.by, self.value)


CARD_LOCATORS = [
    Locator(By.CSS_SELECTOR, ".card.style_1"),
    Locator(By.CSS_SELECTOR, "div.page_wrapper .card"),
    Locator(By.CSS_SELECTOR, "[data-media-type='movie']"),
]

TITLE_LOCATORS = [
    Locator(By.CSS_SELECTOR, "h2 a"),
    Locator(By.CSS_SELECTOR, "h3 a"),
    Locator(By.CSS_SELECTOR, ".title a"),
    Locator(By.CSS_SELECTOR, "h2"),
]

DATE_LOCATORS = [
    Locator(By.CSS_SELECTOR, ".content p"),
    Locator(By.CSS_SELECTOR, "p.release_date"),
    Locator(By.CSS_SELECTOR, "span.release_date"),
]


def find_first(scope, locators: Sequence[Locator]) -> Optional[WebElement]:
    """First element matched by any locator, tried in order."""
    for locator in locators:
        try:
            return scope.find_element(*locator.as_tuple())
        except LOOKUP_ERRORS:
            continue
    return None


def find_all_first(scope, locators: Sequence[Locator]) -> List[WebElement]:
    """Elements from the first locator that matches anything."""
    for locator in locators:
        try:
            elements = scope.find_elements(*locator.as_tuple())
        except LOOKUP_ERRORS:
            continue
        if elements:
            return list(elements)
    return []


def text_of(scope, locators: Sequence[Locator]) -> str:
    """Stripped text of the first matching element, or empty string."""
    element = find_first(scope, locators)
    if element is None:
        return ""
    try:
        return (element.text or "").strip()
    except StaleElementReferenceException:
        return ""
