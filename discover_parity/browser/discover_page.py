"""
Page object for the TMDB discover page.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlencode, urlparse

from selenium.common.exceptions import TimeoutException, WebDriverException

from ..config import Config
from ..exceptions import PageLoadError
from ..models import DiscoverFilters, ResultSet, Source
from ..normalizer import normalize
from ..utils import setup_logger
from .locators import CARD_LOCATORS, DATE_LOCATORS, TITLE_LOCATORS, find_all_first, text_of
from .waits import until_any_present, until_url_contains


class DiscoverPage:
    """
    Drives the discover page with filters applied through the query string
    and scrapes the rendered movie cards.
    """

    def __init__(self, driver, config: Config):
        self.driver = driver
        self.config = config
        self.logger = setup_logger("discover_page", config.log_dir)

    @property
    def discover_path(self) -> str:
        """Path every filtered discover URL keeps, e.g. /discover/movie."""
        return urlparse(self.config.discover_url).path

    def build_url(self, filters: DiscoverFilters) -> str:
        """Discover URL carrying the same parameters as the API query."""
        return f"{self.config.discover_url}?{urlencode(filters.to_params())}"

    def open_with_filters(self, filters: DiscoverFilters, strict: bool = False) -> bool:
        """
        Navigate to the filtered page and wait for result cards.

        Args:
            filters: Genre, date range and sort order
            strict: Raise PageLoadError instead of returning False

        Returns:
            True once cards are present, False if the browser was redirected
            away from the discover page or no cards rendered in time
        """
        url = self.build_url(filters)
        self.logger.info(f"Navigating to {url}")
        self.driver.get(url)

        try:
            until_url_contains(self.driver, self.discover_path, timeout=self.config.wait_timeout)
            until_any_present(self.driver, CARD_LOCATORS, timeout=self.config.wait_timeout)
            return True
        except TimeoutException:
            self.logger.warning(
                f"No result cards after {self.config.wait_timeout}s at {self.driver.current_url}"
            )
            if strict:
                raise PageLoadError(url, self.config.wait_timeout)
            return False

    def get_raw_records(self, limit: Optional[int] = None) -> List[dict]:
        """
        Read title and release date text from each card.

        Genre ids are not rendered on cards, so they are left empty.
        """
        cards = find_all_first(self.driver, CARD_LOCATORS)
        if limit is not None:
            cards = cards[:limit]
        self.logger.info(f"Found {len(cards)} cards")

        records = []
        for card in cards:
            title = text_of(card, TITLE_LOCATORS)
            if not title:
                continue
            records.append({
                "title": title,
                "release_date": text_of(card, DATE_LOCATORS) or None,
                "genre_ids": [],
            })
        return records

    def get_movie_titles(self, limit: Optional[int] = None) -> List[str]:
        return [r["title"] for r in self.get_raw_records(limit)]

    def fetch(self, filters: DiscoverFilters, limit: Optional[int] = None) -> ResultSet:
        """Open the page with filters and normalize what it shows."""
        self.open_with_filters(filters)
        raw = self.get_raw_records(limit or self.config.ui_card_limit)
        return normalize(raw, Source.UI, filters, self.config.date_formats)

    def take_screenshot(self, name: str, directory: Optional[Path] = None) -> Optional[Path]:
        """Save a timestamped PNG; returns None if the browser refused."""
        directory = Path(directory or self.config.report_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png"
        try:
            if self.driver.save_screenshot(str(path)):
                self.logger.info(f"Screenshot saved: {path}")
                return path
        except WebDriverException as e:
            self.logger.warning(f"Failed to take screenshot: {e}")
            return None
        self.logger.warning(f"Screenshot not written: {path}")
        return None
