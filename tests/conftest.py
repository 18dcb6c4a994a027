"""
Shared fixtures for the parity suite tests.

Provides sample raw records, a mock TMDB client, a fake Selenium driver
and a mock discover page.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from selenium.common.exceptions import NoSuchElementException

from discover_parity.config import Config
from discover_parity.exceptions import APIRequestError
from discover_parity.filters import apply_client_filters
from discover_parity.models import DiscoverFilters, ResultSet, Source
from discover_parity.normalizer import normalize


# =============================================================================
# SAMPLE DATA
# =============================================================================

def raw_movie(
    title: str,
    release_date: Optional[str] = None,
    genre_ids: Optional[list] = None,
    popularity: float = 10.0,
) -> dict:
    """Create a raw movie dict shaped like a /discover/movie result."""
    return {
        "id": abs(hash(title)) % 100000,
        "title": title,
        "release_date": release_date,
        "genre_ids": genre_ids if genre_ids is not None else [18],
        "popularity": popularity,
        "vote_average": 7.0,
    }


SAMPLE_API_MOVIES = [
    raw_movie("Goodfellas", "1990-09-12", [18, 80], 60.0),
    raw_movie("Edward Scissorhands", "1990-12-05", [14, 18, 10749], 45.0),
    raw_movie("The Shawshank Redemption", "1994-09-23", [18, 80], 90.0),
    raw_movie("Forrest Gump", "1994-06-23", [35, 18, 10749], 85.0),
    raw_movie("Fight Club", "1999-10-15", [18], 80.0),
    raw_movie("Gladiator", "2000-05-01", [28, 18, 12], 70.0),
    raw_movie("Mystic River", "2003-10-07", [80, 18, 9648], 30.0),
    raw_movie("Million Dollar Baby", "2004-12-15", [18], 35.0),
]


def make_result_set(
    titles: Sequence[str],
    source: Source = Source.API,
    dates: Optional[Sequence[Optional[str]]] = None,
    filters: Optional[DiscoverFilters] = None,
) -> ResultSet:
    """Build a ResultSet from titles and optional ISO date strings."""
    dates = dates or [None] * len(titles)
    raw = [{"title": t, "release_date": d, "genre_ids": []} for t, d in zip(titles, dates)]
    return normalize(raw, source, filters)


# =============================================================================
# MOCK TMDB CLIENT
# =============================================================================

class MockTMDBClient:
    """Mock TMDB client serving sample movies with client-side filtering."""

    def __init__(self, movies: Optional[List[dict]] = None):
        self.movies = list(movies if movies is not None else SAMPLE_API_MOVIES)
        self.failing_genres = set()
        self.genres = {18: "Drama", 28: "Action", 35: "Comedy", 27: "Horror"}
        self.endpoint_status = {"/configuration": True, "/genre/movie/list": True}
        self.calls: List[DiscoverFilters] = []

    def discover_with_fallback(self, filters: DiscoverFilters, max_pages=None) -> Tuple[List[dict], str]:
        self.calls.append(filters)
        if filters.genre_id in self.failing_genres:
            raise APIRequestError(["/discover/movie"])
        return apply_client_filters(self.movies, filters), "/discover/movie"

    def discover_all_pages(self, filters: DiscoverFilters, max_pages=None) -> List[dict]:
        return self.discover_with_fallback(filters)[0]

    def get_genres(self) -> Dict[int, str]:
        return dict(self.genres)

    def probe_endpoints(self, endpoints=None) -> Dict[str, bool]:
        return dict(self.endpoint_status)

    def test_connection(self) -> bool:
        return any(self.endpoint_status.values())


# =============================================================================
# FAKE SELENIUM OBJECTS
# =============================================================================

class FakeElement:
    """Minimal WebElement stand-in resolving CSS selectors from a dict."""

    def __init__(self, text: str = "", children: Optional[Dict[str, list]] = None):
        self.text = text
        self.children = children or {}

    def find_element(self, by, value):
        found = self.children.get(value)
        if not found:
            raise NoSuchElementException(f"no element for {value}")
        return found[0]

    def find_elements(self, by, value):
        return list(self.children.get(value, []))


def make_card(title: str, release_text: str = "", title_selector: str = "h2 a") -> FakeElement:
    """A discover card with a title link and a release date paragraph."""
    children = {title_selector: [FakeElement(title)]}
    if release_text:
        children[".content p"] = [FakeElement(release_text)]
    return FakeElement(children=children)


class FakeDriver(FakeElement):
    """Fake WebDriver holding a fixed list of cards."""

    def __init__(self, cards: Optional[List[FakeElement]] = None, card_selector: str = ".card.style_1"):
        super().__init__(children={card_selector: list(cards or [])})
        self.visited: List[str] = []
        self.current_url = ""
        self.screenshots: List[str] = []
        self.screenshot_ok = True

    def get(self, url: str) -> None:
        self.visited.append(url)
        self.current_url = url

    def save_screenshot(self, path: str) -> bool:
        if not self.screenshot_ok:
            return False
        with open(path, "wb") as fh:
            fh.write(b"\x89PNG")
        self.screenshots.append(path)
        return True

    def quit(self) -> None:
        pass


class MockDiscoverPage:
    """Page stand-in that renders given UI records without a browser."""

    def __init__(self, raw_records: List[dict], config: Config):
        self.raw_records = raw_records
        self.config = config
        self.screenshots: List[str] = []
        self.fetched: List[DiscoverFilters] = []
        self.limits: List[Optional[int]] = []

    def build_url(self, filters: DiscoverFilters) -> str:
        return f"{self.config.discover_url}?genre={filters.genre_id}"

    def fetch(self, filters: DiscoverFilters, limit: Optional[int] = None) -> ResultSet:
        self.fetched.append(filters)
        self.limits.append(limit)
        raw = self.raw_records[:limit] if limit else self.raw_records
        return normalize(raw, Source.UI, filters, self.config.date_formats)

    def take_screenshot(self, name: str, directory=None):
        self.screenshots.append(name)
        return None


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def config(tmp_path):
    """Config pointing logs and reports at a temp directory."""
    return Config(
        api_key="test-key",
        log_dir=tmp_path / "logs",
        report_dir=tmp_path / "reports",
        wait_timeout=0,
        max_retries=3,
    )


@pytest.fixture
def mock_tmdb_client():
    """Provide mock TMDB client."""
    return MockTMDBClient()


@pytest.fixture
def drama_filters():
    """Drama, 1990-2005, oldest first."""
    return DiscoverFilters(
        genre_id=18,
        from_date=date(1990, 1, 1),
        to_date=date(2005, 12, 31),
        max_pages=2,
    )


@pytest.fixture
def ui_records():
    """What the discover page shows for drama 1990-2005."""
    return [
        {"title": "Goodfellas", "release_date": "Sep 12, 1990", "genre_ids": []},
        {"title": "edward scissorhands", "release_date": "Dec 05, 1990", "genre_ids": []},
        {"title": "Forrest Gump ", "release_date": "Jun 23, 1994", "genre_ids": []},
        {"title": "Dances with Wolves", "release_date": "Nov 09, 1990", "genre_ids": []},
    ]
