"""
Parity runner.

Coordinates the API and UI fetchers, the comparator and the validators:
- UI vs API comparison for one filter set
- API date filtering accuracy
- Per-genre sweep with counts and timings
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

import requests
from selenium.common.exceptions import WebDriverException
from tqdm import tqdm

from .browser import DiscoverPage
from .client import TMDBClient
from .comparator import LOW_MATCH_RATIO, compare, containment_matches, fuzzy_candidates
from .config import Config
from .exceptions import ParityError
from .models import ComparisonReport, DiscoverFilters, ResultSet, Source, Violation
from .normalizer import normalize
from .utils import Stopwatch, clip, format_seconds, setup_logger
from .validators import out_of_range_percent, validate_ascending, validate_range

# API results may stray slightly outside the requested range
MAX_OUT_OF_RANGE_PERCENT = 10.0

DATE_SORT_FIELDS = ("primary_release_date", "release_date")

GENRE_CASES: List[Tuple[str, int]] = [
    ("Action", 28),
    ("Comedy", 35),
    ("Drama", 18),
    ("Horror", 27),
]


def _checks_ascending(filters: DiscoverFilters) -> bool:
    return filters.sort_field in DATE_SORT_FIELDS and not filters.descending


@dataclass
class ParityResult:
    """Outcome of one UI vs API comparison."""

    filters: DiscoverFilters
    api: ResultSet
    ui: ResultSet
    report: ComparisonReport
    api_violations: List[Violation] = field(default_factory=list)
    ui_violations: List[Violation] = field(default_factory=list)
    api_ascending: Optional[bool] = None
    ui_ascending: Optional[bool] = None
    containment: List[Tuple[str, str]] = field(default_factory=list)
    fuzzy: List[Tuple[str, str, int]] = field(default_factory=list)
    api_endpoint: str = ""
    api_seconds: float = 0.0
    ui_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        """Both sides returned movies and at least one title matches exactly."""
        return len(self.api) > 0 and len(self.ui) > 0 and self.report.has_matches

    @property
    def low_match(self) -> bool:
        return self.report.match_ratio < LOW_MATCH_RATIO

    def _sample(self, result_set: ResultSet, keys, limit: int) -> List[str]:
        titles = [result_set.title_for(k) or k for k in sorted(keys)]
        return [clip(t) for t in titles[:limit]]

    def summary(self, sample: int = 3) -> str:
        """Generate human-readable summary."""
        lines = [
            f"UI vs API ({self.filters.describe()})",
            "-" * 40,
            f"API movies:          {len(self.api):>8}  ({format_seconds(self.api_seconds)}, {self.api_endpoint})",
            f"UI movies:           {len(self.ui):>8}  ({format_seconds(self.ui_seconds)})",
            f"Partial matches:     {len(self.containment):>8}",
            "",
            self.report.summary(),
        ]

        matches = self._sample(self.api, self.report.exact_matches, sample)
        if matches:
            lines.append("Exact matches (sample):")
            lines.extend(f"  + {t}" for t in matches)

        api_only = self._sample(self.api, self.report.source_a_only, sample)
        if api_only:
            lines.append(f"API-only ({len(self.report.source_a_only)}):")
            lines.extend(f"  - {t}" for t in api_only)

        ui_only = self._sample(self.ui, self.report.source_b_only, sample)
        if ui_only:
            lines.append(f"UI-only ({len(self.report.source_b_only)}):")
            lines.extend(f"  - {t}" for t in ui_only)

        if self.api_violations or self.ui_violations:
            lines.append(
                f"Out-of-range dates: API {len(self.api_violations)}, UI {len(self.ui_violations)}"
            )
        if self.api_ascending is not None:
            lines.append(f"API ascending: {'yes' if self.api_ascending else 'NO'}")
        if self.ui_ascending is not None:
            lines.append(f"UI ascending:  {'yes' if self.ui_ascending else 'NO'}")

        lines.append("-" * 40)
        lines.append(f"Status: {'PASS' if self.passed else 'FAIL'}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "filters": self.api.to_dict()["filters"],
            "passed": self.passed,
            "api_endpoint": self.api_endpoint,
            "api_seconds": round(self.api_seconds, 3),
            "ui_seconds": round(self.ui_seconds, 3),
            "report": self.report.to_dict(),
            "api_violations": [v.to_dict() for v in self.api_violations],
            "ui_violations": [v.to_dict() for v in self.ui_violations],
            "api_ascending": self.api_ascending,
            "ui_ascending": self.ui_ascending,
            "containment": [list(p) for p in self.containment],
            "fuzzy": [list(c) for c in self.fuzzy],
            "api": self.api.to_dict()["records"],
            "ui": self.ui.to_dict()["records"],
        }


@dataclass
class DateCheck:
    """Outcome of the API date filtering check."""

    filters: DiscoverFilters
    result_set: ResultSet
    violations: List[Violation]
    ascending: bool

    @property
    def out_of_range_percent(self) -> float:
        return out_of_range_percent(self.result_set, self.violations)

    @property
    def passed(self) -> bool:
        return len(self.result_set) > 0 and self.out_of_range_percent < MAX_OUT_OF_RANGE_PERCENT

    def summary(self, sample: int = 5) -> str:
        dated = len(self.result_set.dated_records())
        lines = [
            f"API date check ({self.filters.describe()})",
            "-" * 40,
            f"Movies returned:     {len(self.result_set):>8}",
            f"With parsed dates:   {dated:>8}",
            f"Out of range:        {len(self.violations):>8}  ({self.out_of_range_percent:.1f}%)",
            f"Ascending:           {'yes' if self.ascending else 'NO':>8}",
        ]
        for v in self.violations[:sample]:
            lines.append(f"  - {clip(v.record_title)}: {v.detail}")
        lines.append("-" * 40)
        lines.append(f"Status: {'PASS' if self.passed else 'FAIL'}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "filters": self.result_set.to_dict()["filters"],
            "passed": self.passed,
            "count": len(self.result_set),
            "ascending": self.ascending,
            "out_of_range_percent": round(self.out_of_range_percent, 2),
            "violations": [v.to_dict() for v in self.violations],
        }


@dataclass
class SweepRow:
    """Counts and timings for one genre."""

    genre: str
    genre_id: int
    api_count: int = 0
    ui_count: int = 0
    api_seconds: float = 0.0
    ui_seconds: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "genre": self.genre,
            "genre_id": self.genre_id,
            "api_count": self.api_count,
            "ui_count": self.ui_count,
            "api_seconds": round(self.api_seconds, 3),
            "ui_seconds": round(self.ui_seconds, 3),
            "error": self.error,
        }


def format_sweep_table(rows: Sequence[SweepRow]) -> str:
    """Render sweep rows as a fixed-width table."""
    lines = [
        "Genre".ljust(10) + "API Count".ljust(12) + "UI Count".ljust(12) + "API Time".ljust(12) + "UI Time",
        "-" * 60,
    ]
    for row in rows:
        if row.error:
            lines.append(row.genre.ljust(10) + f"ERROR: {clip(row.error, 48)}")
            continue
        lines.append(
            row.genre.ljust(10)
            + str(row.api_count).ljust(12)
            + str(row.ui_count).ljust(12)
            + format_seconds(row.api_seconds).ljust(12)
            + format_seconds(row.ui_seconds)
        )
    return "\n".join(lines)


class ParityRunner:
    """
    Runs the UI vs API scenarios.

    The page is optional so API-only checks can run without a browser.
    """

    def __init__(self, client: TMDBClient, config: Config, page: Optional[DiscoverPage] = None):
        self.client = client
        self.config = config
        self.page = page
        self.logger = setup_logger("runner", config.log_dir)

    def fetch_api(self, filters: DiscoverFilters) -> Tuple[ResultSet, str]:
        """
        Fetch and normalize API results.

        Returns:
            Tuple of (ResultSet, endpoint that served the data)
        """
        raw, endpoint = self.client.discover_with_fallback(filters)
        result_set = normalize(raw, Source.API, filters, self.config.date_formats)
        self.logger.info(f"API returned {len(result_set)} movies via {endpoint}")
        return result_set, endpoint

    def fetch_ui(self, filters: DiscoverFilters) -> ResultSet:
        """Fetch and normalize the movies rendered on the discover page."""
        if self.page is None:
            raise ParityError("No browser page configured for UI fetch")
        result_set = self.page.fetch(filters, self.config.ui_card_limit)
        self.logger.info(f"UI returned {len(result_set)} movies")
        return result_set

    def run(self, filters: DiscoverFilters) -> ParityResult:
        """
        Compare UI and API results for one filter set.

        Args:
            filters: Genre, date range and sort order

        Returns:
            ParityResult with the report, violations and diagnostics
        """
        self.logger.info(f"Starting UI vs API comparison: {filters.describe()}")

        with Stopwatch() as api_timer:
            api, endpoint = self.fetch_api(filters)
        with Stopwatch() as ui_timer:
            ui = self.fetch_ui(filters)

        report = compare(api, ui)
        check_order = _checks_ascending(filters)

        result = ParityResult(
            filters=filters,
            api=api,
            ui=ui,
            report=report,
            api_violations=validate_range(api, filters.from_date, filters.to_date),
            ui_violations=validate_range(ui, filters.from_date, filters.to_date),
            api_ascending=validate_ascending(api) if check_order else None,
            ui_ascending=validate_ascending(ui) if check_order else None,
            containment=containment_matches(ui, api),
            fuzzy=fuzzy_candidates(report),
            api_endpoint=endpoint,
            api_seconds=api_timer.seconds,
            ui_seconds=ui_timer.seconds,
        )

        self.logger.info(
            f"Exact matches: {report.match_count}, match ratio {report.match_percent:.1f}%"
        )
        if result.low_match:
            self.logger.warning(
                f"Low match ratio ({report.match_percent:.1f}%) - possible reasons: "
                "different pagination or sorting, UI showing different content than API, "
                "selectors or API parameters out of date"
            )
        return result

    def validate_api_dates(self, filters: DiscoverFilters) -> DateCheck:
        """Check that API results respect the requested date range and order."""
        api, _ = self.fetch_api(filters)
        violations = validate_range(api, filters.from_date, filters.to_date)
        check = DateCheck(
            filters=filters,
            result_set=api,
            violations=violations,
            ascending=validate_ascending(api),
        )
        if violations:
            self.logger.warning(
                f"{len(violations)} of {len(api)} movies outside range "
                f"({check.out_of_range_percent:.1f}%)"
            )
        return check

    def genre_sweep(
        self,
        cases: Sequence[Tuple[str, int]] = GENRE_CASES,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        max_pages: int = 1,
        show_progress: bool = False,
    ) -> List[SweepRow]:
        """
        Fetch each genre from the API (and the UI when a page is configured).

        A genre that fails is recorded with its error and the sweep continues.
        """
        rows = []
        for name, genre_id in tqdm(cases, desc="Genre sweep", unit="genre", disable=not show_progress):
            filters = DiscoverFilters(
                genre_id=genre_id,
                from_date=from_date,
                to_date=to_date,
                max_pages=max_pages,
            )
            row = SweepRow(genre=name, genre_id=genre_id)
            try:
                with Stopwatch() as api_timer:
                    api, _ = self.fetch_api(filters)
                row.api_count = len(api)
                row.api_seconds = api_timer.seconds

                if self.page is not None:
                    with Stopwatch() as ui_timer:
                        ui = self.fetch_ui(filters)
                    row.ui_count = len(ui)
                    row.ui_seconds = ui_timer.seconds
            except (ParityError, WebDriverException, requests.RequestException) as e:
                self.logger.error(f"{name} sweep failed: {e}")
                row.error = str(e)

            rows.append(row)
        return rows
