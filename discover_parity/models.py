"""
Data models for the parity suite.

Provides immutable dataclasses shared by the fetchers, the normalizer,
the comparator and the validators.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple


DEFAULT_SORT = "primary_release_date.asc"


def normalized_key(title: str) -> str:
    """Fold a title into the key used for set membership."""
    return title.strip().casefold()


class Source(str, Enum):
    """Where a result set came from."""

    API = "API"
    UI = "UI"


class ReasonCode(str, Enum):
    """Why a record failed the range check."""

    DATE_BELOW_RANGE = "DATE_BELOW_RANGE"
    DATE_ABOVE_RANGE = "DATE_ABOVE_RANGE"


@dataclass(frozen=True)
class DiscoverFilters:
    """Filter parameters shared by the API query and the discover page URL."""

    genre_id: Optional[int] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    sort_by: str = DEFAULT_SORT
    max_pages: int = 1

    @property
    def sort_field(self) -> str:
        """Sort field without the direction suffix."""
        return self.sort_by.rsplit(".", 1)[0]

    @property
    def descending(self) -> bool:
        return self.sort_by.endswith(".desc")

    def to_params(self) -> Dict[str, str]:
        """Query parameters understood by both /discover/movie and the web page."""
        params = {"sort_by": self.sort_by}
        if self.genre_id is not None:
            params["with_genres"] = str(self.genre_id)
        if self.from_date:
            params["primary_release_date.gte"] = self.from_date.isoformat()
        if self.to_date:
            params["primary_release_date.lte"] = self.to_date.isoformat()
        return params

    def describe(self) -> str:
        """Short label for logs and report names."""
        genre = f"genre={self.genre_id}" if self.genre_id is not None else "genre=any"
        start = self.from_date.isoformat() if self.from_date else "*"
        end = self.to_date.isoformat() if self.to_date else "*"
        return f"{genre} {start}..{end} {self.sort_by}"


@dataclass(frozen=True)
class Record:
    """One movie as reported by either source."""

    title: str
    release_date: Optional[date] = None
    genre_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def key(self) -> str:
        return normalized_key(self.title)

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "title": self.title,
            "release_date": self.release_date.isoformat() if self.release_date else None,
            "genre_ids": sorted(self.genre_ids),
        }


@dataclass(frozen=True)
class ResultSet:
    """Ordered records from one fetch, tagged with source and filters."""

    source: Source
    records: Tuple[Record, ...] = ()
    filters: DiscoverFilters = field(default_factory=DiscoverFilters)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def keys(self) -> FrozenSet[str]:
        """Normalized keys of every record."""
        return frozenset(r.key for r in self.records)

    def titles(self) -> List[str]:
        return [r.title for r in self.records]

    def title_for(self, key: str) -> Optional[str]:
        """First display title whose normalized key matches."""
        for record in self.records:
            if record.key == key:
                return record.title
        return None

    def dated_records(self) -> List[Record]:
        """Records that carry a parsed release date, in source order."""
        return [r for r in self.records if r.release_date is not None]

    def to_dict(self) -> dict:
        return {
            "source": self.source.value,
            "filters": {
                "genre_id": self.filters.genre_id,
                "from_date": self.filters.from_date.isoformat() if self.filters.from_date else None,
                "to_date": self.filters.to_date.isoformat() if self.filters.to_date else None,
                "sort_by": self.filters.sort_by,
                "max_pages": self.filters.max_pages,
            },
            "records": [r.to_dict() for r in self.records],
        }


@dataclass(frozen=True)
class Violation:
    """A single record outside the requested date range."""

    record_title: str
    reason_code: ReasonCode
    detail: str

    def to_dict(self) -> dict:
        return {
            "record_title": self.record_title,
            "reason_code": self.reason_code.value,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class ComparisonReport:
    """Overlap between two result sets, keyed by normalized title."""

    exact_matches: FrozenSet[str]
    source_a_only: FrozenSet[str]
    source_b_only: FrozenSet[str]
    match_ratio: float
    source_a: Source = Source.API
    source_b: Source = Source.UI

    @property
    def match_count(self) -> int:
        return len(self.exact_matches)

    @property
    def match_percent(self) -> float:
        return self.match_ratio * 100

    @property
    def has_matches(self) -> bool:
        return bool(self.exact_matches)

    def summary(self) -> str:
        """Generate human-readable summary."""
        a = self.source_a.value
        b = self.source_b.value
        lines = [
            f"Comparison ({a} vs {b})",
            "-" * 40,
            f"Exact matches:       {self.match_count:>8}",
            f"{a + '-only:':<21}{len(self.source_a_only):>8}",
            f"{b + '-only:':<21}{len(self.source_b_only):>8}",
            f"Match ratio:         {self.match_percent:>7.1f}%",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "source_a": self.source_a.value,
            "source_b": self.source_b.value,
            "exact_matches": sorted(self.exact_matches),
            "source_a_only": sorted(self.source_a_only),
            "source_b_only": sorted(self.source_b_only),
            "match_ratio": self.match_ratio,
        }
