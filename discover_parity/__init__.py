"""
Discover Parity - UI vs API consistency checks for TMDB discover.

This package provides tools for:
- Fetching discover results from the TMDB API, with endpoint fallback
- Scraping the same filtered results from the discover web page
- Normalizing both into typed records
- Comparing the two result sets and validating date range and order
- Writing run reports
"""

from .comparator import compare, containment_matches, fuzzy_candidates
from .config import Config
from .exceptions import APIRequestError, InvalidInputError, PageLoadError, ParityError
from .models import (
    ComparisonReport,
    DiscoverFilters,
    ReasonCode,
    Record,
    ResultSet,
    Source,
    Violation,
)
from .normalizer import normalize
from .validators import validate_ascending, validate_range

__version__ = "1.0.0"
__all__ = [
    "Config",
    "ComparisonReport",
    "DiscoverFilters",
    "ReasonCode",
    "Record",
    "ResultSet",
    "Source",
    "Violation",
    "normalize",
    "compare",
    "containment_matches",
    "fuzzy_candidates",
    "validate_range",
    "validate_ascending",
    "ParityError",
    "InvalidInputError",
    "APIRequestError",
    "PageLoadError",
]
