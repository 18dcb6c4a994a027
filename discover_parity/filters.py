"""
Client-side filtering and sorting.

Used when the API rejects a filtered discover query and the client falls
back to an unfiltered listing: the genre, date range and sort order are
then applied locally to the raw result dictionaries.
"""

from datetime import date, datetime
from typing import Any, List, Optional

from .models import DiscoverFilters
from .normalizer import coerce_genre_ids

SORTABLE_FIELDS = {
    "primary_release_date": "release_date",
    "release_date": "release_date",
    "popularity": "popularity",
    "vote_average": "vote_average",
    "vote_count": "vote_count",
    "title": "title",
    "original_title": "original_title",
}


def _iso_date(value: Any) -> Optional[date]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def _sort_value(raw: dict, field: str):
    value = raw.get(field)
    if field == "release_date":
        return _iso_date(value)
    if isinstance(value, str):
        return value.casefold()
    return value


def apply_client_filters(raw_records: List[dict], filters: DiscoverFilters) -> List[dict]:
    """
    Filter and sort raw API results locally.

    Args:
        raw_records: Result dictionaries from an unfiltered endpoint
        filters: The filters the server-side query would have applied

    Returns:
        New list; records missing the sort field are placed last
    """
    kept = []
    has_range = filters.from_date is not None or filters.to_date is not None

    for raw in raw_records:
        if filters.genre_id is not None:
            if filters.genre_id not in coerce_genre_ids(raw.get("genre_ids")):
                continue

        if has_range:
            released = _iso_date(raw.get("release_date"))
            if released is None:
                continue
            if filters.from_date and released < filters.from_date:
                continue
            if filters.to_date and released > filters.to_date:
                continue

        kept.append(raw)

    field = SORTABLE_FIELDS.get(filters.sort_field)
    if field is None:
        return kept

    present = [r for r in kept if _sort_value(r, field) is not None]
    missing = [r for r in kept if _sort_value(r, field) is None]
    present.sort(key=lambda r: _sort_value(r, field), reverse=filters.descending)
    return present + missing
