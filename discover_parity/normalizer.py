"""
Result normalizer.

Maps loosely-typed records (parsed JSON from the API, scraped text from
the discover page) into typed Records at the boundary. Bad fields are
dropped, never raised; only a malformed input shape is an error.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any, FrozenSet, Iterable, Optional

from .config import DEFAULT_DATE_FORMATS
from .exceptions import InvalidInputError
from .models import DiscoverFilters, Record, ResultSet, Source

logger = logging.getLogger(__name__)


def parse_date(value: Any, formats: Iterable[str] = DEFAULT_DATE_FORMATS) -> Optional[date]:
    """
    Parse a release date, trying each accepted format in order.

    Returns None for missing or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    logger.debug(f"Unparseable release date: {text!r}")
    return None


def _coerce_genre_token(token: Any) -> Optional[int]:
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token
    if isinstance(token, float):
        return int(token) if token.is_integer() else None
    if isinstance(token, Mapping):
        # Detail endpoints return [{"id": 18, "name": "Drama"}]
        return _coerce_genre_token(token.get("id"))
    if isinstance(token, str):
        try:
            return int(token.strip())
        except ValueError:
            return None
    return None


def coerce_genre_ids(value: Any) -> FrozenSet[int]:
    """Coerce a genre id list (ints, numeric strings, or a comma list) to a set of ints."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        tokens = value.split(",")
    elif isinstance(value, (int, float, Mapping)):
        tokens = [value]
    elif isinstance(value, Iterable):
        tokens = list(value)
    else:
        return frozenset()

    ids = set()
    for token in tokens:
        genre_id = _coerce_genre_token(token)
        if genre_id is not None:
            ids.add(genre_id)
    return frozenset(ids)


def parse_record(
    raw: Any,
    formats: Iterable[str] = DEFAULT_DATE_FORMATS,
    index: Optional[int] = None,
) -> Optional[Record]:
    """
    Turn one raw record into a Record.

    Returns None when the title is empty after trimming.

    Raises:
        InvalidInputError: If the record is not a mapping or has no title field.
    """
    where = f" at index {index}" if index is not None else ""
    if not isinstance(raw, Mapping):
        raise InvalidInputError(
            f"Raw record{where} must be a mapping, got {type(raw).__name__}",
            details={"index": index},
        )
    if "title" not in raw:
        raise InvalidInputError(f"Raw record{where} has no title field", details={"index": index})

    title = raw["title"]
    if not isinstance(title, str) or not title.strip():
        logger.debug(f"Dropping record{where}: empty title")
        return None

    return Record(
        title=title.strip(),
        release_date=parse_date(raw.get("release_date"), formats),
        genre_ids=coerce_genre_ids(raw.get("genre_ids")),
    )


def normalize(
    raw_records: Sequence,
    source: Source = Source.API,
    filters: Optional[DiscoverFilters] = None,
    date_formats: Iterable[str] = DEFAULT_DATE_FORMATS,
) -> ResultSet:
    """
    Normalize raw records from one fetch into a ResultSet.

    Args:
        raw_records: Sequence of {title, release_date, genre_ids} mappings
        source: Which surface produced the records
        filters: Filter parameters used for the fetch
        date_formats: Accepted release date formats, tried in order

    Returns:
        ResultSet preserving the source order, minus records without a usable title

    Raises:
        InvalidInputError: If raw_records is not a sequence, or a record is
            not a mapping or lacks a title field.
    """
    if isinstance(raw_records, (str, bytes, Mapping)) or not isinstance(raw_records, Sequence):
        raise InvalidInputError(
            f"Expected a sequence of records, got {type(raw_records).__name__}"
        )

    formats = tuple(date_formats)
    records = []
    for i, raw in enumerate(raw_records):
        record = parse_record(raw, formats, index=i)
        if record is not None:
            records.append(record)

    dropped = len(raw_records) - len(records)
    if dropped:
        logger.debug(f"{source.value}: dropped {dropped} record(s) without a usable title")

    return ResultSet(
        source=source,
        records=tuple(records),
        filters=filters or DiscoverFilters(),
    )
