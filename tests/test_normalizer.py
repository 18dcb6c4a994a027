"""
Normalizer tests.

Raw API JSON and scraped UI text both end up as typed Records.
"""

from datetime import date, datetime

import pytest

from discover_parity.exceptions import InvalidInputError
from discover_parity.models import DiscoverFilters, Source
from discover_parity.normalizer import coerce_genre_ids, normalize, parse_date

from conftest import SAMPLE_API_MOVIES


class TestNormalizeRecords:
    """Flow 1: Shape raw records into a ResultSet"""

    def test_api_record_is_typed(self):
        """A single API record becomes one Record with parsed fields."""
        raw = [{"title": " Inception ", "release_date": "2010-07-16", "genre_ids": [28, 878]}]

        result = normalize(raw)

        assert len(result) == 1
        record = result.records[0]
        assert record.title == "Inception"
        assert record.release_date == date(2010, 7, 16)
        assert record.genre_ids == frozenset({28, 878})
        assert record.key == "inception"

    def test_source_order_is_preserved(self):
        """Records keep the order the source returned them in."""
        result = normalize(SAMPLE_API_MOVIES)

        assert result.titles() == [m["title"] for m in SAMPLE_API_MOVIES]

    def test_empty_titles_are_dropped(self):
        """Blank, whitespace-only and non-string titles are skipped."""
        raw = [
            {"title": "", "release_date": "2001-01-01"},
            {"title": "   ", "release_date": "2001-01-01"},
            {"title": None},
            {"title": "Memento", "release_date": "2000-10-11"},
        ]

        result = normalize(raw)

        assert result.titles() == ["Memento"]

    def test_empty_input_gives_empty_result(self):
        """No records is a valid fetch."""
        result = normalize([], Source.UI)

        assert len(result) == 0
        assert result.source == Source.UI

    def test_source_and_filters_are_attached(self):
        """The ResultSet remembers where it came from."""
        filters = DiscoverFilters(genre_id=18)

        result = normalize([{"title": "Heat"}], Source.UI, filters)

        assert result.source == Source.UI
        assert result.filters == filters

    def test_missing_fields_default(self):
        """Only the title field is required."""
        result = normalize([{"title": "Heat"}])

        record = result.records[0]
        assert record.release_date is None
        assert record.genre_ids == frozenset()


class TestMalformedInput:
    """Flow 2: Reject input that is not a list of mappings"""

    @pytest.mark.parametrize("bad", [None, "Inception", {"title": "Inception"}, 42])
    def test_non_sequence_rejected(self, bad):
        """Strings, mappings and scalars are not record lists."""
        with pytest.raises(InvalidInputError):
            normalize(bad)

    def test_record_without_title_field_rejected(self):
        """A record with no title key at all is malformed."""
        with pytest.raises(InvalidInputError) as exc_info:
            normalize([{"title": "Heat"}, {"release_date": "1995-12-15"}])

        assert exc_info.value.details == {"index": 1}

    def test_non_mapping_record_rejected(self):
        """Each record must be a mapping."""
        with pytest.raises(InvalidInputError):
            normalize([["Heat", "1995-12-15"]])

    def test_invalid_input_is_a_value_error(self):
        """Callers catching ValueError still see bad input."""
        with pytest.raises(ValueError):
            normalize("not a list")


class TestParseDate:
    """Flow 3: Release dates in API and UI formats"""

    def test_iso_date(self):
        assert parse_date("1994-09-23") == date(1994, 9, 23)

    def test_ui_card_formats(self):
        """Discover cards show abbreviated and full month names."""
        assert parse_date("Jul 16, 2010") == date(2010, 7, 16)
        assert parse_date("July 16, 2010") == date(2010, 7, 16)

    def test_unparseable_dates_are_none(self):
        """Garbage and blanks never raise."""
        assert parse_date("soon") is None
        assert parse_date("") is None
        assert parse_date("   ") is None
        assert parse_date(None) is None
        assert parse_date(2010) is None

    def test_date_objects_pass_through(self):
        assert parse_date(date(2000, 1, 1)) == date(2000, 1, 1)
        assert parse_date(datetime(2000, 1, 1, 12, 30)) == date(2000, 1, 1)

    def test_custom_formats(self):
        """Only the configured formats are tried."""
        assert parse_date("16.07.2010", formats=["%d.%m.%Y"]) == date(2010, 7, 16)
        assert parse_date("2010-07-16", formats=["%d.%m.%Y"]) is None

    def test_bad_date_keeps_record(self):
        """An unparseable date drops the date, not the record."""
        result = normalize([{"title": "Tenet", "release_date": "TBA"}])

        assert result.titles() == ["Tenet"]
        assert result.records[0].release_date is None


class TestCoerceGenreIds:
    """Flow 4: Genre id lists in whatever shape they arrive"""

    def test_int_list(self):
        assert coerce_genre_ids([28, 12]) == frozenset({28, 12})

    def test_numeric_strings(self):
        assert coerce_genre_ids(["18", " 35 "]) == frozenset({18, 35})

    def test_comma_separated_string(self):
        assert coerce_genre_ids("28,12, 16") == frozenset({28, 12, 16})

    def test_genre_objects(self):
        """Detail endpoints return genre objects instead of ids."""
        assert coerce_genre_ids([{"id": 18, "name": "Drama"}]) == frozenset({18})

    def test_junk_is_skipped(self):
        """Non-numeric tokens, booleans and fractional floats are dropped."""
        assert coerce_genre_ids(["x", True, 2.5, 18.0, None]) == frozenset({18})

    def test_missing_and_scalar(self):
        assert coerce_genre_ids(None) == frozenset()
        assert coerce_genre_ids(27) == frozenset({27})
