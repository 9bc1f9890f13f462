"""
Tests for tabular sources.
"""

import pytest

from tabular_exchange.exceptions.exchange_exceptions import (
    SourceStateError,
    UnsupportedSourceError,
)
from tabular_exchange.models.tabular_models import ValueKind
from tabular_exchange.sources import (
    BufferedSource,
    MappingListSource,
    QueryCursorSource,
    as_source,
    iter_classified_rows,
    open_source,
)


def texts(source) -> list[list[str]]:
    return [[value.text for value in values] for values in iter_classified_rows(source)]


class TestQueryCursorSource:
    """Tests for the forward-only cursor source."""

    def test_columns_upper_cased(self, user_cursor):
        """Test that query column names are upper-cased."""
        source = QueryCursorSource(user_cursor)
        assert source.columns() == ["NAME", "AGE", "NOTE"]

    def test_reads_all_rows(self, user_cursor):
        """Test reading rows with any column name casing."""
        source = QueryCursorSource(user_cursor)
        assert source.advance()
        assert source.value_of("name").text == "Alice"
        assert source.value_of("AGE").kind is ValueKind.NUMERIC
        assert source.advance()
        assert source.value_of("NOTE").kind is ValueKind.ABSENT
        assert source.advance()
        assert not source.advance()

    def test_reset_before_advance_allowed(self, user_cursor):
        """Test that a fresh cursor may be reset."""
        source = QueryCursorSource(user_cursor)
        source.reset()
        assert len(texts(source)) == 3

    def test_reset_after_advance_raises(self, user_cursor):
        """Test that a consumed cursor cannot be rewound."""
        source = QueryCursorSource(user_cursor)
        source.advance()
        with pytest.raises(SourceStateError):
            source.reset()

    def test_close_is_idempotent(self, user_cursor):
        """Test closing twice releases the cursor once."""
        closed = []

        class TrackingCursor:
            description = user_cursor.description

            def fetchone(self):
                return user_cursor.fetchone()

            def close(self):
                closed.append(True)

        source = QueryCursorSource(TrackingCursor())
        source.close()
        source.close()
        assert closed == [True]

    def test_borrowed_cursor_not_closed(self, user_cursor):
        """Test that a borrowed cursor stays open."""
        source = QueryCursorSource(user_cursor, owns_cursor=False)
        source.close()
        assert user_cursor.fetchone() is not None


class TestBufferedSource:
    """Tests for the in-memory source."""

    def test_restartable(self, buffered_source):
        """Test that rows can be read more than once."""
        first = texts(buffered_source)
        second = texts(buffered_source)
        assert first == second == [["Alice", "30"], ["Bob", ""], ["Charlie", "35"]]

    def test_from_cursor_closes_cursor(self, connection):
        """Test draining a cursor into memory."""
        cursor = connection.execute("SELECT name, age FROM users ORDER BY rowid")
        source = BufferedSource.from_cursor(cursor)
        assert source.columns() == ["NAME", "AGE"]
        assert source.row_count == 3
        with pytest.raises(Exception):
            cursor.fetchone()

    def test_value_before_advance_is_absent(self, buffered_source):
        """Test that no current row reads as ABSENT."""
        assert buffered_source.value_of("NAME").kind is ValueKind.ABSENT

    def test_lookup_falls_back_to_upper_case(self, buffered_source):
        """Test that lower-case lookups find upper-cased columns."""
        buffered_source.advance()
        assert buffered_source.value_of("name").text == "Alice"


class TestMappingListSource:
    """Tests for the mapping-list source."""

    def test_columns_from_first_row(self, mapping_source):
        """Test that the first row's keys define the columns."""
        assert mapping_source.columns() == ["name", "city"]

    def test_missing_key_is_absent(self):
        """Test that keys missing from later rows read as ABSENT."""
        source = MappingListSource([{"a": 1, "b": 2}, {"a": 3}])
        assert texts(source) == [["1", "2"], ["3", ""]]

    def test_empty_list(self):
        """Test that an empty list has no columns and no rows."""
        source = MappingListSource([])
        assert source.columns() == []
        assert not source.advance()


class TestAsSource:
    """Tests for source adaptation."""

    def test_existing_source_returned(self, buffered_source):
        """Test that sources pass through unchanged."""
        assert as_source(buffered_source) is buffered_source

    def test_cursor(self, user_cursor):
        """Test that DB-API cursors become QueryCursorSource."""
        assert isinstance(as_source(user_cursor), QueryCursorSource)

    def test_single_mapping(self):
        """Test that one mapping becomes a one-row source."""
        source = as_source({"x": 1})
        assert texts(source) == [["1"]]

    def test_list_of_mappings(self, sample_rows):
        """Test that a list of mappings becomes MappingListSource."""
        assert isinstance(as_source(sample_rows), MappingListSource)

    @pytest.mark.parametrize("obj", ["text", 42, [1, 2]])
    def test_unsupported(self, obj):
        """Test that unknown objects are rejected."""
        with pytest.raises(UnsupportedSourceError):
            as_source(obj)


class TestOpenSource:
    """Tests for the release-on-exit context manager."""

    def test_closes_on_error(self, user_cursor):
        """Test that the cursor is released when the block raises."""
        source = QueryCursorSource(user_cursor)
        with pytest.raises(RuntimeError):
            with open_source(source):
                source.advance()
                raise RuntimeError("boom")
        with pytest.raises(Exception):
            user_cursor.fetchone()
