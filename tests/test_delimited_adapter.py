"""
Tests for the CSV/TSV adapter.
"""

import io

import pytest

from tabular_exchange.adapters.delimited_adapter import COMMA, TAB, DelimitedAdapter, split_fields
from tabular_exchange.exceptions.exchange_exceptions import ReadError
from tabular_exchange.sources import BufferedSource, MappingListSource


class TestSplitFields:
    """Tests for literal separator splitting."""

    def test_no_separator_is_one_field(self):
        """Test that a line without the separator is a single field."""
        assert split_fields("hello", ",") == ["hello"]
        assert split_fields("", ",") == [""]

    def test_trailing_empty_fields_dropped(self):
        """Test that trailing empty fields are removed."""
        assert split_fields("a,,", ",") == ["a"]
        assert split_fields("a,b,", ",") == ["a", "b"]

    def test_inner_empty_fields_kept(self):
        """Test that empty fields between values stay."""
        assert split_fields("a,,b", ",") == ["a", "", "b"]
        assert split_fields(",a", ",") == ["", "a"]

    def test_quotes_not_special(self):
        """Test that quoted separators still split."""
        assert split_fields('"a,b",c', ",") == ['"a', 'b"', "c"]


class TestDelimitedParse:
    """Tests for parsing delimited text."""

    def test_parse_csv(self, delimited_adapter):
        """Test position-keyed rows from CSV."""
        rows = delimited_adapter.parse(b"name,age\nAlice,30\n")
        assert rows == [{"0": "name", "1": "age"}, {"0": "Alice", "1": "30"}]

    def test_parse_tsv_stream(self, delimited_adapter):
        """Test parsing TSV from a stream."""
        rows = delimited_adapter.parse(io.BytesIO(b"a\tb\r\nc\td"), separator=TAB)
        assert rows == [{"0": "a", "1": "b"}, {"0": "c", "1": "d"}]

    def test_mixed_line_endings(self, delimited_adapter):
        """Test that CR, LF and CRLF all end a line."""
        rows = delimited_adapter.parse(b"a\rb\nc\r\nd")
        assert [row["0"] for row in rows] == ["a", "b", "c", "d"]

    def test_ragged_rows(self, delimited_adapter):
        """Test that rows keep their own field counts."""
        rows = delimited_adapter.parse(b"a,b,c\nd\n")
        assert rows[1] == {"0": "d"}

    def test_empty_input(self, delimited_adapter):
        """Test that empty input yields no rows."""
        assert delimited_adapter.parse(b"") == []

    def test_undecodable_bytes(self, delimited_adapter):
        """Test that invalid text raises ReadError."""
        with pytest.raises(ReadError):
            delimited_adapter.parse(b"\xff\xfe\xfa,x", encoding="utf-8")

    def test_separator_for_extension(self):
        """Test extension to separator mapping."""
        assert DelimitedAdapter.separator_for(".CSV") == COMMA
        assert DelimitedAdapter.separator_for(".tsv") == TAB


class TestDelimitedRender:
    """Tests for rendering delimited text."""

    def test_render_source(self, delimited_adapter, buffered_source):
        """Test that rows are joined without a trailing newline."""
        assert delimited_adapter.render(buffered_source) == "Alice,30\nBob,\nCharlie,35"

    def test_render_none(self, delimited_adapter):
        """Test that no source renders as None."""
        assert delimited_adapter.render(None) is None

    def test_render_quotes_text(self, delimited_adapter):
        """Test quoting of text holding the separator or a newline."""
        source = BufferedSource(["A", "B"], [("x,y", "line\nbreak")])
        assert delimited_adapter.render(source) == '"x,y","line\nbreak"'

    def test_render_tab(self, delimited_adapter, mapping_source):
        """Test rendering with the tab separator."""
        text = delimited_adapter.render(mapping_source, TAB)
        assert text.splitlines()[0] == "Alice\tSeoul"

    def test_render_rows_counts(self, delimited_adapter, mapping_source):
        """Test that render_rows reports the row count."""
        text, count = delimited_adapter.render_rows(mapping_source, COMMA)
        assert count == 3
        assert text.count("\n") == 2

    def test_render_mappings(self, delimited_adapter):
        """Test that each mapping uses its own key order."""
        rows = [{"a": 1, "b": None}, {"b": "x", "a": 2}]
        assert delimited_adapter.render_mappings(rows) == "1,\nx,2"
        assert delimited_adapter.render_mappings({"k": "v"}) == "v"
        assert delimited_adapter.render_mappings(None) is None


class TestDelimitedWrite:
    """Tests for writing delimited text."""

    def test_write_to_path(self, delimited_adapter, mapping_source, temp_dir):
        """Test writing to a file path."""
        path = temp_dir / "users.csv"
        assert delimited_adapter.write(mapping_source, path) == 3
        assert path.read_bytes() == b"Alice,Seoul\nBob,Busan\nCharlie,Incheon"

    def test_write_to_text_stream(self, delimited_adapter, mapping_source):
        """Test writing to a text stream."""
        buffer = io.StringIO()
        delimited_adapter.write(mapping_source, buffer)
        assert buffer.getvalue().startswith("Alice,Seoul")

    def test_write_encoding(self, delimited_adapter):
        """Test that the encoding applies to binary sinks."""
        buffer = io.BytesIO()
        delimited_adapter.write(MappingListSource([{"n": "서울"}]), buffer, encoding="utf-16")
        assert buffer.getvalue().decode("utf-16") == "서울"

    def test_write_none(self, delimited_adapter, temp_dir):
        """Test that no source writes nothing."""
        path = temp_dir / "none.csv"
        assert delimited_adapter.write(None, path) == 0
        assert not path.exists()

    def test_round_trip(self, delimited_adapter, buffered_source):
        """Test that rendered text parses back to the same fields."""
        text = delimited_adapter.render(buffered_source)
        rows = delimited_adapter.parse(text.encode("utf-8"))
        assert rows == [{"0": "Alice", "1": "30"}, {"0": "Bob"}, {"0": "Charlie", "1": "35"}]
