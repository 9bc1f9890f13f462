"""
Tests for ExchangeService.
"""

import io

import pytest

from tabular_exchange.config import Settings
from tabular_exchange.exceptions.exchange_exceptions import (
    InputFileNotFoundError,
    UnsupportedFormatError,
    UnsupportedSourceError,
    WriteError,
)
from tabular_exchange.models.tabular_models import ExportFormat, RssItem
from tabular_exchange.services.exchange_service import (
    ExchangeService,
    download_headers,
    resolve_format,
)


class TestResolveFormat:
    """Tests for export format names."""

    @pytest.mark.parametrize("name", ["xls", "XLSX", ".csv", "Tsv"])
    def test_known_formats(self, name):
        """Test case-insensitive format resolution."""
        assert resolve_format(name).value == name.lower().lstrip(".")

    def test_unknown_format(self):
        """Test that unknown names raise UnsupportedFormatError."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            resolve_format("pdf")
        assert "xlsx" in exc_info.value.supported


class TestDownloadHeaders:
    """Tests for download response headers."""

    def test_ascii_name(self):
        """Test the header set for a plain file name."""
        headers = download_headers("users.xlsx")
        assert headers == {
            "Content-Type": "application/octet-stream",
            "Content-Disposition": 'attachment; filename="users.xlsx"',
            "Pragma": "no-cache",
            "Expires": "-1",
        }

    def test_non_ascii_name(self):
        """Test that non-ASCII names are re-read as latin-1."""
        headers = download_headers("보고서.csv")
        name = headers["Content-Disposition"].split('"')[1]
        assert name.encode("latin-1").decode("utf-8") == "보고서.csv"


class TestParse:
    """Tests for extension-dispatched parsing."""

    def test_csv(self, exchange_service):
        """Test that .csv dispatches to the comma parser."""
        rows = exchange_service.parse("data.csv", b"a,b\nc,d")
        assert rows == [{"0": "a", "1": "b"}, {"0": "c", "1": "d"}]

    def test_tsv_upper_case_extension(self, exchange_service):
        """Test that extensions are matched case-insensitively."""
        rows = exchange_service.parse("DATA.TSV", b"a\tb")
        assert rows == [{"0": "a", "1": "b"}]

    def test_xls_and_xlsx(self, exchange_service, sample_rows):
        """Test that workbook extensions dispatch to their codecs."""
        for fmt in ("xls", "xlsx"):
            content = exchange_service.encode(sample_rows, fmt).content
            rows = exchange_service.parse(f"users.{fmt}", content)
            assert rows[2] == {"0": "Charlie", "1": "Incheon"}

    def test_unsupported_extension(self, exchange_service):
        """Test that unknown extensions are rejected."""
        with pytest.raises(UnsupportedFormatError):
            exchange_service.parse("notes.txt", b"hello")

    def test_password_for_text_format(self, exchange_service):
        """Test that passwords are rejected for csv/tsv."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            exchange_service.parse("data.csv", b"a,b", password="secret")
        assert exc_info.value.reason is not None

    def test_parse_file(self, exchange_service, temp_dir):
        """Test parsing a file on disk."""
        path = temp_dir / "data.csv"
        path.write_bytes(b"x,y\n")
        assert exchange_service.parse_file(path) == [{"0": "x", "1": "y"}]

    def test_parse_missing_file(self, exchange_service, temp_dir):
        """Test that a missing file raises InputFileNotFoundError."""
        with pytest.raises(InputFileNotFoundError) as exc_info:
            exchange_service.parse_file(temp_dir / "missing.xlsx")
        assert exc_info.value.error_code == "FILE_NOT_FOUND"

    def test_parse_upload_response(self, exchange_service):
        """Test the ParseResponse wrapper."""
        response = exchange_service.parse_upload("data.csv", b"a\nb\nc")
        assert response.success is True
        assert response.file_name == "data.csv"
        assert response.row_count == 3
        assert response.processing_time_ms >= 0


class TestExport:
    """Tests for encoding and exporting sources."""

    def test_encode_csv(self, exchange_service, user_cursor):
        """Test encoding a query cursor as CSV bytes."""
        result = exchange_service.encode(user_cursor, "csv")
        assert result.format is ExportFormat.CSV
        assert result.rows_written == 3
        assert result.content == b'Alice,30,team lead\nBob,25,\nCharlie,35,"on leave, back soon"'

    def test_encode_tsv(self, exchange_service, sample_rows):
        """Test encoding mappings as TSV."""
        result = exchange_service.encode(sample_rows, ExportFormat.TSV)
        assert result.content.decode("utf-8").split("\n")[0] == "Alice\tSeoul"

    def test_encode_unsupported_source(self, exchange_service):
        """Test that unsupported sources are rejected."""
        with pytest.raises(UnsupportedSourceError):
            exchange_service.encode("not rows", "csv")

    def test_export_to_path(self, exchange_service, sample_rows, temp_dir):
        """Test exporting a workbook to disk."""
        path = temp_dir / "export" / "users.xlsx"
        assert exchange_service.export(sample_rows, "xlsx", path) == 3
        assert len(exchange_service.parse_file(path)) == 3

    def test_export_csv_to_stream(self, exchange_service, sample_rows):
        """Test exporting CSV to a binary stream."""
        buffer = io.BytesIO()
        assert exchange_service.export(sample_rows, "csv", buffer) == 3
        assert buffer.getvalue().startswith(b"Alice,Seoul")

    def test_export_no_overwrite(self, exchange_service, sample_rows, temp_dir):
        """Test that an existing file is kept when overwrite is False."""
        path = temp_dir / "users.xls"
        path.write_bytes(b"old")
        with pytest.raises(WriteError):
            exchange_service.export(sample_rows, "xls", path, overwrite=False)
        assert path.read_bytes() == b"old"

    def test_sheet_name_from_settings(self, sample_rows):
        """Test that the sheet name comes from settings."""
        import openpyxl

        service = ExchangeService(settings=Settings(_env_file=None, sheet_name="Users"))
        content = service.encode(sample_rows, "xlsx").content
        workbook = openpyxl.load_workbook(io.BytesIO(content))
        assert workbook.sheetnames == ["Users"]
        workbook.close()

    def test_render_delimited(self, exchange_service, sample_rows):
        """Test rendering text formats only."""
        assert exchange_service.render_delimited(sample_rows, "csv").startswith("Alice,Seoul")
        assert exchange_service.render_delimited(None, "tsv") is None
        with pytest.raises(UnsupportedFormatError):
            exchange_service.render_delimited(sample_rows, "xls")


class TestRender:
    """Tests for renderer defaults from settings."""

    def test_report_defaults(self, exchange_service, sample_rows):
        """Test the default report separators."""
        text = exchange_service.render_report(sample_rows)
        assert text.split("\n")[0] == "Alice##Seoul##"

    def test_report_separators_from_settings(self, sample_rows):
        """Test separators configured through settings."""
        service = ExchangeService(
            settings=Settings(_env_file=None, report_column_separator="|", report_line_separator=";")
        )
        assert service.render_report(sample_rows) == "Alice|Seoul|;Bob|Busan|;Charlie|Incheon|"

    def test_report_empty_separator_kept(self, sample_rows):
        """Test that an explicit empty separator is not replaced by settings."""
        service = ExchangeService(settings=Settings(_env_file=None, report_column_separator="|"))
        text = service.render_report(sample_rows, column_separator="")
        assert text == "AliceSeoul\nBobBusan\nCharlieIncheon"

    def test_report_mappings_with_differing_keys(self, exchange_service):
        """Test that mappings with different keys each keep their own values."""
        text = exchange_service.render_report([{"a": 1, "b": 2}, {"c": 3}])
        assert text == "1##2##\n3##"

    def test_grid_mappings_with_differing_keys(self, exchange_service):
        """Test that grid cells follow each mapping's own keys."""
        text = exchange_service.render_grid(
            [{"a": 1, "b": 2}, {"c": 3}], total_count=2, current_page=1, rows_per_page=10
        )
        assert '{"id":2,"cell":["3"]}' in text

    def test_grid(self, exchange_service, sample_rows):
        """Test grid rendering through the service."""
        text = exchange_service.render_grid(sample_rows, total_count=3, current_page=1, rows_per_page=2)
        assert text.endswith('"total":2,"page":1,"records":3}')

    def test_feed_language_from_settings(self):
        """Test that the channel language comes from settings."""
        service = ExchangeService(settings=Settings(_env_file=None, rss_language="en"))
        text = service.render_feed([RssItem(title="a")], title="t", link="l", description="d")
        assert "<language>en</language>" in text

    def test_feed_from_mappings(self, exchange_service):
        """Test feed items built from mappings with item columns."""
        text = exchange_service.render_feed(
            [{"TITLE": "Hello", "LINK": "https://example.com"}],
            title="t",
            link="l",
            description="d",
        )
        assert "<guid>https://example.com</guid>" in text

    def test_none_inputs(self, exchange_service):
        """Test that None renders as None."""
        assert exchange_service.render_report(None) is None
        assert exchange_service.render_grid(None, 0, 1, 1) is None
        assert exchange_service.render_feed(None, title="t", link="l", description="d") is None
