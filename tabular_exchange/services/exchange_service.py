"""
Core exchange service layer.

This module provides the ExchangeService class, the single entry point
used by the HTTP transport and by library callers. It dispatches parse
requests on the file extension and export requests on the target format,
adapts raw inputs to tabular sources and fills renderer defaults from the
application settings.

Example:
    service = ExchangeService()

    # Parse an uploaded workbook
    rows = service.parse("report.xlsx", data, password="secret")

    # Export query results
    cursor = connection.execute("SELECT name, age FROM users")
    service.export(cursor, "xls", "/tmp/users.xls")

    # Render a grid page
    text = service.render_grid(rows, total_count=120, current_page=2, rows_per_page=20)
"""

import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, BinaryIO

from tabular_exchange.adapters.delimited_adapter import DelimitedAdapter
from tabular_exchange.adapters.output_sink import Sink, write_bytes
from tabular_exchange.adapters.xls_adapter import XlsAdapter
from tabular_exchange.adapters.xlsx_adapter import XlsxAdapter
from tabular_exchange.config import Settings, get_settings
from tabular_exchange.exceptions.exchange_exceptions import (
    InputFileNotFoundError,
    ReadError,
    UnsupportedFormatError,
)
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import (
    EncodeResult,
    ExportFormat,
    ParseResponse,
    RssItem,
)
from tabular_exchange.renderers import feed, grid, report
from tabular_exchange.sources import as_source

logger = get_logger(__name__)

PARSE_EXTENSIONS = [".csv", ".tsv", ".xls", ".xlsx"]
PASSWORD_EXTENSIONS = [".xls", ".xlsx"]


def resolve_format(fmt: str | ExportFormat) -> ExportFormat:
    """
    Resolve an export format name, case-insensitively.

    Raises:
        UnsupportedFormatError: If the name is not a known format.
    """
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).lower().lstrip("."))
    except ValueError as e:
        raise UnsupportedFormatError(
            requested=str(fmt),
            supported=[member.value for member in ExportFormat],
        ) from e


def download_headers(file_name: str) -> dict[str, str]:
    """
    HTTP headers for delivering an export as a file download.

    The file name's UTF-8 bytes are re-read as ISO-8859-1 so non-ASCII
    names survive a latin-1 header encoding.
    """
    header_name = file_name.encode("utf-8").decode("latin-1")
    return {
        "Content-Type": "application/octet-stream",
        "Content-Disposition": f'attachment; filename="{header_name}"',
        "Pragma": "no-cache",
        "Expires": "-1",
    }


def is_mapping_rows(obj: Any) -> bool:
    """Whether ``obj`` is one mapping or a list of mappings."""
    if isinstance(obj, Mapping):
        return True
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)):
        return all(isinstance(row, Mapping) for row in obj)
    return False


class ExchangeService:
    """
    Core service layer for tabular exchange operations.

    The service holds no per-call state: every parse and render builds its
    own workbook, context and buffers, so one instance can serve
    concurrent requests.

    Attributes:
        settings: Settings supplying encodings, sheet names and renderer defaults.
        xls_adapter: Legacy binary workbook codec.
        xlsx_adapter: Zip/XML workbook codec.
        delimited_adapter: CSV/TSV codec.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        xls_adapter: XlsAdapter | None = None,
        xlsx_adapter: XlsxAdapter | None = None,
        delimited_adapter: DelimitedAdapter | None = None,
    ) -> None:
        """
        Initialize the ExchangeService.

        Args:
            settings: Optional settings. Defaults to ``get_settings()``.
            xls_adapter: Optional XlsAdapter instance.
            xlsx_adapter: Optional XlsxAdapter instance.
            delimited_adapter: Optional DelimitedAdapter instance.
        """
        self.settings = settings or get_settings()
        self.xls_adapter = xls_adapter or XlsAdapter()
        self.xlsx_adapter = xlsx_adapter or XlsxAdapter()
        self.delimited_adapter = delimited_adapter or DelimitedAdapter()

    # ==================== PARSE OPERATIONS ====================

    def parse(
        self,
        file_name: str,
        data: bytes | BinaryIO,
        password: str | None = None,
    ) -> list[dict[str, str]]:
        """
        Parse an uploaded file, dispatching on its extension.

        Args:
            file_name: Original file name; only its extension is used.
            data: File bytes or a readable binary stream.
            password: Password for an encrypted xls/xlsx workbook.

        Returns:
            Rows mapping column positions ("0", "1", ...) to text.

        Raises:
            UnsupportedFormatError: For an unknown extension, or a password
                given for a format without encryption.
            DecodeError: If the content cannot be decoded.
        """
        extension = Path(file_name).suffix.lower()
        if extension not in PARSE_EXTENSIONS:
            raise UnsupportedFormatError(requested=extension, supported=PARSE_EXTENSIONS)
        if password is not None and extension not in PASSWORD_EXTENSIONS:
            raise UnsupportedFormatError(
                requested=extension,
                supported=PASSWORD_EXTENSIONS,
                reason="password protection is only available for workbooks",
            )

        logger.debug("Parsing %s as %s", file_name, extension)
        if extension == ".xls":
            return self.xls_adapter.decode(data, password=password)
        if extension == ".xlsx":
            return self.xlsx_adapter.decode(data, password=password)
        return self.delimited_adapter.parse(
            data,
            separator=DelimitedAdapter.separator_for(extension),
            encoding=self.settings.text_encoding,
        )

    def parse_file(self, file_path: str | Path, password: str | None = None) -> list[dict[str, str]]:
        """
        Parse a file on disk.

        Raises:
            InputFileNotFoundError: If the file does not exist.
            ReadError: If the file cannot be read.
        """
        path = Path(file_path)
        if not path.is_file():
            raise InputFileNotFoundError(str(path))
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ReadError(target=str(path), reason=str(e)) from e
        return self.parse(path.name, data, password=password)

    def parse_upload(
        self,
        file_name: str,
        data: bytes | BinaryIO,
        password: str | None = None,
    ) -> ParseResponse:
        """Parse an upload and wrap the rows in a ParseResponse."""
        start_time = time.time()
        rows = self.parse(file_name, data, password=password)
        processing_time = (time.time() - start_time) * 1000
        return ParseResponse(
            file_name=file_name,
            row_count=len(rows),
            rows=rows,
            processing_time_ms=round(processing_time, 2),
        )

    # ==================== EXPORT OPERATIONS ====================

    def encode(self, source: Any, fmt: str | ExportFormat) -> EncodeResult:
        """
        Encode ``source`` into the bytes of ``fmt``.

        Args:
            source: A TabularSource, DB-API cursor, mapping or list of mappings.
            fmt: Target format name ("xls", "xlsx", "csv", "tsv").

        Returns:
            EncodeResult with the encoded content and the row count.
        """
        export_format = resolve_format(fmt)
        tabular = as_source(source)
        if export_format is ExportFormat.XLS:
            return self.xls_adapter.encode(tabular, sheet_name=self.settings.sheet_name)
        if export_format is ExportFormat.XLSX:
            return self.xlsx_adapter.encode(tabular, sheet_name=self.settings.sheet_name)

        separator = DelimitedAdapter.separator_for("." + export_format.value)
        text, row_count = self.delimited_adapter.render_rows(tabular, separator)
        return EncodeResult(
            format=export_format,
            content=text.encode(self.settings.text_encoding),
            rows_written=row_count,
        )

    def export(self, source: Any, fmt: str | ExportFormat, sink: Sink, overwrite: bool = True) -> int:
        """
        Encode ``source`` and write it to a path or stream.

        The full output is built before anything reaches the sink.

        Returns:
            Number of rows written.
        """
        export_format = resolve_format(fmt)
        if export_format in (ExportFormat.CSV, ExportFormat.TSV):
            separator = DelimitedAdapter.separator_for("." + export_format.value)
            return self.delimited_adapter.write(
                as_source(source),
                sink,
                separator=separator,
                encoding=self.settings.text_encoding,
                overwrite=overwrite,
            )
        result = self.encode(source, export_format)
        write_bytes(result.content, sink, overwrite=overwrite)
        logger.info("Exported %d rows as %s", result.rows_written, export_format.value)
        return result.rows_written

    def render_delimited(self, source: Any, fmt: str | ExportFormat) -> str | None:
        """Render ``source`` as CSV or TSV text; None in, None out."""
        export_format = resolve_format(fmt)
        if export_format not in (ExportFormat.CSV, ExportFormat.TSV):
            raise UnsupportedFormatError(
                requested=export_format.value,
                supported=[ExportFormat.CSV.value, ExportFormat.TSV.value],
                reason="not a text format",
            )
        if source is None:
            return None
        separator = DelimitedAdapter.separator_for("." + export_format.value)
        return self.delimited_adapter.render(as_source(source), separator)

    # ==================== RENDER OPERATIONS ====================

    def render_report(
        self,
        source: Any,
        column_separator: str | None = None,
        line_separator: str | None = None,
    ) -> str | None:
        """
        Render report-designer text, defaulting separators from settings.

        Only a None separator takes the configured default; an empty string
        is used as given. Mappings are rendered each in its own key order.
        """
        if source is None:
            return None
        if column_separator is None:
            column_separator = self.settings.report_column_separator
        if line_separator is None:
            line_separator = self.settings.report_line_separator
        if is_mapping_rows(source):
            return report.render_report_mappings(
                source, column_separator=column_separator, line_separator=line_separator
            )
        return report.render_report(
            as_source(source),
            column_separator=column_separator,
            line_separator=line_separator,
        )

    def render_grid(
        self,
        source: Any,
        total_count: int,
        current_page: int,
        rows_per_page: int,
        col_names: Sequence[str] | None = None,
    ) -> str | None:
        """
        Render one grid JSON page.

        Without ``col_names``, mappings are rendered each in its own key order.
        """
        if source is None:
            return None
        if col_names is None and is_mapping_rows(source):
            return grid.render_grid_mappings(
                source,
                total_count=total_count,
                current_page=current_page,
                rows_per_page=rows_per_page,
            )
        return grid.render_grid(
            as_source(source),
            total_count=total_count,
            current_page=current_page,
            rows_per_page=rows_per_page,
            col_names=col_names,
        )

    def render_feed(
        self,
        items: Sequence[RssItem] | Any,
        title: str,
        link: str,
        description: str,
        encoding: str = "utf-8",
        web_master: str | None = None,
    ) -> str | None:
        """
        Render an RSS feed from RssItem objects or from a source with item columns.

        Language and description newline handling come from settings.
        """
        if items is None:
            return None
        if not (isinstance(items, Sequence) and all(isinstance(item, RssItem) for item in items)):
            items = as_source(items)
        return feed.render_feed(
            items,
            encoding=encoding,
            title=title,
            link=link,
            description=description,
            web_master=web_master,
            language=self.settings.rss_language,
            strip_description_newlines=self.settings.rss_strip_description_newlines,
        )
