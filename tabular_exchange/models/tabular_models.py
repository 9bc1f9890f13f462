"""
Pydantic models for tabular-exchange operations.

This module contains the value classification types shared by every
renderer, the decode-time workbook intermediates, and the request/response
bodies used by the HTTP transport.

All models use Pydantic v2 for validation, serialization, and
JSON Schema generation for OpenAPI documentation.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ValueKind(str, Enum):
    """Classification of a raw source value."""

    ABSENT = "absent"
    NUMERIC = "numeric"
    TEXT = "text"


class ClassifiedValue(BaseModel):
    """
    A source value after classification.

    ``text`` is the value's default string form; it is empty for ABSENT.
    """

    model_config = ConfigDict(frozen=True)

    kind: ValueKind
    text: str = ""


class CellType(str, Enum):
    """
    Type tag of a decoded spreadsheet cell.

    FORMULA and ERROR are terminal on decode.
    """

    EMPTY = "empty"
    NUMERIC = "numeric"
    TEXT = "text"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    ERROR = "error"


class SheetCell(BaseModel):
    """A single decoded cell: its type tag and raw value."""

    model_config = ConfigDict(frozen=True)

    cell_type: CellType = CellType.EMPTY
    value: Any = None


class SheetGrid(BaseModel):
    """
    Decode-time sheet: an ordered sequence of rows of cells.

    Row ``i`` holds the cells of spreadsheet row ``i`` indexed by 0-based
    column position.
    """

    name: str = ""
    rows: list[list[SheetCell]] = Field(default_factory=list)


class DecodeStage(str, Enum):
    """Stages of the container decode state machine."""

    START = "Start"
    CONTAINER_OPENED = "ContainerOpened"
    KEY_DERIVED = "KeyDerived"
    PASSWORD_VERIFIED = "PasswordVerified"
    PAYLOAD_DECRYPTED = "PayloadDecrypted"
    WORKBOOK_PARSED = "WorkbookParsed"
    SHEET_SELECTED = "SheetSelected"
    ROWS_MATERIALIZED = "RowsMaterialized"
    DONE = "Done"


class ExportFormat(str, Enum):
    """Export formats, keyed by their file extension."""

    XLS = "xls"
    XLSX = "xlsx"
    CSV = "csv"
    TSV = "tsv"


class EncodeResult(BaseModel):
    """
    Result of encoding a source into a container or text format.

    Attributes:
        format: The format that was produced.
        content: Encoded bytes.
        rows_written: Number of source rows written.
    """

    format: ExportFormat
    content: bytes = b""
    rows_written: int = Field(default=0, ge=0)


class RssItem(BaseModel):
    """
    A single RSS feed item.

    ``link`` and ``author`` are emitted as raw text; callers must
    ampersand-encode them beforehand.
    """

    title: str | None = None
    link: str | None = None
    description: str | None = None
    author: str | None = None
    category: str | None = None
    pub_date: datetime | None = None


class ParseResponse(BaseModel):
    """
    Response model for parse operations.

    Attributes:
        file_name: Name of the parsed upload.
        row_count: Number of rows decoded.
        rows: Rows keyed by 0-based column position ("0", "1", ...).
        processing_time_ms: Time taken to decode in milliseconds.
    """

    success: bool = Field(default=True)
    file_name: str
    row_count: int = Field(ge=0)
    rows: list[dict[str, str]] = Field(default_factory=list)
    processing_time_ms: float = Field(default=0.0, ge=0)


class ExportRequest(BaseModel):
    """
    Request model for exporting in-memory rows.

    Attributes:
        rows: Ordered rows; the first row's keys define the columns.
        file_name: Download file name. Defaults to ``export.<format>``.
    """

    rows: list[dict[str, Any]] = Field(default_factory=list)
    file_name: str | None = Field(default=None)


class ReportRequest(BaseModel):
    """Request model for report-designer text."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    column_separator: str | None = None
    line_separator: str | None = None


class GridRequest(BaseModel):
    """
    Request model for one grid-widget page.

    Attributes:
        rows: Rows on the current page, each emitted in its own key order
            unless col_names is given.
        total_count: Total number of records across all pages.
        current_page: Page number being rendered.
        rows_per_page: Page size; 0 is treated as 1.
        col_names: Optional explicit column order.
    """

    rows: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    current_page: int = Field(default=1, ge=0)
    rows_per_page: int = Field(default=0, ge=0)
    col_names: list[str] | None = None


class RssRequest(BaseModel):
    """Request model for an RSS feed."""

    items: list[RssItem] = Field(default_factory=list)
    encoding: str = "utf-8"
    title: str
    link: str
    description: str
    web_master: str | None = None


class ErrorResponse(BaseModel):
    """
    Standard error response model for the API.

    Attributes:
        success: Always False for error responses.
        error_code: Machine-readable error code.
        message: Human-readable error description.
        details: Additional error context.
    """

    success: bool = Field(default=False)
    error_code: str
    message: str
    details: dict | None = None
