"""
Data models for tabular-exchange.

Contains Pydantic models for value classification, decode intermediates,
and request/response validation.
"""

from tabular_exchange.models.tabular_models import (
    CellType,
    ClassifiedValue,
    DecodeStage,
    EncodeResult,
    ErrorResponse,
    ExportFormat,
    ExportRequest,
    GridRequest,
    ParseResponse,
    ReportRequest,
    RssItem,
    RssRequest,
    SheetCell,
    SheetGrid,
    ValueKind,
)

__all__ = [
    "ValueKind",
    "ClassifiedValue",
    "CellType",
    "SheetCell",
    "SheetGrid",
    "DecodeStage",
    "ExportFormat",
    "EncodeResult",
    "RssItem",
    "ParseResponse",
    "ExportRequest",
    "ReportRequest",
    "GridRequest",
    "RssRequest",
    "ErrorResponse",
]
