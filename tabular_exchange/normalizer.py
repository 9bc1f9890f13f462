"""
Cell type normalization shared by every renderer and codec.

``classify()`` is the single policy for turning a raw source value into
ABSENT, NUMERIC or TEXT. The escaping helpers below implement the
per-format rendering of those classes, and ``materialize_rows()`` turns a
decoded sheet into position-keyed text rows for both workbook codecs.

Escaping table:
    - Delimited text: TEXT containing the separator or a newline is wrapped
      in double quotes as-is (no quote doubling). NUMERIC is never quoted.
    - Report-designer text: ``\\r\\n`` and ``\\n`` become the two
      characters ``\\n``; nothing is quoted.
    - Grid JSON: every value is a JSON string; backslash, double quote and
      line breaks are escaped, nothing else.
    - RSS: markup-bearing fields are wrapped in CDATA verbatim.
"""

import math
import numbers
from decimal import Decimal
from typing import Any

from tabular_exchange.exceptions.exchange_exceptions import UnsupportedCellContentError
from tabular_exchange.models.tabular_models import (
    CellType,
    ClassifiedValue,
    DecodeStage,
    SheetCell,
    SheetGrid,
    ValueKind,
)

ABSENT = ClassifiedValue(kind=ValueKind.ABSENT, text="")

# Integers up to this magnitude are exactly representable as floats
MAX_EXACT_INTEGER = 2**53


def is_numeric(value: Any) -> bool:
    """Whether ``value`` is a numeric kind (bool and complex excluded)."""
    if isinstance(value, (bool, complex)):
        return False
    return isinstance(value, numbers.Number)


def classify(value: Any) -> ClassifiedValue:
    """
    Classify a raw value as ABSENT, NUMERIC or TEXT.

    NUMERIC and TEXT carry the value's default string form.

    Args:
        value: Any source value.

    Returns:
        The classified value.
    """
    if value is None:
        return ABSENT
    if is_numeric(value):
        return ClassifiedValue(kind=ValueKind.NUMERIC, text=str(value))
    return ClassifiedValue(kind=ValueKind.TEXT, text=str(value))


def canonical_number_text(number: float) -> str:
    """
    Canonical decimal text for a stored spreadsheet number.

    Integral values print without a fractional part (``30.0`` -> ``"30"``);
    others use the shortest round-tripping digits in plain decimal
    notation, never an exponent.
    """
    number = float(number)
    if not math.isfinite(number):
        return str(number)
    if number.is_integer() and abs(number) <= MAX_EXACT_INTEGER:
        return str(int(number))
    text = format(Decimal(repr(number)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def escape_delimited(text: str | None, separator: str) -> str:
    """Quote ``text`` when it contains the separator or a newline."""
    if text is None:
        return ""
    if separator in text or "\n" in text:
        return '"' + text + '"'
    return text


def render_delimited_value(value: ClassifiedValue, separator: str) -> str:
    if value.kind is ValueKind.ABSENT:
        return ""
    if value.kind is ValueKind.NUMERIC:
        return value.text
    if value.kind is ValueKind.TEXT:
        return escape_delimited(value.text, separator)
    raise ValueError(f"Unhandled value kind: {value.kind}")


def escape_report(text: str | None) -> str:
    if text is None:
        return ""
    return text.replace("\r\n", "\\n").replace("\n", "\\n")


def escape_grid_json(text: str | None) -> str:
    """Escape backslash, double quote and line breaks for a JSON string."""
    if text is None:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def cdata(text: str) -> str:
    return "<![CDATA[" + text + "]]>"


def cell_text(cell: SheetCell, row: int, column: int) -> str:
    """
    Text form of a decoded cell.

    Raises:
        UnsupportedCellContentError: For FORMULA and ERROR cells.
    """
    cell_type = cell.cell_type
    if cell_type is CellType.FORMULA:
        raise UnsupportedCellContentError(
            row, column, "formula", stage=DecodeStage.ROWS_MATERIALIZED.value
        )
    if cell_type is CellType.ERROR:
        raise UnsupportedCellContentError(
            row, column, "error", stage=DecodeStage.ROWS_MATERIALIZED.value
        )
    if cell_type is CellType.NUMERIC:
        return canonical_number_text(float(cell.value))
    if cell_type is CellType.TEXT:
        return "" if cell.value is None else str(cell.value)
    if cell_type is CellType.EMPTY:
        return ""
    if cell_type is CellType.BOOLEAN:
        # Boolean cells carry no text value in the legacy parser
        return ""
    raise ValueError(f"Unhandled cell type: {cell_type}")


def materialize_rows(grid: SheetGrid) -> list[dict[str, str]]:
    """
    Convert a decoded sheet into rows keyed by column position.

    The whole sheet is checked for formula and error cells before any row
    is built. Every row exposes as many columns as the widest row; shorter
    rows are padded with empty text.

    Args:
        grid: The decoded sheet.

    Returns:
        Rows mapping "0", "1", ... to text.

    Raises:
        UnsupportedCellContentError: If any cell is a formula or an error.
    """
    for row_index, cells in enumerate(grid.rows):
        for column_index, cell in enumerate(cells):
            if cell.cell_type in (CellType.FORMULA, CellType.ERROR):
                cell_text(cell, row_index, column_index)

    if not grid.rows:
        return []

    width = max(len(cells) for cells in grid.rows)
    result: list[dict[str, str]] = []
    for row_index, cells in enumerate(grid.rows):
        row: dict[str, str] = {}
        for column_index in range(width):
            if column_index < len(cells):
                row[str(column_index)] = cell_text(cells[column_index], row_index, column_index)
            else:
                row[str(column_index)] = ""
        result.append(row)
    return result
