"""
Grid JSON renderer.

Produces one page of a client-side data grid:

    {"rows":[{"id":1,"cell":["a","1"]},...],"total":3,"page":1,"records":25}

``id`` is the 1-based position of the row within the page, ``total`` the
page count, ``page`` the current page and ``records`` the overall row
count. Every cell is a JSON string; only backslash, double quote and line
breaks are escaped, so the text is assembled directly rather than through
a JSON encoder.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from tabular_exchange.adapters.output_sink import Sink, write_text
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import ClassifiedValue, ValueKind
from tabular_exchange.normalizer import classify, escape_grid_json
from tabular_exchange.sources import TabularSource, iter_classified_rows, open_source

logger = get_logger(__name__)


def page_count(total_count: int, rows_per_page: int) -> int:
    """Number of pages for ``total_count`` rows; zero rows per page counts as one."""
    rows_per_page = rows_per_page or 1
    pages, remainder = divmod(total_count, rows_per_page)
    return pages + 1 if remainder else pages


def _cell_array(values: list[ClassifiedValue]) -> str:
    cells = []
    for value in values:
        text = "" if value.kind is ValueKind.ABSENT else escape_grid_json(value.text)
        cells.append('"' + text + '"')
    return "[" + ",".join(cells) + "]"


def _page(rows: list[str], total_count: int, current_page: int, rows_per_page: int) -> str:
    return (
        '{"rows":[' + ",".join(rows) + "],"
        + '"total":' + str(page_count(total_count, rows_per_page)) + ","
        + '"page":' + str(current_page) + ","
        + '"records":' + str(total_count)
        + "}"
    )


def _row(row_id: int, values: list[ClassifiedValue]) -> str:
    return '{"id":' + str(row_id) + ',"cell":' + _cell_array(values) + "}"


def _render(
    source: TabularSource,
    total_count: int,
    current_page: int,
    rows_per_page: int,
    col_names: Sequence[str] | None,
) -> tuple[str, int]:
    rows = []
    with open_source(source):
        columns = list(col_names) if col_names is not None else source.columns()
        for row_id, values in enumerate(iter_classified_rows(source, columns), start=1):
            rows.append(_row(row_id, values))
    return _page(rows, total_count, current_page, rows_per_page), len(rows)


def render_grid(
    source: TabularSource | None,
    total_count: int,
    current_page: int,
    rows_per_page: int,
    col_names: Sequence[str] | None = None,
) -> str | None:
    """
    Render ``source`` as one grid page.

    Args:
        source: Rows of the current page.
        total_count: Total number of rows across all pages.
        current_page: Page being rendered.
        rows_per_page: Page size; 0 is treated as 1.
        col_names: Columns to emit, in order. Defaults to the source columns.

    Returns:
        The JSON text, or None when ``source`` is None.
    """
    if source is None:
        return None
    text, _ = _render(source, total_count, current_page, rows_per_page, col_names)
    return text


def render_grid_mappings(
    rows: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None,
    total_count: int,
    current_page: int,
    rows_per_page: int,
) -> str | None:
    """Render one grid page from mappings, each row's cells in its own key order."""
    if rows is None:
        return None
    if isinstance(rows, Mapping):
        rows = [rows]
    cells = [
        _row(row_id, [classify(value) for value in row.values()])
        for row_id, row in enumerate(rows, start=1)
    ]
    return _page(cells, total_count, current_page, rows_per_page)


def write_grid(
    source: TabularSource | None,
    sink: Sink,
    total_count: int,
    current_page: int,
    rows_per_page: int,
    col_names: Sequence[str] | None = None,
    encoding: str = "utf-8",
) -> int:
    """Render one grid page into ``sink`` and return the number of rows written."""
    if source is None:
        return 0
    text, row_count = _render(source, total_count, current_page, rows_per_page, col_names)
    write_text(text, sink, encoding=encoding)
    logger.info("Wrote grid page %d with %d rows", current_page, row_count)
    return row_count
