"""
Report-designer text renderer.

Every column value is followed by the column separator, including the
last one, and rows are joined by the line separator. Line breaks inside a
value become the two characters ``\\n``. Absent values contribute nothing
but still get their separator.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from tabular_exchange.adapters.output_sink import Sink, write_text
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import ClassifiedValue, ValueKind
from tabular_exchange.normalizer import classify, escape_report
from tabular_exchange.sources import TabularSource, iter_classified_rows, open_source

logger = get_logger(__name__)

DEFAULT_COLUMN_SEPARATOR = "##"
DEFAULT_LINE_SEPARATOR = "\n"


def _report_line(values: list[ClassifiedValue], column_separator: str) -> str:
    line = ""
    for value in values:
        if value.kind is not ValueKind.ABSENT:
            line += escape_report(value.text)
        line += column_separator
    return line


def _render(
    source: TabularSource,
    column_separator: str,
    line_separator: str,
) -> tuple[str, int]:
    lines = []
    with open_source(source):
        for values in iter_classified_rows(source):
            lines.append(_report_line(values, column_separator))
    return line_separator.join(lines), len(lines)


def render_report(
    source: TabularSource | None,
    column_separator: str = DEFAULT_COLUMN_SEPARATOR,
    line_separator: str = DEFAULT_LINE_SEPARATOR,
) -> str | None:
    """
    Render ``source`` as report-designer text.

    Returns:
        The text, or None when ``source`` is None.
    """
    if source is None:
        return None
    text, _ = _render(source, column_separator, line_separator)
    return text


def render_report_mappings(
    rows: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None,
    column_separator: str = DEFAULT_COLUMN_SEPARATOR,
    line_separator: str = DEFAULT_LINE_SEPARATOR,
) -> str | None:
    """
    Render one mapping or a list of mappings, each in its own key order.

    Rows need not share keys; every row contributes one separator per key.

    Returns:
        The text, or None when ``rows`` is None.
    """
    if rows is None:
        return None
    if isinstance(rows, Mapping):
        rows = [rows]
    return line_separator.join(
        _report_line([classify(value) for value in row.values()], column_separator)
        for row in rows
    )


def write_report(
    source: TabularSource | None,
    sink: Sink,
    column_separator: str = DEFAULT_COLUMN_SEPARATOR,
    line_separator: str = DEFAULT_LINE_SEPARATOR,
    encoding: str = "utf-8",
) -> int:
    """Render ``source`` into ``sink`` and return the number of rows written."""
    if source is None:
        return 0
    text, row_count = _render(source, column_separator, line_separator)
    write_text(text, sink, encoding=encoding)
    logger.info("Wrote %d report rows", row_count)
    return row_count
