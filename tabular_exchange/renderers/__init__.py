"""
Text renderers for report-designer, grid JSON and RSS output.
"""

from tabular_exchange.renderers.feed import render_feed, render_item, rfc822, write_feed
from tabular_exchange.renderers.grid import (
    page_count,
    render_grid,
    render_grid_mappings,
    write_grid,
)
from tabular_exchange.renderers.report import (
    DEFAULT_COLUMN_SEPARATOR,
    DEFAULT_LINE_SEPARATOR,
    render_report,
    render_report_mappings,
    write_report,
)

__all__ = [
    "DEFAULT_COLUMN_SEPARATOR",
    "DEFAULT_LINE_SEPARATOR",
    "render_report",
    "render_report_mappings",
    "write_report",
    "page_count",
    "render_grid",
    "render_grid_mappings",
    "write_grid",
    "rfc822",
    "render_item",
    "render_feed",
    "write_feed",
]
