"""
Tabular sources consumed by every encoder and renderer.
"""

from tabular_exchange.sources.tabular_source import (
    BufferedSource,
    MappingListSource,
    QueryCursorSource,
    TabularSource,
    as_source,
    iter_classified_rows,
    open_source,
)

__all__ = [
    "TabularSource",
    "QueryCursorSource",
    "BufferedSource",
    "MappingListSource",
    "as_source",
    "open_source",
    "iter_classified_rows",
]
