"""
Tabular sources: one pull-based cursor over three backing stores.

A TabularSource exposes the ordered column names, a rewind, an
advance-and-test, and a lookup of the current row's value by column name.
Three variants implement it:

    - QueryCursorSource: a forward-only DB-API cursor. Column names are
      upper-cased. The source owns the cursor and closes it.
    - BufferedSource: rows materialized in memory; restartable.
    - MappingListSource: an ordered list of mappings; restartable.

Renderers never call ``close()`` directly; they wrap iteration in
``open_source()`` so the cursor is released on every exit path.

Example:
    cursor = connection.execute("SELECT name, age FROM users")
    with open_source(QueryCursorSource(cursor)) as source:
        for values in iter_classified_rows(source):
            ...
"""

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable

from tabular_exchange.exceptions.exchange_exceptions import (
    SourceStateError,
    UnsupportedSourceError,
)
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import ClassifiedValue
from tabular_exchange.normalizer import classify

logger = get_logger(__name__)


@runtime_checkable
class TabularSource(Protocol):
    """Capability interface shared by every source variant."""

    def columns(self) -> list[str]: ...

    def reset(self) -> None: ...

    def advance(self) -> bool: ...

    def value_of(self, column: str) -> ClassifiedValue: ...

    def raw_value(self, column: str) -> Any: ...

    def close(self) -> None: ...


class QueryCursorSource:
    """
    Forward-only source over a DB-API 2.0 cursor.

    ``reset()`` is legal only before the first ``advance()``; afterwards it
    raises SourceStateError because the cursor cannot be rewound.

    Attributes:
        owns_cursor: Whether ``close()`` releases the cursor.
    """

    def __init__(self, cursor: Any, owns_cursor: bool = True) -> None:
        """
        Initialize the QueryCursorSource.

        Args:
            cursor: An executed DB-API cursor.
            owns_cursor: Whether this source is responsible for closing it.
        """
        self._cursor = cursor
        self.owns_cursor = owns_cursor
        description = cursor.description or ()
        # Query column names are case-normalized to upper case
        self._columns = [str(column[0]).upper() for column in description]
        self._index = {name: position for position, name in enumerate(self._columns)}
        self._row: Sequence[Any] | None = None
        self._consumed = False
        self._closed = False

    def columns(self) -> list[str]:
        return list(self._columns)

    def reset(self) -> None:
        if self._consumed:
            raise SourceStateError(
                operation="reset query cursor",
                reason="rows have already been consumed from a forward-only cursor",
            )

    def advance(self) -> bool:
        self._consumed = True
        self._row = self._cursor.fetchone()
        return self._row is not None

    def raw_value(self, column: str) -> Any:
        if self._row is None:
            return None
        position = self._index.get(column.upper())
        if position is None:
            return None
        return self._row[position]

    def value_of(self, column: str) -> ClassifiedValue:
        return classify(self.raw_value(column))

    def close(self) -> None:
        if self._closed or not self.owns_cursor:
            return
        self._closed = True
        self._cursor.close()
        logger.debug("Released query cursor")


class BufferedSource:
    """
    Restartable source over rows held in memory.

    Build one directly from column names and row tuples, or with
    ``from_cursor()`` to drain and release a query cursor up front.
    """

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        self._columns = list(columns)
        self._index = {name: position for position, name in enumerate(self._columns)}
        self._rows = list(rows)
        self._position = -1

    @classmethod
    def from_cursor(cls, cursor: Any) -> "BufferedSource":
        """Fetch every row of ``cursor`` and close it."""
        try:
            columns = [str(column[0]).upper() for column in (cursor.description or ())]
            rows = cursor.fetchall()
        finally:
            cursor.close()
        return cls(columns, rows)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def columns(self) -> list[str]:
        return list(self._columns)

    def reset(self) -> None:
        self._position = -1

    def advance(self) -> bool:
        if self._position + 1 >= len(self._rows):
            self._position = len(self._rows)
            return False
        self._position += 1
        return True

    def raw_value(self, column: str) -> Any:
        if not 0 <= self._position < len(self._rows):
            return None
        position = self._index.get(column)
        if position is None:
            position = self._index.get(column.upper())
        if position is None:
            return None
        return self._rows[self._position][position]

    def value_of(self, column: str) -> ClassifiedValue:
        return classify(self.raw_value(column))

    def close(self) -> None:
        pass


class MappingListSource:
    """
    Restartable source over an ordered list of key-value rows.

    Columns are the keys of the first row, in insertion order. The report
    and grid renderers take plain mappings row by row instead, so rows with
    other keys keep their own values there.
    """

    def __init__(self, rows: Sequence[Mapping[str, Any]]) -> None:
        self._rows = list(rows)
        self._columns = list(self._rows[0].keys()) if self._rows else []
        self._position = -1

    def columns(self) -> list[str]:
        return list(self._columns)

    def reset(self) -> None:
        self._position = -1

    def advance(self) -> bool:
        if self._position + 1 >= len(self._rows):
            self._position = len(self._rows)
            return False
        self._position += 1
        return True

    def raw_value(self, column: str) -> Any:
        if not 0 <= self._position < len(self._rows):
            return None
        row = self._rows[self._position]
        if column in row:
            return row[column]
        return row.get(column.upper())

    def value_of(self, column: str) -> ClassifiedValue:
        return classify(self.raw_value(column))

    def close(self) -> None:
        pass


def as_source(obj: Any) -> TabularSource:
    """
    Adapt ``obj`` to a TabularSource.

    Accepts an existing source, a DB-API cursor, a single mapping, or a
    sequence of mappings.

    Raises:
        UnsupportedSourceError: If ``obj`` matches none of the variants.
    """
    if isinstance(obj, (QueryCursorSource, BufferedSource, MappingListSource)):
        return obj
    if isinstance(obj, TabularSource):
        return obj
    if hasattr(obj, "description") and hasattr(obj, "fetchone"):
        return QueryCursorSource(obj)
    if isinstance(obj, Mapping):
        return MappingListSource([obj])
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)):
        if all(isinstance(row, Mapping) for row in obj):
            return MappingListSource(obj)
    raise UnsupportedSourceError(type(obj).__name__)


@contextmanager
def open_source(source: TabularSource) -> Iterator[TabularSource]:
    """Yield ``source`` and release it however the block exits."""
    try:
        yield source
    finally:
        source.close()


def iter_classified_rows(
    source: TabularSource,
    columns: Sequence[str] | None = None,
) -> Iterator[list[ClassifiedValue]]:
    """
    Rewind ``source`` and yield each row's classified values in column order.

    Args:
        source: The source to read.
        columns: Explicit column order; defaults to ``source.columns()``.
    """
    names = list(columns) if columns is not None else source.columns()
    source.reset()
    while source.advance():
        yield [source.value_of(name) for name in names]
