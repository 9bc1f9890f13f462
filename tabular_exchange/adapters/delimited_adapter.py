"""
Delimited text (CSV/TSV) adapter.

Parsing splits every line on the literal separator. It is not
quote-aware: a quoted field holding the separator is split like any
other text, and empty trailing fields are dropped, so ``"a,,"`` yields one
field while a line with no separator yields exactly one.

Rendering joins rows with ``\\n`` (no trailing newline) and quotes a TEXT
value only when it contains the separator or a newline. Embedded quotes
are not doubled.
"""

import io
from collections.abc import Mapping, Sequence
from typing import Any, BinaryIO

from tabular_exchange.adapters.decode_context import read_payload
from tabular_exchange.adapters.output_sink import Sink, write_text
from tabular_exchange.exceptions.exchange_exceptions import ReadError
from tabular_exchange.logging_config import get_logger
from tabular_exchange.normalizer import classify, render_delimited_value
from tabular_exchange.sources import TabularSource, iter_classified_rows, open_source

logger = get_logger(__name__)

COMMA = ","
TAB = "\t"


def split_fields(line: str, separator: str) -> list[str]:
    """Split ``line`` on ``separator``, dropping empty trailing fields."""
    if separator not in line:
        return [line]
    fields = line.split(separator)
    while fields and fields[-1] == "":
        fields.pop()
    return fields


class DelimitedAdapter:
    """
    Adapter for separator-delimited text.

    Attributes:
        SEPARATORS: Separator used for each supported file extension.
    """

    SEPARATORS = {".csv": COMMA, ".tsv": TAB}

    @classmethod
    def separator_for(cls, extension: str) -> str:
        return cls.SEPARATORS[extension.lower()]

    def parse(
        self,
        data: bytes | BinaryIO,
        separator: str = COMMA,
        encoding: str = "utf-8",
    ) -> list[dict[str, str]]:
        """
        Parse delimited text into rows keyed by column position.

        Lines end at ``\\n``, ``\\r\\n`` or ``\\r``.

        Args:
            data: Raw bytes or a readable binary stream.
            separator: Literal field separator.
            encoding: Text encoding of the input.

        Returns:
            One row per line, mapping "0", "1", ... to the field text.

        Raises:
            ReadError: If the input cannot be read or decoded.
        """
        payload = read_payload(data)
        rows: list[dict[str, str]] = []
        reader = io.TextIOWrapper(io.BytesIO(payload), encoding=encoding, newline=None)
        try:
            for line in reader:
                fields = split_fields(line.rstrip("\n"), separator)
                rows.append({str(index): field for index, field in enumerate(fields)})
        except UnicodeDecodeError as e:
            raise ReadError(target="delimited text", operation="decode", reason=str(e)) from e
        finally:
            reader.close()

        logger.info("Parsed %d delimited rows", len(rows))
        return rows

    def render(self, source: TabularSource | None, separator: str = COMMA) -> str | None:
        """
        Render every row of ``source`` as delimited text.

        Returns:
            The text, or None when ``source`` is None.
        """
        if source is None:
            return None
        text, _ = self.render_rows(source, separator)
        return text

    def render_rows(self, source: TabularSource, separator: str) -> tuple[str, int]:
        """Render ``source`` and return the text with its row count."""
        lines = []
        with open_source(source):
            columns = source.columns()
            for values in iter_classified_rows(source, columns):
                lines.append(
                    separator.join(render_delimited_value(value, separator) for value in values)
                )
        return "\n".join(lines), len(lines)

    def render_mappings(
        self,
        rows: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None,
        separator: str = COMMA,
    ) -> str | None:
        """
        Render one mapping or a list of mappings, each in its own key order.

        Returns:
            The text, or None when ``rows`` is None.
        """
        if rows is None:
            return None
        if isinstance(rows, Mapping):
            rows = [rows]
        return "\n".join(
            separator.join(render_delimited_value(classify(value), separator) for value in row.values())
            for row in rows
        )

    def write(
        self,
        source: TabularSource | None,
        sink: Sink,
        separator: str = COMMA,
        encoding: str = "utf-8",
        overwrite: bool = True,
    ) -> int:
        """
        Render ``source`` and write it to a path or stream.

        Nothing is written when ``source`` is None or rendering fails.

        Returns:
            Number of rows written.
        """
        if source is None:
            return 0
        text, row_count = self.render_rows(source, separator)
        write_text(text, sink, encoding=encoding, overwrite=overwrite)
        logger.info("Wrote %d delimited rows", row_count)
        return row_count
