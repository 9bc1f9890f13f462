"""
Legacy binary (.xls) workbook adapter.

This module provides the XlsAdapter class that decodes compound-file
workbooks with xlrd and encodes them with xlwt. Password-protected
workbooks are decrypted with msoffcrypto-tool before parsing.

Decoding reads the first sheet only and rejects sheets holding a formula
or error cell. Encoding writes a single sheet whose rows mirror the source
rows at the same index.

Example:
    adapter = XlsAdapter()
    rows = adapter.decode(open("report.xls", "rb").read(), password="secret")
    count = adapter.write(MappingListSource(rows), "/tmp/copy.xls")
"""

import io
from typing import BinaryIO

import xlrd
import xlwt

from tabular_exchange.adapters.biff_records import formula_cells, is_compound_file
from tabular_exchange.adapters.decode_context import DecodeContext, read_payload
from tabular_exchange.adapters.encrypted_container import decrypt_payload
from tabular_exchange.adapters.output_sink import Sink, write_bytes
from tabular_exchange.exceptions.exchange_exceptions import (
    MalformedContainerError,
    TabularExchangeError,
    WriteError,
)
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import (
    CellType,
    ClassifiedValue,
    DecodeStage,
    EncodeResult,
    ExportFormat,
    SheetCell,
    SheetGrid,
    ValueKind,
)
from tabular_exchange.normalizer import materialize_rows
from tabular_exchange.sources import TabularSource, iter_classified_rows, open_source

logger = get_logger(__name__)

CONTAINER = "xls"

XLRD_CELL_TYPES = {
    xlrd.XL_CELL_EMPTY: CellType.EMPTY,
    xlrd.XL_CELL_BLANK: CellType.EMPTY,
    xlrd.XL_CELL_TEXT: CellType.TEXT,
    xlrd.XL_CELL_NUMBER: CellType.NUMERIC,
    xlrd.XL_CELL_DATE: CellType.NUMERIC,
    xlrd.XL_CELL_BOOLEAN: CellType.BOOLEAN,
    xlrd.XL_CELL_ERROR: CellType.ERROR,
}


class XlsAdapter:
    """
    Adapter for legacy binary workbook decode and encode.

    Attributes:
        SUPPORTED_EXTENSIONS: File extensions handled by this adapter.
        MAX_ROWS: Row limit of the legacy sheet format.
        MAX_COLUMNS: Column limit of the legacy sheet format.
    """

    SUPPORTED_EXTENSIONS = {".xls"}
    MAX_ROWS = 65536
    MAX_COLUMNS = 256

    def decode(self, data: bytes | BinaryIO, password: str | None = None) -> list[dict[str, str]]:
        """
        Decode the first sheet of a legacy binary workbook.

        Args:
            data: Workbook bytes or a readable binary stream.
            password: Password for an encrypted workbook. None skips decryption.

        Returns:
            Rows mapping column positions ("0", "1", ...) to text.

        Raises:
            MalformedContainerError: If the bytes are not a readable workbook.
            PasswordVerificationError: If the password is wrong.
            UnsupportedCellContentError: If the sheet holds a formula or error cell.
            ReadError: If the stream cannot be read.
        """
        payload = read_payload(data)
        with DecodeContext(CONTAINER, password) as context:
            if not is_compound_file(payload):
                raise MalformedContainerError(
                    container=CONTAINER,
                    reason="missing compound file signature",
                    stage=context.stage.value,
                )
            context.advance(DecodeStage.CONTAINER_OPENED)

            if context.has_password:
                payload = decrypt_payload(payload, context)

            grid = self._read_first_sheet(payload, context)
            rows = materialize_rows(grid)
            context.advance(DecodeStage.ROWS_MATERIALIZED)
            context.advance(DecodeStage.DONE)

        logger.info("Decoded %d rows from legacy workbook", len(rows))
        return rows

    def _read_first_sheet(self, payload: bytes, context: DecodeContext) -> SheetGrid:
        try:
            # formatting_info keeps BLANK records so empty cells hold their position
            book = xlrd.open_workbook(
                file_contents=payload, formatting_info=True, ragged_rows=True
            )
        except Exception as e:
            raise MalformedContainerError(
                container=CONTAINER,
                reason=str(e),
                stage=DecodeStage.WORKBOOK_PARSED.value,
            ) from e
        context.advance(DecodeStage.WORKBOOK_PARSED)

        try:
            if book.nsheets == 0:
                context.advance(DecodeStage.SHEET_SELECTED)
                return SheetGrid()
            sheet = book.sheet_by_index(0)
            context.advance(DecodeStage.SHEET_SELECTED)

            formulas = formula_cells(payload)
            rows: list[list[SheetCell]] = []
            for row_index in range(sheet.nrows):
                cells = []
                for column_index in range(sheet.row_len(row_index)):
                    if (row_index, column_index) in formulas:
                        cells.append(SheetCell(cell_type=CellType.FORMULA))
                        continue
                    cell = sheet.cell(row_index, column_index)
                    cells.append(
                        SheetCell(
                            cell_type=XLRD_CELL_TYPES.get(cell.ctype, CellType.ERROR),
                            value=cell.value,
                        )
                    )
                rows.append(cells)
            return SheetGrid(name=sheet.name, rows=rows)
        finally:
            book.release_resources()

    def encode(self, source: TabularSource, sheet_name: str = "Sheet1") -> EncodeResult:
        """
        Encode every row of ``source`` into a single-sheet workbook.

        An empty source still produces a valid workbook with no rows.

        Args:
            source: Rows to write; released when encoding ends.
            sheet_name: Name of the written sheet.

        Returns:
            EncodeResult holding the workbook bytes and the row count.

        Raises:
            WriteError: If the workbook cannot be built.
        """
        workbook = xlwt.Workbook(encoding="utf-8")
        rows_written = 0
        try:
            sheet = workbook.add_sheet(sheet_name)
            with open_source(source):
                columns = source.columns()
                if len(columns) > self.MAX_COLUMNS:
                    raise WriteError(
                        target="xls workbook",
                        operation="encode",
                        reason=f"{len(columns)} columns exceed the limit of {self.MAX_COLUMNS}",
                    )
                for row_index, values in enumerate(iter_classified_rows(source, columns)):
                    if row_index >= self.MAX_ROWS:
                        raise WriteError(
                            target="xls workbook",
                            operation="encode",
                            reason=f"row limit of {self.MAX_ROWS} exceeded",
                        )
                    for column_index, value in enumerate(values):
                        self._write_cell(sheet, row_index, column_index, value)
                    rows_written += 1

            buffer = io.BytesIO()
            workbook.save(buffer)
        except TabularExchangeError:
            raise
        except Exception as e:
            raise WriteError(target="xls workbook", operation="encode", reason=str(e)) from e

        logger.info("Encoded %d rows into legacy workbook", rows_written)
        return EncodeResult(
            format=ExportFormat.XLS,
            content=buffer.getvalue(),
            rows_written=rows_written,
        )

    def _write_cell(self, sheet, row: int, column: int, value: ClassifiedValue) -> None:
        if value.kind is ValueKind.ABSENT:
            sheet.write(row, column, "")
        elif value.kind is ValueKind.NUMERIC:
            sheet.write(row, column, float(value.text))
        elif value.kind is ValueKind.TEXT:
            sheet.write(row, column, value.text)
        else:
            raise ValueError(f"Unhandled value kind: {value.kind}")

    def write(
        self,
        source: TabularSource,
        sink: Sink,
        sheet_name: str = "Sheet1",
        overwrite: bool = True,
    ) -> int:
        """
        Encode ``source`` and write the workbook to a path or binary stream.

        Nothing is written to the sink if encoding fails.

        Returns:
            Number of rows written.
        """
        result = self.encode(source, sheet_name=sheet_name)
        write_bytes(result.content, sink, overwrite=overwrite)
        return result.rows_written
