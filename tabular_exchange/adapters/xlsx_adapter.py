"""
Zip/XML (.xlsx) workbook adapter.

This module provides the XlsxAdapter class. Decoding uses openpyxl with
``data_only=False`` so formula and error cells keep their own type.
Encoding uses XlsxWriter in memory mode. A password-protected workbook is
an encrypted package stored inside a compound file; it is verified and
decrypted with msoffcrypto-tool and the decrypted zip is parsed as usual.

Writing never encrypts.

Example:
    adapter = XlsxAdapter()
    rows = adapter.decode(data, password="secret")
    result = adapter.encode(BufferedSource(["A", "B"], [(1, "x")]))
"""

import io
import zipfile
from typing import Any, BinaryIO

import openpyxl
import xlsxwriter
from openpyxl.utils.datetime import to_excel

from tabular_exchange.adapters.biff_records import is_compound_file
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

CONTAINER = "xlsx"


def is_zip_container(data: bytes) -> bool:
    return zipfile.is_zipfile(io.BytesIO(data))


def sheet_cell(cell: Any, epoch: Any) -> SheetCell:
    """Tag an openpyxl cell with its CellType."""
    if cell.value is None:
        return SheetCell(cell_type=CellType.EMPTY)
    data_type = cell.data_type
    if data_type == "f":
        return SheetCell(cell_type=CellType.FORMULA, value=cell.value)
    if data_type == "e":
        return SheetCell(cell_type=CellType.ERROR, value=cell.value)
    if data_type == "b":
        return SheetCell(cell_type=CellType.BOOLEAN, value=cell.value)
    if data_type == "n":
        return SheetCell(cell_type=CellType.NUMERIC, value=cell.value)
    if data_type == "d":
        # Dates come back as their stored serial number
        return SheetCell(cell_type=CellType.NUMERIC, value=to_excel(cell.value, epoch))
    return SheetCell(cell_type=CellType.TEXT, value=cell.value)


class XlsxAdapter:
    """
    Adapter for zip/XML workbook decode and encode.

    Attributes:
        SUPPORTED_EXTENSIONS: File extensions handled by this adapter.
        MAX_ROWS: Row limit of the zip/XML sheet format.
        MAX_COLUMNS: Column limit of the zip/XML sheet format.
    """

    SUPPORTED_EXTENSIONS = {".xlsx"}
    MAX_ROWS = 1048576
    MAX_COLUMNS = 16384

    def decode(self, data: bytes | BinaryIO, password: str | None = None) -> list[dict[str, str]]:
        """
        Decode the first sheet of a zip/XML workbook.

        Without a password the bytes must be the workbook zip itself. With a
        password they are opened as an encrypted package, the password is
        verified against the package's verifier and the decrypted zip is
        parsed.

        Args:
            data: Workbook bytes or a readable binary stream.
            password: Password for an encrypted package. None skips decryption.

        Returns:
            Rows mapping column positions ("0", "1", ...) to text.

        Raises:
            MalformedContainerError: If the bytes are not a readable workbook,
                or an encrypted package is decoded without a password.
            PasswordVerificationError: If the password is wrong.
            UnsupportedCellContentError: If the sheet holds a formula or error cell.
            ReadError: If the stream cannot be read.
        """
        payload = read_payload(data)
        with DecodeContext(CONTAINER, password) as context:
            if not (is_zip_container(payload) or is_compound_file(payload)):
                raise MalformedContainerError(
                    container=CONTAINER,
                    reason="neither a zip archive nor an encrypted package",
                    stage=context.stage.value,
                )
            context.advance(DecodeStage.CONTAINER_OPENED)

            if context.has_password:
                payload = decrypt_payload(payload, context)

            grid = self._read_first_sheet(payload, context)
            rows = materialize_rows(grid)
            context.advance(DecodeStage.ROWS_MATERIALIZED)
            context.advance(DecodeStage.DONE)

        logger.info("Decoded %d rows from zip/XML workbook", len(rows))
        return rows

    def _read_first_sheet(self, payload: bytes, context: DecodeContext) -> SheetGrid:
        if not is_zip_container(payload):
            raise MalformedContainerError(
                container=CONTAINER,
                reason="encrypted package requires a password",
                stage=DecodeStage.WORKBOOK_PARSED.value,
            )
        try:
            workbook = openpyxl.load_workbook(io.BytesIO(payload), data_only=False)
        except Exception as e:
            raise MalformedContainerError(
                container=CONTAINER,
                reason=str(e),
                stage=DecodeStage.WORKBOOK_PARSED.value,
            ) from e
        context.advance(DecodeStage.WORKBOOK_PARSED)

        try:
            if not workbook.worksheets:
                context.advance(DecodeStage.SHEET_SELECTED)
                return SheetGrid()
            sheet = workbook.worksheets[0]
            context.advance(DecodeStage.SHEET_SELECTED)

            # openpyxl reports a sheet without cells as a single empty A1
            if sheet.max_row == 1 and sheet.max_column == 1 and sheet["A1"].value is None:
                return SheetGrid(name=sheet.title)

            rows = [
                [sheet_cell(cell, workbook.epoch) for cell in row]
                for row in sheet.iter_rows()
            ]
            return SheetGrid(name=sheet.title, rows=rows)
        finally:
            workbook.close()

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
        buffer = io.BytesIO()
        rows_written = 0
        try:
            workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})
            try:
                sheet = workbook.add_worksheet(sheet_name)
                # Empty cells are written as formatted blanks so they stay in the sheet
                blank = workbook.add_format()
                with open_source(source):
                    columns = source.columns()
                    if len(columns) > self.MAX_COLUMNS:
                        raise WriteError(
                            target="xlsx workbook",
                            operation="encode",
                            reason=f"{len(columns)} columns exceed the limit of {self.MAX_COLUMNS}",
                        )
                    for row_index, values in enumerate(iter_classified_rows(source, columns)):
                        if row_index >= self.MAX_ROWS:
                            raise WriteError(
                                target="xlsx workbook",
                                operation="encode",
                                reason=f"row limit of {self.MAX_ROWS} exceeded",
                            )
                        for column_index, value in enumerate(values):
                            self._write_cell(sheet, row_index, column_index, value, blank)
                        rows_written += 1
            finally:
                workbook.close()
        except TabularExchangeError:
            raise
        except Exception as e:
            raise WriteError(target="xlsx workbook", operation="encode", reason=str(e)) from e

        logger.info("Encoded %d rows into zip/XML workbook", rows_written)
        return EncodeResult(
            format=ExportFormat.XLSX,
            content=buffer.getvalue(),
            rows_written=rows_written,
        )

    def _write_cell(self, sheet, row: int, column: int, value: ClassifiedValue, blank) -> None:
        if value.kind is ValueKind.ABSENT:
            sheet.write_blank(row, column, None, blank)
        elif value.kind is ValueKind.NUMERIC:
            sheet.write_number(row, column, float(value.text))
        elif value.kind is ValueKind.TEXT:
            if value.text:
                sheet.write_string(row, column, value.text)
            else:
                sheet.write_blank(row, column, None, blank)
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
