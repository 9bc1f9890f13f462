"""
Record-level access to legacy binary (BIFF) workbook streams.

xlrd reports a formula cell by the type of its cached result, so formula
detection needs the raw record stream: this module opens the compound file
with olefile, locates the first worksheet substream through its BOUNDSHEET
record and collects the positions of its FORMULA records.
"""

import struct
from collections.abc import Iterator

import olefile

BOF = 0x0809
EOF = 0x000A
FORMULA = 0x0006
BOUNDSHEET = 0x0085

SHEET_TYPE_WORKSHEET = 0x00

WORKBOOK_STREAM_NAMES = ("Workbook", "Book")


def is_compound_file(data: bytes) -> bool:
    """Whether ``data`` starts with the compound-file signature."""
    return data[: len(olefile.MAGIC)] == olefile.MAGIC


def read_workbook_stream(data: bytes) -> bytes | None:
    """
    Return the BIFF workbook stream of a compound file.

    Returns:
        The stream bytes, or None when the file has no workbook stream.
    """
    ole = olefile.OleFileIO(data)
    try:
        for name in WORKBOOK_STREAM_NAMES:
            if ole.exists(name):
                return ole.openstream(name).read()
        return None
    finally:
        ole.close()


def iter_records(stream: bytes, offset: int = 0) -> Iterator[tuple[int, bytes]]:
    """Yield ``(record_id, body)`` pairs starting at ``offset``."""
    position = offset
    end = len(stream)
    while position + 4 <= end:
        record_id, size = struct.unpack_from("<HH", stream, position)
        body_start = position + 4
        yield record_id, stream[body_start : body_start + size]
        position = body_start + size


def first_worksheet_offset(stream: bytes) -> int | None:
    """Stream offset of the first worksheet's BOF record, if any."""
    depth = 0
    for record_id, body in iter_records(stream):
        if record_id == BOF:
            depth += 1
        elif record_id == EOF:
            depth -= 1
            if depth <= 0:
                return None
        elif record_id == BOUNDSHEET and len(body) >= 6:
            (sheet_offset,) = struct.unpack_from("<I", body, 0)
            if body[5] == SHEET_TYPE_WORKSHEET:
                return sheet_offset
    return None


def formula_cells(data: bytes) -> set[tuple[int, int]]:
    """
    Positions of FORMULA records in the first worksheet.

    Nested substreams (embedded charts) are skipped.

    Args:
        data: A decrypted compound-file workbook.

    Returns:
        Set of 0-based ``(row, column)`` pairs.
    """
    stream = read_workbook_stream(data)
    if not stream:
        return set()

    offset = first_worksheet_offset(stream)
    if offset is None or offset >= len(stream):
        return set()

    cells: set[tuple[int, int]] = set()
    depth = 0
    for record_id, body in iter_records(stream, offset):
        if record_id == BOF:
            depth += 1
        elif record_id == EOF:
            depth -= 1
            if depth <= 0:
                break
        elif record_id == FORMULA and depth == 1 and len(body) >= 4:
            row, column = struct.unpack_from("<HH", body, 0)
            cells.add((row, column))
    return cells
