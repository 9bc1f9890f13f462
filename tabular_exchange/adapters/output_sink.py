"""
Output sinks for encoded content.

Encoders build their full output in memory and hand it to one of these
helpers, so nothing reaches the sink when encoding fails. A sink is either
a file path or an open stream.
"""

import io
import os
from pathlib import Path
from typing import IO, Any

from tabular_exchange.exceptions.exchange_exceptions import (
    OutputPermissionError,
    WriteError,
)

Sink = str | os.PathLike | IO[Any]


def is_path_sink(sink: Any) -> bool:
    return isinstance(sink, (str, os.PathLike))


def validate_output_path(file_path: str | os.PathLike, overwrite: bool = True) -> Path:
    """
    Validate and prepare the output file path.

    Args:
        file_path: Path where the file will be written.
        overwrite: Whether to overwrite if the file exists.

    Returns:
        Path object for the output file.

    Raises:
        WriteError: If the file exists and overwrite is False.
        OutputPermissionError: If the directory is not writable.
    """
    path = Path(file_path)

    if path.exists() and not overwrite:
        raise WriteError(
            target=str(path),
            operation="create",
            reason="File already exists and overwrite is False",
        )

    parent = path.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise OutputPermissionError(
                target=str(parent),
                operation="create directory",
            ) from e
        except OSError as e:
            raise WriteError(
                target=str(path),
                operation="create directory",
                reason=str(e),
            ) from e

    if not os.access(str(parent), os.W_OK):
        raise OutputPermissionError(target=str(path), operation="write")

    return path


def write_bytes(content: bytes, sink: Sink, overwrite: bool = True) -> None:
    """Write ``content`` to a path or a binary stream."""
    if is_path_sink(sink):
        path = validate_output_path(sink, overwrite)
        try:
            path.write_bytes(content)
        except PermissionError as e:
            raise OutputPermissionError(target=str(path)) from e
        except OSError as e:
            raise WriteError(target=str(path), reason=str(e)) from e
        return

    try:
        sink.write(content)
    except (OSError, ValueError, TypeError) as e:
        raise WriteError(target=type(sink).__name__, reason=str(e)) from e


def write_text(text: str, sink: Sink, encoding: str = "utf-8", overwrite: bool = True) -> None:
    """
    Write ``text`` to a path, a text stream, or a binary stream.

    Line endings are written as-is.
    """
    if is_path_sink(sink):
        path = validate_output_path(sink, overwrite)
        try:
            with open(path, "w", encoding=encoding, newline="") as handle:
                handle.write(text)
        except PermissionError as e:
            raise OutputPermissionError(target=str(path)) from e
        except (OSError, UnicodeError) as e:
            raise WriteError(target=str(path), reason=str(e)) from e
        return

    try:
        if isinstance(sink, io.TextIOBase):
            sink.write(text)
        else:
            sink.write(text.encode(encoding))
    except (OSError, ValueError, TypeError, UnicodeError) as e:
        raise WriteError(target=type(sink).__name__, reason=str(e)) from e
