"""
Custom exceptions for tabular-exchange operations.

This module defines a hierarchy of exceptions for the failure kinds a
codec or renderer can surface. All exceptions inherit from
TabularExchangeError so callers can translate any failure into their own
transport-level response with a single except clause.

Example:
    try:
        service.parse_file("upload.xlsx", password="secret")
    except PasswordVerificationError as e:
        logger.warning(f"Bad password for: {e.details}")
    except TabularExchangeError as e:
        logger.error(f"General error: {e}")
"""

from typing import Any


class TabularExchangeError(Exception):
    """
    Base exception for all tabular-exchange errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code for API responses.
        details: Optional additional context about the error.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "TABULAR_EXCHANGE_ERROR",
        details: dict | None = None,
    ) -> None:
        """
        Initialize the TabularExchangeError.

        Args:
            message: Human-readable error description.
            error_code: Machine-readable error code for API responses.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """
        Convert exception to a dictionary for API responses.

        Returns:
            Dictionary containing error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class UnsupportedFormatError(TabularExchangeError):
    """
    Raised for an unrecognized file extension or export format.

    Attributes:
        requested: The extension or format name that was requested.
        supported: Formats accepted in this context.
    """

    def __init__(
        self,
        requested: str,
        supported: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.requested = requested
        self.supported = supported or []
        self.reason = reason

        message = f"Unsupported format: {requested or '(none)'}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="UNSUPPORTED_FORMAT",
            details={
                "requested": requested,
                "supported": self.supported,
                "reason": reason,
            },
        )


class UnsupportedSourceError(TabularExchangeError):
    """Raised when an object cannot be adapted as a tabular source."""

    def __init__(self, source_type: str) -> None:
        self.source_type = source_type
        super().__init__(
            message=f"Unsupported tabular source type: {source_type}",
            error_code="UNSUPPORTED_SOURCE",
            details={"source_type": source_type},
        )


class SourceStateError(TabularExchangeError):
    """
    Raised when a source is asked to do something its variant cannot.

    The forward-only query cursor cannot be rewound once rows have been
    consumed.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        super().__init__(
            message=f"Cannot {operation}: {reason}",
            error_code="SOURCE_STATE",
            details={"operation": operation, "reason": reason},
        )


class InvalidRowError(TabularExchangeError):
    """Raised when a source row cannot be turned into the requested record."""

    def __init__(self, row: int, reason: str) -> None:
        self.row = row
        super().__init__(
            message=f"Row {row} is invalid: {reason}",
            error_code="INVALID_ROW",
            details={"row": row, "reason": reason},
        )


class IOFailureError(TabularExchangeError):
    """
    Raised when reading an input stream or writing an output sink fails.

    Attributes:
        target: Path or stream description involved.
        operation: The I/O operation that failed.
    """

    def __init__(
        self,
        target: str,
        operation: str = "access",
        reason: str | None = None,
        error_code: str = "IO_FAILURE",
    ) -> None:
        self.target = target
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation}: {target}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code=error_code,
            details={
                "target": target,
                "operation": operation,
                "reason": reason,
            },
        )


class InputFileNotFoundError(IOFailureError):
    """Raised when the file to parse does not exist."""

    def __init__(self, file_path: str) -> None:
        super().__init__(
            target=file_path,
            operation="open",
            reason="file not found",
            error_code="FILE_NOT_FOUND",
        )


class ReadError(IOFailureError):
    """Raised when an input stream cannot be read."""

    def __init__(self, target: str, operation: str = "read", reason: str | None = None) -> None:
        super().__init__(target, operation, reason, error_code="READ_ERROR")


class WriteError(IOFailureError):
    """
    Raised when an output sink cannot be written.

    This covers existing-file guards, disk write failures and library
    errors raised while serializing a workbook.
    """

    def __init__(self, target: str, operation: str = "write", reason: str | None = None) -> None:
        super().__init__(target, operation, reason, error_code="WRITE_ERROR")


class OutputPermissionError(IOFailureError):
    """Raised when the output location is not writable."""

    def __init__(self, target: str, operation: str = "write") -> None:
        super().__init__(
            target=target,
            operation=operation,
            reason="permission denied",
            error_code="PERMISSION_DENIED",
        )


class DecodeError(TabularExchangeError):
    """
    Base class for failures raised while decoding a container.

    Attributes:
        stage: Decode stage in which the failure happened.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.stage = stage
        merged = {"stage": stage}
        merged.update(details or {})
        super().__init__(message=message, error_code=error_code, details=merged)


class PasswordVerificationError(DecodeError):
    """Raised when the password does not match the container's verifier."""

    def __init__(self, container: str, stage: str | None = None) -> None:
        self.container = container
        super().__init__(
            message=f"Password verification failed for {container} container",
            error_code="PASSWORD_VERIFICATION_FAILED",
            stage=stage,
            details={"container": container},
        )


class MalformedContainerError(DecodeError):
    """
    Raised when the bytes are not a valid container of the claimed kind.

    Also raised when a verified key fails to decrypt the payload.
    """

    def __init__(
        self,
        container: str,
        reason: str | None = None,
        stage: str | None = None,
    ) -> None:
        self.container = container
        self.reason = reason

        message = f"Malformed {container} container"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="MALFORMED_CONTAINER",
            stage=stage,
            details={"container": container, "reason": reason},
        )


class UnsupportedCellContentError(DecodeError):
    """
    Raised when a sheet holds a formula or error cell.

    Formula results are not equivalent to stored values, so the whole
    parse fails rather than returning coerced rows.

    Attributes:
        row: 0-based row of the offending cell.
        column: 0-based column of the offending cell.
        cell_type: "formula" or "error".
    """

    def __init__(
        self,
        row: int,
        column: int,
        cell_type: str,
        stage: str | None = None,
    ) -> None:
        self.row = row
        self.column = column
        self.cell_type = cell_type
        super().__init__(
            message=f"{cell_type} present at row {row}, column {column}; parsing cannot proceed",
            error_code="UNSUPPORTED_CELL_CONTENT",
            stage=stage,
            details={"row": row, "column": column, "cell_type": cell_type},
        )
