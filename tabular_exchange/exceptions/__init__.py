"""
Custom exceptions for tabular-exchange.

Provides type-safe, descriptive exceptions for every failure kind a codec
or renderer can surface.
"""

from tabular_exchange.exceptions.exchange_exceptions import (
    DecodeError,
    InputFileNotFoundError,
    InvalidRowError,
    IOFailureError,
    MalformedContainerError,
    OutputPermissionError,
    PasswordVerificationError,
    ReadError,
    SourceStateError,
    TabularExchangeError,
    UnsupportedCellContentError,
    UnsupportedFormatError,
    UnsupportedSourceError,
    WriteError,
)

__all__ = [
    "TabularExchangeError",
    "UnsupportedFormatError",
    "UnsupportedSourceError",
    "SourceStateError",
    "InvalidRowError",
    "IOFailureError",
    "InputFileNotFoundError",
    "ReadError",
    "WriteError",
    "OutputPermissionError",
    "DecodeError",
    "PasswordVerificationError",
    "MalformedContainerError",
    "UnsupportedCellContentError",
]
