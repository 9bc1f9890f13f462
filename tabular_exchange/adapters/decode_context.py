"""
Per-call decode context.

A DecodeContext carries the optional password for exactly one decode call
and tracks the decode state machine:

    Start -> ContainerOpened -> [KeyDerived -> PasswordVerified ->
    PayloadDecrypted] -> WorkbookParsed -> SheetSelected ->
    RowsMaterialized -> Done

The password is dropped when the context exits, whether the decode
succeeded or failed. Contexts are never shared between calls or threads.
"""

from typing import BinaryIO

from tabular_exchange.exceptions.exchange_exceptions import ReadError
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import DecodeStage

logger = get_logger(__name__)


class DecodeContext:
    """
    Scoped decode state for one container.

    Attributes:
        container: Container kind being decoded ("xls" or "xlsx").
        stage: Last stage reached.
    """

    def __init__(self, container: str, password: str | None = None) -> None:
        self.container = container
        self.stage = DecodeStage.START
        self._password = password

    def __enter__(self) -> "DecodeContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.clear_password()
        if exc is not None:
            logger.debug("%s decode aborted after stage %s", self.container, self.stage.value)

    @property
    def has_password(self) -> bool:
        return self._password is not None

    @property
    def password(self) -> str:
        if self._password is None:
            raise RuntimeError("No password in this decode context")
        return self._password

    def clear_password(self) -> None:
        self._password = None

    def advance(self, stage: DecodeStage) -> None:
        self.stage = stage
        logger.debug("%s decode stage: %s", self.container, stage.value)


def read_payload(data: bytes | BinaryIO) -> bytes:
    """
    Return the full contents of a byte string or a readable binary stream.

    Raises:
        ReadError: If the stream cannot be read.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    try:
        payload = data.read()
    except (OSError, ValueError) as e:
        raise ReadError(target=type(data).__name__, reason=str(e)) from e
    if not isinstance(payload, (bytes, bytearray)):
        raise ReadError(target=type(data).__name__, reason="stream did not return bytes")
    return bytes(payload)
