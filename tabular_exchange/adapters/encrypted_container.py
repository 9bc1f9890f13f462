"""
Password handling for encrypted workbook containers.

Both workbook codecs route a password-protected decode through
``decrypt_payload()``. It opens the container with msoffcrypto-tool,
derives the key from the password held by the DecodeContext, verifies it
against the container's stored verifier and returns the decrypted bytes.
The password is cleared from the context as soon as the key is derived.
"""

import io

import msoffcrypto
from msoffcrypto import exceptions as crypto_exceptions
from msoffcrypto.format.ooxml import OOXMLFile

from tabular_exchange.adapters.decode_context import DecodeContext
from tabular_exchange.exceptions.exchange_exceptions import (
    MalformedContainerError,
    PasswordVerificationError,
)
from tabular_exchange.logging_config import get_logger
from tabular_exchange.models.tabular_models import DecodeStage

logger = get_logger(__name__)


def decrypt_payload(data: bytes, context: DecodeContext) -> bytes:
    """
    Decrypt ``data`` with the password carried by ``context``.

    A container that turns out not to be encrypted is returned unchanged.

    Args:
        data: Raw container bytes.
        context: Decode context holding the password.

    Returns:
        The decrypted workbook bytes.

    Raises:
        PasswordVerificationError: If the password does not match.
        MalformedContainerError: If the container cannot be opened or decrypted.
    """
    try:
        office_file = msoffcrypto.OfficeFile(io.BytesIO(data))
        encrypted = office_file.is_encrypted()
    except Exception as e:
        raise MalformedContainerError(
            container=context.container,
            reason=f"not an encrypted package: {e}",
            stage=DecodeStage.CONTAINER_OPENED.value,
        ) from e

    if not encrypted:
        logger.debug("%s container is not encrypted; ignoring password", context.container)
        context.clear_password()
        return data

    password = context.password
    context.clear_password()
    if not password:
        raise PasswordVerificationError(
            container=context.container,
            stage=DecodeStage.PASSWORD_VERIFIED.value,
        )

    try:
        if isinstance(office_file, OOXMLFile):
            office_file.load_key(password=password, verify_password=True)
        else:
            # Legacy workbooks always verify while loading the key
            office_file.load_key(password=password)
    except crypto_exceptions.InvalidKeyError as e:
        raise PasswordVerificationError(
            container=context.container,
            stage=DecodeStage.PASSWORD_VERIFIED.value,
        ) from e
    except Exception as e:
        raise MalformedContainerError(
            container=context.container,
            reason=f"key derivation failed: {e}",
            stage=DecodeStage.KEY_DERIVED.value,
        ) from e
    context.advance(DecodeStage.KEY_DERIVED)
    context.advance(DecodeStage.PASSWORD_VERIFIED)

    decrypted = io.BytesIO()
    try:
        office_file.decrypt(decrypted)
    except crypto_exceptions.InvalidKeyError as e:
        raise PasswordVerificationError(
            container=context.container,
            stage=DecodeStage.PAYLOAD_DECRYPTED.value,
        ) from e
    except Exception as e:
        raise MalformedContainerError(
            container=context.container,
            reason=f"decryption failed: {e}",
            stage=DecodeStage.PAYLOAD_DECRYPTED.value,
        ) from e
    context.advance(DecodeStage.PAYLOAD_DECRYPTED)
    return decrypted.getvalue()
