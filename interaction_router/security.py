"""Utilities for validating Ed25519 interaction signatures."""

from __future__ import annotations

import binascii

import structlog
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from interaction_router.errors import SignatureDecodeError


SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"
PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


def _decode_hex(value: str, *, expected_length: int, label: str) -> bytes:
    try:
        decoded = binascii.unhexlify(value)
    except (binascii.Error, ValueError) as exc:
        raise SignatureDecodeError(f"{label} is not valid hex") from exc
    if len(decoded) != expected_length:
        raise SignatureDecodeError(
            f"{label} must be {expected_length} bytes, got {len(decoded)}"
        )
    return decoded


def verify_signature(
    *, public_key: str, timestamp: str | None, body: bytes, signature: str | None
) -> bool:
    """Return True when *signature* signs ``timestamp + body`` under *public_key*.

    Missing headers yield False before any decoding happens. Malformed hex
    raises :class:`SignatureDecodeError`; a well-formed signature that does not
    verify yields False.
    """

    if not timestamp or not signature:
        return False

    key_bytes = _decode_hex(public_key, expected_length=PUBLIC_KEY_LENGTH, label="Public key")
    signature_bytes = _decode_hex(signature, expected_length=SIGNATURE_LENGTH, label="Signature")

    message = timestamp.encode("utf-8") + body

    try:
        VerifyKey(key_bytes).verify(message, signature_bytes)
    except BadSignatureError as exc:
        structlog.get_logger().warning("invalid_signature_received", error=str(exc))
        return False
    return True
