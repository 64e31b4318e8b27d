"""HMAC-SHA256 signatures for webhook payloads.

Receivers verify a delivery by recomputing the HMAC over the raw request
body with their copy of the secret and comparing it to the
``X-Webhook-Signature`` header.
"""

from __future__ import annotations

import hashlib
import hmac

from hookrelay.exceptions import SigningError

SIGNATURE_PREFIX = "sha256="


def _to_bytes(value: bytes | str, what: str) -> bytes:
    if isinstance(value, bytes):
        return value
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise SigningError(f"Cannot encode {what} as UTF-8: {e}") from e


def compute_signature(payload: bytes | str, secret: bytes | str) -> str:
    """Compute HMAC-SHA256 signature for a webhook payload.

    Args:
        payload: The exact body bytes that will be transmitted. Strings are
            encoded as UTF-8.
        secret: Shared secret, used as raw key bytes.

    Returns:
        Signature in format "sha256=<hex_digest>".

    Raises:
        SigningError: If the payload or secret cannot be turned into bytes.
    """
    signature = hmac.new(
        key=_to_bytes(secret, "secret"),
        msg=_to_bytes(payload, "payload"),
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{signature}"


def verify_signature(payload: bytes | str, secret: bytes | str, signature: str) -> bool:
    """Verify HMAC-SHA256 signature for a webhook payload.

    Args:
        payload: Body that was signed.
        secret: Shared secret for HMAC.
        signature: Signature to verify (format: "sha256=<hex_digest>").

    Returns:
        True if signature is valid, False otherwise.
    """
    try:
        expected = compute_signature(payload, secret)
    except SigningError:
        return False
    return hmac.compare_digest(expected, signature)
