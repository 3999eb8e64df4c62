"""
Webhook transport authentication.

GitHub signs every delivery with HMAC-SHA256 over the raw request body using
the shared webhook secret and sends the result as ``sha256=<hex>``.
"""

import hashlib
import hmac

from pbom.core.constants import WEBHOOK_SIGNATURE_PREFIX


class SignatureError(ValueError):
    """Raised when a webhook signature cannot be verified."""


def generate_signature(secret: str, payload: bytes) -> str:
    """
    Generate the signature header value for a payload.

    Args:
        secret: Shared webhook secret
        payload: Raw request body

    Returns:
        Header value of the form ``sha256=<hex digest>``
    """
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"{WEBHOOK_SIGNATURE_PREFIX}={digest}"


def verify_signature(payload: bytes, signature: str, secret: str) -> None:
    """
    Validate a webhook HMAC-SHA256 signature.

    Args:
        payload: Raw request body exactly as received
        signature: Value of the signature header
        secret: Shared webhook secret

    Raises:
        SignatureError: With the specific reason the signature was rejected
    """
    if not secret:
        raise SignatureError("webhook secret is empty")
    if not signature:
        raise SignatureError("signature header is empty")

    algorithm, sep, hex_digest = signature.partition("=")
    if not sep or algorithm != WEBHOOK_SIGNATURE_PREFIX:
        raise SignatureError("invalid signature format: expected sha256=<hex>")

    try:
        received = bytes.fromhex(hex_digest)
    except ValueError as e:
        raise SignatureError(f"invalid signature hex: {e}") from e

    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    if not hmac.compare_digest(received, expected):
        raise SignatureError("signature mismatch")

