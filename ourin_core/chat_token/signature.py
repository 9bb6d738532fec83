"""
Signature Functions
===================
HMAC signing and the wire codec shared by the chat token issuer and verifier.

Wire format:
    base64("{identity}:{issued_at_ms}:{signature_hex}")
"""

import base64
import binascii
import hashlib
import hmac
import re
import time

from .models import TokenParts

# Configuration
FRESHNESS_WINDOW_MS = 300_000  # 5 minutes
FIELD_DELIMITER = ":"
SIGNATURE_ALGORITHM = "sha256"
SIGNATURE_HEX_LENGTH = 64

# Epoch milliseconds fit in 16 digits until the year 318857
TIMESTAMP_MAX_DIGITS = 16
_TIMESTAMP_RE = re.compile(rf"[0-9]{{1,{TIMESTAMP_MAX_DIGITS}}}")


class MalformedTokenError(ValueError):
    """Raised by decode_token when a token cannot be parsed."""
    pass


def now_millis() -> int:
    """Current UTC epoch time in milliseconds."""
    return time.time_ns() // 1_000_000


def signing_payload(identity: str, issued_at_ms: int) -> str:
    """Message covered by the signature."""
    return f"{identity}{FIELD_DELIMITER}{issued_at_ms}"


def compute_signature(secret: str, identity: str, issued_at_ms: int) -> str:
    """
    Compute the HMAC-SHA256 signature binding an identity to a timestamp.

    Args:
        secret: Shared server secret
        identity: User identity
        issued_at_ms: Epoch milliseconds at issuance

    Returns:
        Lowercase hex-encoded HMAC-SHA256 digest (64 chars)
    """
    return hmac.new(
        secret.encode(),
        signing_payload(identity, issued_at_ms).encode(),
        hashlib.sha256,
    ).hexdigest()


def signatures_match(expected: str, provided: str) -> bool:
    """Compare signatures in constant time."""
    return hmac.compare_digest(expected.encode(), provided.encode())


def encode_token(identity: str, issued_at_ms: int, signature: str) -> str:
    raw = FIELD_DELIMITER.join((identity, str(issued_at_ms), signature))
    return base64.b64encode(raw.encode()).decode("ascii")


def decode_token(token: str) -> TokenParts:
    """
    Decode and split a chat token without checking its signature.

    Args:
        token: Token string as received from the client

    Returns:
        Parsed token fields

    Raises:
        MalformedTokenError: If the token is not valid base64, not UTF-8,
            does not have exactly three fields, or has a timestamp that is not
            a non-negative integer of at most TIMESTAMP_MAX_DIGITS digits
    """
    if not isinstance(token, str) or not token:
        raise MalformedTokenError("token must be a non-empty string")

    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise MalformedTokenError(f"token is not valid base64: {e}") from e

    parts = decoded.split(FIELD_DELIMITER)
    if len(parts) != 3:
        raise MalformedTokenError(f"expected 3 fields, got {len(parts)}")

    identity, timestamp_str, signature = parts
    if not _TIMESTAMP_RE.fullmatch(timestamp_str):
        raise MalformedTokenError("timestamp is not a non-negative integer")

    return TokenParts(
        identity=identity,
        issued_at_ms=int(timestamp_str),
        signature=signature,
    )
