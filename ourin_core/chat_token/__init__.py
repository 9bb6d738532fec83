"""
Chat Token Protocol
===================
Short-lived HMAC tokens proving "this request comes from user U, recently".
"""

from .models import TokenVerificationError, TokenParts, VerificationResult, IssuedToken
from .signature import (
    compute_signature,
    decode_token,
    encode_token,
    now_millis,
    MalformedTokenError,
    FRESHNESS_WINDOW_MS,
    FIELD_DELIMITER,
    SIGNATURE_ALGORITHM,
)
from .issuer import ChatTokenIssuer, issue_token
from .verifier import ChatTokenVerifier, verify_token
from .headers import create_auth_headers, extract_chat_token

__all__ = [
    # Models
    "TokenVerificationError",
    "TokenParts",
    "VerificationResult",
    "IssuedToken",
    # Signature
    "compute_signature",
    "decode_token",
    "encode_token",
    "now_millis",
    "MalformedTokenError",
    "FRESHNESS_WINDOW_MS",
    "FIELD_DELIMITER",
    "SIGNATURE_ALGORITHM",
    # Issuer
    "ChatTokenIssuer",
    "issue_token",
    # Verifier
    "ChatTokenVerifier",
    "verify_token",
    # Headers
    "create_auth_headers",
    "extract_chat_token",
]
