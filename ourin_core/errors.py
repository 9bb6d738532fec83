"""
Chat Auth Errors
================
Exception types and user-facing error responses for chat token auth.

Token rejections are never raised by the verifier; they are mapped to
401 responses here so every API boundary answers with the same wording.
"""

import logging
from typing import Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ChatAuthError(Exception):
    """Base exception for chat auth failures."""
    pass


class ConfigurationError(ChatAuthError):
    """Raised when the shared secret is missing. Indicates a deployment defect."""
    pass


class InvalidIdentityError(ChatAuthError, ValueError):
    """Raised when an identity cannot be embedded in a token."""
    pass


class InvalidTimestampError(ChatAuthError, ValueError):
    """Raised when an issuance time is not a non-negative integer of milliseconds."""
    pass


NO_TOKEN_MESSAGE = "Unauthorized - no token provided"
SIGN_IN_REQUIRED_MESSAGE = "Unauthorized - please sign in"
NOT_AUTHENTICATED_MESSAGE = "Not authenticated - please sign in"
CONFIGURATION_MESSAGE = "Server authentication is misconfigured"

# Keyed by TokenVerificationError values
REASON_MESSAGES = {
    "expired": "Unauthorized - token expired",
    "invalid_signature": "Unauthorized - invalid token signature",
    "malformed_token": "Unauthorized - malformed token",
}


def unauthorized_message(
    reason: Optional[str],
    fallback: str = "Unauthorized - invalid token",
) -> str:
    """
    Map a verification failure reason to a user-facing message.

    Args:
        reason: Rejection reason (enum member or its string value)
        fallback: Message for reasons without a specific wording

    Returns:
        Message suitable for a 401 response body
    """
    if reason is None:
        return fallback
    key = getattr(reason, "value", reason)
    return REASON_MESSAGES.get(key, fallback)


def create_unauthorized_error(
    reason: Optional[str] = None,
    fallback: str = "Unauthorized - invalid token",
) -> HTTPException:
    """Create a 401 HTTPException for a rejected chat token."""
    return HTTPException(
        status_code=401,
        detail={"error": unauthorized_message(reason, fallback)},
    )


def create_configuration_error(log_message: str = None) -> HTTPException:
    """
    Create a 500 HTTPException for a missing secret.

    The technical detail is logged, never returned to the client.
    """
    if log_message:
        logger.error(f"[CONFIG_ERROR] {log_message}")

    return HTTPException(
        status_code=500,
        detail={"error": CONFIGURATION_MESSAGE, "code": "CONFIG_ERROR"},
    )
