"""
Header Functions
================
Functions for attaching chat tokens to requests and extracting them again.
"""

from typing import Any, Dict, Mapping, Optional

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "
BODY_FIELD = "chatToken"


def create_auth_headers(token: str) -> Dict[str, str]:
    """
    Create headers carrying a chat token.

    Args:
        token: Token from generate_chat_token

    Returns:
        Dictionary of headers to include in the request
    """
    return {AUTHORIZATION_HEADER: f"{BEARER_PREFIX}{token}"}


def _header_token(headers: Mapping[str, str]) -> Optional[str]:
    value = headers.get(AUTHORIZATION_HEADER)
    if value is None:
        value = headers.get(AUTHORIZATION_HEADER.lower())
    if not value or not value.startswith(BEARER_PREFIX):
        return None
    token = value[len(BEARER_PREFIX):].strip()
    return token or None


def extract_chat_token(
    headers: Mapping[str, str],
    body: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """
    Extract a chat token from a request.

    The ``Authorization: Bearer`` header takes precedence; the ``chatToken``
    body field is the fallback.

    Args:
        headers: Request headers
        body: Parsed JSON body, if any

    Returns:
        Token string, or None if the request carries none
    """
    token = _header_token(headers)
    if token:
        return token

    if isinstance(body, Mapping):
        candidate = body.get(BODY_FIELD)
        if isinstance(candidate, str) and candidate:
            return candidate

    return None
