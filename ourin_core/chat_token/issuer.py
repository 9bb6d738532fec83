"""
Chat Token Issuer
=================
Stamps an already-authenticated identity with a signed, short-lived token.

The issuer does not authenticate anyone. Callers must establish the identity
through the auth provider's own session before asking for a token.
"""

from typing import Callable, Optional
import structlog

from ..config import SECRET_ENV_VAR, ChatAuthConfig
from ..errors import ConfigurationError, InvalidIdentityError, InvalidTimestampError
from .models import IssuedToken
from .signature import (
    FIELD_DELIMITER,
    TIMESTAMP_MAX_DIGITS,
    compute_signature,
    encode_token,
    now_millis,
)

logger = structlog.get_logger(__name__)


def _check_identity(identity: str) -> None:
    if not isinstance(identity, str) or not identity:
        raise InvalidIdentityError("identity must be a non-empty string")
    if FIELD_DELIMITER in identity:
        raise InvalidIdentityError(
            f"identity must not contain the field delimiter {FIELD_DELIMITER!r}"
        )


def _check_timestamp(issued_at_ms: int) -> None:
    # bool is an int subclass and would render as "True"
    if type(issued_at_ms) is not int or not 0 <= issued_at_ms < 10 ** TIMESTAMP_MAX_DIGITS:
        raise InvalidTimestampError(
            f"issued_at_ms must be a non-negative int of at most "
            f"{TIMESTAMP_MAX_DIGITS} digits, got {issued_at_ms!r}"
        )


def _check_secret(secret: Optional[str]) -> str:
    if not secret:
        raise ConfigurationError(f"{SECRET_ENV_VAR} environment variable is not set")
    return secret


def issue_token(
    identity: str,
    secret: str,
    issued_at_ms: Optional[int] = None,
) -> str:
    """
    Issue a signed chat token.

    Args:
        identity: Authenticated user identity (no ':' allowed)
        secret: Shared server secret
        issued_at_ms: Issuance time in epoch milliseconds (defaults to now)

    Returns:
        Base64-encoded token string

    Raises:
        ConfigurationError: If the secret is missing
        InvalidIdentityError: If the identity is empty or contains ':'
        InvalidTimestampError: If issued_at_ms is not a non-negative int
    """
    secret = _check_secret(secret)
    _check_identity(identity)

    if issued_at_ms is None:
        issued_at_ms = now_millis()
    _check_timestamp(issued_at_ms)

    signature = compute_signature(secret, identity, issued_at_ms)
    return encode_token(identity, issued_at_ms, signature)


class ChatTokenIssuer:
    """
    Issues chat tokens with a fixed secret.

    Example:
        issuer = ChatTokenIssuer(secret=settings.CHAT_AUTH_SECRET)
        issued = issuer.generate_chat_token(user_id)
        return issued.to_dict()
    """

    def __init__(self, secret: str, clock: Callable[[], int] = now_millis):
        self.secret = _check_secret(secret)
        self.clock = clock

    @classmethod
    def from_config(cls, config: Optional[ChatAuthConfig] = None) -> "ChatTokenIssuer":
        """Build an issuer from configuration, failing loudly without a secret."""
        config = config or ChatAuthConfig()
        return cls(config.require_secret())

    def issue(self, identity: str) -> str:
        """Issue a token for the identity at the current clock reading."""
        return self.generate_chat_token(identity).token

    def generate_chat_token(self, identity: str) -> IssuedToken:
        """
        Issue a token and return it with its timestamp.

        Args:
            identity: Identity already authenticated by the auth provider

        Returns:
            IssuedToken ready to be returned to the client
        """
        timestamp = self.clock()
        token = issue_token(identity, self.secret, issued_at_ms=timestamp)

        logger.debug(
            "chat_token_issued",
            identity=identity[:8],
            timestamp=timestamp,
        )
        return IssuedToken(token=token, timestamp=timestamp)
