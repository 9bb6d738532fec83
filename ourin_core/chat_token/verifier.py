"""
Chat Token Verifier
===================
Stateless verification of chat tokens at API boundaries.

Every rejection is returned as a VerificationResult; hostile input never
raises. Tokens dated in the future (negative age) are accepted as clock
skew between issuer and verifier.
"""

from typing import Callable, Optional
import structlog

from ..config import SECRET_ENV_VAR, ChatAuthConfig
from .models import TokenVerificationError, VerificationResult
from .signature import (
    FRESHNESS_WINDOW_MS,
    MalformedTokenError,
    compute_signature,
    decode_token,
    now_millis,
    signatures_match,
)

logger = structlog.get_logger(__name__)


def verify_token(
    token: str,
    secret: str,
    now_ms: Optional[int] = None,
    window_ms: int = FRESHNESS_WINDOW_MS,
) -> VerificationResult:
    """
    Verify a chat token.

    Args:
        token: Token string from the request
        secret: Shared server secret
        now_ms: Verification time in epoch milliseconds (defaults to now)
        window_ms: Maximum accepted token age, inclusive

    Returns:
        VerificationResult with the identity on success, or the rejection reason
    """
    if not secret:
        logger.error("chat_token_secret_missing", env_var=SECRET_ENV_VAR)
        return VerificationResult.reject(TokenVerificationError.CONFIGURATION_ERROR)

    try:
        parts = decode_token(token)
    except MalformedTokenError as e:
        logger.debug("chat_token_malformed", error=str(e))
        return VerificationResult.reject(TokenVerificationError.MALFORMED_TOKEN)

    if now_ms is None:
        now_ms = now_millis()

    # Computed for stale tokens too; cost must not depend on age.
    expected = compute_signature(secret, parts.identity, parts.issued_at_ms)
    signature_ok = signatures_match(expected, parts.signature)

    age_ms = now_ms - parts.issued_at_ms
    if age_ms > window_ms:
        return VerificationResult.reject(TokenVerificationError.EXPIRED)

    if not signature_ok:
        return VerificationResult.reject(TokenVerificationError.INVALID_SIGNATURE)

    if age_ms < 0:
        logger.debug("chat_token_future_dated", skew_ms=-age_ms)

    return VerificationResult.accept(parts.identity)


class ChatTokenVerifier:
    """
    Verifies chat tokens with a fixed secret and clock.

    Example:
        verifier = ChatTokenVerifier(secret=settings.CHAT_AUTH_SECRET)
        result = verifier.verify(token)
        if not result.valid:
            raise create_unauthorized_error(result.reason)
    """

    def __init__(
        self,
        secret: str,
        window_ms: int = FRESHNESS_WINDOW_MS,
        clock: Callable[[], int] = now_millis,
    ):
        self.secret = secret
        self.window_ms = window_ms
        self.clock = clock

    @classmethod
    def from_config(cls, config: Optional[ChatAuthConfig] = None) -> "ChatTokenVerifier":
        """
        Build a verifier from configuration.

        A verifier without a secret is still returned; it rejects every
        token with ``configuration_error`` instead of failing the request.
        """
        config = config or ChatAuthConfig()
        return cls(config.secret, window_ms=config.freshness_window_ms)

    def verify(self, token: str) -> VerificationResult:
        """Verify a token against this verifier's secret at the current time."""
        result = verify_token(
            token,
            self.secret,
            now_ms=self.clock(),
            window_ms=self.window_ms,
        )
        if not result.valid:
            logger.info("chat_token_rejected", reason=result.reason.value)
        return result
