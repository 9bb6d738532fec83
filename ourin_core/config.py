"""
Chat Auth Configuration
=======================
Configuration for the chat token protocol and the anonymous auth gate.
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError

SECRET_ENV_VAR = "CHAT_AUTH_SECRET"


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class ChatAuthConfig:
    """Server-side configuration shared by the issuer and verifier."""
    secret: str = os.environ.get(SECRET_ENV_VAR, "")
    freshness_window_ms: int = int(os.environ.get("CHAT_TOKEN_MAX_AGE_MS", "300000"))
    anonymous_identity: str = "anonymous"

    def require_secret(self) -> str:
        """
        Return the configured secret.

        Raises:
            ConfigurationError: If no secret is configured
        """
        if not self.secret:
            raise ConfigurationError(f"{SECRET_ENV_VAR} environment variable is not set")
        return self.secret


@dataclass
class AuthGateConfig:
    """Client-side timing and behaviour of the anonymous auth gate."""
    loading_timeout: float = 10.0       # Wait for the provider to finish loading
    in_flight_timeout: float = 15.0     # Wait for another caller's sign-in (>= sign_in + propagation)
    propagation_timeout: float = 5.0    # Wait for auth state after sign-in resolves
    sign_in_timeout: float = 10.0       # Wait for the provider's sign-in call itself
    sign_in_method: str = "anonymous"
    auto_sign_in: bool = _env_flag("OURIN_AUTO_SIGN_IN", True)
