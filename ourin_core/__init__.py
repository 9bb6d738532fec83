"""
Ourin Core Library
==================
Chat-session token protocol and anonymous auth gate for Ourin services.
"""

__version__ = "0.1.0"

# Configuration
from ourin_core.config import ChatAuthConfig, AuthGateConfig

# Errors
from ourin_core.errors import (
    ChatAuthError,
    ConfigurationError,
    InvalidIdentityError,
    InvalidTimestampError,
    unauthorized_message,
)

# Chat Token
from ourin_core.chat_token import (
    ChatTokenIssuer,
    ChatTokenVerifier,
    IssuedToken,
    TokenVerificationError,
    VerificationResult,
    issue_token,
    verify_token,
    create_auth_headers,
    extract_chat_token,
    FRESHNESS_WINDOW_MS,
)

# Auth Gate
from ourin_core.auth_gate import (
    AuthGate,
    AuthGateFailure,
    AuthProvider,
    AuthSnapshot,
    AuthStatus,
)

__all__ = [
    # Configuration
    "ChatAuthConfig",
    "AuthGateConfig",
    # Errors
    "ChatAuthError",
    "ConfigurationError",
    "InvalidIdentityError",
    "InvalidTimestampError",
    "unauthorized_message",
    # Chat Token
    "ChatTokenIssuer",
    "ChatTokenVerifier",
    "IssuedToken",
    "TokenVerificationError",
    "VerificationResult",
    "issue_token",
    "verify_token",
    "create_auth_headers",
    "extract_chat_token",
    "FRESHNESS_WINDOW_MS",
    # Auth Gate
    "AuthGate",
    "AuthGateFailure",
    "AuthProvider",
    "AuthSnapshot",
    "AuthStatus",
]
