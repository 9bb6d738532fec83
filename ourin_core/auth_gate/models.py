"""
Auth Gate Models
================
State enums and snapshots for the client-side auth gate.
"""

from dataclasses import dataclass
from enum import Enum


class AuthStatus(str, Enum):
    """Client authentication status."""
    UNKNOWN = "unknown"                  # Provider still restoring its session
    AUTHENTICATING = "authenticating"    # Anonymous sign-in in flight
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AuthGateFailure(str, Enum):
    """Why the last gated call resolved to False."""
    SIGN_IN_FAILED = "sign_in_failed"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class AuthSnapshot:
    """One state report from the auth provider."""
    is_authenticated: bool
    is_loading: bool
