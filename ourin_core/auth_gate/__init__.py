"""
Anonymous Auth Gate
===================
Client-side coordinator that coalesces anonymous sign-in across callers.
"""

from .models import AuthStatus, AuthGateFailure, AuthSnapshot
from .provider import AuthProvider
from .gate import AuthGate

__all__ = [
    # Models
    "AuthStatus",
    "AuthGateFailure",
    "AuthSnapshot",
    # Provider
    "AuthProvider",
    # Gate
    "AuthGate",
]
