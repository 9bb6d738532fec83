"""
Chat Token Models
=================
Data models and enums for chat token issuance and verification.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass
from enum import Enum


class TokenVerificationError(str, Enum):
    """Reasons a chat token is rejected."""
    MALFORMED_TOKEN = "malformed_token"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    CONFIGURATION_ERROR = "configuration_error"


@dataclass(frozen=True)
class TokenParts:
    """Decoded fields of a chat token."""
    identity: str
    issued_at_ms: int
    signature: str


@dataclass(frozen=True)
class VerificationResult:
    """Result of verifying a chat token."""
    valid: bool
    identity: Optional[str] = None
    reason: Optional[TokenVerificationError] = None

    @classmethod
    def accept(cls, identity: str) -> "VerificationResult":
        return cls(valid=True, identity=identity)

    @classmethod
    def reject(cls, reason: TokenVerificationError) -> "VerificationResult":
        return cls(valid=False, reason=reason)


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued chat token as returned to the client."""
    token: str
    timestamp: int
    is_authenticated: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "timestamp": self.timestamp,
            "isAuthenticated": self.is_authenticated,
        }
