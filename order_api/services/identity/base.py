"""
Token Verifier Abstract Base Class

Defines the interface contract for identity-token verification.
Both MockTokenVerifier and FirebaseTokenVerifier must implement these methods.

Contract:
    verify_token(token) -> VerifiedIdentity, or raise TokenVerificationError
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class TokenVerificationError(Exception):
    """The token was rejected, malformed or could not be checked."""


@dataclass
class VerifiedIdentity:
    """
    Result of a successful token verification.

    Attributes:
        uid: Stable subject identifier of the caller
        claims: Decoded token claims as returned by the provider
    """
    uid: str
    claims: dict[str, Any] = field(default_factory=dict)


class BaseTokenVerifier(ABC):
    """Abstract base class for identity-token verifiers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., "mock", "firebase")."""
        pass

    @abstractmethod
    async def verify_token(self, token: str) -> VerifiedIdentity:
        """
        Verify a bearer token.

        Args:
            token: Raw token string from the Authorization header

        Returns:
            VerifiedIdentity: The resolved caller

        Raises:
            TokenVerificationError: On any verification failure
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that the verifier is usable."""
        pass
