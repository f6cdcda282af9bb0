"""
Mock Token Verifier

Accepts development tokens without contacting an identity provider.
Used in development mode (ENV_MODE=development) and in tests.

Accepted tokens:
    - Any key of the explicit ``tokens`` table (token -> uid)
    - ``<prefix><uid>`` with a non-empty uid, e.g. "mock-token-alice"
"""

import logging
from typing import Optional

from order_api.services.identity.base import (
    BaseTokenVerifier,
    TokenVerificationError,
    VerifiedIdentity,
)

logger = logging.getLogger(__name__)


class MockTokenVerifier(BaseTokenVerifier):
    """
    Mock implementation of the token verifier.

    Example:
        >>> verifier = MockTokenVerifier(prefix="mock-token-")
        >>> (await verifier.verify_token("mock-token-alice")).uid
        'alice'
    """

    def __init__(
        self,
        tokens: Optional[dict[str, str]] = None,
        prefix: Optional[str] = "mock-token-",
    ):
        self._tokens = dict(tokens or {})
        self._prefix = prefix

        logger.info(
            f"MockTokenVerifier initialized "
            f"(prefix={prefix!r}, {len(self._tokens)} fixed tokens)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    async def verify_token(self, token: str) -> VerifiedIdentity:
        if token in self._tokens:
            uid = self._tokens[token]
            return VerifiedIdentity(uid=uid, claims={"uid": uid, "provider": "mock"})

        if self._prefix and token.startswith(self._prefix):
            uid = token[len(self._prefix):]
            if uid:
                return VerifiedIdentity(uid=uid, claims={"uid": uid, "provider": "mock"})

        logger.debug("Mock: rejected token")
        raise TokenVerificationError("Unknown mock token")

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        return True
