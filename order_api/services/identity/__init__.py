"""
Token Verifier Factory

Returns the mock or Firebase verifier based on ENV_MODE.
"""

import logging
from functools import lru_cache

from order_api.core.config import get_settings
from order_api.services.identity.base import (
    BaseTokenVerifier,
    TokenVerificationError,
    VerifiedIdentity,
)
from order_api.services.identity.mock import MockTokenVerifier

logger = logging.getLogger(__name__)


@lru_cache()
def get_token_verifier() -> BaseTokenVerifier:
    """
    Get the configured token verifier.

    Raises:
        ValueError: If production mode but no service account configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Token Verifier: Using MockTokenVerifier (development mode)")
        return MockTokenVerifier(prefix=settings.mock_token_prefix)

    # The Firebase SDK is only imported outside development
    from order_api.services.identity.firebase import FirebaseTokenVerifier

    logger.info(f"Token Verifier: Using FirebaseTokenVerifier ({settings.env_mode.value} mode)")
    return FirebaseTokenVerifier()


def reset_token_verifier() -> None:
    """Clear the cached verifier instance."""
    get_token_verifier.cache_clear()


__all__ = [
    "get_token_verifier",
    "reset_token_verifier",
    "BaseTokenVerifier",
    "TokenVerificationError",
    "VerifiedIdentity",
    "MockTokenVerifier",
]
