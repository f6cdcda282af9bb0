"""
Bearer-token authentication gate.

Resolves the caller identity for protected routes:
    - No ``Authorization: Bearer <token>`` header -> 401 "No token provided"
    - Token rejected by the verifier -> 401 "Invalid token"
    - Otherwise the verified subject id becomes the CallerContext
"""

import logging
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from order_api.core.config import Settings
from order_api.core.errors import Unauthorized
from order_api.core.messages import get_message
from order_api.dependencies import get_app_settings, get_verifier
from order_api.services.identity import BaseTokenVerifier, TokenVerificationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class CallerContext(BaseModel):
    """Authenticated caller."""
    user_id: str
    claims: dict[str, Any] = {}


def _extract_token(bearer: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if bearer and bearer.scheme and bearer.scheme.lower() == "bearer" and bearer.credentials:
        return bearer.credentials
    return None


async def get_current_user(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: BaseTokenVerifier = Depends(get_verifier),
    settings: Settings = Depends(get_app_settings),
) -> CallerContext:
    """
    Verify the bearer token and return the caller context.

    Raises:
        Unauthorized: If the token is missing, or the verifier rejects it or fails
    """
    token = _extract_token(bearer)
    if not token:
        raise Unauthorized(get_message("no_token", settings.message_locale))

    try:
        identity = await verifier.verify_token(token)
    except TokenVerificationError as e:
        logger.warning(f"Token verification failed: {e}")
        raise Unauthorized(get_message("invalid_token", settings.message_locale)) from e
    except Exception as e:
        logger.exception(f"Token verifier error: {e}")
        raise Unauthorized(get_message("invalid_token", settings.message_locale)) from e

    return CallerContext(user_id=identity.uid, claims=identity.claims)
