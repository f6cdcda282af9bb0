"""
Firebase Token Verifier Implementation

Production implementation using the official firebase-admin SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - FIREBASE_SERVICE_ACCOUNT must hold the service-account JSON
"""

import asyncio
import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions

from order_api.core.config import get_settings
from order_api.services.identity.base import (
    BaseTokenVerifier,
    TokenVerificationError,
    VerifiedIdentity,
)

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "order-api"


class FirebaseTokenVerifier(BaseTokenVerifier):
    """
    Verifies Firebase ID tokens.

    The SDK call is synchronous (it may fetch public certificates over
    the network), so it runs in a worker thread.
    """

    def __init__(
        self,
        service_account_info: Optional[dict[str, Any]] = None,
        check_revoked: Optional[bool] = None,
    ):
        """
        Initialize the Firebase app once per process.

        Raises:
            ValueError: If no service account is configured
        """
        settings = get_settings()

        info = service_account_info or settings.firebase_credentials_info
        if not info:
            raise ValueError(
                "FIREBASE_SERVICE_ACCOUNT is required for production mode. "
                "Set it in your .env file or environment variables."
            )

        self._check_revoked = (
            settings.firebase_check_revoked if check_revoked is None else check_revoked
        )

        try:
            self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            self._app = firebase_admin.initialize_app(
                credentials.Certificate(info),
                name=FIREBASE_APP_NAME,
            )

        logger.info(f"FirebaseTokenVerifier initialized (project={self._app.project_id})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "firebase"

    async def verify_token(self, token: str) -> VerifiedIdentity:
        try:
            decoded = await asyncio.to_thread(
                firebase_auth.verify_id_token,
                token,
                app=self._app,
                check_revoked=self._check_revoked,
            )
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            # Any SDK error means the token is not accepted
            logger.warning(f"Firebase: token verification failed - {e}")
            raise TokenVerificationError(str(e)) from e

        return VerifiedIdentity(uid=decoded["uid"], claims=dict(decoded))

    async def health_check(self) -> bool:
        """The app is initialized in the constructor; nothing else to check."""
        return self._app is not None
