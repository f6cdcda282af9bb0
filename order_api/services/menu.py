"""
Menu Service
Reads the menu collection and returns it verbatim.
"""

import logging
from typing import Any

from order_api.core.config import Locale
from order_api.core.errors import InternalError
from order_api.core.messages import get_message
from order_api.services.store import BaseDocumentStore

logger = logging.getLogger(__name__)


class MenuService:
    """Pass-through reader for menu documents."""

    def __init__(
        self,
        store: BaseDocumentStore,
        collection: str = "menu",
        locale: Locale = Locale.EN,
    ):
        self._store = store
        self._collection = collection
        self._locale = locale

    async def list_menu(self) -> list[dict[str, Any]]:
        """
        Return every menu document as ``{id, **fields}``.

        Raises:
            InternalError: If the store read fails
        """
        try:
            snapshots = await self._store.get_all(self._collection)
        except Exception as e:
            logger.exception(f"Error fetching menu: {e}")
            raise InternalError(get_message("menu_fetch_failed", self._locale)) from e

        return [snapshot.to_dict() for snapshot in snapshots]
