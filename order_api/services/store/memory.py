"""
In-Memory Document Store

Keeps collections in process memory. Used in development mode
(ENV_MODE=development) and as the test double for the SQL store.

Behavior:
    - Optional seed data per collection (e.g. the menu)
    - Optional simulated latency to surface ordering bugs in async code
    - Stored and returned documents are deep copies
"""

import asyncio
import copy
import logging
import random
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from order_api.services.store.base import (
    BaseDocumentStore,
    DocumentNotFoundError,
    DocumentSnapshot,
    new_document_id,
    sort_snapshots,
)

logger = logging.getLogger(__name__)


class MemoryDocumentStore(BaseDocumentStore):
    """
    Dict-backed implementation of the document store.

    Attributes:
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> store = MemoryDocumentStore(seed={"menu": [{"name": "Pizza"}]})
        >>> [item.data["name"] for item in await store.get_all("menu")]
        ['Pizza']
    """

    def __init__(
        self,
        seed: Optional[Mapping[str, list[dict[str, Any]]]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        super().__init__(clock=clock)
        self.min_latency = min_latency
        self.max_latency = max_latency
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

        for collection, documents in (seed or {}).items():
            for document in documents:
                body = dict(document)
                doc_id = str(body.pop("id", None) or new_document_id())
                self._collection(collection)[doc_id] = copy.deepcopy(body)

        logger.info(
            f"MemoryDocumentStore initialized "
            f"({sum(len(c) for c in self._collections.values())} seeded documents)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "memory"

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def _simulate_latency(self) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _snapshot(self, doc_id: str, data: dict[str, Any]) -> DocumentSnapshot:
        return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        await self._simulate_latency()

        doc_id = new_document_id()
        self._collection(collection)[doc_id] = copy.deepcopy(
            self._resolve_server_timestamps(data)
        )
        logger.debug(f"Memory: added {collection}/{doc_id}")
        return doc_id

    async def get_all(self, collection: str) -> list[DocumentSnapshot]:
        await self._simulate_latency()
        return [
            self._snapshot(doc_id, data)
            for doc_id, data in self._collection(collection).items()
        ]

    async def query(
        self,
        collection: str,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[DocumentSnapshot]:
        await self._simulate_latency()

        filters = dict(where or {})
        matches = [
            self._snapshot(doc_id, data)
            for doc_id, data in self._collection(collection).items()
            if all(data.get(name) == value for name, value in filters.items())
        ]
        return sort_snapshots(matches, order_by, descending)

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Mapping[str, Any],
    ) -> None:
        await self._simulate_latency()

        documents = self._collection(collection)
        if doc_id not in documents:
            raise DocumentNotFoundError(collection, doc_id)

        documents[doc_id].update(copy.deepcopy(self._resolve_server_timestamps(fields)))
        logger.debug(f"Memory: updated {collection}/{doc_id} fields={list(fields)}")

    async def health_check(self) -> bool:
        """Memory store is always available."""
        return True
