"""
Document Store Abstract Base Class

Defines the interface contract for all document store implementations.
Both MemoryDocumentStore and SqlDocumentStore must implement these methods.

Model:
    - Documents are schemaless dicts grouped into named collections
    - The store assigns document ids on creation
    - Writing the SERVER_TIMESTAMP sentinel as a top-level value makes the
      store substitute its own clock at write time
    - Timestamps come back as timezone-aware datetimes
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional
import uuid


class _ServerTimestamp:
    """Placeholder resolved to the store's clock when a document is written."""

    _instance: Optional["_ServerTimestamp"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class StoreError(Exception):
    """Base error for document store failures."""


class DocumentNotFoundError(StoreError):
    """Raised when updating a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document {collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


@dataclass
class DocumentSnapshot:
    """
    A document as read from the store.

    Attributes:
        id: Store-assigned document id
        data: Document body (a copy; mutating it does not touch the store)
    """
    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Project into ``{id, **fields}``; a field named ``id`` wins."""
        return {"id": self.id, **self.data}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    """Generate a 20-character opaque document id."""
    return uuid.uuid4().hex[:20]


class BaseDocumentStore(ABC):
    """
    Abstract base class for document stores.

    All store implementations (memory, SQL, etc.) must inherit from this
    class and implement all abstract methods.

    Example:
        >>> store = get_document_store()
        >>> doc_id = await store.add("orders", {"status": "processing"})
        >>> await store.update("orders", doc_id, {"status": "received"})
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utc_now
        self._last_timestamp: Optional[datetime] = None

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the store backend.

        Returns:
            str: Provider name (e.g., "memory", "sql")
        """
        pass

    async def initialize(self) -> None:
        """Prepare the backend (create tables, etc.). Called at startup."""

    async def close(self) -> None:
        """Release backend resources. Called at shutdown."""

    @abstractmethod
    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        """
        Create a new document.

        Args:
            collection: Collection name
            data: Document body, may contain SERVER_TIMESTAMP values

        Returns:
            str: Generated document id
        """
        pass

    @abstractmethod
    async def get_all(self, collection: str) -> list[DocumentSnapshot]:
        """Return every document of a collection in insertion order."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[DocumentSnapshot]:
        """
        Return documents matching all equality filters.

        Args:
            collection: Collection name
            where: Field -> value equality filters
            order_by: Field to sort on
            descending: Sort direction

        Documents missing the ``order_by`` field sort as newest.
        """
        pass

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Mapping[str, Any],
    ) -> None:
        """
        Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the store.

        Returns:
            bool: True if the store is operational
        """
        pass

    # ==========================================================================
    # HELPERS
    # ==========================================================================

    def _server_now(self) -> datetime:
        """Current store time, never earlier than a previously issued one."""
        now = self._clock()
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def _resolve_server_timestamps(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Replace top-level SERVER_TIMESTAMP values with the store clock."""
        resolved = dict(data)
        now: Optional[datetime] = None
        for key, value in resolved.items():
            if value is SERVER_TIMESTAMP:
                if now is None:
                    now = self._server_now()
                resolved[key] = now
        return resolved


def sort_snapshots(
    snapshots: list[DocumentSnapshot],
    order_by: Optional[str],
    descending: bool,
) -> list[DocumentSnapshot]:
    """Stable sort on one field; missing values count as the largest."""
    if not order_by:
        return snapshots

    def key(snapshot: DocumentSnapshot):
        value = snapshot.data.get(order_by)
        return (value is None, value if value is not None else 0)

    return sorted(snapshots, key=key, reverse=descending)
