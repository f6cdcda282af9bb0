"""
SQL Document Store Implementation

Production implementation on a SQLAlchemy async engine (PostgreSQL via
psycopg by default, any async dialect with JSON support works).
Used when ENV_MODE=production or ENV_MODE=staging.

Storage layout:
    - One ``documents`` row per document, body in a JSON column
    - Datetimes inside the body are stored as {"$timestamp": "<ISO-8601>"}
      and decoded back to aware datetimes on read
    - Equality filters run in SQL; ordering runs after decoding
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from order_api.database import create_engine, create_session_maker, init_db
from order_api.models import StoredDocument
from order_api.services.store.base import (
    BaseDocumentStore,
    DocumentNotFoundError,
    DocumentSnapshot,
    StoreError,
    new_document_id,
    sort_snapshots,
)

logger = logging.getLogger(__name__)

TIMESTAMP_TAG = "$timestamp"


def encode_value(value: Any) -> Any:
    """Make a document value JSON-serializable."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {TIMESTAMP_TAG: value.astimezone(timezone.utc).isoformat()}
    if isinstance(value, Mapping):
        return {str(k): encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    """Inverse of encode_value."""
    if isinstance(value, dict):
        if set(value) == {TIMESTAMP_TAG}:
            return datetime.fromisoformat(value[TIMESTAMP_TAG])
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


class SqlDocumentStore(BaseDocumentStore):
    """
    SQLAlchemy-backed document store.

    Configuration:
        Uses DATABASE_URL unless an engine is passed in.

    Example:
        >>> store = SqlDocumentStore("sqlite+aiosqlite:///:memory:")
        >>> await store.initialize()
        >>> doc_id = await store.add("orders", {"status": "processing"})
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: bool = False,
        engine: Optional[AsyncEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(clock=clock)

        if engine is None:
            if not database_url:
                raise ValueError(
                    "DATABASE_URL is required for the SQL document store. "
                    "Set it in your .env file or environment variables."
                )
            engine = create_engine(database_url, echo=echo)

        self._engine = engine
        self._session_maker = create_session_maker(engine)

        logger.info(f"SqlDocumentStore initialized ({engine.dialect.name})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "sql"

    async def initialize(self) -> None:
        await init_db(self._engine)

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("SqlDocumentStore engine disposed")

    def _snapshot(self, record: StoredDocument) -> DocumentSnapshot:
        return DocumentSnapshot(id=record.doc_id, data=decode_value(record.data or {}))

    @staticmethod
    def _field_equals(name: str, value: Any):
        """Build a JSON field equality clause for a scalar value."""
        element = StoredDocument.data[name]
        if isinstance(value, bool):
            return element.as_boolean() == value
        if isinstance(value, int):
            return element.as_integer() == value
        if isinstance(value, float):
            return element.as_float() == value
        if isinstance(value, str):
            return element.as_string() == value
        raise StoreError(f"Unsupported filter value for field {name!r}: {value!r}")

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = new_document_id()
        record = StoredDocument(
            collection=collection,
            doc_id=doc_id,
            data=encode_value(self._resolve_server_timestamps(data)),
        )

        try:
            async with self._session_maker() as session:
                session.add(record)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to add document to {collection}: {e}") from e

        logger.debug(f"SQL: added {collection}/{doc_id}")
        return doc_id

    async def get_all(self, collection: str) -> list[DocumentSnapshot]:
        statement = (
            select(StoredDocument)
            .where(StoredDocument.collection == collection)
            .order_by(StoredDocument.seq)
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(statement)
                records = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read {collection}: {e}") from e

        return [self._snapshot(record) for record in records]

    async def query(
        self,
        collection: str,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[DocumentSnapshot]:
        statement = (
            select(StoredDocument)
            .where(StoredDocument.collection == collection)
            .order_by(StoredDocument.seq)
        )
        for name, value in (where or {}).items():
            statement = statement.where(self._field_equals(name, value))

        try:
            async with self._session_maker() as session:
                result = await session.execute(statement)
                records = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to query {collection}: {e}") from e

        return sort_snapshots(
            [self._snapshot(record) for record in records],
            order_by,
            descending,
        )

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Mapping[str, Any],
    ) -> None:
        statement = select(StoredDocument).where(
            StoredDocument.collection == collection,
            StoredDocument.doc_id == doc_id,
        )
        changes = encode_value(self._resolve_server_timestamps(fields))

        try:
            async with self._session_maker() as session:
                result = await session.execute(statement)
                record = result.scalar_one_or_none()
                if record is None:
                    raise DocumentNotFoundError(collection, doc_id)

                # Reassign so the JSON column is flagged dirty
                record.data = {**(record.data or {}), **changes}
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update {collection}/{doc_id}: {e}") from e

        logger.debug(f"SQL: updated {collection}/{doc_id} fields={list(fields)}")

    async def health_check(self) -> bool:
        """Run a trivial statement against the database."""
        try:
            async with self._session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"SQL: Health check failed - {e}")
            return False
