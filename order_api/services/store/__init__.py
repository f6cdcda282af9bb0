"""
Document Store Factory

Provides a single entry point for obtaining the process-wide document store.
Automatically selects the in-memory or SQL backend based on ENV_MODE.

Usage:
    from order_api.services.store import get_document_store

    store = get_document_store()
    doc_id = await store.add("orders", {"status": "processing"})

Environment Switching:
    - ENV_MODE=development → MemoryDocumentStore (seeded from MENU_SEED_FILE)
    - ENV_MODE=staging/production → SqlDocumentStore (DATABASE_URL)
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from order_api.core.config import get_settings
from order_api.services.store.base import (
    SERVER_TIMESTAMP,
    BaseDocumentStore,
    DocumentNotFoundError,
    DocumentSnapshot,
    StoreError,
)
from order_api.services.store.memory import MemoryDocumentStore
from order_api.services.store.sql import SqlDocumentStore

logger = logging.getLogger(__name__)


def load_seed_file(path: Optional[str], collection: str) -> dict[str, list[dict[str, Any]]]:
    """
    Read a JSON list of documents to seed a collection with.

    A missing file yields no seed data.
    """
    if not path:
        return {}

    seed_path = Path(path)
    if not seed_path.is_file():
        logger.warning(f"Seed file {seed_path} not found, {collection} starts empty")
        return {}

    with seed_path.open(encoding="utf-8") as f:
        documents = json.load(f)

    if not isinstance(documents, list):
        raise ValueError(f"Seed file {seed_path} must contain a JSON list")

    return {collection: documents}


@lru_cache()
def get_document_store() -> BaseDocumentStore:
    """
    Get the configured document store instance.

    The instance is cached so the whole process shares one store
    (and one connection pool) for its lifetime.

    Returns:
        BaseDocumentStore: Configured store instance
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Document Store: Using MemoryDocumentStore (development mode)")
        return MemoryDocumentStore(
            seed=load_seed_file(settings.menu_seed_file, settings.menu_collection),
            min_latency=0.01,
            max_latency=0.05,
        )

    logger.info(
        f"Document Store: Using SqlDocumentStore "
        f"({settings.env_mode.value} mode)"
    )
    return SqlDocumentStore(settings.database_url, echo=settings.database_echo)


def reset_document_store() -> None:
    """
    Clear the cached store instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_document_store.cache_clear()
    logger.debug("Document store cache cleared")


__all__ = [
    "get_document_store",
    "reset_document_store",
    "load_seed_file",
    "SERVER_TIMESTAMP",
    "BaseDocumentStore",
    "DocumentSnapshot",
    "DocumentNotFoundError",
    "StoreError",
    "MemoryDocumentStore",
    "SqlDocumentStore",
]
