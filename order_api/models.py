"""
Domain enums and SQLAlchemy models.

The SQL document store keeps every collection in a single ``documents``
table: one row per document, the document body in a JSON column.
"""

import enum

from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint
from sqlalchemy.sql import func

from order_api.database import Base


class OrderStatus(str, enum.Enum):
    """
    Order status workflow.

    PROCESSING is the initial state; RECEIVED is terminal and only
    reachable through the confirm operation.
    """
    PROCESSING = "processing"
    RECEIVED = "received"


class StoredDocument(Base):
    """A schemaless document belonging to a named collection."""
    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc_id"),
    )

    # Insertion order within the table
    seq = Column(Integer, primary_key=True, autoincrement=True)

    collection = Column(String(100), nullable=False, index=True)
    doc_id = Column(String(64), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)

    # Row bookkeeping, not part of the document body
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<StoredDocument {self.collection}/{self.doc_id}>"
