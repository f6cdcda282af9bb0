"""
Pydantic Schemas for Request/Response Validation

Request bodies are deliberately loose: dish entries are only checked for
cardinality by the order service, never for field types.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderCreate(BaseModel):
    """Request schema for creating a new order. Extra keys are ignored."""
    model_config = ConfigDict(extra="allow")

    dishes: Any = Field(
        default=None,
        examples=[[{"name": "Pizza", "price": 120, "details": "no onions"}]],
    )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class DishResponse(BaseModel):
    name: Any = ""
    price: Any = 0
    details: Any = ""


class OrderResponse(BaseModel):
    """
    A single order.

    Timestamps are epoch milliseconds; null means the store has not
    materialized the value yet. Other stored fields are kept.
    """
    model_config = ConfigDict(extra="allow")

    id: str
    userId: str
    dishes: List[DishResponse]
    status: str
    createdAt: Optional[int] = None
    expectedDeliveryTime: Optional[int] = None


class OrderCreateResponse(BaseModel):
    """Response after successfully creating an order."""
    message: str
    orderId: str


class OrderConfirmResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    store: str
    identity: str
    timestamp: datetime
