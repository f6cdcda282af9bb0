"""
Order Service

Owns the order lifecycle:
    - create_order: validate dishes, persist with server timestamp and
      expected delivery time, status "processing"
    - list_orders: a caller's own orders, newest first
    - confirm_order: move an order to "received"

Status workflow:
    processing --confirm--> received (terminal)

Confirm is neither ownership-scoped nor state-checked: any authenticated
caller may confirm any order id, and confirming twice is a no-op.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from order_api.core.config import Locale
from order_api.core.errors import InternalError, ValidationError
from order_api.core.messages import get_message
from order_api.models import OrderStatus
from order_api.services.store import (
    SERVER_TIMESTAMP,
    BaseDocumentStore,
    DocumentSnapshot,
)
from order_api.services.store.base import utc_now

logger = logging.getLogger(__name__)

MIN_DISHES = 1
MAX_DISHES = 10

ORDER_FIELDS = frozenset(
    ["userId", "dishes", "status", "createdAt", "expectedDeliveryTime"]
)


def to_millis(value: Any) -> Optional[int]:
    """
    Convert a stored timestamp to epoch milliseconds.

    A missing timestamp (not yet materialized by the store) maps to None,
    so it can't be confused with the epoch itself.
    """
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return None


@dataclass
class Dish:
    """One ordered dish. Fields are passed through without type checks."""
    name: Any = ""
    price: Any = 0
    details: Any = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "Dish":
        """Normalize a client entry; absent or falsy fields take defaults."""
        if not isinstance(payload, Mapping):
            return cls()
        return cls(
            name=payload.get("name") or "",
            price=payload.get("price") or 0,
            details=payload.get("details") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "price": self.price, "details": self.details}


@dataclass
class Order:
    """An order as read back from the store."""
    id: str
    user_id: str
    dishes: list[Dish] = field(default_factory=list)
    status: str = OrderStatus.PROCESSING.value
    created_at: Optional[datetime] = None
    expected_delivery_time: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> "Order":
        data = snapshot.data
        extra = {k: v for k, v in data.items() if k not in ORDER_FIELDS}
        return cls(
            id=snapshot.id,
            user_id=data.get("userId", ""),
            dishes=[Dish.from_payload(d) for d in data.get("dishes") or []],
            status=data.get("status", OrderStatus.PROCESSING.value),
            created_at=data.get("createdAt"),
            expected_delivery_time=data.get("expectedDeliveryTime"),
            extra=extra,
        )

    @property
    def timestamps_pending(self) -> bool:
        return self.created_at is None or self.expected_delivery_time is None

    def to_response(self) -> dict[str, Any]:
        """
        Serialize with millisecond timestamps (None while pending).

        Stored fields outside the order schema are passed through as is.
        """
        return {
            "id": self.id,
            **self.extra,
            "userId": self.user_id,
            "dishes": [d.to_dict() for d in self.dishes],
            "status": self.status,
            "createdAt": to_millis(self.created_at),
            "expectedDeliveryTime": to_millis(self.expected_delivery_time),
        }


def validate_dishes(dishes: Any, locale: Locale = Locale.EN) -> list[Any]:
    """
    Check that dishes is a list of 1 to 10 entries.

    Raises:
        ValidationError: If the constraint is violated
    """
    if not isinstance(dishes, list) or not MIN_DISHES <= len(dishes) <= MAX_DISHES:
        raise ValidationError(get_message("dishes_count", locale))
    return dishes


class OrderService:
    """
    Order lifecycle operations over an injected document store.

    Example:
        >>> service = OrderService(store, delivery_offset=timedelta(minutes=30))
        >>> order_id = await service.create_order("alice", [{"name": "Pizza"}])
        >>> await service.confirm_order(order_id)
        <OrderStatus.RECEIVED: 'received'>
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        delivery_offset: timedelta,
        collection: str = "orders",
        locale: Locale = Locale.EN,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._delivery_offset = delivery_offset
        self._collection = collection
        self._locale = locale
        self._clock = clock or utc_now

    @property
    def locale(self) -> Locale:
        return self._locale

    async def create_order(self, caller_id: str, dishes: Any) -> str:
        """
        Validate and persist a new order.

        Args:
            caller_id: Verified subject id of the caller
            dishes: Raw dishes list from the request body

        Returns:
            str: Generated order id

        Raises:
            ValidationError: If dishes is not a list of 1-10 entries
            InternalError: If the store write fails
        """
        validate_dishes(dishes, self._locale)

        now = self._clock()
        document = {
            "userId": caller_id,
            "dishes": [Dish.from_payload(d).to_dict() for d in dishes],
            "createdAt": SERVER_TIMESTAMP,
            "expectedDeliveryTime": now + self._delivery_offset,
            "status": OrderStatus.PROCESSING.value,
        }

        try:
            order_id = await self._store.add(self._collection, document)
        except Exception as e:
            logger.exception(f"Error creating order for user {caller_id}: {e}")
            raise InternalError(get_message("order_create_failed", self._locale)) from e

        logger.info(f"Order {order_id} created for user {caller_id} ({len(dishes)} dishes)")
        return order_id

    async def list_orders(self, caller_id: str) -> list[Order]:
        """
        Return the caller's orders, newest first.

        Raises:
            InternalError: If the store query fails
        """
        try:
            snapshots = await self._store.query(
                self._collection,
                where={"userId": caller_id},
                order_by="createdAt",
                descending=True,
            )
        except Exception as e:
            logger.exception(f"Error fetching orders for user {caller_id}: {e}")
            raise InternalError(get_message("orders_fetch_failed", self._locale)) from e

        orders = [Order.from_snapshot(s) for s in snapshots]
        pending = sum(1 for o in orders if o.timestamps_pending)
        if pending:
            logger.debug(f"{pending} order(s) for user {caller_id} have pending timestamps")
        return orders

    async def confirm_order(self, order_id: str) -> OrderStatus:
        """
        Mark an order as received.

        A nonexistent id surfaces as the store's own failure
        (DocumentNotFoundError for the bundled stores), i.e. InternalError.

        Raises:
            InternalError: If the store update fails
        """
        try:
            await self._store.update(
                self._collection,
                order_id,
                {"status": OrderStatus.RECEIVED.value},
            )
        except Exception as e:
            logger.exception(f"Error updating order {order_id} status: {e}")
            raise InternalError(get_message("order_confirm_failed", self._locale)) from e

        logger.info(f"Order {order_id} confirmed as received")
        return OrderStatus.RECEIVED
