"""Order storage and seller-driven status changes."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol

import structlog

from .errors import OrderNotFoundError
from .models import ORDER_STATUSES, Order, _utc_now
from .order_lifecycle import check_status, check_transition
from .storage import file_lock, read_document, write_document

logger = structlog.get_logger(__name__)


class OrderStore(Protocol):
    def add(self, order: Order) -> Order: ...

    def get(self, order_id: str) -> Order: ...

    def list_orders(self, seller_id: str | None = None, status: str | None = None) -> list[Order]: ...

    def update_status(self, order_id: str, new_status: str, force: bool = False) -> Order: ...

    def status_counts(self, seller_id: str | None = None) -> dict[str, int]: ...

    def recent(self, limit: int = 5, seller_id: str | None = None) -> list[Order]: ...


def _filter(orders: list[Order], seller_id: str | None, status: str | None) -> list[Order]:
    if status is not None:
        check_status(status)
    result = [
        o
        for o in orders
        if (seller_id is None or o.seller_id == seller_id)
        and (status is None or o.status == status)
    ]
    # Newest first; insertion order breaks ties
    indexed = list(enumerate(result))
    indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    return [o for _, o in indexed]


def _apply_status(order: Order, new_status: str, force: bool) -> str:
    """Validate and apply a status change in place; return the previous status."""
    check_transition(order.id, order.status, new_status, force=force)
    previous = order.status
    order.status = new_status
    order.updated_at = _utc_now()
    return previous


class _OrderQueries(ABC):
    """Dashboard queries shared by the order stores."""

    @abstractmethod
    def list_orders(self, seller_id: str | None = None, status: str | None = None) -> list[Order]:
        """List orders newest first, optionally filtered by seller and status."""

    def status_counts(self, seller_id: str | None = None) -> dict[str, int]:
        """Number of orders per status, with every status present."""
        counts = {s: 0 for s in ORDER_STATUSES}
        for order in self.list_orders(seller_id=seller_id):
            counts[order.status] = counts.get(order.status, 0) + 1
        return counts

    def recent(self, limit: int = 5, seller_id: str | None = None) -> list[Order]:
        return self.list_orders(seller_id=seller_id)[:limit]


class MemoryOrderStore(_OrderQueries):
    """In-process order table."""

    def __init__(self):
        self._orders: dict[str, Order] = {}
        self._lock = threading.Lock()

    def add(self, order: Order) -> Order:
        with self._lock:
            self._orders[order.id] = order
        logger.info("order_placed", order_id=order.id, total=str(order.total_amount))
        return order

    def get(self, order_id: str) -> Order:
        with self._lock:
            try:
                return self._orders[order_id]
            except KeyError:
                raise OrderNotFoundError(order_id) from None

    def list_orders(self, seller_id: str | None = None, status: str | None = None) -> list[Order]:
        with self._lock:
            orders = list(self._orders.values())
        return _filter(orders, seller_id, status)

    def update_status(self, order_id: str, new_status: str, force: bool = False) -> Order:
        """
        Move an order to a new status.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidOrderStatusError: If new_status is unknown.
            InvalidStatusTransitionError: If the move is not allowed and force is False.
        """
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            previous = _apply_status(order, new_status, force)
        logger.info(
            "order_status_updated", order_id=order_id, old=previous, new=new_status, forced=force
        )
        return order


class JsonOrderStore(_OrderQueries):
    """Order table kept in a versioned JSON document."""

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> list[Order]:
        data = read_document(self.path, {"orders": []})
        return [Order.from_dict(o) for o in data.get("orders", [])]

    def _save(self, orders: list[Order]) -> None:
        write_document(
            self.path, {"schema_version": 1, "orders": [o.to_dict() for o in orders]}
        )

    def add(self, order: Order) -> Order:
        with file_lock(self.path):
            orders = self._load()
            orders.append(order)
            self._save(orders)
        logger.info("order_placed", order_id=order.id, total=str(order.total_amount))
        return order

    def get(self, order_id: str) -> Order:
        for order in self._load():
            if order.id == order_id:
                return order
        raise OrderNotFoundError(order_id)

    def list_orders(self, seller_id: str | None = None, status: str | None = None) -> list[Order]:
        return _filter(self._load(), seller_id, status)

    def update_status(self, order_id: str, new_status: str, force: bool = False) -> Order:
        """
        Move an order to a new status.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidOrderStatusError: If new_status is unknown.
            InvalidStatusTransitionError: If the move is not allowed and force is False.
        """
        with file_lock(self.path):
            orders = self._load()
            for order in orders:
                if order.id == order_id:
                    previous = _apply_status(order, new_status, force)
                    self._save(orders)
                    break
            else:
                raise OrderNotFoundError(order_id)
        logger.info(
            "order_status_updated", order_id=order_id, old=previous, new=new_status, forced=force
        )
        return order
