"""Shopping cart: the shopper's unpurchased selection of products."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable

import structlog

from .errors import CartQuantityError, InsufficientStockError
from .models import CartItem, Product

logger = structlog.get_logger(__name__)

PersistHook = Callable[[list[CartItem]], None]


class Cart:
    """
    Ordered cart lines keyed by product id.

    Every mutation hands the resulting lines to the persistence hook. The
    hook is fire-and-forget: a failure is logged and the in-memory cart is
    kept as is.
    """

    def __init__(self, items: Iterable[CartItem] = (), on_change: PersistHook | None = None):
        self._items: list[CartItem] = []
        for item in items:
            if item.quantity > 0:
                self._items.append(CartItem(product=item.product, quantity=item.quantity))
        self._on_change = on_change

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def total(self) -> Decimal:
        """Sum of price * quantity over all lines, recomputed on every read."""
        return sum((item.subtotal for item in self._items), Decimal("0"))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def _find(self, product_id: str) -> CartItem | None:
        for item in self._items:
            if item.product.id == product_id:
                return item
        return None

    def _persist(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self.items)
        except Exception as e:
            logger.warning("cart_persist_failed", error=str(e))

    def add(self, product: Product, quantity: int = 1) -> CartItem:
        """
        Add `quantity` units of a product.

        An existing line for the same product id has its quantity increased;
        otherwise a new line is appended.

        Raises:
            CartQuantityError: If quantity < 1.
            InsufficientStockError: If the line would exceed product.stock.
        """
        if quantity < 1:
            raise CartQuantityError(quantity)

        existing = self._find(product.id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > product.stock:
            raise InsufficientStockError(product.id, new_quantity, product.stock)

        if existing:
            existing.quantity = new_quantity
            # Keep the freshest snapshot of the product on the line
            existing.product = product
            line = existing
        else:
            line = CartItem(product=product, quantity=quantity)
            self._items.append(line)

        logger.debug("cart_item_added", product_id=product.id, quantity=line.quantity)
        self._persist()
        return line

    def remove(self, product_id: str) -> None:
        """Drop the line for a product; no-op if absent."""
        before = len(self._items)
        self._items = [i for i in self._items if i.product.id != product_id]
        if len(self._items) != before:
            logger.debug("cart_item_removed", product_id=product_id)
        self._persist()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """
        Overwrite a line's quantity.

        quantity <= 0 removes the line. Unknown product ids are ignored.

        Raises:
            InsufficientStockError: If quantity exceeds the product's stock.
        """
        if quantity <= 0:
            self.remove(product_id)
            return

        item = self._find(product_id)
        if item is None:
            return
        if quantity > item.product.stock:
            raise InsufficientStockError(product_id, quantity, item.product.stock)

        item.quantity = quantity
        self._persist()

    def clear(self) -> None:
        """Empty the cart."""
        self._items = []
        self._persist()
