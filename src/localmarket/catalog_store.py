"""Catalog storage: the product table behind the shop and the seller dashboard."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Protocol

import structlog

from .errors import InvalidProductError, ProductNotFoundError
from .models import Product
from .storage import file_lock, read_document, write_document

logger = structlog.get_logger(__name__)


class CatalogStore(Protocol):
    """Protocol for product stores.

    Cart, checkout and seller code depend only on this interface, so the
    table can live in process memory or in a file on disk.
    """

    def list(self, seller_id: str | None = None) -> list[Product]:
        """List products in insertion order, optionally for one seller."""
        ...

    def get(self, product_id: str) -> Product:
        """Get a product by ID.

        Raises:
            ProductNotFoundError: If the product doesn't exist.
        """
        ...

    def create(self, product: Product) -> Product:
        """Append a new product."""
        ...

    def update(self, product: Product) -> Product:
        """Replace the stored product with the same ID.

        Raises:
            ProductNotFoundError: If the product doesn't exist.
        """
        ...

    def delete(self, product_id: str) -> Product:
        """Remove a product and return it.

        Raises:
            ProductNotFoundError: If the product doesn't exist.
        """
        ...

    def count(self, seller_id: str | None = None) -> int:
        """Number of products, optionally for one seller."""
        ...

    def create_if_below(self, product: Product, limit: int | None) -> bool:
        """Append a product unless its seller already has `limit` products.

        The count and the insert happen under one lock. A None limit always
        inserts.

        Returns:
            True if the product was stored.
        """
        ...


class MemoryCatalogStore:
    """In-process product table; a single lock serializes writers."""

    def __init__(self, products: list[Product] | None = None):
        self._products: dict[str, Product] = {}
        self._lock = threading.Lock()
        for p in products or []:
            self._products[p.id] = p

    def list(self, seller_id: str | None = None) -> list[Product]:
        with self._lock:
            products = list(self._products.values())
        if seller_id is None:
            return products
        return [p for p in products if p.seller_id == seller_id]

    def get(self, product_id: str) -> Product:
        with self._lock:
            try:
                return self._products[product_id]
            except KeyError:
                raise ProductNotFoundError(product_id) from None

    def create(self, product: Product) -> Product:
        with self._lock:
            self._products[product.id] = product
        return product

    def update(self, product: Product) -> Product:
        with self._lock:
            if product.id not in self._products:
                raise ProductNotFoundError(product.id)
            self._products[product.id] = product
        return product

    def delete(self, product_id: str) -> Product:
        with self._lock:
            try:
                return self._products.pop(product_id)
            except KeyError:
                raise ProductNotFoundError(product_id) from None

    def count(self, seller_id: str | None = None) -> int:
        return len(self.list(seller_id))

    def create_if_below(self, product: Product, limit: int | None) -> bool:
        with self._lock:
            if limit is not None:
                owned = sum(1 for p in self._products.values() if p.seller_id == product.seller_id)
                if owned >= limit:
                    return False
            self._products[product.id] = product
        return True


class JsonCatalogStore:
    """Product table kept in a versioned JSON document."""

    def __init__(self, path: Path):
        """
        Initialize JsonCatalogStore.

        Args:
            path: Location of the products document (created on first write).
        """
        self.path = path

    def _load_rows(self) -> list[dict]:
        return read_document(self.path, {"products": []}).get("products", [])

    def _save_rows(self, rows: list[dict]) -> None:
        write_document(self.path, {"schema_version": 1, "products": rows})

    def _decode(self, rows: list[dict]) -> list[Product]:
        products = []
        for row in rows:
            try:
                products.append(Product.from_dict(row))
            except InvalidProductError as e:
                logger.warning(
                    "catalog_row_rejected", path=str(self.path), row_id=row.get("id"), reason=str(e)
                )
        return products

    def list(self, seller_id: str | None = None) -> list[Product]:
        products = self._decode(self._load_rows())
        if seller_id is None:
            return products
        return [p for p in products if p.seller_id == seller_id]

    def get(self, product_id: str) -> Product:
        for row in self._load_rows():
            if row.get("id") == product_id:
                # Undecodable rows are skipped, as in list()
                decoded = self._decode([row])
                if decoded:
                    return decoded[0]
                break
        raise ProductNotFoundError(product_id)

    def create(self, product: Product) -> Product:
        with file_lock(self.path):
            rows = self._load_rows()
            rows.append(product.to_dict())
            self._save_rows(rows)
        return product

    def update(self, product: Product) -> Product:
        with file_lock(self.path):
            rows = self._load_rows()
            for i, row in enumerate(rows):
                if row.get("id") == product.id:
                    rows[i] = product.to_dict()
                    self._save_rows(rows)
                    return product
        raise ProductNotFoundError(product.id)

    def delete(self, product_id: str) -> Product:
        with file_lock(self.path):
            rows = self._load_rows()
            for i, row in enumerate(rows):
                if row.get("id") == product_id:
                    removed = Product.from_dict(rows.pop(i))
                    self._save_rows(rows)
                    return removed
        raise ProductNotFoundError(product_id)

    def count(self, seller_id: str | None = None) -> int:
        return len(self.list(seller_id))

    def create_if_below(self, product: Product, limit: int | None) -> bool:
        with file_lock(self.path):
            rows = self._load_rows()
            if limit is not None:
                owned = sum(1 for p in self._decode(rows) if p.seller_id == product.seller_id)
                if owned >= limit:
                    return False
            rows.append(product.to_dict())
            self._save_rows(rows)
        return True
