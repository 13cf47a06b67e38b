"""Seller-side catalog management, gated by the seller's subscription tier."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, NoReturn

import structlog

from .catalog_store import CatalogStore
from .errors import ProductLimitReachedError, ProductNotFoundError
from .images import ImageStore, ImageUpload
from .models import Product, parse_product_input
from .tiers import DEFAULT_TIER, Tier, get_tier

logger = structlog.get_logger(__name__)


class SellerCatalog:
    """CRUD over one seller's products."""

    def __init__(
        self,
        store: CatalogStore,
        seller_id: str,
        tier: str = DEFAULT_TIER,
        images: ImageStore | None = None,
    ):
        self.store = store
        self.seller_id = seller_id
        self.tier: Tier = get_tier(tier)
        self.images = images

    def upgrade(self, tier: str) -> Tier:
        """Switch to another tier; the new ceiling applies to the next create."""
        self.tier = get_tier(tier)
        logger.info("seller_tier_changed", seller_id=self.seller_id, tier=self.tier.id)
        return self.tier

    def list_products(self) -> list[Product]:
        return self.store.list(seller_id=self.seller_id)

    def product_count(self) -> int:
        return self.store.count(seller_id=self.seller_id)

    def remaining_slots(self) -> int | None:
        """Products that can still be added, or None when unlimited."""
        if self.tier.product_limit is None:
            return None
        return max(0, self.tier.product_limit - self.product_count())

    def _get_own(self, product_id: str) -> Product:
        product = self.store.get(product_id)
        if product.seller_id != self.seller_id:
            raise ProductNotFoundError(product_id)
        return product

    def _store_image(self, image: ImageUpload | None) -> str | None:
        if image is None:
            return None
        if self.images is None:
            raise ValueError("SellerCatalog has no ImageStore configured for uploads")
        return self.images.save(image)

    def _discard(self, image_path: str | None) -> None:
        if image_path is not None and self.images is not None:
            self.images.discard(image_path)

    @contextmanager
    def _discard_on_error(self, image_path: str | None) -> Iterator[None]:
        """Remove a freshly stored image if the catalog write fails."""
        try:
            yield
        except Exception:
            self._discard(image_path)
            raise

    def _limit_reached(self) -> NoReturn:
        logger.info(
            "product_limit_reached",
            seller_id=self.seller_id,
            tier=self.tier.id,
            count=self.product_count(),
        )
        raise ProductLimitReachedError(self.tier.id, self.tier.product_limit)

    def create_product(self, data: dict[str, Any], image: ImageUpload | None = None) -> Product:
        """
        Create a product for this seller.

        Raises:
            InvalidProductError: If the product fields are invalid.
            ProductLimitReachedError: If the tier ceiling is reached.
            InvalidImageError: If the uploaded image is rejected.
        """
        fields = parse_product_input(data)

        # Checked up front so a rejected request writes no image
        if not self.tier.can_add_product(self.product_count()):
            self._limit_reached()

        image_path = self._store_image(image)

        product = Product.create(seller_id=self.seller_id, image=image_path, **fields)
        with self._discard_on_error(image_path):
            stored = self.store.create_if_below(product, self.tier.product_limit)
        if not stored:
            self._discard(image_path)
            self._limit_reached()
        logger.info("product_created", product_id=product.id, seller_id=self.seller_id)
        return product

    def update_product(
        self, product_id: str, data: dict[str, Any], image: ImageUpload | None = None
    ) -> Product:
        """
        Replace a product's editable fields. id and seller_id never change;
        the existing image is kept when no new one is uploaded.

        Raises:
            ProductNotFoundError: If the product doesn't exist or belongs to another seller.
            InvalidProductError: If the product fields are invalid.
            InvalidImageError: If the uploaded image is rejected.
        """
        existing = self._get_own(product_id)
        fields = parse_product_input(data)
        image_path = self._store_image(image)
        if image_path is not None:
            fields["image"] = image_path

        product = existing.with_changes(**fields)
        with self._discard_on_error(image_path):
            self.store.update(product)
        logger.info("product_updated", product_id=product_id, seller_id=self.seller_id)
        return product

    def delete_product(self, product_id: str) -> Product:
        """
        Remove a product. Placed orders keep their own line snapshots.

        Raises:
            ProductNotFoundError: If the product doesn't exist or belongs to another seller.
        """
        self._get_own(product_id)
        removed = self.store.delete(product_id)
        logger.info("product_deleted", product_id=product_id, seller_id=self.seller_id)
        return removed
