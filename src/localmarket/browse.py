"""Shopper-facing catalog search, filtering and sorting."""

from typing import Iterable

from .errors import ValidationError
from .models import CATEGORIES, Product

SORT_OPTIONS = ("featured", "price-low", "price-high", "name")


def browse_products(
    products: Iterable[Product],
    query: str | None = None,
    category: str | None = None,
    delivery: str | None = None,
    sort: str = "featured",
) -> list[Product]:
    """
    Filter and order products for the shop listing.

    Args:
        query: Case-insensitive substring matched against name and description.
        category: Keep only this category ("all" or None keeps every product).
        delivery: "delivery" or "pickup"; products offering "both" match either.
        sort: One of SORT_OPTIONS. "featured" keeps store order.

    Raises:
        ValidationError: For an unknown category, delivery filter or sort.
    """
    result = list(products)

    if query:
        q = query.lower()
        result = [p for p in result if q in p.name.lower() or q in p.description.lower()]

    if category and category != "all":
        if category not in CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")
        result = [p for p in result if p.category == category]

    if delivery and delivery != "all":
        if delivery not in ("delivery", "pickup"):
            raise ValidationError(f"Unknown delivery filter: {delivery}")
        result = [p for p in result if p.delivery_option in (delivery, "both")]

    if sort == "price-low":
        result.sort(key=lambda p: p.price)
    elif sort == "price-high":
        result.sort(key=lambda p: p.price, reverse=True)
    elif sort == "name":
        result.sort(key=lambda p: p.name.lower())
    elif sort != "featured":
        raise ValidationError(f"Unknown sort option: {sort}")

    return result
