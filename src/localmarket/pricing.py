"""Order pricing: flat shipping plus a fixed VAT rate on the subtotal."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .config import DEFAULT_SHIPPING_RATE, DEFAULT_TAX_RATE, Settings
from .models import CartItem, to_money


@dataclass(frozen=True)
class PricingPolicy:
    shipping_rate: Decimal = DEFAULT_SHIPPING_RATE
    tax_rate: Decimal = DEFAULT_TAX_RATE  # 16% VAT

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingPolicy":
        return cls(shipping_rate=settings.shipping_rate, tax_rate=settings.tax_rate)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


def price_lines(lines: Iterable[CartItem], policy: PricingPolicy) -> PriceBreakdown:
    """
    Price a set of cart lines.

    total = subtotal + shipping + subtotal * tax_rate, each amount rounded
    to cents. E.g. subtotal 1000, shipping 500, tax 16% -> total 1660.
    """
    subtotal = to_money(sum((line.subtotal for line in lines), Decimal("0")))
    shipping = to_money(policy.shipping_rate)
    tax = to_money(subtotal * policy.tax_rate)
    return PriceBreakdown(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
    )
