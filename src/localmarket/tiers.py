"""Seller subscription tiers: product ceilings and feature availability."""

from dataclasses import dataclass
from decimal import Decimal

from .errors import UnknownTierError

# Dashboard features
PRODUCT_MANAGEMENT = "product_management"
ORDERS = "orders"
BASIC_ANALYTICS = "analytics"
PROMOTIONS = "promotions"
SHIPPING_MANAGEMENT = "shipping_management"
CUSTOMER_SUPPORT = "customer_support"
ADVANCED_ANALYTICS = "advanced_analytics"
MARKETING_AUTOMATION = "marketing_automation"


@dataclass(frozen=True)
class Tier:
    """One row of the subscription table."""

    id: str
    name: str
    monthly_price: Decimal
    product_limit: int | None  # None means unlimited
    features: frozenset[str]
    perks: tuple[str, ...]

    @property
    def unlimited(self) -> bool:
        return self.product_limit is None

    def allows(self, feature: str) -> bool:
        return feature in self.features

    def can_add_product(self, current_count: int) -> bool:
        return self.product_limit is None or current_count < self.product_limit


_BASE_FEATURES = frozenset({PRODUCT_MANAGEMENT, ORDERS, BASIC_ANALYTICS, PROMOTIONS})
_STANDARD_FEATURES = _BASE_FEATURES | {SHIPPING_MANAGEMENT, CUSTOMER_SUPPORT}
_PREMIUM_FEATURES = _STANDARD_FEATURES | {ADVANCED_ANALYTICS, MARKETING_AUTOMATION}

TIERS: dict[str, Tier] = {
    "basic": Tier(
        id="basic",
        name="Basic",
        monthly_price=Decimal("0"),
        product_limit=10,
        features=_BASE_FEATURES,
        perks=(
            "List up to 10 products",
            "Basic product pages",
            "Standard search visibility",
        ),
    ),
    "standard": Tier(
        id="standard",
        name="Standard",
        monthly_price=Decimal("29.99"),
        product_limit=50,
        features=_STANDARD_FEATURES,
        perks=(
            "List up to 50 products",
            "Enhanced product pages",
            "Priority search visibility",
            "Basic analytics",
            "Promotional features",
        ),
    ),
    "premium": Tier(
        id="premium",
        name="Premium",
        monthly_price=Decimal("99.99"),
        product_limit=None,
        features=_PREMIUM_FEATURES,
        perks=(
            "Unlimited product listings",
            "Premium product pages",
            "Top search visibility",
            "Advanced analytics",
            "Marketing support",
            "Featured seller status",
            "Early access to new features",
        ),
    ),
}

DEFAULT_TIER = "basic"


def get_tier(tier_id: str) -> Tier:
    """
    Look up a tier by id.

    Raises:
        UnknownTierError: If the id is not in the table.
    """
    try:
        return TIERS[tier_id]
    except KeyError:
        raise UnknownTierError(tier_id) from None
