"""Client-local state: cart lines, role tag and selected tier, kept across restarts."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from .cart import Cart
from .errors import InvalidProductError, StoreError, ValidationError
from .models import CartItem
from .storage import read_document, write_document
from .tiers import DEFAULT_TIER, TIERS, get_tier

logger = structlog.get_logger(__name__)

USER_TYPES = ("customer", "seller", "guest")

# Fixed document keys
CART_KEY = "cart"
USER_TYPE_KEY = "userType"
TIER_KEY = "subscriptionTier"


@dataclass
class ClientState:
    cart: list[CartItem] = field(default_factory=list)
    user_type: str = "guest"
    subscription_tier: str = DEFAULT_TIER

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": 1,
            CART_KEY: [i.to_dict() for i in self.cart],
            USER_TYPE_KEY: self.user_type,
            TIER_KEY: self.subscription_tier,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientState":
        user_type = data.get(USER_TYPE_KEY, "guest")
        if user_type not in USER_TYPES:
            user_type = "guest"
        tier = data.get(TIER_KEY, DEFAULT_TIER)
        if tier not in TIERS:
            tier = DEFAULT_TIER
        return cls(
            cart=[CartItem.from_dict(i) for i in data.get(CART_KEY, [])],
            user_type=user_type,
            subscription_tier=tier,
        )


class ClientStateStore:
    """Reads and writes the client state document."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> ClientState:
        """Load saved state; an unreadable document yields defaults."""
        try:
            data = read_document(self.path, {})
            return ClientState.from_dict(data)
        except (StoreError, InvalidProductError, KeyError, TypeError, ValueError) as e:
            logger.warning("client_state_unreadable", path=str(self.path), error=str(e))
            return ClientState()

    def save(self, state: ClientState) -> None:
        write_document(self.path, state.to_dict())

    def open_cart(self) -> Cart:
        """Return the saved cart, wired to write back on every change."""
        state = self.load()

        def persist(items: list[CartItem]) -> None:
            current = self.load()
            current.cart = items
            self.save(current)

        return Cart(state.cart, on_change=persist)

    def set_user_type(self, user_type: str) -> ClientState:
        if user_type not in USER_TYPES:
            raise ValidationError(f"User type must be one of {', '.join(USER_TYPES)}")
        state = self.load()
        state.user_type = user_type
        self.save(state)
        return state

    def set_subscription_tier(self, tier: str) -> ClientState:
        get_tier(tier)
        state = self.load()
        state.subscription_tier = tier
        self.save(state)
        return state
