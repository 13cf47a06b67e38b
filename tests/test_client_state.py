"""Tests for client-local state."""

import json

import pytest

from localmarket.client_state import ClientStateStore
from localmarket.errors import UnknownTierError, ValidationError

from .conftest import make_product


@pytest.fixture
def client(temp_dir):
    return ClientStateStore(temp_dir / "client_state.json")


class TestClientState:
    def test_defaults_when_missing(self, client):
        state = client.load()

        assert state.cart == []
        assert state.user_type == "guest"
        assert state.subscription_tier == "basic"

    def test_cart_survives_restart(self, temp_dir):
        path = temp_dir / "client_state.json"
        product = make_product("Honey Jar", "800", stock=5)

        cart = ClientStateStore(path).open_cart()
        cart.add(product, 2)

        reopened = ClientStateStore(path).open_cart()
        assert reopened.item_count == 2
        assert reopened.items[0].product.id == product.id
        assert str(reopened.total) == "1600.00"

    def test_cart_clear_persists(self, client):
        cart = client.open_cart()
        cart.add(make_product(stock=5))
        cart.clear()

        assert client.open_cart().is_empty()

    def test_document_keys(self, client):
        client.set_user_type("seller")
        client.set_subscription_tier("premium")

        data = json.loads(client.path.read_text())
        assert data["userType"] == "seller"
        assert data["subscriptionTier"] == "premium"
        assert data["cart"] == []

    def test_cart_changes_keep_role_and_tier(self, client):
        client.set_user_type("seller")
        client.open_cart().add(make_product(stock=5))

        assert client.load().user_type == "seller"

    def test_invalid_user_type(self, client):
        with pytest.raises(ValidationError):
            client.set_user_type("admin")

    def test_invalid_tier(self, client):
        with pytest.raises(UnknownTierError):
            client.set_subscription_tier("gold")

    def test_unreadable_document_yields_defaults(self, client):
        client.path.write_text("not json at all")

        state = client.load()

        assert state.user_type == "guest"
        assert state.cart == []

    def test_unknown_stored_values_fall_back(self, client):
        client.path.write_text(
            json.dumps({"schema_version": 1, "cart": [], "userType": "admin", "subscriptionTier": "gold"})
        )

        state = client.load()

        assert state.user_type == "guest"
        assert state.subscription_tier == "basic"
