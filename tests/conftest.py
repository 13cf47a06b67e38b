"""Pytest fixtures for localmarket tests."""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from localmarket.models import Product


def make_product(
    name: str = "Sukuma Wiki Bunch",
    price: str = "100",
    stock: int = 10,
    seller_id: str = "s1",
    category: str = "groceries",
    delivery_option: str = "both",
) -> Product:
    """Build a product with a fresh ID."""
    return Product.create(
        name=name,
        price=Decimal(price),
        seller_id=seller_id,
        description=f"{name} from the market",
        category=category,
        stock=stock,
        delivery_option=delivery_option,
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def products():
    """A small catalog spread over two sellers."""
    return [
        make_product("Sukuma Wiki Bunch", "100", stock=20, category="groceries"),
        make_product("Woven Basket", "1500", stock=3, category="handmade", delivery_option="pickup"),
        make_product("Farm Eggs (Tray)", "450", stock=12, category="farm", delivery_option="delivery"),
        make_product("Honey Jar", "800", stock=5, seller_id="s2", category="farm"),
    ]


@pytest.fixture
def data_env(temp_dir, monkeypatch):
    """Point settings at a temp data dir with instant payment delays."""
    monkeypatch.setenv("LOCALMARKET_DATA_DIR", str(temp_dir))
    monkeypatch.setenv("LOCALMARKET_STORE", "json")
    monkeypatch.setenv("LOCALMARKET_MOBILE_MONEY_DELAYS", "0,0")
    monkeypatch.setenv("LOCALMARKET_CARD_DELAY", "0")
    return temp_dir
