"""Tests for the shopping cart."""

from decimal import Decimal

import pytest

from localmarket.cart import Cart
from localmarket.errors import CartQuantityError, InsufficientStockError

from .conftest import make_product


class TestCartAdd:
    def test_add_new_line(self):
        cart = Cart()
        product = make_product(price="100", stock=5)

        line = cart.add(product, 2)

        assert line.quantity == 2
        assert len(cart) == 1
        assert cart.item_count == 2

    def test_add_same_product_merges_lines(self):
        cart = Cart()
        product = make_product(stock=10)

        cart.add(product, 2)
        cart.add(product, 3)

        assert len(cart) == 1
        assert cart.items[0].quantity == 5

    def test_add_keeps_insertion_order(self):
        cart = Cart()
        first = make_product("First", stock=5)
        second = make_product("Second", stock=5)

        cart.add(first)
        cart.add(second)
        cart.add(first)

        assert [i.product.name for i in cart.items] == ["First", "Second"]

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_add_rejects_non_positive_quantity(self, quantity):
        cart = Cart()
        with pytest.raises(CartQuantityError):
            cart.add(make_product(), quantity)
        assert cart.is_empty()

    def test_add_beyond_stock_rejected(self):
        cart = Cart()
        product = make_product(stock=3)
        cart.add(product, 2)

        with pytest.raises(InsufficientStockError) as exc_info:
            cart.add(product, 2)

        assert exc_info.value.available == 3
        assert exc_info.value.requested == 4
        assert cart.items[0].quantity == 2

    def test_add_out_of_stock_product_rejected(self):
        cart = Cart()
        with pytest.raises(InsufficientStockError):
            cart.add(make_product(stock=0))
        assert cart.is_empty()

    def test_add_refreshes_product_snapshot(self):
        cart = Cart()
        product = make_product(price="100", stock=5)
        cart.add(product)

        cart.add(product.with_changes(price=Decimal("120")))

        assert cart.items[0].product.price == Decimal("120")
        assert cart.total == Decimal("240")


class TestCartTotal:
    def test_total_is_sum_of_lines(self):
        cart = Cart()
        cart.add(make_product(price="100", stock=10), 3)
        cart.add(make_product(price="450.50", stock=10), 2)

        assert cart.total == Decimal("1201.00")

    def test_total_follows_every_mutation(self):
        cart = Cart()
        a = make_product(price="100", stock=10)
        b = make_product(price="250", stock=10)
        cart.add(a, 2)
        cart.add(b, 1)
        assert cart.total == Decimal("450")

        cart.update_quantity(a.id, 4)
        assert cart.total == Decimal("650")

        cart.remove(b.id)
        assert cart.total == Decimal("400")

        cart.clear()
        assert cart.total == Decimal("0")

    def test_empty_cart_total_is_zero(self):
        assert Cart().total == Decimal("0")


class TestCartUpdateRemove:
    def test_update_quantity_zero_removes_line(self):
        cart = Cart()
        product = make_product(stock=5)
        cart.add(product, 2)

        cart.update_quantity(product.id, 0)

        assert cart.is_empty()

    def test_update_quantity_negative_removes_line(self):
        cart = Cart()
        product = make_product(stock=5)
        cart.add(product, 2)

        cart.update_quantity(product.id, -3)

        assert cart.is_empty()

    def test_update_unknown_product_is_noop(self):
        cart = Cart()
        product = make_product(stock=5)
        cart.add(product, 2)

        cart.update_quantity("missing", 3)

        assert cart.items[0].quantity == 2

    def test_update_beyond_stock_rejected(self):
        cart = Cart()
        product = make_product(stock=5)
        cart.add(product, 2)

        with pytest.raises(InsufficientStockError):
            cart.update_quantity(product.id, 6)
        assert cart.items[0].quantity == 2

    def test_remove_absent_product_is_noop(self):
        cart = Cart()
        cart.add(make_product(stock=5))

        cart.remove("missing")

        assert len(cart) == 1

    def test_items_returns_copy(self):
        cart = Cart()
        cart.add(make_product(stock=5))

        cart.items.clear()

        assert len(cart) == 1


class TestCartPersistence:
    def test_every_mutation_calls_hook(self):
        snapshots = []
        cart = Cart(on_change=lambda items: snapshots.append([(i.product.id, i.quantity) for i in items]))
        product = make_product(stock=5)

        cart.add(product, 1)
        cart.update_quantity(product.id, 3)
        cart.remove(product.id)
        cart.clear()

        assert snapshots == [[(product.id, 1)], [(product.id, 3)], [], []]

    def test_hook_failure_keeps_cart(self):
        def broken(items):
            raise OSError("disk full")

        cart = Cart(on_change=broken)
        cart.add(make_product(stock=5), 2)

        assert cart.item_count == 2

    def test_initial_items_drop_non_positive_lines(self):
        from localmarket.models import CartItem

        keep = CartItem(product=make_product(stock=5), quantity=2)
        drop = CartItem(product=make_product(stock=5), quantity=0)

        cart = Cart([keep, drop])

        assert [i.product.id for i in cart.items] == [keep.product.id]
