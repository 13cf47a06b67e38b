"""Tests for the catalog stores."""

import json

import pytest

from localmarket.catalog_store import JsonCatalogStore, MemoryCatalogStore
from localmarket.errors import InvalidSchemaVersionError, ProductNotFoundError, StoreError

from .conftest import make_product


@pytest.fixture(params=["memory", "json"])
def store(request, temp_dir):
    if request.param == "memory":
        return MemoryCatalogStore()
    return JsonCatalogStore(temp_dir / "products.json")


class TestCatalogStore:
    def test_create_and_get(self, store):
        product = store.create(make_product("Honey Jar", "800"))

        assert store.get(product.id) == product

    def test_get_missing(self, store):
        with pytest.raises(ProductNotFoundError):
            store.get("missing")

    def test_list_in_insertion_order(self, store):
        names = ["Tomatoes", "Avocado", "Kiondo"]
        for name in names:
            store.create(make_product(name))

        assert [p.name for p in store.list()] == names

    def test_list_and_count_by_seller(self, store):
        store.create(make_product("A", seller_id="s1"))
        store.create(make_product("B", seller_id="s2"))
        store.create(make_product("C", seller_id="s1"))

        assert [p.name for p in store.list(seller_id="s1")] == ["A", "C"]
        assert store.count(seller_id="s2") == 1
        assert store.count() == 3

    def test_update(self, store):
        product = store.create(make_product("Tomatoes", "80"))

        store.update(product.with_changes(name="Roma Tomatoes"))

        assert store.get(product.id).name == "Roma Tomatoes"
        assert store.count() == 1

    def test_update_missing(self, store):
        with pytest.raises(ProductNotFoundError):
            store.update(make_product())

    def test_delete(self, store):
        keep = store.create(make_product("Keep"))
        drop = store.create(make_product("Drop"))

        removed = store.delete(drop.id)

        assert removed.id == drop.id
        assert [p.id for p in store.list()] == [keep.id]

    def test_delete_missing(self, store):
        with pytest.raises(ProductNotFoundError):
            store.delete("missing")

    def test_create_if_below_respects_limit(self, store):
        for i in range(2):
            store.create(make_product(f"Own {i}", seller_id="s1"))
        store.create(make_product("Other", seller_id="s2"))

        assert not store.create_if_below(make_product("Third", seller_id="s1"), 2)
        assert store.create_if_below(make_product("First", seller_id="s2"), 2)
        assert store.count(seller_id="s1") == 2
        assert store.count(seller_id="s2") == 2

    def test_create_if_below_without_limit(self, store):
        for i in range(3):
            assert store.create_if_below(make_product(f"P{i}"), None)
        assert store.count() == 3


class TestJsonCatalogStore:
    def _write(self, path, rows, version=1):
        path.write_text(json.dumps({"schema_version": version, "products": rows}))

    def test_persists_across_instances(self, temp_dir):
        path = temp_dir / "products.json"
        product = JsonCatalogStore(path).create(make_product("Sisal Mat", "650.50"))

        restored = JsonCatalogStore(path).get(product.id)

        assert restored == product

    def test_malformed_rows_skipped_in_list(self, temp_dir):
        path = temp_dir / "products.json"
        good = make_product("Good").to_dict()
        self._write(path, [good, {"id": "bad", "name": "No price"}, {"name": "No id", "price": 5}])

        products = JsonCatalogStore(path).list()

        assert [p.id for p in products] == [good["id"]]

    def test_unknown_enum_values_decoded_with_fallbacks(self, temp_dir):
        path = temp_dir / "products.json"
        self._write(
            path,
            [{"id": "p1", "name": "Odd", "price": "10", "category": "gadgets", "delivery_option": "post"}],
        )

        product = JsonCatalogStore(path).get("p1")

        assert product.category == "farm"
        assert product.delivery_option == "both"

    def test_get_malformed_row_is_not_found(self, temp_dir):
        path = temp_dir / "products.json"
        self._write(path, [{"id": "bad", "name": "No price"}])

        with pytest.raises(ProductNotFoundError):
            JsonCatalogStore(path).get("bad")

    def test_corrupt_file_raises_store_error(self, temp_dir):
        path = temp_dir / "products.json"
        path.write_text("{not json")

        with pytest.raises(StoreError):
            JsonCatalogStore(path).list()

    def test_unsupported_schema_version(self, temp_dir):
        path = temp_dir / "products.json"
        self._write(path, [], version=2)

        with pytest.raises(InvalidSchemaVersionError):
            JsonCatalogStore(path).list()

    def test_write_leaves_no_temp_files(self, temp_dir):
        path = temp_dir / "products.json"
        store = JsonCatalogStore(path)
        store.create(make_product())

        leftovers = [p.name for p in temp_dir.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []
