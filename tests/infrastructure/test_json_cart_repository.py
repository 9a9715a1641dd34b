"""Tests for the JSON-file cart storage."""

import json

from stockdesk.domain.model.cart import EMPTY_CART, CartLine
from stockdesk.infrastructure.persistence.json_cart_repository import (
    STORAGE_KEY,
    JsonCartRepository,
    storage_key,
)


def _cart():
    return EMPTY_CART.add(
        CartLine.create("P1", "Widget", "W1", "Main", 2, 10, product_sku="WID-1")
    ).add(CartLine.create("P2", "Gadget", "W2", "Annex", 1, 4))


class TestStorageKey:

    def test_default_key(self):
        assert storage_key() == STORAGE_KEY

    def test_per_user_key(self):
        assert storage_key("u1") == "reservation_cart_u1"


class TestJsonCartRepository:

    def test_missing_file_loads_empty_cart(self, tmp_path):
        assert JsonCartRepository(tmp_path).load().is_empty

    def test_save_then_load(self, tmp_path):
        repo = JsonCartRepository(tmp_path)
        repo.save(_cart())

        loaded = JsonCartRepository(tmp_path).load()

        assert loaded == _cart()

    def test_file_uses_camel_case_records(self, tmp_path):
        repo = JsonCartRepository(tmp_path, user_id="u1")
        repo.save(_cart())

        records = json.loads(repo.file_path.read_text(encoding="utf-8"))

        assert repo.file_path.name == "reservation_cart_u1.json"
        assert records[0] == {
            "productId": "P1",
            "productName": "Widget",
            "productSku": "WID-1",
            "warehouseId": "W1",
            "warehouseName": "Main",
            "quantity": 2,
            "availableStock": 10,
        }

    def test_users_do_not_share_a_cart(self, tmp_path):
        JsonCartRepository(tmp_path, user_id="u1").save(_cart())
        assert JsonCartRepository(tmp_path, user_id="u2").load().is_empty

    def test_saving_empty_cart_removes_file(self, tmp_path):
        repo = JsonCartRepository(tmp_path)
        repo.save(_cart())

        repo.save(EMPTY_CART)

        assert not repo.file_path.exists()

    def test_clear_is_idempotent(self, tmp_path):
        repo = JsonCartRepository(tmp_path)
        repo.clear()
        repo.save(_cart())
        repo.clear()
        assert not repo.file_path.exists()

    def test_unreadable_file_is_discarded(self, tmp_path):
        repo = JsonCartRepository(tmp_path)
        repo.file_path.write_text("{not json", encoding="utf-8")

        assert repo.load().is_empty
        assert not repo.file_path.exists()

    def test_record_missing_fields_is_discarded(self, tmp_path):
        repo = JsonCartRepository(tmp_path)
        repo.file_path.write_text(json.dumps([{"productId": "P1"}]), encoding="utf-8")

        assert repo.load().is_empty

    def test_records_breaking_the_stock_ceiling_are_dropped(self, tmp_path):
        repo = JsonCartRepository(tmp_path)
        good = {
            "productId": "P1",
            "productName": "Widget",
            "warehouseId": "W1",
            "warehouseName": "Main",
            "quantity": 2,
            "availableStock": 10,
        }
        records = [
            dict(good, productId="P2", quantity=50),
            dict(good, productId="P3", quantity=0),
            good,
        ]
        repo.file_path.write_text(json.dumps(records), encoding="utf-8")

        loaded = repo.load()

        assert [(line.product_id, line.quantity) for line in loaded] == [("P1", 2)]
        saved = json.loads(repo.file_path.read_text(encoding="utf-8"))
        assert [record["productId"] for record in saved] == ["P1"]

    def test_duplicate_records_are_merged_within_the_ceiling(self, tmp_path):
        repo = JsonCartRepository(tmp_path)
        record = {
            "productId": "P1",
            "productName": "Widget",
            "warehouseId": "W1",
            "quantity": 6,
            "availableStock": 10,
        }
        repo.file_path.write_text(json.dumps([record, record]), encoding="utf-8")

        loaded = repo.load()

        assert [line.quantity for line in loaded] == [6]
