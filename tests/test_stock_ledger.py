"""
Stock ledger: replay, cached counter and consistency
"""
from types import SimpleNamespace

import pytest

from mfgflow.core.exceptions import NotFoundError, ValidationError
from mfgflow.models import StockLedger
from mfgflow.schemas.stock import StockTransactionCreate, StockTransactionUpdate
from mfgflow.services import StockService, replay_ledger, apply_movement


def movement(transaction_type, quantity):
    return SimpleNamespace(transaction_type=transaction_type, quantity=quantity)


class TestReplay:

    def test_empty_ledger_is_zero(self):
        assert replay_ledger([]) == []

    def test_in_and_out_accumulate(self):
        entries = [movement("IN", 10), movement("OUT", 3), movement("IN", 5)]
        assert replay_ledger(entries) == [10, 7, 12]

    def test_adjustment_sets_running_total(self):
        entries = [movement("IN", 10), movement("ADJUSTMENT", 4), movement("OUT", 1)]
        assert replay_ledger(entries) == [10, 4, 3]

    def test_out_may_go_negative(self):
        assert replay_ledger([movement("OUT", 2)]) == [-2]

    def test_replay_is_idempotent(self):
        entries = [movement("IN", 8), movement("OUT", 5), movement("ADJUSTMENT", 20)]
        assert replay_ledger(entries) == replay_ledger(entries)

    def test_unknown_type_leaves_total(self):
        assert apply_movement(5, "TRANSFER", 3) == 5


class TestStockTransactions:

    def test_in_updates_cached_stock_and_ledger(self, db, make_product):
        product = make_product("Bolt", unit_cost=2)
        entry = StockService.create_stock_transaction(db, StockTransactionCreate(
            product_id=product.id, transaction_type="IN", quantity=7, unit_cost=2
        ))
        db.refresh(product)

        assert product.current_stock == 7
        assert entry.total_value == 14
        assert db.query(StockLedger).count() == 1

    def test_adjustment_sets_cached_stock(self, db, make_product):
        product = make_product("Nut", unit_cost=1, stock=30)
        entry = StockService.adjust_stock(db, product.id, 12, "Cycle count")
        db.refresh(product)

        assert product.current_stock == 12
        assert entry.transaction_type == "ADJUSTMENT"
        assert entry.reference == "Cycle count"

    def test_adjustment_to_zero_allowed(self, db, make_product):
        product = make_product("Washer", stock=4)
        StockService.adjust_stock(db, product.id, 0)
        db.refresh(product)
        assert product.current_stock == 0

    def test_zero_quantity_in_rejected(self, db, make_product):
        product = make_product("Rivet")
        with pytest.raises(ValidationError):
            StockService.create_stock_transaction(db, StockTransactionCreate(
                product_id=product.id, transaction_type="IN", quantity=0
            ))

    def test_unknown_product(self, db):
        with pytest.raises(NotFoundError):
            StockService.create_stock_transaction(db, StockTransactionCreate(
                product_id=999, transaction_type="IN", quantity=1
            ))

    def test_quantity_correction_keeps_reference(self, db, make_product):
        product = make_product("Spring", unit_cost=3)
        entry = StockService.create_stock_transaction(db, StockTransactionCreate(
            product_id=product.id, transaction_type="IN", quantity=4, unit_cost=3,
            reference="MO2026100001", reference_id=7
        ))

        entry = StockService.update_stock_transaction(db, entry.id, StockTransactionUpdate(quantity=6))

        assert entry.quantity == 6
        assert entry.total_value == 18
        assert (entry.reference, entry.reference_id) == ("MO2026100001", 7)

    def test_reference_cleared_when_sent(self, db, make_product):
        product = make_product("Clip")
        entry = StockService.create_stock_transaction(db, StockTransactionCreate(
            product_id=product.id, transaction_type="IN", quantity=1, reference="PO-12"
        ))

        entry = StockService.update_stock_transaction(db, entry.id, StockTransactionUpdate(reference=None))

        assert entry.reference is None

    def test_product_stock_history(self, db, make_product):
        product = make_product("Screw", unit_cost=1, stock=10)
        StockService.create_stock_transaction(db, StockTransactionCreate(
            product_id=product.id, transaction_type="OUT", quantity=4
        ))

        stock = StockService.get_product_stock(db, product.id)

        assert stock["current_stock"] == 6
        assert [running for _, running in stock["history"]] == [10, 6]


class TestConsistency:

    def test_writers_keep_cache_in_step(self, db, make_product):
        product = make_product("Panel", stock=15)
        StockService.create_stock_transaction(db, StockTransactionCreate(
            product_id=product.id, transaction_type="OUT", quantity=5
        ))
        StockService.adjust_stock(db, product.id, 9)

        report = StockService.check_consistency(db, product.id)

        assert report[0]["consistent"] is True
        assert report[0]["cached_stock"] == report[0]["ledger_stock"] == 9

    def test_editing_entry_causes_drift(self, db, make_product):
        product = make_product("Hinge", stock=10)
        entry = db.query(StockLedger).filter(StockLedger.product_id == product.id).first()

        StockService.update_stock_transaction(db, entry.id, StockTransactionUpdate(quantity=25))
        report = StockService.check_consistency(db, product.id)[0]

        assert report["consistent"] is False
        assert report["cached_stock"] == 10
        assert report["ledger_stock"] == 25
        assert report["difference"] == -15

    def test_deleting_entry_causes_drift(self, db, make_product):
        product = make_product("Spring", stock=6)
        entry = db.query(StockLedger).filter(StockLedger.product_id == product.id).first()

        StockService.delete_stock_transaction(db, entry.id)
        report = StockService.check_consistency(db, product.id)[0]

        assert report["cached_stock"] == 6
        assert report["ledger_stock"] == 0

    def test_rebuild_restores_consistency(self, db, make_product):
        product = make_product("Bracket", stock=10)
        entry = db.query(StockLedger).filter(StockLedger.product_id == product.id).first()
        StockService.update_stock_transaction(db, entry.id, StockTransactionUpdate(quantity=3))

        result = StockService.rebuild_cached_stock(db, product.id)

        assert result == {"product_id": product.id, "previous_stock": 10, "current_stock": 3}
        assert StockService.check_consistency(db, product.id)[0]["consistent"] is True

    def test_unknown_product_check(self, db):
        with pytest.raises(NotFoundError):
            StockService.check_consistency(db, 42)


class TestStockLedgerAPI:

    def test_create_and_list(self, client, owner_headers, make_product):
        product = make_product("Cable", unit_cost=3)

        res = client.post("/api/stock-ledger", headers=owner_headers, json={
            "product_id": product.id, "transaction_type": "IN", "quantity": 4, "unit_cost": 3
        })
        assert res.status_code == 201
        assert res.json()["total_value"] == 12

        res = client.get("/api/stock-ledger", headers=owner_headers, params={"product_id": product.id})
        assert res.status_code == 200
        assert res.json()["total"] == 1
        assert res.json()["entries"][0]["quantity"] == 4

    def test_product_stock_running_totals(self, client, owner_headers, make_product):
        product = make_product("Hose", stock=8)
        client.post(f"/api/stock-ledger/product/{product.id}/adjust", headers=owner_headers, json={"quantity": 3})

        res = client.get(f"/api/stock-ledger/product/{product.id}/stock", headers=owner_headers)
        body = res.json()

        assert body["current_stock"] == 3
        assert [h["running_stock"] for h in body["history"]] == [8, 3]

    def test_consistency_endpoint(self, client, owner_headers, make_product):
        make_product("Clamp", stock=2)
        make_product("Valve", stock=5)

        body = client.get("/api/stock-ledger/consistency", headers=owner_headers).json()

        assert body["consistent"] is True
        assert body["checked"] == 2
        assert body["inconsistent"] == 0

    def test_invalid_type_rejected(self, client, owner_headers, make_product):
        product = make_product("Pipe")
        res = client.post("/api/stock-ledger", headers=owner_headers, json={
            "product_id": product.id, "transaction_type": "MOVE", "quantity": 1
        })
        assert res.status_code == 422
        assert res.json()["error"] == "REQUEST_VALIDATION_ERROR"

    def test_missing_entry(self, client, owner_headers):
        res = client.get("/api/stock-ledger/99", headers=owner_headers)
        assert res.status_code == 404
        assert res.json()["success"] is False
        assert res.json()["error"] == "NOT_FOUND"
