"""
Work order completion: stock booking in legacy and atomic modes
"""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from mfgflow.core.exceptions import InvalidStateTransitionError, NotFoundError, PersistenceFailureError
from mfgflow.models import AuditLog, Product, StockLedger, WorkOrder
from mfgflow.services import ProductionService, StockService

MODES = ["legacy", "atomic"]


def completion_entries(db, mo):
    return db.query(StockLedger)\
        .filter(StockLedger.reference_id == mo.id)\
        .order_by(StockLedger.id)\
        .all()


@pytest.fixture
def fail_on_product(monkeypatch):
    """Make stock writes for one product raise a database error"""
    def _install(product_id):
        original = StockService.record_movement

        def failing(db, pid, *args, **kwargs):
            if pid == product_id:
                raise SQLAlchemyError("disk I/O error")
            return original(db, pid, *args, **kwargs)

        monkeypatch.setattr(StockService, "record_movement", staticmethod(failing))
    return _install


class TestPreconditions:

    @pytest.mark.parametrize("mode", MODES)
    @pytest.mark.parametrize("status", ["PLANNED", "COMPLETED", "CANCELLED"])
    def test_only_started_or_paused_can_complete(self, db, production_setup, mode, status):
        work_order = production_setup["work_order"]
        work_order.status = status
        db.commit()

        with pytest.raises(InvalidStateTransitionError):
            ProductionService.complete_work_order(db, work_order.id, mode=mode)

        assert db.query(StockLedger).filter(StockLedger.reference_id == production_setup["mo"].id).count() == 0

    def test_unknown_work_order(self, db):
        with pytest.raises(NotFoundError):
            ProductionService.complete_work_order(db, 12345)

    @pytest.mark.parametrize("mode", MODES)
    def test_paused_work_order_completes(self, db, production_setup, mode):
        work_order = production_setup["work_order"]
        work_order.status = "PAUSED"
        db.commit()

        result = ProductionService.complete_work_order(db, work_order.id, mode=mode)
        assert result.status == "COMPLETED"


class TestStockBooking:

    @pytest.mark.parametrize("mode", MODES)
    def test_components_consumed_and_output_booked(self, db, production_setup, mode):
        component = production_setup["component"]
        product = production_setup["product"]
        mo = production_setup["mo"]

        ProductionService.complete_work_order(db, production_setup["work_order"].id, mode=mode)
        db.expire_all()

        assert db.get(Product, component.id).current_stock == 10
        assert db.get(Product, product.id).current_stock == 5

        out_entry, in_entry = completion_entries(db, mo)
        assert (out_entry.product_id, out_entry.transaction_type, out_entry.quantity) == (component.id, "OUT", 10)
        assert out_entry.unit_cost == 10 and out_entry.total_value == 100
        assert (in_entry.product_id, in_entry.transaction_type, in_entry.quantity) == (product.id, "IN", 5)
        assert in_entry.unit_cost == 50 and in_entry.total_value == 250
        assert out_entry.reference == in_entry.reference == mo.mo_number

    @pytest.mark.parametrize("mode", MODES)
    def test_cache_matches_ledger_after_completion(self, db, production_setup, mode):
        ProductionService.complete_work_order(db, production_setup["work_order"].id, mode=mode)
        db.expire_all()

        assert all(row["consistent"] for row in StockService.check_consistency(db))

    @pytest.mark.parametrize("mode", MODES)
    def test_durations_and_audit(self, db, production_setup, owner, mode):
        work_order = ProductionService.complete_work_order(
            db, production_setup["work_order"].id, notes="Line clear", performed_by=owner.id, mode=mode
        )

        assert work_order.real_duration == work_order.expected_duration == 60
        assert work_order.notes == "Line clear"

        audit = db.query(AuditLog).filter(AuditLog.table_name == "work_orders").one()
        assert audit.before_data == {"status": "STARTED"}
        assert audit.after_data == {"status": "COMPLETED"}
        assert audit.performed_by == owner.id

    @pytest.mark.parametrize("mode", MODES)
    def test_mo_without_bom_moves_no_stock(self, db, make_product, make_mo, make_work_order, mode):
        product = make_product("Prototype", type="FINISHED_GOOD")
        mo = make_mo(product, 3)
        work_order = make_work_order(mo)

        result = ProductionService.complete_work_order(db, work_order.id, mode=mode)

        assert result.status == "COMPLETED"
        assert completion_entries(db, mo) == []
        db.expire_all()
        assert db.get(Product, product.id).current_stock == 0

    def test_mode_from_settings(self, db, production_setup, atomic_mode, fail_on_product):
        fail_on_product(production_setup["product"].id)
        with pytest.raises(PersistenceFailureError):
            ProductionService.complete_work_order(db, production_setup["work_order"].id)


class TestPartialFailure:

    @pytest.fixture
    def two_component_setup(self, make_product, make_bom, make_mo, make_work_order):
        first = make_product("Top", unit_cost=20, stock=10)
        second = make_product("Base", unit_cost=15, stock=10)
        desk = make_product("Desk", type="FINISHED_GOOD", unit_cost=120)
        bom = make_bom(desk, [(first, 1), (second, 1)])
        mo = make_mo(desk, 2, bom)
        return {"first": first, "second": second, "desk": desk, "mo": mo, "work_order": make_work_order(mo)}

    def test_legacy_keeps_status_and_earlier_writes(self, db, two_component_setup, fail_on_product):
        setup = two_component_setup
        fail_on_product(setup["second"].id)

        result = ProductionService.complete_work_order(db, setup["work_order"].id, mode="legacy")
        db.expire_all()

        assert result.status == "COMPLETED"
        assert db.get(WorkOrder, setup["work_order"].id).status == "COMPLETED"
        assert db.get(Product, setup["first"].id).current_stock == 8
        assert db.get(Product, setup["second"].id).current_stock == 10
        assert db.get(Product, setup["desk"].id).current_stock == 0
        assert [e.product_id for e in completion_entries(db, setup["mo"])] == [setup["first"].id]

    def test_atomic_rolls_everything_back(self, db, two_component_setup, fail_on_product):
        setup = two_component_setup
        fail_on_product(setup["second"].id)

        with pytest.raises(PersistenceFailureError):
            ProductionService.complete_work_order(db, setup["work_order"].id, mode="atomic")
        db.expire_all()

        assert db.get(WorkOrder, setup["work_order"].id).status == "STARTED"
        assert db.get(Product, setup["first"].id).current_stock == 10
        assert db.get(Product, setup["desk"].id).current_stock == 0
        assert completion_entries(db, setup["mo"]) == []
        assert db.query(AuditLog).count() == 0

    def test_atomic_failure_on_output(self, db, two_component_setup, fail_on_product):
        setup = two_component_setup
        fail_on_product(setup["desk"].id)

        with pytest.raises(PersistenceFailureError):
            ProductionService.complete_work_order(db, setup["work_order"].id, mode="atomic")
        db.expire_all()

        assert db.get(Product, setup["first"].id).current_stock == 10
        assert db.get(Product, setup["second"].id).current_stock == 10


class TestCompletionAPI:

    def test_complete_endpoint(self, client, db, owner_headers, production_setup, legacy_mode):
        work_order = production_setup["work_order"]

        res = client.patch(f"/api/work-orders/{work_order.id}/complete", headers=owner_headers,
                           json={"real_duration": 45})
        db.expire_all()

        assert res.status_code == 200
        assert res.json()["status"] == "COMPLETED"
        assert res.json()["real_duration"] == 45
        assert db.get(Product, production_setup["product"].id).current_stock == 5

    def test_complete_without_body(self, client, owner_headers, production_setup):
        res = client.patch(f"/api/work-orders/{production_setup['work_order'].id}/complete", headers=owner_headers)
        assert res.status_code == 200
        assert res.json()["real_duration"] == 60

    def test_complete_planned_rejected(self, client, db, owner_headers, production_setup):
        work_order = production_setup["work_order"]
        work_order.status = "PLANNED"
        db.commit()

        res = client.patch(f"/api/work-orders/{work_order.id}/complete", headers=owner_headers)

        assert res.status_code == 409
        assert res.json()["error"] == "INVALID_STATE_TRANSITION"

    def test_atomic_failure_returns_500(self, client, owner_headers, production_setup, atomic_mode, fail_on_product):
        fail_on_product(production_setup["component"].id)

        res = client.patch(f"/api/work-orders/{production_setup['work_order'].id}/complete", headers=owner_headers)

        assert res.status_code == 500
        assert res.json()["error"] == "PERSISTENCE_FAILURE"

    def test_generic_status_change_moves_no_stock(self, client, db, owner_headers, production_setup):
        res = client.patch(f"/api/work-orders/{production_setup['work_order'].id}/status",
                           headers=owner_headers, json={"status": "DONE"})
        db.expire_all()

        assert res.json()["status"] == "COMPLETED"
        assert db.get(Product, production_setup["product"].id).current_stock == 0
