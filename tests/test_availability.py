"""
Component availability: reservations, checks and low-stock alerts
"""
import pytest

from mfgflow.core.exceptions import InsufficientStockError, ValidationError
from mfgflow.models import ComponentAvailability
from mfgflow.services import AvailabilityService, ProductionService


def availability_of(db, product):
    db.expire_all()
    return db.query(ComponentAvailability).filter(ComponentAvailability.product_id == product.id).one()


@pytest.fixture
def kit(make_product, make_bom, make_mo):
    """MO for 3 kits: 2 x Gear (6 needed) and 1 x Shaft (3 needed)"""
    gear = make_product("Gear", unit_cost=4)
    shaft = make_product("Shaft", unit_cost=9)
    kit = make_product("Gear Kit", type="FINISHED_GOOD", unit_cost=40)
    bom = make_bom(kit, [(gear, 2), (shaft, 1)])
    mo = make_mo(kit, 3, bom)
    return {"gear": gear, "shaft": shaft, "kit": kit, "bom": bom, "mo": mo}


class TestReservation:

    @pytest.mark.parametrize("mode", ["legacy", "atomic"])
    def test_reserve_moves_available_to_reserved(self, db, kit, set_availability, mode):
        set_availability(kit["gear"], 10)
        set_availability(kit["shaft"], 5)

        reservations = AvailabilityService.reserve_components(db, kit["mo"].id, mode=mode)

        assert [r["required"] for r in reservations] == [6, 3]
        gear = availability_of(db, kit["gear"])
        assert (gear.available, gear.reserved) == (4, 6)
        shaft = availability_of(db, kit["shaft"])
        assert (shaft.available, shaft.reserved) == (2, 3)

    def test_legacy_keeps_earlier_reservations(self, db, kit, set_availability):
        set_availability(kit["gear"], 10)
        set_availability(kit["shaft"], 1)

        with pytest.raises(InsufficientStockError) as exc:
            AvailabilityService.reserve_components(db, kit["mo"].id, mode="legacy")

        assert exc.value.details == {"product_name": "Shaft", "required": 3, "available": 1}
        gear = availability_of(db, kit["gear"])
        assert (gear.available, gear.reserved) == (4, 6)

    def test_atomic_leaves_no_reservation(self, db, kit, set_availability):
        set_availability(kit["gear"], 10)
        set_availability(kit["shaft"], 1)

        with pytest.raises(InsufficientStockError):
            AvailabilityService.reserve_components(db, kit["mo"].id, mode="atomic")

        gear = availability_of(db, kit["gear"])
        assert (gear.available, gear.reserved) == (10, 0)

    def test_missing_row_counts_as_zero(self, db, kit, set_availability):
        set_availability(kit["gear"], 10)
        with pytest.raises(InsufficientStockError) as exc:
            AvailabilityService.reserve_components(db, kit["mo"].id, mode="atomic")
        assert exc.value.available == 0

    def test_mo_without_bom(self, db, make_product, make_mo):
        product = make_product("Custom Part", type="FINISHED_GOOD")
        mo = make_mo(product, 1)
        with pytest.raises(ValidationError):
            AvailabilityService.reserve_components(db, mo.id)

    def test_release_returns_reserved(self, db, kit, set_availability):
        set_availability(kit["gear"], 4, reserved=6)
        set_availability(kit["shaft"], 0, reserved=2)

        released = AvailabilityService.release_components(db, kit["mo"].id)

        assert [r["released"] for r in released] == [6, 2]
        shaft = availability_of(db, kit["shaft"])
        assert (shaft.available, shaft.reserved) == (2, 0)


class TestChecks:

    def test_check_reports_shortfall(self, db, kit, set_availability):
        set_availability(kit["gear"], 20)
        set_availability(kit["shaft"], 2)

        result = AvailabilityService.check_availability(db, kit["bom"].id, 3)

        assert result["all_available"] is False
        assert result["can_produce"] is False
        shaft = result["availability"][1]
        assert (shaft["sufficient"], shaft["shortfall"]) == (False, 1)

    def test_check_does_not_modify_rows(self, db, kit, set_availability):
        set_availability(kit["gear"], 20)
        set_availability(kit["shaft"], 20)

        assert AvailabilityService.check_availability(db, kit["bom"].id, 3)["all_available"] is True
        assert availability_of(db, kit["gear"]).reserved == 0

    def test_low_stock_urgency(self, db, make_product, set_availability):
        set_availability(make_product("Empty"), 0)
        set_availability(make_product("Scarce"), 4)
        set_availability(make_product("Low"), 9)
        set_availability(make_product("Plenty"), 50)

        alerts = AvailabilityService.get_low_stock_alerts(db, threshold=10)

        assert [(a["product_name"], a["urgency"]) for a in alerts] == [
            ("Empty", "CRITICAL"), ("Scarce", "HIGH"), ("Low", "MEDIUM")
        ]

    def test_product_without_row(self, db, make_product):
        product = make_product("Unseen")
        data = AvailabilityService.get_product_availability(db, product.id)
        assert data["available"] == 0 and data["reserved"] == 0


class TestWorkOrderSync:

    def test_completion_does_not_touch_availability(self, db, production_setup, set_availability):
        set_availability(production_setup["component"], 20)

        ProductionService.complete_work_order(db, production_setup["work_order"].id, mode="legacy")

        assert availability_of(db, production_setup["component"]).available == 20

    def test_sync_applies_completed_work_order(self, db, production_setup, set_availability):
        set_availability(production_setup["component"], 20)
        ProductionService.complete_work_order(db, production_setup["work_order"].id, mode="legacy")

        result = AvailabilityService.handle_work_order_completion(db, production_setup["work_order"].id)

        assert result["message"] == "Stock movements processed successfully"
        component = availability_of(db, production_setup["component"])
        assert (component.available, component.outgoing) == (10, 10)
        product = availability_of(db, production_setup["product"])
        assert (product.available, product.incoming) == (5, 5)

    def test_sync_ignores_open_work_order(self, db, production_setup):
        result = AvailabilityService.handle_work_order_completion(db, production_setup["work_order"].id)
        assert result == {"message": "Work order not completed"}


class TestAvailabilityAPI:

    def test_reserve_endpoint_conflict(self, client, owner_headers, kit, set_availability):
        set_availability(kit["gear"], 1)
        set_availability(kit["shaft"], 10)

        res = client.post("/api/component-availability/reserve", headers=owner_headers,
                          json={"manufacturing_order_id": kit["mo"].id})

        assert res.status_code == 409
        assert res.json()["error"] == "INSUFFICIENT_STOCK"
        assert res.json()["details"]["required"] == 6

    def test_check_endpoint(self, client, owner_headers, kit, set_availability):
        set_availability(kit["gear"], 6)
        set_availability(kit["shaft"], 3)

        res = client.post("/api/component-availability/check", headers=owner_headers,
                          json={"bom_id": kit["bom"].id, "quantity": 3})

        assert res.status_code == 200
        assert res.json()["can_produce"] is True
