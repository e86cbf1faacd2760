"""
Product master and work centers
"""
import pytest

from mfgflow.core.exceptions import ConflictError
from mfgflow.schemas.product import ProductCreate
from mfgflow.services import ProductService, WorkCenterService


class TestProducts:

    def test_name_is_unique_ignoring_case(self, db, make_product):
        make_product("Copper Wire")
        with pytest.raises(ConflictError):
            ProductService.create_product(db, ProductCreate(
                name="copper wire", type="RAW_MATERIAL", unit_of_measure="M"
            ))

    def test_product_with_ledger_cannot_be_deleted(self, db, make_product):
        product = make_product("Resin", stock=5)
        with pytest.raises(ConflictError):
            ProductService.delete_product(db, product.id)

    def test_unused_product_deleted(self, client, owner_headers, make_product):
        product = make_product("Scrap")
        res = client.delete(f"/api/products/{product.id}", headers=owner_headers)
        assert res.status_code == 200
        assert client.get(f"/api/products/{product.id}", headers=owner_headers).status_code == 404

    def test_create_and_list(self, client, owner_headers):
        res = client.post("/api/products", headers=owner_headers, json={
            "name": "Aluminium Rod", "type": "RAW_MATERIAL", "unit_of_measure": "M", "unit_cost": 4.5
        })
        assert res.status_code == 201
        assert res.json()["current_stock"] == 0

        res = client.get("/api/products", headers=owner_headers, params={"search": "alu"})
        assert res.json()["total"] == 1

    def test_invalid_type(self, client, owner_headers):
        res = client.post("/api/products", headers=owner_headers, json={
            "name": "Mystery", "type": "GADGET", "unit_of_measure": "PCS"
        })
        assert res.status_code == 422


class TestWorkCenters:

    def test_utilization_against_daily_capacity(self, db, work_center, make_product, make_mo, make_work_order):
        mo = make_mo(make_product("Frame", type="FINISHED_GOOD"), 1)
        make_work_order(mo, expected_duration=60)
        work_order = make_work_order(mo, expected_duration=180)
        work_order.real_duration = 120
        work_order.status = "COMPLETED"
        db.commit()

        utilization = WorkCenterService.get_utilization(db, work_center.id)["utilization"]

        assert utilization["total_capacity"] == 480.0
        assert utilization["expected"] == 50.0
        assert utilization["actual"] == 25.0

    def test_idle_work_center(self, db, work_center):
        utilization = WorkCenterService.get_utilization(db, work_center.id)["utilization"]
        assert (utilization["expected"], utilization["actual"]) == (0.0, 0.0)

    def test_work_center_in_use_cannot_be_deleted(self, db, work_center, make_product, make_mo, make_work_order):
        make_work_order(make_mo(make_product("Pane", type="FINISHED_GOOD"), 1))
        with pytest.raises(ConflictError):
            WorkCenterService.delete_work_center(db, work_center.id)

    def test_status_endpoint(self, client, owner_headers, work_center):
        res = client.patch(f"/api/work-centers/{work_center.id}/status", headers=owner_headers,
                           json={"status": "UNDER_MAINTENANCE"})
        assert res.json()["status"] == "UNDER_MAINTENANCE"

        stats = client.get("/api/work-centers/stats", headers=owner_headers).json()
        assert stats["under_maintenance_work_centers"] == 1
