"""
Work orders: lifecycle transitions, status aliases, comments and issues
"""
import pytest

from mfgflow.core.exceptions import InvalidStateTransitionError, ValidationError
from mfgflow.models import AuditLog
from mfgflow.services import WorkOrderService


@pytest.fixture
def planned(make_product, make_mo, make_work_order):
    mo = make_mo(make_product("Door", type="FINISHED_GOOD"), 2)
    return make_work_order(mo, status="PLANNED")


class TestStatus:

    @pytest.mark.parametrize("alias, expected", [
        ("IN_PROGRESS", "STARTED"),
        ("ON_HOLD", "PAUSED"),
        ("DONE", "COMPLETED"),
        ("paused", "PAUSED"),
    ])
    def test_aliases(self, alias, expected):
        assert WorkOrderService.normalize_status(alias) == expected

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            WorkOrderService.normalize_status("FINISHED")

    def test_status_change_audited(self, db, planned, owner):
        WorkOrderService.update_status(db, planned.id, "IN_PROGRESS", performed_by=owner.id)

        audit = db.query(AuditLog).filter(AuditLog.table_name == "work_orders").one()
        assert audit.after_data == {"status": "STARTED"}


class TestLifecycle:

    def test_start_assigns_user(self, db, planned, owner):
        work_order = WorkOrderService.start_work_order(db, planned.id, owner.id)
        assert work_order.status == "STARTED"
        assert work_order.assigned_to_id == owner.id

    def test_start_twice_rejected(self, db, planned):
        WorkOrderService.start_work_order(db, planned.id)
        with pytest.raises(InvalidStateTransitionError):
            WorkOrderService.start_work_order(db, planned.id)

    def test_pause_stores_reason(self, db, planned):
        WorkOrderService.start_work_order(db, planned.id)
        work_order = WorkOrderService.pause_work_order(db, planned.id, "Material shortage")
        assert work_order.status == "PAUSED"
        assert "Material shortage" in work_order.notes

    def test_pause_planned_rejected(self, db, planned):
        with pytest.raises(InvalidStateTransitionError):
            WorkOrderService.pause_work_order(db, planned.id)

    def test_delete_started_rejected(self, db, planned):
        WorkOrderService.start_work_order(db, planned.id)
        with pytest.raises(InvalidStateTransitionError):
            WorkOrderService.delete_work_order(db, planned.id)


class TestWorkOrderAPI:

    def test_create_is_planned(self, client, owner_headers, make_product, make_mo, work_center):
        mo = make_mo(make_product("Window", type="FINISHED_GOOD"), 1)

        res = client.post("/api/work-orders", headers=owner_headers, json={
            "mo_id": mo.id, "work_center_id": work_center.id, "operation_name": "Glazing", "expected_duration": 30
        })

        assert res.status_code == 201
        assert res.json()["status"] == "PLANNED"
        assert res.json()["mo_number"] == mo.mo_number

    def test_unknown_work_center(self, client, owner_headers, make_product, make_mo):
        mo = make_mo(make_product("Gate", type="FINISHED_GOOD"), 1)
        res = client.post("/api/work-orders", headers=owner_headers, json={
            "mo_id": mo.id, "work_center_id": 99, "operation_name": "Welding", "expected_duration": 30
        })
        assert res.status_code == 404

    def test_start_then_pause(self, client, owner_headers, planned):
        assert client.patch(f"/api/work-orders/{planned.id}/start", headers=owner_headers).json()["status"] == "STARTED"
        res = client.patch(f"/api/work-orders/{planned.id}/pause", headers=owner_headers, json={"reason": "Break"})
        assert res.json()["status"] == "PAUSED"

    def test_null_fields_leave_work_order_unchanged(self, client, owner_headers, planned):
        res = client.put(f"/api/work-orders/{planned.id}", headers=owner_headers,
                         json={"operation_name": None, "expected_duration": None})

        assert res.status_code == 200
        assert res.json()["operation_name"] == "Assembly"
        assert res.json()["expected_duration"] == 60

    def test_operator_may_write_but_not_delete(self, client, make_user, auth_headers, planned):
        headers = auth_headers(make_user("OPERATOR"))
        assert client.patch(f"/api/work-orders/{planned.id}/start", headers=headers).status_code == 200
        assert client.delete(f"/api/work-orders/{planned.id}", headers=headers).status_code == 403

    def test_comments_and_issues(self, client, owner_headers, planned):
        res = client.post(f"/api/work-orders/{planned.id}/comments", headers=owner_headers, json={"comment": "Check torque"})
        assert res.status_code == 201

        res = client.post(f"/api/work-orders/{planned.id}/issues", headers=owner_headers, json={
            "issue_type": "QUALITY", "description": "Scratched surface", "severity": "HIGH"
        })
        issue_id = res.json()["id"]
        assert res.json()["status"] == "OPEN"

        res = client.patch(f"/api/work-orders/issues/{issue_id}/resolve", headers=owner_headers)
        assert res.json()["status"] == "RESOLVED"
        assert res.json()["resolved_at"] is not None

        detail = client.get(f"/api/work-orders/{planned.id}", headers=owner_headers).json()
        assert len(detail["comments"]) == 1
        assert len(detail["issues"]) == 1
