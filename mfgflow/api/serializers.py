"""
Response builders shared by the routers
"""
from decimal import Decimal
from typing import Optional


def _num(value) -> float:
    return float(value) if value is not None else 0.0


def _dt(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def page_meta(total: int, page: int, per_page: int) -> dict:
    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if per_page else 0
    }


def user_brief(u) -> Optional[dict]:
    if u is None:
        return None
    return {"id": u.id, "name": u.name, "email": u.email, "role": u.role}


def user_to_dict(u) -> dict:
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "mobile_no": u.mobile_no,
        "role": u.role,
        "is_active": u.is_active,
        "last_login_at": _dt(u.last_login_at),
        "created_at": _dt(u.created_at)
    }


def product_to_dict(p) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "type": p.type,
        "unit_of_measure": p.unit_of_measure,
        "unit_cost": _num(p.unit_cost),
        "current_stock": p.current_stock,
        "created_at": _dt(p.created_at)
    }


def product_brief(p) -> Optional[dict]:
    if p is None:
        return None
    return {"id": p.id, "name": p.name, "type": p.type, "unit_of_measure": p.unit_of_measure}


def ledger_to_dict(e, running_stock: Optional[int] = None) -> dict:
    data = {
        "id": e.id,
        "product_id": e.product_id,
        "product": product_brief(e.product),
        "transaction_type": e.transaction_type,
        "quantity": e.quantity,
        "unit_cost": _num(e.unit_cost),
        "total_value": _num(e.total_value),
        "reference": e.reference,
        "reference_id": e.reference_id,
        "transaction_date": _dt(e.transaction_date)
    }
    if running_stock is not None:
        data["running_stock"] = running_stock
    return data


def component_to_dict(c) -> dict:
    return {
        "id": c.id,
        "bom_id": c.bom_id,
        "product_id": c.product_id,
        "product": product_brief(c.product),
        "quantity": c.quantity,
        "unit": c.unit,
        "cost": _num(c.cost),
        "total": _num(c.total)
    }


def bom_to_dict(b) -> dict:
    return {
        "id": b.id,
        "product_id": b.product_id,
        "product": product_brief(b.product),
        "reference": b.reference,
        "version": b.version,
        "is_active": b.is_active,
        "components": [component_to_dict(c) for c in b.components],
        "created_at": _dt(b.created_at)
    }


def work_center_to_dict(wc) -> dict:
    return {
        "id": wc.id,
        "name": wc.name,
        "description": wc.description,
        "capacity": _num(wc.capacity),
        "cost_per_hour": _num(wc.cost_per_hour),
        "status": wc.status
    }


def work_order_to_dict(wo, detail: bool = False) -> dict:
    mo = wo.manufacturing_order
    data = {
        "id": wo.id,
        "mo_id": wo.mo_id,
        "mo_number": mo.mo_number if mo else None,
        "finished_product": product_brief(mo.finished_product) if mo else None,
        "work_center_id": wo.work_center_id,
        "work_center": work_center_to_dict(wo.work_center) if wo.work_center else None,
        "operation_name": wo.operation_name,
        "expected_duration": wo.expected_duration,
        "real_duration": wo.real_duration,
        "status": wo.status,
        "assigned_to": user_brief(wo.assigned_to),
        "notes": wo.notes,
        "created_at": _dt(wo.created_at)
    }
    if detail:
        data["comments"] = [comment_to_dict(c) for c in wo.comments]
        data["issues"] = [issue_to_dict(i) for i in wo.issues]
    return data


def comment_to_dict(c) -> dict:
    return {
        "id": c.id,
        "work_order_id": c.work_order_id,
        "user": user_brief(c.user),
        "comment": c.comment,
        "created_at": _dt(c.created_at)
    }


def issue_to_dict(i) -> dict:
    return {
        "id": i.id,
        "work_order_id": i.work_order_id,
        "user": user_brief(i.user),
        "issue_type": i.issue_type,
        "description": i.description,
        "severity": i.severity,
        "status": i.status,
        "resolved_at": _dt(i.resolved_at),
        "created_at": _dt(i.created_at)
    }


def mo_to_dict(mo, detail: bool = False) -> dict:
    data = {
        "id": mo.id,
        "mo_number": mo.mo_number,
        "finished_product_id": mo.finished_product_id,
        "finished_product": product_brief(mo.finished_product),
        "quantity": mo.quantity,
        "bill_of_material_id": mo.bill_of_material_id,
        "assignee": user_brief(mo.assignee),
        "status": mo.status,
        "schedule_date": _dt(mo.schedule_date),
        "start_date": _dt(mo.start_date),
        "end_date": _dt(mo.end_date),
        "work_order_count": len(mo.work_orders),
        "created_at": _dt(mo.created_at)
    }
    if detail:
        data["bill_of_material"] = bom_to_dict(mo.bill_of_material) if mo.bill_of_material else None
        data["work_orders"] = [
            {
                "id": wo.id,
                "operation_name": wo.operation_name,
                "work_center": wo.work_center.name if wo.work_center else None,
                "status": wo.status,
                "expected_duration": wo.expected_duration,
                "real_duration": wo.real_duration
            }
            for wo in mo.work_orders
        ]
    return data


def requirement_to_dict(req: dict) -> dict:
    data = dict(req)
    if isinstance(data.get("unit_cost"), Decimal):
        data["unit_cost"] = float(data["unit_cost"])
    return data
