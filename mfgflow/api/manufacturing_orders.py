"""
Manufacturing Orders API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.models import User
from mfgflow.schemas.manufacturing import ManufacturingOrderCreate, ManufacturingOrderUpdate, StatusUpdate
from mfgflow.services import ManufacturingOrderService
from .serializers import mo_to_dict, page_meta

router = APIRouter(prefix="/manufacturing-orders", tags=["manufacturing-orders"])


@router.get("")
def list_manufacturing_orders(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    assignee_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_permission("MO_READ"))
):
    orders, total = ManufacturingOrderService.get_manufacturing_orders(
        db, search, status, assignee_id, start_date, end_date, page, per_page
    )
    return {"manufacturing_orders": [mo_to_dict(mo) for mo in orders], **page_meta(total, page, per_page)}


@router.get("/summary")
def manufacturing_summary(db: Session = Depends(get_db), _=Depends(require_permission("MO_READ"))):
    return ManufacturingOrderService.get_summary(db)


@router.post("", status_code=201)
def create_manufacturing_order(
    data: ManufacturingOrderCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("MO_WRITE"))
):
    return mo_to_dict(ManufacturingOrderService.create_manufacturing_order(db, data), detail=True)


@router.get("/{mo_id}")
def get_manufacturing_order(mo_id: int, db: Session = Depends(get_db), _=Depends(require_permission("MO_READ"))):
    return mo_to_dict(ManufacturingOrderService.get_manufacturing_order_by_id(db, mo_id), detail=True)


@router.put("/{mo_id}")
def update_manufacturing_order(
    mo_id: int,
    data: ManufacturingOrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("MO_WRITE"))
):
    mo = ManufacturingOrderService.update_manufacturing_order(db, mo_id, data, performed_by=current_user.id)
    return mo_to_dict(mo, detail=True)


@router.patch("/{mo_id}/status")
def update_manufacturing_order_status(
    mo_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("MO_WRITE"))
):
    mo = ManufacturingOrderService.update_status(db, mo_id, data.status, performed_by=current_user.id)
    return mo_to_dict(mo, detail=True)


@router.delete("/{mo_id}")
def delete_manufacturing_order(mo_id: int, db: Session = Depends(get_db), _=Depends(require_permission("MO_DELETE"))):
    ManufacturingOrderService.delete_manufacturing_order(db, mo_id)
    return {"message": "Manufacturing order deleted successfully"}
