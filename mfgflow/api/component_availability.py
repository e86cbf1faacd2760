"""
Component Availability API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.schemas.stock import ReserveRequest, AvailabilityCheck
from mfgflow.services import AvailabilityService
from .serializers import product_brief

router = APIRouter(prefix="/component-availability", tags=["component-availability"])


@router.get("")
def list_availability(
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    low_stock: bool = Query(False),
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_READ"))
):
    rows = AvailabilityService.get_all_availability(db, search, type, low_stock)
    return {
        "availability": [
            {
                "id": row.id,
                "product_id": row.product_id,
                "product": product_brief(row.product),
                "available": row.available,
                "reserved": row.reserved,
                "incoming": row.incoming,
                "outgoing": row.outgoing,
                "last_updated": row.last_updated.isoformat() if row.last_updated else None
            }
            for row in rows
        ],
        "total": len(rows)
    }


@router.get("/low-stock")
def low_stock_alerts(
    threshold: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_READ"))
):
    return {"alerts": AvailabilityService.get_low_stock_alerts(db, threshold)}


@router.get("/product/{product_id}")
def product_availability(product_id: int, db: Session = Depends(get_db), _=Depends(require_permission("STOCK_READ"))):
    data = AvailabilityService.get_product_availability(db, product_id)
    if data.get("last_updated") is not None:
        data["last_updated"] = data["last_updated"].isoformat()
    return data


@router.post("/check")
def check_availability(
    data: AvailabilityCheck,
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_READ"))
):
    return AvailabilityService.check_availability(db, data.bom_id, data.quantity)


@router.post("/reserve")
def reserve_components(
    data: ReserveRequest,
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_WRITE"))
):
    reservations = AvailabilityService.reserve_components(db, data.manufacturing_order_id, data.bom_id)
    return {"reservations": reservations}


@router.post("/release/{mo_id}")
def release_components(mo_id: int, db: Session = Depends(get_db), _=Depends(require_permission("STOCK_WRITE"))):
    return {"released": AvailabilityService.release_components(db, mo_id)}


@router.post("/work-orders/{work_order_id}/sync")
def sync_work_order_completion(
    work_order_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_WRITE"))
):
    """Apply a completed work order's movements to the availability rows"""
    return AvailabilityService.handle_work_order_completion(db, work_order_id)
