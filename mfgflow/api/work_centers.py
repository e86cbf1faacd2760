"""
Work Centers API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.schemas.manufacturing import WorkCenterCreate, WorkCenterUpdate, StatusUpdate
from mfgflow.services import WorkCenterService
from .serializers import work_center_to_dict, work_order_to_dict, page_meta

router = APIRouter(prefix="/work-centers", tags=["work-centers"])


@router.get("/meta/statuses")
def work_center_statuses(_=Depends(require_permission("WC_READ"))):
    return {"statuses": WorkCenterService.STATUSES}


@router.get("/stats")
def work_center_stats(db: Session = Depends(get_db), _=Depends(require_permission("WC_READ"))):
    return WorkCenterService.get_stats(db)


@router.get("")
def list_work_centers(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_permission("WC_READ"))
):
    work_centers, total = WorkCenterService.get_work_centers(db, search, status, sort_by, sort_order, page, per_page)
    return {
        "work_centers": [
            {**work_center_to_dict(wc), "work_order_count": len(wc.work_orders)}
            for wc in work_centers
        ],
        **page_meta(total, page, per_page)
    }


@router.post("", status_code=201)
def create_work_center(
    data: WorkCenterCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("WC_WRITE"))
):
    return work_center_to_dict(WorkCenterService.create_work_center(db, data))


@router.get("/{work_center_id}")
def get_work_center(work_center_id: int, db: Session = Depends(get_db), _=Depends(require_permission("WC_READ"))):
    wc = WorkCenterService.get_work_center_by_id(db, work_center_id)
    return {
        **work_center_to_dict(wc),
        "work_orders": [work_order_to_dict(wo) for wo in wc.work_orders]
    }


@router.put("/{work_center_id}")
def update_work_center(
    work_center_id: int,
    data: WorkCenterUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("WC_WRITE"))
):
    return work_center_to_dict(WorkCenterService.update_work_center(db, work_center_id, data))


@router.patch("/{work_center_id}/status")
def update_work_center_status(
    work_center_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("WC_WRITE"))
):
    return work_center_to_dict(WorkCenterService.update_status(db, work_center_id, data.status))


@router.delete("/{work_center_id}")
def delete_work_center(work_center_id: int, db: Session = Depends(get_db), _=Depends(require_permission("WC_DELETE"))):
    WorkCenterService.delete_work_center(db, work_center_id)
    return {"message": "Work center deleted successfully"}


@router.get("/{work_center_id}/utilization")
def work_center_utilization(
    work_center_id: int,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    _=Depends(require_permission("WC_READ"))
):
    result = WorkCenterService.get_utilization(db, work_center_id, start_date, end_date)
    return {
        "work_center": work_center_to_dict(result["work_center"]),
        "work_orders": [work_order_to_dict(wo) for wo in result["work_orders"]],
        "utilization": result["utilization"]
    }
