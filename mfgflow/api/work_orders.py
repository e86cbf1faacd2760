"""
Work Orders API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.models import User
from mfgflow.schemas.manufacturing import StatusUpdate
from mfgflow.schemas.work_order import (
    WorkOrderCreate, WorkOrderUpdate, WorkOrderComplete, WorkOrderPause,
    CommentCreate, IssueCreate, IssueStatusUpdate
)
from mfgflow.services import WorkOrderService
from .serializers import work_order_to_dict, comment_to_dict, issue_to_dict, page_meta

router = APIRouter(prefix="/work-orders", tags=["work-orders"])


# ===================== WORK ORDERS =====================

@router.get("")
def list_work_orders(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    work_center_id: Optional[int] = Query(None),
    mo_id: Optional[int] = Query(None),
    assigned_to_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_permission("WO_READ"))
):
    work_orders, total = WorkOrderService.get_work_orders(
        db, search, status, work_center_id, mo_id, assigned_to_id, page, per_page
    )
    return {"work_orders": [work_order_to_dict(wo) for wo in work_orders], **page_meta(total, page, per_page)}


@router.post("", status_code=201)
def create_work_order(data: WorkOrderCreate, db: Session = Depends(get_db), _=Depends(require_permission("WO_WRITE"))):
    return work_order_to_dict(WorkOrderService.create_work_order(db, data))


@router.get("/{work_order_id}")
def get_work_order(work_order_id: int, db: Session = Depends(get_db), _=Depends(require_permission("WO_READ"))):
    return work_order_to_dict(WorkOrderService.get_work_order_by_id(db, work_order_id), detail=True)


@router.put("/{work_order_id}")
def update_work_order(
    work_order_id: int,
    data: WorkOrderUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("WO_WRITE"))
):
    return work_order_to_dict(WorkOrderService.update_work_order(db, work_order_id, data))


@router.delete("/{work_order_id}")
def delete_work_order(work_order_id: int, db: Session = Depends(get_db), _=Depends(require_permission("WO_DELETE"))):
    WorkOrderService.delete_work_order(db, work_order_id)
    return {"message": "Work order deleted successfully"}


# ===================== LIFECYCLE =====================

@router.patch("/{work_order_id}/status")
def update_work_order_status(
    work_order_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("WO_WRITE"))
):
    work_order = WorkOrderService.update_status(db, work_order_id, data.status, performed_by=current_user.id)
    return work_order_to_dict(work_order)


@router.patch("/{work_order_id}/start")
def start_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("WO_WRITE"))
):
    return work_order_to_dict(WorkOrderService.start_work_order(db, work_order_id, current_user.id))


@router.patch("/{work_order_id}/pause")
def pause_work_order(
    work_order_id: int,
    data: Optional[WorkOrderPause] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("WO_WRITE"))
):
    reason = data.reason if data else None
    return work_order_to_dict(WorkOrderService.pause_work_order(db, work_order_id, reason, current_user.id))


@router.patch("/{work_order_id}/complete")
def complete_work_order(
    work_order_id: int,
    data: Optional[WorkOrderComplete] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("WO_WRITE"))
):
    """Complete a STARTED or PAUSED work order and book its stock movements"""
    work_order = WorkOrderService.complete_work_order(
        db, work_order_id, data or WorkOrderComplete(), user_id=current_user.id
    )
    return work_order_to_dict(work_order)


# ===================== COMMENTS =====================

@router.get("/{work_order_id}/comments")
def list_comments(work_order_id: int, db: Session = Depends(get_db), _=Depends(require_permission("WO_READ"))):
    return {"comments": [comment_to_dict(c) for c in WorkOrderService.get_comments(db, work_order_id)]}


@router.post("/{work_order_id}/comments", status_code=201)
def add_comment(
    work_order_id: int,
    data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("WO_WRITE"))
):
    return comment_to_dict(WorkOrderService.add_comment(db, work_order_id, current_user.id, data.comment))


# ===================== ISSUES =====================

@router.get("/{work_order_id}/issues")
def list_issues(work_order_id: int, db: Session = Depends(get_db), _=Depends(require_permission("WO_READ"))):
    return {"issues": [issue_to_dict(i) for i in WorkOrderService.get_issues(db, work_order_id)]}


@router.post("/{work_order_id}/issues", status_code=201)
def create_issue(
    work_order_id: int,
    data: IssueCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("WO_WRITE"))
):
    return issue_to_dict(WorkOrderService.create_issue(db, work_order_id, current_user.id, data))


@router.patch("/issues/{issue_id}/status")
def update_issue_status(
    issue_id: int,
    data: IssueStatusUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("WO_WRITE"))
):
    return issue_to_dict(WorkOrderService.update_issue_status(db, issue_id, data.status))


@router.patch("/issues/{issue_id}/resolve")
def resolve_issue(issue_id: int, db: Session = Depends(get_db), _=Depends(require_permission("WO_WRITE"))):
    return issue_to_dict(WorkOrderService.resolve_issue(db, issue_id))
