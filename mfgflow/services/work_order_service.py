"""
Work Order Service - Business Logic for Work Orders
"""
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy import func, or_
from typing import List, Optional, Tuple
import logging

from mfgflow.models import (
    WorkOrder, WorkOrderStatus, WORK_ORDER_STATUS_ALIASES, WorkOrderComment,
    WorkOrderIssue, ManufacturingOrder, WorkCenter, Product, User, AuditLog
)
from mfgflow.schemas.work_order import WorkOrderCreate, WorkOrderUpdate, WorkOrderComplete, IssueCreate
from mfgflow.core.exceptions import NotFoundError, ValidationError, InvalidStateTransitionError
from .production_service import ProductionService

logger = logging.getLogger(__name__)


class WorkOrderService:
    """Work order business logic"""

    VALID_STATUSES = [s.value for s in WorkOrderStatus]

    @staticmethod
    def normalize_status(status: str) -> str:
        """Map legacy status names onto the current lifecycle"""
        status = (status or "").upper()
        status = WORK_ORDER_STATUS_ALIASES.get(status, status)
        if status not in WorkOrderService.VALID_STATUSES:
            raise ValidationError(f"Invalid work order status: {status}")
        return status

    @staticmethod
    def record_status_change(db: Session, work_order: WorkOrder, old_status: str, performed_by: Optional[int]) -> None:
        db.add(AuditLog(
            table_name="work_orders",
            record_id=str(work_order.id),
            action="STATUS_CHANGE",
            performed_by=performed_by,
            before_data={"status": old_status},
            after_data={"status": work_order.status}
        ))

    # ===================== CRUD =====================

    @staticmethod
    def create_work_order(db: Session, data: WorkOrderCreate) -> WorkOrder:
        if not db.query(ManufacturingOrder.id).filter(ManufacturingOrder.id == data.mo_id).first():
            raise NotFoundError("Manufacturing order", data.mo_id)
        if not db.query(WorkCenter.id).filter(WorkCenter.id == data.work_center_id).first():
            raise NotFoundError("Work center", data.work_center_id)
        if data.assigned_to_id and not db.query(User.id).filter(User.id == data.assigned_to_id).first():
            raise NotFoundError("User", data.assigned_to_id)

        work_order = WorkOrder(
            mo_id=data.mo_id,
            work_center_id=data.work_center_id,
            operation_name=data.operation_name,
            expected_duration=data.expected_duration,
            assigned_to_id=data.assigned_to_id,
            status=WorkOrderStatus.PLANNED.value
        )
        db.add(work_order)
        db.commit()

        logger.info(f"Created work order {work_order.id} '{work_order.operation_name}' for MO {work_order.mo_id}")
        return WorkOrderService.get_work_order_by_id(db, work_order.id)

    @staticmethod
    def get_work_orders(
        db: Session,
        search: Optional[str] = None,
        status: Optional[str] = None,
        work_center_id: Optional[int] = None,
        mo_id: Optional[int] = None,
        assigned_to_id: Optional[int] = None,
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[WorkOrder], int]:
        """Get work orders with filters and pagination"""
        query = db.query(WorkOrder)\
            .join(WorkCenter, WorkOrder.work_center_id == WorkCenter.id)\
            .join(ManufacturingOrder, WorkOrder.mo_id == ManufacturingOrder.id)\
            .join(Product, ManufacturingOrder.finished_product_id == Product.id)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    WorkOrder.operation_name.ilike(search_term),
                    WorkCenter.name.ilike(search_term),
                    Product.name.ilike(search_term)
                )
            )

        if status and status != "all":
            query = query.filter(WorkOrder.status == WorkOrderService.normalize_status(status))

        if work_center_id:
            query = query.filter(WorkOrder.work_center_id == work_center_id)

        if mo_id:
            query = query.filter(WorkOrder.mo_id == mo_id)

        if assigned_to_id:
            query = query.filter(WorkOrder.assigned_to_id == assigned_to_id)

        total = query.count()

        work_orders = query.options(
            joinedload(WorkOrder.manufacturing_order).joinedload(ManufacturingOrder.finished_product),
            joinedload(WorkOrder.work_center),
            joinedload(WorkOrder.assigned_to)
        ).order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc())\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()

        return work_orders, total

    @staticmethod
    def get_work_order_by_id(db: Session, work_order_id: int) -> WorkOrder:
        work_order = db.query(WorkOrder).options(
            joinedload(WorkOrder.manufacturing_order).joinedload(ManufacturingOrder.finished_product),
            joinedload(WorkOrder.work_center),
            joinedload(WorkOrder.assigned_to),
            selectinload(WorkOrder.comments).joinedload(WorkOrderComment.user),
            selectinload(WorkOrder.issues).joinedload(WorkOrderIssue.user)
        ).filter(WorkOrder.id == work_order_id).first()

        if not work_order:
            raise NotFoundError("Work order", work_order_id)
        return work_order

    @staticmethod
    def update_work_order(db: Session, work_order_id: int, data: WorkOrderUpdate) -> WorkOrder:
        work_order = WorkOrderService.get_work_order_by_id(db, work_order_id)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("assigned_to_id") and not db.query(User.id).filter(User.id == update_data["assigned_to_id"]).first():
            raise NotFoundError("User", update_data["assigned_to_id"])

        for field, value in update_data.items():
            if value is not None:
                setattr(work_order, field, value)

        db.commit()
        return WorkOrderService.get_work_order_by_id(db, work_order.id)

    @staticmethod
    def delete_work_order(db: Session, work_order_id: int) -> None:
        work_order = WorkOrderService.get_work_order_by_id(db, work_order_id)

        if work_order.status != WorkOrderStatus.PLANNED.value:
            raise InvalidStateTransitionError("Only PLANNED work orders can be deleted", work_order.status)

        db.delete(work_order)
        db.commit()
        logger.info(f"Deleted work order {work_order_id}")

    # ===================== LIFECYCLE =====================

    @staticmethod
    def update_status(db: Session, work_order_id: int, status: str, performed_by: Optional[int] = None) -> WorkOrder:
        """
        Generic status setter. Accepts legacy names. Setting COMPLETED here
        does not move stock; use ``complete_work_order`` for that.
        """
        new_status = WorkOrderService.normalize_status(status)
        work_order = WorkOrderService.get_work_order_by_id(db, work_order_id)

        old_status = work_order.status
        if old_status != new_status:
            work_order.status = new_status
            WorkOrderService.record_status_change(db, work_order, old_status, performed_by)
            db.commit()

        return WorkOrderService.get_work_order_by_id(db, work_order.id)

    @staticmethod
    def start_work_order(db: Session, work_order_id: int, user_id: Optional[int] = None) -> WorkOrder:
        """PLANNED -> STARTED, assigning the caller"""
        work_order = WorkOrderService.get_work_order_by_id(db, work_order_id)

        if work_order.status != WorkOrderStatus.PLANNED.value:
            raise InvalidStateTransitionError("Only PLANNED work orders can be started", work_order.status)

        old_status = work_order.status
        work_order.status = WorkOrderStatus.STARTED.value
        if user_id:
            work_order.assigned_to_id = user_id
        WorkOrderService.record_status_change(db, work_order, old_status, user_id)
        db.commit()

        return WorkOrderService.get_work_order_by_id(db, work_order.id)

    @staticmethod
    def pause_work_order(
        db: Session,
        work_order_id: int,
        reason: Optional[str] = None,
        user_id: Optional[int] = None
    ) -> WorkOrder:
        """STARTED -> PAUSED"""
        work_order = WorkOrderService.get_work_order_by_id(db, work_order_id)

        if work_order.status != WorkOrderStatus.STARTED.value:
            raise InvalidStateTransitionError("Only STARTED work orders can be paused", work_order.status)

        old_status = work_order.status
        work_order.status = WorkOrderStatus.PAUSED.value
        if reason:
            work_order.notes = reason
        WorkOrderService.record_status_change(db, work_order, old_status, user_id)
        db.commit()

        return WorkOrderService.get_work_order_by_id(db, work_order.id)

    @staticmethod
    def complete_work_order(
        db: Session,
        work_order_id: int,
        data: WorkOrderComplete,
        user_id: Optional[int] = None
    ) -> WorkOrder:
        """Complete the work order and book its stock movements"""
        ProductionService.complete_work_order(
            db, work_order_id, real_duration=data.real_duration, notes=data.notes, performed_by=user_id
        )
        return WorkOrderService.get_work_order_by_id(db, work_order_id)

    # ===================== COMMENTS & ISSUES =====================

    @staticmethod
    def add_comment(db: Session, work_order_id: int, user_id: int, comment: str) -> WorkOrderComment:
        if not db.query(WorkOrder.id).filter(WorkOrder.id == work_order_id).first():
            raise NotFoundError("Work order", work_order_id)

        new_comment = WorkOrderComment(work_order_id=work_order_id, user_id=user_id, comment=comment)
        db.add(new_comment)
        db.commit()
        db.refresh(new_comment)
        return new_comment

    @staticmethod
    def get_comments(db: Session, work_order_id: int) -> List[WorkOrderComment]:
        return db.query(WorkOrderComment).options(joinedload(WorkOrderComment.user))\
            .filter(WorkOrderComment.work_order_id == work_order_id)\
            .order_by(WorkOrderComment.created_at.desc(), WorkOrderComment.id.desc())\
            .all()

    @staticmethod
    def create_issue(db: Session, work_order_id: int, user_id: int, data: IssueCreate) -> WorkOrderIssue:
        if not db.query(WorkOrder.id).filter(WorkOrder.id == work_order_id).first():
            raise NotFoundError("Work order", work_order_id)

        issue = WorkOrderIssue(
            work_order_id=work_order_id,
            user_id=user_id,
            issue_type=data.issue_type,
            description=data.description,
            severity=data.severity,
            status="OPEN"
        )
        db.add(issue)
        db.commit()
        db.refresh(issue)

        logger.info(f"Issue {issue.id} ({issue.severity}) raised on work order {work_order_id}")
        return issue

    @staticmethod
    def get_issues(db: Session, work_order_id: int) -> List[WorkOrderIssue]:
        return db.query(WorkOrderIssue).options(joinedload(WorkOrderIssue.user))\
            .filter(WorkOrderIssue.work_order_id == work_order_id)\
            .order_by(WorkOrderIssue.created_at.desc(), WorkOrderIssue.id.desc())\
            .all()

    @staticmethod
    def _get_issue(db: Session, issue_id: int) -> WorkOrderIssue:
        issue = db.query(WorkOrderIssue).filter(WorkOrderIssue.id == issue_id).first()
        if not issue:
            raise NotFoundError("Issue", issue_id)
        return issue

    @staticmethod
    def update_issue_status(db: Session, issue_id: int, status: str) -> WorkOrderIssue:
        issue = WorkOrderService._get_issue(db, issue_id)
        issue.status = status
        if status == "RESOLVED" and not issue.resolved_at:
            issue.resolved_at = func.now()
        db.commit()
        db.refresh(issue)
        return issue

    @staticmethod
    def resolve_issue(db: Session, issue_id: int) -> WorkOrderIssue:
        issue = WorkOrderService._get_issue(db, issue_id)
        issue.status = "RESOLVED"
        issue.resolved_at = func.now()
        db.commit()
        db.refresh(issue)
        return issue
