"""
Work Center Service
"""
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func, or_
from typing import List, Optional, Tuple, Dict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
import logging

from mfgflow.models import WorkCenter, WorkCenterStatus, WorkOrder, ManufacturingOrder
from mfgflow.schemas.manufacturing import WorkCenterCreate, WorkCenterUpdate
from mfgflow.core.exceptions import NotFoundError, ConflictError, ValidationError

logger = logging.getLogger(__name__)


def _percent(part: int, whole: Decimal) -> float:
    if not whole or whole <= 0:
        return 0.0
    value = Decimal(part) / whole * 100
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class WorkCenterService:
    """Work center business logic"""

    STATUSES = [s.value for s in WorkCenterStatus]

    SORT_FIELDS = {
        "name": WorkCenter.name,
        "capacity": WorkCenter.capacity,
        "cost_per_hour": WorkCenter.cost_per_hour,
        "status": WorkCenter.status,
        "created_at": WorkCenter.created_at,
    }

    @staticmethod
    def create_work_center(db: Session, data: WorkCenterCreate) -> WorkCenter:
        if db.query(WorkCenter.id).filter(WorkCenter.name == data.name).first():
            raise ConflictError("Work center with this name already exists")

        work_center = WorkCenter(
            name=data.name,
            description=data.description,
            capacity=data.capacity,
            cost_per_hour=data.cost_per_hour,
            status=data.status
        )
        db.add(work_center)
        db.commit()
        db.refresh(work_center)
        return work_center

    @staticmethod
    def get_work_centers(
        db: Session,
        search: Optional[str] = None,
        status: Optional[str] = None,
        sort_by: str = "name",
        sort_order: str = "asc",
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[WorkCenter], int]:
        query = db.query(WorkCenter)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    WorkCenter.name.ilike(search_term),
                    WorkCenter.description.ilike(search_term)
                )
            )

        if status:
            query = query.filter(WorkCenter.status == status)

        total = query.count()

        column = WorkCenterService.SORT_FIELDS.get(sort_by, WorkCenter.name)
        order = column.desc() if sort_order.lower() == "desc" else column.asc()

        work_centers = query.order_by(order, WorkCenter.id)\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()

        return work_centers, total

    @staticmethod
    def get_work_center_by_id(db: Session, work_center_id: int) -> WorkCenter:
        work_center = db.query(WorkCenter).filter(WorkCenter.id == work_center_id).first()
        if not work_center:
            raise NotFoundError("Work center", work_center_id)
        return work_center

    @staticmethod
    def count_work_orders(db: Session, work_center_id: int) -> int:
        return db.query(func.count(WorkOrder.id)).filter(WorkOrder.work_center_id == work_center_id).scalar()

    @staticmethod
    def update_work_center(db: Session, work_center_id: int, data: WorkCenterUpdate) -> WorkCenter:
        work_center = WorkCenterService.get_work_center_by_id(db, work_center_id)

        update_data = data.model_dump(exclude_unset=True)
        new_name = update_data.get("name")
        if new_name and new_name != work_center.name:
            conflict = db.query(WorkCenter.id)\
                .filter(WorkCenter.name == new_name, WorkCenter.id != work_center.id)\
                .first()
            if conflict:
                raise ConflictError("Work center with this name already exists")

        for field, value in update_data.items():
            if value is not None:
                setattr(work_center, field, value)

        db.commit()
        db.refresh(work_center)
        return work_center

    @staticmethod
    def delete_work_center(db: Session, work_center_id: int) -> None:
        work_center = WorkCenterService.get_work_center_by_id(db, work_center_id)

        if WorkCenterService.count_work_orders(db, work_center.id) > 0:
            raise ConflictError("Cannot delete work center that has work orders")

        db.delete(work_center)
        db.commit()
        logger.info(f"Deleted work center {work_center.name}")

    @staticmethod
    def update_status(db: Session, work_center_id: int, status: str) -> WorkCenter:
        if status not in WorkCenterService.STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        work_center = WorkCenterService.get_work_center_by_id(db, work_center_id)
        work_center.status = status
        db.commit()
        db.refresh(work_center)
        return work_center

    @staticmethod
    def get_utilization(
        db: Session,
        work_center_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Dict:
        """
        Expected and actual load against one day of capacity.
        Percentages are rounded to two decimals.
        """
        work_center = WorkCenterService.get_work_center_by_id(db, work_center_id)

        query = db.query(WorkOrder).options(
            joinedload(WorkOrder.manufacturing_order).joinedload(ManufacturingOrder.finished_product)
        ).filter(WorkOrder.work_center_id == work_center.id)
        if start_date:
            query = query.filter(WorkOrder.created_at >= start_date)
        if end_date:
            query = query.filter(WorkOrder.created_at <= end_date)
        work_orders = query.order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc()).all()

        total_expected = sum(wo.expected_duration or 0 for wo in work_orders)
        total_real = sum(wo.real_duration or 0 for wo in work_orders)
        total_capacity = Decimal(str(work_center.capacity or 0)) * 60  # minutes

        return {
            "work_center": work_center,
            "work_orders": work_orders,
            "utilization": {
                "expected": _percent(total_expected, total_capacity),
                "actual": _percent(total_real, total_capacity) if total_real > 0 else 0.0,
                "total_expected_duration": total_expected,
                "total_real_duration": total_real,
                "total_capacity": float(total_capacity)
            }
        }

    @staticmethod
    def get_stats(db: Session) -> Dict:
        counts = dict(
            db.query(WorkCenter.status, func.count(WorkCenter.id))
            .group_by(WorkCenter.status)
            .all()
        )
        return {
            "total_work_centers": sum(counts.values()),
            "active_work_centers": counts.get(WorkCenterStatus.ACTIVE.value, 0),
            "under_maintenance_work_centers": counts.get(WorkCenterStatus.UNDER_MAINTENANCE.value, 0),
            "inactive_work_centers": counts.get(WorkCenterStatus.INACTIVE.value, 0)
        }
