"""
Dashboard Service - read-only rollups
"""
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from typing import List, Dict, Optional
from datetime import datetime, timezone

from mfgflow.core.config import settings
from mfgflow.models import ManufacturingOrder, MOStatus, Product, WorkOrder, WorkOrderStatus


class DashboardService:

    @staticmethod
    def get_mo_status_counts(db: Session) -> Dict[str, int]:
        rows = db.query(ManufacturingOrder.status, func.count(ManufacturingOrder.id))\
            .group_by(ManufacturingOrder.status)\
            .all()
        return {status: count for status, count in rows}

    @staticmethod
    def get_recent_orders(db: Session, limit: int = 5) -> List[ManufacturingOrder]:
        return db.query(ManufacturingOrder).options(
            joinedload(ManufacturingOrder.finished_product),
            joinedload(ManufacturingOrder.assignee)
        ).order_by(ManufacturingOrder.created_at.desc(), ManufacturingOrder.id.desc())\
            .limit(limit)\
            .all()

    @staticmethod
    def get_low_stock_products(db: Session, threshold: Optional[int] = None, limit: int = 10) -> List[Product]:
        """Products whose cached stock is at or below the threshold, lowest first"""
        threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
        return db.query(Product)\
            .filter(Product.current_stock <= threshold)\
            .order_by(Product.current_stock.asc(), Product.id)\
            .limit(limit)\
            .all()

    @staticmethod
    def get_kpis(db: Session, now: Optional[datetime] = None) -> Dict:
        now = now or datetime.now(timezone.utc)
        counts = DashboardService.get_mo_status_counts(db)

        orders_delayed = db.query(func.count(ManufacturingOrder.id))\
            .filter(
                ManufacturingOrder.status.in_([MOStatus.IN_PROGRESS.value, MOStatus.CONFIRMED.value]),
                ManufacturingOrder.schedule_date < now
            ).scalar()

        total_work_orders = db.query(func.count(WorkOrder.id)).scalar()
        completed_work_orders = db.query(func.count(WorkOrder.id))\
            .filter(WorkOrder.status == WorkOrderStatus.COMPLETED.value)\
            .scalar()
        efficiency = (completed_work_orders / total_work_orders * 100) if total_work_orders else 0

        return {
            "orders_completed": counts.get(MOStatus.CLOSED.value, 0),
            "orders_in_progress": counts.get(MOStatus.IN_PROGRESS.value, 0),
            "orders_delayed": orders_delayed,
            "total_work_orders": total_work_orders,
            "completed_work_orders": completed_work_orders,
            "efficiency": round(efficiency, 2)
        }

    @staticmethod
    def get_summary(db: Session, role: str) -> Dict:
        label = role.replace("_", " ", 1)
        return {
            "title": f"{label} Dashboard",
            "description": f"Welcome to your {label.lower()} dashboard",
            "user_role": role,
            "summary": {
                "total_manufacturing_orders": db.query(func.count(ManufacturingOrder.id)).scalar(),
                "total_products": db.query(func.count(Product.id)).scalar(),
                "total_work_orders": db.query(func.count(WorkOrder.id)).scalar()
            },
            "manufacturing_orders_by_status": DashboardService.get_mo_status_counts(db),
            "recent_manufacturing_orders": DashboardService.get_recent_orders(db),
            "low_stock_products": DashboardService.get_low_stock_products(db),
            "kpis": DashboardService.get_kpis(db)
        }
