"""
Manufacturing Order Service - Business Logic for MOs
"""
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy import func, or_
from typing import List, Optional, Tuple, Dict
from datetime import datetime
import logging

from mfgflow.models import (
    ManufacturingOrder, MOStatus, Product, BillOfMaterial, BOMComponent,
    User, WorkOrder, StockLedger, WorkCenter, AuditLog
)
from mfgflow.schemas.manufacturing import ManufacturingOrderCreate, ManufacturingOrderUpdate
from mfgflow.core.exceptions import NotFoundError, ValidationError, InvalidStateTransitionError
from .sequence_service import SequenceService

logger = logging.getLogger(__name__)


class ManufacturingOrderService:
    """Manufacturing order business logic"""

    VALID_STATUSES = [s.value for s in MOStatus]

    @staticmethod
    def _mo_query(db: Session):
        return db.query(ManufacturingOrder).options(
            joinedload(ManufacturingOrder.finished_product),
            joinedload(ManufacturingOrder.assignee),
            joinedload(ManufacturingOrder.bill_of_material)
                .selectinload(BillOfMaterial.components)
                .joinedload(BOMComponent.product),
            selectinload(ManufacturingOrder.work_orders).joinedload(WorkOrder.work_center)
        )

    @staticmethod
    def _check_references(
        db: Session,
        finished_product_id: Optional[int] = None,
        bill_of_material_id: Optional[int] = None,
        assignee_id: Optional[int] = None
    ) -> None:
        if finished_product_id and not db.query(Product.id).filter(Product.id == finished_product_id).first():
            raise NotFoundError("Product", finished_product_id)
        if bill_of_material_id and not db.query(BillOfMaterial.id).filter(BillOfMaterial.id == bill_of_material_id).first():
            raise NotFoundError("BOM", bill_of_material_id)
        if assignee_id and not db.query(User.id).filter(User.id == assignee_id).first():
            raise NotFoundError("User", assignee_id)

    @staticmethod
    def _audit_status(db: Session, mo: ManufacturingOrder, old_status: str, new_status: str, performed_by: Optional[int]):
        db.add(AuditLog(
            table_name="manufacturing_orders",
            record_id=str(mo.id),
            action="STATUS_CHANGE",
            performed_by=performed_by,
            before_data={"status": old_status},
            after_data={"status": new_status}
        ))

    @staticmethod
    def create_manufacturing_order(db: Session, data: ManufacturingOrderCreate) -> ManufacturingOrder:
        """Create a DRAFT manufacturing order with the next MO number"""
        ManufacturingOrderService._check_references(
            db, data.finished_product_id, data.bill_of_material_id, data.assignee_id
        )

        mo = ManufacturingOrder(
            mo_number=SequenceService.next_mo_number(db),
            finished_product_id=data.finished_product_id,
            quantity=data.quantity,
            schedule_date=data.schedule_date,
            start_date=data.start_date,
            end_date=data.end_date,
            bill_of_material_id=data.bill_of_material_id,
            assignee_id=data.assignee_id,
            status=MOStatus.DRAFT.value
        )
        db.add(mo)
        db.commit()

        logger.info(f"Created {mo.mo_number}: {mo.quantity} x product {mo.finished_product_id}")
        return ManufacturingOrderService.get_manufacturing_order_by_id(db, mo.id)

    @staticmethod
    def get_manufacturing_orders(
        db: Session,
        search: Optional[str] = None,
        status: Optional[str] = None,
        assignee_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[ManufacturingOrder], int]:
        """Get MOs with filters and pagination"""
        query = db.query(ManufacturingOrder)\
            .join(Product, ManufacturingOrder.finished_product_id == Product.id)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    ManufacturingOrder.mo_number.ilike(search_term),
                    Product.name.ilike(search_term)
                )
            )

        if status and status != "all":
            query = query.filter(ManufacturingOrder.status == status)

        if assignee_id:
            query = query.filter(ManufacturingOrder.assignee_id == assignee_id)

        if start_date:
            query = query.filter(ManufacturingOrder.schedule_date >= start_date)
        if end_date:
            query = query.filter(ManufacturingOrder.schedule_date <= end_date)

        total = query.count()

        orders = query.options(
            joinedload(ManufacturingOrder.finished_product),
            joinedload(ManufacturingOrder.assignee),
            selectinload(ManufacturingOrder.work_orders)
        ).order_by(ManufacturingOrder.created_at.desc(), ManufacturingOrder.id.desc())\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()

        return orders, total

    @staticmethod
    def get_manufacturing_order_by_id(db: Session, mo_id: int) -> ManufacturingOrder:
        mo = ManufacturingOrderService._mo_query(db).filter(ManufacturingOrder.id == mo_id).first()
        if not mo:
            raise NotFoundError("Manufacturing order", mo_id)
        return mo

    @staticmethod
    def update_manufacturing_order(
        db: Session,
        mo_id: int,
        data: ManufacturingOrderUpdate,
        performed_by: Optional[int] = None
    ) -> ManufacturingOrder:
        mo = ManufacturingOrderService.get_manufacturing_order_by_id(db, mo_id)

        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        ManufacturingOrderService._check_references(
            db,
            update_data.get("finished_product_id"),
            update_data.get("bill_of_material_id"),
            update_data.get("assignee_id")
        )

        new_status = update_data.pop("status", None)
        if new_status is not None and new_status != mo.status:
            if new_status not in ManufacturingOrderService.VALID_STATUSES:
                raise ValidationError(f"Invalid status: {new_status}")
            ManufacturingOrderService._audit_status(db, mo, mo.status, new_status, performed_by)
            mo.status = new_status

        for field, value in update_data.items():
            setattr(mo, field, value)

        db.commit()
        return ManufacturingOrderService.get_manufacturing_order_by_id(db, mo.id)

    @staticmethod
    def update_status(db: Session, mo_id: int, status: str, performed_by: Optional[int] = None) -> ManufacturingOrder:
        """Set MO status; any valid status is accepted, the change is audited"""
        if status not in ManufacturingOrderService.VALID_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        mo = ManufacturingOrderService.get_manufacturing_order_by_id(db, mo_id)
        old_status = mo.status
        if old_status == status:
            return mo

        mo.status = status
        if status == MOStatus.IN_PROGRESS.value and not mo.start_date:
            mo.start_date = func.now()
        elif status == MOStatus.CLOSED.value and not mo.end_date:
            mo.end_date = func.now()

        ManufacturingOrderService._audit_status(db, mo, old_status, status, performed_by)
        db.commit()

        logger.info(f"{mo.mo_number}: {old_status} -> {status}")
        return ManufacturingOrderService.get_manufacturing_order_by_id(db, mo.id)

    @staticmethod
    def delete_manufacturing_order(db: Session, mo_id: int) -> None:
        """Only DRAFT orders can be deleted; their work orders go with them"""
        mo = ManufacturingOrderService.get_manufacturing_order_by_id(db, mo_id)

        if mo.status != MOStatus.DRAFT.value:
            raise InvalidStateTransitionError("Only DRAFT manufacturing orders can be deleted", mo.status)

        for work_order in list(mo.work_orders):
            db.delete(work_order)
        db.delete(mo)
        db.commit()
        logger.info(f"Deleted {mo.mo_number}")

    @staticmethod
    def get_summary(db: Session) -> Dict:
        """Record counts across the manufacturing tables"""
        return {
            "total_manufacturing_orders": db.query(func.count(ManufacturingOrder.id)).scalar(),
            "total_work_orders": db.query(func.count(WorkOrder.id)).scalar(),
            "total_products": db.query(func.count(Product.id)).scalar(),
            "total_boms": db.query(func.count(BillOfMaterial.id)).scalar(),
            "total_work_centers": db.query(func.count(WorkCenter.id)).scalar(),
            "total_stock_ledger": db.query(func.count(StockLedger.id)).scalar()
        }
