"""
Production Completion

Completing a work order consumes the MO's BOM components (OUT) and books
the finished goods (IN), writing both the stock ledger and the cached
``Product.current_stock`` counter.

Two modes (``settings.COMPLETION_MODE``):

- legacy: the status change is committed first, then every stock write is
  committed on its own. A failure while moving stock is rolled back (only
  the failing statement), logged and swallowed; the work order stays
  COMPLETED with stock partially moved.
- atomic: status change and all stock writes share one transaction. A
  failure rolls everything back and raises PersistenceFailureError.
"""
from sqlalchemy.orm import Session, joinedload, selectinload
from typing import List, Optional
import logging

from mfgflow.core.config import settings
from mfgflow.core.exceptions import NotFoundError, InvalidStateTransitionError, PersistenceFailureError
from mfgflow.models import (
    WorkOrder, WorkOrderStatus, ManufacturingOrder, BillOfMaterial, BOMComponent,
    StockLedger, TransactionType, AuditLog
)
from .bom_service import BOMService
from .stock_service import StockService

logger = logging.getLogger(__name__)

COMPLETABLE_STATUSES = (WorkOrderStatus.STARTED.value, WorkOrderStatus.PAUSED.value)


class ProductionService:

    @staticmethod
    def load_order_for_completion(db: Session, mo_id: int) -> Optional[ManufacturingOrder]:
        """MO with finished product, BOM, components and component products"""
        return db.query(ManufacturingOrder).options(
            joinedload(ManufacturingOrder.finished_product),
            joinedload(ManufacturingOrder.bill_of_material)
                .selectinload(BillOfMaterial.components)
                .joinedload(BOMComponent.product)
        ).filter(ManufacturingOrder.id == mo_id).first()

    @staticmethod
    def book_stock_movements(db: Session, mo_id: int, autocommit: bool = True) -> List[StockLedger]:
        """
        Consume the BOM of an MO and book its output.
        Returns the ledger rows written; empty when the MO has no BOM.
        """
        mo = ProductionService.load_order_for_completion(db, mo_id)
        if not mo or not mo.bill_of_material:
            logger.info(f"MO {mo_id} has no BOM; no stock movement booked")
            return []

        # Values read up front; committed writes expire the loaded instances
        mo_number = mo.mo_number
        quantity = mo.quantity
        finished_product_id = mo.finished_product_id
        finished_unit_cost = mo.finished_product.unit_cost
        requirements = BOMService.resolve_components(mo.bill_of_material, quantity)

        entries = []
        for req in requirements:
            entries.append(StockService.record_movement(
                db,
                req["product_id"],
                TransactionType.OUT.value,
                req["required"],
                req["unit_cost"],
                reference=mo_number,
                reference_id=mo_id,
                autocommit=autocommit
            ))

        entries.append(StockService.record_movement(
            db,
            finished_product_id,
            TransactionType.IN.value,
            quantity,
            finished_unit_cost,
            reference=mo_number,
            reference_id=mo_id,
            autocommit=autocommit
        ))

        logger.info(
            f"{mo_number}: consumed {len(requirements)} components, produced {quantity} of product {finished_product_id}"
        )
        return entries

    @staticmethod
    def complete_work_order(
        db: Session,
        work_order_id: int,
        real_duration: Optional[int] = None,
        notes: Optional[str] = None,
        performed_by: Optional[int] = None,
        mode: Optional[str] = None
    ) -> WorkOrder:
        mode = (mode or settings.COMPLETION_MODE).lower()

        work_order = db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()
        if not work_order:
            raise NotFoundError("Work order", work_order_id)

        if work_order.status not in COMPLETABLE_STATUSES:
            raise InvalidStateTransitionError(
                "Only STARTED or PAUSED work orders can be completed", work_order.status
            )

        old_status = work_order.status
        mo_id = work_order.mo_id
        work_order.status = WorkOrderStatus.COMPLETED.value
        work_order.real_duration = real_duration or work_order.expected_duration
        if notes is not None:
            work_order.notes = notes
        db.add(AuditLog(
            table_name="work_orders",
            record_id=str(work_order.id),
            action="STATUS_CHANGE",
            performed_by=performed_by,
            before_data={"status": old_status},
            after_data={"status": WorkOrderStatus.COMPLETED.value}
        ))

        if mode == "atomic":
            try:
                db.flush()
                ProductionService.book_stock_movements(db, mo_id, autocommit=False)
                db.commit()
            except Exception as exc:
                db.rollback()
                logger.exception(f"Completion of work order {work_order_id} rolled back")
                raise PersistenceFailureError(
                    "Failed to complete work order; no changes were saved",
                    {"work_order_id": work_order_id}
                ) from exc
        else:
            db.commit()
            try:
                ProductionService.book_stock_movements(db, mo_id, autocommit=True)
            except Exception:
                db.rollback()
                logger.exception(f"Error updating stock on completion of work order {work_order_id}")

        logger.info(f"Work order {work_order_id}: {old_status} -> COMPLETED ({mode})")
        db.refresh(work_order)
        return work_order
