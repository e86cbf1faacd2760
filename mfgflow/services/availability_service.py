"""
Component Availability Service

Reservation-style stock view (available / reserved / incoming / outgoing)
kept apart from the stock ledger. It only changes through the calls in this
module; completing a work order does not touch it unless
``handle_work_order_completion`` is invoked explicitly.

Rows are read, modified in Python and written back, so concurrent
reservations on the same product can overwrite each other.
"""
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy import func
from typing import List, Optional, Dict
import logging

from mfgflow.core.config import settings
from mfgflow.core.exceptions import NotFoundError, ValidationError, InsufficientStockError
from mfgflow.models import (
    ComponentAvailability, Product, ManufacturingOrder, BillOfMaterial, BOMComponent,
    WorkOrder, WorkOrderStatus, TransactionType
)
from .bom_service import BOMService

logger = logging.getLogger(__name__)


class AvailabilityService:

    @staticmethod
    def _get_row(db: Session, product_id: int) -> Optional[ComponentAvailability]:
        return db.query(ComponentAvailability).filter(ComponentAvailability.product_id == product_id).first()

    @staticmethod
    def update_availability(
        db: Session,
        product_id: int,
        transaction_type: str,
        quantity: int,
        commit: bool = True
    ) -> ComponentAvailability:
        """IN adds to available and incoming; OUT floors available at 0 and adds to outgoing"""
        row = AvailabilityService._get_row(db, product_id)

        if not row:
            is_in = transaction_type == TransactionType.IN.value
            row = ComponentAvailability(
                product_id=product_id,
                available=quantity if is_in else 0,
                reserved=0,
                incoming=quantity if is_in else 0,
                outgoing=quantity if transaction_type == TransactionType.OUT.value else 0
            )
            db.add(row)
        elif transaction_type == TransactionType.IN.value:
            row.available += quantity
            row.incoming += quantity
            row.last_updated = func.now()
        elif transaction_type == TransactionType.OUT.value:
            row.available = max(0, row.available - quantity)
            row.outgoing += quantity
            row.last_updated = func.now()

        if commit:
            db.commit()
            db.refresh(row)
        else:
            db.flush()
        return row

    @staticmethod
    def _order_requirements(db: Session, mo_id: int, bom_id: Optional[int] = None):
        mo = db.query(ManufacturingOrder).filter(ManufacturingOrder.id == mo_id).first()
        if not mo:
            raise NotFoundError("Manufacturing order", mo_id)

        bom_id = bom_id or mo.bill_of_material_id
        if not bom_id:
            raise ValidationError("Manufacturing order has no BOM to reserve against")

        return mo, BOMService.resolve_bom(db, bom_id, mo.quantity)

    @staticmethod
    def reserve_components(
        db: Session,
        mo_id: int,
        bom_id: Optional[int] = None,
        mode: Optional[str] = None
    ) -> List[Dict]:
        """
        Move each component's requirement for the MO from available to
        reserved. Stops at the first short component with
        InsufficientStockError.
        """
        mode = (mode or settings.COMPLETION_MODE).lower()
        mo, requirements = AvailabilityService._order_requirements(db, mo_id, bom_id)
        atomic = mode == "atomic"

        reservations = []
        try:
            for req in requirements:
                row = AvailabilityService._get_row(db, req["product_id"])
                available = row.available if row else 0
                if not row or available < req["required"]:
                    raise InsufficientStockError(req["product_name"], req["required"], available)

                row.available -= req["required"]
                row.reserved += req["required"]
                row.last_updated = func.now()

                if atomic:
                    db.flush()
                else:
                    db.commit()
                    db.refresh(row)

                reservations.append({
                    "product_id": req["product_id"],
                    "product_name": req["product_name"],
                    "required": req["required"],
                    "available": row.available,
                    "reserved": row.reserved
                })

            if atomic:
                db.commit()
        except InsufficientStockError:
            db.rollback()
            logger.warning(
                f"Reservation for MO {mo_id} stopped after {len(reservations)} components ({mode})"
            )
            raise

        logger.info(f"Reserved {len(reservations)} components for MO {mo_id}")
        return reservations

    @staticmethod
    def release_components(db: Session, mo_id: int, bom_id: Optional[int] = None) -> List[Dict]:
        """Move the MO's requirement back from reserved to available"""
        mo, requirements = AvailabilityService._order_requirements(db, mo_id, bom_id)

        released = []
        for req in requirements:
            row = AvailabilityService._get_row(db, req["product_id"])
            if not row:
                continue
            amount = min(req["required"], row.reserved)
            row.reserved -= amount
            row.available += amount
            row.last_updated = func.now()
            released.append({
                "product_id": req["product_id"],
                "product_name": req["product_name"],
                "released": amount
            })

        db.commit()
        logger.info(f"Released reservations of MO {mo_id} on {len(released)} components")
        return released

    @staticmethod
    def get_all_availability(
        db: Session,
        search: Optional[str] = None,
        product_type: Optional[str] = None,
        low_stock: bool = False
    ) -> List[ComponentAvailability]:
        query = db.query(ComponentAvailability)\
            .join(Product, ComponentAvailability.product_id == Product.id)\
            .options(joinedload(ComponentAvailability.product))

        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))
        if product_type:
            query = query.filter(Product.type == product_type)
        if low_stock:
            query = query.filter(ComponentAvailability.available <= settings.LOW_STOCK_THRESHOLD)

        return query.order_by(ComponentAvailability.last_updated.desc(), ComponentAvailability.id.desc()).all()

    @staticmethod
    def get_product_availability(db: Session, product_id: int) -> Dict:
        """Availability figures of one product, zeros when it has no row yet"""
        row = db.query(ComponentAvailability).options(joinedload(ComponentAvailability.product))\
            .filter(ComponentAvailability.product_id == product_id).first()

        if not row:
            return {
                "product_id": product_id,
                "available": 0,
                "reserved": 0,
                "incoming": 0,
                "outgoing": 0,
                "last_updated": None
            }

        return {
            "product_id": row.product_id,
            "product_name": row.product.name,
            "available": row.available,
            "reserved": row.reserved,
            "incoming": row.incoming,
            "outgoing": row.outgoing,
            "last_updated": row.last_updated
        }

    @staticmethod
    def check_availability(db: Session, bom_id: int, quantity: int = 1) -> Dict:
        """Read-only check of whether a BOM can be produced ``quantity`` times"""
        requirements = BOMService.resolve_bom(db, bom_id, quantity)

        rows = {
            r.product_id: r for r in db.query(ComponentAvailability)
            .filter(ComponentAvailability.product_id.in_([req["product_id"] for req in requirements]))
            .all()
        }

        availability = []
        all_available = True
        for req in requirements:
            row = rows.get(req["product_id"])
            available = row.available if row else 0
            sufficient = available >= req["required"]
            all_available = all_available and sufficient
            availability.append({
                "product_id": req["product_id"],
                "product_name": req["product_name"],
                "required": req["required"],
                "available": available,
                "sufficient": sufficient,
                "shortfall": max(0, req["required"] - available)
            })

        return {
            "all_available": all_available,
            "availability": availability,
            "can_produce": all_available
        }

    @staticmethod
    def get_low_stock_alerts(db: Session, threshold: Optional[int] = None) -> List[Dict]:
        threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold

        rows = db.query(ComponentAvailability).options(joinedload(ComponentAvailability.product))\
            .filter(ComponentAvailability.available <= threshold)\
            .order_by(ComponentAvailability.available.asc())\
            .all()

        alerts = []
        for row in rows:
            if row.available == 0:
                urgency = "CRITICAL"
            elif row.available <= threshold / 2:
                urgency = "HIGH"
            else:
                urgency = "MEDIUM"
            alerts.append({
                "product_id": row.product_id,
                "product_name": row.product.name,
                "current_stock": row.available,
                "threshold": threshold,
                "urgency": urgency
            })
        return alerts

    @staticmethod
    def handle_work_order_completion(db: Session, work_order_id: int) -> Dict:
        """Apply a completed work order's movements to the availability rows"""
        work_order = db.query(WorkOrder).options(
            joinedload(WorkOrder.manufacturing_order)
                .joinedload(ManufacturingOrder.bill_of_material)
                .selectinload(BillOfMaterial.components)
                .joinedload(BOMComponent.product)
        ).filter(WorkOrder.id == work_order_id).first()

        if not work_order:
            raise NotFoundError("Work order", work_order_id)
        if work_order.status != WorkOrderStatus.COMPLETED.value:
            return {"message": "Work order not completed"}

        mo = work_order.manufacturing_order
        if not mo.bill_of_material:
            return {"message": "No BOM associated with manufacturing order"}

        for req in BOMService.resolve_components(mo.bill_of_material, mo.quantity):
            AvailabilityService.update_availability(
                db, req["product_id"], TransactionType.OUT.value, req["required"], commit=False
            )
        AvailabilityService.update_availability(
            db, mo.finished_product_id, TransactionType.IN.value, mo.quantity, commit=False
        )
        db.commit()

        return {"message": "Stock movements processed successfully"}
