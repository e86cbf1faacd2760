"""
Stock Service - Stock Ledger, Replay and Cached Stock

Two ways to read a product's stock:
- cached: ``Product.current_stock``, O(1), kept in step by every ledger writer
- replayed: walk the product's ledger in chronological order (IN adds,
  OUT subtracts, ADJUSTMENT sets the running total)

``check_consistency`` compares them so drift is observable.
"""
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func, or_
from typing import Iterable, List, Optional, Dict, Tuple
from datetime import datetime
from decimal import Decimal
import logging

from mfgflow.models import Product, StockLedger, TransactionType
from mfgflow.schemas.stock import StockTransactionCreate, StockTransactionUpdate
from mfgflow.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def apply_movement(running: int, transaction_type: str, quantity: int) -> int:
    """Apply one ledger movement to a running stock figure"""
    if transaction_type == TransactionType.IN.value:
        return running + quantity
    if transaction_type == TransactionType.OUT.value:
        return running - quantity
    if transaction_type == TransactionType.ADJUSTMENT.value:
        return quantity
    return running


def replay_ledger(entries: Iterable) -> List[int]:
    """
    Running stock after each entry. ``entries`` must already be in
    chronological order and expose ``transaction_type`` and ``quantity``.
    Pure function of its input.
    """
    running = 0
    totals = []
    for entry in entries:
        running = apply_movement(running, entry.transaction_type, entry.quantity)
        totals.append(running)
    return totals


class StockService:
    """Stock ledger business logic"""

    TRANSACTION_TYPES = [t.value for t in TransactionType]

    # ===================== WRITES =====================

    @staticmethod
    def apply_to_cached_stock(db: Session, product_id: int, transaction_type: str, quantity: int) -> None:
        """Move Product.current_stock in a single UPDATE statement"""
        if transaction_type == TransactionType.IN.value:
            new_value = Product.current_stock + quantity
        elif transaction_type == TransactionType.OUT.value:
            new_value = Product.current_stock - quantity
        else:
            new_value = quantity

        db.query(Product).filter(Product.id == product_id).update(
            {Product.current_stock: new_value},
            synchronize_session="fetch"
        )

    @staticmethod
    def append_entry(
        db: Session,
        product_id: int,
        transaction_type: str,
        quantity: int,
        unit_cost,
        reference: Optional[str] = None,
        reference_id: Optional[int] = None
    ) -> StockLedger:
        """Append a ledger row (not flushed)"""
        unit_cost = Decimal(str(unit_cost or 0))
        entry = StockLedger(
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=quantity,
            unit_cost=unit_cost,
            total_value=unit_cost * quantity,
            reference=reference,
            reference_id=reference_id
        )
        db.add(entry)
        return entry

    @staticmethod
    def record_movement(
        db: Session,
        product_id: int,
        transaction_type: str,
        quantity: int,
        unit_cost,
        reference: Optional[str] = None,
        reference_id: Optional[int] = None,
        autocommit: bool = True
    ) -> StockLedger:
        """
        Move the cached counter and append the matching ledger row.
        With ``autocommit`` each of the two writes is committed on its own;
        otherwise both are only flushed into the caller's transaction.
        """
        StockService.apply_to_cached_stock(db, product_id, transaction_type, quantity)
        if autocommit:
            db.commit()

        entry = StockService.append_entry(
            db, product_id, transaction_type, quantity, unit_cost, reference, reference_id
        )
        if autocommit:
            db.commit()
        else:
            db.flush()
        return entry

    @staticmethod
    def create_stock_transaction(db: Session, data: StockTransactionCreate) -> StockLedger:
        """Create a manual stock transaction"""
        product = db.query(Product).filter(Product.id == data.product_id).first()
        if not product:
            raise NotFoundError("Product", data.product_id)

        if data.transaction_type != TransactionType.ADJUSTMENT.value and data.quantity < 1:
            raise ValidationError("Quantity must be a positive integer")

        StockService.apply_to_cached_stock(db, product.id, data.transaction_type, data.quantity)
        entry = StockService.append_entry(
            db,
            product.id,
            data.transaction_type,
            data.quantity,
            data.unit_cost,
            data.reference,
            data.reference_id
        )
        db.commit()
        db.refresh(entry)

        logger.info(f"Stock {entry.transaction_type} {entry.quantity} for product {product.name}")
        return entry

    @staticmethod
    def adjust_stock(db: Session, product_id: int, quantity: int, reason: str = "Manual adjustment") -> StockLedger:
        """Set a product's stock through an ADJUSTMENT entry"""
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product", product_id)

        return StockService.create_stock_transaction(db, StockTransactionCreate(
            product_id=product.id,
            transaction_type=TransactionType.ADJUSTMENT.value,
            quantity=quantity,
            unit_cost=product.unit_cost,
            reference=reason
        ))

    @staticmethod
    def update_stock_transaction(db: Session, entry_id: int, data: StockTransactionUpdate) -> StockLedger:
        """
        Correct a ledger row. The cached counter is left alone; use
        ``check_consistency`` / ``rebuild_cached_stock`` afterwards.
        """
        entry = StockService.get_stock_ledger_by_id(db, entry_id)

        if data.quantity:
            entry.quantity = data.quantity
        if data.unit_cost is not None:
            entry.unit_cost = data.unit_cost
        entry.total_value = Decimal(str(entry.unit_cost)) * entry.quantity

        update_data = data.model_dump(exclude_unset=True)
        for field in ("reference", "reference_id"):
            if field in update_data:
                setattr(entry, field, update_data[field])

        db.commit()
        db.refresh(entry)
        logger.warning(f"Stock ledger entry {entry_id} edited; cached stock not updated")
        return entry

    @staticmethod
    def delete_stock_transaction(db: Session, entry_id: int) -> None:
        entry = StockService.get_stock_ledger_by_id(db, entry_id)
        db.delete(entry)
        db.commit()
        logger.warning(f"Stock ledger entry {entry_id} deleted; cached stock not updated")

    # ===================== READS =====================

    @staticmethod
    def get_stock_ledger_by_id(db: Session, entry_id: int) -> StockLedger:
        entry = db.query(StockLedger).options(joinedload(StockLedger.product))\
            .filter(StockLedger.id == entry_id).first()
        if not entry:
            raise NotFoundError("Stock transaction", entry_id)
        return entry

    @staticmethod
    def get_stock_ledger(
        db: Session,
        search: Optional[str] = None,
        product_id: Optional[int] = None,
        transaction_type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        reference: Optional[str] = None,
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[StockLedger], int]:
        """Get ledger entries with filters and pagination, newest first"""
        query = db.query(StockLedger).join(Product, StockLedger.product_id == Product.id)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Product.name.ilike(search_term),
                    StockLedger.reference.ilike(search_term)
                )
            )

        if product_id:
            query = query.filter(StockLedger.product_id == product_id)

        if transaction_type:
            query = query.filter(StockLedger.transaction_type == transaction_type)

        if start_date:
            query = query.filter(StockLedger.transaction_date >= start_date)
        if end_date:
            query = query.filter(StockLedger.transaction_date <= end_date)

        if reference:
            query = query.filter(StockLedger.reference.ilike(f"%{reference}%"))

        total = query.count()

        entries = query.options(joinedload(StockLedger.product))\
            .order_by(StockLedger.transaction_date.desc(), StockLedger.id.desc())\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()

        return entries, total

    @staticmethod
    def get_ordered_entries(db: Session, product_id: int) -> List[StockLedger]:
        """Ledger rows of one product in replay order"""
        return db.query(StockLedger)\
            .filter(StockLedger.product_id == product_id)\
            .order_by(StockLedger.transaction_date.asc(), StockLedger.id.asc())\
            .all()

    @staticmethod
    def get_product_stock(db: Session, product_id: int) -> Dict:
        """Current stock and history computed by replaying the ledger"""
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product", product_id)

        entries = StockService.get_ordered_entries(db, product.id)
        running = replay_ledger(entries)

        return {
            "product": product,
            "current_stock": running[-1] if running else 0,
            "history": list(zip(entries, running))
        }

    @staticmethod
    def get_stock_movements(
        db: Session,
        product_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[StockLedger]:
        """Movements of one product, newest first"""
        query = db.query(StockLedger).filter(StockLedger.product_id == product_id)
        if start_date:
            query = query.filter(StockLedger.transaction_date >= start_date)
        if end_date:
            query = query.filter(StockLedger.transaction_date <= end_date)
        return query.order_by(StockLedger.transaction_date.desc(), StockLedger.id.desc()).all()

    @staticmethod
    def _ledger_by_product(db: Session, product_ids: Optional[List[int]] = None) -> Dict[int, List[StockLedger]]:
        """Pre-fetch ledger rows grouped by product, each group in replay order"""
        query = db.query(StockLedger)
        if product_ids is not None:
            query = query.filter(StockLedger.product_id.in_(product_ids))
        rows = query.order_by(
            StockLedger.product_id,
            StockLedger.transaction_date.asc(),
            StockLedger.id.asc()
        ).all()

        grouped: Dict[int, List[StockLedger]] = {}
        for row in rows:
            grouped.setdefault(row.product_id, []).append(row)
        return grouped

    @staticmethod
    def get_all_product_stocks(db: Session, search: Optional[str] = None, product_type: Optional[str] = None) -> List[Dict]:
        """Replayed stock figures for every product"""
        query = db.query(Product)
        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))
        if product_type:
            query = query.filter(Product.type == product_type)
        products = query.order_by(Product.name).all()

        ledger_map = StockService._ledger_by_product(db, [p.id for p in products])

        results = []
        for p in products:
            current_stock = 0
            total_in = 0
            total_out = 0
            total_value = Decimal("0")

            for entry in ledger_map.get(p.id, []):
                current_stock = apply_movement(current_stock, entry.transaction_type, entry.quantity)
                if entry.transaction_type == TransactionType.IN.value:
                    total_in += entry.quantity
                elif entry.transaction_type == TransactionType.OUT.value:
                    total_out += entry.quantity
                total_value += Decimal(str(entry.total_value or 0))

            results.append({
                "product": p,
                "current_stock": current_stock,
                "total_in": total_in,
                "total_out": total_out,
                "total_value": total_value,
                "free_to_use": current_stock,
                "incoming": 0,
                "outgoing": 0
            })

        return results

    @staticmethod
    def get_stock_summary(db: Session) -> Dict:
        type_counts = dict(
            db.query(StockLedger.transaction_type, func.count(StockLedger.id))
            .group_by(StockLedger.transaction_type)
            .all()
        )
        return {
            "total_products": db.query(func.count(Product.id)).scalar(),
            "total_transactions": sum(type_counts.values()),
            "total_in_transactions": type_counts.get(TransactionType.IN.value, 0),
            "total_out_transactions": type_counts.get(TransactionType.OUT.value, 0),
            "total_adjustments": type_counts.get(TransactionType.ADJUSTMENT.value, 0)
        }

    # ===================== CONSISTENCY =====================

    @staticmethod
    def check_consistency(db: Session, product_id: Optional[int] = None) -> List[Dict]:
        """Compare cached current_stock with the ledger replay per product"""
        query = db.query(Product)
        if product_id is not None:
            query = query.filter(Product.id == product_id)
        products = query.order_by(Product.id).all()

        if product_id is not None and not products:
            raise NotFoundError("Product", product_id)

        ledger_map = StockService._ledger_by_product(db, [p.id for p in products])

        report = []
        for p in products:
            running = replay_ledger(ledger_map.get(p.id, []))
            ledger_stock = running[-1] if running else 0
            cached_stock = p.current_stock or 0
            report.append({
                "product_id": p.id,
                "product_name": p.name,
                "cached_stock": cached_stock,
                "ledger_stock": ledger_stock,
                "difference": cached_stock - ledger_stock,
                "consistent": cached_stock == ledger_stock
            })

        return report

    @staticmethod
    def rebuild_cached_stock(db: Session, product_id: int) -> Dict:
        """Overwrite Product.current_stock with the ledger replay"""
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product", product_id)

        running = replay_ledger(StockService.get_ordered_entries(db, product.id))
        previous = product.current_stock
        product.current_stock = running[-1] if running else 0
        db.commit()
        db.refresh(product)

        if previous != product.current_stock:
            logger.warning(
                f"Rebuilt cached stock for {product.name}: {previous} -> {product.current_stock}"
            )
        return {
            "product_id": product.id,
            "previous_stock": previous,
            "current_stock": product.current_stock
        }
