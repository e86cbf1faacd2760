"""
Stock Ledger API - movements, replayed stock and consistency checks
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.schemas.stock import StockTransactionCreate, StockTransactionUpdate, StockAdjust
from mfgflow.services import StockService
from .serializers import ledger_to_dict, product_to_dict, page_meta

router = APIRouter(prefix="/stock-ledger", tags=["stock-ledger"])


# ===================== META & REPORTS =====================

@router.get("/meta/transaction-types")
def transaction_types(_=Depends(require_permission("STOCK_READ"))):
    return {"transaction_types": StockService.TRANSACTION_TYPES}


@router.get("/summary")
def stock_summary(db: Session = Depends(get_db), _=Depends(require_permission("STOCK_READ"))):
    return StockService.get_stock_summary(db)


@router.get("/products/stocks")
def all_product_stocks(
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_READ"))
):
    rows = StockService.get_all_product_stocks(db, search, type)
    return {
        "products": [
            {
                **product_to_dict(row["product"]),
                "current_stock": row["current_stock"],
                "cached_stock": row["product"].current_stock,
                "total_in": row["total_in"],
                "total_out": row["total_out"],
                "total_value": float(row["total_value"]),
                "free_to_use": row["free_to_use"],
                "incoming": row["incoming"],
                "outgoing": row["outgoing"]
            }
            for row in rows
        ],
        "total": len(rows)
    }


@router.get("/consistency")
def consistency_check(
    product_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_READ"))
):
    """Cached current_stock against the ledger replay"""
    report = StockService.check_consistency(db, product_id)
    drifted = [r for r in report if not r["consistent"]]
    return {
        "consistent": not drifted,
        "checked": len(report),
        "inconsistent": len(drifted),
        "products": report
    }


# ===================== PRODUCT STOCK =====================

@router.get("/product/{product_id}/stock")
def product_stock(product_id: int, db: Session = Depends(get_db), _=Depends(require_permission("STOCK_READ"))):
    """Current stock and history computed from the ledger"""
    stock = StockService.get_product_stock(db, product_id)
    return {
        "product": product_to_dict(stock["product"]),
        "current_stock": stock["current_stock"],
        "history": [ledger_to_dict(entry, running) for entry, running in stock["history"]]
    }


@router.get("/product/{product_id}/movements")
def product_movements(
    product_id: int,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_READ"))
):
    movements = StockService.get_stock_movements(db, product_id, start_date, end_date)
    return {"movements": [ledger_to_dict(e) for e in movements]}


@router.post("/product/{product_id}/adjust", status_code=201)
def adjust_stock(
    product_id: int,
    data: StockAdjust,
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_WRITE"))
):
    return ledger_to_dict(StockService.adjust_stock(db, product_id, data.quantity, data.reason))


@router.post("/product/{product_id}/rebuild")
def rebuild_cached_stock(
    product_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_DELETE"))
):
    """Overwrite the cached counter with the ledger replay"""
    return StockService.rebuild_cached_stock(db, product_id)


# ===================== LEDGER ENTRIES =====================

@router.get("")
def list_stock_ledger(
    search: Optional[str] = Query(None),
    product_id: Optional[int] = Query(None),
    transaction_type: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    reference: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_READ"))
):
    entries, total = StockService.get_stock_ledger(
        db, search, product_id, transaction_type, start_date, end_date, reference, page, per_page
    )
    return {"entries": [ledger_to_dict(e) for e in entries], **page_meta(total, page, per_page)}


@router.post("", status_code=201)
def create_stock_transaction(
    data: StockTransactionCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_WRITE"))
):
    return ledger_to_dict(StockService.create_stock_transaction(db, data))


@router.get("/{entry_id}")
def get_stock_transaction(entry_id: int, db: Session = Depends(get_db), _=Depends(require_permission("STOCK_READ"))):
    return ledger_to_dict(StockService.get_stock_ledger_by_id(db, entry_id))


@router.put("/{entry_id}")
def update_stock_transaction(
    entry_id: int,
    data: StockTransactionUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("STOCK_WRITE"))
):
    return ledger_to_dict(StockService.update_stock_transaction(db, entry_id, data))


@router.delete("/{entry_id}")
def delete_stock_transaction(entry_id: int, db: Session = Depends(get_db), _=Depends(require_permission("STOCK_DELETE"))):
    StockService.delete_stock_transaction(db, entry_id)
    return {"message": "Stock transaction deleted successfully"}
