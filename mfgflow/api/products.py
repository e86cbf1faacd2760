"""
Products API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.schemas.product import ProductCreate, ProductUpdate
from mfgflow.services import ProductService, StockService
from .serializers import (
    product_to_dict, bom_to_dict, ledger_to_dict, mo_to_dict, page_meta
)

router = APIRouter(prefix="/products", tags=["products"])


# ===================== META =====================

@router.get("/meta/types")
def product_types(_=Depends(require_permission("PRODUCT_READ"))):
    return {"types": ProductService.get_product_types()}


@router.get("/meta/units")
def product_units(_=Depends(require_permission("PRODUCT_READ"))):
    return {"units": ProductService.get_units_of_measure()}


# ===================== PRODUCTS =====================

@router.get("")
def list_products(
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_permission("PRODUCT_READ"))
):
    products, total = ProductService.get_products(db, search, type, sort_by, sort_order, page, per_page)
    return {"products": [product_to_dict(p) for p in products], **page_meta(total, page, per_page)}


@router.post("", status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("PRODUCT_WRITE"))
):
    return product_to_dict(ProductService.create_product(db, data))


@router.get("/{product_id}")
def get_product(product_id: int, db: Session = Depends(get_db), _=Depends(require_permission("PRODUCT_READ"))):
    detail = ProductService.get_product_detail(db, product_id)
    return {
        **product_to_dict(detail["product"]),
        "bom": bom_to_dict(detail["bom"]) if detail["bom"] else None,
        "stock_ledger": [ledger_to_dict(e) for e in detail["stock_ledger"]],
        "manufacturing_orders": [mo_to_dict(mo) for mo in detail["manufacturing_orders"]]
    }


@router.put("/{product_id}")
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("PRODUCT_WRITE"))
):
    return product_to_dict(ProductService.update_product(db, product_id, data))


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db), _=Depends(require_permission("PRODUCT_DELETE"))):
    ProductService.delete_product(db, product_id)
    return {"message": "Product deleted successfully"}


@router.get("/{product_id}/stock")
def product_stock(product_id: int, db: Session = Depends(get_db), _=Depends(require_permission("STOCK_READ"))):
    stock = StockService.get_product_stock(db, product_id)
    return {
        "product": product_to_dict(stock["product"]),
        "current_stock": stock["current_stock"]
    }
