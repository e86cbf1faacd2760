"""
Dashboard API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.models import User
from mfgflow.services import DashboardService, ManufacturingOrderService
from .serializers import mo_to_dict, product_to_dict, page_meta

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary")
def dashboard_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("DASHBOARD_READ"))
):
    data = DashboardService.get_summary(db, current_user.role)
    data["recent_manufacturing_orders"] = [mo_to_dict(mo) for mo in data["recent_manufacturing_orders"]]
    data["low_stock_products"] = [product_to_dict(p) for p in data["low_stock_products"]]
    return data


@router.get("/manufacturing-orders")
def dashboard_manufacturing_orders(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    assignee_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_permission("DASHBOARD_READ"))
):
    orders, total = ManufacturingOrderService.get_manufacturing_orders(
        db, search, status, assignee_id, start_date, end_date, page, per_page
    )
    return {"manufacturing_orders": [mo_to_dict(mo) for mo in orders], **page_meta(total, page, per_page)}


@router.get("/low-stock-products")
def low_stock_products(
    threshold: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    _=Depends(require_permission("DASHBOARD_READ"))
):
    """Products whose cached current_stock is at or below the threshold"""
    products = DashboardService.get_low_stock_products(db, threshold)
    return {"products": [product_to_dict(p) for p in products]}


@router.get("/kpis")
def dashboard_kpis(db: Session = Depends(get_db), _=Depends(require_permission("DASHBOARD_READ"))):
    return DashboardService.get_kpis(db)
