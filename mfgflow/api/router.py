"""
API Router - JSON Endpoints
"""
from fastapi import APIRouter

from .auth import router as auth_router
from .users import router as users_router
from .products import router as products_router
from .boms import router as boms_router
from .manufacturing_orders import router as manufacturing_orders_router
from .work_orders import router as work_orders_router
from .work_centers import router as work_centers_router
from .stock_ledger import router as stock_ledger_router
from .component_availability import router as component_availability_router
from .dashboard import router as dashboard_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(dashboard_router)
api_router.include_router(products_router)
api_router.include_router(boms_router)
api_router.include_router(manufacturing_orders_router)
api_router.include_router(work_orders_router)
api_router.include_router(work_centers_router)
api_router.include_router(stock_ledger_router)
api_router.include_router(component_availability_router)
