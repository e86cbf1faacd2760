# Services Package
from .auth_service import AuthService
from .product_service import ProductService
from .stock_service import StockService, replay_ledger, apply_movement
from .bom_service import BOMService
from .sequence_service import SequenceService
from .manufacturing_order_service import ManufacturingOrderService
from .production_service import ProductionService
from .work_order_service import WorkOrderService
from .work_center_service import WorkCenterService
from .availability_service import AvailabilityService
from .dashboard_service import DashboardService

__all__ = [
    "AuthService",
    "ProductService",
    "StockService",
    "replay_ledger",
    "apply_movement",
    "BOMService",
    "SequenceService",
    "ManufacturingOrderService",
    "ProductionService",
    "WorkOrderService",
    "WorkCenterService",
    "AvailabilityService",
    "DashboardService",
]
