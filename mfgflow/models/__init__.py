from .base import IntegerIDMixin, TimestampMixin
from .user import User, UserRole
from .product import Product, ProductType, UNITS_OF_MEASURE
from .bom import BillOfMaterial, BOMComponent
from .manufacturing import (
    ManufacturingOrder, MOStatus,
    WorkCenter, WorkCenterStatus,
    WorkOrder, WorkOrderStatus, WORK_ORDER_STATUS_ALIASES,
    WorkOrderComment, WorkOrderIssue,
)
from .stock import StockLedger, TransactionType, ComponentAvailability
from .sequence import DocumentSequence
from .audit import AuditLog

__all__ = [
    # Base
    "IntegerIDMixin", "TimestampMixin",
    # Users
    "User", "UserRole",
    # Product
    "Product", "ProductType", "UNITS_OF_MEASURE",
    # BOM
    "BillOfMaterial", "BOMComponent",
    # Manufacturing
    "ManufacturingOrder", "MOStatus",
    "WorkCenter", "WorkCenterStatus",
    "WorkOrder", "WorkOrderStatus", "WORK_ORDER_STATUS_ALIASES",
    "WorkOrderComment", "WorkOrderIssue",
    # Stock
    "StockLedger", "TransactionType", "ComponentAvailability",
    # Sequence
    "DocumentSequence",
    # Audit
    "AuditLog",
]
