# Pydantic Schemas Package
from .user import RegisterRequest, LoginRequest, ProfileUpdate, PasswordChange, RoleUpdate
from .product import ProductCreate, ProductUpdate
from .bom import BOMCreate, BOMUpdate, BOMComponentCreate, BOMComponentUpdate
from .manufacturing import (
    ManufacturingOrderCreate, ManufacturingOrderUpdate, StatusUpdate,
    WorkCenterCreate, WorkCenterUpdate,
)
from .work_order import (
    WorkOrderCreate, WorkOrderUpdate, WorkOrderComplete, WorkOrderPause,
    CommentCreate, IssueCreate, IssueStatusUpdate,
)
from .stock import StockTransactionCreate, StockTransactionUpdate, StockAdjust, ReserveRequest, AvailabilityCheck

__all__ = [
    "RegisterRequest", "LoginRequest", "ProfileUpdate", "PasswordChange", "RoleUpdate",
    "ProductCreate", "ProductUpdate",
    "BOMCreate", "BOMUpdate", "BOMComponentCreate", "BOMComponentUpdate",
    "ManufacturingOrderCreate", "ManufacturingOrderUpdate", "StatusUpdate",
    "WorkCenterCreate", "WorkCenterUpdate",
    "WorkOrderCreate", "WorkOrderUpdate", "WorkOrderComplete", "WorkOrderPause",
    "CommentCreate", "IssueCreate", "IssueStatusUpdate",
    "StockTransactionCreate", "StockTransactionUpdate", "StockAdjust", "ReserveRequest", "AvailabilityCheck",
]
