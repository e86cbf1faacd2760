"""
Manufacturing Models: Manufacturing Order, Work Center, Work Order
"""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
import enum

from mfgflow.core import Base
from .base import IntegerIDMixin, TimestampMixin


class MOStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    TO_CLOSE = "TO_CLOSE"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"
    DELETED = "DELETED"


class WorkOrderStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    STARTED = "STARTED"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Older clients still send these
WORK_ORDER_STATUS_ALIASES = {
    "IN_PROGRESS": WorkOrderStatus.STARTED.value,
    "ON_HOLD": WorkOrderStatus.PAUSED.value,
    "DONE": WorkOrderStatus.COMPLETED.value,
}


class WorkCenterStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"
    INACTIVE = "INACTIVE"


class ManufacturingOrder(Base, IntegerIDMixin, TimestampMixin):
    """Manufacturing Order (MO)"""
    __tablename__ = "manufacturing_orders"
    
    mo_number = Column(String(30), unique=True, nullable=False, index=True)  # MO2026100001
    finished_product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    bill_of_material_id = Column(Integer, ForeignKey("boms.id"), nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(20), default=MOStatus.DRAFT.value, nullable=False, index=True)
    
    schedule_date = Column(DateTime(timezone=True), nullable=False)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    
    # Relationships
    finished_product = relationship("Product", back_populates="manufacturing_orders")
    bill_of_material = relationship("BillOfMaterial", back_populates="manufacturing_orders")
    assignee = relationship("User", back_populates="assigned_manufacturing_orders")
    work_orders = relationship("WorkOrder", back_populates="manufacturing_order", order_by="WorkOrder.id")


class WorkCenter(Base, IntegerIDMixin, TimestampMixin):
    """Work Center - station or line where operations run"""
    __tablename__ = "work_centers"
    
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    capacity = Column(Numeric(8, 2), default=8, nullable=False)  # hours/day
    cost_per_hour = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String(20), default=WorkCenterStatus.ACTIVE.value, nullable=False)
    
    # Relationships
    work_orders = relationship("WorkOrder", back_populates="work_center")


class WorkOrder(Base, IntegerIDMixin, TimestampMixin):
    """Single operation of an MO performed at a work center"""
    __tablename__ = "work_orders"
    
    mo_id = Column(Integer, ForeignKey("manufacturing_orders.id"), nullable=False, index=True)
    work_center_id = Column(Integer, ForeignKey("work_centers.id"), nullable=False, index=True)
    operation_name = Column(String(100), nullable=False)
    expected_duration = Column(Integer, nullable=False, default=0)  # minutes
    real_duration = Column(Integer)
    status = Column(String(20), default=WorkOrderStatus.PLANNED.value, nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    notes = Column(Text)
    
    # Relationships
    manufacturing_order = relationship("ManufacturingOrder", back_populates="work_orders")
    work_center = relationship("WorkCenter", back_populates="work_orders")
    assigned_to = relationship("User", back_populates="assigned_work_orders")
    comments = relationship(
        "WorkOrderComment", back_populates="work_order",
        order_by="desc(WorkOrderComment.id)", cascade="all, delete-orphan",
    )
    issues = relationship(
        "WorkOrderIssue", back_populates="work_order",
        order_by="desc(WorkOrderIssue.id)", cascade="all, delete-orphan",
    )


class WorkOrderComment(Base, IntegerIDMixin, TimestampMixin):
    __tablename__ = "work_order_comments"
    
    work_order_id = Column(Integer, ForeignKey("work_orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    
    work_order = relationship("WorkOrder", back_populates="comments")
    user = relationship("User")


class WorkOrderIssue(Base, IntegerIDMixin, TimestampMixin):
    __tablename__ = "work_order_issues"
    
    work_order_id = Column(Integer, ForeignKey("work_orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    issue_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(20), default="MEDIUM", nullable=False)  # LOW, MEDIUM, HIGH, CRITICAL
    status = Column(String(20), default="OPEN", nullable=False)  # OPEN, IN_PROGRESS, RESOLVED, CLOSED
    resolved_at = Column(DateTime(timezone=True))
    
    work_order = relationship("WorkOrder", back_populates="issues")
    user = relationship("User")
