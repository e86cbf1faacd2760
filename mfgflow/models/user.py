"""
User Model
"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
import enum

from mfgflow.core import Base
from .base import IntegerIDMixin, TimestampMixin


class UserRole(str, enum.Enum):
    BUSINESS_OWNER = "BUSINESS_OWNER"
    MANUFACTURING_MANAGER = "MANUFACTURING_MANAGER"
    OPERATOR = "OPERATOR"
    INVENTORY_MANAGER = "INVENTORY_MANAGER"


class User(Base, IntegerIDMixin, TimestampMixin):
    """Application User"""
    __tablename__ = "users"
    
    name = Column(String(100), nullable=False)
    email = Column(String(200), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    mobile_no = Column(String(20))
    role = Column(String(30), default=UserRole.OPERATOR.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True))
    
    # Relationships
    assigned_manufacturing_orders = relationship("ManufacturingOrder", back_populates="assignee")
    assigned_work_orders = relationship("WorkOrder", back_populates="assigned_to")
