"""
Stock & Inventory Models
"""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from mfgflow.core import Base
from .base import IntegerIDMixin, TimestampMixin


class TransactionType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"  # Sets running stock on replay


class StockLedger(Base, IntegerIDMixin, TimestampMixin):
    """Stock Movement Ledger"""
    __tablename__ = "stock_ledger"
    
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    
    # Movement info
    transaction_type = Column(String(20), nullable=False)  # IN, OUT, ADJUSTMENT
    quantity = Column(Integer, nullable=False)  # Magnitude; sign comes from transaction_type
    unit_cost = Column(Numeric(12, 2), default=0, nullable=False)
    total_value = Column(Numeric(14, 2), default=0, nullable=False)
    
    # Reference
    reference = Column(String(100))  # MO number, adjustment reason
    reference_id = Column(Integer)
    
    transaction_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    # Relationships
    product = relationship("Product", back_populates="stock_ledger")


class ComponentAvailability(Base, IntegerIDMixin):
    """Reservation-oriented stock view, maintained apart from the ledger"""
    __tablename__ = "component_availability"
    
    product_id = Column(Integer, ForeignKey("products.id"), unique=True, nullable=False)
    available = Column(Integer, default=0, nullable=False)
    reserved = Column(Integer, default=0, nullable=False)
    incoming = Column(Integer, default=0, nullable=False)
    outgoing = Column(Integer, default=0, nullable=False)
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    # Relationships
    product = relationship("Product", back_populates="availability")
