"""
Product Master
"""
from sqlalchemy import Column, String, Numeric, Integer
from sqlalchemy.orm import relationship
import enum

from mfgflow.core import Base
from .base import IntegerIDMixin, TimestampMixin


class ProductType(str, enum.Enum):
    RAW_MATERIAL = "RAW_MATERIAL"
    SEMI_FINISHED = "SEMI_FINISHED"
    FINISHED_GOOD = "FINISHED_GOOD"


UNITS_OF_MEASURE = [
    "PCS", "KG", "G", "L", "ML", "M", "CM", "MM", "M2", "M3",
    "BOX", "CARTON", "PALLET", "ROLL", "SET", "PAIR", "DOZEN",
]


class Product(Base, IntegerIDMixin, TimestampMixin):
    """Product Master"""
    __tablename__ = "products"
    
    name = Column(String(100), unique=True, nullable=False, index=True)
    type = Column(String(20), nullable=False)  # RAW_MATERIAL, SEMI_FINISHED, FINISHED_GOOD
    unit_of_measure = Column(String(20), nullable=False, default="PCS")
    unit_cost = Column(Numeric(12, 2), default=0, nullable=False)
    # Denormalized counter; only stock-ledger writers touch it
    current_stock = Column(Integer, default=0, nullable=False)
    
    # Relationships
    stock_ledger = relationship("StockLedger", back_populates="product")
    boms = relationship("BillOfMaterial", back_populates="product")
    bom_components = relationship("BOMComponent", back_populates="product")
    manufacturing_orders = relationship("ManufacturingOrder", back_populates="finished_product")
    availability = relationship("ComponentAvailability", back_populates="product", uselist=False)
