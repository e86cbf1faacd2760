"""
Bill of Materials Models
"""
from sqlalchemy import Column, String, Boolean, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from mfgflow.core import Base
from .base import IntegerIDMixin, TimestampMixin


class BillOfMaterial(Base, IntegerIDMixin, TimestampMixin):
    """BOM header: recipe for one unit of a product"""
    __tablename__ = "boms"
    
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    reference = Column(String(100))
    version = Column(String(20), default="1.0", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    
    # Relationships
    product = relationship("Product", back_populates="boms")
    components = relationship(
        "BOMComponent",
        back_populates="bom",
        order_by="BOMComponent.id",
        cascade="all, delete-orphan",
    )
    manufacturing_orders = relationship("ManufacturingOrder", back_populates="bill_of_material")


class BOMComponent(Base, IntegerIDMixin, TimestampMixin):
    """Component line: quantity required per unit of the parent BOM's output"""
    __tablename__ = "bom_components"
    
    bom_id = Column(Integer, ForeignKey("boms.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit = Column(String(20), default="PCS", nullable=False)
    cost = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(14, 2), default=0, nullable=False)  # quantity * cost
    
    # Relationships
    bom = relationship("BillOfMaterial", back_populates="components")
    product = relationship("Product", back_populates="bom_components")
