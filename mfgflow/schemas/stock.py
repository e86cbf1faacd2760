"""
Stock Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

class StockTransactionCreate(BaseModel):
    product_id: int = Field(..., ge=1)
    transaction_type: str = Field(..., pattern="^(IN|OUT|ADJUSTMENT)$")
    quantity: int = Field(..., ge=0)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    reference: Optional[str] = Field(None, max_length=100)
    reference_id: Optional[int] = None

class StockTransactionUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    reference: Optional[str] = Field(None, max_length=100)
    reference_id: Optional[int] = None

class StockAdjust(BaseModel):
    quantity: int = Field(..., ge=0)
    reason: str = "Manual adjustment"

class ReserveRequest(BaseModel):
    manufacturing_order_id: int = Field(..., ge=1)
    bom_id: Optional[int] = Field(None, ge=1)  # defaults to the MO's BOM

class AvailabilityCheck(BaseModel):
    bom_id: int = Field(..., ge=1)
    quantity: int = Field(1, ge=1)
