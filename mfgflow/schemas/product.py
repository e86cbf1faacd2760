"""
Product Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

PRODUCT_TYPE_PATTERN = "^(RAW_MATERIAL|SEMI_FINISHED|FINISHED_GOOD)$"

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    type: str = Field(..., pattern=PRODUCT_TYPE_PATTERN)
    unit_of_measure: str = Field(..., min_length=1, max_length=20)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    type: Optional[str] = Field(None, pattern=PRODUCT_TYPE_PATTERN)
    unit_of_measure: Optional[str] = Field(None, min_length=1, max_length=20)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
