"""
Bill of Materials Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal

class BOMComponentCreate(BaseModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    unit: str = "PCS"
    cost: Decimal = Field(Decimal("0"), ge=0)

class BOMComponentUpdate(BaseModel):
    quantity: int = Field(..., ge=1)
    unit: Optional[str] = None
    cost: Optional[Decimal] = Field(None, ge=0)

class BOMCreate(BaseModel):
    product_id: int = Field(..., ge=1)
    reference: Optional[str] = Field(None, max_length=100)
    version: str = Field("1.0", max_length=20)
    components: List[BOMComponentCreate] = []

class BOMUpdate(BaseModel):
    reference: Optional[str] = Field(None, max_length=100)
    version: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None
    # None keeps the current components, a list replaces them
    components: Optional[List[BOMComponentCreate]] = None
