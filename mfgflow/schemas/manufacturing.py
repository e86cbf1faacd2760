"""
Manufacturing Order & Work Center Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

class ManufacturingOrderCreate(BaseModel):
    finished_product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    schedule_date: datetime
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    bill_of_material_id: Optional[int] = Field(None, ge=1)
    assignee_id: Optional[int] = Field(None, ge=1)

class ManufacturingOrderUpdate(BaseModel):
    finished_product_id: Optional[int] = Field(None, ge=1)
    quantity: Optional[int] = Field(None, ge=1)
    schedule_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    bill_of_material_id: Optional[int] = Field(None, ge=1)
    assignee_id: Optional[int] = Field(None, ge=1)
    status: Optional[str] = None

class StatusUpdate(BaseModel):
    status: str

class WorkCenterCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    capacity: Decimal = Field(Decimal("8"), ge=0)
    cost_per_hour: Decimal = Field(Decimal("0"), ge=0)
    status: str = Field("ACTIVE", pattern="^(ACTIVE|UNDER_MAINTENANCE|INACTIVE)$")

class WorkCenterUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    capacity: Optional[Decimal] = Field(None, ge=0)
    cost_per_hour: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern="^(ACTIVE|UNDER_MAINTENANCE|INACTIVE)$")
