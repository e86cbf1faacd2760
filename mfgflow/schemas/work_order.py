"""
Work Order Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional

class WorkOrderCreate(BaseModel):
    mo_id: int = Field(..., ge=1)
    work_center_id: int = Field(..., ge=1)
    operation_name: str = Field(..., min_length=2, max_length=100)
    expected_duration: int = Field(..., ge=1)  # minutes
    assigned_to_id: Optional[int] = Field(None, ge=1)

class WorkOrderUpdate(BaseModel):
    operation_name: Optional[str] = Field(None, min_length=2, max_length=100)
    expected_duration: Optional[int] = Field(None, ge=1)
    assigned_to_id: Optional[int] = Field(None, ge=1)

class WorkOrderComplete(BaseModel):
    real_duration: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

class WorkOrderPause(BaseModel):
    reason: Optional[str] = None

class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1)

class IssueCreate(BaseModel):
    issue_type: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1)
    severity: str = Field("MEDIUM", pattern="^(LOW|MEDIUM|HIGH|CRITICAL)$")

class IssueStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(OPEN|IN_PROGRESS|RESOLVED|CLOSED)$")
