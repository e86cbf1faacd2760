"""
User & Auth Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional

ROLE_PATTERN = "^(BUSINESS_OWNER|MANUFACTURING_MANAGER|OPERATOR|INVENTORY_MANAGER)$"

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6)
    mobile_no: Optional[str] = None
    role: str = Field("OPERATOR", pattern=ROLE_PATTERN)

class LoginRequest(BaseModel):
    email: str
    password: str

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    mobile_no: Optional[str] = None

class PasswordChange(BaseModel):
    current_password: str
    new_password: str

class RoleUpdate(BaseModel):
    role: str = Field(..., pattern=ROLE_PATTERN)
