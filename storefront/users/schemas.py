from pydantic import BaseModel, EmailStr, Field
from typing import Optional

class AdminUserCreate(BaseModel):
    """Account created by an administrator with an explicit role"""
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: str = "customer"

class RoleUpdate(BaseModel):
    role: str
