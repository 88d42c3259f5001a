from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[str] = None  # admin, user, read_only


class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    approved: bool = False
    role: Optional[str] = None  # None when no user_roles row exists
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApprovalResponse(BaseModel):
    user_id: str
    approved: bool
    message: str
