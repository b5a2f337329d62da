from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from bidboard.models.user import UserRole
from bidboard.services.validators import check_email, check_color


class UserUpsert(BaseModel):
    id: str
    email: str
    name: str
    color_preference: Optional[str] = None
    role: Optional[str] = None

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        v = check_email(v)
        if not v:
            raise ValueError("email is required")
        return v.lower()

    @field_validator("name")
    @classmethod
    def name_required(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("color_preference")
    @classmethod
    def valid_color(cls, v):
        return check_color(v)

    @field_validator("role")
    @classmethod
    def known_role(cls, v):
        if v is not None and v not in UserRole.ALL:
            raise ValueError(f"role must be one of: {', '.join(UserRole.ALL)}")
        return v


class UserUpdate(BaseModel):
    name: Optional[str] = None
    color_preference: Optional[str] = None
    role: Optional[str] = None

    @field_validator("color_preference")
    @classmethod
    def valid_color(cls, v):
        return check_color(v)

    @field_validator("role")
    @classmethod
    def known_role(cls, v):
        if v is not None and v not in UserRole.ALL:
            raise ValueError(f"role must be one of: {', '.join(UserRole.ALL)}")
        return v


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    color_preference: str
    role: Optional[str] = None
    is_active: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
