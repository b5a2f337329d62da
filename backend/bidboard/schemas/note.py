from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator


class NoteCreate(BaseModel):
    content: str
    user_id: Optional[str] = None  # falls back to the X-User-Id header

    @field_validator("content")
    @classmethod
    def content_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Note content cannot be empty")
        return v.strip()


class NoteUpdate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Note content cannot be empty")
        return v.strip()


class NoteResponse(BaseModel):
    id: int
    bid_id: int
    user_id: Optional[str] = None
    content: str
    user_name: Optional[str] = None
    user_color: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
