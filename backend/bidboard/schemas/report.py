from datetime import datetime
from typing import Optional, List, Any
from pydantic import BaseModel, field_validator

from bidboard.services.validators import check_email


class ReportSendBody(BaseModel):
    recipients: Optional[List[str]] = None  # defaults to REPORT_RECIPIENTS

    @field_validator("recipients")
    @classmethod
    def valid_recipients(cls, v):
        if v is None:
            return v
        cleaned = [check_email(r) for r in v]
        return [r for r in cleaned if r]


class ReportSendResponse(BaseModel):
    sent: bool
    report: str
    recipients: List[str]
    subject: str
    summary: dict[str, Any]


class ChangeResponse(BaseModel):
    id: int
    user_id: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChangeFeedResponse(BaseModel):
    changes: List[ChangeResponse]
    last_id: int


class EmailLogResponse(BaseModel):
    id: int
    report_type: str
    recipients: str
    subject: Optional[str] = None
    sent_successfully: bool
    error: Optional[str] = None
    sent_date: Optional[datetime] = None

    class Config:
        from_attributes = True
