from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, field_validator

from bidboard.models.timeline import TIMELINE_CATEGORIES, TimelineStatus
from bidboard.schemas.project import UrgencyInfo


class APMPhaseCreate(BaseModel):
    phase_name: str
    status: str = "Pending"
    requested_date: Optional[date] = None
    follow_up_date: Optional[date] = None
    received_date: Optional[date] = None
    notes: Optional[str] = None


class APMPhaseUpdate(BaseModel):
    phase_name: Optional[str] = None
    status: Optional[str] = None
    requested_date: Optional[date] = None
    follow_up_date: Optional[date] = None
    received_date: Optional[date] = None
    notes: Optional[str] = None


class APMPhaseResponse(BaseModel):
    id: int
    project_vendor_id: int
    phase_name: str
    status: str
    requested_date: Optional[date] = None
    follow_up_date: Optional[date] = None
    received_date: Optional[date] = None
    notes: Optional[str] = None
    revision_count: int = 0
    last_revision_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class APMTask(BaseModel):
    """One open phase with a follow-up date, as shown in the APM task list."""
    phase_id: int
    phase_name: str
    phase_status: str
    follow_up_date: date
    bid_vendor_id: int
    vendor_id: int
    vendor_name: Optional[str] = None
    project_id: int
    project_name: str
    assigned_apm_user: Optional[str] = None
    urgency: UrgencyInfo


def _check_category(v):
    if v is not None and v not in TIMELINE_CATEGORIES:
        raise ValueError(f"event_category must be one of: {', '.join(TIMELINE_CATEGORIES)}")
    return v


def _check_timeline_status(v):
    if v is not None and v not in TimelineStatus.ALL:
        raise ValueError(f"status must be one of: {', '.join(TimelineStatus.ALL)}")
    return v


class TimelineEventCreate(BaseModel):
    event_name: str
    event_category: str = "custom"
    event_type: str = "custom"
    order_by: Optional[date] = None
    required_by: Optional[date] = None
    status: str = TimelineStatus.PENDING
    notes: Optional[str] = None

    @field_validator("event_name")
    @classmethod
    def name_required(cls, v):
        if not v or not v.strip():
            raise ValueError("event_name is required")
        return v.strip()

    @field_validator("event_category")
    @classmethod
    def known_category(cls, v):
        return _check_category(v)

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        return _check_timeline_status(v)


class TimelineEventUpdate(BaseModel):
    event_name: Optional[str] = None
    event_category: Optional[str] = None
    event_type: Optional[str] = None
    order_by: Optional[date] = None
    required_by: Optional[date] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("event_category")
    @classmethod
    def known_category(cls, v):
        return _check_category(v)

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        return _check_timeline_status(v)


class TimelineEventResponse(BaseModel):
    id: int
    project_id: int
    event_name: str
    event_category: str
    event_type: str
    order_by: Optional[date] = None
    required_by: Optional[date] = None
    status: str
    notes: Optional[str] = None
    is_overdue: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EquipmentCreate(BaseModel):
    description: str
    quantity: float = 1
    unit: Optional[str] = None
    po_number: Optional[str] = None
    date_received: Optional[date] = None
    project_vendor_id: Optional[int] = None
    timeline_event_id: Optional[int] = None

    @field_validator("description")
    @classmethod
    def description_required(cls, v):
        if not v or not v.strip():
            raise ValueError("description is required")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def positive_quantity(cls, v):
        if v <= 0:
            raise ValueError("quantity must be positive")
        return v


class EquipmentUpdate(BaseModel):
    description: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    po_number: Optional[str] = None
    date_received: Optional[date] = None
    project_vendor_id: Optional[int] = None
    timeline_event_id: Optional[int] = None


class EquipmentResponse(BaseModel):
    id: int
    project_id: int
    project_vendor_id: Optional[int] = None
    timeline_event_id: Optional[int] = None
    description: str
    quantity: float
    unit: Optional[str] = None
    po_number: Optional[str] = None
    date_received: Optional[date] = None
    vendor_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TimelineWithEquipment(TimelineEventResponse):
    equipment: List[EquipmentResponse] = []
