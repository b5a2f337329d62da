from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from bidboard.models.bid_vendor import VendorResponseStatus
from bidboard.schemas.apm import APMPhaseResponse
from bidboard.schemas.project import UrgencyInfo


def _check_status(v):
    if v is not None and v not in VendorResponseStatus.ALL:
        raise ValueError(f"status must be one of: {', '.join(VendorResponseStatus.ALL)}")
    return v


def _check_amount(v):
    if v is not None and v < 0:
        raise ValueError("amount cannot be negative")
    return v


class BidVendorCreate(BaseModel):
    vendor_id: int
    due_date: Optional[date] = None
    is_priority: bool = False
    cost_amount: Optional[float] = None
    status: Optional[str] = None
    assigned_apm_user: Optional[str] = None

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        return _check_status(v)

    @field_validator("cost_amount")
    @classmethod
    def non_negative(cls, v):
        return _check_amount(v)


class BidVendorBulkCreate(BaseModel):
    vendor_ids: List[int] = Field(min_length=1)
    due_date: Optional[date] = None
    is_priority: bool = False


class BidVendorBulkResult(BaseModel):
    created: List["BidVendorResponse"]
    skipped_vendor_ids: List[int]  # already attached or unknown


class BidVendorUpdate(BaseModel):
    status: Optional[str] = None
    due_date: Optional[date] = None
    response_received_date: Optional[date] = None
    response_notes: Optional[str] = None
    responded_by: Optional[str] = None
    is_priority: Optional[bool] = None
    cost_amount: Optional[float] = None
    final_quote_amount: Optional[float] = None
    buy_number: Optional[str] = None
    po_number: Optional[str] = None
    assigned_apm_user: Optional[str] = None

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        return _check_status(v)

    @field_validator("cost_amount", "final_quote_amount")
    @classmethod
    def non_negative(cls, v):
        return _check_amount(v)


class BidVendorResponse(BaseModel):
    id: int
    bid_id: int
    vendor_id: int
    vendor_name: Optional[str] = None
    status: str
    due_date: Optional[date] = None
    response_received_date: Optional[date] = None
    follow_up_count: int = 0
    last_follow_up_date: Optional[date] = None
    response_notes: Optional[str] = None
    responded_by: Optional[str] = None
    is_priority: bool = False
    cost_amount: Optional[float] = None
    final_quote_amount: Optional[float] = None
    buy_number: Optional[str] = None
    po_number: Optional[str] = None
    assigned_apm_user: Optional[str] = None
    has_submitted_cost: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Derived at read time
    is_overdue: bool = False
    current_phase: Optional[str] = None
    progress: int = 0
    soonest_follow_up: Optional[date] = None
    follow_up_urgency: Optional[UrgencyInfo] = None
    apm_phases: List[APMPhaseResponse] = []

    class Config:
        from_attributes = True


BidVendorBulkResult.model_rebuild()
