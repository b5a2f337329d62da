from datetime import date, datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator, model_validator

from bidboard.models.project import BidStatus, GC_SYSTEMS
from bidboard.services.validators import check_email


class UrgencyInfo(BaseModel):
    level: str  # none | warning | critical | dueToday | overdue
    is_overdue: bool = False
    business_days_remaining: int = 0
    business_days_overdue: int = 0


class ProjectFields(BaseModel):
    project_email: Optional[str] = None
    project_address: Optional[str] = None
    general_contractor: Optional[str] = None
    project_description: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[str] = None
    priority: Optional[bool] = None
    estimated_value: Optional[float] = None
    notes: Optional[str] = None
    assign_to: Optional[str] = None
    file_location: Optional[str] = None
    gc_system: Optional[str] = None
    added_to_procore: Optional[bool] = None
    made_by_apm: Optional[bool] = None
    project_start_date: Optional[date] = None
    archived: Optional[bool] = None
    on_hold: Optional[bool] = None
    apm_archived: Optional[bool] = None
    apm_on_hold: Optional[bool] = None

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        if v is not None and v not in BidStatus.ALL:
            raise ValueError(f"status must be one of: {', '.join(BidStatus.ALL)}")
        return v

    @field_validator("gc_system")
    @classmethod
    def known_gc_system(cls, v):
        if v is not None and v not in GC_SYSTEMS:
            raise ValueError(f"gc_system must be one of: {', '.join(GC_SYSTEMS)}")
        return v

    @field_validator("project_email")
    @classmethod
    def valid_email(cls, v):
        return check_email(v)

    @field_validator("estimated_value")
    @classmethod
    def non_negative_value(cls, v):
        if v is not None and v < 0:
            raise ValueError("estimated_value cannot be negative")
        return v


class ProjectCreate(ProjectFields):
    project_name: Optional[str] = None
    title: Optional[str] = None  # alias for project_name
    created_by: Optional[str] = None
    department: Optional[str] = "Estimating"
    sent_to_apm: Optional[bool] = None

    @model_validator(mode="after")
    def name_required(self):
        name = (self.project_name or self.title or "").strip()
        if not name:
            raise ValueError("project_name is required")
        self.project_name = name
        self.title = None
        return self


class ProjectUpdate(ProjectFields):
    project_name: Optional[str] = None
    title: Optional[str] = None
    created_by: Optional[str] = None
    department: Optional[str] = None
    sent_to_apm: Optional[bool] = None

    @field_validator("project_name", "title")
    @classmethod
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("project_name cannot be blank")
        return v.strip() if v else v


class ProjectResponse(BaseModel):
    id: int
    project_name: str
    title: str
    project_email: Optional[str] = None
    project_address: Optional[str] = None
    general_contractor: Optional[str] = None
    project_description: Optional[str] = None
    due_date: Optional[date] = None
    status: str
    priority: bool = False
    estimated_value: Optional[float] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    assign_to: Optional[str] = None
    file_location: Optional[str] = None
    department: Optional[str] = None
    est_activity_cycle: str
    apm_activity_cycle: str
    archived: bool = False
    on_hold: bool = False
    apm_archived: bool = False
    apm_on_hold: bool = False
    archived_at: Optional[datetime] = None
    archived_by: Optional[str] = None
    on_hold_at: Optional[datetime] = None
    on_hold_by: Optional[str] = None
    sent_to_apm: bool = False
    sent_to_apm_at: Optional[datetime] = None
    apm_on_hold_at: Optional[datetime] = None
    apm_archived_at: Optional[datetime] = None
    gc_system: Optional[str] = None
    added_to_procore: bool = False
    made_by_apm: bool = False
    project_start_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Derived at read time
    urgency: Optional[UrgencyInfo] = None
    display_status: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectPage(BaseModel):
    items: List[ProjectResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    overdue_count: int


class ProjectCopyBody(BaseModel):
    project_name: str
    due_date: Optional[date] = None
    status: Optional[str] = BidStatus.NEW
    estimated_value: Optional[float] = None
    copy_vendors: bool = True

    @field_validator("project_name")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("project_name is required")
        return v.strip()

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        if v is not None and v not in BidStatus.ALL:
            raise ValueError(f"status must be one of: {', '.join(BidStatus.ALL)}")
        return v


BulkAction = Literal[
    "move_to_active",
    "archive",
    "on_hold",
    "delete",
    "unarchive",
    "apm_move_to_active",
    "apm_archive",
    "apm_on_hold",
    "send_to_apm",
    "unsend_from_apm",
]


class BulkActionBody(BaseModel):
    ids: List[int] = Field(min_length=1)
    action: BulkAction


class BulkError(BaseModel):
    id: int
    error: str


class BulkActionResult(BaseModel):
    success: int
    failed: int
    errors: List[BulkError] = []
