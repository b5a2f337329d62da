from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, field_validator

from bidboard.models.vendor import VENDOR_TYPES, CONTACT_TYPES
from bidboard.services.validators import check_email, check_phone


class VendorContactBase(BaseModel):
    contact_name: str
    contact_title: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_type: str = "Office"
    is_primary: bool = False
    is_emergency_contact: bool = False
    notes: Optional[str] = None

    @field_validator("contact_name")
    @classmethod
    def name_required(cls, v):
        if not v or not v.strip():
            raise ValueError("contact_name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return check_email(v)

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v):
        return check_phone(v)

    @field_validator("contact_type")
    @classmethod
    def known_type(cls, v):
        if v not in CONTACT_TYPES:
            raise ValueError(f"contact_type must be one of: {', '.join(CONTACT_TYPES)}")
        return v


class VendorContactCreate(VendorContactBase):
    pass


class VendorContactUpdate(BaseModel):
    contact_name: Optional[str] = None
    contact_title: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_type: Optional[str] = None
    is_emergency_contact: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return check_email(v)

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v):
        return check_phone(v)

    @field_validator("contact_type")
    @classmethod
    def known_type(cls, v):
        if v is not None and v not in CONTACT_TYPES:
            raise ValueError(f"contact_type must be one of: {', '.join(CONTACT_TYPES)}")
        return v


class VendorContactResponse(VendorContactBase):
    id: int
    vendor_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VendorFields(BaseModel):
    address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    specialty: Optional[str] = None
    is_priority: Optional[bool] = None
    vendor_type: Optional[str] = None
    insurance_expiry_date: Optional[date] = None
    insurance_notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return check_email(v)

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v):
        return check_phone(v)

    @field_validator("vendor_type")
    @classmethod
    def known_type(cls, v):
        if v is not None and v not in VENDOR_TYPES:
            raise ValueError(f"vendor_type must be one of: {', '.join(VENDOR_TYPES)}")
        return v


class VendorCreate(VendorFields):
    company_name: str
    created_by: Optional[str] = None
    contacts: List[VendorContactCreate] = []

    @field_validator("company_name")
    @classmethod
    def name_required(cls, v):
        if not v or not v.strip():
            raise ValueError("company_name is required")
        return v.strip()


class VendorUpdate(VendorFields):
    company_name: Optional[str] = None

    @field_validator("company_name")
    @classmethod
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("company_name cannot be blank")
        return v.strip() if v else v


class VendorResponse(BaseModel):
    id: int
    company_name: str
    address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    specialty: Optional[str] = None
    is_priority: bool = False
    vendor_type: str = "Vendor"
    insurance_expiry_date: Optional[date] = None
    insurance_notes: Optional[str] = None
    insurance_file_path: Optional[str] = None
    insurance_file_name: Optional[str] = None
    insurance_file_size: Optional[int] = None
    insurance_file_uploaded_at: Optional[datetime] = None
    primary_contact_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    contacts: List[VendorContactResponse] = []

    class Config:
        from_attributes = True


class VendorProjectResponse(BaseModel):
    """A project a vendor is attached to, with that vendor's response on it."""
    bid_vendor_id: int
    project_id: int
    project_name: str
    project_status: str
    project_due_date: Optional[date] = None
    response_status: str
    cost_amount: Optional[float] = None
    due_date: Optional[date] = None
