import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, UploadFile, File, Form, Query, Response
from sqlalchemy.orm import Session, selectinload

from bidboard.database import get_db
from bidboard.models.vendor import Vendor, VendorContact
from bidboard.models.bid_vendor import BidVendor
from bidboard.schemas.vendor import (
    VendorCreate,
    VendorUpdate,
    VendorResponse,
    VendorContactCreate,
    VendorContactUpdate,
    VendorContactResponse,
    VendorProjectResponse,
)
from bidboard.services import change_feed, filters
from bidboard.services.file_service import save_uploaded_file, delete_stored_file, is_pdf_upload

router = APIRouter(prefix="/vendors", tags=["vendors"])
logger = logging.getLogger(__name__)


def _vendor_or_404(db: Session, vendor_id: int) -> Vendor:
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return vendor


def _contact_or_404(db: Session, vendor_id: int, contact_id: int) -> VendorContact:
    contact = (
        db.query(VendorContact)
        .filter(VendorContact.id == contact_id, VendorContact.vendor_id == vendor_id)
        .first()
    )
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


def _make_primary(vendor: Vendor, contact: VendorContact) -> None:
    """Exactly one primary contact per vendor, mirrored on vendors.primary_contact_id."""
    for c in vendor.contacts:
        c.is_primary = c.id == contact.id
    vendor.primary_contact_id = contact.id


def _sorted_contacts(vendor: Vendor) -> list[VendorContact]:
    return sorted(vendor.contacts, key=lambda c: (not c.is_primary, c.contact_name.lower()))


def vendor_out(vendor: Vendor) -> VendorResponse:
    out = VendorResponse.model_validate(vendor)
    out.contacts = [VendorContactResponse.model_validate(c) for c in _sorted_contacts(vendor)]
    return out


@router.get("", response_model=list[VendorResponse])
def list_vendors(
    search: Optional[str] = None,
    vendor_type: Optional[str] = None,
    priority_only: bool = False,
    db: Session = Depends(get_db),
):
    query = db.query(Vendor).options(selectinload(Vendor.contacts))
    vendors = filters.apply_vendor_filters(query, search, vendor_type, priority_only).all()
    return [vendor_out(v) for v in vendors]


@router.post("", response_model=VendorResponse, status_code=201)
def create_vendor(
    body: VendorCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    data = body.model_dump(exclude={"contacts"}, exclude_none=True)
    vendor = Vendor(**data)
    if vendor.created_by is None:
        vendor.created_by = x_user_id
    db.add(vendor)
    db.flush()
    contacts = []
    for c in body.contacts:
        contact = VendorContact(vendor_id=vendor.id, **c.model_dump())
        db.add(contact)
        contacts.append(contact)
    db.flush()
    if contacts:
        db.refresh(vendor)
        primary = next((c for c in contacts if c.is_primary), contacts[0])
        _make_primary(vendor, primary)
        if not vendor.contact_person:
            vendor.contact_person = primary.contact_name
    change_feed.record_change(db, change_feed.INSERT, vendor, user_id=x_user_id)
    db.commit()
    db.refresh(vendor)
    logger.info("Created vendor %s (%s) with %d contacts", vendor.id, vendor.company_name, len(contacts))
    return vendor_out(vendor)


@router.get("/{vendor_id}", response_model=VendorResponse)
def get_vendor(vendor_id: int, db: Session = Depends(get_db)):
    return vendor_out(_vendor_or_404(db, vendor_id))


@router.patch("/{vendor_id}", response_model=VendorResponse)
def update_vendor(
    vendor_id: int,
    body: VendorUpdate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    vendor = _vendor_or_404(db, vendor_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is None and key in ("company_name", "is_priority", "vendor_type"):
            continue
        setattr(vendor, key, value)
    change_feed.record_change(db, change_feed.UPDATE, vendor, user_id=x_user_id)
    db.commit()
    db.refresh(vendor)
    return vendor_out(vendor)


@router.delete("/{vendor_id}", status_code=204)
def delete_vendor(
    vendor_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    vendor = _vendor_or_404(db, vendor_id)
    file_path = vendor.insurance_file_path
    change_feed.record_change(db, change_feed.DELETE, vendor, user_id=x_user_id)
    db.delete(vendor)
    db.commit()
    delete_stored_file(file_path)
    logger.info("Deleted vendor %s", vendor_id)
    return Response(status_code=204)


@router.get("/{vendor_id}/contacts", response_model=list[VendorContactResponse])
def list_contacts(vendor_id: int, db: Session = Depends(get_db)):
    return _sorted_contacts(_vendor_or_404(db, vendor_id))


@router.post("/{vendor_id}/contacts", response_model=VendorContactResponse, status_code=201)
def create_contact(
    vendor_id: int,
    body: VendorContactCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    vendor = _vendor_or_404(db, vendor_id)
    contact = VendorContact(vendor_id=vendor.id, **body.model_dump())
    db.add(contact)
    db.flush()
    db.refresh(vendor)
    if contact.is_primary or vendor.primary_contact_id is None:
        _make_primary(vendor, contact)
    change_feed.record_change(db, change_feed.INSERT, contact, user_id=x_user_id)
    db.commit()
    db.refresh(contact)
    return contact


@router.patch("/{vendor_id}/contacts/{contact_id}", response_model=VendorContactResponse)
def update_contact(
    vendor_id: int,
    contact_id: int,
    body: VendorContactUpdate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    contact = _contact_or_404(db, vendor_id, contact_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is None and key in ("contact_name", "contact_type", "is_emergency_contact"):
            continue
        setattr(contact, key, value)
    change_feed.record_change(db, change_feed.UPDATE, contact, user_id=x_user_id)
    db.commit()
    db.refresh(contact)
    return contact


@router.post("/{vendor_id}/contacts/{contact_id}/primary", response_model=VendorResponse)
def set_primary_contact(
    vendor_id: int,
    contact_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    vendor = _vendor_or_404(db, vendor_id)
    contact = _contact_or_404(db, vendor_id, contact_id)
    _make_primary(vendor, contact)
    change_feed.record_change(db, change_feed.UPDATE, vendor, user_id=x_user_id)
    db.commit()
    db.refresh(vendor)
    return vendor_out(vendor)


@router.delete("/{vendor_id}/contacts/{contact_id}", status_code=204)
def delete_contact(
    vendor_id: int,
    contact_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    vendor = _vendor_or_404(db, vendor_id)
    contact = _contact_or_404(db, vendor_id, contact_id)
    if vendor.primary_contact_id == contact.id:
        vendor.primary_contact_id = None
    change_feed.record_change(db, change_feed.DELETE, contact, user_id=x_user_id)
    db.delete(contact)
    db.commit()
    return Response(status_code=204)


@router.post("/{vendor_id}/insurance", response_model=VendorResponse)
def upload_insurance_certificate(
    vendor_id: int,
    file: UploadFile = File(...),
    expiry_date: Optional[date] = Form(None),
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    vendor = _vendor_or_404(db, vendor_id)
    if not is_pdf_upload(file):
        raise HTTPException(status_code=400, detail="Insurance certificate must be a PDF file")
    previous = vendor.insurance_file_path
    relative_path, filename, size = save_uploaded_file(file, subdir="insurance")
    vendor.insurance_file_path = relative_path
    vendor.insurance_file_name = filename
    vendor.insurance_file_size = size
    vendor.insurance_file_uploaded_at = datetime.now(timezone.utc)
    if expiry_date:
        vendor.insurance_expiry_date = expiry_date
    change_feed.record_change(db, change_feed.UPDATE, vendor, user_id=x_user_id)
    db.commit()
    db.refresh(vendor)
    if previous and previous != relative_path:
        delete_stored_file(previous)
    return vendor_out(vendor)


@router.get("/{vendor_id}/projects", response_model=list[VendorProjectResponse])
def list_vendor_projects(
    vendor_id: int,
    include_archived: bool = Query(False),
    db: Session = Depends(get_db),
):
    _vendor_or_404(db, vendor_id)
    links = (
        db.query(BidVendor)
        .options(selectinload(BidVendor.project))
        .filter(BidVendor.vendor_id == vendor_id)
        .all()
    )
    rows = []
    for link in links:
        project = link.project
        if not include_archived and project.archived:
            continue
        rows.append(
            VendorProjectResponse(
                bid_vendor_id=link.id,
                project_id=project.id,
                project_name=project.project_name,
                project_status=project.status,
                project_due_date=project.due_date,
                response_status=link.status,
                cost_amount=link.cost_amount,
                due_date=link.due_date,
            )
        )
    rows.sort(key=lambda r: (r.project_due_date is None, r.project_due_date or date.max))
    return rows
