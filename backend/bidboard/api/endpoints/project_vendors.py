import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, Response
from sqlalchemy.orm import Session

from bidboard.database import get_db
from bidboard.models.project import Project
from bidboard.models.vendor import Vendor
from bidboard.models.bid_vendor import BidVendor, VendorResponseStatus
from bidboard.schemas.bid_vendor import (
    BidVendorCreate,
    BidVendorBulkCreate,
    BidVendorBulkResult,
    BidVendorUpdate,
    BidVendorResponse,
)
from bidboard.schemas.project import UrgencyInfo
from bidboard.services import change_feed
from bidboard.services.phase_service import phase_summary
from bidboard.services.status_service import is_bid_vendor_overdue

router = APIRouter(tags=["project vendors"])
logger = logging.getLogger(__name__)

RESPONDED_STATUSES = (VendorResponseStatus.YES_BID, VendorResponseStatus.NO_BID)


def bid_vendor_out(bid_vendor: BidVendor, today: Optional[date] = None) -> BidVendorResponse:
    out = BidVendorResponse.model_validate(bid_vendor)
    out.is_overdue = is_bid_vendor_overdue(
        bid_vendor.due_date, bid_vendor.response_received_date, bid_vendor.cost_amount, today
    )
    summary = phase_summary(bid_vendor.apm_phases, today)
    out.current_phase = summary["current_phase"]
    out.progress = summary["progress"]
    out.soonest_follow_up = summary["soonest_follow_up"]
    out.follow_up_urgency = UrgencyInfo(**summary["follow_up_urgency"])
    return out


def get_bid_vendor_or_404(db: Session, bid_vendor_id: int) -> BidVendor:
    bid_vendor = db.query(BidVendor).filter(BidVendor.id == bid_vendor_id).first()
    if not bid_vendor:
        raise HTTPException(status_code=404, detail="Project vendor not found")
    return bid_vendor


def _project_or_404(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _stamp_response(bid_vendor: BidVendor) -> None:
    """A cost or a yes/no answer counts as the vendor's response."""
    if bid_vendor.response_received_date is not None:
        return
    if bid_vendor.has_submitted_cost or bid_vendor.status in RESPONDED_STATUSES:
        bid_vendor.response_received_date = date.today()


@router.get("/projects/{project_id}/vendors", response_model=list[BidVendorResponse])
def list_project_vendors(project_id: int, db: Session = Depends(get_db)):
    project = _project_or_404(db, project_id)
    return [bid_vendor_out(bv) for bv in project.bid_vendors]


@router.post("/projects/{project_id}/vendors", response_model=BidVendorResponse, status_code=201)
def attach_vendor(
    project_id: int,
    body: BidVendorCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    _project_or_404(db, project_id)
    if not db.query(Vendor).filter(Vendor.id == body.vendor_id).first():
        raise HTTPException(status_code=404, detail="Vendor not found")
    existing = (
        db.query(BidVendor)
        .filter(BidVendor.bid_id == project_id, BidVendor.vendor_id == body.vendor_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="Vendor is already attached to this project")
    bid_vendor = BidVendor(
        bid_id=project_id,
        vendor_id=body.vendor_id,
        due_date=body.due_date,
        is_priority=body.is_priority,
        cost_amount=body.cost_amount,
        status=body.status or VendorResponseStatus.PENDING,
        assigned_apm_user=body.assigned_apm_user,
    )
    _stamp_response(bid_vendor)
    db.add(bid_vendor)
    db.flush()
    change_feed.record_change(db, change_feed.INSERT, bid_vendor, user_id=x_user_id)
    db.commit()
    db.refresh(bid_vendor)
    return bid_vendor_out(bid_vendor)


@router.post("/projects/{project_id}/vendors/bulk", response_model=BidVendorBulkResult, status_code=201)
def attach_vendors_bulk(
    project_id: int,
    body: BidVendorBulkCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    """Attach several vendors at once; ids already attached or unknown are skipped."""
    _project_or_404(db, project_id)
    attached = {
        vid for (vid,) in db.query(BidVendor.vendor_id).filter(BidVendor.bid_id == project_id).all()
    }
    known = {vid for (vid,) in db.query(Vendor.id).filter(Vendor.id.in_(body.vendor_ids)).all()}
    created, skipped = [], []
    for vendor_id in dict.fromkeys(body.vendor_ids):
        if vendor_id in attached or vendor_id not in known:
            skipped.append(vendor_id)
            continue
        bid_vendor = BidVendor(
            bid_id=project_id,
            vendor_id=vendor_id,
            due_date=body.due_date,
            is_priority=body.is_priority,
            status=VendorResponseStatus.PENDING,
        )
        db.add(bid_vendor)
        created.append(bid_vendor)
    db.flush()
    for bid_vendor in created:
        change_feed.record_change(db, change_feed.INSERT, bid_vendor, user_id=x_user_id)
    db.commit()
    logger.info("Attached %d vendors to project %s (%d skipped)", len(created), project_id, len(skipped))
    return BidVendorBulkResult(
        created=[bid_vendor_out(bv) for bv in created],
        skipped_vendor_ids=skipped,
    )


@router.patch("/project-vendors/{bid_vendor_id}", response_model=BidVendorResponse)
def update_bid_vendor(
    bid_vendor_id: int,
    body: BidVendorUpdate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    bid_vendor = get_bid_vendor_or_404(db, bid_vendor_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("status", "") is None:
        changes.pop("status")
    if changes.get("is_priority", False) is None:
        changes.pop("is_priority")
    for key, value in changes.items():
        setattr(bid_vendor, key, value)
    _stamp_response(bid_vendor)
    change_feed.record_change(db, change_feed.UPDATE, bid_vendor, user_id=x_user_id)
    db.commit()
    db.refresh(bid_vendor)
    return bid_vendor_out(bid_vendor)


@router.post("/project-vendors/{bid_vendor_id}/follow-up", response_model=BidVendorResponse)
def record_follow_up(
    bid_vendor_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    bid_vendor = get_bid_vendor_or_404(db, bid_vendor_id)
    bid_vendor.follow_up_count = (bid_vendor.follow_up_count or 0) + 1
    bid_vendor.last_follow_up_date = date.today()
    change_feed.record_change(db, change_feed.UPDATE, bid_vendor, user_id=x_user_id)
    db.commit()
    db.refresh(bid_vendor)
    return bid_vendor_out(bid_vendor)


@router.delete("/project-vendors/{bid_vendor_id}", status_code=204)
def remove_bid_vendor(
    bid_vendor_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    bid_vendor = get_bid_vendor_or_404(db, bid_vendor_id)
    change_feed.record_change(db, change_feed.DELETE, bid_vendor, user_id=x_user_id)
    db.delete(bid_vendor)
    db.commit()
    return Response(status_code=204)
