import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, Response
from sqlalchemy.orm import Session

from bidboard.database import get_db
from bidboard.models.project import Project, ActivityCycle
from bidboard.models.bid_vendor import BidVendor
from bidboard.models.apm_phase import APMPhase, APMPhaseStatus
from bidboard.models.timeline import TimelineEvent, Equipment, TimelineStatus
from bidboard.schemas.apm import (
    APMPhaseCreate,
    APMPhaseUpdate,
    APMPhaseResponse,
    APMTask,
    TimelineEventCreate,
    TimelineEventUpdate,
    TimelineEventResponse,
    EquipmentCreate,
    EquipmentUpdate,
    EquipmentResponse,
)
from bidboard.schemas.project import UrgencyInfo
from bidboard.services import change_feed, phase_service
from bidboard.services.status_service import get_follow_up_urgency

router = APIRouter(tags=["apm"])
logger = logging.getLogger(__name__)


def _bid_vendor_or_404(db: Session, bid_vendor_id: int) -> BidVendor:
    bid_vendor = db.query(BidVendor).filter(BidVendor.id == bid_vendor_id).first()
    if not bid_vendor:
        raise HTTPException(status_code=404, detail="Project vendor not found")
    return bid_vendor


def _phase_or_404(db: Session, phase_id: int) -> APMPhase:
    phase = db.query(APMPhase).filter(APMPhase.id == phase_id).first()
    if not phase:
        raise HTTPException(status_code=404, detail="APM phase not found")
    return phase


def _project_or_404(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _check_phase(phase_name, status, requested_date, follow_up_date, received_date) -> None:
    errors = phase_service.validate_phase(phase_name, status, requested_date, follow_up_date, received_date)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))


# --- APM phases ---


@router.get("/project-vendors/{bid_vendor_id}/phases", response_model=list[APMPhaseResponse])
def list_phases(bid_vendor_id: int, db: Session = Depends(get_db)):
    return _bid_vendor_or_404(db, bid_vendor_id).apm_phases


@router.post("/project-vendors/{bid_vendor_id}/phases", response_model=APMPhaseResponse, status_code=201)
def create_phase(
    bid_vendor_id: int,
    body: APMPhaseCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    _bid_vendor_or_404(db, bid_vendor_id)
    _check_phase(body.phase_name, body.status, body.requested_date, body.follow_up_date, body.received_date)
    phase = APMPhase(project_vendor_id=bid_vendor_id, **body.model_dump(exclude={"status"}))
    phase.status = APMPhaseStatus.PENDING
    phase_service.apply_status_change(phase, body.status)
    db.add(phase)
    db.flush()
    change_feed.record_change(db, change_feed.INSERT, phase, user_id=x_user_id)
    db.commit()
    db.refresh(phase)
    return phase


@router.patch("/phases/{phase_id}", response_model=APMPhaseResponse)
def update_phase(
    phase_id: int,
    body: APMPhaseUpdate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    phase = _phase_or_404(db, phase_id)
    changes = body.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None) or phase.status
    merged = {
        "phase_name": changes.get("phase_name") or phase.phase_name,
        "requested_date": changes.get("requested_date", phase.requested_date),
        "follow_up_date": changes.get("follow_up_date", phase.follow_up_date),
        "received_date": changes.get("received_date", phase.received_date),
    }
    _check_phase(merged["phase_name"], new_status, merged["requested_date"], merged["follow_up_date"], merged["received_date"])
    for key, value in changes.items():
        if key == "phase_name" and value is None:
            continue
        setattr(phase, key, value)
    phase_service.apply_status_change(phase, new_status)
    change_feed.record_change(db, change_feed.UPDATE, phase, user_id=x_user_id)
    db.commit()
    db.refresh(phase)
    return phase


@router.delete("/phases/{phase_id}", status_code=204)
def delete_phase(
    phase_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    phase = _phase_or_404(db, phase_id)
    change_feed.record_change(db, change_feed.DELETE, phase, user_id=x_user_id)
    db.delete(phase)
    db.commit()
    return Response(status_code=204)


@router.get("/apm/tasks", response_model=list[APMTask])
def list_apm_tasks(
    assigned_to: Optional[str] = None,
    urgency: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Open phases with a follow-up date across active APM projects, soonest first.
    assigned_to="unassigned" selects vendors with no APM user.
    """
    query = (
        db.query(APMPhase, BidVendor, Project)
        .join(BidVendor, APMPhase.project_vendor_id == BidVendor.id)
        .join(Project, BidVendor.bid_id == Project.id)
        .filter(
            Project.sent_to_apm.is_(True),
            Project.apm_activity_cycle == ActivityCycle.ACTIVE,
            APMPhase.status != APMPhaseStatus.COMPLETED,
            APMPhase.follow_up_date.isnot(None),
        )
    )
    if assigned_to == "unassigned":
        query = query.filter(BidVendor.assigned_apm_user.is_(None))
    elif assigned_to:
        query = query.filter(BidVendor.assigned_apm_user == assigned_to)

    tasks = []
    for phase, bid_vendor, project in query.order_by(APMPhase.follow_up_date, APMPhase.id).all():
        info = get_follow_up_urgency(phase.follow_up_date)
        if urgency and info["level"] != urgency:
            continue
        tasks.append(
            APMTask(
                phase_id=phase.id,
                phase_name=phase.phase_name,
                phase_status=phase.status,
                follow_up_date=phase.follow_up_date,
                bid_vendor_id=bid_vendor.id,
                vendor_id=bid_vendor.vendor_id,
                vendor_name=bid_vendor.vendor_name,
                project_id=project.id,
                project_name=project.project_name,
                assigned_apm_user=bid_vendor.assigned_apm_user,
                urgency=UrgencyInfo(**info),
            )
        )
    return tasks


# --- Timeline ---


def timeline_out(event: TimelineEvent, today: Optional[date] = None) -> TimelineEventResponse:
    out = TimelineEventResponse.model_validate(event)
    today = today or date.today()
    out.is_overdue = bool(event.order_by and event.order_by < today and event.status not in TimelineStatus.CLOSED)
    return out


def _event_or_404(db: Session, event_id: int) -> TimelineEvent:
    event = db.query(TimelineEvent).filter(TimelineEvent.id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Timeline event not found")
    return event


@router.get("/projects/{project_id}/timeline", response_model=list[TimelineEventResponse])
def list_timeline(project_id: int, db: Session = Depends(get_db)):
    _project_or_404(db, project_id)
    events = (
        db.query(TimelineEvent)
        .filter(TimelineEvent.project_id == project_id)
        .order_by(TimelineEvent.order_by.is_(None), TimelineEvent.order_by, TimelineEvent.id)
        .all()
    )
    return [timeline_out(e) for e in events]


@router.post("/projects/{project_id}/timeline", response_model=TimelineEventResponse, status_code=201)
def create_timeline_event(
    project_id: int,
    body: TimelineEventCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    _project_or_404(db, project_id)
    event = TimelineEvent(project_id=project_id, **body.model_dump())
    db.add(event)
    db.flush()
    change_feed.record_change(db, change_feed.INSERT, event, user_id=x_user_id)
    db.commit()
    db.refresh(event)
    return timeline_out(event)


@router.patch("/timeline/{event_id}", response_model=TimelineEventResponse)
def update_timeline_event(
    event_id: int,
    body: TimelineEventUpdate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    event = _event_or_404(db, event_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is None and key in ("event_name", "event_category", "event_type", "status"):
            continue
        setattr(event, key, value)
    change_feed.record_change(db, change_feed.UPDATE, event, user_id=x_user_id)
    db.commit()
    db.refresh(event)
    return timeline_out(event)


@router.delete("/timeline/{event_id}", status_code=204)
def delete_timeline_event(
    event_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    event = _event_or_404(db, event_id)
    change_feed.record_change(db, change_feed.DELETE, event, user_id=x_user_id)
    db.delete(event)
    db.commit()
    return Response(status_code=204)


# --- Equipment ---


def _equipment_or_404(db: Session, equipment_id: int) -> Equipment:
    item = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return item


def _check_equipment_links(db: Session, project_id: int, project_vendor_id, timeline_event_id) -> None:
    """Linked vendor and timeline event must belong to the same project."""
    if project_vendor_id is not None:
        link = db.query(BidVendor).filter(BidVendor.id == project_vendor_id).first()
        if not link or link.bid_id != project_id:
            raise HTTPException(status_code=400, detail="Vendor is not attached to this project")
    if timeline_event_id is not None:
        event = db.query(TimelineEvent).filter(TimelineEvent.id == timeline_event_id).first()
        if not event or event.project_id != project_id:
            raise HTTPException(status_code=400, detail="Timeline event does not belong to this project")


@router.get("/projects/{project_id}/equipment", response_model=list[EquipmentResponse])
def list_equipment(project_id: int, db: Session = Depends(get_db)):
    _project_or_404(db, project_id)
    return db.query(Equipment).filter(Equipment.project_id == project_id).order_by(Equipment.id).all()


@router.post("/projects/{project_id}/equipment", response_model=EquipmentResponse, status_code=201)
def create_equipment(
    project_id: int,
    body: EquipmentCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    _project_or_404(db, project_id)
    _check_equipment_links(db, project_id, body.project_vendor_id, body.timeline_event_id)
    item = Equipment(project_id=project_id, **body.model_dump())
    db.add(item)
    db.flush()
    change_feed.record_change(db, change_feed.INSERT, item, user_id=x_user_id)
    db.commit()
    db.refresh(item)
    return item


@router.patch("/equipment/{equipment_id}", response_model=EquipmentResponse)
def update_equipment(
    equipment_id: int,
    body: EquipmentUpdate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    item = _equipment_or_404(db, equipment_id)
    changes = body.model_dump(exclude_unset=True)
    _check_equipment_links(
        db,
        item.project_id,
        changes.get("project_vendor_id"),
        changes.get("timeline_event_id"),
    )
    if changes.get("quantity") is not None and changes["quantity"] <= 0:
        raise HTTPException(status_code=400, detail="quantity must be positive")
    for key, value in changes.items():
        if value is None and key in ("description", "quantity"):
            continue
        setattr(item, key, value)
    change_feed.record_change(db, change_feed.UPDATE, item, user_id=x_user_id)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/equipment/{equipment_id}", status_code=204)
def delete_equipment(
    equipment_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    item = _equipment_or_404(db, equipment_id)
    change_feed.record_change(db, change_feed.DELETE, item, user_id=x_user_id)
    db.delete(item)
    db.commit()
    return Response(status_code=204)
