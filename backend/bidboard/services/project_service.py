"""
Project writes: activity cycles, scoped updates, APM hand-off, copy and bulk actions.

Functions here mutate ORM objects and add change-feed rows; the caller owns the commit,
except for :func:`bulk_apply` which commits per project.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bidboard.models.project import Project, ActivityCycle, BidStatus
from bidboard.models.bid_vendor import BidVendor, VendorResponseStatus
from bidboard.services import change_feed

logger = logging.getLogger(__name__)

CORE_FIELDS = {
    "project_name",
    "project_email",
    "project_address",
    "general_contractor",
    "project_description",
    "due_date",
    "status",
    "priority",
    "estimated_value",
    "notes",
    "assign_to",
    "file_location",
}
ESTIMATING_FIELDS = CORE_FIELDS | {"archived", "on_hold", "department"}
APM_FIELDS = CORE_FIELDS | {
    "gc_system",
    "added_to_procore",
    "project_start_date",
    "apm_archived",
    "apm_on_hold",
    "made_by_apm",
}
GENERAL_FIELDS = ESTIMATING_FIELDS | APM_FIELDS | {"created_by", "sent_to_apm"}

SCOPE_FIELDS = {
    "general": GENERAL_FIELDS,
    "estimating": ESTIMATING_FIELDS,
    "apm": APM_FIELDS,
}

# A null for one of these in a partial update means "leave as is".
NOT_NULL_FIELDS = {
    "project_name",
    "status",
    "priority",
    "department",
    "added_to_procore",
    "made_by_apm",
    "sent_to_apm",
}

BULK_ACTIONS = (
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
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def cycle_from_flags(archived: Optional[bool], on_hold: Optional[bool], current: str) -> str:
    """
    Map legacy archived/on_hold booleans to an activity cycle.
    Archived wins over on hold; when neither flag is given the cycle is unchanged.
    """
    if archived is None and on_hold is None:
        return current
    if archived:
        return ActivityCycle.ARCHIVED
    if on_hold:
        return ActivityCycle.ON_HOLD
    return ActivityCycle.ACTIVE


def set_est_cycle(project: Project, cycle: str, user_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
    if cycle == project.est_activity_cycle:
        return
    now = now or _now()
    project.est_activity_cycle = cycle
    if cycle == ActivityCycle.ARCHIVED:
        project.archived_at, project.archived_by = now, user_id
        project.on_hold_at, project.on_hold_by = None, None
    elif cycle == ActivityCycle.ON_HOLD:
        project.on_hold_at, project.on_hold_by = now, user_id
        project.archived_at, project.archived_by = None, None
    else:
        project.archived_at, project.archived_by = None, None
        project.on_hold_at, project.on_hold_by = None, None


def set_apm_cycle(project: Project, cycle: str, now: Optional[datetime] = None) -> None:
    if cycle == project.apm_activity_cycle:
        return
    now = now or _now()
    project.apm_activity_cycle = cycle
    project.apm_archived_at = now if cycle == ActivityCycle.ARCHIVED else None
    project.apm_on_hold_at = now if cycle == ActivityCycle.ON_HOLD else None


def set_status(project: Project, status: str, now: Optional[datetime] = None) -> None:
    if status not in BidStatus.ALL:
        raise ValueError(f"Unknown status: {status}")
    project.status = status
    if status in (BidStatus.WON, BidStatus.LOST) and project.completed_at is None:
        project.completed_at = now or _now()


def new_project(data: dict, user_id: Optional[str] = None) -> Project:
    data = dict(data)
    if "title" in data:
        title = data.pop("title")
        data.setdefault("project_name", title)
    archived, on_hold = data.pop("archived", None), data.pop("on_hold", None)
    apm_archived, apm_on_hold = data.pop("apm_archived", None), data.pop("apm_on_hold", None)
    status = data.pop("status", None) or BidStatus.GATHERING_COSTS
    project = Project(**data)
    if project.created_by is None:
        project.created_by = user_id
    project.est_activity_cycle = ActivityCycle.ACTIVE
    project.apm_activity_cycle = ActivityCycle.ACTIVE
    set_status(project, status)
    set_est_cycle(project, cycle_from_flags(archived, on_hold, ActivityCycle.ACTIVE), user_id)
    set_apm_cycle(project, cycle_from_flags(apm_archived, apm_on_hold, ActivityCycle.ACTIVE))
    if project.sent_to_apm and project.sent_to_apm_at is None:
        project.sent_to_apm_at = _now()
    return project


def update_project(
    db: Session,
    project: Project,
    changes: dict,
    scope: str = "general",
    user_id: Optional[str] = None,
) -> Project:
    """
    Apply a partial update limited to the fields the scope allows.
    Raises ValueError naming any field outside the scope.
    """
    allowed = SCOPE_FIELDS.get(scope)
    if allowed is None:
        raise ValueError(f"Unknown scope: {scope}")
    changes = dict(changes)
    if "title" in changes:
        title = changes.pop("title")
        changes.setdefault("project_name", title)
    changes = {k: v for k, v in changes.items() if v is not None or k not in NOT_NULL_FIELDS}
    rejected = sorted(k for k in changes if k not in allowed)
    if rejected:
        raise ValueError(f"Fields not editable in {scope} scope: {', '.join(rejected)}")

    now = _now()
    if "sent_to_apm" in changes:
        sent = changes.pop("sent_to_apm")
        if sent and not project.sent_to_apm:
            send_to_apm(project, now)
        elif not sent and project.sent_to_apm:
            unsend_from_apm(project)
    if "archived" in changes or "on_hold" in changes:
        cycle = cycle_from_flags(changes.pop("archived", None), changes.pop("on_hold", None), project.est_activity_cycle)
        set_est_cycle(project, cycle, user_id, now)
    if "apm_archived" in changes or "apm_on_hold" in changes:
        cycle = cycle_from_flags(
            changes.pop("apm_archived", None), changes.pop("apm_on_hold", None), project.apm_activity_cycle
        )
        set_apm_cycle(project, cycle, now)
    if "status" in changes:
        set_status(project, changes.pop("status"), now)
    for key, value in changes.items():
        setattr(project, key, value)
    project.updated_at = now
    change_feed.record_change(db, change_feed.UPDATE, project, user_id=user_id)
    return project


def send_to_apm(project: Project, now: Optional[datetime] = None) -> None:
    project.sent_to_apm = True
    project.sent_to_apm_at = now or _now()
    project.apm_activity_cycle = ActivityCycle.ACTIVE
    project.apm_on_hold_at = None
    project.apm_archived_at = None


def unsend_from_apm(project: Project) -> None:
    project.sent_to_apm = False
    project.sent_to_apm_at = None
    project.apm_activity_cycle = ActivityCycle.ACTIVE
    project.apm_on_hold_at = None
    project.apm_archived_at = None


def copy_project(
    db: Session,
    source: Project,
    project_name: str,
    overrides: Optional[dict] = None,
    copy_vendors: bool = True,
    user_id: Optional[str] = None,
) -> Project:
    """New project from an existing one. Vendors come along as fresh pending invitations."""
    data = {
        "project_name": project_name,
        "project_email": source.project_email,
        "project_address": source.project_address,
        "general_contractor": source.general_contractor,
        "project_description": source.project_description,
        "priority": source.priority,
        "estimated_value": source.estimated_value,
        "assign_to": source.assign_to,
        "file_location": source.file_location,
        "department": source.department,
        "status": BidStatus.NEW,
    }
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    project = new_project(data, user_id)
    db.add(project)
    db.flush()
    if copy_vendors:
        for link in source.bid_vendors:
            db.add(
                BidVendor(
                    bid_id=project.id,
                    vendor_id=link.vendor_id,
                    status=VendorResponseStatus.PENDING,
                    is_priority=link.is_priority,
                    due_date=link.due_date,
                    assigned_apm_user=link.assigned_apm_user,
                )
            )
        db.flush()
    change_feed.record_change(
        db, "copy", project, user_id=user_id, details={**change_feed.snapshot(project), "copied_from": source.id}
    )
    return project


def _apply_bulk_action(db: Session, project: Project, action: str, user_id: Optional[str]) -> None:
    now = _now()
    if action == "delete":
        change_feed.record_change(db, change_feed.DELETE, project, user_id=user_id)
        db.delete(project)
        return
    if action in ("move_to_active", "unarchive"):
        set_est_cycle(project, ActivityCycle.ACTIVE, user_id, now)
    elif action == "archive":
        set_est_cycle(project, ActivityCycle.ARCHIVED, user_id, now)
    elif action == "on_hold":
        set_est_cycle(project, ActivityCycle.ON_HOLD, user_id, now)
    elif action == "apm_move_to_active":
        set_apm_cycle(project, ActivityCycle.ACTIVE, now)
    elif action == "apm_archive":
        set_apm_cycle(project, ActivityCycle.ARCHIVED, now)
    elif action == "apm_on_hold":
        set_apm_cycle(project, ActivityCycle.ON_HOLD, now)
    elif action == "send_to_apm":
        send_to_apm(project, now)
    elif action == "unsend_from_apm":
        unsend_from_apm(project)
    project.updated_at = now
    change_feed.record_change(db, change_feed.UPDATE, project, user_id=user_id, details={
        **change_feed.snapshot(project), "bulk_action": action,
    })


def bulk_apply(db: Session, project_ids: list[int], action: str, user_id: Optional[str] = None) -> dict:
    """
    Run one action over many projects. Each project commits on its own so one
    failure never blocks the rest.
    """
    if action not in BULK_ACTIONS:
        raise ValueError(f"Unknown bulk action: {action}")
    result = {"success": 0, "failed": 0, "errors": []}
    for project_id in project_ids:
        project = db.query(Project).filter(Project.id == project_id).first()
        if not project:
            result["failed"] += 1
            result["errors"].append({"id": project_id, "error": "Project not found"})
            continue
        try:
            _apply_bulk_action(db, project, action, user_id)
            db.commit()
            result["success"] += 1
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Bulk %s failed for project %s: %s", action, project_id, exc)
            result["failed"] += 1
            result["errors"].append({"id": project_id, "error": str(exc)})
    logger.info("Bulk %s: %d succeeded, %d failed", action, result["success"], result["failed"])
    return result
