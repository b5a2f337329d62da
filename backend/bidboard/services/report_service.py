"""
Report data builders.

Each builder returns plain dicts (no ORM objects) so the same data feeds the
PDF renderer, the Excel writer and the email body.
"""
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from bidboard.models.project import Project, ActivityCycle
from bidboard.models.bid_vendor import BidVendor
from bidboard.models.project_note import ProjectNote
from bidboard.models.timeline import TimelineEvent, TimelineStatus
from bidboard.models.vendor import Vendor
from bidboard.services.formatters import format_date

logger = logging.getLogger(__name__)

WEEKLY_WINDOW_DAYS = 7
ACTIVE_PROJECT_WINDOW_DAYS = 60
EQUIPMENT_WINDOW_DAYS = 30
INSURANCE_WINDOW_DAYS = 30

REPORT_NAMES = ("weekly-costs", "active-projects", "equipment-release", "insurance-expiry")


def format_due_date(due: date, today: Optional[date] = None) -> str:
    """"Mon, Oct 6 (TODAY)" / "(Tomorrow)" / "(in 3 days)" within a week, plain date otherwise."""
    today = today or date.today()
    label = f"{due.strftime('%a')}, {due.strftime('%b')} {due.day}"
    diff = (due - today).days
    if diff == 0:
        return f"{label} (TODAY)"
    if diff == 1:
        return f"{label} (Tomorrow)"
    if 1 < diff <= 7:
        return f"{label} (in {diff} days)"
    return label


def report_date_label(today: Optional[date] = None) -> str:
    return format_date(today or date.today(), style="long")


# --- Weekly bids & vendor costs ---


def weekly_vendor_costs(db: Session, today: Optional[date] = None) -> dict:
    """
    Vendor costs due in [today, today+7) plus every vendor on a bid due in that window,
    grouped by project and then by the vendor's due date.
    """
    today = today or date.today()
    window_end = today + timedelta(days=WEEKLY_WINDOW_DAYS)

    links = (
        db.query(BidVendor)
        .join(Project, BidVendor.bid_id == Project.id)
        .options(selectinload(BidVendor.vendor), selectinload(BidVendor.project))
        .filter(Project.est_activity_cycle != ActivityCycle.ARCHIVED)
        .filter(
            or_(
                (BidVendor.due_date >= today) & (BidVendor.due_date < window_end),
                (Project.due_date >= today) & (Project.due_date < window_end),
            )
        )
        .all()
    )

    grouped: dict[int, dict] = {}
    for link in links:
        if link.due_date is None:
            continue
        project = link.project
        entry = grouped.setdefault(project.id, {"project": _project_summary(project), "due_dates": {}})
        bucket = entry["due_dates"].setdefault(
            link.due_date, {"total_vendors": 0, "pending_vendors": [], "submitted_vendors": []}
        )
        row = {
            "bid_vendor_id": link.id,
            "vendor_name": link.vendor_name or "Unknown Vendor",
            "cost_amount": link.cost_amount,
            "status": link.status,
            "is_priority": link.is_priority,
        }
        if link.has_submitted_cost:
            bucket["submitted_vendors"].append(row)
        else:
            bucket["pending_vendors"].append(row)
        bucket["total_vendors"] += 1

    projects = sorted(grouped.values(), key=lambda p: min(p["due_dates"]))
    for p in projects:
        p["due_dates"] = [
            {"due_date": d, "label": format_due_date(d, today), **p["due_dates"][d]}
            for d in sorted(p["due_dates"])
        ]

    summary = {
        "total_projects": len(projects),
        "total_pending_vendors": sum(len(d["pending_vendors"]) for p in projects for d in p["due_dates"]),
        "total_submitted_vendors": sum(len(d["submitted_vendors"]) for p in projects for d in p["due_dates"]),
        "report_date": report_date_label(today),
    }
    logger.info(
        "Weekly costs report: %d projects, %d pending vendors",
        summary["total_projects"],
        summary["total_pending_vendors"],
    )
    return {"projects": projects, "summary": summary}


def _project_summary(project: Project) -> dict:
    return {
        "id": project.id,
        "project_name": project.project_name,
        "general_contractor": project.general_contractor,
        "due_date": project.due_date,
        "status": project.status,
        "project_address": project.project_address,
    }


# --- Active APM projects ---


def most_recent_note(notes: list) -> str:
    """"[Jan 5, 2025 - Author] content" for the newest note, or "No notes available"."""
    if not notes:
        return "No notes available"
    note = max(notes, key=lambda n: (n.created_at, n.id))
    author = note.user.name if note.user else "Unknown"
    return f"[{format_date(note.created_at)} - {author}] {note.content}"


def active_projects(db: Session, today: Optional[date] = None) -> dict:
    """APM-active projects starting within the next 60 days, soonest first."""
    today = today or date.today()
    window_end = today + timedelta(days=ACTIVE_PROJECT_WINDOW_DAYS)
    projects = (
        db.query(Project)
        .options(
            selectinload(Project.bid_vendors).selectinload(BidVendor.vendor),
            selectinload(Project.notes_list).selectinload(ProjectNote.user),
        )
        .filter(
            Project.sent_to_apm.is_(True),
            Project.apm_activity_cycle == ActivityCycle.ACTIVE,
            Project.project_start_date.isnot(None),
            Project.project_start_date >= today,
            Project.project_start_date <= window_end,
        )
        .order_by(Project.project_start_date, Project.id)
        .all()
    )
    rows = []
    for project in projects:
        rows.append(
            {
                **_project_summary(project),
                "project_start_date": project.project_start_date,
                "days_until_start": (project.project_start_date - today).days,
                "gc_system": project.gc_system,
                "vendors": [
                    {
                        "vendor_name": bv.vendor_name or "Unknown Vendor",
                        "final_quote_amount": bv.final_quote_amount,
                        "buy_number": bv.buy_number,
                        "po_number": bv.po_number,
                    }
                    for bv in project.bid_vendors
                ],
                "most_recent_note": most_recent_note(project.notes_list),
            }
        )
    summary = {"total_projects": len(rows), "report_date": report_date_label(today)}
    logger.info("Active projects report: %d projects", len(rows))
    return {"projects": rows, "summary": summary}


# --- Equipment release ---


def equipment_release(db: Session, today: Optional[date] = None) -> dict:
    """
    Open timeline events to order by today+30 (overdue ones included) that have equipment,
    grouped under their project.
    """
    today = today or date.today()
    horizon = today + timedelta(days=EQUIPMENT_WINDOW_DAYS)
    events = (
        db.query(TimelineEvent)
        .options(selectinload(TimelineEvent.equipment), selectinload(TimelineEvent.project))
        .filter(
            TimelineEvent.status.in_((TimelineStatus.PENDING, TimelineStatus.IN_PROGRESS)),
            TimelineEvent.order_by.isnot(None),
            TimelineEvent.order_by <= horizon,
        )
        .order_by(TimelineEvent.order_by, TimelineEvent.id)
        .all()
    )
    rows = []
    for event in events:
        if not event.equipment:
            continue
        rows.append(
            {
                "event_id": event.id,
                "event_name": event.event_name,
                "event_category": event.event_category,
                "order_by": event.order_by,
                "required_by": event.required_by,
                "status": event.status,
                "is_overdue": event.order_by < today,
                "project_id": event.project_id,
                "project_name": event.project.project_name,
                "equipment": [
                    {
                        "description": item.description,
                        "quantity": item.quantity,
                        "unit": item.unit,
                        "po_number": item.po_number,
                        "vendor_name": item.vendor_name,
                        "date_received": item.date_received,
                    }
                    for item in event.equipment
                ],
            }
        )
    summary = {
        "total_events": len(rows),
        "total_projects": len({r["project_id"] for r in rows}),
        "overdue_events": sum(1 for r in rows if r["is_overdue"]),
        "pending_events": sum(1 for r in rows if r["status"] == TimelineStatus.PENDING),
        "in_progress_events": sum(1 for r in rows if r["status"] == TimelineStatus.IN_PROGRESS),
        "report_date": report_date_label(today),
    }
    logger.info("Equipment release report: %d events", len(rows))
    return {"events": rows, "summary": summary}


# --- Insurance expiry ---


def insurance_expiry(db: Session, today: Optional[date] = None) -> dict:
    """Vendors whose insurance certificate expires in [today, today+30]."""
    today = today or date.today()
    horizon = today + timedelta(days=INSURANCE_WINDOW_DAYS)
    vendors = (
        db.query(Vendor)
        .options(selectinload(Vendor.contacts))
        .filter(
            Vendor.insurance_expiry_date.isnot(None),
            Vendor.insurance_expiry_date >= today,
            Vendor.insurance_expiry_date <= horizon,
        )
        .order_by(Vendor.insurance_expiry_date, Vendor.company_name)
        .all()
    )
    rows = []
    for vendor in vendors:
        contact = vendor.primary_contact
        rows.append(
            {
                "vendor_id": vendor.id,
                "company_name": vendor.company_name,
                "vendor_type": vendor.vendor_type,
                "insurance_expiry_date": vendor.insurance_expiry_date,
                "days_until_expiry": (vendor.insurance_expiry_date - today).days,
                "insurance_notes": vendor.insurance_notes,
                "contact_name": contact.contact_name if contact else vendor.contact_person,
                "contact_email": contact.email if contact else vendor.email,
                "contact_phone": contact.phone if contact else vendor.phone,
            }
        )
    summary = {"total_vendors": len(rows), "report_date": report_date_label(today)}
    logger.info("Insurance expiry report: %d vendors", len(rows))
    return {"vendors": rows, "summary": summary}


def build_report(db: Session, name: str, today: Optional[date] = None) -> dict:
    if name == "weekly-costs":
        return weekly_vendor_costs(db, today)
    if name == "active-projects":
        return active_projects(db, today)
    if name == "equipment-release":
        return equipment_release(db, today)
    if name == "insurance-expiry":
        return insurance_expiry(db, today)
    raise ValueError(f"Unknown report: {name}")
