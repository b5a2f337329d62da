"""
Project list views, filters, sorting and pagination.

Estimating and APM each see the same projects table through a different
activity cycle; a view name picks the slice, the remaining filters narrow it.
"""
import math
from datetime import date, timedelta
from typing import Iterable, Optional

from sqlalchemy import func, or_, and_
from sqlalchemy.orm import Query

from bidboard.models.project import Project, ActivityCycle, BidStatus
from bidboard.models.vendor import Vendor
from bidboard.services.status_service import DateLike, to_date

ESTIMATING_VIEWS = ("estimating", "estimating_on_hold", "estimating_archived", "sent_to_apm")
APM_VIEWS = ("apm", "apm_on_hold", "apm_archived")
PROJECT_VIEWS = ESTIMATING_VIEWS + APM_VIEWS

URGENCY_PERIODS = ("today", "thisweek")

SORT_FIELDS = {
    "project_name": Project.project_name,
    "due_date": Project.due_date,
    "status": Project.status,
    "created_at": Project.created_at,
    "estimated_value": Project.estimated_value,
    "project_start_date": Project.project_start_date,
}

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 200


def like_term(search: str) -> str:
    """Lowercased substring pattern with LIKE wildcards in the input taken literally."""
    escaped = search.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def apply_view(query: Query, view: str) -> Query:
    if view == "estimating":
        return query.filter(
            Project.est_activity_cycle == ActivityCycle.ACTIVE,
            Project.sent_to_apm.is_(False),
        )
    if view == "estimating_on_hold":
        return query.filter(Project.est_activity_cycle == ActivityCycle.ON_HOLD)
    if view == "estimating_archived":
        return query.filter(Project.est_activity_cycle == ActivityCycle.ARCHIVED)
    if view == "sent_to_apm":
        return query.filter(Project.sent_to_apm.is_(True))
    if view == "apm":
        return query.filter(Project.sent_to_apm.is_(True), Project.apm_activity_cycle == ActivityCycle.ACTIVE)
    if view == "apm_on_hold":
        return query.filter(Project.sent_to_apm.is_(True), Project.apm_activity_cycle == ActivityCycle.ON_HOLD)
    if view == "apm_archived":
        return query.filter(Project.sent_to_apm.is_(True), Project.apm_activity_cycle == ActivityCycle.ARCHIVED)
    raise ValueError(f"Unknown view: {view}")


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday..Saturday week containing today."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def overdue_condition(today: date):
    return and_(
        Project.due_date.isnot(None),
        Project.due_date < today,
        Project.status.notin_(BidStatus.COMPLETED),
    )


def apply_project_filters(
    query: Query,
    search: Optional[str] = None,
    statuses: Optional[Iterable[str]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    overdue_only: bool = False,
    urgency: Optional[str] = None,
    today: Optional[date] = None,
) -> Query:
    today = today or date.today()
    if search and search.strip():
        term = like_term(search)
        query = query.filter(
            or_(
                func.lower(Project.project_name).like(term, escape="\\"),
                func.lower(Project.status).like(term, escape="\\"),
            )
        )
    statuses = [s for s in (statuses or []) if s]
    if statuses:
        query = query.filter(Project.status.in_(statuses))
    if start_date or end_date:
        query = query.filter(Project.due_date.isnot(None))
        if start_date:
            query = query.filter(Project.due_date >= start_date)
        if end_date:
            query = query.filter(Project.due_date <= end_date)
    if overdue_only:
        query = query.filter(overdue_condition(today))
    if urgency == "today":
        query = query.filter(Project.due_date == today)
    elif urgency == "thisweek":
        week_start, week_end = week_bounds(today)
        query = query.filter(Project.due_date >= week_start, Project.due_date <= week_end)
    elif urgency:
        raise ValueError(f"Unknown urgency period: {urgency}")
    return query


def apply_sort(query: Query, sort_by: str = "created_at", sort_dir: str = "desc") -> Query:
    column = SORT_FIELDS.get(sort_by)
    if column is None:
        raise ValueError(f"Cannot sort by {sort_by}")
    ordered = column.desc() if sort_dir == "desc" else column.asc()
    # Nulls last in both directions, then id for a stable page order.
    tiebreak = Project.id.desc() if sort_dir == "desc" else Project.id.asc()
    return query.order_by(column.is_(None), ordered, tiebreak)


def paginate(query: Query, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> tuple[list, int, int]:
    """Returns (items, total, total_pages)."""
    page = max(page, 1)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    total_pages = math.ceil(total / page_size) if total else 0
    return items, total, total_pages


def is_date_in_range(value: DateLike, start: DateLike = None, end: DateLike = None) -> bool:
    """Inclusive range check; no bounds means everything matches, a missing date never matches a bound."""
    start_d, end_d = to_date(start), to_date(end)
    if start_d is None and end_d is None:
        return True
    d = to_date(value)
    if d is None:
        return False
    if start_d and d < start_d:
        return False
    if end_d and d > end_d:
        return False
    return True


def is_date_in_urgency_period(value: DateLike, period: Optional[str], today: Optional[date] = None) -> bool:
    if not period:
        return True
    d = to_date(value)
    if d is None:
        return False
    today = today or date.today()
    if period == "today":
        return d == today
    if period == "thisweek":
        week_start, week_end = week_bounds(today)
        return week_start <= d <= week_end
    return True


def apply_vendor_filters(
    query: Query,
    search: Optional[str] = None,
    vendor_type: Optional[str] = None,
    priority_only: bool = False,
) -> Query:
    if search and search.strip():
        term = like_term(search)
        query = query.filter(
            or_(
                func.lower(Vendor.company_name).like(term, escape="\\"),
                func.lower(func.coalesce(Vendor.specialty, "")).like(term, escape="\\"),
                func.lower(func.coalesce(Vendor.contact_person, "")).like(term, escape="\\"),
                func.lower(func.coalesce(Vendor.email, "")).like(term, escape="\\"),
            )
        )
    if vendor_type:
        query = query.filter(Vendor.vendor_type == vendor_type)
    if priority_only:
        query = query.filter(Vendor.is_priority.is_(True))
    return query.order_by(func.lower(Vendor.company_name))
