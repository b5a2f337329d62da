"""
Dashboard analytics: status distribution, vendor response times and scores, bid
completion, the KPI summary and month-over-month trends.

Hours are rounded to one decimal and percentages to whole numbers (halves round up).
Response dates are stored as calendar dates, so a response is taken to arrive at
midnight UTC of that day and never before the request.
"""
import calendar
import logging
import math
from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from bidboard.models.bid_vendor import BidVendor
from bidboard.models.project import Project, ActivityCycle
from bidboard.services.status_service import get_status_color, get_vendor_due_date, to_date

logger = logging.getLogger(__name__)

ON_TIME = "On Time"
LATE = "Late"
OVERDUE = "Overdue"
IN_PROGRESS = "In Progress"

RESPONSE_TIME_RANGES = ("Same Day", "1-3 Days", "4-7 Days", "1-2 Weeks", "2+ Weeks")
# Vendors with fewer requests than this are left out of the performance ranking.
MIN_RANKED_REQUESTS = 2
DEFAULT_TREND_MONTHS = 6


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


def calculate_percentile(values: list[float], percentile: float) -> float:
    """Linear interpolation between the closest ranks."""
    if not values:
        return 0
    ordered = sorted(values)
    index = (percentile / 100) * (len(ordered) - 1)
    lower = int(index)
    if index == lower:
        return ordered[lower]
    weight = index - lower
    return ordered[lower] + weight * (ordered[lower + 1] - ordered[lower])


def calculate_statistics(values: list[float]) -> dict:
    if not values:
        return {"count": 0, "min": 0, "max": 0, "mean": 0, "median": 0, "p25": 0, "p75": 0, "p90": 0}
    return {
        "count": len(values),
        "min": min(values),
        "max": max(values),
        "mean": round(sum(values) / len(values), 2),
        "median": calculate_percentile(values, 50),
        "p25": calculate_percentile(values, 25),
        "p75": calculate_percentile(values, 75),
        "p90": calculate_percentile(values, 90),
    }


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _seconds_between(start: datetime, end) -> float:
    if not isinstance(end, datetime):
        end = datetime.combine(end, time.min)
    return (_aware(end) - _aware(start)).total_seconds()


def hours_between(start: datetime, end) -> float:
    return round(max(_seconds_between(start, end), 0) / 3600, 1)


def _in_range(value, start_date: Optional[date], end_date: Optional[date]) -> bool:
    day = to_date(value)
    if day is None:
        return start_date is None and end_date is None
    if start_date and day < start_date:
        return False
    if end_date and day > end_date:
        return False
    return True


def _mean(values: list[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def status_distribution(db: Session) -> list[dict]:
    """Count and share of every status over active estimating projects."""
    rows = (
        db.query(Project.status)
        .filter(Project.est_activity_cycle == ActivityCycle.ACTIVE)
        .all()
    )
    counts: dict[str, int] = {}
    for (status,) in rows:
        counts[status] = counts.get(status, 0) + 1
    total = len(rows)
    return [
        {
            "status": status,
            "count": count,
            "percentage": percent(count, total),
            "color": get_status_color(status),
        }
        for status, count in sorted(counts.items(), key=lambda item: (-item[1], item[0] or ""))
    ]


def reliability_score(response_rate: int, avg_response_days: Optional[float], total_requests: int) -> int:
    """
    0-100: half from the response rate, up to 30 for answering within two weeks,
    up to 20 for request volume. A vendor with no responses is scored as taking 10 days.
    """
    days = 10 if avg_response_days is None else avg_response_days
    score = response_rate * 0.5
    score += max(0, (14 - days) / 14) * 30
    score += min(20, total_requests * 0.5)
    return min(100, round_half_up(score))


def performance_grade(score: float) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def performance_score(response_rate: float, avg_response_hours: Optional[float], on_time_rate: float) -> float:
    """Weighted 40/30/30 blend of response rate (boosted 20%), speed and on-time responses."""
    response_part = min(response_rate * 1.2, 100)
    # Every day of waiting costs 20 speed points.
    speed_part = 0 if avg_response_hours is None else max(0, 100 - (avg_response_hours / 24) * 20)
    return round(response_part * 0.4 + speed_part * 0.3 + on_time_rate * 0.3, 1)


def _requests_in_range(db: Session, start_date: Optional[date], end_date: Optional[date]) -> list[BidVendor]:
    links = db.query(BidVendor).options(joinedload(BidVendor.vendor)).order_by(BidVendor.id).all()
    return [
        link for link in links
        if link.created_at is not None and _in_range(link.created_at, start_date, end_date)
    ]


def _responded_on_time(link: BidVendor) -> bool:
    due = to_date(link.due_date) or get_vendor_due_date(link.created_at)
    return to_date(link.response_received_date) <= due


def vendor_response_metrics(
    db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None
) -> list[dict]:
    """
    Per-vendor request and response counts, response rate, response hours and days,
    plus the reliability score, performance score and grade.
    A response is on time when it arrives by the cost due date, or within the standard
    response window when the request has no due date.
    """
    grouped: dict[int, dict] = {}
    for link in _requests_in_range(db, start_date, end_date):
        entry = grouped.setdefault(
            link.vendor_id,
            {
                "vendor_id": link.vendor_id,
                "company_name": link.vendor_name,
                "requests": 0,
                "hours": [],
                "days": [],
                "on_time": 0,
            },
        )
        entry["requests"] += 1
        if link.response_received_date:
            seconds = max(_seconds_between(link.created_at, link.response_received_date), 0)
            entry["hours"].append(round(seconds / 3600, 1))
            entry["days"].append(int(seconds // 86400))
            if _responded_on_time(link):
                entry["on_time"] += 1

    results = []
    for entry in grouped.values():
        hours = entry.pop("hours")
        days = entry.pop("days")
        requests = entry.pop("requests")
        on_time = entry.pop("on_time")
        responses = len(hours)
        stats = calculate_statistics(hours)
        response_rate = percent(responses, requests)
        avg_hours = stats["mean"] if responses else None
        avg_days = round_half_up(sum(days) / responses) if responses else None
        on_time_rate = round(on_time / responses * 100, 1) if responses else 0
        score = performance_score(responses / requests * 100, avg_hours, on_time_rate)
        entry.update(
            total_requests=requests,
            responses=responses,
            response_rate=response_rate,
            avg_response_hours=avg_hours,
            median_response_hours=round(stats["median"], 1) if responses else None,
            avg_response_days=avg_days,
            response_status="Responded" if responses else "Pending",
            on_time_rate=on_time_rate,
            reliability_score=reliability_score(response_rate, avg_days, requests),
            performance_score=score,
            grade=performance_grade(score),
        )
        results.append(entry)
    results.sort(key=lambda r: ((r["company_name"] or "").lower(), r["vendor_id"]))
    return results


def vendor_performance(
    db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None
) -> list[dict]:
    """Vendors with enough requests to judge, best performance score first."""
    ranked = [
        row for row in vendor_response_metrics(db, start_date, end_date)
        if row["total_requests"] >= MIN_RANKED_REQUESTS
    ]
    ranked.sort(key=lambda r: (-r["performance_score"], (r["company_name"] or "").lower()))
    return ranked


def response_time_distribution(
    db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None
) -> list[dict]:
    """Responses bucketed by whole days from request to response."""
    counts = dict.fromkeys(RESPONSE_TIME_RANGES, 0)
    for link in _requests_in_range(db, start_date, end_date):
        if not link.response_received_date:
            continue
        seconds = _seconds_between(link.created_at, link.response_received_date)
        if seconds < 0:
            continue
        days = int(seconds // 86400)
        if days == 0:
            bucket = "Same Day"
        elif days <= 3:
            bucket = "1-3 Days"
        elif days <= 7:
            bucket = "4-7 Days"
        elif days <= 14:
            bucket = "1-2 Weeks"
        else:
            bucket = "2+ Weeks"
        counts[bucket] += 1
    total = sum(counts.values())
    return [
        {"range": label, "count": count, "percentage": percent(count, total)}
        for label, count in counts.items()
    ]


def completion_status(project: Project, today: Optional[date] = None) -> str:
    today = today or date.today()
    due = to_date(project.due_date)
    if project.completed_at:
        if due is None:
            return ON_TIME
        return ON_TIME if to_date(project.completed_at) <= due else LATE
    if due and due < today:
        return OVERDUE
    return IN_PROGRESS


def bid_completion(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> dict:
    """Hours from creation to completion per non-archived project, plus totals per outcome."""
    projects = (
        db.query(Project)
        .filter(Project.est_activity_cycle != ActivityCycle.ARCHIVED)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )
    bids = []
    for project in projects:
        if not _in_range(project.created_at, start_date, end_date):
            continue
        hours = None
        if project.completed_at and project.created_at:
            hours = hours_between(project.created_at, project.completed_at)
        bids.append(
            {
                "id": project.id,
                "project_name": project.project_name,
                "status": project.status,
                "due_date": project.due_date,
                "created_at": project.created_at,
                "completed_at": project.completed_at,
                "completion_hours": hours,
                "completion_status": completion_status(project, today),
            }
        )

    completed = [b for b in bids if b["completion_hours"] is not None]
    on_time = [b for b in completed if b["completion_status"] == ON_TIME]
    by_status = {label: 0 for label in (ON_TIME, LATE, OVERDUE, IN_PROGRESS)}
    for bid in bids:
        by_status[bid["completion_status"]] += 1
    return {
        "bids": bids,
        "completion_hours": calculate_statistics([b["completion_hours"] for b in completed]),
        "on_time_rate": percent(len(on_time), len(completed)),
        "by_status": by_status,
    }


def _period_figures(completion: dict, vendors: list[dict]) -> dict:
    completed = [b for b in completion["bids"] if b["completion_hours"] is not None]
    responded = [v for v in vendors if v["responses"]]
    return {
        "total_bids": len(completion["bids"]),
        "completed_bids": len(completed),
        "avg_completion_hours": _mean([b["completion_hours"] for b in completed]),
        "on_time_rate": completion["on_time_rate"],
        "avg_response_hours": _mean([v["avg_response_hours"] for v in responded]),
        "vendors_responded": len(responded),
    }


def analytics_summary(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> dict:
    """Dashboard KPIs for a date range."""
    completion = bid_completion(db, start_date, end_date, today)
    vendors = vendor_response_metrics(db, start_date, end_date)
    summary = _period_figures(completion, vendors)
    summary.update(
        overdue_bids=completion["by_status"][OVERDUE],
        vendor_response_rate=percent(summary["vendors_responded"], len(vendors)),
        vendors_contacted=len(vendors),
        total_vendor_requests=sum(v["total_requests"] for v in vendors),
    )
    return summary


def month_bounds(today: date, months_back: int) -> tuple[date, date]:
    index = today.year * 12 + today.month - 1 - months_back
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def trends(db: Session, months: int = DEFAULT_TREND_MONTHS, today: Optional[date] = None) -> list[dict]:
    """One entry per calendar month, oldest first, ending with the current month."""
    today = today or date.today()
    results = []
    for back in range(months - 1, -1, -1):
        start, end = month_bounds(today, back)
        completion = bid_completion(db, start, end, today)
        figures = _period_figures(completion, vendor_response_metrics(db, start, end))
        results.append(
            {
                "month": start.strftime("%b %Y"),
                "start_date": start,
                "end_date": end,
                "completion_rate": percent(figures["completed_bids"], figures["total_bids"]),
                **figures,
            }
        )
    logger.info("Computed %d months of trends ending %s", months, today.isoformat())
    return results
