"""
Bid status helpers and due-date urgency.

Urgency is measured in business days (Mon-Fri) between today and the due date.
Every function takes an optional ``today`` so callers and tests can pin the clock.
"""
from datetime import date, datetime, timedelta
from typing import Optional, Union

from bidboard.models.project import BidStatus

DateLike = Union[date, datetime, str, None]

STATUS_COLORS = {
    "new": "#3b82f6",
    "gathering costs": "#f59e0b",
    "drafting bid": "#8b5cf6",
    "bid sent": "#0ea5e9",
    "pending": "#f59e0b",
    "completed": "#10b981",
    "won bid": "#059669",
    "won": "#059669",
    "lost bid": "#dc2626",
    "lost": "#dc2626",
    "default": "#6b7280",
}

STATUS_DESCRIPTIONS = {
    "new": "New project - initial setup",
    "gathering costs": "Collecting vendor quotes and material costs",
    "drafting bid": "Preparing bid documentation and proposal",
    "bid sent": "Proposal submitted, awaiting client response",
    "won bid": "Project awarded - proceed with contract",
    "lost bid": "Proposal not selected by client",
}

ACTIVE_STATUSES = ("new", "gathering costs", "drafting bid", "bid sent")

VENDOR_RESPONSE_DAYS = 7


def to_date(value: DateLike) -> Optional[date]:
    """Coerce a date, datetime or ISO string ("2025-10-09" or "2025-10-09T08:00:00Z") to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    # Only the calendar part matters; this avoids timezone shifts on date-only values.
    date_part = text.split("T", 1)[0].split(" ", 1)[0]
    return date.fromisoformat(date_part)


def business_days_between(start: DateLike, end: DateLike) -> int:
    """Count weekdays in (start, end]. Same day or end before start gives 0."""
    start_d, end_d = to_date(start), to_date(end)
    if start_d is None or end_d is None or end_d <= start_d:
        return 0
    days = 0
    current = start_d + timedelta(days=1)
    while current <= end_d:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def get_bid_urgency(due_date: DateLike, status: str, today: Optional[date] = None) -> dict:
    """
    Classify a bid's due date as none / warning / critical / dueToday / overdue.

    Bids already sent, won or lost never carry urgency.
    """
    due = to_date(due_date)
    if due is None or status in BidStatus.COMPLETED:
        return {"level": "none", "is_overdue": False, "business_days_remaining": 0, "business_days_overdue": 0}

    today = today or date.today()
    remaining = business_days_between(today, due)

    if today > due:
        overdue_days = business_days_between(due, today)
        return {
            "level": "overdue",
            "is_overdue": True,
            "business_days_remaining": -overdue_days,
            "business_days_overdue": overdue_days,
        }
    if remaining == 0:
        level = "dueToday"
    elif 1 <= remaining <= 3:
        level = "critical"
    elif 4 <= remaining <= 5:
        level = "warning"
    else:
        level = "none"
    return {"level": level, "is_overdue": False, "business_days_remaining": remaining, "business_days_overdue": 0}


def get_bid_display_status(status: str, due_date: DateLike, today: Optional[date] = None) -> str:
    """Show "Due Today" in place of the stored status when an open bid is due today."""
    if status in BidStatus.COMPLETED:
        return status
    if get_bid_urgency(due_date, status, today)["level"] == "dueToday":
        return "Due Today"
    return status


def is_urgent_bid(due_date: DateLike, today: Optional[date] = None) -> bool:
    level = get_bid_urgency(due_date, BidStatus.GATHERING_COSTS, today)["level"]
    return level in ("critical", "overdue")


def get_follow_up_urgency(follow_up_date: DateLike, today: Optional[date] = None) -> dict:
    """APM follow-up urgency: overdue, due_today, critical (1-3 business days) or normal."""
    due = to_date(follow_up_date)
    if due is None:
        return {"level": "normal", "is_overdue": False, "business_days_remaining": 0, "business_days_overdue": 0}

    today = today or date.today()
    remaining = business_days_between(today, due)
    if today > due:
        overdue_days = business_days_between(due, today)
        return {
            "level": "overdue",
            "is_overdue": True,
            "business_days_remaining": -overdue_days,
            "business_days_overdue": overdue_days,
        }
    if remaining == 0:
        level = "due_today"
    elif remaining <= 3:
        level = "critical"
    else:
        level = "normal"
    return {"level": level, "is_overdue": False, "business_days_remaining": remaining, "business_days_overdue": 0}


def get_status_color(status: str) -> str:
    return STATUS_COLORS.get((status or "").lower(), STATUS_COLORS["default"])


def get_status_description(status: str) -> str:
    return STATUS_DESCRIPTIONS.get((status or "").lower(), status)


def is_won_status(status: str) -> bool:
    return "won" in (status or "").lower()


def is_lost_status(status: str) -> bool:
    return "lost" in (status or "").lower()


def is_active_status(status: str) -> bool:
    return (status or "").lower() in ACTIVE_STATUSES


def get_vendor_due_date(email_sent_date: DateLike, days_to_add: int = VENDOR_RESPONSE_DAYS) -> Optional[date]:
    sent = to_date(email_sent_date)
    if sent is None:
        return None
    return sent + timedelta(days=days_to_add)


def is_vendor_overdue(email_sent_date: DateLike, response_date: DateLike, today: Optional[date] = None) -> bool:
    """A vendor with no response is overdue once the response window after sending has passed."""
    if to_date(response_date) is not None:
        return False
    due = get_vendor_due_date(email_sent_date)
    if due is None:
        return False
    return (today or date.today()) > due


def is_bid_vendor_overdue(due_date: DateLike, response_date: DateLike, cost_amount, today: Optional[date] = None) -> bool:
    """Bid vendor past its cost due date without a response or a cost."""
    due = to_date(due_date)
    if due is None or to_date(response_date) is not None:
        return False
    if cost_amount is not None and cost_amount != 0:
        return False
    return (today or date.today()) > due
