import math
import re
from datetime import date, datetime, timezone
from typing import Optional, Union

from bidboard.services.status_service import to_date

EMPTY = "—"


def format_date(value: Union[date, datetime, str, None], style: str = "short") -> str:
    """Jan 5, 2025 (short) or January 5, 2025 (long). Missing dates render as an em dash."""
    d = to_date(value)
    if d is None:
        return EMPTY
    month = d.strftime("%B") if style == "long" else d.strftime("%b")
    return f"{month} {d.day}, {d.year}"


def format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return EMPTY
    return f"{format_date(value)} {value.strftime('%I:%M %p')}"


def format_currency(amount) -> str:
    if amount is None or amount == "":
        return "$0.00"
    value = float(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_relative_date(value: datetime, now: Optional[datetime] = None) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    minutes = math.floor((now - value).total_seconds() / 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    if minutes < 10080:
        return f"{minutes // 1440}d ago"
    return format_date(value)


def format_phone_number(phone: Optional[str]) -> str:
    if not phone:
        return ""
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def generate_initials(name: str) -> str:
    return "".join(part[0] for part in name.split() if part).upper()[:2]


def format_file_size(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, i), 2)
    return f"{value:g} {units[i]}"


def capitalize_words(text: str) -> str:
    return re.sub(r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


def to_title_case(text: str) -> str:
    """camelCase / snake_case / kebab-case -> Title Case."""
    spaced = re.sub(r"([A-Z])", r" \1", text)
    spaced = re.sub(r"[_-]+", " ", spaced).strip()
    return " ".join(w[:1].upper() + w[1:].lower() for w in spaced.split())
