"""
Contact detail checks for vendors, contacts and users.
Format validation only; nothing is sent or dialed.
"""
import re
from typing import Optional

# E.164 allows +1 (US/CA), +44 (UK), etc. We validate basic format.
PHONE_E164_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
# Loose fallback: digits, spaces, dashes, parens, optional extension
PHONE_LOOSE_PATTERN = re.compile(r"^[\d\s\-\(\)\+\.]{10,20}(\s*(x|ext\.?)\s*\d{1,6})?$", re.IGNORECASE)
# Basic email: local@domain.tld (RFC 5322 simplified)
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


def verify_email(email: Optional[str]) -> Optional[bool]:
    """Return True if email format is valid, False if invalid, None if no email."""
    if not email or not str(email).strip():
        return None
    return bool(EMAIL_PATTERN.match(str(email).strip()))


def verify_phone(phone: Optional[str]) -> Optional[bool]:
    """
    Check if phone number format looks valid (E.164-like or loose US format).
    Returns True if valid, False if invalid, None if no phone.
    """
    if not phone or not str(phone).strip():
        return None
    s = re.sub(r"[\s\-\.\(\)]", "", str(phone).strip())
    if PHONE_E164_PATTERN.match(s):
        return True
    if PHONE_LOOSE_PATTERN.match(str(phone).strip()):
        return True
    return False


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip whitespace; blank strings become None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def check_email(value: Optional[str]) -> Optional[str]:
    """Pydantic validator helper: normalise blank to None, reject malformed addresses."""
    value = clean_optional(value)
    if verify_email(value) is False:
        raise ValueError("Invalid email address")
    return value


def check_phone(value: Optional[str]) -> Optional[str]:
    value = clean_optional(value)
    if verify_phone(value) is False:
        raise ValueError("Invalid phone number")
    return value


def check_color(value: Optional[str]) -> Optional[str]:
    value = clean_optional(value)
    if value is not None and not HEX_COLOR_PATTERN.match(value):
        raise ValueError("Color must be a hex value like #d4af37")
    return value
