"""
Report delivery through the SMTP2GO HTTP API.

Configuration comes from the environment at send time: SMTP2GO_API_KEY,
SMTP2GO_SENDER_EMAIL, SMTP2GO_API_URL, REPORT_RECIPIENTS and HR_EMAIL.
"""
import base64
import json
import logging
import os
import urllib.error
import urllib.request
from datetime import date
from html import escape
from typing import Optional

from sqlalchemy.orm import Session

from bidboard.models.activity_log import EmailLog
from bidboard.services.formatters import format_date

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.smtp2go.com/v3/email/send"
TIMEOUT_SECONDS = 30


class EmailConfigError(Exception):
    """SMTP2GO credentials or recipients are not configured."""


class EmailDeliveryError(Exception):
    """SMTP2GO refused or failed to deliver the message."""


def _split(value: Optional[str]) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def get_config() -> dict:
    api_key = os.getenv("SMTP2GO_API_KEY", "").strip()
    sender = os.getenv("SMTP2GO_SENDER_EMAIL", "").strip()
    if not api_key:
        raise EmailConfigError("SMTP2GO_API_KEY is not set")
    if not sender:
        raise EmailConfigError("SMTP2GO_SENDER_EMAIL is not set")
    return {
        "api_key": api_key,
        "sender": sender,
        "api_url": os.getenv("SMTP2GO_API_URL", "").strip() or DEFAULT_API_URL,
    }


def default_recipients(report_type: str) -> list[str]:
    """HR_EMAIL receives the insurance report; everything else goes to REPORT_RECIPIENTS."""
    if report_type == "insurance-expiry":
        hr = _split(os.getenv("HR_EMAIL"))
        if hr:
            return hr
    return _split(os.getenv("REPORT_RECIPIENTS"))


def attachment(filename: str, content: bytes, mimetype: str = "application/pdf") -> dict:
    return {
        "filename": filename,
        "fileblob": base64.b64encode(content).decode("ascii"),
        "mimetype": mimetype,
    }


def send_email(to: list[str], subject: str, html_body: str, attachments: Optional[list[dict]] = None) -> dict:
    """
    POST one message to SMTP2GO. Returns the response "data" object.
    Raises EmailConfigError when unconfigured, EmailDeliveryError when the API rejects it.
    """
    if not to:
        raise EmailConfigError("No recipients configured")
    config = get_config()
    payload = {
        "sender": config["sender"],
        "to": to,
        "subject": subject,
        "html_body": html_body,
    }
    if attachments:
        payload["attachments"] = attachments
    req = urllib.request.Request(
        config["api_url"],
        data=json.dumps(payload).encode("utf-8"),
        method="POST",
        headers={
            "Content-Type": "application/json",
            "X-Smtp2go-Api-Key": config["api_key"],
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=TIMEOUT_SECONDS) as resp:
            body = json.loads(resp.read().decode("utf-8") or "{}")
    except urllib.error.HTTPError as e:
        detail = e.read().decode("utf-8", errors="replace") if e.fp else ""
        raise EmailDeliveryError(f"SMTP2GO returned HTTP {e.code}: {detail[:300]}") from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise EmailDeliveryError(f"Could not reach SMTP2GO: {e}") from e

    data = body.get("data") or {}
    if data.get("failed", 0) > 0:
        failures = data.get("failures") or data.get("error") or "unknown error"
        raise EmailDeliveryError(f"SMTP2GO failed to deliver: {failures}")
    logger.info("Sent %r to %d recipients", subject, len(to))
    return data


def send_report_email(
    db: Session,
    report_type: str,
    recipients: list[str],
    subject: str,
    html_body: str,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """send_email plus an email_logs row for every attempt, successful or not."""
    log = EmailLog(report_type=report_type, recipients=", ".join(recipients), subject=subject)
    try:
        data = send_email(recipients, subject, html_body, attachments)
    except (EmailConfigError, EmailDeliveryError) as e:
        log.sent_successfully = False
        log.error = str(e)
        db.add(log)
        db.commit()
        logger.error("Failed to send %s report: %s", report_type, e)
        raise
    log.sent_successfully = True
    db.add(log)
    db.commit()
    return data


# --- Subjects and bodies ---


def _long_date(today: Optional[date] = None) -> str:
    return format_date(today or date.today(), style="long")


def report_subject(report_type: str, summary: dict, today: Optional[date] = None) -> str:
    if report_type == "weekly-costs":
        return f"Weekly Bids & Costs Report - {summary['total_projects']} Projects Need Attention"
    if report_type == "active-projects":
        return f"Active Projects Report - {_long_date(today)} - {summary['total_projects']} Projects"
    if report_type == "equipment-release":
        return f"Equipment Release Report - {_long_date(today)} - {summary['total_events']} Events Requiring Action"
    if report_type == "insurance-expiry":
        count = summary["total_vendors"]
        if count == 0:
            return "Insurance Expiry Report - No Certificates Expiring"
        plural = "s" if count != 1 else ""
        return f"Insurance Expiry Alert - {count} Certificate{plural} Expiring Soon"
    raise ValueError(f"Unknown report: {report_type}")


def _wrap(title: str, intro: str, items: list[str], closing: str = "") -> str:
    bullets = "".join(f"<li>{escape(item)}</li>" for item in items)
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{escape(title)}</title></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="background-color: #d4af37; color: #ffffff; padding: 24px 20px; text-align: center;">
    <h1 style="margin: 0;">{escape(title)}</h1>
  </div>
  <div style="padding: 24px;">
    <p>{escape(intro)}</p>
    <div style="background-color: #f9f9f9; padding: 16px; border-left: 4px solid #d4af37;">
      <h3 style="margin: 0 0 10px 0; color: #d4af37;">Summary</h3>
      <ul>{bullets}</ul>
    </div>
    <p>{escape(closing)}</p>
  </div>
</body>
</html>"""


def report_html(report_type: str, data: dict) -> str:
    summary = data["summary"]
    if report_type == "weekly-costs":
        return _wrap(
            "Weekly Bids & Costs Due Report",
            f"Report date: {summary['report_date']}. {summary['total_projects']} projects need attention "
            "this week. The attached PDF lists every bid and vendor cost due within the next 7 days.",
            [
                f"Projects with upcoming deadlines: {summary['total_projects']}",
                f"Vendor costs still pending: {summary['total_pending_vendors']}",
                f"Vendor costs submitted: {summary['total_submitted_vendors']}",
            ],
            "Please follow up with pending vendors before their due dates.",
        )
    if report_type == "active-projects":
        return _wrap(
            "Active Projects Report",
            f"Report date: {summary['report_date']}. Projects starting within the next 60 days are attached.",
            [f"{p['project_name']}: starts {format_date(p['project_start_date'])}" for p in data["projects"]]
            or ["No active projects start within the next 60 days."],
        )
    if report_type == "equipment-release":
        return _wrap(
            "Equipment Release Report",
            f"Report date: {summary['report_date']}. {summary['total_events']} timeline events have equipment "
            "to order within 30 days.",
            [
                f"Overdue events: {summary['overdue_events']}",
                f"Pending events: {summary['pending_events']}",
                f"In progress events: {summary['in_progress_events']}",
                f"Projects affected: {summary['total_projects']}",
            ],
        )
    if report_type == "insurance-expiry":
        return _wrap(
            "Insurance Expiry Report",
            f"Report date: {summary['report_date']}. {summary['total_vendors']} vendor insurance certificates "
            "expire within the next 30 days.",
            [
                f"{v['company_name']}: expires {format_date(v['insurance_expiry_date'])} "
                f"({v['days_until_expiry']} days), contact {v['contact_name'] or 'not on file'}"
                for v in data["vendors"]
            ]
            or ["No certificates expire within the next 30 days."],
            "Please request updated certificates from the vendors listed.",
        )
    raise ValueError(f"Unknown report: {report_type}")
