"""Excel exports of project lists (openpyxl)."""
import logging
from io import BytesIO
from typing import Callable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from bidboard.services.formatters import format_currency, format_date
from bidboard.services.report_service import most_recent_note

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
HEADER_FILL = PatternFill(start_color="D4AF37", end_color="D4AF37", fill_type="solid")
FORMULA_PREFIXES = ("=", "+", "-", "@")


def safe_cell(value):
    """Text that Excel would read as a formula is stored with a leading apostrophe."""
    if isinstance(value, str) and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def _value(project) -> str:
    return format_currency(project.estimated_value) if project.estimated_value else "Not specified"


def _date_or(value, fallback: str = "") -> str:
    return format_date(value) if value else fallback


# (header, width, getter)
Column = tuple[str, int, Callable]

ESTIMATING_COLUMNS: list[Column] = [
    ("Project Name", 25, lambda p: p.project_name),
    ("Project Address", 30, lambda p: p.project_address or "Not provided"),
    ("General Contractor", 20, lambda p: p.general_contractor or "Not specified"),
    ("Due Date", 12, lambda p: format_date(p.due_date)),
    ("Status", 15, lambda p: p.status),
    ("Priority", 12, lambda p: "High Priority" if p.priority else "Standard"),
    ("Estimated Value", 15, _value),
    ("GC System", 12, lambda p: p.gc_system or "N/A"),
    ("Project Email", 25, lambda p: p.project_email or "Not provided"),
    ("Assigned To", 15, lambda p: p.assign_to or "Unassigned"),
    ("Project Description", 40, lambda p: p.project_description or ""),
    ("Most Recent Note", 50, lambda p: most_recent_note(p.notes_list)),
    ("Notes", 30, lambda p: p.notes or ""),
    ("Created By", 15, lambda p: p.created_by or "Unknown"),
    ("File Location", 25, lambda p: p.file_location or "Not specified"),
]

APM_COLUMNS: list[Column] = [
    ("Project Name", 25, lambda p: p.project_name),
    ("Project Address", 30, lambda p: p.project_address or "Not provided"),
    ("General Contractor", 20, lambda p: p.general_contractor or "Not specified"),
    ("Project Start Date", 15, lambda p: _date_or(p.project_start_date, "Not set")),
    ("Due Date", 12, lambda p: format_date(p.due_date)),
    ("Status", 15, lambda p: p.status),
    ("Priority", 12, lambda p: "High Priority" if p.priority else "Standard"),
    ("Estimated Value", 15, _value),
    ("APM Hold Status", 15, lambda p: "On Hold" if p.apm_on_hold else "Active"),
    ("APM Hold Date", 15, lambda p: _date_or(p.apm_on_hold_at)),
    ("Sent to APM Date", 15, lambda p: _date_or(p.sent_to_apm_at)),
    ("Made by APM", 12, lambda p: "Yes" if p.made_by_apm else "No"),
    ("GC System", 12, lambda p: p.gc_system or "N/A"),
    ("Added to Procore", 15, lambda p: "Yes" if p.added_to_procore else "No"),
    ("Project Description", 40, lambda p: p.project_description or ""),
    ("Most Recent Note", 50, lambda p: most_recent_note(p.notes_list)),
    ("Notes", 30, lambda p: p.notes or ""),
]

START_DATE_COLUMNS: list[Column] = [
    ("Project Name", 25, lambda p: p.project_name),
    ("Project Address", 30, lambda p: p.project_address or "Not provided"),
    ("General Contractor", 20, lambda p: p.general_contractor or "Not specified"),
    ("Project Start Date", 15, lambda p: _date_or(p.project_start_date, "Not set")),
    ("Due Date", 12, lambda p: format_date(p.due_date)),
    ("Status", 15, lambda p: p.status),
    ("Priority", 10, lambda p: "Yes" if p.priority else "No"),
    ("Estimated Value", 15, _value),
    ("Department", 15, lambda p: p.department or "Not specified"),
    ("Made by APM", 12, lambda p: "Yes" if p.made_by_apm else "No"),
    ("GC System", 12, lambda p: p.gc_system or "N/A"),
    ("Added to Procore", 15, lambda p: "Yes" if p.added_to_procore else "No"),
]

SHEETS = {
    "estimating": ("Estimating Projects", ESTIMATING_COLUMNS),
    "apm": ("APM Projects", APM_COLUMNS),
    "start_dates": ("Project Start Dates", START_DATE_COLUMNS),
}


def build_projects_workbook(projects: list, kind: str = "estimating") -> bytes:
    """One header row plus one row per project; returns the .xlsx bytes."""
    if kind not in SHEETS:
        raise ValueError(f"Unknown export: {kind}")
    title, columns = SHEETS[kind]

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title
    sheet.append([header for header, _, _ in columns])
    for cell in sheet[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(vertical="center")
    sheet.freeze_panes = "A2"

    for project in projects:
        sheet.append([safe_cell(getter(project)) for _, _, getter in columns])

    for index, (_, width, _) in enumerate(columns, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width
    if projects:
        sheet.auto_filter.ref = sheet.dimensions

    buffer = BytesIO()
    workbook.save(buffer)
    logger.info("Built %s workbook with %d rows", kind, len(projects))
    return buffer.getvalue()
