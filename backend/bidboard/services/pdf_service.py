"""
PDF rendering for reports with PyMuPDF.

Tabular reports use landscape letter pages. Text that does not fit a column
is shortened with an ellipsis rather than wrapped.
"""
import logging

import fitz  # PyMuPDF

from bidboard.services.formatters import format_currency, format_date

logger = logging.getLogger(__name__)

LANDSCAPE_LETTER = (792, 612)
MARGIN = 36
FONT = "helv"
BOLD_FONT = "hebo"
GOLD = (0.83, 0.69, 0.22)  # #d4af37
DARK = (0.2, 0.2, 0.2)
GREY = (0.45, 0.45, 0.45)
RED = (0.8, 0.1, 0.1)
HEADER_FILL = (0.95, 0.93, 0.85)
ROW_HEIGHT = 16


class PdfWriter:
    """Cursor-based page writer: headings, key/value lines and simple tables."""

    def __init__(self, title: str, subtitle: str = ""):
        self.doc = fitz.open()
        self.title = title
        self.subtitle = subtitle
        self.width, self.height = LANDSCAPE_LETTER
        self.page = None
        self.y = 0
        self.new_page()

    def new_page(self) -> None:
        self.page = self.doc.new_page(width=self.width, height=self.height)
        self.page.draw_rect(fitz.Rect(0, 0, self.width, 56), color=GOLD, fill=GOLD)
        self.page.insert_text((MARGIN, 30), self.title, fontsize=18, fontname=BOLD_FONT, color=(1, 1, 1))
        if self.subtitle:
            self.page.insert_text((MARGIN, 47), self.subtitle, fontsize=10, fontname=FONT, color=(1, 1, 1))
        self.y = 80

    def ensure_space(self, needed: float) -> None:
        if self.y + needed > self.height - MARGIN:
            self.new_page()

    def heading(self, text: str, size: float = 13, color=DARK) -> None:
        self.ensure_space(size + 10)
        self.page.insert_text((MARGIN, self.y), fit_text(text, self.width - 2 * MARGIN, size, BOLD_FONT),
                              fontsize=size, fontname=BOLD_FONT, color=color)
        self.y += size + 8

    def line(self, text: str, size: float = 10, color=DARK, indent: float = 0) -> None:
        self.ensure_space(size + 6)
        width = self.width - 2 * MARGIN - indent
        self.page.insert_text((MARGIN + indent, self.y), fit_text(text, width, size, FONT),
                              fontsize=size, fontname=FONT, color=color)
        self.y += size + 5

    def gap(self, amount: float = 8) -> None:
        self.y += amount

    def table(self, columns: list[tuple[str, float]], rows: list[list[str]], row_colors=None) -> None:
        """columns: (header, width fraction). Repeats the header row after a page break."""
        usable = self.width - 2 * MARGIN
        widths = [usable * frac for _, frac in columns]

        def header():
            self.ensure_space(ROW_HEIGHT * 2)
            self.page.draw_rect(fitz.Rect(MARGIN, self.y - 11, MARGIN + usable, self.y + 5),
                                color=HEADER_FILL, fill=HEADER_FILL)
            x = MARGIN
            for (name, _), w in zip(columns, widths):
                self.page.insert_text((x + 3, self.y), fit_text(name, w - 6, 9, BOLD_FONT),
                                      fontsize=9, fontname=BOLD_FONT, color=DARK)
                x += w
            self.y += ROW_HEIGHT

        header()
        for i, row in enumerate(rows):
            if self.y + ROW_HEIGHT > self.height - MARGIN:
                self.new_page()
                header()
            color = row_colors[i] if row_colors else DARK
            x = MARGIN
            for value, w in zip(row, widths):
                self.page.insert_text((x + 3, self.y), fit_text(value, w - 6, 9, FONT),
                                      fontsize=9, fontname=FONT, color=color)
                x += w
            self.y += ROW_HEIGHT
        self.gap(6)

    def to_bytes(self) -> bytes:
        for number, page in enumerate(self.doc, start=1):
            page.insert_text((self.width - MARGIN - 60, self.height - 18), f"Page {number} of {len(self.doc)}",
                             fontsize=8, fontname=FONT, color=GREY)
        data = self.doc.tobytes()
        self.doc.close()
        return data


def fit_text(text, max_width: float, fontsize: float, fontname: str = FONT) -> str:
    text = "" if text is None else str(text).replace("\n", " ")
    if fitz.get_text_length(text, fontname=fontname, fontsize=fontsize) <= max_width:
        return text
    while text and fitz.get_text_length(text + "...", fontname=fontname, fontsize=fontsize) > max_width:
        text = text[:-1]
    return text + "..."


def _money(value) -> str:
    return format_currency(value) if value not in (None, 0) else "-"


def render_weekly_costs(data: dict) -> bytes:
    summary = data["summary"]
    pdf = PdfWriter("Weekly Bids & Vendor Costs Due", f"Generated {summary['report_date']}")
    pdf.line(
        f"{summary['total_projects']} projects  |  {summary['total_pending_vendors']} vendor costs pending  |  "
        f"{summary['total_submitted_vendors']} submitted"
    )
    pdf.gap()
    if not data["projects"]:
        pdf.line("No bids or vendor costs are due within the next 7 days.", color=GREY)
    for entry in data["projects"]:
        project = entry["project"]
        pdf.heading(project["project_name"], size=12, color=GOLD)
        pdf.line(
            f"GC: {project['general_contractor'] or '-'}   Bid due: {format_date(project['due_date'])}   "
            f"Status: {project['status']}",
            size=9,
            color=GREY,
        )
        rows, colors = [], []
        for bucket in entry["due_dates"]:
            for v in bucket["pending_vendors"]:
                rows.append([bucket["label"], v["vendor_name"], "Pending", "-"])
                colors.append(RED)
            for v in bucket["submitted_vendors"]:
                rows.append([bucket["label"], v["vendor_name"], "Submitted", _money(v["cost_amount"])])
                colors.append(DARK)
        pdf.table([("Cost Due", 0.3), ("Vendor", 0.4), ("Status", 0.15), ("Cost", 0.15)], rows, colors)
    return pdf.to_bytes()


def render_active_projects(data: dict) -> bytes:
    summary = data["summary"]
    pdf = PdfWriter("Active Projects Report", f"Projects starting in the next 60 days - {summary['report_date']}")
    if not data["projects"]:
        pdf.line("No active projects start within the next 60 days.", color=GREY)
    for project in data["projects"]:
        pdf.heading(project["project_name"], size=12, color=GOLD)
        pdf.line(
            f"Start: {format_date(project['project_start_date'])} ({project['days_until_start']} days)   "
            f"GC: {project['general_contractor'] or '-'}   System: {project['gc_system'] or '-'}",
            size=9,
            color=GREY,
        )
        if project["vendors"]:
            pdf.table(
                [("Vendor", 0.4), ("Final Quote", 0.2), ("Buy #", 0.2), ("PO #", 0.2)],
                [
                    [v["vendor_name"], _money(v["final_quote_amount"]), v["buy_number"] or "-", v["po_number"] or "-"]
                    for v in project["vendors"]
                ],
            )
        pdf.line(f"Latest note: {project['most_recent_note']}", size=9)
        pdf.gap()
    return pdf.to_bytes()


def render_equipment_release(data: dict) -> bytes:
    summary = data["summary"]
    pdf = PdfWriter(
        "Equipment Release Report",
        f"{summary['total_events']} events across {summary['total_projects']} projects - {summary['report_date']}",
    )
    pdf.line(
        f"Overdue: {summary['overdue_events']}   Pending: {summary['pending_events']}   "
        f"In progress: {summary['in_progress_events']}"
    )
    pdf.gap()
    if not data["events"]:
        pdf.line("No equipment needs ordering in the next 30 days.", color=GREY)
    for event in data["events"]:
        color = RED if event["is_overdue"] else DARK
        flag = "  OVERDUE" if event["is_overdue"] else ""
        pdf.heading(f"{event['project_name']} - {event['event_name']}{flag}", size=11, color=color)
        pdf.line(
            f"Order by: {format_date(event['order_by'])}   Required by: {format_date(event['required_by'])}   "
            f"Status: {event['status'].replace('_', ' ')}",
            size=9,
            color=GREY,
        )
        pdf.table(
            [("Equipment", 0.4), ("Qty", 0.1), ("Vendor", 0.3), ("PO #", 0.2)],
            [
                [
                    item["description"],
                    f"{item['quantity']:g} {item['unit'] or ''}".strip(),
                    item["vendor_name"],
                    item["po_number"] or "-",
                ]
                for item in event["equipment"]
            ],
        )
    return pdf.to_bytes()


def render_insurance_expiry(data: dict) -> bytes:
    summary = data["summary"]
    pdf = PdfWriter("Insurance Expiry Report", f"Certificates expiring within 30 days - {summary['report_date']}")
    if not data["vendors"]:
        pdf.line("No insurance certificates expire within the next 30 days.", color=GREY)
    else:
        pdf.table(
            [("Vendor", 0.25), ("Expires", 0.15), ("Days Left", 0.1), ("Contact", 0.2), ("Email", 0.18), ("Phone", 0.12)],
            [
                [
                    v["company_name"],
                    format_date(v["insurance_expiry_date"]),
                    str(v["days_until_expiry"]),
                    v["contact_name"] or "-",
                    v["contact_email"] or "-",
                    v["contact_phone"] or "-",
                ]
                for v in data["vendors"]
            ],
            [RED if v["days_until_expiry"] <= 7 else DARK for v in data["vendors"]],
        )
    return pdf.to_bytes()


RENDERERS = {
    "weekly-costs": render_weekly_costs,
    "active-projects": render_active_projects,
    "equipment-release": render_equipment_release,
    "insurance-expiry": render_insurance_expiry,
}


def render_report(name: str, data: dict) -> bytes:
    renderer = RENDERERS.get(name)
    if renderer is None:
        raise ValueError(f"Unknown report: {name}")
    content = renderer(data)
    logger.info("Rendered %s PDF (%d bytes)", name, len(content))
    return content
