import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from bidboard.database import get_db
from bidboard.models.activity_log import EmailLog
from bidboard.models.project import Project, ActivityCycle
from bidboard.schemas.report import ReportSendBody, ReportSendResponse, EmailLogResponse
from bidboard.services import email_service, pdf_service, report_service
from bidboard.services.excel_service import build_projects_workbook, XLSX_MIME

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)


def _check_name(name: str) -> None:
    if name not in report_service.REPORT_NAMES:
        raise HTTPException(status_code=404, detail="Report not found")


def _pdf_filename(name: str) -> str:
    return f"{name}-report-{date.today().isoformat()}.pdf"


@router.get("/email-log", response_model=list[EmailLogResponse])
def list_email_log(limit: int = 50, db: Session = Depends(get_db)):
    return db.query(EmailLog).order_by(EmailLog.id.desc()).limit(min(max(limit, 1), 500)).all()


@router.get("/active-projects.xlsx")
def active_projects_excel(db: Session = Depends(get_db)):
    """Start dates of every APM-active project, soonest first."""
    projects = (
        db.query(Project)
        .filter(Project.sent_to_apm.is_(True), Project.apm_activity_cycle == ActivityCycle.ACTIVE)
        .order_by(Project.project_start_date.is_(None), Project.project_start_date, Project.id)
        .all()
    )
    content = build_projects_workbook(projects, "start_dates")
    filename = f"active-project-start-dates-{date.today().isoformat()}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{name}.pdf")
def report_pdf(name: str, db: Session = Depends(get_db)):
    _check_name(name)
    data = report_service.build_report(db, name)
    content = pdf_service.render_report(name, data)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_pdf_filename(name)}"'},
    )


@router.get("/{name}")
def report_data(name: str, db: Session = Depends(get_db)):
    """Report contents as JSON, for previews."""
    _check_name(name)
    return report_service.build_report(db, name)


@router.post("/{name}/send", response_model=ReportSendResponse)
def send_report(name: str, body: ReportSendBody | None = None, db: Session = Depends(get_db)):
    _check_name(name)
    recipients = (body.recipients if body and body.recipients else None) or email_service.default_recipients(name)
    if not recipients:
        raise HTTPException(status_code=400, detail="No recipients given and none configured")

    data = report_service.build_report(db, name)
    if name == "weekly-costs" and not data["projects"]:
        raise HTTPException(status_code=400, detail="No bids or vendor costs are due within the next 7 days.")
    subject = email_service.report_subject(name, data["summary"])
    pdf = pdf_service.render_report(name, data)
    try:
        email_service.send_report_email(
            db,
            name,
            recipients,
            subject,
            email_service.report_html(name, data),
            [email_service.attachment(_pdf_filename(name), pdf)],
        )
    except email_service.EmailConfigError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except email_service.EmailDeliveryError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return ReportSendResponse(
        sent=True,
        report=name,
        recipients=recipients,
        subject=subject,
        summary=data["summary"],
    )
