import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, Query, Response
from sqlalchemy.orm import Session, selectinload

from bidboard.database import get_db
from bidboard.models.project import Project
from bidboard.models.bid_vendor import BidVendor
from bidboard.schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectPage,
    ProjectCopyBody,
    BulkActionBody,
    BulkActionResult,
    UrgencyInfo,
)
from bidboard.services import change_feed, filters, project_service
from bidboard.services.status_service import get_bid_urgency, get_bid_display_status
from bidboard.services.excel_service import build_projects_workbook, XLSX_MIME
from bidboard.api.endpoints.project_vendors import bid_vendor_out
from bidboard.api.endpoints.notes import note_out

router = APIRouter(tags=["projects"])
logger = logging.getLogger(__name__)


def project_out(project: Project, today: Optional[date] = None) -> ProjectResponse:
    out = ProjectResponse.model_validate(project)
    out.urgency = UrgencyInfo(**get_bid_urgency(project.due_date, project.status, today))
    out.display_status = get_bid_display_status(project.status, project.due_date, today)
    return out


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _filtered_query(
    db: Session,
    view: str,
    search: Optional[str],
    statuses: Optional[list[str]],
    start_date: Optional[date],
    end_date: Optional[date],
    overdue_only: bool,
    urgency: Optional[str],
):
    try:
        query = filters.apply_view(db.query(Project), view)
        return filters.apply_project_filters(
            query,
            search=search,
            statuses=statuses,
            start_date=start_date,
            end_date=end_date,
            overdue_only=overdue_only,
            urgency=urgency,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/projects", response_model=ProjectPage)
def list_projects(
    view: str = "estimating",
    search: Optional[str] = None,
    status: Optional[list[str]] = Query(None),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    overdue_only: bool = False,
    urgency: Optional[str] = None,
    sort_by: str = "created_at",
    sort_dir: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(filters.DEFAULT_PAGE_SIZE, ge=1, le=filters.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    query = _filtered_query(db, view, search, status, start_date, end_date, overdue_only, urgency)
    overdue_count = query.filter(filters.overdue_condition(date.today())).count()
    try:
        query = filters.apply_sort(query, sort_by, sort_dir)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    items, total, total_pages = filters.paginate(query, page, page_size)
    return ProjectPage(
        items=[project_out(p) for p in items],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        overdue_count=overdue_count,
    )


@router.get("/projects/export.xlsx")
def export_projects(
    view: str = "estimating",
    search: Optional[str] = None,
    status: Optional[list[str]] = Query(None),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    overdue_only: bool = False,
    urgency: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Excel download of the filtered list; APM views get the APM column set."""
    query = _filtered_query(db, view, search, status, start_date, end_date, overdue_only, urgency)
    projects = (
        filters.apply_sort(query, "due_date", "asc")
        .options(selectinload(Project.notes_list))
        .all()
    )
    kind = "apm" if view in filters.APM_VIEWS else "estimating"
    content = build_projects_workbook(projects, kind)
    filename = f"{kind}_projects_{date.today().isoformat()}.xlsx"
    logger.info("Exported %d projects from view %s", len(projects), view)
    return Response(
        content=content,
        media_type=XLSX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/projects/bulk", response_model=BulkActionResult)
def bulk_action(
    body: BulkActionBody,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    return project_service.bulk_apply(db, body.ids, body.action, x_user_id)


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    body: ProjectCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    project = project_service.new_project(body.model_dump(exclude_none=True), x_user_id)
    db.add(project)
    db.flush()
    change_feed.record_change(db, change_feed.INSERT, project, user_id=x_user_id)
    db.commit()
    db.refresh(project)
    logger.info("Created project %s (%s)", project.id, project.project_name)
    return project_out(project)


@router.get("/projects/{project_id}")
def get_project(project_id: int, db: Session = Depends(get_db)):
    """Project with its vendors, notes (newest first) and urgency."""
    project = (
        db.query(Project)
        .options(
            selectinload(Project.bid_vendors).selectinload(BidVendor.vendor),
            selectinload(Project.bid_vendors).selectinload(BidVendor.apm_phases),
            selectinload(Project.notes_list),
        )
        .filter(Project.id == project_id)
        .first()
    )
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    notes = sorted(project.notes_list, key=lambda n: (n.created_at, n.id), reverse=True)
    out = project_out(project).model_dump()
    out["bid_vendors"] = [bid_vendor_out(bv).model_dump() for bv in project.bid_vendors]
    out["project_notes"] = [note_out(n).model_dump() for n in notes]
    return out


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    body: ProjectUpdate,
    scope: str = Query("general", pattern="^(general|estimating|apm)$"),
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    project = get_project_or_404(db, project_id)
    try:
        project_service.update_project(db, project, body.model_dump(exclude_unset=True), scope, x_user_id)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e)) from e
    db.commit()
    db.refresh(project)
    return project_out(project)


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    project = get_project_or_404(db, project_id)
    change_feed.record_change(db, change_feed.DELETE, project, user_id=x_user_id)
    db.delete(project)
    db.commit()
    logger.info("Deleted project %s", project_id)
    return Response(status_code=204)


@router.post("/projects/{project_id}/send-to-apm", response_model=ProjectResponse)
def send_to_apm(
    project_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    project = get_project_or_404(db, project_id)
    project_service.send_to_apm(project)
    change_feed.record_change(db, "send_to_apm", project, user_id=x_user_id)
    db.commit()
    db.refresh(project)
    return project_out(project)


@router.post("/projects/{project_id}/unsend-from-apm", response_model=ProjectResponse)
def unsend_from_apm(
    project_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    project = get_project_or_404(db, project_id)
    project_service.unsend_from_apm(project)
    change_feed.record_change(db, "unsend_from_apm", project, user_id=x_user_id)
    db.commit()
    db.refresh(project)
    return project_out(project)


@router.post("/projects/{project_id}/copy", response_model=ProjectResponse, status_code=201)
def copy_project(
    project_id: int,
    body: ProjectCopyBody,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    source = get_project_or_404(db, project_id)
    overrides = {"due_date": body.due_date, "status": body.status, "estimated_value": body.estimated_value}
    project = project_service.copy_project(
        db, source, body.project_name, overrides, copy_vendors=body.copy_vendors, user_id=x_user_id
    )
    db.commit()
    db.refresh(project)
    logger.info("Copied project %s to %s", project_id, project.id)
    return project_out(project)

