import logging

from fastapi import APIRouter, Depends, HTTPException, Header, Response
from sqlalchemy.orm import Session

from bidboard.database import get_db
from bidboard.models.project import Project
from bidboard.models.project_note import ProjectNote
from bidboard.models.user import User
from bidboard.schemas.note import NoteCreate, NoteUpdate, NoteResponse
from bidboard.services import change_feed

router = APIRouter(tags=["notes"])
logger = logging.getLogger(__name__)


def note_out(note: ProjectNote) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        bid_id=note.bid_id,
        user_id=note.user_id,
        content=note.content,
        user_name=note.user.name if note.user else None,
        user_color=note.user.color_preference if note.user else None,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def _note_or_404(db: Session, note_id: int) -> ProjectNote:
    note = db.query(ProjectNote).filter(ProjectNote.id == note_id).first()
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.get("/projects/{project_id}/notes", response_model=list[NoteResponse])
def list_notes(project_id: int, db: Session = Depends(get_db)):
    if not db.query(Project).filter(Project.id == project_id).first():
        raise HTTPException(status_code=404, detail="Project not found")
    notes = (
        db.query(ProjectNote)
        .filter(ProjectNote.bid_id == project_id)
        .order_by(ProjectNote.created_at.desc(), ProjectNote.id.desc())
        .all()
    )
    return [note_out(n) for n in notes]


@router.post("/projects/{project_id}/notes", response_model=NoteResponse, status_code=201)
def create_note(
    project_id: int,
    body: NoteCreate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    if not db.query(Project).filter(Project.id == project_id).first():
        raise HTTPException(status_code=404, detail="Project not found")
    author_id = body.user_id or x_user_id
    if author_id and not db.query(User).filter(User.id == author_id).first():
        logger.warning("Note author %s has no user profile; storing without author", author_id)
        author_id = None
    note = ProjectNote(bid_id=project_id, user_id=author_id, content=body.content)
    db.add(note)
    db.flush()
    change_feed.record_change(db, change_feed.INSERT, note, user_id=x_user_id)
    db.commit()
    db.refresh(note)
    return note_out(note)


@router.patch("/notes/{note_id}", response_model=NoteResponse)
def update_note(
    note_id: int,
    body: NoteUpdate,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    note = _note_or_404(db, note_id)
    note.content = body.content
    change_feed.record_change(db, change_feed.UPDATE, note, user_id=x_user_id)
    db.commit()
    db.refresh(note)
    return note_out(note)


@router.delete("/notes/{note_id}", status_code=204)
def delete_note(
    note_id: int,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
):
    note = _note_or_404(db, note_id)
    change_feed.record_change(db, change_feed.DELETE, note, user_id=x_user_id)
    db.delete(note)
    db.commit()
    return Response(status_code=204)
