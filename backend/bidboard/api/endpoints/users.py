"""User profiles. Login happens upstream; callers identify themselves with X-User-Id."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Header, Response
from sqlalchemy.orm import Session

from bidboard.database import get_db
from bidboard.models.user import User, DEFAULT_USER_COLOR
from bidboard.schemas.user import UserUpsert, UserUpdate, UserResponse
from bidboard.services import change_feed

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


def _user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.name).all()


@router.get("/me", response_model=UserResponse)
def current_user(x_user_id: str | None = Header(None, alias="X-User-Id"), db: Session = Depends(get_db)):
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return _user_or_404(db, x_user_id)


@router.get("/by-email/{email}", response_model=UserResponse)
def get_user_by_email(email: str, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("", response_model=UserResponse)
def upsert_user(body: UserUpsert, db: Session = Depends(get_db)):
    """Create the profile on first login, refresh name/email afterwards."""
    clash = db.query(User).filter(User.email == body.email, User.id != body.id).first()
    if clash:
        raise HTTPException(status_code=409, detail="Email already belongs to another user")
    user = db.query(User).filter(User.id == body.id).first()
    if user is None:
        user = User(
            id=body.id,
            email=body.email,
            name=body.name,
            color_preference=body.color_preference or DEFAULT_USER_COLOR,
            role=body.role,
        )
        db.add(user)
        action = change_feed.INSERT
        logger.info("Created user profile %s", body.id)
    else:
        user.email = body.email
        user.name = body.name
        if body.color_preference:
            user.color_preference = body.color_preference
        if body.role:
            user.role = body.role
        action = change_feed.UPDATE
    db.flush()
    change_feed.record_change(db, action, user)
    db.commit()
    db.refresh(user)
    return user


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(user_id: str, body: UserUpdate, db: Session = Depends(get_db)):
    user = _user_or_404(db, user_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is not None or key == "role":
            setattr(user, key, value)
    change_feed.record_change(db, change_feed.UPDATE, user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/{user_id}/active", response_model=UserResponse)
def set_active(user_id: str, active: bool = True, db: Session = Depends(get_db)):
    user = _user_or_404(db, user_id)
    user.is_active = active
    change_feed.record_change(db, change_feed.UPDATE, user)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    user = _user_or_404(db, user_id)
    change_feed.record_change(db, change_feed.DELETE, user)
    db.delete(user)
    db.commit()
    return Response(status_code=204)
