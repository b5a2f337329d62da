from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bidboard.database import get_db
from bidboard.schemas.report import ChangeFeedResponse
from bidboard.services.change_feed import list_changes

router = APIRouter(tags=["changes"])


@router.get("/changes", response_model=ChangeFeedResponse)
def get_changes(since_id: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """Activity rows newer than since_id. Poll again with the returned last_id."""
    rows, last_id = list_changes(db, since_id, limit)
    return ChangeFeedResponse(changes=rows, last_id=last_id)
