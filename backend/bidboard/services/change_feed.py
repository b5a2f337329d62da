"""
Polling change feed.

Every write records an ActivityLog row carrying a JSON snapshot of the row
it touched. Clients poll ``GET /changes?since_id=N`` and fold the rows into
their local copy with :func:`reconcile`.
"""
import logging
from typing import Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from bidboard.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

MAX_LIMIT = 500


def snapshot(obj) -> dict:
    """Column values of a mapped row, JSON-safe."""
    return jsonable_encoder({c.name: getattr(obj, c.name) for c in obj.__table__.columns})


def record_change(
    db: Session,
    action: str,
    obj=None,
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id=None,
    details: Optional[dict] = None,
) -> ActivityLog:
    """
    Add an activity row to the session (caller commits).
    Call after flush on inserts so the row id is known.
    """
    if obj is not None:
        entity_type = entity_type or obj.__tablename__
        entity_id = entity_id if entity_id is not None else getattr(obj, "id", None)
        if details is None:
            details = {"id": entity_id} if action == DELETE else snapshot(obj)
    if entity_id is not None:
        entity_id = str(entity_id)
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    db.add(entry)
    return entry


def list_changes(db: Session, since_id: int = 0, limit: int = 100) -> tuple[list[ActivityLog], int]:
    """Rows with id > since_id in id order, and the id to poll from next."""
    limit = min(max(limit, 1), MAX_LIMIT)
    rows = (
        db.query(ActivityLog)
        .filter(ActivityLog.id > since_id)
        .order_by(ActivityLog.id.asc())
        .limit(limit)
        .all()
    )
    last_id = rows[-1].id if rows else since_id
    return rows, last_id


def reconcile(records: dict, change: dict, entity_type: str) -> dict:
    """
    Apply one change row (as served by the feed) to a {id: row} mapping of one entity type.
    Inserts add, updates replace, deletes remove. Named actions carry a fresh snapshot and
    are treated as updates. Rows for other entity types are ignored.
    """
    if change.get("entity_type") != entity_type:
        return records
    details = change.get("details") or {}
    entity_id = details.get("id", change.get("entity_id"))
    action = change.get("action")
    if action == DELETE:
        records.pop(entity_id, None)
    elif "id" in details:
        records[entity_id] = details
    else:
        logger.debug("Change %s for %s/%s carries no snapshot", action, entity_type, entity_id)
    return records
