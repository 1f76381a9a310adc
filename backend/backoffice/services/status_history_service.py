from typing import List, Optional

from sqlalchemy.orm import Session

from backoffice.models.status_history import StatusHistory


def create_status_history(
    db: Session,
    entity_type: str,
    entity_id: int,
    old_status: Optional[str],
    new_status: str,
    user_id: int,
    notes: Optional[str] = None,
) -> StatusHistory:
    """Queue a status change row in the caller's transaction (no commit)."""
    history = StatusHistory(
        entity_type=entity_type,
        entity_id=entity_id,
        old_status=old_status,
        new_status=new_status,
        user_id=user_id,
        notes=notes,
    )
    db.add(history)
    return history


def get_status_history(db: Session, entity_type: str, entity_id: int) -> List[StatusHistory]:
    if entity_type not in ["debt", "sale"]:
        raise ValueError("Invalid entity type")
    return (
        db.query(StatusHistory)
        .filter(StatusHistory.entity_type == entity_type, StatusHistory.entity_id == entity_id)
        .order_by(StatusHistory.created_at.desc(), StatusHistory.id.desc())
        .all()
    )
