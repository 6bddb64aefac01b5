from sqlalchemy.orm import Session
from companion.models.workspace import Workspace
from typing import Any, Dict, Optional


def get_workspace(db: Session, workspace_id: str) -> Optional[Workspace]:
    return db.query(Workspace).filter(Workspace.id == workspace_id).first()


def get_workspace_for_user(db: Session, user_id: str) -> Optional[Workspace]:
    """Most recently created workspace of a user"""
    return (
        db.query(Workspace)
        .filter(Workspace.user_id == user_id)
        .order_by(Workspace.created_at.desc())
        .first()
    )


def create_workspace(db: Session, user_id: str, name: str, current_step: int) -> Workspace:
    db_workspace = Workspace(
        user_id=user_id,
        name=name,
        current_step=current_step,
    )
    db.add(db_workspace)
    db.commit()
    db.refresh(db_workspace)
    return db_workspace


def update_workspace(db: Session, db_workspace: Workspace, fields: Dict[str, Any]) -> Workspace:
    """Partial update: only the given columns are written"""
    for field, value in fields.items():
        setattr(db_workspace, field, value)

    db.commit()
    db.refresh(db_workspace)
    return db_workspace
