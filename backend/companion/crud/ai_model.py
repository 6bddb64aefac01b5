from sqlalchemy import case, or_
from sqlalchemy.orm import Session
from companion.models.ai_model import AIModel
from companion.schemas.ai_model import AIModelCreate
from typing import List, Optional


def create_ai_model(db: Session, ai_model: AIModelCreate) -> AIModel:
    """Insert a persona, filling the optional columns with their defaults"""
    db_model = AIModel(
        workspace_id=ai_model.workspace_id,
        name=ai_model.name,
        role=ai_model.role,
        personality=ai_model.personality,
        predefined=ai_model.predefined,
        topics=ai_model.topics or [],
        system_prompt=ai_model.system_prompt or "",
        custom_triggers=ai_model.custom_triggers or [],
        config=ai_model.config or {},
        is_active=ai_model.is_active,
    )
    db.add(db_model)
    db.commit()
    db.refresh(db_model)
    return db_model


def _scoped_query(db: Session, workspace_id: Optional[str]):
    """Active models visible to a workspace, workspace-scoped rows before global ones"""
    query = db.query(AIModel).filter(AIModel.is_active.is_(True))
    if workspace_id is None:
        return query.filter(AIModel.workspace_id.is_(None))

    return (
        query.filter(or_(AIModel.workspace_id == workspace_id, AIModel.workspace_id.is_(None)))
        .order_by(case((AIModel.workspace_id.is_(None), 1), else_=0), AIModel.created_at.desc())
    )


def list_workspace_models(db: Session, workspace_id: Optional[str]) -> List[AIModel]:
    return _scoped_query(db, workspace_id).all()


def resolve_ai_model(
    db: Session,
    workspace_id: Optional[str],
    model_id: Optional[str] = None,
    name: Optional[str] = None,
) -> Optional[AIModel]:
    """First active model matching the id or name, preferring the workspace's own row"""
    query = _scoped_query(db, workspace_id)
    if model_id:
        query = query.filter(AIModel.id == model_id)
    if name:
        query = query.filter(AIModel.name == name)
    return query.first()
