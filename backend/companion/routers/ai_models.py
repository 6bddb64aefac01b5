from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from companion.database.connection import get_db
from companion.crud import ai_model as ai_model_crud
from companion.schemas.ai_model import AIModel, AIModelCreate
from companion.core.logging import get_logger
from companion.core.security import authorize_workspace, get_current_user
from companion.models.user import User

logger = get_logger(__name__)
router = APIRouter(prefix="/api/ai-models", tags=["ai-models"])


@router.post("", response_model=AIModel, status_code=status.HTTP_201_CREATED)
async def create_ai_model(
    ai_model: AIModelCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a persona for a workspace (or a global one when no workspace is given)"""
    if not ai_model.name or not ai_model.role or not ai_model.personality:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name, role, and personality are required"
        )

    if ai_model.workspace_id and not authorize_workspace(db, current_user, ai_model.workspace_id):
        logger.warning("AI model for unknown workspace", workspace_id=ai_model.workspace_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid workspace"
        )

    try:
        db_model = ai_model_crud.create_ai_model(db, ai_model)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create AI model: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create AI model"
        )

    logger.info("AI model created", ai_model_id=db_model.id, workspace_id=db_model.workspace_id)
    return db_model


@router.get("", response_model=List[AIModel])
async def list_ai_models(
    workspace_id: Optional[str] = Query(None, alias="workspaceId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active personas of a workspace followed by the global defaults"""
    authorize_workspace(db, current_user, workspace_id)
    return ai_model_crud.list_workspace_models(db, workspace_id)


@router.get("/{ai_model_id}", response_model=AIModel)
async def get_ai_model(
    ai_model_id: str,
    workspace_id: Optional[str] = Query(None, alias="workspaceId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    authorize_workspace(db, current_user, workspace_id)
    db_model = ai_model_crud.resolve_ai_model(db, workspace_id, model_id=ai_model_id)
    if not db_model:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="AI model not found"
        )
    return db_model
