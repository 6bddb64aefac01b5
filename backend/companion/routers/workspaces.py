from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from companion.core.logging import get_logger
from companion.core.security import authorize_workspace, get_current_user, resolve_user_id
from companion.database.connection import get_db
from companion.models.user import User
from companion.schemas.workspace import (
    InterestsStep, NameStep, OnboardingComplete, PreferencesStep, ProfileStep, Workspace, WorkspaceCreate
)
from companion.services import onboarding
from companion.services.onboarding import OnboardingStep

logger = get_logger(__name__)
router = APIRouter(prefix="/api/workspaces", tags=["workspaces"])


def _get_workspace_or_404(db: Session, current_user: User, workspace_id: str):
    db_workspace = authorize_workspace(db, current_user, workspace_id)
    if not db_workspace:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found")
    return db_workspace


@router.post("", response_model=Workspace, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    workspace: WorkspaceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Onboarding step 1 for a new workspace"""
    user_id = resolve_user_id(current_user, workspace.user_id)
    return onboarding.start_workspace(db, user_id, workspace.name)


@router.get("/current", response_model=Workspace)
async def get_current_workspace(
    workspace_id: Optional[str] = Query(None, alias="workspaceId"),
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Workspace used to prefill the wizard; reports ``current_step`` without redirecting"""
    user_id = resolve_user_id(current_user, user_id)
    authorize_workspace(db, current_user, workspace_id)
    db_workspace = onboarding.get_workspace(db, user_id=user_id, workspace_id=workspace_id)
    if not db_workspace:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found")
    return db_workspace


@router.put("/{workspace_id}/onboarding/name", response_model=Workspace)
async def save_name(
    workspace_id: str,
    step: NameStep,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_workspace = _get_workspace_or_404(db, current_user, workspace_id)
    return onboarding.submit_step(db, db_workspace, OnboardingStep.NAME, step.model_dump(exclude_unset=True))


@router.put("/{workspace_id}/onboarding/preferences", response_model=Workspace)
async def save_preferences(
    workspace_id: str,
    step: PreferencesStep,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_workspace = _get_workspace_or_404(db, current_user, workspace_id)
    return onboarding.submit_step(db, db_workspace, OnboardingStep.PREFERENCES, step.model_dump(exclude_unset=True))


@router.put("/{workspace_id}/onboarding/interests", response_model=Workspace)
async def save_interests(
    workspace_id: str,
    step: InterestsStep,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_workspace = _get_workspace_or_404(db, current_user, workspace_id)
    return onboarding.submit_step(db, db_workspace, OnboardingStep.INTERESTS, step.model_dump(exclude_unset=True))


@router.put("/{workspace_id}/onboarding/profile", response_model=Workspace)
async def save_profile(
    workspace_id: str,
    step: ProfileStep,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Last data step; marks onboarding complete"""
    db_workspace = _get_workspace_or_404(db, current_user, workspace_id)
    return onboarding.submit_step(db, db_workspace, OnboardingStep.PROFILE, step.model_dump(exclude_unset=True))


@router.post("/complete", response_model=Workspace)
async def complete_onboarding(
    marker: OnboardingComplete,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user_id = resolve_user_id(current_user, marker.user_id)
    authorize_workspace(db, current_user, marker.workspace_id)
    return onboarding.mark_onboarding_complete(db, user_id=user_id, workspace_id=marker.workspace_id)
