"""
Workspace onboarding wizard.

Steps run strictly in order: 1 name, 2 communication preferences, 3 interests
and goals, 4 personality/age/gender, 5 completion. Each step writes only its
own columns plus ``current_step = step + 1``; nothing is rolled back when the
wizard is abandoned.
"""
from enum import IntEnum
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from companion.core.errors import CompanionError
from companion.core.logging import onboarding_logger
from companion.crud import workspace as workspace_crud
from companion.models.workspace import Workspace


class OnboardingError(CompanionError):
    pass


class OnboardingStep(IntEnum):
    NAME = 1
    PREFERENCES = 2
    INTERESTS = 3
    PROFILE = 4
    COMPLETE = 5


STEP_FIELDS = {
    OnboardingStep.NAME: ("name",),
    OnboardingStep.PREFERENCES: ("preferred_communication", "privacy_level", "memory_enabled"),
    OnboardingStep.INTERESTS: ("interests", "goals"),
    OnboardingStep.PROFILE: ("personality_type", "age", "gender"),
}


def _require_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise OnboardingError("Workspace name is required.", 400)
    return name


def get_workspace(
    db: Session,
    user_id: Optional[str] = None,
    workspace_id: Optional[str] = None,
) -> Optional[Workspace]:
    """Look up by workspace id, falling back to the user's workspace"""
    if workspace_id:
        return workspace_crud.get_workspace(db, workspace_id)
    if user_id:
        return workspace_crud.get_workspace_for_user(db, user_id)
    raise OnboardingError("Either userId or workspaceId must be provided.", 400)


def start_workspace(db: Session, user_id: str, name: Optional[str]) -> Workspace:
    """Step 1 for a new workspace: create the row and move on to step 2"""
    workspace = workspace_crud.create_workspace(
        db,
        user_id=user_id,
        name=_require_name(name),
        current_step=OnboardingStep.NAME + 1,
    )
    onboarding_logger.info("Workspace created", workspace_id=workspace.id, user_id=user_id)
    return workspace


def submit_step(db: Session, workspace: Workspace, step: OnboardingStep, data: Dict[str, Any]) -> Workspace:
    """Save the columns owned by ``step`` and advance the wizard"""
    if step not in STEP_FIELDS:
        raise OnboardingError(f"Unknown onboarding step: {int(step)}", 400)

    fields = {name: data.get(name) for name in STEP_FIELDS[step] if name in data}
    if step == OnboardingStep.NAME:
        fields["name"] = _require_name(data.get("name"))

    fields["current_step"] = int(step) + 1
    if step == OnboardingStep.PROFILE:
        fields["onboarding_complete"] = True

    workspace = workspace_crud.update_workspace(db, workspace, fields)
    onboarding_logger.info(
        "Onboarding step saved",
        workspace_id=workspace.id,
        step=int(step),
        current_step=workspace.current_step,
    )
    return workspace


def mark_onboarding_complete(
    db: Session,
    user_id: Optional[str] = None,
    workspace_id: Optional[str] = None,
) -> Workspace:
    """Completion marker; calling it again is a no-op"""
    workspace = get_workspace(db, user_id=user_id, workspace_id=workspace_id)
    if workspace is None:
        raise OnboardingError("Workspace not found", 404)
    if workspace.onboarding_complete and workspace.current_step >= OnboardingStep.COMPLETE:
        return workspace

    workspace = workspace_crud.update_workspace(
        db,
        workspace,
        {"onboarding_complete": True, "current_step": int(OnboardingStep.COMPLETE)},
    )
    onboarding_logger.info("Onboarding complete", workspace_id=workspace.id)
    return workspace
