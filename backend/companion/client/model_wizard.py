"""
Client side of the six-step persona creation flow.

Answers are kept in a local JSON draft until ``complete`` assembles the
persona and creates it with a single POST to ``/api/ai-models``. Nothing is
sent to the server while the user moves between steps.
"""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from companion.client.api import ApiError, CompanionApiClient
from companion.core.logging import get_logger
from companion.services.persona import DEFAULT_RESPONSE_STYLE, build_persona_system_prompt

logger = get_logger("model_wizard")

MAX_PERSONALITY_TRAITS = 3
MAX_EXPERTISE_AREAS = 4
DEFAULT_DRAFT_PATH = Path.home() / ".companion" / "model_draft.json"


class WizardError(Exception):
    pass


class ModelDraft(BaseModel):
    model_name: Optional[str] = None
    model_role: Optional[str] = None
    model_personality: List[str] = []
    model_expertise: List[str] = []
    model_response_style: str = DEFAULT_RESPONSE_STYLE
    model_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        protected_namespaces = ()


class LocalDraftStore:
    """One draft persisted as a JSON file"""

    def __init__(self, path: Path = DEFAULT_DRAFT_PATH):
        self.path = Path(path)

    def load(self) -> ModelDraft:
        if not self.path.exists():
            return ModelDraft()
        try:
            return ModelDraft.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
        except ValueError as e:
            logger.warning("Discarding unreadable draft", path=str(self.path), error=str(e))
            return ModelDraft()

    def save(self, draft: ModelDraft) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(draft.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class ModelCreationWizard:
    def __init__(self, api: CompanionApiClient, store: Optional[LocalDraftStore] = None):
        self.api = api
        self.store = store or LocalDraftStore()
        self.draft = self.store.load()

    def _update(self, **changes: Any) -> ModelDraft:
        now = datetime.now(timezone.utc)
        self.draft = self.draft.model_copy(update={
            **changes,
            "created_at": self.draft.created_at or now,
            "updated_at": now,
        })
        self.store.save(self.draft)
        return self.draft

    # Steps 1-5 only touch the local draft

    def set_name(self, name: str) -> ModelDraft:
        return self._update(model_name=name.strip())

    def set_role(self, role: str) -> ModelDraft:
        return self._update(model_role=role.strip())

    def set_personality(self, traits: List[str]) -> ModelDraft:
        if len(traits) > MAX_PERSONALITY_TRAITS:
            raise WizardError(f"Select up to {MAX_PERSONALITY_TRAITS} personality traits")
        return self._update(model_personality=list(traits))

    def set_expertise(self, areas: List[str]) -> ModelDraft:
        if len(areas) > MAX_EXPERTISE_AREAS:
            raise WizardError(f"Select up to {MAX_EXPERTISE_AREAS} expertise areas")
        return self._update(model_expertise=list(areas))

    def set_response_style(self, style: str) -> ModelDraft:
        return self._update(model_response_style=style)

    # Step 6

    def build_model(self, workspace_id: str) -> Dict[str, Any]:
        draft = self.draft
        if not draft.model_name or not draft.model_role:
            raise WizardError("Model name and role are required")

        return {
            "workspace_id": workspace_id,
            "name": draft.model_name,
            "role": draft.model_role,
            "personality": ", ".join(draft.model_personality),
            "predefined": False,
            "topics": list(draft.model_expertise),
            "system_prompt": build_persona_system_prompt(
                draft.model_name,
                draft.model_role,
                draft.model_personality,
                draft.model_expertise,
                draft.model_response_style,
            ),
            "custom_triggers": [],
            "is_active": True,
        }

    def complete(self, workspace_id: str) -> Dict[str, Any]:
        """Create the persona in one request and drop the draft"""
        created = self.api.create_ai_model(self.build_model(workspace_id))
        self.store.clear()
        self.draft = ModelDraft()
        logger.info("AI model created from draft", ai_model_id=created.get("id"))
        return created

    def use_default_model(self, model: Dict[str, Any], workspace_id: str) -> Dict[str, Any]:
        """Copy a predefined persona into the workspace unchanged"""
        return self.api.create_ai_model({
            "workspace_id": workspace_id,
            "name": model.get("name"),
            "role": model.get("role"),
            "personality": model.get("personality"),
            "predefined": False,
            "topics": model.get("topics") or [],
            "system_prompt": model.get("system_prompt") or "",
            "custom_triggers": [],
            "is_active": True,
        })

    def reset(self) -> None:
        self.store.clear()
        self.draft = ModelDraft()
