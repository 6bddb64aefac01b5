from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from companion.core.config import settings
from companion.core.logging import get_logger
from companion.core.rate_limiter import limiter
from companion.core.security import authorize_workspace, get_current_user, resolve_user_id
from companion.database.connection import get_db
from companion.models.user import User
from companion.schemas.completion import CompletionRequest, CompletionResponse
from companion.services.completion import CompletionClient, get_completion_client
from companion.services.conversation import ConversationOrchestrator
from companion.services.uploads import ImageUploader, get_image_uploader

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["ai"])


@router.post("/ai", response_model=CompletionResponse)
@limiter.limit(settings.ai_rate_limit)
async def complete(
    request: Request,
    payload: CompletionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    completion: CompletionClient = Depends(get_completion_client),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    """Single completion with the workspace profile prepended to the system prompt.

    With ``isValidForImageGen`` an image is generated instead and its hosted URL returned;
    the client persists it through ``/api/saveGeneratedImage``.
    """
    resolve_user_id(current_user, payload.user_id)
    authorize_workspace(db, current_user, payload.workspace_id)

    try:
        if payload.is_valid_for_image_gen:
            url = await completion.generate_image(payload.prompt or "")
            return CompletionResponse(type="image", result=url)

        orchestrator = ConversationOrchestrator(db, completion, uploader)
        result = await orchestrator.generate_reply(
            payload.prompt or "",
            payload.workspace_id,
            ai_model_id=payload.ai_model_id,
            system_prompt=payload.system_prompt,
        )
        return CompletionResponse(type="text", result=result)
    except Exception as e:
        logger.error("Completion route failed", error=str(e), workspace_id=payload.workspace_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "details": str(e)},
        )
