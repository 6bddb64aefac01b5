from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from companion.core.config import settings
from companion.core.logging import get_logger
from companion.core.rate_limiter import limiter
from companion.core.security import authorize_workspace, get_current_user, resolve_user_id
from companion.crud import chat as chat_crud
from companion.database.connection import get_db
from companion.models.user import User
from companion.schemas.chat import (
    Chat, ChatGroup, ChatHistory, ChatRename, Message, SendMessageRequest, SendMessageResponse
)
from companion.services.chat_history import group_chats_by_date
from companion.services.conversation import NEW_CHAT, ConversationOrchestrator, get_conversation_orchestrator

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["chats"])


def _get_chat_or_404(db: Session, chat_id: str, current_user: User):
    """Chats of other users are reported as missing"""
    db_chat = chat_crud.get_chat(db, chat_id)
    if not db_chat or db_chat.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return db_chat


@router.post("/messages", response_model=SendMessageResponse)
@limiter.limit(settings.ai_rate_limit)
async def send_message(
    request: Request,
    payload: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    orchestrator: ConversationOrchestrator = Depends(get_conversation_orchestrator)
):
    """Send a message to a persona, creating the chat when ``chatId`` is missing or "new"."""
    user_id = resolve_user_id(current_user, payload.user_id)
    authorize_workspace(db, current_user, payload.workspace_id)
    if payload.chat_id and payload.chat_id != NEW_CHAT:
        _get_chat_or_404(db, payload.chat_id, current_user)

    sent = await orchestrator.send_message(
        payload.message,
        user_id=user_id,
        workspace_id=payload.workspace_id,
        ai_model_id=payload.ai_model_id,
        chat_id=payload.chat_id,
        system_prompt=payload.system_prompt,
        is_valid_for_image_gen=payload.is_valid_for_image_gen,
        image_url=payload.image_url,
        uploaded_files=payload.uploaded_files,
    )
    return SendMessageResponse(chat_id=sent.chat_id, message=Message.model_validate(sent.message))


@router.get("/chats", response_model=ChatHistory)
async def list_chats(
    user_id: Optional[str] = Query(None, alias="userId"),
    workspace_id: Optional[str] = Query(None, alias="workspaceId"),
    ai_model_id: Optional[str] = Query(None, alias="aiModelId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Chat history of the caller grouped by recency"""
    user_id = resolve_user_id(current_user, user_id)
    chats = chat_crud.list_chats(db, user_id, workspace_id=workspace_id, ai_model_id=ai_model_id)
    groups = group_chats_by_date(chats)
    return ChatHistory(groups=[
        ChatGroup(label=label, chats=[Chat.model_validate(chat) for chat in items])
        for label, items in groups
    ])


@router.get("/chats/{chat_id}/messages", response_model=List[Message])
async def get_chat_messages(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _get_chat_or_404(db, chat_id, current_user)
    return chat_crud.get_chat_messages(db, chat_id)


@router.patch("/chats/{chat_id}")
async def rename_chat(
    chat_id: str,
    rename: ChatRename,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    title = rename.title.strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
    if len(title) > settings.chat_title_max_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Chat title must be less than {settings.chat_title_max_length} characters"
        )

    db_chat = chat_crud.rename_chat(db, _get_chat_or_404(db, chat_id, current_user), title)
    logger.info("Chat renamed", chat_id=chat_id)
    return {"id": db_chat.id, "title": db_chat.title}


@router.delete("/chats/{chat_id}")
async def delete_chat(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a chat together with its messages"""
    chat_crud.delete_chat(db, _get_chat_or_404(db, chat_id, current_user))
    logger.info("Chat deleted", chat_id=chat_id, user_id=current_user.id)
    return {"success": True}
