from dataclasses import dataclass
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from companion.core.config import settings
from companion.core.errors import CompanionError
from companion.core.logging import chat_logger
from companion.crud import ai_model as ai_model_crud
from companion.crud import chat as chat_crud
from companion.crud import workspace as workspace_crud
from companion.database.connection import get_db
from companion.models.message import Message
from companion.services.completion import CompletionClient, CompletionError, get_completion_client
from companion.services.persona import compose_system_prompt
from companion.services.uploads import ImageUploader, get_image_uploader

NEW_CHAT = "new"
DEFAULT_CHAT_TITLE = "New Chat"


class ConversationError(CompanionError):
    """Sending a message failed at one of its steps."""


@dataclass
class SentMessage:
    chat_id: str
    message: Message


def with_uploaded_files(message: str, uploaded_files: Optional[List[str]]) -> str:
    """Append uploaded file URLs to the message text, one per line"""
    urls = [url for url in (uploaded_files or []) if url]
    if not urls:
        return message
    return "\n".join([message, *urls]) if message else "\n".join(urls)


def chat_title(message: str) -> str:
    return message[:settings.chat_title_length] or DEFAULT_CHAT_TITLE


class ConversationOrchestrator:
    """Runs one user turn: chat thread, completion (or image), stored message"""

    def __init__(self, db: Session, completion: CompletionClient, uploader: ImageUploader):
        self.db = db
        self.completion = completion
        self.uploader = uploader

    async def generate_reply(
        self,
        prompt: str,
        workspace_id: Optional[str],
        ai_model_id: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        """Compose the workspace-aware system prompt and run one completion"""
        workspace = workspace_crud.get_workspace(self.db, workspace_id) if workspace_id else None

        if system_prompt is None and ai_model_id:
            ai_model = ai_model_crud.resolve_ai_model(self.db, workspace_id, model_id=ai_model_id)
            system_prompt = ai_model.system_prompt if ai_model else None

        return await self.completion.complete(compose_system_prompt(workspace, system_prompt), prompt)

    async def generate_image(
        self,
        prompt: str,
        user_id: str,
        workspace_id: str,
        chat_id: Optional[str] = None,
    ) -> str:
        """Generate an image and re-host it in our bucket; returns the stored URL"""
        generated_url = await self.completion.generate_image(prompt)
        result = await self.uploader.save_from_url(generated_url, user_id, workspace_id, chat_id=chat_id)
        if not result.success:
            raise ConversationError(result.error or "Failed to save generated image", result.status_code)
        return result.image.url

    async def send_message(
        self,
        message: str,
        user_id: str,
        workspace_id: str,
        ai_model_id: Optional[str],
        chat_id: Optional[str] = None,
        system_prompt: Optional[str] = None,
        is_valid_for_image_gen: bool = False,
        image_url: Optional[str] = None,
        uploaded_files: Optional[List[str]] = None,
    ) -> SentMessage:
        message = with_uploaded_files(message, uploaded_files)
        if not message.strip():
            raise ConversationError("Message is required", 400)
        if len(message) > settings.max_message_length:
            raise ConversationError(
                f"Message exceeds the maximum length of {settings.max_message_length} characters", 400
            )

        if not chat_id or chat_id == NEW_CHAT:
            try:
                chat = chat_crud.create_chat(
                    self.db,
                    user_id=user_id,
                    workspace_id=workspace_id,
                    ai_model_id=ai_model_id,
                    title=chat_title(message),
                )
            except Exception as e:
                self.db.rollback()
                chat_logger.error("Failed to create chat", user_id=user_id, error=str(e))
                raise ConversationError("Failed to create chat.") from e
            chat_id = chat.id
            chat_logger.info("Chat created", chat_id=chat_id, user_id=user_id, workspace_id=workspace_id)

        response = image_url
        if not response:
            try:
                if is_valid_for_image_gen:
                    response = await self.generate_image(message, user_id, workspace_id, chat_id=chat_id)
                else:
                    response = await self.generate_reply(message, workspace_id, ai_model_id, system_prompt)
            except CompletionError as e:
                raise ConversationError(e.message, e.status_code) from e

        try:
            stored = chat_crud.create_message(
                self.db,
                chat_id=chat_id,
                user_id=user_id,
                workspace_id=workspace_id,
                ai_model_id=ai_model_id,
                prompt=message,
                response=response,
            )
        except Exception as e:
            self.db.rollback()
            chat_logger.error("Failed to insert message", chat_id=chat_id, error=str(e))
            raise ConversationError("Failed to insert message.") from e

        chat_logger.info("Message stored", chat_id=chat_id, message_id=stored.id)
        return SentMessage(chat_id=chat_id, message=stored)


def get_conversation_orchestrator(
    db: Session = Depends(get_db),
    completion: CompletionClient = Depends(get_completion_client),
    uploader: ImageUploader = Depends(get_image_uploader),
) -> ConversationOrchestrator:
    return ConversationOrchestrator(db, completion, uploader)
