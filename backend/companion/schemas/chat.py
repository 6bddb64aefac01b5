from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class Message(BaseModel):
    id: str
    chat_id: str
    user_id: str
    workspace_id: str
    ai_model_id: Optional[str] = None
    prompt: Optional[str] = None
    response: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class Chat(BaseModel):
    id: str
    user_id: str
    workspace_id: str
    ai_model_id: Optional[str] = None
    title: str
    created_at: datetime

    class Config:
        from_attributes = True


class ChatGroup(BaseModel):
    label: str  # "Today", "Yesterday", "Last 7 Days", "Last 30 Days" or "Month YYYY"
    chats: List[Chat]


class ChatHistory(BaseModel):
    groups: List[ChatGroup]


class ChatRename(BaseModel):
    title: str


class SendMessageRequest(BaseModel):
    message: str = ""
    user_id: str = Field(..., alias="userId")
    workspace_id: str = Field(..., alias="workspaceId")
    ai_model_id: str = Field(..., alias="AIModelId")
    chat_id: Optional[str] = Field(None, alias="chatId")  # None or "new" starts a chat
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    is_valid_for_image_gen: bool = Field(False, alias="isValidForImageGen")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    uploaded_files: List[str] = Field(default_factory=list, alias="uploadedFiles")

    class Config:
        populate_by_name = True


class SendMessageResponse(BaseModel):
    chat_id: str = Field(..., alias="chatId")
    message: Message

    class Config:
        populate_by_name = True
