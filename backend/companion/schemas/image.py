from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class Image(BaseModel):
    id: str
    url: str
    storage_path: str
    file_name: str
    file_size: int
    mime_type: str
    user_id: str
    workspace_id: str
    chat_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StoreImageResponse(BaseModel):
    success: bool
    image: Optional[Image] = None
    error: Optional[str] = None


class SaveGeneratedImageRequest(BaseModel):
    image_url: Optional[str] = Field(None, alias="imageUrl")
    user_id: Optional[str] = Field(None, alias="userId")
    workspace_id: Optional[str] = Field(None, alias="workspaceId")
    chat_id: Optional[str] = Field(None, alias="chatId")

    class Config:
        populate_by_name = True


class SaveGeneratedImageResponse(BaseModel):
    success: bool
    url: str
    image_id: str = Field(..., alias="imageId")

    class Config:
        populate_by_name = True
