from pydantic import BaseModel, Field
from typing import Optional


class CompletionRequest(BaseModel):
    prompt: Optional[str] = None
    user_id: Optional[str] = Field(None, alias="userId")
    workspace_id: Optional[str] = Field(None, alias="workspaceId")
    ai_model_id: Optional[str] = None
    system_prompt: Optional[str] = None
    is_valid_for_image_gen: bool = Field(False, alias="isValidForImageGen")

    class Config:
        populate_by_name = True


class CompletionResponse(BaseModel):
    type: str  # "text" or "image"
    result: str
