from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class WorkspaceCreate(BaseModel):
    user_id: str = Field(..., alias="userId")
    name: Optional[str] = None

    class Config:
        populate_by_name = True


class NameStep(BaseModel):
    name: Optional[str] = None


class PreferencesStep(BaseModel):
    preferred_communication: List[str] = []
    privacy_level: Optional[str] = None
    memory_enabled: Optional[bool] = None


class InterestsStep(BaseModel):
    interests: List[str] = []
    goals: List[str] = []


class ProfileStep(BaseModel):
    personality_type: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[str] = None


class OnboardingComplete(BaseModel):
    workspace_id: Optional[str] = Field(None, alias="workspaceId")
    user_id: Optional[str] = Field(None, alias="userId")

    class Config:
        populate_by_name = True


class Workspace(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    interests: Optional[List[str]] = None
    goals: Optional[List[str]] = None
    personality_type: Optional[str] = None
    preferred_communication: Optional[List[str]] = None
    privacy_level: Optional[str] = None
    memory_enabled: Optional[bool] = None
    current_step: int
    onboarding_complete: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
