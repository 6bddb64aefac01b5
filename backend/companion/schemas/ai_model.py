from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional


class AIModelCreate(BaseModel):
    # name/role/personality are checked by the route so a missing field is a 400, not a 422
    workspace_id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    personality: Optional[str] = None
    predefined: bool = False
    topics: List[str] = []
    system_prompt: Optional[str] = None
    custom_triggers: List[str] = []
    config: Dict[str, Any] = {}
    is_active: bool = True


class AIModel(BaseModel):
    id: str
    workspace_id: Optional[str] = None
    name: str
    role: str
    personality: str
    predefined: bool
    topics: List[str] = []
    system_prompt: str = ""
    custom_triggers: List[str] = []
    config: Dict[str, Any] = {}
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
