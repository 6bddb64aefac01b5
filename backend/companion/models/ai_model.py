from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Boolean, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from companion.database.connection import Base
from companion.models.base import generate_uuid, utcnow


class AIModel(Base):
    """A chat persona. workspace_id is NULL for the global defaults."""

    __tablename__ = "ai_models"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    workspace_id = Column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(255), nullable=False)
    personality = Column(String(500), nullable=False)
    predefined = Column(Boolean, nullable=False, default=False)
    topics = Column(JSON, nullable=False, default=list)
    system_prompt = Column(Text, nullable=False, default="")
    custom_triggers = Column(JSON, nullable=False, default=list)
    config = Column(JSON, nullable=False, default=dict)  # UI colours: {"bg": ..., "hover": ...}
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow)

    # Relationships
    workspace = relationship("Workspace", back_populates="ai_models")
