from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from companion.database.connection import Base
from companion.models.base import generate_uuid, utcnow


class Chat(Base):
    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workspace_id = Column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    ai_model_id = Column(String(36), ForeignKey("ai_models.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="chats")
    workspace = relationship("Workspace", back_populates="chats")
    messages = relationship("Message", back_populates="chat")
