from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from companion.database.connection import Base
from companion.models.base import generate_uuid, utcnow


class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=True)

    # Onboarding profile
    age = Column(Integer, nullable=True)
    gender = Column(String(50), nullable=True)
    interests = Column(JSON, nullable=True)  # e.g. music, movies, fitness
    goals = Column(JSON, nullable=True)  # e.g. companionship, learning
    personality_type = Column(String(100), nullable=True)  # introvert, extrovert, ...

    # Preferences
    preferred_communication = Column(JSON, nullable=True)  # chat, voice, video
    privacy_level = Column(String(20), nullable=True)  # high, medium, low
    memory_enabled = Column(Boolean, nullable=True)

    # Onboarding progress
    current_step = Column(Integer, nullable=False, default=1)
    onboarding_complete = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="workspaces")
    ai_models = relationship("AIModel", back_populates="workspace")
    chats = relationship("Chat", back_populates="workspace")
