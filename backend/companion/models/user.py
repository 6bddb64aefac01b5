from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from companion.database.connection import Base
from companion.models.base import generate_uuid, utcnow


class User(Base):
    __tablename__ = "users"

    # Same id as the identity provider's user
    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    avatar_url = Column(String(1000), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    locale = Column(String(16), nullable=False, default="en")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow)

    # Relationships
    workspaces = relationship("Workspace", back_populates="user")
    chats = relationship("Chat", back_populates="user")
