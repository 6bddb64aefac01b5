from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from companion.database.connection import Base
from companion.models.base import generate_uuid, utcnow


class AppUser(Base):
    """Billing-side account record, matched to checkout sessions by email."""

    __tablename__ = "app_users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow)
