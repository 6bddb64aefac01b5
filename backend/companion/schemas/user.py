from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class User(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    timezone: str
    locale: str
    created_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    name: Optional[str] = None
    timezone: Optional[str] = None
    locale: Optional[str] = None


class PasswordChange(BaseModel):
    new_password: str
    confirm_password: str


class AdminPasswordSet(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AppUser(BaseModel):
    id: str
    email: str
    name: Optional[str] = None

    class Config:
        from_attributes = True


class CheckoutSessionResponse(BaseModel):
    email: str
    user: Optional[AppUser] = None
