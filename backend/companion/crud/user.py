from sqlalchemy.orm import Session
from companion.models.user import User
from companion.models.app_user import AppUser
from companion.schemas.user import UserUpdate
from typing import Optional


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_or_create_user(db: Session, user_id: str, email: str, name: Optional[str] = None) -> User:
    """Return the profile row for an identity, creating it with default settings on first access"""
    db_user = get_user(db, user_id)
    if db_user:
        return db_user

    db_user = User(
        id=user_id,
        email=email,
        name=name,
        timezone="UTC",
        locale="en",
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, db_user: User, user_update: UserUpdate) -> User:
    update_data = user_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_user, field, value)

    db.commit()
    db.refresh(db_user)
    return db_user


def set_avatar_url(db: Session, db_user: User, avatar_url: str) -> User:
    db_user.avatar_url = avatar_url
    db.commit()
    db.refresh(db_user)
    return db_user


def get_app_user_by_email(db: Session, email: str) -> Optional[AppUser]:
    """Billing-side user lookup"""
    return db.query(AppUser).filter(AppUser.email == email).first()
