import asyncio

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from companion.core.logging import get_logger
from companion.core.security import authorize_workspace, get_current_user
from companion.crud import user as user_crud
from companion.database.connection import get_db
from companion.models.user import User
from companion.routers.images import read_upload
from companion.schemas.user import PasswordChange, User as UserSchema, UserUpdate
from companion.services.identity import IdentityError, IdentityProvider, get_identity_provider
from companion.services.uploads import ImageUploader, get_image_uploader

logger = get_logger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserSchema)
async def get_me(current_user: User = Depends(get_current_user)):
    """Profile of the authenticated user, created on first access"""
    return current_user


@router.patch("/me", response_model=UserSchema)
async def update_me(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_user = user_crud.update_user(db, current_user, user_update)
    logger.info("Profile updated", user_id=db_user.id, fields=list(user_update.model_dump(exclude_unset=True)))
    return db_user


@router.post("/me/avatar", response_model=UserSchema)
async def upload_avatar(
    workspace_id: Optional[str] = Form(None, alias="workspaceId"),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    uploader: ImageUploader = Depends(get_image_uploader),
    db: Session = Depends(get_db)
):
    """Store a new avatar image and point the profile at it"""
    authorize_workspace(db, current_user, workspace_id)
    payload = await read_upload(file)
    result = await asyncio.to_thread(uploader.save_image, current_user.id, workspace_id, payload)
    if not result.success:
        raise HTTPException(status_code=result.status_code, detail={"success": False, "error": result.error})

    return user_crud.set_avatar_url(db, current_user, result.image.url)


@router.post("/me/password")
async def change_password(
    password_change: PasswordChange,
    current_user: User = Depends(get_current_user),
    identity_provider: IdentityProvider = Depends(get_identity_provider)
):
    if password_change.new_password != password_change.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New passwords do not match")
    if not password_change.new_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is required")

    try:
        identity_provider.set_password(current_user.id, password_change.new_password)
    except IdentityError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return {"success": True}
