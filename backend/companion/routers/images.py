import asyncio

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from companion.core.config import settings
from companion.core.logging import get_logger
from companion.core.security import authorize_workspace, get_current_user, resolve_user_id
from companion.database.connection import get_db
from companion.models.user import User
from companion.schemas.image import (
    Image, SaveGeneratedImageRequest, SaveGeneratedImageResponse, StoreImageResponse
)
from companion.services.uploads import ImageUploader, UploadFile as ImagePayload, get_image_uploader

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["images"])


async def read_upload(file: Optional[UploadFile]) -> Optional[ImagePayload]:
    """Read a multipart file into memory, enforcing the size cap"""
    if file is None:
        return None
    content = await file.read()
    if len(content) > settings.max_image_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"success": False, "error": f"File exceeds the maximum size of {settings.max_image_size} bytes"}
        )
    return ImagePayload(
        name=file.filename or "",
        content=content,
        mime_type=file.content_type or "application/octet-stream",
    )


@router.post("/storeImage", response_model=StoreImageResponse, response_model_exclude_none=True)
async def store_image(
    user_id: Optional[str] = Form(None, alias="userId"),
    workspace_id: Optional[str] = Form(None, alias="workspaceId"),
    chat_id: Optional[str] = Form(None, alias="chatId"),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader)
):
    """Upload one image and record it in the images table"""
    user_id = resolve_user_id(current_user, user_id)
    authorize_workspace(db, current_user, workspace_id)
    payload = await read_upload(file)
    # Storage client is blocking
    result = await asyncio.to_thread(
        uploader.save_image, user_id, workspace_id, payload, chat_id=chat_id or None
    )
    if not result.success:
        raise HTTPException(
            status_code=result.status_code,
            detail={"success": False, "error": result.error}
        )
    return StoreImageResponse(success=True, image=Image.model_validate(result.image))


@router.post("/saveGeneratedImage", response_model=SaveGeneratedImageResponse)
async def save_generated_image(
    payload: SaveGeneratedImageRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader)
):
    """Download an externally hosted image and store it like an upload"""
    authorize_workspace(db, current_user, payload.workspace_id)
    result = await uploader.save_from_url(
        payload.image_url,
        resolve_user_id(current_user, payload.user_id),
        payload.workspace_id,
        chat_id=payload.chat_id,
    )
    if not result.success:
        logger.warning("Saving generated image failed", error=result.error, status_code=result.status_code)
        raise HTTPException(status_code=result.status_code, detail=result.error)

    logger.info("Generated image saved", image_id=result.image.id)
    return SaveGeneratedImageResponse(success=True, url=result.image.url, image_id=result.image.id)
