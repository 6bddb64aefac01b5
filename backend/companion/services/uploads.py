"""
Image upload pipeline.

Bytes go to object storage under ``{user_id}/{workspace_id}/{millis}-{name}``,
then a row is written to ``images``. If the row cannot be written the stored
object is removed again so storage never holds an unreferenced upload.
"""
import asyncio
import re
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx
from fastapi import Depends
from sqlalchemy.orm import Session

from companion.core.config import settings
from companion.core.errors import friendly_error_message
from companion.core.logging import storage_logger
from companion.core.monitoring import record_image_upload, record_storage_compensation
from companion.crud import image as image_crud
from companion.database.connection import get_db
from companion.models.image import Image
from companion.services.storage import ObjectStorage, StorageError, get_object_storage

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass
class UploadFile:
    name: str
    content: bytes
    mime_type: str


@dataclass
class UploadResult:
    success: bool
    image: Optional[Image] = None
    error: Optional[str] = None
    status_code: int = 200


class DownloadError(Exception):
    pass


def sanitize_file_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def build_storage_path(user_id: str, workspace_id: str, file_name: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{user_id}/{workspace_id}/{timestamp_ms}-{sanitize_file_name(file_name)}"


def image_extension(mime_type: Optional[str]) -> Optional[str]:
    """Allow-listed extension for an ``image/*`` MIME type, None if not allowed.

    Parameters and structured suffixes are ignored: ``image/svg+xml`` -> ``svg``.
    """
    if not mime_type:
        return None
    base = mime_type.split(";", 1)[0].strip().lower()
    if not base.startswith("image/"):
        return None
    subtype = base[len("image/"):].split("+", 1)[0]
    if subtype in settings.allowed_image_extensions:
        return subtype
    return None


def _failure(error: str, status_code: int) -> UploadResult:
    return UploadResult(success=False, error=error, status_code=status_code)


class ImageUploader:
    def __init__(
        self,
        db: Session,
        storage: ObjectStorage,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self.storage = storage
        self.transport = transport

    def save_image(
        self,
        user_id: Optional[str],
        workspace_id: Optional[str],
        file: Optional[UploadFile],
        chat_id: Optional[str] = None,
        source: str = "upload",
    ) -> UploadResult:
        """Store one image and record its metadata"""
        if not user_id or not workspace_id:
            return _failure("userId and workspaceId are required", 400)
        if file is None or not file.name or not file.content:
            return _failure("file is required", 400)

        if image_extension(file.mime_type) is None:
            storage_logger.info("Rejected upload", mime_type=file.mime_type, user_id=user_id)
            record_image_upload(source, success=False)
            return _failure(
                f"Unsupported file type: {file.mime_type or 'unknown'}. "
                f"Supported formats: {', '.join(settings.allowed_image_extensions)}",
                400,
            )

        storage_path = build_storage_path(user_id, workspace_id, file.name)

        try:
            self.storage.upload(storage_path, file.content, file.mime_type)
        except StorageError as e:
            record_image_upload(source, success=False)
            return _failure(f"Upload failed: {e.message}", 400)

        public_url = self.storage.get_public_url(storage_path)
        if not public_url:
            # The object stays in the bucket; nothing references it yet
            storage_logger.error("Public URL missing", path=storage_path)
            record_image_upload(source, success=False)
            return _failure("Failed to generate public URL", 500)

        try:
            image = image_crud.create_image(
                self.db,
                user_id=user_id,
                workspace_id=workspace_id,
                chat_id=chat_id,
                url=public_url,
                storage_path=storage_path,
                file_name=file.name,
                file_size=len(file.content),
                mime_type=file.mime_type,
            )
        except Exception as e:
            storage_logger.error("Image metadata insert failed", path=storage_path, error=str(e))
            self._remove_orphan(storage_path)
            record_image_upload(source, success=False)
            return _failure(f"Database error: {e}", 400)

        record_image_upload(source, success=True)
        storage_logger.info("Image stored", image_id=image.id, path=storage_path, size=image.file_size)
        return UploadResult(success=True, image=image)

    def _remove_orphan(self, storage_path: str) -> None:
        try:
            self.storage.remove(storage_path)
            record_storage_compensation(success=True)
        except StorageError as e:
            record_storage_compensation(success=False)
            storage_logger.error("Failed to remove orphaned object", path=storage_path, error=e.message)

    async def download(self, image_url: str) -> UploadFile:
        """Fetch a remote image, enforcing the timeout and size cap"""
        timeout = settings.image_download_timeout
        max_size = settings.max_image_size
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport, follow_redirects=True) as client:
                async with client.stream("GET", image_url) as response:
                    if response.status_code != 200:
                        raise DownloadError(f"Request failed with status code {response.status_code}")

                    content = bytearray()
                    async for chunk in response.aiter_bytes():
                        content.extend(chunk)
                        if len(content) > max_size:
                            raise DownloadError(f"maxContentLength size of {max_size} exceeded")
                    content_type = response.headers.get("content-type", "")
        except httpx.TimeoutException as e:
            raise DownloadError(f"timeout of {int(timeout)}s exceeded") from e
        except httpx.HTTPError as e:
            raise DownloadError(str(e) or type(e).__name__) from e

        return UploadFile(name="", content=bytes(content), mime_type=content_type)

    async def save_from_url(
        self,
        image_url: Optional[str],
        user_id: Optional[str],
        workspace_id: Optional[str],
        chat_id: Optional[str] = None,
    ) -> UploadResult:
        """Re-host an externally served image (e.g. a generated one) in our bucket"""
        if not image_url or not user_id or not workspace_id:
            return _failure("Missing required fields: imageUrl, userId, and workspaceId are required", 400)

        parsed = urlparse(image_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return _failure("Invalid imageUrl format", 400)

        storage_logger.info("Downloading image", url=image_url)
        try:
            file = await self.download(image_url)
        except DownloadError as e:
            record_image_upload("generated", success=False)
            return _failure(f"Failed to download image: {e}", 400)

        if not file.mime_type.lower().startswith("image/"):
            record_image_upload("generated", success=False)
            return _failure("URL does not point to a valid image", 400)

        extension = image_extension(file.mime_type)
        if extension is None:
            record_image_upload("generated", success=False)
            subtype = file.mime_type.split(";", 1)[0].split("/", 1)[1]
            return _failure(
                f"Unsupported image format: {subtype}. "
                f"Supported formats: {', '.join(settings.allowed_image_extensions)}",
                400,
            )

        file.name = f"generated-{int(time.time() * 1000)}.{extension}"
        storage_logger.info("Image downloaded", size=len(file.content), mime_type=file.mime_type)

        result = await asyncio.to_thread(
            self.save_image, user_id, workspace_id, file, chat_id=chat_id, source="generated"
        )
        if not result.success:
            return _failure(friendly_error_message(result.error or "Failed to save image to storage"), 500)
        return result


def get_image_uploader(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
) -> ImageUploader:
    return ImageUploader(db, storage)
