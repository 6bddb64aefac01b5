from typing import Optional

from companion.core.config import settings
from companion.core.errors import CompanionError
from companion.core.logging import storage_logger
from companion.services.supabase_client import get_supabase


class StorageError(CompanionError):
    """Object storage rejected an operation."""


class ObjectStorage:
    """Thin wrapper over one Supabase Storage bucket"""

    def __init__(self, client=None, bucket: Optional[str] = None):
        self._client = client
        self.bucket = bucket or settings.storage_bucket

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        try:
            self.client.storage.from_(self.bucket).upload(
                path,
                content,
                file_options={
                    "content-type": content_type,
                    "cache-control": settings.storage_cache_control,
                    "upsert": "false",
                },
            )
        except Exception as e:
            raise StorageError(str(e)) from e
        storage_logger.info("Object uploaded", bucket=self.bucket, path=path, size=len(content))

    def get_public_url(self, path: str) -> str:
        url = self.client.storage.from_(self.bucket).get_public_url(path)
        return url or ""

    def remove(self, path: str) -> None:
        try:
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            raise StorageError(str(e)) from e
        storage_logger.info("Object removed", bucket=self.bucket, path=path)


def get_object_storage() -> ObjectStorage:
    return ObjectStorage()
