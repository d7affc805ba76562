import logging
from abc import ABC, abstractmethod
from typing import Optional

from supabase import AsyncClient, acreate_client

from valta.config import Settings, settings as default_settings
from valta.exceptions import (
    BlobNotFoundError,
    BlobTooLargeError,
    StorageError,
    SyncError,
)

logger = logging.getLogger(__name__)


class StorageProvider(ABC):
    """Opaque key to bytes store. Writes replace the whole blob."""

    @abstractmethod
    async def download(self, path: str, max_size: int) -> bytes:
        """Return the blob at `path`; raise BlobNotFoundError if it is missing."""
        pass

    @abstractmethod
    async def upload(
        self, path: str, data: bytes, content_type: str = "text/csv"
    ) -> None:
        pass


class SupabaseStorageProvider(StorageProvider):
    def __init__(self, client: AsyncClient, bucket: str):
        self.client = client
        self.bucket = bucket

    async def download(self, path: str, max_size: int) -> bytes:
        try:
            data = await self.client.storage.from_(self.bucket).download(path)
        except Exception as e:
            if _is_not_found(e):
                raise BlobNotFoundError(f"{path} not found in {self.bucket}", path) from e
            raise StorageError(f"Failed to download {path}: {e}", path) from e

        if len(data) > max_size:
            raise BlobTooLargeError(path, len(data), max_size)
        return data

    async def upload(
        self, path: str, data: bytes, content_type: str = "text/csv"
    ) -> None:
        try:
            await self.client.storage.from_(self.bucket).upload(
                path,
                data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except Exception as e:
            raise StorageError(f"Failed to upload {path}: {e}", path) from e


def _is_not_found(error: Exception) -> bool:
    status = getattr(error, "status", None) or getattr(error, "statusCode", None)
    if str(status) == "404":
        return True
    return "not found" in str(error).lower()


async def create_storage_client(settings: Settings = default_settings) -> AsyncClient:
    client = await acreate_client(settings.supabase_url, settings.supabase_key)
    logger.info("Initialized Supabase storage client")
    return client


class StorageService:
    """The two collection blobs, read and written as UTF-8 text."""

    def __init__(
        self,
        provider: StorageProvider,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.provider = provider
        self.teams_path = settings.teams_path
        self.activities_path = settings.activities_path
        self.max_size = settings.max_blob_size

    async def download_teams(self) -> str:
        return await self._download_text(self.teams_path)

    async def download_activities(self) -> str:
        return await self._download_text(self.activities_path)

    async def upload_activities(self, text: str) -> None:
        await self._upload_text(self.activities_path, text)

    async def upload_teams(self, text: str) -> None:
        await self._upload_text(self.teams_path, text)

    async def _download_text(self, path: str) -> str:
        data = await self.provider.download(path, self.max_size)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SyncError(f"{path} is not valid UTF-8") from e

    async def _upload_text(self, path: str, text: str) -> None:
        data = text.encode("utf-8")
        if len(data) > self.max_size:
            raise BlobTooLargeError(path, len(data), self.max_size)
        await self.provider.upload(path, data, content_type="text/csv")
