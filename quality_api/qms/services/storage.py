"""
Object storage for uploaded images and attachments.

Two backends share one interface: a local directory served by the API under
STORAGE_PUBLIC_BASE_URL, and an Azure Blob Storage container.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from azure.storage.blob import BlobServiceClient, ContentSettings

from qms.core.errors import InvalidUploadError
from qms.core.settings import AppSettings, get_app_settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


# PUBLIC_INTERFACE
def normalize_path(path: str) -> str:
    """
    Normalise an object path to forward-slash, relative form.

    Absolute paths and any '..' segment are rejected.
    """
    raw = (path or "").replace("\\", "/").strip()
    if not raw or raw.startswith("/") or re.match(r"^[A-Za-z]:", raw):
        raise InvalidUploadError(f"Invalid storage path '{path}'")
    if ".." in raw.split("/"):
        raise InvalidUploadError(f"Invalid storage path '{path}'")
    normalized = posixpath.normpath(raw)
    if normalized in (".", ""):
        raise InvalidUploadError(f"Invalid storage path '{path}'")
    return normalized


# PUBLIC_INTERFACE
def upload_path(folder: Optional[str], filename: str, now: Optional[datetime] = None) -> str:
    """<folder>/<epoch millis>_<filename>, with the filename reduced to safe characters."""
    stamp = int((now or datetime.now(timezone.utc)).timestamp() * 1000)
    safe_name = _UNSAFE_CHARS.sub("_", Path(filename or "file").name).strip("_") or "file"
    name = f"{stamp}_{safe_name}"
    return normalize_path(f"{folder.strip('/')}/{name}" if folder and folder.strip("/") else name)


class LocalStorage:
    """Files under a local directory, served by the API's static mount."""

    def __init__(self, root: str, public_base_url: str) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    async def upload_file(self, content: bytes, path: str, content_type: Optional[str] = None) -> str:
        rel = normalize_path(path)
        target = self.root / rel
        await asyncio.to_thread(self._write, target, content)
        logger.info("Stored %d bytes at %s", len(content), target)
        return f"{self.public_base_url}/{rel}"

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)


class AzureBlobStorage:
    """Blobs in one Azure Storage container."""

    def __init__(self, connection_string: str, container: str) -> None:
        self.client = BlobServiceClient.from_connection_string(connection_string)
        self.container = container

    async def upload_file(self, content: bytes, path: str, content_type: Optional[str] = None) -> str:
        rel = normalize_path(path)
        return await asyncio.to_thread(self._upload, rel, content, content_type)

    def _upload(self, rel: str, content: bytes, content_type: Optional[str]) -> str:
        blob = self.client.get_blob_client(container=self.container, blob=rel)
        settings = ContentSettings(content_type=content_type) if content_type else None
        blob.upload_blob(content, overwrite=True, content_settings=settings)
        logger.info("Uploaded %d bytes to blob %s/%s", len(content), self.container, rel)
        return blob.url


# PUBLIC_INTERFACE
def get_storage(settings: Optional[AppSettings] = None):
    """Build the configured storage backend."""
    settings = settings or get_app_settings()
    if settings.STORAGE_BACKEND == "azure":
        if not settings.AZURE_STORAGE_CONNECTION_STRING:
            raise RuntimeError("AZURE_STORAGE_CONNECTION_STRING is required when STORAGE_BACKEND=azure")
        return AzureBlobStorage(settings.AZURE_STORAGE_CONNECTION_STRING, settings.AZURE_STORAGE_CONTAINER)
    return LocalStorage(settings.STORAGE_LOCAL_DIR, settings.STORAGE_PUBLIC_BASE_URL)
