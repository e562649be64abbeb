"""Image storage: blob HTTP API when a token is configured, local disk otherwise."""

import asyncio
import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from app.config import Settings

logger = logging.getLogger("AISolutions.storage")

UPLOAD_FAILED = "UPLOAD_FAILED"
UPLOAD_URL_PREFIX = "/uploads"


@dataclass
class UploadResult:
    ok: bool
    url: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None


def sanitize_filename(name: str) -> str:
    return re.sub(r"[^a-z0-9._-]", "_", (name or "file").lower())


class Storage:
    """Stores uploaded images and hands back a public URL."""

    def __init__(self, settings: Settings, timeout: float = 30.0):
        self.blob_token = settings.blob_token
        self.blob_api_url = settings.blob_api_url.rstrip("/")
        self.upload_dir = Path(settings.upload_dir)
        self.timeout = timeout

    @property
    def uses_blob(self) -> bool:
        return bool(self.blob_token)

    def _key(self, original_name: str) -> str:
        return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}_{sanitize_filename(original_name)}"

    async def save(self, data: bytes, original_name: str, content_type: Optional[str], folder: str) -> UploadResult:
        if self.uses_blob:
            return await self._save_blob(data, original_name, content_type, folder)
        return await self._save_local(data, original_name, folder)

    async def _save_blob(self, data: bytes, original_name: str, content_type: Optional[str], folder: str) -> UploadResult:
        key = f"{folder}/{self._key(original_name)}"
        headers = {
            "Authorization": f"Bearer {self.blob_token}",
            "x-content-type": content_type or "application/octet-stream",
            "x-add-random-suffix": "0",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.put(f"{self.blob_api_url}/{key}", content=data, headers=headers)
                response.raise_for_status()
                url = response.json().get("url")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Blob upload failed for {key}: {e}")
            return UploadResult(ok=False, error=UPLOAD_FAILED)
        if not url:
            logger.error(f"Blob upload for {key} returned no URL")
            return UploadResult(ok=False, error=UPLOAD_FAILED)
        logger.info(f"Uploaded {key} to blob storage")
        return UploadResult(ok=True, url=url)

    async def _save_local(self, data: bytes, original_name: str, folder: str) -> UploadResult:
        filename = self._key(original_name)
        target_dir = self.upload_dir / folder
        try:
            await asyncio.to_thread(target_dir.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread((target_dir / filename).write_bytes, data)
        except OSError as e:
            logger.error(f"Local upload failed for {filename}: {e}")
            return UploadResult(ok=False, error=UPLOAD_FAILED)
        logger.info(f"Stored upload {folder}/{filename} on disk")
        return UploadResult(ok=True, url=f"{UPLOAD_URL_PREFIX}/{folder}/{filename}", filename=filename)

    async def delete(self, filename: Optional[str], folder: str) -> None:
        """Best-effort removal of a locally stored file; failures are only logged."""
        if not filename:
            return
        path = self.upload_dir / folder / Path(filename).name
        try:
            await asyncio.to_thread(path.unlink)
            logger.info(f"Deleted upload {folder}/{path.name}")
        except FileNotFoundError:
            logger.warning(f"Upload already gone: {folder}/{path.name}")
        except OSError as e:
            logger.error(f"Failed to delete upload {folder}/{path.name}: {e}")
