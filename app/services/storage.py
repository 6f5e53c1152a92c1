import asyncio
import logging
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from app.core.config import settings
from app.core.exceptions import UploadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    path: str
    public_url: str


def build_object_path(owner_id: str, filename: str) -> str:
    """`{owner}/{uuid}/{filename}`: unique per upload, namespaced per owner."""
    safe_name = os.path.basename(filename.replace("\\", "/")) or "resume"
    return f"{owner_id}/{uuid.uuid4()}/{safe_name}"


class ObjectStorage(ABC):
    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        """Store `data` at `path`. Raises UploadError on failure."""


class LocalObjectStorage(ObjectStorage):
    """Filesystem-backed bucket served under a public base URL."""

    def __init__(self, root: Optional[str] = None, public_base_url: Optional[str] = None):
        self.root = Path(root or settings.storage_dir)
        self.public_base_url = (public_base_url or settings.storage_public_url).rstrip("/")

    def _write(self, path: str, data: bytes) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise UploadError(f"Refusing to write outside storage root: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return target

    async def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        try:
            target = await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            logger.error(f"Error writing {path} to storage: {e}")
            raise UploadError("Failed to upload file.", details={"path": path})

        logger.info(f"Stored {len(data)} bytes at {target}")
        return StoredObject(path=path, public_url=f"{self.public_base_url}/{quote(path)}")
