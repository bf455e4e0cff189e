"""Blob storage for uploaded resume files."""

import asyncio
import logging
import re
import uuid
from pathlib import Path
from typing import Optional, Protocol

from interview_guide.core.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStorage(Protocol):
    async def put(self, data: bytes, filename: Optional[str] = None) -> str:
        ...

    def url(self, key: str) -> str:
        ...

    async def delete(self, key: str) -> None:
        ...


class LocalBlobStorage:
    """Stores blobs as files under ``UPLOAD_DIR`` and serves them from ``PUBLIC_BASE_URL``."""

    def __init__(self, root: Optional[str] = None, public_base_url: Optional[str] = None):
        self.root = Path(root or settings.UPLOAD_DIR).resolve()
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Storage key escapes upload directory: {key}")
        return path

    async def put(self, data: bytes, filename: Optional[str] = None) -> str:
        safe_name = _UNSAFE_CHARS.sub("_", Path(filename or "resume").name).strip("._") or "resume"
        key = f"resumes/{uuid.uuid4().hex}_{safe_name}"
        path = self._path_for(key)

        def write():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, write)
        logger.info(f"Stored blob {key} ({len(data)} bytes)")
        return key

    def url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        loop = asyncio.get_running_loop()
        # Missing files count as deleted
        await loop.run_in_executor(None, lambda: path.unlink(missing_ok=True))
        logger.info(f"Deleted blob {key}")
