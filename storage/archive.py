"""
Archive storage port for uploaded files (author photos) and its local-disk adapter.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class ArchiveFile(BaseModel):
    """An uploaded file held in memory."""
    filename: str = Field(..., description="Original file name, used for the extension")
    content: bytes = Field(..., description="File bytes")
    content_type: Optional[str] = Field(None, description="Declared media type")


class ArchiveStorage(ABC):
    """Stores files in named containers and hands back an opaque reference (URL)."""

    @abstractmethod
    async def store(self, container: str, archive: ArchiveFile) -> str:
        """Persist the file and return its reference."""

    @abstractmethod
    async def remove(self, route: Optional[str], container: str) -> None:
        """Remove a stored file; a missing or empty reference is a no-op."""

    async def edit(self, route: Optional[str], container: str, archive: ArchiveFile) -> str:
        """Replace a stored file: remove the old one, then store the new one."""
        await self.remove(route, container)
        return await self.store(container, archive)


class LocalArchiveStorage(ArchiveStorage):
    """
    Keeps files under ``root/<container>/<uuid><ext>`` and serves them from
    ``base_url/<container>/<name>``.
    """

    def __init__(self, root: Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    async def store(self, container: str, archive: ArchiveFile) -> str:
        extension = PurePosixPath(archive.filename).suffix
        archive_name = f"{uuid.uuid4()}{extension}"
        folder = self.root / container
        route = folder / archive_name

        def _write() -> None:
            folder.mkdir(parents=True, exist_ok=True)
            route.write_bytes(archive.content)

        await asyncio.to_thread(_write)
        url = f"{self.base_url}/{container}/{archive_name}"
        logger.info("Stored archive", container=container, archive=archive_name, size=len(archive.content))
        return url

    async def remove(self, route: Optional[str], container: str) -> None:
        if not route:
            return

        archive_name = PurePosixPath(urlparse(route).path).name
        path = self.root / container / archive_name

        def _delete() -> bool:
            if path.is_file():
                path.unlink()
                return True
            return False

        removed = await asyncio.to_thread(_delete)
        logger.info("Removed archive", container=container, archive=archive_name, removed=removed)
