import asyncio
from collections.abc import Iterable
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from pgregistry.core.core import Service
from pgregistry.core.modules.storage.client import ImageKitClient
from pgregistry.core.modules.storage.models import UploadAuthParameters
from pgregistry.core.modules.storage.utils import is_deletable_file_id
from pgregistry.errors import ExternalStorageError, StorageNotConfiguredError

logger = structlog.get_logger(__name__)


class StorageService(Service):
    """Bridges resident records and ImageKit file storage.

    Deletions triggered by record removal are best effort: they run in the
    background after the record is gone, and failures are only logged.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self.client: ImageKitClient | None = None
        self._cleanup_tasks: set[asyncio.Task[None]] = set()

    async def on_start(self) -> None:
        config = self.core.config
        if not config.imagekit_configured:
            logger.warning("imagekit_not_configured", detail="image uploads and deletes will be skipped")
            return
        self.client = ImageKitClient(
            public_key=config.imagekit_public_key or "",
            private_key=config.imagekit_private_key or "",
            url_endpoint=config.imagekit_url_endpoint or "",
            api_url=config.imagekit_api_url,
        )
        logger.info("imagekit_initialized", url_endpoint=config.imagekit_url_endpoint)

    async def on_stop(self) -> None:
        """Let pending cleanups finish before closing the HTTP client."""
        await self.wait_for_cleanup()
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def get_upload_auth(self) -> UploadAuthParameters:
        """Sign a direct browser upload."""
        if self.client is None:
            raise StorageNotConfiguredError
        token, expire, signature = self.client.get_authentication_parameters()
        return UploadAuthParameters(
            token=token,
            expire=expire,
            signature=signature,
            public_key=self.client.public_key,
            url_endpoint=self.client.url_endpoint,
        )

    async def delete_file(self, file_id: str | None) -> bool:
        """Delete one file from ImageKit, returning whether the remote delete happened.

        Never raises: unsafe references are skipped and remote failures are logged.
        """
        if self.client is None:
            logger.debug("imagekit_delete_skipped_unconfigured", file_id=file_id)
            return False
        if not is_deletable_file_id(file_id):
            logger.info("imagekit_delete_skipped_invalid_file_id", file_id=file_id)
            return False
        try:
            await self.client.delete_file(file_id or "")
        except ExternalStorageError:
            logger.exception("imagekit_delete_failed", file_id=file_id)
            return False
        return True

    async def delete_file_on_request(self, file_id: str) -> bool:
        """Explicit delete from the client; unlike cascades it reports a missing configuration."""
        if self.client is None:
            raise StorageNotConfiguredError
        return await self.delete_file(file_id)

    def schedule_cleanup(self, resident_id: UUID, file_ids: Iterable[str]) -> None:
        """Delete a removed resident's files in the background."""
        pending = list(file_ids)
        if not pending:
            return
        task = asyncio.create_task(self._cleanup(resident_id, pending))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def _cleanup(self, resident_id: UUID, file_ids: list[str]) -> None:
        deleted = 0
        try:
            for file_id in file_ids:
                if await self.delete_file(file_id):
                    deleted += 1
        except Exception:
            logger.exception("resident_files_cleanup_failed", resident_id=resident_id)
            return
        logger.debug("resident_files_cleaned_up", resident_id=resident_id, requested=len(file_ids), deleted=deleted)

    async def wait_for_cleanup(self) -> None:
        """Wait until every scheduled cleanup has finished."""
        tasks = list(self._cleanup_tasks)
        if tasks:
            await asyncio.gather(*tasks)
