from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from pgregistry.config import Config

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        self._core = core


class Services:
    """The four services of the registry, started in declaration order and stopped in reverse.

    Storage is created before resident so it is stopped after it: pending file
    cleanups scheduled by resident deletes are drained before the HTTP client closes.
    """

    # Imported here because the service modules import Service from this module
    from pgregistry.core.modules.counter.service import CounterService  # noqa: PLC0415
    from pgregistry.core.modules.export.service import ExportService  # noqa: PLC0415
    from pgregistry.core.modules.resident.service import ResidentService  # noqa: PLC0415
    from pgregistry.core.modules.storage.service import StorageService  # noqa: PLC0415

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.counter = self.CounterService(database)
        self.storage = self.StorageService(database)
        self.resident = self.ResidentService(database)
        self.export = self.ExportService(database)
        self._ordered: tuple[Service, ...] = (self.counter, self.storage, self.resident, self.export)

    def set_core(self, core: Core) -> None:
        for service in self._ordered:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._ordered:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._ordered):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances.

    A ready client can be passed in, otherwise one is created from `database_url`
    (the database name is the URL path).
    """

    def __init__(self, config: Config, mongo_client: AsyncMongoClient[dict[str, Any]] | None = None) -> None:
        self.config = config
        if mongo_client is None:
            mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard")
        self.mongo_client = mongo_client
        self.database_name = urlparse(config.database_url).path.lstrip("/")
        self.database: AsyncDatabase[dict[str, Any]] = self.mongo_client.get_database(self.database_name)
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Start services, yield, then stop them even if the body failed."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()
        logger.info("core_started", database=self.database_name)

    async def on_stop(self) -> None:
        """Stop services, then close the MongoDB connection."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
        logger.info("core_stopped", database=self.database_name)
