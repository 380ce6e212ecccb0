from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from pymongo import AsyncMongoClient

from pgregistry.config import Config
from pgregistry.core.core import Core
from pgregistry.core.modules.export.models import ResidentRow
from pgregistry.core.modules.export.rows import build_rows
from pgregistry.core.modules.resident.models import ResidentView
from pgregistry.core.modules.resident.service import parse_resident_id
from pgregistry.core.modules.storage.models import PlaceholderImage, PlaceholderImageReport, UploadAuthParameters
from pgregistry.errors import NotFoundError, ValidationError


class App:
    """Facade for all application operations, resolves ids before delegating to Core."""

    def __init__(self, config: Config, mongo_client: AsyncMongoClient[dict[str, Any]] | None = None) -> None:
        self._core = Core(config, mongo_client)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def get_residents(self, search: str | None = None) -> list[ResidentView]:
        """List residents newest first."""
        residents = await self._core.services.resident.list_residents(search)
        return [ResidentView.from_domain(r) for r in residents]

    async def get_resident_rows(self, search: str | None = None) -> list[ResidentRow]:
        """List residents formatted as table rows."""
        residents = await self._core.services.resident.list_residents(search)
        return build_rows(residents)

    async def get_resident(self, resident_id: str) -> ResidentView:
        resident = await self._core.services.resident.get_resident(self._resolve_resident_id(resident_id))
        return ResidentView.from_domain(resident)

    async def create_resident(self, fields: dict[str, Any]) -> ResidentView:
        """Create resident, serial and id are assigned by the server."""
        resident = await self._core.services.resident.create_resident(fields)
        return ResidentView.from_domain(resident)

    async def update_resident(self, resident_id: str, fields: dict[str, Any]) -> ResidentView:
        """Update resident fields (partial update)."""
        resident = await self._core.services.resident.update_resident(self._resolve_resident_id(resident_id), fields)
        return ResidentView.from_domain(resident)

    async def delete_resident(self, resident_id: str) -> None:
        await self._core.services.resident.delete_resident(self._resolve_resident_id(resident_id))

    async def bulk_delete_residents(self, resident_ids: list[Any]) -> int:
        """Delete residents by id, returns number actually deleted."""
        return await self._core.services.resident.bulk_delete_residents(resident_ids)

    async def export_residents(self) -> bytes:
        """Export all residents as xlsx bytes."""
        return await self._core.services.export.export_residents()

    async def seed_residents(self) -> list[ResidentView]:
        """Insert demonstration residents."""
        residents = await self._core.services.resident.seed_sample_residents()
        return [ResidentView.from_domain(r) for r in residents]

    def get_upload_auth(self) -> UploadAuthParameters:
        """Sign a direct ImageKit upload from the browser."""
        return self._core.services.storage.get_upload_auth()

    async def delete_storage_file(self, file_id: str) -> bool:
        if not file_id:
            raise ValidationError("file_id is required")
        return await self._core.services.storage.delete_file_on_request(file_id)

    async def get_placeholder_images(self) -> PlaceholderImageReport:
        """Report residents whose profile image is only a browser-local placeholder."""
        residents = await self._core.services.resident.list_placeholder_images()
        items = [PlaceholderImage(id=r.id, name=r.name, profile_image=r.profile_image) for r in residents]
        return PlaceholderImageReport(count=len(items), items=items)

    async def clear_placeholder_images(self, resident_ids: list[Any]) -> int:
        return await self._core.services.resident.clear_profile_images(resident_ids)

    def _resolve_resident_id(self, resident_id: str) -> UUID:
        """Parse resident id from the URL, unknown formats are reported as not found."""
        parsed = parse_resident_id(resident_id)
        if parsed is None:
            raise NotFoundError(f"Resident not found: {resident_id}")
        return parsed
