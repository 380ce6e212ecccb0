import re
from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

import pydantic
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from pgregistry.core.core import Service
from pgregistry.core.modules.counter.models import CounterKey
from pgregistry.core.modules.resident.models import Resident
from pgregistry.core.modules.resident.seed import SAMPLE_RESIDENTS
from pgregistry.core.modules.storage.utils import is_placeholder_image, normalize_resident_files
from pgregistry.errors import NotFoundError, ValidationError
from pgregistry.utils import now

logger = structlog.get_logger(__name__)

# Assigned by the server, silently dropped from client input on create and update
SERVER_ASSIGNED_FIELDS = frozenset({"id", "_id", "serial", "display_id", "created_at", "updated_at"})
REQUIRED_FIELDS = ("name", "room")
# Fields whose model default applies when the client sends null
DEFAULTED_FIELDS = ("join_date", "fee_due", "fees_paid", "documents")
SEARCH_FIELDS = ("name", "phone", "room", "notes", "college")


def clean_input_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Drop server-assigned keys and nulls sent for defaulted fields."""
    return {
        key: value
        for key, value in fields.items()
        if key not in SERVER_ASSIGNED_FIELDS and not (key in DEFAULTED_FIELDS and value is None)
    }


def ensure_required_fields(fields: Mapping[str, Any], partial: bool = False) -> None:
    """Check required fields are present and not blank.

    With partial=True only fields present in the input are checked, so a partial update can
    leave them out but cannot blank them.
    """
    missing = []
    for key in REQUIRED_FIELDS:
        if partial and key not in fields:
            continue
        value = fields.get(key)
        if value is None or not str(value).strip():
            missing.append(key)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_resident_id(value: object) -> UUID | None:
    """Parse a resident id from a path or request body, None if it is not a valid id."""
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def parse_resident_ids(values: Iterable[object]) -> list[UUID]:
    """Parse ids, skipping invalid ones and duplicates while keeping order."""
    ids: list[UUID] = []
    for value in values:
        resident_id = parse_resident_id(value)
        if resident_id is not None and resident_id not in ids:
            ids.append(resident_id)
    return ids


def build_search_query(term: str | None) -> dict[str, Any]:
    """Case-insensitive substring match over the list view's searchable fields."""
    term = (term or "").strip()
    if not term:
        return {}
    pattern = re.escape(term)
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]}


def validate_resident(data: Mapping[str, Any]) -> Resident:
    """Build a Resident from input, reporting model errors as ValidationError."""
    try:
        return Resident.model_validate(data)
    except pydantic.ValidationError as e:
        details = "; ".join(f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors())
        raise ValidationError(f"Invalid resident data: {details}") from e


class ResidentService(Service):
    """Stores resident records and keeps their serials consistent.

    A serial is allocated exactly once, inside create. Update never touches it
    and delete never returns it to the counter.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("residents")

    async def on_start(self) -> None:
        """Create indexes for serial uniqueness and newest-first listing."""
        # Legacy records have no serial, so uniqueness only covers numeric values
        await self._collection.create_index(
            [("serial", 1)], unique=True, partialFilterExpression={"serial": {"$type": "number"}}
        )
        await self._collection.create_index([("created_at", -1)])

    def _normalize(self, resident: Resident) -> Resident:
        return normalize_resident_files(resident, self.core.config.imagekit_url_endpoint)

    async def get_resident(self, resident_id: UUID) -> Resident:
        """Get resident by ID with absolute file URLs."""
        resident = Resident.from_mongo(await self._collection.find_one({"_id": resident_id}))
        if resident is None:
            raise NotFoundError(f"Resident not found: {resident_id}")
        return self._normalize(resident)

    async def list_residents(self, search: str | None = None) -> list[Resident]:
        """List residents newest first, optionally filtered by a search term."""
        cursor = self._collection.find(build_search_query(search)).sort("created_at", -1)
        residents = [self._normalize(r) for r in await Resident.list_cursor(cursor, skip_invalid=True)]
        logger.debug("list_residents", search=search, returned=len(residents))
        return residents

    async def list_residents_by_serial(self) -> list[Resident]:
        """List residents in serial order for exports; legacy records without serial come first."""
        cursor = self._collection.find({}).sort([("serial", 1), ("created_at", 1)])
        return await Resident.list_cursor(cursor, skip_invalid=True)

    async def create_resident(self, fields: Mapping[str, Any]) -> Resident:
        """Create a resident and assign it the next serial.

        Input is validated before allocation so rejected input does not consume a serial.

        Raises:
            ValidationError: If required fields are missing or values are malformed
            AllocationError: If the counter could not be incremented; nothing is stored
        """
        data = clean_input_fields(fields)
        ensure_required_fields(data)
        resident = validate_resident(data)

        serial = await self.core.services.counter.get_next_sequence(CounterKey.RESIDENT)
        resident = resident.model_copy(update={"serial": serial})

        res = await self._collection.insert_one(resident.to_mongo())
        logger.info("resident_created", resident_id=resident.id, serial=serial)
        return await self.get_resident(res.inserted_id)

    async def update_resident(self, resident_id: UUID, fields: Mapping[str, Any]) -> Resident:
        """Replace the given mutable fields of a resident (partial update).

        Id, serial and timestamps in the input are ignored. Concurrent writes to the same
        resident are last-write-wins.
        """
        data = clean_input_fields(fields)
        ensure_required_fields(data, partial=True)
        current = await self.get_resident(resident_id)
        merged = validate_resident({**current.model_dump(), **data})

        update_doc = {key: value for key, value in merged.model_dump().items() if key in data}
        update_doc["updated_at"] = now()
        result = await self._collection.update_one({"_id": resident_id}, {"$set": update_doc})
        if result.matched_count == 0:
            raise NotFoundError(f"Resident not found: {resident_id}")

        logger.debug("resident_updated", resident_id=resident_id, fields=sorted(data))
        return await self.get_resident(resident_id)

    async def delete_resident(self, resident_id: UUID) -> None:
        """Delete a resident, then clean up its ImageKit files in the background."""
        resident = await self.get_resident(resident_id)
        result = await self._collection.delete_one({"_id": resident_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Resident not found: {resident_id}")

        logger.info("resident_deleted", resident_id=resident_id, serial=resident.serial)
        self.core.services.storage.schedule_cleanup(resident.id, resident.file_ids())

    async def bulk_delete_residents(self, raw_ids: list[Any]) -> int:
        """Delete several residents, skipping invalid or unknown ids.

        Returns:
            Number of residents actually removed
        """
        if not raw_ids:
            raise ValidationError("No ids provided")

        ids = parse_resident_ids(raw_ids)
        if not ids:
            logger.debug("bulk_delete_no_valid_ids", requested=len(raw_ids))
            return 0

        residents = await Resident.list_cursor(self._collection.find({"_id": {"$in": ids}}), skip_invalid=True)
        result = await self._collection.delete_many({"_id": {"$in": [r.id for r in residents]}})

        for resident in residents:
            self.core.services.storage.schedule_cleanup(resident.id, resident.file_ids())

        logger.info("residents_bulk_deleted", requested=len(raw_ids), deleted=result.deleted_count)
        return result.deleted_count

    async def list_placeholder_images(self) -> list[Resident]:
        """Find residents whose profile image never made it to ImageKit."""
        residents = await Resident.list_cursor(self._collection.find({}).sort("created_at", -1), skip_invalid=True)
        return [r for r in residents if is_placeholder_image(r.profile_image)]

    async def clear_profile_images(self, raw_ids: list[Any]) -> int:
        """Remove the profile image of the given residents so it can be uploaded again."""
        if not raw_ids:
            raise ValidationError("ids array required")
        ids = parse_resident_ids(raw_ids)
        if not ids:
            return 0
        result = await self._collection.update_many(
            {"_id": {"$in": ids}}, {"$set": {"profile_image": None, "updated_at": now()}}
        )
        logger.info("profile_images_cleared", requested=len(raw_ids), modified=result.modified_count)
        return result.modified_count

    async def seed_sample_residents(self) -> list[Resident]:
        """Insert the demonstration residents through the normal create path."""
        return [await self.create_resident(data) for data in SAMPLE_RESIDENTS]
