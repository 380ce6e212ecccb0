from typing import Any
from uuid import uuid4

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from pgregistry.core.core import Service
from pgregistry.core.modules.counter.models import Counter, CounterKey
from pgregistry.errors import AllocationError

logger = structlog.get_logger(__name__)

# A concurrent first allocation can lose the upsert race on the unique key index
UPSERT_ATTEMPTS = 2


class CounterService(Service):
    """Service for handing out serial numbers from singleton counters."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("counters")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("key", 1)], unique=True)

    async def get_next_sequence(self, key: CounterKey) -> int:
        """Atomically increment and return the next serial for a counter.

        The first call on an empty system returns 1. Issued values are never returned to
        the counter, so a failed caller leaves a gap.

        Raises:
            AllocationError: If the store could not perform the increment
        """
        for attempt in range(1, UPSERT_ATTEMPTS + 1):
            try:
                result = await self._collection.find_one_and_update(
                    {"key": key},
                    {"$inc": {"seq": 1}, "$setOnInsert": {"_id": uuid4()}},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                logger.debug("counter_upsert_conflict", key=key, attempt=attempt)
                continue
            except PyMongoError as e:
                logger.exception("counter_increment_failed", key=key)
                raise AllocationError(f"Failed to allocate serial for {key}") from e

            if result is None:
                raise AllocationError(f"Counter {key} returned no document")
            return Counter.model_validate(result).seq

        raise AllocationError(f"Failed to allocate serial for {key} after {UPSERT_ATTEMPTS} attempts")

    async def get_current_sequence(self, key: CounterKey) -> int:
        """Get the last issued serial without incrementing."""
        counter = Counter.from_mongo(await self._collection.find_one({"key": key}))
        return counter.seq if counter else 0
