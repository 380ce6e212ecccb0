from typing import Any, Self
from uuid import UUID, uuid4

import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, Field
from pymongo.asynchronous.cursor import AsyncCursor

logger = structlog.get_logger(__name__)


class MongoModel(BaseModel):
    """Base for stored documents: `_id` in MongoDB, `id` in Python and in API responses."""

    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_serialization_defaults_required=True,
        extra="ignore",  # Older documents may carry fields the model no longer has
    )

    def to_mongo(self) -> dict[str, Any]:
        """Dump the model for storage, with the id under `_id`."""
        data = self.model_dump()
        data["_id"] = data.pop("id")
        return data

    @classmethod
    def from_mongo(cls, doc: dict[str, Any] | None) -> Self | None:
        """Build the model from a stored document, passing None through."""
        if doc is None:
            return None
        return cls.model_validate(doc)

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]], skip_invalid: bool = False) -> list[Self]:
        """Consume a cursor into model instances.

        With skip_invalid=True documents that do not fit the model (foreign id types,
        broken fields) are logged and left out instead of failing the whole listing.
        """
        items: list[Self] = []
        async for doc in cursor:
            try:
                items.append(cls.model_validate(doc))
            except pydantic.ValidationError as e:
                if not skip_invalid:
                    raise
                logger.warning(
                    "invalid_document_skipped",
                    model=cls.__name__,
                    doc_id=str(doc.get("_id")),
                    errors=e.error_count(),
                )
        return items
