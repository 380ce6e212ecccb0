"""Shared pytest fixtures.

MongoDB is replaced by a small in-memory double that implements the subset of
the async pymongo collection API the services use.
"""

import copy
import re
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest
from pymongo.errors import DuplicateKeyError

from pgregistry.config import Config
from pgregistry.core.core import Core
from pgregistry.errors import ExternalStorageError
from pgregistry.utils import now


def _type_matches(value: Any, type_name: str) -> bool:
    if type_name == "number":
        return isinstance(value, int | float) and not isinstance(value, bool)
    raise NotImplementedError(f"$type {type_name}")


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in condition):
                return False
            continue
        value = doc.get(key)
        if isinstance(condition, dict) and condition and all(op.startswith("$") for op in condition):
            for op, operand in condition.items():
                if op == "$in" and value not in operand:
                    return False
                if op == "$ne" and value == operand:
                    return False
                if op == "$type" and not _type_matches(value, operand):
                    return False
                if op == "$regex":
                    flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                    if not isinstance(value, str) or not re.search(operand, value, flags):
                        return False
        elif value != condition:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, key_or_list: str | list[tuple[str, int]], direction: int = 1) -> "FakeCursor":
        keys = [(key_or_list, direction)] if isinstance(key_or_list, str) else list(key_or_list)
        # Stable sorts applied from the least significant key; None sorts first like in MongoDB
        for key, key_direction in reversed(keys):
            self._docs.sort(
                key=lambda d, k=key: (d.get(k) is not None, d.get(k) if d.get(k) is not None else 0),
                reverse=key_direction < 0,
            )
        return self

    async def to_list(self) -> list[dict[str, Any]]:
        return list(self._docs)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.unique_indexes: list[tuple[list[str], dict[str, Any]]] = []

    async def create_index(self, keys: list[tuple[str, int]], unique: bool = False, **kwargs: Any) -> str:
        if unique:
            self.unique_indexes.append(([k for k, _ in keys], kwargs.get("partialFilterExpression", {})))
        return "_".join(k for k, _ in keys)

    def _check_unique(self, candidate: dict[str, Any]) -> None:
        for fields, partial in self.unique_indexes:
            if partial and not _matches(candidate, partial):
                continue
            key = tuple(candidate.get(f) for f in fields)
            for doc in self.docs:
                if doc is candidate or (partial and not _matches(doc, partial)):
                    continue
                if tuple(doc.get(f) for f in fields) == key:
                    raise DuplicateKeyError(f"E11000 duplicate key on {self.name} {fields}")

    def _find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        return [doc for doc in self.docs if _matches(doc, query)]

    async def insert_one(self, doc: dict[str, Any]) -> SimpleNamespace:
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", uuid4())
        if any(d["_id"] == doc["_id"] for d in self.docs):
            raise DuplicateKeyError("E11000 duplicate key on _id")
        self._check_unique(doc)
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        found = self._find(query)
        return copy.deepcopy(found[0]) if found else None

    def find(self, query: dict[str, Any] | None = None) -> FakeCursor:
        return FakeCursor([copy.deepcopy(d) for d in self._find(query or {})])

    async def find_one_and_update(
        self, query: dict[str, Any], update: dict[str, Any], upsert: bool = False, return_document: bool = False
    ) -> dict[str, Any] | None:
        found = self._find(query)
        if found:
            doc = found[0]
            before = copy.deepcopy(doc)
        elif upsert:
            before = None
            doc = {k: v for k, v in query.items() if not k.startswith("$")}
            doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
            doc.setdefault("_id", uuid4())
            self._check_unique(doc)
            self.docs.append(doc)
        else:
            return None
        self._apply(doc, update)
        return copy.deepcopy(doc) if return_document else before

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        found = self._find(query)[:1]
        for doc in found:
            self._apply(doc, update)
        return SimpleNamespace(matched_count=len(found), modified_count=len(found))

    async def update_many(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        found = self._find(query)
        for doc in found:
            self._apply(doc, update)
        return SimpleNamespace(matched_count=len(found), modified_count=len(found))

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        found = self._find(query)[:1]
        self.docs = [d for d in self.docs if not any(d is f for f in found)]
        return SimpleNamespace(deleted_count=len(found))

    async def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        found = self._find(query)
        self.docs = [d for d in self.docs if not any(d is f for f in found)]
        return SimpleNamespace(deleted_count=len(found))

    def _apply(self, doc: dict[str, Any], update: dict[str, Any]) -> None:
        for key, amount in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + amount
        for key, value in update.get("$set", {}).items():
            doc[key] = copy.deepcopy(value)
        self._check_unique(doc)


class FakeDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


class FakeMongoClient:
    def __init__(self) -> None:
        self._databases: dict[str, FakeDatabase] = {}
        self.closed = False

    def get_database(self, name: str) -> FakeDatabase:
        if name not in self._databases:
            self._databases[name] = FakeDatabase(name)
        return self._databases[name]

    async def aclose(self) -> None:
        self.closed = True


class FakeImageKitClient:
    """Records delete calls instead of talking to ImageKit."""

    def __init__(self, failing_ids: set[str] | None = None) -> None:
        self.public_key = "public_test"
        self.url_endpoint = "https://ik.imagekit.io/pgtest"
        self.deleted: list[str] = []
        self.failing_ids = failing_ids or set()

    async def delete_file(self, file_id: str) -> None:
        if file_id in self.failing_ids:
            raise ExternalStorageError(f"ImageKit refused to delete {file_id}: 500")
        self.deleted.append(file_id)

    def get_authentication_parameters(self) -> tuple[str, int, str]:
        return "token123", 1700000000, "signature123"

    async def aclose(self) -> None:
        pass


@pytest.fixture
def config():
    """Configuration without ImageKit credentials."""
    return Config(
        database_url="mongodb://localhost:27017/pgregistry_test",
        host="127.0.0.1",
        port=3001,
        debug=True,
        imagekit_url_endpoint="https://ik.imagekit.io/pgtest",
    )


@pytest.fixture
def mongo_client():
    return FakeMongoClient()


@pytest.fixture
async def core(config, mongo_client):
    """Started core backed by the in-memory database."""
    core = Core(config, mongo_client)
    await core.on_start()
    yield core
    await core.on_stop()


@pytest.fixture
def imagekit(core):
    """Fake ImageKit client plugged into the storage service."""
    client = FakeImageKitClient()
    core.services.storage.client = client
    return client


@pytest.fixture
def residents_collection(core) -> FakeCollection:
    return core.database.get_collection("residents")


@pytest.fixture
def resident_fields():
    """Minimal valid resident input."""
    return {"name": "Rahul Kumar", "phone": "9876543210", "room": "A1"}


def legacy_resident_doc(resident_id: UUID, **fields: Any) -> dict[str, Any]:
    """Resident document as stored before serials existed."""
    return {"_id": resident_id, "name": "Old Timer", "room": "Z9", "join_date": now(), "created_at": now(), **fields}


@pytest.fixture
def make_legacy_doc():
    return legacy_resident_doc
