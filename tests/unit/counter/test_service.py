"""Tests for serial allocation."""

import asyncio

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from pgregistry.core.modules.counter.models import CounterKey
from pgregistry.core.modules.counter.service import UPSERT_ATTEMPTS
from pgregistry.errors import AllocationError


class TestGetNextSequence:
    """Tests for CounterService.get_next_sequence."""

    async def test_first_allocation_returns_one(self, core):
        """Test that an empty system starts numbering at 1."""
        assert await core.services.counter.get_next_sequence(CounterKey.RESIDENT) == 1

    async def test_allocations_increment_by_one(self, core):
        """Test that consecutive allocations are strictly increasing without gaps."""
        counter = core.services.counter
        values = [await counter.get_next_sequence(CounterKey.RESIDENT) for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    async def test_concurrent_allocations_are_distinct(self, core, monkeypatch):
        """Test that interleaved allocations never hand out the same value."""
        counter = core.services.counter
        original = counter._collection.find_one_and_update

        async def yielding_update(*args, **kwargs):
            # Let every other allocation reach the store before this one runs
            await asyncio.sleep(0)
            return await original(*args, **kwargs)

        monkeypatch.setattr(counter._collection, "find_one_and_update", yielding_update)
        values = await asyncio.gather(*(counter.get_next_sequence(CounterKey.RESIDENT) for _ in range(20)))
        assert sorted(values) == list(range(1, 21))

    async def test_single_counter_document(self, core):
        """Test that the counter is stored as one document under its key."""
        await core.services.counter.get_next_sequence(CounterKey.RESIDENT)
        await core.services.counter.get_next_sequence(CounterKey.RESIDENT)
        docs = core.database.get_collection("counters").docs
        assert len(docs) == 1
        assert docs[0]["key"] == "student_serial"
        assert docs[0]["seq"] == 2

    async def test_store_failure_raises_allocation_error(self, core, monkeypatch):
        """Test that a store error is reported as AllocationError."""

        async def failing_update(*args, **kwargs):
            raise AutoReconnect("connection lost")

        monkeypatch.setattr(core.services.counter._collection, "find_one_and_update", failing_update)
        with pytest.raises(AllocationError):
            await core.services.counter.get_next_sequence(CounterKey.RESIDENT)

    async def test_upsert_conflict_is_retried(self, core, monkeypatch):
        """Test that losing the first-allocation upsert race retries and returns the value."""
        collection = core.services.counter._collection
        original = collection.find_one_and_update
        calls = []

        async def conflict_once(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise DuplicateKeyError("E11000 duplicate key error collection: counters index: key_1")
            return await original(*args, **kwargs)

        monkeypatch.setattr(collection, "find_one_and_update", conflict_once)
        assert await core.services.counter.get_next_sequence(CounterKey.RESIDENT) == 1
        assert len(calls) == 2

    async def test_repeated_upsert_conflict_raises_allocation_error(self, core, monkeypatch):
        """Test that conflicting on every attempt gives up with AllocationError."""
        calls = []

        async def always_conflict(*args, **kwargs):
            calls.append(args)
            raise DuplicateKeyError("E11000 duplicate key error collection: counters index: key_1")

        monkeypatch.setattr(core.services.counter._collection, "find_one_and_update", always_conflict)
        with pytest.raises(AllocationError):
            await core.services.counter.get_next_sequence(CounterKey.RESIDENT)
        assert len(calls) == UPSERT_ATTEMPTS

    async def test_missing_result_raises_allocation_error(self, core, monkeypatch):
        """Test that an increment returning no document is a failure."""

        async def empty_update(*args, **kwargs):
            return None

        monkeypatch.setattr(core.services.counter._collection, "find_one_and_update", empty_update)
        with pytest.raises(AllocationError):
            await core.services.counter.get_next_sequence(CounterKey.RESIDENT)


class TestGetCurrentSequence:
    """Tests for CounterService.get_current_sequence."""

    async def test_zero_before_first_allocation(self, core):
        """Test that an unused counter reports 0."""
        assert await core.services.counter.get_current_sequence(CounterKey.RESIDENT) == 0

    async def test_does_not_increment(self, core):
        """Test that reading the counter leaves it unchanged."""
        await core.services.counter.get_next_sequence(CounterKey.RESIDENT)
        assert await core.services.counter.get_current_sequence(CounterKey.RESIDENT) == 1
        assert await core.services.counter.get_current_sequence(CounterKey.RESIDENT) == 1
        assert await core.services.counter.get_next_sequence(CounterKey.RESIDENT) == 2
