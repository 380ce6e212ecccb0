"""Auto-incrementing counters for sequential numbering."""

from enum import StrEnum

from pgregistry.core.db import MongoModel


class CounterKey(StrEnum):
    """Keys of the singleton counters, one per numbered domain."""

    RESIDENT = "student_serial"


class Counter(MongoModel):
    """Atomic counter holding the last issued serial.

    Uses MongoDB atomic operations to prevent duplicates.
    Indexed on key - unique.
    """

    key: CounterKey
    seq: int = 0  # Last issued value; next serial will be seq + 1
