"""Human-facing resident identifiers (``SMA-00042``).

The label is always recomputed from the record, never read back from storage:
the serial wins when present, otherwise a stable value is derived from the
tail of the opaque record id so list and detail views agree without a lookup.
"""

import re
from uuid import UUID

DISPLAY_ID_PREFIX = "SMA-"
DISPLAY_ID_WIDTH = 5  # Minimum width, larger serials are never truncated
LEGACY_TAIL_LENGTH = 5
LEGACY_MODULUS = 100_000
LEGACY_TAIL_RE = re.compile(rf"[0-9a-fA-F]{{{LEGACY_TAIL_LENGTH}}}")


def format_serial(serial: int) -> str:
    """Format a serial as a display id, e.g. 42 -> SMA-00042."""
    return f"{DISPLAY_ID_PREFIX}{serial:0{DISPLAY_ID_WIDTH}d}"


def legacy_display_id(opaque_id: UUID | str | None) -> str:
    """Derive a display id from the trailing hex digits of an opaque record id.

    Returns an empty string when the id is missing or its tail is not hexadecimal.
    """
    if not opaque_id:
        return ""
    tail = str(opaque_id)[-LEGACY_TAIL_LENGTH:]
    # int(x, 16) alone would also take signs, underscores and whitespace
    if not LEGACY_TAIL_RE.fullmatch(tail):
        return ""
    return format_serial(int(tail, 16) % LEGACY_MODULUS)


def resolve_display_id(serial: int | None, opaque_id: UUID | str | None) -> str:
    """Resolve the display id from a serial, falling back to the opaque id."""
    if serial is not None:
        return format_serial(serial)
    return legacy_display_id(opaque_id)
