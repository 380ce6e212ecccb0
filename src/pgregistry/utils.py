from datetime import UTC, datetime


def now() -> datetime:
    """Current time as an aware UTC datetime, used for every stored timestamp."""
    return datetime.now(UTC)
