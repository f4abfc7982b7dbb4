from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_slug(value: Optional[datetime] = None) -> str:
    """Return a filesystem-safe UTC timestamp such as `2024-05-01_13-45-09`."""
    dt = value or utcnow()
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%d_%H-%M-%S")
