"""Domain models for the user management service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def current_timestamp() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class User:
    """Represents a user account.

    ``id`` stays ``None`` until a repository persists the user.
    """

    name: str
    email: str
    created_at: datetime = field(default_factory=current_timestamp)
    id: Optional[int] = None


__all__ = ["User", "current_timestamp"]
