# FILE: architect/projects/models.py
"""
Project domain model.

Design:
    - Dataclass with to_dict()/from_dict() for the local session file
    - Timestamps are aware UTC datetimes in memory and epoch milliseconds in
      remote records
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from architect.errors import ParseError
from architect.storage.hosts import RemoteLocation


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    return (value - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(value: int) -> datetime:
    """Epoch milliseconds -> aware UTC datetime; ParseError when out of range."""
    try:
        return _EPOCH + timedelta(milliseconds=value)
    except (OverflowError, ValueError) as e:
        raise ParseError(f"Timestamp out of range: {value}") from e


def new_project_id() -> str:
    return f"proj-{int(time.time() * 1000)}"


@dataclass(frozen=True)
class Project:
    """A named design held at one remote location."""

    id: str
    name: str
    location: RemoteLocation
    description: str = ""
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)
    latest_version_id: Optional[str] = None

    def touched(self, latest_version_id: Optional[str] = None) -> "Project":
        """Copy with updated_at bumped (and latest version, if given)."""
        return replace(
            self,
            updated_at=now_utc(),
            latest_version_id=latest_version_id or self.latest_version_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "location": self.location.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "latest_version_id": self.latest_version_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            location=RemoteLocation.from_dict(data["location"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            latest_version_id=data.get("latest_version_id"),
        )


__all__ = [
    "Project",
    "new_project_id",
    "now_utc",
    "to_epoch_ms",
    "from_epoch_ms",
]
