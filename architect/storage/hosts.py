# FILE: architect/storage/hosts.py
"""
Remote host contract: where project locations live and how to reach them.

A host creates and discovers locations (GitHub repositories) and opens a
RemoteFileStore bound to one of them.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from architect.errors import ValidationError
from architect.storage.remote_store import RemoteFileStore


def sanitize_repo_name(name: str) -> str:
    """Project name -> repository name: lowercase, [a-z0-9-], no stray dashes."""
    repo = re.sub(r"[^a-z0-9-]", "-", name.strip().lower())
    repo = re.sub(r"-{2,}", "-", repo).strip("-")
    if not repo:
        raise ValidationError(f"Project name {name!r} has no usable characters")
    return repo


@dataclass(frozen=True)
class RemoteLocation:
    """One repository holding one project."""
    owner: str
    name: str
    full_name: str
    url: str = ""
    html_url: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteLocation":
        owner = data.get("owner") or ""
        # GitHub payloads carry owner as an object
        if isinstance(owner, dict):
            owner = owner.get("login", "")
        name = data["name"]
        return cls(
            owner=owner,
            name=name,
            full_name=data.get("full_name") or f"{owner}/{name}",
            url=data.get("url") or "",
            html_url=data.get("html_url") or "",
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class CallerIdentity:
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CallerIdentity":
        return cls(login=data["login"], name=data.get("name"), avatar_url=data.get("avatar_url"))


class RemoteHost(ABC):
    """Creates, tags, discovers and opens project locations."""

    @abstractmethod
    async def create_location(self, name: str, description: str = "", private: bool = True) -> RemoteLocation:
        ...

    @abstractmethod
    async def tag_location(self, location: RemoteLocation) -> None:
        """Mark a location so list_locations() finds it."""

    @abstractmethod
    async def list_locations(self) -> List[RemoteLocation]:
        ...

    @abstractmethod
    def open_store(self, location: RemoteLocation) -> RemoteFileStore:
        ...

    @abstractmethod
    async def fetch_identity(self) -> CallerIdentity:
        ...

    async def aclose(self) -> None:
        return None


__all__ = ["RemoteLocation", "CallerIdentity", "RemoteHost", "sanitize_repo_name"]
