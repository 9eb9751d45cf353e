# FILE: architect/storage/remote_store.py
"""
Remote file store contract.

A content-addressed host offering single-file read, write-with-conflict-check
and directory listing. No multi-file transactions exist at this boundary.

Write semantics (expected_fingerprint = what the caller last read):
    path absent,  no fingerprint      -> create
    path present, matching fingerprint -> replace
    path present, no fingerprint       -> RemoteStoreConflict
    fingerprint mismatch               -> RemoteStoreConflict
    path absent,  fingerprint supplied -> RemoteStoreConflict

upsert() is the compare-and-swap primitive built on top; callers use it instead
of hand-rolling read-then-write.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, List, Optional, TypeVar

from architect.errors import RemoteStoreNotFound, RemoteStoreTimeout
from architect.pipeline.deadline import run_bounded

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteFile:
    path: str
    content: bytes
    fingerprint: str


@dataclass(frozen=True)
class DirEntry:
    name: str
    is_directory: bool


class RemoteFileStore(ABC):
    """Bounded-wait file operations against one remote location."""

    def __init__(self, timeout_s: Optional[float] = 30.0):
        self.timeout_s = timeout_s

    async def _bounded(self, awaitable: Awaitable[T], label: str) -> T:
        return await run_bounded(
            awaitable,
            timeout_s=self.timeout_s,
            label=label,
            timeout_error=RemoteStoreTimeout,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def read(self, path: str) -> RemoteFile:
        """Read one file; raises RemoteStoreNotFound."""
        return await self._bounded(self._read(path), f"read {path}")

    async def write(
        self,
        path: str,
        content: bytes,
        expected_fingerprint: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        """Create or replace one file; returns the new fingerprint."""
        return await self._bounded(
            self._write(path, bytes(content), expected_fingerprint, message or f"Update {path}"),
            f"write {path}",
        )

    async def list(self, directory: str) -> List[DirEntry]:
        """List a directory; a missing directory is an empty list."""
        return await self._bounded(self._list(directory.strip("/")), f"list {directory}")

    async def upsert(self, path: str, content: bytes, message: Optional[str] = None) -> str:
        """Write content whatever is there now, using the current fingerprint."""
        try:
            current = await self.read(path)
            fingerprint: Optional[str] = current.fingerprint
        except RemoteStoreNotFound:
            fingerprint = None
        return await self.write(path, content, expected_fingerprint=fingerprint, message=message)

    # ------------------------------------------------------------------
    # Implementation hooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def _read(self, path: str) -> RemoteFile:
        ...

    @abstractmethod
    async def _write(self, path: str, content: bytes, expected_fingerprint: Optional[str], message: str) -> str:
        ...

    @abstractmethod
    async def _list(self, directory: str) -> List[DirEntry]:
        ...


__all__ = ["RemoteFile", "DirEntry", "RemoteFileStore"]
