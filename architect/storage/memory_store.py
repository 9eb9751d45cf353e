# FILE: architect/storage/memory_store.py
"""
In-memory RemoteFileStore and RemoteHost.

Same conflict semantics as the GitHub adapter, with git blob SHA-1 as the
fingerprint. Used offline and by the test suite; failures can be injected per
path prefix.
"""
from __future__ import annotations

import hashlib
import logging
from typing import Dict, List, Optional, Set

from architect.errors import RemoteStoreConflict, RemoteStoreError, RemoteStoreNotFound
from architect.storage.hosts import CallerIdentity, RemoteHost, RemoteLocation, sanitize_repo_name
from architect.storage.remote_store import DirEntry, RemoteFile, RemoteFileStore

logger = logging.getLogger(__name__)


def blob_fingerprint(content: bytes) -> str:
    """Git blob SHA-1, the value GitHub reports as a file's sha."""
    header = b"blob %d\0" % len(content)
    return hashlib.sha1(header + content).hexdigest()


class InMemoryFileStore(RemoteFileStore):
    def __init__(self, timeout_s: Optional[float] = 30.0):
        super().__init__(timeout_s=timeout_s)
        self.files: Dict[str, bytes] = {}
        self.write_log: List[str] = []
        self._failures: Dict[str, RemoteStoreError] = {}

    # ------------------------------------------------------------------
    # Test hooks
    # ------------------------------------------------------------------

    def fail_on(self, path_prefix: str, error: Optional[RemoteStoreError] = None) -> None:
        """Make reads and writes under path_prefix raise error."""
        self._failures[path_prefix.strip("/")] = error or RemoteStoreError(
            f"Injected failure for {path_prefix}", path=path_prefix
        )

    def clear_failures(self) -> None:
        self._failures.clear()

    def _check_failure(self, path: str) -> None:
        for prefix, error in self._failures.items():
            if path.startswith(prefix):
                raise error

    # ------------------------------------------------------------------
    # RemoteFileStore hooks
    # ------------------------------------------------------------------

    async def _read(self, path: str) -> RemoteFile:
        path = path.strip("/")
        self._check_failure(path)
        if path not in self.files:
            raise RemoteStoreNotFound(f"Not found: {path}", path=path, status_code=404)
        content = self.files[path]
        return RemoteFile(path=path, content=content, fingerprint=blob_fingerprint(content))

    async def _write(self, path: str, content: bytes, expected_fingerprint: Optional[str], message: str) -> str:
        path = path.strip("/")
        self._check_failure(path)
        existing = self.files.get(path)

        if existing is None and expected_fingerprint is not None:
            raise RemoteStoreConflict(f"{path} does not exist but a sha was supplied", path=path, status_code=422)
        if existing is not None:
            current = blob_fingerprint(existing)
            if expected_fingerprint is None:
                raise RemoteStoreConflict(f"{path} already exists; sha required", path=path, status_code=422)
            if expected_fingerprint != current:
                raise RemoteStoreConflict(f"{path} does not match {expected_fingerprint}", path=path, status_code=409)

        self.files[path] = content
        self.write_log.append(path)
        logger.debug(f"[store] memory write {path} ({len(content)} bytes): {message}")
        return blob_fingerprint(content)

    async def _list(self, directory: str) -> List[DirEntry]:
        self._check_failure(directory)
        prefix = f"{directory}/" if directory else ""
        entries: Dict[str, bool] = {}
        for path in self.files:
            if not path.startswith(prefix):
                continue
            head, sep, _ = path[len(prefix):].partition("/")
            entries[head] = entries.get(head, False) or bool(sep)
        return [DirEntry(name=name, is_directory=is_dir) for name, is_dir in sorted(entries.items())]


class InMemoryHost(RemoteHost):
    """Host whose locations are InMemoryFileStores keyed by full name."""

    def __init__(self, login: str = "octocat", store_timeout_s: Optional[float] = 30.0):
        self.identity = CallerIdentity(login=login, name=login)
        self.store_timeout_s = store_timeout_s
        self.locations: Dict[str, RemoteLocation] = {}
        self.stores: Dict[str, InMemoryFileStore] = {}
        self.tagged: Set[str] = set()

    async def create_location(self, name: str, description: str = "", private: bool = True) -> RemoteLocation:
        repo = sanitize_repo_name(name)
        full_name = f"{self.identity.login}/{repo}"
        if full_name in self.locations:
            raise RemoteStoreConflict(f"Repository {full_name} already exists", path=full_name, status_code=422)
        location = RemoteLocation(
            owner=self.identity.login,
            name=repo,
            full_name=full_name,
            url=f"memory://{full_name}",
            html_url=f"memory://{full_name}",
            description=description,
        )
        self.locations[full_name] = location
        self.stores[full_name] = InMemoryFileStore(timeout_s=self.store_timeout_s)
        return location

    async def tag_location(self, location: RemoteLocation) -> None:
        self.tagged.add(location.full_name)

    async def list_locations(self) -> List[RemoteLocation]:
        return [loc for name, loc in self.locations.items() if name in self.tagged]

    def open_store(self, location: RemoteLocation) -> InMemoryFileStore:
        store = self.stores.get(location.full_name)
        if store is None:
            raise RemoteStoreNotFound(f"Unknown location {location.full_name}", path=location.full_name, status_code=404)
        return store

    async def fetch_identity(self) -> CallerIdentity:
        return self.identity


__all__ = ["InMemoryFileStore", "InMemoryHost", "blob_fingerprint"]
