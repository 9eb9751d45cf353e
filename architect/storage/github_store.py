# FILE: architect/storage/github_store.py
"""
GitHub adapter: repository contents API as a RemoteFileStore, and the
repositories/topics/search APIs as a RemoteHost.

Wire details:
    - File bodies travel base64-encoded; the blob sha is the fingerprint
    - Files too large for inline content come back with encoding "none" and
      are re-fetched with the raw media type
    - 404 -> RemoteStoreNotFound
    - 409, or 422 complaining about "sha" -> RemoteStoreConflict
    - any other non-2xx or transport failure -> RemoteStoreError
"""
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from architect.config import ArchitectConfig
from architect.errors import (
    RemoteStoreConflict,
    RemoteStoreError,
    RemoteStoreNotFound,
    RemoteStoreTimeout,
    ValidationError,
)
from architect.storage.hosts import CallerIdentity, RemoteHost, RemoteLocation, sanitize_repo_name
from architect.storage.remote_store import DirEntry, RemoteFile, RemoteFileStore

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"
JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"


# =============================================================================
# HTTP CLIENT
# =============================================================================

class GitHubClient:
    """Thin wrapper over httpx.AsyncClient that maps failures to store errors."""

    def __init__(
        self,
        token: str,
        api_base: str = "https://api.github.com",
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ValidationError("GITHUB_TOKEN not set")
        self._client = httpx.AsyncClient(
            base_url=api_base.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": JSON_MEDIA_TYPE,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
                "User-Agent": "architectai-core",
            },
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )

    async def request(self, method: str, url: str, *, path: Optional[str] = None, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteStoreTimeout(f"GitHub {method} {url} timed out", path=path) from e
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"GitHub {method} {url} failed: {e}", path=path) from e

        if resp.is_success:
            return resp

        message = _error_message(resp)
        status = resp.status_code
        if status == 404:
            raise RemoteStoreNotFound(f"Not found: {path or url}", path=path, status_code=status)
        if status == 409 or (status == 422 and "sha" in message.lower()):
            raise RemoteStoreConflict(f"Conflict on {path or url}: {message}", path=path, status_code=status)
        raise RemoteStoreError(f"GitHub {method} {url} returned {status}: {message}", path=path, status_code=status)

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body)
    return str(body)[:200]


def _contents_url(full_name: str, path: str) -> str:
    return f"/repos/{full_name}/contents/{quote(path.strip('/'), safe='/')}"


# =============================================================================
# FILE STORE
# =============================================================================

class GitHubContentStore(RemoteFileStore):
    """RemoteFileStore over one repository's contents API."""

    def __init__(self, client: GitHubClient, location: RemoteLocation, timeout_s: Optional[float] = 30.0):
        super().__init__(timeout_s=timeout_s)
        self._client = client
        self.location = location

    async def _read(self, path: str) -> RemoteFile:
        url = _contents_url(self.location.full_name, path)
        resp = await self._client.request("GET", url, path=path)
        body = resp.json()
        if not isinstance(body, dict) or body.get("type", "file") != "file":
            raise RemoteStoreError(f"{path} is not a file", path=path)

        sha = body["sha"]
        if body.get("encoding") == "base64" and body.get("content") is not None:
            content = base64.b64decode(body["content"])
        else:
            # Over the inline size limit: fetch the raw bytes.
            raw = await self._client.request("GET", url, path=path, headers={"Accept": RAW_MEDIA_TYPE})
            content = raw.content
        return RemoteFile(path=path.strip("/"), content=content, fingerprint=sha)

    async def _write(self, path: str, content: bytes, expected_fingerprint: Optional[str], message: str) -> str:
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
        }
        if expected_fingerprint:
            payload["sha"] = expected_fingerprint
        resp = await self._client.request(
            "PUT", _contents_url(self.location.full_name, path), path=path, json=payload
        )
        sha = resp.json()["content"]["sha"]
        logger.debug(f"[store] github write {self.location.full_name}:{path} -> {sha[:8]}")
        return sha

    async def _list(self, directory: str) -> List[DirEntry]:
        try:
            resp = await self._client.request(
                "GET", _contents_url(self.location.full_name, directory), path=directory
            )
        except RemoteStoreNotFound:
            return []
        body = resp.json()
        if not isinstance(body, list):
            # A file sits at this path
            return []
        return [DirEntry(name=item["name"], is_directory=item.get("type") == "dir") for item in body]


# =============================================================================
# HOST
# =============================================================================

class GitHubHost(RemoteHost):
    """Repositories owned by the authenticated user, tagged with a topic."""

    def __init__(self, config: ArchitectConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.client = GitHubClient(
            token=config.github_token or "",
            api_base=config.github_api,
            timeout_s=config.store_timeout_s,
            transport=transport,
        )

    async def create_location(self, name: str, description: str = "", private: bool = True) -> RemoteLocation:
        repo = sanitize_repo_name(name)
        resp = await self.client.request(
            "POST",
            "/user/repos",
            path=repo,
            json={"name": repo, "description": description, "private": private, "auto_init": True},
        )
        location = RemoteLocation.from_dict(resp.json())
        logger.info(f"[store] Created repository {location.full_name}")
        return location

    async def tag_location(self, location: RemoteLocation) -> None:
        await self.client.request(
            "PUT",
            f"/repos/{location.full_name}/topics",
            path=location.full_name,
            json={"names": [self.config.project_topic]},
        )

    async def list_locations(self) -> List[RemoteLocation]:
        identity = await self.fetch_identity()
        resp = await self.client.request(
            "GET",
            "/search/repositories",
            params={"q": f"user:{identity.login} topic:{self.config.project_topic}", "sort": "updated"},
        )
        items = resp.json().get("items", [])
        return [RemoteLocation.from_dict(item) for item in items]

    def open_store(self, location: RemoteLocation) -> GitHubContentStore:
        return GitHubContentStore(self.client, location, timeout_s=self.config.store_timeout_s)

    async def fetch_identity(self) -> CallerIdentity:
        resp = await self.client.request("GET", "/user")
        return CallerIdentity.from_dict(resp.json())

    async def aclose(self) -> None:
        await self.client.aclose()


__all__ = [
    "GitHubClient",
    "GitHubContentStore",
    "GitHubHost",
    "GITHUB_API_VERSION",
    "RAW_MEDIA_TYPE",
]
