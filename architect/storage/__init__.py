# FILE: architect/storage/__init__.py
"""
Remote storage: a file store with conflict-checked writes, and hosts that
create and discover project locations.
"""

from .remote_store import DirEntry, RemoteFile, RemoteFileStore
from .hosts import CallerIdentity, RemoteHost, RemoteLocation, sanitize_repo_name
from .memory_store import InMemoryFileStore, InMemoryHost, blob_fingerprint
from .github_store import GitHubContentStore, GitHubHost

__all__ = [
    "DirEntry",
    "RemoteFile",
    "RemoteFileStore",
    "CallerIdentity",
    "RemoteHost",
    "RemoteLocation",
    "sanitize_repo_name",
    "InMemoryFileStore",
    "InMemoryHost",
    "blob_fingerprint",
    "GitHubContentStore",
    "GitHubHost",
]
