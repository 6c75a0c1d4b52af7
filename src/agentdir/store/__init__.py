"""agentdir storage backends.

This package provides DirectoryStore and SubmissionQueue implementations:
- InMemoryDirectoryStore, InMemorySubmissionQueue (from store.memory)
- FileDirectoryStore, FileSubmissionQueue (from store.file)
- SQLiteDirectoryStore, SQLiteSubmissionQueue (from store.sqlite)

Factories:
- create_directory_store() / create_submission_queue() build a backend from
  AGENTDIR_STORAGE_BACKEND (file, sqlite, memory; default file) and
  AGENTDIR_STORAGE_PATH.
"""

import os
from pathlib import Path

from agentdir.store.file import (
    DEFAULT_DIRECTORY_PATH,
    DEFAULT_SUBMISSIONS_PATH,
    FileDirectoryStore,
    FileSubmissionQueue,
)
from agentdir.store.memory import InMemoryDirectoryStore, InMemorySubmissionQueue
from agentdir.store.snapshot import (
    MAX_QUEUED_CLAIMS,
    DirectoryStore,
    SubmissionQueue,
    dump_snapshot_json,
    empty_snapshot,
    load_or_empty,
    parse_snapshot_json,
)
from agentdir.store.sqlite import DEFAULT_DB_PATH, SQLiteDirectoryStore, SQLiteSubmissionQueue

AGENTDIR_STORAGE_BACKEND_ENV = "AGENTDIR_STORAGE_BACKEND"
AGENTDIR_STORAGE_PATH_ENV = "AGENTDIR_STORAGE_PATH"
AGENTDIR_SUBMISSIONS_PATH_ENV = "AGENTDIR_SUBMISSIONS_PATH"

_BACKENDS = ("file", "sqlite", "memory")


def _resolve_backend(backend: str | None) -> str:
    value = (backend or os.environ.get(AGENTDIR_STORAGE_BACKEND_ENV, "file")).strip().lower()
    if value not in _BACKENDS:
        raise ValueError(
            f"Unknown {AGENTDIR_STORAGE_BACKEND_ENV}={value!r}. Use 'file', 'sqlite' or 'memory'."
        )
    return value


def create_directory_store(
    backend: str | None = None, path: str | Path | None = None
) -> DirectoryStore:
    """Create a DirectoryStore from arguments or environment.

    Reads AGENTDIR_STORAGE_BACKEND (default "file") and AGENTDIR_STORAGE_PATH
    (default "data/webmcp_directory.json" for file, "agentdir.db" for sqlite).

    Raises:
        ValueError: If the backend is not "file", "sqlite" or "memory".
    """
    kind = _resolve_backend(backend)
    raw_path = path or os.environ.get(AGENTDIR_STORAGE_PATH_ENV, "").strip() or None
    if kind == "memory":
        return InMemoryDirectoryStore()
    if kind == "sqlite":
        return SQLiteDirectoryStore(db_path=raw_path or DEFAULT_DB_PATH)
    return FileDirectoryStore(path=raw_path or DEFAULT_DIRECTORY_PATH)


def create_submission_queue(
    backend: str | None = None, path: str | Path | None = None
) -> SubmissionQueue:
    """Create a SubmissionQueue from arguments or environment.

    The sqlite backend shares AGENTDIR_STORAGE_PATH with the directory store;
    the file backend uses AGENTDIR_SUBMISSIONS_PATH
    (default "data/webmcp_submissions.json").
    """
    kind = _resolve_backend(backend)
    if kind == "memory":
        return InMemorySubmissionQueue()
    if kind == "sqlite":
        raw_path = path or os.environ.get(AGENTDIR_STORAGE_PATH_ENV, "").strip() or None
        return SQLiteSubmissionQueue(db_path=raw_path or DEFAULT_DB_PATH)
    raw_path = path or os.environ.get(AGENTDIR_SUBMISSIONS_PATH_ENV, "").strip() or None
    return FileSubmissionQueue(path=raw_path or DEFAULT_SUBMISSIONS_PATH)


__all__ = [
    "MAX_QUEUED_CLAIMS",
    "DirectoryStore",
    "FileDirectoryStore",
    "FileSubmissionQueue",
    "InMemoryDirectoryStore",
    "InMemorySubmissionQueue",
    "SQLiteDirectoryStore",
    "SQLiteSubmissionQueue",
    "SubmissionQueue",
    "create_directory_store",
    "create_submission_queue",
    "dump_snapshot_json",
    "empty_snapshot",
    "load_or_empty",
    "parse_snapshot_json",
]
