"""JSON-file DirectoryStore and SubmissionQueue (the default local backend)."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from agentdir.errors import SnapshotLoadError
from agentdir.models import ClaimRecord, DirectorySnapshot
from agentdir.observability import get_logger
from agentdir.store.snapshot import MAX_QUEUED_CLAIMS, dump_snapshot_json, parse_snapshot_json

logger = get_logger(__name__)

DEFAULT_DIRECTORY_PATH = Path("data") / "webmcp_directory.json"
DEFAULT_SUBMISSIONS_PATH = Path("data") / "webmcp_submissions.json"

_CLAIM_LIST = TypeAdapter(list[ClaimRecord])


def _atomic_write_text(path: Path, text: str) -> None:
    """Write text to a sibling temp file, then rename it over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileDirectoryStore:
    """Stores the snapshot as one pretty-printed JSON document.

    Writes go through a temp file and ``os.replace`` so readers never observe
    a half-written snapshot.
    """

    def __init__(self, path: str | Path = DEFAULT_DIRECTORY_PATH) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load_sync(self) -> DirectorySnapshot | None:
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise SnapshotLoadError(str(self._path), str(exc)) from exc
        return parse_snapshot_json(raw, str(self._path))

    async def load(self) -> DirectorySnapshot | None:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, snapshot: DirectorySnapshot) -> None:
        await asyncio.to_thread(_atomic_write_text, self._path, dump_snapshot_json(snapshot))
        logger.info("agentdir.store.saved", path=str(self._path), items=len(snapshot.items))


class FileSubmissionQueue:
    """Stores claims as a JSON array (newest first) in a local file."""

    def __init__(
        self,
        path: str | Path = DEFAULT_SUBMISSIONS_PATH,
        max_claims: int = MAX_QUEUED_CLAIMS,
    ) -> None:
        self._path = Path(path)
        self._max_claims = max_claims

    def _read_sync(self) -> list[ClaimRecord]:
        if not self._path.exists():
            return []
        try:
            return _CLAIM_LIST.validate_json(self._path.read_bytes())
        except (OSError, ValidationError) as exc:
            logger.warning("agentdir.submissions.load_failed", path=str(self._path), error=str(exc))
            return []

    def _append_sync(self, record: ClaimRecord) -> None:
        records = [record, *self._read_sync()][: self._max_claims]
        payload = [r.model_dump(mode="json") for r in records]
        _atomic_write_text(self._path, json.dumps(payload, indent=2) + "\n")

    async def append(self, record: ClaimRecord) -> None:
        await asyncio.to_thread(self._append_sync, record)

    async def get(self, claim_id: str) -> ClaimRecord | None:
        for record in await asyncio.to_thread(self._read_sync):
            if record.claim_id == claim_id:
                return record
        return None

    async def list_recent(self, limit: int = MAX_QUEUED_CLAIMS) -> list[ClaimRecord]:
        records = await asyncio.to_thread(self._read_sync)
        return records[:limit]
