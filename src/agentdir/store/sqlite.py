"""SQLite-backed DirectoryStore and SubmissionQueue (persistent key-value backend).

The snapshot is stored as one JSON payload under a fixed key, so SQLite acts
as a simple key-value store; claims get one row each.
"""

from __future__ import annotations

import json
from pathlib import Path

import aiosqlite

from agentdir.models import ClaimRecord, DirectorySnapshot
from agentdir.observability import get_logger
from agentdir.store.snapshot import MAX_QUEUED_CLAIMS, dump_snapshot_json, parse_snapshot_json

logger = get_logger(__name__)

DEFAULT_DB_PATH = "agentdir.db"
SNAPSHOTS_TABLE = "directory_snapshots"
CLAIMS_TABLE = "claims"
DEFAULT_SNAPSHOT_KEY = "webmcp_directory"


class SQLiteDirectoryStore:
    """Stores the snapshot as a JSON payload in a SQLite table.

    Each ``load``/``save`` opens its own connection; the single-writer
    contract of DirectoryStore still applies.
    """

    def __init__(
        self,
        db_path: str | Path = DEFAULT_DB_PATH,
        key: str = DEFAULT_SNAPSHOT_KEY,
    ) -> None:
        self._db_path = Path(db_path)
        self._key = key

    async def _ensure_table(self, conn: aiosqlite.Connection) -> None:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {SNAPSHOTS_TABLE} (
                key TEXT PRIMARY KEY,
                updated_at TEXT NOT NULL,
                payload TEXT NOT NULL
            )
            """
        )
        await conn.commit()

    async def load(self) -> DirectorySnapshot | None:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            cursor = await conn.execute(
                f"SELECT payload FROM {SNAPSHOTS_TABLE} WHERE key = ?",
                (self._key,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return parse_snapshot_json(row[0], f"{self._db_path}#{self._key}")

    async def save(self, snapshot: DirectorySnapshot) -> None:
        payload = dump_snapshot_json(snapshot)
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            await conn.execute(
                f"""
                INSERT OR REPLACE INTO {SNAPSHOTS_TABLE} (key, updated_at, payload)
                VALUES (?, ?, ?)
                """,
                (self._key, snapshot.updated_at.isoformat(), payload),
            )
            await conn.commit()
        logger.info(
            "agentdir.store.saved",
            path=str(self._db_path),
            key=self._key,
            items=len(snapshot.items),
        )


class SQLiteSubmissionQueue:
    """Stores claims one row per claim, trimmed to the newest ``max_claims``."""

    def __init__(
        self,
        db_path: str | Path = DEFAULT_DB_PATH,
        max_claims: int = MAX_QUEUED_CLAIMS,
    ) -> None:
        self._db_path = Path(db_path)
        self._max_claims = max_claims

    async def _ensure_table(self, conn: aiosqlite.Connection) -> None:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {CLAIMS_TABLE} (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                claim_id TEXT NOT NULL UNIQUE,
                payload TEXT NOT NULL
            )
            """
        )
        await conn.commit()

    async def append(self, record: ClaimRecord) -> None:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            await conn.execute(
                f"INSERT OR REPLACE INTO {CLAIMS_TABLE} (claim_id, payload) VALUES (?, ?)",
                (record.claim_id, json.dumps(record.model_dump(mode="json"))),
            )
            await conn.execute(
                f"""
                DELETE FROM {CLAIMS_TABLE} WHERE seq NOT IN (
                    SELECT seq FROM {CLAIMS_TABLE} ORDER BY seq DESC LIMIT ?
                )
                """,
                (self._max_claims,),
            )
            await conn.commit()

    async def get(self, claim_id: str) -> ClaimRecord | None:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            cursor = await conn.execute(
                f"SELECT payload FROM {CLAIMS_TABLE} WHERE claim_id = ?",
                (claim_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return ClaimRecord.model_validate_json(row[0])

    async def list_recent(self, limit: int = MAX_QUEUED_CLAIMS) -> list[ClaimRecord]:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            cursor = await conn.execute(
                f"SELECT payload FROM {CLAIMS_TABLE} ORDER BY seq DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
        return [ClaimRecord.model_validate_json(row[0]) for row in rows]
