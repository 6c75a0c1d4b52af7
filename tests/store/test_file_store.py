"""Tests for the JSON-file DirectoryStore and SubmissionQueue."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from agentdir.errors import SnapshotLoadError
from agentdir.models import ClaimRecord
from agentdir.monitor.scan import DirectoryScanner
from agentdir.store import FileDirectoryStore, FileSubmissionQueue, load_or_empty
from tests.conftest import FIXED_NOW, SiteTransport, make_prober, manifest_site
from tests.factories import make_item, make_snapshot


@pytest.fixture
def directory_path(tmp_path: Path) -> Path:
    """Snapshot path inside a not-yet-created directory."""
    return tmp_path / "data" / "webmcp_directory.json"


class TestFileDirectoryStore:
    """Snapshots are written atomically as indented JSON."""

    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, directory_path: Path) -> None:
        assert await FileDirectoryStore(directory_path).load() is None

    @pytest.mark.asyncio
    async def test_save_then_load(self, directory_path: Path) -> None:
        store = FileDirectoryStore(directory_path)
        snapshot = make_snapshot(make_item("b.com"), make_item("a.com", confidence=70))
        await store.save(snapshot)

        loaded = await store.load()
        assert loaded is not None
        assert [i.domain for i in loaded.items] == ["a.com", "b.com"]
        assert loaded.get("a.com").confidence == 70
        text = directory_path.read_text(encoding="utf-8")
        assert text.startswith('{\n  "updated_at"')

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, directory_path: Path) -> None:
        store = FileDirectoryStore(directory_path)
        await store.save(make_snapshot(make_item()))
        await store.save(make_snapshot(make_item("other.com")))
        assert [p.name for p in directory_path.parent.iterdir()] == [directory_path.name]

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, directory_path: Path) -> None:
        directory_path.parent.mkdir(parents=True)
        directory_path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(SnapshotLoadError):
            await FileDirectoryStore(directory_path).load()

    @pytest.mark.asyncio
    async def test_corrupt_file_falls_back_to_empty(self, directory_path: Path) -> None:
        directory_path.parent.mkdir(parents=True)
        directory_path.write_text('{"items": "nope"}', encoding="utf-8")
        snapshot = await load_or_empty(FileDirectoryStore(directory_path), lambda: FIXED_NOW)
        assert snapshot.items == []
        assert snapshot.updated_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_non_utf8_file_falls_back_to_empty(self, directory_path: Path) -> None:
        directory_path.parent.mkdir(parents=True)
        directory_path.write_bytes(b'{"updated_at": "\xff\xfe", "items": []}')
        with pytest.raises(SnapshotLoadError):
            await FileDirectoryStore(directory_path).load()
        snapshot = await load_or_empty(FileDirectoryStore(directory_path), lambda: FIXED_NOW)
        assert snapshot.items == []

    @pytest.mark.asyncio
    async def test_legacy_fail_streak_in_notes(self, directory_path: Path) -> None:
        directory_path.parent.mkdir(parents=True)
        legacy = {
            "updated_at": FIXED_NOW.isoformat(),
            "items": [
                {
                    "domain": "legacy.com",
                    "last_checked": FIXED_NOW.isoformat(),
                    "last_seen": FIXED_NOW.isoformat(),
                    "notes": "imported fail_streak:3",
                }
            ],
        }
        directory_path.write_text(json.dumps(legacy), encoding="utf-8")
        snapshot = await FileDirectoryStore(directory_path).load()
        assert snapshot is not None
        assert snapshot.get("legacy.com").fail_streak == 3


class TestFileSubmissionQueue:
    """Claims are kept newest first in a JSON array."""

    @staticmethod
    def _claim(n: int) -> ClaimRecord:
        created = FIXED_NOW + timedelta(minutes=n)
        return ClaimRecord(
            claim_id=f"00000000-0000-4000-8000-{n:012d}",
            created_at=created,
            updated_at=created,
            domain=f"site{n}.com",
            ip="203.0.113.7",
        )

    @pytest.mark.asyncio
    async def test_append_get_and_bound(self, tmp_path: Path) -> None:
        path = tmp_path / "claims.json"
        queue = FileSubmissionQueue(path, max_claims=2)
        for n in range(3):
            await queue.append(self._claim(n))

        recent = await queue.list_recent()
        assert [c.domain for c in recent] == ["site2.com", "site1.com"]
        assert await queue.get(self._claim(0).claim_id) is None
        assert (await queue.get(self._claim(2).claim_id)).ip == "203.0.113.7"
        assert len(json.loads(path.read_text(encoding="utf-8"))) == 2

    @pytest.mark.asyncio
    async def test_unreadable_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "claims.json"
        path.write_text("garbage", encoding="utf-8")
        queue = FileSubmissionQueue(path)
        assert await queue.list_recent() == []
        await queue.append(self._claim(1))
        assert [c.domain for c in await queue.list_recent()] == ["site1.com"]


class TestScanOverFileStore:
    """A scan run over a file store keeps whatever it could load."""

    @pytest.mark.asyncio
    async def test_non_utf8_snapshot_does_not_abort_run(
        self, directory_path: Path, fixed_now: Callable[[], datetime]
    ) -> None:
        directory_path.parent.mkdir(parents=True)
        directory_path.write_bytes(b'{"updated_at": "\xff\xfe", "items": []}')
        store = FileDirectoryStore(directory_path)
        sites = SiteTransport({"example.com": manifest_site()})
        async with make_prober(sites.transport) as prober:
            report = await DirectoryScanner(store, prober, now=fixed_now).run({"example.com": []})
        assert [i.domain for i in report.snapshot.items] == ["example.com"]
        saved = await store.load()
        assert saved is not None
        assert [i.domain for i in saved.items] == ["example.com"]

    @pytest.mark.asyncio
    async def test_item_with_unknown_field_does_not_evict_others(
        self, directory_path: Path, fixed_now: Callable[[], datetime]
    ) -> None:
        store = FileDirectoryStore(directory_path)
        await store.save(make_snapshot(make_item("keep.com"), make_item("odd.com")))
        data = json.loads(directory_path.read_text(encoding="utf-8"))
        data["items"][1]["description"] = "written by a newer version"
        directory_path.write_text(json.dumps(data), encoding="utf-8")

        sites = SiteTransport({"example.com": manifest_site()})
        async with make_prober(sites.transport) as prober:
            await DirectoryScanner(store, prober, now=fixed_now).run({"example.com": []})

        saved = await store.load()
        assert saved is not None
        assert [i.domain for i in saved.items] == ["example.com", "keep.com", "odd.com"]
        assert saved.get("keep.com") == make_item("keep.com")
