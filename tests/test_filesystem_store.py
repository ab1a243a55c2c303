"""Tests for the filesystem run store."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from store.base import RunCatalog
from store.errors import (
    ConfigurationWarning,
    InvalidRunKey,
    NotFound,
    ReadFailure,
    UnserializablePayload,
    WriteFailure,
)
from store.filesystem import FileRunStore
from store.naming import RUN_SUFFIX


@pytest.fixture
def store(tmp_path: Path) -> FileRunStore:
    return FileRunStore(tmp_path)


def _set_mtime(path: str | Path, timestamp: float) -> None:
    os.utime(path, (timestamp, timestamp))


class TestSaveAndGet:
    def test_example_scenario(self, store: FileRunStore) -> None:
        payload = {"main==>foo": {"ct": 1, "wt": 120}}
        run_id = store.save(payload, "unit-test")

        result = store.get(run_id, "unit-test")

        assert result.found
        assert result.payload == payload
        assert "unit-test" in result.description
        assert result.as_tuple() == (payload, result.description)

    def test_file_written_with_structured_name(self, store: FileRunStore, tmp_path: Path) -> None:
        run_id = store.save({"a": 1}, "web", run_id="abc")

        assert run_id == "abc"
        assert (tmp_path / f"abc.web.{RUN_SUFFIX}").is_file()
        assert store.exists("abc", "web")
        assert not store.exists("abc", "cli")

    def test_nested_payload_round_trip(self, store: FileRunStore) -> None:
        payload = {
            "main()": {"ct": 1, "wt": 500, "mu": 1024},
            "main()==>load": {"ct": 2, "wt": 300, "samples": [1, 2, (3, 4)]},
            "meta": {"host": "web-1", "tags": ["a", "b"], "ok": True, "ratio": 0.25, "none": None},
        }
        run_id = store.save(payload, "app")

        assert store.get(run_id, "app").payload == payload

    def test_scalar_payloads(self, store: FileRunStore) -> None:
        for payload in (0, "text", None, [1, 2], 3.5):
            run_id = store.save(payload, "scalars")
            result = store.get(run_id, "scalars")
            assert result.found
            assert result.payload == payload

    def test_overwrite_same_id(self, store: FileRunStore) -> None:
        store.save({"v": 1}, "app", run_id="X")
        store.save({"v": 2}, "app", run_id="X")

        assert store.get("X", "app").payload == {"v": 2}
        assert len(store.list_runs("app")) == 1

    def test_same_id_different_namespace_is_separate(self, store: FileRunStore) -> None:
        store.save({"v": 1}, "a", run_id="X")
        store.save({"v": 2}, "b", run_id="X")

        assert store.get("X", "a").payload == {"v": 1}
        assert store.get("X", "b").payload == {"v": 2}

    def test_generated_ids_are_unique(self, store: FileRunStore) -> None:
        ids = [store.save({"i": i}, "loop") for i in range(200)]

        assert len(set(ids)) == 200
        assert len(store.list_runs("loop")) == 200

    def test_non_atomic_writes(self, tmp_path: Path) -> None:
        store = FileRunStore(tmp_path, atomic_writes=False)
        run_id = store.save({"a": (1, 2)}, "app")

        assert store.get(run_id, "app").payload == {"a": (1, 2)}

    def test_atomic_and_direct_writes_use_same_mode(self, tmp_path: Path) -> None:
        atomic = FileRunStore(tmp_path, atomic_writes=True)
        direct = FileRunStore(tmp_path, atomic_writes=False)
        atomic.save({"a": 1}, "app", run_id="atomic")
        direct.save({"a": 1}, "app", run_id="direct")

        atomic_mode = stat.S_IMODE(os.stat(atomic.run_path("atomic", "app")).st_mode)
        direct_mode = stat.S_IMODE(os.stat(direct.run_path("direct", "app")).st_mode)

        assert atomic_mode == direct_mode

    def test_atomic_write_leaves_no_temp_files(self, store: FileRunStore, tmp_path: Path) -> None:
        store.save({"a": 1}, "app", run_id="r1")
        store.save({"a": 2}, "app", run_id="r1")

        assert sorted(p.name for p in tmp_path.iterdir()) == [f"r1.app.{RUN_SUFFIX}"]

    @pytest.mark.parametrize("run_id, namespace", [("a.b", "ns"), ("id", "a.b"), ("id", ""), ("../x", "ns")])
    def test_separator_in_key_rejected(self, store: FileRunStore, run_id: str, namespace: str) -> None:
        with pytest.raises(InvalidRunKey):
            store.save({"a": 1}, namespace, run_id=run_id)
        assert store.list_files() == []


class TestFailures:
    def test_not_found(self, store: FileRunStore) -> None:
        result = store.get("nonexistent-id", "nonexistent-namespace")

        assert not result.found
        assert result.payload is None
        assert isinstance(result.error, NotFound)
        assert "nonexistent-id" in result.description

    def test_not_found_for_unencodable_key(self, store: FileRunStore) -> None:
        result = store.get("a.b", "ns")

        assert isinstance(result.error, NotFound)
        assert "a.b" in result.description

    def test_not_found_is_logged(self, store: FileRunStore, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="store.filesystem"):
            store.get("missing", "app")

        assert any("missing" in record.message for record in caplog.records)

    def test_write_failure_returns_attempted_id(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        store = FileRunStore(tmp_path / "does-not-exist")

        with caplog.at_level(logging.ERROR, logger="store.filesystem"):
            run_id = store.save({"a": 1}, "app", run_id="lost")

        assert run_id == "lost"
        assert isinstance(store.last_error, WriteFailure)
        assert store.last_error.run_id == "lost"
        assert not store.get("lost", "app").found
        assert any("lost" in record.message for record in caplog.records)

    def test_write_failure_non_atomic(self, tmp_path: Path) -> None:
        store = FileRunStore(tmp_path / "missing", atomic_writes=False)

        run_id = store.save({"a": 1}, "app")

        assert isinstance(store.last_error, WriteFailure)
        assert store.last_error.run_id == run_id

    def test_successful_save_clears_last_error(self, tmp_path: Path) -> None:
        store = FileRunStore(tmp_path / "later")
        store.save({"a": 1}, "app")
        assert store.last_error is not None

        (tmp_path / "later").mkdir()
        store.save({"a": 1}, "app")
        assert store.last_error is None

    def test_strict_mode_raises(self, tmp_path: Path) -> None:
        store = FileRunStore(tmp_path / "missing", strict=True)

        with pytest.raises(WriteFailure):
            store.save({"a": 1}, "app")

    def test_corrupt_file_reported(self, store: FileRunStore, tmp_path: Path) -> None:
        (tmp_path / f"bad.app.{RUN_SUFFIX}").write_text("{not json", encoding="utf-8")

        result = store.get("bad", "app")

        assert isinstance(result.error, ReadFailure)
        assert result.payload is None
        assert "bad" in result.description

    def test_non_utf8_file_reported(self, store: FileRunStore, tmp_path: Path) -> None:
        (tmp_path / f"bad.app.{RUN_SUFFIX}").write_bytes(b"\xff\xfe\x00garbage")

        result = store.get("bad", "app")

        assert isinstance(result.error, ReadFailure)
        assert result.payload is None
        assert "bad" in result.description

    def test_unserializable_payload_names_run(self, store: FileRunStore) -> None:
        with pytest.raises(UnserializablePayload) as excinfo:
            store.save({"when": datetime(2024, 1, 1)}, "app", run_id="r1")

        assert excinfo.value.run_id == "r1"
        assert excinfo.value.namespace == "app"
        assert isinstance(excinfo.value, TypeError)
        assert store.list_files() == []


class TestDirectoryResolution:
    def test_explicit_dir_wins(self, tmp_path: Path) -> None:
        store = FileRunStore(tmp_path / "explicit", fallback_dir=tmp_path / "fallback")
        assert store.output_dir == tmp_path / "explicit"

    def test_fallback_dir_used(self, tmp_path: Path) -> None:
        store = FileRunStore(None, fallback_dir=tmp_path / "fallback")
        assert store.output_dir == tmp_path / "fallback"

    def test_temp_dir_fallback_warns(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))

        with pytest.warns(ConfigurationWarning):
            store = FileRunStore()

        assert store.output_dir == tmp_path
        run_id = store.save({"a": 1}, "app")
        assert store.get(run_id, "app").found


class TestListing:
    def test_empty_and_missing_directory(self, tmp_path: Path) -> None:
        assert FileRunStore(tmp_path).list_runs() == []
        missing = FileRunStore(tmp_path / "nope")
        assert missing.list_files() == []
        assert missing.list_runs() == []
        assert missing.list_by_namespace() == {}
        assert missing.list_sources() == []

    def test_list_runs_most_recent_first(self, store: FileRunStore) -> None:
        ids = [store.save({"n": n}, "app") for n in range(3)]
        for offset, run_id in enumerate(ids):
            _set_mtime(store.run_path(run_id, "app"), 1_700_000_000 + offset * 10)

        entries = store.list_runs("app")

        assert [entry.id for entry in entries] == list(reversed(ids))
        assert entries[0].modified_time.timestamp() == 1_700_000_020
        assert entries[0].filepath == str(store.run_path(ids[2], "app"))

    def test_list_runs_filters_namespace(self, store: FileRunStore) -> None:
        store.save({}, "a", run_id="1")
        store.save({}, "b", run_id="2")

        assert [entry.id for entry in store.list_runs("b")] == ["2"]
        assert {entry.id for entry in store.list_runs()} == {"1", "2"}

    def test_grouping(self, store: FileRunStore) -> None:
        store.save({}, "A", run_id="a1")
        store.save({}, "A", run_id="a2")
        store.save({}, "B", run_id="b1")
        _set_mtime(store.run_path("a1", "A"), 1_700_000_000)
        _set_mtime(store.run_path("b1", "B"), 1_700_000_010)
        _set_mtime(store.run_path("a2", "A"), 1_700_000_020)

        groups = store.list_by_namespace()

        assert set(groups) == {"A", "B"}
        assert [entry.id for entry in groups["A"]] == ["a2", "a1"]
        assert [entry.id for entry in groups["B"]] == ["b1"]
        assert all(entry.namespace == "A" for entry in groups["A"])
        assert store.list_sources() == ["A", "B"]

    def test_scan_ignores_unrelated_and_malformed_files(self, store: FileRunStore, tmp_path: Path) -> None:
        store.save({}, "app", run_id="good")
        (tmp_path / "README.txt").write_text("hello")
        (tmp_path / f"a.b.c.{RUN_SUFFIX}").write_text("{}")
        (tmp_path / f"lonely.{RUN_SUFFIX}").write_text("{}")
        (tmp_path / f"dir.app.{RUN_SUFFIX}").mkdir()

        entries = store.list_runs()

        assert [(entry.id, entry.namespace) for entry in entries] == [("good", "app")]
        assert len(store.list_files()) == 3

    def test_entry_to_dict(self, store: FileRunStore) -> None:
        store.save({}, "app", run_id="r1")

        data = store.list_runs()[0].to_dict()

        assert data["id"] == "r1"
        assert data["namespace"] == "app"
        assert isinstance(data["modified_time"], str)

    def test_is_a_catalog(self, store: FileRunStore) -> None:
        assert isinstance(store, RunCatalog)
