import contextlib
import itertools
import json
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from catalog_diff.registry.exceptions import (
    DuplicateUploadError,
    InvalidStatusTransitionError,
    UploadNotFoundError,
)
from catalog_diff.registry.upload_registry import UploadRegistry
from catalog_diff.storage.models import UploadRecord


def _make_clock() -> Callable[[], datetime]:
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(seconds=next(ticks))


def _make_registry(tmp_path: Path, **kwargs: object) -> UploadRegistry:
    options: dict[str, object] = {"debounce_seconds": 60, "clock": _make_clock()}
    options.update(kwargs)
    return UploadRegistry(tmp_path / "uploads-index.json", **options)  # type: ignore[arg-type]


def _create(registry: UploadRegistry, upload_id: str) -> UploadRecord:
    return registry.create(
        upload_id=upload_id,
        original_name=f"{upload_id}.xlsx",
        stored_as=f"{upload_id}.xlsx",
        size_bytes=10,
    )


class TestCreate:
    def test_new_record_is_processing(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)

        record = _create(registry, "u1")

        assert record.status == "processing"
        assert record.changes_ready is False
        assert record.created_at == record.updated_at
        assert registry.get("u1") == record

    def test_duplicate_id_is_rejected(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "u1")

        with pytest.raises(DuplicateUploadError):
            _create(registry, "u1")


class TestUpdate:
    def test_merges_fields_and_bumps_updated_at(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        created = _create(registry, "u1")

        updated = registry.update("u1", status="validated", validation={"sheetCount": 1})

        assert updated is not None
        assert updated.status == "validated"
        assert updated.validation == {"sheetCount": 1}
        assert updated.updated_at > created.updated_at
        assert updated.created_at == created.created_at

    def test_unknown_id_returns_none(self, tmp_path: Path) -> None:
        assert _make_registry(tmp_path).update("nope", status="failed") is None

    def test_provenance_fields_are_immutable(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "u1")

        with pytest.raises(ValueError):
            registry.update("u1", original_name="other.xlsx")

    def test_validated_can_fail(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "u1")
        registry.update("u1", status="validated")

        updated = registry.update("u1", status="failed", error="disk full")

        assert updated is not None
        assert updated.status == "failed"

    def test_failed_is_terminal(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "u1")
        registry.update("u1", status="failed", error="boom")

        with pytest.raises(InvalidStatusTransitionError):
            registry.update("u1", status="validated")

    def test_validated_cannot_return_to_processing(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "u1")
        registry.update("u1", status="validated")

        with pytest.raises(InvalidStatusTransitionError):
            registry.update("u1", status="processing")

    def test_require_unknown_raises(self, tmp_path: Path) -> None:
        with pytest.raises(UploadNotFoundError):
            _make_registry(tmp_path).require("nope")


class TestQueries:
    def test_list_recent_newest_first(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        for upload_id in ("a", "b", "c"):
            _create(registry, upload_id)

        assert [r.upload_id for r in registry.list_recent()] == ["c", "b", "a"]

    def test_list_recent_is_capped_by_page_size(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path, page_size=2)
        for upload_id in ("a", "b", "c"):
            _create(registry, upload_id)

        assert [r.upload_id for r in registry.list_recent()] == ["c", "b"]
        assert [r.upload_id for r in registry.list_recent(limit=10)] == ["c", "b"]

    def test_latest_validated_excludes_self_and_failures(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        for upload_id in ("a", "b", "c", "d"):
            _create(registry, upload_id)
        registry.update("a", status="validated")
        registry.update("b", status="validated")
        registry.update("c", status="failed", error="boom")

        latest = registry.find_latest_validated_before("d")

        assert latest is not None
        assert latest.upload_id == "b"
        baseline_of_b = registry.find_latest_validated_before("b")
        assert baseline_of_b is not None
        assert baseline_of_b.upload_id == "a"

    def test_no_validated_upload(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "a")

        assert registry.find_latest_validated_before("a") is None

    def test_hydrate_replaces_state(self, tmp_path: Path) -> None:
        source = _make_registry(tmp_path)
        records = [_create(source, "a"), _create(source, "b")]
        registry = _make_registry(tmp_path)
        _create(registry, "zzz")

        registry.hydrate(records)

        assert {r.upload_id for r in registry.all_records()} == {"a", "b"}


class TestPersistence:
    def test_persist_now_writes_newest_first(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        for upload_id in ("a", "b"):
            _create(registry, upload_id)

        registry.persist_now()

        data = json.loads((tmp_path / "uploads-index.json").read_text(encoding="utf-8"))
        assert [entry["uploadId"] for entry in data] == ["b", "a"]
        assert data[0]["status"] == "processing"

    def test_index_is_capped(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path, index_limit=2)
        for upload_id in ("a", "b", "c"):
            _create(registry, upload_id)

        registry.persist_now()

        data = json.loads((tmp_path / "uploads-index.json").read_text(encoding="utf-8"))
        assert [entry["uploadId"] for entry in data] == ["c", "b"]
        assert len(registry.all_records()) == 3

    def test_close_flushes_pending_mutations(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "a")
        registry.update("a", status="validated")

        registry.close()

        data = json.loads((tmp_path / "uploads-index.json").read_text(encoding="utf-8"))
        assert data[0]["status"] == "validated"

    def test_mutation_burst_writes_index_once(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path, debounce_seconds=0.5)

        with patch("catalog_diff.registry.upload_registry.write_json_atomic") as write:
            for upload_id in ("a", "b", "c"):
                _create(registry, upload_id)
                registry.update(upload_id, status="validated")
            registry.close()

        write.assert_called_once()


class TestConcurrentMutations:
    def test_parallel_creates_are_all_registered(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        upload_ids = [f"u{i}" for i in range(40)]
        barrier = threading.Barrier(len(upload_ids))

        def create(upload_id: str) -> None:
            barrier.wait()
            _create(registry, upload_id)

        with ThreadPoolExecutor(max_workers=len(upload_ids)) as pool:
            list(pool.map(create, upload_ids))

        assert {r.upload_id for r in registry.all_records()} == set(upload_ids)

    def test_ready_flag_and_failure_both_survive(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        upload_ids = [f"u{i}" for i in range(20)]
        for upload_id in upload_ids:
            _create(registry, upload_id)
        barrier = threading.Barrier(2 * len(upload_ids))

        def mark_ready(upload_id: str) -> None:
            barrier.wait()
            registry.update(upload_id, changes_ready=True)

        def mark_failed(upload_id: str) -> None:
            barrier.wait()
            registry.update(upload_id, status="failed", error="boom")

        with ThreadPoolExecutor(max_workers=2 * len(upload_ids)) as pool:
            futures = [pool.submit(mark_ready, upload_id) for upload_id in upload_ids]
            futures += [pool.submit(mark_failed, upload_id) for upload_id in upload_ids]
            for future in futures:
                future.result()

        for upload_id in upload_ids:
            record = registry.require(upload_id)
            assert record.status == "failed"
            assert record.error == "boom"
            assert record.changes_ready is True

    def test_burst_of_updates_with_one_failure(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        _create(registry, "u1")
        workers = 16
        barrier = threading.Barrier(workers + 1)

        def mark_ready(index: int) -> None:
            barrier.wait()
            registry.update("u1", changes_ready=True, validation={"sheetCount": index})

        def mark_failed() -> None:
            barrier.wait()
            registry.update("u1", status="failed", error="boom")

        with ThreadPoolExecutor(max_workers=workers + 1) as pool:
            futures = [pool.submit(mark_ready, index) for index in range(workers)]
            futures.append(pool.submit(mark_failed))
            for future in futures:
                future.result()

        record = registry.require("u1")
        assert record.status == "failed"
        assert record.error == "boom"
        assert record.changes_ready is True
        assert record.validation is not None
        assert record.validation["sheetCount"] in range(workers)

    def test_racing_validate_and_fail_ends_failed(self, tmp_path: Path) -> None:
        registry = _make_registry(tmp_path)
        upload_ids = [f"u{i}" for i in range(20)]
        for upload_id in upload_ids:
            _create(registry, upload_id)
        barrier = threading.Barrier(2 * len(upload_ids))

        def validate(upload_id: str) -> None:
            barrier.wait()
            # Loses the race when the failure lands first.
            with contextlib.suppress(InvalidStatusTransitionError):
                registry.update(upload_id, status="validated")

        def fail(upload_id: str) -> None:
            barrier.wait()
            registry.update(upload_id, status="failed", error="boom")

        with ThreadPoolExecutor(max_workers=2 * len(upload_ids)) as pool:
            futures = [pool.submit(validate, upload_id) for upload_id in upload_ids]
            futures += [pool.submit(fail, upload_id) for upload_id in upload_ids]
            for future in futures:
                future.result()

        # Whichever write lands first, failed is terminal and never overwritten.
        assert {registry.require(upload_id).status for upload_id in upload_ids} == {"failed"}
