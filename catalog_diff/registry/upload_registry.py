import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from catalog_diff.logging.logger import Log
from catalog_diff.registry.exceptions import (
    DuplicateUploadError,
    InvalidStatusTransitionError,
    UploadNotFoundError,
)
from catalog_diff.registry.persister import DebouncedWriter
from catalog_diff.storage.json_files import write_json_atomic
from catalog_diff.storage.models import FAILED, PROCESSING, VALIDATED, UploadRecord, utc_now

_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PROCESSING: frozenset({PROCESSING, VALIDATED, FAILED}),
    VALIDATED: frozenset({VALIDATED, FAILED}),
    FAILED: frozenset({FAILED}),
}
_MUTABLE_FIELDS = frozenset({"status", "error", "validation", "changes_ready"})


def _newest_first(records: Iterable[UploadRecord]) -> list[UploadRecord]:
    # Stable sort: equal creation times keep insertion order.
    return sorted(records, key=lambda record: record.created_at, reverse=True)


class UploadRegistry:
    """Authoritative in-memory upload records mirrored to a JSON index.

    Every mutation happens under one lock and schedules a debounced rewrite
    of the whole index, capped to the ``index_limit`` most recent records.
    Records are immutable; readers always get a consistent copy.
    """

    def __init__(
        self,
        index_file: Path,
        *,
        index_limit: int = 500,
        page_size: int = 50,
        debounce_seconds: float = 0.25,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._index_file = index_file
        self._index_limit = index_limit
        self._page_size = page_size
        self._clock = clock
        self._records: dict[str, UploadRecord] = {}
        self._lock = threading.RLock()
        self._writer = DebouncedWriter(self.persist_now, debounce_seconds)

    def create(
        self,
        *,
        upload_id: str,
        original_name: str,
        stored_as: str,
        size_bytes: int,
    ) -> UploadRecord:
        """Register a new upload in ``processing`` state."""
        now = self._clock()
        record = UploadRecord(
            upload_id=upload_id,
            status=PROCESSING,
            original_name=original_name,
            stored_as=stored_as,
            size_bytes=size_bytes,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            if upload_id in self._records:
                raise DuplicateUploadError(f"Upload {upload_id} already exists")
            self._records[upload_id] = record
        Log.info(f"[{upload_id}] registered '{original_name}' ({size_bytes} bytes)")
        self._writer.schedule()
        return record

    def get(self, upload_id: str) -> UploadRecord | None:
        with self._lock:
            return self._records.get(upload_id)

    def require(self, upload_id: str) -> UploadRecord:
        record = self.get(upload_id)
        if record is None:
            raise UploadNotFoundError(f"Upload {upload_id} not found")
        return record

    def update(self, upload_id: str, **changes: Any) -> UploadRecord | None:
        """Merge field changes into a record and refresh ``updated_at``.

        Returns None when the id is unknown.

        Raises:
            ValueError: if a provenance field or unknown field is passed.
            InvalidStatusTransitionError: if the status change is not allowed.
        """
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        with self._lock:
            current = self._records.get(upload_id)
            if current is None:
                return None
            new_status = changes.get("status", current.status)
            if new_status not in _ALLOWED_TRANSITIONS[current.status]:
                raise InvalidStatusTransitionError(
                    f"Upload {upload_id} cannot move from {current.status} to {new_status}"
                )
            updated = replace(current, **changes, updated_at=self._clock())
            self._records[upload_id] = updated

        if updated.status != current.status:
            Log.info(f"[{upload_id}] {current.status} -> {updated.status}")
        self._writer.schedule()
        return updated

    def list_recent(self, limit: int | None = None) -> list[UploadRecord]:
        """Most recently created records first, capped at the page size."""
        cap = self._page_size if limit is None else max(0, min(limit, self._page_size))
        with self._lock:
            records = list(self._records.values())
        return _newest_first(records)[:cap]

    def find_latest_validated_before(self, excluding_id: str) -> UploadRecord | None:
        """The newest validated record other than ``excluding_id``, used as diff baseline."""
        with self._lock:
            candidates = [
                record
                for record in self._records.values()
                if record.status == VALIDATED and record.upload_id != excluding_id
            ]
        ordered = _newest_first(candidates)
        return ordered[0] if ordered else None

    def all_records(self) -> list[UploadRecord]:
        with self._lock:
            return list(self._records.values())

    def hydrate(self, records: Iterable[UploadRecord]) -> None:
        """Replace the in-memory state with recovered records."""
        with self._lock:
            self._records = {record.upload_id: record for record in records}
            count = len(self._records)
        Log.info(f"Registry hydrated with {count} uploads")

    def schedule_persist(self) -> None:
        self._writer.schedule()

    def persist_now(self) -> None:
        with self._lock:
            records = _newest_first(self._records.values())[: self._index_limit]
        write_json_atomic(self._index_file, [record.to_dict() for record in records])
        Log.debug(f"Persisted {len(records)} uploads to {self._index_file.name}")

    def close(self) -> None:
        """Flush pending index writes; later mutations are no longer persisted."""
        self._writer.close()
