"""Startup reconciliation of the upload registry with what is on disk.

Two loaders produce the recovered records: the persisted index when it is
present and readable, otherwise a scan of the uploads directory. The scan
cannot know the original file names, so reconstructed records reuse the
stored file name as ``originalName``.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from catalog_diff.extraction.factory import FORMAT_BY_EXTENSION
from catalog_diff.logging.logger import Log
from catalog_diff.registry.upload_registry import UploadRegistry
from catalog_diff.storage.json_files import DataPaths, read_json
from catalog_diff.storage.models import FAILED, PROCESSING, VALIDATED, UploadRecord

FILE_MISSING_ERROR = "File missing after restart"

SOURCE_INDEX = "index"
SOURCE_SCAN = "scan"


@dataclass
class RecoveryPlan:
    """Recovered records plus the actions needed for unfinished uploads."""

    source: str
    records: list[UploadRecord] = field(default_factory=list)
    rerun: list[tuple[str, Path]] = field(default_factory=list)
    mark_failed: list[str] = field(default_factory=list)


def load_index_records(index_file: Path) -> list[UploadRecord] | None:
    """Read the persisted index; None when it is absent or unreadable."""
    if not index_file.exists():
        return None
    try:
        raw = read_json(index_file)
    except (OSError, json.JSONDecodeError) as exc:
        Log.warning(f"[recovery] failed reading {index_file.name}: {exc}")
        return None
    if not isinstance(raw, list):
        Log.warning(f"[recovery] {index_file.name} is not a list, ignoring it")
        return None

    records: list[UploadRecord] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("uploadId"):
            continue
        try:
            records.append(UploadRecord.from_dict(entry))
        except (KeyError, TypeError, ValueError) as exc:
            Log.warning(f"[recovery] skipping malformed index entry {entry.get('uploadId')}: {exc}")
    Log.info(f"[recovery] loaded {len(records)} uploads from {index_file.name}")
    return records


def scan_upload_records(paths: DataPaths) -> list[UploadRecord]:
    """Rebuild records from stored files and the derived documents next to them."""
    if not paths.uploads_dir.exists():
        return []

    records: list[UploadRecord] = []
    for file_path in sorted(paths.uploads_dir.iterdir()):
        if not file_path.is_file() or file_path.suffix.lower() not in FORMAT_BY_EXTENSION:
            continue
        upload_id = file_path.stem
        stat = file_path.stat()
        birth = getattr(stat, "st_birthtime", None)
        created_at = datetime.fromtimestamp(birth or stat.st_mtime, tz=timezone.utc)
        updated_at = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        has_snapshot = paths.snapshot_file(upload_id).exists()

        records.append(
            UploadRecord(
                upload_id=upload_id,
                status=VALIDATED if has_snapshot else PROCESSING,
                original_name=file_path.name,
                stored_as=file_path.name,
                size_bytes=stat.st_size,
                created_at=created_at,
                updated_at=updated_at,
                validation={"sheetCount": None} if has_snapshot else None,
                changes_ready=paths.changes_file(upload_id).exists(),
            )
        )
    Log.info(f"[recovery] scanned disk and rebuilt {len(records)} upload records")
    return records


def plan_recovery(source: str, records: list[UploadRecord], paths: DataPaths) -> RecoveryPlan:
    """Decide, for every record left in ``processing``, whether to re-run or fail it."""
    plan = RecoveryPlan(source=source, records=list(records))
    for record in records:
        if record.status != PROCESSING:
            continue
        file_path = paths.upload_file(record.stored_as or f"{record.upload_id}.xlsx")
        if file_path.exists():
            plan.rerun.append((record.upload_id, file_path))
        else:
            plan.mark_failed.append(record.upload_id)
    return plan


def recover(paths: DataPaths) -> RecoveryPlan:
    records = load_index_records(paths.index_file)
    if records is not None:
        return plan_recovery(SOURCE_INDEX, records, paths)
    return plan_recovery(SOURCE_SCAN, scan_upload_records(paths), paths)


def apply_recovery_plan(
    plan: RecoveryPlan,
    registry: UploadRegistry,
    schedule_job: Callable[[str, Path], object],
) -> None:
    """Load the plan into the registry, fail orphans and re-schedule the rest."""
    registry.hydrate(plan.records)
    for upload_id in plan.mark_failed:
        Log.warning(f"[recovery] {upload_id}: {FILE_MISSING_ERROR}")
        registry.update(upload_id, status=FAILED, error=FILE_MISSING_ERROR)
    for upload_id, file_path in plan.rerun:
        Log.info(f"[recovery] re-trigger validation job for {upload_id}")
        schedule_job(upload_id, file_path)
    registry.schedule_persist()
