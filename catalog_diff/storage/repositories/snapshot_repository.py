import json

from catalog_diff.extraction.models import Snapshot
from catalog_diff.storage.exceptions import SnapshotNotFoundError, StorageError
from catalog_diff.storage.json_files import DataPaths, read_json, write_json_atomic


class SnapshotRepository:
    """Snapshot documents stored as one JSON file per upload id."""

    def __init__(self, paths: DataPaths) -> None:
        self._paths = paths

    def save(self, upload_id: str, snapshot: Snapshot) -> None:
        write_json_atomic(self._paths.snapshot_file(upload_id), snapshot.to_dict())

    def exists(self, upload_id: str) -> bool:
        return self._paths.snapshot_file(upload_id).exists()

    def load(self, upload_id: str) -> Snapshot:
        """Read the snapshot of an upload.

        Raises:
            SnapshotNotFoundError: if no snapshot was written for this id.
            StorageError: if the stored document is not valid JSON.
        """
        path = self._paths.snapshot_file(upload_id)
        try:
            return Snapshot.from_dict(read_json(path))
        except FileNotFoundError as exc:
            raise SnapshotNotFoundError(f"No snapshot computed yet for {upload_id}") from exc
        except json.JSONDecodeError as exc:
            raise StorageError(f"Snapshot for {upload_id} is unreadable: {exc}") from exc
