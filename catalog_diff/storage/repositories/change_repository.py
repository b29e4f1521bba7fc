import json
import threading

from catalog_diff.diff.models import REVIEW_STATUSES, Change, ChangeDocument
from catalog_diff.logging.logger import Log
from catalog_diff.storage.exceptions import (
    ChangeDocumentNotFoundError,
    ChangeNotFoundError,
    InvalidChangeStatusError,
    StorageError,
)
from catalog_diff.storage.json_files import DataPaths, read_json, write_json_atomic


class ChangeRepository:
    """Per-upload change documents and their review decisions.

    Every write replaces the whole document. The lock serializes
    read-modify-write cycles inside this process only; concurrent writers in
    other processes still race with last-writer-wins.
    """

    def __init__(self, paths: DataPaths) -> None:
        self._paths = paths
        self._lock = threading.Lock()

    def exists(self, upload_id: str) -> bool:
        return self._paths.changes_file(upload_id).exists()

    def read(self, upload_id: str) -> ChangeDocument:
        """Load the change document of an upload.

        Raises:
            ChangeDocumentNotFoundError: if no document was computed yet.
            StorageError: if the stored document is unreadable.
        """
        path = self._paths.changes_file(upload_id)
        try:
            return ChangeDocument.from_dict(read_json(path))
        except FileNotFoundError as exc:
            raise ChangeDocumentNotFoundError(f"No changes computed yet for {upload_id}") from exc
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise StorageError(f"Change document for {upload_id} is unreadable: {exc}") from exc

    def save(self, document: ChangeDocument) -> ChangeDocument:
        """Write a freshly computed document, keeping earlier review decisions.

        When the upload already has a document (a job re-run after restart),
        items with a known id keep the status a reviewer gave them.
        """
        with self._lock:
            previous = self._statuses_by_id(document.upload_id)
            if previous:
                document.items = [
                    item.with_status(previous[item.id]) if item.id in previous else item
                    for item in document.items
                ]
            write_json_atomic(self._paths.changes_file(document.upload_id), document.to_dict())
        return document

    def update_item_status(self, upload_id: str, change_id: str, status: object) -> Change:
        """Set the review decision of one change.

        Raises:
            InvalidChangeStatusError: if status is not pending|approved|rejected.
            ChangeDocumentNotFoundError: if the upload has no change document.
            ChangeNotFoundError: if no item has exactly this id.
        """
        if not isinstance(status, str) or status not in REVIEW_STATUSES:
            raise InvalidChangeStatusError("status must be pending|approved|rejected")

        with self._lock:
            document = self.read(upload_id)
            updated: Change | None = None
            items: list[Change] = []
            for item in document.items:
                if item.id == change_id:
                    item = item.with_status(status)
                    updated = item
                items.append(item)
            if updated is None:
                raise ChangeNotFoundError(f"Change '{change_id}' not found for {upload_id}")
            document.items = items
            write_json_atomic(self._paths.changes_file(upload_id), document.to_dict())
        return updated

    def _statuses_by_id(self, upload_id: str) -> dict[str, str]:
        if not self.exists(upload_id):
            return {}
        try:
            existing = self.read(upload_id)
        except StorageError as exc:
            Log.warning(f"Ignoring unreadable change document for {upload_id}: {exc}")
            return {}
        return {item.id: item.status for item in existing.items}
