import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from catalog_diff.config.settings import Settings
from catalog_diff.extraction.models import to_jsonable


@dataclass(frozen=True)
class DataPaths:
    """Filesystem layout of uploaded files and derived documents."""

    data_dir: Path
    uploads_dir: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> "DataPaths":
        return cls(data_dir=Path(settings.data_dir), uploads_dir=Path(settings.uploads_dir))

    @property
    def snapshots_dir(self) -> Path:
        return self.data_dir / "snapshots"

    @property
    def changes_dir(self) -> Path:
        return self.data_dir / "changes"

    @property
    def index_file(self) -> Path:
        return self.data_dir / "uploads-index.json"

    def snapshot_file(self, upload_id: str) -> Path:
        return self.snapshots_dir / f"{upload_id}.json"

    def changes_file(self, upload_id: str) -> Path:
        return self.changes_dir / f"{upload_id}.json"

    def upload_file(self, stored_as: str) -> Path:
        return self.uploads_dir / stored_as

    def ensure(self) -> None:
        for directory in (self.uploads_dir, self.snapshots_dir, self.changes_dir):
            directory.mkdir(parents=True, exist_ok=True)


def write_json_atomic(path: Path, obj: Any) -> None:
    """Overwrite path with obj as JSON via a temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(obj, handle, indent=2, ensure_ascii=False, default=_json_default)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _json_default(value: Any) -> Any:
    rendered = to_jsonable(value)
    if rendered is value:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return rendered


def read_json(path: Path) -> Any:
    """Read a JSON document.

    Raises:
        FileNotFoundError: if the path does not exist.
        json.JSONDecodeError: if the content is not valid JSON.
    """
    return json.loads(path.read_text(encoding="utf-8"))
