from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from catalog_diff.diff.models import Change, ChangeDocument
from catalog_diff.extraction.models import Snapshot
from catalog_diff.storage.models import UploadRecord


@dataclass(slots=True)
class PipelineContext:
    upload_id: str
    file_path: Path
    file_format: str = ""
    validation: dict[str, object] = field(default_factory=dict)
    snapshot: Snapshot | None = None
    baseline: UploadRecord | None = None
    baseline_snapshot: Snapshot | None = None
    changes: list[Change] = field(default_factory=list)
    document: ChangeDocument | None = None
    error_message: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
