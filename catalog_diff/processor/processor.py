from pathlib import Path

from catalog_diff.diff.differ import RowDiffer
from catalog_diff.logging.logger import Log
from catalog_diff.processor.pipeline import PipelineContext, PipelineStep
from catalog_diff.processor.steps import (
    ComputeChangesStep,
    ExtractSnapshotStep,
    MarkChangesReadyStep,
    MarkFailedStep,
    MarkValidatedStep,
    PersistChangesStep,
    PersistSnapshotStep,
    SelectBaselineStep,
    ValidateFileStep,
)
from catalog_diff.registry.upload_registry import UploadRegistry
from catalog_diff.storage.repositories.change_repository import ChangeRepository
from catalog_diff.storage.repositories.snapshot_repository import SnapshotRepository

DEFAULT_ERROR_MESSAGE = "Validation failed"


class Processor:
    """Runs the validation pipeline for one upload.

    Pipeline: validate -> mark validated -> extract -> persist snapshot ->
    select baseline -> diff -> persist changes -> mark changes ready.
    Artifacts written before a failing step are left in place.
    """

    def __init__(self, steps: list[PipelineStep], failed_step: PipelineStep) -> None:
        self._steps = steps
        self._failed_step = failed_step

    def process(self, upload_id: str, file_path: Path) -> PipelineContext:
        Log.info(f"[{upload_id}] processing {file_path.name}")
        context = PipelineContext(upload_id=upload_id, file_path=file_path)
        try:
            for step in self._steps:
                context = step.run(context)
        except Exception as exc:
            context.error_message = str(exc) or DEFAULT_ERROR_MESSAGE
            self._failed_step.run(context)
            raise
        return context


def build_processor(
    registry: UploadRegistry,
    snapshot_repo: SnapshotRepository,
    change_repo: ChangeRepository,
    differ: RowDiffer | None = None,
) -> Processor:
    """Build a Processor wired to the registry and document stores."""
    steps: list[PipelineStep] = [
        ValidateFileStep(),
        MarkValidatedStep(registry),
        ExtractSnapshotStep(),
        PersistSnapshotStep(snapshot_repo),
        SelectBaselineStep(registry, snapshot_repo),
        ComputeChangesStep(differ or RowDiffer()),
        PersistChangesStep(change_repo),
        MarkChangesReadyStep(registry),
    ]
    return Processor(steps=steps, failed_step=MarkFailedStep(registry))
