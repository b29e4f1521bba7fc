from catalog_diff.diff.differ import RowDiffer
from catalog_diff.diff.models import ChangeDocument
from catalog_diff.extraction.factory import ExtractorFactory, detect_format
from catalog_diff.logging.logger import Log
from catalog_diff.processor.pipeline import PipelineContext, PipelineStep
from catalog_diff.registry.exceptions import UploadNotFoundError
from catalog_diff.registry.upload_registry import UploadRegistry
from catalog_diff.storage.exceptions import SnapshotNotFoundError, StorageError
from catalog_diff.storage.models import FAILED, VALIDATED
from catalog_diff.storage.repositories.change_repository import ChangeRepository
from catalog_diff.storage.repositories.snapshot_repository import SnapshotRepository


def _update_or_raise(registry: UploadRegistry, upload_id: str, **changes: object) -> None:
    if registry.update(upload_id, **changes) is None:
        raise UploadNotFoundError(f"Upload {upload_id} not found")


class ValidateFileStep(PipelineStep):
    def __init__(self, extractor_factory: type[ExtractorFactory] = ExtractorFactory) -> None:
        self._extractor_factory = extractor_factory

    def run(self, context: PipelineContext) -> PipelineContext:
        context.file_format = detect_format(context.file_path)
        extractor = self._extractor_factory.create(context.file_format)
        context.validation = extractor.validate(context.file_path)
        return context


class MarkValidatedStep(PipelineStep):
    def __init__(self, registry: UploadRegistry) -> None:
        self._registry = registry

    def run(self, context: PipelineContext) -> PipelineContext:
        _update_or_raise(
            self._registry,
            context.upload_id,
            status=VALIDATED,
            error=None,
            validation=context.validation,
        )
        Log.info(f"[{context.upload_id}] validated {context.validation}")
        return context


class ExtractSnapshotStep(PipelineStep):
    def __init__(self, extractor_factory: type[ExtractorFactory] = ExtractorFactory) -> None:
        self._extractor_factory = extractor_factory

    def run(self, context: PipelineContext) -> PipelineContext:
        extractor = self._extractor_factory.create(context.file_format)
        context.snapshot = extractor.extract(context.file_path)
        row_count = sum(len(rows) for rows in context.snapshot.sheets.values())
        Log.info(
            f"[{context.upload_id}] extracted {len(context.snapshot.sheets)} sheets, "
            f"{row_count} rows"
        )
        return context


class PersistSnapshotStep(PipelineStep):
    def __init__(self, snapshot_repo: SnapshotRepository) -> None:
        self._snapshot_repo = snapshot_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.snapshot is None:
            raise ValueError("PipelineContext.snapshot must be set before persist")
        self._snapshot_repo.save(context.upload_id, context.snapshot)
        return context


class SelectBaselineStep(PipelineStep):
    """Pick the newest other validated upload and load its snapshot.

    A baseline whose snapshot is missing or unreadable is treated as empty.
    """

    def __init__(self, registry: UploadRegistry, snapshot_repo: SnapshotRepository) -> None:
        self._registry = registry
        self._snapshot_repo = snapshot_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        context.baseline = self._registry.find_latest_validated_before(context.upload_id)
        if context.baseline is None:
            Log.info(f"[{context.upload_id}] no baseline, diffing against empty snapshot")
            return context

        baseline_id = context.baseline.upload_id
        try:
            context.baseline_snapshot = self._snapshot_repo.load(baseline_id)
        except SnapshotNotFoundError:
            Log.warning(f"[{context.upload_id}] baseline {baseline_id} has no snapshot")
        except StorageError as exc:
            Log.warning(f"[{context.upload_id}] baseline {baseline_id} unreadable: {exc}")
        else:
            Log.info(f"[{context.upload_id}] baseline is {baseline_id}")
        return context


class ComputeChangesStep(PipelineStep):
    def __init__(self, differ: RowDiffer) -> None:
        self._differ = differ

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.snapshot is None:
            raise ValueError("PipelineContext.snapshot must be set before diffing")
        context.changes = self._differ.diff(context.baseline_snapshot, context.snapshot)
        return context


class PersistChangesStep(PipelineStep):
    def __init__(self, change_repo: ChangeRepository) -> None:
        self._change_repo = change_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        document = ChangeDocument(
            upload_id=context.upload_id,
            baseline_upload_id=context.baseline.upload_id if context.baseline else None,
            items=list(context.changes),
        )
        context.document = self._change_repo.save(document)
        Log.info(f"[{context.upload_id}] changes {document.counts}")
        return context


class MarkChangesReadyStep(PipelineStep):
    def __init__(self, registry: UploadRegistry) -> None:
        self._registry = registry

    def run(self, context: PipelineContext) -> PipelineContext:
        _update_or_raise(self._registry, context.upload_id, changes_ready=True)
        return context


class MarkFailedStep(PipelineStep):
    def __init__(self, registry: UploadRegistry) -> None:
        self._registry = registry

    def run(self, context: PipelineContext) -> PipelineContext:
        self._registry.update(context.upload_id, status=FAILED, error=context.error_message)
        Log.error(f"[{context.upload_id}] failed: {context.error_message}")
        return context
