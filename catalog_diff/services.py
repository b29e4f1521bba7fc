from dataclasses import dataclass

from catalog_diff.config.settings import Settings
from catalog_diff.processor.processor import build_processor
from catalog_diff.registry.recovery import RecoveryPlan, apply_recovery_plan, recover
from catalog_diff.registry.upload_registry import UploadRegistry
from catalog_diff.storage.json_files import DataPaths
from catalog_diff.storage.repositories.change_repository import ChangeRepository
from catalog_diff.storage.repositories.snapshot_repository import SnapshotRepository
from catalog_diff.worker.job_runner import JobRunner


@dataclass
class Services:
    """Constructed dependencies shared by the job pipeline and the HTTP layer."""

    settings: Settings
    paths: DataPaths
    registry: UploadRegistry
    snapshot_repo: SnapshotRepository
    change_repo: ChangeRepository
    runner: JobRunner

    def start(self) -> RecoveryPlan:
        """Recover registry state from disk and re-schedule unfinished jobs."""
        plan = recover(self.paths)
        apply_recovery_plan(plan, self.registry, self.runner.run)
        return plan

    def stop(self) -> None:
        self.runner.shutdown()
        self.registry.close()


def build_services(settings: Settings) -> Services:
    paths = DataPaths.from_settings(settings)
    paths.ensure()
    registry = UploadRegistry(
        paths.index_file,
        index_limit=settings.index_limit,
        page_size=settings.list_page_size,
        debounce_seconds=settings.persist_debounce_seconds,
    )
    snapshot_repo = SnapshotRepository(paths)
    change_repo = ChangeRepository(paths)
    processor = build_processor(registry, snapshot_repo, change_repo)
    return Services(
        settings=settings,
        paths=paths,
        registry=registry,
        snapshot_repo=snapshot_repo,
        change_repo=change_repo,
        runner=JobRunner(processor, settings),
    )
