import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path

from catalog_diff.config.settings import Settings
from catalog_diff.logging.logger import Log
from catalog_diff.processor.processor import Processor


class JobRunner:
    """Schedules one validation job per upload on a bounded thread pool.

    ``run`` returns immediately; the outcome is only observable through the
    upload record. Job errors are logged and never propagate to the caller.
    """

    def __init__(self, processor: Processor, settings: Settings) -> None:
        self._processor = processor
        self._start_delay_seconds = settings.job_start_delay_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_workers,
            thread_name_prefix="validation-job",
        )
        self._lock = threading.Lock()
        self._pending: set[Future[None]] = set()

    def run(self, upload_id: str, file_path: Path) -> Future[None]:
        """Schedule the job in the background and return its handle."""
        future = self._executor.submit(self._delayed_execute, upload_id, file_path)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        Log.debug(f"[{upload_id}] job scheduled")
        return future

    def execute(self, upload_id: str, file_path: Path) -> None:
        """Run a single job synchronously with error handling."""
        Log.info(f"[{upload_id}] job started")
        try:
            self._processor.process(upload_id, file_path)
        except Exception as exc:
            Log.error(f"[{upload_id}] job failed: {exc}")
            return
        Log.info(f"[{upload_id}] job completed")

    def wait_for_pending(self, timeout: float | None = None) -> bool:
        """Block until every scheduled job has finished; False on timeout."""
        with self._lock:
            futures = list(self._pending)
        _done, not_done = wait(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_jobs: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_jobs, cancel_futures=not wait_for_jobs)

    def _delayed_execute(self, upload_id: str, file_path: Path) -> None:
        if self._start_delay_seconds > 0:
            time.sleep(self._start_delay_seconds)
        self.execute(upload_id, file_path)

    def _forget(self, future: Future[None]) -> None:
        with self._lock:
            self._pending.discard(future)
