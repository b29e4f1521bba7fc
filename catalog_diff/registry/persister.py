import threading
from collections.abc import Callable

from catalog_diff.logging.logger import Log


class DebouncedWriter:
    """Runs a flush callback once a burst of schedule() calls has gone quiet.

    Each schedule() restarts the timer, so rapid mutations coalesce into a
    single write after ``delay_seconds`` of inactivity.
    """

    def __init__(self, flush: Callable[[], None], delay_seconds: float) -> None:
        self._flush = flush
        self._delay_seconds = delay_seconds
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            if self._closed:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay_seconds, self._run)
            self._timer.daemon = True
            self._timer.start()

    def flush_now(self) -> None:
        """Cancel any pending timer and flush synchronously."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._safe_flush()

    def close(self) -> None:
        """Flush outstanding work and stop accepting new schedules."""
        with self._lock:
            self._closed = True
        self.flush_now()

    def _run(self) -> None:
        with self._lock:
            if self._timer is threading.current_thread():
                self._timer = None
        self._safe_flush()

    def _safe_flush(self) -> None:
        with self._flush_lock:
            try:
                self._flush()
            except Exception as exc:
                Log.warning(f"Debounced flush failed: {exc}")
