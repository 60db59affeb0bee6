import logging
from threading import Event, Lock, Thread
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.exceptions import ConfigurationError
from app.services.status_updater import CouponStatusUpdater, UpdateResult

logger = logging.getLogger(__name__)


class StatusScheduler:
    """Single entry point for coupon status passes.

    Timer ticks and on-demand triggers all go through ``trigger``, which holds
    ``_lock`` for the whole pass. A caller that had to wait while another pass
    ran gets that pass's result back instead of starting a new one.

    A pass that hangs cannot be interrupted from here: it keeps the lock until
    the database gives up (pool timeout, and ``statement_timeout`` on
    PostgreSQL; nothing bounds it on SQLite). Meanwhile other callers stop
    waiting after ``lock_timeout`` and get a failed result.

    Every ``start`` gets its own stop event, so a thread left behind by a
    ``stop`` whose join timed out still exits once its pass finishes.
    """

    def __init__(
        self,
        updater: CouponStatusUpdater,
        session_factory: Callable[[], Session],
        interval_seconds: float = 30 * 60,
        lock_timeout: float = 60.0,
    ):
        self.updater = updater
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.lock_timeout = lock_timeout
        self._lock = Lock()
        self._stop = Event()
        self._thread: Optional[Thread] = None
        self._completed_passes = 0
        self._last_result: Optional[UpdateResult] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def trigger(self) -> UpdateResult:
        seen = self._completed_passes
        if not self._lock.acquire(timeout=self.lock_timeout):
            logger.error("Coupon status pass still in flight after %ss; giving up", self.lock_timeout)
            return UpdateResult(
                success=False,
                error=f"Another coupon status update is still running (waited {self.lock_timeout}s)",
            )
        try:
            if self._completed_passes != seen and self._last_result is not None:
                logger.info("Coalesced status trigger into the pass that just finished")
                return self._last_result
            result = self._run_pass()
            self._last_result = result
            self._completed_passes += 1
            return result
        finally:
            self._lock.release()

    def _run_pass(self) -> UpdateResult:
        try:
            db = self.session_factory()
        except ConfigurationError as exc:
            logger.error("Cannot run coupon status pass: %s", exc)
            return UpdateResult(success=False, error=str(exc))
        try:
            return self.updater.run(db)
        finally:
            db.close()

    def start(self) -> None:
        if self.running:
            return
        self._stop = Event()
        self._thread = Thread(
            target=self._loop, args=(self._stop,), name="coupon-status-scheduler", daemon=True
        )
        self._thread.start()
        logger.info("Coupon status scheduler started (every %ss)", self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Coupon status scheduler thread still finishing a pass after %ss", timeout)
            else:
                logger.info("Coupon status scheduler stopped")

    def _loop(self, stop: Event) -> None:
        while not stop.is_set():
            result = self.trigger()
            if result.success:
                logger.info("Scheduled coupon status pass updated %s coupons", result.updated_count)
            else:
                logger.warning("Scheduled coupon status pass failed: %s", result.error)
            if stop.wait(self.interval_seconds):
                break
