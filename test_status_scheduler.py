import threading
import time
from datetime import datetime, timezone
from threading import Event, Thread

import pytest

from app.exceptions import ConfigurationError
from app.models.coupon import Coupon
from app.services.status_scheduler import StatusScheduler
from app.services.status_updater import CouponStatusUpdater, UpdateResult
from conftest import TestingSessionLocal

NOW = datetime(2024, 1, 15, tzinfo=timezone.utc)


class BlockingUpdater:
    """Stands in for CouponStatusUpdater; holds each pass until released."""

    def __init__(self, block=True):
        self.calls = 0
        self.started = Event()
        self.release = Event()
        if not block:
            self.release.set()

    def run(self, db):
        self.calls += 1
        self.started.set()
        self.release.wait(5)
        return UpdateResult(success=True)


class FakeSession:
    closed = False

    def close(self):
        self.closed = True


def test_trigger_runs_pass_and_closes_session():
    session = FakeSession()
    updater = BlockingUpdater(block=False)
    scheduler = StatusScheduler(updater, session_factory=lambda: session)

    result = scheduler.trigger()

    assert result.success
    assert updater.calls == 1
    assert session.closed


def test_sequential_triggers_each_run_a_pass(add_coupon):
    add_coupon("SUMMER10", "2024-01-01", "2024-01-31", "Future")
    scheduler = StatusScheduler(CouponStatusUpdater(clock=lambda: NOW), session_factory=TestingSessionLocal)

    first = scheduler.trigger()
    second = scheduler.trigger()

    assert first.updated_count == 1
    assert second.success
    assert second.updated_count == 0


def test_concurrent_triggers_share_one_pass():
    updater = BlockingUpdater()
    scheduler = StatusScheduler(updater, session_factory=FakeSession)
    results = []

    first = Thread(target=lambda: results.append(scheduler.trigger()))
    first.start()
    assert updater.started.wait(2)

    second = Thread(target=lambda: results.append(scheduler.trigger()))
    second.start()
    time.sleep(0.2)
    updater.release.set()
    first.join(2)
    second.join(2)

    assert updater.calls == 1
    assert len(results) == 2
    assert results[0] is results[1]


def test_trigger_gives_up_when_pass_stays_in_flight():
    updater = BlockingUpdater()
    scheduler = StatusScheduler(updater, session_factory=FakeSession, lock_timeout=0.05)

    first = Thread(target=scheduler.trigger)
    first.start()
    assert updater.started.wait(2)

    result = scheduler.trigger()
    updater.release.set()
    first.join(2)

    assert not result.success
    assert "still running" in result.error
    assert updater.calls == 1


def test_trigger_reports_configuration_error():
    def no_database():
        raise ConfigurationError("DATABASE_URL is not set")

    scheduler = StatusScheduler(BlockingUpdater(block=False), session_factory=no_database)
    result = scheduler.trigger()

    assert not result.success
    assert result.error == "DATABASE_URL is not set"


def test_lock_is_released_after_failed_pass():
    class ExplodingUpdater:
        def run(self, db):
            raise RuntimeError("boom")

    scheduler = StatusScheduler(ExplodingUpdater(), session_factory=FakeSession)
    with pytest.raises(RuntimeError):
        scheduler.trigger()

    assert not scheduler._lock.locked()


def test_timer_runs_immediately_then_repeats_until_stopped():
    updater = BlockingUpdater(block=False)
    scheduler = StatusScheduler(updater, session_factory=FakeSession, interval_seconds=0.05)

    scheduler.start()
    assert updater.started.wait(2)
    deadline = time.monotonic() + 2
    while updater.calls < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    scheduler.stop(timeout=2)

    assert updater.calls >= 3
    assert not scheduler.running
    calls = updater.calls
    time.sleep(0.15)
    assert updater.calls == calls


def test_timer_pass_updates_coupons(add_coupon, db):
    add_coupon("SUMMER10", "2024-01-01", "2024-01-31", "Future")
    scheduler = StatusScheduler(
        CouponStatusUpdater(clock=lambda: NOW), session_factory=TestingSessionLocal, interval_seconds=60
    )

    scheduler.start()
    deadline = time.monotonic() + 2
    while scheduler._completed_passes < 1 and time.monotonic() < deadline:
        time.sleep(0.01)
    scheduler.stop(timeout=2)

    db.expire_all()
    assert db.query(Coupon).filter(Coupon.code == "SUMMER10").one().status == "Active"


def scheduler_threads():
    return [t for t in threading.enumerate() if t.name == "coupon-status-scheduler"]


def test_restart_after_timed_out_stop_leaves_one_timer_thread():
    updater = BlockingUpdater()
    scheduler = StatusScheduler(updater, session_factory=FakeSession)

    scheduler.start()
    assert updater.started.wait(2)
    scheduler.stop(timeout=0.05)
    scheduler.start()
    updater.release.set()

    deadline = time.monotonic() + 2
    while len(scheduler_threads()) > 1 and time.monotonic() < deadline:
        time.sleep(0.01)

    assert len(scheduler_threads()) == 1
    assert scheduler.running

    scheduler.stop(timeout=2)
    assert scheduler_threads() == []


def test_stop_without_start_is_harmless():
    scheduler = StatusScheduler(BlockingUpdater(block=False), session_factory=FakeSession)
    scheduler.stop()
    assert not scheduler.running
