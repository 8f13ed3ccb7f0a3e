import threading
import time

import pytest

from pose_stream.pipeline.scheduler import FixedRateScheduler


def test_runs_until_callback_returns_false():
    calls = []

    def callback():
        calls.append(time.perf_counter())
        return len(calls) < 5

    scheduler = FixedRateScheduler(callback, period_s=0.002, initial_delay_s=0.0)
    scheduler.start()
    assert scheduler.wait(timeout=5.0)
    scheduler.stop()

    assert len(calls) == 5
    assert not scheduler.is_running
    assert scheduler.error is None


def test_slow_callback_is_never_overlapped():
    active = 0
    max_active = 0
    lock = threading.Lock()
    calls = []

    def callback():
        nonlocal active, max_active
        with lock:
            active += 1
            max_active = max(max_active, active)
        time.sleep(0.03)
        with lock:
            active -= 1
        calls.append(1)
        return len(calls) < 4

    scheduler = FixedRateScheduler(callback, period_s=0.002, initial_delay_s=0.0)
    with scheduler:
        assert scheduler.wait(timeout=5.0)

    assert max_active == 1
    assert len(calls) == 4
    assert scheduler.ticks_coalesced > 0
    assert scheduler.ticks_handled == 4


def test_callback_exception_stops_scheduler():
    def callback():
        raise RuntimeError("boom")

    scheduler = FixedRateScheduler(callback, period_s=0.002, initial_delay_s=0.0)
    scheduler.start()
    assert scheduler.wait(timeout=5.0)
    scheduler.stop()

    assert isinstance(scheduler.error, RuntimeError)


def test_stop_ends_endless_run():
    scheduler = FixedRateScheduler(lambda: True, period_s=0.002, initial_delay_s=0.0)
    scheduler.start()
    time.sleep(0.05)
    scheduler.stop()

    assert scheduler.wait(timeout=1.0)
    assert not scheduler.is_running
    assert scheduler.ticks_fired > 0


def test_initial_delay_postpones_first_tick():
    scheduler = FixedRateScheduler(lambda: True, period_s=0.002, initial_delay_s=10.0)
    scheduler.start()
    time.sleep(0.05)
    scheduler.stop()

    assert scheduler.ticks_fired == 0


def test_period_must_be_positive():
    with pytest.raises(ValueError):
        FixedRateScheduler(lambda: True, period_s=0)
