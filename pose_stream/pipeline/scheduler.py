"""
Fixed-rate scheduler with a single worker.

A ticker thread fires at fixed-rate deadlines into a queue of depth one; a
worker thread runs the callback for each queued tick. A tick that arrives
while the previous one is still queued is dropped, so at most one callback
runs at a time and an overrunning step never piles up work.
"""

import logging
import time
from queue import Empty, Full, Queue
from threading import Event, Thread
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class FixedRateScheduler:
    """
    Drive a callback at a fixed rate until it returns False.

    Example:
        >>> scheduler = FixedRateScheduler(loop.tick, period_s=0.01)
        >>> scheduler.start()
        >>> scheduler.wait()
    """

    def __init__(
        self,
        callback: Callable[[], bool],
        period_s: float = 0.01,
        initial_delay_s: float = 1.0,
        name: str = "InferenceTimer",
    ):
        if period_s <= 0:
            raise ValueError("period_s must be positive")

        self.callback = callback
        self.period_s = period_s
        self.initial_delay_s = max(0.0, initial_delay_s)
        self.name = name

        self.ticks_fired = 0
        self.ticks_coalesced = 0
        self.ticks_handled = 0
        self.error: Optional[BaseException] = None

        self._queue: Queue = Queue(maxsize=1)
        self._stop_event = Event()
        self._done_event = Event()
        self._ticker: Optional[Thread] = None
        self._worker: Optional[Thread] = None

    def start(self) -> None:
        """Start the ticker and worker threads."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._done_event.clear()

        self._ticker = Thread(target=self._tick_loop, name=f"{self.name}-ticker", daemon=True)
        self._worker = Thread(target=self._work_loop, name=f"{self.name}-worker", daemon=True)
        self._worker.start()
        self._ticker.start()

    def _tick_loop(self) -> None:
        deadline = time.perf_counter() + self.initial_delay_s

        while not self._stop_event.is_set():
            delay = deadline - time.perf_counter()
            if delay > 0 and self._stop_event.wait(delay):
                break

            self.ticks_fired += 1
            try:
                self._queue.put_nowait(self.ticks_fired)
            except Full:
                self.ticks_coalesced += 1

            # Fixed rate: deadlines do not drift with step duration
            deadline += self.period_s

    def _work_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    self._queue.get(timeout=0.05)
                except Empty:
                    continue

                self.ticks_handled += 1
                try:
                    keep_going = self.callback()
                except Exception as e:
                    logger.exception(f"{self.name}: callback raised, stopping")
                    self.error = e
                    break

                if keep_going is False:
                    break
        finally:
            self._stop_event.set()
            self._done_event.set()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop both threads."""
        self._stop_event.set()
        for thread in (self._ticker, self._worker):
            if thread is not None:
                thread.join(timeout=timeout)
        self._ticker = None
        self._worker = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the callback asks to stop.

        Returns:
            True if the scheduler finished within the timeout
        """
        return self._done_event.wait(timeout)

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
