"""
Application wiring for the pose streaming loop.
"""

import logging
import sys
from dataclasses import replace
from typing import Optional

from pose_stream.config import AppConfig
from pose_stream.data.loader import load_sample_sequence
from pose_stream.display import ConsoleStatus, NullStatus
from pose_stream.models.engine import InferenceEngine
from pose_stream.pipeline.loop import StreamingLoop
from pose_stream.pipeline.scheduler import FixedRateScheduler
from pose_stream.stream.publisher import LogPublisher, SocketIOPublisher
from pose_stream.types import LoopReport

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Configure logging for the application."""
    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    # Console handler (for terminal output)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    root_logger.addHandler(console_handler)

    logging.getLogger('pose_stream').setLevel(level.upper())

    # The Socket.IO client stack is chatty at INFO
    logging.getLogger('socketio').setLevel(logging.WARNING)
    logging.getLogger('engineio').setLevel(logging.WARNING)


class StreamApp:
    """
    Owns every resource of one streaming run.

    Startup loads the samples, creates the engine session and connects the
    publisher; any failure there aborts before a single step runs. Leaving
    the context tears everything down in reverse order.

    Example:
        >>> with StreamApp(config) as app:
        ...     report = app.run()
    """

    def __init__(self, config: AppConfig, engine=None, publisher=None, status=None):
        self.config = config
        self._engine = engine
        self._publisher = publisher
        self._status = status

        self.loop: Optional[StreamingLoop] = None
        self.scheduler: Optional[FixedRateScheduler] = None

    def open(self) -> None:
        """Load resources and build the loop."""
        config = self.config

        sequence = load_sample_sequence(config.data)

        if self._engine is None:
            self._engine = InferenceEngine(
                model_path=config.model_path,
                variant=config.engine.variant,
                device=config.engine.device,
            )

        if self._publisher is None:
            if config.stream.enabled:
                self._publisher = SocketIOPublisher(
                    url=config.stream.url,
                    event=config.stream.event,
                    connect_timeout=config.stream.connect_timeout,
                    reconnect=config.stream.reconnect,
                    reconnect_delay=config.stream.reconnect_delay,
                )
            else:
                self._publisher = LogPublisher()
        self._publisher.connect()

        if self._status is None:
            self._status = ConsoleStatus() if config.show_status else NullStatus()

        self.loop = StreamingLoop(
            sequence=sequence,
            engine=self._engine,
            publisher=self._publisher,
            status=self._status,
            failure_policy=config.loop.failure_policy,
            max_step_retries=config.loop.max_step_retries,
            max_consecutive_failures=config.loop.max_consecutive_failures,
        )

    def run(self, timeout: Optional[float] = None) -> LoopReport:
        """
        Run the loop at the configured rate until the sequence is exhausted.

        Args:
            timeout: Optional wall-clock limit in seconds
        """
        if self.loop is None:
            self.open()

        self.scheduler = FixedRateScheduler(
            self.loop.tick,
            period_s=self.config.loop.period_ms / 1000.0,
            initial_delay_s=self.config.loop.initial_delay_ms / 1000.0,
        )

        logger.info(
            f"Streaming {len(self.loop.sequence)} samples every "
            f"{self.config.loop.period_ms:g} ms"
        )

        self.scheduler.start()
        try:
            if not self.scheduler.wait(timeout):
                self.loop.stop("timeout")
        except KeyboardInterrupt:
            self.loop.stop("interrupted")
        finally:
            self.scheduler.stop()

        if self.scheduler.error is not None:
            self.loop.stop("error")

        # Scheduler drops are added to a copy; the loop keeps its own counters
        report = self.loop.report
        return replace(
            report,
            coalesced=report.coalesced + self.scheduler.ticks_coalesced,
            failures_by_kind=dict(report.failures_by_kind),
        )

    def close(self) -> None:
        """Release all resources."""
        if self.scheduler is not None:
            self.scheduler.stop()
        if self._publisher is not None:
            self._publisher.close()
        if self._status is not None:
            self._status.close()
        if self._engine is not None:
            self._engine.close()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
