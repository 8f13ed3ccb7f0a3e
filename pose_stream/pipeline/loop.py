"""
Streaming inference loop.

Each tick runs one step: fetch the sample at the cursor, build input tensors,
run the engine, swap in the new recurrent state, publish the result and
advance the cursor. Steps never raise; they return a StepResult and the
driver decides whether to continue, retry or abort.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import numpy as np
from numpy.typing import NDArray

from pose_stream.display import NullStatus
from pose_stream.models.registry import ModelVariant
from pose_stream.models.state import RecurrentState, StateUpdateError
from pose_stream.stats import InferenceStats
from pose_stream.types import (
    FailureKind,
    InferenceResult,
    LoopReport,
    SampleSequence,
    StepOutcome,
    StepResult,
)

logger = logging.getLogger(__name__)

EMPTY_OUTPUT_MESSAGE = "Pose or Tran output is empty."


class LoopState(Enum):
    """Driver state machine."""

    IDLE = "idle"
    STEPPING = "stepping"
    PUBLISHING = "publishing"
    STOPPED = "stopped"


class FailurePolicy(Enum):
    """Cursor handling after a failed step."""

    SKIP = "skip"  # Advance past the failed sample
    RETRY = "retry"  # Re-attempt the same sample on the next tick


@dataclass
class StepContext:
    """Everything a step needs, owned by the loop driver."""

    engine: object
    publisher: object
    state: Optional[RecurrentState] = None
    stats: InferenceStats = field(default_factory=InferenceStats)
    status: object = field(default_factory=NullStatus)
    report: LoopReport = field(default_factory=LoopReport)


def build_sample_feeds(
    variant: ModelVariant, acc: NDArray[np.float32], ori: NDArray[np.float32]
) -> Dict[str, NDArray[np.float32]]:
    """Shape one sample as (1, width) float32 tensors under the variant's input names."""
    acc_name, ori_name = variant.sample_inputs
    return {
        acc_name: np.asarray(acc, dtype=np.float32).reshape(1, -1),
        ori_name: np.asarray(ori, dtype=np.float32).reshape(1, -1),
    }


def run_step(ctx: StepContext, sequence: SampleSequence, index: int, on_phase=None) -> StepResult:
    """
    Run one step for the sample at index.

    Args:
        ctx: Step context
        sequence: Recorded samples
        index: Cursor position
        on_phase: Optional callback(LoopState) for phase changes

    Returns:
        StepResult describing the outcome
    """
    variant = ctx.engine.variant

    try:
        acc, ori = sequence[index]
        feeds = build_sample_feeds(variant, acc, ori)
        if variant.is_stateful:
            feeds.update(ctx.state.feeds())
    except Exception as e:
        logger.exception(f"Step {index}: could not build input tensors")
        return StepResult(index=index, outcome=StepOutcome.FAILED, failure=FailureKind.TENSOR, error=e)

    try:
        start = time.perf_counter()
        outputs = ctx.engine.run(feeds)
        duration_ms = (time.perf_counter() - start) * 1000.0
    except Exception as e:
        logger.exception(f"Step {index}: inference failed")
        return StepResult(index=index, outcome=StepOutcome.FAILED, failure=FailureKind.ENGINE, error=e)

    ctx.stats.add_duration(duration_ms)
    avg, min_ms, max_ms = ctx.stats.get_stats()
    logger.debug(f"Model inference took {duration_ms:.2f} ms")
    logger.debug(f"Average: {avg:.2f} ms, Min: {min_ms:.2f} ms, Max: {max_ms:.2f} ms")

    if variant.is_stateful:
        try:
            ctx.state.swap(outputs)
        except StateUpdateError as e:
            # Previous bundle stays in place
            ctx.report.state_rejections += 1
            logger.warning(f"Step {index}: state not updated: {e}")

    pose = outputs.get(variant.pose_output)
    tran = outputs.get(variant.translation_output)

    if pose is None or tran is None:
        ctx.status.post(EMPTY_OUTPUT_MESSAGE)
        return StepResult(index=index, outcome=StepOutcome.EMPTY, duration_ms=duration_ms)

    result = InferenceResult(index=index, pose=pose.ravel(), tran=tran.ravel())

    if on_phase is not None:
        on_phase(LoopState.PUBLISHING)

    try:
        ctx.publisher.publish(result)
    except Exception as e:
        logger.exception(f"Step {index}: publish failed")
        return StepResult(
            index=index,
            outcome=StepOutcome.FAILED,
            failure=FailureKind.PUBLISH,
            duration_ms=duration_ms,
            error=e,
        )

    pose_text = ", ".join(f"{v:.4f}" for v in result.pose[:6])
    tran_text = ", ".join(f"{v:.4f}" for v in result.tran)
    ctx.status.post(f"[{index}] Pose: {pose_text}, ... Tran: {tran_text}")

    return StepResult(index=index, outcome=StepOutcome.PUBLISHED, duration_ms=duration_ms)


class StreamingLoop:
    """
    Cursor-driven stepping over a recorded sequence.

    Example:
        >>> loop = StreamingLoop(sequence, engine, publisher)
        >>> while loop.tick():
        ...     pass
        >>> loop.report.published
    """

    def __init__(
        self,
        sequence: SampleSequence,
        engine,
        publisher,
        state: Optional[RecurrentState] = None,
        stats: Optional[InferenceStats] = None,
        status=None,
        failure_policy: str = "skip",
        max_step_retries: int = 3,
        max_consecutive_failures: int = 0,
    ):
        """
        Initialize the loop.

        Args:
            sequence: Recorded samples to replay
            engine: Inference engine (InferenceEngine or compatible)
            publisher: Result publisher
            state: Recurrent state; created from seeds for stateful engines
            stats: Timing tracker
            status: Status display
            failure_policy: 'skip' or 'retry'
            max_step_retries: Retries per sample before skipping it (retry policy)
            max_consecutive_failures: Abort after this many failures in a row (0 = never)
        """
        if state is None and engine.variant.is_stateful:
            state = RecurrentState(engine.variant.state_bindings)

        self.sequence = sequence
        self.ctx = StepContext(
            engine=engine,
            publisher=publisher,
            state=state,
            stats=stats or InferenceStats(),
            status=status or NullStatus(),
        )
        self.failure_policy = FailurePolicy(failure_policy)
        self.max_step_retries = max_step_retries
        self.max_consecutive_failures = max_consecutive_failures

        self._cursor = 0
        self._phase = LoopState.IDLE
        self._retries_at_cursor = 0
        self._consecutive_failures = 0
        self._step_lock = threading.Lock()

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def phase(self) -> LoopState:
        return self._phase

    @property
    def is_stopped(self) -> bool:
        return self._phase == LoopState.STOPPED

    @property
    def report(self) -> LoopReport:
        report = self.ctx.report
        report.avg_ms, report.min_ms, report.max_ms = self.ctx.stats.get_stats()
        return report

    @property
    def state(self) -> Optional[RecurrentState]:
        return self.ctx.state

    @property
    def stats(self) -> InferenceStats:
        return self.ctx.stats

    def _set_phase(self, phase: LoopState) -> None:
        self._phase = phase

    def stop(self, reason: str = "stopped") -> None:
        """Move to the terminal state, waiting for an in-flight step to finish."""
        with self._step_lock:
            self._stop(reason)

    def _stop(self, reason: str) -> None:
        # Caller holds _step_lock
        if self._phase != LoopState.STOPPED:
            self._phase = LoopState.STOPPED
            self.ctx.report.stop_reason = reason
            logger.info(f"Loop stopped at index {self._cursor} ({reason})")

    def tick(self) -> bool:
        """
        Handle one timer tick.

        Returns:
            False once the loop is stopped
        """
        self.step()
        return not self.is_stopped

    def step(self) -> StepResult:
        """Run the step at the cursor, or stop if the sequence is exhausted."""
        if not self._step_lock.acquire(blocking=False):
            self.ctx.report.coalesced += 1
            return StepResult(index=self._cursor, outcome=StepOutcome.COALESCED)

        try:
            if self.is_stopped:
                return StepResult(index=self._cursor, outcome=StepOutcome.STOPPED)

            if self._cursor >= len(self.sequence):
                self._stop("end_of_sequence")
                return StepResult(index=self._cursor, outcome=StepOutcome.STOPPED)

            self._set_phase(LoopState.STEPPING)
            result = run_step(self.ctx, self.sequence, self._cursor, on_phase=self._set_phase)
            self._account(result)
            if not self.is_stopped:
                self._set_phase(LoopState.IDLE)
            return result
        finally:
            self._step_lock.release()

    def _account(self, result: StepResult) -> None:
        report = self.ctx.report
        report.steps += 1

        if result.ok:
            if result.outcome == StepOutcome.PUBLISHED:
                report.published += 1
            else:
                report.empty += 1
            self._consecutive_failures = 0
            self._advance()
            return

        report.failed += 1
        kind = result.failure.value if result.failure else "unknown"
        report.failures_by_kind[kind] = report.failures_by_kind.get(kind, 0) + 1
        self._consecutive_failures += 1

        # Publish runs after the state swap, so that sample is never re-run
        retryable = result.failure != FailureKind.PUBLISH
        if (
            retryable
            and self.failure_policy == FailurePolicy.RETRY
            and self._retries_at_cursor < self.max_step_retries
        ):
            self._retries_at_cursor += 1
            report.retries += 1
            logger.info(
                f"Retrying index {self._cursor} "
                f"({self._retries_at_cursor}/{self.max_step_retries})"
            )
        else:
            logger.warning(f"Skipping index {self._cursor} after {kind} failure")
            self._advance()

        if 0 < self.max_consecutive_failures <= self._consecutive_failures:
            self._stop("too_many_failures")

    def _advance(self) -> None:
        self._cursor += 1
        self._retries_at_cursor = 0

    def run(self) -> LoopReport:
        """Step synchronously until stopped, without pacing."""
        while self.tick():
            pass
        return self.report
