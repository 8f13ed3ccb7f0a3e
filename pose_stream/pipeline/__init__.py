"""Streaming loop and scheduling."""

from pose_stream.pipeline.loop import (
    FailurePolicy,
    LoopState,
    StepContext,
    StreamingLoop,
    run_step,
)
from pose_stream.pipeline.scheduler import FixedRateScheduler

__all__ = [
    "FailurePolicy",
    "LoopState",
    "StepContext",
    "StreamingLoop",
    "run_step",
    "FixedRateScheduler",
]
