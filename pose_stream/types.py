"""
Core data types for the pose streaming loop.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray


@dataclass
class SampleSequence:
    """
    Paired accelerometer and orientation recordings.

    Both lists are indexed in lockstep; each row is a fixed-width float32
    vector (18 values for 6 accelerometers, 54 for 6 rotation matrices).
    """

    acc: List[NDArray[np.float32]]
    ori: List[NDArray[np.float32]]

    def __post_init__(self):
        if len(self.acc) != len(self.ori):
            raise ValueError(
                f"acc and ori must have the same length: {len(self.acc)} != {len(self.ori)}"
            )

    def __len__(self) -> int:
        return len(self.acc)

    def __getitem__(self, index: int) -> Tuple[NDArray[np.float32], NDArray[np.float32]]:
        return self.acc[index], self.ori[index]


@dataclass
class InferenceResult:
    """Pose and translation predicted for one step."""

    index: int
    pose: NDArray[np.float32]  # Flattened joint parameters
    tran: NDArray[np.float32]  # Shape: (3,)


class StepOutcome(Enum):
    """How a single loop step ended."""

    PUBLISHED = "published"
    EMPTY = "empty"  # Engine returned no pose or translation
    FAILED = "failed"
    STOPPED = "stopped"  # Cursor reached the end of the sequence
    COALESCED = "coalesced"  # Another step was still in flight


class FailureKind(Enum):
    """Which part of a step failed."""

    TENSOR = "tensor"
    ENGINE = "engine"
    STATE = "state"
    PUBLISH = "publish"


@dataclass
class StepResult:
    """Result of one step, consumed by the loop driver."""

    index: int
    outcome: StepOutcome
    failure: Optional[FailureKind] = None
    duration_ms: Optional[float] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (StepOutcome.PUBLISHED, StepOutcome.EMPTY)


@dataclass
class LoopReport:
    """Counters collected over a whole run."""

    steps: int = 0
    published: int = 0
    empty: int = 0
    failed: int = 0
    retries: int = 0
    state_rejections: int = 0
    coalesced: int = 0
    failures_by_kind: Dict[str, int] = field(default_factory=dict)

    # Timing summary in milliseconds
    avg_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0

    stop_reason: Optional[str] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "steps": self.steps,
            "published": self.published,
            "empty": self.empty,
            "failed": self.failed,
            "retries": self.retries,
            "state_rejections": self.state_rejections,
            "coalesced": self.coalesced,
            "failures_by_kind": dict(self.failures_by_kind),
            "avg_ms": self.avg_ms,
            "min_ms": self.min_ms,
            "max_ms": self.max_ms,
            "stop_reason": self.stop_reason,
        }
