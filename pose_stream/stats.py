"""Per-step inference latency statistics."""

from typing import List, Tuple


class InferenceStats:
    """
    Running record of inference durations in milliseconds.

    Every measurement is kept for the whole run; there is no windowing.
    """

    def __init__(self):
        self.durations: List[float] = []

    def add_duration(self, duration_ms: float) -> None:
        """Record one inference duration."""
        self.durations.append(float(duration_ms))

    def get_stats(self) -> Tuple[float, float, float]:
        """Return (average, min, max); all zero when nothing was recorded."""
        if not self.durations:
            return 0.0, 0.0, 0.0

        avg = sum(self.durations) / len(self.durations)
        return avg, min(self.durations), max(self.durations)

    @property
    def count(self) -> int:
        return len(self.durations)

    def __len__(self) -> int:
        return len(self.durations)

    def reset(self) -> None:
        self.durations.clear()
