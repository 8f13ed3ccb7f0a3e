"""
Recurrent state carried between calls of the stateful pose network.
"""

import threading
from typing import Dict, Mapping, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from pose_stream.models.registry import STATE_BINDINGS


class StateUpdateError(ValueError):
    """Engine outputs cannot replace the whole state bundle."""


# Seed values applied once before the first call
STATE_SEEDS: Dict[str, Tuple[float, ...]] = {
    "tran_in": (0.0, 0.0, 0.0),
    "root_y_in": (0.0,),
    "lfoot_pos_in": (0.1283, -0.9559, 0.0750),
    "rfoot_pos_in": (-0.1194, -0.9564, 0.0774),
}

# Zero-filled tensors, by shape
STATE_ZEROS: Dict[str, Tuple[int, ...]] = {
    "past_frames_in": (26, 72),
    "h_state_in": (2, 256),
    "c_state_in": (2, 256),
}


def seed_state() -> Dict[str, NDArray[np.float32]]:
    """Build a fresh bundle of seed tensors."""
    tensors = {}
    for name, _ in STATE_BINDINGS:
        if name in STATE_ZEROS:
            tensors[name] = np.zeros(STATE_ZEROS[name], dtype=np.float32)
        else:
            tensors[name] = np.array(STATE_SEEDS[name], dtype=np.float32)
    return tensors


class RecurrentState:
    """
    Seven-tensor recurrent state of the stateful variant.

    The bundle is only ever replaced as a whole: swap() either installs all
    seven outputs of one inference call or leaves the previous bundle intact.
    """

    def __init__(self, bindings: Tuple[Tuple[str, str], ...] = STATE_BINDINGS):
        self.bindings = bindings
        self._lock = threading.Lock()
        self._tensors = seed_state()
        self._shapes = {name: t.shape for name, t in self._tensors.items()}
        self.generation = 0

    def feeds(self) -> Dict[str, NDArray[np.float32]]:
        """Snapshot of the current bundle keyed by input name."""
        with self._lock:
            return dict(self._tensors)

    def get(self, input_name: str) -> NDArray[np.float32]:
        with self._lock:
            return self._tensors[input_name]

    def swap(self, outputs: Mapping[str, Optional[NDArray[np.float32]]]) -> int:
        """
        Replace the bundle with the state outputs of one inference call.

        Args:
            outputs: Engine outputs keyed by output name

        Returns:
            New generation number

        Raises:
            StateUpdateError: An output is missing or has the wrong shape
        """
        incoming = {}
        for input_name, output_name in self.bindings:
            value = outputs.get(output_name)
            if value is None:
                raise StateUpdateError(f"State output missing: {output_name}")

            array = np.asarray(value, dtype=np.float32)
            expected = self._shapes[input_name]
            if array.shape != expected:
                # Tolerate a leading batch axis of 1
                if array.size == int(np.prod(expected)):
                    array = array.reshape(expected)
                else:
                    raise StateUpdateError(
                        f"{output_name} has shape {array.shape}, expected {expected}"
                    )
            incoming[input_name] = array

        with self._lock:
            superseded = self._tensors
            self._tensors = incoming
            self.generation += 1
            generation = self.generation

        # Drop our references to the superseded tensors
        superseded.clear()

        return generation

    def reset(self) -> None:
        """Re-apply the seed values."""
        with self._lock:
            superseded = self._tensors
            self._tensors = seed_state()
            self.generation = 0
        superseded.clear()

    @property
    def handle_count(self) -> int:
        """Number of tensors currently held."""
        with self._lock:
            return len(self._tensors)
