"""
Registry of supported pose network variants and their tensor contracts.
"""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class ModelVariant:
    """Named-input / named-output contract of one exported model."""

    name: str
    model_file: str
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]
    pose_output: str
    translation_output: str

    # (input name, output name) pairs carried from one call to the next
    state_bindings: Tuple[Tuple[str, str], ...] = ()

    @property
    def is_stateful(self) -> bool:
        return bool(self.state_bindings)

    @property
    def sample_inputs(self) -> Tuple[str, ...]:
        """Inputs fed from the recorded sample rather than from state."""
        state_inputs = {name for name, _ in self.state_bindings}
        return tuple(name for name in self.inputs if name not in state_inputs)


STATE_BINDINGS = (
    ("tran_in", "tran_out"),
    ("past_frames_in", "past_frames_out"),
    ("h_state_in", "h_state_out"),
    ("c_state_in", "c_state_out"),
    ("root_y_in", "root_y_out"),
    ("lfoot_pos_in", "lfoot_pos_out"),
    ("rfoot_pos_in", "rfoot_pos_out"),
)


MODEL_VARIANTS: Dict[str, ModelVariant] = {
    "stateless": ModelVariant(
        name="stateless",
        model_file="transpose_net.onnx",
        inputs=("acc", "ori"),
        outputs=("pose", "tran"),
        pose_output="pose",
        translation_output="tran",
    ),
    "stateful": ModelVariant(
        name="stateful",
        model_file="transpose_net_241230.onnx",
        inputs=("acc", "ori") + tuple(name for name, _ in STATE_BINDINGS),
        outputs=("pose",) + tuple(name for _, name in STATE_BINDINGS),
        pose_output="pose",
        translation_output="tran_out",
        state_bindings=STATE_BINDINGS,
    ),
}


def get_variant(name: str) -> ModelVariant:
    """Look up a model variant by name."""
    if name not in MODEL_VARIANTS:
        raise ValueError(
            f"Unknown model variant: {name}. Available: {list(MODEL_VARIANTS.keys())}"
        )
    return MODEL_VARIANTS[name]
