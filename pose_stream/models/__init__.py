"""Model loading, inference and recurrent state."""

from pose_stream.models.engine import EngineLoadError, InferenceEngine
from pose_stream.models.registry import MODEL_VARIANTS, ModelVariant, get_variant
from pose_stream.models.state import RecurrentState, StateUpdateError

__all__ = [
    "EngineLoadError",
    "InferenceEngine",
    "MODEL_VARIANTS",
    "ModelVariant",
    "get_variant",
    "RecurrentState",
    "StateUpdateError",
]
