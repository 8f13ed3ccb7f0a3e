"""
Pose network inference using ONNX Runtime.

The engine is treated as an opaque function from a fixed set of named input
tensors to a fixed set of named output tensors. Any output may be missing.
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import numpy as np
from numpy.typing import NDArray

try:
    import onnxruntime as ort
except ImportError:
    raise ImportError(
        "Please install onnxruntime or onnxruntime-gpu:\n"
        "  pip install onnxruntime-gpu  # For GPU\n"
        "  pip install onnxruntime       # For CPU"
    )

from pose_stream.models.registry import ModelVariant, get_variant

logger = logging.getLogger(__name__)


class EngineLoadError(RuntimeError):
    """The inference session could not be created or does not fit the variant."""


class InferenceEngine:
    """
    ONNX Runtime session bound to one model variant.

    Example:
        >>> with InferenceEngine("assets/transpose_net_241230.onnx", "stateful") as engine:
        ...     outputs = engine.run(feeds)
    """

    def __init__(
        self,
        model_path: Optional[Path] = None,
        variant: Union[str, ModelVariant] = "stateful",
        device: str = "cpu",
        session=None,
    ):
        """
        Initialize the inference engine.

        Args:
            model_path: Path to ONNX model file
            variant: Variant name or ModelVariant describing the tensor contract
            device: Device to run inference on ('cpu', 'cuda', etc.)
            session: Already created session; model_path is ignored when given
        """
        self.variant = get_variant(variant) if isinstance(variant, str) else variant
        self.model_path = Path(model_path) if model_path is not None else None
        self.device = device

        if session is None:
            session = self._create_session()

        self.session = session

        self.input_names = [i.name for i in self.session.get_inputs()]
        self.output_names = [o.name for o in self.session.get_outputs()]

        missing = [name for name in self.variant.inputs if name not in self.input_names]
        if missing:
            raise EngineLoadError(
                f"Model does not accept the {self.variant.name} inputs {missing}. "
                f"Model inputs: {self.input_names}"
            )

        unfed = [name for name in self.input_names if name not in self.variant.inputs]
        if unfed:
            raise EngineLoadError(
                f"Model expects inputs {unfed} that the {self.variant.name} variant never feeds. "
                f"Check the variant or the model file."
            )

        # Only ask for outputs the model actually declares
        self._run_outputs = [
            name for name in self.variant.outputs if name in self.output_names
        ]
        absent = [name for name in self.variant.outputs if name not in self.output_names]
        if absent:
            logger.warning(f"Model does not declare outputs {absent}")

        logger.info(f"✓ Engine ready ({self.variant.name})")
        logger.info(f"  Inputs: {self.input_names}")
        logger.info(f"  Outputs: {self.output_names}")

    def _create_session(self):
        if self.model_path is None:
            raise ValueError("Either model_path or session is required")

        if not self.model_path.exists():
            raise FileNotFoundError(f"Model file not found: {self.model_path}")

        logger.info(f"Loading pose model: {self.model_path.name}")

        providers = self._get_providers(self.device)
        logger.info(f"Using providers: {providers}")

        try:
            return ort.InferenceSession(str(self.model_path), providers=providers)
        except Exception as e:
            raise EngineLoadError(f"Could not create session for {self.model_path}: {e}") from e

    def _get_providers(self, device: str) -> List[str]:
        """Get ONNX Runtime execution providers based on device."""
        if device == "cuda":
            return ["CUDAExecutionProvider", "CPUExecutionProvider"]
        elif device == "directml":
            return ["DmlExecutionProvider", "CPUExecutionProvider"]
        elif device == "coreml":
            return ["CoreMLExecutionProvider", "CPUExecutionProvider"]
        else:
            return ["CPUExecutionProvider"]

    def run(self, feeds: Mapping[str, NDArray[np.float32]]) -> Dict[str, Optional[NDArray[np.float32]]]:
        """
        Run one synchronous inference call.

        Args:
            feeds: Input tensors keyed by input name

        Returns:
            Every variant output keyed by name; missing or empty outputs map to None
        """
        values = self.session.run(self._run_outputs, dict(feeds))

        outputs: Dict[str, Optional[NDArray[np.float32]]] = {
            name: None for name in self.variant.outputs
        }
        for name, value in zip(self._run_outputs, values):
            if value is None:
                continue
            array = np.asarray(value, dtype=np.float32)
            if array.size == 0:
                continue
            outputs[name] = array

        return outputs

    def close(self) -> None:
        """Release the session."""
        self.session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
