"""
IMU Pose Streaming

Replays recorded IMU sequences through a pretrained ONNX pose network at a
fixed rate and streams the predicted body pose to a remote visualization
server over Socket.IO.

Features:
- Stateless and stateful (recurrent) model variants
- Recurrent state threaded between inference calls
- Fixed-rate single-worker scheduling with tick coalescing
- Inference latency statistics

License: MIT
"""

__version__ = "1.0.0"
__author__ = "Pose Stream Contributors"

__all__ = [
    "__version__",
]
