"""
Text payload exchanged with the visualization server.

Format: comma-joined pose values, '#', comma-joined translation values, '$'.

    0.12,0.34,...#0.01,-0.02,0.0$
"""

from typing import List, Sequence, Tuple

import numpy as np

POSE_SEPARATOR = "#"
TERMINATOR = "$"


def _join(values: Sequence[float]) -> str:
    # float32 shortest repr: 0.1 stays "0.1", 1 becomes "1.0"
    return ",".join(str(v) for v in np.asarray(values, dtype=np.float32).ravel())


def format_payload(pose: Sequence[float], tran: Sequence[float]) -> str:
    """Encode one pose / translation pair."""
    return _join(pose) + POSE_SEPARATOR + _join(tran) + TERMINATOR


def _split(text: str) -> List[float]:
    if not text:
        return []
    return [float(v) for v in text.split(",")]


def parse_payload(payload: str) -> Tuple[List[float], List[float]]:
    """
    Decode a payload into (pose, tran) value lists.

    Raises:
        ValueError: The payload is not terminated or has no separator
    """
    if not payload.endswith(TERMINATOR):
        raise ValueError("Payload is missing the '$' terminator")

    body = payload[: -len(TERMINATOR)]
    if body.count(POSE_SEPARATOR) != 1:
        raise ValueError("Payload must contain exactly one '#' separator")

    pose_text, tran_text = body.split(POSE_SEPARATOR)
    return _split(pose_text), _split(tran_text)
