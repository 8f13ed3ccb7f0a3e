"""Recorded IMU sample loading."""

from pose_stream.data.loader import (
    DataLoadError,
    SequenceLengthError,
    ensure_local_copy,
    load_float_rows,
    load_sample_sequence,
)

__all__ = [
    "DataLoadError",
    "SequenceLengthError",
    "ensure_local_copy",
    "load_float_rows",
    "load_sample_sequence",
]
