"""
Loader for recorded accelerometer / orientation sequences.

Resources are JSON array-of-arrays files. They are copied from the bundled
asset directory into writable local storage on first access and parsed from
the local copy afterwards.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import List

import numpy as np
from numpy.typing import NDArray

from pose_stream.config import DataConfig
from pose_stream.types import SampleSequence

logger = logging.getLogger(__name__)


class DataLoadError(RuntimeError):
    """A sample resource is missing or malformed."""


class SequenceLengthError(ValueError):
    """Accelerometer and orientation sequences differ in length."""


def ensure_local_copy(file_name: str, asset_dir: Path, local_dir: Path) -> Path:
    """
    Copy a bundled resource into local storage unless a copy already exists.

    Args:
        file_name: Resource file name
        asset_dir: Directory holding the bundled resources
        local_dir: Writable directory for local copies

    Returns:
        Path of the local copy
    """
    local_path = Path(local_dir) / file_name
    if local_path.exists():
        return local_path

    asset_path = Path(asset_dir) / file_name
    if not asset_path.exists():
        raise DataLoadError(f"Resource not found: {asset_path}")

    local_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(asset_path, local_path)
    logger.info(f"Copied {file_name} to {local_path.parent}")

    return local_path


def load_float_rows(path: Path) -> List[NDArray[np.float32]]:
    """
    Parse a JSON array-of-arrays into float32 row vectors.

    All rows must share the same width.
    """
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataLoadError(f"Could not parse {path}: {e}") from e

    if not isinstance(data, list):
        raise DataLoadError(f"{path}: expected a JSON array of rows")

    rows: List[NDArray[np.float32]] = []
    width = None
    for i, row in enumerate(data):
        try:
            values = np.asarray(row, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise DataLoadError(f"{path}: row {i} is not numeric: {e}") from e

        if values.ndim != 1:
            raise DataLoadError(f"{path}: row {i} is not a flat array")

        if width is None:
            width = values.shape[0]
        elif values.shape[0] != width:
            raise DataLoadError(
                f"{path}: row {i} has width {values.shape[0]}, expected {width}"
            )

        rows.append(values)

    return rows


def load_sample_sequence(config: DataConfig) -> SampleSequence:
    """
    Load the paired accelerometer and orientation sequences.

    Raises:
        DataLoadError: A resource is missing or malformed
        SequenceLengthError: The two sequences differ in length
    """
    acc_path = ensure_local_copy(config.acc_file, config.asset_dir, config.local_dir)
    ori_path = ensure_local_copy(config.ori_file, config.asset_dir, config.local_dir)

    acc = load_float_rows(acc_path)
    ori = load_float_rows(ori_path)

    if len(acc) != len(ori):
        raise SequenceLengthError(
            f"{config.acc_file} and {config.ori_file} differ in length: "
            f"{len(acc)} != {len(ori)}"
        )

    logger.info(f"Loaded {len(acc)} samples")

    return SampleSequence(acc=acc, ori=ori)
