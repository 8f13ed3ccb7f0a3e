"""Shared fakes and fixtures."""

import json
from types import SimpleNamespace

import numpy as np
import pytest

from pose_stream.config import DataConfig
from pose_stream.models.engine import InferenceEngine
from pose_stream.models.registry import get_variant
from pose_stream.types import SampleSequence

ACC_WIDTH = 18
ORI_WIDTH = 54


class FakeSession:
    """Stands in for onnxruntime.InferenceSession."""

    def __init__(self, inputs, outputs, responder):
        self._inputs = list(inputs)
        self._outputs = list(outputs)
        self.responder = responder
        self.calls = []

    def get_inputs(self):
        return [SimpleNamespace(name=name) for name in self._inputs]

    def get_outputs(self):
        return [SimpleNamespace(name=name) for name in self._outputs]

    def run(self, output_names, feeds):
        call = len(self.calls)
        self.calls.append(dict(feeds))
        values = self.responder(call, feeds)
        return [values.get(name) for name in output_names]


def stateless_outputs(call, feeds):
    index = float(feeds["acc"][0, 0])
    return {
        "pose": np.full((1, 72), index, dtype=np.float32),
        "tran": np.array([[index, 0.0, -index]], dtype=np.float32),
    }


def stateful_outputs(call, feeds):
    """Every output carries the call number so mixed bundles are detectable."""
    k = float(call + 1)
    return {
        "pose": np.full((1, 72), k, dtype=np.float32),
        "tran_out": np.full(3, k, dtype=np.float32),
        "past_frames_out": np.full((26, 72), k, dtype=np.float32),
        "h_state_out": np.full((2, 256), k, dtype=np.float32),
        "c_state_out": np.full((2, 256), k, dtype=np.float32),
        "root_y_out": np.full(1, k, dtype=np.float32),
        "lfoot_pos_out": np.full(3, k, dtype=np.float32),
        "rfoot_pos_out": np.full(3, k, dtype=np.float32),
    }


def make_engine(variant_name, responder=None):
    variant = get_variant(variant_name)
    if responder is None:
        responder = stateful_outputs if variant.is_stateful else stateless_outputs
    session = FakeSession(variant.inputs, variant.outputs, responder)
    return InferenceEngine(variant=variant, session=session)


class RecordingPublisher:
    def __init__(self, fail_on=()):
        self.results = []
        self.fail_on = set(fail_on)
        self.connected = True
        self.closed = False

    def connect(self):
        return True

    def publish(self, result):
        if result.index in self.fail_on:
            raise ConnectionError("transport down")
        self.results.append(result)
        return True

    def close(self):
        self.closed = True

    @property
    def indices(self):
        return [r.index for r in self.results]


class RecordingStatus:
    def __init__(self):
        self.messages = []
        self.closed = False

    def post(self, text):
        self.messages.append(text)

    def close(self):
        self.closed = True


def make_sequence(n):
    acc = [np.full(ACC_WIDTH, i, dtype=np.float32) for i in range(n)]
    ori = [np.full(ORI_WIDTH, i, dtype=np.float32) for i in range(n)]
    return SampleSequence(acc=acc, ori=ori)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def status():
    return RecordingStatus()


@pytest.fixture
def write_assets(tmp_path):
    """Write acc/ori JSON resources and return a DataConfig pointing at them."""

    def _write(acc_rows, ori_rows):
        asset_dir = tmp_path / "assets"
        asset_dir.mkdir(exist_ok=True)
        (asset_dir / "acc.json").write_text(json.dumps(acc_rows))
        (asset_dir / "ori.json").write_text(json.dumps(ori_rows))
        return DataConfig(
            acc_file="acc.json",
            ori_file="ori.json",
            asset_dir=asset_dir,
            local_dir=tmp_path / "local",
        )

    return _write
