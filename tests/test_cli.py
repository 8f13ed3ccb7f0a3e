import io
import json

import pytest
from rich.console import Console

from conftest import RecordingPublisher, RecordingStatus, make_engine, stateless_outputs
from pose_stream import cli
from pose_stream.app import StreamApp


@pytest.fixture
def output(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=buffer, force_terminal=False, width=200))
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    return buffer


def write_config(tmp_path, n_acc, n_ori):
    asset_dir = tmp_path / "assets"
    asset_dir.mkdir()
    (asset_dir / "acc_240521.json").write_text(json.dumps([[0.0] * 18] * n_acc))
    (asset_dir / "ori_240521.json").write_text(json.dumps([[0.0] * 54] * n_ori))

    path = tmp_path / "config.yaml"
    path.write_text(
        f"model_dir: {tmp_path}\n"
        "data:\n"
        f"  asset_dir: {asset_dir}\n"
        f"  local_dir: {tmp_path / 'local'}\n"
        "loop:\n"
        "  period_ms: 1.0\n"
        "  initial_delay_ms: 0.0\n"
    )
    return path


def with_fakes(responder):
    """StreamApp factory that swaps in an in-memory engine, publisher and status."""

    def factory(config):
        return StreamApp(
            config,
            engine=make_engine("stateless", responder),
            publisher=RecordingPublisher(),
            status=RecordingStatus(),
        )

    return factory


def test_startup_failure_exits_with_1(tmp_path, output):
    path = write_config(tmp_path, n_acc=3, n_ori=2)

    code = cli.main(["--config", str(path), "--no-stream", "--quiet"])

    assert code == 1
    assert "Startup failed" in output.getvalue()
    assert "3 != 2" in output.getvalue()


def test_failed_steps_exit_with_2(tmp_path, output, monkeypatch):
    def responder(call, feeds):
        if call == 1:
            raise RuntimeError("engine failure")
        return stateless_outputs(call, feeds)

    monkeypatch.setattr(cli, "StreamApp", with_fakes(responder))
    path = write_config(tmp_path, n_acc=3, n_ori=3)

    code = cli.main(["--config", str(path), "--variant", "stateless", "--no-stream", "--quiet"])

    assert code == 2
    assert "Run summary" in output.getvalue()


def test_clean_run_exits_with_0_and_writes_summary(tmp_path, output, monkeypatch):
    monkeypatch.setattr(cli, "StreamApp", with_fakes(stateless_outputs))
    path = write_config(tmp_path, n_acc=4, n_ori=4)
    summary = tmp_path / "summary.json"

    code = cli.main([
        "--config", str(path), "--variant", "stateless", "--no-stream", "--quiet",
        "--json", str(summary),
    ])

    assert code == 0
    data = json.loads(summary.read_text())
    assert data["steps"] == 4
    assert data["published"] == 4
    assert data["failed"] == 0
    assert data["stop_reason"] == "end_of_sequence"
