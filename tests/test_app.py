import io
import threading
import time

import pytest
from rich.console import Console

from conftest import RecordingPublisher, RecordingStatus, make_engine, stateless_outputs
from pose_stream.app import StreamApp
from pose_stream.config import AppConfig
from pose_stream.data.loader import SequenceLengthError
from pose_stream.display import ConsoleStatus


def rows(n, width):
    return [[float(i)] * width for i in range(n)]


def make_config(data_config):
    config = AppConfig()
    config.data = data_config
    config.loop.period_ms = 1.0
    config.loop.initial_delay_ms = 0.0
    return config


def test_streams_every_sample_at_fixed_rate(write_assets):
    config = make_config(write_assets(rows(6, 18), rows(6, 54)))
    publisher = RecordingPublisher()
    status = RecordingStatus()

    with StreamApp(config, engine=make_engine("stateful"), publisher=publisher, status=status) as app:
        report = app.run(timeout=10.0)

    assert publisher.indices == [0, 1, 2, 3, 4, 5]
    assert report.published == 6
    assert report.stop_reason == "end_of_sequence"
    assert app.loop.state.generation == 6
    assert publisher.closed
    assert status.closed


def test_length_mismatch_aborts_before_any_step(write_assets):
    config = make_config(write_assets(rows(3, 18), rows(2, 54)))
    engine = make_engine("stateless")
    publisher = RecordingPublisher()

    app = StreamApp(config, engine=engine, publisher=publisher)
    with pytest.raises(SequenceLengthError):
        app.open()

    assert engine.session.calls == []
    assert publisher.results == []


def test_timeout_stops_loop(write_assets):
    config = make_config(write_assets(rows(1000, 18), rows(1000, 54)))
    config.loop.period_ms = 50.0
    publisher = RecordingPublisher()

    with StreamApp(config, engine=make_engine("stateless"), publisher=publisher,
                   status=RecordingStatus()) as app:
        report = app.run(timeout=0.2)

    assert report.stop_reason == "timeout"
    assert len(publisher.results) < 1000


def test_console_status_renders_on_its_own_thread():
    output = io.StringIO()
    status = ConsoleStatus(console=Console(file=output, force_terminal=False))

    status.post("Pose or Tran output is empty.")
    status.post("[3] Pose: 0.1000")
    status.close()

    text = output.getvalue()
    assert "Pose or Tran output is empty." in text
    assert "[3] Pose: 0.1000" in text


class BlockingWriter(io.StringIO):
    """Text sink that holds every write until released."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def write(self, text):
        self.release.wait(timeout=5.0)
        return super().write(text)


def test_console_status_drops_oldest_when_terminal_lags():
    output = BlockingWriter()
    status = ConsoleStatus(console=Console(file=output, force_terminal=False), max_pending=3)

    for i in range(10):
        status.post(f"line {i}")
    output.release.set()
    status.close()

    text = output.getvalue()
    assert status.dropped >= 6
    assert "line 9" in text


def test_repeated_run_does_not_accumulate_coalesced_ticks(write_assets):
    def slow(call, feeds):
        time.sleep(0.005)
        return stateless_outputs(call, feeds)

    config = make_config(write_assets(rows(5, 18), rows(5, 54)))

    with StreamApp(config, engine=make_engine("stateless", slow), publisher=RecordingPublisher(),
                   status=RecordingStatus()) as app:
        first = app.run(timeout=10.0)
        first_ticks = app.scheduler.ticks_coalesced
        second = app.run(timeout=10.0)

    assert first.coalesced == first_ticks
    assert second.coalesced == app.scheduler.ticks_coalesced
    assert app.loop.report.coalesced == 0
    assert second.published == 5
