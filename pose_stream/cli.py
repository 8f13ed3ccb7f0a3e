"""
Command-line interface for the pose streaming loop.
"""

import argparse
import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from pose_stream import __version__
from pose_stream.app import StreamApp, setup_logging
from pose_stream.config import AppConfig
from pose_stream.data.loader import DataLoadError, SequenceLengthError
from pose_stream.models.engine import EngineLoadError
from pose_stream.types import LoopReport

console = Console()


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Stream IMU pose inference to a Socket.IO visualization server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay the bundled recording with default settings
  python -m pose_stream.cli

  # Use a custom configuration
  python -m pose_stream.cli --config config.yaml

  # Stateless model, no streaming
  python -m pose_stream.cli --variant stateless --no-stream

  # Keep the run summary as JSON
  python -m pose_stream.cli --json summary.json
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--config",
        type=Path,
        help="Configuration file (YAML)",
    )

    parser.add_argument(
        "--variant",
        choices=["stateless", "stateful"],
        help="Model variant",
    )

    parser.add_argument(
        "--model",
        type=str,
        help="Model file name inside the model directory (default: the variant's file)",
    )

    parser.add_argument(
        "--model-dir",
        type=Path,
        help="Directory holding the ONNX model",
    )

    parser.add_argument(
        "--device",
        choices=["cpu", "cuda", "directml", "coreml"],
        help="Device to run inference on",
    )

    parser.add_argument(
        "--asset-dir",
        type=Path,
        help="Directory holding the bundled acc/ori JSON files",
    )

    parser.add_argument(
        "--server",
        type=str,
        help="Socket.IO server URL",
    )

    parser.add_argument(
        "--no-stream",
        action="store_true",
        help="Do not connect to a server; log payloads instead",
    )

    parser.add_argument(
        "--period-ms",
        type=float,
        help="Step period in milliseconds",
    )

    parser.add_argument(
        "--on-failure",
        choices=["skip", "retry"],
        help="Cursor policy after a failed step",
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print per-step status",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )

    parser.add_argument(
        "--json",
        type=Path,
        help="Write the run summary to this JSON file",
    )

    return parser.parse_args(argv)


def build_config(args) -> AppConfig:
    """Load configuration and apply command line overrides."""
    if args.config:
        config = AppConfig.from_yaml(args.config)
    else:
        config = AppConfig()

    if args.variant:
        config.engine.variant = args.variant
    if args.model:
        config.engine.model_file = args.model
    if args.model_dir:
        config.model_dir = args.model_dir
    if args.device:
        config.engine.device = args.device
    if args.asset_dir:
        config.data.asset_dir = args.asset_dir
    if args.server:
        config.stream.url = args.server
    if args.no_stream:
        config.stream.enabled = False
    if args.period_ms:
        config.loop.period_ms = args.period_ms
    if args.on_failure:
        config.loop.failure_policy = args.on_failure
    if args.quiet:
        config.show_status = False
    if args.log_level:
        config.log_level = args.log_level

    return config


def print_report(report: LoopReport) -> None:
    """Print run statistics."""
    table = Table(title="Run summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Steps", str(report.steps))
    table.add_row("Published", str(report.published))
    table.add_row("Empty outputs", str(report.empty))
    table.add_row("Failed", str(report.failed))
    for kind, count in sorted(report.failures_by_kind.items()):
        table.add_row(f"  {kind}", str(count))
    table.add_row("Retries", str(report.retries))
    table.add_row("State rejections", str(report.state_rejections))
    table.add_row("Coalesced ticks", str(report.coalesced))
    table.add_row("Inference avg", f"{report.avg_ms:.2f} ms")
    table.add_row("Inference min", f"{report.min_ms:.2f} ms")
    table.add_row("Inference max", f"{report.max_ms:.2f} ms")
    table.add_row("Stop reason", str(report.stop_reason))

    console.print(table)


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    config = build_config(args)

    setup_logging(config.log_level)

    issues = config.validate()
    if issues:
        console.print("[yellow]Configuration warnings:[/yellow]")
        for issue in issues:
            console.print(f"  - {issue}")

    app = StreamApp(config)
    try:
        app.open()
    except (DataLoadError, SequenceLengthError, EngineLoadError, FileNotFoundError, ValueError) as e:
        app.close()
        console.print(f"[red]Startup failed:[/red] {e}")
        return 1

    try:
        console.print(f"[bold green]Streaming to:[/bold green] "
                      f"{config.stream.url if config.stream.enabled else '(log only)'}")
        report = app.run()
    finally:
        app.close()

    print_report(report)

    if args.json:
        with open(args.json, "w") as f:
            json.dump(report.to_dict(), f, indent=2)
        console.print(f"Summary written to {args.json}")

    return 0 if report.failed == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
