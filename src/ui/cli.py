"""CLI shell covering Scan → Report → Listen."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from common.config import error_mode_from_policy, load_runtime_config
from common.errors import ScanError
from common.models import ReportNode, RuntimeConfig, ScanProgress
from common.progress import ProgressLogger
from core.analysis import LineClassifier, TreeAggregator
from core.instrumentation import Instrumenter
from core.listener import PingListener
from storage import load_report, save_report, save_report_parquet
from ui.render import render_report

DEFAULT_DIRECTORY = "."
LOG_FORMAT = "[%(levelname)s] %(message)s"


def render_progress(progress: ScanProgress) -> None:
    print(
        f"[scan] {progress.file_path} marked={progress.marked_lines} "
        f"total={progress.total_lines} phase={progress.phase}"
    )


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr, format=LOG_FORMAT)


def build_classifier(runtime: RuntimeConfig) -> LineClassifier:
    settings = runtime.global_settings
    instrumenter = None
    if runtime.profile.instrument:
        instrumenter = Instrumenter(
            host=settings.listener_host,
            port=settings.listener_port,
            terminator=settings.statement_terminator,
        )
    return LineClassifier(
        block_pattern=settings.block_pattern,
        source_suffix=settings.source_suffix,
        count_blank_lines_in_block=runtime.profile.count_blank_lines_in_block,
        encoding=settings.encoding,
        errors=error_mode_from_policy(settings.error_policy),
        instrumenter=instrumenter,
    )


def scan_overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    profile: Dict[str, Any] = {}
    if args.instrument:
        profile["instrument"] = True
    if args.skip_blank_lines:
        profile["count_blank_lines_in_block"] = False
    if args.follow_symlinks:
        profile["follow_symlinks"] = True
    return {"profile": profile} if profile else {}


def command_scan(args: argparse.Namespace) -> None:
    runtime = load_runtime_config(
        profile=args.profile,
        config_path=Path(args.config) if args.config else None,
        overrides=scan_overrides(args),
    )
    progress_log = ProgressLogger(Path(args.progress_log)) if args.progress_log else None
    aggregator = TreeAggregator(
        build_classifier(runtime),
        follow_symlinks=runtime.profile.follow_symlinks,
        progress_logger=progress_log,
    )
    if runtime.profile.instrument:
        print("[scan] instrumentation enabled: matching files will be rewritten in place")

    report = aggregator.aggregate(args.directory, progress_callback=None if args.quiet else render_progress)
    print(render_report(report))

    output_path = Path(args.output or runtime.global_settings.default_output)
    write_report(report, output_path, args.format)
    print(f"Output written to {output_path}")


def write_report(report: ReportNode, output_path: Path, output_format: str) -> None:
    if output_format == "parquet":
        save_report_parquet(report, output_path)
    else:
        save_report(report, output_path)


def command_show(args: argparse.Namespace) -> None:
    report = load_report(Path(args.report))
    print(render_report(report))


def command_listen(args: argparse.Namespace) -> None:
    settings = load_runtime_config(
        config_path=Path(args.config) if args.config else None,
    ).global_settings
    listener = PingListener(
        args.host or settings.listener_host,
        args.port if args.port is not None else settings.listener_port,
        max_workers=args.max_workers or settings.listener_max_workers,
    )
    host, port = listener.address
    print(f"Counting pings on {host}:{port} (Ctrl+C to stop)")
    try:
        listener.serve_forever()
    except KeyboardInterrupt:
        print(f"Stopped after {listener.counter.value} ping(s)")
    finally:
        listener.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unsafe-scanner",
        description=(
            "Recursively count lines inside unsafe blocks of Rust files and report "
            "the per-directory tree as JSON or Parquet."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--config",
        help="Override path to the configuration JSON",
    )
    subparsers = parser.add_subparsers(dest="command")

    scan = subparsers.add_parser("scan", help="Scan a directory tree and write the report")
    scan.add_argument(
        "directory",
        nargs="?",
        default=DEFAULT_DIRECTORY,
        help="Root directory to scan (default: current directory)",
    )
    scan.add_argument(
        "-o",
        "--output",
        help="Destination report file (default from config: output.json)",
    )
    scan.add_argument(
        "--format",
        choices=["json", "parquet"],
        default="json",
        help="Report format",
    )
    scan.add_argument(
        "--profile",
        default="default",
        help="Config profile to use (default, skip_blank, instrument)",
    )
    scan.add_argument(
        "--instrument",
        action="store_true",
        help="Rewrite scanned files, inserting ping() after marked statements",
    )
    scan.add_argument(
        "--skip-blank-lines",
        action="store_true",
        help="Do not count blank lines while inside a marked block",
    )
    scan.add_argument(
        "--follow-symlinks",
        action="store_true",
        help="Descend into symlinked directories (symlinked files are always scanned)",
    )
    scan.add_argument(
        "--progress-log",
        help="Optional JSONL file capturing per-file progress events",
    )
    scan.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress per-file progress lines",
    )
    scan.set_defaults(func=command_scan)

    show = subparsers.add_parser("show", help="Render a previously written JSON report")
    show.add_argument("report", help="Report JSON produced by 'scan'")
    show.set_defaults(func=command_show)

    listen = subparsers.add_parser("listen", help="Count pings sent by instrumented programs")
    listen.add_argument("--host", help="Bind address (default from config)")
    listen.add_argument("--port", type=int, help="Bind port (default from config)")
    listen.add_argument(
        "--max-workers",
        type=int,
        help="Concurrent connection handlers (default from config)",
    )
    listen.set_defaults(func=command_listen)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    configure_logging(args.verbose)
    try:
        args.func(args)
    except (ScanError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
