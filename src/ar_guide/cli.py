"""
AR Guide CLI
Main entry point for running a live guidance session.

  --validate  Check configuration validity
  --dry-run   Replay recorded detector replies without camera or worker
"""

import argparse
import logging
import signal
import sys
import time
from threading import Event

import yaml

from .config import (
    ConfigValidationError,
    GuideConfig,
    find_config_file,
    load_config,
    load_config_with_env,
    print_validation_result,
    validate_config_full,
)
from .content import ContentCatalog
from .core import DeviceResources, SessionManager, ThreadingTimerService, TickScheduler
from .core.replay import load_replay, run_replay
from .errors import ARGuideError
from .models import SESSION_MODES
from .utils.snapshot_writer import SnapshotWriter

logger = logging.getLogger(__name__)

# Module-level shutdown signal for SIGTERM/SIGINT handling
_shutdown_signal = Event()


def _handle_shutdown_signal(signum, _frame):
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    signal_name = "SIGTERM" if signum == signal.SIGTERM else "SIGINT"
    # Note: print is safer than logger in signal handlers
    print(f"\nReceived {signal_name}, stopping session...")
    _shutdown_signal.set()


def _setup_signal_handlers():
    """Register signal handlers for graceful shutdown."""
    signal.signal(signal.SIGTERM, _handle_shutdown_signal)
    signal.signal(signal.SIGINT, _handle_shutdown_signal)


def setup_logging(quiet: bool = False) -> None:
    """
    Setup logging configuration.

    Args:
        quiet: If True, only show warnings and errors
    """
    level = logging.WARNING if quiet else logging.INFO

    # Custom formatter with shorter module names
    class ShortNameFormatter(logging.Formatter):
        def format(self, record):
            record.name = record.name.replace("ar_guide.", "ar.")
            return super().format(record)

    handler = logging.StreamHandler()
    handler.setFormatter(
        ShortNameFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s", datefmt="%H:%M:%S"
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="AR Guide - real-time waste sorting guidance over a camera feed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ar_guide                        # Sorting session until Ctrl+C
  python -m ar_guide 60                     # Run for 60 seconds
  python -m ar_guide --content basics-1     # Education lesson
  python -m ar_guide --game speed-sort-1    # Game mode

  python -m ar_guide --validate             # Check config validity
  python -m ar_guide --dry-run replay.json  # Replay detector replies

Environment Variables:
  AR_GUIDE_CAMERA_SOURCE - Override environment-facing camera source
        """,
    )

    parser.add_argument(
        "duration",
        type=float,
        nargs="?",
        help="Duration in seconds (default: until interrupted)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument(
        "-c", "--config", default=None, help="Path to config file (default: search)"
    )
    parser.add_argument(
        "--mode", choices=SESSION_MODES, default="sorting", help="Session mode"
    )
    parser.add_argument("--content", metavar="ID", help="Start an education lesson")
    parser.add_argument("--game", metavar="ID", help="Start a game mode")
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and show effective settings",
    )
    parser.add_argument(
        "--dry-run",
        metavar="REPLAY_FILE",
        help="Replay recorded detector replies (no camera, no worker)",
    )

    return parser.parse_args(argv)


def _validate(config_path: str | None) -> int:
    try:
        config_file = find_config_file(config_path)
        raw = {}
        if config_file is not None:
            with open(config_file, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
    except (ConfigValidationError, yaml.YAMLError) as e:
        logger.error(str(e))
        return 1

    result = validate_config_full(load_config_with_env(raw))
    print_validation_result(result)
    return 0 if result.valid else 1


def _dry_run(path: str) -> int:
    try:
        mode, steps = load_replay(path)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load replay file: {e}")
        return 1

    print(f"\nDry Run: {len(steps)} step(s), mode={mode}\n")
    run_replay(mode, steps)
    return 0


def _build_catalog(config: GuideConfig) -> ContentCatalog:
    if config.content.catalog_file:
        return ContentCatalog.from_yaml(config.content.catalog_file)
    return ContentCatalog.default()


def run_session(config: GuideConfig, args: argparse.Namespace) -> int:
    """Run a live session until duration, signal or Ctrl+C."""
    manager = SessionManager(
        DeviceResources(config),
        ThreadingTimerService(),
        TickScheduler(1.0 / config.pipeline.tick_hz, name="DetectionTick"),
        catalog=_build_catalog(config),
    )

    try:
        if args.content:
            session = manager.start_education(args.content)
        elif args.game:
            session = manager.start_game(args.game)
        else:
            session = manager.start(args.mode)
    except ARGuideError as e:
        logger.error(f"Failed to start AR session: {e}")
        return 1

    writer = SnapshotWriter(config.output.snapshot_file) if config.output.snapshot_file else None
    interval = config.output.snapshot_interval
    start_time = time.time()
    reason = "signal"

    try:
        while not _shutdown_signal.wait(timeout=interval):
            if args.duration is not None and time.time() - start_time >= args.duration:
                reason = "duration"
                break

            snapshot = manager.overlay_snapshot()
            if writer is not None:
                writer.write(snapshot, session.id)
            tracking = session.tracking
            logger.debug(
                f"Overlays: {len(snapshot.elements)} | Objects: {len(tracking.objects)} | "
                f"Bins: {len(tracking.bins)} | Accuracy: {tracking.accuracy:.2f}"
            )
    except KeyboardInterrupt:
        reason = "interrupted"
    finally:
        manager.stop()
        if writer is not None:
            writer.close()

    logger.info(f"Session ended ({reason}) after {time.time() - start_time:.0f}s")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.quiet)

    if args.validate:
        sys.exit(_validate(args.config))

    if args.dry_run:
        sys.exit(_dry_run(args.dry_run))

    if args.duration is not None and args.duration <= 0:
        logger.error(f"Invalid duration '{args.duration}' - must be positive")
        sys.exit(1)

    try:
        config = load_config(args.config)
    except ConfigValidationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    _setup_signal_handlers()
    sys.exit(run_session(config, args))
