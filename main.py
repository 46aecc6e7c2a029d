#!/usr/bin/env python3
"""House timers - countdown boards that survive restarts and suspension."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from clock import Clock
from config import TimerConfig, TIMERS_FILE, load_config
from errors import CorruptSnapshot
from storage import SnapshotStore
from timer_engine import TimerEngine
import dashboard

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="House countdown timers")
    parser.add_argument("--config", type=Path, default=None,
                        help="Configuration file (default ~/.housetimers/config.json)")
    parser.add_argument("--timers-file", type=Path, default=None,
                        help="Snapshot file (default ~/.housetimers/timers.json)")
    parser.add_argument("--export", action="store_true",
                        help="Print timers as JSON and exit")
    parser.add_argument("--import", dest="import_file", type=Path, default=None,
                        help="Import timers from a JSON file and exit")
    parser.add_argument("--no-dashboard", action="store_true",
                        help="Don't launch the web dashboard")
    parser.add_argument("--stop-dashboard", action="store_true",
                        help="Stop a running web dashboard and exit")
    parser.add_argument("--verbose", action="store_true")
    return parser


def run_headless(args, config: TimerConfig, store: SnapshotStore,
                 clock: Optional[Clock] = None) -> int:
    """
    Handle --export / --import without starting the GUI.

    Returns:
        Process exit code.
    """
    engine = TimerEngine(config, store, clock)

    if args.import_file is not None:
        try:
            text = args.import_file.read_text()
            imported = engine.import_json(text)
        except (OSError, CorruptSnapshot) as e:
            print(f"Import failed: {e}", file=sys.stderr)
            return 1
        print(f"{imported} timer(s) imported")

    if args.export:
        print(engine.export_json())
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.stop_dashboard:
        dashboard.stop()
        sys.exit(0)

    config = load_config(args.config)
    store = SnapshotStore(args.timers_file or TIMERS_FILE)

    if args.export or args.import_file is not None:
        sys.exit(run_headless(args, config, store))

    # Qt widgets and multimedia are only loaded for the GUI
    from PyQt6.QtWidgets import QApplication
    from controller import AppController

    app = QApplication(sys.argv)
    app.setApplicationName("housetimers")

    try:
        controller = AppController(config, store, launch_dashboard=not args.no_dashboard,
                                   config_path=args.config)
        app.aboutToQuit.connect(controller.shutdown)

        exit_code = app.exec()
        logger.info("Application exited with code: %s", exit_code)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Application interrupted by user (Ctrl+C)")
        sys.exit(0)


if __name__ == "__main__":
    main()
