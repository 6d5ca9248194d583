"""GUI process entrypoint for the Textual application.

Parses runtime options, sets up file-only logging, runs `TzRadioApp` and maps
the startup outcome to an exit code.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .app import TzRadioApp
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import resolve_log_level
from .version import build_help_epilog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tz-radio",
        description="Internet radio player for the terminal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--backend",
        choices=("fake", "vlc"),
        default="vlc",
        help="Playback backend to use (fake or vlc).",
    )
    parser.add_argument(
        "--stations-file", help="Read stations from this JSON file instead."
    )
    return parser


def main() -> int:
    """Run GUI entrypoint and translate startup outcome to exit code."""
    parser = build_parser()
    args = parser.parse_args()
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        logging.getLogger(__name__).info("Starting tz-radio GUI")
        stations_file = getattr(args, "stations_file", None)
        app = TzRadioApp(
            backend_name=args.backend,
            stations_file=Path(stations_file) if stations_file else None,
        )
        app.run()
        return 1 if getattr(app, "startup_failed", False) else 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logging.getLogger(__name__).exception("Fatal GUI startup error: %s", exc)
        print(
            "GUI startup failed. Verify backend/log configuration and re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
