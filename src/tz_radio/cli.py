"""Headless command-line interface for tz-radio.

Lists stations, prints now-playing snapshots for one station, or runs the
environment doctor. No audio is played; this is the same refresh engine the
TUI uses, writing to stdout instead of a pane.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from . import __version__
from .doctor import render_report, run_doctor
from .logging_utils import setup_logging
from .paths import log_dir, state_path, stations_path
from .runtime_config import normalize_refresh_interval, resolve_log_level
from .services.now_playing_models import NowPlayingSnapshot
from .services.now_playing_service import NowPlayingService
from .state_store import DEFAULT_ICY_INTERVAL_S, DEFAULT_REST_INTERVAL_S, load_state
from .stations import (
    IcyEmbedded,
    RestEndpoint,
    StationDescriptor,
    find_station,
    load_stations_with_notice,
)
from .version import build_help_epilog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tz-radio-cli",
        description="Print what is on air for an internet radio station.",
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
        default="fake",
        help="Backend the --doctor report should validate (fake or vlc).",
    )
    parser.add_argument("--station", help="Station name to watch (case-insensitive).")
    parser.add_argument(
        "--once", action="store_true", help="Print the first snapshot and exit."
    )
    parser.add_argument(
        "--list-stations", action="store_true", help="List known stations and exit."
    )
    parser.add_argument(
        "--doctor", action="store_true", help="Run environment diagnostics and exit."
    )
    parser.add_argument(
        "--stations-file", help="Read stations from this JSON file instead."
    )
    return parser


def format_station(station: StationDescriptor) -> str:
    source = station.metadata_source
    if isinstance(source, IcyEmbedded):
        kind = "icy"
    elif isinstance(source, RestEndpoint):
        kind = "api"
    else:
        kind = "none"
    disabled = " (disabled)" if not station.enabled else ""
    return f"{station.display_name:<16} [{kind}] {station.stream_url}{disabled}"


def format_snapshot(snapshot: NowPlayingSnapshot) -> str:
    line = snapshot.title
    if snapshot.subtitle:
        line = f"{line} | {snapshot.subtitle}"
    if snapshot.error_message:
        line = f"{line} ({snapshot.error_message})"
    return line


async def watch_now_playing(
    station: StationDescriptor,
    service: NowPlayingService,
    *,
    once: bool = False,
    write: Callable[[str], None] = print,
) -> NowPlayingSnapshot | None:
    """Print snapshots for `station` until cancelled, or the first one with `once`."""
    first = asyncio.Event()
    last: NowPlayingSnapshot | None = None

    async def _on_snapshot(snapshot: NowPlayingSnapshot) -> None:
        nonlocal last
        last = snapshot
        write(format_snapshot(snapshot))
        first.set()

    service.set_snapshot_handler(_on_snapshot)
    try:
        await service.start_updating(station)
        if once or not service.is_updating:
            await first.wait()
            return last
        # Runs until the caller cancels (Ctrl+C).
        await asyncio.Event().wait()
        return last
    finally:
        await service.aclose()


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    logger = logging.getLogger(__name__)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
        )
        logger.info("Starting tz-radio CLI")
        stations_file = (
            Path(args.stations_file) if args.stations_file else stations_path()
        )
        if args.doctor:
            report = run_doctor(args.backend, stations_file=stations_file)
            print(render_report(report))
            return report.exit_code
        stations, notice = load_stations_with_notice(stations_file)
        if notice:
            print(notice, file=sys.stderr)
        if args.list_stations or not args.station:
            for station in stations:
                print(format_station(station))
            return 0
        index = find_station(stations, args.station)
        if index is None:
            print(
                f"Unknown station '{args.station}'.\n"
                "Next step: run with --list-stations to see available names.",
                file=sys.stderr,
            )
            return 2
        state = load_state(state_path())
        service = NowPlayingService(
            on_snapshot=_discard,
            rest_interval_s=normalize_refresh_interval(
                state.rest_interval_s, DEFAULT_REST_INTERVAL_S
            ),
            icy_interval_s=normalize_refresh_interval(
                state.icy_interval_s, DEFAULT_ICY_INTERVAL_S
            ),
        )
        try:
            asyncio.run(watch_now_playing(stations[index], service, once=args.once))
        except KeyboardInterrupt:
            logger.info("Interrupted")
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return 1


async def _discard(snapshot: NowPlayingSnapshot) -> None:
    del snapshot


if __name__ == "__main__":
    raise SystemExit(main())
