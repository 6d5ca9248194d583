"""Textual TUI app for tz-radio."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.screen import ModalScreen
from textual.widgets import Footer, Header

from . import __version__
from .events import (
    NowPlayingChanged,
    PlaybackStateChanged,
    StationActivated,
    StationHighlighted,
)
from .logging_utils import setup_logging
from .paths import log_dir, state_path, stations_path
from .runtime_config import normalize_refresh_interval, resolve_log_level
from .services.fake_backend import FakePlaybackBackend
from .services.now_playing_service import NowPlayingService
from .services.radio_player_service import (
    VOLUME_STEP,
    RadioPlayerService,
    RadioPlayerState,
)
from .services.vlc_backend import VLCPlaybackBackend
from .state_store import (
    DEFAULT_ICY_INTERVAL_S,
    DEFAULT_REST_INTERVAL_S,
    AppState,
    load_state_with_notice,
    save_state,
)
from .stations import StationDescriptor, find_station, load_stations_with_notice
from .ui.modals.error import ErrorModal
from .ui.now_playing_pane import NowPlayingPane
from .ui.station_list import StationList
from .ui.status_pane import StatusPane
from .utils.async_utils import run_blocking

logger = logging.getLogger(__name__)
STATE_SAVE_DEBOUNCE_S = 1.0


class TzRadioApp(App):
    TITLE = "tz-radio"
    CSS = """
    Screen {
        layout: vertical;
    }

    #main {
        height: 1fr;
    }

    #station-list {
        width: 1fr;
        min-width: 30;
        border: solid white;
    }

    #now-playing-pane {
        width: 2fr;
        border: solid white;
        padding: 1 2;
    }

    #status-pane {
        height: 3;
        border: solid white;
        padding: 0 1;
    }

    ModalScreen {
        align: center middle;
    }

    #modal-body {
        padding: 1 2;
        border: solid white;
        width: 60%;
        height: auto;
    }
    """
    BINDINGS = [
        ("escape", "dismiss_modal", "Dismiss"),
        ("space", "play_pause", "Play/Pause"),
        ("x", "stop", "Stop"),
        ("n", "next_station", "Next"),
        ("p", "previous_station", "Previous"),
        ("-", "volume_down", "Vol -"),
        ("+", "volume_up", "Vol +"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        auto_init: bool = True,
        backend_name: str | None = None,
        stations_file: Path | None = None,
    ) -> None:
        super().__init__()
        self.state = AppState()
        self.stations: tuple[StationDescriptor, ...] = ()
        self._auto_init = auto_init
        self._backend_name = backend_name
        self._stations_file = stations_file
        self.player_service: RadioPlayerService | None = None
        self.player_state = RadioPlayerState()
        self._state_save_task: asyncio.Task[None] | None = None
        self._init_task: asyncio.Task[None] | None = None
        self.startup_failed = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            StationList(id="station-list"),
            NowPlayingPane("Not playing", id="now-playing-pane"),
            id="main",
        )
        yield StatusPane(id="status-pane")
        yield Footer()

    def on_mount(self) -> None:
        if self._auto_init:
            self._init_task = asyncio.create_task(self._initialize_state())

    async def _initialize_state(self) -> None:
        try:
            self.state, state_notice = await run_blocking(
                load_state_with_notice, state_path()
            )
            self.stations, stations_notice = await run_blocking(
                load_stations_with_notice, self._stations_file or stations_path()
            )
            backend_name = _resolve_backend_name(
                self._backend_name, self.state.playback_backend
            )
            if backend_name != self.state.playback_backend:
                self.state = replace(self.state, playback_backend=backend_name)
                await run_blocking(save_state, state_path(), self.state)
            self.player_state = self._player_state_from_appstate()
            self.player_service = self._build_player_service(backend_name)
            try:
                await self.player_service.start()
            except Exception as exc:
                logger.exception("Failed to start backend %s: %s", backend_name, exc)
                if backend_name == "fake":
                    raise
                await self.player_service.shutdown()
                self.state = replace(self.state, playback_backend="fake")
                await run_blocking(save_state, state_path(), self.state)
                self.player_service = self._build_player_service("fake")
                await self.player_service.start()
                await self.push_screen(
                    ErrorModal(
                        "VLC backend unavailable; using fake backend.\n"
                        "Likely cause: VLC/libVLC runtime is not available.\n"
                        "Next step: install VLC/libVLC, then restart with --backend vlc."
                    )
                )
            station_list = self.query_one(StationList)
            station_list.set_stations(
                self.stations, selected_index=self.player_state.selected_index
            )
            station_list.focus()
            notice = state_notice or stations_notice
            self.query_one(StatusPane).set_runtime_notice(notice)
            self._update_status_pane()
        except Exception as exc:
            logger.exception("Failed to initialize app: %s", exc)
            self.startup_failed = True
            await self.push_screen(
                ErrorModal(
                    "Failed to initialize app.\n"
                    "Likely cause: state/stations/backend startup failure.\n"
                    "Next step: verify file permissions/paths and review the log file."
                )
            )

    def _build_player_service(self, backend_name: str) -> RadioPlayerService:
        now_playing = NowPlayingService(
            on_snapshot=_ignore_snapshot,
            rest_interval_s=normalize_refresh_interval(
                self.state.rest_interval_s, DEFAULT_REST_INTERVAL_S
            ),
            icy_interval_s=normalize_refresh_interval(
                self.state.icy_interval_s, DEFAULT_ICY_INTERVAL_S
            ),
        )
        return RadioPlayerService(
            stations=self.stations,
            backend=_build_backend(backend_name),
            emit_event=self._handle_player_event,
            now_playing_service=now_playing,
            initial_state=self.player_state,
        )

    async def on_unmount(self) -> None:
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
        if self._state_save_task is not None and not self._state_save_task.done():
            self._state_save_task.cancel()
            self._update_app_state()
            await run_blocking(save_state, state_path(), self.state)
        if self.player_service is not None:
            await self.player_service.shutdown()

    def action_dismiss_modal(self) -> None:
        if isinstance(self.screen, ModalScreen):
            self.pop_screen()

    async def action_play_pause(self) -> None:
        if self.player_service is None:
            return
        await self.player_service.toggle_playback()

    async def action_stop(self) -> None:
        if self.player_service is None:
            return
        await self.player_service.stop()

    async def action_next_station(self) -> None:
        if self.player_service is None:
            return
        await self.player_service.next_station()
        self._sync_station_cursor()

    async def action_previous_station(self) -> None:
        if self.player_service is None:
            return
        await self.player_service.previous_station()
        self._sync_station_cursor()

    async def action_volume_down(self) -> None:
        if self.player_service is None:
            return
        await self.player_service.change_volume(-VOLUME_STEP)

    async def action_volume_up(self) -> None:
        if self.player_service is None:
            return
        await self.player_service.change_volume(VOLUME_STEP)

    async def action_quit(self) -> None:
        self.exit()

    async def on_station_highlighted(self, message: StationHighlighted) -> None:
        if self.player_service is None:
            return
        if message.index != self.player_state.selected_index:
            await self.player_service.select_station(message.index)

    async def on_station_activated(self, message: StationActivated) -> None:
        if self.player_service is None:
            return
        await self.player_service.play_station(message.index)

    async def _handle_player_event(self, event: object) -> None:
        if isinstance(event, PlaybackStateChanged):
            previous = self.player_state
            self.player_state = event.state
            self._update_status_pane()
            self.query_one(StationList).set_playing(event.state.playing_index)
            if (
                previous.selected_index != event.state.selected_index
                or previous.volume != event.state.volume
            ):
                await self._schedule_state_save()
            if event.state.error and event.state.error != previous.error:
                await self.push_screen(ErrorModal(event.state.error))
        elif isinstance(event, NowPlayingChanged):
            station = None
            if self.player_service is not None:
                station = (
                    self.player_service.playing_station
                    or self.player_service.selected_station
                )
            self.query_one(NowPlayingPane).update_snapshot(event.snapshot, station)

    def _sync_station_cursor(self) -> None:
        self.query_one(StationList).highlighted = self.player_state.selected_index

    def _update_status_pane(self) -> None:
        station = None
        if self.player_service is not None:
            station = (
                self.player_service.playing_station
                or self.player_service.selected_station
            )
        self.query_one(StatusPane).update_state(
            self.player_state, station.display_name if station is not None else None
        )

    def _player_state_from_appstate(self) -> RadioPlayerState:
        selected = 0
        if self.state.station_name:
            found = find_station(self.stations, self.state.station_name)
            if found is not None:
                selected = found
        return RadioPlayerState(selected_index=selected, volume=self.state.volume)

    def _update_app_state(self) -> None:
        station_name = None
        if 0 <= self.player_state.selected_index < len(self.stations):
            station_name = self.stations[self.player_state.selected_index].name
        self.state = replace(
            self.state, station_name=station_name, volume=self.player_state.volume
        )

    async def _schedule_state_save(self) -> None:
        if self._state_save_task is not None:
            self._state_save_task.cancel()
        self._state_save_task = asyncio.create_task(self._save_state_debounced())

    async def _save_state_debounced(self) -> None:
        try:
            await asyncio.sleep(STATE_SAVE_DEBOUNCE_S)
            self._update_app_state()
            await run_blocking(save_state, state_path(), self.state)
        except asyncio.CancelledError:
            return
        except OSError as exc:
            logger.warning("Failed to save state: %s", exc)


async def _ignore_snapshot(snapshot: object) -> None:
    del snapshot


def _resolve_backend_name(cli_backend: str | None, state_backend: str | None) -> str:
    if cli_backend in {"fake", "vlc"}:
        return cli_backend
    if state_backend in {"fake", "vlc"}:
        return state_backend
    return "fake"


def _build_backend(name: str) -> FakePlaybackBackend | VLCPlaybackBackend:
    logger.info("Playback backend selected: %s", name)
    if name == "vlc":
        return VLCPlaybackBackend()
    return FakePlaybackBackend()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tz-radio", description="Internet radio player for the terminal."
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
        help="Playback backend to use (fake or vlc).",
    )
    return parser


def main() -> int:
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
        logging.getLogger(__name__).info("Starting tz-radio TUI")
        TzRadioApp(backend_name=args.backend).run()
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logging.getLogger(__name__).exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Verify backend/state/log paths and re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
