"""Radio playback controller between UI intent and the playback backend.

`RadioPlayerService` owns the selection, transport status and volume, drives
the backend, and keeps the now-playing refresh loop in step with playback:
starting a station starts its loop, pausing leaves it running, stopping cancels
it and shows "Stopped". Every snapshot is mirrored into the
`NowPlayingCenter` and re-emitted to the UI as `NowPlayingChanged`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from contextlib import suppress
from dataclasses import dataclass, replace
from typing import Callable, Literal

from tz_radio.events import NowPlayingChanged, PlaybackStateChanged
from tz_radio.stations import StationDescriptor

from .now_playing_center import NowPlayingCenter
from .now_playing_models import NowPlayingSnapshot
from .now_playing_service import NOT_PLAYING_TITLE, NowPlayingService
from .playback_backend import BackendError, BackendEvent, PlaybackBackend, StateChanged

logger = logging.getLogger(__name__)

STATUS = Literal["idle", "loading", "playing", "paused", "stopped", "error"]
VOLUME_STEP = 5


def _format_user_error(
    *, what_failed: str, likely_cause: str, next_step: str, detail: str | None = None
) -> str:
    message = f"{what_failed}\nLikely cause: {likely_cause}\nNext step: {next_step}"
    if detail:
        message = f"{message}\nDetails: {detail}"
    return message


@dataclass(frozen=True)
class RadioPlayerState:
    """Snapshot of transport state exposed to the UI."""

    status: STATUS = "idle"
    selected_index: int = 0
    playing_index: int | None = None
    volume: int = 100
    now_playing: NowPlayingSnapshot = NowPlayingSnapshot(title=NOT_PLAYING_TITLE)
    error: str | None = None

    @property
    def is_playing(self) -> bool:
        return self.status == "playing"


class RadioPlayerService:
    """Owns radio playback state and emits events to subscribers."""

    def __init__(
        self,
        *,
        stations: Sequence[StationDescriptor],
        backend: PlaybackBackend,
        emit_event: Callable[[object], Awaitable[None]],
        now_playing_service: NowPlayingService | None = None,
        now_playing_center: NowPlayingCenter | None = None,
        initial_state: RadioPlayerState | None = None,
    ) -> None:
        self._stations = tuple(stations)
        self._backend = backend
        self._emit_event = emit_event
        self._owns_now_playing = now_playing_service is None
        self._now_playing = now_playing_service or NowPlayingService(
            on_snapshot=self._handle_snapshot
        )
        self._now_playing.set_snapshot_handler(self._handle_snapshot)
        self._center = now_playing_center or NowPlayingCenter()
        state = initial_state or RadioPlayerState()
        if not 0 <= state.selected_index < len(self._stations):
            state = replace(state, selected_index=0)
        self._state = state
        self._lock = asyncio.Lock()
        self._backend.set_event_handler(self._handle_backend_event)

    @property
    def state(self) -> RadioPlayerState:
        return self._state

    @property
    def stations(self) -> tuple[StationDescriptor, ...]:
        return self._stations

    @property
    def now_playing_center(self) -> NowPlayingCenter:
        return self._center

    @property
    def selected_station(self) -> StationDescriptor | None:
        return self._station_at(self._state.selected_index)

    @property
    def playing_station(self) -> StationDescriptor | None:
        if self._state.playing_index is None:
            return None
        return self._station_at(self._state.playing_index)

    async def start(self) -> None:
        """Start the backend and push the persisted volume into it."""
        await self._backend.start()
        await self._backend.set_volume(self._state.volume)

    async def shutdown(self) -> None:
        """Stop the refresh loop and perform best-effort backend shutdown."""
        with suppress(Exception):
            await self._now_playing.stop_updating(reset_state=False)
        if self._owns_now_playing:
            with suppress(Exception):
                await self._now_playing.aclose()
        with suppress(Exception):
            await self._backend.shutdown()

    async def select_station(self, index: int) -> None:
        if self._station_at(index) is None:
            return
        async with self._lock:
            self._state = replace(self._state, selected_index=index)
        await self._emit_state()

    async def next_station(self) -> None:
        await self._step_selection(1)

    async def previous_station(self) -> None:
        await self._step_selection(-1)

    async def play_station(self, index: int) -> None:
        """Select and play a station, replacing whatever is currently on."""
        station = self._station_at(index)
        if station is None or not station.enabled:
            logger.debug("Ignoring play request for station index %s", index)
            return
        async with self._lock:
            self._state = replace(self._state, selected_index=index)
        await self._play_selected()

    async def play_selected(self) -> None:
        await self.play_station(self._state.selected_index)

    async def pause(self) -> None:
        """Pause the stream; the now-playing loop keeps refreshing."""
        async with self._lock:
            if self._state.status != "playing":
                return
            self._state = replace(self._state, status="paused")
        await self._backend.pause()
        self._publish_center()
        await self._emit_state()

    async def resume_or_play_selected(self) -> None:
        if self._state.status == "paused" and self._state.playing_index is not None:
            async with self._lock:
                self._state = replace(self._state, status="playing")
            await self._backend.resume()
            self._publish_center()
            await self._emit_state()
            return
        await self.play_selected()

    async def toggle_playback(self) -> None:
        if self._state.status == "playing":
            await self.pause()
        else:
            await self.resume_or_play_selected()

    async def stop(self) -> None:
        """Stop the stream, keep the last artwork and show "Stopped"."""
        await self._stop_playback(reset_now_playing=False)
        await self._now_playing.set_stopped_state()
        await self._emit_state()

    async def set_volume(self, volume: int) -> None:
        async with self._lock:
            self._state = replace(self._state, volume=_clamp(volume, 0, 100))
            volume = self._state.volume
        await self._backend.set_volume(volume)
        await self._emit_state()

    async def change_volume(self, delta: int) -> None:
        await self.set_volume(self._state.volume + delta)

    async def _play_selected(self) -> None:
        index = self._state.selected_index
        station = self._stations[index]
        if self._state.playing_index is not None:
            await self._stop_playback(reset_now_playing=True)
        async with self._lock:
            self._state = replace(
                self._state, status="loading", playing_index=index, error=None
            )
        await self._emit_state()
        logger.info("Playing %s (%s)", station.display_name, station.stream_url)
        try:
            await self._backend.play(station.stream_url)
        except Exception as exc:
            logger.warning("Failed to start %s: %s", station.display_name, exc)
            async with self._lock:
                self._state = replace(
                    self._state,
                    status="error",
                    playing_index=None,
                    error=_format_user_error(
                        what_failed=f"Failed to start {station.display_name}.",
                        likely_cause="Stream is unreachable or the backend cannot decode it.",
                        next_step="Check your connection and the station URL, then retry.",
                        detail=str(exc),
                    ),
                )
            await self._emit_state()
            return
        async with self._lock:
            if self._state.status == "loading":
                self._state = replace(self._state, status="playing")
        self._publish_center()
        await self._emit_state()
        await self._now_playing.start_updating(station)

    async def _stop_playback(self, *, reset_now_playing: bool) -> None:
        with suppress(Exception):
            await self._backend.stop()
        async with self._lock:
            self._state = replace(self._state, status="stopped", playing_index=None)
        await self._now_playing.stop_updating(reset_state=reset_now_playing)
        self._center.clear()

    async def _step_selection(self, direction: int) -> None:
        count = len(self._stations)
        if count == 0:
            return
        index = self._state.selected_index
        for _ in range(count):
            index = (index + direction) % count
            if self._stations[index].enabled:
                await self.select_station(index)
                return

    async def _handle_snapshot(self, snapshot: NowPlayingSnapshot) -> None:
        async with self._lock:
            self._state = replace(self._state, now_playing=snapshot)
        self._publish_center()
        station = self.playing_station or self._now_playing.current_station
        await self._emit_event(
            NowPlayingChanged(
                snapshot=snapshot,
                station_name=station.display_name if station is not None else None,
            )
        )

    def _publish_center(self) -> None:
        station = self.playing_station
        if station is None or self._state.status not in {"playing", "paused"}:
            return
        snapshot = self._state.now_playing
        self._center.update(
            station_name=station.display_name,
            title=snapshot.title,
            subtitle=snapshot.subtitle,
            artwork_url=snapshot.artwork_url,
            is_playing=self._state.is_playing,
        )

    async def _handle_backend_event(self, event: BackendEvent) -> None:
        """Fold backend-reported transitions into player state."""
        async with self._lock:
            if isinstance(event, StateChanged):
                if self._state.playing_index is None or event.status in {
                    "idle",
                    "loading",
                }:
                    return
                if event.status == self._state.status:
                    return
                self._state = replace(self._state, status=event.status)
            elif isinstance(event, BackendError):
                logger.warning("Playback backend error: %s", event.message)
                self._state = replace(
                    self._state,
                    status="error",
                    error=_format_user_error(
                        what_failed="Playback stopped unexpectedly.",
                        likely_cause="The stream dropped or the backend reported an error.",
                        next_step="Press play to reconnect, or pick another station.",
                        detail=event.message,
                    ),
                )
            else:
                return
        self._publish_center()
        await self._emit_state()

    def _station_at(self, index: int) -> StationDescriptor | None:
        if 0 <= index < len(self._stations):
            return self._stations[index]
        return None

    async def _emit_state(self) -> None:
        await self._emit_event(PlaybackStateChanged(self._state))


def _clamp(value: int, min_value: int, max_value: int) -> int:
    return max(min_value, min(value, max_value))
