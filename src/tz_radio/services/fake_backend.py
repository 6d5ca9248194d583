"""Fake playback backend for deterministic testing."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .playback_backend import BackendEvent, BackendStatus, StateChanged


@dataclass
class _PlaybackState:
    status: BackendStatus = "idle"
    stream_url: str | None = None
    volume: int = 100


class FakePlaybackBackend:
    """In-memory backend that pretends every stream starts instantly."""

    def __init__(self) -> None:
        self._state = _PlaybackState()
        self._handler: Callable[[BackendEvent], Awaitable[None]] | None = None
        self._lock = asyncio.Lock()
        self._started = False
        self.played_urls: list[str] = []

    def set_event_handler(
        self, handler: Callable[[BackendEvent], Awaitable[None]]
    ) -> None:
        self._handler = handler

    async def start(self) -> None:
        self._started = True

    async def shutdown(self) -> None:
        if not self._started:
            return
        async with self._lock:
            self._state.status = "stopped"
            self._state.stream_url = None
        self._started = False

    async def play(self, stream_url: str) -> None:
        async with self._lock:
            self._state.status = "loading"
            self._state.stream_url = stream_url
        await self._emit(StateChanged("loading"))
        async with self._lock:
            self._state.status = "playing"
        self.played_urls.append(stream_url)
        await self._emit(StateChanged("playing"))

    async def pause(self) -> None:
        async with self._lock:
            if self._state.status != "playing":
                return
            self._state.status = "paused"
        await self._emit(StateChanged("paused"))

    async def resume(self) -> None:
        async with self._lock:
            if self._state.status != "paused":
                return
            self._state.status = "playing"
        await self._emit(StateChanged("playing"))

    async def stop(self) -> None:
        async with self._lock:
            self._state.status = "stopped"
            self._state.stream_url = None
        await self._emit(StateChanged("stopped"))

    async def set_volume(self, volume: int) -> None:
        async with self._lock:
            self._state.volume = _clamp(volume, 0, 100)

    async def get_state(self) -> BackendStatus:
        async with self._lock:
            return self._state.status

    @property
    def volume(self) -> int:
        return self._state.volume

    @property
    def stream_url(self) -> str | None:
        return self._state.stream_url

    async def _emit(self, event: BackendEvent) -> None:
        if self._handler is None:
            return
        await self._handler(event)


def _clamp(value: int, min_value: int, max_value: int) -> int:
    return max(min_value, min(value, max_value))
