"""Playback backend contracts and event payloads.

`RadioPlayerService` depends on this protocol to stay backend-agnostic.
Concrete implementations (fake/VLC) translate engine-specific behavior into
these shared commands and events. Live radio has no position or duration, so
the contract is limited to transport state and volume.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol

BackendStatus = Literal["idle", "loading", "playing", "paused", "stopped", "error"]


@dataclass(frozen=True)
class BackendEvent:
    """Marker base type for backend-originated events."""

    pass


@dataclass(frozen=True)
class StateChanged(BackendEvent):
    """Backend playback state transition."""

    status: BackendStatus


@dataclass(frozen=True)
class BackendError(BackendEvent):
    """Backend-reported runtime error (stream unreachable, decoder failure)."""

    message: str


class PlaybackBackend(Protocol):
    """Playback engine protocol consumed by `RadioPlayerService`."""

    def set_event_handler(
        self, handler: Callable[[BackendEvent], Awaitable[None]]
    ) -> None: ...

    async def start(self) -> None: ...

    async def shutdown(self) -> None: ...

    async def play(self, stream_url: str) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def stop(self) -> None: ...

    async def set_volume(self, volume: int) -> None: ...

    async def get_state(self) -> BackendStatus: ...
