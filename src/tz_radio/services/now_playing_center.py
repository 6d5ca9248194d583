"""Platform-neutral now-playing center.

Holds the single "what is playing" record a desktop media integration would
read (title, station as artist, show as album, live flag, rate). The TUI and
CLI subscribe through `set_listener`; OS integrations are out of scope.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

CenterPlaybackState = Literal["playing", "paused", "stopped"]


@dataclass(frozen=True)
class NowPlayingInfo:
    title: str
    artist: str | None = None
    album: str | None = None
    artwork_url: str | None = None
    is_live: bool = True
    playback_rate: float = 0.0
    playback_state: CenterPlaybackState = "paused"


class NowPlayingCenter:
    """Last-published now-playing record plus an optional change listener."""

    def __init__(
        self, listener: Callable[[NowPlayingInfo | None], None] | None = None
    ) -> None:
        self._info: NowPlayingInfo | None = None
        self._listener = listener

    @property
    def info(self) -> NowPlayingInfo | None:
        return self._info

    @property
    def playback_state(self) -> CenterPlaybackState:
        return "stopped" if self._info is None else self._info.playback_state

    def set_listener(
        self, listener: Callable[[NowPlayingInfo | None], None] | None
    ) -> None:
        self._listener = listener

    def update(
        self,
        *,
        station_name: str | None,
        title: str,
        subtitle: str | None,
        artwork_url: str | None,
        is_playing: bool,
    ) -> NowPlayingInfo:
        info = NowPlayingInfo(
            title=title,
            artist=station_name,
            album=subtitle,
            artwork_url=artwork_url,
            is_live=True,
            playback_rate=1.0 if is_playing else 0.0,
            playback_state="playing" if is_playing else "paused",
        )
        self._info = info
        self._notify()
        return info

    def clear(self) -> None:
        self._info = None
        self._notify()

    def _notify(self) -> None:
        if self._listener is None:
            return
        try:
            self._listener(self._info)
        except Exception:  # pragma: no cover - listener bugs must not stop playback
            logger.exception("Now-playing center listener failed")
