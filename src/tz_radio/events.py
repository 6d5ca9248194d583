"""Cross-module event/message models for service and UI communication.

Dataclass events carry service-to-app signals; `textual.message` types route
widget-level interaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from textual.message import Message

if TYPE_CHECKING:
    from tz_radio.services.now_playing_models import NowPlayingSnapshot
    from tz_radio.services.radio_player_service import RadioPlayerState


@dataclass(frozen=True)
class PlaybackStateChanged:
    """Emitted whenever the effective player state changes."""

    state: RadioPlayerState


@dataclass(frozen=True)
class NowPlayingChanged:
    """Emitted for every snapshot the refresh engine publishes."""

    snapshot: NowPlayingSnapshot
    station_name: str | None


class StationHighlighted(Message):
    """UI message for cursor movement onto a station row."""

    def __init__(self, index: int) -> None:
        super().__init__()
        self.index = index


class StationActivated(Message):
    """UI message for activating (playing) a station row."""

    def __init__(self, index: int) -> None:
        super().__init__()
        self.index = index
