"""Plain-text pane showing the current now-playing snapshot."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from tz_radio.services.now_playing_models import NowPlayingSnapshot
from tz_radio.stations import StationDescriptor


def render_now_playing(
    snapshot: NowPlayingSnapshot, station: StationDescriptor | None = None
) -> Text:
    text = Text()
    text.append(snapshot.title, style="bold")
    if snapshot.subtitle:
        text.append("\n")
        text.append(snapshot.subtitle)
    if station is not None:
        text.append("\n\n")
        text.append(station.display_name, style="bold #F2C94C")
        if station.description:
            text.append("\n")
            text.append(station.description, style="dim")
    artwork = snapshot.artwork_url or (
        station.artwork_fallback_image if station is not None else None
    )
    if artwork:
        text.append("\n\nArtwork: ", style="dim")
        text.append(artwork, style="dim underline")
    if snapshot.error_message:
        text.append("\n\n")
        text.append(snapshot.error_message, style="#FF5A36")
    return text


class NowPlayingPane(Static):
    def update_snapshot(
        self, snapshot: NowPlayingSnapshot, station: StationDescriptor | None = None
    ) -> None:
        self.update(render_now_playing(snapshot, station))
