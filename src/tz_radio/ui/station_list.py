"""Station list pane built on Textual's `OptionList`."""

from __future__ import annotations

from collections.abc import Sequence

from rich.text import Text
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from tz_radio.events import StationActivated, StationHighlighted
from tz_radio.stations import IcyEmbedded, RestEndpoint, StationDescriptor

PLAYING_MARKER = "▶ "


def station_prompt(station: StationDescriptor, *, playing: bool = False) -> Text:
    prompt = Text()
    prompt.append(PLAYING_MARKER if playing else "  ")
    prompt.append(station.display_name, style="bold" if playing else "")
    source = station.metadata_source
    if isinstance(source, IcyEmbedded):
        prompt.append("  icy", style="dim")
    elif isinstance(source, RestEndpoint):
        prompt.append("  api", style="dim")
    if not station.enabled:
        prompt.append("  (disabled)", style="dim italic")
    return prompt


class StationList(OptionList):
    """Lists every station; disabled ones are shown but cannot be chosen."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._stations: tuple[StationDescriptor, ...] = ()
        self._playing_index: int | None = None

    def set_stations(
        self, stations: Sequence[StationDescriptor], *, selected_index: int = 0
    ) -> None:
        self._stations = tuple(stations)
        self._rebuild()
        if self._stations:
            self.highlighted = max(0, min(selected_index, len(self._stations) - 1))

    def set_playing(self, index: int | None) -> None:
        if index == self._playing_index:
            return
        self._playing_index = index
        highlighted = self.highlighted
        self._rebuild()
        if highlighted is not None and self._stations:
            self.highlighted = highlighted

    def _rebuild(self) -> None:
        self.clear_options()
        self.add_options(
            [
                Option(
                    station_prompt(station, playing=index == self._playing_index),
                    id=f"station-{index}",
                    disabled=not station.enabled,
                )
                for index, station in enumerate(self._stations)
            ]
        )

    def on_option_list_option_highlighted(
        self, event: OptionList.OptionHighlighted
    ) -> None:
        event.stop()
        self.post_message(StationHighlighted(event.option_index))

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.post_message(StationActivated(event.option_index))
