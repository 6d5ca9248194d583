"""Single-line status pane: station, transport state, volume and notices."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from tz_radio.services.radio_player_service import RadioPlayerState


class StatusPane(Static):
    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self._state: RadioPlayerState | None = None
        self._station_name: str | None = None
        self._runtime_notice: str | None = None

    def update_state(
        self, state: RadioPlayerState, station_name: str | None = None
    ) -> None:
        self._state = state
        self._station_name = station_name
        self._refresh_text()

    def set_runtime_notice(self, notice: str | None) -> None:
        self._runtime_notice = notice.strip() if notice else None
        self._refresh_text()

    def _refresh_text(self) -> None:
        self.update(
            status_text(self._state, self._station_name, self._runtime_notice)
        )


def status_text(
    state: RadioPlayerState | None,
    station_name: str | None,
    notice: str | None = None,
) -> Text:
    text = Text()
    if notice:
        text.append("Notice: ", style="bold #FF5A36")
        text.append(notice.splitlines()[0])
        text.append(" | ")
    if state is None:
        text.append("Starting...")
        return text
    text.append("Station: ", style="bold #F2C94C")
    text.append(station_name or "-")
    text.append(" | ")
    text.append("Status: ", style="bold #F2C94C")
    text.append(state.status)
    text.append(" | ")
    text.append("Vol: ", style="bold #F2C94C")
    text.append(str(state.volume))
    return text
