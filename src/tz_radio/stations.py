"""Station registry: built-in station list and optional JSON override file.

Loading is tolerant in the same way as the state store: a missing file means
"use the defaults", and a malformed file or entry degrades with a warning
instead of aborting startup.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RestEndpoint:
    """Now-playing info comes from polling a JSON HTTP API."""

    url: str


@dataclass(frozen=True)
class IcyEmbedded:
    """Now-playing info comes from in-band ICY metadata on this stream URL."""

    url: str


MetadataSource = RestEndpoint | IcyEmbedded | None


@dataclass(frozen=True)
class StationDescriptor:
    """Static configuration record for one radio station."""

    name: str
    stream_url: str
    metadata_source: MetadataSource = None
    artwork_fallback_image: str | None = None
    enabled: bool = True
    description: str | None = None

    @property
    def display_name(self) -> str:
        return self.name if self.name.strip() else "Live"


_NTS_DESCRIPTION = (
    "NTS Radio (also known as NTS Live or simply NTS) is a music radio platform "
    "founded in 2011 in Hackney, East London, for an international community "
    "of music lovers. Tagline: \"Don't Assume\"."
)

DEFAULT_STATIONS: tuple[StationDescriptor, ...] = (
    StationDescriptor(
        name="NTS 1",
        stream_url="https://stream-relay-geo.ntslive.net/stream",
        metadata_source=RestEndpoint("https://www.nts.live/api/v2/live"),
        artwork_fallback_image="nts-radio-1",
        description=_NTS_DESCRIPTION,
    ),
    StationDescriptor(
        name="NTS 2",
        stream_url="https://stream-relay-geo.ntslive.net/stream2",
        metadata_source=RestEndpoint("https://www.nts.live/api/v2/live"),
        artwork_fallback_image="nts-radio-2",
        description=_NTS_DESCRIPTION,
    ),
    StationDescriptor(
        name="Worldwide FM",
        stream_url="https://worldwide-fm.radiocult.fm/stream",
        metadata_source=RestEndpoint(
            "https://api.radiocult.fm/api/station/worldwide-fm/schedule/live"
        ),
        artwork_fallback_image="worldwide-fm-radio",
        description=(
            "Worldwide FM curates and champions underground music, stories and "
            "culture from around the world."
        ),
    ),
    StationDescriptor(
        name="FIP",
        stream_url="https://icecast.radiofrance.fr/fip-hifi.aac?id=radiofrance",
        metadata_source=RestEndpoint("https://api.radiofrance.fr/livemeta/pull/7"),
        artwork_fallback_image="fip-radio",
        description=(
            "Hand-picked music programmed by a small team of curators in "
            "three-hour blocks, with close attention to transitions across "
            "genres."
        ),
    ),
    StationDescriptor(
        name="Kiosk Radio",
        stream_url="https://kioskradiobxl.out.airtime.pro/kioskradiobxl_b",
        metadata_source=IcyEmbedded(
            "https://kioskradiobxl.out.airtime.pro/kioskradiobxl_b"
        ),
        artwork_fallback_image="kioskradio",
        description=(
            "Webradio located in Brussels' historic Parc Royal, broadcasting "
            "alternative music from Brussels and its guests."
        ),
    ),
)


def station_from_dict(data: dict[str, Any]) -> StationDescriptor | None:
    """Build a station from a JSON object, or return None when unusable.

    Accepted keys: `name`, `stream_url`, `now_playing_api`, `icy_stream_url`,
    `image`, `description`, `disable`. `icy_stream_url` wins when both
    metadata keys are present.
    """
    name = data.get("name")
    stream_url = data.get("stream_url")
    if not isinstance(name, str) or not name.strip():
        return None
    if not isinstance(stream_url, str) or not stream_url.strip():
        return None

    def _str_or_none(key: str) -> str | None:
        value = data.get(key)
        return value if isinstance(value, str) and value.strip() else None

    icy_url = _str_or_none("icy_stream_url")
    api_url = _str_or_none("now_playing_api")
    source: MetadataSource
    if icy_url is not None:
        source = IcyEmbedded(icy_url)
    elif api_url is not None:
        source = RestEndpoint(api_url)
    else:
        source = None
    disable = data.get("disable")
    return StationDescriptor(
        name=name.strip(),
        stream_url=stream_url.strip(),
        metadata_source=source,
        artwork_fallback_image=_str_or_none("image"),
        enabled=not disable if isinstance(disable, bool) else True,
        description=_str_or_none("description"),
    )


def load_stations_with_notice(
    path: Path,
) -> tuple[tuple[StationDescriptor, ...], str | None]:
    """Load stations from `path`, falling back to `DEFAULT_STATIONS`."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return DEFAULT_STATIONS, None
    except OSError as exc:
        logger.warning("Failed to read stations file %s: %s", path, exc)
        return (
            DEFAULT_STATIONS,
            "Custom stations were ignored.\n"
            "Likely cause: stations file is unreadable due to permissions or IO issues.\n"
            f"Next step: verify access to '{path}' and restart.",
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stations file at %s is invalid JSON; using defaults.", path)
        return (
            DEFAULT_STATIONS,
            "Custom stations were ignored.\n"
            "Likely cause: stations file is not valid JSON.\n"
            f"Next step: repair or remove '{path}' and restart.",
        )

    if not isinstance(data, list):
        logger.warning("Stations file at %s is not a JSON array; using defaults.", path)
        return (
            DEFAULT_STATIONS,
            "Custom stations were ignored.\n"
            "Likely cause: stations file must contain a JSON array of stations.\n"
            f"Next step: repair or remove '{path}' and restart.",
        )

    stations: list[StationDescriptor] = []
    for index, entry in enumerate(data):
        station = station_from_dict(entry) if isinstance(entry, dict) else None
        if station is None:
            logger.warning("Skipping invalid station entry #%d in %s", index, path)
            continue
        stations.append(station)
    if not stations:
        logger.warning("Stations file at %s has no usable entries; using defaults.", path)
        return DEFAULT_STATIONS, None
    return tuple(stations), None


def load_stations(path: Path) -> tuple[StationDescriptor, ...]:
    stations, _notice = load_stations_with_notice(path)
    return stations


def find_station(
    stations: tuple[StationDescriptor, ...] | list[StationDescriptor], name: str
) -> int | None:
    """Return index of the station matching `name` (case-insensitive)."""
    wanted = name.strip().casefold()
    for index, station in enumerate(stations):
        if station.name.casefold() == wanted:
            return index
    return None
