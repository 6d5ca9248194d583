"""Map provider payloads and ICY titles onto `NowPlayingSnapshot`.

Dispatch is content sniffing, not a content-type check: the JSON body is tried
against each decoder in `PROVIDER_DECODERS` order and the first structural
success wins. A payload that fits more than one shape therefore always
resolves to the earliest entry (NTS, then Worldwide FM, then FIP).
"""

from __future__ import annotations

import html
import json
from collections.abc import Callable, Sequence
from typing import Any

from tz_radio.stations import StationDescriptor

from .now_playing_models import (
    FIPNowPlayingResponse,
    NowPlayingDecodeError,
    NowPlayingSnapshot,
    NTSLiveChannel,
    NTSNowPlayingResponse,
    ProviderResponse,
    WorldwideNowPlayingResponse,
)

ICY_TITLE_SEPARATOR = " - "

PROVIDER_DECODERS: tuple[tuple[str, Callable[[Any], ProviderResponse]], ...] = (
    ("nts", NTSNowPlayingResponse.from_json),
    ("worldwide-fm", WorldwideNowPlayingResponse.from_json),
    ("fip", FIPNowPlayingResponse.from_json),
)


def inferred_nts_channel(station: StationDescriptor) -> str:
    return "2" if "2" in station.display_name else "1"


def best_nts_channel(
    channels: Sequence[NTSLiveChannel], station: StationDescriptor
) -> NTSLiveChannel | None:
    wanted = inferred_nts_channel(station)
    for channel in channels:
        if channel.channel_name == wanted:
            return channel
    return channels[0] if channels else None


def adapt_nts(
    response: NTSNowPlayingResponse, station: StationDescriptor
) -> NowPlayingSnapshot:
    channel = best_nts_channel(response.results, station)
    now = channel.now if channel is not None else None
    details = now.embeds.details if now is not None and now.embeds else None
    broadcast_title = (
        html.unescape(now.broadcast_title)
        if now is not None and now.broadcast_title is not None
        else None
    )
    episode_name = details.name if details is not None else None
    media = details.media if details is not None else None
    artwork = None
    if media is not None:
        artwork = media.picture_medium or media.background_medium
    return NowPlayingSnapshot(
        title=_non_blank(episode_name, broadcast_title) or station.display_name,
        subtitle=broadcast_title if _non_blank(episode_name) else None,
        artwork_url=artwork,
    )


def adapt_worldwide(
    response: WorldwideNowPlayingResponse, station: StationDescriptor
) -> NowPlayingSnapshot:
    result = response.result
    content = result.content if result is not None else None
    metadata = result.metadata if result is not None else None
    title = _non_blank(
        content.title if content is not None else None,
        metadata.title if metadata is not None else None,
    )
    subtitle = _first_present(
        metadata.artist if metadata is not None else None,
        metadata.title if metadata is not None else None,
        result.status if result is not None else None,
    )
    return NowPlayingSnapshot(
        title=title or station.display_name,
        subtitle=subtitle,
    )


def adapt_fip(
    response: FIPNowPlayingResponse, station: StationDescriptor
) -> NowPlayingSnapshot:
    step = response.current_step()
    if step is None:
        return NowPlayingSnapshot(title=station.display_name)
    artist = (
        step.highlighted_artists[0] if step.highlighted_artists else step.authors
    )
    return NowPlayingSnapshot(
        title=_non_blank(step.title) or station.display_name,
        subtitle=artist,
        artwork_url=step.visual,
    )


def decode_provider_payload(body: bytes) -> ProviderResponse:
    """Parse JSON and return the first provider shape that decodes."""
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise NowPlayingDecodeError(f"Response is not valid JSON: {exc}") from exc
    for _name, decoder in PROVIDER_DECODERS:
        try:
            return decoder(data)
        except NowPlayingDecodeError:
            continue
    raise NowPlayingDecodeError("Unsupported now-playing response format")


def adapt_provider_response(
    response: ProviderResponse, station: StationDescriptor
) -> NowPlayingSnapshot:
    if isinstance(response, NTSNowPlayingResponse):
        return adapt_nts(response, station)
    if isinstance(response, WorldwideNowPlayingResponse):
        return adapt_worldwide(response, station)
    return adapt_fip(response, station)


def snapshot_from_payload(body: bytes, station: StationDescriptor) -> NowPlayingSnapshot:
    return adapt_provider_response(decode_provider_payload(body), station)


def snapshot_from_stream_title(
    stream_title: str, station: StationDescriptor
) -> NowPlayingSnapshot:
    """Split `Artist - Title` on the first separator; else title + station."""
    artist, separator, title = stream_title.partition(ICY_TITLE_SEPARATOR)
    if separator and title.strip():
        return NowPlayingSnapshot(title=title, subtitle=artist)
    return NowPlayingSnapshot(title=stream_title, subtitle=station.display_name)


def _non_blank(*values: str | None) -> str | None:
    """First value that can be used as a snapshot title."""
    for value in values:
        if value is not None and value.strip():
            return value
    return None


def _first_present(*values: str | None) -> str | None:
    for value in values:
        if value is not None:
            return value
    return None
