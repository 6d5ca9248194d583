"""Now-playing snapshot, provider payload shapes and refresh error taxonomy.

Provider shapes are decoded structurally from parsed JSON: absent or `null`
optional fields become `None`, unknown fields are ignored, and a field of the
wrong JSON type (or a missing required field) raises `NowPlayingDecodeError`.
Decoding success says nothing about whether the payload is semantically useful.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class NowPlayingError(Exception):
    """Base class for every non-fatal now-playing refresh failure."""


class NowPlayingTransportError(NowPlayingError):
    """Network-level failure: connect, timeout, or non-success HTTP status."""


class NowPlayingDecodeError(NowPlayingError):
    """Payload was not JSON or matched none of the known provider shapes."""


class IcyMetadataError(NowPlayingError):
    """Base class for in-band ICY metadata read failures."""


class NoMetaintError(IcyMetadataError):
    """Server did not advertise a positive `icy-metaint` interval."""


class NoMetadataError(IcyMetadataError):
    """Metadata block was empty, undecodable, or carried no StreamTitle."""


class InvalidStreamError(IcyMetadataError):
    """Stream ended before the first metadata block could be read."""


@dataclass(frozen=True)
class NowPlayingSnapshot:
    """Immutable normalized now-playing state for one refresh."""

    title: str
    subtitle: str | None = None
    artwork_url: str | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValueError("NowPlayingSnapshot.title must be a non-empty string")


# ---------------------------------------------------------------------------
# Structural decode helpers


def _object(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise NowPlayingDecodeError(f"{where}: expected object")
    return value


def _optional_object(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    return _object(value, key)


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise NowPlayingDecodeError(f"{key}: expected string")
    return value


def _optional_number(data: Mapping[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise NowPlayingDecodeError(f"{key}: expected number")
    return float(value)


def _required_list(data: Mapping[str, Any], key: str) -> list[Any]:
    if key not in data:
        raise NowPlayingDecodeError(f"{key}: missing required field")
    value = data[key]
    if not isinstance(value, list):
        raise NowPlayingDecodeError(f"{key}: expected array")
    return value


def _optional_list(data: Mapping[str, Any], key: str) -> list[Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise NowPlayingDecodeError(f"{key}: expected array")
    return value


def _str_items(values: list[Any], where: str) -> tuple[str, ...]:
    for value in values:
        if not isinstance(value, str):
            raise NowPlayingDecodeError(f"{where}: expected array of strings")
    return tuple(values)


def _sequence_suffix_order(key: str, prefix: str) -> int:
    suffix = key[len(prefix) :]
    try:
        return int(suffix)
    except ValueError:
        return 1


def ordered_prefixed_keys(data: Mapping[str, Any], prefix: str) -> list[str]:
    """Return keys starting with `prefix`, ordered by their integer suffix.

    Non-numeric suffixes sort as 1; equal orders keep mapping order.
    """
    matching = [key for key in data if key.startswith(prefix)]
    return sorted(matching, key=lambda key: _sequence_suffix_order(key, prefix))


# ---------------------------------------------------------------------------
# NTS


@dataclass(frozen=True)
class NTSMedia:
    background_large: str | None = None
    background_medium_large: str | None = None
    background_medium: str | None = None
    background_small: str | None = None
    background_thumb: str | None = None
    picture_large: str | None = None
    picture_medium_large: str | None = None
    picture_medium: str | None = None
    picture_small: str | None = None
    picture_thumb: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> NTSMedia:
        data = _object(value, "media")
        return cls(
            background_large=_optional_str(data, "background_large"),
            background_medium_large=_optional_str(data, "background_medium_large"),
            background_medium=_optional_str(data, "background_medium"),
            background_small=_optional_str(data, "background_small"),
            background_thumb=_optional_str(data, "background_thumb"),
            picture_large=_optional_str(data, "picture_large"),
            picture_medium_large=_optional_str(data, "picture_medium_large"),
            picture_medium=_optional_str(data, "picture_medium"),
            picture_small=_optional_str(data, "picture_small"),
            picture_thumb=_optional_str(data, "picture_thumb"),
        )


@dataclass(frozen=True)
class NTSEpisodeDetails:
    status: str | None = None
    updated: str | None = None
    name: str | None = None
    description: str | None = None
    description_html: str | None = None
    location_short: str | None = None
    location_long: str | None = None
    intensity: str | None = None
    media: NTSMedia | None = None

    @classmethod
    def from_json(cls, value: Any) -> NTSEpisodeDetails:
        data = _object(value, "details")
        media = _optional_object(data, "media")
        return cls(
            status=_optional_str(data, "status"),
            updated=_optional_str(data, "updated"),
            name=_optional_str(data, "name"),
            description=_optional_str(data, "description"),
            description_html=_optional_str(data, "description_html"),
            location_short=_optional_str(data, "location_short"),
            location_long=_optional_str(data, "location_long"),
            intensity=_optional_str(data, "intensity"),
            media=NTSMedia.from_json(media) if media is not None else None,
        )


@dataclass(frozen=True)
class NTSEmbeds:
    details: NTSEpisodeDetails | None = None

    @classmethod
    def from_json(cls, value: Any) -> NTSEmbeds:
        data = _object(value, "embeds")
        details = _optional_object(data, "details")
        return cls(
            details=NTSEpisodeDetails.from_json(details)
            if details is not None
            else None
        )


@dataclass(frozen=True)
class NTSLink:
    href: str | None = None
    rel: str | None = None
    type: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> NTSLink:
        data = _object(value, "link")
        return cls(
            href=_optional_str(data, "href"),
            rel=_optional_str(data, "rel"),
            type=_optional_str(data, "type"),
        )


@dataclass(frozen=True)
class NTSBroadcast:
    broadcast_title: str | None = None
    start_timestamp: str | None = None
    end_timestamp: str | None = None
    embeds: NTSEmbeds | None = None
    links: tuple[NTSLink, ...] | None = None

    @classmethod
    def from_json(cls, value: Any) -> NTSBroadcast:
        data = _object(value, "broadcast")
        embeds = _optional_object(data, "embeds")
        links = _optional_list(data, "links")
        return cls(
            broadcast_title=_optional_str(data, "broadcast_title"),
            start_timestamp=_optional_str(data, "start_timestamp"),
            end_timestamp=_optional_str(data, "end_timestamp"),
            embeds=NTSEmbeds.from_json(embeds) if embeds is not None else None,
            links=tuple(NTSLink.from_json(link) for link in links)
            if links is not None
            else None,
        )


@dataclass(frozen=True)
class NTSLiveChannel:
    channel_name: str | None = None
    now: NTSBroadcast | None = None
    upcoming: tuple[NTSBroadcast, ...] = ()

    @classmethod
    def from_json(cls, value: Any) -> NTSLiveChannel:
        data = _object(value, "channel")
        now = _optional_object(data, "now")
        upcoming: list[NTSBroadcast] = []
        # `next1`, `next2`, ... are dynamic keys; a bad entry is skipped rather
        # than failing the whole channel.
        for key in ordered_prefixed_keys(data, "next"):
            try:
                upcoming.append(NTSBroadcast.from_json(data[key]))
            except NowPlayingDecodeError:
                continue
        return cls(
            channel_name=_optional_str(data, "channel_name"),
            now=NTSBroadcast.from_json(now) if now is not None else None,
            upcoming=tuple(upcoming),
        )


@dataclass(frozen=True)
class NTSNowPlayingResponse:
    results: tuple[NTSLiveChannel, ...]

    @classmethod
    def from_json(cls, value: Any) -> NTSNowPlayingResponse:
        data = _object(value, "response")
        results = _required_list(data, "results")
        return cls(results=tuple(NTSLiveChannel.from_json(item) for item in results))


# ---------------------------------------------------------------------------
# Worldwide FM


@dataclass(frozen=True)
class WorldwideNowPlayingContent:
    title: str | None = None
    color: str | None = None
    media_type: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> WorldwideNowPlayingContent:
        data = _object(value, "content")
        media = _optional_object(data, "media")
        return cls(
            title=_optional_str(data, "title"),
            color=_optional_str(data, "color"),
            media_type=_optional_str(media, "type") if media is not None else None,
        )


@dataclass(frozen=True)
class WorldwideNowPlayingMetadata:
    title: str | None = None
    artist: str | None = None
    album: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> WorldwideNowPlayingMetadata:
        data = _object(value, "metadata")
        return cls(
            title=_optional_str(data, "title"),
            artist=_optional_str(data, "artist"),
            album=_optional_str(data, "album"),
        )


@dataclass(frozen=True)
class WorldwideNowPlayingResult:
    status: str | None = None
    content: WorldwideNowPlayingContent | None = None
    metadata: WorldwideNowPlayingMetadata | None = None

    @classmethod
    def from_json(cls, value: Any) -> WorldwideNowPlayingResult:
        data = _object(value, "result")
        content = _optional_object(data, "content")
        metadata = _optional_object(data, "metadata")
        return cls(
            status=_optional_str(data, "status"),
            content=WorldwideNowPlayingContent.from_json(content)
            if content is not None
            else None,
            metadata=WorldwideNowPlayingMetadata.from_json(metadata)
            if metadata is not None
            else None,
        )


@dataclass(frozen=True)
class WorldwideNowPlayingResponse:
    success: bool
    result: WorldwideNowPlayingResult | None = None

    @classmethod
    def from_json(cls, value: Any) -> WorldwideNowPlayingResponse:
        data = _object(value, "response")
        success = data.get("success")
        if not isinstance(success, bool):
            raise NowPlayingDecodeError("success: expected boolean")
        result = _optional_object(data, "result")
        return cls(
            success=success,
            result=WorldwideNowPlayingResult.from_json(result)
            if result is not None
            else None,
        )


# ---------------------------------------------------------------------------
# FIP (Radio France livemeta)


@dataclass(frozen=True)
class FIPStep:
    title: str | None = None
    highlighted_artists: tuple[str, ...] | None = None
    authors: str | None = None
    titre_album: str | None = None
    visual: str | None = None
    start: float | None = None
    end: float | None = None

    @classmethod
    def from_json(cls, value: Any) -> FIPStep:
        data = _object(value, "step")
        artists = _optional_list(data, "highlightedArtists")
        return cls(
            title=_optional_str(data, "title"),
            highlighted_artists=_str_items(artists, "highlightedArtists")
            if artists is not None
            else None,
            authors=_optional_str(data, "authors"),
            titre_album=_optional_str(data, "titreAlbum"),
            visual=_optional_str(data, "visual"),
            start=_optional_number(data, "start"),
            end=_optional_number(data, "end"),
        )


@dataclass(frozen=True)
class FIPLevel:
    items: tuple[str, ...]
    position: int

    @classmethod
    def from_json(cls, value: Any) -> FIPLevel:
        data = _object(value, "level")
        items = _str_items(_required_list(data, "items"), "items")
        position = data.get("position")
        if isinstance(position, bool) or not isinstance(position, int):
            raise NowPlayingDecodeError("position: expected integer")
        return cls(items=items, position=position)


@dataclass(frozen=True)
class FIPNowPlayingResponse:
    steps: Mapping[str, FIPStep]
    levels: tuple[FIPLevel, ...]

    @classmethod
    def from_json(cls, value: Any) -> FIPNowPlayingResponse:
        data = _object(value, "response")
        if "steps" not in data:
            raise NowPlayingDecodeError("steps: missing required field")
        raw_steps = _object(data["steps"], "steps")
        levels = _required_list(data, "levels")
        return cls(
            steps={
                str(step_id): FIPStep.from_json(step)
                for step_id, step in raw_steps.items()
            },
            levels=tuple(FIPLevel.from_json(level) for level in levels),
        )

    def current_step(self) -> FIPStep | None:
        """Resolve `steps[levels[0].items[levels[0].position]]`."""
        if not self.levels:
            return None
        level = self.levels[0]
        if not 0 <= level.position < len(level.items):
            return None
        return self.steps.get(level.items[level.position])


ProviderResponse = NTSNowPlayingResponse | WorldwideNowPlayingResponse | FIPNowPlayingResponse
