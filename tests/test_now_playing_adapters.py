"""Tests for provider dispatch and snapshot adaptation."""

from __future__ import annotations

import json

import pytest

from tz_radio.services.now_playing_adapters import (
    PROVIDER_DECODERS,
    best_nts_channel,
    decode_provider_payload,
    inferred_nts_channel,
    snapshot_from_payload,
    snapshot_from_stream_title,
)
from tz_radio.services.now_playing_models import (
    FIPNowPlayingResponse,
    NowPlayingDecodeError,
    NTSLiveChannel,
    NTSNowPlayingResponse,
    WorldwideNowPlayingResponse,
)
from tz_radio.stations import RestEndpoint, StationDescriptor


def _station(name: str) -> StationDescriptor:
    return StationDescriptor(
        name=name,
        stream_url="https://example.test/stream",
        metadata_source=RestEndpoint("https://example.test/api"),
    )


def _body(payload: object) -> bytes:
    return json.dumps(payload).encode("utf-8")


NTS_PAYLOAD = {
    "results": [
        {
            "channel_name": "1",
            "now": {
                "broadcast_title": "Channel One &amp; Friends",
                "embeds": {
                    "details": {
                        "name": "Morning Show",
                        "media": {
                            "picture_medium": "https://img/one-pic.jpg",
                            "background_medium": "https://img/one-bg.jpg",
                        },
                    }
                },
            },
        },
        {
            "channel_name": "2",
            "now": {
                "broadcast_title": "Late &amp; Live",
                "embeds": {
                    "details": {
                        "media": {"background_medium": "https://img/two-bg.jpg"}
                    }
                },
            },
        },
    ]
}


def test_decoder_order_is_nts_worldwide_fip() -> None:
    assert [name for name, _decoder in PROVIDER_DECODERS] == [
        "nts",
        "worldwide-fm",
        "fip",
    ]


def test_inferred_nts_channel_from_display_name() -> None:
    assert inferred_nts_channel(_station("NTS 2")) == "2"
    assert inferred_nts_channel(_station("NTS 1")) == "1"
    assert inferred_nts_channel(_station("Something")) == "1"


def test_best_nts_channel_falls_back_to_first_then_none() -> None:
    channels = (NTSLiveChannel(channel_name="A"), NTSLiveChannel(channel_name="B"))
    assert best_nts_channel(channels, _station("NTS 2")) is channels[0]
    assert best_nts_channel((), _station("NTS 2")) is None


def test_nts_channel_one_uses_episode_name_and_picture() -> None:
    snapshot = snapshot_from_payload(_body(NTS_PAYLOAD), _station("NTS 1"))
    assert snapshot.title == "Morning Show"
    assert snapshot.subtitle == "Channel One & Friends"
    assert snapshot.artwork_url == "https://img/one-pic.jpg"
    assert snapshot.error_message is None


def test_nts_channel_two_without_episode_name() -> None:
    snapshot = snapshot_from_payload(_body(NTS_PAYLOAD), _station("NTS 2"))
    assert snapshot.title == "Late & Live"
    assert snapshot.subtitle is None
    assert snapshot.artwork_url == "https://img/two-bg.jpg"


def test_nts_blank_episode_name_is_absent_for_title_and_subtitle() -> None:
    payload = {
        "results": [
            {
                "channel_name": "1",
                "now": {
                    "broadcast_title": "Show",
                    "embeds": {"details": {"name": "  "}},
                },
            }
        ]
    }
    snapshot = snapshot_from_payload(_body(payload), _station("NTS 1"))
    assert snapshot.title == "Show"
    assert snapshot.subtitle is None


def test_nts_empty_results_uses_station_name() -> None:
    snapshot = snapshot_from_payload(_body({"results": []}), _station("NTS 1"))
    assert snapshot.title == "NTS 1"
    assert snapshot.subtitle is None
    assert snapshot.artwork_url is None


def test_worldwide_title_and_subtitle_fallbacks() -> None:
    full = {
        "success": True,
        "result": {
            "status": "live",
            "content": {"title": "Gilles Peterson"},
            "metadata": {"title": "Track", "artist": "Artist"},
        },
    }
    snapshot = snapshot_from_payload(_body(full), _station("Worldwide FM"))
    assert (snapshot.title, snapshot.subtitle) == ("Gilles Peterson", "Artist")
    assert snapshot.artwork_url is None

    no_content = {
        "success": True,
        "result": {"status": "live", "metadata": {"title": "Track"}},
    }
    snapshot = snapshot_from_payload(_body(no_content), _station("Worldwide FM"))
    assert (snapshot.title, snapshot.subtitle) == ("Track", "Track")

    status_only = {"success": True, "result": {"status": "offAir"}}
    snapshot = snapshot_from_payload(_body(status_only), _station("Worldwide FM"))
    assert (snapshot.title, snapshot.subtitle) == ("Worldwide FM", "offAir")


def test_fip_prefers_highlighted_artist_then_authors() -> None:
    payload = {
        "steps": {
            "a": {
                "title": "Song",
                "highlightedArtists": ["Lead", "Guest"],
                "authors": "Writer",
                "visual": "https://img/cover.jpg",
            },
            "b": {"title": "Other", "authors": "Writer"},
        },
        "levels": [{"items": ["a", "b"], "position": 0}],
    }
    snapshot = snapshot_from_payload(_body(payload), _station("FIP"))
    assert (snapshot.title, snapshot.subtitle) == ("Song", "Lead")
    assert snapshot.artwork_url == "https://img/cover.jpg"

    payload["levels"] = [{"items": ["a", "b"], "position": 1}]
    snapshot = snapshot_from_payload(_body(payload), _station("FIP"))
    assert (snapshot.title, snapshot.subtitle) == ("Other", "Writer")


def test_fip_position_out_of_range_uses_station_name() -> None:
    payload = {"steps": {}, "levels": [{"items": [], "position": 0}]}
    snapshot = snapshot_from_payload(_body(payload), _station("FIP"))
    assert snapshot.title == "FIP"
    assert snapshot.subtitle is None


def test_ambiguous_payload_resolves_to_earliest_decoder() -> None:
    payload = {
        "results": [],
        "success": True,
        "steps": {},
        "levels": [],
    }
    assert isinstance(decode_provider_payload(_body(payload)), NTSNowPlayingResponse)
    del payload["results"]
    assert isinstance(
        decode_provider_payload(_body(payload)), WorldwideNowPlayingResponse
    )
    del payload["success"]
    assert isinstance(decode_provider_payload(_body(payload)), FIPNowPlayingResponse)


def test_unsupported_or_invalid_json_is_decode_error() -> None:
    with pytest.raises(NowPlayingDecodeError, match="Unsupported"):
        decode_provider_payload(_body({"hello": "world"}))
    with pytest.raises(NowPlayingDecodeError):
        decode_provider_payload(b"<html>")
    with pytest.raises(NowPlayingDecodeError):
        decode_provider_payload(b"\xff\xfe\x00")


def test_stream_title_split_on_first_separator() -> None:
    station = _station("Kiosk Radio")
    snapshot = snapshot_from_stream_title("Artist - Song - Remix", station)
    assert snapshot.title == "Song - Remix"
    assert snapshot.subtitle == "Artist"
    assert snapshot.artwork_url is None


def test_stream_title_without_separator_uses_station_subtitle() -> None:
    station = _station("Kiosk Radio")
    snapshot = snapshot_from_stream_title("Just a title", station)
    assert snapshot.title == "Just a title"
    assert snapshot.subtitle == "Kiosk Radio"
