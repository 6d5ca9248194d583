"""Tests for the platform-neutral now-playing center."""

from __future__ import annotations

from tz_radio.services.now_playing_center import NowPlayingCenter, NowPlayingInfo


def test_update_maps_station_and_show_fields() -> None:
    center = NowPlayingCenter()
    info = center.update(
        station_name="NTS 1",
        title="Morning Show",
        subtitle="Host",
        artwork_url="https://img/x.jpg",
        is_playing=True,
    )
    assert info == NowPlayingInfo(
        title="Morning Show",
        artist="NTS 1",
        album="Host",
        artwork_url="https://img/x.jpg",
        is_live=True,
        playback_rate=1.0,
        playback_state="playing",
    )
    assert center.info == info
    assert center.playback_state == "playing"


def test_paused_update_zeroes_rate() -> None:
    center = NowPlayingCenter()
    info = center.update(
        station_name=None, title="T", subtitle=None, artwork_url=None, is_playing=False
    )
    assert info.playback_rate == 0.0
    assert info.playback_state == "paused"


def test_listener_sees_updates_and_clear() -> None:
    seen: list[NowPlayingInfo | None] = []
    center = NowPlayingCenter(listener=seen.append)
    center.update(
        station_name="FIP", title="Song", subtitle=None, artwork_url=None, is_playing=True
    )
    center.clear()
    assert [item.title if item else None for item in seen] == ["Song", None]
    assert center.info is None
    assert center.playback_state == "stopped"


def test_failing_listener_does_not_break_updates(caplog) -> None:
    def boom(info: NowPlayingInfo | None) -> None:
        raise RuntimeError("listener bug")

    center = NowPlayingCenter()
    center.set_listener(boom)
    center.update(
        station_name="FIP", title="Song", subtitle=None, artwork_url=None, is_playing=True
    )
    assert center.info is not None
    assert any("listener failed" in record.getMessage() for record in caplog.records)
