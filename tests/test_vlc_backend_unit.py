"""Unit tests for VLC backend command behavior without VLC."""

from __future__ import annotations

import asyncio
import threading
import types

import pytest

from tz_radio.services.playback_backend import StateChanged
from tz_radio.services.vlc_backend import VLCPlaybackBackend, _Command, _map_state


class _DummyInstance:
    def __init__(self) -> None:
        self.urls: list[str] = []

    def media_new(self, url: str) -> str:
        self.urls.append(url)
        return f"media:{url}"


class _DummyPlayer:
    def __init__(self, state_name: str = "Stopped") -> None:
        self.play_called = False
        self.stop_called = False
        self.pause_values: list[int] = []
        self.volume: int | None = None
        self.media = None
        self.state_name = state_name

    def set_media(self, media: str) -> None:
        self.media = media

    def play(self) -> None:
        self.play_called = True

    def set_pause(self, value: int) -> None:
        self.pause_values.append(value)

    def audio_set_volume(self, volume: int) -> None:
        self.volume = volume

    def stop(self) -> None:
        self.stop_called = True

    def get_state(self) -> object:
        return types.SimpleNamespace(name=self.state_name)


class _RecordingBackend(VLCPlaybackBackend):
    def __init__(self) -> None:
        super().__init__()
        self.emitted: list[object] = []

    def _emit_event(self, event: object) -> None:
        self.emitted.append(event)


def test_handle_command_play_stop_no_statechanged() -> None:
    backend = _RecordingBackend()
    instance = _DummyInstance()
    player = _DummyPlayer()

    backend._handle_command(
        _Command("play", ("https://stream.test/live",), None), instance, player
    )
    assert instance.urls == ["https://stream.test/live"]
    assert player.media == "media:https://stream.test/live"
    assert player.play_called is True
    assert not any(isinstance(event, StateChanged) for event in backend.emitted)

    backend._handle_command(_Command("stop", (), None), instance, player)
    assert player.stop_called is True
    assert backend.emitted == []


def test_handle_command_pause_resume_and_volume() -> None:
    backend = _RecordingBackend()
    instance = _DummyInstance()
    player = _DummyPlayer()

    backend._handle_command(_Command("pause", (), None), instance, player)
    backend._handle_command(_Command("resume", (), None), instance, player)
    backend._handle_command(_Command("set_volume", (42,), None), instance, player)
    assert player.pause_values == [1, 0]
    assert player.volume == 42


def test_handle_command_rejects_unknown_name() -> None:
    backend = _RecordingBackend()
    with pytest.raises(ValueError, match="Unknown command"):
        backend._handle_command(
            _Command("seek", (), None), _DummyInstance(), _DummyPlayer()
        )


def test_map_state_names() -> None:
    assert _map_state(_DummyPlayer("Playing")) == "playing"
    assert _map_state(_DummyPlayer("Paused")) == "paused"
    assert _map_state(_DummyPlayer("Ended")) == "stopped"
    assert _map_state(_DummyPlayer("Error")) == "error"
    assert _map_state(_DummyPlayer("Opening")) == "loading"
    assert _map_state(_DummyPlayer("NothingSpecial")) == "idle"


def test_resolve_future_result_ignores_done_future() -> None:
    async def run() -> None:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[int] = loop.create_future()
        future.set_result(1)
        VLCPlaybackBackend._resolve_future_result(future, 2)
        assert future.result() == 1

    asyncio.run(run())


def test_resolve_future_exception_ignores_cancelled_future() -> None:
    async def run() -> None:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[int] = loop.create_future()
        future.cancel()
        VLCPlaybackBackend._resolve_future_exception(future, RuntimeError("x"))
        assert future.cancelled()

    asyncio.run(run())


def test_submit_rejects_when_backend_thread_not_running() -> None:
    async def run() -> None:
        backend = VLCPlaybackBackend()
        backend._loop = asyncio.get_running_loop()  # noqa: SLF001
        backend._thread = threading.Thread()  # noqa: SLF001
        with pytest.raises(RuntimeError, match="VLC backend not started"):
            await backend._submit("get_state")  # noqa: SLF001

    asyncio.run(run())


def test_submit_rejects_before_start() -> None:
    async def run() -> None:
        backend = VLCPlaybackBackend()
        with pytest.raises(RuntimeError, match="VLC backend not started"):
            await backend.play("https://stream.test/live")

    asyncio.run(run())
