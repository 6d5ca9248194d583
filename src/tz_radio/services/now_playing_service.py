"""Per-station now-playing refresh loop.

`NowPlayingService` owns at most one background task. Starting a station
cancels and awaits the previous task before any new work begins, so there is
never more than one loop or one in-flight fetch. Each loop carries a
generation token; snapshots are published only while that token is current,
which keeps a late result from a previous station from overwriting the new
station's state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace

from tz_radio.stations import IcyEmbedded, RestEndpoint, StationDescriptor

from .icy_reader import fetch_stream_title
from .now_playing_adapters import snapshot_from_payload, snapshot_from_stream_title
from .now_playing_http import NowPlayingHttpClient
from .now_playing_models import NowPlayingError, NowPlayingSnapshot

logger = logging.getLogger(__name__)

REST_REFRESH_INTERVAL_S = 30.0
ICY_REFRESH_INTERVAL_S = 15.0
MIN_REFRESH_INTERVAL_S = 0.01

NOT_PLAYING_TITLE = "Not playing"
STOPPED_TITLE = "Stopped"
NO_ENDPOINT_SUBTITLE = "No now-playing endpoint"
FETCH_FAILED_SUBTITLE = "Unable to fetch now playing"


class NowPlayingService:
    """Resolves what is on air for the active station and emits snapshots."""

    def __init__(
        self,
        *,
        on_snapshot: Callable[[NowPlayingSnapshot], Awaitable[None]],
        http_client: NowPlayingHttpClient | None = None,
        stream_title_reader: Callable[[str], Awaitable[str]] | None = None,
        rest_interval_s: float = REST_REFRESH_INTERVAL_S,
        icy_interval_s: float = ICY_REFRESH_INTERVAL_S,
    ) -> None:
        self._on_snapshot = on_snapshot
        self._owns_http_client = http_client is None
        self._http = http_client or NowPlayingHttpClient()
        self._read_stream_title = stream_title_reader or self._default_stream_title
        self._rest_interval = max(MIN_REFRESH_INTERVAL_S, float(rest_interval_s))
        self._icy_interval = max(MIN_REFRESH_INTERVAL_S, float(icy_interval_s))
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._station: StationDescriptor | None = None
        self._snapshot = NowPlayingSnapshot(title=NOT_PLAYING_TITLE)

    @property
    def snapshot(self) -> NowPlayingSnapshot:
        return self._snapshot

    @property
    def current_station(self) -> StationDescriptor | None:
        return self._station

    @property
    def is_updating(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_snapshot_handler(
        self, handler: Callable[[NowPlayingSnapshot], Awaitable[None]]
    ) -> None:
        self._on_snapshot = handler

    async def start_updating(self, station: StationDescriptor) -> None:
        """Replace any running loop with one for `station`."""
        generation = await self._cancel_loop()
        if generation != self._generation:
            # Another start/stop ran while the old loop was unwinding.
            return
        self._station = station
        source = station.metadata_source
        if isinstance(source, IcyEmbedded):
            icy_url = source.url
            logger.info("Now-playing via ICY for %s", station.display_name)
            self._task = asyncio.create_task(
                self._run_loop(
                    generation,
                    lambda: self._refresh_icy(icy_url, station),
                    self._icy_interval,
                    station,
                ),
                name=f"now-playing:{station.display_name}",
            )
            return
        if isinstance(source, RestEndpoint):
            api_url = source.url
            logger.info("Now-playing via %s for %s", api_url, station.display_name)
            self._task = asyncio.create_task(
                self._run_loop(
                    generation,
                    lambda: self._refresh_rest(api_url, station),
                    self._rest_interval,
                    station,
                ),
                name=f"now-playing:{station.display_name}",
            )
            return
        logger.info("No now-playing source for %s", station.display_name)
        await self._publish(
            generation,
            NowPlayingSnapshot(
                title=station.display_name, subtitle=NO_ENDPOINT_SUBTITLE
            ),
        )

    async def stop_updating(self, reset_state: bool) -> None:
        """Cancel the loop; optionally emit the cleared "Not playing" state."""
        generation = await self._cancel_loop()
        if reset_state:
            self._station = None
            await self._publish(generation, NowPlayingSnapshot(title=NOT_PLAYING_TITLE))

    async def set_stopped_state(self) -> None:
        """Emit "Stopped", keeping whatever artwork the last snapshot had."""
        await self._publish(
            self._generation,
            replace(
                self._snapshot, title=STOPPED_TITLE, subtitle=None, error_message=None
            ),
        )

    async def aclose(self) -> None:
        await self._cancel_loop()
        if self._owns_http_client:
            await self._http.aclose()

    async def _cancel_loop(self) -> int:
        """Invalidate and cancel the running loop; return the new generation."""
        # Bumping the generation first invalidates anything the old task might
        # still try to publish while it unwinds.
        self._generation += 1
        generation = self._generation
        task = self._task
        self._task = None
        if task is None:
            return generation
        task.cancel()
        if task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as exc:
                logger.exception("Now-playing loop ended with an error: %s", exc)
        return generation

    async def _run_loop(
        self,
        generation: int,
        refresh: Callable[[], Awaitable[NowPlayingSnapshot]],
        interval_s: float,
        station: StationDescriptor,
    ) -> None:
        while generation == self._generation:
            snapshot = await self._refresh_once(refresh, station)
            await self._publish(generation, snapshot)
            await asyncio.sleep(interval_s)

    async def _refresh_once(
        self,
        refresh: Callable[[], Awaitable[NowPlayingSnapshot]],
        station: StationDescriptor,
    ) -> NowPlayingSnapshot:
        try:
            snapshot = await refresh()
        except NowPlayingError as exc:
            logger.warning(
                "Now-playing refresh failed for %s: %s", station.display_name, exc
            )
            return _failure_snapshot(station, exc)
        except Exception as exc:  # pragma: no cover - safety net
            logger.exception(
                "Unexpected now-playing failure for %s: %s", station.display_name, exc
            )
            return _failure_snapshot(station, exc)
        logger.debug(
            "Now-playing for %s: %s / %s",
            station.display_name,
            snapshot.title,
            snapshot.subtitle,
        )
        return snapshot

    async def _refresh_rest(
        self, url: str, station: StationDescriptor
    ) -> NowPlayingSnapshot:
        result = await self._http.fetch(url)
        return snapshot_from_payload(result.body, station)

    async def _refresh_icy(
        self, url: str, station: StationDescriptor
    ) -> NowPlayingSnapshot:
        stream_title = await self._read_stream_title(url)
        return snapshot_from_stream_title(stream_title, station)

    async def _default_stream_title(self, url: str) -> str:
        return await fetch_stream_title(url, client=self._http)

    async def _publish(self, generation: int, snapshot: NowPlayingSnapshot) -> None:
        if generation != self._generation:
            logger.debug("Dropping stale now-playing snapshot: %s", snapshot.title)
            return
        self._snapshot = snapshot
        try:
            await self._on_snapshot(snapshot)
        except Exception as exc:
            logger.exception("Now-playing snapshot handler failed: %s", exc)


def _failure_snapshot(
    station: StationDescriptor, exc: BaseException
) -> NowPlayingSnapshot:
    return NowPlayingSnapshot(
        title=station.display_name,
        subtitle=FETCH_FAILED_SUBTITLE,
        artwork_url=None,
        error_message=str(exc) or exc.__class__.__name__,
    )
