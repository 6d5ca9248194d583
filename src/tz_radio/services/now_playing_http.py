"""aiohttp transport used by the now-playing refresh subsystem.

All network-level failures surface as `NowPlayingTransportError` so callers
only handle the refresh error taxonomy. `asyncio.CancelledError` is never
translated: cancelling a refresh must cancel the request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Final

import aiohttp

from .now_playing_models import NowPlayingTransportError

logger = logging.getLogger(__name__)

USER_AGENT: Final = "tz-radio (+now-playing)"
DEFAULT_TIMEOUT_S: Final = 15.0


@dataclass(frozen=True)
class HttpResult:
    """Fully-read HTTP response body plus status and headers."""

    status: int
    headers: Mapping[str, str]
    body: bytes


class NowPlayingHttpClient:
    """Owns (or borrows) one `aiohttp.ClientSession` for refresh requests."""

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(
            total=None, sock_connect=timeout_s, sock_read=timeout_s
        )
        self._user_agent = user_agent

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": self._user_agent},
            )
            self._owns_session = True
        return self._session

    async def fetch(self, url: str) -> HttpResult:
        """GET `url` and read the whole body."""
        session = self._get_session()
        try:
            async with session.get(url, timeout=self._timeout) as response:
                body = await response.read()
                if response.status >= 400:
                    raise NowPlayingTransportError(
                        f"HTTP {response.status} from {url}"
                    )
                return HttpResult(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                )
        except NowPlayingTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise NowPlayingTransportError(_describe(exc, url)) from exc

    @asynccontextmanager
    async def open_stream(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        """Open a streaming GET; the response is closed on exit, always.

        Closing (not releasing) drops the connection so no audio keeps
        downloading after the caller is done.
        """
        session = self._get_session()
        try:
            response = await session.get(
                url, headers=dict(headers or {}), timeout=self._timeout
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise NowPlayingTransportError(_describe(exc, url)) from exc
        try:
            if response.status >= 400:
                raise NowPlayingTransportError(f"HTTP {response.status} from {url}")
            yield response
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NowPlayingTransportError(_describe(exc, url)) from exc
        finally:
            response.close()

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None


def _describe(exc: BaseException, url: str) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"Timed out contacting {url}"
    detail = str(exc) or exc.__class__.__name__
    return f"Network error contacting {url}: {detail}"
