"""Tests for the aiohttp transport wrapper."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from tz_radio.services.now_playing_http import NowPlayingHttpClient
from tz_radio.services.now_playing_models import NowPlayingTransportError


def _run(coro):
    return asyncio.run(coro)


async def _with_server(routes, scenario):
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    server = TestServer(app)
    await server.start_server()
    client = NowPlayingHttpClient(timeout_s=2.0)
    try:
        return await scenario(client, server)
    finally:
        await client.aclose()
        await server.close()


def test_fetch_returns_status_headers_and_body() -> None:
    async def ok(request: web.Request) -> web.Response:
        assert "tz-radio" in request.headers["User-Agent"]
        return web.json_response({"success": True})

    async def scenario(client: NowPlayingHttpClient, server: TestServer):
        return await client.fetch(str(server.make_url("/live")))

    result = _run(_with_server({"/live": ok}, scenario))
    assert result.status == 200
    assert result.body == b'{"success": true}'
    assert result.headers["Content-Type"].startswith("application/json")


def test_fetch_maps_http_errors_to_transport_error() -> None:
    async def missing(request: web.Request) -> web.Response:
        del request
        return web.Response(status=404, text="nope")

    async def scenario(client: NowPlayingHttpClient, server: TestServer):
        return await client.fetch(str(server.make_url("/gone")))

    with pytest.raises(NowPlayingTransportError, match="HTTP 404"):
        _run(_with_server({"/gone": missing}, scenario))


def test_fetch_maps_connection_failure_to_transport_error() -> None:
    async def scenario() -> None:
        app = web.Application()
        server = TestServer(app)
        await server.start_server()
        url = str(server.make_url("/live"))
        await server.close()
        client = NowPlayingHttpClient(timeout_s=1.0)
        try:
            await client.fetch(url)
        finally:
            await client.aclose()

    with pytest.raises(NowPlayingTransportError):
        _run(scenario())


def test_fetch_timeout_is_transport_error() -> None:
    async def slow(request: web.Request) -> web.Response:
        del request
        await asyncio.sleep(1.0)
        return web.Response(text="late")

    async def scenario() -> None:
        app = web.Application()
        app.router.add_get("/slow", slow)
        server = TestServer(app)
        await server.start_server()
        client = NowPlayingHttpClient(timeout_s=0.1)
        try:
            await client.fetch(str(server.make_url("/slow")))
        finally:
            await client.aclose()
            await server.close()

    with pytest.raises(NowPlayingTransportError, match="Timed out"):
        _run(scenario())


def test_borrowed_session_is_not_closed() -> None:
    async def scenario() -> bool:
        session = aiohttp.ClientSession()
        client = NowPlayingHttpClient(session=session)
        await client.aclose()
        closed = session.closed
        await session.close()
        return closed

    assert _run(scenario()) is False
