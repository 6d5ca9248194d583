"""One-shot ICY (Icecast/Shoutcast) in-band metadata reader.

Opens the audio stream with `Icy-MetaData: 1`, skips the first `icy-metaint`
audio bytes, reads one metadata block, extracts `StreamTitle` and closes the
connection. There are no retries here; the refresh loop's interval is the
retry mechanism.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Final

from .now_playing_http import NowPlayingHttpClient
from .now_playing_models import InvalidStreamError, NoMetadataError, NoMetaintError

logger = logging.getLogger(__name__)

ICY_METADATA_HEADER: Final = "Icy-MetaData"
ICY_METAINT_HEADER: Final = "icy-metaint"
STREAM_TITLE_MARKER: Final = "StreamTitle='"
METADATA_BLOCK_UNIT: Final = 16
_SKIP_CHUNK_BYTES: Final = 64 * 1024

REQUEST_HEADERS: Final[Mapping[str, str]] = {
    ICY_METADATA_HEADER: "1",
    # Zero-length range hint so servers that honour it send as little audio
    # as possible before the first metadata block.
    "Range": "0",
}


async def fetch_stream_title(
    url: str,
    *,
    client: NowPlayingHttpClient | None = None,
    timeout_s: float = 15.0,
) -> str:
    """Return the current `StreamTitle` announced on the stream at `url`."""
    local_client = client is None
    http = client or NowPlayingHttpClient(timeout_s=timeout_s)
    try:
        async with http.open_stream(url, REQUEST_HEADERS) as response:
            metaint = parse_metaint(response.headers)
            await _skip_exactly(response.content, metaint)
            length_byte = await response.content.read(1)
            if not length_byte:
                raise InvalidStreamError("Stream ended before metadata length byte")
            block_length = length_byte[0] * METADATA_BLOCK_UNIT
            if block_length == 0:
                raise NoMetadataError("Metadata block is empty")
            block = await _read_up_to(response.content, block_length)
        raw = decode_metadata_block(block)
        title = extract_stream_title(raw)
        logger.debug("ICY StreamTitle from %s: %r", url, title)
        return title
    finally:
        if local_client:
            await http.aclose()


def parse_metaint(headers: Mapping[str, str]) -> int:
    """Return the positive metadata interval advertised by the server."""
    raw = _header(headers, ICY_METAINT_HEADER)
    if raw is None:
        raise NoMetaintError("Server did not send icy-metaint")
    try:
        metaint = int(raw.strip())
    except ValueError as exc:
        raise NoMetaintError(f"Invalid icy-metaint value: {raw!r}") from exc
    if metaint <= 0:
        raise NoMetaintError(f"Non-positive icy-metaint value: {metaint}")
    return metaint


def decode_metadata_block(data: bytes) -> str:
    """Decode a metadata block as UTF-8, falling back to Latin-1."""
    for encoding in ("utf-8", "latin-1"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise NoMetadataError("Metadata block is not decodable text")


def extract_stream_title(raw: str) -> str:
    """Extract the `StreamTitle='...'` value, resolving `''` escapes.

    `''` is an escaped quote, `';` closes the value, and any other lone quote
    closes it too.
    """
    start = raw.find(STREAM_TITLE_MARKER)
    if start < 0:
        raise NoMetadataError("No StreamTitle in metadata block")
    value = raw[start + len(STREAM_TITLE_MARKER) :]
    chars: list[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char == "'":
            following = value[index + 1] if index + 1 < len(value) else ""
            if following == "'":
                chars.append("'")
                index += 2
                continue
            break
        chars.append(char)
        index += 1
    title = "".join(chars).strip()
    if not title:
        raise NoMetadataError("StreamTitle is empty")
    return title


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


async def _skip_exactly(content, count: int) -> None:
    remaining = count
    while remaining > 0:
        chunk = await content.read(min(_SKIP_CHUNK_BYTES, remaining))
        if not chunk:
            raise InvalidStreamError(
                f"Stream ended {remaining} bytes before first metadata block"
            )
        remaining -= len(chunk)


async def _read_up_to(content, count: int) -> bytes:
    parts: list[bytes] = []
    remaining = count
    while remaining > 0:
        chunk = await content.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)
