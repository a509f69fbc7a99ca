"""Logo asset loader: decode a logo from a path, bytes, data URI or URL."""

import asyncio
import base64
import binascii
import io
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

from PIL import Image

from qrstyle.errors import LoadError
from qrstyle.logging import audit, get_logger, trace

log = get_logger("assets")

DEFAULT_TIMEOUT = 5.0
MAX_LOGO_BYTES = 5 * 1024 * 1024


def _describe(source) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    if isinstance(source, Image.Image):
        return f"<image {source.size[0]}x{source.size[1]}>"
    return str(source)[:80]


def _decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ValueError("malformed data URI")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=True)
    return urllib.parse.unquote_to_bytes(payload)


def _fetch_url(url: str, timeout: float) -> bytes:
    with urllib.request.urlopen(url, timeout=timeout) as resp:
        data = resp.read(MAX_LOGO_BYTES + 1)
    if len(data) > MAX_LOGO_BYTES:
        raise ValueError(f"logo larger than {MAX_LOGO_BYTES} bytes")
    return data


def _read_source(source, timeout: float) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, Path):
        return source.read_bytes()
    if source.startswith("data:"):
        return _decode_data_uri(source)
    if source.startswith(("http://", "https://")):
        return _fetch_url(source, timeout)
    return Path(source).read_bytes()


@trace
def load_logo(source, timeout: float = DEFAULT_TIMEOUT) -> Image.Image:
    """Load a logo and return it as a fully decoded RGBA image.

    Args:
        source: File path, ``bytes``, ``data:`` URI, http(s) URL or a PIL image.
        timeout: Network timeout in seconds for URLs.

    Raises:
        LoadError: the source is missing, unreachable or not a decodable image.
    """
    if isinstance(source, Image.Image):
        return source.convert("RGBA")
    if not isinstance(source, (bytes, bytearray, str, Path)):
        raise LoadError(source, f"unsupported logo source type {type(source).__name__}")

    try:
        raw = _read_source(source, timeout)
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            logo = img.convert("RGBA")
    except (OSError, ValueError, binascii.Error, urllib.error.URLError,
            Image.DecompressionBombError) as exc:
        raise LoadError(source, f"could not load logo {_describe(source)}: {exc}") from exc

    audit("logo.loaded", logger=log, source=_describe(source), size=f"{logo.width}x{logo.height}")
    return logo


async def load_logo_async(source, timeout: float = DEFAULT_TIMEOUT) -> Image.Image:
    """Load a logo off the event loop, giving up after *timeout* seconds."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(load_logo, source, timeout), timeout)
    except asyncio.TimeoutError as exc:
        raise LoadError(source, f"timed out loading logo {_describe(source)}") from exc
