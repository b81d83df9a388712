"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, image builders and
collaborator test doubles. Environment fixtures are autouse.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
from io import BytesIO
import logging
import os
import struct
from typing import Any
import zlib

from PIL import Image
import pytest

from dpistamp.rasterizers.base import EncodedImage
from dpistamp.source import SourceImage

# =============================================================================
# Test Doubles
# =============================================================================

# Smallest streams that pass the structural gates of each injector.
MINIMAL_JPEG = b"\xff\xd8\xff\xdb\x00\x04\x00\x00\xff\xd9"


def minimal_png() -> bytes:
    """Return a signature + IHDR + IEND stream (no pixel data needed)."""

    def chunk(ctype: bytes, body: bytes) -> bytes:
        crc = zlib.crc32(ctype + body) & 0xFFFFFFFF
        return struct.pack(">I", len(body)) + ctype + body + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


@dataclass
class FakeRasterizer:
    """Rasterizer test double.

    Records every call and returns a minimal stream of the requested format.
    Names listed in ``fail_on`` raise instead.
    """

    fail_on: set[str] = field(default_factory=set)
    calls: list[dict[str, Any]] = field(default_factory=list)

    def encode(self, source, dimensions, fit, fmt, quality) -> EncodedImage:
        self.calls.append(
            {
                "name": source.name,
                "dimensions": dimensions,
                "fit": fit,
                "fmt": fmt,
                "quality": quality,
            }
        )
        if source.name in self.fail_on:
            raise ValueError(f"Failed to load image file: {source.name}")
        if fmt == "png":
            return EncodedImage(data=minimal_png(), mime="image/png")
        return EncodedImage(data=MINIMAL_JPEG, mime="image/jpeg")


@dataclass
class RecordingProgress:
    """ProgressSink that records every notification."""

    events: list[tuple[int, int, str]] = field(default_factory=list)

    def progress(self, current: int, total: int, text: str) -> None:
        self.events.append((current, total, text))


class BrokenProgress:
    """ProgressSink whose listener has gone away."""

    def progress(self, current: int, total: int, text: str) -> None:
        raise ConnectionError("listener disconnected")


# =============================================================================
# Image Builders
# =============================================================================


def encode_image(
    size: tuple[int, int],
    fmt: str = "PNG",
    *,
    mode: str = "RGB",
    color: Any = (200, 30, 30),
) -> bytes:
    """Encode a solid-color Pillow image."""
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_source() -> Callable[..., SourceImage]:
    """Factory building a header-only SourceImage without real pixels."""

    def _make(
        name: str = "photo.jpg",
        width: int = 1920,
        height: int = 1080,
        *,
        mime_type: str = "image/jpeg",
        size_bytes: int = 50_000,
        data: bytes = b"",
    ) -> SourceImage:
        return SourceImage(
            name=name,
            width=width,
            height=height,
            mime_type=mime_type,
            size_bytes=size_bytes,
            content_loader=lambda: data,
        )

    return _make


@pytest.fixture
def image_source() -> Callable[..., SourceImage]:
    """Factory building a real, decodable SourceImage."""

    def _make(
        name: str = "photo.png",
        size: tuple[int, int] = (64, 48),
        fmt: str = "PNG",
        **kwargs: Any,
    ) -> SourceImage:
        return SourceImage.from_bytes(encode_image(size, fmt, **kwargs), name=name)

    return _make


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Clear DPISTAMP_* env vars so configuration tests start clean."""
    for key in list(os.environ.keys()):
        if key.startswith("DPISTAMP_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("PIL").setLevel(logging.WARNING)


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def fake_rasterizer() -> FakeRasterizer:
    """A fresh FakeRasterizer."""
    return FakeRasterizer()


@pytest.fixture
def recording_progress() -> RecordingProgress:
    """A fresh RecordingProgress."""
    return RecordingProgress()


@pytest.fixture
def broken_progress() -> BrokenProgress:
    """A progress sink that always raises."""
    return BrokenProgress()


@pytest.fixture
def jpeg_stream() -> bytes:
    """Minimal JPEG stream without an APP0 segment."""
    return MINIMAL_JPEG


@pytest.fixture
def png_stream() -> bytes:
    """Minimal PNG stream with a standard 13-byte IHDR."""
    return minimal_png()


@pytest.fixture
def encode() -> Callable[..., bytes]:
    """Expose encode_image to tests."""
    return encode_image
