"""Shared test configuration and fixtures for the PhosDocs test suite."""

import io
import struct
import sys
import zlib
from datetime import date
from pathlib import Path

import pytest

# Add backend to Python path so imports work
backend_dir = str(Path(__file__).parent.parent / "backend")
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from app.core.config import GenerationConfig  # noqa: E402


class ScriptedBackend:
    """
    Text backend double. Each call pops the next scripted reply; an
    Exception instance is raised instead of returned. When the script
    runs out the last reply repeats.
    """

    name = "scripted"

    def __init__(self, *replies):
        self.replies = list(replies) or ["ok"]
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, system_prompt, user_prompt, params):
        self.calls.append((system_prompt, user_prompt))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return await reply(system_prompt, user_prompt, params)
        return reply


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    from PIL import Image

    buf = io.BytesIO()
    Image.new(mode, (width, height), color=(30, 120, 200) if mode == "RGB" else 128).save(buf, format=fmt)
    return buf.getvalue()


def png_with_declared_size(width: int, height: int) -> bytes:
    """A tiny PNG whose IHDR claims ``width`` x ``height`` pixels."""
    data = bytearray(make_image_bytes(10, 10))
    # IHDR payload sits at bytes 16..29, its CRC (over type + payload) at 29..33
    struct.pack_into(">II", data, 16, width, height)
    struct.pack_into(">I", data, 29, zlib.crc32(bytes(data[12:29])))
    return bytes(data)


@pytest.fixture
def generation_config():
    return GenerationConfig(
        max_retries=3,
        retry_delay_ms=2000,
        section_timeout_ms=1000,
        caption_timeout_ms=500,
        max_tokens=200,
        temperature=0.2,
    )


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def fixed_day():
    return date(2025, 3, 14)


@pytest.fixture
def png_bytes():
    return make_image_bytes(400, 200)
