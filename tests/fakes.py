"""Test doubles shared by the test modules."""

from __future__ import annotations

import asyncio
from typing import Any

from PIL import Image

from core.errors import ImageLoadError
from core.models import DecodedImage


def solid(color: tuple[int, ...], size: tuple[int, int], mode: str = "RGBA") -> Image.Image:
    return Image.new(mode, size, color)


class FakeLoader:
    """Serves pre-built images by source key.

    Sources listed in `failing` raise `ImageLoadError`, sources in `errors`
    raise the mapped exception, and sources with a gate wait for it first.
    """

    def __init__(self, images: dict[Any, Image.Image] | None = None) -> None:
        self.images: dict[Any, Image.Image] = dict(images or {})
        self.failing: set[Any] = set()
        self.errors: dict[Any, BaseException] = {}
        self.calls: list[Any] = []
        self._gates: dict[Any, asyncio.Event] = {}

    def gate(self, source: Any) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[source] = event
        return event

    async def load(self, source: Any) -> DecodedImage:
        self.calls.append(source)
        gate = self._gates.get(source)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if source in self.errors:
            raise self.errors[source]
        if source in self.failing or source not in self.images:
            raise ImageLoadError(source, "cannot identify image file")
        return DecodedImage(image=self.images[source].convert("RGBA"), source=source)


class RecordingSink:
    """Download sink that keeps artifacts in memory."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.saved: list[tuple[str, bytes]] = []
        self.events = events if events is not None else []
        self.fail_on: set[str] = set()

    def save(self, name: str, data: bytes) -> str:
        if name in self.fail_on:
            raise OSError(f"disk full while writing {name}")
        self.saved.append((name, data))
        self.events.append(f"save {name}")
        return name

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.saved]


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self, events: list[str] | None = None, on_sleep: Any | None = None) -> None:
        self.delays: list[float] = []
        self.events = events if events is not None else []
        self._on_sleep = on_sleep

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.events.append(f"sleep {delay}")
        if self._on_sleep is not None:
            self._on_sleep()
        await asyncio.sleep(0)
