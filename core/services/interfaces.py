"""Service interfaces used by the core layer.

Concrete implementations live in `infrastructure`; the core only relies on
these method shapes.
"""

from __future__ import annotations

from typing import Any

from core.models import DecodedImage


class IImageLoader:
    """Interface for image decoders (paths, bytes, data URLs)."""

    async def load(self, source: Any) -> DecodedImage:
        """Decode `source`; raise `ImageLoadError` on failure."""
        raise NotImplementedError


class IDownloadSink:
    """Interface for the destination of finished export artifacts."""

    def save(self, name: str, data: bytes) -> str:
        """Persist `data` under `name` and return where it went."""
        raise NotImplementedError


class ILogoGenerator:
    """Interface for the text-to-image logo collaborator."""

    async def generate(self, prompt: str) -> str:
        """Return a data URL for a square logo; raise `LogoGenerationError` on failure."""
        raise NotImplementedError
