"""Exception hierarchy shared by the core and infrastructure layers."""

from __future__ import annotations

from typing import Any


class WatermarkError(Exception):
    """Base class for all application errors."""


class ImageLoadError(WatermarkError):
    """An image source could not be decoded."""

    def __init__(self, source: Any, reason: str) -> None:
        super().__init__(f"Cannot load image {describe_source(source)}: {reason}")
        self.source = source
        self.reason = reason


class CompositeError(WatermarkError):
    """Compositing failed."""


class SurfaceUnavailable(CompositeError):
    """The raster target for a composite could not be created."""


class LogoGenerationError(WatermarkError):
    """The logo generator failed; the message is shown to the user as-is."""


class ExportError(WatermarkError):
    """Base class for export failures."""


class SingleExportFailed(ExportError):
    """Exporting the active photo failed."""

    def __init__(self, photo_name: str, reason: str) -> None:
        super().__init__(f"Failed to save image {photo_name}: {reason}")
        self.photo_name = photo_name


class BatchExportFailed(ExportError):
    """A batch export stopped at its first failing photo.

    Attributes:
        photo_name: Name of the photo that failed.
        exported: Artifact paths written before the failure.
    """

    def __init__(self, photo_name: str, reason: str, exported: list[str]) -> None:
        super().__init__(f"Batch download stopped at {photo_name}: {reason}")
        self.photo_name = photo_name
        self.exported = list(exported)


def describe_source(source: Any) -> str:
    """Short printable form of an image source for logs and messages."""
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    text = str(source)
    if text.startswith("data:"):
        return text[:30] + "…"
    return text
