"""Core domain models for watermark settings, photos and decoded rasters."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from PIL import Image


@dataclass(frozen=True)
class WatermarkSettings:
    """Transform applied to the watermark on every photo.

    Attributes:
        x: Horizontal centre as a percentage of the base image width.
        y: Vertical centre as a percentage of the base image height.
        scale: Multiplier applied to the watermark's native pixel size.
        opacity: Uniform alpha in [0, 1].
        rotation: Clockwise rotation in degrees about the watermark centre.
    """

    x: float = 50.0
    y: float = 50.0
    scale: float = 0.5
    opacity: float = 0.8
    rotation: float = 0.0

    def replace(self, **changes: float) -> WatermarkSettings:
        """Return a copy with `changes` applied."""
        return replace(self, **changes)


@dataclass(frozen=True)
class Photo:
    """A base photo loaded into the session.

    `source` is anything the image loader can decode; `data` is an opaque
    handle to the original file (usually the same path).
    """

    id: str
    source: Any
    data: Any
    name: str


@dataclass(frozen=True)
class Placement:
    """Watermark placement in base-image pixel space."""

    center_x: float
    center_y: float
    draw_width: float
    draw_height: float
    rotation_radians: float


@dataclass(frozen=True)
class DecodedImage:
    """A decoded, read-only RGBA raster and the source it came from."""

    image: Image.Image
    source: Any = None

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass(frozen=True)
class SurfaceRect:
    """Where the preview surface is drawn inside its widget.

    Attributes:
        left: X offset of the surface in widget coordinates.
        top: Y offset of the surface in widget coordinates.
        width: Displayed width in widget pixels.
        height: Displayed height in widget pixels.
    """

    left: float
    top: float
    width: float
    height: float
