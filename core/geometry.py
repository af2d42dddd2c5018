"""Watermark placement math.

Positions are always expressed against the base image's native resolution so
the preview and the export place the watermark identically at any zoom.
"""

from __future__ import annotations

import math

from core.models import Placement, WatermarkSettings


def placement(
    base_width: float,
    base_height: float,
    wm_width: float,
    wm_height: float,
    settings: WatermarkSettings,
) -> Placement:
    """Map normalized `settings` to pixel placement on a `base_width x base_height` image.

    Values are not clamped; the watermark may land partly or fully off-canvas.
    """
    return Placement(
        center_x=(settings.x / 100) * base_width,
        center_y=(settings.y / 100) * base_height,
        draw_width=wm_width * settings.scale,
        draw_height=wm_height * settings.scale,
        rotation_radians=settings.rotation * math.pi / 180,
    )


def percent_delta(delta_pixels: float, dimension: float) -> float:
    """Convert a native-pixel delta to a percentage of `dimension`."""
    if dimension <= 0:
        return 0.0
    return delta_pixels / dimension * 100
