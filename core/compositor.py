"""Watermark compositing shared by the live preview and the exporter.

Both callers go through `composite()` so a preview frame and an exported file
are produced by exactly the same pixel operations.
"""

from __future__ import annotations

import io

from PIL import Image

from core.errors import SurfaceUnavailable
from core.geometry import placement
from core.models import WatermarkSettings

PNG_COMPRESS_LEVEL = 6


def composite(
    base: Image.Image,
    watermark: Image.Image | None,
    settings: WatermarkSettings,
) -> Image.Image:
    """Return `base` with `watermark` drawn on it under `settings`.

    The result is a new RGBA image of exactly `base.size`; neither input is
    modified.

    Raises:
        SurfaceUnavailable: if the output surface cannot be created.
    """
    surface = _new_surface(base)
    if watermark is None:
        return surface

    place = placement(base.width, base.height, watermark.width, watermark.height, settings)
    draw_w = int(round(place.draw_width))
    draw_h = int(round(place.draw_height))
    if draw_w < 1 or draw_h < 1:
        return surface

    stamp = watermark.convert("RGBA")
    if stamp.size != (draw_w, draw_h):
        stamp = stamp.resize((draw_w, draw_h), Image.Resampling.LANCZOS)
    stamp = _apply_opacity(stamp, settings.opacity)
    # Pillow rotates counter-clockwise; exact degrees keep right angles lossless
    stamp = stamp.rotate(
        -settings.rotation % 360,
        resample=Image.Resampling.BICUBIC,
        expand=True,
    )

    left = int(round(place.center_x - stamp.width / 2))
    top = int(round(place.center_y - stamp.height / 2))
    try:
        layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
    except (MemoryError, ValueError) as ex:
        raise SurfaceUnavailable(f"cannot allocate overlay layer: {ex}") from ex
    # paste() clips off-canvas parts; the layer is fully transparent so no mask is needed
    layer.paste(stamp, (left, top))
    return Image.alpha_composite(surface, layer)


def encode_png(image: Image.Image) -> bytes:
    """Serialize `image` as PNG bytes."""
    buf = io.BytesIO()
    image.save(buf, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
    return buf.getvalue()


def _new_surface(base: Image.Image) -> Image.Image:
    if base.width <= 0 or base.height <= 0:
        raise SurfaceUnavailable(f"base image has no area: {base.width}x{base.height}")
    try:
        # convert() always returns a fresh copy, even for RGBA input
        return base.convert("RGBA")
    except (MemoryError, ValueError, OSError) as ex:
        raise SurfaceUnavailable(f"cannot create {base.width}x{base.height} surface: {ex}") from ex


def _apply_opacity(stamp: Image.Image, opacity: float) -> Image.Image:
    if opacity >= 1:
        return stamp
    factor = max(0.0, float(opacity))
    alpha = stamp.getchannel("A").point(lambda a: int(round(a * factor)))
    stamp.putalpha(alpha)
    return stamp
