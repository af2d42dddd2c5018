"""Image decoding for photos and watermarks.

Sources may be filesystem paths, raw bytes, or `data:` URLs such as the ones
returned by the logo generator. Decoding runs in a worker thread so the event
loop stays responsive; the decoded raster is read-only afterwards.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import os
from pathlib import Path
from typing import Any

from PIL import Image, ImageOps, UnidentifiedImageError
from loguru import logger

from core.errors import ImageLoadError, describe_source
from core.models import DecodedImage
from core.services.interfaces import IImageLoader

try:  # pragma: no cover - optional dependency
    from pillow_heif import register_heif_opener  # type: ignore

    register_heif_opener()
    PIL_HEIF_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    PIL_HEIF_AVAILABLE = False

SUPPORTED_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp", ".tif", ".tiff"}
HEIF_EXTS = {".heic", ".heif"}


def supported_extensions() -> set[str]:
    """File extensions the loader can decode in this environment."""
    return SUPPORTED_EXTS | HEIF_EXTS if PIL_HEIF_AVAILABLE else set(SUPPORTED_EXTS)


def is_image_file(path: str | os.PathLike[str]) -> bool:
    return Path(path).suffix.lower() in supported_extensions()


def decode_data_url(url: str) -> bytes:
    """Return the payload of a base64 `data:` URL."""
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:"):
        raise ValueError("malformed data URL")
    if not header.endswith(";base64"):
        raise ValueError("only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as ex:
        raise ValueError(f"invalid base64 payload: {ex}") from ex


class ImageLoader(IImageLoader):
    """Decodes image sources into RGBA rasters with EXIF orientation applied."""

    def decode(self, source: Any) -> DecodedImage:
        """Decode `source` synchronously.

        Raises:
            ImageLoadError: if the source is missing or not a decodable image.
        """
        try:
            with Image.open(self._open(source)) as img:
                img.load()
                upright = ImageOps.exif_transpose(img)
                raster = upright.convert("RGBA")
        except ImageLoadError:
            raise
        except (
            OSError,
            UnidentifiedImageError,
            ValueError,
            Image.DecompressionBombError,
        ) as ex:
            raise ImageLoadError(source, str(ex) or type(ex).__name__) from ex
        logger.debug("Decoded {} ({}x{})", describe_source(source), raster.width, raster.height)
        return DecodedImage(image=raster, source=source)

    async def load(self, source: Any) -> DecodedImage:
        """Decode `source` without blocking the event loop."""
        return await asyncio.to_thread(self.decode, source)

    def _open(self, source: Any) -> Any:
        if isinstance(source, (bytes, bytearray)):
            return io.BytesIO(bytes(source))
        if isinstance(source, str) and source.startswith("data:"):
            try:
                return io.BytesIO(decode_data_url(source))
            except ValueError as ex:
                raise ImageLoadError(source, str(ex)) from ex
        if isinstance(source, (str, os.PathLike)):
            path = Path(source)
            if not path.is_file():
                raise ImageLoadError(source, "file not found")
            return path
        raise ImageLoadError(source, f"unsupported source type {type(source).__name__}")
