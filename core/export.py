"""Single and batch export of watermarked photos.

Each export decodes its own copies of the base photo and the watermark and
composites them on a fresh surface, so exports never share pixels with the
live preview.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from core.compositor import composite, encode_png
from core.errors import BatchExportFailed, SingleExportFailed
from core.models import Photo, WatermarkSettings
from core.services.interfaces import IDownloadSink, IImageLoader
from core.session import Session

EXPORT_PREFIX = "watermarked-"
PREVIEW_EXPORT_NAME = "watermarked-image.png"
DEFAULT_PACING_DELAY = 0.3
DEFAULT_ADVANCE_DELAY = 0.1

BusyListener = Callable[[bool], None]


def export_name(photo_name: str) -> str:
    """Artifact file name for a photo."""
    return f"{EXPORT_PREFIX}{photo_name}"


class ExportPipeline:
    """Drives the compositor over one photo or the whole session.

    Callers read `busy` to disable re-entrant triggers; the pipeline itself
    does not refuse a second invocation.
    """

    def __init__(
        self,
        session: Session,
        loader: IImageLoader,
        sink: IDownloadSink,
        *,
        pacing_delay: float = DEFAULT_PACING_DELAY,
        advance_delay: float = DEFAULT_ADVANCE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Create a pipeline.

        Args:
            session: Session providing photos, watermark, settings and selection.
            loader: Object with `async load(source) -> DecodedImage`.
            sink: Object with `save(name, data) -> str`.
            pacing_delay: Seconds between consecutive batch downloads.
            advance_delay: Seconds between a single download and selecting the next photo.
            sleep: Awaitable delay function.
        """
        self._session = session
        self._loader = loader
        self._sink = sink
        self._pacing_delay = pacing_delay
        self._advance_delay = advance_delay
        self._sleep = sleep
        self._busy = False
        self._busy_listeners: list[BusyListener] = []

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def pacing_delay(self) -> float:
        return self._pacing_delay

    def add_busy_listener(self, listener: BusyListener) -> None:
        self._busy_listeners.append(listener)

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy
        for listener in list(self._busy_listeners):
            listener(busy)

    async def render(
        self, photo: Photo, watermark_source: Any, settings: WatermarkSettings
    ) -> bytes:
        """Decode, composite and PNG-encode one photo."""
        base, mark = await asyncio.gather(
            self._loader.load(photo.source),
            self._loader.load(watermark_source),
        )
        return encode_png(composite(base.image, mark.image, settings))

    async def export_current(self) -> str | None:
        """Export the active photo, then advance to the next one.

        Returns the artifact location, or None when there is no active photo
        or no watermark.

        Raises:
            SingleExportFailed: if decoding, compositing or saving fails.
        """
        photo = self._session.active_photo
        watermark = self._session.watermark_source
        if photo is None or watermark is None:
            logger.info(
                "Nothing to export (photo={}, watermark={})",
                photo.name if photo else None,
                watermark is not None,
            )
            return None

        settings = self._session.settings
        self._set_busy(True)
        try:
            try:
                data = await self.render(photo, watermark, settings)
                location = self._sink.save(export_name(photo.name), data)
            except Exception as ex:  # pylint: disable=broad-exception-caught
                logger.error("Error saving image {}: {}", photo.name, ex)
                raise SingleExportFailed(photo.name, str(ex)) from ex
            logger.info("Exported {} -> {}", photo.name, location)

            await self._sleep(self._advance_delay)
            following = self._session.next_photo(photo.id)
            if following is not None:
                self._session.select(following.id)
            return location
        finally:
            self._set_busy(False)

    async def export_all(self) -> list[str]:
        """Export every photo in insertion order, one at a time.

        The first failure stops the batch; photos after it are not exported.

        Raises:
            BatchExportFailed: carrying the artifacts written before the failure.
        """
        photos = self._session.photos
        watermark = self._session.watermark_source
        if watermark is None or not photos:
            logger.info("Nothing to export in batch ({} photos)", len(photos))
            return []

        settings = self._session.settings
        exported: list[str] = []
        self._set_busy(True)
        logger.info("Batch export of {} photos started", len(photos))
        try:
            for index, photo in enumerate(photos):
                if index:
                    await self._sleep(self._pacing_delay)
                try:
                    data = await self.render(photo, watermark, settings)
                    exported.append(self._sink.save(export_name(photo.name), data))
                except Exception as ex:  # pylint: disable=broad-exception-caught
                    logger.error("Batch download failed at {}: {}", photo.name, ex)
                    raise BatchExportFailed(photo.name, str(ex), exported) from ex
            logger.info("Batch export finished: {} files", len(exported))
            return exported
        finally:
            self._set_busy(False)

    def save_snapshot(self, data: bytes) -> str:
        """Save an already rendered preview frame as `watermarked-image.png`."""
        location = self._sink.save(PREVIEW_EXPORT_NAME, data)
        logger.info("Saved preview snapshot -> {}", location)
        return location
