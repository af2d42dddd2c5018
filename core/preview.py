"""Interactive preview renderer, decoupled from any UI toolkit.

The renderer owns two image slots (base photo and watermark), each running a
small load state machine, and produces a composited frame at the base image's
native resolution whenever an image becomes ready or the settings change.
Views display the frame at `zoom` and forward pointer events so the user can
drag the watermark around.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from enum import Enum
from typing import Any

from PIL import Image
from loguru import logger

from core.compositor import composite, encode_png
from core.errors import CompositeError, ImageLoadError, describe_source
from core.geometry import percent_delta
from core.models import DecodedImage, SurfaceRect, WatermarkSettings
from core.services.interfaces import IImageLoader

ZOOM_MIN = 0.1
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1
DEFAULT_FIT_MARGIN = 0.9

FrameListener = Callable[[Image.Image | None], None]
SettingsListener = Callable[[WatermarkSettings], None]
ZoomListener = Callable[[float], None]


class LoadState(Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ImageSlot:
    """One independently loaded image and its load state."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = LoadState.EMPTY
        self.source: Any | None = None
        self.image: DecodedImage | None = None
        self.generation = 0

    @property
    def ready(self) -> bool:
        return self.state is LoadState.READY and self.image is not None

    def reset(self, source: Any | None) -> int:
        """Point the slot at `source` and return the new load generation."""
        self.generation += 1
        self.source = source
        self.image = None
        self.state = LoadState.EMPTY if source is None else LoadState.LOADING
        return self.generation


class PreviewRenderer:
    """Stateful preview surface: async loads, redraw, zoom and drag."""

    def __init__(
        self,
        loader: IImageLoader,
        settings: WatermarkSettings | None = None,
        *,
        fit_margin: float = DEFAULT_FIT_MARGIN,
        spawn: Callable[[Coroutine[Any, Any, None]], Any] = asyncio.ensure_future,
    ) -> None:
        """Create a renderer.

        Args:
            loader: Object with `async load(source) -> DecodedImage`.
            settings: Initial watermark settings.
            fit_margin: Fraction of the viewport used by the fitted image.
            spawn: Schedules load coroutines on the running event loop.
        """
        self._loader = loader
        self._settings = settings or WatermarkSettings()
        self._fit_margin = fit_margin
        self._spawn = spawn

        self.base = ImageSlot("base")
        self.watermark = ImageSlot("watermark")

        self._frame: Image.Image | None = None
        self._zoom = 1.0
        self._viewport: tuple[int, int] = (0, 0)
        self._drag_point: tuple[float, float] | None = None

        self._frame_listeners: list[FrameListener] = []
        self._settings_listeners: list[SettingsListener] = []
        self._zoom_listeners: list[ZoomListener] = []

    # Listeners
    def add_frame_listener(self, listener: FrameListener) -> None:
        self._frame_listeners.append(listener)

    def add_settings_listener(self, listener: SettingsListener) -> None:
        """Called with new settings produced by dragging."""
        self._settings_listeners.append(listener)

    def add_zoom_listener(self, listener: ZoomListener) -> None:
        self._zoom_listeners.append(listener)

    # Images
    def set_base_source(self, source: Any | None) -> Any | None:
        """Start loading a new base image; returns the scheduled load task."""
        return self._set_source(self.base, source)

    def set_watermark_source(self, source: Any | None) -> Any | None:
        """Start loading a new watermark image; returns the scheduled load task."""
        return self._set_source(self.watermark, source)

    def _set_source(self, slot: ImageSlot, source: Any | None) -> Any | None:
        if source is not None and source == slot.source and slot.state is not LoadState.FAILED:
            return None
        generation = slot.reset(source)
        if slot is self.base:
            # The old photo's frame must not outlive its slot
            self._drag_point = None
            self._set_frame(None)
            if source is None:
                return None
        elif source is None:
            self.redraw()
            return None
        return self._spawn(self._load(slot, source, generation))

    async def _load(self, slot: ImageSlot, source: Any, generation: int) -> None:
        try:
            decoded = await self._loader.load(source)
        except ImageLoadError as ex:
            if slot.generation == generation:
                logger.warning("Preview {} image failed to load: {}", slot.name, ex)
                self._fail(slot)
            return
        except Exception:  # pylint: disable=broad-exception-caught
            if slot.generation == generation:
                logger.exception("Unexpected error decoding {} image", slot.name)
                self._fail(slot)
            return

        if slot.generation != generation:
            logger.debug("Discarding stale {} load for {}", slot.name, describe_source(source))
            return
        slot.image = decoded
        slot.state = LoadState.READY
        if slot is self.base:
            self._refit()
        self._redraw_quietly()

    def _fail(self, slot: ImageSlot) -> None:
        slot.state = LoadState.FAILED
        if slot is self.base:
            self._set_frame(None)
        else:
            self._redraw_quietly()

    # Settings
    @property
    def settings(self) -> WatermarkSettings:
        return self._settings

    def set_settings(self, settings: WatermarkSettings) -> None:
        """Adopt `settings` and redraw when they differ from the current ones."""
        if settings == self._settings:
            return
        self._settings = settings
        self.redraw()

    # Rendering
    @property
    def frame(self) -> Image.Image | None:
        """Last composited frame at native resolution."""
        return self._frame

    @property
    def native_size(self) -> tuple[int, int] | None:
        if not self.base.ready:
            return None
        return self.base.image.width, self.base.image.height

    def redraw(self) -> Image.Image | None:
        """Recomposite the full frame from the current state.

        No-op returning None unless the base image is ready.

        Raises:
            SurfaceUnavailable: if the frame surface cannot be created.
        """
        if not self.base.ready:
            return None
        wm = self.watermark.image.image if self.watermark.ready else None
        frame = composite(self.base.image.image, wm, self._settings)
        self._set_frame(frame)
        return frame

    def _redraw_quietly(self) -> None:
        # Load tasks have no caller to propagate to; the previous frame stays
        try:
            self.redraw()
        except CompositeError as ex:
            logger.error("Preview redraw failed: {}", ex)

    def _set_frame(self, frame: Image.Image | None) -> None:
        self._frame = frame
        for listener in list(self._frame_listeners):
            listener(frame)

    def snapshot_png(self) -> bytes | None:
        """Current frame as PNG bytes, or None when nothing is rendered."""
        if self._frame is None:
            return None
        return encode_png(self._frame)

    # Zoom
    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def display_size(self) -> tuple[float, float] | None:
        size = self.native_size
        if size is None:
            return None
        return size[0] * self._zoom, size[1] * self._zoom

    def set_viewport(self, width: int, height: int) -> None:
        """Record the available viewport and refit the zoom."""
        self._viewport = (int(width), int(height))
        self._refit()

    def _refit(self) -> None:
        size = self.native_size
        vw, vh = self._viewport
        if size is None or vw <= 0 or vh <= 0 or min(size) <= 0:
            return
        iw, ih = size
        self._apply_zoom(min(vw / iw, vh / ih) * self._fit_margin)

    def set_zoom(self, zoom: float) -> None:
        self._apply_zoom(min(ZOOM_MAX, max(ZOOM_MIN, zoom)))

    def zoom_in(self) -> None:
        self._apply_zoom(min(ZOOM_MAX, self._zoom + ZOOM_STEP))

    def zoom_out(self) -> None:
        self._apply_zoom(max(ZOOM_MIN, self._zoom - ZOOM_STEP))

    def _apply_zoom(self, zoom: float) -> None:
        if zoom == self._zoom:
            return
        self._zoom = zoom
        for listener in list(self._zoom_listeners):
            listener(zoom)

    # Dragging
    @property
    def dragging(self) -> bool:
        return self._drag_point is not None

    def to_native(
        self, client_x: float, client_y: float, surface: SurfaceRect
    ) -> tuple[float, float]:
        """Convert widget coordinates on `surface` to native image pixels."""
        size = self.native_size
        if size is None or surface.width <= 0 or surface.height <= 0:
            return 0.0, 0.0
        return (
            (client_x - surface.left) * (size[0] / surface.width),
            (client_y - surface.top) * (size[1] / surface.height),
        )

    def pointer_down(self, client_x: float, client_y: float, surface: SurfaceRect) -> bool:
        """Begin a drag; returns False when there is nothing to drag."""
        if not self.watermark.ready or self._frame is None:
            return False
        self._drag_point = self.to_native(client_x, client_y, surface)
        return True

    def pointer_move(
        self, client_x: float, client_y: float, surface: SurfaceRect
    ) -> WatermarkSettings | None:
        """Move the watermark by the pointer delta since the last captured point."""
        if self._drag_point is None:
            return None
        size = self.native_size
        if size is None:
            self._drag_point = None
            return None
        nx, ny = self.to_native(client_x, client_y, surface)
        dx = nx - self._drag_point[0]
        dy = ny - self._drag_point[1]
        self._drag_point = (nx, ny)

        moved = self._settings.replace(
            x=self._settings.x + percent_delta(dx, size[0]),
            y=self._settings.y + percent_delta(dy, size[1]),
        )
        self.set_settings(moved)
        for listener in list(self._settings_listeners):
            listener(moved)
        return moved

    def pointer_up(self) -> None:
        self._drag_point = None

    def pointer_leave(self) -> None:
        self._drag_point = None
