"""ViewModel wiring the session to the preview renderer and the export pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

from loguru import logger

from app.viewmodels.photo_vm import PhotoVM
from core.errors import LogoGenerationError
from core.export import ExportPipeline
from core.models import Photo, WatermarkSettings
from core.preview import PreviewRenderer
from core.services.interfaces import ILogoGenerator
from core.session import SELECTION, SETTINGS, WATERMARK, Session

BUSY = "busy"
GENERATING = "generating"

Listener = Callable[[str], None]


class MainVM:
    """Main application view-model.

    Session changes are forwarded to the renderer (which redraws) and then to
    view listeners; drag results from the renderer flow back into the session.
    """

    def __init__(
        self,
        session: Session,
        renderer: PreviewRenderer,
        pipeline: ExportPipeline,
        logo_service: ILogoGenerator | None = None,
    ) -> None:
        """Create a MainVM.

        Args:
            session: Editing state.
            renderer: Preview renderer kept in sync with the session.
            pipeline: Export pipeline over the same session.
            logo_service: Optional generator with `async generate(prompt) -> str`.
        """
        self.session = session
        self.renderer = renderer
        self.pipeline = pipeline
        self._logo_service = logo_service
        self._listeners: list[Listener] = []
        self._loads: set[asyncio.Future] = set()
        self._generating = False
        self.generation_error: str | None = None

        renderer.set_settings(session.settings)
        renderer.add_settings_listener(session.set_settings)
        session.add_listener(self._on_session_changed)
        pipeline.add_busy_listener(lambda _busy: self._notify(BUSY))

    # Observers
    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self, topic: str) -> None:
        for listener in list(self._listeners):
            listener(topic)

    def _on_session_changed(self, topic: str) -> None:
        if topic == SELECTION:
            photo = self.session.active_photo
            self._track(self.renderer.set_base_source(photo.source if photo else None))
        elif topic == WATERMARK:
            self._track(self.renderer.set_watermark_source(self.session.watermark_source))
        elif topic == SETTINGS:
            self.renderer.set_settings(self.session.settings)
        self._notify(topic)

    def _track(self, task: asyncio.Future | None) -> None:
        # The event loop keeps only weak references to tasks
        if task is None:
            return
        self._loads.add(task)
        task.add_done_callback(self._loads.discard)

    @property
    def pending_loads(self) -> int:
        """Number of preview image loads still running."""
        return len(self._loads)

    # Photos
    @property
    def photos(self) -> list[PhotoVM]:
        active = self.session.active_photo_id
        return [PhotoVM(photo=p, is_active=p.id == active) for p in self.session.photos]

    @property
    def photo_count(self) -> int:
        return len(self.session.photos)

    @property
    def has_next(self) -> bool:
        return self.session.has_next

    def add_photos(self, paths: Iterable[str]) -> list[Photo]:
        """Add one photo per path, in the given order."""
        return self.session.add_photos(list(paths))

    def remove_photo(self, photo_id: str) -> None:
        self.session.remove_photo(photo_id)

    def select_photo(self, photo_id: str | None) -> None:
        self.session.select(photo_id)

    # Watermark
    @property
    def has_watermark(self) -> bool:
        return self.session.watermark_source is not None

    def set_watermark_file(self, path: str) -> None:
        logger.info("Watermark set from file {}", path)
        self.session.set_watermark(path)

    def set_watermark_url(self, url: str) -> None:
        self.session.set_watermark(url)

    @property
    def generating(self) -> bool:
        return self._generating

    @property
    def can_generate(self) -> bool:
        return self._logo_service is not None

    async def generate_logo(self, prompt: str) -> bool:
        """Generate a logo for `prompt` and use it as the watermark.

        On failure `generation_error` holds the message to show; the session
        is left untouched. Blank prompts are ignored.
        """
        if not prompt or not prompt.strip() or self._logo_service is None:
            return False
        self._generating = True
        self.generation_error = None
        self._notify(GENERATING)
        try:
            url = await self._logo_service.generate(prompt)
        except LogoGenerationError as ex:
            self.generation_error = str(ex) or "Failed to generate logo. Please try again."
            logger.warning("Logo generation failed: {}", self.generation_error)
            return False
        finally:
            self._generating = False
            self._notify(GENERATING)
        self.set_watermark_url(url)
        return True

    # Settings
    @property
    def settings(self) -> WatermarkSettings:
        return self.session.settings

    def update_setting(self, name: str, value: float) -> None:
        """Set one settings field (`x`, `y`, `scale`, `opacity` or `rotation`)."""
        if name not in WatermarkSettings.__dataclass_fields__:
            raise KeyError(name)
        self.session.update_settings(**{name: float(value)})

    # Export
    @property
    def busy(self) -> bool:
        return self.pipeline.busy

    async def export_current(self) -> str | None:
        return await self.pipeline.export_current()

    async def export_all(self) -> list[str]:
        return await self.pipeline.export_all()

    def save_preview(self) -> str | None:
        """Save the frame currently shown as `watermarked-image.png`."""
        data = self.renderer.snapshot_png()
        if data is None:
            return None
        return self.pipeline.save_snapshot(data)
