"""Session state: the ordered photo list, watermark reference, settings and selection.

The session is toolkit-agnostic. Views and renderers subscribe with
`add_listener()` and are told which part changed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any
import uuid

from loguru import logger

from core.models import Photo, WatermarkSettings

# Change topics passed to listeners
PHOTOS = "photos"
SELECTION = "selection"
WATERMARK = "watermark"
SETTINGS = "settings"

Listener = Callable[[str], None]


def new_photo_id() -> str:
    """Return a fresh, collision-resistant photo id."""
    return uuid.uuid4().hex


class Session:
    """Process-wide editing state."""

    def __init__(self, settings: WatermarkSettings | None = None) -> None:
        self._photos: list[Photo] = []
        self._active_photo_id: str | None = None
        self._watermark_source: Any | None = None
        self._settings = settings or WatermarkSettings()
        self._listeners: list[Listener] = []

    # Observers
    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, topic: str) -> None:
        for listener in list(self._listeners):
            listener(topic)

    # Photos
    @property
    def photos(self) -> list[Photo]:
        """Photos in insertion order (a copy)."""
        return list(self._photos)

    def add_photos(self, sources: Iterable[Any], names: Iterable[str] | None = None) -> list[Photo]:
        """Append one photo per source and return the new entries.

        Names default to the file name of each source. When nothing is
        selected the first new photo becomes active.
        """
        src_list = list(sources)
        name_list = list(names) if names is not None else [_display_name(s) for s in src_list]
        if len(name_list) != len(src_list):
            raise ValueError("names must match sources one to one")

        added = [
            Photo(id=new_photo_id(), source=src, data=src, name=name)
            for src, name in zip(src_list, name_list)
        ]
        if not added:
            return []
        self._photos.extend(added)
        logger.info("Added {} photo(s); total {}", len(added), len(self._photos))
        self._notify(PHOTOS)
        if self._active_photo_id is None:
            self._active_photo_id = added[0].id
            self._notify(SELECTION)
        return added

    def remove_photo(self, photo_id: str) -> bool:
        """Remove the photo with `photo_id`; return False when it is unknown.

        If the active photo is removed, the photo that followed it becomes
        active; only when it was the last one does the first photo take over.
        This intentionally differs from always re-selecting the first photo.
        Removing the only photo clears the selection.
        """
        index = self.index_of(photo_id)
        if index < 0:
            logger.warning("Photo {} not found in session", photo_id)
            return False
        del self._photos[index]
        logger.info("Removed photo {}; {} left", photo_id, len(self._photos))
        self._notify(PHOTOS)

        if self._active_photo_id == photo_id:
            if not self._photos:
                self._active_photo_id = None
            elif index < len(self._photos):
                self._active_photo_id = self._photos[index].id
            else:
                self._active_photo_id = self._photos[0].id
            self._notify(SELECTION)
        return True

    def index_of(self, photo_id: str | None) -> int:
        """Index of `photo_id` in insertion order, or -1."""
        for i, photo in enumerate(self._photos):
            if photo.id == photo_id:
                return i
        return -1

    # Selection
    @property
    def active_photo_id(self) -> str | None:
        return self._active_photo_id

    @property
    def active_index(self) -> int:
        return self.index_of(self._active_photo_id)

    @property
    def active_photo(self) -> Photo | None:
        index = self.active_index
        return self._photos[index] if index >= 0 else None

    def select(self, photo_id: str | None) -> None:
        """Make `photo_id` active; unknown ids are ignored."""
        if photo_id is not None and self.index_of(photo_id) < 0:
            logger.warning("Ignoring selection of unknown photo {}", photo_id)
            return
        if photo_id == self._active_photo_id:
            return
        self._active_photo_id = photo_id
        self._notify(SELECTION)

    @property
    def has_next(self) -> bool:
        index = self.active_index
        return index != -1 and index < len(self._photos) - 1

    def next_photo(self, after_id: str | None = None) -> Photo | None:
        """Photo following `after_id` (default: the active photo), if any."""
        index = self.index_of(after_id if after_id is not None else self._active_photo_id)
        if index < 0 or index + 1 >= len(self._photos):
            return None
        return self._photos[index + 1]

    # Watermark
    @property
    def watermark_source(self) -> Any | None:
        return self._watermark_source

    def set_watermark(self, source: Any | None) -> None:
        """Replace the watermark reference; settings are kept."""
        self._watermark_source = source
        self._notify(WATERMARK)

    # Settings
    @property
    def settings(self) -> WatermarkSettings:
        return self._settings

    def set_settings(self, settings: WatermarkSettings) -> None:
        if settings == self._settings:
            return
        self._settings = settings
        self._notify(SETTINGS)

    def update_settings(self, **changes: float) -> WatermarkSettings:
        """Replace the settings with `changes` applied and return the new record."""
        self.set_settings(self._settings.replace(**changes))
        return self._settings


def _display_name(source: Any) -> str:
    if isinstance(source, (str, Path)) and not str(source).startswith("data:"):
        return Path(source).name
    return "image.png"
