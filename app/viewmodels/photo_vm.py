"""Lightweight view model wrapper around `Photo`."""

from __future__ import annotations

from dataclasses import dataclass

from core.export import export_name
from core.models import Photo


@dataclass
class PhotoVM:
    """Expose convenient properties for the photo list."""

    photo: Photo
    is_active: bool = False

    @property
    def id(self) -> str:
        return self.photo.id

    @property
    def file_name(self) -> str:
        """Display name of the photo."""
        return self.photo.name

    @property
    def export_name(self) -> str:
        """File name the exported copy will get."""
        return export_name(self.photo.name)
