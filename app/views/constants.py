"""
UI/view constants centralized for reuse across view modules.

Slider ranges are display ranges only; dragging may move x/y outside them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SliderConfig:
    """A settings slider. QSlider is integer based, so values are stored times `factor`."""

    field: str
    label: str
    minimum: float
    maximum: float
    step: float
    factor: int
    suffix: str = ""

    def to_slider(self, value: float) -> int:
        return int(round(value * self.factor))

    def from_slider(self, position: int) -> float:
        return position / self.factor


SLIDERS: list[SliderConfig] = [
    SliderConfig("opacity", "Opacity", 0.0, 1.0, 0.01, 100),
    SliderConfig("scale", "Scale", 0.1, 3.0, 0.1, 10, "x"),
    SliderConfig("rotation", "Rotation", 0.0, 360.0, 1.0, 1, "°"),
    SliderConfig("x", "Position X", 0.0, 100.0, 1.0, 1, "%"),
    SliderConfig("y", "Position Y", 0.0, 100.0, 1.0, 1, "%"),
]

IMAGE_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp *.tif *.tiff *.heic *.heif)"

# Preview
CANVAS_BACKGROUND = "#e2e8f0"
CANVAS_BORDER_PX = 4
STATUS_TIMEOUT_MS = 3000
