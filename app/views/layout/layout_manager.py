"""LayoutManager: Manages main window layout and splitter behavior."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QMainWindow,
    QSplitter,
    QWidget,
)


class LayoutManager:
    """Places the control panel and the preview side by side in a splitter."""

    PANEL_STRETCH_FACTOR = 3
    PREVIEW_STRETCH_FACTOR = 7
    PANEL_WIDTH = 360
    WINDOW_SIZE_RATIO = 0.75

    def __init__(self, main_window: QMainWindow) -> None:
        self.window = main_window
        self.splitter: QSplitter | None = None

    def setup_main_layout(self, panel_widget: QWidget, preview_widget: QWidget) -> QWidget:
        """Create the main horizontal splitter layout and return the central widget."""
        central = QWidget(self.window)
        root = QHBoxLayout(central)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(panel_widget)
        self.splitter.addWidget(preview_widget)
        self.splitter.setStretchFactor(0, self.PANEL_STRETCH_FACTOR)
        self.splitter.setStretchFactor(1, self.PREVIEW_STRETCH_FACTOR)
        root.addWidget(self.splitter)
        return central

    def setup_initial_window_size(self) -> None:
        """Size the window relative to the primary screen."""
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        rect = screen.availableGeometry()
        width = int(rect.width() * self.WINDOW_SIZE_RATIO)
        height = int(rect.height() * self.WINDOW_SIZE_RATIO)
        self.window.resize(width, height)
        if self.splitter is not None:
            self.splitter.setSizes([self.PANEL_WIDTH, max(1, width - self.PANEL_WIDTH)])
