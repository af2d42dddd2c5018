"""Preview pane: the zoomable, draggable watermark canvas and its buttons."""

from __future__ import annotations

from PIL import Image
from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QImage, QMouseEvent, QPainter, QPen, QPixmap
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.views.constants import CANVAS_BACKGROUND, CANVAS_BORDER_PX
from core.errors import CompositeError
from core.models import SurfaceRect
from core.preview import PreviewRenderer


def pil_to_qpixmap(img: Image.Image) -> QPixmap:
    """Convert an RGBA Pillow image to a QPixmap."""
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    data = img.tobytes("raw", "RGBA")
    qimg = QImage(data, img.width, img.height, img.width * 4, QImage.Format_RGBA8888)
    # copy() detaches from the Python buffer before it is released
    return QPixmap.fromImage(qimg.copy())


class PreviewCanvas(QWidget):
    """Draws the renderer's frame at the current zoom and forwards drags."""

    def __init__(self, renderer: PreviewRenderer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._renderer = renderer
        self._pixmap: QPixmap | None = None
        self.setMouseTracking(False)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setCursor(Qt.CrossCursor)
        renderer.add_frame_listener(self._on_frame)
        renderer.add_zoom_listener(lambda _zoom: self.update())

    def _on_frame(self, frame: Image.Image | None) -> None:
        self._pixmap = pil_to_qpixmap(frame) if frame is not None else None
        self.update()

    def surface_rect(self) -> SurfaceRect | None:
        """Where the frame is drawn inside this widget."""
        size = self._renderer.display_size
        if size is None:
            return None
        dw, dh = size
        return SurfaceRect((self.width() - dw) / 2, (self.height() - dh) / 2, dw, dh)

    # Qt events
    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), QColor(CANVAS_BACKGROUND))
            rect = self.surface_rect()
            if self._pixmap is None or rect is None:
                painter.setPen(QColor("#94a3b8"))
                painter.drawText(
                    self.rect(),
                    Qt.AlignCenter,
                    "No image uploaded\nUpload a photo to start editing",
                )
                return
            target = QRectF(rect.left, rect.top, rect.width, rect.height)
            painter.setPen(QPen(QColor("white"), CANVAS_BORDER_PX))
            painter.drawRect(target.adjusted(-2, -2, 2, 2))
            painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
            painter.drawPixmap(target, self._pixmap, QRectF(self._pixmap.rect()))
        finally:
            painter.end()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._renderer.set_viewport(self.width(), self.height())

    def mousePressEvent(self, event: QMouseEvent) -> None:  # type: ignore[override]
        rect = self.surface_rect()
        if event.button() != Qt.LeftButton or rect is None:
            return
        pos = event.position()
        if self._renderer.pointer_down(pos.x(), pos.y(), rect):
            self.setCursor(Qt.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # type: ignore[override]
        rect = self.surface_rect()
        if rect is None or not self._renderer.dragging:
            return
        pos: QPointF = event.position()
        try:
            self._renderer.pointer_move(pos.x(), pos.y(), rect)
        except CompositeError as ex:
            logger.error("Preview redraw failed during drag: {}", ex)
            self._end_drag()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # type: ignore[override]
        self._end_drag()

    def leaveEvent(self, event) -> None:  # type: ignore[override]
        self._renderer.pointer_leave()
        self.setCursor(Qt.CrossCursor)
        super().leaveEvent(event)

    def _end_drag(self) -> None:
        self._renderer.pointer_up()
        self.setCursor(Qt.CrossCursor)


class PreviewPane(QWidget):
    """Preview canvas with zoom controls and the save buttons."""

    saveCurrentRequested = Signal()
    saveAndNextRequested = Signal()

    def __init__(self, renderer: PreviewRenderer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._renderer = renderer

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        zoom_bar = QHBoxLayout()
        zoom_bar.addStretch(1)
        self._zoom_out = QPushButton("−")
        self._zoom_out.setToolTip("Zoom Out")
        self._zoom_label = QLabel()
        self._zoom_label.setMinimumWidth(60)
        self._zoom_label.setAlignment(Qt.AlignCenter)
        self._zoom_in = QPushButton("+")
        self._zoom_in.setToolTip("Zoom In")
        for w in (self._zoom_out, self._zoom_label, self._zoom_in):
            zoom_bar.addWidget(w)
        root.addLayout(zoom_bar)

        self.canvas = PreviewCanvas(renderer, self)
        root.addWidget(self.canvas, 1)

        actions = QHBoxLayout()
        actions.addStretch(1)
        self._save_current = QPushButton("Save Current")
        self._save_next = QPushButton("Save && Next")
        actions.addWidget(self._save_current)
        actions.addWidget(self._save_next)
        actions.addStretch(1)
        root.addLayout(actions)

        self._zoom_out.clicked.connect(renderer.zoom_out)
        self._zoom_in.clicked.connect(renderer.zoom_in)
        self._save_current.clicked.connect(self.saveCurrentRequested)
        self._save_next.clicked.connect(self.saveAndNextRequested)
        renderer.add_zoom_listener(self._show_zoom)
        self._show_zoom(renderer.zoom)
        self.set_state(has_next=False, busy=False)

    def _show_zoom(self, zoom: float) -> None:
        self._zoom_label.setText(f"{round(zoom * 100)}%")

    def set_state(self, has_next: bool, busy: bool) -> None:
        """Show "Save & Next" only when another photo follows."""
        self._save_next.setVisible(has_next)
        self._save_next.setEnabled(not busy)
        self._save_next.setText("Saving…" if busy else "Save && Next")
        self._save_current.setText("Save Current" if has_next else "Download Result")

