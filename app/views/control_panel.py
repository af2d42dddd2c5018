"""ControlPanel: photo list, AI logo prompt and the watermark sliders."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QSlider,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from app.viewmodels.photo_vm import PhotoVM
from app.views.constants import SLIDERS, SliderConfig
from core.models import WatermarkSettings

PHOTO_ID_ROLE = Qt.UserRole


class ControlPanel(QTabWidget):
    """Sidebar with "Photos", "AI Logo" and "Settings" tabs.

    The panel only emits intents; the main window routes them to the
    view-model.
    """

    addPhotosRequested = Signal()
    removePhotoRequested = Signal(str)
    photoSelected = Signal(str)
    watermarkFileRequested = Signal()
    downloadAllRequested = Signal()
    generateRequested = Signal(str)
    settingChanged = Signal(str, float)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._sliders: dict[str, tuple[SliderConfig, QSlider, QLabel]] = {}
        self._syncing = False
        self.addTab(self._build_photos_tab(), "Photos")
        self.addTab(self._build_ai_tab(), "AI Logo")
        self.addTab(self._build_settings_tab(), "Settings")

    # Tabs
    def _build_photos_tab(self) -> QWidget:
        tab = QWidget()
        v = QVBoxLayout(tab)

        header = QHBoxLayout()
        header.addWidget(QLabel("Photo Gallery"))
        header.addStretch(1)
        self._count_label = QLabel("0 photos")
        header.addWidget(self._count_label)
        v.addLayout(header)

        self._photo_list = QListWidget()
        v.addWidget(self._photo_list, 1)

        row = QHBoxLayout()
        add_btn = QPushButton("Add Photos…")
        self._remove_btn = QPushButton("Remove")
        row.addWidget(add_btn)
        row.addWidget(self._remove_btn)
        v.addLayout(row)

        wm_btn = QPushButton("Upload Watermark…")
        v.addWidget(wm_btn)
        self._watermark_label = QLabel("No watermark selected")
        v.addWidget(self._watermark_label)

        self._download_all_btn = QPushButton("Download All")
        v.addWidget(self._download_all_btn)

        add_btn.clicked.connect(self.addPhotosRequested)
        wm_btn.clicked.connect(self.watermarkFileRequested)
        self._download_all_btn.clicked.connect(self.downloadAllRequested)
        self._remove_btn.clicked.connect(self._on_remove_clicked)
        self._photo_list.currentItemChanged.connect(self._on_current_changed)
        return tab

    def _build_ai_tab(self) -> QWidget:
        tab = QWidget()
        v = QVBoxLayout(tab)
        v.addWidget(QLabel("Describe your logo"))
        self._prompt = QLineEdit()
        self._prompt.setPlaceholderText("e.g. a minimalist mountain with the letters MM")
        v.addWidget(self._prompt)
        self._error_label = QLabel()
        self._error_label.setWordWrap(True)
        self._error_label.setStyleSheet("color: #dc2626;")
        self._error_label.setVisible(False)
        v.addWidget(self._error_label)
        self._generate_btn = QPushButton("Generate Logo")
        self._generate_btn.setEnabled(False)
        v.addWidget(self._generate_btn)
        v.addStretch(1)

        self._prompt.textChanged.connect(
            lambda text: self._generate_btn.setEnabled(bool(text.strip()))
        )
        self._generate_btn.clicked.connect(lambda: self.generateRequested.emit(self._prompt.text()))
        return tab

    def _build_settings_tab(self) -> QWidget:
        tab = QWidget()
        form = QFormLayout(tab)
        for cfg in SLIDERS:
            slider = QSlider(Qt.Horizontal)
            slider.setRange(cfg.to_slider(cfg.minimum), cfg.to_slider(cfg.maximum))
            slider.setSingleStep(max(1, cfg.to_slider(cfg.step)))
            value_label = QLabel()
            value_label.setMinimumWidth(56)
            row = QHBoxLayout()
            row.addWidget(slider, 1)
            row.addWidget(value_label)
            form.addRow(cfg.label, row)
            slider.valueChanged.connect(lambda pos, s=cfg: self._on_slider(s, pos))
            self._sliders[cfg.field] = (cfg, slider, value_label)
        return tab

    # Updates from the view-model
    def show_photos(self, photos: list[PhotoVM]) -> None:
        self._syncing = True
        try:
            self._photo_list.clear()
            for vm in photos:
                item = QListWidgetItem(vm.file_name)
                item.setData(PHOTO_ID_ROLE, vm.id)
                item.setToolTip(vm.export_name)
                self._photo_list.addItem(item)
                if vm.is_active:
                    self._photo_list.setCurrentItem(item)
        finally:
            self._syncing = False
        n = len(photos)
        self._count_label.setText(f"{n} photo{'' if n == 1 else 's'}")
        self._remove_btn.setEnabled(n > 0)

    def show_settings(self, settings: WatermarkSettings) -> None:
        self._syncing = True
        try:
            for field_name, (cfg, slider, label) in self._sliders.items():
                value = float(getattr(settings, field_name))
                # The slider clamps; the label shows the real value
                slider.setValue(cfg.to_slider(value))
                text = f"{value:.2f}" if cfg.step < 1 else f"{value:.0f}"
                label.setText(text + cfg.suffix)
        finally:
            self._syncing = False

    def show_watermark(self, has_watermark: bool, description: str = "") -> None:
        self._watermark_label.setText(description if has_watermark else "No watermark selected")

    def show_busy(self, busy: bool, can_download: bool) -> None:
        self._download_all_btn.setEnabled(can_download and not busy)
        self._download_all_btn.setText("Processing…" if busy else "Download All")

    def show_generating(self, generating: bool, error: str | None) -> None:
        self._generate_btn.setEnabled(not generating and bool(self._prompt.text().strip()))
        self._generate_btn.setText("Generating…" if generating else "Generate Logo")
        self._error_label.setText(error or "")
        self._error_label.setVisible(bool(error))

    # Internal slots
    def _on_slider(self, cfg: SliderConfig, position: int) -> None:
        if self._syncing:
            return
        self.settingChanged.emit(cfg.field, cfg.from_slider(position))

    def _on_current_changed(self, current: QListWidgetItem | None, _previous) -> None:
        if self._syncing or current is None:
            return
        self.photoSelected.emit(str(current.data(PHOTO_ID_ROLE)))

    def _on_remove_clicked(self) -> None:
        item = self._photo_list.currentItem()
        if item is not None:
            self.removePhotoRequested.emit(str(item.data(PHOTO_ID_ROLE)))
