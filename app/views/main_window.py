"""MainWindow: hosts the control panel and the preview and routes user intents.

All long-running work (decoding, exports, logo generation) runs as asyncio
tasks on the Qt event loop provided by `PySide6.QtAsyncio`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox
from loguru import logger

from app.viewmodels.main_vm import BUSY, GENERATING, MainVM
from app.views.components.menu_controller import MenuController
from app.views.constants import IMAGE_FILE_FILTER, STATUS_TIMEOUT_MS
from app.views.control_panel import ControlPanel
from app.views.layout.layout_manager import LayoutManager
from app.views.preview_pane import PreviewPane
from core.errors import BatchExportFailed, CompositeError, ExportError, SingleExportFailed
from core.session import PHOTOS, SELECTION, SETTINGS, WATERMARK
from infrastructure.logging import open_latest_log, open_log_directory

APP_TITLE = "MarkMaster - Batch Watermarking Tool"


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(
        self, vm: MainVM, download_service: Any | None = None, log_dir: str | None = None
    ) -> None:
        """Build the window.

        Args:
            vm: View-model driving session, preview and exports.
            download_service: Output sink; enables "Choose Output Folder…".
            log_dir: Directory opened by the Log menu.
        """
        super().__init__()
        self._vm = vm
        self._downloads = download_service
        self._log_dir = log_dir
        self._tasks: set[asyncio.Future] = set()

        self.setWindowTitle(APP_TITLE)
        self.menu_controller = MenuController(self)
        self.layout_manager = LayoutManager(self)
        self.panel = ControlPanel()
        self.preview = PreviewPane(vm.renderer)
        self.setCentralWidget(self.layout_manager.setup_main_layout(self.panel, self.preview))
        self.menu_controller.setup_menus()
        self.layout_manager.setup_initial_window_size()

        self._connect_signals()
        vm.add_listener(self._on_vm_changed)
        self._refresh_all()
        self.statusBar().showMessage("Ready", 2000)

    def _connect_signals(self) -> None:
        self.panel.addPhotosRequested.connect(self.add_photos)
        self.panel.removePhotoRequested.connect(self._vm.remove_photo)
        self.panel.photoSelected.connect(self._vm.select_photo)
        self.panel.watermarkFileRequested.connect(self.choose_watermark)
        self.panel.downloadAllRequested.connect(self.download_all)
        self.panel.generateRequested.connect(self.generate_logo)
        self.panel.settingChanged.connect(self._on_setting_changed)
        self.preview.saveCurrentRequested.connect(self.save_current)
        self.preview.saveAndNextRequested.connect(self.save_and_next)

        self.menu_controller.connect_actions(
            {
                "add_photos": self.add_photos,
                "set_watermark": self.choose_watermark,
                "output_dir": self.choose_output_dir,
                "save_current": self.save_current,
                "save_next": self.save_and_next,
                "download_all": self.download_all,
                "zoom_in": self._vm.renderer.zoom_in,
                "zoom_out": self._vm.renderer.zoom_out,
                "open_latest_log": lambda: open_latest_log(self._log_dir),
                "open_log_directory": lambda: open_log_directory(self._log_dir),
            }
        )
        self.menu_controller.enable_action("output_dir", self._downloads is not None)

    # View refresh
    def _on_vm_changed(self, topic: str) -> None:
        if topic in (PHOTOS, SELECTION):
            self.panel.show_photos(self._vm.photos)
            self._refresh_actions()
        elif topic == SETTINGS:
            self.panel.show_settings(self._vm.settings)
        elif topic == WATERMARK:
            self._refresh_watermark()
            self._refresh_actions()
        elif topic == BUSY:
            self._refresh_actions()
        elif topic == GENERATING:
            self.panel.show_generating(self._vm.generating, self._vm.generation_error)

    def _refresh_all(self) -> None:
        self.panel.show_photos(self._vm.photos)
        self.panel.show_settings(self._vm.settings)
        self._refresh_watermark()
        self._refresh_actions()

    def _refresh_watermark(self) -> None:
        source = self._vm.session.watermark_source
        if isinstance(source, str) and source.startswith("data:"):
            description = "AI generated logo"
        else:
            description = str(source or "")
        self.panel.show_watermark(self._vm.has_watermark, description)

    def _refresh_actions(self) -> None:
        busy = self._vm.busy
        ready = self._vm.has_watermark and self._vm.photo_count > 0
        self.panel.show_busy(busy, ready)
        self.preview.set_state(self._vm.has_next, busy)
        for name in ("save_next", "download_all"):
            self.menu_controller.enable_action(name, ready and not busy)

    # Intents
    def add_photos(self) -> None:
        paths, _ = QFileDialog.getOpenFileNames(self, "Add Photos", "", IMAGE_FILE_FILTER)
        if paths:
            self._vm.add_photos(paths)

    def choose_watermark(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Choose Watermark", "", IMAGE_FILE_FILTER)
        if path:
            self._vm.set_watermark_file(path)

    def choose_output_dir(self) -> None:
        if self._downloads is None:
            return
        current = str(self._downloads.output_dir)
        path = QFileDialog.getExistingDirectory(self, "Output Folder", current)
        if path:
            self._downloads.set_output_dir(path)
            self.statusBar().showMessage(f"Saving to {path}", STATUS_TIMEOUT_MS)

    def _on_setting_changed(self, name: str, value: float) -> None:
        try:
            self._vm.update_setting(name, value)
        except CompositeError as ex:
            logger.error("Preview redraw failed: {}", ex)
            self.statusBar().showMessage(str(ex), STATUS_TIMEOUT_MS)

    def save_current(self) -> None:
        try:
            location = self._vm.save_preview()
        except OSError as ex:
            logger.error("Saving preview failed: {}", ex)
            QMessageBox.critical(self, "Save", f"Failed to save image.\n{ex}")
            return
        if location:
            self.statusBar().showMessage(f"Saved {location}", STATUS_TIMEOUT_MS)

    def save_and_next(self) -> None:
        if not self._vm.busy:
            self._spawn(self._save_and_next())

    def download_all(self) -> None:
        if not self._vm.busy:
            self._spawn(self._download_all())

    def generate_logo(self, prompt: str) -> None:
        if not self._vm.generating:
            self._spawn(self._generate_logo(prompt))

    # Coroutines
    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _save_and_next(self) -> None:
        try:
            location = await self._vm.export_current()
        except SingleExportFailed as ex:
            QMessageBox.critical(self, "Save", f"Failed to save image.\n{ex}")
            return
        if location:
            self.statusBar().showMessage(f"Saved {location}", STATUS_TIMEOUT_MS)

    async def _download_all(self) -> None:
        try:
            locations = await self._vm.export_all()
        except BatchExportFailed as ex:
            QMessageBox.critical(
                self, "Download All", f"Something went wrong during batch download.\n{ex}"
            )
            return
        except ExportError as ex:
            QMessageBox.critical(self, "Download All", str(ex))
            return
        if locations:
            self.statusBar().showMessage(f"Saved {len(locations)} images", STATUS_TIMEOUT_MS)

    async def _generate_logo(self, prompt: str) -> None:
        if await self._vm.generate_logo(prompt):
            self.panel.setCurrentIndex(2)
