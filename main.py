from __future__ import annotations

import sys
from pathlib import Path

from PySide6 import QtAsyncio
from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.main_vm import MainVM
from app.views.main_window import MainWindow
from core.export import DEFAULT_ADVANCE_DELAY, DEFAULT_PACING_DELAY, ExportPipeline
from core.models import WatermarkSettings
from core.preview import DEFAULT_FIT_MARGIN, PreviewRenderer
from core.session import Session
from infrastructure.download_service import DownloadService
from infrastructure.image_loader import PIL_HEIF_AVAILABLE, ImageLoader
from infrastructure.logging import init_logging
from infrastructure.logo_service import DEFAULT_API_KEY_ENV, DEFAULT_MODEL, LogoService
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def _default_settings(settings: JsonSettings) -> WatermarkSettings:
    # Expect {"x": 50, "y": 50, "scale": 0.5, "opacity": 0.8, "rotation": 0}
    base = WatermarkSettings()
    return WatermarkSettings(
        x=settings.get_float("watermark.defaults.x", base.x),
        y=settings.get_float("watermark.defaults.y", base.y),
        scale=settings.get_float("watermark.defaults.scale", base.scale),
        opacity=settings.get_float("watermark.defaults.opacity", base.opacity),
        rotation=settings.get_float("watermark.defaults.rotation", base.rotation),
    )


def _delay_seconds(settings: JsonSettings, key: str, default_seconds: float) -> float:
    millis = settings.get_float(key, default_seconds * 1000)
    return max(0.0, millis / 1000)


def main() -> int:
    settings = JsonSettings(BASE_DIR / "settings.json")
    log_dir = init_logging(
        settings.get("logging.dir"), level=settings.get_str("logging.level", "INFO")
    )
    logger.info("MarkMaster starting (HEIF support: {})", PIL_HEIF_AVAILABLE)

    app = QApplication(sys.argv)
    app.setApplicationName("MarkMaster")

    session = Session(_default_settings(settings))
    loader = ImageLoader()
    downloads = DownloadService(
        settings.get_str("export.output_dir", str(Path.home() / "Downloads")),
        overwrite=settings.get_bool("export.overwrite", False),
    )
    renderer = PreviewRenderer(
        loader,
        session.settings,
        fit_margin=settings.get_float("preview.fit_margin", DEFAULT_FIT_MARGIN),
    )
    pipeline = ExportPipeline(
        session,
        loader,
        downloads,
        pacing_delay=_delay_seconds(settings, "export.pacing_delay_ms", DEFAULT_PACING_DELAY),
        advance_delay=_delay_seconds(settings, "export.advance_delay_ms", DEFAULT_ADVANCE_DELAY),
    )
    logo_service = LogoService.from_environment(
        env_var=settings.get_str("logo.api_key_env", DEFAULT_API_KEY_ENV),
        model=settings.get_str("logo.model", DEFAULT_MODEL),
    )
    vm = MainVM(session, renderer, pipeline, logo_service)

    win = MainWindow(vm=vm, download_service=downloads, log_dir=str(log_dir))
    win.show()

    QtAsyncio.run(handle_sigint=True)
    logger.info("MarkMaster exiting")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
