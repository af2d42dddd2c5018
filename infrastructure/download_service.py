"""Writes exported artifacts into the output directory."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from core.services.interfaces import IDownloadSink


def _ensure_dir(p: Path) -> None:
    """Create directory `p` if missing (including parents)."""
    p.mkdir(parents=True, exist_ok=True)


def unique_target(directory: Path, name: str) -> Path:
    """Return `directory/name`, appending `_1`, `_2`, … before the suffix if taken."""
    target = directory / name
    stem, suffix = Path(name).stem, Path(name).suffix
    i = 1
    while target.exists():
        target = directory / f"{stem}_{i}{suffix}"
        i += 1
    return target


class DownloadService(IDownloadSink):
    """Saves artifact bytes under their requested file names."""

    def __init__(self, output_dir: str | Path, overwrite: bool = False) -> None:
        self._dir = Path(output_dir).expanduser()
        self._overwrite = overwrite

    @property
    def output_dir(self) -> Path:
        return self._dir

    def set_output_dir(self, output_dir: str | Path) -> None:
        self._dir = Path(output_dir).expanduser()

    def save(self, name: str, data: bytes) -> str:
        """Write `data` as `name` and return the full path written.

        Raises:
            OSError: if the directory or file cannot be written.
        """
        # Never let a photo name escape the output directory
        safe_name = Path(name).name
        if not safe_name:
            raise ValueError(f"invalid artifact name: {name!r}")
        _ensure_dir(self._dir)
        target = self._dir / safe_name if self._overwrite else unique_target(self._dir, safe_name)
        target.write_bytes(data)
        logger.info("Wrote {} ({} bytes)", target, len(data))
        return str(target)
