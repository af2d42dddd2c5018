"""MenuController: Manages menu creation and action connections."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QMainWindow, QMenuBar

# (menu title, [(action name, label, shortcut) | None for a separator])
MENU_LAYOUT: list[tuple[str, list[tuple[str, str, str | None] | None]]] = [
    (
        "File",
        [
            ("add_photos", "Add Photos…", "Ctrl+O"),
            ("set_watermark", "Set Watermark…", "Ctrl+W"),
            ("output_dir", "Choose Output Folder…", None),
            None,
            ("exit", "Exit", "Ctrl+Q"),
        ],
    ),
    (
        "Export",
        [
            ("save_current", "Save Current", "Ctrl+S"),
            ("save_next", "Save && Next", "Ctrl+Shift+S"),
            ("download_all", "Download All", None),
        ],
    ),
    (
        "View",
        [
            ("zoom_in", "Zoom In", "Ctrl++"),
            ("zoom_out", "Zoom Out", "Ctrl+-"),
        ],
    ),
    (
        "Log",
        [
            ("open_latest_log", "Open Latest Log", None),
            ("open_log_directory", "Open Log Directory", None),
        ],
    ),
]


class MenuController:
    """Builds the main window menus and connects actions to handlers."""

    def __init__(self, main_window: QMainWindow) -> None:
        """Initialize with main window reference.

        Args:
            main_window: The QMainWindow to create menus for
        """
        self.window = main_window
        self.actions: dict[str, QAction] = {}

    def setup_menus(self) -> dict[str, QAction]:
        """Create all menus and return action references."""
        menubar = QMenuBar(self.window)
        for title, entries in MENU_LAYOUT:
            menu = menubar.addMenu(title)
            for entry in entries:
                if entry is None:
                    menu.addSeparator()
                    continue
                name, label, shortcut = entry
                action = menu.addAction(label)
                if shortcut:
                    action.setShortcut(QKeySequence(shortcut))
                self.actions[name] = action
        self.window.setMenuBar(menubar)
        return self.actions

    def connect_actions(self, handlers: dict[str, Callable]) -> None:
        """Connect menu actions to their handler callables by action name."""
        for name, action in self.actions.items():
            if name in handlers:
                action.triggered.connect(handlers[name])
        if "exit" not in handlers:
            self.actions["exit"].triggered.connect(self.window.close)

    def enable_action(self, name: str, enabled: bool = True) -> None:
        """Enable or disable a specific action."""
        action = self.actions.get(name)
        if action:
            action.setEnabled(enabled)
