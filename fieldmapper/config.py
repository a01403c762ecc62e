"""
Application settings persisted with QSettings
"""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QSettings

from fieldmapper.geometry.transform import clamp_zoom
from fieldmapper.state.viewport import DEFAULT_ZOOM


class AppSettings:
    """Last-used directory and default zoom, stored per user."""

    ORGANIZATION = "PDF Field Mapper"
    APPLICATION = "PDF Field Mapper"

    KEY_LAST_DIRECTORY = "paths/last_directory"
    KEY_DEFAULT_ZOOM = "view/default_zoom"

    def __init__(self, settings: QSettings | None = None) -> None:
        self.settings = settings or QSettings(AppSettings.ORGANIZATION, AppSettings.APPLICATION)

    def last_directory(self) -> Path:
        """
        Directory used by the most recent open/import/export dialog

        Falls back to the home directory when nothing is stored or the stored
        directory no longer exists.
        """
        stored = self.settings.value(self.KEY_LAST_DIRECTORY, "", type=str)
        if stored and Path(stored).is_dir():
            return Path(stored)
        return Path.home()

    def remember_path(self, path: str | Path) -> None:
        target = Path(path)
        directory = target if target.is_dir() else target.parent
        self.settings.setValue(self.KEY_LAST_DIRECTORY, str(directory))
        self.settings.sync()

    def default_zoom(self) -> float:
        value = self.settings.value(self.KEY_DEFAULT_ZOOM, DEFAULT_ZOOM, type=float)
        return clamp_zoom(float(value))

    def set_default_zoom(self, zoom: float) -> None:
        self.settings.setValue(self.KEY_DEFAULT_ZOOM, clamp_zoom(zoom))
        self.settings.sync()
