from pathlib import Path

import pytest
from PySide6.QtCore import QSettings

from fieldmapper.config import AppSettings


@pytest.fixture
def settings(qapp, tmp_path):
    return AppSettings(QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat))


def test_last_directory_defaults_to_home(settings):
    assert settings.last_directory() == Path.home()


def test_remember_path_stores_parent_directory(settings, tmp_path):
    settings.remember_path(tmp_path / "form.pdf")

    assert settings.last_directory() == tmp_path


def test_vanished_directory_falls_back_to_home(settings, tmp_path):
    gone = tmp_path / "gone"
    gone.mkdir()
    settings.remember_path(gone)
    gone.rmdir()

    assert settings.last_directory() == Path.home()


def test_default_zoom_is_clamped(settings):
    assert settings.default_zoom() == 1.0

    settings.set_default_zoom(7.0)

    assert settings.default_zoom() == 3.0
