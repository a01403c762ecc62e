import pytest
from PySide6.QtCore import QSettings

import fieldmapper.ui.main_window as main_window_module
from fieldmapper.config import AppSettings
from fieldmapper.exchange.codec import import_fields
from fieldmapper.model.field import create_field
from fieldmapper.pdf.writer import write_pdf_with_fields
from fieldmapper.ui.main_window import MainWindow


class SilentMessageBox:
    shown = []

    @classmethod
    def critical(cls, parent, title, text):
        cls.shown.append((title, text))

    warning = critical
    information = critical


def _payload(*names):
    return {
        "fields": [
            {"name": name, "type": "text", "page": 1, "pdfX": 72.0, "pdfY": 500.0 - 40 * index, "pdfWidth": 120.0, "pdfHeight": 20.0}
            for index, name in enumerate(names)
        ]
    }


@pytest.fixture
def window(qapp, tmp_path, monkeypatch):
    SilentMessageBox.shown = []
    monkeypatch.setattr(main_window_module, "QMessageBox", SilentMessageBox)
    settings = AppSettings(QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat))
    widget = MainWindow(settings)
    yield widget
    widget.close()


@pytest.fixture
def fillable_pdf(sample_pdf, tmp_path):
    path = tmp_path / "fillable.pdf"
    field = create_field({"name": "Existing", "type": "text", "page": 1, "x": 72.0, "y": 600.0, "width": 100.0, "height": 20.0}, "e1")
    write_pdf_with_fields(sample_pdf, path, [field])
    return path


def test_loading_pdf_keeps_imported_fields(window, sample_pdf):
    import_fields(window.registry, _payload("First", "Second", "Third"))

    window.open_pdf(str(sample_pdf))

    assert window.document is not None
    assert [item.name for item in window.registry.list()] == ["First", "Second", "Third"]


def test_failed_load_keeps_fields_and_document(window, sample_pdf, tmp_path):
    window.open_pdf(str(sample_pdf))
    import_fields(window.registry, _payload("First"))
    loaded = window.document

    window.open_pdf(str(tmp_path / "missing.pdf"))

    assert window.document is loaded
    assert len(window.registry) == 1
    assert SilentMessageBox.shown[0][0] == "Open Failed"


def test_empty_registry_is_seeded_from_form_widgets(window, fillable_pdf):
    window.open_pdf(str(fillable_pdf))

    assert [item.name for item in window.registry.list()] == ["Existing"]


def test_form_widgets_do_not_replace_placed_fields(window, fillable_pdf):
    import_fields(window.registry, _payload("Mine"))

    window.open_pdf(str(fillable_pdf))

    assert [item.name for item in window.registry.list()] == ["Mine"]


def test_failed_render_returns_to_last_rendered_page(window, sample_pdf):
    window.open_pdf(str(sample_pdf))
    window.render_scheduler.flush()
    assert window.viewport.has_surface
    assert window.statusBar().currentMessage() == "Page 1 of 2 (612 x 792 pt)"

    window.show_next_page()
    assert window.viewport.page == 2
    window.render_scheduler.render_failed.emit("Failed to render page 2")

    assert window.viewport.page == 1
    assert window.page_list.currentRow() == 0
    assert SilentMessageBox.shown == [("Render Failed", "Failed to render page 2")]


def test_failed_render_restores_rendered_zoom(window, sample_pdf):
    window.open_pdf(str(sample_pdf))
    window.render_scheduler.flush()

    window.zoom_in()
    assert window.viewport.zoom == pytest.approx(1.1)
    window.render_scheduler.render_failed.emit("Failed to render page 1")

    assert window.viewport.zoom == pytest.approx(1.0)
    assert window.zoom_label.text().strip() == "100%"


def test_clear_fields_is_the_only_reset(window, sample_pdf):
    import_fields(window.registry, _payload("First"))
    window.open_pdf(str(sample_pdf))

    window.clear_fields()

    assert len(window.registry) == 0
