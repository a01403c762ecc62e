"""Main application window for PDF preview, field mapping, and export."""

from __future__ import annotations

import logging
import shutil

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QFileDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QSplitter,
    QToolBar,
)

from fieldmapper.config import AppSettings
from fieldmapper.exchange.codec import (
    MalformedImportError,
    export_fields,
    import_fields,
    load_json,
    save_json,
)
from fieldmapper.model.document import PdfDocument
from fieldmapper.pdf.importer import PdfImportError, import_pdf_fields
from fieldmapper.pdf.loader import PdfLoadError, load_pdf
from fieldmapper.pdf.renderer import PageRenderScheduler, RenderedPage
from fieldmapper.pdf.writer import PdfWriteError, write_pdf_with_fields
from fieldmapper.state.registry import FieldRegistry
from fieldmapper.state.viewport import Viewport
from fieldmapper.ui.sidebar import FieldSidebar
from fieldmapper.viewer.canvas import PdfCanvas
from fieldmapper.viewer.controller import DrawController

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME = "pdf-fields.json"


class MainWindow(QMainWindow):
    def __init__(self, settings: AppSettings | None = None) -> None:
        super().__init__()
        self.setWindowTitle("PDF Coordinate Mapper")
        self.resize(1300, 850)

        self._settings = settings or AppSettings()
        self._document: PdfDocument | None = None
        self._rendered_page: int | None = None
        self._registry = FieldRegistry()
        self._viewport = Viewport(zoom=self._settings.default_zoom())
        self._controller = DrawController(self._registry, self._viewport)

        self.render_scheduler = PageRenderScheduler(parent=self)
        self.render_scheduler.page_rendered.connect(self._on_page_rendered)
        self.render_scheduler.render_failed.connect(self._on_render_failed)

        self.page_list = QListWidget()
        self.page_list.currentRowChanged.connect(self._on_page_selected)

        self.canvas = PdfCanvas(self._registry, self._viewport, self._controller)
        self.canvas.cursor_moved.connect(self._on_cursor_moved)
        self.canvas.field_created.connect(self._on_field_created)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(False)
        self.scroll_area.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.scroll_area.setWidget(self.canvas)

        self.sidebar = FieldSidebar(self._registry, self._viewport)
        self.sidebar.status_message.connect(self.statusBar().showMessage)

        splitter = QSplitter()
        splitter.addWidget(self.page_list)
        splitter.addWidget(self.scroll_area)
        splitter.addWidget(self.sidebar)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 4)
        splitter.setStretchFactor(2, 2)
        self.setCentralWidget(splitter)

        self.zoom_label = QLabel()
        self.cursor_label = QLabel()
        self.count_label = QLabel()
        self.statusBar().addPermanentWidget(self.cursor_label)
        self.statusBar().addPermanentWidget(self.count_label)

        self._build_toolbar()
        self._registry.subscribe(self._update_field_count)
        self._update_zoom_label()
        self._update_field_count()
        self.statusBar().showMessage("No PDF loaded")

    @property
    def registry(self) -> FieldRegistry:
        return self._registry

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def document(self) -> PdfDocument | None:
        return self._document

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        open_action = QAction("Load PDF", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(lambda: self.open_pdf())
        toolbar.addAction(open_action)

        save_action = QAction("Save Fillable PDF", self)
        save_action.triggered.connect(self.save_pdf)
        toolbar.addAction(save_action)

        toolbar.addSeparator()

        import_action = QAction("Import", self)
        import_action.triggered.connect(self.import_fields)
        toolbar.addAction(import_action)

        export_action = QAction("Export", self)
        export_action.setShortcut(QKeySequence.StandardKey.Save)
        export_action.triggered.connect(self.export_fields)
        toolbar.addAction(export_action)

        clear_action = QAction("Clear Fields", self)
        clear_action.triggered.connect(self.clear_fields)
        toolbar.addAction(clear_action)

        toolbar.addSeparator()

        prev_action = QAction("Previous", self)
        prev_action.triggered.connect(self.show_previous_page)
        toolbar.addAction(prev_action)

        next_action = QAction("Next", self)
        next_action.triggered.connect(self.show_next_page)
        toolbar.addAction(next_action)

        toolbar.addSeparator()

        zoom_in_action = QAction("Zoom In", self)
        zoom_in_action.setShortcut(QKeySequence.StandardKey.ZoomIn)
        zoom_in_action.triggered.connect(self.zoom_in)
        toolbar.addAction(zoom_in_action)

        zoom_out_action = QAction("Zoom Out", self)
        zoom_out_action.setShortcut(QKeySequence.StandardKey.ZoomOut)
        zoom_out_action.triggered.connect(self.zoom_out)
        toolbar.addAction(zoom_out_action)
        toolbar.addWidget(self.zoom_label)

        toolbar.addSeparator()

        delete_action = QAction("Delete Field", self)
        delete_action.triggered.connect(self.delete_selected_field)
        toolbar.addAction(delete_action)

        copy_action = QAction("Copy Field", self)
        copy_action.setShortcut("Ctrl+D")
        copy_action.triggered.connect(self.copy_selected_field)
        toolbar.addAction(copy_action)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._settings.set_default_zoom(self._viewport.zoom)
        self._close_document()
        super().closeEvent(event)

    def open_pdf(self, file_path: str | None = None) -> None:
        if not file_path:
            file_path, _ = QFileDialog.getOpenFileName(
                self,
                "Load PDF",
                str(self._settings.last_directory()),
                "PDF Files (*.pdf)",
            )
        if not file_path:
            return

        try:
            document = load_pdf(file_path)
        except PdfLoadError as exc:
            logger.warning("%s", exc)
            QMessageBox.critical(self, "Open Failed", str(exc))
            return

        self._close_document()
        self._document = document
        self._settings.remember_path(file_path)

        if len(self._registry) == 0:
            try:
                self._registry.replace_all(import_pdf_fields(document.working_path))
            except PdfImportError as exc:
                logger.warning("%s", exc)
                QMessageBox.warning(self, "Field Import Warning", str(exc))
        else:
            logger.info("Kept %d placed field(s) across document load", len(self._registry))

        self._viewport.reset(document.page_count)
        self._populate_page_list()
        self._request_render()
        self.statusBar().showMessage(f"Loaded: {file_path}")

    def save_pdf(self) -> None:
        if self._document is None:
            QMessageBox.information(self, "No Document", "Load a PDF first.")
            return

        output_path, _ = QFileDialog.getSaveFileName(
            self,
            "Save Fillable PDF",
            str(self._document.path.with_stem(f"{self._document.path.stem}_fillable")),
            "PDF Files (*.pdf)",
        )
        if not output_path:
            return

        self.render_scheduler.cancel()
        self._document.close_handle()
        try:
            write_pdf_with_fields(
                source_path=self._document.working_path,
                output_path=self._document.working_path,
                fields=self._registry.list(),
            )
            shutil.copy2(self._document.working_path, output_path)
        except (PdfWriteError, OSError) as exc:
            logger.warning("Save failed: %s", exc)
            QMessageBox.critical(self, "Save Failed", str(exc))
            self._document.reopen_handle()
            self._request_render()
            return
        self._document.reopen_handle()
        self._request_render()

        self.statusBar().showMessage(f"Saved: {output_path}")

    def export_fields(self) -> None:
        if self._document is None:
            QMessageBox.information(self, "No Document", "Load a PDF first.")
            return

        output_path, _ = QFileDialog.getSaveFileName(
            self,
            "Export Fields",
            str(self._settings.last_directory() / EXPORT_FILE_NAME),
            "JSON Files (*.json)",
        )
        if not output_path:
            return

        try:
            save_json(output_path, export_fields(self._registry, self._document.name))
        except OSError as exc:
            logger.warning("Export failed: %s", exc)
            QMessageBox.critical(self, "Export Failed", str(exc))
            return
        self._settings.remember_path(output_path)
        self.statusBar().showMessage(f"Exported {len(self._registry)} field(s) to {output_path}")

    def import_fields(self) -> None:
        input_path, _ = QFileDialog.getOpenFileName(
            self,
            "Import Fields",
            str(self._settings.last_directory()),
            "JSON Files (*.json)",
        )
        if not input_path:
            return

        self.canvas.cancel_gesture()
        try:
            count = import_fields(self._registry, load_json(input_path))
        except MalformedImportError as exc:
            logger.warning("Import rejected: %s", exc)
            QMessageBox.warning(self, "Import Failed", str(exc))
            return
        self._settings.remember_path(input_path)
        self.statusBar().showMessage(f"Imported {count} field(s) from {input_path}")

    def clear_fields(self) -> None:
        self.canvas.cancel_gesture()
        self._registry.clear()
        self.statusBar().showMessage("Cleared all fields")

    def show_previous_page(self) -> None:
        if self._document is None:
            return
        self.canvas.cancel_gesture()
        if self._viewport.previous_page():
            self.page_list.setCurrentRow(self._viewport.page - 1)

    def show_next_page(self) -> None:
        if self._document is None:
            return
        self.canvas.cancel_gesture()
        if self._viewport.next_page():
            self.page_list.setCurrentRow(self._viewport.page - 1)

    def zoom_in(self) -> None:
        self._change_zoom(self._viewport.zoom_in)

    def zoom_out(self) -> None:
        self._change_zoom(self._viewport.zoom_out)

    def delete_selected_field(self) -> None:
        selected = self._registry.selected()
        if selected is None:
            self.statusBar().showMessage("No selected field to delete.")
            return
        self.canvas.cancel_gesture()
        self._registry.delete(selected.id)
        self.statusBar().showMessage(f"Deleted field {selected.name}")

    def copy_selected_field(self) -> None:
        selected = self._registry.selected()
        if selected is None or self._registry.duplicate(selected.id) is None:
            self.statusBar().showMessage("No selected field to copy.")
            return
        self.statusBar().showMessage(f"Copied field {selected.name}")

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        if event.key() == Qt.Key.Key_Delete:
            self.delete_selected_field()
            event.accept()
            return
        if event.key() == Qt.Key.Key_Escape:
            self.canvas.cancel_gesture()
            self._registry.select(None)
            event.accept()
            return
        if event.matches(QKeySequence.StandardKey.Copy):
            self.copy_selected_field()
            event.accept()
            return
        super().keyPressEvent(event)

    def _change_zoom(self, apply) -> None:
        self.canvas.cancel_gesture()
        if not apply():
            return
        self._update_zoom_label()
        self._request_render()

    def _populate_page_list(self) -> None:
        self.page_list.blockSignals(True)
        self.page_list.clear()
        if self._document is not None:
            for page_number in range(1, self._document.page_count + 1):
                self.page_list.addItem(QListWidgetItem(f"Page {page_number}"))
            self.page_list.setCurrentRow(self._viewport.page - 1)
        self.page_list.blockSignals(False)

    def _on_page_selected(self, row: int) -> None:
        if self._document is None or row < 0:
            return

        self.canvas.cancel_gesture()
        self._viewport.set_page(row + 1)
        self.sidebar.refresh()
        self._request_render()

    def _request_render(self) -> None:
        if self._document is None:
            self.canvas.clear_page()
            return
        self.render_scheduler.request(self._document, self._viewport.page, self._viewport.zoom)

    def _on_page_rendered(self, rendered: RenderedPage) -> None:
        self._rendered_page = rendered.page
        self.canvas.set_surface(rendered)
        self.sidebar.refresh()
        width_pt, height_pt = self._document.page_size(rendered.page)
        self.statusBar().showMessage(
            f"Page {rendered.page} of {self._viewport.total_pages}"
            f" ({round(width_pt)} x {round(height_pt)} pt)"
        )

    def _on_render_failed(self, message: str) -> None:
        self._restore_rendered_view()
        QMessageBox.critical(self, "Render Failed", message)
        self.statusBar().showMessage(message)

    def _restore_rendered_view(self) -> None:
        # Overlays and new fields must follow the raster still on screen.
        if self._rendered_page is None:
            return
        self.canvas.cancel_gesture()
        if self._viewport.set_page(self._rendered_page):
            self.page_list.blockSignals(True)
            self.page_list.setCurrentRow(self._rendered_page - 1)
            self.page_list.blockSignals(False)
            self.sidebar.refresh()
        if self._viewport.surface_zoom is not None and self._viewport.set_zoom(self._viewport.surface_zoom):
            self._update_zoom_label()

    def _on_field_created(self, field_id: str) -> None:
        item = self._registry.get(field_id)
        if item is not None:
            self.statusBar().showMessage(f"Created {item.type.value} field {item.name}")

    def _on_cursor_moved(self, pdf_x: float, pdf_y: float) -> None:
        self.cursor_label.setText(f"Cursor: X: {round(pdf_x)}, Y: {round(pdf_y)} (PDF coordinates)")

    def _update_zoom_label(self) -> None:
        self.zoom_label.setText(f" {round(self._viewport.zoom * 100)}% ")

    def _update_field_count(self) -> None:
        self.count_label.setText(f"{len(self._registry)} fields defined")

    def _close_document(self) -> None:
        self.render_scheduler.cancel()
        self.canvas.cancel_gesture()
        if self._document is not None:
            self._document.close()
            self._document = None
        self._rendered_page = None
        self._viewport.reset(0)
        self.page_list.clear()
        self.canvas.clear_page()
