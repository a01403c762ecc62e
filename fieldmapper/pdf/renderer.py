"""PDF rendering helpers using PyMuPDF."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging

import fitz
from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtGui import QImage

from fieldmapper.geometry.transform import clamp_zoom
from fieldmapper.model.document import PdfDocument

logger = logging.getLogger(__name__)


class PdfRenderError(RuntimeError):
    """Raised when a page cannot be rendered."""


@dataclass(frozen=True, slots=True)
class RenderedPage:
    page: int
    zoom: float
    image: QImage

    @property
    def width_px(self) -> int:
        return self.image.width()

    @property
    def height_px(self) -> int:
        return self.image.height()


@dataclass(frozen=True, slots=True)
class RenderRequest:
    generation: int
    document: PdfDocument
    page: int
    zoom: float


def render_page(document: PdfDocument, page: int, zoom: float = 1.0) -> RenderedPage:
    """Rasterise the 1-based ``page`` at ``zoom``."""
    if page < 1 or page > document.page_count:
        raise PdfRenderError(f"Page out of range: {page}")

    zoom = clamp_zoom(zoom)
    try:
        pdf_page = document.handle.load_page(page - 1)
        matrix = fitz.Matrix(zoom, zoom)
        pix = pdf_page.get_pixmap(matrix=matrix, alpha=False, annots=False)
    except Exception as exc:
        raise PdfRenderError(f"Failed to render page {page}") from exc

    image = QImage(pix.samples, pix.width, pix.height, pix.stride, QImage.Format.Format_RGB888)
    return RenderedPage(page=page, zoom=zoom, image=image.copy())


class PageRenderScheduler(QObject):
    """Runs at most one page render per event-loop turn.

    A new request replaces any request still waiting, and a result whose
    request was superseded while rendering is dropped.
    """

    page_rendered = Signal(object)
    render_failed = Signal(str)

    def __init__(
        self,
        render: Callable[[PdfDocument, int, float], RenderedPage] = render_page,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._render = render
        self._generation = 0
        self._pending: RenderRequest | None = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(0)
        self._timer.timeout.connect(self.flush)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def request(self, document: PdfDocument, page: int, zoom: float) -> int:
        self._generation += 1
        if self._pending is not None:
            logger.debug(
                "Render of page %d superseded by page %d @ %.2f",
                self._pending.page,
                page,
                zoom,
            )
        self._pending = RenderRequest(
            generation=self._generation,
            document=document,
            page=page,
            zoom=zoom,
        )
        self._timer.start()
        return self._generation

    def cancel(self) -> None:
        self._generation += 1
        self._pending = None
        self._timer.stop()

    def flush(self) -> None:
        request = self._pending
        self._pending = None
        if request is None:
            return

        try:
            rendered = self._render(request.document, request.page, request.zoom)
        except PdfRenderError as exc:
            if request.generation == self._generation:
                logger.warning("Render failed: %s", exc)
                self.render_failed.emit(str(exc))
            return

        if request.generation != self._generation:
            logger.debug("Dropped stale render of page %d", request.page)
            return
        self.page_rendered.emit(rendered)
