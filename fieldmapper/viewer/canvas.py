"""Interactive PDF page canvas for drawing, moving, and resizing fields."""

from __future__ import annotations

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from fieldmapper.geometry.transform import (
    SurfaceRect,
    document_to_surface,
    surface_point_to_document,
)
from fieldmapper.model.field import FormField
from fieldmapper.pdf.renderer import RenderedPage
from fieldmapper.state.registry import FieldRegistry
from fieldmapper.state.viewport import Viewport
from fieldmapper.viewer.controller import DrawController, GestureState

MIN_FIELD_SIZE_PX = 20.0
HANDLE_SIZE_PX = 10.0


class PdfCanvas(QWidget):
    cursor_moved = Signal(float, float)
    field_created = Signal(str)

    def __init__(
        self,
        registry: FieldRegistry,
        viewport: Viewport,
        controller: DrawController,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._viewport = viewport
        self._controller = controller
        self._pixmap: QPixmap | None = None
        self._interaction: str | None = None
        self._drag_offset_px: QPointF | None = None
        self._resize_start: QPointF | None = None
        self._resize_start_box: SurfaceRect | None = None

        registry.subscribe(self.update)

        self.setMouseTracking(True)
        self.setMinimumSize(500, 600)

    def set_surface(self, rendered: RenderedPage) -> None:
        self.cancel_gesture()
        self._pixmap = QPixmap.fromImage(rendered.image)
        self._viewport.update_surface(rendered.width_px, rendered.height_px, rendered.zoom)
        self.resize(self._pixmap.size())
        self.update()

    def clear_page(self) -> None:
        self.cancel_gesture()
        self._pixmap = None
        self.resize(500, 600)
        self.update()

    def cancel_gesture(self) -> None:
        self._controller.cancel()
        self._clear_interaction()
        self.update()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        del event
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#e9eaee"))

        if self._pixmap is None:
            return

        painter.drawPixmap(0, 0, self._pixmap)
        selected = self._registry.selected()
        selected_id = selected.id if selected is not None else None
        for item in self._page_fields():
            rect_px = self._field_rect_to_pixels(item)
            color = QColor("#c62828") if item.id == selected_id else QColor("#1565c0")
            pen = QPen(color)
            pen.setWidth(2)
            painter.setPen(pen)
            painter.drawRect(rect_px)
            painter.drawText(
                rect_px.adjusted(3, 1, -3, -1),
                int(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop),
                f"{item.name} ({item.type.value})",
            )
            if item.id == selected_id:
                painter.fillRect(self._resize_handle_rect(rect_px), color)

        live = self._controller.live_rect
        if live is not None:
            pen = QPen(QColor(0, 123, 255, 180))
            pen.setWidth(2)
            pen.setStyle(Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.fillRect(_to_qrect(live), QColor(0, 123, 255, 25))
            painter.drawRect(_to_qrect(live))

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if self._pixmap is None or event.button() != Qt.MouseButton.LeftButton:
            return

        pos = event.position()
        hit = self._field_at(pos)
        if hit is None:
            self._controller.pointer_down(pos.x(), pos.y())
            self.update()
            return

        if not self._controller.begin_manipulation(hit.id):
            return

        rect = self._field_rect_to_pixels(hit)
        if self._resize_handle_rect(rect).contains(pos):
            self._interaction = "resize"
            self._resize_start = pos
            self._resize_start_box = _to_surface_rect(rect)
        else:
            self._interaction = "move"
            self._drag_offset_px = pos - rect.topLeft()
        self.update()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._pixmap is None:
            return

        pos = event.position()
        pdf_x, pdf_y = surface_point_to_document(
            pos.x(),
            pos.y(),
            self._viewport.render_zoom,
            self._viewport.surface_height_px,
        )
        self.cursor_moved.emit(pdf_x, pdf_y)

        state = self._controller.state
        if state is GestureState.DRAWING:
            self._controller.pointer_move(*self._clamp_to_surface(pos))
            self.update()
        elif state is GestureState.MANIPULATING:
            box = self._manipulated_box(pos)
            if box is not None:
                self._controller.update_manipulation(box)

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if self._controller.state is GestureState.DRAWING:
            self._finish_drawing(*self._clamp_to_surface(event.position()))
        elif self._controller.state is GestureState.MANIPULATING:
            self._controller.end_manipulation()
        self._clear_interaction()
        self.update()

    def leaveEvent(self, event) -> None:  # type: ignore[override]
        if self._controller.state is GestureState.DRAWING:
            self._finish_drawing()
            self.update()
        super().leaveEvent(event)

    def _finish_drawing(self, x: float | None = None, y: float | None = None) -> None:
        field_id = self._controller.pointer_up(x, y)
        if field_id is not None:
            self.field_created.emit(field_id)

    def _manipulated_box(self, pos: QPointF) -> SurfaceRect | None:
        field_id = self._controller.manipulated_id
        item = self._registry.get(field_id) if field_id is not None else None
        if item is None:
            return None

        surface_w = float(self._pixmap.width())
        surface_h = float(self._pixmap.height())
        current = _to_surface_rect(self._field_rect_to_pixels(item))

        if self._interaction == "move":
            offset = self._drag_offset_px or QPointF(0, 0)
            top_left = pos - offset
            left = max(0.0, min(top_left.x(), surface_w - current.width))
            top = max(0.0, min(top_left.y(), surface_h - current.height))
            return SurfaceRect(left=left, top=top, width=current.width, height=current.height)

        if self._interaction == "resize":
            if self._resize_start is None or self._resize_start_box is None:
                return None
            start = self._resize_start_box
            width = start.width + (pos.x() - self._resize_start.x())
            height = start.height + (pos.y() - self._resize_start.y())
            width = max(MIN_FIELD_SIZE_PX, min(width, surface_w - start.left))
            height = max(MIN_FIELD_SIZE_PX, min(height, surface_h - start.top))
            return SurfaceRect(left=start.left, top=start.top, width=width, height=height)

        return None

    def _clear_interaction(self) -> None:
        self._interaction = None
        self._drag_offset_px = None
        self._resize_start = None
        self._resize_start_box = None

    def _page_fields(self) -> list[FormField]:
        return [item for item in self._registry.list() if item.page == self._viewport.page]

    def _field_rect_to_pixels(self, item: FormField) -> QRectF:
        box = document_to_surface(
            item.rect,
            self._viewport.render_zoom,
            self._viewport.surface_height_px,
        )
        return _to_qrect(box)

    def _resize_handle_rect(self, field_rect: QRectF) -> QRectF:
        return QRectF(
            field_rect.right() - HANDLE_SIZE_PX / 2.0,
            field_rect.bottom() - HANDLE_SIZE_PX / 2.0,
            HANDLE_SIZE_PX,
            HANDLE_SIZE_PX,
        )

    def _field_at(self, pos: QPointF) -> FormField | None:
        selected = self._registry.selected()
        if selected is not None and selected.page == self._viewport.page:
            rect = self._field_rect_to_pixels(selected)
            if self._resize_handle_rect(rect).contains(pos):
                return selected

        for item in reversed(self._page_fields()):
            if self._field_rect_to_pixels(item).contains(pos):
                return item
        return None

    def _clamp_to_surface(self, pos: QPointF) -> tuple[float, float]:
        if self._pixmap is None:
            return pos.x(), pos.y()
        x = max(0.0, min(pos.x(), float(self._pixmap.width())))
        y = max(0.0, min(pos.y(), float(self._pixmap.height())))
        return x, y


def _to_qrect(box: SurfaceRect) -> QRectF:
    return QRectF(box.left, box.top, box.width, box.height)


def _to_surface_rect(rect: QRectF) -> SurfaceRect:
    return SurfaceRect(left=rect.x(), top=rect.y(), width=rect.width(), height=rect.height())
