"""Gesture state machine for drawing new fields and moving/resizing placed ones."""

from __future__ import annotations

from enum import Enum
import logging

from fieldmapper.geometry.transform import (
    DocumentRect,
    SurfaceRect,
    bounding_box,
    is_finite_rect,
    is_valid_extent,
    surface_to_document,
)
from fieldmapper.model.field import default_properties
from fieldmapper.state.registry import FieldRegistry, MutationStatus
from fieldmapper.state.viewport import Viewport

logger = logging.getLogger(__name__)

MIN_DRAW_SIZE_PX = 5.0


class GestureState(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    MANIPULATING = "manipulating"


class DrawController:
    """Turns surface-space pointer input into registry mutations.

    Surface coordinates are converted with the viewport's zoom and surface
    height as they are at the moment of conversion, never a copy taken when
    the gesture began.
    """

    def __init__(self, registry: FieldRegistry, viewport: Viewport) -> None:
        self._registry = registry
        self._viewport = viewport
        self._state = GestureState.IDLE
        self._anchor: tuple[float, float] | None = None
        self._cursor: tuple[float, float] | None = None
        self._manipulated_id: str | None = None

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state is not GestureState.IDLE

    @property
    def manipulated_id(self) -> str | None:
        return self._manipulated_id

    @property
    def live_rect(self) -> SurfaceRect | None:
        if self._state is not GestureState.DRAWING or self._anchor is None or self._cursor is None:
            return None
        return bounding_box(*self._anchor, *self._cursor)

    def pointer_down(self, x: float, y: float) -> bool:
        """Start a drawing gesture, or clear the selection if one is active.

        Returns True when drawing started.
        """
        if self._state is not GestureState.IDLE:
            return False

        if self._registry.selected() is not None:
            self._registry.select(None)
            return False

        self._state = GestureState.DRAWING
        self._anchor = (x, y)
        self._cursor = (x, y)
        logger.debug("Drawing started at (%.1f, %.1f)", x, y)
        return True

    def pointer_move(self, x: float, y: float) -> None:
        if self._state is GestureState.DRAWING:
            self._cursor = (x, y)

    def pointer_up(self, x: float | None = None, y: float | None = None) -> str | None:
        """Finish a drawing gesture and return the new field's id, if any.

        Passing no coordinates reuses the last known pointer position, which
        is how a release outside the surface is reported.
        """
        if self._state is not GestureState.DRAWING or self._anchor is None:
            return None

        if x is not None and y is not None:
            self._cursor = (x, y)
        box = bounding_box(*self._anchor, *(self._cursor or self._anchor))
        self._reset()

        if box.width <= MIN_DRAW_SIZE_PX or box.height <= MIN_DRAW_SIZE_PX:
            logger.debug("Discarded %.1f x %.1f px drag", box.width, box.height)
            return None

        rect = self._to_document(box)
        if not is_finite_rect(rect) or not is_valid_extent(rect.width, rect.height):
            logger.debug("Discarded drag with invalid geometry %s", rect)
            return None

        field_type = self._registry.current_draw_type
        return self._registry.add(
            {
                "name": self._registry.next_default_name(),
                "type": field_type,
                "page": self._viewport.page,
                "x": rect.x,
                "y": rect.y,
                "width": rect.width,
                "height": rect.height,
                "properties": default_properties(field_type),
            }
        )

    def begin_manipulation(self, field_id: str) -> bool:
        if self._state is not GestureState.IDLE:
            return False
        if self._registry.select(field_id) is not MutationStatus.OK:
            return False

        self._state = GestureState.MANIPULATING
        self._manipulated_id = field_id
        return True

    def update_manipulation(self, box: SurfaceRect) -> MutationStatus:
        if self._state is not GestureState.MANIPULATING or self._manipulated_id is None:
            return MutationStatus.NOT_FOUND

        rect = self._to_document(box)
        if not is_finite_rect(rect) or not is_valid_extent(rect.width, rect.height):
            logger.debug("Kept previous geometry for %s, got %s", self._manipulated_id, rect)
            return MutationStatus.INVALID_GEOMETRY

        return self._registry.update(
            self._manipulated_id,
            {"x": rect.x, "y": rect.y, "width": rect.width, "height": rect.height},
        )

    def end_manipulation(self) -> None:
        if self._state is GestureState.MANIPULATING:
            self._reset()

    def cancel(self) -> None:
        if self._state is not GestureState.IDLE:
            logger.debug("Cancelled %s gesture", self._state.value)
        self._reset()

    def _reset(self) -> None:
        self._state = GestureState.IDLE
        self._anchor = None
        self._cursor = None
        self._manipulated_id = None

    def _to_document(self, box: SurfaceRect) -> DocumentRect:
        return surface_to_document(
            box,
            self._viewport.render_zoom,
            self._viewport.surface_height_px,
        )
