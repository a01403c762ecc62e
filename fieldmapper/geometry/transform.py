"""Conversions between PDF document space, rendered surface space, and millimetres.

Document space has its origin at the page's bottom-left corner with Y growing
upward, in points. Surface space is the rendered raster: origin top-left, Y
growing downward, scaled by the zoom factor. Physical export space is in
millimetres and anchored at the rectangle's centre.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0

POINT_TO_MM = 25.4 / 72.0
PHYSICAL_DECIMALS = 2


@dataclass(frozen=True, slots=True)
class DocumentRect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class SurfaceRect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(frozen=True, slots=True)
class PhysicalRect:
    x: float
    y: float
    width: float
    height: float


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


def document_to_surface(rect: DocumentRect, zoom: float, surface_height_px: float) -> SurfaceRect:
    """Place a document rectangle on the rendered surface.

    The returned box is anchored at its top-left corner. The rectangle's height
    is added to ``y`` before flipping because document ``y`` is the bottom edge.
    """
    return SurfaceRect(
        left=rect.x * zoom,
        top=surface_height_px - (rect.y + rect.height) * zoom,
        width=rect.width * zoom,
        height=rect.height * zoom,
    )


def surface_to_document(box: SurfaceRect, zoom: float, surface_height_px: float) -> DocumentRect:
    """Inverse of :func:`document_to_surface`."""
    return DocumentRect(
        x=box.left / zoom,
        y=(surface_height_px - box.top - box.height) / zoom,
        width=box.width / zoom,
        height=box.height / zoom,
    )


def surface_point_to_document(
    x: float,
    y: float,
    zoom: float,
    surface_height_px: float,
) -> tuple[float, float]:
    return x / zoom, (surface_height_px - y) / zoom


def document_to_physical(rect: DocumentRect) -> PhysicalRect:
    return PhysicalRect(
        x=round((rect.x + 0.5 * rect.width) * POINT_TO_MM, PHYSICAL_DECIMALS),
        y=round((rect.y + 0.5 * rect.height) * POINT_TO_MM, PHYSICAL_DECIMALS),
        width=round(rect.width * POINT_TO_MM, PHYSICAL_DECIMALS),
        height=round(rect.height * POINT_TO_MM, PHYSICAL_DECIMALS),
    )


def physical_to_document(rect: PhysicalRect) -> DocumentRect:
    width = rect.width / POINT_TO_MM
    height = rect.height / POINT_TO_MM
    return DocumentRect(
        x=rect.x / POINT_TO_MM - 0.5 * width,
        y=rect.y / POINT_TO_MM - 0.5 * height,
        width=width,
        height=height,
    )


def bounding_box(ax: float, ay: float, bx: float, by: float) -> SurfaceRect:
    return SurfaceRect(
        left=min(ax, bx),
        top=min(ay, by),
        width=abs(bx - ax),
        height=abs(by - ay),
    )


def is_valid_extent(width: float, height: float) -> bool:
    return (
        math.isfinite(width)
        and math.isfinite(height)
        and width > 0.0
        and height > 0.0
    )


def is_finite_rect(rect: DocumentRect) -> bool:
    return all(math.isfinite(value) for value in (rect.x, rect.y, rect.width, rect.height))
