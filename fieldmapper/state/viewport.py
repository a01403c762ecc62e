"""Current page, zoom, and rendered surface dimensions."""

from __future__ import annotations

from dataclasses import dataclass

from fieldmapper.geometry.transform import clamp_zoom

ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9
DEFAULT_ZOOM = 1.0


@dataclass(slots=True)
class Viewport:
    """Page and zoom the user asked for, plus the surface last rendered.

    ``zoom`` changes as soon as the user zooms; ``surface_zoom`` and the
    surface dimensions only change once a render for that zoom succeeds.
    Coordinate conversions use the surface values so overlays always line up
    with the raster on screen.
    """

    page: int = 1
    total_pages: int = 0
    zoom: float = DEFAULT_ZOOM
    surface_width_px: float = 0.0
    surface_height_px: float = 0.0
    surface_zoom: float | None = None

    def __post_init__(self) -> None:
        self.zoom = clamp_zoom(self.zoom)

    @property
    def render_zoom(self) -> float:
        return self.surface_zoom if self.surface_zoom is not None else self.zoom

    @property
    def has_surface(self) -> bool:
        return self.surface_width_px > 0 and self.surface_height_px > 0

    def reset(self, total_pages: int) -> None:
        self.total_pages = max(0, total_pages)
        self.page = 1
        self.surface_width_px = 0.0
        self.surface_height_px = 0.0
        self.surface_zoom = None

    def set_page(self, page: int) -> bool:
        if self.total_pages <= 0:
            return False
        target = max(1, min(page, self.total_pages))
        if target == self.page:
            return False
        self.page = target
        return True

    def next_page(self) -> bool:
        return self.set_page(self.page + 1)

    def previous_page(self) -> bool:
        return self.set_page(self.page - 1)

    def set_zoom(self, zoom: float) -> bool:
        target = clamp_zoom(zoom)
        if target == self.zoom:
            return False
        self.zoom = target
        return True

    def zoom_by(self, factor: float) -> bool:
        return self.set_zoom(self.zoom * factor)

    def zoom_in(self) -> bool:
        return self.zoom_by(ZOOM_IN_FACTOR)

    def zoom_out(self) -> bool:
        return self.zoom_by(ZOOM_OUT_FACTOR)

    def update_surface(self, width_px: float, height_px: float, zoom: float) -> None:
        self.surface_width_px = float(width_px)
        self.surface_height_px = float(height_px)
        self.surface_zoom = clamp_zoom(zoom)
