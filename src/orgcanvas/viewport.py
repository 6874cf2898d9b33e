"""
Viewport state and screen/world coordinate transforms.

World coordinates are what blocks are stored in. Screen coordinates are
pointer positions on the host surface. The canvas element sits at ``origin``
on the screen; content is translated by ``offset`` and then scaled by
``zoom``:

    screen = origin + offset + world * zoom
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from .models import Point, Rect, Size

logger = logging.getLogger(__name__)

MIN_ZOOM = 0.1
MAX_ZOOM = 3.0
ZOOM_STEP = 0.1


@dataclass
class Viewport:
    """
    Pan/zoom state of one open chart view.

    Attributes:
        offset_x: Horizontal screen-space translation.
        offset_y: Vertical screen-space translation.
        zoom: Scale factor, kept within [min_zoom, max_zoom].
        width: Observed canvas width in pixels.
        height: Observed canvas height in pixels.
        origin_x: Canvas top-left x on the screen.
        origin_y: Canvas top-left y on the screen.
        min_zoom: Lower zoom bound.
        max_zoom: Upper zoom bound.
        zoom_step: Increment used by zoom_in/zoom_out and the wheel.
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0
    width: float = 1024.0
    height: float = 768.0
    origin_x: float = 0.0
    origin_y: float = 0.0
    min_zoom: float = MIN_ZOOM
    max_zoom: float = MAX_ZOOM
    zoom_step: float = ZOOM_STEP

    def __post_init__(self):
        if self.min_zoom <= 0 or self.max_zoom <= 0:
            raise ValueError("zoom bounds must be positive")
        if self.min_zoom > self.max_zoom:
            raise ValueError(
                f"min_zoom ({self.min_zoom}) must not exceed max_zoom ({self.max_zoom})"
            )
        self.zoom = self._clamp(self.zoom)

    def _clamp(self, zoom: float) -> float:
        return min(max(zoom, self.min_zoom), self.max_zoom)

    @property
    def offset(self) -> Point:
        return Point(self.offset_x, self.offset_y)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------
    def screen_to_world(self, sx: float, sy: float) -> Point:
        return Point(
            (sx - self.origin_x - self.offset_x) / self.zoom,
            (sy - self.origin_y - self.offset_y) / self.zoom,
        )

    def world_to_screen(self, wx: float, wy: float) -> Point:
        return Point(
            wx * self.zoom + self.offset_x + self.origin_x,
            wy * self.zoom + self.offset_y + self.origin_y,
        )

    def screen_delta_to_world(self, dx: float, dy: float) -> Tuple[float, float]:
        """Convert a screen-space distance to world units."""
        return dx / self.zoom, dy / self.zoom

    def visible_world_rect(self) -> Rect:
        """World rectangle currently shown on the canvas."""
        return Rect(
            -self.offset_x / self.zoom,
            -self.offset_y / self.zoom,
            self.width / self.zoom,
            self.height / self.zoom,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def pan(self, dx: float, dy: float) -> None:
        """Translate by a screen-space delta; zoom does not scale it."""
        self.offset_x += dx
        self.offset_y += dy

    def set_offset(self, x: float, y: float) -> None:
        self.offset_x = x
        self.offset_y = y

    def zoom_by(self, delta: float) -> float:
        """Change zoom by ``delta``, clamped to the bounds. Returns the new zoom."""
        self.zoom = self._clamp(self.zoom + delta)
        return self.zoom

    def zoom_in(self) -> float:
        return self.zoom_by(self.zoom_step)

    def zoom_out(self) -> float:
        return self.zoom_by(-self.zoom_step)

    def handle_wheel(self, dx: float, dy: float, modifier: bool = False) -> None:
        """
        Apply a wheel event.

        With a modifier (ctrl/meta, or a pinch gesture) the wheel zooms: scrolling
        down zooms out and scrolling up zooms in. Without one it pans the view
        against the scroll direction.
        """
        if modifier:
            if dy == 0:
                return
            self.zoom_by(-self.zoom_step if dy > 0 else self.zoom_step)
        else:
            self.pan(-dx, -dy)

    def resize(self, width: float, height: float) -> None:
        """Record the canvas client size after a window resize."""
        if width <= 0 or height <= 0:
            logger.debug("ignoring degenerate viewport size %sx%s", width, height)
            return
        self.width = width
        self.height = height

    def set_origin(self, x: float, y: float) -> None:
        self.origin_x = x
        self.origin_y = y

    def reset(self) -> None:
        """Back to no pan and 100% zoom."""
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.zoom = self._clamp(1.0)


# Controller name used by the interaction and minimap code
ViewportController = Viewport
