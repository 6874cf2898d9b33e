"""
Minimap: a small overview of the whole chart.

The minimap is a projection of the chart and the viewport onto a square
surface. It never changes the chart; its only side effect is recentering the
main viewport when the user clicks or drags on it.
"""

from typing import Dict, List, Tuple

from PIL import Image, ImageDraw

from .models import NODE_HEIGHT, NODE_WIDTH, Point, Rect
from .viewport import Viewport

MINIMAP_SIZE = 150
MINIMAP_PADDING = 20

# World area shown when the chart has no blocks.
EMPTY_BOUNDS = Rect(0, 0, 1000, 600)


class Minimap:
    """Projects a GraphModel and Viewport onto a square overview."""

    def __init__(self, size: int = MINIMAP_SIZE, padding: float = MINIMAP_PADDING):
        if size <= 0:
            raise ValueError("minimap size must be positive")
        self.size = size
        self.padding = padding
        self.dragging = False

        self.bg_color = (250, 250, 250)
        self.node_color = (204, 204, 204)
        self.viewport_color = (33, 150, 243)

    def world_bounds(self, model) -> Rect:
        """Bounding box of every block at nominal size, plus padding."""
        nodes = model.nodes
        if not nodes:
            return EMPTY_BOUNDS

        min_x = min(n.x for n in nodes)
        min_y = min(n.y for n in nodes)
        max_x = max(n.x + NODE_WIDTH for n in nodes)
        max_y = max(n.y + NODE_HEIGHT for n in nodes)
        return Rect(
            min_x - self.padding,
            min_y - self.padding,
            max_x - min_x + 2 * self.padding,
            max_y - min_y + 2 * self.padding,
        )

    def scale(self, bounds: Rect) -> float:
        """Uniform scale mapping the larger world dimension onto the minimap."""
        return self.size / max(bounds.width, bounds.height)

    def world_to_minimap(self, bounds: Rect, x: float, y: float) -> Point:
        s = self.scale(bounds)
        return Point((x - bounds.x) * s, (y - bounds.y) * s)

    def minimap_to_world(self, bounds: Rect, mx: float, my: float) -> Point:
        s = self.scale(bounds)
        return Point(mx / s + bounds.x, my / s + bounds.y)

    def node_rects(self, model) -> Dict[int, Rect]:
        """Minimap rectangle of every block."""
        bounds = self.world_bounds(model)
        s = self.scale(bounds)
        rects = {}
        for node in model.nodes:
            corner = self.world_to_minimap(bounds, node.x, node.y)
            rects[node.id] = Rect(corner.x, corner.y, NODE_WIDTH * s, NODE_HEIGHT * s)
        return rects

    def viewport_rect(self, model, viewport: Viewport) -> Rect:
        """Minimap rectangle of the area visible on the main canvas."""
        bounds = self.world_bounds(model)
        s = self.scale(bounds)
        visible = viewport.visible_world_rect()
        corner = self.world_to_minimap(bounds, visible.x, visible.y)
        return Rect(corner.x, corner.y, visible.width * s, visible.height * s)

    def navigate(self, model, viewport: Viewport, mx: float, my: float) -> Tuple[float, float]:
        """
        Recenter the main view on the world point under a minimap click.

        Returns:
            The new viewport offset.
        """
        world = self.minimap_to_world(self.world_bounds(model), mx, my)
        offset_x = viewport.width / 2 - world.x * viewport.zoom
        offset_y = viewport.height / 2 - world.y * viewport.zoom
        viewport.set_offset(offset_x, offset_y)
        return offset_x, offset_y

    def pointer_down(self, model, viewport: Viewport, mx: float, my: float):
        self.dragging = True
        return self.navigate(model, viewport, mx, my)

    def pointer_move(self, model, viewport: Viewport, mx: float, my: float):
        if not self.dragging:
            return None
        return self.navigate(model, viewport, mx, my)

    def pointer_up(self) -> None:
        self.dragging = False

    def render(self, model, viewport: Viewport) -> Image.Image:
        """Draw the minimap: grey block rectangles and an outlined viewport."""
        img = Image.new("RGB", (self.size, self.size), self.bg_color)
        draw = ImageDraw.Draw(img)

        for rect in self.node_rects(model).values():
            draw.rectangle(self._box(rect), fill=self.node_color)

        draw.rectangle(
            self._box(self.viewport_rect(model, viewport)),
            outline=self.viewport_color,
            width=2,
        )
        return img

    @staticmethod
    def _box(rect: Rect) -> List[float]:
        return [rect.x, rect.y, rect.right, rect.bottom]
