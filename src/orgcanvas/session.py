"""
Editing session for one open chart.

The session is the explicit context passed to every interactive operation. It
bundles the chart's GraphModel with the state that belongs to the view rather
than to the chart record:

- the Viewport (pan/zoom);
- the Selection;
- the SizeCache of rendered block sizes;
- the layout engine used by "reset layout".

Switching charts resets view state; nothing else survives the switch.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .graph import GraphChange, GraphModel
from .layout import LayoutResult, TreeLayout, reset_layout
from .models import NODE_HEIGHT, NODE_WIDTH, Chart, Point, Rect, Side, Size
from .selection import Selection
from .viewport import Viewport

logger = logging.getLogger(__name__)

# Hit radius around a connection handle, in world units.
HANDLE_RADIUS = 8


class SizeCache:
    """
    Side table of measured block sizes, fed by the rendering layer.

    Blocks without a measurement report the nominal 200x100 size.
    """

    def __init__(self, default: Size = Size(NODE_WIDTH, NODE_HEIGHT)):
        self.default = default
        self._sizes: Dict[int, Size] = {}

    def update(self, node_id, width: float, height: float) -> bool:
        """Record a measurement. Returns False if nothing changed."""
        size = Size(width, height)
        if self._sizes.get(node_id) == size:
            return False
        self._sizes[node_id] = size
        return True

    def get(self, node_id) -> Size:
        return self._sizes.get(node_id, self.default)

    def measured(self, node_id) -> Optional[Size]:
        return self._sizes.get(node_id)

    def discard(self, node_id) -> None:
        self._sizes.pop(node_id, None)

    def clear(self) -> None:
        self._sizes.clear()

    def __contains__(self, node_id) -> bool:
        return node_id in self._sizes


class TargetKind(Enum):
    """What a pointer is over."""

    EMPTY = "empty"
    NODE = "node"
    HANDLE = "handle"
    ACTION = "action"  # quick-action / fold / attach buttons on a block


@dataclass(frozen=True)
class HitTarget:
    kind: TargetKind = TargetKind.EMPTY
    node_id: Optional[int] = None
    side: Optional[Side] = None

    @classmethod
    def empty(cls) -> "HitTarget":
        return cls()

    @classmethod
    def node(cls, node_id) -> "HitTarget":
        return cls(TargetKind.NODE, node_id)

    @classmethod
    def handle(cls, node_id, side) -> "HitTarget":
        return cls(TargetKind.HANDLE, node_id, Side.coerce(side))

    @classmethod
    def action(cls, node_id) -> "HitTarget":
        return cls(TargetKind.ACTION, node_id)


class EditorSession:
    """One chart opened for editing, plus its view state."""

    def __init__(
        self,
        chart: Optional[Chart] = None,
        viewport: Optional[Viewport] = None,
        layout_engine: Optional[TreeLayout] = None,
    ):
        self.viewport = viewport or Viewport()
        self.selection = Selection()
        self.sizes = SizeCache()
        self.layout_engine = layout_engine or TreeLayout()
        self.chart_id = None
        self.chart_name = ""
        self.created_at = None
        self.model = GraphModel()
        self._unsubscribe: Callable[[], None] = self.model.subscribe(self._on_change)

        if chart is not None:
            self.open(chart)

    def open(self, chart: Chart) -> None:
        """Load a chart, discarding the previous chart's view state."""
        self._unsubscribe()
        self.model = GraphModel.from_chart(chart)
        self._unsubscribe = self.model.subscribe(self._on_change)
        self.chart_id = chart.id
        self.chart_name = chart.name
        self.created_at = chart.created_at
        self.viewport.reset()
        self.selection.clear()
        self.sizes.clear()

    def snapshot(self) -> Chart:
        """Current chart state as a record for the persistence layer."""
        return self.model.to_chart(self.chart_id, self.chart_name, self.created_at)

    def _on_change(self, change: GraphChange) -> None:
        if change.kind == "nodes_deleted":
            self.selection.discard_nodes(change.node_ids)
            for node_id in change.node_ids:
                self.sizes.discard(node_id)
        elif change.kind == "edges_deleted":
            for edge in change.edges:
                self.selection.discard_edge(*edge.key)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def node_rect(self, node_id) -> Optional[Rect]:
        """World-space bounding box from position and last measured size."""
        node = self.model.get_node(node_id)
        if node is None:
            return None
        size = self.sizes.get(node_id)
        return Rect(node.x, node.y, size.width, size.height)

    def handle_point(self, node_id, side) -> Optional[Point]:
        """World position of a block's top or bottom connection handle."""
        rect = self.node_rect(node_id)
        if rect is None:
            return None
        if Side.coerce(side) is Side.TOP:
            return Point(rect.center.x, rect.y)
        return Point(rect.center.x, rect.bottom)

    def hit_test(self, wx: float, wy: float, radius: float = HANDLE_RADIUS) -> HitTarget:
        """
        Find what lies under a world point.

        Later blocks are drawn on top, so they are tested first. Handles win
        over the body of the same block.
        """
        for node in reversed(self.model.nodes):
            for side in (Side.TOP, Side.BOTTOM):
                handle = self.handle_point(node.id, side)
                if abs(handle.x - wx) <= radius and abs(handle.y - wy) <= radius:
                    return HitTarget.handle(node.id, side)
            if self.node_rect(node.id).contains(Point(wx, wy)):
                return HitTarget.node(node.id)
        return HitTarget.empty()

    def nodes_in_rect(self, rect: Rect):
        """Ids of blocks whose bounding box overlaps ``rect``."""
        return [
            node.id
            for node in self.model.nodes
            if self.node_rect(node.id).intersects(rect)
        ]

    # ------------------------------------------------------------------
    # Chart-level actions
    # ------------------------------------------------------------------
    def reset_layout(self) -> LayoutResult:
        result = reset_layout(self.model, self.layout_engine)
        if result.ignored_edges:
            logger.debug("layout ignored edges %s", result.ignored_edges)
        return result

    def delete_selected(self) -> int:
        """Delete the selected blocks, or the selected connection."""
        if self.selection.edge is not None:
            return int(self.model.delete_edge(*self.selection.edge))
        return self.model.delete_nodes(self.selection.node_ids)

    def select_edge(self, parent_id, child_id) -> bool:
        if not self.model.has_edge(parent_id, child_id):
            return False
        self.selection.select_edge(parent_id, child_id)
        return True
