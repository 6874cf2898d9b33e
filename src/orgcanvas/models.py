"""
Data models for organization charts.

This module contains the dataclasses that describe a chart as the rest of the
library sees it: blocks (nodes), connections (edges), the chart record that
groups them, and the small geometric value types shared by the layout,
viewport and interaction code.

Classes:
    Side: Attachment side of a connection handle (top or bottom).
    Relation: Where a new block goes relative to a reference block.
    Point: A 2D point in world or screen units.
    Size: A width/height pair.
    Rect: Axis-aligned rectangle with top-left anchor.
    Node: A positioned, labeled block.
    Edge: A directed parent -> child connection.
    Chart: A named organigram holding nodes and edges.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Nominal block dimensions (world units), used wherever no measurement exists.
NODE_WIDTH = 200
NODE_HEIGHT = 100

# Vertical distance at which a block added relative to another is seeded.
ANCHOR_GAP = 150

# Where a block without an anchor or explicit position is placed.
DEFAULT_POSITION = (50, 50)

DEFAULT_COLOR = "#ffffff"

COLORS = [
    "#ffffff",
    "#e3f2fd",
    "#e8f5e9",
    "#fff3e0",
    "#fce4ec",
    "#f3e5f5",
    "#e0f2f1",
    "#fff9c4",
]


class Side(Enum):
    """Attachment side of a block's connection handle."""

    TOP = "top"
    BOTTOM = "bottom"

    @classmethod
    def coerce(cls, value) -> "Side":
        """Accept a Side or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"side must be 'top' or 'bottom', got {value!r}")

    def opposite(self) -> "Side":
        return Side.BOTTOM if self is Side.TOP else Side.TOP


class Relation(Enum):
    """Position of a new block relative to its reference block."""

    PARENT = "parent"
    CHILD = "child"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle anchored at its top-left corner.

    Attributes:
        x: Left edge.
        y: Top edge.
        width: Horizontal extent (never negative).
        height: Vertical extent (never negative).
    """

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, a: Point, b: Point) -> "Rect":
        """Build the rectangle spanned by two arbitrary corner points."""
        left = min(a.x, b.x)
        top = min(a.y, b.y)
        return cls(left, top, abs(b.x - a.x), abs(b.y - a.y))

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def intersects(self, other: "Rect") -> bool:
        """Open-interval overlap test; rectangles that only touch do not overlap."""
        return (
            self.x < other.right
            and self.right > other.x
            and self.y < other.bottom
            and self.bottom > other.y
        )

    def contains(self, point: Point) -> bool:
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom


@dataclass
class Node:
    """
    A block on the chart.

    The measured on-screen size is deliberately not stored here; it lives in
    the session's SizeCache because it is derived from rendering.

    Attributes:
        id: Unique identifier, stable for the lifetime of the chart.
        x: Left edge in world units.
        y: Top edge in world units.
        group_name: Group / department label.
        name: Person or unit name.
        title: Role title.
        comment: Free-text comment.
        image: Opaque image reference (e.g. a data URL), or None.
        color: Background color as a hex string.
        collapsed: Whether contained sub-blocks are hidden.
    """

    id: int
    x: float = DEFAULT_POSITION[0]
    y: float = DEFAULT_POSITION[1]
    group_name: str = ""
    name: str = ""
    title: str = ""
    comment: str = ""
    image: Optional[str] = None
    color: str = DEFAULT_COLOR
    collapsed: bool = False

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def label_lines(self) -> List[str]:
        """Non-empty display lines, top to bottom."""
        return [s for s in (self.group_name, self.name, self.title) if s]


# Fields a caller may change through GraphModel.update_node.
NODE_FIELDS = frozenset(f.name for f in fields(Node)) - {"id"}


@dataclass(frozen=True)
class Edge:
    """
    A directed connection from a parent block to a child block.

    Attributes:
        parent_id: Id of the parent (upper) block.
        child_id: Id of the child (lower) block.
        from_side: Side of the parent the line leaves from.
        to_side: Side of the child the line arrives at.
    """

    parent_id: int
    child_id: int
    from_side: Side = Side.BOTTOM
    to_side: Side = Side.TOP

    @property
    def key(self) -> Tuple[int, int]:
        return (self.parent_id, self.child_id)

    def touches(self, node_id: int) -> bool:
        return node_id in (self.parent_id, self.child_id)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Chart:
    """
    A named organigram as exchanged with the persistence layer.

    Attributes:
        id: Chart identifier.
        name: Display name.
        created_at: ISO-8601 creation timestamp.
        nodes: Blocks in insertion order.
        edges: Connections in insertion order.
    """

    id: int
    name: str = ""
    created_at: str = field(default_factory=_now_iso)
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Chart":
        """
        Build a Chart from a plain record.

        Accepts the keys the chart editor stores: ``blocks`` with camelCase
        payload keys and ``connections`` with ``from``/``to``/``fromPos``/
        ``toPos``. Missing optional keys take their defaults.

        Args:
            record: Dictionary as loaded from JSON or YAML.

        Returns:
            A new Chart.
        """
        nodes = []
        for block in record.get("blocks", []):
            nodes.append(
                Node(
                    id=block["id"],
                    x=block.get("x", DEFAULT_POSITION[0]),
                    y=block.get("y", DEFAULT_POSITION[1]),
                    group_name=block.get("groupName", ""),
                    name=block.get("name", ""),
                    title=block.get("title", ""),
                    comment=block.get("comment", ""),
                    image=block.get("image"),
                    color=block.get("color", DEFAULT_COLOR),
                    collapsed=bool(block.get("collapsed", False)),
                )
            )

        edges = []
        for conn in record.get("connections", []):
            edges.append(
                Edge(
                    parent_id=conn["from"],
                    child_id=conn["to"],
                    from_side=Side.coerce(conn.get("fromPos", "bottom")),
                    to_side=Side.coerce(conn.get("toPos", "top")),
                )
            )

        return cls(
            id=record["id"],
            name=record.get("name", ""),
            created_at=record.get("createdAt") or _now_iso(),
            nodes=nodes,
            edges=edges,
        )

    def to_record(self) -> Dict[str, Any]:
        """Inverse of from_record."""
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "blocks": [
                {
                    "id": n.id,
                    "groupName": n.group_name,
                    "name": n.name,
                    "title": n.title,
                    "comment": n.comment,
                    "image": n.image,
                    "color": n.color,
                    "x": n.x,
                    "y": n.y,
                    "collapsed": n.collapsed,
                }
                for n in self.nodes
            ],
            "connections": [
                {
                    "from": e.parent_id,
                    "to": e.child_id,
                    "fromPos": e.from_side.value,
                    "toPos": e.to_side.value,
                }
                for e in self.edges
            ],
        }
