"""
Tree layout for organization charts.

Uses networkx for:
- Graph representation of the spanning forest
- Cycle detection on the full edge set
- Pre/post-order traversal of each tree

The layout is a two-pass subtree-width algorithm. The bottom-up pass computes
how wide each block's subtree must be so its children fit side by side; the
top-down pass places each block centered over its children, one level per
fixed vertical step.

The edge set may be any directed graph. Layout runs over an explicit spanning
forest derived from it:
- the first incoming edge of a block (in insertion order) makes its parent,
  later incoming edges are reported in ``ignored_edges``;
- blocks only reachable through a cycle are attached by promoting the
  earliest-inserted block of that cycle to a root, and the edge into it is
  ignored as well.

Every block is therefore placed exactly once.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from .models import NODE_WIDTH, Edge

HORIZONTAL_GAP = 80
VERTICAL_SPACING = 200
LAYOUT_MARGIN = 50
ROOT_GAP_FACTOR = 3


@dataclass
class NodeLayout:
    """Represents a block's layout information."""

    id: int
    level: int = 0
    x: float = 0
    y: float = 0
    subtree_left: float = 0  # Left edge of the space reserved for the subtree
    subtree_width: float = 0


@dataclass
class LayoutResult:
    """Result of the layout algorithm."""

    nodes: Dict[int, NodeLayout] = field(default_factory=dict)
    roots: List[int] = field(default_factory=list)
    ignored_edges: List[Tuple[int, int]] = field(default_factory=list)
    has_cycles: bool = False

    @property
    def positions(self) -> Dict[int, Tuple[float, float]]:
        return {nid: (n.x, n.y) for nid, n in self.nodes.items()}

    @property
    def levels(self) -> Dict[int, int]:
        return {nid: n.level for nid, n in self.nodes.items()}

    @property
    def subtree_widths(self) -> Dict[int, float]:
        return {nid: n.subtree_width for nid, n in self.nodes.items()}


def _edge_pairs(edges: Iterable) -> List[Tuple[int, int]]:
    pairs = []
    for edge in edges:
        if isinstance(edge, Edge):
            pairs.append(edge.key)
        else:
            parent, child = edge
            pairs.append((parent, child))
    return pairs


class TreeLayout:
    """
    Two-pass subtree-width tree layout.

    The result depends only on the block ids, their order and the edges; prior
    positions are never consulted.
    """

    def __init__(
        self,
        node_width: float = NODE_WIDTH,
        horizontal_gap: float = HORIZONTAL_GAP,
        vertical_spacing: float = VERTICAL_SPACING,
        margin: float = LAYOUT_MARGIN,
        root_gap_factor: float = ROOT_GAP_FACTOR,
    ):
        """
        Initialize the layout engine.

        Args:
            node_width: Nominal width reserved for every block.
            horizontal_gap: Minimum gap between sibling subtrees.
            vertical_spacing: Distance between consecutive levels.
            margin: Left and top margin of the first root.
            root_gap_factor: Gap between root subtrees, in multiples of
                             horizontal_gap.
        """
        self.node_width = node_width
        self.horizontal_gap = horizontal_gap
        self.vertical_spacing = vertical_spacing
        self.margin = margin
        self.root_gap_factor = root_gap_factor
        self.forest: Optional[nx.DiGraph] = None

    def layout(self, node_ids: Sequence, edges: Iterable) -> LayoutResult:
        """
        Compute positions for every block.

        Args:
            node_ids: Block ids in insertion order.
            edges: Edge objects or (parent, child) tuples in insertion order.

        Returns:
            LayoutResult with one NodeLayout per block.
        """
        node_ids = list(dict.fromkeys(node_ids))
        pairs = _edge_pairs(edges)

        result = LayoutResult()
        if not node_ids:
            return result

        known = set(node_ids)
        full = nx.DiGraph()
        full.add_nodes_from(node_ids)
        full.add_edges_from(
            (p, c) for p, c in pairs if p in known and c in known and p != c
        )
        result.has_cycles = not nx.is_directed_acyclic_graph(full)

        self.forest, result.roots, result.ignored_edges = self._build_forest(
            node_ids, pairs
        )
        widths = self._compute_widths(result.roots)
        self._place(result, widths)
        return result

    def _build_forest(
        self, node_ids: List, pairs: List[Tuple[int, int]]
    ) -> Tuple[nx.DiGraph, List, List[Tuple[int, int]]]:
        """Derive the spanning forest, its roots and the edges left out."""
        known = set(node_ids)
        order = {nid: i for i, nid in enumerate(node_ids)}
        parent_of: Dict = {}
        children_of: Dict = {nid: [] for nid in node_ids}
        ignored: List[Tuple[int, int]] = []

        for parent, child in pairs:
            if parent not in known or child not in known or parent == child:
                ignored.append((parent, child))
                continue
            if child in parent_of:
                ignored.append((parent, child))
                continue
            parent_of[child] = parent
            children_of[parent].append(child)

        roots = [nid for nid in node_ids if nid not in parent_of]
        reached: Set = set()
        for root in roots:
            self._mark_reachable(root, children_of, reached)

        # Whatever is left hangs off a cycle
        for nid in node_ids:
            if nid in reached:
                continue
            cycle = self._find_cycle(nid, parent_of)
            promoted = min(cycle, key=order.__getitem__)
            old_parent = parent_of.pop(promoted)
            children_of[old_parent].remove(promoted)
            ignored.append((old_parent, promoted))
            roots.append(promoted)
            self._mark_reachable(promoted, children_of, reached)

        forest = nx.DiGraph()
        forest.add_nodes_from(node_ids)
        for nid in node_ids:
            for child in children_of[nid]:
                forest.add_edge(nid, child)

        return forest, roots, ignored

    @staticmethod
    def _mark_reachable(start, children_of: Dict, reached: Set) -> None:
        stack = [start]
        while stack:
            nid = stack.pop()
            if nid in reached:
                continue
            reached.add(nid)
            stack.extend(children_of[nid])

    @staticmethod
    def _find_cycle(start, parent_of: Dict) -> List:
        """Follow parent links from ``start`` until a block repeats."""
        path: List = []
        seen: Dict = {}
        nid = start
        while nid not in seen:
            seen[nid] = len(path)
            path.append(nid)
            nid = parent_of[nid]
        return path[seen[nid]:]

    def _compute_widths(self, roots: List) -> Dict:
        """Bottom-up pass: width of every subtree."""
        widths: Dict = {}
        gap = self.horizontal_gap

        for root in roots:
            for nid in nx.dfs_postorder_nodes(self.forest, root):
                children = list(self.forest.successors(nid))
                if not children:
                    widths[nid] = self.node_width
                    continue
                combined = sum(widths[c] for c in children) + gap * (len(children) - 1)
                widths[nid] = max(self.node_width, combined)

        return widths

    def _place(self, result: LayoutResult, widths: Dict) -> None:
        """Top-down pass: assign coordinates, root subtrees left to right."""
        gap = self.horizontal_gap
        cursor = self.margin

        for root in result.roots:
            stack = [(root, cursor, 0)]
            while stack:
                nid, left, level = stack.pop()
                width = widths[nid]
                result.nodes[nid] = NodeLayout(
                    id=nid,
                    level=level,
                    x=left + (width - self.node_width) / 2,
                    y=self.margin + level * self.vertical_spacing,
                    subtree_left=left,
                    subtree_width=width,
                )

                children = list(self.forest.successors(nid))
                if not children:
                    continue
                combined = sum(widths[c] for c in children) + gap * (len(children) - 1)
                child_left = left + (width - combined) / 2
                placements = []
                for child in children:
                    placements.append((child, child_left, level + 1))
                    child_left += widths[child] + gap
                # Reversed so the leftmost child is popped first
                stack.extend(reversed(placements))

            cursor += widths[root] + gap * self.root_gap_factor


def compute_layout(model, engine: Optional[TreeLayout] = None) -> LayoutResult:
    """
    Compute a layout for a GraphModel without changing it.

    Args:
        model: GraphModel to lay out.
        engine: Optional configured TreeLayout.

    Returns:
        LayoutResult
    """
    engine = engine or TreeLayout()
    return engine.layout(model.node_ids, model.edges)


def reset_layout(model, engine: Optional[TreeLayout] = None) -> LayoutResult:
    """
    Lay out the chart and apply it: one batched move that also expands every
    collapsed block.
    """
    result = compute_layout(model, engine)
    model.apply_layout(result.positions)
    return result
