"""
Graph module for organization charts.

Provides the mutable node/edge store for one chart and enforces its structural
invariants:

- node ids are unique and never reused while the model lives;
- at most one edge per ordered (parent, child) pair, and no self-loops;
- deleting a node deletes every edge that references it;
- every mutation is one atomic state transition with exactly one listener
  notification, so batched moves never show partially-applied states.

Operations that name a node or edge which no longer exists are silent no-ops.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import networkx as nx

from .models import (
    ANCHOR_GAP,
    NODE_FIELDS,
    Chart,
    Edge,
    Node,
    Relation,
    Side,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphChange:
    """
    Notification payload sent to listeners after each mutation.

    Attributes:
        kind: One of "nodes_added", "nodes_updated", "nodes_moved",
              "nodes_deleted", "edge_added", "edges_deleted", "layout_applied".
        node_ids: Ids of the nodes touched by the mutation.
        edges: Edges added or removed by the mutation.
        version: Model version after the mutation.
    """

    kind: str
    node_ids: Tuple[int, ...] = ()
    edges: Tuple[Edge, ...] = ()
    version: int = 0


Listener = Callable[[GraphChange], None]


def normalize_direction(
    source: Node, target: Node, source_side, target_side
) -> Tuple[int, int]:
    """
    Decide which block is the parent of a connection dragged between handles.

    The user drags from a handle on ``source`` to a handle on ``target``.
    Bottom-to-top keeps the drag direction, top-to-bottom reverses it, and
    when both handles are on the same side the visually lower block (larger y)
    becomes the child.

    Args:
        source: Block the drag started on.
        target: Block the drag ended on.
        source_side: Handle side on the source block.
        target_side: Handle side on the target block.

    Returns:
        (parent_id, child_id)
    """
    source_side = Side.coerce(source_side)
    target_side = Side.coerce(target_side)

    if source_side is Side.BOTTOM and target_side is Side.TOP:
        return source.id, target.id
    if source_side is Side.TOP and target_side is Side.BOTTOM:
        return target.id, source.id

    # Same side on both ends: lower block is the child
    if source.y > target.y:
        return target.id, source.id
    return source.id, target.id


class GraphModel:
    """Nodes and directed edges of a single chart."""

    def __init__(self, nodes: Iterable[Node] = (), edges: Iterable[Edge] = ()):
        self._nodes: Dict[int, Node] = {}
        self._edges: List[Edge] = []
        self._edge_keys = set()
        self._listeners: List[Listener] = []
        self.version = 0
        self._last_id = 0

        for node in nodes:
            self._nodes[node.id] = node
        self._last_id = max(
            (nid for nid in self._nodes if isinstance(nid, int)), default=0
        )
        # Loaded edges are trusted; only dangling references are dropped.
        for edge in edges:
            if edge.key in self._edge_keys:
                continue
            if edge.parent_id in self._nodes and edge.child_id in self._nodes:
                self._edges.append(edge)
                self._edge_keys.add(edge.key)

    @classmethod
    def from_chart(cls, chart: Chart) -> "GraphModel":
        return cls([replace(n) for n in chart.nodes], chart.edges)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called once per mutation.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(
        self, kind: str, node_ids: Iterable[int] = (), edges: Iterable[Edge] = ()
    ) -> GraphChange:
        self.version += 1
        change = GraphChange(kind, tuple(node_ids), tuple(edges), self.version)
        for listener in list(self._listeners):
            listener(change)
        return change

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def nodes(self) -> List[Node]:
        """Blocks in insertion order."""
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        """Connections in insertion order."""
        return list(self._edges)

    @property
    def node_ids(self) -> List[int]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id) -> Optional[Node]:
        return self._nodes.get(node_id)

    def has_edge(self, parent_id, child_id) -> bool:
        return (parent_id, child_id) in self._edge_keys

    def get_edge(self, parent_id, child_id) -> Optional[Edge]:
        for edge in self._edges:
            if edge.key == (parent_id, child_id):
                return edge
        return None

    def edges_of(self, node_id) -> List[Edge]:
        """Edges where the node is either parent or child."""
        return [e for e in self._edges if e.touches(node_id)]

    def children_of(self, node_id) -> List[int]:
        return [e.child_id for e in self._edges if e.parent_id == node_id]

    def parents_of(self, node_id) -> List[int]:
        return [e.parent_id for e in self._edges if e.child_id == node_id]

    def roots(self) -> List[int]:
        """Blocks with no incoming edge, in insertion order."""
        children = {e.child_id for e in self._edges}
        return [nid for nid in self._nodes if nid not in children]

    def to_networkx(self) -> nx.DiGraph:
        """Directed graph view; node and edge order follow insertion order."""
        graph = nx.DiGraph()
        graph.add_nodes_from(self._nodes)
        for edge in self._edges:
            graph.add_edge(
                edge.parent_id,
                edge.child_id,
                from_side=edge.from_side.value,
                to_side=edge.to_side.value,
            )
        return graph

    def to_chart(self, chart_id, name: str = "", created_at: str = None) -> Chart:
        """Copy the current state into a Chart record."""
        chart = Chart(
            id=chart_id,
            name=name,
            nodes=[replace(n) for n in self._nodes.values()],
            edges=list(self._edges),
        )
        if created_at:
            chart.created_at = created_at
        return chart

    def _next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    # ------------------------------------------------------------------
    # Node mutations
    # ------------------------------------------------------------------
    def add_node(
        self,
        payload: Optional[Dict] = None,
        anchor: Optional[Tuple[int, object]] = None,
        position: Optional[Tuple[float, float]] = None,
    ) -> int:
        """
        Add a block, optionally connected to a reference block.

        Args:
            payload: Display fields (name, title, group_name, comment, image,
                     color). Unknown keys are ignored.
            anchor: Optional (reference_id, relation). With relation "parent"
                    the new block is placed 150 units above the reference and
                    becomes its parent; with "child" it is placed below and
                    becomes its child.
            position: Explicit (x, y) used when there is no usable anchor.

        Returns:
            The id of the new block.
        """
        fields_ = {k: v for k, v in (payload or {}).items() if k in NODE_FIELDS}

        reference = None
        relation = None
        if anchor is not None:
            reference_id, relation_value = anchor
            try:
                relation = Relation(getattr(relation_value, "value", relation_value))
            except ValueError:
                logger.debug("unknown anchor relation %r; adding unanchored", relation_value)
            else:
                reference = self._nodes.get(reference_id)
                if reference is None:
                    logger.debug("anchor %r not found; adding unanchored", reference_id)

        node = Node(id=self._next_id(), **fields_)

        if reference is not None:
            node.x = reference.x
            if relation is Relation.PARENT:
                node.y = reference.y - ANCHOR_GAP
            else:
                node.y = reference.y + ANCHOR_GAP
        elif position is not None:
            node.x, node.y = position

        self._nodes[node.id] = node

        added_edges = []
        if reference is not None:
            if relation is Relation.PARENT:
                edge = Edge(node.id, reference.id)
            else:
                edge = Edge(reference.id, node.id)
            self._edges.append(edge)
            self._edge_keys.add(edge.key)
            added_edges.append(edge)

        self._commit("nodes_added", [node.id], added_edges)
        return node.id

    def update_node(self, node_id, **changes) -> bool:
        """
        Partially update a block.

        Returns:
            True if the block existed and was updated.
        """
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("update_node: %r not found", node_id)
            return False

        for key, value in changes.items():
            if key in NODE_FIELDS:
                setattr(node, key, value)

        self._commit("nodes_updated", [node_id])
        return True

    def set_collapsed(self, node_id, collapsed: bool) -> bool:
        return self.update_node(node_id, collapsed=bool(collapsed))

    def toggle_collapsed(self, node_id) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        return self.update_node(node_id, collapsed=not node.collapsed)

    def delete_node(self, node_id) -> bool:
        """Remove a block and every edge touching it."""
        return self.delete_nodes([node_id]) > 0

    def delete_nodes(self, node_ids: Iterable) -> int:
        """
        Remove several blocks and their incident edges in one transition.

        Returns:
            Number of blocks actually removed.
        """
        doomed = [nid for nid in dict.fromkeys(node_ids) if nid in self._nodes]
        if not doomed:
            logger.debug("delete_nodes: nothing to delete")
            return 0

        doomed_set = set(doomed)
        removed_edges = [
            e
            for e in self._edges
            if e.parent_id in doomed_set or e.child_id in doomed_set
        ]
        self._edges = [e for e in self._edges if e not in removed_edges]
        for edge in removed_edges:
            self._edge_keys.discard(edge.key)
        for nid in doomed:
            del self._nodes[nid]

        self._commit("nodes_deleted", doomed, removed_edges)
        return len(doomed)

    def move_nodes(self, updates: Dict[int, Tuple[float, float]]) -> int:
        """
        Move several blocks in one atomic step.

        Listeners see either none or all of the moves. Ids that no longer
        exist are skipped.

        Args:
            updates: Mapping of node id to new (x, y).

        Returns:
            Number of blocks moved.
        """
        moved = []
        for node_id, (x, y) in updates.items():
            node = self._nodes.get(node_id)
            if node is None:
                continue
            node.x = x
            node.y = y
            moved.append(node_id)

        if not moved:
            return 0
        self._commit("nodes_moved", moved)
        return len(moved)

    def apply_layout(self, positions: Dict[int, Tuple[float, float]]) -> int:
        """
        Apply layout output: move blocks and expand every block at once.

        Blocks absent from ``positions`` keep their coordinates.
        """
        for node in self._nodes.values():
            node.collapsed = False
            if node.id in positions:
                node.x, node.y = positions[node.id]

        self._commit("layout_applied", list(self._nodes))
        return len(positions)

    # ------------------------------------------------------------------
    # Edge mutations
    # ------------------------------------------------------------------
    def add_edge(
        self, source_id, target_id, source_side="bottom", target_side="top"
    ) -> Optional[Edge]:
        """
        Connect two blocks, normalizing direction first.

        Returns:
            The new Edge, or None when the request was a self-loop, named a
            missing block, or duplicated an existing edge.
        """
        if source_id == target_id:
            logger.debug("add_edge: self-loop on %r ignored", source_id)
            return None

        source = self._nodes.get(source_id)
        target = self._nodes.get(target_id)
        if source is None or target is None:
            logger.debug("add_edge: missing node %r or %r", source_id, target_id)
            return None

        parent_id, child_id = normalize_direction(
            source, target, source_side, target_side
        )
        if (parent_id, child_id) in self._edge_keys:
            logger.debug("add_edge: %r -> %r already exists", parent_id, child_id)
            return None

        edge = Edge(parent_id, child_id, Side.BOTTOM, Side.TOP)
        self._edges.append(edge)
        self._edge_keys.add(edge.key)
        self._commit("edge_added", edge.key, [edge])
        return edge

    def delete_edge(self, parent_id, child_id) -> bool:
        edge = self.get_edge(parent_id, child_id)
        if edge is None:
            logger.debug("delete_edge: %r -> %r not found", parent_id, child_id)
            return False

        self._edges.remove(edge)
        self._edge_keys.discard(edge.key)
        self._commit("edges_deleted", edge.key, [edge])
        return True
