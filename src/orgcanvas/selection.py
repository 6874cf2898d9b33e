"""
Selection state for one chart view.

A selection is either a set of block ids or a single connection, never both.
Selecting blocks clears the connection and selecting a connection clears the
blocks.
"""

from typing import FrozenSet, Iterable, Optional, Tuple


class Selection:
    """Mutually exclusive block-set / single-edge selection."""

    def __init__(self):
        self._node_ids = frozenset()
        self._edge: Optional[Tuple[int, int]] = None

    @property
    def node_ids(self) -> FrozenSet[int]:
        return self._node_ids

    @property
    def edge(self) -> Optional[Tuple[int, int]]:
        return self._edge

    def __contains__(self, node_id) -> bool:
        return node_id in self._node_ids

    def __len__(self) -> int:
        return len(self._node_ids)

    def is_empty(self) -> bool:
        return not self._node_ids and self._edge is None

    def select_nodes(self, node_ids: Iterable) -> None:
        """Replace the selection with exactly these blocks."""
        self._node_ids = frozenset(node_ids)
        self._edge = None

    def select_node(self, node_id) -> None:
        self.select_nodes([node_id])

    def select_edge(self, parent_id, child_id) -> None:
        self._edge = (parent_id, child_id)
        self._node_ids = frozenset()

    def clear(self) -> None:
        self._node_ids = frozenset()
        self._edge = None

    def discard_nodes(self, node_ids: Iterable) -> None:
        """Forget deleted blocks, including an edge selection that touches them."""
        gone = set(node_ids)
        self._node_ids = self._node_ids - gone
        if self._edge is not None and gone.intersection(self._edge):
            self._edge = None

    def discard_edge(self, parent_id, child_id) -> None:
        if self._edge == (parent_id, child_id):
            self._edge = None

    def __repr__(self) -> str:
        if self._edge is not None:
            return f"Selection(edge={self._edge})"
        return f"Selection(nodes={sorted(self._node_ids, key=repr)})"
