"""Unit tests for the graph module."""

import networkx as nx

from orgcanvas import Edge, GraphModel, Node, Side, normalize_direction


class TestAddNode:
    """Tests for GraphModel.add_node."""

    def test_add_node_default_position(self, model):
        """Unanchored block without position lands at the default spot."""
        node_id = model.add_node({"name": "Ada"})
        node = model.get_node(node_id)
        assert (node.x, node.y) == (50, 50)
        assert node.name == "Ada"
        assert model.edges == []

    def test_add_node_explicit_position(self, model):
        """Explicit position is used when there is no anchor."""
        node_id = model.add_node(position=(120, 340))
        node = model.get_node(node_id)
        assert (node.x, node.y) == (120, 340)

    def test_ids_are_unique_and_increasing(self, model):
        """Each new block gets a fresh id."""
        first = model.add_node()
        second = model.add_node()
        assert second > first
        model.delete_node(second)
        third = model.add_node()
        assert third not in (first, second)
        assert len(model) == 2

    def test_unknown_payload_keys_ignored(self, model):
        """Keys that are not block fields are dropped."""
        node_id = model.add_node({"name": "Ada", "favourite_food": "soup"})
        assert not hasattr(model.get_node(node_id), "favourite_food")

    def test_anchor_child(self, model):
        """Child anchor places the block below and links reference -> new."""
        ref = model.add_node(position=(100, 100))
        new = model.add_node({"name": "Report"}, anchor=(ref, "child"))
        node = model.get_node(new)
        assert (node.x, node.y) == (100, 250)
        assert model.has_edge(ref, new)
        assert not model.has_edge(new, ref)

    def test_anchor_parent(self, model):
        """Parent anchor places the block above and links new -> reference."""
        ref = model.add_node(position=(100, 300))
        new = model.add_node(anchor=(ref, "parent"))
        node = model.get_node(new)
        assert (node.x, node.y) == (100, 150)
        assert model.has_edge(new, ref)

    def test_anchor_unknown_relation(self, model):
        """An unrecognised relation behaves like no anchor and uses no extra id."""
        ref = model.add_node(position=(100, 100))
        new = model.add_node({"name": "x"}, anchor=(ref, "sibling"))
        node = model.get_node(new)
        assert new == ref + 1
        assert (node.x, node.y) == (50, 50)
        assert model.edges == []

    def test_anchor_missing_reference(self, model):
        """Anchor naming a missing block behaves like no anchor."""
        new = model.add_node(anchor=(999, "child"))
        assert model.get_node(new) is not None
        assert model.edges == []


class TestUpdateNode:
    """Tests for partial updates."""

    def test_partial_update(self, model):
        node_id = model.add_node({"name": "Ada", "title": "CEO"})
        assert model.update_node(node_id, title="Chair") is True
        node = model.get_node(node_id)
        assert node.title == "Chair"
        assert node.name == "Ada"

    def test_update_missing_is_noop(self, model):
        version = model.version
        assert model.update_node(42, name="Nobody") is False
        assert model.version == version

    def test_update_cannot_change_id(self, model):
        node_id = model.add_node()
        model.update_node(node_id, id=99)
        assert model.get_node(node_id).id == node_id

    def test_toggle_collapsed(self, model):
        node_id = model.add_node()
        model.toggle_collapsed(node_id)
        assert model.get_node(node_id).collapsed is True
        model.toggle_collapsed(node_id)
        assert model.get_node(node_id).collapsed is False


class TestDeleteNode:
    """Tests for cascading deletes."""

    def test_cascade_removes_incident_edges(self):
        """Deleting a block removes every edge where it is parent or child."""
        model = GraphModel(
            [Node(1), Node(2), Node(3), Node(4)],
            [Edge(1, 2), Edge(2, 3), Edge(4, 2), Edge(1, 4)],
        )
        assert model.delete_node(2) is True
        assert 2 not in model
        assert [e.key for e in model.edges] == [(1, 4)]

    def test_delete_missing_is_noop(self, model):
        model.add_node()
        assert model.delete_node(999) is False
        assert len(model) == 1

    def test_delete_nodes_single_notification(self):
        """Batched delete notifies listeners once."""
        model = GraphModel([Node(1), Node(2), Node(3)], [Edge(1, 2)])
        changes = []
        model.subscribe(changes.append)
        assert model.delete_nodes([1, 2, 77]) == 2
        assert len(changes) == 1
        assert changes[0].kind == "nodes_deleted"
        assert set(changes[0].node_ids) == {1, 2}
        assert [e.key for e in changes[0].edges] == [(1, 2)]


class TestNormalizeDirection:
    """Tests for connection direction normalization."""

    def test_bottom_to_top_keeps_direction(self):
        source, target = Node(1, y=500), Node(2, y=0)
        assert normalize_direction(source, target, "bottom", "top") == (1, 2)

    def test_top_to_bottom_reverses(self):
        source, target = Node(1, y=0), Node(2, y=500)
        assert normalize_direction(source, target, "top", "bottom") == (2, 1)

    def test_same_side_lower_block_is_child(self):
        upper, lower = Node(1, y=0), Node(2, y=300)
        assert normalize_direction(upper, lower, "top", "top") == (1, 2)
        assert normalize_direction(lower, upper, "top", "top") == (1, 2)
        assert normalize_direction(upper, lower, Side.BOTTOM, Side.BOTTOM) == (1, 2)
        assert normalize_direction(lower, upper, Side.BOTTOM, Side.BOTTOM) == (1, 2)

    def test_same_side_equal_height_keeps_source_as_parent(self):
        a, b = Node(1, y=100), Node(2, y=100)
        assert normalize_direction(a, b, "top", "top") == (1, 2)


class TestAddEdge:
    """Tests for GraphModel.add_edge."""

    def test_duplicate_edge_is_idempotent(self):
        model = GraphModel([Node(1, y=0), Node(2, y=200)])
        first = model.add_edge(1, 2, "bottom", "top")
        second = model.add_edge(1, 2, "bottom", "top")
        assert first is not None
        assert second is None
        assert len(model.edges) == 1

    def test_duplicate_after_normalization(self):
        """A reversed drag that normalizes to an existing edge is ignored."""
        model = GraphModel([Node(1, y=0), Node(2, y=200)])
        model.add_edge(1, 2, "bottom", "top")
        assert model.add_edge(2, 1, "top", "bottom") is None
        assert [e.key for e in model.edges] == [(1, 2)]

    def test_self_loop_rejected(self):
        model = GraphModel([Node(1)])
        assert model.add_edge(1, 1, "bottom", "top") is None
        assert model.edges == []

    def test_missing_node_rejected(self):
        model = GraphModel([Node(1)])
        assert model.add_edge(1, 2) is None

    def test_stored_sides_are_parent_bottom_child_top(self):
        model = GraphModel([Node(1, y=0), Node(2, y=200)])
        edge = model.add_edge(2, 1, "top", "top")
        assert edge.key == (1, 2)
        assert edge.from_side is Side.BOTTOM
        assert edge.to_side is Side.TOP

    def test_reverse_pair_is_a_different_edge(self):
        """(1, 2) and (2, 1) are distinct ordered pairs."""
        model = GraphModel([Node(1, y=0), Node(2, y=200)])
        model.add_edge(1, 2, "bottom", "top")
        assert model.add_edge(2, 1, "bottom", "top") is not None
        assert len(model.edges) == 2


class TestDeleteEdge:
    def test_exact_match_removal(self):
        model = GraphModel([Node(1), Node(2)], [Edge(1, 2)])
        assert model.delete_edge(2, 1) is False
        assert model.delete_edge(1, 2) is True
        assert model.edges == []


class TestMoveNodes:
    """Tests for batched moves."""

    def test_batched_move_single_notification(self):
        """Listeners see all three blocks moved in one change."""
        model = GraphModel([Node(1, x=0, y=0), Node(2, x=10, y=10), Node(3, x=20, y=20)])
        seen = []

        def listener(change):
            seen.append({n.id: (n.x, n.y) for n in model.nodes})

        model.subscribe(listener)
        model.move_nodes({1: (5, 7), 2: (15, 17), 3: (25, 27)})
        assert seen == [{1: (5, 7), 2: (15, 17), 3: (25, 27)}]

    def test_missing_ids_skipped(self):
        model = GraphModel([Node(1, x=0, y=0)])
        assert model.move_nodes({1: (3, 4), 9: (1, 1)}) == 1
        assert model.get_node(1).position.x == 3

    def test_nothing_to_move_no_notification(self):
        model = GraphModel([Node(1)])
        changes = []
        model.subscribe(changes.append)
        assert model.move_nodes({5: (0, 0)}) == 0
        assert changes == []


class TestQueries:
    """Tests for read-only helpers."""

    def test_children_parents_roots(self):
        model = GraphModel(
            [Node(1), Node(2), Node(3), Node(4)], [Edge(1, 2), Edge(1, 3), Edge(4, 3)]
        )
        assert model.children_of(1) == [2, 3]
        assert model.parents_of(3) == [1, 4]
        assert model.roots() == [1, 4]

    def test_to_networkx(self):
        model = GraphModel([Node(1), Node(2), Node(3)], [Edge(1, 2), Edge(2, 3)])
        graph = model.to_networkx()
        assert isinstance(graph, nx.DiGraph)
        assert list(graph.nodes) == [1, 2, 3]
        assert list(graph.edges) == [(1, 2), (2, 3)]
        assert graph.edges[1, 2]["from_side"] == "bottom"

    def test_loaded_dangling_and_duplicate_edges_dropped(self):
        model = GraphModel([Node(1), Node(2)], [Edge(1, 2), Edge(1, 2), Edge(1, 5)])
        assert [e.key for e in model.edges] == [(1, 2)]

    def test_unsubscribe(self, model):
        changes = []
        unsubscribe = model.subscribe(changes.append)
        model.add_node()
        unsubscribe()
        model.add_node()
        assert len(changes) == 1
