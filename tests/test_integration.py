"""Integration tests driving a whole editing session."""

from orgcanvas import (
    Chart,
    ChartExporter,
    EditorSession,
    HitTarget,
    InteractionController,
    Minimap,
)
from orgcanvas.models import Point


class TestEditingScenarios:
    """End-to-end scenarios through the controller and session."""

    def test_connect_then_reset_layout(self):
        """Dragging a connection and resetting puts the orphan under its parent."""
        session = EditorSession()
        a = session.model.add_node({"name": "A"}, position=(0, 0))
        b = session.model.add_node({"name": "B"}, position=(400, 300))
        controller = InteractionController(session, snap_to_grid=False)

        # A's bottom handle is at (100, 100), B's top handle at (500, 300)
        controller.pointer_down(100, 100)
        controller.pointer_move(300, 200)
        controller.pointer_up(500, 300)

        assert session.model.has_edge(a, b)
        session.reset_layout()
        node_a, node_b = session.model.get_node(a), session.model.get_node(b)
        assert node_b.x == node_a.x
        assert node_b.y == node_a.y + 200

    def test_rubber_band_selects_only_overlapping(self, grid_session):
        controller = InteractionController(grid_session)
        controller.pointer_down(0, 0, HitTarget.empty())
        controller.pointer_move(300, 300)
        controller.pointer_up(300, 300)
        assert grid_session.selection.node_ids == {1}

    def test_batched_drag_single_notification(self, grid_session):
        """Dragging three selected blocks commits once per move event."""
        controller = InteractionController(grid_session, snap_to_grid=False)
        grid_session.selection.select_nodes([1, 2, 3])
        snapshots = []

        def listener(change):
            snapshots.append({n.id: (n.x, n.y) for n in grid_session.model.nodes})

        grid_session.model.subscribe(listener)
        controller.pointer_down(50, 50, HitTarget.node(1))
        controller.pointer_move(150, 50)

        assert snapshots == [{1: (110, 10), 2: (500, 400), 3: (800, 10)}]

    def test_selection_exclusivity(self, session):
        controller = InteractionController(session)
        controller.pointer_down(-10, -10, HitTarget.empty())
        controller.pointer_up(600, 300)
        assert session.selection.node_ids == {1, 2, 3}

        session.select_edge(1, 2)
        assert session.selection.node_ids == frozenset()

        controller.pointer_down(50, 50, HitTarget.node(1))
        controller.pointer_up(50, 50)
        assert session.selection.edge is None
        assert session.selection.node_ids == {1}

    def test_cascade_delete_clears_selection(self, session):
        session.select_edge(1, 3)
        session.model.delete_node(1)
        assert session.selection.is_empty()
        assert session.model.edges == []
        assert session.model.node_ids == [2, 3]


class TestChartLifecycle:
    def test_record_round_trip_after_edits(self, chart_record):
        session = EditorSession(Chart.from_record(chart_record))
        new = session.model.add_node({"name": "Barbara", "title": "Eng"}, anchor=(2, "child"))
        session.model.update_node(1, comment="founder")

        record = session.snapshot().to_record()
        reopened = EditorSession(Chart.from_record(record))

        assert reopened.model.node_ids == [1, 2, 3, new]
        assert reopened.model.get_node(1).comment == "founder"
        assert reopened.model.has_edge(2, new)
        assert reopened.snapshot().to_record() == record

    def test_build_layout_navigate_export(self, tmp_path):
        session = EditorSession()
        ceo = session.model.add_node({"name": "Ada", "title": "CEO"})
        for name in ("Grace", "Linus", "Barbara"):
            session.model.add_node({"name": name}, anchor=(ceo, "child"))
        result = session.reset_layout()
        assert result.roots == [ceo]

        minimap = Minimap()
        minimap.navigate(session.model, session.viewport, 75, 75)
        assert session.viewport.offset != Point(0, 0)

        path = ChartExporter().save_png(session, str(tmp_path / "org.png"))
        assert path.exists()
