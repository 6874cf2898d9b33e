"""
Tests for the tracer module.

These tests verify the debug tracing used to capture the events an
InteractionController handles and the state transitions they cause.
"""

from orgcanvas.interaction import MoveNodes, SetSelection
from orgcanvas.tracer import InteractionTrace, TransitionRecord


class TestTransitionRecord:
    """Tests for TransitionRecord dataclass."""

    def test_creation(self):
        record = TransitionRecord("pointer_down", (10, 20), "Idle", "SelectingBox")
        assert record.event == "pointer_down"
        assert record.args == (10, 20)
        assert record.intents == []
        assert record.changed_state is True

    def test_str_without_transition(self):
        record = TransitionRecord("wheel", (0, 5, False), "Idle", "Idle")
        result = str(record)
        assert result.startswith("wheel")
        assert "->" not in result

    def test_str_with_intents(self):
        record = TransitionRecord(
            "pointer_up",
            (5, 5),
            "SelectingBox",
            "Idle",
            [SetSelection(frozenset({1}))],
        )
        result = str(record)
        assert "SelectingBox -> Idle" in result
        assert "SetSelection" in result


class TestInteractionTrace:
    """Tests for InteractionTrace."""

    def _trace(self):
        trace = InteractionTrace()
        trace.add(TransitionRecord("pointer_down", (0, 0), "Idle", "DraggingNodes"))
        trace.add(
            TransitionRecord(
                "pointer_move",
                (5, 0),
                "DraggingNodes",
                "DraggingNodes",
                [MoveNodes(((1, (5, 0)),))],
            )
        )
        trace.add(
            TransitionRecord(
                "pointer_up",
                (5, 0),
                "DraggingNodes",
                "Idle",
                [MoveNodes(((1, (5, 0)),))],
            )
        )
        return trace

    def test_get_transitions(self):
        trace = self._trace()
        assert trace.get_transitions() == [
            ("Idle", "DraggingNodes"),
            ("DraggingNodes", "Idle"),
        ]

    def test_get_intents(self):
        intents = self._trace().get_intents()
        assert len(intents) == 2
        assert all(isinstance(i, MoveNodes) for i in intents)

    def test_get_records_by_event(self):
        trace = self._trace()
        assert len(trace.get_records_by_event("pointer_move")) == 1
        assert trace.get_records_by_event("wheel") == []

    def test_summary(self):
        summary = self._trace().summary()
        assert "INTERACTION TRACE SUMMARY" in summary
        assert "Events handled: 3" in summary
        assert "State transitions: 2" in summary
        assert "MoveNodes: 2" in summary

    def test_dump_lists_every_record(self):
        dump = self._trace().dump()
        assert "pointer_down" in dump
        assert "DraggingNodes -> Idle" in dump

    def test_dump_to_file(self, tmp_path):
        path = tmp_path / "trace.txt"
        self._trace().dump_to_file(str(path))
        assert "INTERACTION TRACE SUMMARY" in path.read_text(encoding="utf-8")

    def test_clear(self):
        trace = self._trace()
        trace.clear()
        assert trace.records == []
