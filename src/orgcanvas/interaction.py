"""
Pointer interaction state machine for the chart canvas.

The controller owns exactly one state value at a time:

    Idle, Panning, DraggingNodes, DraggingConnection, SelectingBox

Each state is a frozen dataclass, so "one active mode" is a property of the
type rather than a set of flags kept in sync by convention. Every pointer-up
returns to Idle, and a move event is handled only by the active state.

Handlers never touch the chart directly. They build intents (MoveNodes,
CreateEdge, SetSelection, PanViewport) and apply them to the EditorSession,
returning the applied intents to the caller.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from .models import Point, Rect, Side
from .session import EditorSession, HitTarget, TargetKind
from .tracer import InteractionTrace, TransitionRecord

logger = logging.getLogger(__name__)

GRID_SIZE = 20


class Button(Enum):
    PRIMARY = 0
    MIDDLE = 1
    SECONDARY = 2


# ----------------------------------------------------------------------
# States
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Panning:
    """Dragging the view; ``last_x``/``last_y`` is the previous screen point."""

    last_x: float
    last_y: float


@dataclass(frozen=True)
class DraggingNodes:
    """
    Moving one or more blocks.

    Attributes:
        pressed_id: Block the pointer went down on.
        start_x: Screen x at press.
        start_y: Screen y at press.
        initial: World positions of every dragged block at press.
        moved: Whether any motion happened since the press.
    """

    pressed_id: int
    start_x: float
    start_y: float
    initial: Dict[int, Tuple[float, float]] = field(default_factory=dict)
    moved: bool = False


@dataclass(frozen=True)
class DraggingConnection:
    """Rubber-band line from a block's handle to the pointer (world units)."""

    source_id: int
    source_side: Side
    start: Point
    current: Point


@dataclass(frozen=True)
class SelectingBox:
    """Rubber-band selection rectangle between two world points."""

    anchor: Point
    current: Point

    @property
    def rect(self) -> Rect:
        return Rect.from_corners(self.anchor, self.current)


State = Union[Idle, Panning, DraggingNodes, DraggingConnection, SelectingBox]


# ----------------------------------------------------------------------
# Intents
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MoveNodes:
    positions: Tuple[Tuple[int, Tuple[float, float]], ...]

    def apply(self, session: EditorSession):
        return session.model.move_nodes(dict(self.positions))


@dataclass(frozen=True)
class CreateEdge:
    source_id: int
    target_id: int
    source_side: Side
    target_side: Side

    def apply(self, session: EditorSession):
        return session.model.add_edge(
            self.source_id, self.target_id, self.source_side, self.target_side
        )


@dataclass(frozen=True)
class SetSelection:
    node_ids: FrozenSet[int]

    def apply(self, session: EditorSession):
        session.selection.select_nodes(self.node_ids)


@dataclass(frozen=True)
class PanViewport:
    dx: float
    dy: float

    def apply(self, session: EditorSession):
        session.viewport.pan(self.dx, self.dy)


Intent = Union[MoveNodes, CreateEdge, SetSelection, PanViewport]


def snap(value: float, grid_size: float) -> float:
    """Round to the nearest grid line, halves rounding up."""
    return math.floor(value / grid_size + 0.5) * grid_size


class InteractionController:
    """
    Arbitrates pointer gestures on one canvas.

    Example:
        >>> session = EditorSession(chart)
        >>> controller = InteractionController(session)
        >>> controller.pointer_down(120, 80, HitTarget.node(1))
        >>> controller.pointer_move(160, 80)
        >>> controller.pointer_up(160, 80)
    """

    def __init__(
        self,
        session: EditorSession,
        snap_to_grid: bool = True,
        grid_size: float = GRID_SIZE,
        debug: bool = False,
    ):
        """
        Initialize the controller.

        Args:
            session: Chart session the intents are applied to.
            snap_to_grid: Round block positions to the grid when a drag ends.
            grid_size: Grid unit in world coordinates.
            debug: Record an InteractionTrace of every event.
        """
        if grid_size <= 0:
            raise ValueError("grid_size must be positive")
        self.session = session
        self.snap_to_grid = snap_to_grid
        self.grid_size = grid_size
        self.state: State = Idle()
        self.space_held = False
        self.last_created_edge = None
        self.trace: Optional[InteractionTrace] = InteractionTrace() if debug else None

    @property
    def mode(self) -> str:
        return type(self.state).__name__

    def _apply(self, intents: List[Intent], intent: Intent) -> None:
        intent.apply(self.session)
        intents.append(intent)

    def _finish(self, event: str, args, before: State, intents: List[Intent]):
        if type(before) is not type(self.state):
            logger.debug("%s: %s -> %s", event, type(before).__name__, self.mode)
        if self.trace is not None:
            self.trace.add(
                TransitionRecord(
                    event, tuple(args), type(before).__name__, self.mode, list(intents)
                )
            )
        return intents

    def _world(self, sx: float, sy: float) -> Point:
        return self.session.viewport.screen_to_world(sx, sy)

    # ------------------------------------------------------------------
    # Preview geometry for the renderer
    # ------------------------------------------------------------------
    def selection_rect(self) -> Optional[Rect]:
        if isinstance(self.state, SelectingBox):
            return self.state.rect
        return None

    def connection_line(self) -> Optional[Tuple[Point, Point]]:
        if isinstance(self.state, DraggingConnection):
            return self.state.start, self.state.current
        return None

    # ------------------------------------------------------------------
    # Keyboard / wheel
    # ------------------------------------------------------------------
    def key_down(self, key: str) -> List[Intent]:
        before = self.state
        intents: List[Intent] = []
        if key.lower() in ("space", " "):
            self.space_held = True
        elif key.lower() in ("escape", "esc"):
            self._abandon(intents)
        return self._finish("key_down", (key,), before, intents)

    def key_up(self, key: str) -> List[Intent]:
        if key.lower() in ("space", " "):
            self.space_held = False
        return self._finish("key_up", (key,), self.state, [])

    def wheel(self, dx: float, dy: float, modifier: bool = False) -> List[Intent]:
        """Zoom (with modifier) or pan the view. Ignored during a gesture."""
        if isinstance(self.state, Idle):
            self.session.viewport.handle_wheel(dx, dy, modifier)
        return self._finish("wheel", (dx, dy, modifier), self.state, [])

    def cancel(self) -> List[Intent]:
        """Abandon the current gesture, e.g. when the pointer is lost."""
        before = self.state
        intents: List[Intent] = []
        self._abandon(intents)
        return self._finish("cancel", (), before, intents)

    def _abandon(self, intents: List[Intent]) -> None:
        """Return to Idle, putting dragged blocks back where the drag began."""
        state = self.state
        if isinstance(state, DraggingNodes) and state.moved:
            self._apply(intents, MoveNodes(tuple(state.initial.items())))
        self.state = Idle()

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------
    def pointer_down(
        self,
        sx: float,
        sy: float,
        target: Optional[HitTarget] = None,
        button: Button = Button.PRIMARY,
    ) -> List[Intent]:
        """
        Start a gesture.

        Args:
            sx: Screen x.
            sy: Screen y.
            target: What the pointer is over; hit-tested when omitted.
            button: Pressed mouse button.

        Returns:
            Intents applied at press time.
        """
        before = self.state
        intents: List[Intent] = []
        args = (sx, sy, target, button)

        if not isinstance(self.state, Idle):
            # A second press while a gesture is active is ignored
            return self._finish("pointer_down", args, before, intents)

        world = self._world(sx, sy)
        if target is None:
            target = self.session.hit_test(world.x, world.y)
        if target.kind is not TargetKind.EMPTY and target.node_id not in self.session.model:
            target = HitTarget.empty()

        wants_pan = self.space_held or button is Button.MIDDLE

        if target.kind is TargetKind.ACTION or button is Button.SECONDARY:
            pass
        elif wants_pan and target.kind in (TargetKind.EMPTY, TargetKind.NODE):
            self.state = Panning(sx, sy)
        elif target.kind is TargetKind.HANDLE:
            if button is Button.PRIMARY:
                self.state = DraggingConnection(
                    target.node_id, target.side, world, world
                )
            else:
                self.state = Panning(sx, sy)
        elif target.kind is TargetKind.NODE:
            self._start_node_drag(target.node_id, sx, sy, intents)
        else:
            self._apply(intents, SetSelection(frozenset()))
            self.state = SelectingBox(world, world)

        return self._finish("pointer_down", args, before, intents)

    def _start_node_drag(self, node_id, sx, sy, intents: List[Intent]) -> None:
        selection = self.session.selection
        if node_id not in selection:
            self._apply(intents, SetSelection(frozenset([node_id])))

        model = self.session.model
        initial = {
            node.id: (node.x, node.y)
            for node in model.nodes
            if node.id in selection.node_ids
        }
        self.state = DraggingNodes(node_id, sx, sy, initial)

    def pointer_move(self, sx: float, sy: float) -> List[Intent]:
        before = self.state
        intents: List[Intent] = []
        state = self.state

        if isinstance(state, Panning):
            dx = sx - state.last_x
            dy = sy - state.last_y
            if dx or dy:
                self._apply(intents, PanViewport(dx, dy))
            self.state = Panning(sx, sy)
        elif isinstance(state, DraggingNodes):
            if state.moved or (sx, sy) != (state.start_x, state.start_y):
                self._apply(intents, MoveNodes(self._drag_positions(state, sx, sy)))
                if not state.moved:
                    self.state = replace(state, moved=True)
        elif isinstance(state, DraggingConnection):
            self.state = replace(state, current=self._world(sx, sy))
        elif isinstance(state, SelectingBox):
            self.state = replace(state, current=self._world(sx, sy))

        return self._finish("pointer_move", (sx, sy), before, intents)

    def _drag_positions(self, state: DraggingNodes, sx, sy, snapped=False):
        dx, dy = self.session.viewport.screen_delta_to_world(
            sx - state.start_x, sy - state.start_y
        )
        positions = []
        for node_id, (x, y) in state.initial.items():
            new_x, new_y = x + dx, y + dy
            if snapped:
                new_x, new_y = snap(new_x, self.grid_size), snap(new_y, self.grid_size)
            positions.append((node_id, (new_x, new_y)))
        return tuple(positions)

    def pointer_up(
        self, sx: float, sy: float, target: Optional[HitTarget] = None
    ) -> List[Intent]:
        """
        End the current gesture. Always returns the controller to Idle.

        Args:
            sx: Screen x.
            sy: Screen y.
            target: What the pointer was released over; hit-tested when
                    omitted.
        """
        before = self.state
        intents: List[Intent] = []
        state = self.state
        args = (sx, sy, target)

        if isinstance(state, DraggingNodes):
            if state.moved:
                positions = self._drag_positions(state, sx, sy, self.snap_to_grid)
                self._apply(intents, MoveNodes(positions))
            else:
                self._apply(intents, SetSelection(frozenset([state.pressed_id])))
        elif isinstance(state, DraggingConnection):
            self._finish_connection(state, sx, sy, target, intents)
        elif isinstance(state, SelectingBox):
            rect = Rect.from_corners(state.anchor, self._world(sx, sy))
            if rect.width == 0 or rect.height == 0:
                matches = []
            else:
                matches = self.session.nodes_in_rect(rect)
            self._apply(intents, SetSelection(frozenset(matches)))

        self.state = Idle()
        return self._finish("pointer_up", args, before, intents)

    def _finish_connection(
        self, state: DraggingConnection, sx, sy, target, intents: List[Intent]
    ) -> None:
        if target is None:
            world = self._world(sx, sy)
            target = self.session.hit_test(world.x, world.y)

        if target.kind not in (TargetKind.NODE, TargetKind.HANDLE):
            logger.debug("connection from %r dropped on empty space", state.source_id)
            return
        if target.node_id == state.source_id:
            logger.debug("connection dropped on its own source %r", state.source_id)
            return

        if target.kind is TargetKind.HANDLE:
            target_side = target.side
        else:
            target_side = state.source_side.opposite()

        intent = CreateEdge(state.source_id, target.node_id, state.source_side, target_side)
        self.last_created_edge = intent.apply(self.session)
        intents.append(intent)
