"""
orgcanvas - Graph and layout engine for interactive organization charts

A Python library for editing organigrams: blocks connected by parent -> child
connections on a pannable, zoomable canvas, with automatic tree layout,
multi-select, a minimap and image export.

Example:
    >>> from orgcanvas import EditorSession, InteractionController
    >>> session = EditorSession()
    >>> ceo = session.model.add_node({"name": "Ada", "title": "CEO"})
    >>> cto = session.model.add_node({"name": "Grace"}, anchor=(ceo, "child"))
    >>> result = session.reset_layout()
    >>> controller = InteractionController(session)
"""

import logging

from .export import ChartExporter, ChartRenderer, render_to_png
from .graph import GraphChange, GraphModel, normalize_direction
from .interaction import (
    Button,
    CreateEdge,
    DraggingConnection,
    DraggingNodes,
    Idle,
    InteractionController,
    MoveNodes,
    Panning,
    PanViewport,
    SelectingBox,
    SetSelection,
)
from .layout import LayoutResult, NodeLayout, TreeLayout, compute_layout, reset_layout
from .minimap import Minimap
from .models import Chart, Edge, Node, Point, Rect, Relation, Side, Size
from .selection import Selection
from .session import EditorSession, HitTarget, SizeCache, TargetKind
from .tracer import InteractionTrace, TransitionRecord
from .viewport import Viewport, ViewportController

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Data model
    "Chart",
    "Node",
    "Edge",
    "Side",
    "Relation",
    "Point",
    "Rect",
    "Size",
    # Graph
    "GraphModel",
    "GraphChange",
    "normalize_direction",
    # Layout
    "TreeLayout",
    "LayoutResult",
    "NodeLayout",
    "compute_layout",
    "reset_layout",
    # View state
    "Viewport",
    "ViewportController",
    "Selection",
    "SizeCache",
    "EditorSession",
    "HitTarget",
    "TargetKind",
    # Interaction
    "InteractionController",
    "Button",
    "Idle",
    "Panning",
    "DraggingNodes",
    "DraggingConnection",
    "SelectingBox",
    "MoveNodes",
    "CreateEdge",
    "SetSelection",
    "PanViewport",
    # Minimap / export
    "Minimap",
    "ChartRenderer",
    "ChartExporter",
    "render_to_png",
    # Debug/Tracing
    "InteractionTrace",
    "TransitionRecord",
]
