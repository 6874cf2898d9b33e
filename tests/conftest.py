"""Pytest configuration and shared fixtures for orgcanvas tests."""

import pytest

from orgcanvas import Chart, EditorSession, GraphModel, InteractionController, Node


@pytest.fixture
def model():
    """Empty graph model."""
    return GraphModel()


@pytest.fixture
def chart_record():
    """Chart record in the editor's storage format."""
    return {
        "id": 1700000000000,
        "name": "Engineering",
        "createdAt": "2024-01-01T00:00:00+00:00",
        "blocks": [
            {"id": 1, "name": "Ada", "title": "CEO", "x": 0, "y": 0},
            {"id": 2, "name": "Grace", "title": "CTO", "x": 0, "y": 150},
            {
                "id": 3,
                "groupName": "Platform",
                "name": "Linus",
                "title": "Lead",
                "x": 300,
                "y": 150,
                "color": "#e3f2fd",
                "collapsed": True,
            },
        ],
        "connections": [
            {"from": 1, "to": 2, "fromPos": "bottom", "toPos": "top"},
            {"from": 1, "to": 3},
        ],
    }


@pytest.fixture
def org_chart(chart_record):
    """Chart built from the sample record."""
    return Chart.from_record(chart_record)


@pytest.fixture
def session(org_chart):
    """Session with the sample chart open."""
    return EditorSession(org_chart)


@pytest.fixture
def empty_session():
    """Session with no blocks."""
    return EditorSession()


@pytest.fixture
def grid_session():
    """Session with three unconnected blocks for drag and selection tests."""
    chart = Chart(
        id=7,
        name="Grid",
        nodes=[
            Node(id=1, x=10, y=10),
            Node(id=2, x=400, y=400),
            Node(id=3, x=700, y=10),
        ],
    )
    return EditorSession(chart)


@pytest.fixture
def controller(grid_session):
    """Controller without grid snapping over the grid session."""
    return InteractionController(grid_session, snap_to_grid=False, debug=True)
