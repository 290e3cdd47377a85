"""
Pytest configuration and fixtures for the drawing viewport engine.

Provides:
- Projection / view fixtures (rectangle 100 × 60 with a diagonal)
- Sheet and drawing fixtures (A3 landscape)
- Store and controller fixtures on a 1000 × 800 canvas
- Assertion helpers for points
"""

import logging
from pathlib import Path
from typing import Sequence

import pytest

from drawing_viewport.drawing.coordinates import CanvasSize, CoordinateConverter
from drawing_viewport.drawing.model import (
    Drawing,
    DrawingView,
    Line2D,
    LineType,
    Orientation,
    Projection,
    ProjectionType,
    SheetConfig,
)
from drawing_viewport.geometry.primitives import BoundingBox2D, Point2D
from drawing_viewport.interaction.controller import ViewportController
from drawing_viewport.interaction.store import InMemoryDrawingStore

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

DRAWING_ID = "d1"


# ============================================================================
# Projection Builders
# ============================================================================

def make_rectangle_projection(width: float = 100.0, height: float = 60.0,
                              diagonal: bool = False, label=None) -> Projection:
    """Rectangle outline with its lower-left corner at the origin.

    The optional diagonal runs from (0, 0) to (width, height) and is
    drawn as a hidden line.
    """
    corners = [
        Point2D(0.0, 0.0),
        Point2D(width, 0.0),
        Point2D(width, height),
        Point2D(0.0, height),
    ]
    lines = [
        Line2D(corners[i], corners[(i + 1) % 4], LineType.VISIBLE_SHARP)
        for i in range(4)
    ]
    if diagonal:
        lines.append(Line2D(corners[0], corners[2], LineType.HIDDEN_SHARP))
    return Projection(
        lines=tuple(lines),
        bounding_box=BoundingBox2D(corners[0], corners[2]),
        label=label,
    )


def make_view(view_id: str = "front", position=(0.0, 0.0),
              projection: Projection = None,
              projection_type: ProjectionType = ProjectionType.FRONT,
              visible: bool = True) -> DrawingView:
    """View of a projection placed at position (bbox centre on paper)."""
    return DrawingView(
        id=view_id,
        projection_type=projection_type,
        projection=projection or make_rectangle_projection(),
        position=Point2D(*position),
        visible=visible,
    )


# ============================================================================
# Sheet and Drawing Fixtures
# ============================================================================

@pytest.fixture
def a3_sheet() -> SheetConfig:
    """A3 landscape, scale 1:1, millimetres."""
    return SheetConfig(size="A3", orientation=Orientation.LANDSCAPE)


@pytest.fixture
def rectangle_projection() -> Projection:
    """Rectangle 100 × 60 with bbox (0, 0)–(100, 60)."""
    return make_rectangle_projection()


@pytest.fixture
def front_view(rectangle_projection: Projection) -> DrawingView:
    """Front view of the rectangle centred on the paper origin."""
    return make_view("front", (0.0, 0.0), rectangle_projection)


@pytest.fixture
def drawing(a3_sheet: SheetConfig, front_view: DrawingView) -> Drawing:
    """Drawing with a single front view."""
    return Drawing(id=DRAWING_ID, name="Bracket", sheet_config=a3_sheet,
                   views=(front_view,))


# ============================================================================
# Canvas, Store and Controller Fixtures
# ============================================================================

@pytest.fixture
def canvas() -> CanvasSize:
    """1000 × 800 canvas at devicePixelRatio 1."""
    return CanvasSize(1000.0, 800.0, 1.0)


@pytest.fixture
def converter(a3_sheet: SheetConfig, canvas: CanvasSize) -> CoordinateConverter:
    """Converter with identity viewport (pan 0, zoom 1)."""
    return CoordinateConverter(a3_sheet, canvas)


@pytest.fixture
def store(drawing: Drawing) -> InMemoryDrawingStore:
    """In-memory store holding the fixture drawing."""
    return InMemoryDrawingStore([drawing])


@pytest.fixture
def controller(store: InMemoryDrawingStore, canvas: CanvasSize) -> ViewportController:
    """Controller bound to the fixture drawing."""
    return ViewportController(store, DRAWING_ID, canvas)


# ============================================================================
# Logging Isolation
# ============================================================================

@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() changes so caplog sees package records."""
    yield
    package_logger = logging.getLogger("drawing_viewport")
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


# ============================================================================
# Assertion Helpers
# ============================================================================

def assert_point_approx(actual: Sequence[float], expected: Sequence[float],
                        tolerance: float = 1e-6) -> None:
    """Assert that two 2D points match within tolerance."""
    assert abs(actual[0] - expected[0]) < tolerance, \
        f"x: expected {expected[0]}, got {actual[0]}"
    assert abs(actual[1] - expected[1]) < tolerance, \
        f"y: expected {expected[1]}, got {actual[1]}"
