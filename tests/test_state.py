"""
Unit tests for drawing_viewport.interaction.state and tools modules.

Tests:
- ViewportState defaults and derived properties
- Dimension tools: required points and dimension kinds
"""

import pytest

from drawing_viewport.drawing.dimensions import DimensionKind
from drawing_viewport.geometry.primitives import Point2D
from drawing_viewport.interaction.state import (
    AnnotationSelection,
    DimensionSelection,
    DraggingView,
    EditingAnnotationText,
    Idle,
    Panning,
    PickedPoint,
    PointPicking,
    ViewportState,
)
from drawing_viewport.interaction.tools import DimensionTool


class TestViewportState:
    """Tests for ViewportState."""

    def test_defaults(self):
        """Test identity viewport, no tool and idle interaction."""
        state = ViewportState()
        assert state.pan == Point2D(0.0, 0.0)
        assert state.zoom == 1.0
        assert state.tool is None
        assert state.interaction == Idle()
        assert not state.views_locked

    def test_dragging_view_id(self):
        """Test dragged view id only while dragging a view."""
        assert ViewportState().dragging_view_id is None
        state = ViewportState(interaction=DraggingView("front", Point2D(1.0, 2.0)))
        assert state.dragging_view_id == "front"

    def test_selection_accessors(self):
        """Test dimension and annotation selection accessors."""
        dim = ViewportState(selection=DimensionSelection(3))
        note = ViewportState(selection=AnnotationSelection("annotation-1"))
        assert dim.selected_dimension_index == 3
        assert dim.selected_annotation_id is None
        assert note.selected_annotation_id == "annotation-1"
        assert note.selected_dimension_index is None

    def test_picked_points(self):
        """Test picked points exposed only while picking."""
        picked = (PickedPoint(Point2D(1.0, 1.0), "front"),)
        state = ViewportState(interaction=PointPicking(DimensionTool.AUTO, picked))
        assert state.picked_points == picked
        assert ViewportState(interaction=Panning(Point2D(0, 0), Point2D(0, 0))).picked_points == ()

    def test_editing(self):
        """Test the editing accessor."""
        editing = EditingAnnotationText("annotation-1", "Nota")
        assert ViewportState(interaction=editing).editing is editing
        assert ViewportState().editing is None


class TestDimensionTool:
    """Tests for DimensionTool."""

    @pytest.mark.parametrize("tool, points", [
        (DimensionTool.AUTO, 2),
        (DimensionTool.LINE_LENGTH, 2),
        (DimensionTool.ANGLE, 3),
        (DimensionTool.NOTA, 0),
    ])
    def test_required_points(self, tool, points):
        """Test number of points per tool."""
        assert tool.required_points == points
        assert tool.picks_points == (points > 0)

    @pytest.mark.parametrize("tool, kind", [
        (DimensionTool.AUTO, None),
        (DimensionTool.HORIZONTAL, DimensionKind.HORIZONTAL),
        (DimensionTool.VERTICAL, DimensionKind.VERTICAL),
        (DimensionTool.POINT_TO_POINT, DimensionKind.ALIGNED),
        (DimensionTool.POINT_TO_LINE, DimensionKind.ALIGNED),
        (DimensionTool.LINE_LENGTH, DimensionKind.ALIGNED),
        (DimensionTool.ANGLE, DimensionKind.ANGULAR),
    ])
    def test_dimension_kind(self, tool, kind):
        """Test the dimension kind each tool creates."""
        assert tool.dimension_kind == kind

    def test_every_tool_covered(self):
        """Test that every tool has point count and kind entries."""
        for tool in DimensionTool:
            tool.required_points
            tool.dimension_kind
