"""
Unit tests for drawing_viewport.interaction.controller module.

Tests:
- Pan and cursor-anchored zoom with limits
- Tool switching, snapping and point picking
- Dimension creation for auto, angle and line-length tools
- Selection, dragging and deletion of views, dimensions and annotations
- Annotation text editing through key events
- Escape and right-click cancellation
- add_view with the async projection generator (retry and failure)
- Rendering and redraw tracking
"""

import asyncio

import pytest

from drawing_viewport.drawing import layout
from drawing_viewport.drawing.dimensions import DimensionConfig, DimensionKind, build_dimension
from drawing_viewport.drawing.model import Annotation, ProjectionType
from drawing_viewport.errors import ProjectionGenerationFailed
from drawing_viewport.geometry.primitives import Point2D
from drawing_viewport.interaction.controller import (
    MIDDLE_BUTTON,
    RIGHT_BUTTON,
    KeyEvent,
    PointerEvent,
    ViewportController,
    WheelEvent,
)
from drawing_viewport.interaction.state import (
    AnnotationSelection,
    DimensionSelection,
    DraggingAnnotation,
    DraggingDimensionOffset,
    DraggingView,
    EditingAnnotationText,
    Idle,
    Panning,
    PointPicking,
)
from drawing_viewport.interaction.tools import DimensionTool
from tests.conftest import DRAWING_ID, assert_point_approx, make_rectangle_projection


def _at(controller, x, y, **kwargs) -> PointerEvent:
    """Pointer event over paper point (x, y)."""
    sx, sy = controller.converter().paper_to_screen((x, y))
    return PointerEvent(sx, sy, **kwargs)


def _click(controller, x, y, **kwargs) -> None:
    event = _at(controller, x, y, **kwargs)
    controller.on_pointer_down(event)
    controller.on_pointer_up(event)


def _type(controller, *keys) -> None:
    for key in keys:
        controller.on_key(KeyEvent(key))


def _drawing(controller):
    return controller.store.get_drawing(DRAWING_ID)


@pytest.fixture
def with_dimension(controller):
    """Horizontal dimension under the front view, line at y = -40."""
    dim = build_dimension((-50.0, -30.0), (50.0, -30.0), DimensionKind.HORIZONTAL,
                          DimensionConfig(), offset=-10.0, view_id="front")
    controller.store.add_dimension(DRAWING_ID, dim)
    return controller


@pytest.fixture
def with_annotation(controller):
    """Annotation anchored on the top edge of the front view."""
    note = Annotation(id="annotation-1", text="Nota", position=Point2D(20.0, 40.0),
                      anchor_point=Point2D(0.0, 30.0), view_id="front")
    controller.store.add_annotation(DRAWING_ID, note)
    return controller


class TestPanZoom:
    """Tests for panning and wheel zoom."""

    def test_middle_button_pan(self, controller):
        """Test drag with the middle button moves the pan."""
        controller.on_pointer_down(PointerEvent(100.0, 100.0, button=MIDDLE_BUTTON))
        assert isinstance(controller.state.interaction, Panning)
        controller.on_pointer_move(PointerEvent(130.0, 90.0))
        assert controller.state.pan == Point2D(30.0, -10.0)
        controller.on_pointer_up(PointerEvent(130.0, 90.0))
        assert controller.state.interaction == Idle()

    def test_ctrl_left_pan(self, controller):
        """Test Ctrl + left button pans."""
        controller.on_pointer_down(PointerEvent(0.0, 0.0, ctrl=True))
        controller.on_pointer_move(PointerEvent(5.0, 7.0))
        assert controller.state.pan == Point2D(5.0, 7.0)

    def test_zoom_keeps_point_under_cursor(self, controller):
        """Test the paper point under the cursor is fixed while zooming."""
        before = controller.converter().screen_to_paper((700.0, 300.0))
        controller.on_wheel(WheelEvent(700.0, 300.0, delta_y=-100.0))
        assert controller.state.zoom == pytest.approx(1.1)
        after = controller.converter().screen_to_paper((700.0, 300.0))
        assert_point_approx(after, before)

    def test_zoom_out_anchor_with_pan(self, controller):
        """Test anchoring also holds with an existing pan."""
        controller.on_pointer_down(PointerEvent(0.0, 0.0, button=MIDDLE_BUTTON))
        controller.on_pointer_move(PointerEvent(40.0, -25.0))
        controller.on_pointer_up()
        before = controller.converter().screen_to_paper((210.0, 620.0))
        controller.on_wheel(WheelEvent(210.0, 620.0, delta_y=100.0))
        assert controller.state.zoom == pytest.approx(0.9)
        assert_point_approx(controller.converter().screen_to_paper((210.0, 620.0)), before)

    def test_zoom_limits(self, controller):
        """Test zoom clamped to [0.1, 5]."""
        for _ in range(100):
            controller.on_wheel(WheelEvent(500.0, 400.0, delta_y=100.0))
        assert controller.state.zoom == pytest.approx(0.1)
        for _ in range(200):
            controller.on_wheel(WheelEvent(500.0, 400.0, delta_y=-100.0))
        assert controller.state.zoom == pytest.approx(5.0)

    def test_zoom_at_limit_is_noop(self, controller):
        """Test no redraw when the zoom cannot change."""
        for _ in range(100):
            controller.on_wheel(WheelEvent(500.0, 400.0, delta_y=100.0))
        controller.render()
        controller.on_wheel(WheelEvent(500.0, 400.0, delta_y=100.0))
        assert not controller.needs_redraw

    def test_reset_view_key(self, controller):
        """Test '0' resets pan and zoom."""
        controller.on_wheel(WheelEvent(700.0, 300.0, delta_y=-100.0))
        _type(controller, "0")
        assert controller.state.zoom == 1.0
        assert controller.state.pan == Point2D(0.0, 0.0)


class TestTools:
    """Tests for tool selection and snapping."""

    def test_hover_snap(self, controller):
        """Test a snap is shown near a corner with a tool active."""
        controller.set_tool(DimensionTool.AUTO)
        controller.on_pointer_move(_at(controller, 49.0, 29.0))
        snap = controller.state.active_snap
        assert snap is not None
        assert snap.view_id == "front"
        assert_point_approx(snap.paper_point, (50.0, 30.0))

    def test_no_snap_without_tool(self, controller):
        """Test that hovering without a tool only tracks the view."""
        controller.on_pointer_move(_at(controller, 49.0, 29.0))
        assert controller.state.active_snap is None
        assert controller.state.hovered_view_id == "front"

    def test_set_tool_clears_points_and_snap(self, controller):
        """Test switching tools resets picking."""
        controller.set_tool(DimensionTool.AUTO)
        _click(controller, 50.0, 30.0)
        controller.on_pointer_move(_at(controller, 49.0, 29.0))
        controller.set_tool(DimensionTool.VERTICAL)
        assert controller.state.picked_points == ()
        assert controller.state.active_snap is None
        assert controller.state.tool == DimensionTool.VERTICAL

    def test_toggle_lock(self, controller):
        """Test the views lock flag toggles."""
        assert controller.toggle_views_lock() is True
        assert controller.toggle_views_lock() is False


class TestDimensionCreation:
    """Tests for creating dimensions by picking points."""

    def test_auto_two_corners(self, controller):
        """Test two snapped corners create a horizontal dimension."""
        controller.set_tool(DimensionTool.AUTO)
        _click(controller, 50.0, 30.0)
        assert isinstance(controller.state.interaction, PointPicking)
        assert len(controller.state.picked_points) == 1

        _click(controller, -50.0, 30.0)
        dims = _drawing(controller).dimensions
        assert len(dims) == 1
        assert dims[0].kind == DimensionKind.HORIZONTAL
        assert dims[0].value == pytest.approx(100.0)
        assert dims[0].view_id == "front"
        assert dims[0].offset == pytest.approx(10.0)
        assert controller.state.interaction == Idle()

    def test_click_without_snap_ignored(self, controller):
        """Test a click far from geometry picks nothing."""
        controller.set_tool(DimensionTool.AUTO)
        _click(controller, 0.0, 0.0)
        assert controller.state.picked_points == ()
        assert _drawing(controller).dimensions == ()

    def test_degenerate_points_create_nothing(self, controller):
        """Test that picking the same point twice is rejected."""
        controller.set_tool(DimensionTool.AUTO)
        _click(controller, 50.0, 30.0)
        _click(controller, 50.0, 30.0)
        assert _drawing(controller).dimensions == ()
        assert controller.state.interaction == Idle()

    def test_angle_three_points(self, controller):
        """Test arm, vertex, arm create a 90° angular dimension."""
        controller.set_tool(DimensionTool.ANGLE)
        _click(controller, 50.0, -30.0)
        _click(controller, -50.0, -30.0)
        assert len(controller.state.picked_points) == 2
        _click(controller, -50.0, 30.0)

        dims = _drawing(controller).dimensions
        assert len(dims) == 1
        assert dims[0].kind == DimensionKind.ANGULAR
        assert dims[0].value == pytest.approx(90.0)
        assert dims[0].arc_radius == pytest.approx(20.0)

    def test_line_length_click_on_line(self, controller):
        """Test line-length tool measures the line under the cursor."""
        controller.set_tool(DimensionTool.LINE_LENGTH)
        _click(controller, 0.0, 28.0)
        dims = _drawing(controller).dimensions
        assert len(dims) == 1
        assert dims[0].kind == DimensionKind.ALIGNED
        assert dims[0].value == pytest.approx(100.0)

    def test_line_length_miss(self, controller):
        """Test line-length click away from lines does nothing."""
        controller.set_tool(DimensionTool.LINE_LENGTH)
        _click(controller, 0.0, 0.0)
        assert _drawing(controller).dimensions == ()

    def test_pan_resumes_picking(self, controller):
        """Test panning in the middle of picking keeps the points."""
        controller.set_tool(DimensionTool.AUTO)
        _click(controller, 50.0, 30.0)
        controller.on_pointer_down(PointerEvent(10.0, 10.0, button=MIDDLE_BUTTON))
        controller.on_pointer_move(PointerEvent(30.0, 10.0))
        controller.on_pointer_up()
        assert isinstance(controller.state.interaction, PointPicking)
        assert len(controller.state.picked_points) == 1


class TestSelectionAndDragging:
    """Tests for select, drag and delete without a tool."""

    def test_select_then_drag_dimension(self, with_dimension):
        """Test first click selects, second starts the offset drag."""
        c = with_dimension
        _click(c, 0.0, -41.0)
        assert c.state.selection == DimensionSelection(0)

        c.on_pointer_down(_at(c, 0.0, -41.0))
        assert c.state.interaction == DraggingDimensionOffset(0)
        c.on_pointer_move(_at(c, 0.0, -60.0))
        c.on_pointer_up()

        dim = _drawing(c).dimensions[0]
        assert dim.dimension_line.start.y == pytest.approx(-60.0)
        assert dim.offset == pytest.approx(-30.0)
        assert c.state.interaction == Idle()

    def test_delete_dimension(self, with_dimension):
        """Test Delete removes the selected dimension."""
        c = with_dimension
        _click(c, 0.0, -41.0)
        _type(c, "Delete")
        assert _drawing(c).dimensions == ()
        assert c.state.selection is None

    def test_drag_view(self, controller):
        """Test dragging a view keeps the grab offset."""
        controller.on_pointer_down(_at(controller, 10.0, 0.0))
        assert isinstance(controller.state.interaction, DraggingView)
        controller.on_pointer_move(_at(controller, 30.0, 5.0))
        controller.on_pointer_up()
        assert_point_approx(_drawing(controller).views[0].position, (20.0, 5.0))

    def test_locked_views_do_not_drag(self, controller):
        """Test the views lock prevents dragging."""
        controller.toggle_views_lock()
        controller.on_pointer_down(_at(controller, 10.0, 0.0))
        assert controller.state.interaction == Idle()

    def test_click_empty_clears_selection(self, with_dimension):
        """Test clicking outside everything deselects."""
        c = with_dimension
        _click(c, 0.0, -41.0)
        _click(c, 180.0, 120.0)
        assert c.state.selection is None

    def test_drag_annotation_anchor(self, with_annotation):
        """Test dragging the anchor of a selected annotation."""
        c = with_annotation
        _click(c, 0.0, 30.0)
        assert c.state.selection == AnnotationSelection("annotation-1")

        c.on_pointer_down(_at(c, 0.0, 30.0))
        assert isinstance(c.state.interaction, DraggingAnnotation)
        c.on_pointer_move(_at(c, 5.0, 35.0))
        c.on_pointer_up()

        note = _drawing(c).annotation_by_id("annotation-1")
        assert_point_approx(note.anchor_point, (5.0, 35.0))
        assert note.position == Point2D(20.0, 40.0)

    def test_drag_annotation_box(self, with_annotation):
        """Test dragging the box moves the position only."""
        c = with_annotation
        _click(c, 25.0, 40.0)
        c.on_pointer_down(_at(c, 25.0, 40.0))
        c.on_pointer_move(_at(c, 35.0, 50.0))
        c.on_pointer_up()

        note = _drawing(c).annotation_by_id("annotation-1")
        assert_point_approx(note.position, (30.0, 50.0))
        assert note.anchor_point == Point2D(0.0, 30.0)

    def test_delete_annotation(self, with_annotation):
        """Test Backspace removes the selected annotation."""
        c = with_annotation
        _click(c, 0.0, 30.0)
        _type(c, "Backspace")
        assert _drawing(c).annotations == ()


class TestAnnotationEditing:
    """Tests for the annotation tool and text editing."""

    def _create(self, controller):
        controller.set_tool(DimensionTool.NOTA)
        _click(controller, 0.0, 28.0)
        return _drawing(controller).annotations[0]

    def test_create_on_line(self, controller):
        """Test the annotation anchors on the nearest line."""
        note = self._create(controller)
        assert note.id.startswith("annotation-")
        assert note.text == "Nota"
        assert_point_approx(note.anchor_point, (0.0, 30.0))
        assert_point_approx(note.position, (20.0, 40.0))
        assert note.view_id == "front"
        assert controller.state.interaction == EditingAnnotationText(note.id, "Nota")

    def test_no_line_no_annotation(self, controller):
        """Test clicking away from lines creates nothing."""
        controller.set_tool(DimensionTool.NOTA)
        _click(controller, 0.0, 0.0)
        assert _drawing(controller).annotations == ()

    def test_type_and_commit(self, controller):
        """Test Backspace, typing and Enter commit the text."""
        note = self._create(controller)
        _type(controller, "Backspace", "Backspace", "Backspace", "Backspace",
              "H", "o", "l", "e", "Enter")
        assert _drawing(controller).annotation_by_id(note.id).text == "Hole"
        assert controller.state.interaction == Idle()

    def test_escape_cancels(self, controller):
        """Test Escape keeps the stored text."""
        note = self._create(controller)
        _type(controller, "X", "Escape")
        assert _drawing(controller).annotation_by_id(note.id).text == "Nota"

    def test_blank_text_not_committed(self, controller):
        """Test whitespace-only text is discarded."""
        note = self._create(controller)
        _type(controller, "Backspace", "Backspace", "Backspace", "Backspace", " ", "Enter")
        assert _drawing(controller).annotation_by_id(note.id).text == "Nota"

    def test_pointer_down_commits(self, controller):
        """Test clicking elsewhere while editing commits the text."""
        note = self._create(controller)
        _type(controller, "!")
        controller.on_pointer_down(PointerEvent(5.0, 5.0, button=RIGHT_BUTTON))
        assert _drawing(controller).annotation_by_id(note.id).text == "Nota!"

    def test_enter_starts_editing_selected(self, with_annotation):
        """Test Enter on a selected annotation enters edit mode."""
        c = with_annotation
        _click(c, 0.0, 30.0)
        _type(c, "Enter")
        assert c.state.interaction == EditingAnnotationText("annotation-1", "Nota")

    def test_editing_text_rendered(self, controller):
        """Test in-progress text is drawn before commit."""
        self._create(controller)
        _type(controller, "!")
        assert ">Nota!</text>" in controller.render().tostring()


class TestCancel:
    """Tests for Escape and right-click."""

    def test_escape_ladder(self, with_dimension):
        """Test Escape clears points, then selection, then the tool."""
        c = with_dimension
        _click(c, 0.0, -41.0)
        c.set_tool(DimensionTool.AUTO)
        _click(c, 50.0, 30.0)

        _type(c, "Escape")
        assert c.state.picked_points == ()
        assert c.state.selection == DimensionSelection(0)
        _type(c, "Escape")
        assert c.state.selection is None
        assert c.state.tool == DimensionTool.AUTO
        _type(c, "Escape")
        assert c.state.tool is None

    def test_escape_ends_dimension_drag(self, with_dimension):
        """Test Escape stops the offset drag and keeps the selection."""
        c = with_dimension
        _click(c, 0.0, -41.0)
        c.on_pointer_down(_at(c, 0.0, -41.0))
        _type(c, "Escape")
        assert c.state.interaction == Idle()
        assert c.state.selection == DimensionSelection(0)

        before = _drawing(c)
        c.on_pointer_move(_at(c, 0.0, -60.0))
        assert _drawing(c) is before

    def test_escape_ends_view_drag(self, controller):
        """Test Escape stops dragging a view."""
        controller.on_pointer_down(_at(controller, 10.0, 0.0))
        _type(controller, "Escape")
        assert controller.state.interaction == Idle()

        controller.on_pointer_move(_at(controller, 30.0, 5.0))
        assert _drawing(controller).views[0].position == Point2D(0.0, 0.0)

    def test_escape_ends_annotation_drag(self, with_annotation):
        """Test Escape stops dragging an annotation."""
        c = with_annotation
        _click(c, 0.0, 30.0)
        c.on_pointer_down(_at(c, 0.0, 30.0))
        _type(c, "Escape")
        assert c.state.interaction == Idle()

        c.on_pointer_move(_at(c, 5.0, 35.0))
        assert _drawing(c).annotation_by_id("annotation-1").anchor_point == Point2D(0.0, 30.0)

    def test_escape_ends_pan_and_resumes_picking(self, controller):
        """Test Escape during a pan returns to point picking."""
        controller.set_tool(DimensionTool.AUTO)
        _click(controller, 50.0, 30.0)
        controller.on_pointer_down(PointerEvent(10.0, 10.0, button=MIDDLE_BUTTON))
        _type(controller, "Escape")
        assert isinstance(controller.state.interaction, PointPicking)
        assert len(controller.state.picked_points) == 1

        controller.on_pointer_move(PointerEvent(60.0, 10.0))
        assert controller.state.pan == Point2D(0.0, 0.0)

    def test_right_click(self, with_dimension):
        """Test right-click drops points and selection."""
        c = with_dimension
        _click(c, 0.0, -41.0)
        c.set_tool(DimensionTool.AUTO)
        _click(c, 50.0, 30.0)
        c.on_pointer_down(PointerEvent(1.0, 1.0, button=RIGHT_BUTTON))
        assert c.state.interaction == Idle()
        assert c.state.selection is None


class TestAddView:
    """Tests for add_view with an async projection generator."""

    def _controller(self, store, canvas, generator, shape_id_map=None):
        return ViewportController(store, DRAWING_ID, canvas,
                                  generate_projection=generator,
                                  shape_id_map=shape_id_map)

    def test_success(self, store, canvas):
        """Test the new view is generated, added and laid out."""
        calls = []

        async def generator(shape_id, projection_type, scale):
            calls.append((shape_id, projection_type, scale))
            return make_rectangle_projection(40.0, 40.0)

        c = self._controller(store, canvas, generator)
        view = asyncio.run(c.add_view("s1", ProjectionType.TOP))

        assert view.id.startswith("view-top-")
        assert calls == [("s1", ProjectionType.TOP, 1000.0)]
        drawing = store.get_drawing(DRAWING_ID)
        assert [v.id for v in drawing.views] == ["front", view.id]

        expected = layout.fit_all_views(drawing.views, drawing.sheet_config)
        for v in drawing.views:
            assert_point_approx(v.position, expected[v.id])

    def test_retry_with_mapped_id(self, store, canvas):
        """Test one retry with the mapped shape id."""
        store.update_drawing(DRAWING_ID, {'source_shape_ids': ['s1', 'other']})
        calls = []

        async def generator(shape_id, projection_type, scale):
            calls.append(shape_id)
            if shape_id == "s1":
                raise RuntimeError("stale shape")
            return make_rectangle_projection()

        c = self._controller(store, canvas, generator, {"s1": "s2"})
        asyncio.run(c.add_view("s1", ProjectionType.RIGHT))

        assert calls == ["s1", "s2"]
        drawing = store.get_drawing(DRAWING_ID)
        assert drawing.source_shape_ids == ("s2", "other")
        assert len(drawing.views) == 2

    def test_failure_leaves_drawing(self, store, canvas):
        """Test both attempts failing raises and changes nothing."""
        async def generator(shape_id, projection_type, scale):
            raise RuntimeError(f"no shape {shape_id}")

        c = self._controller(store, canvas, generator, {"s1": "s2"})
        before = store.get_drawing(DRAWING_ID)
        with pytest.raises(ProjectionGenerationFailed) as exc_info:
            asyncio.run(c.add_view("s1", ProjectionType.TOP))

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert store.get_drawing(DRAWING_ID) is before

    def test_no_mapping_no_retry(self, store, canvas):
        """Test a single attempt without a mapped id."""
        calls = []

        async def generator(shape_id, projection_type, scale):
            calls.append(shape_id)
            raise RuntimeError("boom")

        c = self._controller(store, canvas, generator)
        with pytest.raises(ProjectionGenerationFailed):
            asyncio.run(c.add_view("s1", ProjectionType.TOP))
        assert calls == ["s1"]

    def test_no_generator(self, controller):
        """Test add_view without a generator fails."""
        with pytest.raises(ProjectionGenerationFailed):
            asyncio.run(controller.add_view("s1", ProjectionType.TOP))


class TestRendering:
    """Tests for render and redraw tracking."""

    def test_render_clears_flag(self, controller):
        """Test a rendered frame clears the redraw flag."""
        assert controller.needs_redraw
        svg = controller.render().tostring()
        assert 'id="viewport"' in svg
        assert 'id="view-front"' in svg
        assert not controller.needs_redraw
        assert controller.render_if_needed() is None

    def test_state_change_requests_redraw(self, controller):
        """Test pan changes mark the frame dirty."""
        controller.render()
        controller.on_pointer_down(PointerEvent(0.0, 0.0, button=MIDDLE_BUTTON))
        controller.on_pointer_move(PointerEvent(3.0, 0.0))
        assert controller.render_if_needed() is not None

    def test_picked_points_and_snap_drawn(self, controller):
        """Test picking feedback appears in the frame."""
        controller.set_tool(DimensionTool.AUTO)
        _click(controller, 50.0, 30.0)
        controller.on_pointer_move(_at(controller, -49.0, 29.0))
        svg = controller.render().tostring()
        assert 'id="picked-points"' in svg
        assert 'id="snap-indicator"' in svg
