"""
Unit tests for drawing_viewport.drawing.coordinates module.

Tests:
- Paper dimensions and orientation
- Sheet layout on the canvas
- Paper ⇄ screen round trips under pan and zoom
- View-local ⇄ paper transforms
- Real values from paper lengths (scale, units, isometric)
"""

import math

import pytest

from drawing_viewport.drawing.coordinates import (
    CanvasSize,
    CoordinateConverter,
    compute_sheet_layout,
    paper_dimensions,
    real_value,
    unit_factor,
)
from drawing_viewport.drawing.model import Orientation, ProjectionType, SheetConfig
from drawing_viewport.geometry.primitives import Point2D
from tests.conftest import assert_point_approx, make_view

# A3 landscape on a 1000 × 800 canvas: min(980/420, 780/297) × 0.95
A3_PAPER_SCALE = min(980.0 / 420.0, 780.0 / 297.0) * 0.95


class TestPaperDimensions:
    """Tests for paper_dimensions."""

    def test_a3_landscape_swapped(self):
        """Test that landscape puts the long side horizontally."""
        assert paper_dimensions(SheetConfig(size="A3")) == (420.0, 297.0)

    def test_a4_portrait(self):
        """Test that portrait keeps the ISO width × height."""
        sheet = SheetConfig(size="A4", orientation=Orientation.PORTRAIT)
        assert paper_dimensions(sheet) == (210.0, 297.0)

    def test_custom_size(self):
        """Test custom dimensions are used and swapped for landscape."""
        sheet = SheetConfig(size="Custom", custom_width=300.0, custom_height=500.0)
        assert paper_dimensions(sheet) == (500.0, 300.0)

    def test_custom_without_size_falls_back(self):
        """Test that a custom sheet without dimensions uses A3."""
        assert paper_dimensions(SheetConfig(size="Custom")) == (420.0, 297.0)


class TestSheetLayout:
    """Tests for compute_sheet_layout."""

    def test_paper_scale(self, a3_sheet):
        """Test fit scale for A3 landscape on 1000 × 800."""
        layout = compute_sheet_layout(a3_sheet, 1000.0, 800.0)
        assert layout.paper_scale == pytest.approx(A3_PAPER_SCALE)
        assert layout.paper_scale == pytest.approx(2.216667, abs=1e-6)

    def test_paper_centered(self, a3_sheet):
        """Test that the sheet is centred on the canvas."""
        layout = compute_sheet_layout(a3_sheet, 1000.0, 800.0)
        assert layout.paper_x + layout.paper_width_px / 2.0 == pytest.approx(500.0)
        assert layout.paper_y + layout.paper_height_px / 2.0 == pytest.approx(400.0)

    def test_grid_margin_and_inner_area(self, a3_sheet):
        """Test 4% grid margin and inner area geometry."""
        layout = compute_sheet_layout(a3_sheet, 1000.0, 800.0)
        assert layout.grid_margin == pytest.approx(0.04 * layout.paper_width_px)
        assert layout.inner_x == pytest.approx(layout.paper_x + layout.grid_margin)
        assert layout.inner_width == pytest.approx(
            layout.paper_width_px - 2.0 * layout.grid_margin)

    def test_drawing_center_at_canvas_center(self, a3_sheet):
        """Test that paper origin maps to the canvas centre."""
        layout = compute_sheet_layout(a3_sheet, 1000.0, 800.0)
        assert_point_approx(layout.drawing_center, (500.0, 400.0))

    def test_screen_scale_equals_paper_scale(self, a3_sheet):
        """Test px per inner-area mm equals px per paper mm."""
        layout = compute_sheet_layout(a3_sheet, 1000.0, 800.0)
        assert layout.paper_to_screen_scale == pytest.approx(layout.paper_scale)


class TestCanvasSize:
    """Tests for CanvasSize."""

    def test_css_size_divides_by_dpr(self):
        """Test CSS size from physical pixels."""
        canvas = CanvasSize(2000.0, 1600.0, 2.0)
        assert canvas.css_width == 1000.0
        assert canvas.css_height == 800.0


class TestCoordinateConverter:
    """Tests for CoordinateConverter."""

    def test_origin_maps_to_screen_center(self, converter):
        """Test paper (0, 0) at the canvas centre with identity viewport."""
        assert_point_approx(converter.paper_to_screen((0.0, 0.0)), (500.0, 400.0))

    def test_y_axis_flipped(self, converter):
        """Test that paper Y up maps to screen Y down."""
        s = converter.paper_to_screen_scale
        assert_point_approx(converter.paper_to_screen((10.0, 10.0)),
                            (500.0 + 10.0 * s, 400.0 - 10.0 * s))

    @pytest.mark.parametrize("pan, zoom", [
        ((0.0, 0.0), 1.0),
        ((37.5, -12.0), 1.0),
        ((0.0, 0.0), 3.3),
        ((-120.0, 80.0), 0.25),
    ])
    def test_round_trip(self, a3_sheet, canvas, pan, zoom):
        """Test screen_to_paper(paper_to_screen(p)) == p within 1e-6."""
        converter = CoordinateConverter(a3_sheet, canvas, pan, zoom)
        for p in [(0.0, 0.0), (123.4, -56.7), (-210.0, 148.5)]:
            assert_point_approx(converter.screen_to_paper(converter.paper_to_screen(p)), p)

    def test_pan_and_zoom_formula(self, a3_sheet, canvas):
        """Test screen = center + pan + zoom × scale × (x, −y)."""
        converter = CoordinateConverter(a3_sheet, canvas, (15.0, -5.0), 2.0)
        s = converter.paper_to_screen_scale
        assert_point_approx(converter.paper_to_screen((4.0, 3.0)),
                            (500.0 + 15.0 + 2.0 * s * 4.0, 400.0 - 5.0 - 2.0 * s * 3.0))

    def test_with_viewport_keeps_layout(self, converter):
        """Test that changing pan/zoom reuses the sheet layout."""
        moved = converter.with_viewport((10.0, 20.0), 1.5)
        assert moved.layout is converter.layout
        assert moved.pan == Point2D(10.0, 20.0)
        assert moved.zoom == 1.5

    def test_device_pixels(self, a3_sheet):
        """Test CSS ⇄ device conversion by devicePixelRatio."""
        converter = CoordinateConverter(a3_sheet, CanvasSize(2000.0, 1600.0, 2.0))
        assert converter.to_device_pixels((10.0, 20.0)) == Point2D(20.0, 40.0)
        assert converter.from_device_pixels((20.0, 40.0)) == Point2D(10.0, 20.0)

    def test_dpr_does_not_change_paper_mapping(self, a3_sheet, converter):
        """Test that the same CSS canvas at dpr 2 maps paper identically."""
        hi_dpi = CoordinateConverter(a3_sheet, CanvasSize(2000.0, 1600.0, 2.0))
        assert_point_approx(hi_dpi.paper_to_screen((30.0, 40.0)),
                            converter.paper_to_screen((30.0, 40.0)))


class TestViewTransforms:
    """Tests for projection/view-local ⇄ paper transforms."""

    def test_projection_to_paper_centres_bbox(self):
        """Test that the bbox centre lands on the view position."""
        view = make_view(position=(20.0, -10.0))
        assert CoordinateConverter.projection_to_paper(view, (50.0, 30.0)) == Point2D(20.0, -10.0)
        assert CoordinateConverter.projection_to_paper(view, (100.0, 60.0)) == Point2D(70.0, 20.0)

    def test_y_flipped_once_on_the_way_to_screen(self, converter):
        """Test that projection → paper keeps Y up and only paper → screen flips it."""
        view = make_view(position=(0.0, 0.0))
        upper = CoordinateConverter.projection_to_paper(view, (50.0, 60.0))
        lower = CoordinateConverter.projection_to_paper(view, (50.0, 0.0))
        assert upper.y > lower.y
        assert converter.paper_to_screen(upper).y < converter.paper_to_screen(lower).y

    def test_local_round_trip(self):
        """Test paper → view local → paper."""
        position = (12.5, -7.5)
        local = CoordinateConverter.paper_to_view_local(position, (20.0, 5.0))
        assert local == Point2D(7.5, 12.5)
        assert CoordinateConverter.view_local_to_paper(position, local) == Point2D(20.0, 5.0)


class TestRealValue:
    """Tests for unit_factor and real_value."""

    def test_unit_factors(self):
        """Test metres-to-unit factors."""
        assert unit_factor("mm") == 1000.0
        assert unit_factor("m") == 1.0

    def test_unknown_unit_defaults_to_one(self):
        """Test that unknown units fall back to factor 1."""
        assert unit_factor("furlong") == 1.0

    def test_scale_and_units(self):
        """Test 200 mm on paper at 1:4 in metres → 800."""
        assert real_value(200.0, 0.25, "m") == pytest.approx(800.0)

    def test_millimetres(self):
        """Test 50 mm on paper at 1:1 in mm → 0.05 model metres."""
        assert real_value(50.0, 1.0, "mm") == pytest.approx(0.05)

    def test_isometric_foreshortening(self):
        """Test isometric views divide by sqrt(2/3)."""
        plain = real_value(100.0, 1.0, "m")
        iso = real_value(100.0, 1.0, "m", ProjectionType.ISOMETRIC)
        assert iso == pytest.approx(plain / math.sqrt(2.0 / 3.0))
