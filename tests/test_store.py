"""
Unit tests for drawing_viewport.interaction.store module.

Tests:
- Snapshot lookup and DrawingNotFound
- View, dimension and annotation mutations
- Out-of-range and unknown ids skipped with a warning
- updated_at refreshed on every change
"""

import logging
from dataclasses import replace

import pytest

from drawing_viewport.drawing.dimensions import DimensionConfig, DimensionKind, build_dimension
from drawing_viewport.drawing.model import Annotation
from drawing_viewport.errors import DrawingNotFound
from drawing_viewport.geometry.primitives import Point2D
from drawing_viewport.interaction.store import InMemoryDrawingStore
from tests.conftest import DRAWING_ID, make_view


def _dimension(x2=100.0):
    return build_dimension((0.0, 0.0), (x2, 0.0), DimensionKind.HORIZONTAL,
                           DimensionConfig(), view_id="front")


def _note(annotation_id="annotation-1"):
    return Annotation(id=annotation_id, text="Nota", position=Point2D(20.0, 10.0),
                      anchor_point=Point2D(0.0, 0.0), view_id="front")


class TestLookup:
    """Tests for get_drawing and put."""

    def test_get_drawing(self, store, drawing):
        """Test that the stored snapshot is returned."""
        assert store.get_drawing(DRAWING_ID) is drawing

    def test_missing_drawing(self, store):
        """Test DrawingNotFound for unknown ids."""
        with pytest.raises(DrawingNotFound):
            store.get_drawing("nope")

    def test_empty_store(self):
        """Test that an empty store knows no drawings."""
        with pytest.raises(DrawingNotFound):
            InMemoryDrawingStore().get_drawing(DRAWING_ID)

    def test_not_found_is_key_error(self, store):
        """Test that callers catching KeyError still work."""
        with pytest.raises(KeyError):
            store.get_drawing("nope")

    def test_put_replaces(self, store, drawing):
        """Test put overwrites by id."""
        store.put(replace(drawing, name="Other"))
        assert store.get_drawing(DRAWING_ID).name == "Other"


class TestViews:
    """Tests for view mutations."""

    def test_update_view_position(self, store):
        """Test moving one view by id."""
        store.update_view_position(DRAWING_ID, "front", (12.0, -3.0))
        assert store.get_drawing(DRAWING_ID).views[0].position == Point2D(12.0, -3.0)

    def test_add_view_appends(self, store):
        """Test add_view keeps list order."""
        store.add_view(DRAWING_ID, make_view("top"))
        assert [v.id for v in store.get_drawing(DRAWING_ID).views] == ["front", "top"]

    def test_snapshot_is_replaced_not_mutated(self, store, drawing):
        """Test earlier snapshots are left untouched."""
        store.update_view_position(DRAWING_ID, "front", (12.0, -3.0))
        assert drawing.views[0].position == Point2D(0.0, 0.0)
        assert store.get_drawing(DRAWING_ID) is not drawing

    def test_updated_at_refreshed(self, store, drawing):
        """Test every change bumps updated_at."""
        store.add_view(DRAWING_ID, make_view("top"))
        assert store.get_drawing(DRAWING_ID).updated_at > drawing.updated_at


class TestDimensions:
    """Tests for dimension mutations."""

    def test_add_update_remove(self, store):
        """Test the full dimension lifecycle."""
        store.add_dimension(DRAWING_ID, _dimension())
        store.add_dimension(DRAWING_ID, _dimension(50.0))
        store.update_dimension(DRAWING_ID, 1, {'prefix': 'Ø'})
        dims = store.get_drawing(DRAWING_ID).dimensions
        assert dims[1].prefix == 'Ø'
        assert dims[0].prefix == ''

        store.remove_dimension(DRAWING_ID, 0)
        dims = store.get_drawing(DRAWING_ID).dimensions
        assert len(dims) == 1
        assert dims[0].value == 50.0

    def test_out_of_range_skipped(self, store, caplog):
        """Test invalid indices are ignored with a warning."""
        store.add_dimension(DRAWING_ID, _dimension())
        before = store.get_drawing(DRAWING_ID)
        with caplog.at_level(logging.WARNING):
            store.update_dimension(DRAWING_ID, 5, {'prefix': 'x'})
            store.remove_dimension(DRAWING_ID, -1)
        assert store.get_drawing(DRAWING_ID) is before
        assert len(caplog.records) == 2


class TestAnnotations:
    """Tests for annotation mutations."""

    def test_add_and_update(self, store):
        """Test adding and moving an annotation."""
        store.add_annotation(DRAWING_ID, _note())
        store.update_annotation(DRAWING_ID, "annotation-1",
                                {'text': 'Bore', 'position': [30.0, 15.0]})
        note = store.get_drawing(DRAWING_ID).annotation_by_id("annotation-1")
        assert note.text == 'Bore'
        assert note.position == Point2D(30.0, 15.0)
        assert note.anchor_point == Point2D(0.0, 0.0)

    def test_update_unknown_skipped(self, store, caplog):
        """Test unknown ids are ignored with a warning."""
        before = store.get_drawing(DRAWING_ID)
        with caplog.at_level(logging.WARNING):
            store.update_annotation(DRAWING_ID, "ghost", {'text': 'x'})
        assert store.get_drawing(DRAWING_ID) is before
        assert "ghost" in caplog.text

    def test_remove(self, store):
        """Test removing by id keeps the others."""
        store.add_annotation(DRAWING_ID, _note("a"))
        store.add_annotation(DRAWING_ID, _note("b"))
        store.remove_annotation(DRAWING_ID, "a")
        assert [a.id for a in store.get_drawing(DRAWING_ID).annotations] == ["b"]


class TestUpdateDrawing:
    """Tests for update_drawing."""

    def test_source_shape_ids_tuple(self, store):
        """Test list input stored as a tuple."""
        store.update_drawing(DRAWING_ID, {'source_shape_ids': ['s1', 's2']})
        assert store.get_drawing(DRAWING_ID).source_shape_ids == ('s1', 's2')

    def test_missing_drawing(self, store):
        """Test mutations on unknown drawings raise."""
        with pytest.raises(DrawingNotFound):
            store.update_drawing("nope", {'name': 'x'})
