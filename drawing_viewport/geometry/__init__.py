"""Геометрия: примитивы 2D и пространственный индекс отрезков."""

from drawing_viewport.geometry.primitives import (
    BoundingBox2D,
    Point2D,
    distance,
    midpoint,
    perpendicular_offset,
    point_to_segment_distance,
    segment_intersection,
    segment_intersections,
)

__all__ = [
    "BoundingBox2D",
    "Point2D",
    "distance",
    "midpoint",
    "perpendicular_offset",
    "point_to_segment_distance",
    "segment_intersection",
    "segment_intersections",
]
