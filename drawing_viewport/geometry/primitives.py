"""
Геометрические примитивы 2D.

Содержит:
- Point2D, BoundingBox2D          — точка и ограничивающий прямоугольник
- point_from                      — разбор точки из JSON
- point_to_segment_distance       — расстояние от точки до отрезка
- perpendicular_offset            — знаковое смещение точки от прямой
- segment_intersection            — пересечение двух отрезков
- segment_intersections           — все попарные пересечения (rtree + numpy)
- midpoint, distance, angle_deg   — мелкие векторные операции

Все функции чистые; ось Y направлена вверх (система листа).
"""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from drawing_viewport.config import SEGMENT_PARALLEL_EPS
from drawing_viewport.geometry.spatial_index import build_segment_index, query_segments

# Запас габарита отрезка при отборе пар (касание по концам)
SEGMENT_BBOX_PAD = 1e-9


class Point2D(NamedTuple):
    """Точка на плоскости."""
    x: float
    y: float

    def __add__(self, other):  # type: ignore[override]
        return Point2D(self.x + other[0], self.y + other[1])

    def __sub__(self, other):
        return Point2D(self.x - other[0], self.y - other[1])

    def scaled(self, k: float) -> 'Point2D':
        return Point2D(self.x * k, self.y * k)


def point_from(value) -> Point2D:
    """Точка из [x, y] или {"x": ..., "y": ...}."""
    if isinstance(value, dict):
        return Point2D(float(value['x']), float(value['y']))
    return Point2D(float(value[0]), float(value[1]))


@dataclass(frozen=True)
class BoundingBox2D:
    """Ограничивающий прямоугольник (AABB).

    Attributes:
        min: нижний левый угол.
        max: верхний правый угол.
    """
    min: Point2D
    max: Point2D

    @property
    def width(self) -> float:
        return self.max.x - self.min.x

    @property
    def height(self) -> float:
        return self.max.y - self.min.y

    @property
    def center(self) -> Point2D:
        return Point2D((self.min.x + self.max.x) / 2.0,
                       (self.min.y + self.max.y) / 2.0)

    def inflated(self, padding: float) -> 'BoundingBox2D':
        """Расширить прямоугольник на padding со всех сторон."""
        return BoundingBox2D(
            Point2D(self.min.x - padding, self.min.y - padding),
            Point2D(self.max.x + padding, self.max.y + padding),
        )

    def contains(self, p: Sequence[float]) -> bool:
        """Точка внутри или на границе."""
        return (self.min.x <= p[0] <= self.max.x
                and self.min.y <= p[1] <= self.max.y)

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> 'BoundingBox2D':
        arr = np.asarray(points, dtype=float).reshape(-1, 2)
        lo = arr.min(axis=0)
        hi = arr.max(axis=0)
        return cls(Point2D(float(lo[0]), float(lo[1])),
                   Point2D(float(hi[0]), float(hi[1])))


# ---------------------------------------------------------------------------
# Векторные операции
# ---------------------------------------------------------------------------

def distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Евклидово расстояние между точками."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def midpoint(a: Sequence[float], b: Sequence[float]) -> Point2D:
    """Середина отрезка."""
    return Point2D((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def angle_deg(a: Sequence[float], b: Sequence[float]) -> float:
    """Угол направления a→b в градусах, (-180, 180]."""
    return math.degrees(math.atan2(b[1] - a[1], b[0] - a[0]))


def unit_normal(a: Sequence[float], b: Sequence[float]) -> Optional[Point2D]:
    """Единичная нормаль (-dy, dx)/L к направлению a→b.

    Returns:
        Нормаль или None для отрезка нулевой длины.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length = math.hypot(dx, dy)
    if length < SEGMENT_PARALLEL_EPS:
        return None
    return Point2D(-dy / length, dx / length)


# ---------------------------------------------------------------------------
# Расстояния
# ---------------------------------------------------------------------------

def point_to_segment_distance(
    p: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
) -> Tuple[float, Point2D]:
    """Расстояние от точки до отрезка и ближайшая точка отрезка.

    Параметр проекции ограничивается [0, 1]; для вырожденного отрезка
    ближайшая точка — его начало.

    Args:
        p: точка.
        a, b: концы отрезка.

    Returns:
        (distance, closest_point).
    """
    ax, ay = float(a[0]), float(a[1])
    dx = float(b[0]) - ax
    dy = float(b[1]) - ay
    len_sq = dx * dx + dy * dy

    if len_sq == 0.0:
        closest = Point2D(ax, ay)
    else:
        t = ((p[0] - ax) * dx + (p[1] - ay) * dy) / len_sq
        t = max(0.0, min(1.0, t))
        closest = Point2D(ax + t * dx, ay + t * dy)

    return distance(p, closest), closest


def perpendicular_offset(
    point: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
) -> Optional[float]:
    """Знаковое расстояние от точки до прямой a→b.

    Положительно слева от направления a→b (по нормали (-dy, dx)).

    Returns:
        Смещение или None, если a и b совпадают.
    """
    normal = unit_normal(a, b)
    if normal is None:
        return None
    return (point[0] - a[0]) * normal.x + (point[1] - a[1]) * normal.y


# ---------------------------------------------------------------------------
# Пересечения
# ---------------------------------------------------------------------------

def segment_intersection(
    a1: Sequence[float], a2: Sequence[float],
    b1: Sequence[float], b2: Sequence[float],
) -> Optional[Point2D]:
    """Точка пересечения двух отрезков.

    Returns:
        Point2D или None (параллельные, или пересечение вне отрезков).
    """
    d1x, d1y = a2[0] - a1[0], a2[1] - a1[1]
    d2x, d2y = b2[0] - b1[0], b2[1] - b1[1]
    denom = d1x * d2y - d1y * d2x
    if abs(denom) < SEGMENT_PARALLEL_EPS:
        return None

    ex, ey = b1[0] - a1[0], b1[1] - a1[1]
    t = (ex * d2y - ey * d2x) / denom
    u = (ex * d1y - ey * d1x) / denom
    if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
        return Point2D(a1[0] + t * d1x, a1[1] + t * d1y)
    return None


def segment_intersections(segments: np.ndarray) -> List[Tuple[int, int, Point2D]]:
    """Все попарные пересечения отрезков.

    Кандидаты для отрезка i — отрезки j > i, чьи габариты пересекаются
    с его габаритом (rtree); точные пересечения считаются по numpy
    построчно, так что память растёт линейно от числа отрезков.

    Args:
        segments: массив (N, 4) — x1, y1, x2, y2.

    Returns:
        Список (i, j, point) для i < j в порядке возрастания индексов.
    """
    segs = np.asarray(segments, dtype=float).reshape(-1, 4)
    n = len(segs)
    if n < 2:
        return []

    p = segs[:, :2]
    d = segs[:, 2:] - segs[:, :2]
    lo = np.minimum(segs[:, :2], segs[:, 2:]) - SEGMENT_BBOX_PAD
    hi = np.maximum(segs[:, :2], segs[:, 2:]) + SEGMENT_BBOX_PAD
    spatial_idx = build_segment_index(segs.tolist())

    result = []
    for i in range(n - 1):
        bounds = (float(lo[i, 0]), float(lo[i, 1]), float(hi[i, 0]), float(hi[i, 1]))
        jj = np.array([j for j in query_segments(spatial_idx, bounds) if j > i], dtype=int)
        if len(jj) == 0:
            continue

        d1 = d[i]
        d2 = d[jj]
        denom = d1[0] * d2[:, 1] - d1[1] * d2[:, 0]
        valid = np.abs(denom) >= SEGMENT_PARALLEL_EPS

        e = p[jj] - p[i]
        safe = np.where(valid, denom, 1.0)
        t = (e[:, 0] * d2[:, 1] - e[:, 1] * d2[:, 0]) / safe
        u = (e[:, 0] * d1[1] - e[:, 1] * d1[0]) / safe
        hit = valid & (t >= 0.0) & (t <= 1.0) & (u >= 0.0) & (u <= 1.0)

        for k in np.nonzero(hit)[0]:
            point = p[i] + t[k] * d1
            result.append((i, int(jj[k]), Point2D(float(point[0]), float(point[1]))))
    return result
