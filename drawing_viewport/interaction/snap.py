"""
Привязки (object snap) к геометрии видов.

Типы привязок и приоритеты (меньше — важнее):
  intersection 0, endpoint 1, midpoint 2, center 5, nearest 10.

Точки привязки извлекаются из видимых и невидимых линий проекции в
локальных координатах вида (относительно центра габарита) и индексируются
scipy cKDTree. Кэш индексов хранится в экземпляре SnapEngine по id вида
и сбрасывается, когда у вида меняется объект проекции.

Допуск задаётся в px экрана и переводится в мм листа:
tolerance = screen_px / paper_to_screen_scale.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree

from drawing_viewport.config import (
    SCREEN_SNAP_TOLERANCE_PX,
    SNAP_KEY_DECIMALS,
)
from drawing_viewport.drawing.model import DrawingView, Line2D, Projection
from drawing_viewport.geometry.primitives import Point2D, segment_intersections
from drawing_viewport.interaction.tools import DimensionTool

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Типы
# ---------------------------------------------------------------------------

class SnapType(Enum):
    ENDPOINT = "endpoint"
    MIDPOINT = "midpoint"
    INTERSECTION = "intersection"
    NEAREST = "nearest"
    CENTER = "center"


SNAP_PRIORITIES: Dict[SnapType, int] = {
    SnapType.INTERSECTION: 0,
    SnapType.ENDPOINT: 1,
    SnapType.MIDPOINT: 2,
    SnapType.CENTER: 5,
    SnapType.NEAREST: 10,
}


@dataclass(frozen=True)
class SnapIndicatorStyle:
    symbol: str
    color: str


SNAP_INDICATOR_STYLES: Dict[SnapType, SnapIndicatorStyle] = {
    SnapType.ENDPOINT: SnapIndicatorStyle('square', '#22c55e'),
    SnapType.MIDPOINT: SnapIndicatorStyle('triangle', '#3b82f6'),
    SnapType.INTERSECTION: SnapIndicatorStyle('x', '#f59e0b'),
    SnapType.NEAREST: SnapIndicatorStyle('circle', '#8b5cf6'),
    SnapType.CENTER: SnapIndicatorStyle('circle', '#ec4899'),
}


@dataclass(frozen=True)
class SnapSettings:
    """Включённые типы привязок."""
    endpoints: bool = True
    midpoints: bool = True
    intersections: bool = True
    nearest: bool = True

    @classmethod
    def for_tool(cls, tool: Optional[DimensionTool],
                 base: Optional['SnapSettings'] = None) -> 'SnapSettings':
        """Настройки для инструмента поверх базовых."""
        base = base or cls()
        if tool is None or tool not in TOOL_SNAP_CONFIGS:
            return base
        return replace(base, **TOOL_SNAP_CONFIGS[tool])


TOOL_SNAP_CONFIGS: Dict[DimensionTool, Dict[str, bool]] = {
    DimensionTool.AUTO: dict(endpoints=True, midpoints=True, intersections=True, nearest=True),
    DimensionTool.LINE_LENGTH: dict(endpoints=True, midpoints=False, intersections=False,
                                    nearest=True),
    DimensionTool.POINT_TO_POINT: dict(endpoints=True, midpoints=True, intersections=True,
                                       nearest=False),
    DimensionTool.ANGLE: dict(endpoints=True, midpoints=False, intersections=True,
                              nearest=False),
    DimensionTool.NOTA: dict(endpoints=True, midpoints=True, intersections=True, nearest=True),
}


@dataclass(frozen=True)
class SnapPoint:
    """Точка привязки в локальных координатах вида."""
    point: Point2D
    snap_type: SnapType
    source_line: Optional[int] = None
    second_line: Optional[int] = None

    @property
    def priority(self) -> int:
        return SNAP_PRIORITIES[self.snap_type]


@dataclass(frozen=True)
class SnapResult:
    """Привязка, найденная в конкретном виде."""
    snap: SnapPoint
    view_id: str
    view_position: Point2D
    distance: float = 0.0

    @property
    def paper_point(self) -> Point2D:
        return Point2D(self.view_position.x + self.snap.point.x,
                       self.view_position.y + self.snap.point.y)


def paper_tolerance(paper_to_screen_scale: float,
                    screen_px: float = SCREEN_SNAP_TOLERANCE_PX) -> float:
    """Допуск привязки в мм листа."""
    return screen_px / paper_to_screen_scale


# ---------------------------------------------------------------------------
# Извлечение точек привязки
# ---------------------------------------------------------------------------

def _is_snappable(line: Line2D) -> bool:
    return line.line_type.is_visible or line.line_type.is_hidden


def _snappable_segments(
    lines: Sequence[Line2D],
    origin: Sequence[float] = (0.0, 0.0),
) -> Tuple[np.ndarray, List[int]]:
    """Массив (N, 4) отрезков, сдвинутых на -origin, и их индексы в lines."""
    indices = [i for i, line in enumerate(lines) if _is_snappable(line)]
    if not indices:
        return np.zeros((0, 4)), []
    segs = np.array([
        (lines[i].start[0], lines[i].start[1], lines[i].end[0], lines[i].end[1])
        for i in indices
    ], dtype=float)
    segs -= np.array([origin[0], origin[1], origin[0], origin[1]], dtype=float)
    return segs, indices


def _key(snap_type: SnapType, x: float, y: float):
    return snap_type, round(x, SNAP_KEY_DECIMALS), round(y, SNAP_KEY_DECIMALS)


def _extract_from_segments(
    segs: np.ndarray,
    indices: Sequence[int],
    settings: SnapSettings,
) -> List[SnapPoint]:
    points: List[SnapPoint] = []
    seen = set()

    def add(snap_type, x, y, source, second=None):
        key = _key(snap_type, x, y)
        if key in seen:
            return
        seen.add(key)
        points.append(SnapPoint(Point2D(float(x), float(y)), snap_type, source, second))

    for row, source in zip(segs, indices):
        x1, y1, x2, y2 = row
        if settings.endpoints:
            add(SnapType.ENDPOINT, x1, y1, source)
            add(SnapType.ENDPOINT, x2, y2, source)
        if settings.midpoints:
            add(SnapType.MIDPOINT, (x1 + x2) / 2.0, (y1 + y2) / 2.0, source)

    if settings.intersections:
        for i, j, p in segment_intersections(segs):
            add(SnapType.INTERSECTION, p.x, p.y, indices[i], indices[j])

    return points


def extract_snap_points(
    lines: Sequence[Line2D],
    settings: Optional[SnapSettings] = None,
    origin: Sequence[float] = (0.0, 0.0),
) -> List[SnapPoint]:
    """Извлечь точки привязки из линий.

    Берутся только видимые и невидимые линии. Дубликаты (по 4 знакам
    после запятой) отбрасываются отдельно для каждого типа.

    Args:
        lines: линии проекции.
        settings: включённые типы привязок.
        origin: начало локальной системы (центр габарита вида).

    Returns:
        Точки привязки: концы и середины в порядке линий, затем пересечения.
    """
    segs, indices = _snappable_segments(lines, origin)
    return _extract_from_segments(segs, indices, settings or SnapSettings())


def _nearest_on_segments(cursor: Sequence[float], segs: np.ndarray):
    """Ближайшие точки на отрезках и расстояния до них (векторизовано)."""
    a = segs[:, :2]
    d = segs[:, 2:] - a
    c = np.array([cursor[0], cursor[1]], dtype=float)
    len_sq = np.einsum('ij,ij->i', d, d)
    safe = np.where(len_sq > 0.0, len_sq, 1.0)
    t = np.clip(np.einsum('ij,ij->i', c - a, d) / safe, 0.0, 1.0)
    t = np.where(len_sq > 0.0, t, 0.0)
    closest = a + d * t[:, None]
    dist = np.hypot(closest[:, 0] - c[0], closest[:, 1] - c[1])
    return closest, dist


def find_nearest_snap(
    cursor: Sequence[float],
    points: Sequence[SnapPoint],
    lines: Sequence[Line2D],
    settings: Optional[SnapSettings] = None,
    tolerance: float = 8.0,
    tree: Optional[cKDTree] = None,
    origin: Sequence[float] = (0.0, 0.0),
) -> Optional[Tuple[SnapPoint, float]]:
    """Лучшая привязка для курсора.

    Кандидаты — точки строго ближе tolerance и (при settings.nearest)
    ближайшие точки на линиях. Побеждает меньший приоритет, затем
    меньшее расстояние; при равенстве — первый по порядку.

    Args:
        cursor: курсор в локальных координатах вида.
        points: точки привязки (extract_snap_points).
        lines: линии проекции (для привязки «ближайшая»).
        settings: включённые типы.
        tolerance: допуск (мм листа).
        tree: готовый cKDTree по points (иначе строится).
        origin: начало локальной системы для lines.

    Returns:
        (SnapPoint, расстояние) или None.
    """
    settings = settings or SnapSettings()
    segs, indices = _snappable_segments(lines, origin)
    return _find_nearest(cursor, points, tree, segs, indices, settings, tolerance)


def _find_nearest(cursor, points, tree, segs, indices, settings, tolerance):
    candidates: List[Tuple[SnapPoint, float]] = []
    c = (float(cursor[0]), float(cursor[1]))

    if points:
        if tree is None:
            tree = cKDTree(np.array([p.point for p in points], dtype=float))
        for k in sorted(tree.query_ball_point(c, r=tolerance)):
            snap = points[k]
            dist = float(np.hypot(snap.point.x - c[0], snap.point.y - c[1]))
            if dist < tolerance:
                candidates.append((snap, dist))

    if settings.nearest and len(segs):
        closest, dists = _nearest_on_segments(c, segs)
        for row in np.nonzero(dists < tolerance)[0]:
            snap = SnapPoint(Point2D(float(closest[row, 0]), float(closest[row, 1])),
                             SnapType.NEAREST, indices[row])
            candidates.append((snap, float(dists[row])))

    if not candidates:
        return None
    candidates.sort(key=lambda item: (item[0].priority, item[1]))
    return candidates[0]


# ---------------------------------------------------------------------------
# Движок привязок с кэшем по видам
# ---------------------------------------------------------------------------

@dataclass
class _ViewSnapIndex:
    projection: Projection
    settings: SnapSettings
    points: List[SnapPoint]
    tree: Optional[cKDTree]
    segments: np.ndarray
    line_indices: List[int]


class SnapEngine:
    """Поиск привязок по всем видам чертежа.

    Индекс вида строится при первом запросе и переиспользуется, пока
    объект проекции вида и настройки привязок не изменились.
    """

    def __init__(self, settings: Optional[SnapSettings] = None):
        self.settings = settings or SnapSettings()
        self._cache: Dict[str, _ViewSnapIndex] = {}

    def invalidate(self, view_id: Optional[str] = None) -> None:
        """Сбросить кэш одного вида или всех."""
        if view_id is None:
            self._cache.clear()
        else:
            self._cache.pop(view_id, None)

    def index_for(self, view: DrawingView,
                  settings: Optional[SnapSettings] = None) -> _ViewSnapIndex:
        settings = settings or self.settings
        cached = self._cache.get(view.id)
        if (cached is not None and cached.projection is view.projection
                and cached.settings == settings):
            return cached

        segs, indices = _snappable_segments(view.projection.lines, view.center)
        points = _extract_from_segments(segs, indices, settings)
        tree = cKDTree(np.array([p.point for p in points], dtype=float)) if points else None
        entry = _ViewSnapIndex(view.projection, settings, points, tree, segs, indices)
        self._cache[view.id] = entry
        logger.debug("Индекс привязок вида %s: %d точек, %d линий",
                     view.id, len(points), len(indices))
        return entry

    def snap_in_view(
        self,
        view: DrawingView,
        paper_cursor: Sequence[float],
        tolerance: float,
        settings: Optional[SnapSettings] = None,
    ) -> Optional[Tuple[SnapPoint, float]]:
        """Лучшая привязка в одном виде (курсор в координатах листа)."""
        entry = self.index_for(view, settings)
        local = (paper_cursor[0] - view.position.x, paper_cursor[1] - view.position.y)
        return _find_nearest(local, entry.points, entry.tree, entry.segments,
                             entry.line_indices, entry.settings, tolerance)

    def snap_across_views(
        self,
        paper_cursor: Sequence[float],
        views: Sequence[DrawingView],
        tolerance: float,
        settings: Optional[SnapSettings] = None,
    ) -> Optional[SnapResult]:
        """Привязка по всем видимым видам: побеждает ближайшая к курсору.

        Returns:
            SnapResult (точка в локальных координатах вида + позиция вида)
            или None.
        """
        best: Optional[SnapResult] = None
        for view in views:
            if not view.visible:
                continue
            found = self.snap_in_view(view, paper_cursor, tolerance, settings)
            if found is None:
                continue
            snap, dist = found
            if best is None or dist < best.distance:
                best = SnapResult(snap, view.id, view.position, dist)
        return best
