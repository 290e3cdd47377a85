"""
Пространственный индекс отрезков вида в 2D (rtree-обёртка).

Изолирует зависимость от библиотеки `rtree` и обеспечивает
потокобезопасный доступ к индексу. Используется hit-test'ом для
предварительного отбора линий рядом с курсором.
"""

import threading
from typing import List, Sequence

from rtree import index


_rtree_lock = threading.Lock()


def build_segment_index(segments: Sequence[Sequence[float]]) -> index.Index:
    """Построить 2D R-tree индекс по ограничивающим прямоугольникам отрезков.

    Args:
        segments: последовательность (x1, y1, x2, y2); идентификатор
            в индексе — позиция отрезка в последовательности.

    Returns:
        Построенный rtree Index (2D).
    """
    props = index.Property()
    props.dimension = 2
    rtree_idx = index.Index(properties=props)

    for seg_id, (x1, y1, x2, y2) in enumerate(segments):
        rtree_idx.insert(seg_id, (min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2)))

    return rtree_idx


def query_segments(spatial_idx: index.Index, bounds) -> List[int]:
    """Потокобезопасный запрос к rtree по прямоугольной области.

    Args:
        spatial_idx: индекс, построенный через build_segment_index.
        bounds: (min_x, min_y, max_x, max_y).

    Returns:
        Идентификаторы отрезков по возрастанию (порядок исходного списка).
    """
    with _rtree_lock:
        return sorted(spatial_idx.intersection(bounds))


def query_near_point(spatial_idx: index.Index, x: float, y: float, radius: float) -> List[int]:
    """Отрезки, чей bbox лежит ближе radius к точке (по квадрату)."""
    return query_segments(spatial_idx, (x - radius, y - radius, x + radius, y + radius))
