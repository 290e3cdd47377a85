"""
Автоматическая компоновка видов на листе.

Координаты — мм листа, начало в центре рабочей области, ось Y вверх;
позиция вида — центр его габарита.

Содержит:
  - grid_shape                  — число столбцов и строк сетки для n видов
  - fit_all_views               — раскладка видимых видов по сетке
  - calculate_new_view_position — место для нового вида (квадранты, затем вправо)
"""

import logging
import math
from typing import Dict, List, Sequence, Tuple

from drawing_viewport.config import (
    INNER_AREA_FRACTION,
    LAYOUT_BIAS_X,
    LAYOUT_BIAS_Y,
    LAYOUT_GAP_MM,
    NEW_VIEW_AVAILABLE_FRACTION,
    NEW_VIEW_SPACING_MM,
)
from drawing_viewport.drawing.coordinates import paper_dimensions
from drawing_viewport.drawing.model import DrawingView, SheetConfig
from drawing_viewport.geometry.primitives import BoundingBox2D, Point2D
from drawing_viewport.logging_config import timed

logger = logging.getLogger(__name__)


def grid_shape(n: int) -> Tuple[int, int]:
    """Размер сетки (столбцы, строки) для n видов.

    1 → 1×1, 2 → 2×1, 3–4 → 2×2, 5–6 → 3×2, далее
    cols = ceil(sqrt(n)), rows = ceil(n / cols).
    """
    if n <= 1:
        return 1, 1
    if n == 2:
        return 2, 1
    if n <= 4:
        return 2, 2
    if n <= 6:
        return 3, 2
    cols = math.ceil(math.sqrt(n))
    return cols, math.ceil(n / cols)


@timed()
def fit_all_views(
    views: Sequence[DrawingView],
    sheet: SheetConfig,
    gap: float = LAYOUT_GAP_MM,
    bias_x: float = LAYOUT_BIAS_X,
    bias_y: float = LAYOUT_BIAS_Y,
) -> Dict[str, Tuple[float, float]]:
    """Разложить видимые виды по сетке.

    Ширина столбца — наибольшая ширина вида в нём, высота строки —
    наибольшая высота в строке. Сетка центрируется в рабочей области и
    смещается влево на bias_x и вверх на bias_y от её размеров; каждый
    вид ставится в центр своей ячейки. Результат зависит только от
    входа.

    Args:
        views: виды в порядке списка (скрытые пропускаются).
        sheet: конфигурация листа.
        gap: промежуток между ячейками (мм).
        bias_x, bias_y: смещение сетки в долях рабочей области.

    Returns:
        {id вида: (x, y)} в порядке списка.
    """
    visible = [v for v in views if v.visible]
    if not visible:
        return {}

    paper_w, paper_h = paper_dimensions(sheet)
    inner_w = paper_w * INNER_AREA_FRACTION
    inner_h = paper_h * INNER_AREA_FRACTION

    cols, rows = grid_shape(len(visible))
    col_widths: List[float] = [0.0] * cols
    row_heights: List[float] = [0.0] * rows
    for i, view in enumerate(visible):
        bbox = view.projection.bounding_box
        col, row = i % cols, i // cols
        col_widths[col] = max(col_widths[col], bbox.width)
        row_heights[row] = max(row_heights[row], bbox.height)

    total_w = sum(col_widths) + gap * (cols - 1)
    total_h = sum(row_heights) + gap * (rows - 1)
    left = -total_w / 2.0 - bias_x * inner_w
    top = total_h / 2.0 + bias_y * inner_h

    positions: Dict[str, Tuple[float, float]] = {}
    for i, view in enumerate(visible):
        col, row = i % cols, i // cols
        x = left + sum(col_widths[:col]) + gap * col + col_widths[col] / 2.0
        y = top - sum(row_heights[:row]) - gap * row - row_heights[row] / 2.0
        positions[view.id] = (x, y)

    logger.debug("Компоновка %d видов: сетка %d×%d, %.1f×%.1f мм",
                 len(visible), cols, rows, total_w, total_h)
    return positions


def _quadrant_slots(avail_w: float, avail_h: float) -> List[Point2D]:
    """Центры квадрантов: TL, TR, BL, BR."""
    dx, dy = avail_w / 6.0, avail_h / 6.0
    return [Point2D(-dx, dy), Point2D(dx, dy), Point2D(-dx, -dy), Point2D(dx, -dy)]


def calculate_new_view_position(
    views: Sequence[DrawingView],
    new_bbox: BoundingBox2D,
    sheet: SheetConfig,
    spacing: float = NEW_VIEW_SPACING_MM,
    available_fraction: float = NEW_VIEW_AVAILABLE_FRACTION,
) -> Point2D:
    """Позиция для нового вида.

    Первый вид — в левый верхний квадрант. Второй–четвёртый занимают
    первый свободный квадрант (TL, TR, BL, BR); каждый существующий вид
    занимает ближайший к нему квадрант. Дальше — справа от последнего
    вида на том же уровне: last_half_w + spacing + new_half_w.

    Args:
        views: существующие виды.
        new_bbox: габарит нового вида.
        sheet: конфигурация листа.
        spacing: промежуток до последнего вида (мм).
        available_fraction: доля листа, доступная для квадрантов.

    Returns:
        Центр нового вида на листе.
    """
    paper_w, paper_h = paper_dimensions(sheet)
    avail_w = paper_w * available_fraction
    avail_h = paper_h * available_fraction
    slots = _quadrant_slots(avail_w, avail_h)

    if not views:
        return slots[0]

    if len(views) < len(slots):
        occupied = set()
        for view in views:
            nearest = min(
                range(len(slots)),
                key=lambda i: math.hypot(view.position.x - slots[i].x,
                                         view.position.y - slots[i].y),
            )
            occupied.add(nearest)
        for i, slot in enumerate(slots):
            if i not in occupied:
                return slot

    last = views[-1]
    last_half_w = last.projection.bounding_box.width / 2.0
    x = last.position.x + last_half_w + spacing + new_bbox.width / 2.0
    logger.debug("Новый вид справа от %s: x=%.1f", last.id, x)
    return Point2D(x, last.position.y)
