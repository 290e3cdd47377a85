"""
Строители геометрии размеров.

Паттерн Strategy/Builder: для каждого вида размера свой строитель,
который по измеряемым точкам, отступу и стилю создаёт Dimension.

Строители:
  - HorizontalBuilder — горизонтальная размерная линия, значение |dx|
  - VerticalBuilder   — вертикальная размерная линия, значение |dy|
  - AlignedBuilder    — линия, параллельная отрезку p1–p2, значение = длина
  - AngularBuilder    — дуга между плечами p1 и p3 с вершиной p2, градусы

Функции:
  - classify_auto()             — выбор вида по углу отрезка (±15°)
  - default_offset()            — отступ с учётом размера вида
  - build_dimension()           — создать размер через реестр строителей
  - offset_from_cursor()        — новый отступ по положению курсора
  - recalculate_with_offset()   — пересчёт геометрии при новом отступе
  - recalculate_angular_with_radius()
  - drag_update()               — пересчёт при перетаскивании размера

Все координаты — локальные координаты вида (мм, ось Y вверх).
Вырожденный ввод (нулевая длина, нулевой угол) — InvalidDimensionGeometry;
функции пересчёта в этом случае возвращают None и обновление пропускается.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Dict, Optional, Sequence, Tuple

from drawing_viewport.config import (
    DIM_AUTO_ANGLE_THRESHOLD_DEG,
    DIM_DEGENERATE_EPS,
    DIM_OFFSET_VIEW_FRACTION,
    DIM_TEXT_OFFSET_FACTOR,
)
from drawing_viewport.drawing.dimensions.geometry import (
    Dimension,
    DimensionConfig,
    DimensionKind,
    DimensionLine,
    ExtensionLine,
)
from drawing_viewport.errors import InvalidDimensionGeometry
from drawing_viewport.geometry.primitives import (
    BoundingBox2D,
    Point2D,
    angle_deg,
    distance,
    midpoint,
    perpendicular_offset,
)

logger = logging.getLogger(__name__)

# Радиус дуги углового размера по умолчанию — в отступах
ANGULAR_RADIUS_FACTOR = 2.0


# ---------------------------------------------------------------------------
# Классификация и отступ
# ---------------------------------------------------------------------------

def classify_auto(p1: Sequence[float], p2: Sequence[float]) -> DimensionKind:
    """Выбрать вид размера по направлению отрезка p1→p2.

    Угол в пределах 15° от 0°/±180° — горизонтальный, от ±90° —
    вертикальный, иначе — параллельный (aligned).
    """
    a = angle_deg(p1, p2)
    th = DIM_AUTO_ANGLE_THRESHOLD_DEG
    if abs(a) < th or abs(a - 180.0) < th or abs(a + 180.0) < th:
        return DimensionKind.HORIZONTAL
    if abs(a - 90.0) < th or abs(a + 90.0) < th:
        return DimensionKind.VERTICAL
    return DimensionKind.ALIGNED


def default_offset(config: DimensionConfig, view_bbox: Optional[BoundingBox2D]) -> float:
    """Отступ: max(config.offset, 5% наибольшей стороны вида)."""
    if view_bbox is None:
        return config.offset
    return max(config.offset,
               DIM_OFFSET_VIEW_FRACTION * max(view_bbox.width, view_bbox.height))


def _side(offset: float) -> float:
    """Сторона размещения: -1 для отрицательного отступа (включая -0.0)."""
    return -1.0 if math.copysign(1.0, offset) < 0 else 1.0


def text_angle(start: Sequence[float], end: Sequence[float]) -> Tuple[float, bool]:
    """Угол текста вдоль линии (градусы, ось Y вверх).

    Returns:
        (угол в [-90, 90], перевёрнут ли текст на 180°).
    """
    a = angle_deg(start, end)
    if a > 90.0 or a < -90.0:
        a = a - 180.0 if a > 0 else a + 180.0
        return a, True
    return a, False


# ---------------------------------------------------------------------------
# Базовый класс строителя
# ---------------------------------------------------------------------------

class DimensionBuilder(ABC):
    """Абстрактный строитель геометрии размера."""

    kind: DimensionKind

    @abstractmethod
    def build(
        self,
        p1: Point2D,
        p2: Point2D,
        offset: float,
        config: DimensionConfig,
        p3: Optional[Point2D] = None,
    ) -> Dimension:
        """Построить геометрию размера.

        Args:
            p1, p2: измеряемые точки (для углового — плечо и вершина).
            offset: знаковый отступ размерной линии (для углового — радиус дуги).
            config: стиль размеров.
            p3: второе плечо углового размера.

        Returns:
            Dimension без привязки к виду.

        Raises:
            InvalidDimensionGeometry: вырожденный ввод.
        """

    def _dimension_line(self, start: Point2D, end: Point2D,
                        config: DimensionConfig) -> DimensionLine:
        return DimensionLine(start, end, config.arrow_style, config.arrow_style)

    @staticmethod
    def _text_position(start: Point2D, end: Point2D, away: Tuple[float, float],
                       config: DimensionConfig) -> Point2D:
        """Середина размерной линии, сдвинутая от геометрии на 1.2 высоты текста."""
        mid = midpoint(start, end)
        shift = DIM_TEXT_OFFSET_FACTOR * config.text_height
        return Point2D(mid.x + away[0] * shift, mid.y + away[1] * shift)


# ---------------------------------------------------------------------------
# Линейные размеры
# ---------------------------------------------------------------------------

class HorizontalBuilder(DimensionBuilder):
    """Горизонтальный размер: линия на max(y)+offset (или min(y)+offset при offset < 0)."""

    kind = DimensionKind.HORIZONTAL

    def build(self, p1, p2, offset, config, p3=None) -> Dimension:
        value = abs(p2.x - p1.x)
        if value < DIM_DEGENERATE_EPS:
            raise InvalidDimensionGeometry(
                f"Horizontal dimension with zero width: {tuple(p1)} - {tuple(p2)}")

        side = _side(offset)
        base_y = min(p1.y, p2.y) if side < 0 else max(p1.y, p2.y)
        dim_y = base_y + offset
        gap = config.extension_gap * side
        over = config.extension_overshoot * side

        start = Point2D(p1.x, dim_y)
        end = Point2D(p2.x, dim_y)
        return Dimension(
            kind=self.kind,
            dimension_line=self._dimension_line(start, end, config),
            extension_lines=(
                ExtensionLine(Point2D(p1.x, p1.y + gap), Point2D(p1.x, dim_y + over)),
                ExtensionLine(Point2D(p2.x, p2.y + gap), Point2D(p2.x, dim_y + over)),
            ),
            text_position=self._text_position(start, end, (0.0, side), config),
            value=value,
            point1=p1,
            point2=p2,
            offset=offset,
        )


class VerticalBuilder(DimensionBuilder):
    """Вертикальный размер: линия на max(x)+offset (или min(x)+offset при offset < 0)."""

    kind = DimensionKind.VERTICAL

    def build(self, p1, p2, offset, config, p3=None) -> Dimension:
        value = abs(p2.y - p1.y)
        if value < DIM_DEGENERATE_EPS:
            raise InvalidDimensionGeometry(
                f"Vertical dimension with zero height: {tuple(p1)} - {tuple(p2)}")

        side = _side(offset)
        base_x = min(p1.x, p2.x) if side < 0 else max(p1.x, p2.x)
        dim_x = base_x + offset
        gap = config.extension_gap * side
        over = config.extension_overshoot * side

        start = Point2D(dim_x, p1.y)
        end = Point2D(dim_x, p2.y)
        return Dimension(
            kind=self.kind,
            dimension_line=self._dimension_line(start, end, config),
            extension_lines=(
                ExtensionLine(Point2D(p1.x + gap, p1.y), Point2D(dim_x + over, p1.y)),
                ExtensionLine(Point2D(p2.x + gap, p2.y), Point2D(dim_x + over, p2.y)),
            ),
            text_position=self._text_position(start, end, (side, 0.0), config),
            value=value,
            point1=p1,
            point2=p2,
            offset=offset,
        )


class AlignedBuilder(DimensionBuilder):
    """Параллельный размер: линия p1–p2, сдвинутая по нормали (-dy, dx)/L на offset."""

    kind = DimensionKind.ALIGNED

    def build(self, p1, p2, offset, config, p3=None) -> Dimension:
        dx = p2.x - p1.x
        dy = p2.y - p1.y
        length = math.hypot(dx, dy)
        if length < DIM_DEGENERATE_EPS:
            raise InvalidDimensionGeometry(
                f"Aligned dimension with zero length at {tuple(p1)}")

        nx, ny = -dy / length, dx / length
        side = _side(offset)
        gap = config.extension_gap * side
        over = config.extension_overshoot * side

        start = Point2D(p1.x + nx * offset, p1.y + ny * offset)
        end = Point2D(p2.x + nx * offset, p2.y + ny * offset)
        return Dimension(
            kind=self.kind,
            dimension_line=self._dimension_line(start, end, config),
            extension_lines=(
                ExtensionLine(Point2D(p1.x + nx * gap, p1.y + ny * gap),
                              Point2D(start.x + nx * over, start.y + ny * over)),
                ExtensionLine(Point2D(p2.x + nx * gap, p2.y + ny * gap),
                              Point2D(end.x + nx * over, end.y + ny * over)),
            ),
            text_position=self._text_position(start, end, (nx * side, ny * side), config),
            value=length,
            point1=p1,
            point2=p2,
            offset=offset,
        )


# ---------------------------------------------------------------------------
# Угловой размер
# ---------------------------------------------------------------------------

class AngularBuilder(DimensionBuilder):
    """Угловой размер: p1 и p3 — точки на плечах, p2 — вершина.

    Дуга радиуса |offset| проходит по внутреннему углу (< 180°);
    выносные линии продлевают короткие плечи до дуги.
    """

    kind = DimensionKind.ANGULAR

    def build(self, p1, p2, offset, config, p3=None) -> Dimension:
        if p3 is None:
            raise InvalidDimensionGeometry("Angular dimension needs three points")

        vertex = p2
        len1 = distance(vertex, p1)
        len3 = distance(vertex, p3)
        radius = abs(offset)
        if min(len1, len3, radius) < DIM_DEGENERATE_EPS:
            raise InvalidDimensionGeometry(
                f"Angular dimension with zero-length arm or radius at {tuple(vertex)}")

        a1 = math.atan2(p1.y - vertex.y, p1.x - vertex.x)
        a3 = math.atan2(p3.y - vertex.y, p3.x - vertex.x)
        sweep = math.atan2(math.sin(a3 - a1), math.cos(a3 - a1))
        if abs(sweep) < DIM_DEGENERATE_EPS:
            raise InvalidDimensionGeometry("Angular dimension with collinear arms")

        a_end = a1 + sweep
        start = Point2D(vertex.x + radius * math.cos(a1), vertex.y + radius * math.sin(a1))
        end = Point2D(vertex.x + radius * math.cos(a_end), vertex.y + radius * math.sin(a_end))

        extension_lines = []
        for arm_len, a in ((len1, a1), (len3, a_end)):
            if arm_len < radius:
                ux, uy = math.cos(a), math.sin(a)
                r0 = arm_len + config.extension_gap
                r1 = radius + config.extension_overshoot
                extension_lines.append(ExtensionLine(
                    Point2D(vertex.x + ux * r0, vertex.y + uy * r0),
                    Point2D(vertex.x + ux * r1, vertex.y + uy * r1),
                ))

        bisector = a1 + sweep / 2.0
        text_r = radius + DIM_TEXT_OFFSET_FACTOR * config.text_height
        return Dimension(
            kind=self.kind,
            dimension_line=self._dimension_line(start, end, config),
            extension_lines=tuple(extension_lines),
            text_position=Point2D(vertex.x + text_r * math.cos(bisector),
                                  vertex.y + text_r * math.sin(bisector)),
            value=math.degrees(abs(sweep)),
            point1=p1,
            point2=p2,
            point3=p3,
            offset=radius,
            arc_radius=radius,
        )


# ---------------------------------------------------------------------------
# Реестр строителей
# ---------------------------------------------------------------------------

_REGISTRY: Dict[DimensionKind, DimensionBuilder] = {
    DimensionKind.HORIZONTAL: HorizontalBuilder(),
    DimensionKind.VERTICAL: VerticalBuilder(),
    DimensionKind.ALIGNED: AlignedBuilder(),
    DimensionKind.ANGULAR: AngularBuilder(),
}


def get_builder(kind: DimensionKind) -> DimensionBuilder:
    return _REGISTRY[kind]


def build_dimension(
    p1: Sequence[float],
    p2: Sequence[float],
    kind: Optional[DimensionKind],
    config: DimensionConfig,
    offset: Optional[float] = None,
    view_id: Optional[str] = None,
    p3: Optional[Sequence[float]] = None,
) -> Dimension:
    """Создать размер по точкам.

    Args:
        p1, p2: измеряемые точки (локальные координаты вида).
        kind: вид размера; None — автоматический выбор (classify_auto).
        config: стиль размеров.
        offset: отступ (None → config.offset; для углового — радиус,
            по умолчанию 2 × config.offset).
        view_id: вид-владелец.
        p3: второе плечо углового размера.

    Returns:
        Dimension.

    Raises:
        InvalidDimensionGeometry: вырожденный ввод.
    """
    a = Point2D(float(p1[0]), float(p1[1]))
    b = Point2D(float(p2[0]), float(p2[1]))
    c = Point2D(float(p3[0]), float(p3[1])) if p3 is not None else None

    if kind is None:
        kind = classify_auto(a, b)
    if offset is None:
        offset = config.offset
        if kind == DimensionKind.ANGULAR:
            offset *= ANGULAR_RADIUS_FACTOR

    dimension = _REGISTRY[kind].build(a, b, offset, config, c)
    logger.debug("Размер %s: значение %.4f, отступ %.3f", kind.value, dimension.value, offset)
    return replace(dimension, view_id=view_id)


# ---------------------------------------------------------------------------
# Пересчёт при перетаскивании
# ---------------------------------------------------------------------------

def offset_from_cursor(dimension: Dimension, cursor: Sequence[float]) -> Optional[float]:
    """Новый отступ размера по положению курсора (локальные координаты вида).

    Горизонтальный/вертикальный: расстояние от крайней точки до курсора
    вдоль оси; сторона — по положению курсора относительно середины.
    Параллельный: проекция (cursor − point1) на нормаль отрезка.
    Угловой: расстояние от вершины (радиус дуги).

    Returns:
        Отступ или None для вырожденного размера.
    """
    p1, p2 = dimension.point1, dimension.point2
    if dimension.kind == DimensionKind.HORIZONTAL:
        if cursor[1] >= (p1.y + p2.y) / 2.0:
            return max(cursor[1] - max(p1.y, p2.y), 0.0)
        return -max(min(p1.y, p2.y) - cursor[1], 0.0)
    if dimension.kind == DimensionKind.VERTICAL:
        if cursor[0] >= (p1.x + p2.x) / 2.0:
            return max(cursor[0] - max(p1.x, p2.x), 0.0)
        return -max(min(p1.x, p2.x) - cursor[0], 0.0)
    if dimension.kind == DimensionKind.ALIGNED:
        return perpendicular_offset(cursor, p1, p2)
    radius = distance(p2, cursor)
    return radius if radius >= DIM_DEGENERATE_EPS else None


def _geometry_update(dimension: Dimension, rebuilt: Dimension) -> Dict[str, Any]:
    """Частичное обновление: только поля геометрии, стрелки сохраняются."""
    line = replace(
        rebuilt.dimension_line,
        start_arrow=dimension.dimension_line.start_arrow,
        end_arrow=dimension.dimension_line.end_arrow,
    )
    update: Dict[str, Any] = {
        'dimension_line': line,
        'extension_lines': rebuilt.extension_lines,
        'text_position': rebuilt.text_position,
        'value': rebuilt.value,
        'offset': rebuilt.offset,
    }
    if rebuilt.arc_radius is not None:
        update['arc_radius'] = rebuilt.arc_radius
    return update


def recalculate_with_offset(
    dimension: Dimension,
    offset: float,
    config: DimensionConfig,
) -> Optional[Dict[str, Any]]:
    """Пересчитать геометрию размера для нового отступа.

    Повторный вызов с тем же отступом даёт тождественный результат.

    Returns:
        Словарь обновляемых полей или None, если геометрия вырождена.
    """
    if dimension.kind == DimensionKind.ANGULAR:
        return recalculate_angular_with_radius(dimension, offset, config)
    try:
        rebuilt = _REGISTRY[dimension.kind].build(
            dimension.point1, dimension.point2, offset, config)
    except InvalidDimensionGeometry as e:
        logger.warning("Пересчёт размера пропущен: %s", e)
        return None
    return _geometry_update(dimension, rebuilt)


def recalculate_angular_with_radius(
    dimension: Dimension,
    radius: float,
    config: DimensionConfig,
) -> Optional[Dict[str, Any]]:
    """Пересчитать угловой размер для нового радиуса дуги."""
    try:
        rebuilt = _REGISTRY[DimensionKind.ANGULAR].build(
            dimension.point1, dimension.point2, radius, config, dimension.point3)
    except InvalidDimensionGeometry as e:
        logger.warning("Пересчёт углового размера пропущен: %s", e)
        return None
    return _geometry_update(dimension, rebuilt)


def drag_update(
    dimension: Dimension,
    cursor: Sequence[float],
    config: DimensionConfig,
) -> Optional[Dict[str, Any]]:
    """Обновление размера при перетаскивании курсора (локальные координаты)."""
    offset = offset_from_cursor(dimension, cursor)
    if offset is None:
        logger.debug("Курсор на вырожденном размере — обновление пропущено")
        return None
    return recalculate_with_offset(dimension, offset, config)
