"""
SVG-рендеринг размеров чертежа.

Содержит:
- render_dimensions      — отрисовка всех размеров в SVG-группу
- dimension_text         — текст размера с учётом масштаба, единиц и изометрии
- _render_arrow_by_style — dispatch стрелки по ArrowStyle
- _create_open_arrow     — два штриха под ±30° (стиль OPEN)
- _create_filled_arrow   — заполненный треугольник (стиль FILLED)
- _create_tick_marker    — засечка 45°
- _create_dot_marker     — точка
- _create_dim_text       — надпись вдоль размерной линии
- _create_arc            — дуга углового размера

Координаты размеров локальные (мм, ось Y вверх); здесь они переводятся
в px холста через CoordinateConverter.paper_to_canvas.
"""

import math
from typing import Optional, Sequence, Tuple

import svgwrite

from drawing_viewport.config import DIM_ARROW_ANGLE_DEG, SELECTION_COLOR
from drawing_viewport.drawing.coordinates import CoordinateConverter, real_value
from drawing_viewport.drawing.dimensions.builders import text_angle
from drawing_viewport.drawing.dimensions.geometry import (
    ArrowStyle,
    Dimension,
    DimensionKind,
)
from drawing_viewport.drawing.dimensions.values import dimension_label
from drawing_viewport.drawing.line_styles import (
    ThemeColors,
    effective_stroke_px,
    get_dimension_stroke_width_mm,
)
from drawing_viewport.drawing.model import Drawing
from drawing_viewport.geometry.primitives import Point2D


def dimension_text(drawing: Drawing, dimension: Dimension) -> str:
    """Текст размера: реальное значение в единицах стиля размеров.

    Args:
        drawing: снимок чертежа (масштаб, единицы, виды).
        dimension: размер.

    Returns:
        Строка надписи (например '800.00' или '45.00°').
    """
    sheet = drawing.sheet_config
    view = drawing.view_by_id(dimension.view_id)
    projection_type = view.projection_type if view is not None else None
    real = real_value(dimension.value, sheet.scale, sheet.units, projection_type)
    return dimension_label(dimension, drawing.dimension_config, real)


# ---------------------------------------------------------------------------
# Публичная функция рендеринга
# ---------------------------------------------------------------------------

def render_dimensions(
    dwg: svgwrite.Drawing,
    drawing: Drawing,
    converter: CoordinateConverter,
    theme: ThemeColors,
    selected_index: Optional[int] = None,
) -> svgwrite.container.Group:
    """Отрисовать все размеры чертежа в SVG-группу.

    Args:
        dwg: SVG-документ.
        drawing: снимок чертежа.
        converter: преобразователь координат (лист → холст).
        theme: цветовая тема.
        selected_index: индекс выделенного размера.

    Returns:
        SVG-группа со всеми размерами.
    """
    dim_group = dwg.g(id='dimensions')
    s = converter.paper_to_screen_scale
    config = drawing.dimension_config
    stroke_px = effective_stroke_px(
        get_dimension_stroke_width_mm(drawing.sheet_config.line_widths), s)
    arrow_px = config.arrow_size * s
    font_px = config.text_height * s

    for index, dim in enumerate(drawing.dimensions):
        origin = drawing.view_origin(dim.view_id)
        color = SELECTION_COLOR if index == selected_index else theme.dimension_line

        def to_canvas(p: Sequence[float]) -> Point2D:
            return converter.paper_to_canvas((origin.x + p[0], origin.y + p[1]))

        text = dimension_text(drawing, dim)
        single = dwg.g()
        single['data-dim-index'] = str(index)
        single['data-dim-kind'] = dim.kind.value
        single['data-dim-value'] = text

        for ext in dim.extension_lines:
            line = dwg.line(start=to_canvas(ext.start), end=to_canvas(ext.end),
                            stroke=color, stroke_width=stroke_px)
            line['data-line-type'] = 'extension'
            single.add(line)

        start = to_canvas(dim.dimension_line.start)
        end = to_canvas(dim.dimension_line.end)

        if dim.kind == DimensionKind.ANGULAR:
            vertex = to_canvas(dim.point2)
            single.add(_create_arc(dwg, vertex, start, end, color, stroke_px))
            start_from, end_from = _arc_arrow_bases(vertex, start, end, arrow_px)
        else:
            line = dwg.line(start=start, end=end, stroke=color, stroke_width=stroke_px)
            line['data-line-type'] = 'dimension'
            single.add(line)
            start_from, end_from = end, start

        _render_arrow_by_style(dwg, single, start_from, start,
                               dim.dimension_line.start_arrow, arrow_px, color, stroke_px)
        _render_arrow_by_style(dwg, single, end_from, end,
                               dim.dimension_line.end_arrow, arrow_px, color, stroke_px)

        if dim.kind == DimensionKind.ANGULAR:
            angle = 0.0
        else:
            angle, _ = text_angle(dim.dimension_line.start, dim.dimension_line.end)
        single.add(_create_dim_text(dwg, text, to_canvas(dim.text_position),
                                    angle, font_px, color))
        dim_group.add(single)

    return dim_group


# ---------------------------------------------------------------------------
# Примитивы размерных элементов
# ---------------------------------------------------------------------------

def _render_arrow_by_style(
    dwg: svgwrite.Drawing,
    group: svgwrite.container.Group,
    from_pt: Tuple[float, float],
    tip: Tuple[float, float],
    style: ArrowStyle,
    size: float,
    color: str,
    stroke_width: float,
) -> None:
    """Dispatch: стрелка/засечка/точка в конце tip линии from_pt → tip."""
    if style == ArrowStyle.NONE:
        return
    angle = math.atan2(tip[1] - from_pt[1], tip[0] - from_pt[0])
    if style == ArrowStyle.DOT:
        group.add(_create_dot_marker(dwg, tip, size, color))
    elif style == ArrowStyle.TICK:
        group.add(_create_tick_marker(dwg, tip, angle, size, color, stroke_width))
    elif style == ArrowStyle.OPEN:
        for line in _create_open_arrow(dwg, tip, angle, size, color, stroke_width):
            group.add(line)
    else:
        group.add(_create_filled_arrow(dwg, tip, angle, size, color))


def _arrow_wings(tip, angle: float, size: float):
    half = math.radians(DIM_ARROW_ANGLE_DEG)
    return [
        (tip[0] - size * math.cos(angle - half), tip[1] - size * math.sin(angle - half)),
        (tip[0] - size * math.cos(angle + half), tip[1] - size * math.sin(angle + half)),
    ]


def _create_open_arrow(dwg, tip, angle, size, color, stroke_width):
    """Два штриха длиной size под ±30° к линии."""
    lines = []
    for wing in _arrow_wings(tip, angle, size):
        line = dwg.line(start=tip, end=wing, stroke=color, stroke_width=stroke_width)
        line['data-line-type'] = 'arrow'
        lines.append(line)
    return lines


def _create_filled_arrow(dwg, tip, angle, size, color) -> svgwrite.shapes.Polygon:
    w1, w2 = _arrow_wings(tip, angle, size)
    return dwg.polygon(points=[tuple(tip), w1, w2], fill=color, stroke='none')


def _create_tick_marker(dwg, position, angle, size, color, stroke_width) -> svgwrite.shapes.Line:
    """Засечка под 45° к размерной линии."""
    half = size / 2.0
    tick = angle + math.pi / 4.0
    dx, dy = half * math.cos(tick), half * math.sin(tick)
    x, y = position
    line = dwg.line(start=(x - dx, y - dy), end=(x + dx, y + dy),
                    stroke=color, stroke_width=stroke_width * 2.0)
    line['data-line-type'] = 'tick'
    return line


def _create_dot_marker(dwg, position, size, color) -> svgwrite.shapes.Circle:
    return dwg.circle(center=tuple(position), r=size / 4.0, fill=color, stroke='none')


def _create_dim_text(
    dwg: svgwrite.Drawing,
    text: str,
    position: Tuple[float, float],
    angle_deg: float,
    font_px: float,
    color: str,
) -> svgwrite.text.Text:
    """Надпись с центром в position, повёрнутая вдоль размерной линии.

    angle_deg задан в системе листа (ось Y вверх), поэтому в SVG
    поворот берётся с обратным знаком.
    """
    x, y = position
    txt = dwg.text(
        text,
        insert=(x, y),
        font_family='sans-serif',
        font_size=font_px,
        text_anchor='middle',
        dominant_baseline='central',
        fill=color,
    )
    if abs(angle_deg) > 0.1:
        txt['transform'] = f"rotate({-angle_deg:.2f},{x:.4f},{y:.4f})"
    return txt


def _create_arc(dwg, vertex, start, end, color, stroke_width) -> svgwrite.path.Path:
    """Дуга углового размера (меньшая дуга между start и end)."""
    radius = math.hypot(start[0] - vertex[0], start[1] - vertex[1])
    cross = ((start[0] - vertex[0]) * (end[1] - vertex[1])
             - (start[1] - vertex[1]) * (end[0] - vertex[0]))
    sweep = 1 if cross > 0 else 0
    d = (f"M {start[0]:.4f},{start[1]:.4f} "
         f"A {radius:.4f},{radius:.4f} 0 0,{sweep} {end[0]:.4f},{end[1]:.4f}")
    path = dwg.path(d=d, fill='none', stroke=color, stroke_width=stroke_width)
    path['data-line-type'] = 'dimension'
    return path


def _arc_arrow_bases(vertex, start, end, size) -> Tuple[Point2D, Point2D]:
    """Точки, задающие касательное направление стрелок на концах дуги."""
    cross = ((start[0] - vertex[0]) * (end[1] - vertex[1])
             - (start[1] - vertex[1]) * (end[0] - vertex[0]))
    turn = 1.0 if cross > 0 else -1.0

    def base(point, direction):
        rx, ry = point[0] - vertex[0], point[1] - vertex[1]
        r = math.hypot(rx, ry) or 1.0
        tx, ty = -ry / r * direction, rx / r * direction
        return Point2D(point[0] - tx * size, point[1] - ty * size)

    # Стрелка в начале смотрит против хода дуги, в конце — по ходу
    return base(start, -turn), base(end, turn)
