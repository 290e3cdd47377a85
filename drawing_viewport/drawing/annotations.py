"""
Надписи (nota) с линией-выноской.

Стиль надписи собирается по приоритету: собственный стиль надписи →
стиль по умолчанию чертежа → встроенный DEFAULT_ANNOTATION_STYLE.
Геометрия рамки (annotation_box) общая для отрисовки и hit-test'а.

Рамка: position — левая середина, ширина = оценка ширины текста +
2 × padding, высота = font_size + 2 × padding (мм на листе).
"""

from dataclasses import dataclass, fields, replace
from typing import Optional

import svgwrite

from drawing_viewport.config import (
    ANNOTATION_ANCHOR_RADIUS,
    ANNOTATION_DEFAULT_TEXT,
    ANNOTATION_LEADER_BEND,
    SELECTION_COLOR,
    TEXT_WIDTH_FACTOR,
)
from drawing_viewport.drawing.coordinates import CoordinateConverter
from drawing_viewport.drawing.line_styles import ThemeColors
from drawing_viewport.drawing.model import Annotation, AnnotationStyle, Drawing
from drawing_viewport.geometry.primitives import BoundingBox2D, Point2D


TRANSPARENT = 'transparent'


@dataclass(frozen=True)
class ResolvedAnnotationStyle:
    """Стиль надписи, в котором заданы все поля."""
    background_color: str
    border_color: str
    border_width: float
    border_radius: float
    text_color: str
    font_size: float
    padding: float
    leader_color: str
    leader_width: float


DEFAULT_ANNOTATION_STYLE = ResolvedAnnotationStyle(
    background_color=TRANSPARENT,
    border_color='#ffffff',
    border_width=0.25,
    border_radius=2.0,
    text_color='#ffffff',
    font_size=3.5,
    padding=2.0,
    leader_color='#ffffff',
    leader_width=0.25,
)


def resolve_style(
    annotation: Annotation,
    drawing_default: Optional[AnnotationStyle] = None,
) -> ResolvedAnnotationStyle:
    """Слить стили: поле надписи → поле стиля чертежа → встроенное значение."""
    values = {}
    for f in fields(ResolvedAnnotationStyle):
        value = None
        if annotation.style is not None:
            value = getattr(annotation.style, f.name)
        if value is None and drawing_default is not None:
            value = getattr(drawing_default, f.name)
        if value is None:
            value = getattr(DEFAULT_ANNOTATION_STYLE, f.name)
        values[f.name] = value
    return ResolvedAnnotationStyle(**values)


def display_text(annotation: Annotation) -> str:
    return annotation.text or ANNOTATION_DEFAULT_TEXT


def annotation_box(annotation: Annotation, style: ResolvedAnnotationStyle) -> BoundingBox2D:
    """Рамка надписи в локальных координатах вида (мм, ось Y вверх)."""
    text_w = len(display_text(annotation)) * style.font_size * TEXT_WIDTH_FACTOR
    width = text_w + 2.0 * style.padding
    height = style.font_size + 2.0 * style.padding
    x, y = annotation.position
    return BoundingBox2D(Point2D(x, y - height / 2.0), Point2D(x + width, y + height / 2.0))


# ---------------------------------------------------------------------------
# Отрисовка
# ---------------------------------------------------------------------------

def render_annotations(
    dwg: svgwrite.Drawing,
    drawing: Drawing,
    converter: CoordinateConverter,
    theme: ThemeColors,
    selected_id: Optional[str] = None,
    editing_text: Optional[str] = None,
) -> svgwrite.container.Group:
    """Отрисовать все надписи чертежа.

    Args:
        dwg: SVG-документ.
        drawing: снимок чертежа.
        converter: преобразователь координат.
        theme: цветовая тема (цвет размеров — запасной цвет линий).
        selected_id: выделенная надпись (рисуется цветом выделения).
        editing_text: текущий текст редактируемой надписи (selected_id).

    Returns:
        SVG-группа надписей.
    """
    group = dwg.g(id='annotations')
    s = converter.paper_to_screen_scale

    for annotation in drawing.annotations:
        if editing_text is not None and annotation.id == selected_id:
            annotation = replace(annotation, text=editing_text)
        style = resolve_style(annotation, drawing.annotation_default_style)
        origin = drawing.view_origin(annotation.view_id)
        selected = annotation.id == selected_id
        group.add(_render_annotation(dwg, annotation, style, origin, converter, s,
                                     theme, selected))
    return group


def _render_annotation(dwg, annotation, style, origin, converter, s, theme, selected):
    box = annotation_box(annotation, style)

    def to_canvas(x, y):
        return converter.paper_to_canvas((origin.x + x, origin.y + y))

    leader_color = SELECTION_COLOR if selected else (style.leader_color or theme.dimension_line)
    border_color = SELECTION_COLOR if selected else (style.border_color or theme.dimension_line)
    text_color = SELECTION_COLOR if selected else (style.text_color or theme.dimension_line)

    g = dwg.g()
    g['data-annotation-id'] = annotation.id

    anchor = to_canvas(*annotation.anchor_point)
    mid_y = box.center.y
    bend = to_canvas(box.min.x - ANNOTATION_LEADER_BEND, mid_y)
    box_left = to_canvas(box.min.x, mid_y)
    leader = dwg.polyline(points=[anchor, bend, box_left], fill='none',
                          stroke=leader_color, stroke_width=style.leader_width * s)
    leader['data-line-type'] = 'leader'
    g.add(leader)
    g.add(dwg.circle(center=anchor, r=ANNOTATION_ANCHOR_RADIUS * s, fill=leader_color))

    top_left = to_canvas(box.min.x, box.max.y)
    fill = 'none' if style.background_color == TRANSPARENT else style.background_color
    g.add(dwg.rect(insert=top_left, size=(box.width * s, box.height * s),
                   rx=style.border_radius * s, ry=style.border_radius * s,
                   fill=fill, stroke=border_color, stroke_width=style.border_width * s))

    g.add(dwg.text(
        display_text(annotation),
        insert=to_canvas(box.min.x + style.padding, mid_y),
        font_family='sans-serif',
        font_size=style.font_size * s,
        dominant_baseline='central',
        fill=text_color,
    ))
    return g
