"""
SVG-рендеринг кадра вьюпорта.

Содержит:
- render_view  — линии одного вида, его габарит и подпись
- render_frame — полный кадр: фон, лист, виды, размеры, надписи,
                 индикатор привязки и указанные точки

Кадр — чистая функция (снимок чертежа, состояние вьюпорта,
преобразователь координат, тема). Элементы листа рисуются в px холста
(CoordinateConverter.paper_to_canvas); панорама и масштаб вьюпорта —
одно transform-преобразование группы 'viewport'.
"""

import logging
from typing import Optional

import svgwrite

from drawing_viewport.config import (
    PICKED_POINT_COLOR,
    PICKED_POINT_FIRST_COLOR,
    PICKED_POINT_OUTLINE,
    PICKED_POINT_RADIUS_PX,
    SNAP_INDICATOR_SIZE_PX,
    VIEW_BBOX_COLOR,
    VIEW_BBOX_DRAG_COLOR,
    VIEW_BBOX_HOVER_COLOR,
    VIEW_BBOX_PADDING_MM,
    VIEW_LABEL_DEFAULT,
    VIEW_LABEL_GAP_MM,
)
from drawing_viewport.drawing.annotations import render_annotations
from drawing_viewport.drawing.coordinates import CoordinateConverter
from drawing_viewport.drawing.dimensions.renderer import render_dimensions
from drawing_viewport.drawing.line_styles import (
    ThemeColors,
    dash_array_px,
    effective_stroke_px,
    get_line_color,
    get_stroke_width_mm,
    get_theme,
)
from drawing_viewport.drawing.model import (
    DisplayOptions,
    Drawing,
    DrawingView,
    LineWidths,
)
from drawing_viewport.drawing.sheet import add_background, add_frame
from drawing_viewport.drawing.title_block import add_title_block
from drawing_viewport.interaction.snap import SNAP_INDICATOR_STYLES, SnapResult
from drawing_viewport.interaction.state import ViewportState

logger = logging.getLogger(__name__)

CLIP_ID = 'drawing-area'


def view_label(view: DrawingView) -> str:
    """Подпись вида: собственная, иначе из проекции, иначе 'View'."""
    return view.label or view.projection.label or VIEW_LABEL_DEFAULT


# ---------------------------------------------------------------------------
# Вид
# ---------------------------------------------------------------------------

def render_view(
    dwg: svgwrite.Drawing,
    view: DrawingView,
    converter: CoordinateConverter,
    theme: ThemeColors,
    hovered: bool = False,
    dragging: bool = False,
    display_options: Optional[DisplayOptions] = None,
    line_widths: Optional[LineWidths] = None,
) -> svgwrite.container.Group:
    """Отрисовать линии вида в SVG-группу.

    Линии сдвигаются на центр габарита проекции и ставятся в позицию
    вида. Габарит (+3 мм) окрашивается по состоянию: перетаскивание,
    наведение, обычный. Подпись — по центру на half_h + 5 мм ниже центра.

    Args:
        dwg: SVG-документ.
        view: вид.
        converter: преобразователь координат.
        theme: цветовая тема.
        hovered: курсор над видом.
        dragging: вид перетаскивается.
        display_options: флаги габарита и подписи.
        line_widths: толщины линий листа.

    Returns:
        SVG-группа вида.
    """
    options = display_options or DisplayOptions()
    s = converter.paper_to_screen_scale
    g = dwg.g(id=f'view-{view.id}')
    g['data-view-type'] = view.projection_type.value

    for line in view.projection.lines:
        start = converter.paper_to_canvas(converter.projection_to_paper(view, line.start))
        end = converter.paper_to_canvas(converter.projection_to_paper(view, line.end))
        width = effective_stroke_px(get_stroke_width_mm(line.line_type, line_widths), s)
        element = dwg.line(
            start=start, end=end,
            stroke=get_line_color(line.line_type, theme),
            stroke_width=width,
            stroke_linecap='round',
        )
        dashes = dash_array_px(line.line_type, s)
        if dashes is not None:
            element['stroke-dasharray'] = dashes
        element['data-line-type'] = line.line_type.value
        g.add(element)

    bbox = view.projection.bounding_box
    half_w = bbox.width / 2.0
    half_h = bbox.height / 2.0
    x, y = view.position

    if options.show_bounding_boxes:
        if dragging:
            color = VIEW_BBOX_DRAG_COLOR
        elif hovered:
            color = VIEW_BBOX_HOVER_COLOR
        else:
            color = VIEW_BBOX_COLOR
        pad = VIEW_BBOX_PADDING_MM
        top_left = converter.paper_to_canvas((x - half_w - pad, y + half_h + pad))
        rect = dwg.rect(
            insert=top_left,
            size=((bbox.width + 2 * pad) * s, (bbox.height + 2 * pad) * s),
            fill='none', stroke=color, stroke_width=1,
        )
        rect['stroke-dasharray'] = '4,4'
        rect['data-role'] = 'view-bbox'
        g.add(rect)

    if options.show_view_labels:
        g.add(dwg.text(
            view_label(view),
            insert=converter.paper_to_canvas((x, y - half_h - VIEW_LABEL_GAP_MM)),
            font_family='sans-serif',
            font_size=max(10.0, 3.5 * s),
            text_anchor='middle',
            dominant_baseline='hanging',
            fill=theme.grid_text,
        ))

    return g


# ---------------------------------------------------------------------------
# Привязка и указанные точки
# ---------------------------------------------------------------------------

def _render_snap_indicator(dwg, snap: SnapResult, converter: CoordinateConverter):
    style = SNAP_INDICATOR_STYLES[snap.snap.snap_type]
    cx, cy = converter.paper_to_canvas(snap.paper_point)
    size = SNAP_INDICATOR_SIZE_PX
    half = size / 2.0
    stroke = dict(fill='none', stroke=style.color, stroke_width=size * 0.25)

    g = dwg.g(id='snap-indicator')
    g['data-snap-type'] = snap.snap.snap_type.value
    if style.symbol == 'square':
        g.add(dwg.rect(insert=(cx - half, cy - half), size=(size, size), **stroke))
        g.add(dwg.line(start=(cx - size * 0.2, cy), end=(cx + size * 0.2, cy), **stroke))
        g.add(dwg.line(start=(cx, cy - size * 0.2), end=(cx, cy + size * 0.2), **stroke))
    elif style.symbol == 'triangle':
        g.add(dwg.polygon(points=[(cx, cy + half), (cx - half, cy - half),
                                  (cx + half, cy - half)], **stroke))
    elif style.symbol == 'x':
        d = size * 0.35
        g.add(dwg.circle(center=(cx, cy), r=size * 0.6, **stroke))
        g.add(dwg.line(start=(cx - d, cy - d), end=(cx + d, cy + d), **stroke))
        g.add(dwg.line(start=(cx + d, cy - d), end=(cx - d, cy + d), **stroke))
    else:
        g.add(dwg.circle(center=(cx, cy), r=half, **stroke))
        g.add(dwg.circle(center=(cx, cy), r=size * 0.15, fill=style.color))
    return g


def _render_picked_points(dwg, points, converter: CoordinateConverter):
    g = dwg.g(id='picked-points')
    for i, picked in enumerate(points):
        g.add(dwg.circle(
            center=converter.paper_to_canvas(picked.paper),
            r=PICKED_POINT_RADIUS_PX,
            fill=PICKED_POINT_FIRST_COLOR if i == 0 else PICKED_POINT_COLOR,
            stroke=PICKED_POINT_OUTLINE,
            stroke_width=1.5,
        ))
    return g


# ---------------------------------------------------------------------------
# Кадр
# ---------------------------------------------------------------------------

def render_frame(
    drawing: Drawing,
    state: ViewportState,
    converter: CoordinateConverter,
    theme: Optional[ThemeColors] = None,
) -> svgwrite.Drawing:
    """Собрать кадр вьюпорта.

    Порядок: фон; группа панорамы/масштаба с рамкой, штампом и
    отсечённой рабочей областью (виды, размеры, надписи); индикатор
    привязки; указанные точки.

    Args:
        drawing: снимок чертежа.
        state: состояние вьюпорта (панорама, масштаб, выделение, ...).
        converter: преобразователь координат листа и холста.
        theme: цветовая тема (по умолчанию — тема по умолчанию).

    Returns:
        svgwrite.Drawing размером с холст в физических пикселях.
    """
    theme = theme or get_theme(None)
    converter = converter.with_viewport(state.pan, state.zoom)
    canvas = converter.canvas
    css_w, css_h = canvas.css_width, canvas.css_height

    dwg = svgwrite.Drawing(
        size=(f'{canvas.width}px', f'{canvas.height}px'),
        viewBox=f'0 0 {css_w} {css_h}',
        debug=False,
    )
    add_background(dwg, css_w, css_h, theme)

    c = converter.screen_center
    viewport = dwg.g(
        id='viewport',
        transform=(f'translate({c.x + state.pan.x},{c.y + state.pan.y}) '
                   f'scale({state.zoom}) translate({-c.x},{-c.y})'),
    )

    inner_area = add_frame(dwg, converter.layout, theme, parent=viewport)
    add_title_block(dwg, drawing, inner_area, theme, parent=viewport)

    ix, iy, iw, ih = inner_area
    clip = dwg.defs.add(dwg.clipPath(id=CLIP_ID))
    clip.add(dwg.rect(insert=(ix, iy), size=(iw, ih)))
    content = dwg.g(id='drawing-content', clip_path=f'url(#{CLIP_ID})')

    line_widths = drawing.sheet_config.line_widths
    for view in drawing.views:
        if not view.visible:
            continue
        content.add(render_view(
            dwg, view, converter, theme,
            hovered=view.id == state.hovered_view_id,
            dragging=view.id == state.dragging_view_id,
            display_options=drawing.display_options,
            line_widths=line_widths,
        ))

    content.add(render_dimensions(dwg, drawing, converter, theme,
                                  selected_index=state.selected_dimension_index))

    editing = state.editing
    if editing is not None:
        content.add(render_annotations(dwg, drawing, converter, theme,
                                       selected_id=editing.annotation_id,
                                       editing_text=editing.text))
    else:
        content.add(render_annotations(dwg, drawing, converter, theme,
                                       selected_id=state.selected_annotation_id))
    viewport.add(content)

    if state.active_snap is not None and state.tool is not None:
        viewport.add(_render_snap_indicator(dwg, state.active_snap, converter))

    picked = state.picked_points
    if picked:
        viewport.add(_render_picked_points(dwg, picked, converter))

    dwg.add(viewport)
    logger.debug("Кадр: %d видов, %d размеров, %d надписей, zoom %.2f",
                 len(drawing.views), len(drawing.dimensions),
                 len(drawing.annotations), state.zoom)
    return dwg
