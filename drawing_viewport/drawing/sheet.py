"""
Рамка листа и сетка зон.

Лист вписывается в холст (coordinates.compute_sheet_layout); между
внешней и внутренней рамкой — поле сетки 8 × 6 с засечками и
обозначениями зон: 1–8 по горизонтали (сверху и снизу), A–F по
вертикали (слева и справа).

Все координаты — CSS px холста без панорамы и масштаба.
"""

import logging
from typing import Tuple

import svgwrite

from drawing_viewport.config import (
    FRAME_INNER_STROKE_PX,
    FRAME_OUTER_STROKE_PX,
    GRID_COLUMNS,
    GRID_LABEL_MIN_FONT_PX,
    GRID_ROW_LABELS,
    GRID_ROWS,
    GRID_TICK_STROKE_PX,
)
from drawing_viewport.drawing.coordinates import SheetLayout
from drawing_viewport.drawing.line_styles import ThemeColors

logger = logging.getLogger(__name__)


def _line(parent, dwg, x1, y1, x2, y2, color: str, width: float) -> None:
    parent.add(dwg.line(start=(x1, y1), end=(x2, y2), stroke=color, stroke_width=width))


def _label(parent, dwg, x, y, text, size, color) -> None:
    """Текст, центрированный по точке (x, y)."""
    parent.add(dwg.text(
        text, insert=(x, y),
        font_family='monospace',
        font_size=size,
        text_anchor='middle',
        dominant_baseline='central',
        fill=color,
    ))


def grid_label_font_size(paper_scale: float) -> float:
    """Кегль обозначений зон: max(10, 12 × paper_scale / 100)."""
    return max(GRID_LABEL_MIN_FONT_PX, 12.0 * paper_scale / 100.0)


def add_frame(
    dwg: svgwrite.Drawing,
    layout: SheetLayout,
    theme: ThemeColors,
    parent=None,
) -> Tuple[float, float, float, float]:
    """Нарисовать лист, внешнюю/внутреннюю рамку и сетку зон.

    Args:
        dwg: SVG-документ (фабрика элементов).
        layout: размещение листа на холсте.
        theme: цветовая тема.
        parent: контейнер для элементов (по умолчанию dwg).

    Returns:
        Рабочая область (x, y, w, h) в px.
    """
    target = parent if parent is not None else dwg
    g = dwg.g(id='sheet-frame')

    px, py = layout.paper_x, layout.paper_y
    pw, ph = layout.paper_width_px, layout.paper_height_px
    ix, iy, iw, ih = layout.inner_area
    gm = layout.grid_margin

    g.add(dwg.rect(insert=(px, py), size=(pw, ph), fill='none',
                   stroke=theme.frame_stroke, stroke_width=FRAME_OUTER_STROKE_PX))
    g.add(dwg.rect(insert=(ix, iy), size=(iw, ih), fill='none',
                   stroke=theme.frame_stroke, stroke_width=FRAME_INNER_STROKE_PX))

    _add_grid(g, dwg, layout, theme)
    target.add(g)

    logger.debug("Рамка листа: %.0f×%.0f мм, масштаб %.3f px/мм, поле %.1f px",
                 layout.paper_width_mm, layout.paper_height_mm, layout.paper_scale, gm)
    return layout.inner_area


def _add_grid(g, dwg, layout: SheetLayout, theme: ThemeColors) -> None:
    """Засечки и обозначения зон в поле между рамками."""
    px, py = layout.paper_x, layout.paper_y
    pw, ph = layout.paper_width_px, layout.paper_height_px
    ix, iy, iw, ih = layout.inner_area
    gm = layout.grid_margin
    cell_w = iw / GRID_COLUMNS
    cell_h = ih / GRID_ROWS
    font = grid_label_font_size(layout.paper_scale)

    # Засечки между зонами
    for i in range(1, GRID_COLUMNS):
        x = ix + i * cell_w
        _line(g, dwg, x, py, x, iy, theme.grid_line, GRID_TICK_STROKE_PX)
        _line(g, dwg, x, iy + ih, x, py + ph, theme.grid_line, GRID_TICK_STROKE_PX)
    for j in range(1, GRID_ROWS):
        y = iy + j * cell_h
        _line(g, dwg, px, y, ix, y, theme.grid_line, GRID_TICK_STROKE_PX)
        _line(g, dwg, ix + iw, y, px + pw, y, theme.grid_line, GRID_TICK_STROKE_PX)

    # Обозначения: цифры по столбцам, буквы по строкам
    for i in range(GRID_COLUMNS):
        x = ix + (i + 0.5) * cell_w
        text = str(i + 1)
        _label(g, dwg, x, py + gm / 2.0, text, font, theme.grid_text)
        _label(g, dwg, x, py + ph - gm / 2.0, text, font, theme.grid_text)
    for j in range(GRID_ROWS):
        y = iy + (j + 0.5) * cell_h
        text = GRID_ROW_LABELS[j]
        _label(g, dwg, px + gm / 2.0, y, text, font, theme.grid_text)
        _label(g, dwg, px + pw - gm / 2.0, y, text, font, theme.grid_text)


def add_background(dwg: svgwrite.Drawing, width: float, height: float,
                   theme: ThemeColors, parent=None) -> None:
    """Залить весь холст цветом фона темы."""
    target = parent if parent is not None else dwg
    target.add(dwg.rect(insert=(0, 0), size=(width, height), fill=theme.background))
