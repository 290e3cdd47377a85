"""
Основная надпись (штамп) и символ метода проецирования.

Штамп прижат к правому нижнему углу рабочей области:
  строка 1 — TITLE (высота 1.3 строки);
  строка 2 — UNITS | PROJ. ANGLE (символ) | SIZE;
  строка 3 — SCALE | LAST UPDATE | SHEET.
Ширины столбцов строк 2–3 — 27% / 42% / 31% ширины штампа.

Размеры штампа в px холста: ширина min(200, 0.3 × w), высота строки
min(32, 0.05 × h) рабочей области.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

import svgwrite

from drawing_viewport.config import (
    PAPER_SIZES,
    TEXT_WIDTH_FACTOR,
    TITLE_BLOCK_CELL_PADDING,
    TITLE_BLOCK_COL1,
    TITLE_BLOCK_COL2,
    TITLE_BLOCK_DEFAULT_SHEET,
    TITLE_BLOCK_MAX_ROW_PX,
    TITLE_BLOCK_MAX_WIDTH_PX,
    TITLE_BLOCK_ROW_FRACTION,
    TITLE_BLOCK_STROKE_PX,
    TITLE_BLOCK_TITLE_ROW_FACTOR,
    TITLE_BLOCK_UNTITLED,
    TITLE_BLOCK_WIDTH_FRACTION,
)
from drawing_viewport.drawing.line_styles import ThemeColors
from drawing_viewport.drawing.model import Drawing, ProjectionAngle

logger = logging.getLogger(__name__)

ELLIPSIS = '…'


# ---------------------------------------------------------------------------
# Форматирование полей
# ---------------------------------------------------------------------------

def format_scale(scale: float) -> str:
    """Масштаб: '1:N' при scale < 1, иначе 'N:1'."""
    if scale < 1.0:
        return f"1:{round(1.0 / scale)}"
    return f"{round(scale)}:1"


def format_update_date(updated_at_ms: Optional[float]) -> str:
    """Дата изменения dd/mm/yy (UTC); '-' если не задана."""
    if not updated_at_ms:
        return '-'
    moment = datetime.fromtimestamp(updated_at_ms / 1000.0, tz=timezone.utc)
    return moment.strftime('%d/%m/%y')


def estimate_text_width(text: str, font_size: float) -> float:
    """Оценка ширины строки без измерения шрифта."""
    return len(text) * font_size * TEXT_WIDTH_FACTOR


def truncate_text(text: str, max_width: float, font_size: float) -> str:
    """Обрезать строку с многоточием, чтобы она уместилась в max_width."""
    if estimate_text_width(text, font_size) <= max_width:
        return text
    cut = text
    while cut and estimate_text_width(cut + ELLIPSIS, font_size) > max_width:
        cut = cut[:-1]
    return cut + ELLIPSIS


def title_text(drawing: Drawing) -> str:
    """Заголовок: title_block_info.title → имя чертежа → 'Untitled'."""
    return (drawing.sheet_config.title_block_info.title
            or drawing.name
            or TITLE_BLOCK_UNTITLED)


def size_text(drawing: Drawing) -> str:
    size = drawing.sheet_config.size
    return size if size in PAPER_SIZES else 'Custom'


# ---------------------------------------------------------------------------
# Геометрия штампа
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TitleBlockGeometry:
    """Положение и размеры штампа (px холста)."""
    x: float
    y: float
    width: float
    row_height: float
    title_row_height: float

    @property
    def height(self) -> float:
        return self.title_row_height + 2.0 * self.row_height

    @property
    def column_edges(self) -> Tuple[float, float]:
        """Внутренние вертикальные границы столбцов строк 2–3."""
        c1 = self.x + self.width * TITLE_BLOCK_COL1
        c2 = c1 + self.width * TITLE_BLOCK_COL2
        return c1, c2


def compute_title_block(inner_area: Tuple[float, float, float, float]) -> TitleBlockGeometry:
    """Разместить штамп в правом нижнем углу рабочей области."""
    ax, ay, aw, ah = inner_area
    width = min(TITLE_BLOCK_MAX_WIDTH_PX, aw * TITLE_BLOCK_WIDTH_FRACTION)
    row_h = min(TITLE_BLOCK_MAX_ROW_PX, ah * TITLE_BLOCK_ROW_FRACTION)
    title_h = row_h * TITLE_BLOCK_TITLE_ROW_FACTOR
    height = title_h + 2.0 * row_h
    return TitleBlockGeometry(
        x=ax + aw - width,
        y=ay + ah - height,
        width=width,
        row_height=row_h,
        title_row_height=title_h,
    )


# ---------------------------------------------------------------------------
# Отрисовка
# ---------------------------------------------------------------------------

def _cell(g, dwg, x, y, w, h, label, value, theme, label_size, value_size) -> None:
    """Ячейка: подпись в левом верхнем углу, значение по центру снизу."""
    pad = TITLE_BLOCK_CELL_PADDING
    g.add(dwg.text(label, insert=(x + pad, y + pad + label_size),
                   font_family='sans-serif', font_size=label_size,
                   fill=theme.title_block_label))
    if value:
        value = truncate_text(value, w - 2.0 * pad, value_size)
        g.add(dwg.text(value, insert=(x + w / 2.0, y + h - pad),
                       font_family='sans-serif', font_size=value_size,
                       text_anchor='middle', fill=theme.title_block_text))


def add_title_block(
    dwg: svgwrite.Drawing,
    drawing: Drawing,
    inner_area: Tuple[float, float, float, float],
    theme: ThemeColors,
    parent=None,
) -> TitleBlockGeometry:
    """Нарисовать основную надпись.

    Args:
        dwg: SVG-документ.
        drawing: снимок чертежа (лист, имя, дата).
        inner_area: рабочая область (x, y, w, h) в px.
        theme: цветовая тема.
        parent: контейнер (по умолчанию dwg).

    Returns:
        Геометрия штампа.
    """
    target = parent if parent is not None else dwg
    tb = compute_title_block(inner_area)
    sheet = drawing.sheet_config
    g = dwg.g(id='title-block')

    label_size = max(7.0, tb.width * 0.038)
    value_size = max(10.0, tb.width * 0.055)
    title_size = max(12.0, tb.width * 0.07)

    g.add(dwg.rect(insert=(tb.x, tb.y), size=(tb.width, tb.height),
                   fill=theme.title_block_bg, stroke=theme.title_block_border,
                   stroke_width=TITLE_BLOCK_STROKE_PX))

    row2_y = tb.y + tb.title_row_height
    row3_y = row2_y + tb.row_height
    bottom = tb.y + tb.height
    right = tb.x + tb.width
    c1, c2 = tb.column_edges

    for y in (row2_y, row3_y):
        g.add(dwg.line(start=(tb.x, y), end=(right, y),
                       stroke=theme.title_block_border, stroke_width=TITLE_BLOCK_STROKE_PX))
    for x in (c1, c2):
        g.add(dwg.line(start=(x, row2_y), end=(x, bottom),
                       stroke=theme.title_block_border, stroke_width=TITLE_BLOCK_STROKE_PX))

    _cell(g, dwg, tb.x, tb.y, tb.width, tb.title_row_height,
          'TITLE', title_text(drawing), theme, label_size, title_size)

    widths = (c1 - tb.x, c2 - c1, right - c2)
    xs = (tb.x, c1, c2)
    rh = tb.row_height

    _cell(g, dwg, xs[0], row2_y, widths[0], rh, 'UNITS', sheet.units, theme, label_size, value_size)
    _cell(g, dwg, xs[1], row2_y, widths[1], rh, 'PROJ. ANGLE', None, theme, label_size, value_size)
    _cell(g, dwg, xs[2], row2_y, widths[2], rh, 'SIZE', size_text(drawing), theme, label_size, value_size)

    symbol_size = min(widths[1] * 0.25, rh * 0.5)
    add_projection_symbol(
        g, dwg,
        cx=xs[1] + widths[1] / 2.0,
        cy=row2_y + rh / 2.0 + label_size * 0.4,
        size=symbol_size,
        angle=sheet.projection_angle,
        color=theme.title_block_text,
    )

    sheet_number = sheet.title_block_info.sheet_number or TITLE_BLOCK_DEFAULT_SHEET
    _cell(g, dwg, xs[0], row3_y, widths[0], rh, 'SCALE', format_scale(sheet.scale),
          theme, label_size, value_size)
    _cell(g, dwg, xs[1], row3_y, widths[1], rh, 'LAST UPDATE',
          format_update_date(drawing.updated_at), theme, label_size, value_size)
    _cell(g, dwg, xs[2], row3_y, widths[2], rh, 'SHEET', sheet_number,
          theme, label_size, value_size)

    target.add(g)
    logger.debug("Штамп: %.0f×%.0f px в (%.0f, %.0f)", tb.width, tb.height, tb.x, tb.y)
    return tb


def add_projection_symbol(
    parent,
    dwg: svgwrite.Drawing,
    cx: float,
    cy: float,
    size: float,
    angle: ProjectionAngle,
    color: str,
    stroke_width: float = 1.0,
) -> None:
    """Символ метода проецирования: усечённый конус и «мишень».

    Конус — трапеция длиной 1.2·s с торцами 0.4·s (слева) и 0.7·s;
    мишень — окружности r и 0.35·r (r = 0.5·s) с перекрестием ±1.4·r.
    Первый угол: конус слева, мишень справа; третий — наоборот.
    """
    spacing = size * 1.2
    if angle == ProjectionAngle.FIRST:
        cone_x, target_x = cx - spacing / 2.0, cx + spacing / 2.0
    else:
        cone_x, target_x = cx + spacing / 2.0, cx - spacing / 2.0

    half_len = size * 0.6
    small = size * 0.2
    large = size * 0.35
    parent.add(dwg.polygon(
        points=[
            (cone_x - half_len, cy - small),
            (cone_x + half_len, cy - large),
            (cone_x + half_len, cy + large),
            (cone_x - half_len, cy + small),
        ],
        fill='none', stroke=color, stroke_width=stroke_width,
    ))

    r = size * 0.5
    parent.add(dwg.circle(center=(target_x, cy), r=r, fill='none',
                          stroke=color, stroke_width=stroke_width))
    parent.add(dwg.circle(center=(target_x, cy), r=r * 0.35, fill='none',
                          stroke=color, stroke_width=stroke_width))
    cross = r * 1.4
    parent.add(dwg.line(start=(target_x - cross, cy), end=(target_x + cross, cy),
                        stroke=color, stroke_width=stroke_width * 0.5))
    parent.add(dwg.line(start=(target_x, cy - cross), end=(target_x, cy + cross),
                        stroke=color, stroke_width=stroke_width * 0.5))
