"""
Стили линий проекций и цветовые темы холста.

Цвет, штрих и толщина линии — чистые функции типа линии. Каждая таблица
содержит запись для каждого члена LineType.

Содержит:
  - ThemeColors, CANVAS_THEMES, get_theme
  - get_dash_array        — штриховой шаблон (мм) или None
  - get_line_color        — цвет линии в теме
  - get_stroke_width_mm   — толщина линии (переопределение или по умолчанию)
  - get_dimension_stroke_width_mm
  - effective_stroke_px   — толщина в px не тоньше MIN_STROKE_PX
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from drawing_viewport.config import (
    CENTERLINE_DASH_MM,
    DEFAULT_CENTERLINE_WIDTH_MM,
    DEFAULT_DIMENSION_WIDTH_MM,
    DEFAULT_HIDDEN_WIDTH_MM,
    DEFAULT_SECTION_WIDTH_MM,
    DEFAULT_THEME,
    DEFAULT_VISIBLE_WIDTH_MM,
    HIDDEN_DASH_MM,
    MIN_STROKE_PX,
    SECTION_CUT_COLOR,
)
from drawing_viewport.drawing.model import LineType, LineWidths

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Темы
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ThemeColors:
    """Цвета элементов холста."""
    background: str
    frame_stroke: str
    grid_line: str
    grid_text: str
    title_block_bg: str
    title_block_border: str
    title_block_text: str
    title_block_label: str
    projection_line: str
    hidden_line: str
    dimension_line: str


CANVAS_THEMES: Dict[str, ThemeColors] = {
    'blueprint': ThemeColors(
        background='#00293F',
        frame_stroke='#ffffff',
        grid_line='rgba(255, 255, 255, 0.5)',
        grid_text='#7a9ab0',
        title_block_bg='rgba(0, 41, 63, 0.9)',
        title_block_border='#ffffff',
        title_block_text='#ffffff',
        title_block_label='#7a9ab0',
        projection_line='#ffffff',
        hidden_line='#5a7a9a',
        dimension_line='#ffffff',
    ),
    'white': ThemeColors(
        background='#ffffff',
        frame_stroke='#000000',
        grid_line='rgba(0, 0, 0, 0.4)',
        grid_text='#555555',
        title_block_bg='#ffffff',
        title_block_border='#000000',
        title_block_text='#000000',
        title_block_label='#666666',
        projection_line='#000000',
        hidden_line='#888888',
        dimension_line='#000000',
    ),
    'black': ThemeColors(
        background='#111111',
        frame_stroke='#e5e5e5',
        grid_line='rgba(229, 229, 229, 0.4)',
        grid_text='#9a9a9a',
        title_block_bg='#111111',
        title_block_border='#e5e5e5',
        title_block_text='#e5e5e5',
        title_block_label='#9a9a9a',
        projection_line='#e5e5e5',
        hidden_line='#777777',
        dimension_line='#e5e5e5',
    ),
}


def get_theme(name: Optional[str]) -> ThemeColors:
    """Тема по имени; неизвестное имя → тема по умолчанию."""
    theme = CANVAS_THEMES.get(name or DEFAULT_THEME)
    if theme is None:
        logger.warning("Неизвестная тема '%s' — используется %s", name, DEFAULT_THEME)
        theme = CANVAS_THEMES[DEFAULT_THEME]
    return theme


# ---------------------------------------------------------------------------
# Таблицы стилей по типу линии
# ---------------------------------------------------------------------------

# Категория линии для выбора толщины
_WIDTH_CATEGORY: Dict[LineType, str] = {
    LineType.VISIBLE_SHARP: 'visible',
    LineType.VISIBLE_OUTLINE: 'visible',
    LineType.VISIBLE_SMOOTH: 'visible',
    LineType.HIDDEN_SHARP: 'hidden',
    LineType.HIDDEN_SMOOTH: 'hidden',
    LineType.HIDDEN_OUTLINE: 'hidden',
    LineType.SECTION_CUT: 'section',
    LineType.CENTERLINE: 'centerline',
}

_DEFAULT_WIDTHS_MM: Dict[str, float] = {
    'visible': DEFAULT_VISIBLE_WIDTH_MM,
    'hidden': DEFAULT_HIDDEN_WIDTH_MM,
    'centerline': DEFAULT_CENTERLINE_WIDTH_MM,
    'section': DEFAULT_SECTION_WIDTH_MM,
}

_DASH_ARRAYS: Dict[LineType, Optional[Tuple[float, ...]]] = {
    LineType.VISIBLE_SHARP: None,
    LineType.VISIBLE_OUTLINE: None,
    LineType.VISIBLE_SMOOTH: None,
    LineType.HIDDEN_SHARP: HIDDEN_DASH_MM,
    LineType.HIDDEN_SMOOTH: HIDDEN_DASH_MM,
    LineType.HIDDEN_OUTLINE: HIDDEN_DASH_MM,
    LineType.SECTION_CUT: None,
    LineType.CENTERLINE: CENTERLINE_DASH_MM,
}


def get_dash_array(line_type: LineType) -> Optional[List[float]]:
    """Штриховой шаблон линии (мм на листе).

    Returns:
        [4, 2] для невидимых, [6, 2, 1, 2] для осевой, None для сплошных.
    """
    pattern = _DASH_ARRAYS[line_type]
    return list(pattern) if pattern is not None else None


def get_line_color(line_type: LineType, theme: ThemeColors) -> str:
    """Цвет линии: разрез — красный, невидимые — hidden_line темы, прочие — projection_line."""
    if line_type == LineType.SECTION_CUT:
        return SECTION_CUT_COLOR
    if line_type.is_hidden:
        return theme.hidden_line
    return theme.projection_line


def get_stroke_width_mm(line_type: LineType, line_widths: Optional[LineWidths] = None) -> float:
    """Толщина линии на листе (мм).

    Args:
        line_type: тип линии.
        line_widths: переопределения листа (None-поля игнорируются).

    Returns:
        Переопределённая толщина или 0.5/0.25/0.18/0.7 для
        видимых/невидимых/осевых/разреза.
    """
    category = _WIDTH_CATEGORY[line_type]
    if line_widths is not None:
        override = getattr(line_widths, category)
        if override is not None:
            return float(override)
    return _DEFAULT_WIDTHS_MM[category]


def get_dimension_stroke_width_mm(line_widths: Optional[LineWidths] = None) -> float:
    """Толщина размерных линий (мм), по умолчанию 0.25."""
    if line_widths is not None and line_widths.dimension is not None:
        return float(line_widths.dimension)
    return DEFAULT_DIMENSION_WIDTH_MM


def effective_stroke_px(width_mm: float, paper_to_screen_scale: float,
                        min_px: float = MIN_STROKE_PX) -> float:
    """Толщина в пикселях холста: max(width_mm, min_px / scale) × scale."""
    return max(width_mm, min_px / paper_to_screen_scale) * paper_to_screen_scale


def dash_array_px(line_type: LineType, paper_to_screen_scale: float) -> Optional[str]:
    """Штриховой шаблон в px для атрибута stroke-dasharray."""
    pattern = get_dash_array(line_type)
    if pattern is None:
        return None
    return ','.join(f'{v * paper_to_screen_scale:.3f}' for v in pattern)
