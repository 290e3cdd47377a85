"""
Константы движка координат и размеров чертежа.

Все значения по умолчанию собраны здесь; project_config.py использует их
как значения полей, а модули отрисовки и взаимодействия — напрямую.

Разделы:
  - Форматы бумаги
  - Пространства координат
  - Рамка и сетка
  - Основная надпись
  - Линии
  - Размеры
  - Попадание (hit-test) и привязки
  - Компоновка видов
  - Вьюпорт (масштаб, панорама)
"""

import math

# ---------------------------------------------------------------------------
# Форматы бумаги (мм, книжная ориентация: ширина × высота)
# ---------------------------------------------------------------------------

PAPER_SIZES = {
    'A0': (841.0, 1189.0),
    'A1': (594.0, 841.0),
    'A2': (420.0, 594.0),
    'A3': (297.0, 420.0),
    'A4': (210.0, 297.0),
}
DEFAULT_PAPER_SIZE = 'A3'

# ---------------------------------------------------------------------------
# Пространства координат
# ---------------------------------------------------------------------------

# Единица модели — метр; множитель переводит метры в единицы чертежа
UNIT_FACTORS = {
    'mm': 1000.0,
    'cm': 100.0,
    'm': 1.0,
    'in': 39.3701,
    'ft': 3.28084,
}

# Миллиметров в одной единице отображения
UNIT_TO_MM = {
    'mm': 1.0,
    'cm': 10.0,
    'm': 1000.0,
    'in': 25.4,
    'ft': 304.8,
}

# Доля ширины листа под рабочую область (8% — поле сетки)
INNER_AREA_FRACTION = 0.92

# Укорочение по осям изометрии
ISOMETRIC_FORESHORTENING = math.sqrt(2.0 / 3.0)

# ---------------------------------------------------------------------------
# Рамка и сетка
# ---------------------------------------------------------------------------

FRAME_OUTER_MARGIN_PX = 10.0
PAPER_FIT_FACTOR = 0.95
GRID_MARGIN_FRACTION = 0.04
GRID_COLUMNS = 8
GRID_ROWS = 6
GRID_ROW_LABELS = 'ABCDEF'
FRAME_OUTER_STROKE_PX = 0.5
FRAME_INNER_STROKE_PX = 1.5
GRID_TICK_STROKE_PX = 0.3
GRID_LABEL_MIN_FONT_PX = 10.0

# ---------------------------------------------------------------------------
# Основная надпись
# ---------------------------------------------------------------------------

TITLE_BLOCK_MAX_WIDTH_PX = 200.0
TITLE_BLOCK_WIDTH_FRACTION = 0.3
TITLE_BLOCK_MAX_ROW_PX = 32.0
TITLE_BLOCK_ROW_FRACTION = 0.05
TITLE_BLOCK_TITLE_ROW_FACTOR = 1.3
TITLE_BLOCK_COL1 = 0.27
TITLE_BLOCK_COL2 = 0.42
TITLE_BLOCK_CELL_PADDING = 3.0
TITLE_BLOCK_STROKE_PX = 1.0
TITLE_BLOCK_DEFAULT_SHEET = '1/1'
TITLE_BLOCK_UNTITLED = 'Untitled'

# ---------------------------------------------------------------------------
# Линии (мм на листе)
# ---------------------------------------------------------------------------

DEFAULT_VISIBLE_WIDTH_MM = 0.5
DEFAULT_HIDDEN_WIDTH_MM = 0.25
DEFAULT_CENTERLINE_WIDTH_MM = 0.18
DEFAULT_SECTION_WIDTH_MM = 0.7
DEFAULT_DIMENSION_WIDTH_MM = 0.25

HIDDEN_DASH_MM = (4.0, 2.0)
CENTERLINE_DASH_MM = (6.0, 2.0, 1.0, 2.0)
SECTION_CUT_COLOR = '#ff6b6b'

# Линии не тоньше ~0.35 px при любом масштабе
MIN_STROKE_PX = 0.35

VIEW_BBOX_PADDING_MM = 3.0
VIEW_LABEL_GAP_MM = 5.0
VIEW_LABEL_DEFAULT = 'View'
VIEW_BBOX_DRAG_COLOR = 'rgba(74, 222, 128, 0.8)'
VIEW_BBOX_HOVER_COLOR = 'rgba(255, 255, 255, 0.6)'
VIEW_BBOX_COLOR = 'rgba(255, 255, 255, 0.3)'

SELECTION_COLOR = '#22c55e'

# Маркеры указанных точек и привязки (px холста)
SNAP_INDICATOR_SIZE_PX = 8.0
PICKED_POINT_RADIUS_PX = 3.0
PICKED_POINT_FIRST_COLOR = '#4ade80'
PICKED_POINT_COLOR = '#22c55e'
PICKED_POINT_OUTLINE = '#ffffff'

# ---------------------------------------------------------------------------
# Размеры
# ---------------------------------------------------------------------------

DIM_OFFSET = 10.0
DIM_EXTENSION_GAP = 2.0
DIM_EXTENSION_OVERSHOOT = 2.0
DIM_ARROW_SIZE = 3.0
DIM_TEXT_HEIGHT = 3.5
DIM_PRECISION = 2
DIM_UNIT = 'mm'
DIM_ARROW_ANGLE_DEG = 30.0
# Смещение текста от размерной линии, в высотах текста
DIM_TEXT_OFFSET_FACTOR = 1.2
# Минимальный отступ размера — доля наибольшей стороны вида
DIM_OFFSET_VIEW_FRACTION = 0.05
# Порог классификации «auto» (градусы)
DIM_AUTO_ANGLE_THRESHOLD_DEG = 15.0
# Длина/определитель ниже порога — вырожденная геометрия
DIM_DEGENERATE_EPS = 1e-9

# ---------------------------------------------------------------------------
# Надписи (аннотации)
# ---------------------------------------------------------------------------

ANNOTATION_DEFAULT_TEXT = 'Nota'
ANNOTATION_BOX_OFFSET = (20.0, 10.0)
ANNOTATION_LEADER_BEND = 5.0
ANNOTATION_ANCHOR_RADIUS = 1.5
# Ширина символа относительно кегля (оценка без измерения шрифта)
TEXT_WIDTH_FACTOR = 0.6

# ---------------------------------------------------------------------------
# Попадание (hit-test) и привязки, мм на листе
# ---------------------------------------------------------------------------

LINE_HIT_TOLERANCE = 10.0
ENDPOINT_SNAP_FACTOR = 1.5
DIMENSION_HIT_TOLERANCE = 8.0
DIMENSION_TEXT_HIT_RADIUS = 15.0
ANNOTATION_HIT_TOLERANCE = 8.0
VIEW_HIT_PADDING = 15.0

SCREEN_SNAP_TOLERANCE_PX = 18.0
SNAP_KEY_DECIMALS = 4
SEGMENT_PARALLEL_EPS = 1e-10

# ---------------------------------------------------------------------------
# Компоновка видов
# ---------------------------------------------------------------------------

LAYOUT_GAP_MM = 8.0
LAYOUT_BIAS_X = 0.05
LAYOUT_BIAS_Y = 0.08
NEW_VIEW_SPACING_MM = 15.0
NEW_VIEW_AVAILABLE_FRACTION = 0.7

# ---------------------------------------------------------------------------
# Вьюпорт
# ---------------------------------------------------------------------------

ZOOM_MIN = 0.1
ZOOM_MAX = 5.0
ZOOM_IN_STEP = 1.1
ZOOM_OUT_STEP = 0.9
DEFAULT_THEME = 'blueprint'
