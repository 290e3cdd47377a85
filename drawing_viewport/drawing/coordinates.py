"""
Пространства координат чертежа и преобразования между ними.

Пространства:
  - модель: метры 3D-модели;
  - проекция: 2D-линии вида, уже умноженные на масштаб × множитель единиц
    (1 единица проекции = 1 мм на листе);
  - лист: мм, начало — центр рабочей области, ось Y вверх;
  - экран: CSS-пиксели холста, ось Y вниз;
  - устройство: физические пиксели (экран × devicePixelRatio).

Содержит:
  - paper_dimensions     — размеры листа с учётом ориентации
  - SheetLayout          — размещение листа на холсте (px)
  - compute_sheet_layout — вписывание листа в холст
  - CanvasSize           — размер холста и devicePixelRatio
  - CoordinateConverter  — лист ⇄ экран ⇄ устройство, проекция → лист
  - unit_factor, real_value — восстановление реального значения размера
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from drawing_viewport.config import (
    FRAME_OUTER_MARGIN_PX,
    GRID_MARGIN_FRACTION,
    INNER_AREA_FRACTION,
    ISOMETRIC_FORESHORTENING,
    PAPER_FIT_FACTOR,
    PAPER_SIZES,
    DEFAULT_PAPER_SIZE,
    UNIT_FACTORS,
)
from drawing_viewport.drawing.model import (
    DrawingView,
    Orientation,
    ProjectionType,
    SheetConfig,
)
from drawing_viewport.geometry.primitives import Point2D

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Лист и холст
# ---------------------------------------------------------------------------

def paper_dimensions(sheet: SheetConfig) -> Tuple[float, float]:
    """Физические размеры листа (мм) с учётом ориентации.

    Для 'Custom' берутся custom_width/custom_height; неизвестный формат
    заменяется на A3.

    Returns:
        (ширина, высота).
    """
    if sheet.size in PAPER_SIZES:
        width, height = PAPER_SIZES[sheet.size]
    elif sheet.custom_width and sheet.custom_height:
        width, height = float(sheet.custom_width), float(sheet.custom_height)
    else:
        logger.warning("Формат '%s' без размеров — используется %s",
                       sheet.size, DEFAULT_PAPER_SIZE)
        width, height = PAPER_SIZES[DEFAULT_PAPER_SIZE]

    if sheet.orientation == Orientation.LANDSCAPE:
        return height, width
    return width, height


@dataclass(frozen=True)
class SheetLayout:
    """Размещение листа на холсте (CSS px).

    Attributes:
        canvas_width, canvas_height: размер холста.
        paper_width_mm, paper_height_mm: размер листа.
        paper_scale: px на мм листа.
        paper_x, paper_y: левый верхний угол листа.
        grid_margin: ширина поля сетки (px).
        inner_x, inner_y, inner_width, inner_height: рабочая область (px).
    """
    canvas_width: float
    canvas_height: float
    paper_width_mm: float
    paper_height_mm: float
    paper_scale: float
    paper_x: float
    paper_y: float
    grid_margin: float
    inner_x: float
    inner_y: float
    inner_width: float
    inner_height: float

    @property
    def paper_width_px(self) -> float:
        return self.paper_width_mm * self.paper_scale

    @property
    def paper_height_px(self) -> float:
        return self.paper_height_mm * self.paper_scale

    @property
    def inner_width_mm(self) -> float:
        return self.paper_width_mm * INNER_AREA_FRACTION

    @property
    def inner_height_mm(self) -> float:
        return self.paper_height_mm * INNER_AREA_FRACTION

    @property
    def paper_to_screen_scale(self) -> float:
        """px рабочей области на мм рабочей области."""
        return self.inner_width / self.inner_width_mm

    @property
    def inner_area(self) -> Tuple[float, float, float, float]:
        return (self.inner_x, self.inner_y, self.inner_width, self.inner_height)

    @property
    def drawing_center(self) -> Point2D:
        """Начало координат листа на холсте (без панорамы и масштаба)."""
        return Point2D(self.inner_x + self.inner_width / 2.0,
                       self.inner_y + self.inner_height / 2.0)


def compute_sheet_layout(
    sheet: SheetConfig,
    canvas_width: float,
    canvas_height: float,
    outer_margin: float = FRAME_OUTER_MARGIN_PX,
    fit_factor: float = PAPER_FIT_FACTOR,
) -> SheetLayout:
    """Вписать лист в холст и найти рабочую область.

    Масштаб = min(доступная ширина / ширина листа, доступная высота /
    высота листа) × fit_factor; лист центрируется. Поле сетки — 4%
    масштабированной ширины листа.

    Args:
        sheet: конфигурация листа.
        canvas_width, canvas_height: размер холста (CSS px).
        outer_margin: отступ от края холста (px).
        fit_factor: запас вписывания.

    Returns:
        SheetLayout.
    """
    paper_w, paper_h = paper_dimensions(sheet)
    avail_w = max(canvas_width - 2.0 * outer_margin, 1.0)
    avail_h = max(canvas_height - 2.0 * outer_margin, 1.0)
    paper_scale = min(avail_w / paper_w, avail_h / paper_h) * fit_factor

    paper_w_px = paper_w * paper_scale
    paper_h_px = paper_h * paper_scale
    paper_x = (canvas_width - paper_w_px) / 2.0
    paper_y = (canvas_height - paper_h_px) / 2.0
    grid_margin = paper_w_px * GRID_MARGIN_FRACTION

    return SheetLayout(
        canvas_width=canvas_width,
        canvas_height=canvas_height,
        paper_width_mm=paper_w,
        paper_height_mm=paper_h,
        paper_scale=paper_scale,
        paper_x=paper_x,
        paper_y=paper_y,
        grid_margin=grid_margin,
        inner_x=paper_x + grid_margin,
        inner_y=paper_y + grid_margin,
        inner_width=paper_w_px - 2.0 * grid_margin,
        inner_height=paper_h_px - 2.0 * grid_margin,
    )


@dataclass(frozen=True)
class CanvasSize:
    """Холст в физических пикселях и коэффициент devicePixelRatio."""
    width: float
    height: float
    device_pixel_ratio: float = 1.0

    @property
    def css_width(self) -> float:
        return self.width / self.device_pixel_ratio

    @property
    def css_height(self) -> float:
        return self.height / self.device_pixel_ratio


# ---------------------------------------------------------------------------
# Преобразователь координат
# ---------------------------------------------------------------------------

class CoordinateConverter:
    """Преобразования лист ⇄ экран при заданных панораме и масштабе.

    screen = center + pan + zoom × (canvas(paper) − center), где
    canvas(paper) = drawing_center + scale × (x, −y). Рабочая область
    центрирована на холсте, поэтому это совпадает с
    center + pan + zoom × scale × (x, −y).
    """

    def __init__(
        self,
        sheet: SheetConfig,
        canvas: CanvasSize,
        pan: Sequence[float] = (0.0, 0.0),
        zoom: float = 1.0,
        layout: Optional[SheetLayout] = None,
    ):
        self.sheet = sheet
        self.canvas = canvas
        self.pan = Point2D(float(pan[0]), float(pan[1]))
        self.zoom = float(zoom)
        self.layout = layout or compute_sheet_layout(
            sheet, canvas.css_width, canvas.css_height)

    def with_viewport(self, pan: Sequence[float], zoom: float) -> 'CoordinateConverter':
        """Копия с другими панорамой и масштабом (раскладка листа та же)."""
        return CoordinateConverter(self.sheet, self.canvas, pan, zoom, self.layout)

    @property
    def paper_to_screen_scale(self) -> float:
        return self.layout.paper_to_screen_scale

    @property
    def screen_center(self) -> Point2D:
        return Point2D(self.canvas.css_width / 2.0, self.canvas.css_height / 2.0)

    # --- лист ⇄ холст (без панорамы/масштаба) ---------------------------

    def paper_to_canvas(self, p: Sequence[float]) -> Point2D:
        s = self.paper_to_screen_scale
        c = self.layout.drawing_center
        return Point2D(c.x + p[0] * s, c.y - p[1] * s)

    def canvas_to_paper(self, q: Sequence[float]) -> Point2D:
        s = self.paper_to_screen_scale
        c = self.layout.drawing_center
        return Point2D((q[0] - c.x) / s, -(q[1] - c.y) / s)

    # --- холст ⇄ экран ----------------------------------------------------

    def canvas_to_screen(self, q: Sequence[float]) -> Point2D:
        c = self.screen_center
        return Point2D(c.x + self.pan.x + self.zoom * (q[0] - c.x),
                       c.y + self.pan.y + self.zoom * (q[1] - c.y))

    def screen_to_canvas(self, sp: Sequence[float]) -> Point2D:
        c = self.screen_center
        return Point2D(c.x + (sp[0] - c.x - self.pan.x) / self.zoom,
                       c.y + (sp[1] - c.y - self.pan.y) / self.zoom)

    # --- лист ⇄ экран -----------------------------------------------------

    def paper_to_screen(self, p: Sequence[float]) -> Point2D:
        """Точка листа (мм) → экран (CSS px)."""
        return self.canvas_to_screen(self.paper_to_canvas(p))

    def screen_to_paper(self, sp: Sequence[float]) -> Point2D:
        """Точка экрана (CSS px) → лист (мм)."""
        return self.canvas_to_paper(self.screen_to_canvas(sp))

    # --- экран ⇄ устройство -----------------------------------------------

    def to_device_pixels(self, sp: Sequence[float]) -> Point2D:
        """Экран (CSS px) → пиксели устройства (× devicePixelRatio)."""
        dpr = self.canvas.device_pixel_ratio
        return Point2D(sp[0] * dpr, sp[1] * dpr)

    def from_device_pixels(self, dp: Sequence[float]) -> Point2D:
        dpr = self.canvas.device_pixel_ratio
        return Point2D(dp[0] / dpr, dp[1] / dpr)

    # --- проекция ⇄ лист --------------------------------------------------

    @staticmethod
    def projection_to_paper(view: DrawingView, p: Sequence[float]) -> Point2D:
        """Точка проекции вида → лист: позиция вида + (p − центр габарита).

        Знак Y сохраняется: проекция и лист обе с осью Y вверх. Переворот
        оси выполняется один раз, в paper_to_canvas (лист → экран).
        """
        center = view.center
        return Point2D(view.position.x + p[0] - center.x,
                       view.position.y + p[1] - center.y)

    @staticmethod
    def paper_to_view_local(view_position: Sequence[float], p: Sequence[float]) -> Point2D:
        """Точка листа → локальные координаты вида."""
        return Point2D(p[0] - view_position[0], p[1] - view_position[1])

    @staticmethod
    def view_local_to_paper(view_position: Sequence[float], p: Sequence[float]) -> Point2D:
        return Point2D(view_position[0] + p[0], view_position[1] + p[1])


# ---------------------------------------------------------------------------
# Реальные значения
# ---------------------------------------------------------------------------

def unit_factor(units: str) -> float:
    """Множитель метры модели → единицы чертежа (mm 1000, m 1, ...)."""
    factor = UNIT_FACTORS.get(units)
    if factor is None:
        logger.warning("Неизвестные единицы '%s' — множитель 1", units)
        return 1.0
    return factor


def real_value(
    paper_length: float,
    scale: float,
    units: str,
    projection_type: Optional[ProjectionType] = None,
) -> float:
    """Реальное значение (метры модели) по длине на листе.

    real = L / (scale × unit_factor); для изометрии дополнительно делится
    на sqrt(2/3), чтобы снять аксонометрическое укорочение.

    Args:
        paper_length: длина в единицах проекции (мм на листе).
        scale: масштаб чертежа.
        units: единицы чертежа.
        projection_type: тип проекции вида-владельца.

    Returns:
        Значение в метрах модели.
    """
    value = paper_length / (scale * unit_factor(units))
    if projection_type == ProjectionType.ISOMETRIC:
        value /= ISOMETRIC_FORESHORTENING
    return value
