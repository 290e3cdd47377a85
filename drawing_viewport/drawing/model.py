"""
Модель чертежа (снимок состояния хранилища).

Все типы — неизменяемые dataclass'ы: снимок не меняется во время
отрисовки, хранилище заменяет значения целиком.

Типы:
  - LineType, ProjectionType         — закрытые перечисления
  - Line2D, Projection, DrawingView  — виды и их геометрия
  - Orientation, ProjectionAngle     — параметры листа
  - LineWidths, TitleBlockInfo       — толщины линий, данные штампа
  - SheetConfig                      — конфигурация листа
  - AnnotationStyle, Annotation      — надписи с выноской
  - DisplayOptions                   — флаги отображения
  - Drawing                          — чертёж целиком

Сериализация: to_dict()/from_dict() с ключами snake_case.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from drawing_viewport.config import DEFAULT_PAPER_SIZE
from drawing_viewport.drawing.dimensions.geometry import Dimension, DimensionConfig
from drawing_viewport.geometry.primitives import BoundingBox2D, Point2D, point_from


# ---------------------------------------------------------------------------
# Перечисления
# ---------------------------------------------------------------------------

class LineType(Enum):
    """Тип линии проекции."""
    VISIBLE_SHARP = "VisibleSharp"
    VISIBLE_OUTLINE = "VisibleOutline"
    VISIBLE_SMOOTH = "VisibleSmooth"
    HIDDEN_SHARP = "HiddenSharp"
    HIDDEN_SMOOTH = "HiddenSmooth"
    HIDDEN_OUTLINE = "HiddenOutline"
    SECTION_CUT = "SectionCut"
    CENTERLINE = "Centerline"

    @property
    def is_visible(self) -> bool:
        return self in _VISIBLE_TYPES

    @property
    def is_hidden(self) -> bool:
        return self in _HIDDEN_TYPES


_VISIBLE_TYPES = frozenset({
    LineType.VISIBLE_SHARP, LineType.VISIBLE_OUTLINE, LineType.VISIBLE_SMOOTH,
})
_HIDDEN_TYPES = frozenset({
    LineType.HIDDEN_SHARP, LineType.HIDDEN_SMOOTH, LineType.HIDDEN_OUTLINE,
})


class ProjectionType(Enum):
    """Тип проекции вида."""
    TOP = "Top"
    FRONT = "Front"
    RIGHT = "Right"
    LEFT = "Left"
    BOTTOM = "Bottom"
    BACK = "Back"
    ISOMETRIC = "Isometric"


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class ProjectionAngle(Enum):
    """Метод проецирования (первый / третий угол)."""
    FIRST = "first"
    THIRD = "third"


def _bbox_to_dict(bbox: BoundingBox2D) -> Dict[str, Any]:
    return {'min': list(bbox.min), 'max': list(bbox.max)}


def _bbox_from_dict(data: Dict[str, Any]) -> BoundingBox2D:
    return BoundingBox2D(point_from(data['min']), point_from(data['max']))


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


# ---------------------------------------------------------------------------
# Виды
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Line2D:
    """Отрезок проекции (единицы проекции = мм на листе)."""
    start: Point2D
    end: Point2D
    line_type: LineType = LineType.VISIBLE_SHARP

    def to_dict(self) -> Dict[str, Any]:
        return {'start': list(self.start), 'end': list(self.end),
                'line_type': self.line_type.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Line2D':
        return cls(point_from(data['start']), point_from(data['end']),
                   LineType(data.get('line_type', LineType.VISIBLE_SHARP.value)))


@dataclass(frozen=True)
class Projection:
    """Результат генератора проекций: линии + габарит."""
    lines: Tuple[Line2D, ...]
    bounding_box: BoundingBox2D
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lines': [line.to_dict() for line in self.lines],
            'bounding_box': _bbox_to_dict(self.bounding_box),
            'label': self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Projection':
        return cls(
            lines=tuple(Line2D.from_dict(line) for line in data.get('lines', [])),
            bounding_box=_bbox_from_dict(data['bounding_box']),
            label=data.get('label'),
        )


@dataclass(frozen=True)
class DrawingView:
    """Размещённый на листе вид.

    Attributes:
        id: идентификатор вида.
        projection_type: тип проекции.
        projection: геометрия проекции.
        position: центр габарита вида на листе (мм, ось Y вверх).
        visible: отображать ли вид.
        label: подпись вида (приоритетнее projection.label).
    """
    id: str
    projection_type: ProjectionType
    projection: Projection
    position: Point2D = Point2D(0.0, 0.0)
    visible: bool = True
    label: Optional[str] = None

    @property
    def center(self) -> Point2D:
        """Центр габарита в единицах проекции (локальное начало вида)."""
        return self.projection.bounding_box.center

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'projection_type': self.projection_type.value,
            'projection': self.projection.to_dict(),
            'position': list(self.position),
            'visible': self.visible,
            'label': self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DrawingView':
        return cls(
            id=data['id'],
            projection_type=ProjectionType(data['projection_type']),
            projection=Projection.from_dict(data['projection']),
            position=point_from(data.get('position', (0.0, 0.0))),
            visible=data.get('visible', True),
            label=data.get('label'),
        )


# ---------------------------------------------------------------------------
# Лист
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LineWidths:
    """Переопределения толщин линий (мм на листе); None — по умолчанию."""
    visible: Optional[float] = None
    hidden: Optional[float] = None
    centerline: Optional[float] = None
    section: Optional[float] = None
    dimension: Optional[float] = None


@dataclass(frozen=True)
class TitleBlockInfo:
    """Данные основной надписи."""
    title: Optional[str] = None
    sheet_number: Optional[str] = None


@dataclass(frozen=True)
class SheetConfig:
    """Конфигурация листа.

    Attributes:
        size: формат ('A0'..'A4' или 'Custom').
        orientation: ориентация листа.
        scale: масштаб чертежа (0.25 = 1:4).
        projection_angle: метод проецирования.
        units: единицы чертежа (mm/cm/m/in/ft).
        title_block: стиль основной надписи.
        line_widths: толщины линий.
        title_block_info: данные штампа.
        custom_width, custom_height: размеры для формата 'Custom' (мм).
    """
    size: str = DEFAULT_PAPER_SIZE
    orientation: Orientation = Orientation.LANDSCAPE
    scale: float = 1.0
    projection_angle: ProjectionAngle = ProjectionAngle.FIRST
    units: str = 'mm'
    title_block: str = 'standard'
    line_widths: LineWidths = field(default_factory=LineWidths)
    title_block_info: TitleBlockInfo = field(default_factory=TitleBlockInfo)
    custom_width: Optional[float] = None
    custom_height: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'size': self.size,
            'orientation': self.orientation.value,
            'scale': self.scale,
            'projection_angle': self.projection_angle.value,
            'units': self.units,
            'title_block': self.title_block,
            'line_widths': {f.name: getattr(self.line_widths, f.name)
                            for f in fields(LineWidths)},
            'title_block_info': {'title': self.title_block_info.title,
                                 'sheet_number': self.title_block_info.sheet_number},
            'custom_width': self.custom_width,
            'custom_height': self.custom_height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SheetConfig':
        values = _known_fields(cls, data)
        if 'orientation' in values:
            values['orientation'] = Orientation(values['orientation'])
        if 'projection_angle' in values:
            values['projection_angle'] = ProjectionAngle(values['projection_angle'])
        if 'line_widths' in values:
            values['line_widths'] = LineWidths(**_known_fields(LineWidths, values['line_widths']))
        if 'title_block_info' in values:
            values['title_block_info'] = TitleBlockInfo(
                **_known_fields(TitleBlockInfo, values['title_block_info']))
        return cls(**values)


# ---------------------------------------------------------------------------
# Надписи
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnnotationStyle:
    """Стиль надписи; None — взять из стиля чертежа или встроенного."""
    background_color: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    border_radius: Optional[float] = None
    text_color: Optional[str] = None
    font_size: Optional[float] = None
    padding: Optional[float] = None
    leader_color: Optional[str] = None
    leader_width: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)
                if getattr(self, f.name) is not None}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['AnnotationStyle']:
        if data is None:
            return None
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class Annotation:
    """Надпись с линией-выноской.

    Attributes:
        id: идентификатор.
        text: текст надписи.
        position: левая середина рамки (локальные координаты вида).
        anchor_point: точка, на которую указывает выноска.
        view_id: вид-владелец.
        style: собственный стиль (частичный).
    """
    id: str
    text: str
    position: Point2D
    anchor_point: Point2D
    view_id: Optional[str] = None
    style: Optional[AnnotationStyle] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'position': list(self.position),
            'anchor_point': list(self.anchor_point),
            'view_id': self.view_id,
            'style': self.style.to_dict() if self.style else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Annotation':
        return cls(
            id=data['id'],
            text=data.get('text', ''),
            position=point_from(data['position']),
            anchor_point=point_from(data['anchor_point']),
            view_id=data.get('view_id'),
            style=AnnotationStyle.from_dict(data.get('style')),
        )


@dataclass(frozen=True)
class DisplayOptions:
    show_bounding_boxes: bool = True
    show_view_labels: bool = True


# ---------------------------------------------------------------------------
# Чертёж
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Drawing:
    """Снимок чертежа.

    Attributes:
        id, name: идентификатор и имя.
        sheet_config: конфигурация листа.
        views: виды в порядке списка (он же порядок hit-test'а).
        dimension_config: стиль размеров.
        dimensions: размеры.
        annotation_default_style: стиль надписей по умолчанию.
        annotations: надписи.
        display_options: флаги отображения.
        source_shape_ids: идентификаторы исходных 3D-форм.
        updated_at: время изменения (мс от эпохи).
    """
    id: str
    name: str = ""
    sheet_config: SheetConfig = field(default_factory=SheetConfig)
    views: Tuple[DrawingView, ...] = ()
    dimension_config: DimensionConfig = field(default_factory=DimensionConfig)
    dimensions: Tuple[Dimension, ...] = ()
    annotation_default_style: Optional[AnnotationStyle] = None
    annotations: Tuple[Annotation, ...] = ()
    display_options: DisplayOptions = field(default_factory=DisplayOptions)
    source_shape_ids: Tuple[str, ...] = ()
    updated_at: float = 0.0

    def view_by_id(self, view_id: Optional[str]) -> Optional[DrawingView]:
        if view_id is None:
            return None
        for view in self.views:
            if view.id == view_id:
                return view
        return None

    def annotation_by_id(self, annotation_id: str) -> Optional[Annotation]:
        for annotation in self.annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    def view_origin(self, view_id: Optional[str]) -> Point2D:
        """Позиция вида-владельца или (0, 0) для свободных элементов."""
        view = self.view_by_id(view_id)
        return view.position if view is not None else Point2D(0.0, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'sheet_config': self.sheet_config.to_dict(),
            'views': [view.to_dict() for view in self.views],
            'dimension_config': self.dimension_config.to_dict(),
            'dimensions': [dim.to_dict() for dim in self.dimensions],
            'annotation_default_style': (self.annotation_default_style.to_dict()
                                         if self.annotation_default_style else None),
            'annotations': [a.to_dict() for a in self.annotations],
            'display_options': {
                'show_bounding_boxes': self.display_options.show_bounding_boxes,
                'show_view_labels': self.display_options.show_view_labels,
            },
            'source_shape_ids': list(self.source_shape_ids),
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Drawing':
        """Создать чертёж из словаря (JSON-снимка).

        Args:
            data: словарь с ключами snake_case; отсутствующие — по умолчанию.

        Returns:
            Drawing.
        """
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            sheet_config=SheetConfig.from_dict(data.get('sheet_config', {})),
            views=tuple(DrawingView.from_dict(v) for v in data.get('views', [])),
            dimension_config=DimensionConfig.from_dict(data.get('dimension_config', {})),
            dimensions=tuple(Dimension.from_dict(d) for d in data.get('dimensions', [])),
            annotation_default_style=AnnotationStyle.from_dict(
                data.get('annotation_default_style')),
            annotations=tuple(Annotation.from_dict(a) for a in data.get('annotations', [])),
            display_options=DisplayOptions(
                **_known_fields(DisplayOptions, data.get('display_options', {}))),
            source_shape_ids=tuple(data.get('source_shape_ids', [])),
            updated_at=float(data.get('updated_at', 0.0)),
        )
