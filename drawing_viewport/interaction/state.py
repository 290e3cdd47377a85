"""
Состояние вьюпорта и автомат взаимодействия.

InteractionState — объединение неизменяемых состояний; в каждый момент
активно ровно одно:
  Idle                    — ожидание
  Panning                 — панорамирование (resume — состояние после отпускания)
  DraggingView            — перетаскивание вида
  DraggingDimensionOffset — перетаскивание размерной линии
  DraggingAnnotation      — перетаскивание якоря или рамки надписи
  PointPicking            — указание точек размера
  EditingAnnotationText   — редактирование текста надписи
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from drawing_viewport.geometry.primitives import Point2D
from drawing_viewport.interaction.snap import SnapResult
from drawing_viewport.interaction.tools import DimensionTool


@dataclass(frozen=True)
class PickedPoint:
    """Указанная точка: координаты листа и вид, к которому она привязана."""
    paper: Point2D
    view_id: str


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Panning:
    start: Point2D
    start_pan: Point2D
    resume: Optional['InteractionState'] = None


@dataclass(frozen=True)
class DraggingView:
    view_id: str
    grab_offset: Point2D


@dataclass(frozen=True)
class DraggingDimensionOffset:
    index: int


@dataclass(frozen=True)
class DraggingAnnotation:
    annotation_id: str
    part: str
    grab_offset: Point2D


@dataclass(frozen=True)
class PointPicking:
    tool: DimensionTool
    points: Tuple[PickedPoint, ...] = ()


@dataclass(frozen=True)
class EditingAnnotationText:
    annotation_id: str
    text: str


InteractionState = Union[
    Idle,
    Panning,
    DraggingView,
    DraggingDimensionOffset,
    DraggingAnnotation,
    PointPicking,
    EditingAnnotationText,
]

DRAG_STATES = (DraggingView, DraggingDimensionOffset, DraggingAnnotation)


@dataclass(frozen=True)
class DimensionSelection:
    index: int


@dataclass(frozen=True)
class AnnotationSelection:
    annotation_id: str


Selection = Optional[Union[DimensionSelection, AnnotationSelection]]


@dataclass(frozen=True)
class ViewportState:
    """Состояние вьюпорта, не входящее в снимок чертежа.

    Attributes:
        pan: смещение (CSS px).
        zoom: масштаб вьюпорта.
        tool: активный инструмент (None — выбор и перетаскивание).
        selection: выделенный размер или надпись.
        hovered_view_id: вид под курсором.
        active_snap: текущая привязка курсора.
        interaction: состояние автомата.
        views_locked: запрет перетаскивания видов.
    """
    pan: Point2D = Point2D(0.0, 0.0)
    zoom: float = 1.0
    tool: Optional[DimensionTool] = None
    selection: Selection = None
    hovered_view_id: Optional[str] = None
    active_snap: Optional[SnapResult] = None
    interaction: InteractionState = field(default_factory=Idle)
    views_locked: bool = False

    @property
    def dragging_view_id(self) -> Optional[str]:
        if isinstance(self.interaction, DraggingView):
            return self.interaction.view_id
        return None

    @property
    def selected_dimension_index(self) -> Optional[int]:
        if isinstance(self.selection, DimensionSelection):
            return self.selection.index
        return None

    @property
    def selected_annotation_id(self) -> Optional[str]:
        if isinstance(self.selection, AnnotationSelection):
            return self.selection.annotation_id
        return None

    @property
    def picked_points(self) -> Tuple[PickedPoint, ...]:
        if isinstance(self.interaction, PointPicking):
            return self.interaction.points
        return ()

    @property
    def editing(self) -> Optional[EditingAnnotationText]:
        if isinstance(self.interaction, EditingAnnotationText):
            return self.interaction
        return None
