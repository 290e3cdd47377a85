"""
Хранилище снимков чертежей.

Движок не изменяет снимок сам: он читает Drawing через get_drawing и
передаёт изменения через методы хранилища. Каждое изменение — замена
значения целиком (dataclasses.replace) с обновлением updated_at.

Содержит:
  - DrawingStore         — протокол хранилища
  - InMemoryDrawingStore — хранилище в памяти (эталонная реализация)
"""

import logging
import time
from dataclasses import replace
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, Sequence

from drawing_viewport.drawing.dimensions.geometry import Dimension
from drawing_viewport.drawing.model import Annotation, Drawing, DrawingView
from drawing_viewport.errors import DrawingNotFound
from drawing_viewport.geometry.primitives import point_from

logger = logging.getLogger(__name__)


class DrawingStore(Protocol):
    """Источник снимков и приёмник изменений чертежа."""

    def get_drawing(self, drawing_id: str) -> Drawing: ...

    def update_view_position(self, drawing_id: str, view_id: str,
                             position: Sequence[float]) -> None: ...

    def add_view(self, drawing_id: str, view: DrawingView) -> None: ...

    def add_dimension(self, drawing_id: str, dimension: Dimension) -> None: ...

    def update_dimension(self, drawing_id: str, index: int,
                         updates: Mapping[str, Any]) -> None: ...

    def remove_dimension(self, drawing_id: str, index: int) -> None: ...

    def add_annotation(self, drawing_id: str, annotation: Annotation) -> None: ...

    def update_annotation(self, drawing_id: str, annotation_id: str,
                          updates: Mapping[str, Any]) -> None: ...

    def remove_annotation(self, drawing_id: str, annotation_id: str) -> None: ...

    def update_drawing(self, drawing_id: str, updates: Mapping[str, Any]) -> None: ...


def _now_ms() -> float:
    return time.time() * 1000.0


class InMemoryDrawingStore:
    """Словарь чертежей в памяти.

    Изменение несуществующего элемента (индекс вне диапазона, неизвестный
    id) пропускается с предупреждением; отсутствие чертежа —
    DrawingNotFound.
    """

    def __init__(self, drawings: Optional[Iterable[Drawing]] = None):
        self._drawings: Dict[str, Drawing] = {}
        for drawing in drawings or ():
            self._drawings[drawing.id] = drawing

    def put(self, drawing: Drawing) -> None:
        self._drawings[drawing.id] = drawing

    def get_drawing(self, drawing_id: str) -> Drawing:
        try:
            return self._drawings[drawing_id]
        except KeyError:
            raise DrawingNotFound(drawing_id) from None

    def _commit(self, drawing_id: str, **changes: Any) -> None:
        drawing = self.get_drawing(drawing_id)
        self._drawings[drawing_id] = replace(drawing, updated_at=_now_ms(), **changes)

    # --- виды ------------------------------------------------------------

    def update_view_position(self, drawing_id: str, view_id: str,
                             position: Sequence[float]) -> None:
        drawing = self.get_drawing(drawing_id)
        new_position = point_from(position)
        views = tuple(
            replace(view, position=new_position) if view.id == view_id else view
            for view in drawing.views
        )
        self._commit(drawing_id, views=views)

    def add_view(self, drawing_id: str, view: DrawingView) -> None:
        drawing = self.get_drawing(drawing_id)
        self._commit(drawing_id, views=drawing.views + (view,))
        logger.info("Вид %s (%s) добавлен в чертёж %s",
                    view.id, view.projection_type.value, drawing_id)

    # --- размеры ---------------------------------------------------------

    def add_dimension(self, drawing_id: str, dimension: Dimension) -> None:
        drawing = self.get_drawing(drawing_id)
        self._commit(drawing_id, dimensions=drawing.dimensions + (dimension,))

    def update_dimension(self, drawing_id: str, index: int,
                         updates: Mapping[str, Any]) -> None:
        drawing = self.get_drawing(drawing_id)
        if not 0 <= index < len(drawing.dimensions):
            logger.warning("Размер %d отсутствует в чертеже %s", index, drawing_id)
            return
        dimensions = list(drawing.dimensions)
        dimensions[index] = replace(dimensions[index], **updates)
        self._commit(drawing_id, dimensions=tuple(dimensions))

    def remove_dimension(self, drawing_id: str, index: int) -> None:
        drawing = self.get_drawing(drawing_id)
        if not 0 <= index < len(drawing.dimensions):
            logger.warning("Размер %d отсутствует в чертеже %s", index, drawing_id)
            return
        dimensions = drawing.dimensions[:index] + drawing.dimensions[index + 1:]
        self._commit(drawing_id, dimensions=dimensions)

    # --- надписи ---------------------------------------------------------

    def add_annotation(self, drawing_id: str, annotation: Annotation) -> None:
        drawing = self.get_drawing(drawing_id)
        self._commit(drawing_id, annotations=drawing.annotations + (annotation,))

    def update_annotation(self, drawing_id: str, annotation_id: str,
                          updates: Mapping[str, Any]) -> None:
        drawing = self.get_drawing(drawing_id)
        if drawing.annotation_by_id(annotation_id) is None:
            logger.warning("Надпись %s отсутствует в чертеже %s", annotation_id, drawing_id)
            return
        changes = dict(updates)
        for key in ('position', 'anchor_point'):
            if key in changes:
                changes[key] = point_from(changes[key])
        annotations = tuple(
            replace(a, **changes) if a.id == annotation_id else a
            for a in drawing.annotations
        )
        self._commit(drawing_id, annotations=annotations)

    def remove_annotation(self, drawing_id: str, annotation_id: str) -> None:
        drawing = self.get_drawing(drawing_id)
        annotations = tuple(a for a in drawing.annotations if a.id != annotation_id)
        self._commit(drawing_id, annotations=annotations)

    # --- чертёж ----------------------------------------------------------

    def update_drawing(self, drawing_id: str, updates: Mapping[str, Any]) -> None:
        changes = dict(updates)
        if 'source_shape_ids' in changes:
            changes['source_shape_ids'] = tuple(changes['source_shape_ids'])
        self._commit(drawing_id, **changes)
