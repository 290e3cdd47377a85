"""
Структуры данных размеров чертежа.

Типы:
  - DimensionKind   — вид размера (горизонтальный, вертикальный, параллельный, угловой)
  - ArrowStyle      — стиль стрелки (FILLED, OPEN, TICK, DOT, NONE)
  - DimensionLine   — размерная линия со стрелками
  - ExtensionLine   — выносная линия
  - DimensionConfig — стиль размеров чертежа
  - Dimension       — размер в локальных координатах вида

Координаты размера — локальные (относительно позиции вида, мм на листе,
ось Y вверх). Позиция вида прибавляется при отрисовке и hit-test'е,
поэтому перенос вида переносит и его размеры.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from drawing_viewport.config import (
    DIM_ARROW_SIZE,
    DIM_EXTENSION_GAP,
    DIM_EXTENSION_OVERSHOOT,
    DIM_OFFSET,
    DIM_PRECISION,
    DIM_TEXT_HEIGHT,
    DIM_UNIT,
)
from drawing_viewport.geometry.primitives import Point2D, point_from


# ---------------------------------------------------------------------------
# Перечисления
# ---------------------------------------------------------------------------

class DimensionKind(Enum):
    """Вид размера."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    ALIGNED = "aligned"
    ANGULAR = "angular"


class ArrowStyle(Enum):
    """Стиль стрелки размерной линии."""
    FILLED = "filled"
    OPEN = "open"
    TICK = "tick"
    DOT = "dot"
    NONE = "none"


# ---------------------------------------------------------------------------
# Элементы размера
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DimensionLine:
    """Размерная линия (для углового размера — концы дуги).

    Attributes:
        start: начальная точка.
        end: конечная точка.
        start_arrow: стрелка в начале.
        end_arrow: стрелка в конце.
    """
    start: Point2D
    end: Point2D
    start_arrow: ArrowStyle = ArrowStyle.FILLED
    end_arrow: ArrowStyle = ArrowStyle.FILLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': list(self.start),
            'end': list(self.end),
            'start_arrow': self.start_arrow.value,
            'end_arrow': self.end_arrow.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DimensionLine':
        return cls(
            start=point_from(data['start']),
            end=point_from(data['end']),
            start_arrow=ArrowStyle(data.get('start_arrow', 'filled')),
            end_arrow=ArrowStyle(data.get('end_arrow', 'filled')),
        )


@dataclass(frozen=True)
class ExtensionLine:
    """Выносная линия."""
    start: Point2D
    end: Point2D


@dataclass(frozen=True)
class DimensionConfig:
    """Стиль размеров чертежа.

    Attributes:
        offset: отступ размерной линии от измеряемых точек (мм).
        extension_gap: зазор между точкой и началом выносной линии (мм).
        extension_overshoot: выход выносной линии за размерную (мм).
        arrow_size: длина стрелки (мм).
        arrow_style: стиль стрелок новых размеров.
        text_height: высота текста (мм).
        precision: знаков после запятой (None → 2).
        unit: единица отображения значения.
        show_unit: дописывать единицу к значению.
    """
    offset: float = DIM_OFFSET
    extension_gap: float = DIM_EXTENSION_GAP
    extension_overshoot: float = DIM_EXTENSION_OVERSHOOT
    arrow_size: float = DIM_ARROW_SIZE
    arrow_style: ArrowStyle = ArrowStyle.FILLED
    text_height: float = DIM_TEXT_HEIGHT
    precision: Optional[int] = DIM_PRECISION
    unit: str = DIM_UNIT
    show_unit: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'offset': self.offset,
            'extension_gap': self.extension_gap,
            'extension_overshoot': self.extension_overshoot,
            'arrow_size': self.arrow_size,
            'arrow_style': self.arrow_style.value,
            'text_height': self.text_height,
            'precision': self.precision,
            'unit': self.unit,
            'show_unit': self.show_unit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DimensionConfig':
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if 'arrow_style' in values:
            values['arrow_style'] = ArrowStyle(values['arrow_style'])
        return cls(**values)


@dataclass(frozen=True)
class Dimension:
    """Размер, привязанный к виду.

    Attributes:
        kind: вид размера.
        dimension_line: размерная линия.
        extension_lines: выносные линии.
        text_position: позиция текста.
        value: измеренное значение в единицах проекции (мм на листе);
            для углового размера — градусы.
        point1, point2: измеряемые точки (для углового — плечо и вершина).
        point3: второе плечо углового размера.
        view_id: вид-владелец.
        offset: текущий отступ размерной линии.
        arc_radius: радиус дуги углового размера.
        prefix, suffix: текст до и после значения.
        label_override: текст вместо вычисленного значения.
    """
    kind: DimensionKind
    dimension_line: DimensionLine
    extension_lines: Tuple[ExtensionLine, ...]
    text_position: Point2D
    value: float
    point1: Point2D
    point2: Point2D
    view_id: Optional[str] = None
    offset: float = DIM_OFFSET
    point3: Optional[Point2D] = None
    arc_radius: Optional[float] = None
    prefix: str = ""
    suffix: str = ""
    label_override: Optional[str] = None

    def segments(self) -> List[Tuple[Point2D, Point2D]]:
        """Отрезки размера (размерная + выносные) в локальных координатах."""
        result = [(self.dimension_line.start, self.dimension_line.end)]
        result.extend((ext.start, ext.end) for ext in self.extension_lines)
        return result

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'kind': self.kind.value,
            'dimension_line': self.dimension_line.to_dict(),
            'extension_lines': [
                {'start': list(ext.start), 'end': list(ext.end)}
                for ext in self.extension_lines
            ],
            'text_position': list(self.text_position),
            'value': self.value,
            'point1': list(self.point1),
            'point2': list(self.point2),
            'view_id': self.view_id,
            'offset': self.offset,
            'prefix': self.prefix,
            'suffix': self.suffix,
            'label_override': self.label_override,
        }
        if self.point3 is not None:
            data['point3'] = list(self.point3)
        if self.arc_radius is not None:
            data['arc_radius'] = self.arc_radius
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Dimension':
        return cls(
            kind=DimensionKind(data['kind']),
            dimension_line=DimensionLine.from_dict(data['dimension_line']),
            extension_lines=tuple(
                ExtensionLine(point_from(ext['start']), point_from(ext['end']))
                for ext in data.get('extension_lines', [])
            ),
            text_position=point_from(data['text_position']),
            value=float(data['value']),
            point1=point_from(data['point1']),
            point2=point_from(data['point2']),
            view_id=data.get('view_id'),
            offset=float(data.get('offset', DIM_OFFSET)),
            point3=point_from(data['point3']) if data.get('point3') is not None else None,
            arc_radius=data.get('arc_radius'),
            prefix=data.get('prefix', ''),
            suffix=data.get('suffix', ''),
            label_override=data.get('label_override'),
        )

