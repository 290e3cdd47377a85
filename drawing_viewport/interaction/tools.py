"""Инструменты простановки размеров и надписей."""

from enum import Enum
from typing import Dict, Optional

from drawing_viewport.drawing.dimensions.geometry import DimensionKind


class DimensionTool(Enum):
    """Активный инструмент панели размеров."""
    AUTO = "auto"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    ALIGNED = "aligned"
    POINT_TO_POINT = "point-to-point"
    POINT_TO_LINE = "point-to-line"
    LINE_LENGTH = "line-length"
    ANGLE = "angle"
    NOTA = "nota"

    @property
    def required_points(self) -> int:
        """Число точек, которые нужно указать (0 — действие по одному щелчку)."""
        return _REQUIRED_POINTS[self]

    @property
    def picks_points(self) -> bool:
        return self.required_points > 0

    @property
    def dimension_kind(self) -> Optional[DimensionKind]:
        """Вид создаваемого размера; None — автоматический выбор."""
        return _DIMENSION_KINDS[self]


_REQUIRED_POINTS: Dict[DimensionTool, int] = {
    DimensionTool.AUTO: 2,
    DimensionTool.HORIZONTAL: 2,
    DimensionTool.VERTICAL: 2,
    DimensionTool.ALIGNED: 2,
    DimensionTool.POINT_TO_POINT: 2,
    DimensionTool.POINT_TO_LINE: 2,
    DimensionTool.LINE_LENGTH: 2,
    DimensionTool.ANGLE: 3,
    DimensionTool.NOTA: 0,
}

_DIMENSION_KINDS: Dict[DimensionTool, Optional[DimensionKind]] = {
    DimensionTool.AUTO: None,
    DimensionTool.HORIZONTAL: DimensionKind.HORIZONTAL,
    DimensionTool.VERTICAL: DimensionKind.VERTICAL,
    DimensionTool.ALIGNED: DimensionKind.ALIGNED,
    DimensionTool.POINT_TO_POINT: DimensionKind.ALIGNED,
    DimensionTool.POINT_TO_LINE: DimensionKind.ALIGNED,
    DimensionTool.LINE_LENGTH: DimensionKind.ALIGNED,
    DimensionTool.ANGLE: DimensionKind.ANGULAR,
    DimensionTool.NOTA: None,
}
