"""Размеры: структуры данных, строители геометрии, форматирование значений."""

from drawing_viewport.drawing.dimensions.builders import (
    build_dimension,
    classify_auto,
    default_offset,
    drag_update,
    offset_from_cursor,
    recalculate_angular_with_radius,
    recalculate_with_offset,
)
from drawing_viewport.drawing.dimensions.geometry import (
    ArrowStyle,
    Dimension,
    DimensionConfig,
    DimensionKind,
    DimensionLine,
    ExtensionLine,
)
from drawing_viewport.drawing.dimensions.values import (
    dimension_label,
    format_dimension_value,
)

__all__ = [
    "ArrowStyle",
    "Dimension",
    "DimensionConfig",
    "DimensionKind",
    "DimensionLine",
    "ExtensionLine",
    "build_dimension",
    "classify_auto",
    "default_offset",
    "dimension_label",
    "drag_update",
    "format_dimension_value",
    "offset_from_cursor",
    "recalculate_angular_with_radius",
    "recalculate_with_offset",
]
