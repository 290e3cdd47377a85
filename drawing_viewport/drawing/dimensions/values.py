"""
Форматирование значений размеров.

Реальное значение (метры модели) переводится в единицу отображения
DimensionConfig.unit и округляется до precision знаков.
"""

import logging

from drawing_viewport.config import DIM_PRECISION, UNIT_TO_MM
from drawing_viewport.drawing.dimensions.geometry import (
    Dimension,
    DimensionConfig,
    DimensionKind,
)

logger = logging.getLogger(__name__)

DEGREE_SIGN = '°'


def _precision(config: DimensionConfig) -> int:
    return DIM_PRECISION if config.precision is None else int(config.precision)


def convert_length(value: float, from_unit: str, to_unit: str) -> float:
    """Перевод длины между единицами через миллиметры."""
    if from_unit not in UNIT_TO_MM or to_unit not in UNIT_TO_MM:
        logger.warning("Неизвестные единицы %s → %s — значение без перевода",
                       from_unit, to_unit)
        return value
    return value * UNIT_TO_MM[from_unit] / UNIT_TO_MM[to_unit]


def format_dimension_value(real_value: float, config: DimensionConfig,
                           source_unit: str = 'm') -> str:
    """Текст линейного размера.

    Args:
        real_value: значение в source_unit (по умолчанию метры модели).
        config: стиль размеров (unit, precision, show_unit).
        source_unit: единица входного значения.

    Returns:
        Например '800.00' или '800 m' (precision=0, show_unit=True).
    """
    converted = convert_length(real_value, source_unit, config.unit)
    text = f"{converted:.{_precision(config)}f}"
    if config.show_unit:
        text = f"{text} {config.unit}"
    return text


def format_angle_value(degrees: float, config: DimensionConfig) -> str:
    return f"{degrees:.{_precision(config)}f}{DEGREE_SIGN}"


def dimension_label(dimension: Dimension, config: DimensionConfig, real_value: float) -> str:
    """Полный текст размера: prefix + значение + suffix или label_override."""
    if dimension.label_override:
        return dimension.label_override
    if dimension.kind == DimensionKind.ANGULAR:
        body = format_angle_value(dimension.value, config)
    else:
        body = format_dimension_value(real_value, config)
    return f"{dimension.prefix}{body}{dimension.suffix}"
