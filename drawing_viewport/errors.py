"""
Исключения движка чертежа.

Отсутствие попадания (hit-test) исключением не является: функции
поиска возвращают None.
"""

from typing import Optional


class DrawingViewportError(Exception):
    """Базовое исключение пакета drawing_viewport."""


class ProjectionGenerationFailed(DrawingViewportError):
    """Генератор проекции не смог построить вид (даже после повтора).

    Attributes:
        shape_id: исходный идентификатор формы.
        projection_type: запрошенный тип проекции.
        cause: последнее исключение генератора.
    """

    def __init__(self, shape_id: str, projection_type: str,
                 cause: Optional[BaseException] = None):
        self.shape_id = shape_id
        self.projection_type = projection_type
        self.cause = cause
        message = f"Projection generation failed for shape '{shape_id}' ({projection_type})"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class InvalidDimensionGeometry(DrawingViewportError):
    """Вырожденные входные данные размера (нулевая длина, особый определитель)."""


class DrawingNotFound(DrawingViewportError, KeyError):
    """Чертёж с указанным идентификатором отсутствует в хранилище."""
