"""
drawing_viewport — движок координат и размеров для интерактивного чертёжного листа.

Рендер кадра — drawing.svg_renderer.render_frame; обработка событий —
interaction.controller.ViewportController. Пример запуска — main.py.
"""

from drawing_viewport.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)

__version__ = "0.1.0"

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]
