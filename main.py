"""
Точка входа: рендер кадра чертёжного листа из JSON-снимка чертежа.

Использование:
    python main.py <drawing.json> [--output OUTPUT] [--width W --height H]

Пример:
    python main.py "drawing.json" --output "frame.svg"
    python main.py "drawing.json" --fit --theme white         # с автокомпоновкой
    python main.py "drawing.json" --config .drawing.json      # с конфигом
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Обеспечить поддержку Unicode на Windows-консоли
if sys.stdout.encoding and sys.stdout.encoding.lower() not in ('utf-8', 'utf8'):
    sys.stdout.reconfigure(encoding='utf-8', errors='replace')
if sys.stderr.encoding and sys.stderr.encoding.lower() not in ('utf-8', 'utf8'):
    sys.stderr.reconfigure(encoding='utf-8', errors='replace')

from drawing_viewport.drawing.coordinates import CanvasSize
from drawing_viewport.drawing.model import Drawing
from drawing_viewport.errors import DrawingViewportError
from drawing_viewport.interaction.controller import ViewportController
from drawing_viewport.interaction.store import InMemoryDrawingStore
from drawing_viewport.logging_config import LogContext, log_timing, setup_logging
from drawing_viewport.project_config import load_config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Рендер
# ---------------------------------------------------------------------------

def load_drawing(path: str) -> Drawing:
    """Прочитать снимок чертежа из JSON-файла."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    drawing = Drawing.from_dict(data)
    logger.info("Чертёж '%s': %d видов, %d размеров, %d надписей",
                drawing.name or drawing.id, len(drawing.views),
                len(drawing.dimensions), len(drawing.annotations))
    return drawing


def render_to_file(
    drawing_path: str,
    output_svg: str,
    canvas: CanvasSize,
    config_path: str = None,
    theme: str = None,
    fit: bool = False,
) -> Path:
    """Загрузить снимок, при необходимости скомпоновать виды и сохранить кадр.

    Args:
        drawing_path: путь к JSON-снимку.
        output_svg: путь к выходному SVG.
        canvas: размер холста.
        config_path: явный путь к .drawing.json.
        theme: тема холста (переопределяет конфиг).
        fit: перекомпоновать видимые виды по сетке.

    Returns:
        Путь к сохранённому SVG.
    """
    config = load_config(drawing_path=drawing_path, explicit_config=config_path)
    if theme:
        config.viewport.theme = theme

    drawing = load_drawing(drawing_path)
    store = InMemoryDrawingStore([drawing])
    controller = ViewportController(store, drawing.id, canvas, config=config)

    with LogContext(drawing_id=drawing.id):
        if fit:
            controller.fit_all_views()
        with log_timing(logger, "Рендер кадра"):
            frame = controller.render()

    result_path = Path(output_svg)
    frame.saveas(str(result_path), pretty=True)
    logger.info("Кадр сохранён: %s (%.0f×%.0f px)", result_path, canvas.width, canvas.height)
    return result_path


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Рендер кадра чертёжного листа из JSON-снимка.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "drawing_file",
        help="Путь к JSON-снимку чертежа.",
    )
    parser.add_argument(
        "--output", "-o",
        default="drawing_frame.svg",
        help="Путь к выходному SVG-файлу (по умолчанию: drawing_frame.svg).",
    )
    parser.add_argument(
        "--width",
        type=float,
        default=1600.0,
        help="Ширина холста в физических пикселях (по умолчанию: 1600).",
    )
    parser.add_argument(
        "--height",
        type=float,
        default=1000.0,
        help="Высота холста в физических пикселях (по умолчанию: 1000).",
    )
    parser.add_argument(
        "--dpr",
        type=float,
        default=1.0,
        help="devicePixelRatio холста (по умолчанию: 1).",
    )
    parser.add_argument(
        "--theme",
        choices=("blueprint", "white", "black"),
        default=None,
        help="Цветовая тема холста.",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Путь к конфигурационному файлу .drawing.json.",
    )
    parser.add_argument(
        "--fit",
        action="store_true",
        help="Перекомпоновать видимые виды по сетке перед рендером.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Подробный журнал (DEBUG).",
    )
    parser.add_argument(
        "--log-json",
        default=None,
        dest="log_json",
        help="Дополнительно писать журнал в JSON-файл.",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_file=args.log_json,
        root_logger=True,
    )

    canvas = CanvasSize(args.width, args.height, args.dpr)
    try:
        render_to_file(
            args.drawing_file,
            args.output,
            canvas,
            config_path=args.config,
            theme=args.theme,
            fit=args.fit,
        )
    except (OSError, json.JSONDecodeError) as exc:
        logger.critical("Ошибка чтения снимка: %s", exc)
        sys.exit(1)
    except (KeyError, ValueError, DrawingViewportError) as exc:
        logger.critical("Некорректный снимок чертежа: %s", exc)
        sys.exit(1)
    except Exception as exc:
        logger.critical("Неожиданная ошибка: %s", exc, exc_info=True)
        sys.exit(2)


if __name__ == "__main__":
    main()
