"""
Контроллер вьюпорта чертежа.

Принимает события указателя, колеса и клавиатуры (координаты — CSS px
холста), ведёт ViewportState и передаёт изменения чертежа в хранилище.
Снимок чертежа читается из хранилища на каждое событие и не изменяется.

Содержит:
  - PointerEvent, WheelEvent, KeyEvent — события
  - ProjectionGenerator                — внешний генератор проекций (async)
  - ViewportController                 — обработчики событий, add_view, рендер
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, Optional, Sequence, Tuple

import svgwrite

from drawing_viewport.config import ANNOTATION_BOX_OFFSET, ANNOTATION_DEFAULT_TEXT
from drawing_viewport.drawing import layout
from drawing_viewport.drawing.coordinates import (
    CanvasSize,
    CoordinateConverter,
    compute_sheet_layout,
    unit_factor,
)
from drawing_viewport.drawing.dimensions import (
    DimensionKind,
    build_dimension,
    default_offset,
    drag_update,
)
from drawing_viewport.drawing.line_styles import ThemeColors, get_theme
from drawing_viewport.drawing.model import (
    Annotation,
    Drawing,
    DrawingView,
    Projection,
    ProjectionType,
)
from drawing_viewport.drawing.svg_renderer import render_frame
from drawing_viewport.errors import InvalidDimensionGeometry, ProjectionGenerationFailed
from drawing_viewport.geometry.primitives import Point2D
from drawing_viewport.interaction.hit_test import ANCHOR_PART, HitTester, LineHit
from drawing_viewport.interaction.snap import (
    SnapEngine,
    SnapResult,
    SnapSettings,
    paper_tolerance,
)
from drawing_viewport.interaction.state import (
    DRAG_STATES,
    AnnotationSelection,
    DimensionSelection,
    DraggingAnnotation,
    DraggingDimensionOffset,
    DraggingView,
    EditingAnnotationText,
    Idle,
    Panning,
    PickedPoint,
    PointPicking,
    ViewportState,
)
from drawing_viewport.interaction.store import DrawingStore
from drawing_viewport.interaction.tools import DimensionTool
from drawing_viewport.project_config import ProjectConfig

logger = logging.getLogger(__name__)

LEFT_BUTTON = 0
MIDDLE_BUTTON = 1
RIGHT_BUTTON = 2

ProjectionGenerator = Callable[[str, ProjectionType, float], Awaitable[Projection]]


# ---------------------------------------------------------------------------
# События
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PointerEvent:
    """Событие указателя в CSS px холста."""
    x: float
    y: float
    button: int = LEFT_BUTTON
    ctrl: bool = False
    shift: bool = False

    @property
    def position(self) -> Point2D:
        return Point2D(float(self.x), float(self.y))


@dataclass(frozen=True)
class WheelEvent:
    x: float
    y: float
    delta_y: float


@dataclass(frozen=True)
class KeyEvent:
    key: str


def _now_ms() -> int:
    return int(time.time() * 1000)


def _sub(a: Sequence[float], b: Sequence[float]) -> Point2D:
    return Point2D(a[0] - b[0], a[1] - b[1])


# ---------------------------------------------------------------------------
# Контроллер
# ---------------------------------------------------------------------------

class ViewportController:
    """Автомат взаимодействия вьюпорта.

    Args:
        store: хранилище чертежей.
        drawing_id: идентификатор редактируемого чертежа.
        canvas: размер холста (физические px и devicePixelRatio).
        generate_projection: async-генератор проекции для add_view.
        shape_id_map: замена идентификатора формы для повторной попытки.
        config: конфигурация проекта.
    """

    def __init__(
        self,
        store: DrawingStore,
        drawing_id: str,
        canvas: CanvasSize,
        generate_projection: Optional[ProjectionGenerator] = None,
        shape_id_map: Optional[Dict[str, str]] = None,
        config: Optional[ProjectConfig] = None,
    ):
        self.store = store
        self.drawing_id = drawing_id
        self.canvas = canvas
        self.generate_projection = generate_projection
        self.shape_id_map = dict(shape_id_map or {})
        self.config = config or ProjectConfig()

        snap_cfg = self.config.snap
        self.snap_settings = SnapSettings(
            endpoints=snap_cfg.endpoints,
            midpoints=snap_cfg.midpoints,
            intersections=snap_cfg.intersections,
            nearest=snap_cfg.nearest,
        )
        self.snap_engine = SnapEngine(self.snap_settings)
        self.hit_tester = HitTester(self.config.hit_test)
        self.state = ViewportState()
        self.needs_redraw = True

    # --- доступ ----------------------------------------------------------

    @property
    def drawing(self) -> Drawing:
        return self.store.get_drawing(self.drawing_id)

    @property
    def theme(self) -> ThemeColors:
        return get_theme(self.config.viewport.theme)

    def converter(self, drawing: Optional[Drawing] = None) -> CoordinateConverter:
        """Преобразователь координат для текущих листа, холста и вьюпорта."""
        sheet = (drawing or self.drawing).sheet_config
        viewport_cfg = self.config.viewport
        sheet_layout = compute_sheet_layout(
            sheet, self.canvas.css_width, self.canvas.css_height,
            outer_margin=viewport_cfg.outer_margin_px,
            fit_factor=viewport_cfg.fit_factor,
        )
        return CoordinateConverter(sheet, self.canvas, self.state.pan, self.state.zoom,
                                   sheet_layout)

    def _update(self, **changes) -> None:
        new_state = replace(self.state, **changes)
        if new_state != self.state:
            self.state = new_state
            self.needs_redraw = True

    def _mutated(self) -> None:
        self.needs_redraw = True

    def resize(self, canvas: CanvasSize) -> None:
        self.canvas = canvas
        self.needs_redraw = True

    # --- инструменты -----------------------------------------------------

    def set_tool(self, tool: Optional[DimensionTool]) -> None:
        """Сменить инструмент: указанные точки и привязка сбрасываются."""
        interaction = self.state.interaction
        if isinstance(interaction, PointPicking):
            interaction = Idle()
        self._update(tool=tool, interaction=interaction, active_snap=None)
        logger.debug("Инструмент: %s", tool.value if tool else None)

    def toggle_views_lock(self) -> bool:
        self._update(views_locked=not self.state.views_locked)
        return self.state.views_locked

    def reset_view(self) -> None:
        self._update(pan=Point2D(0.0, 0.0), zoom=1.0)

    # --- указатель -------------------------------------------------------

    def on_pointer_down(self, event: PointerEvent) -> None:
        """Нажатие кнопки указателя.

        Средняя кнопка или Ctrl+левая — панорама; правая — сброс точек и
        выделения; левая — выбор/перетаскивание или действие инструмента.
        """
        if self.state.editing is not None:
            self._finish_text_edit(commit=True)

        if event.button == MIDDLE_BUTTON or (event.button == LEFT_BUTTON and event.ctrl):
            resume = self.state.interaction
            if not isinstance(resume, PointPicking):
                resume = None
            self._update(interaction=Panning(event.position, self.state.pan, resume))
            return

        if event.button == RIGHT_BUTTON:
            self._update(interaction=Idle(), selection=None)
            return

        if event.button != LEFT_BUTTON:
            return

        drawing = self.drawing
        paper = self.converter(drawing).screen_to_paper(event.position)
        tool = self.state.tool

        if tool is None:
            self._select_or_drag(paper, drawing)
        elif tool == DimensionTool.NOTA:
            self._create_annotation(paper, drawing)
        elif tool == DimensionTool.LINE_LENGTH and self.state.active_snap is None:
            self._dimension_line_at(paper, drawing)
        else:
            self._pick_point(paper, drawing, tool)

    def on_pointer_move(self, event: PointerEvent) -> None:
        interaction = self.state.interaction

        if isinstance(interaction, Panning):
            delta = _sub(event.position, interaction.start)
            self._update(pan=Point2D(interaction.start_pan.x + delta.x,
                                     interaction.start_pan.y + delta.y))
            return

        drawing = self.drawing
        paper = self.converter(drawing).screen_to_paper(event.position)

        if isinstance(interaction, DraggingView):
            position = _sub(paper, interaction.grab_offset)
            self.store.update_view_position(self.drawing_id, interaction.view_id, position)
            self._mutated()
        elif isinstance(interaction, DraggingDimensionOffset):
            self._drag_dimension(interaction.index, paper, drawing)
        elif isinstance(interaction, DraggingAnnotation):
            self._drag_annotation(interaction, paper, drawing)
        else:
            view = self.hit_tester.hit_test_view(paper, drawing.views)
            active_snap = None
            if self.state.tool is not None:
                active_snap = self._snap_at(paper, drawing, self.state.tool)
            self._update(hovered_view_id=view.id if view is not None else None,
                         active_snap=active_snap)

    def on_pointer_up(self, event: Optional[PointerEvent] = None) -> None:
        """Отпускание кнопки: перетаскивание завершается без отката."""
        interaction = self.state.interaction
        if isinstance(interaction, Panning):
            self._update(interaction=interaction.resume or Idle())
        elif isinstance(interaction, DRAG_STATES):
            self._update(interaction=Idle())

    def on_pointer_leave(self, event: Optional[PointerEvent] = None) -> None:
        self.on_pointer_up(event)

    # --- колесо ----------------------------------------------------------

    def on_wheel(self, event: WheelEvent) -> None:
        """Масштаб относительно курсора: точка под курсором остаётся на месте."""
        vp = self.config.viewport
        zoom = self.state.zoom
        step = vp.zoom_out_step if event.delta_y > 0 else vp.zoom_in_step
        new_zoom = min(max(zoom * step, vp.zoom_min), vp.zoom_max)
        if new_zoom == zoom:
            return

        c = self.converter().screen_center
        pan = self.state.pan
        # canvas − center = (screen − center − pan) / zoom
        rel_x = (event.x - c.x - pan.x) / zoom
        rel_y = (event.y - c.y - pan.y) / zoom
        new_pan = Point2D(event.x - c.x - new_zoom * rel_x,
                          event.y - c.y - new_zoom * rel_y)
        self._update(zoom=new_zoom, pan=new_pan)

    # --- клавиатура ------------------------------------------------------

    def on_key(self, event: KeyEvent) -> None:
        """Клавиши: Escape, Delete/Backspace, 0/Home, Enter и ввод текста надписи."""
        key = event.key
        editing = self.state.editing

        if editing is not None:
            if key == 'Escape':
                self._finish_text_edit(commit=False)
            elif key == 'Enter':
                self._finish_text_edit(commit=True)
            elif key == 'Backspace':
                self._update(interaction=replace(editing, text=editing.text[:-1]))
            elif len(key) == 1:
                self._update(interaction=replace(editing, text=editing.text + key))
            return

        if key == 'Escape':
            self._escape()
        elif key in ('Delete', 'Backspace'):
            self._delete_selection()
        elif key in ('0', 'Home'):
            self.reset_view()
        elif key == 'Enter':
            annotation_id = self.state.selected_annotation_id
            annotation = (self.drawing.annotation_by_id(annotation_id)
                          if annotation_id is not None else None)
            if annotation is not None:
                self._update(interaction=EditingAnnotationText(annotation.id, annotation.text))

    def _escape(self) -> None:
        """Escape: перетаскивание/панорама → точки → надпись → размер → инструмент."""
        state = self.state
        interaction = state.interaction
        if isinstance(interaction, Panning):
            self._update(interaction=interaction.resume or Idle())
        elif isinstance(interaction, DRAG_STATES):
            self._update(interaction=Idle())
        elif state.picked_points:
            self._update(interaction=Idle())
        elif state.selected_annotation_id is not None:
            self._update(selection=None)
        elif state.selected_dimension_index is not None:
            self._update(selection=None)
        elif state.tool is not None:
            self.set_tool(None)

    def _delete_selection(self) -> None:
        selection = self.state.selection
        if isinstance(selection, DimensionSelection):
            self.store.remove_dimension(self.drawing_id, selection.index)
            logger.info("Размер %d удалён", selection.index)
        elif isinstance(selection, AnnotationSelection):
            self.store.remove_annotation(self.drawing_id, selection.annotation_id)
            logger.info("Надпись %s удалена", selection.annotation_id)
        else:
            return
        self._mutated()
        self._update(selection=None)

    def _finish_text_edit(self, commit: bool) -> None:
        editing = self.state.editing
        if editing is None:
            return
        if commit and editing.text.strip():
            self.store.update_annotation(self.drawing_id, editing.annotation_id,
                                         {'text': editing.text})
            self._mutated()
        self._update(interaction=Idle())

    # --- выбор и перетаскивание -----------------------------------------

    def _select_or_drag(self, paper: Point2D, drawing: Drawing) -> None:
        """Размер → надпись → вид; повторный щелчок по выделенному — перетаскивание."""
        dim_hit = self.hit_tester.hit_test_dimension(paper, drawing)
        if dim_hit is not None:
            if self.state.selected_dimension_index == dim_hit.index:
                self._update(interaction=DraggingDimensionOffset(dim_hit.index))
            else:
                self._update(selection=DimensionSelection(dim_hit.index), interaction=Idle())
            return

        ann_hit = self.hit_tester.hit_test_annotation(paper, drawing)
        if ann_hit is not None:
            if self.state.selected_annotation_id == ann_hit.annotation_id:
                annotation = drawing.annotation_by_id(ann_hit.annotation_id)
                local = _sub(paper, drawing.view_origin(annotation.view_id))
                reference = (annotation.anchor_point if ann_hit.part == ANCHOR_PART
                             else annotation.position)
                self._update(interaction=DraggingAnnotation(
                    annotation.id, ann_hit.part, _sub(local, reference)))
            else:
                self._update(selection=AnnotationSelection(ann_hit.annotation_id),
                             interaction=Idle())
            return

        view = self.hit_tester.hit_test_view(paper, drawing.views)
        if view is not None and not self.state.views_locked:
            self._update(selection=None,
                         interaction=DraggingView(view.id, _sub(paper, view.position)))
        else:
            self._update(selection=None)

    def _drag_dimension(self, index: int, paper: Point2D, drawing: Drawing) -> None:
        if not 0 <= index < len(drawing.dimensions):
            self._update(interaction=Idle())
            return
        dimension = drawing.dimensions[index]
        local = _sub(paper, drawing.view_origin(dimension.view_id))
        update = drag_update(dimension, local, drawing.dimension_config)
        if update is None:
            return
        self.store.update_dimension(self.drawing_id, index, update)
        self._mutated()

    def _drag_annotation(self, drag: DraggingAnnotation, paper: Point2D,
                         drawing: Drawing) -> None:
        annotation = drawing.annotation_by_id(drag.annotation_id)
        if annotation is None:
            self._update(interaction=Idle())
            return
        local = _sub(paper, drawing.view_origin(annotation.view_id))
        target = _sub(local, drag.grab_offset)
        key = 'anchor_point' if drag.part == ANCHOR_PART else 'position'
        self.store.update_annotation(self.drawing_id, annotation.id, {key: target})
        self._mutated()

    # --- инструменты размеров -------------------------------------------

    def _snap_at(self, paper: Point2D, drawing: Drawing,
                 tool: DimensionTool) -> Optional[SnapResult]:
        settings = SnapSettings.for_tool(tool, self.snap_settings)
        tolerance = paper_tolerance(self.converter(drawing).paper_to_screen_scale,
                                    self.config.snap.screen_tolerance_px)
        return self.snap_engine.snap_across_views(paper, drawing.views, tolerance, settings)

    def _pick_point(self, paper: Point2D, drawing: Drawing, tool: DimensionTool) -> None:
        """Указать точку по привязке; без привязки щелчок игнорируется."""
        snap = self._snap_at(paper, drawing, tool)
        if snap is None:
            logger.debug("Щелчок без привязки — точка не указана")
            return

        interaction = self.state.interaction
        points: Tuple[PickedPoint, ...] = ()
        if isinstance(interaction, PointPicking) and interaction.tool == tool:
            points = interaction.points
        points = points + (PickedPoint(snap.paper_point, snap.view_id),)

        if len(points) < tool.required_points:
            self._update(interaction=PointPicking(tool, points), active_snap=snap)
            return

        self._create_dimension(tool, points, drawing)
        self._update(interaction=Idle())

    def _create_dimension(self, tool: DimensionTool, points: Sequence[PickedPoint],
                          drawing: Drawing) -> None:
        """Размер по указанным точкам; владелец — вид первой точки."""
        view = drawing.view_by_id(points[0].view_id)
        origin = view.position if view is not None else Point2D(0.0, 0.0)
        local = [_sub(p.paper, origin) for p in points]
        config = drawing.dimension_config
        view_id = view.id if view is not None else None

        try:
            if tool == DimensionTool.ANGLE:
                dimension = build_dimension(local[0], local[1], DimensionKind.ANGULAR, config,
                                            view_id=view_id, p3=local[2])
            else:
                bbox = view.projection.bounding_box if view is not None else None
                dimension = build_dimension(local[0], local[1], tool.dimension_kind, config,
                                            offset=default_offset(config, bbox),
                                            view_id=view_id)
        except InvalidDimensionGeometry as e:
            logger.warning("Размер не создан: %s", e)
            return

        self.store.add_dimension(self.drawing_id, dimension)
        self._mutated()
        logger.info("Размер %s добавлен: %.3f", dimension.kind.value, dimension.value)

    def _dimension_line_at(self, paper: Point2D, drawing: Drawing) -> None:
        """Размер длины линии под курсором."""
        hit = self.hit_tester.hit_test_line(paper, drawing.views)
        if hit is None:
            return
        view = drawing.view_by_id(hit.view_id)
        config = drawing.dimension_config
        try:
            dimension = build_dimension(
                hit.start, hit.end, DimensionKind.ALIGNED, config,
                offset=default_offset(config, view.projection.bounding_box),
                view_id=hit.view_id,
            )
        except InvalidDimensionGeometry as e:
            logger.warning("Размер линии не создан: %s", e)
            return
        self.store.add_dimension(self.drawing_id, dimension)
        self._mutated()

    def _create_annotation(self, paper: Point2D, drawing: Drawing) -> None:
        """Надпись 'Nota' на ближайшей линии; без попадания — ничего."""
        hit: Optional[LineHit] = self.hit_tester.hit_test_line(paper, drawing.views)
        if hit is None:
            return
        anchor = hit.closest_point
        dx, dy = ANNOTATION_BOX_OFFSET
        annotation = Annotation(
            id=f'annotation-{_now_ms()}',
            text=ANNOTATION_DEFAULT_TEXT,
            position=Point2D(anchor.x + dx, anchor.y + dy),
            anchor_point=anchor,
            view_id=hit.view_id,
        )
        self.store.add_annotation(self.drawing_id, annotation)
        self._mutated()
        self._update(selection=AnnotationSelection(annotation.id),
                     interaction=EditingAnnotationText(annotation.id, annotation.text))

    # --- виды ------------------------------------------------------------

    async def add_view(self, shape_id: str, projection_type: ProjectionType) -> DrawingView:
        """Сгенерировать проекцию формы и добавить вид на лист.

        При ошибке генератора выполняется одна повторная попытка с
        идентификатором из shape_id_map; при успехе повтора
        source_shape_ids чертежа обновляется. После добавления виды
        перекомпоновываются.

        Raises:
            ProjectionGenerationFailed: обе попытки неудачны (чертёж не изменён).
        """
        if self.generate_projection is None:
            raise ProjectionGenerationFailed(shape_id, projection_type.value)

        drawing = self.drawing
        sheet = drawing.sheet_config
        scale = sheet.scale * unit_factor(sheet.units)

        try:
            projection = await self.generate_projection(shape_id, projection_type, scale)
        except Exception as first_error:
            remapped = self.shape_id_map.get(shape_id)
            if remapped is None or remapped == shape_id:
                raise ProjectionGenerationFailed(
                    shape_id, projection_type.value, first_error) from first_error
            logger.warning("Проекция %s для '%s' не построена (%s), повтор с '%s'",
                           projection_type.value, shape_id, first_error, remapped)
            try:
                projection = await self.generate_projection(remapped, projection_type, scale)
            except Exception as retry_error:
                raise ProjectionGenerationFailed(
                    shape_id, projection_type.value, retry_error) from retry_error
            source_ids = [remapped if s == shape_id else s for s in drawing.source_shape_ids]
            if remapped not in source_ids:
                source_ids.append(remapped)
            self.store.update_drawing(self.drawing_id, {'source_shape_ids': source_ids})

        drawing = self.drawing
        layout_cfg = self.config.layout
        position = layout.calculate_new_view_position(
            drawing.views, projection.bounding_box, sheet,
            spacing=layout_cfg.new_view_spacing,
            available_fraction=layout_cfg.available_fraction,
        )
        view = DrawingView(
            id=f'view-{projection_type.value.lower()}-{_now_ms()}',
            projection_type=projection_type,
            projection=projection,
            position=position,
        )
        self.store.add_view(self.drawing_id, view)
        self.fit_all_views()
        return view

    def fit_all_views(self) -> None:
        """Перекомпоновать видимые виды по сетке."""
        drawing = self.drawing
        layout_cfg = self.config.layout
        positions = layout.fit_all_views(
            drawing.views, drawing.sheet_config,
            gap=layout_cfg.gap, bias_x=layout_cfg.bias_x, bias_y=layout_cfg.bias_y,
        )
        for view_id, position in positions.items():
            self.store.update_view_position(self.drawing_id, view_id, position)
        self._mutated()
        logger.info("Виды перекомпонованы: %d", len(positions))

    # --- рендер ----------------------------------------------------------

    def render(self) -> svgwrite.Drawing:
        drawing = self.drawing
        frame = render_frame(drawing, self.state, self.converter(drawing), self.theme)
        self.needs_redraw = False
        return frame

    def render_if_needed(self) -> Optional[svgwrite.Drawing]:
        """Кадр, если состояние или чертёж изменились с прошлого рендера."""
        if not self.needs_redraw:
            return None
        return self.render()
