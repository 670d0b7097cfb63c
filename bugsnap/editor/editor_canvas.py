"""
Editor canvas widget for BugSnap.

The EditorCanvas displays the active slide's media scaled to fit the widget
and paints the live annotation overlay on top:
- Each visible annotation with its numbered badge
- Corner handles for the selected annotation
- The shape currently being drawn

Display space is the pixel space of the media as drawn on screen, with its
origin at the media's top-left corner. Mouse events are converted into that
space and handed to the InteractionController; the width of the drawn media
is the live display width used when exporting the mounted slide.
"""

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import (
    QColor,
    QFont,
    QImage,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPen,
)
from PySide6.QtWidgets import QWidget

from bugsnap.editor.annotations import Annotation, LiveMedia, Point, ShapeKind, Slide
from bugsnap.editor.controller import (
    ControllerSettings,
    InteractionController,
    InteractionMode,
    ToolType,
)
from bugsnap.editor.geometry import CornerHandle, hit_test, normalized_bounds, resize_handle_at
from bugsnap.services.logging_service import get_logger

SELECTED_COLOR = QColor("#3b82f6")
HANDLE_SIZE = 10
BADGE_SIZE = 24
STROKE_WIDTH = 3
# Fraction of the widget the media may occupy
FIT_MARGIN = 0.95

_HANDLE_CURSORS = {
    CornerHandle.TOP_LEFT: Qt.CursorShape.SizeFDiagCursor,
    CornerHandle.BOTTOM_RIGHT: Qt.CursorShape.SizeFDiagCursor,
    CornerHandle.TOP_RIGHT: Qt.CursorShape.SizeBDiagCursor,
    CornerHandle.BOTTOM_LEFT: Qt.CursorShape.SizeBDiagCursor,
}


class EditorCanvas(QWidget):
    """
    Canvas widget for drawing annotations over a slide.

    Signals:
        slide_changed: Emitted with the new Slide after every committed edit.
        selection_changed: Emitted with the selected annotation id or None.
    """

    slide_changed = Signal(object)
    selection_changed = Signal(object)

    def __init__(
        self,
        settings: Optional[ControllerSettings] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._settings = settings or ControllerSettings()
        self._controller: Optional[InteractionController] = None

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(200, 200)

    # ─── Slide Management ─────────────────────────────────────────────────

    def set_slide(self, slide: Optional[Slide]) -> None:
        """Mount a slide, or clear the canvas with None."""
        if slide is None:
            self._controller = None
        else:
            tool = self._controller.tool if self._controller else ToolType.RECTANGLE
            self._controller = InteractionController(slide, self._on_commit, self._settings)
            self._controller.set_tool(tool)
            image = slide.media.decoded()
            self._logger.info(
                f"Slide '{slide.name}' mounted: {image.width()}x{image.height()}"
            )
        self.selection_changed.emit(None)
        self.update()

    @property
    def controller(self) -> Optional[InteractionController]:
        return self._controller

    @property
    def slide(self) -> Optional[Slide]:
        return self._controller.slide if self._controller else None

    def set_tool(self, tool: ToolType) -> None:
        if self._controller:
            self._controller.set_tool(tool)
            self.setCursor(self._tool_cursor())

    def set_current_time(self, seconds: float) -> None:
        """Seek the mounted video; the new frame is read from the media handle."""
        if self._controller:
            self._controller.set_current_time(seconds)
            self.update()

    def _frame(self) -> Optional[QImage]:
        """The current picture of the mounted media; a video handle swaps frames in place."""
        slide = self.slide
        return slide.media.decoded() if slide is not None else None

    def _on_commit(self, slide: Slide) -> None:
        self.slide_changed.emit(slide)
        self.update()

    # ─── Display Space ────────────────────────────────────────────────────

    def media_rect(self) -> QRectF:
        """Where the media is drawn, in widget coordinates."""
        image = self._frame()
        if image is None or image.isNull():
            return QRectF()
        iw, ih = image.width(), image.height()
        zoom = min(
            1.0,
            self.width() * FIT_MARGIN / iw,
            self.height() * FIT_MARGIN / ih,
        )
        w, h = iw * zoom, ih * zoom
        return QRectF((self.width() - w) / 2, (self.height() - h) / 2, w, h)

    @property
    def display_width(self) -> float:
        return self.media_rect().width()

    def live_source(self) -> Optional[LiveMedia]:
        """The mounted media together with its on-screen width."""
        slide = self.slide
        if slide is None:
            return None
        return LiveMedia(slide.media, self.display_width)

    def widget_to_display(self, pos: QPointF) -> Point:
        origin = self.media_rect().topLeft()
        return Point(pos.x() - origin.x(), pos.y() - origin.y())

    # ─── Painting ─────────────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(241, 245, 249))

        image = self._frame()
        if image is None or image.isNull():
            painter.setPen(QColor(100, 116, 139))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No slide loaded")
            painter.end()
            return

        target = self.media_rect()
        painter.drawImage(target, image)
        painter.translate(target.topLeft())

        controller = self._controller
        numbers = {a.id: i + 1 for i, a in enumerate(controller.annotations)}
        for annotation in controller.visible_annotations():
            selected = annotation.id == controller.selected_annotation_id
            self._draw_annotation(painter, annotation, numbers[annotation.id], selected)

        preview = controller.preview()
        if preview is not None:
            self._draw_shape(painter, preview, QColor(preview.color), Qt.PenStyle.DashLine)

        painter.end()

    def _draw_shape(
        self,
        painter: QPainter,
        annotation: Annotation,
        stroke: QColor,
        style: Qt.PenStyle = Qt.PenStyle.SolidLine
    ) -> None:
        bounds = normalized_bounds(annotation)
        rect = QRectF(bounds.min_x, bounds.min_y, bounds.width, bounds.height)
        fill = QColor(annotation.color)
        fill.setAlphaF(0.2)

        pen = QPen(stroke)
        pen.setWidth(STROKE_WIDTH)
        pen.setStyle(style)
        painter.setPen(pen)
        painter.setBrush(fill)
        if annotation.shape_kind == ShapeKind.ELLIPSE:
            painter.drawEllipse(rect)
        else:
            painter.drawRoundedRect(rect, 4, 4)

    def _draw_annotation(
        self,
        painter: QPainter,
        annotation: Annotation,
        number: int,
        selected: bool
    ) -> None:
        color = SELECTED_COLOR if selected else QColor(annotation.color)
        self._draw_shape(painter, annotation, color)

        bounds = normalized_bounds(annotation)

        if selected:
            handle_pen = QPen(SELECTED_COLOR)
            handle_pen.setWidth(2)
            painter.setPen(handle_pen)
            painter.setBrush(QColor(255, 255, 255))
            half = HANDLE_SIZE / 2
            for handle in CornerHandle:
                corner = bounds.corner(handle)
                painter.drawRect(QRectF(corner.x - half, corner.y - half, HANDLE_SIZE, HANDLE_SIZE))

        # Badge
        half = BADGE_SIZE / 2
        badge = QRectF(bounds.min_x - half, bounds.min_y - half, BADGE_SIZE, BADGE_SIZE)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(color)
        painter.drawRoundedRect(badge, 6, 6)

        font = QFont()
        font.setPixelSize(12)
        font.setBold(True)
        painter.setFont(font)
        painter.setPen(QColor(255, 255, 255))
        painter.drawText(badge, Qt.AlignmentFlag.AlignCenter, str(number))

    # ─── Event Handlers ───────────────────────────────────────────────────

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if self._controller and event.button() == Qt.MouseButton.LeftButton:
            before = self._controller.selected_annotation_id
            self._controller.pointer_down(self.widget_to_display(event.position()))
            self._emit_if_selection_changed(before)
            self.update()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self._controller is None:
            return
        point = self.widget_to_display(event.position())
        if self._controller.mode != InteractionMode.IDLE:
            self._controller.pointer_move(point)
            self.update()
        else:
            self._update_cursor_for_position(point)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if self._controller and event.button() == Qt.MouseButton.LeftButton:
            before = self._controller.selected_annotation_id
            self._controller.pointer_up(self.widget_to_display(event.position()))
            self._emit_if_selection_changed(before)
            self.update()

    def leaveEvent(self, event) -> None:
        if self._controller and self._controller.mode != InteractionMode.IDLE:
            before = self._controller.selected_annotation_id
            self._controller.pointer_leave()
            self._emit_if_selection_changed(before)
            self.update()
        super().leaveEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if self._controller and event.key() in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            before = self._controller.selected_annotation_id
            self._controller.delete_selected()
            self._emit_if_selection_changed(before)
            return
        super().keyPressEvent(event)

    def _emit_if_selection_changed(self, before: Optional[int]) -> None:
        after = self._controller.selected_annotation_id
        if after != before:
            self.selection_changed.emit(after)

    def _tool_cursor(self) -> Qt.CursorShape:
        if self._controller and self._controller.tool == ToolType.SELECT:
            return Qt.CursorShape.ArrowCursor
        return Qt.CursorShape.CrossCursor

    def _update_cursor_for_position(self, point: Point) -> None:
        """Update cursor based on what's under the pointer."""
        selected = self._controller.selected_annotation
        if selected is not None:
            handle = resize_handle_at(point, selected, self._settings.handle_radius)
            if handle is not None:
                self.setCursor(_HANDLE_CURSORS[handle])
                return
            if self._controller.tool == ToolType.SELECT and hit_test(point, selected):
                self.setCursor(Qt.CursorShape.SizeAllCursor)
                return
        self.setCursor(self._tool_cursor())
