"""
Interaction controller for the BugSnap editor.

A pointer-driven state machine over the annotations of one slide. The
editor canvas translates Qt mouse events into pointer_down / pointer_move /
pointer_up / pointer_leave calls in display coordinates; the controller
decides whether the gesture draws, selects, drags or resizes.

Modes:
- IDLE: nothing in progress
- DRAWING: a new shape is being dragged out
- DRAGGING: the selected annotation follows the pointer
- RESIZING: one corner of the selected annotation follows the pointer

The slide's annotation tuple is never edited in place. During a gesture the
controller keeps a working copy of the touched annotation; the finished
gesture publishes a new Slide through the `update_slide` callback exactly
once.
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Callable, Optional, Tuple

from bugsnap.editor.annotations import (
    Annotation,
    Point,
    ShapeKind,
    Slide,
    is_in_video_window,
    next_annotation_id,
)
from bugsnap.editor.geometry import (
    HANDLE_RADIUS,
    MIN_SHAPE_SIZE,
    CornerHandle,
    hit_test,
    is_degenerate,
    resize_corner,
    resize_handle_at,
    translate,
)
from bugsnap.services.logging_service import get_logger


class ToolType(Enum):
    """Enum for editor tools."""
    SELECT = auto()
    RECTANGLE = auto()
    ELLIPSE = auto()


class InteractionMode(Enum):
    """Enum for the gesture currently in progress."""
    IDLE = auto()
    DRAWING = auto()
    DRAGGING = auto()
    RESIZING = auto()


_SHAPE_FOR_TOOL = {
    ToolType.RECTANGLE: ShapeKind.RECTANGLE,
    ToolType.ELLIPSE: ShapeKind.ELLIPSE,
}


@dataclass(frozen=True)
class ControllerSettings:
    """Tunables for the interaction controller."""
    color: str = "#ef4444"
    min_shape_size: float = MIN_SHAPE_SIZE
    handle_radius: float = HANDLE_RADIUS
    video_match_window: float = 0.5

    @classmethod
    def from_config(cls, config) -> "ControllerSettings":
        editor = config.editor
        return cls(
            color=config.annotation_color,
            min_shape_size=float(editor["min_shape_size"]),
            handle_radius=float(editor["handle_radius"]),
            video_match_window=float(editor["video_match_window"]),
        )


@dataclass(frozen=True)
class ControllerState:
    """What the UI needs to draw cursors and handles."""
    tool: ToolType
    selected_annotation_id: Optional[int]
    mode: InteractionMode


class InteractionController:
    """
    Create, select, move and resize annotations on one slide.

    Pointer-down precedence:
    1. a resize handle of the selected annotation
    2. with the SELECT tool: the selected annotation, then any other
       annotation (which becomes selected), else clear the selection
    3. otherwise start drawing a shape of the current tool's kind
    """

    def __init__(
        self,
        slide: Slide,
        update_slide: Callable[[Slide], None],
        settings: Optional[ControllerSettings] = None,
    ) -> None:
        self._logger = get_logger(__name__)
        self._update_slide = update_slide
        self._settings = settings or ControllerSettings()
        self._tool: ToolType = ToolType.RECTANGLE

        self._slide: Slide = slide
        self._selected_id: Optional[int] = None

        self._reset_gesture()

    def _reset_gesture(self) -> None:
        self._mode = InteractionMode.IDLE
        self._anchor: Optional[Point] = None
        self._current: Optional[Point] = None
        self._working: Optional[Annotation] = None
        self._original: Optional[Annotation] = None
        self._resize_handle: Optional[CornerHandle] = None

    # ─── State ────────────────────────────────────────────────────────────

    @property
    def slide(self) -> Slide:
        return self._slide

    def set_slide(self, slide: Slide) -> None:
        """Switch to another slide, dropping selection and any gesture."""
        self._slide = slide
        self._selected_id = None
        self._reset_gesture()

    @property
    def tool(self) -> ToolType:
        return self._tool

    def set_tool(self, tool: ToolType) -> None:
        if self._mode != InteractionMode.IDLE:
            self._finish_gesture()
        self._tool = tool

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def selected_annotation_id(self) -> Optional[int]:
        return self._selected_id

    @property
    def selected_annotation(self) -> Optional[Annotation]:
        if self._selected_id is None:
            return None
        return self._find(self._selected_id)

    def state(self) -> ControllerState:
        return ControllerState(self._tool, self._selected_id, self._mode)

    @property
    def current_time(self) -> float:
        return self._slide.media.current_time

    def set_current_time(self, seconds: float) -> None:
        """Seek: playback position lives on the media handle shared by all snapshots."""
        self._slide.media.current_time = seconds

    @property
    def annotations(self) -> Tuple[Annotation, ...]:
        """The live annotation list, including an in-progress move/resize."""
        if self._working is None:
            return self._slide.annotations
        return tuple(
            self._working if a.id == self._working.id else a
            for a in self._slide.annotations
        )

    def visible_annotations(self) -> Tuple[Annotation, ...]:
        """Annotations to show on the current frame."""
        if not self._slide.is_video:
            return self.annotations
        window = self._settings.video_match_window
        return tuple(
            a for a in self.annotations
            if is_in_video_window(a, self.current_time, window)
        )

    def preview(self) -> Optional[Annotation]:
        """The shape being drawn, or None outside of DRAWING."""
        if self._mode != InteractionMode.DRAWING:
            return None
        return Annotation(
            id=0,
            shape_kind=_SHAPE_FOR_TOOL[self._tool],
            start=self._anchor,
            end=self._current,
            color=self._settings.color,
        )

    def _find(self, annotation_id: int) -> Optional[Annotation]:
        for annotation in self.annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    # ─── Pointer Events ───────────────────────────────────────────────────

    def pointer_down(self, point: Point) -> None:
        if self._mode != InteractionMode.IDLE:
            # A release was lost (e.g. outside the window); close that gesture first
            self._finish_gesture()

        selected = self.selected_annotation
        if selected is not None:
            handle = resize_handle_at(point, selected, self._settings.handle_radius)
            if handle is not None:
                self._begin_edit(InteractionMode.RESIZING, selected, point)
                self._resize_handle = handle
                return

        if self._tool == ToolType.SELECT:
            if selected is not None and hit_test(point, selected):
                self._begin_edit(InteractionMode.DRAGGING, selected, point)
                return

            for annotation in self._slide.annotations:
                if hit_test(point, annotation):
                    self._selected_id = annotation.id
                    self._begin_edit(InteractionMode.DRAGGING, annotation, point)
                    return

            self._selected_id = None
            return

        self._mode = InteractionMode.DRAWING
        self._anchor = point
        self._current = point

    def pointer_move(self, point: Point) -> None:
        if self._mode == InteractionMode.DRAGGING:
            dx = point.x - self._current.x
            dy = point.y - self._current.y
            self._working = translate(self._working, dx, dy)
            self._current = point
        elif self._mode == InteractionMode.RESIZING:
            self._working = resize_corner(self._working, self._resize_handle, point)
            self._current = point
        elif self._mode == InteractionMode.DRAWING:
            self._current = point

    def pointer_up(self, point: Optional[Point] = None) -> None:
        if self._mode == InteractionMode.IDLE:
            return
        if point is not None:
            self.pointer_move(point)
        self._finish_gesture()

    def pointer_leave(self) -> None:
        """Leaving the canvas finishes the gesture like a release."""
        self.pointer_up()

    def _begin_edit(self, mode: InteractionMode, annotation: Annotation, point: Point) -> None:
        self._mode = mode
        self._anchor = point
        self._current = point
        self._original = annotation
        self._working = annotation

    def _finish_gesture(self) -> None:
        mode = self._mode
        if mode == InteractionMode.DRAWING:
            self._finish_drawing()
        elif mode in (InteractionMode.DRAGGING, InteractionMode.RESIZING):
            working, original = self._working, self._original
            if working is not None and working != original:
                self._commit(self.annotations)
                self._logger.debug(f"Annotation {working.id} {mode.name.lower()} committed")
        self._reset_gesture()

    def _finish_drawing(self) -> None:
        start, end = self._anchor, self._current
        if is_degenerate(start, end, self._settings.min_shape_size):
            self._logger.debug(f"Discarded degenerate shape {start} -> {end}")
            return

        annotations = self._slide.annotations
        annotation = Annotation(
            id=next_annotation_id(annotations),
            shape_kind=_SHAPE_FOR_TOOL[self._tool],
            start=start,
            end=end,
            color=self._settings.color,
            comment="",
            video_timestamp=self.current_time if self._slide.is_video else None,
        )
        self._selected_id = annotation.id
        self._commit(annotations + (annotation,))
        self._logger.debug(f"Annotation {annotation.id} created ({annotation.shape_kind.name})")

    def _commit(self, annotations) -> None:
        self._slide = self._slide.with_annotations(annotations)
        self._update_slide(self._slide)

    # ─── Commands ─────────────────────────────────────────────────────────

    def select(self, annotation_id: Optional[int]) -> None:
        """Select an annotation by id, or clear the selection with None."""
        if annotation_id is None or self._find(annotation_id) is not None:
            self._selected_id = annotation_id

    def set_comment(self, annotation_id: int, text: str) -> None:
        target = self._find(annotation_id)
        if target is None or target.comment == text:
            return
        self._commit(
            replace(a, comment=text) if a.id == annotation_id else a
            for a in self._slide.annotations
        )

    def delete_annotation(self, annotation_id: int) -> None:
        if self._find(annotation_id) is None:
            return
        self._reset_gesture()
        if self._selected_id == annotation_id:
            self._selected_id = None
        self._commit(a for a in self._slide.annotations if a.id != annotation_id)
        self._logger.info(f"Annotation {annotation_id} deleted")

    def delete_selected(self) -> None:
        if self._selected_id is not None:
            self.delete_annotation(self._selected_id)

    def undo_last(self) -> None:
        """Remove the most recently added annotation."""
        annotations = self._slide.annotations
        if not annotations:
            return
        self._reset_gesture()
        removed = annotations[-1]
        if self._selected_id == removed.id:
            self._selected_id = None
        self._commit(annotations[:-1])
        self._logger.info(f"Undo removed annotation {removed.id}")

    def discard_all(self) -> None:
        if not self._slide.annotations:
            return
        self._reset_gesture()
        count = len(self._slide.annotations)
        self._selected_id = None
        self._commit(())
        self._logger.info(f"Discarded {count} annotations")
