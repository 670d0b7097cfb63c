from bugsnap.editor.annotations import (
    Annotation,
    MediaKind,
    MediaRef,
    Point,
    ShapeKind,
    Slide,
)
from bugsnap.editor.controller import InteractionController, InteractionMode, ToolType


class Recorder:
    def __init__(self) -> None:
        self.slides = []

    def __call__(self, slide: Slide) -> None:
        self.slides.append(slide)


def _slide(annotations=(), kind=MediaKind.IMAGE, current_time=0.0) -> Slide:
    media = MediaRef(data=b"", current_time=current_time)
    return Slide(kind, media, annotations=tuple(annotations))


def _rect(ann_id, x1, y1, x2, y2, **kwargs) -> Annotation:
    return Annotation(ann_id, ShapeKind.RECTANGLE, Point(x1, y1), Point(x2, y2), **kwargs)


def _draw(controller, start, end) -> None:
    controller.pointer_down(Point(*start))
    controller.pointer_move(Point(*end))
    controller.pointer_up(Point(*end))


def test_draw_creates_selected_annotation() -> None:
    updates = Recorder()
    controller = InteractionController(_slide(), updates)
    _draw(controller, (100, 100), (300, 250))

    assert len(updates.slides) == 1
    (ann,) = updates.slides[0].annotations
    assert ann.id == 1
    assert ann.shape_kind == ShapeKind.RECTANGLE
    assert ann.start == Point(100, 100)
    assert ann.end == Point(300, 250)
    assert ann.comment == ""
    assert ann.video_timestamp is None
    assert controller.selected_annotation_id == 1
    assert controller.mode == InteractionMode.IDLE


def test_ellipse_tool_draws_ellipse() -> None:
    updates = Recorder()
    controller = InteractionController(_slide(), updates)
    controller.set_tool(ToolType.ELLIPSE)
    _draw(controller, (10, 10), (60, 40))
    assert updates.slides[-1].annotations[0].shape_kind == ShapeKind.ELLIPSE


def test_degenerate_draw_is_dropped() -> None:
    updates = Recorder()
    existing = _rect(1, 100, 100, 300, 250)
    controller = InteractionController(_slide([existing]), updates)
    controller.set_tool(ToolType.SELECT)
    controller.pointer_down(Point(150, 150))
    controller.pointer_up()
    assert controller.selected_annotation_id == 1

    controller.set_tool(ToolType.RECTANGLE)
    _draw(controller, (50, 50), (52, 52))

    assert updates.slides == []
    assert controller.slide.annotations == (existing,)
    assert controller.selected_annotation_id == 1


def test_new_ids_exceed_existing() -> None:
    updates = Recorder()
    controller = InteractionController(_slide([_rect(7, 0, 0, 50, 50)]), updates)
    _draw(controller, (400, 400), (500, 500))
    assert [a.id for a in controller.slide.annotations] == [7, 8]


def test_drag_commits_once_and_preserves_size() -> None:
    updates = Recorder()
    controller = InteractionController(_slide([_rect(1, 100, 100, 300, 250)]), updates)
    controller.set_tool(ToolType.SELECT)

    controller.pointer_down(Point(150, 150))
    assert controller.mode == InteractionMode.DRAGGING
    controller.pointer_move(Point(160, 170))
    controller.pointer_move(Point(180, 190))
    assert updates.slides == []
    assert controller.annotations[0].start == Point(130, 140)
    controller.pointer_up(Point(200, 200))

    assert len(updates.slides) == 1
    moved = updates.slides[0].annotations[0]
    assert moved.start == Point(150, 150)
    assert moved.end == Point(350, 300)


def test_click_without_movement_does_not_commit() -> None:
    updates = Recorder()
    controller = InteractionController(_slide([_rect(1, 100, 100, 300, 250)]), updates)
    controller.set_tool(ToolType.SELECT)
    controller.pointer_down(Point(150, 150))
    controller.pointer_up(Point(150, 150))
    assert updates.slides == []
    assert controller.selected_annotation_id == 1


def test_select_tool_on_empty_space_clears_selection() -> None:
    updates = Recorder()
    controller = InteractionController(_slide([_rect(1, 100, 100, 300, 250)]), updates)
    controller.set_tool(ToolType.SELECT)
    controller.select(1)
    controller.pointer_down(Point(600, 600))
    assert controller.selected_annotation_id is None
    assert controller.mode == InteractionMode.IDLE


def test_resize_bottom_right_handle() -> None:
    updates = Recorder()
    controller = InteractionController(_slide([_rect(1, 100, 100, 300, 250)]), updates)
    controller.select(1)

    controller.pointer_down(Point(302, 248))
    assert controller.mode == InteractionMode.RESIZING
    controller.pointer_move(Point(350, 260))
    controller.pointer_up()

    assert len(updates.slides) == 1
    resized = updates.slides[0].annotations[0]
    assert resized.start == Point(100, 100)
    assert resized.end == Point(350, 260)


def test_handle_wins_over_drawing_tool() -> None:
    controller = InteractionController(_slide([_rect(1, 100, 100, 300, 250)]), Recorder())
    controller.select(1)
    controller.pointer_down(Point(95, 95))
    assert controller.mode == InteractionMode.RESIZING


def test_pointer_leave_finishes_drawing() -> None:
    updates = Recorder()
    controller = InteractionController(_slide(), updates)
    controller.pointer_down(Point(10, 10))
    controller.pointer_move(Point(90, 80))
    controller.pointer_leave()

    assert controller.mode == InteractionMode.IDLE
    assert updates.slides[-1].annotations[0].end == Point(90, 80)


def test_events_without_gesture_are_ignored() -> None:
    updates = Recorder()
    controller = InteractionController(_slide([_rect(1, 0, 0, 50, 50)]), updates)
    controller.pointer_move(Point(10, 10))
    controller.pointer_up(Point(20, 20))
    controller.pointer_leave()
    controller.delete_annotation(42)
    controller.set_comment(42, "nope")
    controller.select(42)
    assert updates.slides == []
    assert controller.selected_annotation_id is None


def test_preview_only_while_drawing() -> None:
    controller = InteractionController(_slide(), Recorder())
    assert controller.preview() is None
    controller.pointer_down(Point(10, 10))
    controller.pointer_move(Point(40, 30))
    preview = controller.preview()
    assert preview.start == Point(10, 10)
    assert preview.end == Point(40, 30)


def test_set_comment_commits_new_slide() -> None:
    updates = Recorder()
    original = _slide([_rect(1, 0, 0, 50, 50), _rect(2, 60, 60, 90, 90)])
    controller = InteractionController(original, updates)
    controller.set_comment(2, "Button overlaps footer")

    assert len(updates.slides) == 1
    assert updates.slides[0].annotations[1].comment == "Button overlaps footer"
    assert original.annotations[1].comment == ""


def test_delete_undo_and_discard() -> None:
    updates = Recorder()
    anns = [_rect(1, 0, 0, 50, 50), _rect(2, 60, 60, 90, 90), _rect(3, 100, 100, 150, 150)]
    controller = InteractionController(_slide(anns), updates)

    controller.select(1)
    controller.delete_selected()
    assert [a.id for a in controller.slide.annotations] == [2, 3]
    assert controller.selected_annotation_id is None

    controller.undo_last()
    assert [a.id for a in controller.slide.annotations] == [2]

    controller.discard_all()
    assert controller.slide.annotations == ()
    assert len(updates.slides) == 3

    controller.undo_last()
    controller.discard_all()
    assert len(updates.slides) == 3


def test_video_annotations_get_timestamp_and_window() -> None:
    updates = Recorder()
    slide = _slide(kind=MediaKind.VIDEO, current_time=5.0)
    controller = InteractionController(slide, updates)
    _draw(controller, (10, 10), (100, 100))

    ann = controller.slide.annotations[0]
    assert ann.video_timestamp == 5.0

    for seconds in (4.5, 5.0, 5.5):
        controller.set_current_time(seconds)
        assert controller.visible_annotations() == (ann,)
    for seconds in (4.4, 5.6):
        controller.set_current_time(seconds)
        assert controller.visible_annotations() == ()


def test_set_slide_resets_selection_and_gesture() -> None:
    controller = InteractionController(_slide([_rect(1, 0, 0, 50, 50)]), Recorder())
    controller.select(1)
    controller.pointer_down(Point(200, 200))
    controller.set_slide(_slide())
    assert controller.selected_annotation_id is None
    assert controller.mode == InteractionMode.IDLE


def test_listeners_never_see_a_stale_selection() -> None:
    seen = []
    anns = [_rect(1, 0, 0, 50, 50), _rect(2, 60, 60, 90, 90)]
    controller = InteractionController(
        _slide(anns), lambda slide: seen.append(controller.selected_annotation_id)
    )

    controller.select(2)
    controller.undo_last()
    controller.select(1)
    controller.delete_selected()
    assert seen == [None, None]

    _draw(controller, (100, 100), (200, 200))
    assert seen[-1] == controller.slide.annotations[-1].id


def test_current_time_lives_on_the_media_handle() -> None:
    slide = _slide(kind=MediaKind.VIDEO)
    controller = InteractionController(slide, Recorder())

    slide.media.current_time = 12.0
    assert controller.current_time == 12.0
    _draw(controller, (10, 10), (100, 100))
    assert controller.slide.annotations[0].video_timestamp == 12.0

    controller.set_current_time(3.0)
    assert slide.media.current_time == 3.0
