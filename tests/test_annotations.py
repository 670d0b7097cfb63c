import pytest
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage

from bugsnap.core.errors import LoadError
from bugsnap.editor.annotations import (
    Annotation,
    MediaKind,
    Point,
    ShapeKind,
    is_in_video_window,
    load_image_slide,
    next_annotation_id,
)


def test_next_annotation_id() -> None:
    anns = [Annotation(i, ShapeKind.RECTANGLE, Point(0, 0), Point(1, 1)) for i in (3, 9, 4)]
    assert next_annotation_id(anns) == 10
    assert next_annotation_id(()) == 1


def test_untimed_annotation_is_always_in_window() -> None:
    ann = Annotation(1, ShapeKind.RECTANGLE, Point(0, 0), Point(1, 1))
    assert is_in_video_window(ann, 123.0)


def test_load_image_slide(qapp, tmp_path) -> None:
    image = QImage(64, 32, QImage.Format.Format_RGB32)
    image.fill(Qt.GlobalColor.white)
    path = tmp_path / "dashboard.png"
    assert image.save(str(path))

    slide = load_image_slide(path)
    assert slide.media_kind == MediaKind.IMAGE
    assert slide.name == "dashboard"
    assert slide.media.mime_type == "image/png"
    assert (slide.media.natural_width, slide.media.natural_height) == (64, 32)
    assert slide.annotations == ()


def test_load_image_slide_rejects_non_images(qapp, tmp_path) -> None:
    path = tmp_path / "notes.png"
    path.write_text("not an image")
    with pytest.raises(LoadError):
        load_image_slide(path)
    with pytest.raises(LoadError):
        load_image_slide(tmp_path / "missing.png")
