import pytest
from PySide6.QtGui import QColor, QImage

from bugsnap.core.errors import LoadError, RenderError
from bugsnap.core.renderer import (
    JPEG,
    MIN_BADGE_RADIUS,
    MIN_STROKE_WIDTH,
    PNG,
    CompositeRenderer,
    RenderSettings,
    badge_center,
    encode_image,
)
from bugsnap.editor.annotations import (
    Annotation,
    DecodedMedia,
    LiveMedia,
    MediaKind,
    MediaRef,
    Point,
    ShapeKind,
    Slide,
)


def _rect(ann_id, x1, y1, x2, y2, **kwargs) -> Annotation:
    return Annotation(ann_id, ShapeKind.RECTANGLE, Point(x1, y1), Point(x2, y2), **kwargs)


def test_unloaded_media_raises_load_error(qapp) -> None:
    slide = Slide(MediaKind.IMAGE, MediaRef())
    with pytest.raises(LoadError):
        CompositeRenderer().compose(slide)


def test_canvas_size_adds_sidebar_and_minimum_height(make_slide) -> None:
    slide = make_slide(1280, 720)
    image = CompositeRenderer().compose(slide, LiveMedia(slide.media, 1280))
    assert (image.width(), image.height()) == (1280 + 600, 900)


def test_render_width_is_capped(make_slide) -> None:
    slide = make_slide(3840, 2160)
    geometry = CompositeRenderer().measure(slide, LiveMedia(slide.media, 960))
    assert geometry.render_width == 1920
    assert geometry.render_height == 1080
    assert geometry.scale == 2.0


def test_badge_lands_at_scaled_top_left(make_slide) -> None:
    slide = make_slide(1600, 900, annotations=[_rect(1, 300, 300, 200, 200)])
    renderer = CompositeRenderer()
    geometry = renderer.measure(slide, LiveMedia(slide.media, 800))
    assert geometry.scale == 2.0
    assert badge_center(slide.annotations[0], geometry.scale) == Point(400, 400)

    image = renderer.compose(slide, LiveMedia(slide.media, 800))
    # Inside the badge disc, clear of the number glyph
    assert image.pixelColor(400, 373) == QColor("#ef4444")


def test_stroke_and_badge_have_minimum_size(make_slide) -> None:
    slide = make_slide(400, 300)
    geometry = CompositeRenderer().measure(slide, LiveMedia(slide.media, 4000))
    assert geometry.scale == 0.1
    assert geometry.stroke_width == MIN_STROKE_WIDTH
    assert geometry.badge_radius == MIN_BADGE_RADIUS


def test_renders_are_pixel_reproducible(make_slide) -> None:
    slide = make_slide(
        800, 600,
        annotations=[
            _rect(1, 20, 20, 200, 120, comment="Header logo is blurry"),
            Annotation(2, ShapeKind.ELLIPSE, Point(300, 300), Point(500, 420)),
        ],
    )
    renderer = CompositeRenderer()
    source = LiveMedia(slide.media, 800)
    first = renderer.render_composite(slide, source)
    second = renderer.render_composite(slide, source)
    assert first.data == second.data
    assert first.mime_type == PNG
    assert first.data.startswith(b"\x89PNG")


def test_render_does_not_modify_slide(make_slide) -> None:
    slide = make_slide(800, 600, annotations=[_rect(1, 20, 20, 200, 120, comment="x")])
    before = slide.annotations
    CompositeRenderer().render_composite(slide, LiveMedia(slide.media, 640))
    assert slide.annotations == before


def test_unknown_display_width_is_estimated(make_slide) -> None:
    slide = make_slide(1600, 800)
    artifact = CompositeRenderer().render_composite(slide, DecodedMedia(slide.media))
    assert artifact.scale_estimated
    assert artifact.scale == 1.0

    live = CompositeRenderer().render_composite(slide, LiveMedia(slide.media, 800))
    assert not live.scale_estimated
    assert live.scale == 2.0


def test_assumed_display_height_is_configurable(make_slide) -> None:
    slide = make_slide(1600, 800)
    renderer = CompositeRenderer(RenderSettings(assumed_display_height=400))
    assert renderer.measure(slide).scale == 2.0


def test_video_overlay_follows_frame_time(make_slide) -> None:
    slide = make_slide(
        800, 600,
        kind=MediaKind.VIDEO,
        current_time=5.0,
        annotations=[
            _rect(1, 100, 100, 200, 200, video_timestamp=4.5),
            _rect(2, 400, 100, 500, 200, video_timestamp=5.6),
        ],
    )
    image = CompositeRenderer().compose(slide, LiveMedia(slide.media, 800))
    assert image.pixelColor(100, 86) == QColor("#ef4444")
    assert image.pixelColor(400, 86) == QColor("#ffffff")
    # Skipped on the image, still listed as the second sidebar entry
    x, y = 800 + 50 + 20, 360
    assert image.pixelColor(x, y - 15) == QColor("#ef4444")


def test_non_live_video_passes_raw_media_through(make_slide) -> None:
    slide = make_slide(640, 360, kind=MediaKind.VIDEO, data=b"webm-bytes", mime_type="video/webm")
    artifact = CompositeRenderer().render_composite(slide)
    assert artifact.data == b"webm-bytes"
    assert artifact.mime_type == "video/webm"
    assert not artifact.composited


def test_non_live_video_without_data_raises(make_slide) -> None:
    slide = make_slide(640, 360, kind=MediaKind.VIDEO)
    with pytest.raises(LoadError):
        CompositeRenderer().render_composite(slide)


def test_attachment_is_jpeg(make_slide) -> None:
    slide = make_slide(800, 600)
    artifact = CompositeRenderer().render_attachment(slide, LiveMedia(slide.media, 800))
    assert artifact.mime_type == JPEG
    assert artifact.data.startswith(b"\xff\xd8")


def test_unsupported_encoding_raises(qapp) -> None:
    image = QImage(10, 10, QImage.Format.Format_ARGB32)
    with pytest.raises(RenderError):
        encode_image(image, "image/tiff")


def test_encoder_without_output_raises(qapp) -> None:
    with pytest.raises(RenderError):
        encode_image(QImage(), PNG)


def test_blank_comment_renders_like_missing_comment(make_slide) -> None:
    renderer = CompositeRenderer()
    blank = make_slide(800, 600, annotations=[_rect(1, 20, 20, 200, 120, comment="   \n ")])
    empty = make_slide(800, 600, annotations=[_rect(1, 20, 20, 200, 120)])
    blank_png = renderer.render_composite(blank, LiveMedia(blank.media, 800)).data
    empty_png = renderer.render_composite(empty, LiveMedia(empty.media, 800)).data
    assert blank_png == empty_png


def test_non_positive_assumed_height_raises_render_error(make_slide) -> None:
    slide = make_slide(800, 600)
    renderer = CompositeRenderer(RenderSettings(assumed_display_height=0))
    with pytest.raises(RenderError):
        renderer.render_composite(slide)
