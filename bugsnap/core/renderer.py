"""
Composite renderer for BugSnap reports.

Renders a slide into a single shareable image: the media on the left, every
annotation redrawn over it with a numbered badge, and a white sidebar on the
right that lists the numbered findings with their word-wrapped comments.

Annotations are stored in display space, so the renderer first works out
how wide the media was on screen:
- LiveMedia carries the measured display width of the mounted editor
- DecodedMedia only knows its natural size; the display width is estimated
  from an assumed display height and flagged as such

The render width is the natural width capped at `max_canvas_width`, and the
single factor scale = render_width / display_width maps every coordinate,
stroke width and badge size into the output. Each call allocates its own
canvas, so consecutive renders never share painter state.
"""

from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QBuffer, QIODevice, QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QImage, QPainter, QPen

from bugsnap.core.errors import LoadError, RenderError
from bugsnap.core.text_layout import wrap_text
from bugsnap.editor.annotations import (
    Annotation,
    DecodedMedia,
    LiveMedia,
    MediaSource,
    Point,
    ShapeKind,
    Slide,
    is_in_video_window,
)
from bugsnap.editor.geometry import compute_scale, normalized_bounds
from bugsnap.services.logging_service import get_logger

PNG = "image/png"
JPEG = "image/jpeg"

_QT_FORMATS = {
    PNG: "PNG",
    JPEG: "JPEG",
}

# On-image overlay, in display units before scaling
STROKE_WIDTH = 3.0
MIN_STROKE_WIDTH = 1.5
BADGE_RADIUS = 16.0
MIN_BADGE_RADIUS = 10.0
BADGE_FONT_SIZE = 18.0
MIN_BADGE_FONT_SIZE = 10.0
FILL_ALPHA = 0.2

# Sidebar layout, in output pixels
SIDEBAR_PADDING = 50
HEADER_BASELINE = 80
ENTRY_BADGE_RADIUS = 20
ENTRY_TEXT_GAP = 20
ENTRY_LINE_HEIGHT = 36
ENTRY_MIN_HEIGHT = 60
ENTRY_SPACING = 30
NO_DESCRIPTION = "No description provided."

BACKGROUND = QColor("#ffffff")
DIVIDER = QColor("#cbd5e1")
RULE = QColor("#e2e8f0")
TITLE_COLOR = QColor("#0f172a")
SUBTITLE_COLOR = QColor("#64748b")
BODY_COLOR = QColor("#334155")
BADGE_TEXT = QColor("#ffffff")


@dataclass(frozen=True)
class RenderSettings:
    """Size limits and estimates used when rendering."""
    max_canvas_width: int = 1920
    sidebar_width: int = 600
    min_canvas_height: int = 900
    assumed_display_height: float = 800.0
    attachment_quality: float = 0.7
    video_match_window: float = 0.5

    @classmethod
    def from_config(cls, config) -> "RenderSettings":
        render = config.render
        return cls(
            max_canvas_width=int(render["max_canvas_width"]),
            sidebar_width=int(render["sidebar_width"]),
            min_canvas_height=int(render["min_canvas_height"]),
            assumed_display_height=float(render["assumed_display_height"]),
            attachment_quality=float(render["attachment_quality"]),
            video_match_window=float(config.editor["video_match_window"]),
        )


@dataclass(frozen=True)
class RenderGeometry:
    """Sizes derived for one render."""
    natural_width: int
    natural_height: int
    render_width: int
    render_height: int
    display_width: float
    scale: float
    scale_estimated: bool

    @property
    def stroke_width(self) -> float:
        return max(STROKE_WIDTH * self.scale, MIN_STROKE_WIDTH)

    @property
    def badge_radius(self) -> float:
        return max(BADGE_RADIUS * self.scale, MIN_BADGE_RADIUS)

    @property
    def badge_font_size(self) -> float:
        return max(BADGE_FONT_SIZE * self.scale, MIN_BADGE_FONT_SIZE)


@dataclass(frozen=True)
class RenderedArtifact:
    """Encoded output of a render."""
    data: bytes
    mime_type: str
    width: int
    height: int
    scale: float = 1.0
    scale_estimated: bool = False
    # False when the slide's raw media was passed through unchanged
    composited: bool = True


def badge_center(annotation: Annotation, scale: float) -> Point:
    """Canvas position of an annotation's on-image badge (its top-left corner)."""
    bounds = normalized_bounds(annotation).scaled(scale)
    return Point(bounds.min_x, bounds.min_y)


def encode_image(image: QImage, encoding: str = PNG, quality: Optional[float] = None) -> bytes:
    """
    Serialize an image.

    Args:
        image: The image to encode.
        encoding: PNG (lossless) or JPEG.
        quality: JPEG quality from 0.0 to 1.0; ignored for PNG.

    Raises:
        RenderError: Unsupported encoding or the encoder produced no data.
    """
    qt_format = _QT_FORMATS.get(encoding)
    if qt_format is None:
        raise RenderError(f"Unsupported encoding: {encoding}")

    qt_quality = -1
    if encoding == JPEG:
        image = image.convertToFormat(QImage.Format.Format_RGB32)
        if quality is not None:
            qt_quality = int(round(min(max(quality, 0.0), 1.0) * 100))

    buffer = QBuffer()
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    saved = image.save(buffer, qt_format, qt_quality)
    data = bytes(buffer.data())
    buffer.close()

    if not saved or not data:
        raise RenderError(f"Encoding to {encoding} returned no data")
    return data


class CompositeRenderer:
    """
    Rasterizes slides into annotated report images.

    The renderer never modifies the slide; rendering the same slide with the
    same display width twice yields identical pixels.
    """

    def __init__(self, settings: Optional[RenderSettings] = None) -> None:
        self._logger = get_logger(__name__)
        self._settings = settings or RenderSettings()

    @property
    def settings(self) -> RenderSettings:
        return self._settings

    # ─── Geometry ─────────────────────────────────────────────────────────

    def measure(self, slide: Slide, source: Optional[MediaSource] = None) -> RenderGeometry:
        """
        Work out render size and scale for a slide.

        Raises:
            LoadError: The media has no natural width or height yet.
            RenderError: The display width is not positive (e.g. a bad
                assumed_display_height setting).
        """
        source = source or DecodedMedia(slide.media)
        media = source.media
        natural_width = media.natural_width
        natural_height = media.natural_height
        if natural_width == 0 or natural_height == 0:
            raise LoadError(
                f"Slide '{slide.name}' has no dimensions; wait for the media to load"
            )

        render_width = natural_width
        render_height = natural_height
        cap = self._settings.max_canvas_width
        if render_width > cap:
            ratio = cap / render_width
            render_width = cap
            render_height = max(1, round(natural_height * ratio))

        if isinstance(source, LiveMedia) and source.display_width > 0:
            display_width = float(source.display_width)
            estimated = False
        else:
            assumed = self._settings.assumed_display_height
            display_width = natural_width * (assumed / natural_height)
            estimated = True
            self._logger.warning(
                f"Display width of slide '{slide.name}' unknown; estimated "
                f"{display_width:.1f}px from an assumed height of {assumed:.0f}px"
            )

        if display_width <= 0:
            self._logger.error(f"Slide '{slide.name}' has display width {display_width}")
            raise RenderError(
                f"Cannot scale slide '{slide.name}': display width {display_width} is not positive"
            )

        return RenderGeometry(
            natural_width=natural_width,
            natural_height=natural_height,
            render_width=render_width,
            render_height=render_height,
            display_width=display_width,
            scale=compute_scale(display_width, render_width),
            scale_estimated=estimated,
        )

    # ─── Rendering ────────────────────────────────────────────────────────

    def compose(self, slide: Slide, source: Optional[MediaSource] = None) -> QImage:
        """
        Draw the composite for a slide.

        Raises:
            LoadError: The media has no usable pixels.
            RenderError: The canvas could not be allocated.
        """
        image, _ = self._compose(slide, source)
        return image

    def _compose(self, slide: Slide, source: Optional[MediaSource]):
        source = source or DecodedMedia(slide.media)
        geometry = self.measure(slide, source)
        media = source.media
        settings = self._settings

        total_width = geometry.render_width + settings.sidebar_width
        total_height = max(geometry.render_height, settings.min_canvas_height)

        canvas = QImage(total_width, total_height, QImage.Format.Format_ARGB32)
        if canvas.isNull():
            self._logger.error(f"Could not allocate a {total_width}x{total_height} canvas")
            raise RenderError(f"Canvas allocation failed ({total_width}x{total_height})")

        painter = QPainter(canvas)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
            painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)

            painter.fillRect(QRectF(0, 0, total_width, total_height), BACKGROUND)
            painter.drawImage(
                QRectF(0, 0, geometry.render_width, geometry.render_height),
                media.decoded(),
            )

            frame_time = media.current_time
            for index, annotation in enumerate(slide.annotations):
                if slide.is_video and not is_in_video_window(
                    annotation, frame_time, settings.video_match_window
                ):
                    continue
                self._draw_overlay(painter, annotation, index + 1, geometry)

            self._draw_sidebar(painter, slide, geometry, total_width, total_height)
        finally:
            painter.end()

        return canvas, geometry

    def _draw_overlay(
        self,
        painter: QPainter,
        annotation: Annotation,
        number: int,
        geometry: RenderGeometry
    ) -> None:
        """Draw one annotation shape and its badge over the media."""
        bounds = normalized_bounds(annotation).scaled(geometry.scale)
        rect = QRectF(bounds.min_x, bounds.min_y, bounds.width, bounds.height)
        color = QColor(annotation.color)
        fill = QColor(color)
        fill.setAlphaF(FILL_ALPHA)

        pen = QPen(color)
        pen.setWidthF(geometry.stroke_width)
        painter.setPen(pen)
        painter.setBrush(fill)
        if annotation.shape_kind == ShapeKind.ELLIPSE:
            painter.drawEllipse(rect)
        else:
            painter.drawRect(rect)

        center = QPointF(bounds.min_x, bounds.min_y)
        self._draw_badge(
            painter, center, geometry.badge_radius, geometry.badge_font_size, color, number
        )

    def _draw_badge(
        self,
        painter: QPainter,
        center: QPointF,
        radius: float,
        font_size: float,
        color: QColor,
        number: int
    ) -> None:
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(color)
        painter.drawEllipse(center, radius, radius)

        painter.setPen(BADGE_TEXT)
        painter.setFont(_font(font_size, bold=True))
        painter.drawText(
            QRectF(center.x() - radius, center.y() - radius, radius * 2, radius * 2),
            Qt.AlignmentFlag.AlignCenter,
            str(number),
        )

    def _draw_sidebar(
        self,
        painter: QPainter,
        slide: Slide,
        geometry: RenderGeometry,
        total_width: int,
        total_height: int
    ) -> None:
        """Draw the report header and one numbered entry per annotation."""
        left = geometry.render_width
        right = total_width - SIDEBAR_PADDING
        content_x = left + SIDEBAR_PADDING

        painter.setPen(_pen(DIVIDER, 2))
        painter.drawLine(QPointF(left, 0), QPointF(left, total_height))

        y = HEADER_BASELINE
        painter.setPen(TITLE_COLOR)
        painter.setFont(_font(48, bold=True))
        painter.drawText(QPointF(content_x, y), "Issue Report")
        y += 60

        painter.setPen(SUBTITLE_COLOR)
        painter.setFont(_font(24))
        painter.drawText(
            QPointF(content_x, y), f"Generated on {slide.created_at.date().isoformat()}"
        )
        y += 60

        painter.setPen(_pen(RULE, 2))
        painter.drawLine(QPointF(content_x, y), QPointF(right, y))
        y += 50

        body_font = _font(24)
        metrics = QFontMetricsF(body_font)
        text_x = content_x + ENTRY_BADGE_RADIUS * 2 + ENTRY_TEXT_GAP
        text_width = right - text_x

        for index, annotation in enumerate(slide.annotations):
            self._draw_badge(
                painter,
                QPointF(content_x + ENTRY_BADGE_RADIUS, y + ENTRY_BADGE_RADIUS),
                ENTRY_BADGE_RADIUS,
                20,
                QColor(annotation.color),
                index + 1,
            )

            comment = annotation.comment.strip() or NO_DESCRIPTION
            lines = wrap_text(comment, text_width, metrics.horizontalAdvance)
            painter.setPen(BODY_COLOR)
            painter.setFont(body_font)
            line_top = y + 5
            for line in lines:
                painter.drawText(QPointF(text_x, line_top + metrics.ascent()), line)
                line_top += ENTRY_LINE_HEIGHT

            y = max(line_top, y + ENTRY_MIN_HEIGHT) + ENTRY_SPACING

    # ─── Export ───────────────────────────────────────────────────────────

    def render_composite(
        self,
        slide: Slide,
        source: Optional[MediaSource] = None,
        encoding: str = PNG,
        quality: Optional[float] = None,
    ) -> RenderedArtifact:
        """
        Render and encode a slide.

        A video slide that is not mounted in the editor cannot be composited
        at a known frame; its raw media bytes are returned instead.

        Raises:
            LoadError: The media has nothing to render.
            RenderError: The canvas could not be allocated or encoded.
        """
        source = source or DecodedMedia(slide.media)
        if slide.is_video and not isinstance(source, LiveMedia):
            media = source.media
            if not media.data:
                raise LoadError(f"Video slide '{slide.name}' has no media data")
            self._logger.info(f"Passing through raw video for slide '{slide.name}'")
            return RenderedArtifact(
                data=media.data,
                mime_type=media.mime_type,
                width=media.natural_width,
                height=media.natural_height,
                composited=False,
            )

        canvas, geometry = self._compose(slide, source)
        try:
            data = encode_image(canvas, encoding, quality)
        except RenderError:
            self._logger.error(f"Could not encode slide '{slide.name}' as {encoding}")
            raise

        self._logger.info(
            f"Rendered slide '{slide.name}' at {canvas.width()}x{canvas.height()} "
            f"(scale {geometry.scale:.3f}, {len(data)} bytes)"
        )
        return RenderedArtifact(
            data=data,
            mime_type=encoding,
            width=canvas.width(),
            height=canvas.height(),
            scale=geometry.scale,
            scale_estimated=geometry.scale_estimated,
        )

    def render_attachment(
        self,
        slide: Slide,
        source: Optional[MediaSource] = None
    ) -> RenderedArtifact:
        """Render a size-reduced JPEG for network attachments."""
        return self.render_composite(
            slide, source, encoding=JPEG, quality=self._settings.attachment_quality
        )


def _font(pixel_size: float, bold: bool = False) -> QFont:
    font = QFont()
    font.setPixelSize(max(1, int(round(pixel_size))))
    font.setBold(bold)
    return font


def _pen(color: QColor, width: float) -> QPen:
    pen = QPen(color)
    pen.setWidthF(width)
    return pen
