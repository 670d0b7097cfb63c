"""
Multi-slide PDF export.

Each slide becomes one landscape A4 page holding its composite image,
fitted and centered. Slides are rendered strictly one after another; every
composite is finished and painted before the next render starts.
"""

from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from PySide6.QtCore import QBuffer, QIODevice, QMarginsF, QRectF
from PySide6.QtGui import QImage, QPageLayout, QPageSize, QPainter, QPdfWriter

from bugsnap.core.errors import RenderError
from bugsnap.core.renderer import CompositeRenderer
from bugsnap.editor.annotations import MediaSource, Slide
from bugsnap.services.logging_service import get_logger

logger = get_logger(__name__)

# Returns the live media for a slide currently mounted in the editor, else None
SourceLookup = Callable[[Slide], Optional[MediaSource]]


def fit_rect(image_width: float, image_height: float, page_width: float, page_height: float) -> QRectF:
    """Largest rect with the image's aspect ratio that fits the page, centered."""
    ratio = image_width / image_height
    width = page_width
    height = page_width / ratio
    if height > page_height:
        height = page_height
        width = page_height * ratio
    return QRectF((page_width - width) / 2, (page_height - height) / 2, width, height)


def export_pdf(
    slides: Sequence[Slide],
    renderer: Optional[CompositeRenderer] = None,
    output: Optional[Union[str, Path]] = None,
    source_for: Optional[SourceLookup] = None,
) -> bytes:
    """
    Render every slide onto its own PDF page.

    Args:
        slides: Slides in report order.
        renderer: Renderer to use; a default one if omitted.
        output: Optional file path the PDF is also written to.
        source_for: Supplies LiveMedia for the slide mounted in the editor.

    Returns:
        The PDF document bytes.

    Raises:
        LoadError: A slide has no usable media.
        RenderError: No slides, or the PDF could not be produced.
        OSError: `output` could not be written.
    """
    if not slides:
        raise RenderError("Nothing to export: no slides")

    renderer = renderer or CompositeRenderer()

    buffer = QBuffer()
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    writer = QPdfWriter(buffer)
    writer.setPageLayout(
        QPageLayout(
            QPageSize(QPageSize.PageSizeId.A4),
            QPageLayout.Orientation.Landscape,
            QMarginsF(0, 0, 0, 0),
        )
    )
    writer.setTitle("BugSnap Report")

    painter = QPainter()
    if not painter.begin(writer):
        buffer.close()
        raise RenderError("Could not start PDF document")

    try:
        for index, slide in enumerate(slides):
            source = source_for(slide) if source_for else None
            image: QImage = renderer.compose(slide, source)
            if index > 0:
                writer.newPage()
            target = fit_rect(image.width(), image.height(), writer.width(), writer.height())
            painter.drawImage(target, image)
            logger.debug(f"PDF page {index + 1}: slide '{slide.name}'")
    finally:
        painter.end()

    data = bytes(buffer.data())
    buffer.close()
    if not data:
        raise RenderError("PDF writer returned no data")

    if output is not None:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"PDF report with {len(slides)} pages saved to {path}")

    return data
