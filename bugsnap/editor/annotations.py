"""
Annotation data model for the BugSnap editor.

A Slide is one captured piece of evidence (an image or a video) together
with the ordered list of annotations drawn over it. Annotations store two
unnormalized corner points in display space, i.e. the pixel space of the
canvas that was on screen when the shape was drawn.

All model objects are immutable. Editing produces new snapshots with
dataclasses.replace(); the enclosing session owns the list of slides and
receives updated slides through a callback.

Media sources:
- LiveMedia: the slide is mounted in the editor, its display width is known
- DecodedMedia: only the natural pixel size is known
"""

import mimetypes
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Optional, Tuple, Union
from uuid import uuid4

from PySide6.QtCore import QPointF
from PySide6.QtGui import QImage

from bugsnap.core.errors import LoadError


class ShapeKind(Enum):
    """Enum for annotation shapes."""
    RECTANGLE = auto()
    ELLIPSE = auto()


class MediaKind(Enum):
    """Enum for slide media types."""
    IMAGE = auto()
    VIDEO = auto()


@dataclass(frozen=True)
class Point:
    """A point in display or render space."""
    x: float
    y: float

    def to_qt(self) -> QPointF:
        return QPointF(self.x, self.y)

    @classmethod
    def from_qt(cls, point: QPointF) -> "Point":
        return cls(point.x(), point.y())


@dataclass(frozen=True)
class Annotation:
    """
    One marked finding on a slide.

    `start` is where the draw gesture began and `end` where it stopped, so
    `start` is not necessarily the top-left corner.
    """
    id: int
    shape_kind: ShapeKind
    start: Point
    end: Point
    color: str = "#ef4444"
    comment: str = ""
    video_timestamp: Optional[float] = None


@dataclass
class MediaRef:
    """
    Handle to the pixels behind a slide.

    `data` holds the raw encoded bytes as captured or uploaded. `image` is
    the decoded picture; for a video it is the frame at `current_time`.
    """
    data: bytes = b""
    mime_type: str = "image/png"
    image: Optional[QImage] = None
    duration: float = 0.0
    current_time: float = 0.0

    def decoded(self) -> QImage:
        """Return the decoded image, decoding `data` on first use."""
        if self.image is None and self.data:
            image = QImage.fromData(self.data)
            if not image.isNull():
                self.image = image
        return self.image if self.image is not None else QImage()

    @property
    def natural_width(self) -> int:
        return self.decoded().width()

    @property
    def natural_height(self) -> int:
        return self.decoded().height()


@dataclass(frozen=True)
class Slide:
    """One captured unit of evidence plus its annotations."""
    media_kind: MediaKind
    media: MediaRef
    name: str = "Untitled"
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    annotations: Tuple[Annotation, ...] = ()

    @property
    def is_video(self) -> bool:
        return self.media_kind == MediaKind.VIDEO

    def with_annotations(self, annotations) -> "Slide":
        """Return a copy of this slide holding `annotations`."""
        return replace(self, annotations=tuple(annotations))


@dataclass(frozen=True)
class LiveMedia:
    """Media currently mounted in the editor, with its on-screen width."""
    media: MediaRef
    display_width: float


@dataclass(frozen=True)
class DecodedMedia:
    """Media that is not on screen; only its natural size is known."""
    media: MediaRef


MediaSource = Union[LiveMedia, DecodedMedia]


def next_annotation_id(annotations) -> int:
    """Return an id greater than every id in `annotations`."""
    return max((a.id for a in annotations), default=0) + 1


def is_in_video_window(
    annotation: Annotation,
    current_time: float,
    window: float = 0.5
) -> bool:
    """
    Check whether a video annotation belongs to the frame at `current_time`.

    Annotations without a timestamp are not bound to any instant and always
    match.
    """
    if annotation.video_timestamp is None:
        return True
    return abs(annotation.video_timestamp - current_time) <= window


def load_image_slide(path: Union[str, Path]) -> Slide:
    """
    Build an image slide from a file on disk.

    Raises:
        LoadError: The file cannot be read or does not decode to an image.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadError(f"Cannot read {path}: {e}") from e

    image = QImage.fromData(data)
    if image.isNull():
        raise LoadError(f"{path.name} is not a readable image")

    mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
    media = MediaRef(data=data, mime_type=mime_type, image=image)
    return Slide(MediaKind.IMAGE, media, name=path.stem)
