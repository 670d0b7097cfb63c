"""
Geometry and scaling model for annotations.

Pure functions over annotation geometry: bounding-box normalization,
hit-testing, corner handle detection, translation, corner resizing and the
display-to-render scale factor. Nothing here touches Qt widgets or I/O.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from bugsnap.editor.annotations import Annotation, Point

# Proximity radius (display units) for grabbing a corner handle
HANDLE_RADIUS = 10.0

# Draws smaller than this in both axes are not turned into annotations
MIN_SHAPE_SIZE = 5.0


class CornerHandle(Enum):
    """Resize handles of a selected annotation, in hit-test order."""
    TOP_LEFT = "tl"
    TOP_RIGHT = "tr"
    BOTTOM_LEFT = "bl"
    BOTTOM_RIGHT = "br"


@dataclass(frozen=True)
class Bounds:
    """Normalized bounding box of an annotation."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def corner(self, handle: CornerHandle) -> Point:
        """Return the position of a corner handle."""
        if handle == CornerHandle.TOP_LEFT:
            return Point(self.min_x, self.min_y)
        if handle == CornerHandle.TOP_RIGHT:
            return Point(self.max_x, self.min_y)
        if handle == CornerHandle.BOTTOM_LEFT:
            return Point(self.min_x, self.max_y)
        return Point(self.max_x, self.max_y)

    def scaled(self, scale: float) -> "Bounds":
        return Bounds(
            self.min_x * scale,
            self.min_y * scale,
            self.max_x * scale,
            self.max_y * scale,
        )


def normalized_bounds(annotation: Annotation) -> Bounds:
    """Derive the bounding box regardless of which corner `start` is."""
    start, end = annotation.start, annotation.end
    return Bounds(
        min(start.x, end.x),
        min(start.y, end.y),
        max(start.x, end.x),
        max(start.y, end.y),
    )


def hit_test(point: Point, annotation: Annotation) -> bool:
    """Test whether `point` lies inside the bounding box, edges included."""
    b = normalized_bounds(annotation)
    return b.min_x <= point.x <= b.max_x and b.min_y <= point.y <= b.max_y


def resize_handle_at(
    point: Point,
    annotation: Annotation,
    radius: float = HANDLE_RADIUS
) -> Optional[CornerHandle]:
    """
    Find the corner handle under `point`.

    Corners are checked TL, TR, BL, BR and the first one within `radius` on
    both axes wins, so overlapping handles of tiny boxes resolve the same
    way every time.
    """
    bounds = normalized_bounds(annotation)
    for handle in CornerHandle:
        corner = bounds.corner(handle)
        if abs(point.x - corner.x) < radius and abs(point.y - corner.y) < radius:
            return handle
    return None


def translate(annotation: Annotation, dx: float, dy: float) -> Annotation:
    """Return `annotation` with both corner points shifted by (dx, dy)."""
    return replace(
        annotation,
        start=Point(annotation.start.x + dx, annotation.start.y + dy),
        end=Point(annotation.end.x + dx, annotation.end.y + dy),
    )


def resize_corner(
    annotation: Annotation,
    handle: CornerHandle,
    new_point: Point
) -> Annotation:
    """
    Move one corner of an annotation to `new_point`.

    Only the coordinates owned by that corner change:
    TL -> start, TR -> end.x and start.y, BL -> start.x and end.y, BR -> end.
    """
    start, end = annotation.start, annotation.end
    if handle == CornerHandle.TOP_LEFT:
        start = new_point
    elif handle == CornerHandle.TOP_RIGHT:
        start = Point(start.x, new_point.y)
        end = Point(new_point.x, end.y)
    elif handle == CornerHandle.BOTTOM_LEFT:
        start = Point(new_point.x, start.y)
        end = Point(end.x, new_point.y)
    elif handle == CornerHandle.BOTTOM_RIGHT:
        end = new_point
    return replace(annotation, start=start, end=end)


def is_degenerate(start: Point, end: Point, min_size: float = MIN_SHAPE_SIZE) -> bool:
    """A drag below `min_size` in both axes does not make a shape."""
    return abs(end.x - start.x) < min_size and abs(end.y - start.y) < min_size


def compute_scale(display_width: float, render_width: float) -> float:
    """Factor mapping display-space coordinates and lengths to render space."""
    if display_width <= 0:
        raise ValueError(f"display width must be positive, got {display_width}")
    return render_width / display_width
