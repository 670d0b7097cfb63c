"""
Errors raised by BugSnap rendering and export.

Degenerate shapes are not errors: the interaction controller drops them
silently. An estimated display width is reported through a warning log
record and RenderedArtifact.scale_estimated rather than an exception.
"""


class BugSnapError(Exception):
    """Base class for all BugSnap errors."""


class LoadError(BugSnapError):
    """The media has no usable pixels (not decoded yet, or empty)."""


class RenderError(BugSnapError):
    """The canvas could not be allocated or encoded."""
