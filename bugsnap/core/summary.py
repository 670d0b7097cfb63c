"""
Plain-text and markdown summaries of annotated slides.

Text-only export destinations (issue descriptions, chat messages) use these
instead of the rendered image. The numbering matches the badges drawn by the
composite renderer.
"""

from typing import Sequence, Union

from bugsnap.editor.annotations import Slide

SOURCE_NAME = "BugSnap"


def render_summary(slides: Union[Slide, Sequence[Slide]]) -> str:
    """
    Summarize one slide, or a whole report of slides.

    A single slide yields an "Observations" section with numbered comments
    and a metadata footer. A sequence yields a "Bug Report Summary" with one
    section per slide.
    """
    if isinstance(slides, Slide):
        return _slide_description(slides)
    return _report_description(list(slides))


def _slide_description(slide: Slide) -> str:
    parts = ["## Observations", ""]
    if not slide.annotations:
        parts.append("_No specific annotations provided._")
    else:
        for number, annotation in enumerate(slide.annotations, start=1):
            parts.append(f"**{number}.** {annotation.comment.strip() or 'No comment'}")

    parts += [
        "",
        "",
        "---",
        "**Metadata**",
        f"Captured: {slide.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Source: {SOURCE_NAME}",
    ]
    return "\n".join(parts)


def _report_description(slides: Sequence[Slide]) -> str:
    parts = ["# Bug Report Summary", "", f"Total Slides: {len(slides)}", ""]
    for index, slide in enumerate(slides, start=1):
        parts.append(f"## Slide {index}: {slide.name}")
        if slide.annotations:
            for number, annotation in enumerate(slide.annotations, start=1):
                parts.append(f"- **Issue {number}:** {annotation.comment.strip() or 'No details'}")
        else:
            parts.append("_No annotations._")
        parts.append("")
    return "\n".join(parts) + "\n"


def render_slack_message(slide: Slide) -> str:
    """Chat-flavoured summary: single-asterisk bold, headings as bold lines."""
    body = _slide_description(slide).replace("##", "*").replace("**", "*")
    return f"*Bug Report: {slide.name}*\n\n{body}"
