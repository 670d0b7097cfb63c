"""
Greedy word wrapping for the report sidebar.
"""

from typing import Callable, List


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> List[str]:
    """
    Break `text` into lines no wider than `max_width`.

    Words are accumulated until adding the next one would exceed the width,
    then the line is emitted. A single word wider than `max_width` gets a
    line of its own. Runs of whitespace collapse to single spaces.

    Args:
        text: The text to wrap.
        max_width: Available width, in the units `measure` returns.
        measure: Returns the rendered width of a string.

    Returns:
        The wrapped lines; empty for blank text.
    """
    lines: List[str] = []
    line = ""
    for word in text.split():
        candidate = f"{line} {word}" if line else word
        if line and measure(candidate) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines
