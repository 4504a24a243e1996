"""
Greedy word wrapping for slide text.

Lines are limited both by pixel width (via a measuring callable) and by a
character count, which keeps export lines short enough to read at a
distance.
"""

from typing import Callable, Iterator, List, Tuple

from config.export_config import EXPORT_MAX_CHARS_PER_LINE

MeasureFn = Callable[[str], float]


def wrap(
    text: str,
    pixel_width_budget: float,
    measure_fn: MeasureFn,
    max_chars: int = EXPORT_MAX_CHARS_PER_LINE,
) -> List[str]:
    """
    Split text into lines.

    A word joins the current line only while the joined line measures under
    the budget and stays under max_chars. A word too long for any line gets
    a line of its own; words are never split or dropped.

    Args:
        text: Text to wrap; runs of whitespace separate words
        pixel_width_budget: Maximum line width in pixels
        measure_fn: Returns the rendered width of a string
        max_chars: Character cap per line

    Returns:
        Wrapped lines, empty for empty or whitespace-only text
    """
    if not text:
        return []
    words = str(text).split()
    if not words:
        return []

    lines: List[str] = []
    current = words[0]
    for word in words[1:]:
        candidate = current + " " + word
        if measure_fn(candidate) < pixel_width_budget and len(current) + len(word) + 1 < max_chars:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def layout_block(lines: List[str], line_height: float, start_y: float) -> Iterator[Tuple[str, float]]:
    """Pair each line with its baseline y, stepping line_height per line."""
    y = start_y
    for line in lines:
        yield line, y
        y += line_height


def char_width_measure(px_per_char: float) -> MeasureFn:
    """Deterministic measure: every character is px_per_char wide."""
    def _measure(text: str) -> float:
        return len(text) * px_per_char
    return _measure
