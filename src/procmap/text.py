"""
Text metrics for the process map.

No real font metrics are available when laying out a diagram, so widths are
approximated from the character count. Wrapping is greedy on whitespace.
"""

from typing import List

# Average glyph advance as a fraction of the font size
CHAR_WIDTH_RATIO = 0.57


def estimate_width(text: str, font_size: float) -> float:
    """
    Approximate the rendered width of text in pixels.

    Args:
        text: The string to measure.
        font_size: Font size in pixels.

    Returns:
        Estimated width in pixels.
    """
    return len(text) * font_size * CHAR_WIDTH_RATIO


def wrap(text: str, max_width: float, font_size: float) -> List[str]:
    """
    Greedily wrap text into lines that fit within max_width pixels.

    Whitespace is normalized to single spaces. A word wider than the budget
    is placed on its own line without being split, so the function never
    fails; it only overflows.

    Args:
        text: Text to wrap.
        max_width: Pixel budget for a single line.
        font_size: Font size used for width estimation.

    Returns:
        List of lines. Blank input yields a single empty line.
    """
    words = text.split()
    if not words:
        return [""]

    lines: List[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if current and estimate_width(candidate, font_size) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate

    lines.append(current)
    return lines
