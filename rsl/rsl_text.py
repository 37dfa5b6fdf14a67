"""
Unicode-aware text measurement for terminal-style rendering.

Widths follow the East Asian Width property: wide and fullwidth characters
take two columns; combining marks, format and control characters and the
Hangul vowel and final-consonant jamo that attach to a leading consonant take
none; everything else takes one. The soft hyphen is the one format character
that keeps a column.
"""
import unicodedata
from typing import List


# Hangul Jungseong and Jongseong, including the extended-B block.
_CONJOINING_JAMO = ((0x1160, 0x11FF), (0xD7B0, 0xD7FF))


def char_width(c: str) -> int:
    code = ord(c)
    if c == "\u00ad":
        return 1
    if any(low <= code <= high for low, high in _CONJOINING_JAMO):
        return 0
    if unicodedata.combining(c) or unicodedata.category(c) in ("Mn", "Me", "Cf", "Cc"):
        return 0
    if unicodedata.east_asian_width(c) in ("W", "F"):
        return 2
    return 1


def display_width(text: str) -> int:
    return sum(char_width(c) for c in text)


def truncate_to_width(text: str, width: int) -> str:
    """Longest prefix of ``text`` whose display width does not exceed ``width``."""
    used = 0
    for i, c in enumerate(text):
        w = char_width(c)
        if used + w > width:
            return text[:i]
        used += w
    return text


def split_lines(text: str) -> List[str]:
    """Split on ``\\n``, dropping one trailing ``\\r`` per line and any final empty line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def wrap(text: str, width: int) -> List[str]:
    """Wrap ``text`` into lines at most ``width`` columns wide.

    Existing line breaks are kept; an empty source line stays one empty line.
    A single character wider than ``width`` gets a line to itself.
    """
    if width <= 0:
        return []
    wrapped: List[str] = []
    for line in split_lines(text):
        current: List[str] = []
        used = 0
        for c in line:
            w = char_width(c)
            if w > width:
                if current:
                    wrapped.append("".join(current))
                wrapped.append(c)
                current, used = [], 0
                continue
            if used + w > width:
                wrapped.append("".join(current))
                current, used = [], 0
            current.append(c)
            used += w
        if current or not line:
            wrapped.append("".join(current))
    return wrapped


def render_viewport(text: str, width: int, height: int, scroll: int) -> str:
    """Wrap ``text`` to ``width`` and return a ``height``-line window of it.

    A non-negative ``scroll`` skips that many wrapped lines from the top. A
    negative ``scroll`` anchors to the bottom: ``-1`` shows the last lines,
    ``-2`` hides the final line, and so on.
    """
    if width <= 0 or height <= 0:
        return ""
    lines = wrap(text, width)
    if scroll >= 0:
        window = lines[scroll:scroll + height]
    else:
        end = max(len(lines) - (-scroll - 1), 0)
        window = lines[:end][-height:]
    return "\n".join(window)
