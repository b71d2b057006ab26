# refops/scanner.py
# Balanced delimiter scanning for {{templates}} and [[links]]

from __future__ import annotations

from typing import Final, Tuple

TEMPLATE_OPEN: Final[str] = "{{"
TEMPLATE_CLOSE: Final[str] = "}}"
LINK_OPEN: Final[str] = "[["
LINK_CLOSE: Final[str] = "]]"


def _scan(text: str, start_index: int, open: str, close: str) -> Tuple[int, bool]:
    depth = 0
    i = start_index
    length = len(text)

    while i < length:
        if text.startswith(open, i):
            depth += 1
            i += len(open)
            continue
        if text.startswith(close, i):
            depth -= 1
            i += len(close)
            if depth <= 0:
                return i, True
            continue
        i += 1

    return length, False


def find_balanced_span(
    text: str,
    start_index: int,
    open: str = TEMPLATE_OPEN,
    close: str = TEMPLATE_CLOSE,
) -> int:
    """
    Return the index just after the closer that balances the opener at start_index.

    Delimiters are consumed greedily, two characters at a time, left to right,
    so "{{{" counts as one opener followed by a literal "{". When the depth never
    returns to zero the span runs to the end of the text.

    Example:
        >>> find_balanced_span("a {{b|{{c}}}} d", 2)
        13
        >>> find_balanced_span("{{open", 0)
        6
    """
    end, _ = _scan(text, start_index, open, close)
    return end


def is_balanced(text: str, open: str = TEMPLATE_OPEN, close: str = TEMPLATE_CLOSE) -> bool:
    """True if the span starting at the first opener is closed within the text."""
    start = text.find(open)
    if start == -1:
        return True
    _, closed = _scan(text, start, open, close)
    return closed


def net_depth(piece: str, open: str, close: str) -> int:
    """Openers minus closers in piece."""
    return piece.count(open) - piece.count(close)
