# refops/buffer.py
# The text-editing surface the editor operations act on

from __future__ import annotations

from typing import Optional, Protocol, Tuple


class TextBuffer(Protocol):
    """
    A mutable text buffer with a selection.

    The engine only ever reads the whole text, reads or sets the selection,
    and replaces one range at a time.
    """

    def get_text(self) -> str: ...

    def get_selection(self) -> Tuple[int, int]: ...

    def set_selection(self, start: int, end: int) -> None: ...

    def replace_range(self, start: int, end: int, text: str) -> None: ...


class StringBuffer:
    """In-memory TextBuffer backed by a str."""

    def __init__(self, text: str = "", selection: Optional[Tuple[int, int]] = None) -> None:
        self._text = text
        self._selection = (len(text), len(text))
        if selection is not None:
            self.set_selection(*selection)

    def __str__(self) -> str:
        return self._text

    def get_text(self) -> str:
        return self._text

    def get_selection(self) -> Tuple[int, int]:
        return self._selection

    def set_selection(self, start: int, end: int) -> None:
        length = len(self._text)
        start = max(0, min(start, length))
        end = max(start, min(end, length))
        self._selection = (start, end)

    def replace_range(self, start: int, end: int, text: str) -> None:
        """Replace text[start:end], keeping the cursor where it was relative to the text."""
        if not 0 <= start <= end <= len(self._text):
            raise ValueError(f"Invalid range {start}:{end} for text of length {len(self._text)}")

        self._text = self._text[:start] + text + self._text[end:]

        delta = len(text) - (end - start)
        sel_start, sel_end = self._selection
        self._selection = (_shift(sel_start, start, end, delta), _shift(sel_end, start, end, delta))


def _shift(position: int, start: int, end: int, delta: int) -> int:
    if position <= start:
        return position
    if position >= end:
        return position + delta
    # Inside the replaced range: land at the end of the new text
    return end + delta
