# refops/occurrence.py
# Locate the Nth identical fragment in a document snapshot

from __future__ import annotations

from typing import Iterator, Optional


def iter_occurrences(document_text: str, fragment: str) -> Iterator[int]:
    """Yield start offsets of non-overlapping occurrences of fragment, left to right."""
    if not fragment:
        return
    start = document_text.find(fragment)
    while start != -1:
        yield start
        start = document_text.find(fragment, start + len(fragment))


def locate_nth(document_text: str, fragment: str, n: int) -> Optional[int]:
    """
    Return the start offset of the 0-based nth occurrence of fragment.

    Several citations to the same name are usually byte-identical, so callers
    keep the ordinal recorded at scan time and resolve it again against the live
    text right before every mutation.

    Returns None when the text holds fewer than n + 1 occurrences, which means
    the document changed since it was scanned.

    Example:
        >>> text = '<ref name="x" /> a <ref name="x" /> b <ref name="x" />'
        >>> locate_nth(text, '<ref name="x" />', 2)
        38
    """
    if n < 0:
        return None
    for i, start in enumerate(iter_occurrences(document_text, fragment)):
        if i == n:
            return start
    return None


def occurrence_index(document_text: str, fragment: str, offset: int) -> int:
    """Ordinal of the occurrence starting at offset, counted like locate_nth."""
    count = 0
    for start in iter_occurrences(document_text, fragment):
        if start >= offset:
            break
        count += 1
    return count
