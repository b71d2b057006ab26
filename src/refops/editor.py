"""
refops/editor.py - Reference Editing Operations

Insert, update, remove, cite and highlight references in a TextBuffer.

Every operation follows the same rules:
    - The buffer is read right before acting and every offset is resolved
      again from the item's source string and ordinal. Nothing is trusted from
      the scan, since the user may have typed in between.
    - Exactly one replace_range call per operation. Edits touching several
      places (a reference and its citations) are merged into one covering
      replacement, applied from end to start so earlier offsets stay valid.
    - When an item cannot be found any more the buffer is left untouched and
      None/False is returned; the caller re-scans and shows the current state.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

from .buffer import TextBuffer
from .models import Citation, Reference

logger = logging.getLogger(__name__)

# (start, end, replacement)
Edit = Tuple[int, int, str]


def _span(text: str, item: Union[Citation, Reference]) -> Optional[Tuple[int, int]]:
    span = item.highlight_span(text)
    if span is None:
        logger.warning("Could not find %r (occurrence %d) in the current text", item.source, item.ordinal)
    return span


def merge_edits(text: str, edits: Sequence[Edit]) -> Optional[Edit]:
    """
    Combine edits on text into one covering (start, end, replacement).

    Returns None if any two edits overlap.
    """
    if not edits:
        return None
    ordered = sorted(edits, key=lambda edit: (edit[0], edit[1]))
    for (_, prev_end, _), (start, _, _) in zip(ordered, ordered[1:]):
        if start < prev_end:
            return None

    low = ordered[0][0]
    high = max(end for _, end, _ in ordered)
    middle = text[low:high]
    for start, end, replacement in reversed(ordered):
        middle = middle[:start - low] + replacement + middle[end - low:]
    return low, high, middle


def apply_edits(buffer: TextBuffer, text: str, edits: Sequence[Edit]) -> bool:
    merged = merge_edits(text, edits)
    if merged is None:
        logger.warning("Refusing to apply overlapping edits")
        return False
    buffer.replace_range(*merged)
    return True


def _new_offset(start: int, edits: Sequence[Edit]) -> int:
    """Where start ends up once the edits before it are applied."""
    offset = start
    for edit_start, edit_end, replacement in edits:
        if edit_end <= start:
            offset += len(replacement) - (edit_end - edit_start)
    return offset


def _citation_edits(text: str, reference: Reference, replacement: Optional[str]) -> Optional[List[Edit]]:
    edits: List[Edit] = []
    for citation in reference.citations:
        span = _span(text, citation)
        if span is None:
            return None
        new_text = replacement
        if new_text is None:
            new_text = Citation.new(reference.name or "", reference.group).to_text()
        edits.append((span[0], span[1], new_text))
    return edits


def update_reference(buffer: TextBuffer, reference: Reference) -> Optional[int]:
    """
    Write an edited reference back to the buffer.

    If its name or group changed, every linked citation is rewritten to match.
    A reference that still has citations cannot lose its name. The updated
    reference is selected afterwards.

    Returns:
        The new start offset of the reference, or None if it was not found or
        the edit would orphan its citations.
    """
    if reference.citations and not reference.name:
        logger.warning("Refusing to drop the name of a reference cited %d times", len(reference.citations))
        return None

    text = buffer.get_text()
    span = _span(text, reference)
    if span is None:
        return None

    new_text = reference.to_text()
    edits: List[Edit] = [(span[0], span[1], new_text)]

    if reference.renamed and reference.name:
        citation_edits = _citation_edits(text, reference, None)
        if citation_edits is None:
            return None
        edits.extend(citation_edits)

    if not apply_edits(buffer, text, edits):
        return None

    start = _new_offset(span[0], edits)
    buffer.set_selection(start, start + len(new_text))
    return start


def remove_reference(buffer: TextBuffer, reference: Reference) -> bool:
    """Delete a reference together with all of its citations."""
    text = buffer.get_text()
    span = _span(text, reference)
    if span is None:
        return False

    edits: List[Edit] = [(span[0], span[1], "")]
    citation_edits = _citation_edits(text, reference, "")
    if citation_edits is None:
        return False
    edits.extend(citation_edits)
    return apply_edits(buffer, text, edits)


def remove_citation(buffer: TextBuffer, citation: Citation) -> bool:
    text = buffer.get_text()
    span = _span(text, citation)
    if span is None:
        return False
    return apply_edits(buffer, text, [(span[0], span[1], "")])


def cite_reference(buffer: TextBuffer, reference: Reference, name: Optional[str] = None) -> Optional[int]:
    """
    Insert a citation to reference at the current selection.

    A reference without a name cannot be cited; pass name to give it one,
    which is written into the reference in the same edit.

    Returns:
        Offset of the inserted citation, or None if nothing was done.
    """
    if not reference.name:
        if not name:
            return None
        reference.name = name

    text = buffer.get_text()
    sel_start, sel_end = buffer.get_selection()
    citation_text = Citation.new(reference.name, reference.group).to_text()
    edits: List[Edit] = [(sel_start, sel_end, citation_text)]

    if reference.renamed:
        span = _span(text, reference)
        if span is None:
            return None
        edits.append((span[0], span[1], reference.to_text()))

    if not apply_edits(buffer, text, edits):
        return None

    start = _new_offset(sel_start, edits[1:])
    buffer.set_selection(start + len(citation_text), start + len(citation_text))
    return start


def insert_reference(buffer: TextBuffer, reference: Reference) -> int:
    """Replace the current selection with reference and select it."""
    sel_start, sel_end = buffer.get_selection()
    new_text = reference.to_text()
    buffer.replace_range(sel_start, sel_end, new_text)
    buffer.set_selection(sel_start, sel_start + len(new_text))
    return sel_start


def highlight(buffer: TextBuffer, item: Union[Citation, Reference]) -> Optional[Tuple[int, int]]:
    """Select item in the buffer; returns the selected span."""
    span = _span(buffer.get_text(), item)
    if span is not None:
        buffer.set_selection(*span)
    return span
