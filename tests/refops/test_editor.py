"""
tests/refops/test_editor.py - Tests for reference editing operations on a text buffer
"""

from __future__ import annotations

from refops import (
    Reference,
    StringBuffer,
    cite_reference,
    highlight,
    insert_reference,
    remove_citation,
    remove_reference,
    scan,
    update_reference,
)
from refops.editor import merge_edits


class RecordingBuffer(StringBuffer):
    """StringBuffer that records every replace_range call."""

    def __init__(self, text="", selection=None):
        super().__init__(text, selection)
        self.replacements = []

    def replace_range(self, start, end, text):
        self.replacements.append((start, end, text))
        super().replace_range(start, end, text)


class TestMergeEdits:
    """Tests for merge_edits."""

    def test_merges_into_covering_range(self):
        assert merge_edits("abcdef", [(4, 5, "X"), (0, 1, "Y")]) == (0, 5, "YbcdX")

    def test_overlap_rejected(self):
        assert merge_edits("abcdef", [(0, 3, "X"), (2, 4, "Y")]) is None

    def test_empty(self):
        assert merge_edits("abc", []) is None


class TestUpdateReference:
    """Tests for update_reference."""

    def test_edit_template_param(self, darwin_wikitext, context):
        buffer = RecordingBuffer(darwin_wikitext)
        reference = scan(buffer.get_text(), context).references[0]
        reference.template.params["first"] = "C."

        assert update_reference(buffer, reference) == 0
        assert buffer.get_text() == (
            '<ref name="a">Text {{Cite book|title=On the Origin of Species|first=C.|last=Darwin}}</ref>'
        )
        assert buffer.get_selection() == (0, len(buffer.get_text()))
        assert len(buffer.replacements) == 1

    def test_rename_updates_citations_in_one_replacement(self):
        """Test that citations before and after the reference are renamed together."""
        text = '<ref name="a" /> x <ref name="a">T</ref> y <ref name="a" />'
        buffer = RecordingBuffer(text)
        reference = scan(text).references[0]
        reference.name = "b"

        start = update_reference(buffer, reference)
        assert buffer.get_text() == '<ref name="b" /> x <ref name="b">T</ref> y <ref name="b" />'
        assert start == buffer.get_text().index('<ref name="b">')
        assert len(buffer.replacements) == 1

    def test_cited_reference_keeps_its_name(self):
        """Test that dropping the name of a cited reference is refused."""
        text = '<ref name="a">T</ref> y <ref name="a" />'
        buffer = RecordingBuffer(text)
        reference = scan(text).references[0]
        reference.name = None

        assert update_reference(buffer, reference) is None
        assert buffer.get_text() == text
        assert buffer.replacements == []

    def test_stale_reference_leaves_buffer_untouched(self, simple_wikitext):
        """Test that a reference no longer in the text is not written."""
        reference = scan(simple_wikitext).references[0]
        reference.content = "Changed"
        buffer = RecordingBuffer("The text was edited meanwhile.")

        assert update_reference(buffer, reference) is None
        assert buffer.get_text() == "The text was edited meanwhile."
        assert buffer.replacements == []

    def test_text_moved_since_scan(self, simple_wikitext):
        """Test that offsets are resolved again against the current text."""
        reference = scan(simple_wikitext).references[0]
        reference.content = "Changed"
        buffer = StringBuffer("Inserted. " + simple_wikitext)

        assert update_reference(buffer, reference) == len("Inserted. Text before.")
        assert buffer.get_text() == "Inserted. Text before.<ref>Changed</ref>Text after."


class TestRemove:
    """Tests for remove_reference and remove_citation."""

    def test_remove_reference_with_citations(self):
        text = 'A<ref name="x">One</ref> B<ref name="x" /> C<ref name="x" />'
        buffer = RecordingBuffer(text)
        reference = scan(text).references[0]

        assert remove_reference(buffer, reference) is True
        assert buffer.get_text() == "A B C"
        assert len(buffer.replacements) == 1

    def test_remove_third_identical_citation(self):
        """Test that the ordinal picks the right one of identical citations."""
        text = '<ref name="x" /> a <ref name="x" /> b <ref name="x" />'
        buffer = StringBuffer(text)
        citation = scan(text).citations[2]

        assert remove_citation(buffer, citation) is True
        assert buffer.get_text() == '<ref name="x" /> a <ref name="x" /> b '

    def test_remove_missing_citation(self):
        citation = scan('<ref name="x" />').citations[0]
        buffer = StringBuffer("gone")
        assert remove_citation(buffer, citation) is False
        assert buffer.get_text() == "gone"


class TestCiteReference:
    """Tests for cite_reference."""

    def test_cite_at_selection(self):
        text = 'A<ref name="x">One</ref> B.'
        buffer = StringBuffer(text, selection=(len(text) - 1, len(text) - 1))
        reference = scan(text).references[0]

        assert cite_reference(buffer, reference) == len(text) - 1
        assert buffer.get_text() == 'A<ref name="x">One</ref> B<ref name="x" />.'
        assert buffer.get_selection() == (len(buffer.get_text()) - 1, len(buffer.get_text()) - 1)

    def test_cite_replaces_selection(self):
        text = 'A<ref name="x">One</ref> [cite here]'
        start = text.index("[")
        buffer = StringBuffer(text, selection=(start, len(text)))
        reference = scan(text).references[0]

        cite_reference(buffer, reference)
        assert buffer.get_text() == 'A<ref name="x">One</ref> <ref name="x" />'

    def test_cite_names_reference_before_selection(self):
        text = "A<ref>One</ref> B."
        buffer = RecordingBuffer(text)
        reference = scan(text).references[0]

        offset = cite_reference(buffer, reference, name="n")
        assert buffer.get_text() == 'A<ref name="n">One</ref> B.<ref name="n" />'
        assert offset == buffer.get_text().index('<ref name="n" />')
        assert len(buffer.replacements) == 1

    def test_cite_names_reference_after_selection(self):
        text = "Start. A<ref>One</ref>"
        buffer = StringBuffer(text, selection=(0, 0))
        reference = scan(text).references[0]

        assert cite_reference(buffer, reference, name="n") == 0
        assert buffer.get_text() == '<ref name="n" />Start. A<ref name="n">One</ref>'

    def test_unnamed_without_name(self):
        text = "A<ref>One</ref>"
        buffer = RecordingBuffer(text)
        assert cite_reference(buffer, scan(text).references[0]) is None
        assert buffer.replacements == []


class TestInsertReference:
    """Tests for insert_reference."""

    def test_insert_at_cursor(self, context):
        buffer = StringBuffer("Claim.", selection=(5, 5))
        reference = Reference.new(context, name="b", template="Cite book", params={"title": "X"})

        assert insert_reference(buffer, reference) == 5
        assert buffer.get_text() == 'Claim<ref name="b">{{Cite book |title=X}}</ref>.'
        assert buffer.get_selection() == (5, len(buffer.get_text()) - 1)

    def test_insert_replaces_selection(self, context):
        buffer = StringBuffer("Claim [todo].", selection=(6, 12))
        insert_reference(buffer, Reference.new(context, content="Source"))
        assert buffer.get_text() == "Claim <ref>Source</ref>."


class TestHighlight:
    """Tests for highlight."""

    def test_selects_item(self, mixed_refs_wikitext):
        buffer = StringBuffer(mixed_refs_wikitext)
        citation = scan(mixed_refs_wikitext).citations[0]
        span = highlight(buffer, citation)
        assert span == (citation.start, citation.start + len(citation.source))
        assert buffer.get_selection() == span

    def test_missing_item(self, simple_wikitext):
        buffer = StringBuffer("other", selection=(1, 2))
        assert highlight(buffer, scan(simple_wikitext).references[0]) is None
        assert buffer.get_selection() == (1, 2)
