"""
refops/locator.py - Citation and Reference Discovery

This module scans a document snapshot for <ref> markup and builds the models
the rest of the engine works on.

Two kinds of markup are recognized:
    - Citations: self-closing tags such as <ref name="source" />
    - References: paired tags such as <ref name="source">citation text</ref>

Design Decisions:
    - Tag spans are found with case-insensitive regexes. Attributes are read
      by wikitextparser, so values may be double-quoted, single-quoted or bare,
      in any order.
    - Paired tags match non-greedily and never nest: the first closing tag ends
      a reference, and any other "<" inside is literal content.
    - Results keep document order. Each item also records its ordinal among
      byte-identical items so it can be found again after the text changes.
    - Citations are linked to references by exact equality of the name.

Thread Safety:
    Every function here is a pure function of its arguments.

Example:
    >>> result = scan('A<ref name="x">One</ref> B<ref name="x" />')
    >>> [r.name for r in result.references], len(result.references[0].citations)
    (['x'], 1)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Final, List, Optional

import wikitextparser as wtp

from .metadata import TemplateContext
from .models import Citation, Reference, Template
from .occurrence import occurrence_index
from .templates import locate_template

# Self-closing marker: <ref ... />
CITATION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"<\s*ref\b(?P<attrs>[^>]*?)/\s*>",
    re.IGNORECASE,
)

# Paired markers: <ref ...>content</ref>; the opening tag must not be self-closing
REFERENCE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?P<open><\s*ref\b(?P<attrs>[^>]*?)(?<!/)>)(?P<content>.*?)(?P<close><\s*/\s*ref\s*>)",
    re.IGNORECASE | re.DOTALL,
)

@dataclass
class ScanResult:
    """Citations and references of one document snapshot, in document order."""
    citations: List[Citation] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.citations or self.references)


def parse_attributes(attrs: str) -> Dict[str, str]:
    """
    Parse the attribute text of a ref tag into a dict with lower-cased keys.

    The text is wrapped in a plain start tag and handed to wikitextparser.
    When an attribute repeats, the last value wins.

    Example:
        >>> parse_attributes(''' name=foo group='notes' ''')
        {'name': 'foo', 'group': 'notes'}
    """
    tag = wtp.Tag(f"<ref{attrs or ''}>")
    return {key.lower(): value for key, value in tag.attrs.items()}


def _name_and_group(attrs: str):
    parsed = parse_attributes(attrs)
    return parsed.get("name") or None, parsed.get("group") or None


def find_citations(document_text: str) -> List[Citation]:
    citations: List[Citation] = []
    for match in CITATION_PATTERN.finditer(document_text):
        name, group = _name_and_group(match.group("attrs"))
        source = match.group(0)
        citations.append(Citation(
            name=name,
            group=group,
            source=source,
            start=match.start(),
            ordinal=occurrence_index(document_text, source, match.start()),
        ))
    return citations


def _build_reference(match: re.Match[str], context: TemplateContext) -> Reference:
    name, group = _name_and_group(match.group("attrs"))
    content = match.group("content")

    template = None
    template_match = locate_template(content, context)
    if template_match is not None:
        template = Template.from_source(template_match.raw_source, context, name=template_match.name)

    return Reference(
        name=name,
        group=group,
        content=content,
        template=template,
        source=match.group(0),
        start=match.start(),
        _open_tag=match.group("open"),
        _close_tag=match.group("close"),
    )


def find_references(document_text: str, context: Optional[TemplateContext] = None) -> List[Reference]:
    context = context if context is not None else TemplateContext()
    references: List[Reference] = []
    for match in REFERENCE_PATTERN.finditer(document_text):
        reference = _build_reference(match, context)
        reference.ordinal = occurrence_index(document_text, reference.source, reference.start)
        references.append(reference)
    return references


def link_citations(references: List[Reference], citations: List[Citation]) -> None:
    """Attach to each named reference the citations carrying the same name."""
    by_name: Dict[str, List[Citation]] = {}
    for citation in citations:
        if citation.name:
            by_name.setdefault(citation.name, []).append(citation)
    for reference in references:
        if reference.name:
            reference.citations = list(by_name.get(reference.name, []))


def scan(document_text: str, context: Optional[TemplateContext] = None) -> ScanResult:
    """
    Find every citation and reference in a document snapshot.

    Args:
        document_text: The full wikitext under edit.
        context: Known templates; without one no reference gets a template.

    Returns:
        A ScanResult with citations and references in document order and each
        named reference linked to its citations. A document without <ref> tags
        gives an empty result, not an error.
    """
    citations = find_citations(document_text)
    references = find_references(document_text, context)
    link_citations(references, citations)
    return ScanResult(citations=citations, references=references)


def parse_reference(source: str, context: Optional[TemplateContext] = None) -> Optional[Reference]:
    """Model a single <ref>...</ref> string; None if it is not one."""
    match = REFERENCE_PATTERN.fullmatch(source.strip())
    if match is None:
        return None
    return _build_reference(match, context if context is not None else TemplateContext())
