"""
refops - Reference Operations Package

This package is RefHelper's wikitext reference/template engine:

Modules:
    scanner: Balanced {{ }} / [[ ]] span detection
    locator: Citation and reference discovery in a document
    templates: Template location, parameter parsing and rendering
    metadata: Template metadata, lookup context and alias resolution
    models: Citation, Reference and Template models with serialization
    occurrence: Locating the Nth identical fragment
    editor: Insert/update/remove/cite operations on a text buffer
    buffer: The text buffer protocol and an in-memory implementation
    templatedata: Loading template metadata from MediaWiki TemplateData

Typical Usage:
    >>> from refops import scan, TemplateContext, TemplateMetadata
    >>> context = TemplateContext([TemplateMetadata("Cite book")])
    >>> text = '<ref name="a">Text {{Cite book|first=Charles}}</ref>'
    >>> reference = scan(text, context).references[0]
    >>> reference.template.params["first"] = "C."
    >>> reference.to_text()
    '<ref name="a">Text {{Cite book|first=C.}}</ref>'

Thread Safety:
    The engine keeps no global state. Everything it knows about templates is
    passed in as a TemplateContext.
"""

from __future__ import annotations

from .buffer import StringBuffer, TextBuffer
from .editor import (
    cite_reference,
    highlight,
    insert_reference,
    remove_citation,
    remove_reference,
    update_reference,
)
from .locator import ScanResult, parse_reference, scan
from .metadata import (
    NormalizedParams,
    ParamSpec,
    TemplateContext,
    TemplateMetadata,
    normalize_params,
)
from .models import Citation, Reference, ReferenceKind, Template
from .occurrence import locate_nth, occurrence_index
from .scanner import find_balanced_span
from .templates import build_template_text, locate_template, parse_params
from .templatedata import load_templatedata, parse_templatedata

__all__ = [
    # scanning and parsing
    "scan",
    "parse_reference",
    "ScanResult",
    "find_balanced_span",
    "locate_template",
    "parse_params",
    "build_template_text",
    # metadata
    "TemplateContext",
    "TemplateMetadata",
    "ParamSpec",
    "NormalizedParams",
    "normalize_params",
    "load_templatedata",
    "parse_templatedata",
    # models
    "Citation",
    "Reference",
    "ReferenceKind",
    "Template",
    # occurrences and editing
    "locate_nth",
    "occurrence_index",
    "TextBuffer",
    "StringBuffer",
    "update_reference",
    "remove_reference",
    "remove_citation",
    "cite_reference",
    "insert_reference",
    "highlight",
]

__version__ = "1.0.0"
