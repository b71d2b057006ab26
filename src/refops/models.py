# refops/models.py
# Citation, Reference and Template models with serialization back to wikitext

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from .metadata import (
    INLINE,
    ParamKey,
    Params,
    TemplateContext,
    merge_param_order,
    normalize_params,
)
from .occurrence import locate_nth
from .templates import SplitTemplate, build_template_text, render_patched, split_segments
from .utils import normalize_title, quote_attr


class ReferenceKind(Enum):
    CITATION = "citation"
    RAW_REFERENCE = "raw_reference"
    TEMPLATE_REFERENCE = "template_reference"


class Locatable:
    """
    Shared lookup for anything scanned out of a document.

    Identity is structural: the exact source string plus the ordinal among
    identical strings. Offsets are never stored for later use; they are
    resolved again against whatever text is passed in.
    """

    source: str
    ordinal: int

    def locate(self, document_text: str) -> Optional[int]:
        """Start offset of this item in document_text, or None if it is gone."""
        if not self.source:
            return None
        return locate_nth(document_text, self.source, self.ordinal)

    def highlight_span(self, document_text: str) -> Optional[Tuple[int, int]]:
        start = self.locate(document_text)
        if start is None:
            return None
        return start, start + len(self.source)


def build_open_tag(name: Optional[str], group: Optional[str]) -> str:
    tag = "<ref"
    if name:
        tag += " name=" + quote_attr(name)
    if group:
        tag += " group=" + quote_attr(group)
    return tag + ">"


@dataclass
class Template:
    """
    The main template of a reference.

    params holds canonical keys for registered parameters (aliases already
    resolved) followed by unregistered keys as written. Edit params in place
    and call to_text(); unmodified templates render as their raw source.
    """
    name: str
    params: Params = field(default_factory=dict)
    param_order: List[ParamKey] = field(default_factory=list)
    format: str = INLINE
    raw_source: str = ""
    unregistered: List[ParamKey] = field(default_factory=list)

    _split: Optional[SplitTemplate] = field(default=None, repr=False, compare=False)
    _parsed: Params = field(default_factory=dict, repr=False, compare=False)
    _key_map: Dict[ParamKey, ParamKey] = field(default_factory=dict, repr=False, compare=False)
    _original_name: str = field(default="", repr=False, compare=False)

    @classmethod
    def from_source(cls, raw_source: str, context: TemplateContext, name: Optional[str] = None) -> "Template":
        """Parse a template invocation and resolve its parameters against the context."""
        split = split_segments(raw_source)
        if name is None:
            name = context.resolve(split.name) or normalize_title(split.name)
        metadata = context.get(name)

        raw_params = split.params()
        normalized = normalize_params(raw_params, metadata)
        params = normalized.merged()

        key_map: Dict[ParamKey, ParamKey] = {}
        for key in raw_params:
            if metadata is None or key in normalized.unregistered:
                key_map[key] = key
            else:
                key_map[key] = metadata.canonical_name(key)

        return cls(
            name=name,
            params=params,
            param_order=merge_param_order(metadata, params),
            format=metadata.format if metadata else INLINE,
            raw_source=raw_source,
            unregistered=list(normalized.unregistered),
            _split=split,
            _parsed=dict(params),
            _key_map=key_map,
            _original_name=name,
        )

    @classmethod
    def new(cls, name: str, params: Optional[Mapping[ParamKey, str]], context: TemplateContext) -> "Template":
        """A template that does not exist in any document yet."""
        canonical = context.resolve(name) or normalize_title(name)
        metadata = context.get(canonical)
        normalized = normalize_params(dict(params or {}), metadata)
        merged = normalized.merged()
        return cls(
            name=canonical,
            params=merged,
            param_order=merge_param_order(metadata, merged),
            format=metadata.format if metadata else INLINE,
            unregistered=list(normalized.unregistered),
        )

    @property
    def is_modified(self) -> bool:
        return self.name != self._original_name or self.params != self._parsed

    def to_text(self, rebuild: bool = False) -> str:
        """
        Render the template as wikitext.

        A parsed template keeps its original text for every parameter that was
        not edited. A new template, a renamed one, or rebuild=True produces the
        canonical layout: parameters in param_order in the template's format.
        """
        if rebuild or self._split is None or self.name != self._original_name:
            return build_template_text(self.name, self.params, self.param_order, self.format)
        return render_patched(
            self._split,
            self.params,
            self._parsed,
            key_map=self._key_map,
            param_order=self.param_order,
            format=self.format,
        )

    def missing_required(self, context: TemplateContext) -> List[str]:
        metadata = context.get(self.name)
        if metadata is None:
            return []
        return [name for name in metadata.required_params() if not self.params.get(name)]


@dataclass
class Citation(Locatable):
    """A self-closing <ref name="..." /> pointing at a named reference."""
    name: Optional[str] = None
    group: Optional[str] = None
    source: str = ""
    start: int = -1
    ordinal: int = 0

    _original_name: Optional[str] = field(default=None, init=False, repr=False, compare=False)
    _original_group: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._original_name = self.name
        self._original_group = self.group

    @classmethod
    def new(cls, name: str, group: Optional[str] = None) -> "Citation":
        return cls(name=name, group=group or None)

    @property
    def kind(self) -> ReferenceKind:
        return ReferenceKind.CITATION

    def to_text(self) -> str:
        if self.source and self.name == self._original_name and self.group == self._original_group:
            return self.source
        text = "<ref name=" + quote_attr(self.name or "")
        if self.group:
            text += " group=" + quote_attr(self.group)
        return text + " />"


@dataclass
class Reference(Locatable):
    """
    A <ref>...</ref> pair.

    content is everything between the tags. When content holds a known
    template, template is its parsed model; serialization swaps the old
    template text for the new one inside content, so any free text around the
    template survives.
    """
    name: Optional[str] = None
    group: Optional[str] = None
    content: str = ""
    template: Optional[Template] = None
    citations: List[Citation] = field(default_factory=list)
    source: str = ""
    start: int = -1
    ordinal: int = 0

    _open_tag: str = field(default="", repr=False, compare=False)
    _close_tag: str = field(default="</ref>", repr=False, compare=False)
    _original_name: Optional[str] = field(default=None, init=False, repr=False, compare=False)
    _original_group: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._original_name = self.name
        self._original_group = self.group

    @classmethod
    def new(
        cls,
        context: TemplateContext,
        name: Optional[str] = None,
        group: Optional[str] = None,
        content: str = "",
        template: Optional[str] = None,
        params: Optional[Mapping[ParamKey, str]] = None,
    ) -> "Reference":
        model = Template.new(template, params, context) if template else None
        return cls(name=name or None, group=group or None, content=content, template=model)

    @property
    def kind(self) -> ReferenceKind:
        if self.template is not None:
            return ReferenceKind.TEMPLATE_REFERENCE
        return ReferenceKind.RAW_REFERENCE

    @property
    def renamed(self) -> bool:
        """True when name or group differ from what was scanned."""
        return (self.name or None) != self._original_name or (self.group or None) != self._original_group

    def open_tag(self) -> str:
        if self._open_tag and not self.renamed:
            return self._open_tag
        return build_open_tag(self.name, self.group)

    def rendered_content(self) -> str:
        content = self.content
        if self.template is None:
            return content
        old = self.template.raw_source
        if not old:
            return self.template.to_text() + content
        if self.template.is_modified:
            # Plain substring replace: free text around the template is untouched
            content = content.replace(old, self.template.to_text(), 1)
        return content

    def to_text(self) -> str:
        return self.open_tag() + self.rendered_content() + (self._close_tag or "</ref>")

    def main_value(self, context: TemplateContext) -> str:
        """Value shown when listing the reference: the template's main field, or the raw content."""
        if self.template is None:
            return self.content
        params = self.template.params
        metadata = context.get(self.template.name)
        if metadata is not None:
            main = metadata.main_param
            if main and params.get(main):
                return params[main]
        for key in self.template.param_order:
            if params.get(key):
                return params[key]
        return self.content
