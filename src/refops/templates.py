"""
refops/templates.py - Template Location, Parameter Parsing and Rendering

This module finds the main template inside a reference, splits a template
invocation into parameters, and renders a template back to wikitext.

Design Decisions:
    - Parameter splitting is a single left-to-right pass over the pipe-separated
      pieces. Pieces are joined back together while a [[link]] or {{subtemplate}}
      opened in an earlier piece is still open, so pipes inside them never split
      a parameter.
    - Every parameter keeps its exact raw segment. Rendering an unmodified
      template is a plain join of those segments, which reproduces the source
      byte-for-byte; edited values patch only their own segment.
    - This is a heuristic: an unbalanced "[[" in plain prose inside a value
      swallows the following parameters.

Example:
    >>> parse_params("{{Cite |title=[[A|B]] |year=2020}}")
    {'title': '[[A|B]]', 'year': '2020'}
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, List, Mapping, Optional, Tuple

from .metadata import BLOCK, ParamKey, Params, TemplateContext
from .scanner import (
    LINK_CLOSE,
    LINK_OPEN,
    TEMPLATE_CLOSE,
    TEMPLATE_OPEN,
    find_balanced_span,
    is_balanced,
    net_depth,
)
from .utils import name_pattern

INLINE_SEPARATOR = " |"
BLOCK_SEPARATOR = "\r\n| "
BLOCK_CLOSING = "\r\n"


@dataclass
class TemplateMatch:
    """Location of a template invocation inside a content string."""
    name: str
    raw_source: str
    start: int
    end: int
    matched_name: str


@dataclass
class Segment:
    """One parameter as written: its parsed key and value plus the raw text between pipes."""
    key: ParamKey
    value: str
    text: str

    @property
    def named(self) -> bool:
        """True when written as key=value, explicit indexes such as 2=x included."""
        return _find_separator(self.text) != -1


@dataclass
class SplitTemplate:
    """A template invocation cut into name, parameter segments, and closing whitespace."""
    name_text: str
    segments: List[Segment] = field(default_factory=list)
    closing: str = ""
    opening: str = TEMPLATE_OPEN
    closed: bool = True

    @property
    def name(self) -> str:
        return self.name_text.strip()

    def params(self) -> Params:
        params: Params = {}
        for segment in self.segments:
            params[segment.key] = segment.value
        return params

    def to_text(self) -> str:
        parts = [self.opening, self.name_text]
        parts.extend("|" + segment.text for segment in self.segments)
        parts.append(self.closing)
        if self.closed:
            parts.append(TEMPLATE_CLOSE)
        return "".join(parts)


@lru_cache(maxsize=512)
def _template_regex(name: str) -> re.Pattern[str]:
    return re.compile(
        r"\{\{\s*(?:template\s*:\s*)?(" + name_pattern(name) + r")(?=[\s|}])",
        re.IGNORECASE,
    )


def locate_template(content: str, context: TemplateContext) -> Optional[TemplateMatch]:
    """
    Find the first invocation of any known template in content.

    Every registered name and redirect alias is tried case-insensitively; the
    earliest match wins and, at the same position, the longest name wins.
    The matched spelling is resolved to the canonical registered name and the
    end of the invocation is found with the balanced delimiter scanner.

    Returns None when content holds no known template, which is the normal
    case for free-text references.

    Example:
        >>> from refops.metadata import TemplateMetadata
        >>> ctx = TemplateContext([TemplateMetadata("Cite book")])
        >>> match = locate_template("See {{cite book|title=X}}.", ctx)
        >>> match.name, match.raw_source
        ('Cite book', '{{cite book|title=X}}')
    """
    best: Optional[re.Match[str]] = None
    for name in context.known_names():
        match = _template_regex(name).search(content)
        if match is None:
            continue
        if (
            best is None
            or match.start() < best.start()
            or (match.start() == best.start() and match.end() > best.end())
        ):
            best = match

    if best is None:
        return None

    start = best.start()
    end = find_balanced_span(content, start)
    matched_name = best.group(1)
    return TemplateMatch(
        name=context.resolve(matched_name) or matched_name,
        raw_source=content[start:end],
        start=start,
        end=end,
        matched_name=matched_name,
    )


def _find_separator(text: str) -> int:
    """Index of the first "=" not nested inside [[...]] or {{...}}, or -1."""
    depth = 0
    i = 0
    while i < len(text):
        if text.startswith(TEMPLATE_OPEN, i) or text.startswith(LINK_OPEN, i):
            depth += 1
            i += 2
            continue
        if depth and (text.startswith(TEMPLATE_CLOSE, i) or text.startswith(LINK_CLOSE, i)):
            depth -= 1
            i += 2
            continue
        if text[i] == "=" and depth == 0:
            return i
        i += 1
    return -1


def _trailing_whitespace(text: str) -> str:
    return text[len(text.rstrip()):]


def param_key(name: str) -> ParamKey:
    """Key for a written parameter name: "2" addresses positional 2, while "02" and "0" stay names."""
    if name.isascii() and name.isdigit() and name == str(int(name)) and int(name) > 0:
        return int(name)
    return name


def split_segments(raw_source: str) -> SplitTemplate:
    """
    Split a template invocation into its name and raw parameter segments.

    Positional parameters get int keys numbered from 1 in encounter order,
    regardless of named parameters between them. An explicit numeric key such
    as "2=" gets the int key 2 as well. Keys and values are trimmed; whitespace
    inside values is kept.
    """
    opening = TEMPLATE_OPEN if raw_source.startswith(TEMPLATE_OPEN) else ""
    closed = bool(opening) and raw_source.endswith(TEMPLATE_CLOSE) and is_balanced(raw_source)
    body = raw_source[len(opening):len(raw_source) - len(TEMPLATE_CLOSE) if closed else len(raw_source)]

    pieces = body.split("|")
    name_text = pieces[0]

    # Group pieces into raw segments while a link or subtemplate is open
    groups: List[List[str]] = []
    link_depth = 0
    subtemplate_depth = 0
    for piece in pieces[1:]:
        if groups and (link_depth or subtemplate_depth):
            groups[-1].append(piece)
        else:
            groups.append([piece])
        link_depth = max(0, link_depth + net_depth(piece, LINK_OPEN, LINK_CLOSE))
        subtemplate_depth = max(0, subtemplate_depth + net_depth(piece, TEMPLATE_OPEN, TEMPLATE_CLOSE))

    texts = ["|".join(group) for group in groups]

    # Whitespace before the closing braces belongs to the template, not the last value
    if texts:
        closing = _trailing_whitespace(texts[-1])
        texts[-1] = texts[-1][:len(texts[-1]) - len(closing)]
    else:
        closing = _trailing_whitespace(name_text)
        name_text = name_text[:len(name_text) - len(closing)]

    segments: List[Segment] = []
    positional = 0
    for text in texts:
        eq = _find_separator(text)
        if eq == -1:
            positional += 1
            segments.append(Segment(key=positional, value=text.strip(), text=text))
        else:
            segments.append(Segment(key=param_key(text[:eq].strip()), value=text[eq + 1:].strip(), text=text))

    return SplitTemplate(
        name_text=name_text,
        segments=segments,
        closing=closing,
        opening=opening,
        closed=closed,
    )


def parse_params(raw_source: str) -> Params:
    """Ordered mapping of parameter key to value for a template invocation."""
    return split_segments(raw_source).params()


def _writes_bare(key: ParamKey, value: str, position: int) -> bool:
    """True if value can be written without its index after position implicit positionals."""
    return isinstance(key, int) and key == position + 1 and "=" not in value


def _format_param(key: ParamKey, value: str, format: str, bare: bool = False) -> str:
    if bare:
        item = value
    elif format == BLOCK:
        item = f"{key} = {value}"
    else:
        item = f"{key}={value}"
    return (BLOCK_SEPARATOR if format == BLOCK else INLINE_SEPARATOR) + item


def _ordered_keys(params: Mapping[ParamKey, str], param_order: Iterable[ParamKey]) -> List[ParamKey]:
    keys: List[ParamKey] = []
    for key in list(param_order) + list(params):
        if key not in keys:
            keys.append(key)
    return keys


def build_template_text(
    name: str,
    params: Mapping[ParamKey, str],
    param_order: Iterable[ParamKey] = (),
    format: str = "inline",
) -> str:
    """
    Build a template invocation from scratch.

    Parameters follow param_order, then any remaining keys; empty values are
    skipped. Inline format gives "{{Name |key=value}}", block format puts each
    parameter on its own line as "| key = value" and closes on a new line.
    A positional value is written bare only while implicit numbering still
    gives it its own index; after a gap it is written as "N=value".

    Example:
        >>> build_template_text("Cite web", {"url": "http://x", "title": "X"}, ["title", "url"])
        '{{Cite web |title=X |url=http://x}}'
    """
    parts = [TEMPLATE_OPEN, name]
    position = 0
    for key in _ordered_keys(params, param_order):
        value = params.get(key)
        if not value:
            continue
        bare = _writes_bare(key, value, position)
        if bare:
            position += 1
        parts.append(_format_param(key, value, format, bare))
    if format == BLOCK:
        parts.append(BLOCK_CLOSING)
    parts.append(TEMPLATE_CLOSE)
    return "".join(parts)


def _replace_value(segment: Segment, value: str) -> str:
    """Swap the value inside a raw segment, keeping key spelling and surrounding whitespace."""
    text = segment.text
    eq = _find_separator(text) if segment.named else -1
    prefix, after = text[:eq + 1], text[eq + 1:]
    if after.strip():
        lead = after[:len(after) - len(after.lstrip())]
        trail = _trailing_whitespace(after)
    else:
        newline = after.find("\n")
        lead = after[:newline] if newline != -1 else after
        trail = after[len(lead):]
    if not segment.named and "=" in value:
        prefix = f"{segment.key}="
    return prefix + lead + value + trail


def _pin_positionals(segments: List[Segment]) -> Tuple[List[Segment], int]:
    """
    Give an explicit index to every bare positional segment whose implicit
    number no longer matches its key, which happens once an earlier positional
    parameter is cleared. Returns the segments and the count of bare ones.
    """
    pinned: List[Segment] = []
    position = 0
    for segment in segments:
        if isinstance(segment.key, int) and not segment.named:
            if segment.key == position + 1:
                position += 1
            else:
                text = segment.text
                lead = text[:len(text) - len(text.lstrip())]
                segment = Segment(
                    key=segment.key,
                    value=segment.value,
                    text=f"{lead}{segment.key}={text.lstrip()}",
                )
        pinned.append(segment)
    return pinned, position


def render_patched(
    split: SplitTemplate,
    params: Mapping[ParamKey, str],
    parsed: Mapping[ParamKey, str],
    key_map: Optional[Mapping[ParamKey, ParamKey]] = None,
    param_order: Iterable[ParamKey] = (),
    format: str = "inline",
) -> str:
    """
    Render a parsed template after edits, touching only what changed.

    params is the edited mapping and parsed the mapping as it was parsed; both
    use the model keys, and key_map translates the raw keys of the segments to
    those model keys (aliases to canonical names). Unchanged segments are copied
    verbatim, edited ones are patched in place, cleared or deleted ones are
    dropped, and new parameters are appended in the template's format.
    Positional parameters after a dropped one get an explicit index so they
    keep their meaning.
    """
    key_map = key_map or {}
    edited = {
        key for key in list(parsed) + list(params)
        if params.get(key) != parsed.get(key)
    }
    if not edited:
        return split.to_text()

    handled = set()
    segments: List[Segment] = []
    for segment in split.segments:
        key = key_map.get(segment.key, segment.key)
        if key not in edited:
            segments.append(segment)
            continue
        handled.add(key)
        value = params.get(key) or ""
        if value:
            segments.append(Segment(key=segment.key, value=value, text=_replace_value(segment, value)))

    segments, position = _pin_positionals(segments)
    patched = SplitTemplate(
        name_text=split.name_text,
        segments=segments,
        closing=split.closing,
        opening=split.opening or TEMPLATE_OPEN,
        closed=True,
    )
    text = patched.to_text()

    added = []
    for key in _ordered_keys(params, param_order):
        value = params.get(key)
        if key not in edited or key in handled or not value:
            continue
        bare = _writes_bare(key, value, position)
        if bare:
            position += 1
        added.append(_format_param(key, value, format, bare))
    if added:
        tail = patched.closing + TEMPLATE_CLOSE
        text = text[:len(text) - len(tail)] + "".join(added) + tail
    return text

