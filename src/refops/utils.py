# refops/utils.py
# Template title normalization and attribute quoting helpers

from __future__ import annotations

import re

import wikitextparser as wtp


def strip_namespace(title: str) -> str:
    """
    Remove the namespace prefix from a page title.

    TemplateData pages come back as "Template:Cite book" (or the localized
    namespace, e.g. "Plantilla:Cita libro"); references use the bare name.
    """
    _, colon, rest = title.partition(":")
    if colon:
        return rest.strip()
    return title.strip()


def normalize_title(name: str) -> str:
    """
    Normalize a template name the way MediaWiki resolves titles.

    - Underscores become spaces, runs of whitespace collapse
    - HTML comments inside the name are dropped
    - The first letter is upper-cased
    """
    name = strip_namespace(name)
    if not name:
        return ""
    return wtp.Template("{{" + name + "}}").normal_name(capitalize=True)


def title_key(name: str) -> str:
    """Case-insensitive lookup key for a template name."""
    return normalize_title(name).casefold()


def name_pattern(name: str) -> str:
    """Regex source matching name with spaces and underscores interchangeable."""
    words = re.split(r"[\s_]+", name.strip())
    return r"[\s_]+".join(re.escape(word) for word in words if word)


def quote_attr(value: str) -> str:
    """Quote a tag attribute value, falling back to single quotes when needed."""
    if '"' in value and "'" not in value:
        return f"'{value}'"
    return '"' + value.replace('"', "&quot;") + '"'
