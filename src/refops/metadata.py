# refops/metadata.py
# Template metadata, the lookup context, and alias resolution

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .utils import normalize_title, title_key

# Positional parameters use int keys, named parameters use str keys
ParamKey = Union[int, str]
Params = Dict[ParamKey, str]

INLINE = "inline"
BLOCK = "block"


@dataclass
class ParamSpec:
    """Metadata for one template parameter."""
    name: str
    aliases: List[str] = field(default_factory=list)
    label: str = ""
    description: str = ""
    type: str = "unknown"
    required: bool = False
    suggested: bool = False
    deprecated: bool = False

    @classmethod
    def from_dict(cls, name: str, data: dict, language: str = "en") -> "ParamSpec":
        return cls(
            name=name,
            aliases=[alias.strip() for alias in data.get("aliases") or []],
            label=_localized(data.get("label"), language),
            description=_localized(data.get("description"), language),
            type=data.get("type") or "unknown",
            required=bool(data.get("required", False)),
            suggested=bool(data.get("suggested", False)),
            deprecated=bool(data.get("deprecated", False)),
        )


@dataclass
class TemplateMetadata:
    """Metadata for one template: parameters, order, and preferred format."""
    name: str
    params: Dict[str, ParamSpec] = field(default_factory=dict)
    param_order: List[str] = field(default_factory=list)
    format: str = INLINE
    maps: Dict[str, dict] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.format not in (INLINE, BLOCK):
            self.format = INLINE
        # paramOrder may be missing or partial
        missing = [name for name in self.params if name not in self.param_order]
        self.param_order = [name for name in self.param_order if name in self.params] + missing

    @property
    def field_map(self) -> dict:
        """Integration mapping, e.g. {"main": "title", "textarea": ["quote"]}."""
        return self.maps.get("proveit") or {}

    @property
    def main_param(self) -> Optional[str]:
        return self.field_map.get("main")

    def canonical_name(self, key: ParamKey) -> Optional[str]:
        """Canonical parameter name for key, resolving aliases; None if unregistered."""
        name = str(key).strip()
        if name in self.params:
            return name
        for spec in self.params.values():
            if name in spec.aliases:
                return spec.name
        return None

    def required_params(self) -> List[str]:
        return [name for name in self.param_order if self.params[name].required]


@dataclass
class NormalizedParams:
    """Parameters split into registered (canonical keys) and unregistered."""
    canonical: Params = field(default_factory=dict)
    unregistered: Params = field(default_factory=dict)

    def merged(self) -> Params:
        merged: Params = dict(self.canonical)
        merged.update(self.unregistered)
        return merged


def normalize_params(params: Mapping[ParamKey, str], metadata: Optional[TemplateMetadata]) -> NormalizedParams:
    """
    Map raw parameter names to canonical names without losing any parameter.

    Keys matching a canonical name are kept, keys matching an alias are
    rewritten to the canonical name, everything else is kept verbatim as
    unregistered. An alias whose canonical name is already present stays
    unregistered under its raw key so that neither value is dropped.

    Example:
        >>> meta = TemplateMetadata("Cite", {"last": ParamSpec("last", ["last1"])})
        >>> result = normalize_params({"last1": "Darwin", "via": "x"}, meta)
        >>> result.canonical, result.unregistered
        ({'last': 'Darwin'}, {'via': 'x'})
    """
    result = NormalizedParams()
    sources: Dict[str, ParamKey] = {}
    for key, value in params.items():
        canonical = metadata.canonical_name(key) if metadata else None
        if canonical is None:
            result.unregistered[key] = value
            continue
        if canonical in result.canonical:
            previous = sources[canonical]
            if str(previous).strip() == canonical or str(key).strip() != canonical:
                result.unregistered[key] = value
                continue
            # The canonical spelling wins over an alias seen earlier
            result.unregistered[previous] = result.canonical[canonical]
        result.canonical[canonical] = value
        sources[canonical] = key
    return result


def merge_param_order(metadata: Optional[TemplateMetadata], keys: Iterable[ParamKey]) -> List[ParamKey]:
    """Canonical order from metadata, then keys present but not registered."""
    order: List[ParamKey] = list(metadata.param_order) if metadata else []
    seen = set(order)
    for key in keys:
        if key not in seen:
            order.append(key)
            seen.add(key)
    return order


class TemplateContext:
    """
    Everything the engine knows about templates: metadata by canonical name and
    a redirect table mapping alias template names to canonical ones.

    Passed explicitly into every call; the engine keeps no global state.
    """

    def __init__(
        self,
        templates: Optional[Iterable[TemplateMetadata]] = None,
        redirects: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._templates: Dict[str, TemplateMetadata] = {}
        self._redirects: Dict[str, str] = {}
        for metadata in templates or []:
            self.add(metadata)
        for alias, target in (redirects or {}).items():
            self.add_redirect(alias, target)

    def add(self, metadata: TemplateMetadata) -> None:
        metadata.name = normalize_title(metadata.name)
        self._templates[title_key(metadata.name)] = metadata

    def add_redirect(self, alias: str, target: str) -> None:
        self._redirects[title_key(alias)] = normalize_title(target)

    def __contains__(self, name: str) -> bool:
        return self.resolve(name) is not None

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self):
        return iter(self._templates.values())

    @property
    def redirects(self) -> Dict[str, str]:
        return dict(self._redirects)

    def known_names(self) -> List[str]:
        """Canonical names plus redirect aliases, in registration order."""
        names = [metadata.name for metadata in self._templates.values()]
        names.extend(self._redirect_spellings())
        return names

    def _redirect_spellings(self) -> List[str]:
        # Redirect keys are case-folded; the locator matches case-insensitively
        return list(self._redirects)

    def resolve(self, name: str) -> Optional[str]:
        """Canonical template name for name, following redirects; None if unknown."""
        key = title_key(name)
        if not key:
            return None
        target = self._redirects.get(key)
        if target is not None:
            key = title_key(target)
        metadata = self._templates.get(key)
        if metadata is not None:
            return metadata.name
        return target

    def get(self, name: Optional[str]) -> Optional[TemplateMetadata]:
        if not name:
            return None
        canonical = self.resolve(name)
        if canonical is None:
            return None
        return self._templates.get(title_key(canonical))


def _localized(value, language: str) -> str:
    """TemplateData labels are either plain strings or {lang: text} maps."""
    if not value:
        return ""
    if isinstance(value, str):
        return value
    return value.get(language) or value.get("en") or next(iter(value.values()), "")
