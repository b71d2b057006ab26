"""
refs/routes.py - References API Routes

JSON endpoints over the refops engine. Each request rescans the posted text,
picks the item by its index in the scan, and runs one editor operation on a
StringBuffer.

Status codes:
    400: missing or invalid JSON, or an invalid field
    404: index out of range
    409: the item could not be found again in the text
    413: request body too large (handled by the app)
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from flask import Response, abort, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from extensions import limiter
from main_app import get_context
from main_app.refs import bp
from refops import (
    Citation,
    Reference,
    ScanResult,
    StringBuffer,
    Template,
    TemplateContext,
    cite_reference,
    insert_reference,
    remove_citation,
    remove_reference,
    scan,
    update_reference,
)
from refops.metadata import ParamKey, Params
from refops.templates import locate_template, param_key
from refops.utils import normalize_title


@bp.errorhandler(400)
@bp.errorhandler(404)
@bp.errorhandler(409)
def _handle_api_error(e: HTTPException) -> Tuple[Response, int]:
    """Return API errors as {"error": description} with the original status code."""
    return jsonify({"error": e.description}), e.code


def _payload() -> Dict[str, Any]:
    """The JSON request body; 400 if it is missing or not an object."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")
    return data


def _text(data: Mapping[str, Any]) -> str:
    text = data.get("text")
    if not isinstance(text, str):
        abort(400, description="'text' must be a string")
    return text


def _int_field(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    # bool is an int subclass
    if not isinstance(value, int) or isinstance(value, bool):
        abort(400, description=f"'{key}' must be an integer")
    return value


def _position(data: Mapping[str, Any], text: str) -> int:
    position = _int_field(data, "position")
    if not 0 <= position <= len(text):
        abort(400, description=f"'position' must be between 0 and {len(text)}")
    return position


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        abort(400, description=f"'{key}' must be a string")
    return value


def _param_key(key: str) -> ParamKey:
    """Positional parameters arrive as "1", "2", ... in JSON."""
    return param_key(key.strip())


def _params(data: Mapping[str, Any]) -> Dict[ParamKey, Optional[str]]:
    raw = data.get("params") or {}
    if not isinstance(raw, dict):
        abort(400, description="'params' must be an object")
    params: Dict[ParamKey, Optional[str]] = {}
    for key, value in raw.items():
        if value is not None and not isinstance(value, str):
            abort(400, description=f"Value of parameter '{key}' must be a string or null")
        params[_param_key(key)] = value
    return params


def _params_json(params: Params) -> Dict[str, str]:
    return {str(key): value for key, value in params.items()}


def _pick(items: List[Any], index: int, label: str) -> Any:
    if not 0 <= index < len(items):
        abort(404, description=f"No {label} at index {index}")
    return items[index]


def _citation_json(index: int, citation: Citation) -> Dict[str, Any]:
    return {
        "index": index,
        "kind": citation.kind.value,
        "name": citation.name,
        "group": citation.group,
        "source": citation.source,
        "start": citation.start,
        "ordinal": citation.ordinal,
    }


def _reference_json(index: int, reference: Reference, context: TemplateContext) -> Dict[str, Any]:
    template = reference.template
    return {
        "index": index,
        "kind": reference.kind.value,
        "name": reference.name,
        "group": reference.group,
        "content": reference.content,
        "source": reference.source,
        "start": reference.start,
        "ordinal": reference.ordinal,
        "template": template.name if template else None,
        "params": _params_json(template.params) if template else {},
        "param_order": [str(key) for key in template.param_order] if template else [],
        "unregistered": [str(key) for key in template.unregistered] if template else [],
        "missing_required": template.missing_required(context) if template else [],
        "main_value": reference.main_value(context),
        "citations": len(reference.citations),
    }


def _scan_json(result: ScanResult, context: TemplateContext) -> Dict[str, Any]:
    return {
        "references": [
            _reference_json(index, reference, context)
            for index, reference in enumerate(result.references)
        ],
        "citations": [
            _citation_json(index, citation)
            for index, citation in enumerate(result.citations)
        ],
    }


def _apply_params(template: Template, params: Mapping[ParamKey, Optional[str]], context: TemplateContext) -> None:
    """Set or clear template parameters; aliases are written to their canonical key."""
    metadata = context.get(template.name)
    for key, value in params.items():
        if metadata is not None:
            key = metadata.canonical_name(key) or key
        if value is None:
            template.params.pop(key, None)
        else:
            template.params[key] = value
            if key not in template.param_order:
                template.param_order.append(key)


def _set_content(reference: Reference, content: str, context: TemplateContext) -> None:
    reference.content = content
    match = locate_template(content, context)
    reference.template = Template.from_source(match.raw_source, context, name=match.name) if match else None


def _set_template(reference: Reference, name: str, context: TemplateContext) -> None:
    """Switch the reference to another template, keeping its parameters."""
    old = reference.template
    if not name:
        if old is not None:
            reference.content = reference.content.replace(old.raw_source, "", 1)
        reference.template = None
        return

    canonical = context.resolve(name) or normalize_title(name)
    if old is not None and old.name == canonical:
        return

    replacement = Template.new(canonical, old.params if old else None, context)
    if old is not None:
        # Rendered in place of the old invocation
        replacement.raw_source = old.raw_source
    reference.template = replacement


@bp.route("/scan", methods=["POST"])
@limiter.limit("60 per minute")
def scan_document() -> Response:
    """List the references and citations of the posted text."""
    data = _payload()
    context = get_context()
    result = scan(_text(data), context)
    return jsonify(_scan_json(result, context))


@bp.route("/update", methods=["POST"])
def update() -> Response:
    """
    Rewrite the reference at `index`.

    Optional fields, applied in this order:
        content: new text between the tags (the template is detected again)
        template: switch to another template, or "" to drop it
        params: parameters to set; null clears a parameter
        name, group: rename the reference and every citation linked to it
    """
    data = _payload()
    text = _text(data)
    context = get_context()
    reference: Reference = _pick(scan(text, context).references, _int_field(data, "index"), "reference")

    if "content" in data:
        _set_content(reference, _optional_str(data, "content") or "", context)
    if "template" in data:
        _set_template(reference, _optional_str(data, "template") or "", context)
    if "params" in data:
        params = _params(data)
        if reference.template is None:
            abort(400, description="Reference has no template to set parameters on")
        _apply_params(reference.template, params, context)
    if "name" in data:
        reference.name = _optional_str(data, "name") or None
    if "group" in data:
        reference.group = _optional_str(data, "group") or None
    if reference.citations and not reference.name:
        abort(409, description="Reference is still cited and needs its name")

    buffer = StringBuffer(text)
    offset = update_reference(buffer, reference)
    if offset is None:
        abort(409, description="Reference not found in the current text")
    current_app.logger.info("Updated reference %r at %d", reference.name, offset)
    return jsonify({"text": buffer.get_text(), "offset": offset})


@bp.route("/remove", methods=["POST"])
def remove() -> Response:
    """
    Remove the reference at `index` along with its citations.

    With "kind": "citation" the citation at `index` is removed instead.
    """
    data = _payload()
    text = _text(data)
    index = _int_field(data, "index")
    result = scan(text, get_context())
    buffer = StringBuffer(text)

    if data.get("kind", "reference") == "citation":
        removed = remove_citation(buffer, _pick(result.citations, index, "citation"))
    else:
        removed = remove_reference(buffer, _pick(result.references, index, "reference"))

    if not removed:
        abort(409, description="Item not found in the current text")
    return jsonify({"text": buffer.get_text()})


@bp.route("/cite", methods=["POST"])
def cite() -> Response:
    """Insert a citation to the reference at `index` at `position`."""
    data = _payload()
    text = _text(data)
    position = _position(data, text)
    reference: Reference = _pick(scan(text, get_context()).references, _int_field(data, "index"), "reference")
    name = _optional_str(data, "name")

    if not reference.name and not name:
        abort(400, description="Reference has no name; pass 'name' to give it one")

    buffer = StringBuffer(text, selection=(position, position))
    offset = cite_reference(buffer, reference, name=name)
    if offset is None:
        abort(409, description="Reference not found in the current text")
    return jsonify({"text": buffer.get_text(), "offset": offset})


@bp.route("/insert", methods=["POST"])
def insert() -> Response:
    """Insert a new reference at `position`."""
    data = _payload()
    text = _text(data)
    position = _position(data, text)
    context = get_context()

    params = {key: value for key, value in _params(data).items() if value is not None}
    reference = Reference.new(
        context,
        name=_optional_str(data, "name"),
        group=_optional_str(data, "group"),
        content=_optional_str(data, "content") or "",
        template=_optional_str(data, "template"),
        params=params,
    )
    if reference.template is None and not reference.content:
        abort(400, description="A reference needs 'content' or a 'template'")

    buffer = StringBuffer(text, selection=(position, position))
    offset = insert_reference(buffer, reference)
    return jsonify({"text": buffer.get_text(), "offset": offset})


@bp.route("/templates")
def templates() -> Response:
    """List the registered templates with their parameters."""
    context = get_context()
    return jsonify({
        "templates": [
            {
                "name": metadata.name,
                "format": metadata.format,
                "param_order": metadata.param_order,
                "main": metadata.main_param,
                "params": {
                    name: {
                        "label": spec.label,
                        "aliases": spec.aliases,
                        "required": spec.required,
                        "suggested": spec.suggested,
                    }
                    for name, spec in metadata.params.items()
                },
            }
            for metadata in context
        ],
        "redirects": context.redirects,
    })
