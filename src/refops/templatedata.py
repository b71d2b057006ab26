# refops/templatedata.py
# Build a TemplateContext from MediaWiki TemplateData, from a file or the API

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

import requests

from .metadata import ParamSpec, TemplateContext, TemplateMetadata
from .utils import strip_namespace

logger = logging.getLogger(__name__)

# Default API endpoint (configurable through TEMPLATEDATA_API_URL)
TEMPLATEDATA_API_URL = "https://en.wikipedia.org/w/api.php"

# Following Wikimedia's User-Agent policy: https://meta.wikimedia.org/wiki/User-Agent_policy
USER_AGENT = "RefHelper/1.0 (citation template editor) python-requests"


def metadata_from_page(page: dict, language: str = "en") -> TemplateMetadata:
    """
    Convert one page of a templatedata response into TemplateMetadata.

    Args:
        page: A value of response["pages"], e.g.
              {"title": "Template:Cite web", "params": {...}, "paramOrder": [...],
               "format": "inline", "maps": {"proveit": {"main": "title"}}}
        language: Language used to pick labels and descriptions.
    """
    params = {
        name: ParamSpec.from_dict(name, data or {}, language)
        for name, data in (page.get("params") or {}).items()
    }
    return TemplateMetadata(
        name=strip_namespace(page.get("title", "")),
        params=params,
        param_order=list(page.get("paramOrder") or params),
        format=page.get("format") or "inline",
        maps=page.get("maps") or {},
    )


def parse_templatedata(data: dict, language: str = "en") -> TemplateContext:
    """
    Build a TemplateContext from an action=templatedata response.

    Pages without a title, or reported missing, are skipped. The optional
    "redirects" list ({"from": ..., "to": ...}) becomes the redirect table.
    """
    context = TemplateContext()
    pages = data.get("pages") or {}
    if isinstance(pages, dict):
        pages = list(pages.values())

    for page in pages:
        if not page.get("title") or "missing" in page:
            continue
        context.add(metadata_from_page(page, language))

    for redirect in data.get("redirects") or []:
        source, target = redirect.get("from"), redirect.get("to")
        if source and target:
            context.add_redirect(strip_namespace(source), strip_namespace(target))

    return context


def load_templatedata(path: Path, language: str = "en") -> TemplateContext:
    """
    Read a saved templatedata response from disk.

    Raises:
        ValueError: if the file is not valid JSON or not a JSON object.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid TemplateData file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid TemplateData file {path}: expected a JSON object")
    return parse_templatedata(data, language)


def fetch_templatedata(
    titles: Iterable[str],
    api_url: str = TEMPLATEDATA_API_URL,
    timeout: int = 10,
) -> Tuple[Optional[dict], Optional[str]]:
    """
    Fetch TemplateData for the given template titles.

    Args:
        titles: Template titles, with or without the "Template:" prefix
        api_url: MediaWiki API endpoint
        timeout: Request timeout in seconds (default: 10)

    Returns:
        Tuple of (data, error_message):
        - On success: (response_json, None)
        - On failure: (None, error_message)
    """
    titles = [title.strip() for title in titles if title and title.strip()]
    if not titles:
        return None, "At least one template title is required"

    for title in titles:
        is_valid, error_msg = validate_template_title(title)
        if not is_valid:
            return None, error_msg

    params = {
        "action": "templatedata",
        "titles": "|".join(
            title if ":" in title else f"Template:{title}" for title in titles
        ),
        "redirects": "1",
        "format": "json",
        "formatversion": "2",
    }
    headers = {
        "User-Agent": USER_AGENT
    }

    try:
        response = requests.get(api_url, params=params, headers=headers, timeout=timeout)
        response.raise_for_status()

        data = response.json()

        if "error" in data:
            return None, f"TemplateData API error: {data['error'].get('info', 'Unknown error')}"

        if "pages" not in data:
            return None, "Could not extract template data from API response"

        return data, None

    except requests.exceptions.Timeout:
        return None, "Request timed out. Please try again."
    except requests.exceptions.ConnectionError:
        return None, "Failed to connect to the TemplateData API."
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else "unknown"
        if status_code == 429:
            return None, "Too many requests. Please wait a moment and try again."
        return None, f"TemplateData API returned an error (HTTP {status_code})."
    except requests.exceptions.RequestException:
        return None, "Failed to retrieve template data."
    except ValueError:
        return None, "Received invalid response from the TemplateData API."


def fetch_context(
    titles: Iterable[str],
    api_url: str = TEMPLATEDATA_API_URL,
    timeout: int = 10,
    language: str = "en",
) -> TemplateContext:
    """Fetch and parse TemplateData; an empty context when the fetch fails."""
    data, error = fetch_templatedata(titles, api_url=api_url, timeout=timeout)
    if error:
        logger.warning("TemplateData unavailable: %s", error)
        return TemplateContext()
    return parse_templatedata(data, language)


def validate_template_title(title: str, max_length: int = 255) -> Tuple[bool, Optional[str]]:
    """
    Validate a template title.

    Returns:
        Tuple of (is_valid, error_message):
        - On success: (True, None)
        - On failure: (False, error_message)
    """
    if not title or not title.strip():
        return False, "Template title is required"

    title = title.strip()

    if len(title) > max_length:
        return False, f"Template title must be {max_length} characters or less"

    invalid_chars = ["#", "<", ">", "[", "]", "|", "{", "}"]
    for char in invalid_chars:
        if char in title:
            return False, f"Template title contains invalid character: {char}"

    return True, None
