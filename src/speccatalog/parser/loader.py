"""Parse decoded specification text into Python dictionaries.

OpenAPI and AsyncAPI documents arrive as either JSON or YAML.
:func:`parse_content` tries JSON first and falls back to YAML unless a
format hint says otherwise; :func:`format_hint` derives that hint from the
file extension so a malformed ``.json`` file is never accepted by the more
lenient YAML parser.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from speccatalog.exceptions import SpecParseError
from speccatalog.files import get_file_extension

_EXTENSION_HINTS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def format_hint(file_name: str) -> str:
    """Return the ``parse_content`` hint for *file_name*: ``"json"``, ``"yaml"`` or ``""``."""
    return _EXTENSION_HINTS.get(get_file_extension(file_name), "")


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary.

    Raises:
        SpecParseError: If the content is empty, cannot be parsed as either
            format, or is not a mapping at the top level.
    """
    if not content.strip():
        raise SpecParseError("Document is empty")

    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        return _require_mapping(result)

    msg = "Failed to parse content as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise SpecParseError(msg)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise SpecParseError(
            "Document must be a JSON/YAML object (got "
            f"{type(result).__name__ if result is not None else 'empty document'})"
        )
    return result
