"""Extract operations from OpenAPI 3.x and Swagger 2.0 documents.

This module walks the ``paths`` object of a JSON/YAML OpenAPI document and
builds a :class:`~speccatalog.models.ParsedSpecification` with one
:class:`~speccatalog.models.ParsedOperation` per path + HTTP verb.

The single public entry point is :func:`extract_openapi`. Internally it
delegates to private helpers that each handle one section of the document:

* ``_extract_operations`` -- the ``paths`` object.
* ``_extract_parameters`` -- an operation's ``parameters`` array.
* ``_extract_responses`` -- an operation's ``responses`` map.
* ``_extract_request_schema`` -- the first schema of ``requestBody.content``.
* ``_extract_address`` -- the base address from ``servers`` (3.x) or
  ``host``/``basePath``/``schemes`` (2.0).

``$ref`` pointers are not expanded here: schemas are carried as they appear
in the document.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from speccatalog.exceptions import SpecParseError
from speccatalog.files import get_file_name_without_extension
from speccatalog.models import (
    ParameterLocation,
    ParsedOperation,
    ParsedParameter,
    ParsedResponse,
    ParsedSpecification,
    ParserConfig,
    SpecificationType,
)
from speccatalog.parser.common import (
    as_dict,
    ensure_unique_ids,
    new_specification_id,
    optional_str,
    str_list,
)
from speccatalog.parser.loader import format_hint, parse_content

# HTTP verbs that produce an operation, in the order OpenAPI lists them.
_HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")

# Swagger 2.0 ``in`` values that map onto catalog locations.
_LOCATION_ALIASES = {"formData": ParameterLocation.BODY}


def extract_openapi(
    content: str, file_name: str, config: Optional[ParserConfig] = None
) -> ParsedSpecification:
    """Parse *content* as an OpenAPI document.

    Args:
        content: Decoded JSON or YAML text.
        file_name: Original file name; supplies the specification name when
            the document has no ``info.title``.
        config: Unused; accepted so every extractor shares one signature.

    Returns:
        The parsed specification. Zero operations is a valid result.

    Raises:
        SpecParseError: If the text is not a JSON/YAML object.

    Example::

        spec = extract_openapi('{"paths": {"/pets": {"get": {"operationId": "listPets"}}}}',
                               "petstore.json")
        spec.operations[0].id      # 'listPets'
    """
    try:
        document = parse_content(content, hint=format_hint(file_name))
    except SpecParseError as exc:
        raise SpecParseError(f"Failed to parse OpenAPI specification: {exc}") from exc

    info = as_dict(document.get("info"))
    metadata: dict[str, Any] = {
        "openapi": document.get("openapi"),
        "info": document.get("info"),
        "servers": document.get("servers"),
        "address": _extract_address(document),
    }
    if "swagger" in document:
        metadata["swagger"] = document["swagger"]

    return ParsedSpecification(
        id=new_specification_id(),
        name=optional_str(info.get("title")) or get_file_name_without_extension(file_name),
        type=SpecificationType.HTTP,
        version=optional_str(info.get("version")),
        description=optional_str(info.get("description")),
        operations=ensure_unique_ids(_extract_operations(document)),
        metadata=metadata,
    )


def _extract_operations(document: dict[str, Any]) -> list[ParsedOperation]:
    """Build one operation per path + recognised HTTP verb.

    Verb keys are matched case-insensitively; any other keys of a path item
    (``parameters``, ``summary``, vendor extensions) are ignored.
    """
    operations: list[ParsedOperation] = []

    for path, path_item in as_dict(document.get("paths")).items():
        if not isinstance(path_item, dict):
            continue
        path = str(path)

        for method_key, operation in path_item.items():
            if not isinstance(operation, dict):
                continue
            method = str(method_key).lower()
            if method not in _HTTP_METHODS:
                continue

            verb = method.upper()
            operation_id = optional_str(operation.get("operationId"))
            operations.append(
                ParsedOperation(
                    id=operation_id or f"{verb}_{_NON_ALPHANUMERIC.sub('_', path)}",
                    name=optional_str(operation.get("summary")) or operation_id or f"{verb} {path}",
                    method=verb,
                    path=path,
                    description=optional_str(operation.get("description")),
                    parameters=_extract_parameters(operation.get("parameters") or []),
                    responses=_extract_responses(as_dict(operation.get("responses"))),
                    tags=str_list(operation.get("tags")),
                    request_schema=_extract_request_schema(operation.get("requestBody")),
                )
            )

    return operations


def _extract_parameters(params: Any) -> list[ParsedParameter]:
    """Convert an OpenAPI ``parameters`` array.

    Parameters with an unrecognised ``in`` location (e.g. ``cookie``) are
    skipped. Swagger 2.0 declares ``type`` on the parameter itself rather
    than in a ``schema``; both are honoured.
    """
    if not isinstance(params, list):
        return []

    parameters: list[ParsedParameter] = []
    for param in params:
        if not isinstance(param, dict):
            continue

        location_str = param.get("in", "query")
        location = _LOCATION_ALIASES.get(location_str)
        if location is None:
            try:
                location = ParameterLocation(location_str)
            except ValueError:
                continue

        schema = as_dict(param.get("schema"))
        parameters.append(
            ParsedParameter(
                name=str(param.get("name", "")),
                type=_schema_type(schema.get("type", param.get("type"))),
                required=bool(param.get("required", False)),
                description=optional_str(param.get("description")),
                location=location,
            )
        )

    return parameters


def _schema_type(type_value: Any) -> str:
    """Reduce a schema ``type`` to a single string, defaulting to ``string``.

    OpenAPI 3.1 allows a list (``["string", "null"]``); the first non-null
    entry wins.
    """
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        return str(non_null[0]) if non_null else "string"
    if not type_value:
        return "string"
    return str(type_value)


def _extract_responses(responses: dict[str, Any]) -> list[ParsedResponse]:
    """One response per status code; content type is the first media type key."""
    result: list[ParsedResponse] = []

    for status_code, response in responses.items():
        response = as_dict(response)
        content = response.get("content")
        content_type: Optional[str] = None
        schema: Any = None
        if isinstance(content, dict) and content:
            content_type, media = next(iter(content.items()))
            schema = as_dict(media).get("schema")
        elif "schema" in response:
            schema = response["schema"]

        result.append(
            ParsedResponse(
                status_code=str(status_code),
                description=optional_str(response.get("description")),
                content_type=content_type,
                schema=schema,
            )
        )

    return result


def _extract_request_schema(body: Any) -> Optional[dict[str, Any]]:
    for media in as_dict(as_dict(body).get("content")).values():
        schema = as_dict(media).get("schema")
        if isinstance(schema, dict):
            return schema
    return None


def _extract_address(document: dict[str, Any]) -> Optional[str]:
    """Base address of the API, or ``None`` when the document declares none."""
    if document.get("swagger"):
        host = document.get("host")
        if host:
            schemes = document.get("schemes") or ["https"]
            return f"{schemes[0]}://{host}{document.get('basePath') or ''}"

    servers = document.get("servers")
    if isinstance(servers, list) and servers:
        url = as_dict(servers[0]).get("url")
        if url:
            return str(url)

    return None
