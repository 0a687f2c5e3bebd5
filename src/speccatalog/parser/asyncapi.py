"""Extract publish/subscribe operations from AsyncAPI 2.x documents.

Each channel yields up to two operations, one per ``publish``/``subscribe``
block. Connection metadata and message schemas come from
:class:`~speccatalog.parser.operations.ProtocolOperationResolver`, which in
turn relies on :class:`~speccatalog.parser.resolver.SchemaResolver` to make
every schema self-contained.
"""

from __future__ import annotations

import logging
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
)
from speccatalog.parser.loader import format_hint, parse_content
from speccatalog.parser.operations import ProtocolOperationResolver

logger = logging.getLogger(__name__)

UNKNOWN_PROTOCOL = "unknown"

# Local broker address assumed when only ``info.x-protocol`` is known.
_DEFAULT_PROTOCOL_ADDRESSES = {
    "amqp": "amqp://localhost:5672",
    "mqtt": "mqtt://localhost:1883",
    "kafka": "kafka://localhost:9092",
    "redis": "redis://localhost:6379",
    "nats": "nats://localhost:4222",
}

# Order in which operations are emitted for a channel.
_DIRECTIONS = ("subscribe", "publish")


def extract_asyncapi(
    content: str,
    file_name: str,
    config: Optional[ParserConfig] = None,
    operation_resolver: Optional[ProtocolOperationResolver] = None,
) -> ParsedSpecification:
    """Parse *content* as an AsyncAPI document.

    Args:
        content: Decoded JSON or YAML text.
        file_name: Original file name, the fallback specification name.
        config: Supplies ``protocol_hint`` for documents that name no protocol.
        operation_resolver: Resolver for connection metadata and message
            schemas; a default one is created when omitted.

    Raises:
        SpecParseError: If the text is not a JSON/YAML object.
    """
    try:
        document = parse_content(content, hint=format_hint(file_name))
    except SpecParseError as exc:
        raise SpecParseError(f"Failed to parse AsyncAPI specification: {exc}") from exc

    config = config or ParserConfig()
    resolver = operation_resolver or ProtocolOperationResolver()
    protocol = resolve_protocol(document, config.protocol_hint)
    components = document.get("components")
    if not isinstance(components, dict):
        components = None
    logger.debug("AsyncAPI document %s uses protocol %s", file_name, protocol)

    operations: list[ParsedOperation] = []
    for channel_name, channel in as_dict(document.get("channels")).items():
        if not isinstance(channel, dict):
            continue
        channel_name = str(channel_name)
        parameters = _extract_channel_parameters(channel.get("parameters"))

        for direction in _DIRECTIONS:
            operation = channel.get(direction)
            if not isinstance(operation, dict):
                continue
            operations.append(
                _build_operation(
                    direction,
                    channel_name,
                    channel,
                    operation,
                    parameters,
                    protocol,
                    components,
                    resolver,
                )
            )

    info = as_dict(document.get("info"))
    return ParsedSpecification(
        id=new_specification_id(),
        name=optional_str(info.get("title")) or get_file_name_without_extension(file_name),
        type=SpecificationType.ASYNC,
        version=optional_str(info.get("version")),
        description=optional_str(info.get("description")),
        operations=ensure_unique_ids(operations),
        metadata={
            "asyncapi": document.get("asyncapi"),
            "info": document.get("info"),
            "servers": document.get("servers"),
            "protocol": protocol,
            "address": extract_address(document),
        },
    )


def resolve_protocol(document: dict[str, Any], protocol_hint: Optional[str] = None) -> str:
    """Work out the transport protocol of an AsyncAPI document.

    Checked in order: ``info.x-protocol``, the ``main`` server's protocol,
    the first server's protocol, *protocol_hint*. Falls back to
    ``"unknown"``.
    """
    x_protocol = as_dict(document.get("info")).get("x-protocol")
    if x_protocol:
        return str(x_protocol)

    servers = as_dict(document.get("servers"))
    main_protocol = as_dict(servers.get("main")).get("protocol")
    if main_protocol:
        return str(main_protocol)

    first_protocol = as_dict(_first_server(servers)).get("protocol")
    if first_protocol:
        return str(first_protocol)

    return protocol_hint or UNKNOWN_PROTOCOL


def extract_address(document: dict[str, Any]) -> Optional[str]:
    """Broker address of an AsyncAPI document, or ``None``.

    An ``info.x-protocol`` declaration maps to the protocol's default local
    address; otherwise the ``main`` server URL, then the first server URL.
    """
    x_protocol = as_dict(document.get("info")).get("x-protocol")
    if x_protocol:
        protocol = str(x_protocol).lower()
        return _DEFAULT_PROTOCOL_ADDRESSES.get(protocol, f"{protocol}://localhost")

    servers = as_dict(document.get("servers"))
    main_url = as_dict(servers.get("main")).get("url")
    if main_url:
        return str(main_url)

    first_url = as_dict(_first_server(servers)).get("url")
    return str(first_url) if first_url else None


def _first_server(servers: dict[str, Any]) -> Any:
    return next(iter(servers.values()), None)


def _build_operation(
    direction: str,
    channel_name: str,
    channel: dict[str, Any],
    operation: dict[str, Any],
    parameters: list[ParsedParameter],
    protocol: str,
    components: Optional[dict[str, Any]],
    resolver: ProtocolOperationResolver,
) -> ParsedOperation:
    operation_id = f"{direction}_{channel_name}"
    resolved = resolver.resolve(
        protocol, channel_name, operation_id, channel, operation, components
    )

    message = as_dict(operation.get("message"))
    schema: Any = None
    if len(resolved.response_schemas) == 1:
        schema = next(iter(resolved.response_schemas.values()))

    default_name = f"{direction.capitalize()} to {channel_name}"
    return ParsedOperation(
        id=operation_id,
        name=(
            optional_str(operation.get("summary"))
            or optional_str(operation.get("operationId"))
            or default_name
        ),
        method=direction,
        path=channel_name,
        description=optional_str(operation.get("description") or channel.get("description")),
        parameters=[p.model_copy() for p in parameters],
        responses=[
            ParsedResponse(
                status_code="200",
                description=optional_str(message.get("description") or message.get("summary")),
                content_type=optional_str(message.get("contentType")),
                schema=schema,
            )
        ],
        tags=["asyncapi", direction],
        request_schema=resolved.request_schemas or None,
        response_schemas=resolved.response_schemas,
        metadata=resolved.metadata,
    )


def _extract_channel_parameters(params: Any) -> list[ParsedParameter]:
    """Map channel parameters (``{userId}`` placeholders) to path parameters."""
    parameters: list[ParsedParameter] = []
    for name, param in as_dict(params).items():
        param = as_dict(param)
        schema = as_dict(param.get("schema"))
        parameters.append(
            ParsedParameter(
                name=str(name),
                type=str(schema.get("type") or "string"),
                required=True,
                description=optional_str(param.get("description")),
                location=ParameterLocation.PATH,
            )
        )
    return parameters
