"""Build catalog operations from ``.proto`` service definitions.

Parsing the proto text is delegated to a :class:`~speccatalog.proto.ProtoParser`
(the built-in :class:`~speccatalog.proto.ProtoSchemaParser` by default); this
module only maps the resolved RPC methods onto
:class:`~speccatalog.models.ParsedOperation`.
"""

from __future__ import annotations

import logging
from typing import Optional

from speccatalog.exceptions import ProtoParseError, SpecParseError
from speccatalog.files import get_file_name_without_extension
from speccatalog.models import (
    ParsedOperation,
    ParsedResponse,
    ParsedSpecification,
    ParserConfig,
    RpcCallType,
    SpecificationType,
)
from speccatalog.parser.common import clone_json, ensure_unique_ids, new_specification_id
from speccatalog.proto import ProtoOperationResolver, ProtoParser, ProtoSchemaParser
from speccatalog.proto.types import ProtoDocument, ResolvedProtoOperation

logger = logging.getLogger(__name__)

GRPC_CONTENT_TYPE = "application/json"


def resolve_rpc_call_type(request_stream: bool, response_stream: bool) -> RpcCallType:
    """Classify an RPC by its streaming flags.

    >>> resolve_rpc_call_type(False, True)
    <RpcCallType.SERVER_STREAMING: 'server_streaming'>
    """
    if request_stream and response_stream:
        return RpcCallType.BIDIRECTIONAL
    if request_stream:
        return RpcCallType.CLIENT_STREAMING
    if response_stream:
        return RpcCallType.SERVER_STREAMING
    return RpcCallType.UNARY


def extract_grpc(
    content: str,
    file_name: str,
    config: Optional[ParserConfig] = None,
    proto_parser: Optional[ProtoParser] = None,
) -> ParsedSpecification:
    """Parse *content* as a ``.proto`` file.

    Args:
        content: Decoded proto text.
        file_name: Original file name, used as the specification name.
        config: Unused; accepted so every extractor shares one signature.
        proto_parser: Proto-parsing collaborator; defaults to
            :class:`~speccatalog.proto.ProtoSchemaParser`.

    Raises:
        ProtoParseError: If the collaborator fails to parse or resolve the text.
        SpecParseError: If the document declares no RPC methods.
    """
    parser = proto_parser or ProtoSchemaParser()
    try:
        document = parser.parse(content)
        resolved = ProtoOperationResolver(document).resolve()
    except Exception as exc:
        raise ProtoParseError(f"Failed to parse gRPC specification: {exc}") from exc

    if not resolved:
        raise SpecParseError(
            "Failed to parse gRPC specification: No RPC methods found in proto file"
        )

    logger.debug("Resolved %d RPC method(s) from %s", len(resolved), file_name)
    operations = [_build_operation(op, document) for op in resolved]

    return ParsedSpecification(
        id=new_specification_id(),
        name=get_file_name_without_extension(file_name),
        type=SpecificationType.GRPC,
        operations=ensure_unique_ids(operations),
        metadata={
            "package_name": document.package_name,
            "java_package": document.java_package,
            "service_count": len(document.services),
            "services": [
                {
                    "name": service.name,
                    "qualified_name": service.qualified_name,
                    "method_count": len(service.methods),
                }
                for service in document.services
            ],
        },
    )


def _build_operation(
    operation: ResolvedProtoOperation, document: ProtoDocument
) -> ParsedOperation:
    response_schema = operation.response_schema
    return ParsedOperation(
        id=f"rpc_{operation.operation_id}",
        name=operation.operation_id,
        method=operation.rpc_name,
        path=operation.path,
        description=operation.summary,
        responses=[
            ParsedResponse(
                status_code="200",
                description="gRPC response",
                content_type=GRPC_CONTENT_TYPE,
                schema=clone_json(response_schema),
            )
        ],
        tags=["grpc", operation.service_name.lower()],
        request_schema=clone_json(operation.request_schema),
        response_schemas={"200": clone_json(response_schema)},
        request_stream=operation.request_stream,
        response_stream=operation.response_stream,
        rpc_type=resolve_rpc_call_type(operation.request_stream, operation.response_stream),
        metadata={
            "service_name": operation.service_name,
            "package_name": document.package_name,
            "request_type": operation.request_type,
            "response_type": operation.response_type,
        },
    )
