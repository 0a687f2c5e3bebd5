"""Proto-parsing collaborator used by the gRPC extractor."""

from speccatalog.proto.parser import ProtoParser, ProtoSchemaParser
from speccatalog.proto.resolver import ProtoOperationResolver
from speccatalog.proto.types import (
    ProtoDocument,
    ProtoMethod,
    ProtoService,
    ResolvedProtoOperation,
)

__all__ = [
    "ProtoDocument",
    "ProtoMethod",
    "ProtoOperationResolver",
    "ProtoParser",
    "ProtoService",
    "ProtoSchemaParser",
    "ResolvedProtoOperation",
]
