"""Canonical Pydantic models shared across all speccatalog modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig`, :class:`ParserConfig` and :class:`GlobalConfig`.

**Input model** -- the in-memory file representation handed to the parsing
service: :class:`SerializedFile`.

**Catalog models** -- produced by the extractors and returned by
:class:`~speccatalog.service.SpecificationParsingService`:
    :class:`SpecificationType`, :class:`ParameterLocation`,
    :class:`RpcCallType`, :class:`ParsedParameter`, :class:`ParsedResponse`,
    :class:`ParsedOperation`, :class:`ParsedSpecification` and
    :class:`ResolvedSchema`.

All catalog models are created fresh per parse call and are never mutated by
a later call.
"""

from __future__ import annotations

import enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# --- Config ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class ParserConfig(BaseModel):
    """Tuning knobs for :class:`~speccatalog.service.SpecificationParsingService`.

    The parsing core never loads configuration on its own; the CLI resolves
    a :class:`ParserConfig` through :func:`~speccatalog.config.resolve_config`
    and passes it to the service constructor.
    """

    protocol_hint: Optional[str] = Field(
        default=None,
        description="Transport protocol assumed for AsyncAPI documents that declare none "
        "(e.g. kafka, amqp)",
    )
    preview_chars: int = Field(
        default=1000,
        ge=0,
        description="Number of leading characters kept as metadata for GraphQL/SOAP documents",
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        description="Concurrent parses in parse_many_async; 1 keeps the batch sequential",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/speccatalog/config.json``.

    Loaded and saved by :func:`~speccatalog.config.load_global_config` and
    :func:`~speccatalog.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~speccatalog.config.resolve_config`
    for the full precedence chain.
    """

    output: OutputConfig = Field(default_factory=OutputConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)


# --- Input ---


class SerializedFile(BaseModel):
    """A file as it arrives over the wire from the import UI.

    Mirrors the browser ``File`` shape: the raw bytes plus the name and MIME
    type the user supplied. Decoding to text is done by
    :func:`~speccatalog.files.decode_content`.
    """

    name: str
    size: int = 0
    type: str = ""
    last_modified: int = Field(default=0, description="Epoch milliseconds")
    content: bytes = b""


# --- Catalog ---


class SpecificationType(str, enum.Enum):
    """The interface-description formats the catalog understands."""

    HTTP = "HTTP"
    ASYNC = "ASYNC"
    GRAPHQL = "GRAPHQL"
    GRPC = "GRPC"
    SOAP = "SOAP"


class ParameterLocation(str, enum.Enum):
    """Where a parameter travels, per the OpenAPI ``in`` field."""

    QUERY = "query"
    PATH = "path"
    HEADER = "header"
    BODY = "body"


class RpcCallType(str, enum.Enum):
    """Shape of a gRPC call, derived from its two streaming flags."""

    UNARY = "unary"
    CLIENT_STREAMING = "client_streaming"
    SERVER_STREAMING = "server_streaming"
    BIDIRECTIONAL = "bidirectional"


class ParsedParameter(BaseModel):
    """A single parameter of a :class:`ParsedOperation`."""

    name: str
    type: str = Field(default="string", description="Declared (JSON Schema) type")
    required: bool = False
    description: Optional[str] = None
    location: ParameterLocation = ParameterLocation.QUERY


class ParsedResponse(BaseModel):
    """One response entry, keyed by status code (``"200"``, ``"default"``, ...)."""

    status_code: str
    description: Optional[str] = None
    content_type: Optional[str] = None
    schema_: Optional[Any] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class ParsedOperation(BaseModel):
    """One invokable unit within a specification.

    Depending on the source format this is an HTTP route + verb, a pub/sub
    channel direction, a GraphQL query/mutation/subscription, an RPC method,
    or a SOAP operation. ``method`` carries the format-specific verb
    (``GET``, ``publish``, ``query``, the RPC name, ``soap``).
    """

    id: str
    name: str
    method: str
    path: Optional[str] = None
    description: Optional[str] = None
    parameters: list[ParsedParameter] = Field(default_factory=list)
    responses: list[ParsedResponse] = Field(default_factory=list)
    tags: Optional[list[str]] = None
    request_schema: Optional[dict[str, Any]] = None
    response_schemas: Optional[dict[str, Any]] = None
    request_stream: Optional[bool] = None
    response_stream: Optional[bool] = None
    rpc_type: Optional[RpcCallType] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ParsedSpecification(BaseModel):
    """One parsed document, the unit handed to the import orchestration.

    ``errors`` is non-empty exactly when the document could not be parsed
    into operations, in which case ``operations`` is empty.

    See Also:
        :meth:`speccatalog.service.SpecificationParsingService.parse_one`
    """

    id: str
    name: str
    type: SpecificationType
    version: Optional[str] = None
    description: Optional[str] = None
    operations: list[ParsedOperation] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)

    @property
    def is_error(self) -> bool:
        """Whether this is an error specification."""
        return bool(self.errors)

    def get_operation(self, operation_id: str) -> Optional[ParsedOperation]:
        """Return the operation with *operation_id*, or ``None``."""
        for operation in self.operations:
            if operation.id == operation_id:
                return operation
        return None

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible representation (no model instances)."""
        return self.model_dump(mode="json", by_alias=True)


class ResolvedSchema(BaseModel):
    """A self-contained schema produced by :class:`~speccatalog.parser.resolver.SchemaResolver`.

    ``name`` is the reference with its ``#/components/schemas/`` or
    ``#/components/messages/`` prefix stripped. Every ``$ref`` inside
    ``schema_`` points into its own ``definitions`` map.
    """

    name: str
    schema_: dict[str, Any] = Field(alias="schema")

    model_config = {"populate_by_name": True}
