"""Data shapes exchanged between the proto parser and the gRPC extractor."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ProtoMethod(BaseModel):
    """One ``rpc`` declaration.

    ``request_type``/``response_type`` are fully qualified (no leading dot)
    whenever the parser could resolve them against the document.
    """

    name: str
    operation_id: str
    request_type: str
    response_type: str
    request_stream: bool = False
    response_stream: bool = False
    comment: Optional[str] = None


class ProtoService(BaseModel):
    """A ``service`` block."""

    name: str
    qualified_name: str
    methods: list[ProtoMethod] = Field(default_factory=list)


class ProtoDocument(BaseModel):
    """Structured view of a ``.proto`` file.

    ``type_definitions`` maps fully qualified message/enum names (plus the
    shared scalar builtins such as ``int64``) to draft-07 schema nodes whose
    ``$ref`` values point at other keys of the same map.
    """

    package_name: str = ""
    java_package: Optional[str] = None
    services: list[ProtoService] = Field(default_factory=list)
    type_definitions: dict[str, dict[str, Any]] = Field(default_factory=dict)


class ResolvedProtoOperation(BaseModel):
    """An RPC method with self-contained request/response schemas."""

    operation_id: str
    service_name: str
    rpc_name: str
    path: str
    summary: Optional[str] = None
    request_type: str
    response_type: str
    request_stream: bool = False
    response_stream: bool = False
    request_schema: dict[str, Any] = Field(default_factory=dict)
    response_schema: dict[str, Any] = Field(default_factory=dict)
