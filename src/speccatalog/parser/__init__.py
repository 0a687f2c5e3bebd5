"""Format-specific extractors plus the shared schema resolution machinery.

This sub-package turns decoded specification text into a
:class:`~speccatalog.models.ParsedSpecification`. One extractor exists per
:class:`~speccatalog.models.SpecificationType`; all share the signature
``extract_xxx(content, file_name, config=None)``.

Typical usage::

    from speccatalog.parser import detect_specification_type, EXTRACTORS

    kind = detect_specification_type("petstore.yaml")
    spec = EXTRACTORS[kind](text, "petstore.yaml")

Sub-modules:

* :mod:`~speccatalog.parser.detector` -- file-extension based format detection.
* :mod:`~speccatalog.parser.loader` -- JSON-then-YAML text loading.
* :mod:`~speccatalog.parser.resolver` -- ``$ref`` flattening into
  self-contained schemas.
* :mod:`~speccatalog.parser.operations` -- AsyncAPI protocol metadata and
  message schemas.
* :mod:`~speccatalog.parser.openapi`, :mod:`~speccatalog.parser.asyncapi`,
  :mod:`~speccatalog.parser.graphql`, :mod:`~speccatalog.parser.grpc`,
  :mod:`~speccatalog.parser.soap` -- the extractors.
"""

from typing import Callable

from speccatalog.models import ParsedSpecification, SpecificationType
from speccatalog.parser.asyncapi import extract_asyncapi
from speccatalog.parser.detector import detect_specification_type
from speccatalog.parser.graphql import extract_graphql
from speccatalog.parser.grpc import extract_grpc, resolve_rpc_call_type
from speccatalog.parser.openapi import extract_openapi
from speccatalog.parser.operations import ProtocolOperationResolver
from speccatalog.parser.resolver import SchemaResolver, resolve_schema_ref
from speccatalog.parser.soap import extract_soap

Extractor = Callable[..., ParsedSpecification]

EXTRACTORS: dict[SpecificationType, Extractor] = {
    SpecificationType.HTTP: extract_openapi,
    SpecificationType.ASYNC: extract_asyncapi,
    SpecificationType.GRAPHQL: extract_graphql,
    SpecificationType.GRPC: extract_grpc,
    SpecificationType.SOAP: extract_soap,
}

__all__ = [
    "EXTRACTORS",
    "Extractor",
    "ProtocolOperationResolver",
    "SchemaResolver",
    "detect_specification_type",
    "extract_asyncapi",
    "extract_graphql",
    "extract_grpc",
    "extract_openapi",
    "extract_soap",
    "resolve_rpc_call_type",
    "resolve_schema_ref",
]
