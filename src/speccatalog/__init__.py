"""speccatalog -- Normalize interface descriptions into one operation catalog.

This package reads OpenAPI, AsyncAPI, GraphQL, Protocol Buffers and WSDL
documents and turns each into a
:class:`~speccatalog.models.ParsedSpecification`: a flat list of operations
whose request/response schemas are fully self-contained (every ``$ref``
points into the schema's own ``definitions``).

Typical usage::

    from speccatalog import parse_one
    from speccatalog.files import serialized_file_from_path

    spec = parse_one(serialized_file_from_path("petstore.yaml"))
    for operation in spec.operations:
        print(operation.id, operation.method, operation.path)

Parsing never raises: a document that cannot be parsed comes back with a
non-empty ``errors`` list.

Modules:
    service: :class:`SpecificationParsingService`, the top-level dispatcher.
    parser: Format detection, the five extractors, and ``$ref`` resolution.
    proto: The ``.proto`` parsing collaborator.
    models: Pydantic models shared across the package.
    files: Reading files, URLs and stdin into serialized files.
    config: XDG-aware configuration with precedence resolution.
    app: Typer CLI entry point.
"""

from __future__ import annotations

from typing import Optional, Sequence

from speccatalog.models import ParsedSpecification, SerializedFile, SpecificationType
from speccatalog.service import SpecificationParsingService

__version__ = "0.1.0"

__all__ = ["SpecificationParsingService", "parse_many", "parse_one"]


def parse_one(
    file: SerializedFile, specification_type: Optional[SpecificationType] = None
) -> ParsedSpecification:
    """Parse one serialized file with a default service.

    See :meth:`speccatalog.service.SpecificationParsingService.parse_one`.
    """
    return SpecificationParsingService().parse_one(file, specification_type)


def parse_many(
    files: Sequence[SerializedFile],
    specification_type: Optional[SpecificationType] = None,
) -> list[ParsedSpecification]:
    """Parse serialized files in order with a default service.

    See :meth:`speccatalog.service.SpecificationParsingService.parse_many`.
    """
    return SpecificationParsingService().parse_many(files, specification_type)
