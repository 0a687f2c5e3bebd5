"""Infer a :class:`~speccatalog.models.SpecificationType` from a file name.

Detection is purely extension based. ``.yaml``, ``.yml`` and ``.json`` files
are always reported as HTTP (OpenAPI): telling AsyncAPI apart from OpenAPI by
content is not implemented here. Callers that know better pass an explicit
type to :meth:`~speccatalog.service.SpecificationParsingService.parse_one`.
"""

from __future__ import annotations

import logging

from speccatalog.files import get_file_extension
from speccatalog.models import SpecificationType

logger = logging.getLogger(__name__)

DEFAULT_SPECIFICATION_TYPE = SpecificationType.HTTP

_EXTENSION_TYPES: dict[str, SpecificationType] = {
    ".wsdl": SpecificationType.SOAP,
    ".xsd": SpecificationType.SOAP,
    ".proto": SpecificationType.GRPC,
    ".graphql": SpecificationType.GRAPHQL,
    ".gql": SpecificationType.GRAPHQL,
    # TODO: sniff the top-level ``asyncapi`` key so YAML/JSON AsyncAPI files
    # stop defaulting to HTTP.
    ".yaml": SpecificationType.HTTP,
    ".yml": SpecificationType.HTTP,
    ".json": SpecificationType.HTTP,
}


def detect_specification_type(file_name: str) -> SpecificationType:
    """Return the specification type implied by *file_name*'s extension.

    Never fails: unknown or missing extensions fall back to
    :data:`DEFAULT_SPECIFICATION_TYPE`.

    Example::

        >>> detect_specification_type("orders.proto")
        <SpecificationType.GRPC: 'GRPC'>
        >>> detect_specification_type("README")
        <SpecificationType.HTTP: 'HTTP'>
    """
    extension = get_file_extension(file_name)
    detected = _EXTENSION_TYPES.get(extension, DEFAULT_SPECIFICATION_TYPE)
    logger.debug("Detected %s for %r (extension %r)", detected.value, file_name, extension)
    return detected
