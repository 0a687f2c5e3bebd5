"""Extract operations from WSDL documents.

The WSDL is scanned with regular expressions rather than an XML parser:
only the first ``portType`` block is read, and every ``operation`` inside it
becomes a catalog operation. Tags may carry a namespace prefix
(``wsdl:portType``). A document without a ``portType`` is a valid, empty
catalog.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from speccatalog.files import get_file_name_without_extension
from speccatalog.models import ParsedOperation, ParsedSpecification, ParserConfig, SpecificationType
from speccatalog.parser.common import ensure_unique_ids, new_specification_id, preview


def _attribute(name: str, group: str = "value") -> str:
    """Pattern for ``name="..."`` or ``name='...'``, captured as *group*."""
    return rf"\b{name}\s*=\s*(?P<{group}_quote>[\"'])(?P<{group}>.*?)(?P={group}_quote)"


_PORT_TYPE = re.compile(
    rf"<(?:\w+:)?portType\b[^>]*{_attribute('name')}[^>]*>(?P<body>.*?)</(?:\w+:)?portType>",
    re.DOTALL,
)
_OPERATION = re.compile(rf"<(?:\w+:)?operation\b[^>]*{_attribute('name')}")
_DEFINITIONS = re.compile(r"<(?:\w+:)?definitions\b([^>]*)>")
_SERVICE = re.compile(rf"<(?:\w+:)?service\b[^>]*{_attribute('name')}")
_PORT = re.compile(rf"<(?:\w+:)?port\b[^>]*{_attribute('name')}")
_ADDRESS = re.compile(rf"<(?:\w+:)?address\b[^>]*{_attribute('location')}")
_TARGET_NAMESPACE = re.compile(_attribute("targetNamespace"))
_NAME_ATTRIBUTE = re.compile(_attribute("name"))


def extract_soap(
    content: str, file_name: str, config: Optional[ParserConfig] = None
) -> ParsedSpecification:
    """Scan a WSDL document for the operations of its first ``portType``.

    The port type's ``name`` attribute is used as the service name.
    """
    config = config or ParserConfig()
    operations: list[ParsedOperation] = []

    port_type = _PORT_TYPE.search(content)
    if port_type:
        service_name, body = port_type.group("value"), port_type.group("body")
        for match in _OPERATION.finditer(body):
            operation_name = match.group("value")
            operations.append(
                ParsedOperation(
                    id=f"soap_{operation_name}",
                    name=operation_name,
                    method="soap",
                    description=f"SOAP operation in {service_name}",
                    tags=["soap", service_name.lower()],
                )
            )

    return ParsedSpecification(
        id=new_specification_id(),
        name=get_file_name_without_extension(file_name),
        type=SpecificationType.SOAP,
        operations=ensure_unique_ids(operations),
        metadata=_extract_metadata(content, config.preview_chars),
    )


def _extract_metadata(content: str, preview_chars: int) -> dict[str, Any]:
    metadata: dict[str, Any] = {"content": preview(content, preview_chars)}

    definitions = _DEFINITIONS.search(content)
    if definitions:
        attributes = definitions.group(1)
        namespace = _TARGET_NAMESPACE.search(attributes)
        if namespace:
            metadata["target_namespace"] = namespace.group("value")
        name = _NAME_ATTRIBUTE.search(attributes)
        if name:
            metadata["definitions_name"] = name.group("value")

    for key, pattern in (
        ("service_name", _SERVICE),
        ("port_name", _PORT),
        ("address", _ADDRESS),
    ):
        match = pattern.search(content)
        if match:
            metadata[key] = match.group("value")

    return metadata
