"""Read ``.proto`` service definitions.

:class:`ProtoParser` is the interface the gRPC extractor depends on; any
object with a matching ``parse`` method can be passed in (e.g. a wrapper
around ``protoc``). :class:`ProtoSchemaParser` is the built-in implementation:
it parses the text with ``proto-schema-parser`` and walks the syntax tree for
the package, ``option java_package``, services and their ``rpc`` methods.
Message and enum definitions are built by
:class:`~speccatalog.proto.definitions.TypeDefinitionBuilder`.

The syntax tree carries no source positions, so the comment directly above
each ``rpc``, ``message`` and ``enum`` is read from the raw text by
:class:`LeadingComments`.
"""

from __future__ import annotations

import re
from collections import defaultdict, deque
from typing import Optional, Protocol

from proto_schema_parser import ast
from proto_schema_parser.parser import Parser

from speccatalog.exceptions import ProtoParseError
from speccatalog.proto.definitions import TypeDefinitionBuilder, option_value, qualify
from speccatalog.proto.types import ProtoDocument, ProtoMethod, ProtoService


class ProtoParser(Protocol):
    """Anything that turns ``.proto`` text into a :class:`ProtoDocument`."""

    def parse(self, content: str) -> ProtoDocument: ...


_DECLARATION = re.compile(r"(rpc|message|enum)\s+([A-Za-z_]\w*)")


def _clean(parts: list[str]) -> Optional[str]:
    lines = [part.strip().lstrip("*").strip() for part in parts]
    return "\n".join(line for line in lines if line) or None


class LeadingComments:
    """Comments written on the lines directly above a declaration.

    A blank line or a line holding code ends a comment block, so a comment
    that trails code on its line never reaches the next declaration.
    Lookups are keyed by declaration keyword and name and consumed in
    document order.
    """

    def __init__(self, content: str) -> None:
        self._comments: dict[tuple[str, str], deque[Optional[str]]] = defaultdict(deque)
        pending: list[str] = []
        in_block = False

        for line in content.splitlines():
            stripped = line.strip()
            if in_block:
                body, closed, _ = stripped.partition("*/")
                pending.append(body)
                in_block = not closed
                continue
            if stripped.startswith("//"):
                pending.append(stripped.lstrip("/"))
                continue
            if stripped.startswith("/*"):
                body, closed, rest = stripped[2:].partition("*/")
                pending.append(body)
                if not closed:
                    in_block = True
                    continue
                stripped = rest.strip()
                if not stripped:
                    continue

            match = _DECLARATION.match(stripped)
            if match:
                self._comments[(match.group(1), match.group(2))].append(_clean(pending))
            pending = []

    def take(self, keyword: str, name: str) -> Optional[str]:
        """Return the comment above the next unread ``keyword name`` declaration."""
        queue = self._comments.get((keyword, name))
        if not queue:
            return None
        return queue.popleft()


class ProtoSchemaParser:
    """Default :class:`ProtoParser`, backed by ``proto-schema-parser``.

    Example::

        document = ProtoSchemaParser().parse(open("greeter.proto").read())
        [m.operation_id for s in document.services for m in s.methods]
        # ['Greeter.SayHello']

    Raises:
        ProtoParseError: On text that does not follow the proto grammar.
    """

    def parse(self, content: str) -> ProtoDocument:
        try:
            tree = Parser().parse(content)
        except Exception as exc:
            raise ProtoParseError(f"Invalid proto syntax: {exc}") from exc

        comments = LeadingComments(content)
        package = ""
        for element in tree.file_elements:
            if isinstance(element, ast.Package):
                package = element.name.lstrip(".")
        java_package = option_value(tree.file_elements, "java_package")

        types = TypeDefinitionBuilder(tree.file_elements, package, comments.take)
        services = [
            _service(element, package, types, comments)
            for element in tree.file_elements
            if isinstance(element, ast.Service)
        ]
        return ProtoDocument(
            package_name=package,
            java_package=java_package,
            services=services,
            type_definitions=types.build(),
        )


def _service(
    service: ast.Service,
    package: str,
    types: TypeDefinitionBuilder,
    comments: LeadingComments,
) -> ProtoService:
    methods = [
        _method(service.name, element, package, types, comments)
        for element in service.elements
        if isinstance(element, ast.Method)
    ]
    return ProtoService(
        name=service.name,
        qualified_name=qualify(package, service.name),
        methods=methods,
    )


def _method(
    service_name: str,
    method: ast.Method,
    package: str,
    types: TypeDefinitionBuilder,
    comments: LeadingComments,
) -> ProtoMethod:
    return ProtoMethod(
        name=method.name,
        operation_id=f"{service_name}.{method.name}",
        request_type=types.resolve(method.input_type.type, package),
        response_type=types.resolve(method.output_type.type, package),
        request_stream=bool(method.input_type.stream),
        response_stream=bool(method.output_type.stream),
        comment=comments.take("rpc", method.name),
    )
