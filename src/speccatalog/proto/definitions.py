"""Turn the messages and enums of a proto syntax tree into JSON Schema (draft-07) definitions.

The result is a flat map keyed by fully qualified type name. Scalar types
that need a ``format`` (all integer widths, ``bytes``) are shared entries of
the same map and are referenced with ``$ref``; ``bool`` and ``string`` are
inlined.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Optional, Sequence, Union

from proto_schema_parser import ast

logger = logging.getLogger(__name__)

DEFINITIONS_PREFIX = "#/definitions/"

CommentLookup = Callable[[str, str], Optional[str]]


def _integer(fmt: str) -> dict[str, Any]:
    return {"type": "number", "format": fmt}


SCALAR_DEFINITIONS: dict[str, dict[str, Any]] = {
    "float": {"type": "number"},
    "double": {"type": "number"},
    "int32": _integer("int32"),
    "int64": _integer("int64"),
    "uint32": _integer("int32"),
    "uint64": _integer("int64"),
    "sint32": _integer("int32"),
    "sint64": _integer("int64"),
    "fixed32": _integer("int32"),
    "fixed64": _integer("int64"),
    "sfixed32": _integer("int32"),
    "sfixed64": _integer("int64"),
    "bytes": {"type": "string", "format": "bytes"},
}

INLINE_SCALARS: dict[str, dict[str, Any]] = {
    "bool": {"type": "boolean"},
    "string": {"type": "string"},
}

_BUILTIN_TYPES = frozenset(SCALAR_DEFINITIONS) | frozenset(INLINE_SCALARS)


def qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def option_value(options: Sequence[Any], name: str) -> Optional[str]:
    """Return the string value of option *name*, or ``None`` when absent or not a string."""
    for option in options:
        if isinstance(option, ast.Option) and option.name == name:
            value = option.value
            if isinstance(value, str):
                return value.strip("\"'")
    return None


def type_node(type_name: str) -> dict[str, Any]:
    """Schema node for a field or RPC type: an inline scalar or a ``$ref``."""
    inline = INLINE_SCALARS.get(type_name)
    if inline is not None:
        return dict(inline)
    return {"$ref": DEFINITIONS_PREFIX + type_name}


class TypeDefinitionBuilder:
    """Collect the messages and enums of one proto file and emit their definitions.

    Declarations are named after their package and enclosing messages.
    Field and RPC types are resolved with protobuf scoping rules, innermost
    scope first.

    Args:
        elements: Top-level elements of the parsed file.
        package: The file's package, ``""`` when it declares none.
        comment: Returns the comment written above a declaration, called
            as ``comment("message", name)`` in document order.
    """

    def __init__(
        self,
        elements: Sequence[Any],
        package: str,
        comment: CommentLookup,
    ) -> None:
        self._messages: list[tuple[str, ast.Message, Optional[str]]] = []
        self._enums: list[tuple[str, ast.Enum, Optional[str]]] = []
        self._collect(elements, package, comment)
        self._known_types = {name for name, _, _ in self._messages} | {
            name for name, _, _ in self._enums
        }

    def _collect(self, elements: Sequence[Any], scope: str, comment: CommentLookup) -> None:
        for element in elements:
            if isinstance(element, ast.Message):
                full_name = qualify(scope, element.name)
                self._messages.append((full_name, element, comment("message", element.name)))
                self._collect(element.elements, full_name, comment)
            elif isinstance(element, ast.Enum):
                full_name = qualify(scope, element.name)
                self._enums.append((full_name, element, comment("enum", element.name)))

    def resolve(self, type_name: str, scope: str) -> str:
        """Resolve *type_name* as seen from *scope*.

        Names that match no declared type are returned without a leading dot.
        """
        if type_name in _BUILTIN_TYPES:
            return type_name
        if type_name.startswith("."):
            return type_name[1:]

        parts = scope.split(".") if scope else []
        while True:
            candidate = ".".join([*parts, type_name])
            if candidate in self._known_types:
                return candidate
            if not parts:
                return type_name
            parts.pop()

    def build(self) -> dict[str, dict[str, Any]]:
        """Build the definitions map for the whole file.

        Types referenced by a field but not declared in the file (typically
        imports such as ``google.protobuf.Timestamp``) get a permissive
        ``{"type": "object"}`` entry so every ``$ref`` in the map resolves.
        """
        definitions: dict[str, dict[str, Any]] = {
            name: dict(schema) for name, schema in SCALAR_DEFINITIONS.items()
        }
        referenced: list[tuple[str, str]] = []

        for full_name, message, description in self._messages:
            definitions[full_name] = self._message_definition(
                full_name, message, description, referenced
            )
        for full_name, enum, description in self._enums:
            definitions[full_name] = _enum_definition(enum, description)

        for type_name, used_by in referenced:
            if type_name in INLINE_SCALARS or type_name in definitions:
                continue
            logger.warning(
                "Type %s used by %s is not declared; treating it as an object",
                type_name,
                used_by,
            )
            definitions[type_name] = {"type": "object"}

        return definitions

    def _message_definition(
        self,
        full_name: str,
        message: ast.Message,
        description: Optional[str],
        referenced: list[tuple[str, str]],
    ) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        required: list[str] = []

        for decl in _fields(message.elements):
            json_name = option_value(decl.options, "json_name") or decl.name
            if isinstance(decl, ast.MapField):
                type_name = self.resolve(decl.value_type, full_name)
                node = {"type": "object", "additionalProperties": type_node(type_name)}
            else:
                type_name = self.resolve(decl.type, full_name)
                node = type_node(type_name)
                if decl.cardinality == ast.FieldCardinality.REPEATED:
                    node = {"type": "array", "items": node}
                elif decl.cardinality == ast.FieldCardinality.REQUIRED:
                    required.append(json_name)
            properties[json_name] = node
            referenced.append((type_name, f"{full_name}.{decl.name}"))

        definition: dict[str, Any] = {
            "type": "object",
            "properties": properties,
            "additionalProperties": False,
        }
        if description:
            definition["description"] = description
        if required:
            definition["required"] = required
        return definition


def _fields(elements: Sequence[Any]) -> Iterator[Union[ast.Field, ast.MapField]]:
    """Yield the fields of a message, flattening ``oneof`` members."""
    for element in elements:
        if isinstance(element, (ast.Field, ast.MapField)):
            yield element
        elif isinstance(element, ast.OneOf):
            yield from _fields(element.elements)


def _enum_definition(enum: ast.Enum, description: Optional[str]) -> dict[str, Any]:
    values = [value.name for value in enum.elements if isinstance(value, ast.EnumValue)]
    definition: dict[str, Any] = {"type": "string", "enum": values}
    if description:
        definition["description"] = description
    return definition
