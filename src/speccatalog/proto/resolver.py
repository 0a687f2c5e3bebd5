"""Resolve the RPC methods of a :class:`ProtoDocument` into catalog-ready operations."""

from __future__ import annotations

import copy
import logging
from typing import Any

from speccatalog.proto.definitions import DEFINITIONS_PREFIX, INLINE_SCALARS
from speccatalog.proto.types import ProtoDocument, ResolvedProtoOperation

logger = logging.getLogger(__name__)

SCHEMA_ID_DOMAIN = "http://system.catalog/schemas/"
JSON_SCHEMA_DRAFT_URL = "http://json-schema.org/draft-07/schema#"


class ProtoOperationResolver:
    """Build self-contained request/response schemas for every RPC method.

    Each schema is a ``$ref`` to the method's fully qualified message type
    plus a ``definitions`` map holding exactly the types reachable from it.

    Args:
        document: The parsed proto document. Not mutated.
    """

    def __init__(self, document: ProtoDocument) -> None:
        self._document = document

    def resolve(self) -> list[ResolvedProtoOperation]:
        """Return one resolved operation per RPC method, in declaration order."""
        document = self._document
        base_package = document.java_package or document.package_name
        operations: list[ResolvedProtoOperation] = []

        for service in document.services:
            path = _qualify(base_package, service.name)
            for method in service.methods:
                operations.append(
                    ResolvedProtoOperation(
                        operation_id=method.operation_id,
                        service_name=service.name,
                        rpc_name=method.name,
                        path=path,
                        summary=method.comment,
                        request_type=method.request_type,
                        response_type=method.response_type,
                        request_stream=method.request_stream,
                        response_stream=method.response_stream,
                        request_schema=self.build_schema(
                            method.request_type, "requests", method.operation_id
                        ),
                        response_schema=self.build_schema(
                            method.response_type, "responses", method.operation_id
                        ),
                    )
                )

        return operations

    def build_schema(self, type_name: str, kind: str, operation_id: str) -> dict[str, Any]:
        """Self-contained schema for *type_name*.

        Args:
            type_name: Message type, qualified or relative to the package.
            kind: ``requests`` or ``responses``; part of the ``$id``.
            operation_id: Operation id; part of the ``$id``.
        """
        package = self._document.package_name
        qualified = _ensure_qualified(type_name, package)

        definitions: dict[str, Any] = {}
        self._collect_related_types(qualified, definitions)
        if qualified not in definitions and qualified not in INLINE_SCALARS:
            logger.warning("Message type %s is not declared; treating it as an object", qualified)
            definitions[qualified] = {"type": "object"}

        return {
            "$id": f"{SCHEMA_ID_DOMAIN}{kind}/{_qualify(package, operation_id)}",
            "$schema": JSON_SCHEMA_DRAFT_URL,
            "$ref": DEFINITIONS_PREFIX + qualified,
            "definitions": definitions,
        }

    def _collect_related_types(self, type_name: str, target: dict[str, Any]) -> None:
        if type_name in target:
            return
        definition = self._document.type_definitions.get(type_name)
        if definition is None:
            return

        target[type_name] = copy.deepcopy(definition)
        for referenced in _referenced_type_names(definition):
            self._collect_related_types(referenced, target)


def _referenced_type_names(node: Any) -> list[str]:
    if not isinstance(node, dict):
        return []

    ref = node.get("$ref")
    if isinstance(ref, str):
        return [ref[ref.rfind("/") + 1:]]

    names: list[str] = []
    properties = node.get("properties")
    if isinstance(properties, dict):
        for value in properties.values():
            names.extend(_referenced_type_names(value))
    names.extend(_referenced_type_names(node.get("additionalProperties")))
    names.extend(_referenced_type_names(node.get("items")))
    return names


def _qualify(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _ensure_qualified(type_name: str, package: str) -> str:
    if type_name.startswith("."):
        return type_name[1:]
    if "." in type_name or type_name in INLINE_SCALARS:
        return type_name
    return _qualify(package, type_name)
