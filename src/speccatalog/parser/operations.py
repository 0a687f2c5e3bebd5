"""Resolve protocol-specific connection metadata and message schemas for AsyncAPI operations.

An AsyncAPI operation (one direction of one channel) is only invokable once
we know *where* it talks to -- a Kafka topic, an AMQP queue/exchange -- and
*what* it carries. :class:`ProtocolOperationResolver` answers both:

* connection metadata depends on the transport protocol. Streaming-log
  protocols (``kafka``, ``kafka-streams``) yield the topic and an optional
  classifier name; queue protocols (``amqp``, ``rabbit``, ``rabbitmq``)
  read the channel's ``bindings.amqp`` block. Other protocols yield no
  metadata.
* message schemas are delegated to
  :class:`~speccatalog.parser.resolver.SchemaResolver`, independent of the
  protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from speccatalog.parser.resolver import SchemaResolver

STREAMING_PROTOCOLS = frozenset({"kafka", "kafka-streams"})
QUEUE_PROTOCOLS = frozenset({"amqp", "rabbit", "rabbitmq"})

_COMPOSITE_KEYWORDS = ("oneOf", "allOf", "anyOf")
_EMBEDDED_MESSAGE_FIELDS = ("payload", "headers")


@dataclass
class ResolvedOperationData:
    """What :meth:`ProtocolOperationResolver.resolve` found for one operation.

    Attributes:
        metadata: Protocol connection details (``topic``, ``queue``, ...).
        request_schemas: Always empty for AsyncAPI operations; kept so the
            shape matches the other transports.
        response_schemas: Resolved message schemas keyed by schema name
            (or ``payload``/``headers`` for embedded messages).
    """

    metadata: dict[str, Any] = field(default_factory=dict)
    request_schemas: dict[str, Any] = field(default_factory=dict)
    response_schemas: dict[str, Any] = field(default_factory=dict)


class ProtocolOperationResolver:
    """Compute connection metadata and message schemas for a channel operation.

    Args:
        schema_resolver: Resolver used for message schemas. A fresh
            :class:`SchemaResolver` is created when omitted.
    """

    def __init__(self, schema_resolver: Optional[SchemaResolver] = None) -> None:
        self._schema_resolver = schema_resolver or SchemaResolver()

    def resolve(
        self,
        protocol: Optional[str],
        channel_name: str,
        operation_id: str,
        channel: Any,
        operation: Any,
        components: Optional[dict[str, Any]],
    ) -> ResolvedOperationData:
        """Resolve one ``publish``/``subscribe`` block.

        Args:
            protocol: Transport protocol hint, case-insensitive.
            channel_name: Key of the channel in the document's ``channels``.
            operation_id: Identifier of the operation, used to name schemas
                of embedded messages.
            channel: The channel object (source of ``bindings``).
            operation: The ``publish`` or ``subscribe`` object.
            components: The document's ``components`` object, if any.

        Returns:
            The resolved data; empty when *operation* is not an object.
        """
        if not isinstance(operation, dict):
            return ResolvedOperationData()

        protocol_key = (protocol or "").lower()
        if protocol_key in STREAMING_PROTOCOLS:
            metadata = _streaming_metadata(channel_name, operation)
        elif protocol_key in QUEUE_PROTOCOLS:
            metadata = _queue_metadata(channel)
        else:
            metadata = {}

        return ResolvedOperationData(
            metadata=metadata,
            response_schemas=self.resolve_message(
                operation_id, operation.get("message"), components
            ),
        )

    def resolve_message(
        self,
        operation_id: str,
        message: Any,
        components: Optional[dict[str, Any]],
    ) -> dict[str, Any]:
        """Resolve an operation's ``message`` into a map of self-contained schemas.

        Resolution order:

        1. Embedded ``payload``/``headers`` objects are cloned and made
           self-contained, keyed ``payload``/``headers``.
        2. A direct ``$ref`` resolves to ``{<schema name>: schema}``.
        3. A ``oneOf``/``allOf``/``anyOf`` list of refs resolves each entry,
           keyed by each resolved schema's own name.

        Returns an empty dict when there is no message.
        """
        if not isinstance(message, dict):
            return {}

        embedded = {
            key: message[key]
            for key in _EMBEDDED_MESSAGE_FIELDS
            if isinstance(message.get(key), dict)
        }
        if embedded:
            return {
                key: self._schema_resolver.resolve_node(
                    node, components, f"{operation_id}/{key}"
                ).schema_
                for key, node in embedded.items()
            }

        ref = message.get("$ref")
        if isinstance(ref, str):
            resolved = self._schema_resolver.resolve_ref(ref, components)
            if resolved is None:
                return {}
            return {resolved.name or operation_id: resolved.schema_}

        for keyword in _COMPOSITE_KEYWORDS:
            refs = message.get(keyword)
            if isinstance(refs, list):
                return self._resolve_composite(refs, components)

        return {}

    def _resolve_composite(
        self, refs: list[Any], components: Optional[dict[str, Any]]
    ) -> dict[str, Any]:
        resolved_schemas: dict[str, Any] = {}
        for entry in refs:
            if isinstance(entry, dict) and isinstance(entry.get("$ref"), str):
                resolved = self._schema_resolver.resolve_ref(entry["$ref"], components)
                if resolved is not None:
                    resolved_schemas[resolved.name] = resolved.schema_
        return resolved_schemas


def _streaming_metadata(channel_name: str, operation: dict[str, Any]) -> dict[str, Any]:
    metadata: dict[str, Any] = {"topic": channel_name}

    classifier = operation.get("x-maas-classifier-name")
    if classifier is None:
        classifier = operation.get("maasClassifierName")
    if isinstance(classifier, str) and classifier.strip():
        metadata["maasClassifierName"] = classifier

    return metadata


def _queue_metadata(channel: Any) -> dict[str, Any]:
    if not isinstance(channel, dict):
        return {}

    bindings = channel.get("bindings")
    amqp = bindings.get("amqp") if isinstance(bindings, dict) else None
    if not isinstance(amqp, dict):
        return {}

    metadata: dict[str, Any] = {}

    username = amqp.get("userId")
    if isinstance(username, str) and username:
        metadata["username"] = username

    queue = amqp.get("queue")
    queue_name = queue.get("name") if isinstance(queue, dict) else None
    if isinstance(queue_name, str) and queue_name:
        metadata["queue"] = queue_name

    exchange = amqp.get("exchange")
    exchange_name = exchange.get("name") if isinstance(exchange, dict) else None
    if isinstance(exchange_name, str) and exchange_name:
        metadata["exchangeName"] = exchange_name

    return metadata
