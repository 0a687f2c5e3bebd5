"""Flatten ``$ref`` graphs into self-contained JSON Schema documents.

AsyncAPI (and OpenAPI) documents keep their schemas under a shared
``components`` namespace and point at them with ``$ref`` strings such as
``#/components/schemas/Pet``. Operations in the catalog must not depend on
that namespace once the source document is gone, so this module turns a
reference into a standalone schema:

* the referenced node becomes the schema root,
* every schema transitively reachable from it is copied into a flat
  ``definitions`` map keyed by its component name,
* every ``$ref`` along the way is rewritten from ``#/components/schemas/X``
  (or ``#/components/messages/X``) to ``#/definitions/X``,
* ``$id`` and ``$schema`` (draft-07) headers are added.

Reference graphs may repeat nodes or contain cycles (``A -> B -> A``). The
flattening keeps a set of definition names already visited, so each name is
emitted exactly once and traversal always terminates. Because the result is
keyed by name rather than by object identity, cyclic graphs need no special
casing: the second time ``A`` is reached its ``$ref`` is rewritten and the
walk stops.

The caller's ``components`` mapping is never mutated; all work happens on a
deep copy.

The public entry points are :class:`SchemaResolver` and the convenience
function :func:`resolve_schema_ref`.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional

from speccatalog.models import ResolvedSchema

logger = logging.getLogger(__name__)

COMPONENTS_PREFIX = "#/components"
SCHEMAS_PREFIX = "#/components/schemas/"
MESSAGES_PREFIX = "#/components/messages/"
DEFINITIONS_PREFIX = "#/definitions/"
SCHEMA_ID_DOMAIN = "http://system.catalog/schemas/"
JSON_SCHEMA_DRAFT_URL = "http://json-schema.org/draft-07/schema#"

# Namespaces whose references are rewritten into ``#/definitions/``.
_NAMESPACE_PREFIXES = (SCHEMAS_PREFIX, MESSAGES_PREFIX)

# Keywords holding a sub-schema (or a list of sub-schemas) that may carry refs.
_SUBSCHEMA_KEYWORDS = ("items", "additionalProperties", "allOf", "anyOf", "oneOf")


def schema_name(ref: str) -> str:
    """Strip the components namespace from *ref*.

    ``#/components/messages/UserSignedUp`` becomes ``UserSignedUp``.
    References outside the schemas/messages namespaces are returned as-is.
    """
    for prefix in _NAMESPACE_PREFIXES:
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


def rewrite_ref(ref: str) -> str:
    """Point a components reference at the local ``definitions`` map.

    Returns *ref* unchanged when it is not in the schemas/messages namespace.
    """
    for prefix in _NAMESPACE_PREFIXES:
        if ref.startswith(prefix):
            return DEFINITIONS_PREFIX + ref[len(prefix):]
    return ref


def normalize_message(node: Any) -> None:
    """Unwrap an AsyncAPI message into a plain schema node, in place.

    When *node* has a ``payload`` object its keys are spliced up one level;
    ``payload`` and ``headers`` are then removed. Message-level fields such
    as ``name`` or ``contentType`` are kept. Plain schemas pass through
    unchanged.
    """
    if not isinstance(node, dict):
        return

    payload = node.get("payload")
    if isinstance(payload, dict):
        for key, value in payload.items():
            node[key] = value
        del node["payload"]
    node.pop("headers", None)


class SchemaResolver:
    """Resolve component references into self-contained schemas.

    A resolver holds no state between calls; one instance can be shared by
    every extractor.

    Example::

        resolver = SchemaResolver()
        resolved = resolver.resolve_ref("#/components/schemas/Order", components)
        resolved.name                        # 'Order'
        resolved.schema_["definitions"]      # {'LineItem': {...}, ...}
    """

    def resolve_ref(
        self, ref: str, components: Optional[dict[str, Any]]
    ) -> Optional[ResolvedSchema]:
        """Resolve *ref* against the *components* root.

        Args:
            ref: A reference string; only references starting with
                ``#/components`` are resolved.
            components: The document's ``components`` object. Never mutated.

        Returns:
            The resolved schema, or ``None`` when *ref* is outside the
            components namespace or *components* is ``None``. A reference to a
            missing component resolves to an empty root schema rather than
            raising.
        """
        if not ref.startswith(COMPONENTS_PREFIX) or components is None:
            return None

        cloned_components = copy.deepcopy(components)
        root = _lookup(ref, cloned_components)
        normalize_message(root)

        name = schema_name(ref)
        return self._build(name, root, cloned_components)

    def resolve_node(
        self,
        node: Any,
        components: Optional[dict[str, Any]],
        name: str,
    ) -> ResolvedSchema:
        """Make an inline schema node self-contained.

        Used for AsyncAPI messages that embed their ``payload``/``headers``
        instead of referencing a component: the node is cloned, every
        components reference inside it is rewritten, and the referenced
        schemas are collected into ``definitions`` exactly as
        :meth:`resolve_ref` does for a referenced root.

        Args:
            node: The inline schema. Non-dict values resolve to an empty root.
            components: The document's ``components`` object (may be empty).
                Never mutated.
            name: Name used for ``$id`` and :attr:`ResolvedSchema.name`.
        """
        root = copy.deepcopy(node) if isinstance(node, dict) else {}
        cloned_components = copy.deepcopy(components) if components else {}
        return self._build(name, root, cloned_components)

    def _build(
        self, name: str, root: dict[str, Any], components: dict[str, Any]
    ) -> ResolvedSchema:
        definitions = self._collect_refs(root, components, visited=set())
        logger.debug("Resolved %s with %d definition(s)", name, len(definitions))

        schema = copy.deepcopy(root)
        schema["definitions"] = definitions
        schema["$id"] = SCHEMA_ID_DOMAIN + name
        schema["$schema"] = JSON_SCHEMA_DRAFT_URL
        return ResolvedSchema(name=name, schema=schema)

    def _collect_refs(
        self,
        node: Any,
        components: dict[str, Any],
        visited: set[str],
    ) -> dict[str, Any]:
        """Rewrite refs under *node* in place and return the definitions they reach.

        Walks ``$ref``, ``properties``, ``items``, ``additionalProperties``
        and the ``allOf``/``anyOf``/``oneOf`` composites. Every newly reached
        definition is itself walked, so the returned map is closed under
        traversal.

        Args:
            node: The schema node to walk (dict, list of nodes, or scalar).
            components: The cloned components root used for lookups.
            visited: Definition names already emitted in this resolution.
                Shared across the whole walk (not per branch), which is what
                guarantees each name is emitted once.

        Returns:
            Definition name -> schema node, in discovery order.
        """
        found: dict[str, Any] = {}

        if isinstance(node, list):
            for item in node:
                found.update(self._collect_refs(item, components, visited))
            return found

        if not isinstance(node, dict):
            return found

        if isinstance(node.get("$ref"), str):
            found.update(self._follow_ref(node, components, visited))

        properties = node.get("properties")
        if isinstance(properties, dict):
            for prop in properties.values():
                found.update(self._collect_refs(prop, components, visited))

        for keyword in _SUBSCHEMA_KEYWORDS:
            child = node.get(keyword)
            if isinstance(child, (dict, list)):
                found.update(self._collect_refs(child, components, visited))

        return found

    def _follow_ref(
        self,
        holder: dict[str, Any],
        components: dict[str, Any],
        visited: set[str],
    ) -> dict[str, Any]:
        """Rewrite ``holder["$ref"]`` and pull in its target if not seen yet."""
        original = holder["$ref"]
        rewritten = rewrite_ref(original)
        if rewritten == original:
            # External or non-component reference: leave it alone.
            return {}

        holder["$ref"] = rewritten
        key = rewritten[len(DEFINITIONS_PREFIX):]
        if key in visited:
            return {}
        visited.add(key)

        target = _lookup(original, components)
        normalize_message(target)

        found: dict[str, Any] = {key: target}
        found.update(self._collect_refs(target, components, visited))
        return found


def _lookup(ref: str, components: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of the node *ref* points at inside *components*.

    Missing segments and non-object targets yield an empty dict instead of
    an error. Handles RFC 6901 escaping (``~1`` for ``/``, ``~0`` for ``~``).
    """
    path = ref[len(COMPONENTS_PREFIX):]
    segments = [segment for segment in path.split("/") if segment]

    current: Any = components
    for segment in segments:
        segment = segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            logger.debug("Reference %s not found (missing %r)", ref, segment)
            return {}

    if not isinstance(current, dict):
        return {}
    return copy.deepcopy(current)


def resolve_schema_ref(
    ref: str, components: Optional[dict[str, Any]]
) -> Optional[ResolvedSchema]:
    """Resolve *ref* with a fresh :class:`SchemaResolver`.

    Convenience wrapper for one-off calls; see :meth:`SchemaResolver.resolve_ref`.
    """
    return SchemaResolver().resolve_ref(ref, components)
