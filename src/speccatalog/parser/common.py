"""Helpers shared by the format-specific extractors."""

from __future__ import annotations

import copy
import logging
import uuid
from typing import Any, Optional, TypeVar

from speccatalog.models import ParsedOperation

logger = logging.getLogger(__name__)

T = TypeVar("T")


def new_specification_id() -> str:
    """Fresh random identifier for a parsed specification."""
    return str(uuid.uuid4())


def clone_json(value: T) -> T:
    """Deep copy of a JSON-like value (dicts, lists, scalars)."""
    return copy.deepcopy(value)


def preview(content: str, limit: int) -> str:
    """First *limit* characters of *content*, kept as reference metadata."""
    return content[:limit]


def ensure_unique_ids(operations: list[ParsedOperation]) -> list[ParsedOperation]:
    """Make operation ids unique within one specification, in place.

    The first operation with a given id keeps it; later ones get ``_2``,
    ``_3``, ... appended (skipping suffixes already taken).

    Returns:
        The same list, for chaining.
    """
    seen: set[str] = set()
    for operation in operations:
        if operation.id not in seen:
            seen.add(operation.id)
            continue

        counter = 2
        candidate = f"{operation.id}_{counter}"
        while candidate in seen or any(op.id == candidate for op in operations):
            counter += 1
            candidate = f"{operation.id}_{counter}"
        logger.warning("Duplicate operation id %r renamed to %r", operation.id, candidate)
        operation.id = candidate
        seen.add(candidate)
    return operations


def as_dict(value: Any) -> dict[str, Any]:
    """Return *value* if it is a dict, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def optional_str(value: Any) -> Optional[str]:
    """Text of a scalar read from a document; ``None`` stays ``None``.

    YAML loads unquoted values such as ``operationId: 123`` as numbers.
    """
    return None if value is None else str(value)


def str_list(value: Any) -> Optional[list[str]]:
    """Text of every item of a list value, or ``None`` when *value* is not a list."""
    if not isinstance(value, list):
        return None
    return [str(item) for item in value]
