"""Extract top-level operations from GraphQL documents.

This is a line scanner, not a GraphQL parser: every line that starts with
``query``, ``mutation`` or ``subscription`` becomes one operation. Types and
fields are not analysed.
"""

from __future__ import annotations

import re
from typing import Optional

from speccatalog.files import get_file_name_without_extension
from speccatalog.models import ParsedOperation, ParsedSpecification, ParserConfig, SpecificationType
from speccatalog.parser.common import ensure_unique_ids, new_specification_id, preview

_OPERATION_LINE = re.compile(r"^(query|mutation|subscription)\s+([A-Za-z_]\w*)?")


def extract_graphql(
    content: str, file_name: str, config: Optional[ParserConfig] = None
) -> ParsedSpecification:
    """Scan *content* line by line for operation definitions.

    Anonymous operations (``query {``) are named after their keyword
    (``Query``, ``Mutation``, ``Subscription``). Never fails; a document
    with no operation lines yields an empty catalog.
    """
    config = config or ParserConfig()
    operations: list[ParsedOperation] = []

    for line in content.splitlines():
        match = _OPERATION_LINE.match(line.strip())
        if not match:
            continue

        keyword = match.group(1)
        name = match.group(2) or keyword.capitalize()
        operations.append(
            ParsedOperation(
                id=f"{keyword}_{name}",
                name=name,
                method=keyword,
                description=f"GraphQL {keyword} operation",
                tags=["graphql", keyword],
            )
        )

    return ParsedSpecification(
        id=new_specification_id(),
        name=get_file_name_without_extension(file_name),
        type=SpecificationType.GRAPHQL,
        operations=ensure_unique_ids(operations),
        metadata={"content": preview(content, config.preview_chars)},
    )
