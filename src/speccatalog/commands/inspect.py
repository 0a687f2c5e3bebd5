"""Inspect commands -- examine the operations of a single document.

Provides the ``speccatalog inspect`` sub-command group: a table of all
operations in a document, and a full dump of one operation including its
resolved schemas.
"""

from __future__ import annotations

from typing import Optional

import typer

from speccatalog.exceptions import SpecCatalogError
from speccatalog.exit_codes import EXIT_INVALID_USAGE, EXIT_SPEC_PARSE_ERROR
from speccatalog.models import ParsedSpecification
from speccatalog.output import error, info, print_operations, render


inspect_app = typer.Typer(no_args_is_help=True)


def _load_specification(
    source: str,
    spec_type: Optional[str],
    protocol: Optional[str],
) -> ParsedSpecification:
    """Read and parse *source*, exiting with a diagnostic on failure.

    Raises:
        typer.Exit: With the error's exit code when the source cannot be read,
            or with code 7 when the document could not be parsed.
    """
    from speccatalog.commands.parse import build_service, parse_specification_type
    from speccatalog.files import load_serialized_file

    try:
        kind = parse_specification_type(spec_type)
        service = build_service(protocol)
        file = load_serialized_file(source)
    except SpecCatalogError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    spec = service.parse_one(file, kind)
    if spec.is_error:
        error(f"Failed to parse {source}: {spec.errors[0]}")
        raise typer.Exit(code=EXIT_SPEC_PARSE_ERROR)
    return spec


@inspect_app.command("operations")
def inspect_operations(
    source: str = typer.Argument(help="Spec file, URL, or '-' for stdin."),
    spec_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Force the format instead of detecting it."
    ),
    protocol: Optional[str] = typer.Option(
        None, "--protocol", help="Protocol for AsyncAPI documents that declare none."
    ),
) -> None:
    """List all operations of a document.

    Example::

        speccatalog inspect operations petstore.yaml
    """
    spec = _load_specification(source, spec_type, protocol)

    if not spec.operations:
        info("No operations found in this document.")
        return

    print_operations(spec)


@inspect_app.command("operation")
def inspect_operation(
    source: str = typer.Argument(help="Spec file, URL, or '-' for stdin."),
    operation_id: str = typer.Argument(help="Operation ID, as listed by 'inspect operations'."),
    spec_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Force the format instead of detecting it."
    ),
    protocol: Optional[str] = typer.Option(
        None, "--protocol", help="Protocol for AsyncAPI documents that declare none."
    ),
) -> None:
    """Show one operation in full, including its self-contained schemas.

    Example::

        speccatalog inspect operation events.yaml publish_user/signedup --type async
    """
    spec = _load_specification(source, spec_type, protocol)

    operation = spec.get_operation(operation_id)
    if operation is None:
        error(f"Operation '{operation_id}' not found in {source}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    render(operation.model_dump(mode="json", by_alias=True))
