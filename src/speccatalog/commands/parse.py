"""Parse command -- turn one or more documents into an operation catalog.

``speccatalog parse`` accepts local paths, ``http(s)://`` URLs and ``-``
(stdin). Every input produces one entry in the catalog; an input that cannot
be read or parsed produces an error entry instead of aborting the run.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from speccatalog.exceptions import InvalidUsageError, SpecCatalogError
from speccatalog.exit_codes import EXIT_PARTIAL_FAILURE
from speccatalog.models import ParsedSpecification, SerializedFile, SpecificationType
from speccatalog.output import error, print_catalog, suggest, warning


def parse_specification_type(value: Optional[str]) -> Optional[SpecificationType]:
    """Map a ``--type`` value (case-insensitive) to a :class:`SpecificationType`.

    Raises:
        InvalidUsageError: For an unknown type name.
    """
    if value is None:
        return None
    try:
        return SpecificationType(value.upper())
    except ValueError:
        choices = ", ".join(t.value.lower() for t in SpecificationType)
        raise InvalidUsageError(
            f"Unknown specification type '{value}'. Choose one of: {choices}"
        ) from None


def build_service(protocol: Optional[str] = None, max_workers: Optional[int] = None):  # noqa: ANN201
    """Create a :class:`~speccatalog.service.SpecificationParsingService` from resolved config."""
    from speccatalog.config import resolve_config
    from speccatalog.service import SpecificationParsingService

    config = resolve_config(cli_protocol=protocol, cli_max_workers=max_workers)
    return SpecificationParsingService(config.parser)


def _load_inputs(sources: list[str]) -> list[tuple[str, Optional[SerializedFile], Optional[str]]]:
    """Read every source; failures are kept as messages so the batch goes on."""
    from speccatalog.files import load_serialized_file

    loaded: list[tuple[str, Optional[SerializedFile], Optional[str]]] = []
    for source in sources:
        try:
            loaded.append((source, load_serialized_file(source), None))
        except SpecCatalogError as exc:
            loaded.append((source, None, str(exc)))
    return loaded


def parse_command(
    sources: list[str] = typer.Argument(
        ..., help="Spec files, URLs, or '-' for stdin."
    ),
    spec_type: Optional[str] = typer.Option(
        None,
        "--type",
        "-t",
        help="Force the format (http, async, graphql, grpc, soap) instead of detecting it.",
    ),
    protocol: Optional[str] = typer.Option(
        None, "--protocol", help="Protocol for AsyncAPI documents that declare none."
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Parse up to N files concurrently."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit with code 12 if any document failed to parse."
    ),
) -> None:
    """Parse documents and print the resulting catalog.

    Example::

        speccatalog parse petstore.yaml orders.proto
        speccatalog --json parse events.yaml --type async --protocol kafka
    """
    from speccatalog.service import build_error_specification

    try:
        kind = parse_specification_type(spec_type)
        service = build_service(protocol, workers)
    except SpecCatalogError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    inputs = _load_inputs(sources)
    files = [file for _, file, _ in inputs if file is not None]
    if service.config.max_workers > 1:
        parsed = iter(asyncio.run(service.parse_many_async(files, kind)))
    else:
        parsed = iter(service.parse_many(files, kind))

    specs: list[ParsedSpecification] = []
    for source, file, load_error in inputs:
        if file is None:
            specs.append(build_error_specification(source, load_error or "Unreadable input"))
        else:
            specs.append(next(parsed))

    print_catalog(sources, specs)

    failed = [(source, spec) for source, spec in zip(sources, specs) if spec.is_error]
    for source, spec in failed:
        warning(f"{source}: {spec.errors[0]}")
    if failed and kind is None:
        suggest("Use --type to override format detection.")
    if failed and strict:
        raise typer.Exit(code=EXIT_PARTIAL_FAILURE)
