"""Exception hierarchy for speccatalog.

All exceptions inherit from :class:`SpecCatalogError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`speccatalog.exit_codes`.
Inside the parsing core these exceptions never escape a batch:
:meth:`~speccatalog.service.SpecificationParsingService.parse_one` turns them
into an error specification. The CLI entry point :func:`speccatalog.app.main`
catches the ones raised outside the core and exits with the matching code.

Subclass hierarchy::

    SpecCatalogError                 (exit 1)
    +-- InvalidUsageError            (exit 2)
    +-- SpecParseError               (exit 7)
    +-- UnsupportedSpecificationError (exit 8)
    +-- ProtoParseError              (exit 9)
    +-- FileDecodeError              (exit 11)
    +-- ConfigError                  (exit 1)
"""

from speccatalog.exit_codes import (
    EXIT_FILE_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROTO_PARSE_ERROR,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_UNSUPPORTED_SPECIFICATION,
)


class SpecCatalogError(Exception):
    """Base exception for all speccatalog errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`speccatalog.exit_codes`.

    Args:
        message: Human-readable error description. This is the text that
            ends up in ``ParsedSpecification.errors``.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecCatalogError):
    """Raised for invalid CLI arguments (e.g. an unknown ``--type`` value)."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(SpecCatalogError):
    """Raised when a document is malformed or yields no extractable operations."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class UnsupportedSpecificationError(SpecCatalogError):
    """Raised when no extractor is registered for a specification type."""

    exit_code = EXIT_UNSUPPORTED_SPECIFICATION


class ProtoParseError(SpecCatalogError):
    """Raised when the proto-parsing collaborator cannot read a ``.proto`` document."""

    exit_code = EXIT_PROTO_PARSE_ERROR


class FileDecodeError(SpecCatalogError):
    """Raised when an input file cannot be read, fetched, or decoded as text."""

    exit_code = EXIT_FILE_DECODE_ERROR


class ConfigError(SpecCatalogError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
