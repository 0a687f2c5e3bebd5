"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~speccatalog.exceptions.SpecCatalogError` subclass.
Scripts that drive ``speccatalog parse`` in CI can inspect the exit code to
tell a malformed document from a bad invocation without parsing stderr.

Example::

    $ speccatalog parse --strict broken.json
    $ echo $?
    12   # EXIT_PARTIAL_FAILURE -- at least one file produced an error entry
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 7
"""A specification document could not be parsed."""

EXIT_UNSUPPORTED_SPECIFICATION = 8
"""No extractor exists for the detected specification type."""

EXIT_PROTO_PARSE_ERROR = 9
"""The proto-parsing collaborator failed on a ``.proto`` document."""

EXIT_FILE_DECODE_ERROR = 11
"""An input file could not be read or decoded as UTF-8 text."""

EXIT_PARTIAL_FAILURE = 12
"""A batch finished but one or more files produced an error specification (``--strict``)."""
