"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specshift.exceptions.SpecshiftError` subclass.
Shell wrappers and CI jobs can branch on the exit code without parsing
stderr.

Example::

    $ specshift flatten broken.yaml
    $ echo $?
    2   # EXIT_VALIDATION_ERROR -- the document is not valid OpenAPI 3.0
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_VALIDATION_ERROR = 2
"""The input document or synthesis payload is malformed or incomplete."""

EXIT_STORE_ERROR = 5
"""The persistence backend rejected or failed a request."""

EXIT_RELAY_ERROR = 6
"""The relayed HTTP call failed (timeout, DNS failure, error status)."""

EXIT_SCHEMA_ERROR = 7
"""The document is structurally valid but declares no paths."""

EXIT_RESOLUTION_ERROR = 8
"""A ``$ref`` could not be resolved (missing target or cycle)."""

EXIT_USAGE_ERROR = 9
"""The library was called incorrectly (an integration defect)."""
