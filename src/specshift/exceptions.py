"""Exception hierarchy for specshift.

All exceptions inherit from :class:`SpecshiftError`, which carries an
``exit_code`` (used by :func:`specshift.app.main`) and a ``status_code``
(used by the FastAPI exception handlers in :mod:`specshift.web.errors`).
Boundary operations in :mod:`specshift.service` let these through and wrap
anything else in :class:`UnexpectedError`.

Subclass hierarchy::

    SpecshiftError            (exit 1, HTTP 500)
    +-- ValidationError       (exit 2, HTTP 400)
    +-- SchemaError           (exit 7, HTTP 422)
    +-- ResolutionError       (exit 8, HTTP 422)
    |   +-- ResolutionCancelled
    +-- UsageError            (exit 9, HTTP 500)
    +-- StoreError            (exit 5, HTTP 500)
    +-- RelayError            (exit 6, HTTP 500)
    +-- ConfigError           (exit 1, HTTP 500)
    +-- UnexpectedError       (exit 1, HTTP 500)
"""

from __future__ import annotations

from typing import Any, Optional

from specshift.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_RELAY_ERROR,
    EXIT_RESOLUTION_ERROR,
    EXIT_SCHEMA_ERROR,
    EXIT_STORE_ERROR,
    EXIT_USAGE_ERROR,
    EXIT_VALIDATION_ERROR,
)


class SpecshiftError(Exception):
    """Base exception for all specshift errors.

    Every subclass sets a class-level ``exit_code`` and ``status_code``.
    ``details`` is optional structured context that the HTTP layer echoes
    back to the caller.

    Args:
        message: Human-readable error description.
        details: Optional structured detail (string, dict, or list).
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if exit_code is not None:
            self.exit_code = exit_code


class ValidationError(SpecshiftError):
    """Raised for malformed input documents or missing synthesis fields."""

    exit_code = EXIT_VALIDATION_ERROR
    status_code = 400


class SchemaError(SpecshiftError):
    """Raised when a document has no ``paths`` (or an empty ``paths`` map)."""

    exit_code = EXIT_SCHEMA_ERROR
    status_code = 422


class ResolutionError(SpecshiftError):
    """Raised when a ``$ref`` target is missing, disallowed, or cyclic."""

    exit_code = EXIT_RESOLUTION_ERROR
    status_code = 422


class ResolutionCancelled(ResolutionError):
    """Raised when reference resolution is aborted through its cancel event."""


class UsageError(SpecshiftError):
    """Raised when the pipeline is called incorrectly, e.g. with an un-awaited result."""

    exit_code = EXIT_USAGE_ERROR


class StoreError(SpecshiftError):
    """Raised when the persistence backend fails or returns an error."""

    exit_code = EXIT_STORE_ERROR


class RelayError(SpecshiftError):
    """Raised when a relayed HTTP call fails."""

    exit_code = EXIT_RELAY_ERROR


class ConfigError(SpecshiftError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""


class UnexpectedError(SpecshiftError):
    """Wraps any non-specshift exception caught at an operation boundary."""
