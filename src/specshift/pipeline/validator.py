"""Validate candidate documents against OpenAPI 3.0.

Two checks run on every document:

1. **Reference integrity** -- every internal ``$ref`` (``#/...``) must point
   at an existing node. Each dangling reference is reported with the JSON
   pointer of the ``$ref`` node.
2. **Structure** -- conformity to the OpenAPI 3.0 meta-schema, checked with
   ``openapi-spec-validator``. Each error carries the JSON pointer of the
   offending node and the pointer of the violated meta-schema rule.

:func:`validate` never raises and never performs I/O. External references
are not followed; a document that still contains them is reported with one
issue per reference, since the structural validator would otherwise fetch
them itself with a blocking call. :func:`validate_document` resolves them
first through the async resolver and then validates the resolved tree.

Anything that is not a structured schema error (for example a document
that is not a mapping) becomes a single error entry carrying the exception
message.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

from openapi_spec_validator import OpenAPIV30SpecValidator

from specshift.exceptions import ResolutionError
from specshift.models import ValidationIssue, ValidationResult
from specshift.pipeline.resolver import dereference, lookup_pointer, split_ref

logger = logging.getLogger(__name__)


def validate(document: Any) -> ValidationResult:
    """Check *document* for OpenAPI 3.0 conformity and dangling references.

    Returns:
        A :class:`~specshift.models.ValidationResult`; ``valid`` is
        ``True`` only when both checks pass.
    """
    try:
        if not isinstance(document, dict):
            raise TypeError(
                f"OpenAPI document must be an object, got {type(document).__name__}"
            )
        errors = list(reference_errors(document))
        external = list(external_refs(document))
    except Exception as exc:
        return _failure(exc)

    if external:
        errors.extend(
            ValidationIssue(
                message=f"External $ref '{ref}' must be resolved before validation",
                path=pointer,
                schema_path="",
                details={"ref": ref},
            )
            for pointer, ref in external
        )
        return ValidationResult(valid=False, errors=errors)

    try:
        errors.extend(_issue_from_schema_error(e) for e in _structural_errors(document))
    except Exception as exc:
        if not errors:
            return _failure(exc)
        # Dangling refs already explain why the structural walk gave up.
        logger.debug("Structural validation stopped: %s", exc)

    return ValidationResult(valid=not errors, errors=errors)


async def validate_document(document: Any, **options: Any) -> ValidationResult:
    """Resolve external references asynchronously, then :func:`validate`.

    Dangling internal references are reported against the raw document,
    with their original pointers, before anything is fetched.

    Args:
        document: The raw OpenAPI document.
        **options: Forwarded to :func:`~specshift.pipeline.resolver.dereference`
            (``base_uri``, ``fetcher``, ``cancel``, ``allow_external``).

    Raises:
        ResolutionError: If an external document cannot be fetched, a
            reference is circular or disallowed, or resolution is cancelled.
    """
    if not isinstance(document, dict):
        return validate(document)
    dangling = list(reference_errors(document))
    if dangling:
        return ValidationResult(valid=False, errors=dangling)
    return validate(await dereference(document, **options))


def _structural_errors(document: dict[str, Any]) -> Iterator[Any]:
    return OpenAPIV30SpecValidator(document).iter_errors()


def _failure(exc: Exception) -> ValidationResult:
    return ValidationResult(valid=False, errors=[ValidationIssue(message=str(exc))])


def reference_errors(document: dict[str, Any]) -> Iterator[ValidationIssue]:
    """Yield one issue per internal ``$ref`` whose target does not exist."""
    for pointer, ref in _iter_refs(document, ()):
        target, fragment = split_ref(ref)
        if target:
            # External documents are only checked when dereferenced.
            continue
        try:
            lookup_pointer(document, fragment, ref)
        except ResolutionError as exc:
            yield ValidationIssue(
                message=str(exc),
                path=pointer,
                schema_path="",
                details={"ref": ref},
            )


def external_refs(document: dict[str, Any]) -> Iterator[tuple[str, str]]:
    """Yield ``(pointer, ref)`` for each ``$ref`` that targets another document."""
    for pointer, ref in _iter_refs(document, ()):
        if split_ref(ref)[0]:
            yield pointer, ref


def _iter_refs(node: Any, location: tuple[str, ...]) -> Iterator[tuple[str, str]]:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield to_pointer(location), ref
            return
        for key, value in node.items():
            yield from _iter_refs(value, location + (str(key),))
    elif isinstance(node, list):
        for index, item in enumerate(node):
            yield from _iter_refs(item, location + (str(index),))


def to_pointer(segments: Iterable[Any]) -> str:
    """Encode path segments as an RFC 6901 JSON pointer (``""`` for the root)."""
    return "".join(
        "/" + str(segment).replace("~", "~0").replace("/", "~1") for segment in segments
    )


def _issue_from_schema_error(error: Any) -> ValidationIssue:
    path = getattr(error, "absolute_path", None) or getattr(error, "path", ())
    schema_path = getattr(error, "absolute_schema_path", None) or getattr(error, "schema_path", ())
    details: dict[str, Any] = {}
    if getattr(error, "validator", None) is not None:
        details["validator"] = str(error.validator)
    return ValidationIssue(
        message=error.message,
        path=to_pointer(path),
        schema_path="#" + to_pointer(schema_path),
        details=details,
    )
