"""Request-level boundary operations shared by the CLI and the web app.

Each operation runs one pipeline flow to completion and is the outermost
error boundary for it: :class:`~specshift.exceptions.SpecshiftError`
subclasses pass through unchanged, anything else is wrapped in
:class:`~specshift.exceptions.UnexpectedError` with the original message.

* :func:`convert_document` -- dereference, validate, extract, flatten;
  returns ``{"ans": <flattened>}``.
* :func:`synthesize_payload` -- infer and assemble; returns
  ``{"openapiSchema": <document>}``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from specshift.exceptions import SchemaError, SpecshiftError, UnexpectedError, ValidationError
from specshift.models import ResolverConfig, SynthesisConfig, ValidationIssue
from specshift.pipeline.extractor import extract
from specshift.pipeline.flattener import dump_flattened, flatten
from specshift.pipeline.loader import DocumentFetcher
from specshift.pipeline.resolver import dereference
from specshift.pipeline.synthesizer import synthesize
from specshift.pipeline.validator import reference_errors, validate

logger = logging.getLogger(__name__)


async def convert_document(
    document: Any,
    *,
    resolver: Optional[ResolverConfig] = None,
    base_uri: Optional[str] = None,
    fetcher: Optional[DocumentFetcher] = None,
    cancel: Optional[asyncio.Event] = None,
    skip_validation: bool = False,
) -> dict[str, Any]:
    """Validate *document* and return its flattened representation.

    A document without a ``paths`` key is rejected with
    :class:`~specshift.exceptions.SchemaError` before validation runs, so
    callers can tell an empty API apart from a malformed document.

    References are resolved once, asynchronously, before the meta-schema
    check runs on the resolved tree. Dangling internal references are
    reported as validation errors before anything is fetched.

    Args:
        document: The candidate OpenAPI document.
        resolver: Reference-resolution settings; defaults apply when ``None``.
        base_uri: Location of the document, for relative external refs.
        fetcher: Loader for external documents.
        cancel: Optional event that aborts reference resolution.
        skip_validation: Skip the meta-schema check (``--no-validate``).

    Returns:
        ``{"ans": {path: {METHOD: summary}}}`` with wire (camelCase) keys.

    Raises:
        ValidationError: Empty input or a document that fails validation;
            ``details`` holds the first validation message.
        SchemaError: The document has no paths.
        ResolutionError: A ``$ref`` cannot be resolved.
        UnexpectedError: Anything else.
    """
    resolver = resolver or ResolverConfig()
    try:
        if not isinstance(document, dict) or not document:
            raise ValidationError("No data provided")
        if "paths" not in document:
            raise SchemaError("Invalid schema: No paths found")

        if not skip_validation:
            _reject_invalid(list(reference_errors(document)))

        resolved = await dereference(
            document,
            base_uri=base_uri,
            fetcher=fetcher or DocumentFetcher(timeout=resolver.fetch_timeout),
            cancel=cancel,
            allow_external=resolver.allow_external_refs,
        )
        if not skip_validation:
            _reject_invalid(validate(resolved).errors)

        extracted = await extract(resolved)
        return {"ans": dump_flattened(flatten(extracted))}
    except SpecshiftError:
        raise
    except Exception as exc:
        logger.exception("Error processing request")
        raise UnexpectedError(f"Error processing request: {exc}") from exc


def synthesize_payload(
    payload: Any,
    *,
    synthesis: Optional[SynthesisConfig] = None,
) -> dict[str, Any]:
    """Synthesize a document from ``{"input", "output", "parameters"}``.

    Raises:
        ValidationError: If the payload or any of its three fields is
            missing, or an example is empty.
        UnexpectedError: Anything else.
    """
    synthesis = synthesis or SynthesisConfig()
    try:
        if not isinstance(payload, dict):
            raise ValidationError("No data provided")
        document = synthesize(
            payload.get("input"),
            payload.get("output"),
            payload.get("parameters"),
            max_depth=synthesis.max_depth,
        )
        return {"openapiSchema": document}
    except SpecshiftError:
        raise
    except Exception as exc:
        logger.exception("Error processing request")
        raise UnexpectedError(f"Error processing request: {exc}") from exc


def _reject_invalid(errors: list[ValidationIssue]) -> None:
    if not errors:
        return
    logger.info("Rejected document with %d validation error(s)", len(errors))
    for issue in errors:
        logger.debug("%s at %s", issue.message, issue.path or "/")
    raise ValidationError("Invalid OpenAPI schema", details=errors[0].message)
