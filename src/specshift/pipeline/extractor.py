"""Extract per-operation summaries from OpenAPI documents.

:func:`extract` dereferences a document and walks every path and declared
HTTP method, producing one :class:`~specshift.models.PathOperations` entry
per path. Each operation becomes an
:class:`~specshift.models.OperationSummary`:

* ``output`` -- responses whose status code starts with ``2``;
* ``errorResponses`` -- responses whose status code starts with ``4`` or
  ``5``;
* ``input`` -- the ``requestBody`` content map;
* ``parameters`` -- each parameter projected onto ``name``, ``in``,
  ``required``, ``description`` and ``schema``;
* ``operationId``, ``summary``, ``description`` passed through.

Responses outside those classes (``1xx``, ``3xx``, ``default``) are dropped.

Methods are looked up by key: the path item's declared method keys are
indexed first, and each one is then fetched from the path item in
lowercase. A declared key whose lowercase form is missing (``GET`` without
``get``) is logged and skipped without aborting the extraction.
"""

from __future__ import annotations

import logging
from typing import Any

from specshift.exceptions import SchemaError
from specshift.models import (
    HTTPMethod,
    OperationSummary,
    ParameterSummary,
    PathOperations,
    ResponseDescriptor,
)
from specshift.pipeline.resolver import dereference

logger = logging.getLogger(__name__)

# HTTP methods recognized by OpenAPI
_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)

_SUCCESS_PREFIXES = ("2",)
_ERROR_PREFIXES = ("4", "5")


async def extract(document: dict[str, Any], **options: Any) -> list[PathOperations]:
    """Dereference *document* and summarize every path/method pair.

    Args:
        document: A raw OpenAPI document (before ``$ref`` resolution).
        **options: Forwarded to :func:`~specshift.pipeline.resolver.dereference`
            (``base_uri``, ``fetcher``, ``cancel``, ``allow_external``).

    Returns:
        One :class:`~specshift.models.PathOperations` per path, in document
        order.

    Raises:
        ResolutionError: If any ``$ref`` cannot be resolved. No partial
            result is produced.
        SchemaError: If the document declares no paths.

    Example::

        grouped = await extract(raw)
        for entry in grouped:
            print(entry.path, sorted(entry.methods))
    """
    resolved = await dereference(document, **options)

    paths = resolved.get("paths")
    if not isinstance(paths, dict) or not paths:
        raise SchemaError("Invalid schema: No paths found")

    extracted: list[PathOperations] = []
    for path, declared in build_method_index(paths).items():
        path_item = paths[path]
        methods: dict[str, OperationSummary] = {}

        for method_key in declared:
            method = method_key.lower()
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                logger.warning("Method %s not found for path %s", method, path)
                continue
            methods[method] = summarize_operation(operation, path, method)

        extracted.append(PathOperations(path=path, methods=methods))

    return extracted


def build_method_index(paths: dict[str, Any]) -> dict[str, list[str]]:
    """Map every path to the HTTP method keys it declares, in declaration order.

    Keys are kept as written (any case). Path-item fields that are not
    methods (``parameters``, ``summary``, ``servers``, ``x-*``...) are left
    out.
    """
    index: dict[str, list[str]] = {}
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            index[path] = []
            continue
        index[path] = [
            key for key in path_item if isinstance(key, str) and key.lower() in _HTTP_METHODS
        ]
    return index


def summarize_operation(operation: dict[str, Any], path: str = "", method: str = "") -> OperationSummary:
    """Build the :class:`~specshift.models.OperationSummary` for one operation."""
    responses = operation.get("responses") or {}
    request_body = operation.get("requestBody") or {}

    dropped = [str(c) for c in responses if not str(c).startswith(_SUCCESS_PREFIXES + _ERROR_PREFIXES)]
    if dropped:
        logger.debug("Dropping responses %s of %s %s", ", ".join(dropped), method.upper(), path)

    return OperationSummary(
        output=_responses_with_prefix(responses, _SUCCESS_PREFIXES),
        input=request_body.get("content") or {},
        parameters=[_project_parameter(p) for p in operation.get("parameters") or []],
        error_responses=_responses_with_prefix(responses, _ERROR_PREFIXES),
        operation_id=operation.get("operationId"),
        summary=operation.get("summary"),
        description=operation.get("description"),
    )


def _responses_with_prefix(
    responses: dict[str, Any], prefixes: tuple[str, ...]
) -> list[ResponseDescriptor]:
    """Collect the responses whose status code starts with one of *prefixes*."""
    selected: list[ResponseDescriptor] = []
    for code, response in responses.items():
        code = str(code)
        if not code.startswith(prefixes):
            continue
        response = response if isinstance(response, dict) else {}
        selected.append(
            ResponseDescriptor(
                code=code,
                content=response.get("content") or {},
                description=response.get("description") or "",
            )
        )
    return selected


def _project_parameter(param: dict[str, Any]) -> ParameterSummary:
    """Keep only ``name``, ``in``, ``required``, ``description`` and ``schema``."""
    return ParameterSummary(
        name=param.get("name"),
        location=param.get("in"),
        required=param.get("required"),
        description=param.get("description"),
        schema_=param.get("schema"),
    )
