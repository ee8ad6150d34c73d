"""Reshape extracted path groups into a path -> METHOD mapping."""

from __future__ import annotations

import inspect
from typing import Any, Iterable

from specshift.exceptions import UsageError
from specshift.models import OperationSummary, PathOperations


def flatten(extracted: Iterable[PathOperations]) -> dict[str, dict[str, OperationSummary]]:
    """Key every summary by path, then by uppercased method name.

    Summaries are placed as-is; nothing is validated or copied. When a path
    occurs in more than one entry, their methods are merged.

    Args:
        extracted: The result of :func:`~specshift.pipeline.extractor.extract`.

    Raises:
        UsageError: If *extracted* is still an awaitable, i.e. the caller
            forgot to ``await extract(...)``.
    """
    if inspect.isawaitable(extracted):
        _close_unawaited(extracted)
        raise UsageError("flatten() received an un-awaited result; await extract() first")

    flattened: dict[str, dict[str, OperationSummary]] = {}
    for entry in extracted:
        methods = flattened.setdefault(entry.path, {})
        for method, summary in entry.methods.items():
            methods[method.upper()] = summary
    return flattened


def dump_flattened(flattened: dict[str, dict[str, OperationSummary]]) -> dict[str, Any]:
    """Serialise a flattened mapping to plain JSON-compatible data with wire names.

    Attributes the document never set (``operationId``, ``summary``,
    ``description``, and the parameter attributes) are left out rather
    than emitted as ``null``.
    """
    return {
        path: {
            method: summary.model_dump(mode="json", by_alias=True, exclude_none=True)
            for method, summary in methods.items()
        }
        for path, methods in flattened.items()
    }


def _close_unawaited(value: Any) -> None:
    # Silences "coroutine was never awaited" for the rejected value.
    close = getattr(value, "close", None)
    if inspect.iscoroutine(value) and close is not None:
        close()
