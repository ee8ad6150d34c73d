"""Resolve ``$ref`` JSON Reference pointers in OpenAPI documents.

OpenAPI documents commonly use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition. This module
walks the document and replaces every ``$ref`` with the object it points
to, producing a tree with no reference nodes left.

Both kinds of reference are handled:

* **internal** -- ``#/components/schemas/Pet`` (RFC 6901 escaping and
  percent-encoding are decoded);
* **external** -- ``common.yaml#/Error`` or
  ``https://example.com/schemas.json#/Pet``, resolved relative to the
  document that contains the ``$ref`` and fetched through a
  :class:`~specshift.pipeline.loader.DocumentFetcher`.

Every reference target has an identity, the pair ``(document URI, JSON
pointer)``. Identities currently being expanded form a stack; meeting one
of them again means the reference is circular and expansion cannot
terminate, so :class:`~specshift.exceptions.ResolutionError` is raised
instead of leaving the ``$ref`` in place. Fully expanded targets are
memoised for the duration of one call only.

The single public function is :func:`dereference`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional
from urllib.parse import unquote, urljoin, urlparse

from specshift.exceptions import ResolutionCancelled, ResolutionError
from specshift.pipeline.loader import DocumentFetcher


_Identity = tuple[str, str]


async def dereference(
    document: dict[str, Any],
    *,
    base_uri: Optional[str] = None,
    fetcher: Optional[DocumentFetcher] = None,
    cancel: Optional[asyncio.Event] = None,
    allow_external: bool = True,
) -> dict[str, Any]:
    """Return a copy of *document* with every ``$ref`` replaced by its target.

    The input is never mutated. A document without references comes back
    as an equal tree.

    Args:
        document: The raw OpenAPI document.
        base_uri: URI of *document* itself; relative external references
            resolve against it. ``None`` when the document arrived without
            a location (e.g. an HTTP request body).
        fetcher: Loader for external documents. Defaults to a fresh
            :class:`~specshift.pipeline.loader.DocumentFetcher`.
        cancel: Optional event; once set, resolution stops with
            :class:`~specshift.exceptions.ResolutionCancelled`.
        allow_external: When ``False``, any reference outside the document
            raises :class:`~specshift.exceptions.ResolutionError`.

    Local files (``file:`` URIs and bare paths) may only be referenced
    from a document that is itself a local file. A request body or a
    remote document cannot reach into the local filesystem.

    Returns:
        A new dictionary containing no ``$ref`` nodes.

    Raises:
        ResolutionError: If a target is missing, circular, disallowed, or
            its document cannot be fetched.

    Example::

        resolved = await dereference(raw, base_uri="file:///specs/api.yaml")
    """
    resolver = _Dereferencer(
        document,
        root_uri=base_uri or "",
        fetcher=fetcher or DocumentFetcher(),
        cancel=cancel,
        allow_external=allow_external,
    )
    return await resolver.resolve(document, base_uri or "", frozenset())


def lookup_pointer(document: Any, pointer: str, ref: str) -> Any:
    """Navigate *document* along a JSON pointer such as ``/components/schemas/Pet``.

    Args:
        document: The document (or sub-tree) to navigate.
        pointer: A decoded JSON pointer; ``""`` addresses the whole document.
        ref: The original ``$ref`` string, used in error messages.

    Raises:
        ResolutionError: If any segment does not exist.
    """
    if pointer == "":
        return document
    if not pointer.startswith("/"):
        raise ResolutionError(f"Cannot resolve $ref '{ref}': unsupported fragment '{pointer}'")

    current: Any = document
    for segment in pointer[1:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise ResolutionError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ResolutionError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise ResolutionError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current


def split_ref(ref: str) -> tuple[str, str]:
    """Split a ``$ref`` into its document part and decoded JSON pointer."""
    target, _, fragment = ref.partition("#")
    return target, unquote(fragment)


class _Dereferencer:
    """State for one :func:`dereference` call: fetched documents and memoised targets."""

    def __init__(
        self,
        root: dict[str, Any],
        root_uri: str,
        fetcher: DocumentFetcher,
        cancel: Optional[asyncio.Event],
        allow_external: bool,
    ) -> None:
        self._documents: dict[str, Any] = {root_uri: root}
        self._memo: dict[_Identity, Any] = {}
        self._fetcher = fetcher
        self._cancel = cancel
        self._allow_external = allow_external

    async def resolve(self, obj: Any, doc_uri: str, stack: frozenset[_Identity]) -> Any:
        if isinstance(obj, dict):
            ref = obj.get("$ref")
            if isinstance(ref, str):
                return await self._resolve_ref(ref, doc_uri, stack)
            return {key: await self.resolve(value, doc_uri, stack) for key, value in obj.items()}

        if isinstance(obj, list):
            return [await self.resolve(item, doc_uri, stack) for item in obj]

        return obj

    async def _resolve_ref(self, ref: str, doc_uri: str, stack: frozenset[_Identity]) -> Any:
        self._check_cancelled()

        target, pointer = split_ref(ref)
        target_uri = self._target_uri(target, doc_uri, ref) if target else doc_uri
        identity = (target_uri, pointer)

        if identity in stack:
            raise ResolutionError(f"Circular $ref '{ref}' cannot be expanded")
        if identity in self._memo:
            return self._memo[identity]

        document = await self._document(target_uri)
        resolved = await self.resolve(
            lookup_pointer(document, pointer, ref), target_uri, stack | {identity}
        )
        self._memo[identity] = resolved
        return resolved

    def _target_uri(self, target: str, doc_uri: str, ref: str) -> str:
        if not self._allow_external:
            raise ResolutionError(f"External $ref not allowed: {ref}")

        uri = urljoin(doc_uri, target) if doc_uri else target
        parsed = urlparse(uri)
        if parsed.scheme in ("", "file"):
            if not parsed.scheme and not parsed.path.startswith("/"):
                raise ResolutionError(
                    f"Cannot resolve relative $ref '{ref}' without a base URI for the document"
                )
            if urlparse(doc_uri).scheme != "file":
                raise ResolutionError(
                    f"Local $ref '{ref}' is only allowed from a local document"
                )
        return uri

    async def _document(self, uri: str) -> Any:
        if uri not in self._documents:
            self._check_cancelled()
            self._documents[uri] = await self._fetcher.fetch(uri)
        return self._documents[uri]

    def _check_cancelled(self) -> None:
        if self._cancel is not None and self._cancel.is_set():
            raise ResolutionCancelled("Reference resolution cancelled")
