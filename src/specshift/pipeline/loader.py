"""Load OpenAPI documents from a URL, local file, or stdin.

This module handles all I/O for fetching raw documents and converting them
into Python dictionaries. It supports JSON and YAML with automatic format
detection.

Public API:

* :func:`load_document` -- synchronous loader used by the CLI.
* :func:`parse_content` -- JSON-then-YAML parsing of raw text.
* :func:`validate_openapi_version` -- accept 3.0.x, reject Swagger 2.x.
* :class:`DocumentFetcher` -- asynchronous loader used by
  :func:`~specshift.pipeline.resolver.dereference` to fetch documents that
  external ``$ref`` pointers point to.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import httpx
import yaml

from specshift.exceptions import ResolutionError, ValidationError

logger = logging.getLogger(__name__)


def load_document(source: str) -> dict[str, Any]:
    """Load an OpenAPI document from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        ValidationError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def source_uri(source: str) -> str | None:
    """Return the base URI that relative ``$ref`` values in *source* resolve against."""
    if source == "-":
        return None
    if source.startswith(("http://", "https://")):
        return source
    return Path(source).resolve().as_uri()


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise ValidationError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise ValidationError("No input received from stdin")

    return parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a document from an HTTP(S) URL."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ValidationError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise ValidationError(f"Failed to fetch document from {url}: {exc}") from exc

    return parse_content(response.text, hint=_hint_from_content_type(response))


def _load_from_file(path: str) -> dict[str, Any]:
    """Load a document from a local ``.json``/``.yaml``/``.yml`` file."""
    file_path = Path(path)
    if not file_path.is_file():
        raise ValidationError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(f"Failed to read {path}: {exc}") from exc

    if not content.strip():
        raise ValidationError(f"Document is empty: {path}")

    return parse_content(content, hint=_hint_from_suffix(file_path))


def _hint_from_suffix(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def _hint_from_content_type(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        return "json"
    if "yaml" in content_type or "yml" in content_type:
        return "yaml"
    return ""


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hinted as YAML), then falls back to YAML; valid
    JSON is also valid YAML, but JSON parsing is stricter and faster.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed mapping.

    Raises:
        ValidationError: If the content is not a JSON/YAML object.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ValidationError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse document as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise ValidationError(msg) from exc

    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        got = type(result).__name__ if result is not None else "empty document"
        raise ValidationError(f"Document must be a JSON/YAML object (got {got})")
    return result


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    OpenAPI 3.0.x is the supported target. Other 3.x versions are accepted
    with a warning since most documents still pass the 3.0 checks.

    Raises:
        ValidationError: If the version is missing, or the document is
            Swagger 2.x or pre-3.0.
    """
    if "swagger" in document:
        raise ValidationError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.0.x is supported. "
            "Consider converting with https://converter.swagger.io"
        )

    version = document.get("openapi")
    if version is None:
        raise ValidationError("Missing 'openapi' field. Is this an OpenAPI 3.0 document?")

    version_str = str(version)
    if version_str.startswith("3.0."):
        return version_str
    if version_str.startswith("3."):
        logger.warning("OpenAPI %s is validated against the 3.0 rules", version_str)
        return version_str

    raise ValidationError(
        f"Unsupported OpenAPI version: {version_str}. Only OpenAPI 3.0.x is supported."
    )


class DocumentFetcher:
    """Asynchronously fetch documents referenced by external ``$ref`` pointers.

    ``http(s)`` URIs are fetched with :class:`httpx.AsyncClient`; ``file:``
    URIs and bare paths are read from disk. Failures surface as
    :class:`~specshift.exceptions.ResolutionError`.

    Args:
        timeout: Request timeout in seconds for remote documents.
        client: Optional pre-built client, mainly for tests with
            :class:`httpx.MockTransport`.

    Example::

        fetcher = DocumentFetcher(timeout=10)
        doc = await fetcher.fetch("https://example.com/schemas.yaml")
    """

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None) -> None:
        self._timeout = timeout
        self._client = client

    async def fetch(self, uri: str) -> dict[str, Any]:
        parsed = urlparse(uri)
        if parsed.scheme in ("http", "https"):
            return await self._fetch_remote(uri)
        if parsed.scheme in ("", "file"):
            return self._read_local(Path(unquote(parsed.path)))
        raise ResolutionError(f"Unsupported $ref scheme '{parsed.scheme}' in {uri}")

    async def _fetch_remote(self, uri: str) -> dict[str, Any]:
        logger.debug("Fetching external document %s", uri)
        try:
            if self._client is not None:
                response = await self._client.get(uri)
            else:
                async with httpx.AsyncClient(
                    timeout=self._timeout, follow_redirects=True
                ) as client:
                    response = await client.get(uri)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ResolutionError(
                f"HTTP {exc.response.status_code} fetching referenced document {uri}"
            ) from exc
        except httpx.RequestError as exc:
            raise ResolutionError(f"Failed to fetch referenced document {uri}: {exc}") from exc

        return self._parse(response.text, _hint_from_content_type(response), uri)

    def _read_local(self, path: Path) -> dict[str, Any]:
        logger.debug("Reading external document %s", path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ResolutionError(f"Cannot read referenced document {path}: {exc}") from exc
        return self._parse(content, _hint_from_suffix(path), str(path))

    @staticmethod
    def _parse(content: str, hint: str, uri: str) -> dict[str, Any]:
        try:
            return parse_content(content, hint=hint)
        except ValidationError as exc:
            raise ResolutionError(f"Referenced document {uri} is not parseable: {exc}") from exc
