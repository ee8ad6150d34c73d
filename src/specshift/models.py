"""Canonical Pydantic models shared across all specshift modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`StoreConfig`, :class:`RelayConfig`, :class:`ResolverConfig`,
    :class:`SynthesisConfig`, and :class:`ServiceConfig`.

**Pipeline models** -- produced by the transformation pipeline and returned
to callers:
    :class:`HTTPMethod`, :class:`ValidationIssue`, :class:`ValidationResult`,
    :class:`ResponseDescriptor`, :class:`ParameterSummary`,
    :class:`OperationSummary`, and :class:`PathOperations`.

Pipeline models keep the camelCase wire names of the flattened
representation (``errorResponses``, ``operationId``, ``schemaPath``) as
aliases, so callers should dump them with ``by_alias=True``.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# --- Service Config ---

class StoreConfig(BaseModel):
    """Connection settings for the Supabase/PostgREST persistence backend.

    When ``url`` is unset the service falls back to an in-memory store,
    which is convenient for local runs and tests.
    """

    url: Optional[str] = Field(
        default=None, description="Supabase project URL, e.g. https://xyz.supabase.co"
    )
    key_source: Optional[str] = Field(
        default=None,
        description="Credential source for the API key: env:VAR or file:/path",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")

class RelayConfig(BaseModel):
    """Settings for the outbound HTTP relay (``GET /test``)."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")

class ResolverConfig(BaseModel):
    """Settings for ``$ref`` dereferencing."""

    allow_external_refs: bool = Field(
        default=True, description="Fetch refs that point outside the document"
    )
    fetch_timeout: int = Field(
        default=30, description="Timeout in seconds when fetching external documents"
    )

class SynthesisConfig(BaseModel):
    """Settings for schema inference from example payloads."""

    max_depth: int = Field(
        default=32, description="Maximum nesting depth of example payloads"
    )

class ServiceConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/specshift/config.json``.

    Loaded and saved by :func:`~specshift.config.load_service_config` and
    :func:`~specshift.config.save_service_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~specshift.config.resolve_config`
    for the full precedence chain.
    """

    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = Field(default="INFO", description="Logging level name")
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    store: StoreConfig = Field(default_factory=StoreConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)

# --- Pipeline Models ---

class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"

class ValidationIssue(BaseModel):
    """A single defect reported by :func:`~specshift.pipeline.validator.validate`.

    ``path`` is a JSON pointer into the validated document and
    ``schema_path`` a JSON pointer into the OpenAPI 3.0 meta-schema. Both
    are empty for errors that are not tied to a location.
    """

    message: str
    path: str = ""
    schema_path: str = Field(default="", alias="schemaPath")
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

class ValidationResult(BaseModel):
    """Outcome of validating a candidate OpenAPI document."""

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)

class ResponseDescriptor(BaseModel):
    """One retained response of an operation: status code, content map, description."""

    code: str
    content: dict[str, Any] = Field(default_factory=dict)
    description: str = ""

class ParameterSummary(BaseModel):
    """A parameter projected onto its five retained attributes.

    Values are copied verbatim from the document; nothing is defaulted, so
    a parameter without ``required`` keeps ``None`` here and has no
    ``required`` key once dumped.
    """

    name: Optional[str] = None
    location: Optional[str] = Field(default=None, alias="in")
    required: Optional[bool] = None
    description: Optional[str] = None
    schema_: Optional[Any] = Field(default=None, alias="schema")

    model_config = ConfigDict(populate_by_name=True)

class OperationSummary(BaseModel):
    """Normalized record for one path + method pair.

    ``output`` holds the 2xx responses and ``error_responses`` the 4xx/5xx
    responses, both in document order. Every other status code (1xx, 3xx,
    ``default``) is dropped.
    """

    output: list[ResponseDescriptor] = Field(default_factory=list)
    input: dict[str, Any] = Field(default_factory=dict)
    parameters: list[ParameterSummary] = Field(default_factory=list)
    error_responses: list[ResponseDescriptor] = Field(
        default_factory=list, alias="errorResponses"
    )
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    summary: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

class PathOperations(BaseModel):
    """All extracted operations of a single path, keyed by lowercase method."""

    path: str
    methods: dict[str, OperationSummary] = Field(default_factory=dict)
