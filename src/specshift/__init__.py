"""specshift -- validate, flatten, and synthesize OpenAPI 3.0 documents.

This package turns an OpenAPI document into a flattened per-path/per-method
summary, and infers a fresh single-operation OpenAPI document from example
request and response payloads. It ships both a Typer CLI and a FastAPI
service that also stores project/documentation metadata and relays
authenticated HTTP calls.

Typical usage::

    specshift flatten openapi.yaml        # validate + dereference + flatten
    specshift synthesize --input in.json --output out.json
    specshift serve                       # run the HTTP service

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Error taxonomy with exit-code and HTTP status mapping.
    pipeline: The transformation pipeline (validate, resolve, extract,
        flatten, synthesize).
    service: Request-level boundary operations used by the CLI and web app.
    store: Persistence collaborators (Supabase/PostgREST and in-memory).
    relay: Outbound HTTP relay.
    web: FastAPI application.
"""

__version__ = "0.3.0"
