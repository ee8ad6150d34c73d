"""Pipeline commands -- validate, flatten and synthesize from the shell.

``SOURCE`` arguments accept a file path, an ``http(s)://`` URL, or ``-``
for stdin, in JSON or YAML. Results go to stdout through the global
:class:`~specshift.output.OutputManager`; failures surface as
:class:`~specshift.exceptions.SpecshiftError` and become the process exit
code in :func:`specshift.app.main`.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from specshift.exceptions import ValidationError
from specshift.exit_codes import EXIT_VALIDATION_ERROR


def validate_command(
    source: str = typer.Argument(help="OpenAPI document: file path, URL, or '-' for stdin."),
) -> None:
    """Check a document against the OpenAPI 3.0 meta-schema.

    External references are resolved first, relative to SOURCE, using the
    configured resolver settings. Prints the validation result and exits
    with code 2 when the document is invalid.

    Example::

        specshift validate openapi.yaml
        cat openapi.json | specshift validate -
    """
    from specshift.config import resolve_config
    from specshift.output import format_response, success
    from specshift.pipeline import load_document, validate_document
    from specshift.pipeline.loader import DocumentFetcher

    resolver = resolve_config().resolver
    document = load_document(source)
    result = asyncio.run(
        validate_document(
            document,
            base_uri=_base_uri(source),
            fetcher=DocumentFetcher(timeout=resolver.fetch_timeout),
            allow_external=resolver.allow_external_refs,
        )
    )
    format_response(result.model_dump(mode="json", by_alias=True))
    if not result.valid:
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)
    success("Document is valid.")


def flatten_command(
    source: str = typer.Argument(help="OpenAPI document: file path, URL, or '-' for stdin."),
    no_validate: bool = typer.Option(
        False, "--no-validate", help="Skip the meta-schema check."
    ),
    no_external_refs: bool = typer.Option(
        False, "--no-external-refs", help="Refuse $refs that point outside the document."
    ),
) -> None:
    """Validate, dereference and flatten a document into per-operation summaries.

    Relative external ``$ref`` values resolve against the location of
    SOURCE.

    Example::

        specshift flatten openapi.yaml
        specshift -o flat.json flatten https://example.com/openapi.json
    """
    from specshift.config import resolve_config
    from specshift.output import format_response
    from specshift.pipeline import load_document, validate_openapi_version
    from specshift.service import convert_document

    config = resolve_config()
    resolver = config.resolver
    if no_external_refs:
        resolver = resolver.model_copy(update={"allow_external_refs": False})

    document = load_document(source)
    validate_openapi_version(document)

    result = asyncio.run(
        convert_document(
            document,
            resolver=resolver,
            base_uri=_base_uri(source),
            skip_validation=no_validate,
        )
    )
    format_response(result)


def synthesize_command(
    input_file: Path = typer.Option(
        ..., "--input", "-i", help="Example request body (JSON or YAML object)."
    ),
    output_example: Path = typer.Option(
        ..., "--output", help="Example response body (JSON or YAML object)."
    ),
    parameters_file: Optional[Path] = typer.Option(
        None, "--parameters", "-p", help="Parameter list (JSON or YAML array)."
    ),
) -> None:
    """Build an OpenAPI 3.0 document from example request and response bodies.

    Without ``--parameters`` the operation declares no parameters.

    Example::

        specshift synthesize --input req.json --output resp.json
        specshift synthesize --input req.json --output resp.json --parameters params.yaml
    """
    from specshift.config import resolve_config
    from specshift.output import format_response
    from specshift.service import synthesize_payload

    payload = {
        "input": _read_structured(input_file),
        "output": _read_structured(output_example),
        "parameters": _read_structured(parameters_file) if parameters_file else [],
    }
    if not isinstance(payload["parameters"], list):
        raise ValidationError(f"Parameters in {parameters_file} must be a list")

    result = synthesize_payload(payload, synthesis=resolve_config().synthesis)
    format_response(result["openapiSchema"])


def _read_structured(path: Path) -> Any:
    """Read a JSON or YAML file without constraining the top-level type."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(f"Cannot read {path}: {exc}") from exc
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ValidationError(f"Failed to parse {path} as JSON or YAML: {exc}") from exc


def _base_uri(source: str) -> Optional[str]:
    from specshift.output import debug
    from specshift.pipeline.loader import source_uri

    base_uri = source_uri(source)
    debug(f"Resolving $refs relative to {base_uri or '<no location>'}")
    return base_uri
