"""Infer JSON Schemas from example payloads and wrap them in an OpenAPI document.

:func:`infer_schema` derives a schema from one example object:

* every key becomes a property and is appended to ``required``;
* ``type`` comes from a runtime check of the value (``bool`` -> boolean,
  ``int``/``float`` -> number, ``str`` -> string, ``list`` -> array,
  ``dict`` -> object, ``None`` -> nullable object);
* arrays take ``items.type`` from their first element only, so
  heterogeneous arrays report the first element's type and empty arrays
  get an untyped ``items: {}``;
* nested objects recurse, up to ``max_depth`` levels;
* each property carries a placeholder ``description`` and the original
  value as ``example``.

:func:`synthesize` runs the inference on an example request and response
and assembles a single-operation document around them.
"""

from __future__ import annotations

from typing import Any, Optional

from specshift.exceptions import ValidationError

DEFAULT_MAX_DEPTH = 32

EXAMPLE_PATH = "/example-endpoint"
EXAMPLE_METHOD = "post"

_INFO = {
    "title": "API Documentation",
    "version": "1.0.0",
    "description": "Automatically generated OpenAPI 3.0 schema",
}


def infer_schema(example: dict[str, Any], *, max_depth: int = DEFAULT_MAX_DEPTH) -> dict[str, Any]:
    """Infer an object schema from the example mapping *example*.

    Raises:
        ValidationError: If *example* is not a mapping or nests deeper
            than *max_depth* (which includes self-referencing structures).
    """
    if not isinstance(example, dict):
        raise ValidationError(
            f"Cannot infer a schema from {type(example).__name__}; expected an object"
        )
    return _object_schema(example, depth=1, max_depth=max_depth)


def _object_schema(data: dict[str, Any], depth: int, max_depth: int) -> dict[str, Any]:
    if depth > max_depth:
        raise ValidationError(f"Example payload nests deeper than {max_depth} levels")

    schema: dict[str, Any] = {"type": "object", "properties": {}, "required": []}
    for key, value in data.items():
        prop: dict[str, Any] = {
            "description": f"Description for {key}",
            "example": value,
            "type": json_type(value),
        }
        if isinstance(value, list):
            prop["items"] = {"type": json_type(value[0])} if value else {}
        elif isinstance(value, dict):
            nested = _object_schema(value, depth + 1, max_depth)
            prop["properties"] = nested["properties"]
            prop["required"] = nested["required"]
        elif value is None:
            prop["nullable"] = True

        schema["properties"][key] = prop
        schema["required"].append(key)

    return schema


def json_type(value: Any) -> str:
    """Return the JSON Schema type name for a decoded JSON value."""
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def synthesize(
    raw_input: Optional[dict[str, Any]],
    raw_output: Optional[dict[str, Any]],
    parameters: Optional[list[Any]],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Any]:
    """Build a single-operation OpenAPI 3.0 document from example payloads.

    The operation is ``POST /example-endpoint``; *parameters* are passed
    through unmodified, the inferred input schema becomes the JSON request
    body and the inferred output schema the only ``200`` response.

    Args:
        raw_input: Example request payload (non-empty object).
        raw_output: Example response payload (non-empty object).
        parameters: OpenAPI parameter objects; an empty list is fine.
        max_depth: Nesting limit passed to :func:`infer_schema`.

    Raises:
        ValidationError: If an example is missing, not an object, or empty,
            or if *parameters* is ``None``.

    Example::

        doc = synthesize({"name": "John", "age": 30}, {"id": "x"}, [])
        doc["paths"]["/example-endpoint"]["post"]["requestBody"]
    """
    if not _is_populated(raw_input) or not _is_populated(raw_output) or parameters is None:
        raise ValidationError("No data provided")

    input_schema = infer_schema(raw_input, max_depth=max_depth)
    output_schema = infer_schema(raw_output, max_depth=max_depth)

    return {
        "openapi": "3.0.0",
        "info": dict(_INFO),
        "paths": {
            EXAMPLE_PATH: {
                EXAMPLE_METHOD: {
                    "summary": "Example endpoint",
                    "description": "This is an example endpoint",
                    "parameters": parameters,
                    "requestBody": {
                        "description": "Input payload",
                        "content": {"application/json": {"schema": input_schema}},
                        "required": True,
                    },
                    "responses": {
                        "200": {
                            "description": "Successful response",
                            "content": {"application/json": {"schema": output_schema}},
                        }
                    },
                }
            }
        },
    }


def _is_populated(value: Any) -> bool:
    return isinstance(value, dict) and len(value) > 0
