"""OpenAPI transformation pipeline -- validate, resolve, extract, flatten, synthesize.

Two independent request/response flows are built from these modules:

* **document -> flattened summary**: :func:`dereference`, then
  :func:`validate` on the resolved tree, then :func:`extract` and
  :func:`flatten`.
* **examples -> document**: :func:`synthesize` (built on
  :func:`infer_schema`).

Typical usage::

    from specshift.pipeline import dereference, extract, flatten, validate

    resolved = await dereference(raw)
    if validate(resolved).valid:
        flattened = flatten(await extract(resolved))

Sub-modules:

* :mod:`~specshift.pipeline.loader` -- I/O (URL, file, stdin) and the
  async fetcher used for external references.
* :mod:`~specshift.pipeline.validator` -- meta-schema and reference
  integrity checks.
* :mod:`~specshift.pipeline.resolver` -- ``$ref`` dereferencing with cycle
  detection.
* :mod:`~specshift.pipeline.extractor` -- per-operation summaries.
* :mod:`~specshift.pipeline.flattener` -- path -> METHOD reshaping.
* :mod:`~specshift.pipeline.synthesizer` -- schema inference from examples.
"""

from specshift.pipeline.extractor import extract
from specshift.pipeline.flattener import dump_flattened, flatten
from specshift.pipeline.loader import load_document, validate_openapi_version
from specshift.pipeline.resolver import dereference
from specshift.pipeline.synthesizer import infer_schema, synthesize
from specshift.pipeline.validator import validate, validate_document

__all__ = [
    "dereference",
    "dump_flattened",
    "extract",
    "flatten",
    "infer_schema",
    "load_document",
    "synthesize",
    "validate",
    "validate_document",
    "validate_openapi_version",
]
