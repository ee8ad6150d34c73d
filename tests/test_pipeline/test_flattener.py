"""Tests for specshift.pipeline.flattener."""

from __future__ import annotations

import asyncio

import pytest

from specshift.exceptions import UsageError
from specshift.models import OperationSummary, ParameterSummary, PathOperations
from specshift.pipeline.extractor import extract
from specshift.pipeline.flattener import dump_flattened, flatten


class TestFlatten:
    def test_methods_are_uppercased(self) -> None:
        summary = OperationSummary()
        grouped = [PathOperations(path="/x", methods={"get": summary, "post": summary})]

        flattened = flatten(grouped)

        assert list(flattened["/x"]) == ["GET", "POST"]
        assert flattened["/x"]["GET"] is summary

    def test_repeated_paths_are_merged(self) -> None:
        a, b = OperationSummary(summary="a"), OperationSummary(summary="b")
        grouped = [
            PathOperations(path="/x", methods={"get": a}),
            PathOperations(path="/x", methods={"delete": b}),
        ]

        flattened = flatten(grouped)

        assert flattened == {"/x": {"GET": a, "DELETE": b}}

    def test_empty_input(self) -> None:
        assert flatten([]) == {}

    def test_unawaited_extract_is_rejected(self, petstore_raw) -> None:
        pending = extract(petstore_raw)

        with pytest.raises(UsageError, match="await"):
            flatten(pending)

    def test_every_extracted_pair_appears(self, petstore_raw) -> None:
        grouped = asyncio.run(extract(petstore_raw))

        flattened = flatten(grouped)

        pairs = {(path, method) for path, methods in flattened.items() for method in methods}
        assert pairs == {("/pets", "GET"), ("/pets", "POST"), ("/pets/{petId}", "GET")}


class TestDumpFlattened:
    def test_wire_names(self) -> None:
        flattened = {"/x": {"GET": OperationSummary(operation_id="getX")}}

        dumped = dump_flattened(flattened)

        assert dumped == {
            "/x": {
                "GET": {
                    "output": [],
                    "input": {},
                    "parameters": [],
                    "errorResponses": [],
                    "operationId": "getX",
                }
            }
        }

    def test_unset_parameter_attributes_are_omitted(self) -> None:
        summary = OperationSummary(parameters=[ParameterSummary(name="q", location="query")])

        dumped = dump_flattened({"/x": {"GET": summary}})

        assert dumped["/x"]["GET"]["parameters"] == [{"name": "q", "in": "query"}]

    def test_widgets_end_to_end(self) -> None:
        doc = {
            "openapi": "3.0.0",
            "paths": {
                "/widgets": {
                    "get": {
                        "responses": {
                            "200": {"description": "ok", "content": {}},
                            "404": {"description": "missing", "content": {}},
                        }
                    }
                }
            },
        }

        dumped = dump_flattened(flatten(asyncio.run(extract(doc))))

        assert dumped == {
            "/widgets": {
                "GET": {
                    "output": [{"code": "200", "content": {}, "description": "ok"}],
                    "input": {},
                    "parameters": [],
                    "errorResponses": [{"code": "404", "content": {}, "description": "missing"}],
                }
            }
        }
