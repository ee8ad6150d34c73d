"""Tests for specshift.pipeline.resolver."""

from __future__ import annotations

import asyncio
import copy
import json
from pathlib import Path

import httpx
import pytest

from specshift.exceptions import ResolutionCancelled, ResolutionError
from specshift.pipeline.loader import DocumentFetcher
from specshift.pipeline.resolver import dereference, lookup_pointer, split_ref


def _run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Internal references
# ---------------------------------------------------------------------------


class TestInternalRefs:
    def test_resolves_simple_ref(self) -> None:
        doc = {
            "paths": {"/pets": {"get": {"schema": {"$ref": "#/components/schemas/Pet"}}}},
            "components": {"schemas": {"Pet": {"type": "object"}}},
        }

        resolved = _run(dereference(doc))

        assert resolved["paths"]["/pets"]["get"]["schema"] == {"type": "object"}

    def test_resolves_nested_refs(self) -> None:
        doc = {
            "root": {"$ref": "#/components/schemas/Outer"},
            "components": {
                "schemas": {
                    "Outer": {
                        "type": "object",
                        "properties": {"inner": {"$ref": "#/components/schemas/Inner"}},
                    },
                    "Inner": {"type": "string"},
                }
            },
        }

        resolved = _run(dereference(doc))

        assert resolved["root"]["properties"]["inner"] == {"type": "string"}

    def test_resolves_refs_inside_lists(self) -> None:
        doc = {
            "parameters": [{"$ref": "#/components/parameters/Limit"}],
            "components": {"parameters": {"Limit": {"name": "limit", "in": "query"}}},
        }

        resolved = _run(dereference(doc))

        assert resolved["parameters"] == [{"name": "limit", "in": "query"}]

    def test_shared_target_is_expanded_everywhere(self) -> None:
        doc = {
            "a": {"$ref": "#/defs/X"},
            "b": {"$ref": "#/defs/X"},
            "defs": {"X": {"type": "integer"}},
        }

        resolved = _run(dereference(doc))

        assert resolved["a"] == resolved["b"] == {"type": "integer"}

    def test_escaped_pointer_segments(self) -> None:
        doc = {
            "a": {"$ref": "#/paths/~1pets~1{id}"},
            "b": {"$ref": "#/defs/tilde~0key"},
            "paths": {"/pets/{id}": {"x": 1}},
            "defs": {"tilde~key": {"y": 2}},
        }

        resolved = _run(dereference(doc))

        assert resolved["a"] == {"x": 1}
        assert resolved["b"] == {"y": 2}

    def test_percent_encoded_pointer(self) -> None:
        doc = {"a": {"$ref": "#/defs/with%20space"}, "defs": {"with space": {"ok": True}}}

        assert _run(dereference(doc))["a"] == {"ok": True}

    def test_array_index_pointer(self) -> None:
        doc = {"a": {"$ref": "#/items/1"}, "items": ["zero", {"one": 1}]}

        assert _run(dereference(doc))["a"] == {"one": 1}

    def test_root_pointer_is_cycle(self) -> None:
        doc = {"self": {"$ref": "#"}}

        with pytest.raises(ResolutionError, match="Circular"):
            _run(dereference(doc))


class TestResolutionInvariants:
    def test_no_refs_returns_equal_tree(self) -> None:
        doc = {
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "paths": {"/x": {"get": {"responses": {"200": {"description": "ok"}}}}},
        }

        assert _run(dereference(doc)) == doc

    def test_does_not_mutate_input(self, petstore_raw) -> None:
        before = copy.deepcopy(petstore_raw)

        _run(dereference(petstore_raw))

        assert petstore_raw == before

    def test_no_ref_nodes_remain(self, petstore_raw) -> None:
        resolved = _run(dereference(petstore_raw))

        assert '"$ref"' not in json.dumps(resolved)

    def test_non_string_ref_is_left_alone(self) -> None:
        doc = {"properties": {"$ref": {"type": "string"}}}

        assert _run(dereference(doc)) == doc


class TestResolutionErrors:
    def test_missing_target_raises(self) -> None:
        doc = {"a": {"$ref": "#/components/schemas/Nope"}, "components": {"schemas": {}}}

        with pytest.raises(ResolutionError, match="Nope"):
            _run(dereference(doc))

    def test_direct_cycle_raises(self) -> None:
        doc = {
            "root": {"$ref": "#/defs/Node"},
            "defs": {
                "Node": {
                    "type": "object",
                    "properties": {"next": {"$ref": "#/defs/Node"}},
                }
            },
        }

        with pytest.raises(ResolutionError, match="Circular"):
            _run(dereference(doc))

    def test_indirect_cycle_raises(self) -> None:
        doc = {
            "root": {"$ref": "#/defs/A"},
            "defs": {
                "A": {"properties": {"b": {"$ref": "#/defs/B"}}},
                "B": {"properties": {"a": {"$ref": "#/defs/A"}}},
            },
        }

        with pytest.raises(ResolutionError):
            _run(dereference(doc))

    def test_invalid_array_index(self) -> None:
        doc = {"a": {"$ref": "#/items/5"}, "items": [1]}

        with pytest.raises(ResolutionError, match="invalid array index"):
            _run(dereference(doc))

    def test_navigate_into_scalar(self) -> None:
        doc = {"a": {"$ref": "#/value/deeper"}, "value": 3}

        with pytest.raises(ResolutionError, match="cannot navigate"):
            _run(dereference(doc))

    def test_relative_external_without_base_uri(self) -> None:
        doc = {"a": {"$ref": "common.json#/Error"}}

        with pytest.raises(ResolutionError, match="without a base URI"):
            _run(dereference(doc))

    def test_external_refs_can_be_disallowed(self, external_dir: Path) -> None:
        doc = json.loads((external_dir / "api.json").read_text())

        with pytest.raises(ResolutionError, match="not allowed"):
            _run(
                dereference(
                    doc,
                    base_uri=(external_dir / "api.json").as_uri(),
                    allow_external=False,
                )
            )


# ---------------------------------------------------------------------------
# External references
# ---------------------------------------------------------------------------


class TestExternalRefs:
    def test_resolves_relative_file_refs(self, external_dir: Path) -> None:
        doc = json.loads((external_dir / "api.json").read_text())

        resolved = _run(dereference(doc, base_uri=(external_dir / "api.json").as_uri()))

        schema = resolved["paths"]["/items"]["get"]["responses"]["200"]["content"][
            "application/json"
        ]["schema"]
        # "#/Owner" inside schemas.json resolves against schemas.json
        assert schema["properties"]["owner"] == {
            "type": "object",
            "properties": {"name": {"type": "string"}},
        }

    def test_absolute_path_ref_from_local_document(self, external_dir: Path, tmp_path: Path) -> None:
        doc = {"a": {"$ref": f"{external_dir / 'schemas.json'}#/Error"}}

        resolved = _run(dereference(doc, base_uri=(tmp_path / "other.json").as_uri()))

        assert resolved["a"] == {"type": "object", "properties": {"message": {"type": "string"}}}

    @pytest.mark.parametrize("scheme", ["path", "uri"])
    def test_local_ref_without_base_is_refused(self, external_dir: Path, scheme: str) -> None:
        target = external_dir / "schemas.json"
        ref = str(target) if scheme == "path" else target.as_uri()
        doc = {"a": {"$ref": f"{ref}#/Error"}}

        with pytest.raises(ResolutionError, match="only allowed from a local document"):
            _run(dereference(doc))

    def test_remote_document_cannot_reach_local_files(
        self, external_dir: Path, mock_async_client
    ) -> None:
        local = (external_dir / "schemas.json").as_uri()
        fetcher = DocumentFetcher(
            client=mock_async_client(
                lambda request: httpx.Response(200, json={"Leak": {"$ref": f"{local}#/Error"}})
            )
        )
        doc = {"a": {"$ref": "https://example.com/schemas.json#/Leak"}}

        with pytest.raises(ResolutionError, match="only allowed from a local document"):
            _run(dereference(doc, fetcher=fetcher))

    def test_missing_external_file(self, tmp_path: Path) -> None:
        doc = {"a": {"$ref": "missing.json#/X"}}

        with pytest.raises(ResolutionError, match="Cannot read"):
            _run(dereference(doc, base_uri=(tmp_path / "api.json").as_uri()))

    def test_remote_refs_fetched_once(self, mock_async_client) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(
                200,
                json={"Pet": {"type": "object"}, "Tag": {"type": "string"}},
                headers={"content-type": "application/json"},
            )

        fetcher = DocumentFetcher(client=mock_async_client(handler))
        doc = {
            "a": {"$ref": "https://example.com/schemas.json#/Pet"},
            "b": {"$ref": "https://example.com/schemas.json#/Tag"},
        }

        resolved = _run(dereference(doc, fetcher=fetcher))

        assert resolved == {"a": {"type": "object"}, "b": {"type": "string"}}
        assert calls == ["https://example.com/schemas.json"]

    def test_remote_relative_to_base_uri(self, mock_async_client) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text="Error:\n  type: object\n")

        fetcher = DocumentFetcher(client=mock_async_client(handler))
        doc = {"a": {"$ref": "common.yaml#/Error"}}

        resolved = _run(
            dereference(doc, base_uri="https://example.com/specs/api.yaml", fetcher=fetcher)
        )

        assert resolved["a"] == {"type": "object"}
        assert seen == ["https://example.com/specs/common.yaml"]

    def test_remote_http_error(self, mock_async_client) -> None:
        fetcher = DocumentFetcher(
            client=mock_async_client(lambda request: httpx.Response(404, text="nope"))
        )
        doc = {"a": {"$ref": "https://example.com/missing.json#/X"}}

        with pytest.raises(ResolutionError, match="HTTP 404"):
            _run(dereference(doc, fetcher=fetcher))

    def test_unsupported_scheme(self) -> None:
        doc = {"a": {"$ref": "ftp://example.com/schemas.json#/X"}}

        with pytest.raises(ResolutionError, match="Unsupported"):
            _run(dereference(doc))


class TestCancellation:
    def test_cancelled_before_start(self) -> None:
        event = asyncio.Event()
        event.set()
        doc = {"a": {"$ref": "#/defs/X"}, "defs": {"X": {}}}

        with pytest.raises(ResolutionCancelled):
            _run(dereference(doc, cancel=event))

    def test_unset_event_does_not_interfere(self) -> None:
        doc = {"a": {"$ref": "#/defs/X"}, "defs": {"X": {"ok": 1}}}

        assert _run(dereference(doc, cancel=asyncio.Event()))["a"] == {"ok": 1}

    def test_cancelled_is_a_resolution_error(self) -> None:
        assert issubclass(ResolutionCancelled, ResolutionError)


class TestHelpers:
    def test_split_ref(self) -> None:
        assert split_ref("#/a/b") == ("", "/a/b")
        assert split_ref("other.json#/X") == ("other.json", "/X")
        assert split_ref("other.json") == ("other.json", "")

    def test_lookup_empty_pointer_returns_document(self) -> None:
        doc = {"a": 1}
        assert lookup_pointer(doc, "", "#") is doc

    def test_lookup_rejects_non_pointer_fragment(self) -> None:
        with pytest.raises(ResolutionError, match="unsupported fragment"):
            lookup_pointer({}, "anchor", "#anchor")
