"""Tests for the /convert endpoints."""

from __future__ import annotations

import json
from pathlib import Path

import specshift
from specshift.pipeline.synthesizer import EXAMPLE_METHOD, EXAMPLE_PATH


class TestConvert:
    def test_petstore(self, make_client, petstore_raw) -> None:
        response = make_client().post("/convert", json=petstore_raw)

        assert response.status_code == 200
        ans = response.json()["ans"]
        assert set(ans["/pets"]) == {"GET", "POST"}
        create = ans["/pets"]["POST"]
        assert create["operationId"] == "createPet"
        assert [r["code"] for r in create["output"]] == ["201"]
        assert [r["code"] for r in create["errorResponses"]] == ["400"]
        assert create["input"]["application/json"]["schema"]["required"] == ["id", "name"]

    def test_no_body(self, make_client) -> None:
        response = make_client().post("/convert")

        assert response.status_code == 400
        assert response.json() == {"error": "No data provided"}

    def test_empty_object(self, make_client) -> None:
        response = make_client().post("/convert", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "No data provided"

    def test_invalid_document(self, make_client, minimal_doc) -> None:
        doc = minimal_doc()
        del doc["info"]

        response = make_client().post("/convert", json=doc)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid OpenAPI schema"
        assert "'info' is a required property" in body["details"]

    def test_missing_paths(self, make_client) -> None:
        doc = {"openapi": "3.0.0", "info": {"title": "T", "version": "1"}}

        response = make_client().post("/convert", json=doc)

        assert response.status_code == 422
        assert response.json() == {"error": "Invalid schema: No paths found"}

    def test_circular_ref(self, make_client, minimal_doc) -> None:
        doc = minimal_doc(
            paths={
                "/node": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "ok",
                                "content": {
                                    "application/json": {
                                        "schema": {"$ref": "#/components/schemas/Node"}
                                    }
                                },
                            }
                        }
                    }
                }
            },
            components={
                "schemas": {
                    "Node": {
                        "type": "object",
                        "properties": {"next": {"$ref": "#/components/schemas/Node"}},
                    }
                }
            },
        )

        response = make_client().post("/convert", json=doc)

        assert response.status_code == 422
        assert "Circular" in response.json()["error"]

    def test_local_file_refs_are_refused(self, make_client, minimal_doc, tmp_path: Path) -> None:
        secret = tmp_path / "secret.json"
        secret.write_text(json.dumps({"type": "object", "description": "DB_PASSWORD=hunter2"}))
        doc = minimal_doc(
            paths={
                "/leak": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "ok",
                                "content": {
                                    "application/json": {"schema": {"$ref": secret.as_uri()}}
                                },
                            }
                        }
                    }
                }
            }
        )

        response = make_client().post("/convert", json=doc)

        assert response.status_code == 422
        assert "only allowed from a local document" in response.json()["error"]
        assert "hunter2" not in response.text


class TestConvertOpenapi:
    def test_synthesizes_document(self, make_client) -> None:
        payload = {
            "input": {"name": "John", "age": 30},
            "output": {"id": "abc", "tags": ["x"]},
            "parameters": [{"name": "verbose", "in": "query", "schema": {"type": "boolean"}}],
        }

        response = make_client().post("/convert/openapi", json=payload)

        assert response.status_code == 200
        document = response.json()["openapiSchema"]
        operation = document["paths"][EXAMPLE_PATH][EXAMPLE_METHOD]
        assert operation["parameters"] == payload["parameters"]
        schema = operation["requestBody"]["content"]["application/json"]["schema"]
        assert schema["properties"]["age"] == {
            "description": "Description for age",
            "example": 30,
            "type": "number",
        }

    def test_missing_field(self, make_client) -> None:
        response = make_client().post(
            "/convert/openapi", json={"input": {"a": 1}, "output": {"b": 2}}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No data provided"}

    def test_no_body(self, make_client) -> None:
        response = make_client().post("/convert/openapi")

        assert response.status_code == 400


class TestHealth:
    def test_health(self, make_client) -> None:
        response = make_client().get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": specshift.__version__}
