"""Shared test fixtures for specshift.

Provides document fixtures, an isolated config environment, output
managers, the FastAPI test client, and the CLI runner. Discovered
automatically by pytest.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from specshift.output import OutputFormat, OutputManager, reset_output, set_output

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    CliRunner swaps sys.stdout/sys.stderr for the duration of a call; a
    manager created inside it would keep writing to closed streams.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_logging_between_tests() -> None:
    """Undo setup_logging() so caplog sees specshift records again.

    The CLI callback installs a RichHandler bound to the runner's
    temporary stderr and turns propagation off.
    """
    yield
    logger = logging.getLogger("specshift")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore 3.0 document."""
    with open(FIXTURES_DIR / "petstore_3.0.json") as f:
        return json.load(f)


@pytest.fixture
def external_dir(tmp_path: Path) -> Path:
    """Copy the split (external $ref) fixture documents into tmp_path."""
    target = tmp_path / "external"
    target.mkdir()
    for name in ("api.json", "schemas.json"):
        (target / name).write_text((FIXTURES_DIR / "external" / name).read_text())
    return target


@pytest.fixture
def minimal_doc() -> Callable[..., dict[str, Any]]:
    """Factory for a small valid document; keyword arguments override top-level keys."""

    base = {
        "openapi": "3.0.0",
        "info": {"title": "Minimal", "version": "1.0.0"},
        "paths": {
            "/ping": {
                "get": {
                    "responses": {"200": {"description": "pong"}},
                }
            }
        },
    }

    def _make(**overrides: Any) -> dict[str, Any]:
        doc = copy.deepcopy(base)
        doc.update(overrides)
        return doc

    return _make


# ---------------------------------------------------------------------------
# HTTP mocking
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_async_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an ``httpx.AsyncClient`` whose requests are answered by *handler*."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points HOME and the XDG directories into tmp_path, clears all
    SPECSHIFT_* variables, and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "SPECSHIFT_HOST",
        "SPECSHIFT_PORT",
        "SPECSHIFT_LOG_LEVEL",
        "SPECSHIFT_STORE_URL",
        "SPECSHIFT_STORE_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Web and CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def make_client():
    """Factory for a FastAPI TestClient with injectable store and relay."""
    from fastapi.testclient import TestClient

    from specshift.store import MemoryStore
    from specshift.web.main import create_app

    clients: list[TestClient] = []

    def _make(store: Optional[Any] = None, relay: Optional[Any] = None, config: Optional[Any] = None) -> TestClient:
        app = create_app(config=config, store=store or MemoryStore(), relay_client=relay)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
