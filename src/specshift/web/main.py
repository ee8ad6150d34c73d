"""FastAPI application factory and entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import specshift
from specshift.config import resolve_config, resolve_store_key
from specshift.models import ServiceConfig
from specshift.relay import HttpRelay
from specshift.store import MemoryStore, Store, SupabaseStore

from .errors import register_exception_handlers
from .routes import convert, health, persistence, relay

logger = logging.getLogger(__name__)


def build_store(config: ServiceConfig) -> Store:
    """Create the configured store: Supabase when a URL is set, in-memory otherwise."""
    if config.store.url:
        key = resolve_store_key(config)
        if key:
            logger.info("Using Supabase store at %s", config.store.url)
            return SupabaseStore(config.store.url, key, timeout=config.store.timeout)
        logger.warning("store.url is set but no key was found; using in-memory store")
    else:
        logger.info("No store URL configured; using in-memory store")
    return MemoryStore()


def create_app(
    config: Optional[ServiceConfig] = None,
    store: Optional[Store] = None,
    relay_client: Optional[HttpRelay] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators are built once here and attached to ``app.state``; route
    handlers receive them through the dependencies in
    :mod:`specshift.web.dependencies`. Passing *store* or *relay_client*
    replaces the configured ones (tests use this).

    Example::

        from fastapi.testclient import TestClient
        client = TestClient(create_app(store=MemoryStore()))
    """
    config = config or ServiceConfig()
    owned: list = []

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("specshift %s starting", specshift.__version__)
        yield
        logger.info("specshift shutting down")
        for collaborator in owned:
            await collaborator.aclose()

    app = FastAPI(
        title="specshift",
        version=specshift.__version__,
        description="Validate and flatten OpenAPI 3.0 documents, synthesize "
        "documents from example payloads, store project documentation, and "
        "relay authenticated requests.",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Health check endpoint"},
            {"name": "Convert", "description": "OpenAPI flattening and synthesis"},
            {"name": "Projects", "description": "Project and documentation records"},
            {"name": "Relay", "description": "Authenticated request relay"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if store is None:
        store = build_store(config)
        owned.append(store)
    if relay_client is None:
        relay_client = HttpRelay(config.relay)
        owned.append(relay_client)

    app.state.config = config
    app.state.store = store
    app.state.relay = relay_client

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(convert.router)
    app.include_router(persistence.router)
    app.include_router(relay.router)

    return app


def run(config: ServiceConfig, reload: bool = False) -> None:
    """Serve the app with uvicorn using the resolved configuration."""
    if reload:
        # reload needs an import string, so the worker re-resolves its config
        uvicorn.run(
            "specshift.web.main:app_factory",
            factory=True,
            host=config.host,
            port=config.port,
            reload=True,
            log_level=config.log_level.lower(),
        )
        return
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


def app_factory() -> FastAPI:
    """Build the app from the resolved configuration (used by ``--reload``)."""
    return create_app(resolve_config())
