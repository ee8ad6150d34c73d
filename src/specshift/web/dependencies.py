"""FastAPI dependencies that hand route handlers their collaborators.

Everything is read from ``app.state``, populated once by
:func:`~specshift.web.main.create_app`.
"""

from fastapi import Request

from specshift.models import ServiceConfig
from specshift.relay import HttpRelay
from specshift.store import Store


def get_config(request: Request) -> ServiceConfig:
    """Dependency that provides the resolved service configuration."""
    return request.app.state.config


def get_store(request: Request) -> Store:
    """Dependency that provides the persistence store.

    Example:
        @router.get("/api/v1/projects")
        async def list_projects(store: Store = Depends(get_store)):
            ...
    """
    return request.app.state.store


def get_relay(request: Request) -> HttpRelay:
    """Dependency that provides the outbound HTTP relay."""
    return request.app.state.relay
