# src/swarmrest/api/app.py
"""Starlette ASGI application for swarm-rest.

Usage:
    from swarmrest.api.app import create_app
    from swarmrest.core.config import SwarmRestConfig

    app = create_app(SwarmRestConfig())              # in-memory demo host
    app = create_app(config, host=my_host)           # external host
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from swarmrest import __version__
from swarmrest.api.adapters import endpoint
from swarmrest.api.handler import RequestHandler
from swarmrest.testing.memory_host import MemoryHost

if TYPE_CHECKING:
    from swarmrest.api.auth import Authenticator
    from swarmrest.contracts.host import ObjectHost
    from swarmrest.core.config import MemoryHostConfig, SwarmRestConfig

# Unsupported verbs must still reach the handler so they are reported as
# UnsupportedRequestFormat rather than a bare 405.
API_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def build_memory_host(config: MemoryHostConfig) -> MemoryHost:
    """Create an in-memory host with the configured types and seed objects."""
    host = MemoryHost(host_id=config.host_id)
    for type_name, defaults in config.models.items():
        host.register_model(type_name, defaults)
    for type_name in config.collections:
        host.register_collection(type_name)
    for target_id, state in config.objects.items():
        host.seed(target_id, state)
    return host


def create_app(
    config: SwarmRestConfig,
    *,
    host: ObjectHost | None = None,
    authenticate: Authenticator | None = None,
) -> Starlette:
    """Create the Starlette application.

    Args:
        config: Loaded configuration
        host: Object Host to serve; defaults to an in-memory host built
            from ``config.memory_host``
        authenticate: Optional authenticator (default: username parameter)
    """
    if host is None:
        host = build_memory_host(config.memory_host)
    handler = RequestHandler.from_config(config.api, host, authenticate)

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "healthy",
                "version": __version__,
                "host_id": handler.host.id,
                "route": handler.route or "/",
            }
        )

    api = endpoint(handler)
    routes = [Route("/health", health, methods=["GET"])]
    if handler.route:
        # The bare prefix belongs to the API too; it must not 404 or redirect
        routes.append(Route(handler.route, api, methods=API_METHODS))
    # Catch-all API route - must be last
    routes.append(Route(f"{handler.route}/{{path:path}}", api, methods=API_METHODS))
    app = Starlette(debug=False, routes=routes)
    app.state.handler = handler
    return app
