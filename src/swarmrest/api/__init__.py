"""HTTP surface: request handler, adapters and the ASGI app factory."""

from swarmrest.api.adapters import (
    SwarmRestMiddleware,
    build_request,
    endpoint,
    handle_with_callback,
)
from swarmrest.api.app import build_memory_host, create_app
from swarmrest.api.auth import ApiRequest, Authenticator, username_from_param
from swarmrest.api.handler import RequestHandler

__all__ = [
    "ApiRequest",
    "Authenticator",
    "RequestHandler",
    "SwarmRestMiddleware",
    "build_memory_host",
    "build_request",
    "create_app",
    "endpoint",
    "handle_with_callback",
    "username_from_param",
]
