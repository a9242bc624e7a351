# src/swarmrest/api/adapters.py
"""Invocation adapters over RequestHandler.handle().

Three ways to mount the API, chosen explicitly by the caller:

    endpoint(handler)                   Starlette endpoint; always answers.
                                        200 + result, or 500 + {"err": ...}
    SwarmRestMiddleware(app, handler)   ASGI middleware; requests outside
                                        the route go to ``app`` untouched,
                                        errors propagate to outer handlers
    handle_with_callback(handler, request, callback)
                                        plain callback(error, result)
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Receive, Scope, Send

from swarmrest.api.auth import ApiRequest
from swarmrest.api.handler import RequestHandler
from swarmrest.contracts.errors import SwarmRestError, WrongBodyFormat, WrongRoute
from swarmrest.core.logging import get_logger

logger = get_logger(__name__)

HTTP_OK = 200
HTTP_ERROR = 500

ResultCallback = Callable[[BaseException | None, dict[str, Any] | None], None]


async def build_request(request: Request) -> ApiRequest:
    """Convert a Starlette request into an ApiRequest.

    An empty body becomes ``{}``.

    Raises:
        WrongBodyFormat: If the body is present but not JSON.
    """
    raw = await request.body()
    body: Any = {}
    if raw.strip():
        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise WrongBodyFormat() from exc
    return ApiRequest(
        method=request.method.upper(),
        path=request.scope["path"],
        query=dict(request.query_params),
        body=body,
    )


def error_response(exc: BaseException) -> JSONResponse:
    return JSONResponse({"err": str(exc)}, status_code=HTTP_ERROR)


def endpoint(handler: RequestHandler) -> Callable[[Request], Awaitable[Response]]:
    """Build a Starlette endpoint that answers every request itself."""

    async def swarmrest_endpoint(request: Request) -> Response:
        try:
            api_request = await build_request(request)
            result = await handler.handle(api_request)
        except (SwarmRestError, WrongRoute) as exc:
            logger.info("request_failed", path=request.scope["path"], error=str(exc))
            return error_response(exc)
        except Exception as exc:
            logger.error("request_crashed", path=request.scope["path"], exc_info=True)
            return error_response(exc)
        return JSONResponse(result, status_code=HTTP_OK)

    return swarmrest_endpoint


class SwarmRestMiddleware:
    """Pure ASGI middleware serving the API under the handler's route.

    Usage:
        app = Starlette(
            routes=[...],
            middleware=[Middleware(SwarmRestMiddleware, handler=handler)],
        )
    """

    def __init__(self, app: ASGIApp, handler: RequestHandler) -> None:
        self.app = app
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Route is checked before the body is read so pass-through requests
        # reach the wrapped app with an untouched receive channel.
        if scope["type"] != "http" or not self.handler.owns(scope["path"]):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        api_request = await build_request(request)
        result = await self.handler.handle(api_request)
        response = JSONResponse(result, status_code=HTTP_OK)
        await response(scope, receive, send)


async def handle_with_callback(
    handler: RequestHandler,
    request: ApiRequest,
    callback: ResultCallback,
) -> None:
    """Run a request and report the outcome through ``callback`` exactly once."""
    try:
        result = await handler.handle(request)
    except Exception as exc:
        callback(exc, None)
        return
    callback(None, result)
