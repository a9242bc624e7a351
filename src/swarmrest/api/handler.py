# src/swarmrest/api/handler.py
"""Request handler: the composition root of one request/response cycle.

Request flow:
1. Strip the route prefix (WrongRoute if the path is outside it)
2. Authenticate the user
3. Extract operation descriptors from method + path + body
4. Run open/apply/close through the orchestrator

Transport adapters (endpoint, middleware, callback) live in
swarmrest.api.adapters; they all call RequestHandler.handle().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from swarmrest.api.auth import ApiRequest, Authenticator, run_options, username_from_param
from swarmrest.contracts.errors import WrongRoute
from swarmrest.contracts.operations import MAX_PARALLEL_OPENS
from swarmrest.core.config import normalize_route
from swarmrest.core.logging import get_logger, request_context
from swarmrest.engine.extractor import extract
from swarmrest.engine.orchestrator import ObjectOrchestrator
from swarmrest.engine.versions import session_scope

if TYPE_CHECKING:
    from swarmrest.contracts.host import ObjectHost
    from swarmrest.core.config import ApiConfig

logger = get_logger(__name__)


class RequestHandler:
    """Turns ApiRequests into result mappings against one Object Host."""

    def __init__(
        self,
        host: ObjectHost,
        *,
        route: str = "",
        authenticate: Authenticator | None = None,
        max_parallel_opens: int = MAX_PARALLEL_OPENS,
    ) -> None:
        """Initialize handler.

        Args:
            host: The Object Host collaborator
            route: Path prefix served by this handler ("" or "/" for root)
            authenticate: Async callable returning the username, or raising
                NotAuthenticated (defaults to the ``username`` parameter)
            max_parallel_opens: Open-phase concurrency cap per request

        Raises:
            ValueError: If no host is given
            TypeError: If authenticate is not callable
        """
        if host is None:
            raise ValueError("No object host specified")
        if authenticate is not None and not callable(authenticate):
            raise TypeError('"authenticate" must be callable')
        self._host = host
        self._route = normalize_route(route)
        self._authenticate: Authenticator = authenticate if authenticate is not None else username_from_param
        self._orchestrator = ObjectOrchestrator(host, max_parallel_opens=max_parallel_opens)

    @classmethod
    def from_config(
        cls,
        config: ApiConfig,
        host: ObjectHost,
        authenticate: Authenticator | None = None,
    ) -> RequestHandler:
        return cls(
            host,
            route=config.route,
            authenticate=authenticate,
            max_parallel_opens=config.max_parallel_opens,
        )

    @property
    def route(self) -> str:
        return self._route

    @property
    def host(self) -> ObjectHost:
        return self._host

    def owns(self, path: str) -> bool:
        """True if path lies under this handler's route (segment-aligned)."""
        if not self._route:
            return True
        return path == self._route or path.startswith(self._route + "/")

    def strip_route(self, path: str) -> str:
        """Return path relative to the route.

        Raises:
            WrongRoute: If path lies outside the route.
        """
        if not self.owns(path):
            raise WrongRoute(path, self._route)
        return path[len(self._route) :]

    async def handle(self, request: ApiRequest) -> dict[str, Any]:
        """Run one request to completion.

        Raises:
            WrongRoute: Path outside the route (nothing else was attempted).
            SwarmRestError: Authentication, parse or open failures.
        """
        path = self.strip_route(request.path)
        username = await self._authenticate(request)
        descriptors = extract(request.method, path, request.body)
        scope = session_scope(username, self._host.id)
        options = run_options(request)

        with request_context(method=request.method, path=path, username=username):
            logger.debug("request_started", operations=len(descriptors))
            result = await self._orchestrator.run(descriptors, scope, options)
            logger.info("request_handled", operations=len(descriptors), entries=len(result))
        return result
