# src/swarmrest/contracts/errors.py
"""Error taxonomy for the swarm-rest request pipeline.

Every request-level failure is a SwarmRestError subclass carrying a fixed,
client-facing default message. Adapters stringify these into the ``err``
field of error responses, so the messages are part of the wire contract.

Propagation rules:
- Parse and authentication errors abort the request before any object is
  opened.
- OpenFailed aborts the apply phase; close still runs for opened targets.
- ProcessingError is never raised out of the orchestrator. Its message is
  used to build the per-operation payload captured in the result.
"""

from __future__ import annotations


class SwarmRestError(Exception):
    """Base class for all request-level failures."""

    default_message = "request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class MalformedSpecifier(SwarmRestError):
    """Raised when a specifier does not match the token grammar."""

    default_message = "malformed specifier"


class NoTypeSpecified(SwarmRestError):
    default_message = "no object type specified (/Type)"


class NoIdSpecified(SwarmRestError):
    default_message = "no object id specified (#id)"


class NoOpSpecified(SwarmRestError):
    default_message = "no operation specified (.op)"


class UnsupportedToken(SwarmRestError):
    """Raised when a read path contains a version or operation token."""

    default_message = "unsupported spec in url"


class WrongBodyFormat(SwarmRestError):
    """Raised when a request body is present but is not valid JSON."""

    default_message = "expecting json in request body"


class UnsupportedRequestFormat(SwarmRestError):
    """Raised for unsupported HTTP methods or an empty/root path."""

    default_message = "unsupported request format"


class NoOperationsSpecified(SwarmRestError):
    default_message = "no operations specified"


class NotAuthenticated(SwarmRestError):
    default_message = "not authenticated"


class InvalidUsername(SwarmRestError):
    """Raised when an authenticated username cannot be embedded in a version stamp.

    Authentication itself succeeded; the name just falls outside the
    ``[0-9A-Za-z_~]+`` token alphabet that session scopes are built from.
    """

    default_message = "username not usable in version stamps"

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"{self.default_message}: {username!r}")


class OpenFailed(SwarmRestError):
    """Raised when any object in the open phase fails to become ready.

    The underlying exception is chained via __cause__.

    Attributes:
        target_id: The first target whose open failed
    """

    default_message = "failed to open object"

    def __init__(self, target_id: str, detail: str | None = None) -> None:
        self.target_id = target_id
        message = f"{self.default_message} {target_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ProcessingError(SwarmRestError):
    """Per-operation failure captured into the result payload, never raised."""

    default_message = "error processing operation"

    @classmethod
    def payload(cls, exc: BaseException) -> str:
        """Build the result-map value for an exception raised while applying."""
        detail = str(exc) or type(exc).__name__
        return f"{cls.default_message}: {detail}"


# =============================================================================
# Control Flow Signals
# =============================================================================


class WrongRoute(Exception):
    """Raised when a request path lies outside the configured route.

    This is NOT an error condition for the middleware adapter - it means
    "not my request" and the request is passed to the wrapped application.

    Attributes:
        path: The request path that did not match
        route: The configured route prefix
    """

    def __init__(self, path: str, route: str) -> None:
        self.path = path
        self.route = route
        super().__init__(f"path {path!r} is outside route {route!r}")
