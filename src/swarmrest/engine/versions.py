# src/swarmrest/engine/versions.py
"""Session-scoped version stamps derived from the host's logical clock.

The host clock reads ``<stamp>+<host id>``. Directives issued on behalf of
an HTTP session carry the same stamp with the host identity swapped for the
session scope, so the host sees them as coming from a distinct source:

    host.time()                   -> "2Ax9J01+swarm~mem"
    next("alice~api~swarm~mem")   -> "2Ax9J03+alice~api~swarm~mem"

Every directive must draw a fresh stamp; stamps are never cached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from swarmrest.contracts.errors import InvalidUsername, NotAuthenticated
from swarmrest.contracts.locator import is_simple_token

if TYPE_CHECKING:
    from swarmrest.contracts.host import ObjectHost

SOURCE_SEPARATOR = "+"
API_SCOPE_MARKER = "api"


def session_scope(username: str, host_id: str) -> str:
    """Build the ``{username}~api~{hostId}`` scope for a request.

    Raises:
        NotAuthenticated: If the username is empty.
        InvalidUsername: If the username cannot be embedded in a version token.
    """
    if not username:
        raise NotAuthenticated()
    if not is_simple_token(username):
        raise InvalidUsername(username)
    return f"{username}~{API_SCOPE_MARKER}~{host_id}"


class VersionGenerator:
    """Issues version stamps from a host's logical clock."""

    def __init__(self, host: ObjectHost) -> None:
        self._host = host

    def next(self, scope: str) -> str:
        """Return a new version stamp attributed to ``scope``.

        Raises:
            ValueError: If the host clock value has no source suffix.
        """
        now = self._host.time()
        stamp, separator, _host_source = now.partition(SOURCE_SEPARATOR)
        if not separator or not stamp:
            raise ValueError(f"Host clock value {now!r} has no '+source' suffix")
        return f"{stamp}{SOURCE_SEPARATOR}{scope}"
