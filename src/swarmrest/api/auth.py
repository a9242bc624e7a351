# src/swarmrest/api/auth.py
"""Transport-neutral request value, request parameters and authentication.

Parameters are looked up in the query string first, then in a mapping body.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from swarmrest.contracts.errors import NotAuthenticated
from swarmrest.contracts.operations import (
    PARAM_ADD_VERSION_INFO,
    PARAM_COLLECTION_ENTRIES,
    PARAM_USER,
    RunOptions,
)

# String flag values that mean "off"
_FALSE_STRINGS: frozenset[str] = frozenset({"", "0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class ApiRequest:
    """One HTTP request as seen by the request handler.

    Attributes:
        method: HTTP method, upper case
        path: Full percent-decoded request path (route prefix included)
        query: Query parameters (last value wins for repeated keys)
        body: Parsed JSON body; ``{}`` when the request had no body
    """

    method: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    body: Any = field(default_factory=dict)


Authenticator = Callable[[ApiRequest], Awaitable[str]]


def get_param(request: ApiRequest, name: str) -> Any:
    """Return a request parameter, preferring a non-empty query value."""
    value = request.query.get(name)
    if value:
        return value
    if isinstance(request.body, dict):
        return request.body.get(name)
    return None


def parse_flag(value: Any) -> bool:
    """Interpret a parameter as a boolean flag.

    Strings are false when empty or one of 0/false/no/off (any case);
    other values use Python truthiness.
    """
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def run_options(request: ApiRequest) -> RunOptions:
    return RunOptions(
        expand_collections=parse_flag(get_param(request, PARAM_COLLECTION_ENTRIES)),
        add_version_info=parse_flag(get_param(request, PARAM_ADD_VERSION_INFO)),
    )


async def username_from_param(request: ApiRequest) -> str:
    """Default authenticator: trust the ``username`` request parameter.

    Raises:
        NotAuthenticated: If no username is present.
    """
    user = get_param(request, PARAM_USER)
    if user is None or user == "":
        raise NotAuthenticated()
    return str(user)
