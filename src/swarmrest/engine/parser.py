# src/swarmrest/engine/parser.py
"""Specifier parsing for the two request modes.

Read mode (GET) batches many targets into one path:

    /Type1#id1#id2/Type2#id3  ->  read /Type1#id1, /Type1#id2, /Type2#id3

Mutation mode (POST/PUT) addresses exactly one operation:

    /Type#id.op  + JSON body  ->  one descriptor carrying the body as value
"""

from __future__ import annotations

from typing import Any

from swarmrest.contracts.errors import (
    NoIdSpecified,
    NoOperationsSpecified,
    NoOpSpecified,
    NoTypeSpecified,
    UnsupportedToken,
)
from swarmrest.contracts.locator import ID_SIGIL, TYPE_SIGIL, Locator, iter_tokens
from swarmrest.contracts.operations import READ_OP, RESERVED_PARAMS, OperationDescriptor


def parse_read_path(path: str) -> list[OperationDescriptor]:
    """Parse a read path into one read descriptor per ``#id`` token.

    The most recent ``/Type`` token applies to every following ``#id``.

    Raises:
        MalformedSpecifier: Text outside the token grammar.
        NoTypeSpecified: An id token precedes every type token.
        UnsupportedToken: A version or operation token is present.
        NoOperationsSpecified: No id tokens at all.
    """
    current_type: str | None = None
    descriptors: list[OperationDescriptor] = []
    for sigil, body in iter_tokens(path):
        if sigil == TYPE_SIGIL:
            current_type = body
        elif sigil == ID_SIGIL:
            if current_type is None:
                raise NoTypeSpecified()
            target_id = Locator(type=current_type, id=body).type_id
            descriptors.append(OperationDescriptor(target_id=target_id, op=READ_OP))
        else:
            raise UnsupportedToken()
    if not descriptors:
        raise NoOperationsSpecified()
    return descriptors


def parse_mutation_path(path: str, body: Any) -> list[OperationDescriptor]:
    """Parse a single ``/Type#id.op`` locator and attach the body value.

    Missing parts are reported in the order type, id, op.
    """
    locator = Locator.parse(path)
    if not locator.type:
        raise NoTypeSpecified()
    if not locator.id:
        raise NoIdSpecified()
    if not locator.op:
        raise NoOpSpecified()
    return [
        OperationDescriptor(
            target_id=locator.type_id,
            op=locator.op,
            locator=locator,
            value=strip_reserved_params(body),
        )
    ]


def strip_reserved_params(body: Any) -> Any:
    """Drop request-parameter keys from a mapping body.

    Lists and scalars are returned unchanged.
    """
    if isinstance(body, dict):
        return {key: value for key, value in body.items() if key not in RESERVED_PARAMS}
    return body
