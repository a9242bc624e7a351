# src/swarmrest/engine/extractor.py
"""Translate an HTTP method + path + body into operation descriptors.

Pure translation: nothing here touches the Object Host.
"""

from __future__ import annotations

from typing import Any

from swarmrest.contracts.errors import UnsupportedRequestFormat
from swarmrest.contracts.operations import OperationDescriptor
from swarmrest.engine.parser import parse_mutation_path, parse_read_path

READ_METHODS: frozenset[str] = frozenset({"GET"})
WRITE_METHODS: frozenset[str] = frozenset({"POST", "PUT"})


def extract(method: str, path: str, body: Any = None) -> list[OperationDescriptor]:
    """Produce the ordered descriptor list for one request.

    Args:
        method: HTTP method (case-insensitive)
        path: Request path with the route prefix removed, percent-decoded
        body: Parsed JSON body (ignored for reads)

    Raises:
        UnsupportedRequestFormat: Unsupported method, or empty/root path.
        SwarmRestError: Any parser error for the selected mode.
    """
    method = method.upper()
    if not path or path == "/" or method not in READ_METHODS | WRITE_METHODS:
        raise UnsupportedRequestFormat()
    if method in READ_METHODS:
        return parse_read_path(path)
    return parse_mutation_path(path, body)
