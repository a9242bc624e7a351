# src/swarmrest/contracts/operations.py
"""Operation descriptors and per-request run options.

Descriptors are the currency between the extractor and the orchestrator:
the extractor turns a method + path + body into an ordered list of them, and
the orchestrator opens, applies and closes against that list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from swarmrest.contracts.locator import Locator

# Default cap on simultaneous opens per request
MAX_PARALLEL_OPENS = 100

# Pseudo-operation emitted for every requested read target
READ_OP = "read"

# Request parameter names (query string or body)
PARAM_USER = "username"
PARAM_COLLECTION_ENTRIES = "collectionEntries"
PARAM_ADD_VERSION_INFO = "addVersionInfo"

# Stripped from mapping bodies before they become an operation value
RESERVED_PARAMS: frozenset[str] = frozenset(
    {
        PARAM_USER,
        PARAM_COLLECTION_ENTRIES,
        PARAM_ADD_VERSION_INFO,
    }
)


@dataclass(frozen=True, slots=True)
class OperationDescriptor:
    """A single operation requested by a client.

    Attributes:
        target_id: ``/Type#id`` of the object the operation runs against
        op: Operation name, or READ_OP for snapshot reads
        locator: Parsed mutation locator (None for reads)
        value: Operation value taken from the request body (None for reads)
    """

    target_id: str
    op: str
    locator: Locator | None = None
    value: Any = None

    @property
    def is_read(self) -> bool:
        return self.op == READ_OP


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Feature flags controlling snapshot shape.

    Attributes:
        expand_collections: Replace collection entry references with the
            referenced objects' snapshots (one level deep)
        add_version_info: Ask handles to include version metadata
    """

    expand_collections: bool = False
    add_version_info: bool = False
