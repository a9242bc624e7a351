"""Testing support: an in-memory Object Host.

Usage:
    from swarmrest.testing import MemoryHost

    host = MemoryHost()
    host.register_model("Mouse", {"x": 0, "y": 0})
"""

from swarmrest.testing.memory_host import (
    Delivery,
    LogicalClock,
    MemoryCollection,
    MemoryHost,
    MemoryModel,
    OperationRejected,
    UnknownTypeError,
)

__all__ = [
    "Delivery",
    "LogicalClock",
    "MemoryCollection",
    "MemoryHost",
    "MemoryModel",
    "OperationRejected",
    "UnknownTypeError",
]
