"""Shared pytest fixtures for swarm-rest tests.

Available helpers:
- make_memory_host: demo MemoryHost with seeded mice on a frozen clock
- FaultyHost: MemoryHost with failure injection
"""

from tests.fixtures.hosts import FaultyHost, HostUnavailable, make_memory_host

__all__ = [
    "FaultyHost",
    "HostUnavailable",
    "make_memory_host",
]
