# tests/conftest.py
"""Shared test fixtures.

Host fixtures:
- memory_host: the demo MemoryHost (Mouse model, Mice collection, two
  seeded mice and a herd) on a frozen clock
- handler: RequestHandler over memory_host at the root route
- client: Starlette TestClient over create_app() bound to memory_host

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings
from starlette.testclient import TestClient

from swarmrest.api.app import create_app
from swarmrest.api.handler import RequestHandler
from swarmrest.core.config import SwarmRestConfig
from swarmrest.testing.memory_host import MemoryHost
from tests.fixtures.hosts import make_memory_host


@pytest.fixture
def memory_host() -> MemoryHost:
    return make_memory_host()


@pytest.fixture
def handler(memory_host: MemoryHost) -> RequestHandler:
    return RequestHandler(memory_host)


@pytest.fixture
def client(memory_host: MemoryHost) -> Iterator[TestClient]:
    app = create_app(SwarmRestConfig(), host=memory_host)
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# Hypothesis profiles
# =============================================================================

_ALL_PHASES = [Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink]

# Orchestrator properties spin an event loop per example, so timing varies
# too much for per-example deadlines in every profile.
settings.register_profile("ci", max_examples=100, phases=_ALL_PHASES, deadline=None)
settings.register_profile("nightly", max_examples=1000, phases=_ALL_PHASES, deadline=None)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=_ALL_PHASES,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
