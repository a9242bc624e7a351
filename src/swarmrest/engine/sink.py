# src/swarmrest/engine/sink.py
"""Per-request synthetic delivery sink.

The Object Host pushes acknowledgements to whoever submitted an operation.
An HTTP request has no real replica to push to, so each request constructs
one SyntheticSink that stands in for it and remembers the last error seen
per target. The sink is never shared or pooled across requests.

Errors can arrive synchronously from inside host.deliver() or later from
the event loop. Code that has to react to a late error (the open phase
waiting for readiness) holds a watch() on the target.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any

from swarmrest.contracts.host import ERROR_OP
from swarmrest.contracts.locator import Locator


class SyntheticSink:
    """Records the most recent error per target for one request.

    Implements the DeliverySink protocol.

    Attributes:
        id: Session scope of the owning request; the host may use it as the
            subscriber identity
    """

    def __init__(self, session_id: str) -> None:
        self.id = session_id
        self._errors: dict[str, Any] = {}
        self._watchers: dict[str, asyncio.Future[Any]] = {}

    def deliver(self, locator: Locator, value: Any) -> None:
        """Acknowledgement callback; only ``.error`` operations are recorded."""
        if locator.op == ERROR_OP:
            self._record(locator.type_id, value)

    def error(self, locator: Locator, message: Any) -> None:
        """Explicit error callback; always recorded."""
        self._record(locator.type_id, message)

    def last_error(self, target_id: str) -> Any | None:
        return self._errors.get(target_id)

    def discard(self, target_id: str) -> None:
        """Forget any error recorded for target_id."""
        self._errors.pop(target_id, None)

    @contextmanager
    def watch(self, target_id: str) -> Iterator[asyncio.Future[Any]]:
        """Yield a future resolved by the first error recorded for target_id.

        Only errors recorded while the block is active resolve it. On exit
        the watch is dropped and an unresolved future is cancelled.

        Raises:
            RuntimeError: If target_id is already being watched.
        """
        if target_id in self._watchers:
            raise RuntimeError(f"{target_id} is already being watched")
        waiter: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._watchers[target_id] = waiter
        try:
            yield waiter
        finally:
            del self._watchers[target_id]
            waiter.cancel()

    def _record(self, target_id: str, value: Any) -> None:
        self._errors[target_id] = value
        waiter = self._watchers.get(target_id)
        if waiter is not None and not waiter.done():
            waiter.set_result(value)

    @property
    def errors(self) -> Mapping[str, Any]:
        """Read-only view of recorded errors."""
        return MappingProxyType(self._errors)

    def __repr__(self) -> str:
        return f"SyntheticSink(id={self.id!r}, errors={len(self._errors)})"
