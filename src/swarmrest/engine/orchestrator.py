# src/swarmrest/engine/orchestrator.py
"""Object lifecycle orchestration: open, apply, close.

Every request drives its targets through three strictly ordered phases:

1. open  - activate each distinct target (bounded concurrency) and wait
           for the host to report it ready. A raised error or a rejection
           reported to the sink fails the phase fast with OpenFailed.
2. apply - process descriptors sequentially in extraction order. Reads
           snapshot the object; mutations are delivered with a fresh
           version stamp. Per-descriptor failures are captured in the
           result map, never raised.
3. close - deactivate every target that finished opening. Best effort:
           failures are logged and dropped, never retried.

Close runs on every exit path once the open phase has started, including
an aborted open and task cancellation.

Usage:
    orchestrator = ObjectOrchestrator(host)
    result = await orchestrator.run(descriptors, scope, RunOptions())
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Iterator, Sequence
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from functools import partial
from typing import Any

import structlog

from swarmrest.contracts.errors import OpenFailed, ProcessingError
from swarmrest.contracts.host import (
    ACTIVATE_OP,
    ACTIVATE_VALUE,
    DEACTIVATE_OP,
    DEACTIVATE_VALUE,
    ListenerRemovable,
    ObjectHandle,
    ObjectHost,
    StateReadyAware,
    StateReadyCancellable,
    init_event,
)
from swarmrest.contracts.locator import Locator
from swarmrest.contracts.operations import MAX_PARALLEL_OPENS, OperationDescriptor, RunOptions
from swarmrest.core.logging import get_logger
from swarmrest.engine.sink import SyntheticSink
from swarmrest.engine.versions import VersionGenerator

logger = get_logger(__name__)

ENTRIES_FIELD = "entries"


@dataclass
class _RequestRun:
    """Request-local state. Never shared between requests."""

    scope: str
    options: RunOptions
    sink: SyntheticSink
    log: structlog.stdlib.BoundLogger
    opened: dict[str, ObjectHandle] = field(default_factory=dict)


class ObjectOrchestrator:
    """Runs descriptor lists against an Object Host."""

    def __init__(
        self,
        host: ObjectHost,
        *,
        max_parallel_opens: int = MAX_PARALLEL_OPENS,
        versions: VersionGenerator | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            host: The Object Host collaborator
            max_parallel_opens: Maximum opens in flight per request (>= 1)
            versions: Version stamp source (defaults to one over ``host``)

        Raises:
            ValueError: If max_parallel_opens < 1
        """
        if max_parallel_opens < 1:
            raise ValueError(f"max_parallel_opens must be >= 1, got {max_parallel_opens}")
        self._host = host
        self._max_parallel_opens = max_parallel_opens
        self._versions = versions if versions is not None else VersionGenerator(host)

    @property
    def host(self) -> ObjectHost:
        return self._host

    @property
    def max_parallel_opens(self) -> int:
        return self._max_parallel_opens

    async def run(
        self,
        descriptors: Sequence[OperationDescriptor],
        scope: str,
        options: RunOptions | None = None,
    ) -> dict[str, Any]:
        """Open, apply and close for one request.

        Args:
            descriptors: Operations in extraction order
            scope: Session scope used for every version stamp
            options: Snapshot feature flags

        Returns:
            Mapping of target id (reads) or stamped locator string
            (mutation errors) to snapshot or error value.

        Raises:
            OpenFailed: If any target failed to open.
        """
        run = _RequestRun(
            scope=scope,
            options=options if options is not None else RunOptions(),
            sink=SyntheticSink(scope),
            log=logger.bind(scope=scope),
        )
        # First-seen order, duplicates collapse
        target_ids = list(dict.fromkeys(d.target_id for d in descriptors))

        async with self._opened_objects(target_ids, run):
            result = await self._apply_all(descriptors, run)

        run.log.debug(
            "request_completed",
            targets=len(target_ids),
            operations=len(descriptors),
            entries=len(result),
        )
        return result

    # === Open ===

    @asynccontextmanager
    async def _opened_objects(self, target_ids: list[str], run: _RequestRun) -> AsyncIterator[dict[str, ObjectHandle]]:
        """Open all targets; close whatever opened on exit."""
        try:
            await self._open_all(target_ids, run)
            yield run.opened
        finally:
            # Shielded so cancellation of the request cannot skip deactivation
            await asyncio.shield(self._close_all(run))

    async def _open_all(self, target_ids: list[str], run: _RequestRun) -> None:
        semaphore = asyncio.Semaphore(self._max_parallel_opens)
        try:
            # TaskGroup cancels outstanding opens on the first failure and
            # waits for every task to settle before raising.
            async with asyncio.TaskGroup() as group:
                for target_id in target_ids:
                    group.create_task(
                        self._open_one(target_id, semaphore, run),
                        name=f"open {target_id}",
                    )
        except ExceptionGroup as failures:
            # _open_one wraps every failure, so the group holds OpenFailed only
            first = failures.exceptions[0]
            run.log.warning(
                "open_failed",
                target_id=getattr(first, "target_id", None),
                failed=len(failures.exceptions),
                opened=len(run.opened),
            )
            raise first from first.__cause__
        run.log.debug("objects_opened", count=len(run.opened))

    async def _open_one(self, target_id: str, semaphore: asyncio.Semaphore, run: _RequestRun) -> None:
        async with semaphore:
            try:
                await self._activate(target_id, run)
            except OpenFailed:
                raise
            except Exception as exc:
                raise OpenFailed(target_id, str(exc) or type(exc).__name__) from exc

    async def _activate(self, target_id: str, run: _RequestRun) -> None:
        """Deliver the activate directive and wait for ready or rejection.

        The host may refuse activation by raising, or by reporting an error
        to the sink and never signalling readiness. Both fail the open.
        """
        handle = self._host.get(target_id)
        locator = Locator.parse(target_id).with_version(self._versions.next(run.scope)).with_op(ACTIVATE_OP)
        run.sink.discard(target_id)
        with (
            self._readiness(target_id, handle, run) as ready,
            run.sink.watch(target_id) as rejected,
        ):
            await self._host.deliver(locator, ACTIVATE_VALUE, run.sink)
            await asyncio.wait((ready, rejected), return_when=asyncio.FIRST_COMPLETED)
            if rejected.done():
                raise OpenFailed(target_id, str(rejected.result()))

    @contextmanager
    def _readiness(self, target_id: str, handle: ObjectHandle, run: _RequestRun) -> Iterator[asyncio.Future[None]]:
        """Register the readiness waiter before activation is delivered.

        Collections being expanded must have their entries loaded, so they
        wait on the handle's own state-ready signal; everything else waits
        on the host-wide init event. The target counts as opened the moment
        the signal arrives. On exit the waiter is withdrawn, so a signal
        that comes after the request stopped waiting is ignored.
        """
        ready: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def on_ready() -> None:
            if ready.done():
                return
            run.opened[target_id] = handle
            ready.set_result(None)

        withdraw: Callable[[], None] | None = None
        if run.options.expand_collections and isinstance(handle, StateReadyAware):
            handle.on_object_state_ready(on_ready)
            if isinstance(handle, StateReadyCancellable):
                withdraw = partial(handle.off_object_state_ready, on_ready)
        else:
            event = init_event(target_id)
            self._host.once(event, on_ready)
            if isinstance(self._host, ListenerRemovable):
                withdraw = partial(self._host.off, event, on_ready)
        try:
            yield ready
        finally:
            ready.cancel()
            if withdraw is not None:
                withdraw()

    # === Apply ===

    async def _apply_all(self, descriptors: Sequence[OperationDescriptor], run: _RequestRun) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for descriptor in descriptors:
            handle = run.opened[descriptor.target_id]
            if descriptor.is_read:
                try:
                    result[descriptor.target_id] = self._snapshot(handle, run.options)
                except Exception as exc:
                    run.log.warning("read_failed", target_id=descriptor.target_id, error=str(exc))
                    result[descriptor.target_id] = ProcessingError.payload(exc)
            else:
                await self._apply_mutation(descriptor, run, result)
        return result

    async def _apply_mutation(self, descriptor: OperationDescriptor, run: _RequestRun, result: dict[str, Any]) -> None:
        if descriptor.locator is None:
            raise ValueError(f"Mutation descriptor for {descriptor.target_id} has no locator")
        locator = descriptor.locator
        try:
            locator = locator.with_version(self._versions.next(run.scope))
            # Only errors raised by this delivery count
            run.sink.discard(descriptor.target_id)
            await self._host.deliver(locator, descriptor.value, run.sink)
        except Exception as exc:
            run.log.warning("operation_failed", locator=str(locator), error=str(exc))
            result[str(locator)] = ProcessingError.payload(exc)
            return

        error = run.sink.last_error(descriptor.target_id)
        if error is not None:
            run.log.info("operation_rejected", locator=str(locator), error=error)
            result[str(locator)] = error

    def _snapshot(self, handle: ObjectHandle, options: RunOptions) -> dict[str, Any]:
        pojo = dict(handle.pojo(options.add_version_info))
        if options.expand_collections and isinstance(handle, StateReadyAware):
            entries = pojo.get(ENTRIES_FIELD)
            if isinstance(entries, list):
                pojo[ENTRIES_FIELD] = [self._entry_snapshot(entry, options) for entry in entries]
        return pojo

    def _entry_snapshot(self, entry: Any, options: RunOptions) -> Any:
        """Replace a ``/Type#id`` entry reference with that object's snapshot."""
        if not isinstance(entry, str):
            return entry
        entry_handle = self._host.get(entry)
        snapshot = dict(entry_handle.pojo(options.add_version_info))
        snapshot["_type"] = entry_handle.type
        snapshot["_id"] = entry_handle.id
        return snapshot

    # === Close ===

    async def _close_all(self, run: _RequestRun) -> None:
        targets = list(run.opened)
        if not targets:
            return
        outcomes = await asyncio.gather(
            *(self._close_one(target_id, run) for target_id in targets),
            return_exceptions=True,
        )
        for target_id, outcome in zip(targets, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                run.log.warning("close_failed", target_id=target_id, error=str(outcome))
        run.log.debug("objects_closed", count=len(targets))

    async def _close_one(self, target_id: str, run: _RequestRun) -> None:
        locator = Locator.parse(target_id).with_version(self._versions.next(run.scope)).with_op(DEACTIVATE_OP)
        await self._host.deliver(locator, DEACTIVATE_VALUE, run.sink)
