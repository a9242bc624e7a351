# src/swarmrest/testing/memory_host.py
"""In-memory Object Host for tests, demos and local development.

Implements the ObjectHost protocol with just enough behaviour to exercise
the full request pipeline:
- Swarm-style logical clock: base64 seconds since 2010 + 2-char sequence
  + ``+hostId``, strictly increasing
- Registered model types (mapping state, ``set`` merges) and collection
  types (``entries`` list, ``add``/``remove``, state-ready callbacks)
- ``{target}.init`` emitted on the event loop after every activation;
  pending listeners can be withdrawn with off()
- Delivery log and subscription counters for assertions

It does NOT replicate, persist or resolve conflicts.

Usage:
    host = MemoryHost(host_id="swarm~mem")
    host.register_model("Mouse", {"x": 0, "y": 0, "symbol": "?", "ms": 0})
    host.seed("/Mouse#A~GoImd", {"x": 200, "y": 10, "symbol": "X"})
"""

from __future__ import annotations

import asyncio
import copy
from collections import Counter, defaultdict
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from swarmrest.contracts.host import (
    ACTIVATE_OP,
    DEACTIVATE_OP,
    ERROR_OP,
    DeliverySink,
    init_event,
)
from swarmrest.contracts.locator import Locator
from swarmrest.engine.clock import DEFAULT_CLOCK, Clock

# Swarm timestamps count seconds from 2010-01-01T00:00:00Z
SWARM_EPOCH = 1262304000

# ASCII-ordered so that equal-width stamps compare like the numbers they encode
BASE64_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz~"

SECONDS_WIDTH = 5
SEQUENCE_WIDTH = 2
MAX_SEQUENCE = len(BASE64_ALPHABET) ** SEQUENCE_WIDTH

COLLECTION_ADD_OP = "add"
COLLECTION_REMOVE_OP = "remove"
MODEL_SET_OP = "set"


def int_to_base64(value: int, width: int) -> str:
    """Encode a non-negative int as fixed-width Swarm base64."""
    if value < 0:
        raise ValueError(f"Cannot encode negative value: {value}")
    chars = []
    for _ in range(width):
        value, digit = divmod(value, len(BASE64_ALPHABET))
        chars.append(BASE64_ALPHABET[digit])
    if value:
        raise ValueError(f"Value does not fit in {width} base64 digits")
    return "".join(reversed(chars))


class UnknownTypeError(LookupError):
    """Raised by get() for a target whose type was never registered."""


class OperationRejected(Exception):
    """An operation the object refused; reported to the sink, not raised."""


class LogicalClock:
    """Issues strictly increasing ``<stamp>+<source>`` timestamps."""

    def __init__(self, source: str, clock: Clock = DEFAULT_CLOCK) -> None:
        self._source = source
        self._clock = clock
        self._last_seconds = -1
        self._sequence = 0

    def issue(self) -> str:
        seconds = max(int(self._clock.now()) - SWARM_EPOCH, 0)
        if seconds <= self._last_seconds:
            # Same second (or wall clock moved back): bump the sequence
            seconds = self._last_seconds
            self._sequence += 1
            if self._sequence >= MAX_SEQUENCE:
                seconds += 1
                self._sequence = 0
        else:
            self._sequence = 0
        self._last_seconds = seconds
        stamp = int_to_base64(seconds, SECONDS_WIDTH) + int_to_base64(self._sequence, SEQUENCE_WIDTH)
        return f"{stamp}+{self._source}"


class MemoryModel:
    """A mapping-state object; ``set`` merges the value into state."""

    def __init__(self, type_name: str, object_id: str, defaults: Mapping[str, Any]) -> None:
        self.type = type_name
        self.id = object_id
        self.version: str | None = None
        self._state: dict[str, Any] = copy.deepcopy(dict(defaults))

    def pojo(self, add_version_info: bool) -> dict[str, Any]:
        snapshot = copy.deepcopy(self._state)
        if add_version_info:
            snapshot["_version"] = self.version
        return snapshot

    def apply(self, op: str, value: Any, version: str) -> None:
        if op != MODEL_SET_OP:
            raise OperationRejected(f"unknown operation {op!r} for {self.type}")
        if not isinstance(value, dict):
            raise OperationRejected(f"{op} expects an object value")
        self._state.update(copy.deepcopy(value))
        self.version = version


class MemoryCollection:
    """A list of ``/Type#id`` entry references."""

    def __init__(self, type_name: str, object_id: str) -> None:
        self.type = type_name
        self.id = object_id
        self.version: str | None = None
        self.entries: list[str] = []
        self._ready = False
        self._ready_callbacks: list[Callable[[], None]] = []

    def pojo(self, add_version_info: bool) -> dict[str, Any]:
        snapshot: dict[str, Any] = {"entries": list(self.entries)}
        if add_version_info:
            snapshot["_version"] = self.version
        return snapshot

    def on_object_state_ready(self, callback: Callable[[], None]) -> None:
        if self._ready:
            asyncio.get_running_loop().call_soon(callback)
        else:
            self._ready_callbacks.append(callback)

    def off_object_state_ready(self, callback: Callable[[], None]) -> None:
        if callback in self._ready_callbacks:
            self._ready_callbacks.remove(callback)

    @property
    def pending_ready_callbacks(self) -> int:
        return len(self._ready_callbacks)

    def mark_ready(self) -> None:
        self._ready = True
        callbacks, self._ready_callbacks = self._ready_callbacks, []
        for callback in callbacks:
            callback()

    def apply(self, op: str, value: Any, version: str) -> None:
        if not isinstance(value, str):
            raise OperationRejected(f"{op} expects a /Type#id string value")
        entry = Locator.parse(value).type_id
        if op == COLLECTION_ADD_OP:
            if entry not in self.entries:
                self.entries.append(entry)
        elif op == COLLECTION_REMOVE_OP:
            if entry not in self.entries:
                raise OperationRejected(f"{entry} is not in the collection")
            self.entries.remove(entry)
        else:
            raise OperationRejected(f"unknown operation {op!r} for {self.type}")
        self.version = version


MemoryObject = MemoryModel | MemoryCollection


@dataclass(frozen=True, slots=True)
class Delivery:
    """One recorded call to deliver()."""

    locator: Locator
    value: Any
    sink_id: str


class MemoryHost:
    """ObjectHost implementation backed by plain dicts."""

    def __init__(self, host_id: str = "swarm~mem", *, clock: Clock = DEFAULT_CLOCK) -> None:
        self.id = host_id
        self._clock = LogicalClock(host_id, clock)
        self._models: dict[str, dict[str, Any]] = {}
        self._collection_types: set[str] = set()
        self._objects: dict[str, MemoryObject] = {}
        self._listeners: defaultdict[str, list[Callable[[], None]]] = defaultdict(list)
        self.subscriptions: Counter[str] = Counter()
        self.deliveries: list[Delivery] = []

    # === Type registry ===

    def register_model(self, type_name: str, defaults: Mapping[str, Any] | None = None) -> None:
        self._models[type_name] = dict(defaults or {})

    def register_collection(self, type_name: str) -> None:
        self._collection_types.add(type_name)

    def seed(self, target_id: str, state: Any) -> MemoryObject:
        """Create or overwrite an object's state without going through deliver().

        Models take a mapping; collections take a list of entry references.
        """
        obj = self.get(target_id)
        if isinstance(obj, MemoryCollection):
            obj.entries = [Locator.parse(entry).type_id for entry in state]
        else:
            obj.apply(MODEL_SET_OP, state, self.time())
        return obj

    # === ObjectHost protocol ===

    def get(self, target_id: str) -> MemoryObject:
        obj = self._objects.get(target_id)
        if obj is not None:
            return obj
        locator = Locator.parse(target_id)
        if not locator.type or not locator.id:
            raise ValueError(f"Not a /Type#id target: {target_id!r}")
        if locator.type in self._collection_types:
            obj = MemoryCollection(locator.type, locator.id)
        elif locator.type in self._models:
            obj = MemoryModel(locator.type, locator.id, self._models[locator.type])
        else:
            raise UnknownTypeError(f"unknown object type {locator.type!r}")
        self._objects[target_id] = obj
        return obj

    async def deliver(self, locator: Locator, value: Any, sink: DeliverySink) -> None:
        self.deliveries.append(Delivery(locator=locator, value=value, sink_id=sink.id))
        target_id = locator.type_id
        obj = self.get(target_id)

        if locator.op == ACTIVATE_OP:
            self.subscriptions[target_id] += 1
            self._schedule_ready(target_id, obj)
            return
        if locator.op == DEACTIVATE_OP:
            if self.subscriptions[target_id] > 0:
                self.subscriptions[target_id] -= 1
            return

        if not locator.version:
            sink.error(locator, "operation has no version")
            return
        if self.subscriptions[target_id] <= 0:
            sink.error(locator, f"{target_id} is not open")
            return
        try:
            obj.apply(locator.op or "", value, locator.version)
        except OperationRejected as exc:
            sink.deliver(locator.with_op(ERROR_OP), str(exc))
            return
        sink.deliver(locator, value)

    def once(self, event: str, callback: Callable[[], None]) -> None:
        self._listeners[event].append(callback)

    def off(self, event: str, callback: Callable[[], None]) -> None:
        """Withdraw a once() listener that has not fired; unknown ones are ignored."""
        listeners = self._listeners.get(event)
        if not listeners or callback not in listeners:
            return
        listeners.remove(callback)
        if not listeners:
            del self._listeners[event]

    def time(self) -> str:
        return self._clock.issue()

    # === Internals ===

    def _schedule_ready(self, target_id: str, obj: MemoryObject) -> None:
        loop = asyncio.get_running_loop()
        if isinstance(obj, MemoryCollection):
            loop.call_soon(obj.mark_ready)
        loop.call_soon(self._emit, init_event(target_id))

    def _emit(self, event: str) -> None:
        listeners = self._listeners.pop(event, [])
        for callback in listeners:
            callback()

    def listener_count(self, event: str | None = None) -> int:
        """Pending once() listeners for event, or across all events."""
        if event is not None:
            return len(self._listeners.get(event, ()))
        return sum(len(listeners) for listeners in self._listeners.values())

    def delivered_ops(self, op: str) -> list[Delivery]:
        """Recorded deliveries whose locator carries ``op``."""
        return [d for d in self.deliveries if d.locator.op == op]
